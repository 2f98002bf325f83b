# topmark:header:start
#
#   project      : DiagWatch
#   file         : cache.py
#   file_relpath : src/diagwatch/engine/cache.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Per-file problem cache.

The cache maps a file path to the ordered problems currently known for it and
is the single source of truth for every query.

Invariant:
    A key is present if and only if its problem list is non-empty. Storing an
    empty list deletes the key instead.

Per-file cap:
    When ``max_problems_per_file`` is positive, lists longer than the cap keep
    their first N entries (upstream order) and drop the tail.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from diagwatch.config.logging import get_logger
from diagwatch.problems.dedup import merge_problems

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from datetime import datetime

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.problems.model import Problem

logger: DiagwatchLogger = get_logger(__name__)


class ProblemCache:
    """Mapping of file path to its current problems.

    Args:
        max_problems_per_file (int): Per-file cap; ``0`` disables it.
    """

    def __init__(self, max_problems_per_file: int = 0) -> None:
        self._entries: dict[str, tuple[Problem, ...]] = {}
        self._max_per_file: int = max(0, max_problems_per_file)
        self.last_update: datetime | None = None

    def _cap(self, file_path: str, problems: tuple[Problem, ...]) -> tuple[Problem, ...]:
        if self._max_per_file and len(problems) > self._max_per_file:
            logger.debug(
                "Truncating %d problems for %s to the first %d",
                len(problems),
                file_path,
                self._max_per_file,
            )
            return problems[: self._max_per_file]
        return problems

    def replace(
        self,
        file_path: str,
        problems: Iterable[Problem],
        *,
        at: datetime | None = None,
    ) -> tuple[Problem, ...]:
        """Replace the entry for ``file_path`` wholesale.

        Args:
            file_path (str): The file identity.
            problems (Iterable[Problem]): The new problems; empty deletes the key.
            at (datetime | None): Timestamp recorded as `last_update`.

        Returns:
            tuple[Problem, ...]: What is now stored for the file (``()`` if deleted).
        """
        stored: tuple[Problem, ...] = self._cap(file_path, tuple(problems))
        if stored:
            self._entries[file_path] = stored
        else:
            self._entries.pop(file_path, None)
        if at is not None:
            self.last_update = at
        logger.trace("Cache %s: %d problem(s)", file_path, len(stored))
        return stored

    def merge(
        self,
        file_path: str,
        problems: Iterable[Problem],
        *,
        at: datetime | None = None,
    ) -> tuple[Problem, ...]:
        """Merge ``problems`` into the existing entry, existing entries winning.

        Returns:
            tuple[Problem, ...]: What is now stored for the file.
        """
        merged: list[Problem] = merge_problems(self.get(file_path), problems)
        return self.replace(file_path, merged, at=at)

    def get(self, file_path: str) -> tuple[Problem, ...]:
        """Return the problems for ``file_path`` (``()`` when absent)."""
        return self._entries.get(file_path, ())

    def paths(self) -> list[str]:
        """Return cached file paths in insertion order."""
        return list(self._entries)

    def all_problems(self) -> list[Problem]:
        """Return every cached problem, flattened in file insertion order."""
        return [p for problems in self._entries.values() for p in problems]

    def items(self) -> Iterator[tuple[str, tuple[Problem, ...]]]:
        """Iterate over ``(file_path, problems)`` pairs."""
        return iter(list(self._entries.items()))

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, file_path: object) -> bool:
        return file_path in self._entries
