# topmark:header:start
#
#   project      : DiagWatch
#   file         : dedup.py
#   file_relpath : src/diagwatch/problems/dedup.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Problem deduplication used when merging workspace analysis results.

Two problems for the same file are duplicates when they share the dedup key
``(message, range.start.line, range.start.character)``. Merging keeps the first
occurrence in ``existing + incoming`` order, so entries already in the cache win.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from diagwatch.problems.model import Problem

DedupKey = tuple[str, int, int]


def dedup_key(problem: Problem) -> DedupKey:
    """Return the identity key of ``problem``."""
    start = problem.range.start
    return (problem.message, start.line, start.character)


def merge_problems(existing: Iterable[Problem], incoming: Iterable[Problem]) -> list[Problem]:
    """Merge two problem lists for one file, dropping later duplicates.

    Args:
        existing (Iterable[Problem]): Problems already known (they win on conflict).
        incoming (Iterable[Problem]): Newly discovered problems.

    Returns:
        list[Problem]: ``existing`` then ``incoming``, filtered to the first
            occurrence of each dedup key, relative order preserved.
    """
    seen: set[DedupKey] = set()
    merged: list[Problem] = []
    for problem in (*existing, *incoming):
        key: DedupKey = dedup_key(problem)
        if key in seen:
            continue
        seen.add(key)
        merged.append(problem)
    return merged
