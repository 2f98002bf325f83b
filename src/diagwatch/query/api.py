# topmark:header:start
#
#   project      : DiagWatch
#   file         : api.py
#   file_relpath : src/diagwatch/query/api.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Query and aggregation API over the per-file problem cache.

All methods are read-only. After the owning engine is disposed every method
returns an empty or neutral result instead of raising.

Filtering semantics:
    - every set field of a `ProblemFilter` must match (logical AND);
    - unset fields match everything;
    - ``offset`` is applied before ``limit``, both after filtering.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from diagwatch.config.logging import get_logger
from diagwatch.core.enum_mixins import KeyedStrEnum
from diagwatch.core.machine.schemas import MachineKey
from diagwatch.engine.scheduler import isoformat_utc
from diagwatch.problems.model import Severity

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.engine.cache import ProblemCache
    from diagwatch.problems.model import Problem

logger: DiagwatchLogger = get_logger(__name__)


class GroupBy(KeyedStrEnum):
    """Dimension selected by `ProblemQuery.workspace_summary`."""

    SEVERITY = ("severity", "Severity")
    WORKSPACE_FOLDER = ("workspaceFolder", "Workspace folder", ("workspace", "workspace_folder"))
    SOURCE = ("source", "Source")


@dataclass(frozen=True, slots=True)
class ProblemFilter:
    """Optional predicates combined with logical AND.

    Attributes:
        severity (Severity | str | None): Keep only problems of this severity.
            Strings are parsed like `Severity.parse` (``"Error"``, ``"warn"``, ``"2"``);
            an unknown token matches nothing.
        workspace_folder (str | None): Keep only problems of this workspace folder.
        file_path (str | None): Keep only problems of this file.
        source (str | None): Keep only problems reported by this tool.
        limit (int | None): Maximum number of problems returned.
        offset (int): Number of matching problems skipped first.
    """

    severity: Severity | str | None = None
    workspace_folder: str | None = None
    file_path: str | None = None
    source: str | None = None
    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.severity, str) and not isinstance(self.severity, Severity):
            parsed: Severity | None = Severity.parse(self.severity)
            if parsed is not None:
                object.__setattr__(self, "severity", parsed)

    def matches(self, problem: Problem) -> bool:
        """Return True when ``problem`` satisfies every set predicate."""
        if self.severity is not None and problem.severity != self.severity:
            return False
        if self.workspace_folder is not None and problem.workspace_folder != self.workspace_folder:
            return False
        if self.file_path is not None and problem.file_path != self.file_path:
            return False
        return self.source is None or problem.source == self.source

    def apply(self, problems: Iterable[Problem]) -> list[Problem]:
        """Filter ``problems`` then slice by ``offset`` and ``limit``."""
        selected: list[Problem] = [p for p in problems if self.matches(p)]
        start: int = max(0, self.offset)
        if self.limit is None:
            return selected[start:]
        return selected[start : start + max(0, self.limit)]


def _empty_severity_counts() -> dict[str, int]:
    return {sev.value: 0 for sev in Severity}


@dataclass(frozen=True, slots=True)
class WorkspaceSummary:
    """Aggregate counts over the whole cache.

    Attributes:
        total_problems (int): Number of cached problems.
        by_severity (dict[str, int]): Count per severity; all four keys always present.
        by_workspace (dict[str, int]): Count per workspace folder name.
        by_source (dict[str, int]): Count per source tool.
        file_count (int): Number of files with at least one problem.
        workspace_folders (tuple[str, ...]): Sorted unique workspace folder names.
    """

    total_problems: int = 0
    by_severity: dict[str, int] = field(default_factory=_empty_severity_counts)
    by_workspace: dict[str, int] = field(default_factory=lambda: {})
    by_source: dict[str, int] = field(default_factory=lambda: {})
    file_count: int = 0
    workspace_folders: tuple[str, ...] = ()

    @classmethod
    def from_problems(cls, problems: Iterable[Problem]) -> WorkspaceSummary:
        """Aggregate ``problems`` into a summary."""
        by_severity: dict[str, int] = _empty_severity_counts()
        by_workspace: Counter[str] = Counter()
        by_source: Counter[str] = Counter()
        files: set[str] = set()
        total: int = 0
        for p in problems:
            total += 1
            by_severity[p.severity.value] += 1
            by_workspace[p.workspace_folder] += 1
            by_source[p.source] += 1
            files.add(p.file_path)
        return cls(
            total_problems=total,
            by_severity=by_severity,
            by_workspace=dict(by_workspace),
            by_source=dict(by_source),
            file_count=len(files),
            workspace_folders=tuple(sorted(by_workspace)),
        )

    def group(self, group_by: GroupBy) -> dict[str, int]:
        """Return the sub-map for one dimension."""
        if group_by is GroupBy.SEVERITY:
            return dict(self.by_severity)
        if group_by is GroupBy.WORKSPACE_FOLDER:
            return dict(self.by_workspace)
        return dict(self.by_source)

    def to_dict(self) -> dict[str, object]:
        return {
            MachineKey.TOTAL_PROBLEMS: self.total_problems,
            MachineKey.BY_SEVERITY: dict(self.by_severity),
            MachineKey.BY_WORKSPACE: dict(self.by_workspace),
            MachineKey.BY_SOURCE: dict(self.by_source),
            MachineKey.FILE_COUNT: self.file_count,
            MachineKey.WORKSPACE_FOLDERS: list(self.workspace_folders),
        }


class ProblemQuery:
    """Read-only view over a `ProblemCache`.

    Args:
        cache (ProblemCache): The cache to read.
        is_disposed (Callable[[], bool]): Disposal probe of the owning engine.
        clock (Callable[[], datetime]): Source of ``generatedAt`` timestamps.
    """

    def __init__(
        self,
        cache: ProblemCache,
        *,
        is_disposed: Callable[[], bool],
        clock: Callable[[], datetime],
    ) -> None:
        self._cache: ProblemCache = cache
        self._is_disposed: Callable[[], bool] = is_disposed
        self._clock: Callable[[], datetime] = clock

    def all_problems(self) -> list[Problem]:
        """Return every cached problem."""
        if self._is_disposed():
            return []
        return self._cache.all_problems()

    def problems_for_file(self, file_path: str) -> list[Problem]:
        """Return the problems cached for ``file_path``."""
        if self._is_disposed():
            return []
        return list(self._cache.get(file_path))

    def problems_for_workspace(self, workspace_folder: str) -> list[Problem]:
        """Return the problems whose workspace folder is ``workspace_folder``."""
        return [p for p in self.all_problems() if p.workspace_folder == workspace_folder]

    def filtered_problems(self, problem_filter: ProblemFilter | None = None) -> list[Problem]:
        """Return the problems matching ``problem_filter`` (all when ``None``)."""
        problems: list[Problem] = self.all_problems()
        if problem_filter is None:
            return problems
        return problem_filter.apply(problems)

    def files_with_problems(self) -> list[str]:
        """Return the file paths with at least one cached problem."""
        if self._is_disposed():
            return []
        return self._cache.paths()

    def summary(self) -> WorkspaceSummary:
        """Return the full `WorkspaceSummary`."""
        return WorkspaceSummary.from_problems(self.all_problems())

    def workspace_summary(
        self, group_by: GroupBy | str | None = None
    ) -> dict[str, int] | WorkspaceSummary:
        """Summarize the cache, optionally along one dimension.

        Args:
            group_by (GroupBy | str | None): Dimension to return. Unknown
                tokens and ``None`` select the full summary.

        Returns:
            dict[str, int] | WorkspaceSummary: The selected sub-map, or the
                full summary.
        """
        summary: WorkspaceSummary = self.summary()
        selected: GroupBy | None = (
            GroupBy.parse(group_by) if isinstance(group_by, str) else group_by
        )
        if selected is None:
            if group_by is not None:
                logger.debug("Unknown group-by %r; returning full summary", group_by)
            return summary
        return summary.group(selected)

    def file_payload(self, file_path: str) -> dict[str, object]:
        """Return the per-file resource mapping."""
        problems: list[Problem] = self.problems_for_file(file_path)
        return {
            MachineKey.FILE_PATH: file_path,
            MachineKey.PROBLEMS: [p.to_dict() for p in problems],
            MachineKey.COUNT: len(problems),
            MachineKey.GENERATED_AT: isoformat_utc(self._clock()),
        }

    def workspace_payload(self, workspace_folder: str) -> dict[str, object]:
        """Return the per-workspace resource mapping."""
        problems: list[Problem] = self.problems_for_workspace(workspace_folder)
        return {
            MachineKey.WORKSPACE: workspace_folder,
            MachineKey.PROBLEMS: [p.to_dict() for p in problems],
            MachineKey.COUNT: len(problems),
            MachineKey.GENERATED_AT: isoformat_utc(self._clock()),
        }
