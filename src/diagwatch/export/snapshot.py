# topmark:header:start
#
#   project      : DiagWatch
#   file         : snapshot.py
#   file_relpath : src/diagwatch/export/snapshot.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Snapshot payload written by the export pipeline.

Artifact shape (JSON, camelCase keys):

```json
{
  "timestamp": "2025-01-01T00:00:00.000Z",
  "problemCount": 2,
  "fileCount": 1,
  "workspaceFolders": [{"name": "app", "path": "/ws/app"}],
  "problems": [...],
  "summary": {"totalProblems": 2, "bySeverity": {...}, ...},
  "health": {"active": true, "subscribed": true, "lastUpdate": null, "disposed": false}
}
```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from diagwatch.core.machine.schemas import MachineKey
from diagwatch.engine.scheduler import isoformat_utc
from diagwatch.query.api import WorkspaceSummary

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from diagwatch.problems.model import Problem
    from diagwatch.query.api import ProblemQuery
    from diagwatch.upstream.protocols import WorkspaceFolder


@dataclass(frozen=True, slots=True)
class Health:
    """Engine health block.

    Attributes:
        active (bool): True while the engine is not disposed.
        subscribed (bool): True when the upstream subscription succeeded.
        last_update (datetime | None): Time of the last cache mutation.
        disposed (bool): True after `dispose()`.
    """

    active: bool
    subscribed: bool
    last_update: datetime | None
    disposed: bool

    def to_dict(self) -> dict[str, object]:
        return {
            MachineKey.ACTIVE: self.active,
            MachineKey.SUBSCRIBED: self.subscribed,
            MachineKey.LAST_UPDATE: isoformat_utc(self.last_update) if self.last_update else None,
            MachineKey.DISPOSED: self.disposed,
        }


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Point-in-time export of the cache."""

    timestamp: datetime
    workspace_folders: tuple[WorkspaceFolder, ...]
    problems: tuple[Problem, ...]
    summary: WorkspaceSummary
    health: Health

    @property
    def problem_count(self) -> int:
        return len(self.problems)

    @property
    def file_count(self) -> int:
        return len({p.file_path for p in self.problems})

    def to_dict(self) -> dict[str, object]:
        return {
            MachineKey.TIMESTAMP: isoformat_utc(self.timestamp),
            MachineKey.PROBLEM_COUNT: self.problem_count,
            MachineKey.FILE_COUNT: self.file_count,
            MachineKey.WORKSPACE_FOLDERS: [f.to_dict() for f in self.workspace_folders],
            MachineKey.PROBLEMS: [p.to_dict() for p in self.problems],
            MachineKey.SUMMARY: self.summary.to_dict(),
            MachineKey.HEALTH: self.health.to_dict(),
        }


def build_snapshot(
    query: ProblemQuery,
    *,
    health: Health,
    workspace_folders: Sequence[WorkspaceFolder],
    timestamp: datetime,
) -> Snapshot:
    """Capture the current cache contents as a `Snapshot`.

    Args:
        query (ProblemQuery): Read access to the cache.
        health (Health): Health block to embed.
        workspace_folders (Sequence[WorkspaceFolder]): Upstream workspace folders.
        timestamp (datetime): Snapshot time.

    Returns:
        Snapshot: The snapshot; problems and summary are computed from one read.
    """
    problems: tuple[Problem, ...] = tuple(query.all_problems())
    return Snapshot(
        timestamp=timestamp,
        workspace_folders=tuple(workspace_folders),
        problems=problems,
        summary=WorkspaceSummary.from_problems(problems),
        health=health,
    )
