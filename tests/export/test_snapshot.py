# topmark:header:start
#
#   project      : DiagWatch
#   file         : test_snapshot.py
#   file_relpath : tests/export/test_snapshot.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for the export snapshot payload."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from diagwatch.engine.cache import ProblemCache
from diagwatch.export.snapshot import Health, build_snapshot
from diagwatch.export.writer import export_snapshot
from diagwatch.problems.model import Severity
from diagwatch.query.api import ProblemQuery
from tests.helpers import APP_FOLDERS, BASE_TIME, make_problem

if TYPE_CHECKING:
    from pathlib import Path

    from diagwatch.export.snapshot import Snapshot


def _snapshot(last_update: bool = True) -> Snapshot:
    cache = ProblemCache()
    cache.replace(
        "/ws/app/a.ts",
        [make_problem("a"), make_problem("a2", line=3, severity=Severity.WARNING)],
    )
    cache.replace(
        "/ws/lib/b.ts", [make_problem("b", file_path="/ws/lib/b.ts", workspace_folder="lib")]
    )
    query = ProblemQuery(cache, is_disposed=lambda: False, clock=lambda: BASE_TIME)
    health = Health(
        active=True,
        subscribed=True,
        last_update=BASE_TIME if last_update else None,
        disposed=False,
    )
    return build_snapshot(
        query, health=health, workspace_folders=APP_FOLDERS, timestamp=BASE_TIME
    )


def test_snapshot_counts() -> None:
    snapshot = _snapshot()
    assert snapshot.problem_count == 3
    assert snapshot.file_count == 2
    assert snapshot.summary.total_problems == 3
    assert snapshot.summary.by_workspace == {"app": 2, "lib": 1}


def test_snapshot_to_dict_shape() -> None:
    data = _snapshot().to_dict()
    assert list(data) == [
        "timestamp",
        "problemCount",
        "fileCount",
        "workspaceFolders",
        "problems",
        "summary",
        "health",
    ]
    assert data["timestamp"] == "2025-01-01T00:00:00.000Z"
    assert data["health"] == {
        "active": True,
        "subscribed": True,
        "lastUpdate": "2025-01-01T00:00:00.000Z",
        "disposed": False,
    }


def test_health_without_last_update() -> None:
    health = _snapshot(last_update=False).health.to_dict()
    assert health["lastUpdate"] is None


def test_export_snapshot_round_trip(tmp_path: Path) -> None:
    target = tmp_path / "problems.json"
    assert export_snapshot(_snapshot(), target) is True
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["problemCount"] == 3
    assert [p["message"] for p in data["problems"]] == ["a", "a2", "b"]
    assert data["summary"]["bySeverity"]["Warning"] == 1
