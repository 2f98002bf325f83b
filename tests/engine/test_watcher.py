# topmark:header:start
#
#   project      : DiagWatch
#   file         : test_watcher.py
#   file_relpath : tests/engine/test_watcher.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""End-to-end tests for `DiagnosticsWatcher`.

Covers live updates through the debounce gate, the lifecycle (disposal,
degraded subscription), exports and the periodic export timer.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import pytest

from diagwatch.engine.analyzer import LoadExistingPhase, RefreshPhase
from diagwatch.engine.events import ChangeEvent, ProcessingErrorEvent, RefreshEvent
from diagwatch.engine.watcher import DiagnosticsWatcher
from diagwatch.problems.model import Severity
from diagwatch.query.api import GroupBy, ProblemFilter, WorkspaceSummary
from diagwatch.upstream.protocols import WorkspaceFolder
from diagwatch.upstream.static import StaticDiagnosticSource
from tests.helpers import APP_FOLDERS, ManualScheduler, make_source, make_watcher, raw_diag

if TYPE_CHECKING:
    from pathlib import Path

FAST_PHASES = [LoadExistingPhase(), RefreshPhase()]


class _UnsubscribableSource(StaticDiagnosticSource):
    def subscribe(self, listener: Callable[[Sequence[str]], None]) -> Callable[[], None]:
        raise RuntimeError("event bus unavailable")


class _BrokenFoldersSource(StaticDiagnosticSource):
    def workspace_folders(self) -> Sequence[WorkspaceFolder]:
        raise RuntimeError("no folders")


def test_live_update_burst_processes_once(scheduler: ManualScheduler) -> None:
    """Rapid notifications inside the debounce window produce a single flush."""
    source = make_source()
    watcher = make_watcher(source, scheduler)
    changes: list[ChangeEvent] = []
    watcher.on_change(changes.append)

    for i in range(5):
        source.update("/ws/app/a.ts", [raw_diag(f"m{i}")])
        scheduler.advance(0.05)
    assert changes == []

    scheduler.advance(0.3)
    assert watcher.gate.flush_count == 1
    assert [ev.file_path for ev in changes] == ["/ws/app/a.ts"]
    assert [p.message for p in watcher.problems_for_file("/ws/app/a.ts")] == ["m4"]


def test_clearing_diagnostics_removes_file(scheduler: ManualScheduler) -> None:
    source = make_source({"/ws/app/a.ts": [raw_diag()]})
    watcher = make_watcher(source, scheduler)
    source.update("/ws/app/a.ts", [raw_diag()])
    scheduler.advance(0.3)
    assert watcher.files_with_problems() == ["/ws/app/a.ts"]

    source.update("/ws/app/a.ts", [])
    scheduler.advance(0.3)
    assert watcher.files_with_problems() == []


def test_on_error_receives_processing_failures(scheduler: ManualScheduler) -> None:
    class _Flaky(StaticDiagnosticSource):
        def get_diagnostics(self, file_path: str) -> Sequence[object]:
            raise RuntimeError("boom")

    source = _Flaky(None, APP_FOLDERS)
    watcher = make_watcher(source, scheduler)
    errors: list[ProcessingErrorEvent] = []
    watcher.on_error(errors.append)

    source.notify(["/ws/app/a.ts"])
    scheduler.advance(0.3)

    assert [e.file_path for e in errors] == ["/ws/app/a.ts"]


def test_analyze_workspace_populates_and_refreshes(scheduler: ManualScheduler) -> None:
    source = make_source(
        {
            "/ws/app/a.ts": [raw_diag("a", severity=0), raw_diag("a2", line=1, severity=1)],
            "/ws/lib/b.py": [raw_diag("b", severity=2, source="pyright")],
        }
    )
    watcher = make_watcher(source, scheduler)
    refreshes: list[RefreshEvent] = []
    watcher.on_refresh(refreshes.append)

    report = asyncio.run(watcher.analyze_workspace())

    assert report.ok
    assert len(refreshes) == 1
    assert len(watcher.all_problems()) == 3
    assert [p.message for p in watcher.problems_for_workspace("lib")] == ["b"]
    summary = watcher.workspace_summary()
    assert isinstance(summary, WorkspaceSummary)
    assert summary.by_severity == {"Error": 1, "Warning": 1, "Information": 1, "Hint": 0}
    assert watcher.workspace_summary(GroupBy.SOURCE) == {"ts": 2, "pyright": 1}
    warnings = watcher.filtered_problems(ProblemFilter(severity=Severity.WARNING))
    assert [p.message for p in warnings] == ["a2"]
    assert "workspace-analysis" in watcher.monitor.metrics()


def test_dispose_is_idempotent_and_empties_everything(scheduler: ManualScheduler) -> None:
    source = make_source({"/ws/app/a.ts": [raw_diag()]})
    watcher = make_watcher(source, scheduler, phases=FAST_PHASES)
    asyncio.run(watcher.analyze_workspace())
    watcher.on_change(lambda _: None)
    assert source.listener_count == 1

    watcher.dispose()
    watcher.dispose()

    assert watcher.disposed
    assert source.listener_count == 0
    assert watcher.all_problems() == []
    assert watcher.files_with_problems() == []
    assert watcher.workspace_folders() == []
    assert watcher.filtered_problems(ProblemFilter()) == []
    assert watcher.events.listener_count() == 0
    summary = watcher.workspace_summary()
    assert isinstance(summary, WorkspaceSummary)
    assert summary.total_problems == 0
    health = watcher.health()
    assert (health.active, health.subscribed, health.disposed) == (False, False, True)


def test_calls_after_dispose_are_neutral(scheduler: ManualScheduler, tmp_path: Path) -> None:
    source = make_source({"/ws/app/a.ts": [raw_diag()]})
    watcher = make_watcher(source, scheduler)
    watcher.dispose()

    unsubscribe = watcher.on_change(lambda _: None)
    unsubscribe()
    assert watcher.events.listener_count() == 0

    watcher.notify_changed(["/ws/app/a.ts"])
    scheduler.advance(1.0)
    assert watcher.all_problems() == []

    report = asyncio.run(watcher.analyze_workspace())
    assert report.skipped and report.reason == "disposed"
    assert watcher.export_problems(tmp_path / "out.json") is False
    assert not (tmp_path / "out.json").exists()


def test_dispose_cancels_pending_flush(scheduler: ManualScheduler) -> None:
    source = make_source()
    watcher = make_watcher(source, scheduler)
    source.update("/ws/app/a.ts", [raw_diag()])
    watcher.dispose()
    scheduler.advance(1.0)
    assert watcher.gate.flush_count == 0


def test_subscription_failure_leaves_watcher_usable(scheduler: ManualScheduler) -> None:
    """A failing subscribe is logged; queries and analysis still work."""
    source = _UnsubscribableSource({"/ws/app/a.ts": [raw_diag()]}, APP_FOLDERS)
    watcher = make_watcher(source, scheduler, phases=FAST_PHASES)

    assert not watcher.subscribed
    assert watcher.health().active
    asyncio.run(watcher.analyze_workspace())
    assert len(watcher.all_problems()) == 1
    watcher.dispose()


def test_workspace_folder_failure_yields_empty_list(scheduler: ManualScheduler) -> None:
    watcher = make_watcher(_BrokenFoldersSource(), scheduler)
    assert watcher.workspace_folders() == []
    assert watcher.snapshot().workspace_folders == ()


def test_export_writes_snapshot(scheduler: ManualScheduler, tmp_path: Path) -> None:
    source = make_source({"/ws/app/a.ts": [raw_diag("x")]})
    watcher = make_watcher(source, scheduler, phases=FAST_PHASES)
    asyncio.run(watcher.analyze_workspace())

    target = tmp_path / "nested" / "problems.json"
    assert watcher.export_problems(target) is True

    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["problemCount"] == 1
    assert data["fileCount"] == 1
    assert data["timestamp"] == "2025-01-01T00:00:00.000Z"
    assert data["workspaceFolders"] == [
        {"name": "app", "path": "/ws/app"},
        {"name": "lib", "path": "/ws/lib"},
    ]
    assert data["health"]["subscribed"] is True
    assert data["summary"]["totalProblems"] == 1
    assert "export" in watcher.monitor.metrics()


def test_export_without_path_raises(scheduler: ManualScheduler) -> None:
    watcher = make_watcher(make_source(), scheduler)
    with pytest.raises(ValueError, match="No export path"):
        watcher.export_problems()


def test_configured_export_runs_after_flush(scheduler: ManualScheduler, tmp_path: Path) -> None:
    target = tmp_path / "auto.json"
    source = make_source()
    watcher = make_watcher(source, scheduler, export_path=str(target))

    source.update("/ws/app/a.ts", [raw_diag("live")])
    assert not target.exists()
    scheduler.advance(0.3)

    data = json.loads(target.read_text(encoding="utf-8"))
    assert [p["message"] for p in data["problems"]] == ["live"]


def test_periodic_export(scheduler: ManualScheduler, tmp_path: Path) -> None:
    target = tmp_path / "periodic.json"
    source = make_source({"/ws/app/a.ts": [raw_diag()]})
    watcher = make_watcher(source, scheduler, phases=FAST_PHASES)
    asyncio.run(watcher.analyze_workspace())

    watcher.start_periodic_export(target, interval_s=30)
    assert watcher.periodic_export_active
    scheduler.advance(29)
    assert not target.exists()
    scheduler.advance(1)
    assert json.loads(target.read_text(encoding="utf-8"))["problemCount"] == 1

    target.unlink()
    scheduler.advance(30)
    assert target.exists()

    watcher.stop_periodic_export()
    target.unlink()
    scheduler.advance(60)
    assert not target.exists()
    assert not watcher.periodic_export_active


def test_dispose_stops_periodic_export(scheduler: ManualScheduler, tmp_path: Path) -> None:
    target = tmp_path / "periodic.json"
    watcher = make_watcher(make_source(), scheduler)
    watcher.start_periodic_export(target, interval_s=5)
    watcher.dispose()
    scheduler.advance(60)
    assert not target.exists()
    assert scheduler.pending == 0


def test_watchers_are_independent(scheduler: ManualScheduler) -> None:
    first_source = make_source({"/ws/app/a.ts": [raw_diag()]})
    second_source = make_source({"/ws/lib/b.ts": [raw_diag()]})
    first = make_watcher(first_source, scheduler, phases=FAST_PHASES)
    second = make_watcher(second_source, scheduler, phases=FAST_PHASES)

    asyncio.run(first.analyze_workspace())
    asyncio.run(second.analyze_workspace())
    first.dispose()

    assert first.all_problems() == []
    assert second.files_with_problems() == ["/ws/lib/b.ts"]
    assert isinstance(second, DiagnosticsWatcher)
