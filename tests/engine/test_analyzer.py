# topmark:header:start
#
#   project      : DiagWatch
#   file         : test_analyzer.py
#   file_relpath : tests/engine/test_analyzer.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for the multi-phase workspace analyzer.

The analyzer is driven with `asyncio.run` and a `ManualScheduler`, so pacing
delays are recorded instead of slept.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from diagwatch.core.diagnostics import DiagnosticLevel
from diagwatch.engine.analyzer import (
    AnalysisContext,
    AnalysisReport,
    BackgroundScanPhase,
    BasePhase,
    LoadExistingPhase,
    PhaseResult,
    PhaseStatus,
    RefreshPhase,
    ReloadLanguageServicesPhase,
    SettlePhase,
    WorkspaceAnalyzer,
    default_phases,
)
from diagwatch.engine.cache import ProblemCache
from diagwatch.engine.events import EventRegistry, RefreshEvent
from diagwatch.problems.normalizer import ProblemNormalizer
from diagwatch.upstream.static import StaticDiagnosticSource
from tests.helpers import APP_FOLDERS, ManualScheduler, make_config, make_problem, raw_diag


@dataclass
class _Flag:
    disposed: bool = False

    def __call__(self) -> bool:
        return self.disposed


def _context(
    source: StaticDiagnosticSource,
    scheduler: ManualScheduler,
    flag: _Flag | None = None,
    **config: Any,
) -> AnalysisContext:
    return AnalysisContext(
        source=source,
        normalizer=ProblemNormalizer(source.workspace_folder),
        cache=ProblemCache(),
        events=EventRegistry(),
        scheduler=scheduler,
        config=make_config(**config),
        is_disposed=flag if flag is not None else _Flag(),
    )


@dataclass
class _ExplodingPhase(BasePhase):
    name: str = "explode"

    async def run(self, ctx: AnalysisContext, result: PhaseResult) -> None:
        raise RuntimeError("phase blew up")


@dataclass
class _BlockingPhase(BasePhase):
    name: str = "block"
    gate: asyncio.Event = field(default_factory=asyncio.Event)

    async def run(self, ctx: AnalysisContext, result: PhaseResult) -> None:
        await self.gate.wait()


class _PatternFailingSource(StaticDiagnosticSource):
    def __init__(self, diagnostics: dict[str, list[object]], bad_pattern: str) -> None:
        super().__init__(diagnostics, APP_FOLDERS)
        self.bad_pattern: str = bad_pattern

    async def find_files(self, include: str, exclude: Sequence[str]) -> Sequence[str]:
        if include == self.bad_pattern:
            raise OSError("search service unavailable")
        return await super().find_files(include, exclude)


def test_default_phase_order() -> None:
    assert [p.name for p in default_phases()] == [
        "load-existing",
        "reload-language-services",
        "background-scan",
        "settle",
        "refresh",
    ]


def test_full_analysis(scheduler: ManualScheduler) -> None:
    """All five phases run; existing diagnostics are merged and a refresh is emitted."""
    source = StaticDiagnosticSource(
        {"/ws/app/a.ts": [raw_diag("a")], "/ws/lib/b.ts": [raw_diag("b")]},
        APP_FOLDERS,
    )
    ctx = _context(source, scheduler, settle_ms=1000, file_delay_ms=0, batch_delay_ms=0)
    refreshes: list[RefreshEvent] = []
    ctx.events.subscribe(RefreshEvent, refreshes.append)

    report = asyncio.run(WorkspaceAnalyzer(ctx).analyze())

    assert report.ok
    assert [p.status for p in report.phases] == [PhaseStatus.OK] * 5
    load = report.phase("load-existing")
    assert load is not None
    assert load.counters == {"files": 2, "problems": 2}
    assert [d.message for d in load.log] == ["Loaded 2 existing problems"]
    assert source.executed == ["typescript.reloadProjects"]
    assert sorted(source.opened) == ["/ws/app/a.ts", "/ws/lib/b.ts"]
    assert 1.0 in scheduler.sleeps
    assert len(refreshes) == 1
    assert {p.message for p in refreshes[0].problems} == {"a", "b"}
    assert report.started_at is not None and report.finished_at is not None


def test_load_existing_deduplicates_against_cache(scheduler: ManualScheduler) -> None:
    source = StaticDiagnosticSource(
        {"/ws/app/a.ts": [raw_diag("A", source="eslint"), raw_diag("B", line=1)]}, APP_FOLDERS
    )
    ctx = _context(source, scheduler)
    ctx.cache.replace("/ws/app/a.ts", [make_problem("A", file_path="/ws/app/a.ts", source="ts")])

    asyncio.run(WorkspaceAnalyzer(ctx, [LoadExistingPhase()]).analyze())

    stored = ctx.cache.get("/ws/app/a.ts")
    assert [(p.message, p.source) for p in stored] == [("A", "ts"), ("B", "ts")]


def test_failing_phase_does_not_stop_later_phases(scheduler: ManualScheduler) -> None:
    source = StaticDiagnosticSource({"/ws/app/a.ts": [raw_diag()]}, APP_FOLDERS)
    ctx = _context(source, scheduler)
    refreshes: list[RefreshEvent] = []
    ctx.events.subscribe(RefreshEvent, refreshes.append)

    report = asyncio.run(
        WorkspaceAnalyzer(ctx, [LoadExistingPhase(), _ExplodingPhase(), RefreshPhase()]).analyze()
    )

    assert not report.ok
    failed = report.phase("explode")
    assert failed is not None
    assert failed.status is PhaseStatus.FAILED
    assert failed.error == "phase blew up"
    assert failed.log.has_error()
    assert report.phase("refresh") is not None
    assert len(refreshes) == 1


def test_reload_command_failure_is_a_warning(scheduler: ManualScheduler) -> None:
    source = StaticDiagnosticSource(failing_commands={"typescript.reloadProjects"})
    ctx = _context(source, scheduler)

    report = asyncio.run(WorkspaceAnalyzer(ctx, [ReloadLanguageServicesPhase()]).analyze())

    phase = report.phases[0]
    assert phase.ok
    assert phase.log.has_warning()
    assert "not found" in next(iter(phase.log)).message
    assert "commands" not in phase.counters


def test_empty_reload_command_does_nothing(scheduler: ManualScheduler) -> None:
    source = StaticDiagnosticSource()
    ctx = _context(source, scheduler, reload_command="")
    asyncio.run(WorkspaceAnalyzer(ctx, [ReloadLanguageServicesPhase()]).analyze())
    assert source.executed == []


def test_scan_pacing(scheduler: ManualScheduler) -> None:
    """Files are opened in batches with a per-file delay and a pause between batches."""
    files = {f"/ws/app/f{i}.ts": [raw_diag()] for i in range(5)}
    source = StaticDiagnosticSource(files, APP_FOLDERS)
    ctx = _context(
        source,
        scheduler,
        scan_patterns=["**/*.ts"],
        scan_exclude=[],
        batch_size=2,
        file_delay_ms=10,
        batch_delay_ms=200,
    )

    report = asyncio.run(WorkspaceAnalyzer(ctx, [BackgroundScanPhase()]).analyze())

    assert scheduler.sleeps == [0.01, 0.01, 0.2, 0.01, 0.01, 0.2, 0.01]
    assert report.phases[0].counters == {
        "files_found": 5,
        "files_opened": 5,
        "batch_pauses": 2,
    }
    assert source.opened == sorted(files)


def test_scan_pattern_failure_continues_with_next_pattern(scheduler: ManualScheduler) -> None:
    source = _PatternFailingSource(
        {"/ws/app/a.ts": [raw_diag()], "/ws/app/b.py": [raw_diag()]}, bad_pattern="**/*.ts"
    )
    ctx = _context(source, scheduler, scan_patterns=["**/*.ts", "**/*.py"], scan_exclude=[])

    report = asyncio.run(WorkspaceAnalyzer(ctx, [BackgroundScanPhase()]).analyze())

    phase = report.phases[0]
    assert phase.ok
    assert phase.counters["pattern_errors"] == 1
    assert source.opened == ["/ws/app/b.py"]
    warnings = [d for d in phase.log if d.level is DiagnosticLevel.WARNING]
    assert warnings and "Error processing **/*.ts" in warnings[0].message


def test_scan_honors_exclude(scheduler: ManualScheduler) -> None:
    source = StaticDiagnosticSource(
        {"/ws/app/src/a.ts": [], "/ws/app/node_modules/x/b.ts": []}, APP_FOLDERS
    )
    ctx = _context(source, scheduler, scan_patterns=["**/*.ts"])
    asyncio.run(WorkspaceAnalyzer(ctx, [BackgroundScanPhase()]).analyze())
    assert source.opened == ["/ws/app/src/a.ts"]


def test_disposal_during_scan_stops_and_skips_remaining(scheduler: ManualScheduler) -> None:
    flag = _Flag()

    class _DisposingSource(StaticDiagnosticSource):
        async def open_document(self, file_path: str) -> None:
            await super().open_document(file_path)
            if len(self.opened) == 2:
                flag.disposed = True

    files = {f"/ws/app/f{i}.ts": [raw_diag()] for i in range(5)}
    source = _DisposingSource(files, APP_FOLDERS)
    ctx = _context(source, scheduler, flag, scan_patterns=["**/*.ts"], scan_exclude=[])

    report = asyncio.run(
        WorkspaceAnalyzer(ctx, [BackgroundScanPhase(), SettlePhase(), RefreshPhase()]).analyze()
    )

    assert len(source.opened) == 2
    assert report.phases[0].status is PhaseStatus.OK
    assert [p.status for p in report.phases[1:]] == [PhaseStatus.SKIPPED, PhaseStatus.SKIPPED]


def test_disposed_before_start(scheduler: ManualScheduler) -> None:
    ctx = _context(StaticDiagnosticSource(), scheduler, _Flag(disposed=True))
    report = asyncio.run(WorkspaceAnalyzer(ctx).analyze())
    assert report.skipped
    assert report.reason == "disposed"
    assert report.phases == []


def test_analyzer_is_not_reentrant(scheduler: ManualScheduler) -> None:
    """A second call while one is in flight returns a skipped report immediately."""

    async def _scenario() -> tuple[AnalysisReport, AnalysisReport, bool]:
        blocker = _BlockingPhase()
        analyzer = WorkspaceAnalyzer(_context(StaticDiagnosticSource(), scheduler), [blocker])
        first = asyncio.ensure_future(analyzer.analyze())
        await asyncio.sleep(0)
        running: bool = analyzer.running
        second: AnalysisReport = await analyzer.analyze()
        blocker.gate.set()
        return await first, second, running

    first, second, was_running = asyncio.run(_scenario())

    assert was_running
    assert second.skipped
    assert second.reason == "already running"
    assert not first.skipped
    assert first.ok


def test_report_to_dict(scheduler: ManualScheduler) -> None:
    ctx = _context(StaticDiagnosticSource(), scheduler)
    report = asyncio.run(WorkspaceAnalyzer(ctx, [SettlePhase()]).analyze())
    data = report.to_dict()
    assert data["ok"] is True
    assert data["startedAt"] == "2025-01-01T00:00:00.000Z"
    assert data["phases"] == [
        {"name": "settle", "status": "ok", "error": None, "counters": {}, "diagnostics": []}
    ]
