# topmark:header:start
#
#   project      : DiagWatch
#   file         : analyzer.py
#   file_relpath : src/diagwatch/engine/analyzer.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Workspace analyzer: best-effort, multi-phase full-workspace scan.

The analyzer surfaces diagnostics the editor has not computed yet. It runs five
phases in order:

1. ``load-existing``: merge every diagnostic the upstream already knows.
2. ``reload-language-services``: best-effort named command.
3. ``background-scan``: open matching files invisibly, in paced batches.
4. ``settle``: give asynchronous diagnostic computation time to land.
5. ``refresh``: emit a `RefreshEvent` with the full problem list.

Each phase is a callable object returning a `PhaseResult` (status, error,
internal diagnostic log, counters). A failing phase is recorded and logged and
the next phase still runs. Disposal is checked before each phase and at every
pacing checkpoint inside the scan; after disposal, remaining phases are
reported as skipped.

Live flushes replace cache entries while the analyzer merges into them;
whichever write lands last wins. The analyzer itself is not reentrant: a call
while another analysis is in flight returns a skipped report immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from diagwatch.config.logging import get_logger
from diagwatch.core.diagnostics import DiagnosticLog
from diagwatch.engine.events import RefreshEvent
from diagwatch.engine.scheduler import isoformat_utc

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.config.model import Config
    from diagwatch.engine.cache import ProblemCache
    from diagwatch.engine.events import EventRegistry
    from diagwatch.engine.scheduler import Scheduler
    from diagwatch.problems.model import Problem
    from diagwatch.problems.normalizer import ProblemNormalizer
    from diagwatch.upstream.protocols import DiagnosticSource

logger: DiagwatchLogger = get_logger(__name__)


class PhaseStatus(Enum):
    """Outcome of one analysis phase."""

    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class PhaseResult:
    """Inspectable result of one phase.

    Attributes:
        name (str): Phase identifier (e.g. ``"background-scan"``).
        status (PhaseStatus): Outcome.
        error (str | None): Message of the exception that failed the phase.
        log (DiagnosticLog): Notes, warnings and errors recorded while running.
        counters (dict[str, int]): Phase-specific tallies (files, problems, ...).
    """

    name: str
    status: PhaseStatus = PhaseStatus.OK
    error: str | None = None
    log: DiagnosticLog = field(default_factory=DiagnosticLog)
    counters: dict[str, int] = field(default_factory=lambda: {})

    @property
    def ok(self) -> bool:
        """True when the phase completed."""
        return self.status is PhaseStatus.OK

    def bump(self, counter: str, by: int = 1) -> None:
        """Increment ``counter`` by ``by``."""
        self.counters[counter] = self.counters.get(counter, 0) + by

    def fail(self, exc: BaseException) -> None:
        """Mark the phase as failed by ``exc``."""
        self.status = PhaseStatus.FAILED
        self.error = str(exc) or type(exc).__name__
        self.log.add_error(f"{self.name} failed: {self.error}")

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "status": self.status.value,
            "error": self.error,
            "counters": dict(self.counters),
            "diagnostics": [d.to_dict() for d in self.log],
        }


@dataclass
class AnalysisReport:
    """Result of one `WorkspaceAnalyzer.analyze` call.

    Attributes:
        phases (list[PhaseResult]): Results in execution order.
        skipped (bool): True when the call did not run at all.
        reason (str | None): Why the call was skipped.
        started_at (datetime | None): Start time.
        finished_at (datetime | None): End time.
    """

    phases: list[PhaseResult] = field(default_factory=lambda: [])
    skipped: bool = False
    reason: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def ok(self) -> bool:
        """True when the analysis ran and every phase completed."""
        return not self.skipped and all(p.ok for p in self.phases)

    def phase(self, name: str) -> PhaseResult | None:
        """Return the result of the phase called ``name``."""
        for p in self.phases:
            if p.name == name:
                return p
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "ok": self.ok,
            "skipped": self.skipped,
            "reason": self.reason,
            "startedAt": isoformat_utc(self.started_at) if self.started_at else None,
            "finishedAt": isoformat_utc(self.finished_at) if self.finished_at else None,
            "phases": [p.to_dict() for p in self.phases],
        }


@dataclass
class AnalysisContext:
    """Collaborators shared by all phases of one analyzer."""

    source: DiagnosticSource
    normalizer: ProblemNormalizer
    cache: ProblemCache
    events: EventRegistry
    scheduler: Scheduler
    config: Config
    is_disposed: Callable[[], bool]


@dataclass
class BasePhase:
    """Reusable foundation for analysis phases.

    Subclasses override ``run()`` and optionally ``may_proceed()``. The
    lifecycle in ``__call__`` is: gate -> run -> capture failure.

    Attributes:
        name (str): Stable phase identifier for logs and reports.
    """

    name: str

    async def __call__(self, ctx: AnalysisContext) -> PhaseResult:
        """Run the phase and return its result; never raises."""
        result = PhaseResult(name=self.name)
        if not self.may_proceed(ctx):
            result.status = PhaseStatus.SKIPPED
            result.log.add_info(f"{self.name} skipped")
            logger.debug("Phase %s skipped", self.name)
            return result

        logger.debug("Phase %s running", self.name)
        try:
            await self.run(ctx, result)
        except Exception as exc:
            result.fail(exc)
            logger.warning("Workspace analysis phase %s failed: %s", self.name, exc)
        return result

    def may_proceed(self, ctx: AnalysisContext) -> bool:
        """Return whether the phase should run. Default: not disposed."""
        return not ctx.is_disposed()

    async def run(self, ctx: AnalysisContext, result: PhaseResult) -> None:
        """Perform the phase's work, recording notes on ``result``."""
        pass


@dataclass
class LoadExistingPhase(BasePhase):
    """Merge every diagnostic the upstream already knows into the cache."""

    name: str = "load-existing"

    async def run(self, ctx: AnalysisContext, result: PhaseResult) -> None:
        entries: Sequence[tuple[str, Sequence[object]]] = ctx.source.get_all_diagnostics()
        for file_path, raws in entries:
            if ctx.is_disposed():
                result.log.add_info("stopped: engine disposed")
                return
            problems: list[Problem] = ctx.normalizer.normalize_all(raws, file_path)
            if not problems:
                continue
            ctx.cache.merge(file_path, problems, at=ctx.scheduler.now())
            result.bump("files")
            result.bump("problems", len(problems))
        loaded: int = result.counters.get("problems", 0)
        result.log.add_info(f"Loaded {loaded} existing problems")
        logger.info("Loaded %d existing problems", loaded)


@dataclass
class ReloadLanguageServicesPhase(BasePhase):
    """Ask language tooling to recompute; failures are noted, not raised."""

    name: str = "reload-language-services"

    async def run(self, ctx: AnalysisContext, result: PhaseResult) -> None:
        command: str = ctx.config.reload_command
        if not command:
            result.log.add_info("no reload command configured")
            return
        try:
            await ctx.source.execute_command(command)
        except Exception as exc:
            logger.debug("Command %s unavailable: %s", command, exc)
            result.log.add_warning(f"command {command!r} failed: {exc}")
            return
        result.bump("commands")


@dataclass
class BackgroundScanPhase(BasePhase):
    """Open matching files invisibly, in paced batches."""

    name: str = "background-scan"

    async def run(self, ctx: AnalysisContext, result: PhaseResult) -> None:
        cfg: Config = ctx.config
        batch_size: int = max(1, cfg.batch_size)
        for pattern in cfg.scan_patterns:
            if ctx.is_disposed():
                result.log.add_info("stopped: engine disposed")
                return
            try:
                files: Sequence[str] = await ctx.source.find_files(pattern, cfg.scan_exclude)
            except Exception as exc:
                logger.warning("Error processing %s: %s", pattern, exc)
                result.log.add_warning(f"Error processing {pattern}: {exc}")
                result.bump("pattern_errors")
                continue

            result.bump("files_found", len(files))
            for start in range(0, len(files), batch_size):
                for file_path in files[start : start + batch_size]:
                    if ctx.is_disposed():
                        result.log.add_info("stopped: engine disposed")
                        return
                    try:
                        await ctx.source.open_document(file_path)
                        result.bump("files_opened")
                    except Exception as exc:
                        logger.debug("Could not open %s: %s", file_path, exc)
                        result.bump("files_failed")
                    await ctx.scheduler.sleep(cfg.file_delay_ms / 1000.0)
                if start + batch_size < len(files):
                    await ctx.scheduler.sleep(cfg.batch_delay_ms / 1000.0)
                    result.bump("batch_pauses")


@dataclass
class SettlePhase(BasePhase):
    """Wait for asynchronous diagnostic computation to land."""

    name: str = "settle"

    async def run(self, ctx: AnalysisContext, result: PhaseResult) -> None:
        await ctx.scheduler.sleep(ctx.config.settle_ms / 1000.0)


@dataclass
class RefreshPhase(BasePhase):
    """Emit a `RefreshEvent` with every cached problem."""

    name: str = "refresh"

    async def run(self, ctx: AnalysisContext, result: PhaseResult) -> None:
        problems: tuple[Problem, ...] = tuple(ctx.cache.all_problems())
        delivered: int = ctx.events.emit(
            RefreshEvent(problems=problems, timestamp=ctx.scheduler.now())
        )
        result.bump("problems", len(problems))
        result.bump("listeners", delivered)


def default_phases() -> list[BasePhase]:
    """Return the five analysis phases in execution order."""
    return [
        LoadExistingPhase(),
        ReloadLanguageServicesPhase(),
        BackgroundScanPhase(),
        SettlePhase(),
        RefreshPhase(),
    ]


class WorkspaceAnalyzer:
    """Run the analysis phases against one engine's collaborators.

    Args:
        ctx (AnalysisContext): Shared collaborators.
        phases (Sequence[BasePhase] | None): Phase list; defaults to `default_phases()`.
    """

    def __init__(self, ctx: AnalysisContext, phases: Sequence[BasePhase] | None = None) -> None:
        self._ctx: AnalysisContext = ctx
        self._phases: list[BasePhase] = list(phases) if phases is not None else default_phases()
        self._running: bool = False

    @property
    def running(self) -> bool:
        """True while an analysis is in flight."""
        return self._running

    @property
    def phases(self) -> list[BasePhase]:
        """The configured phases, in order."""
        return list(self._phases)

    async def analyze(self) -> AnalysisReport:
        """Run every phase once.

        Returns:
            AnalysisReport: Per-phase results, or a skipped report when the
                engine is disposed or another analysis is in flight.
        """
        if self._ctx.is_disposed():
            return AnalysisReport(skipped=True, reason="disposed")
        if self._running:
            logger.info("Workspace analysis already running; skipping")
            return AnalysisReport(skipped=True, reason="already running")

        self._running = True
        report = AnalysisReport(started_at=self._ctx.scheduler.now())
        try:
            for phase in self._phases:
                report.phases.append(await phase(self._ctx))
        finally:
            self._running = False
            report.finished_at = self._ctx.scheduler.now()

        failed: list[str] = [p.name for p in report.phases if p.status is PhaseStatus.FAILED]
        if failed:
            logger.warning("Workspace analysis finished with failed phases: %s", ", ".join(failed))
        else:
            logger.info("Workspace analysis finished")
        return report
