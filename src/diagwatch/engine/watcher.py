# topmark:header:start
#
#   project      : DiagWatch
#   file         : watcher.py
#   file_relpath : src/diagwatch/engine/watcher.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Lifecycle controller wiring the engine components together.

`DiagnosticsWatcher` owns one engine instance: an event registry, a per-file
cache, a debounce gate feeding the change processor, a workspace analyzer and
the query API. Nothing is shared between instances; several watchers can run
side by side (e.g. in tests).

Lifecycle:
    * construction subscribes to the upstream; a failing subscription is
      logged and the watcher stays usable without live updates;
    * ``dispose()`` is idempotent: it unsubscribes (errors swallowed), closes
      the debounce gate, stops periodic export, clears the cache and drops all
      listeners;
    * after disposal every public method returns an empty or neutral result.

Example:
    ```python
    watcher = DiagnosticsWatcher(source, config)
    unsubscribe = watcher.on_change(lambda ev: print(ev.file_path))
    await watcher.analyze_workspace()
    watcher.export_problems(Path("problems.json"))
    watcher.dispose()
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from diagwatch.config.logging import get_logger
from diagwatch.config.model import Config
from diagwatch.engine.analyzer import AnalysisContext, AnalysisReport, WorkspaceAnalyzer
from diagwatch.engine.cache import ProblemCache
from diagwatch.engine.debounce import DebounceGate
from diagwatch.engine.events import ChangeEvent, EventRegistry, ProcessingErrorEvent, RefreshEvent
from diagwatch.engine.metrics import PerformanceMonitor
from diagwatch.engine.processor import ChangeProcessor, ProcessingReport
from diagwatch.engine.scheduler import AsyncioScheduler
from diagwatch.export.snapshot import Health, Snapshot, build_snapshot
from diagwatch.export.writer import export_snapshot
from diagwatch.problems.normalizer import ProblemNormalizer
from diagwatch.query.api import ProblemQuery

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.engine.analyzer import BasePhase
    from diagwatch.engine.scheduler import Scheduler, TimerHandle
    from diagwatch.problems.model import Problem
    from diagwatch.query.api import GroupBy, ProblemFilter, WorkspaceSummary
    from diagwatch.upstream.protocols import DiagnosticSource, WorkspaceFolder

logger: DiagwatchLogger = get_logger(__name__)


class DiagnosticsWatcher:
    """One diagnostic aggregation engine bound to one upstream.

    Args:
        source (DiagnosticSource): Upstream diagnostic collaborator.
        config (Config | None): Engine configuration; defaults to `Config()`.
        scheduler (Scheduler | None): Timer and clock; defaults to `AsyncioScheduler`.
        monitor (PerformanceMonitor | None): Timing collector; one is created
            from ``config.performance_logging`` when omitted.
        phases (Sequence[BasePhase] | None): Analyzer phases override.
    """

    def __init__(
        self,
        source: DiagnosticSource,
        config: Config | None = None,
        *,
        scheduler: Scheduler | None = None,
        monitor: PerformanceMonitor | None = None,
        phases: Sequence[BasePhase] | None = None,
    ) -> None:
        self._source: DiagnosticSource = source
        self._config: Config = config if config is not None else Config()
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._monitor: PerformanceMonitor = (
            monitor
            if monitor is not None
            else PerformanceMonitor(enable_logging=self._config.performance_logging)
        )
        self._disposed: bool = False
        self._subscribed: bool = False
        self._unsubscribe: Callable[[], None] | None = None
        self._periodic_timer: TimerHandle | None = None
        self._periodic_path: Path | None = None

        self.events: EventRegistry = EventRegistry()
        self.cache: ProblemCache = ProblemCache(self._config.max_problems_per_file)
        self.normalizer: ProblemNormalizer = ProblemNormalizer(source.workspace_folder)
        self.query: ProblemQuery = ProblemQuery(
            self.cache, is_disposed=self._is_disposed, clock=self._scheduler.now
        )
        self.processor: ChangeProcessor = ChangeProcessor(
            source=source,
            normalizer=self.normalizer,
            cache=self.cache,
            events=self.events,
            scheduler=self._scheduler,
            is_disposed=self._is_disposed,
            monitor=self._monitor,
        )
        self.gate: DebounceGate = DebounceGate(
            self._scheduler, self._config.debounce_s, self._flush
        )
        self.analyzer: WorkspaceAnalyzer = WorkspaceAnalyzer(
            AnalysisContext(
                source=source,
                normalizer=self.normalizer,
                cache=self.cache,
                events=self.events,
                scheduler=self._scheduler,
                config=self._config,
                is_disposed=self._is_disposed,
            ),
            phases,
        )

        self._subscribe()

    # ---- lifecycle ----

    def _is_disposed(self) -> bool:
        return self._disposed

    def _subscribe(self) -> None:
        try:
            self._unsubscribe = self._source.subscribe(self.notify_changed)
        except Exception as exc:
            logger.error("Failed to subscribe to diagnostic changes: %s", exc)
            self._subscribed = False
            return
        self._subscribed = True
        logger.debug("Subscribed to diagnostic changes")

    @property
    def config(self) -> Config:
        """The configuration this watcher was built with."""
        return self._config

    @property
    def disposed(self) -> bool:
        """True after `dispose()`."""
        return self._disposed

    @property
    def subscribed(self) -> bool:
        """True when live updates are wired to the upstream."""
        return self._subscribed and not self._disposed

    @property
    def monitor(self) -> PerformanceMonitor:
        """The performance monitor timing flushes, analyses and exports."""
        return self._monitor

    def health(self) -> Health:
        """Return the engine health block."""
        return Health(
            active=not self._disposed,
            subscribed=self.subscribed,
            last_update=None if self._disposed else self.cache.last_update,
            disposed=self._disposed,
        )

    def dispose(self) -> None:
        """Release every resource. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        if self._unsubscribe is not None:
            try:
                self._unsubscribe()
            except Exception as exc:
                logger.debug("Unsubscribe failed during dispose: %s", exc)
            self._unsubscribe = None
        self._subscribed = False
        self.gate.close()
        self.stop_periodic_export()
        self.cache.clear()
        self.events.clear()
        self._monitor.dispose()
        logger.debug("Diagnostics watcher disposed")

    # ---- subscriptions ----

    def on_change(self, listener: Callable[[ChangeEvent], None]) -> Callable[[], None]:
        """Register ``listener`` for per-file change events."""
        if self._disposed:
            return _noop
        return self.events.subscribe(ChangeEvent, listener)

    def on_refresh(self, listener: Callable[[RefreshEvent], None]) -> Callable[[], None]:
        """Register ``listener`` for full refresh events."""
        if self._disposed:
            return _noop
        return self.events.subscribe(RefreshEvent, listener)

    def on_error(self, listener: Callable[[ProcessingErrorEvent], None]) -> Callable[[], None]:
        """Register ``listener`` for per-file processing failures."""
        if self._disposed:
            return _noop
        return self.events.subscribe(ProcessingErrorEvent, listener)

    # ---- live updates ----

    def notify_changed(self, file_paths: Sequence[str]) -> None:
        """Upstream change hook: push a batch of changed files through the gate."""
        if self._disposed:
            return
        self.gate.push(file_paths)

    def _flush(self, file_paths: Sequence[str]) -> None:
        report: ProcessingReport = self.processor.process(file_paths)
        if report.processed and self._config.export_path is not None:
            self._export_quietly(self._config.export_path)

    # ---- analysis ----

    async def analyze_workspace(self) -> AnalysisReport:
        """Run the workspace analysis; see `WorkspaceAnalyzer.analyze`."""
        if self._disposed:
            return AnalysisReport(skipped=True, reason="disposed")
        report: AnalysisReport = await self._monitor.measure_async(
            "workspace-analysis", self.analyzer.analyze
        )
        if not report.skipped and self._config.export_path is not None:
            self._export_quietly(self._config.export_path)
        return report

    # ---- queries ----

    def all_problems(self) -> list[Problem]:
        """Return every cached problem."""
        return self.query.all_problems()

    def problems_for_file(self, file_path: str) -> list[Problem]:
        """Return the problems cached for ``file_path``."""
        return self.query.problems_for_file(file_path)

    def problems_for_workspace(self, workspace_folder: str) -> list[Problem]:
        """Return the problems of one workspace folder."""
        return self.query.problems_for_workspace(workspace_folder)

    def filtered_problems(self, problem_filter: ProblemFilter | None = None) -> list[Problem]:
        """Return the problems matching ``problem_filter``."""
        return self.query.filtered_problems(problem_filter)

    def workspace_summary(
        self, group_by: GroupBy | str | None = None
    ) -> dict[str, int] | WorkspaceSummary:
        """Return the workspace summary, optionally along one dimension."""
        return self.query.workspace_summary(group_by)

    def files_with_problems(self) -> list[str]:
        """Return the file paths with at least one cached problem."""
        return self.query.files_with_problems()

    def workspace_folders(self) -> list[WorkspaceFolder]:
        """Return the upstream workspace folders (empty on failure or after dispose)."""
        if self._disposed:
            return []
        try:
            return list(self._source.workspace_folders())
        except Exception as exc:
            logger.debug("Workspace folder listing failed: %s", exc)
            return []

    # ---- export ----

    def snapshot(self) -> Snapshot:
        """Capture the current state as an export `Snapshot`."""
        return build_snapshot(
            self.query,
            health=self.health(),
            workspace_folders=self.workspace_folders(),
            timestamp=self._scheduler.now(),
        )

    def export_problems(self, path: Path | None = None) -> bool:
        """Write the export artifact atomically.

        Args:
            path (Path | None): Destination; defaults to ``config.export_path``.

        Returns:
            bool: True when the file was replaced; False after disposal or
                when the rename lost a race with another writer.

        Raises:
            ValueError: When no path is given and none is configured.
            OSError: On unexpected I/O failures.
        """
        if self._disposed:
            return False
        target: Path | None = path if path is not None else self._config.export_path
        if target is None:
            raise ValueError("No export path given and none configured")
        snap: Snapshot = self.snapshot()
        return self._monitor.measure("export", lambda: export_snapshot(snap, target))

    def _export_quietly(self, path: Path) -> None:
        try:
            self.export_problems(path)
        except Exception as exc:
            logger.error("Failed to export problems to %s: %s", path, exc)

    def start_periodic_export(
        self, path: Path | None = None, interval_s: float | None = None
    ) -> None:
        """Export every ``interval_s`` seconds until stopped or disposed.

        Args:
            path (Path | None): Destination; defaults to ``config.export_path``.
            interval_s (float | None): Period; defaults to ``config.export_interval_s``.

        Raises:
            ValueError: When no path is given and none is configured.
        """
        if self._disposed:
            return
        target: Path | None = path if path is not None else self._config.export_path
        if target is None:
            raise ValueError("No export path given and none configured")
        period: float = (
            interval_s if interval_s is not None else float(self._config.export_interval_s)
        )
        self.stop_periodic_export()
        self._periodic_path = target

        def _tick() -> None:
            if self._disposed or self._periodic_path is None:
                return
            self._export_quietly(self._periodic_path)
            self._periodic_timer = self._scheduler.call_later(period, _tick)

        self._periodic_timer = self._scheduler.call_later(period, _tick)
        logger.debug("Periodic export to %s every %ss", target, period)

    def stop_periodic_export(self) -> None:
        """Cancel the periodic export, if any."""
        if self._periodic_timer is not None:
            self._periodic_timer.cancel()
            self._periodic_timer = None
        self._periodic_path = None

    @property
    def periodic_export_active(self) -> bool:
        """True while a periodic export is scheduled."""
        return self._periodic_timer is not None


def _noop() -> None:
    return None
