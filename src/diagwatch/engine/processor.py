# topmark:header:start
#
#   project      : DiagWatch
#   file         : processor.py
#   file_relpath : src/diagwatch/engine/processor.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Change processor: turn a flushed batch of file identities into cache updates.

For every file in the batch:

    fetch raw diagnostics -> normalize -> replace-or-delete cache entry -> emit ChangeEvent

Failures are isolated per file: the failing file gets a `ProcessingErrorEvent`
(and an error log), the remaining files of the batch are still processed.
The `ChangeEvent` is emitted only after the cache has been updated, so a
synchronous listener always observes a consistent cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from diagwatch.config.logging import get_logger
from diagwatch.engine.events import ChangeEvent, ProcessingErrorEvent

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.engine.cache import ProblemCache
    from diagwatch.engine.events import EventRegistry
    from diagwatch.engine.metrics import PerformanceMonitor
    from diagwatch.engine.scheduler import Scheduler
    from diagwatch.problems.model import Problem
    from diagwatch.problems.normalizer import ProblemNormalizer
    from diagwatch.upstream.protocols import DiagnosticSource

logger: DiagwatchLogger = get_logger(__name__)


@dataclass
class ProcessingReport:
    """Outcome of one flush.

    Attributes:
        processed (list[str]): Files whose cache entry was updated.
        failed (list[str]): Files that raised during processing.
        skipped (bool): True when the engine was disposed and nothing ran.
    """

    processed: list[str] = field(default_factory=lambda: [])
    failed: list[str] = field(default_factory=lambda: [])
    skipped: bool = False


class ChangeProcessor:
    """Apply fresh upstream diagnostics for changed files to the cache.

    Args:
        source (DiagnosticSource): Upstream collaborator.
        normalizer (ProblemNormalizer): Raw diagnostic converter.
        cache (ProblemCache): Cache to update.
        events (EventRegistry): Registry receiving change/error events.
        scheduler (Scheduler): Clock for `last_update` timestamps.
        is_disposed (Callable[[], bool]): Disposal probe of the owning engine.
        monitor (PerformanceMonitor | None): Optional timing of each flush.
    """

    def __init__(
        self,
        *,
        source: DiagnosticSource,
        normalizer: ProblemNormalizer,
        cache: ProblemCache,
        events: EventRegistry,
        scheduler: Scheduler,
        is_disposed: Callable[[], bool],
        monitor: PerformanceMonitor | None = None,
    ) -> None:
        self._source: DiagnosticSource = source
        self._normalizer: ProblemNormalizer = normalizer
        self._cache: ProblemCache = cache
        self._events: EventRegistry = events
        self._scheduler: Scheduler = scheduler
        self._is_disposed: Callable[[], bool] = is_disposed
        self._monitor: PerformanceMonitor | None = monitor

    def process(self, file_paths: Sequence[str]) -> ProcessingReport:
        """Process one flushed batch.

        Args:
            file_paths (Sequence[str]): Changed file identities, in notification order.

        Returns:
            ProcessingReport: Which files were processed and which failed.
        """
        if self._is_disposed():
            return ProcessingReport(skipped=True)
        if self._monitor is not None:
            return self._monitor.measure("diagnostic-processing", lambda: self._process(file_paths))
        return self._process(file_paths)

    def _process(self, file_paths: Sequence[str]) -> ProcessingReport:
        report = ProcessingReport()
        for file_path in file_paths:
            if self._is_disposed():
                logger.debug("Engine disposed mid-batch; stopping")
                break
            try:
                stored: tuple[Problem, ...] = self._process_file(file_path)
            except Exception as exc:
                logger.error("Error processing diagnostics for %s: %s", file_path, exc)
                report.failed.append(file_path)
                self._events.emit(ProcessingErrorEvent(file_path=file_path, error=exc))
                continue
            report.processed.append(file_path)
            self._events.emit(ChangeEvent(file_path=file_path, problems=stored))
        logger.debug(
            "Processed %d file(s), %d failure(s)", len(report.processed), len(report.failed)
        )
        return report

    def _process_file(self, file_path: str) -> tuple[Problem, ...]:
        raws: Sequence[object] = self._source.get_diagnostics(file_path)
        problems: list[Problem] = self._normalizer.normalize_all(raws, file_path)
        return self._cache.replace(file_path, problems, at=self._scheduler.now())
