# topmark:header:start
#
#   project      : DiagWatch
#   file         : metrics.py
#   file_relpath : src/diagwatch/engine/metrics.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Execution-time tracking for engine operations.

`PerformanceMonitor` records the duration of named operations (a bounded
history per name), exposes simple statistics, and logs a warning when an
operation exceeds its threshold.

Thresholds come from
[`PERFORMANCE_THRESHOLDS_MS`][diagwatch.constants.PERFORMANCE_THRESHOLDS_MS],
overridable per monitor.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from diagwatch.config.logging import get_logger
from diagwatch.constants import PERFORMANCE_MAX_HISTORY, PERFORMANCE_THRESHOLDS_MS

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from diagwatch.config.logging import DiagwatchLogger

logger: DiagwatchLogger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PerformanceStats:
    """Statistics for one operation (milliseconds)."""

    count: int
    average: float
    min: float
    max: float
    total: float

    def to_dict(self) -> dict[str, float]:
        return {
            "count": self.count,
            "average": self.average,
            "min": self.min,
            "max": self.max,
            "total": self.total,
        }


class PerformanceMonitor:
    """Track execution times of named operations.

    Args:
        enable_logging (bool): Log a warning when a threshold is exceeded.
        max_history (int): Durations kept per operation (oldest dropped first).
        thresholds (Mapping[str, float] | None): Per-operation overrides in milliseconds.
        clock (Callable[[], float]): Monotonic clock in seconds.
    """

    def __init__(
        self,
        *,
        enable_logging: bool = True,
        max_history: int = PERFORMANCE_MAX_HISTORY,
        thresholds: Mapping[str, float] | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.enable_logging: bool = enable_logging
        self._max_history: int = max(1, max_history)
        self._thresholds: dict[str, float] = {**PERFORMANCE_THRESHOLDS_MS, **(thresholds or {})}
        self._clock: Callable[[], float] = clock
        self._metrics: dict[str, deque[float]] = {}
        self._disposed: bool = False

    def measure(self, operation: str, fn: Callable[[], T]) -> T:
        """Run ``fn`` and record its duration under ``operation``.

        The duration is recorded even when ``fn`` raises; the exception propagates.
        """
        if self._disposed:
            return fn()
        start: float = self._clock()
        try:
            return fn()
        finally:
            self.record(operation, (self._clock() - start) * 1000.0)

    async def measure_async(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Await ``fn()`` and record its duration under ``operation``."""
        if self._disposed:
            return await fn()
        start: float = self._clock()
        try:
            return await fn()
        finally:
            self.record(operation, (self._clock() - start) * 1000.0)

    def record(self, operation: str, duration_ms: float) -> None:
        """Record one duration and check it against the operation's threshold."""
        if self._disposed:
            return
        history: deque[float] = self._metrics.setdefault(
            operation, deque(maxlen=self._max_history)
        )
        history.append(duration_ms)

        threshold: float | None = self._thresholds.get(operation)
        if self.enable_logging and threshold is not None and duration_ms > threshold:
            logger.warning(
                "Performance warning: %s took %.1fms (threshold: %.0fms)",
                operation,
                duration_ms,
                threshold,
            )

    def metrics(self) -> dict[str, list[float]]:
        """Return a copy of the recorded durations per operation."""
        return {name: list(values) for name, values in self._metrics.items()}

    def average(self, operation: str) -> float | None:
        """Return the mean duration of ``operation``, or ``None`` without data."""
        values = self._metrics.get(operation)
        if not values:
            return None
        return sum(values) / len(values)

    def stats(self) -> dict[str, PerformanceStats]:
        """Return statistics for every operation with at least one sample."""
        out: dict[str, PerformanceStats] = {}
        for name, values in self._metrics.items():
            if not values:
                continue
            total: float = sum(values)
            out[name] = PerformanceStats(
                count=len(values),
                average=total / len(values),
                min=min(values),
                max=max(values),
                total=total,
            )
        return out

    def dispose(self) -> None:
        """Stop recording and drop all history."""
        self._disposed = True
        self._metrics.clear()
