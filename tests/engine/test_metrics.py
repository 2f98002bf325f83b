# topmark:header:start
#
#   project      : DiagWatch
#   file         : test_metrics.py
#   file_relpath : tests/engine/test_metrics.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for `PerformanceMonitor`."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from itertools import count

import pytest

from diagwatch.engine.metrics import PerformanceMonitor


def _fake_clock(step_s: float) -> Callable[[], float]:
    ticks = count()
    return lambda: next(ticks) * step_s


def test_measure_records_duration() -> None:
    monitor = PerformanceMonitor(clock=_fake_clock(0.002))
    assert monitor.measure("export", lambda: 42) == 42
    assert monitor.metrics() == {"export": [pytest.approx(2.0)]}
    assert monitor.average("export") == pytest.approx(2.0)
    assert monitor.average("missing") is None


def test_measure_records_even_when_fn_raises() -> None:
    monitor = PerformanceMonitor(clock=_fake_clock(0.001))

    def _fail() -> None:
        raise ValueError("x")

    with pytest.raises(ValueError):
        monitor.measure("export", _fail)
    assert len(monitor.metrics()["export"]) == 1


def test_measure_async() -> None:
    monitor = PerformanceMonitor(clock=_fake_clock(0.5))

    async def _work() -> str:
        return "done"

    assert asyncio.run(monitor.measure_async("workspace-analysis", _work)) == "done"
    assert monitor.metrics()["workspace-analysis"] == [pytest.approx(500.0)]


def test_history_is_bounded() -> None:
    monitor = PerformanceMonitor(max_history=3)
    for ms in (1.0, 2.0, 3.0, 4.0, 5.0):
        monitor.record("op", ms)
    assert monitor.metrics()["op"] == [3.0, 4.0, 5.0]


def test_stats() -> None:
    monitor = PerformanceMonitor()
    for ms in (10.0, 20.0, 30.0):
        monitor.record("op", ms)
    stats = monitor.stats()["op"]
    assert stats.count == 3
    assert stats.average == pytest.approx(20.0)
    assert (stats.min, stats.max, stats.total) == (10.0, 30.0, 60.0)
    assert stats.to_dict()["count"] == 3


def test_threshold_warning(caplog: pytest.LogCaptureFixture) -> None:
    monitor = PerformanceMonitor(thresholds={"op": 5.0})
    with caplog.at_level(logging.WARNING, logger="diagwatch.engine.metrics"):
        monitor.record("op", 4.0)
        monitor.record("op", 6.0)
    warnings = [r for r in caplog.records if "Performance warning" in r.getMessage()]
    assert len(warnings) == 1
    assert "op took 6.0ms" in warnings[0].getMessage()


def test_threshold_warning_disabled(caplog: pytest.LogCaptureFixture) -> None:
    monitor = PerformanceMonitor(enable_logging=False, thresholds={"op": 1.0})
    with caplog.at_level(logging.WARNING, logger="diagwatch.engine.metrics"):
        monitor.record("op", 100.0)
    assert not [r for r in caplog.records if "Performance warning" in r.getMessage()]


def test_dispose_stops_recording() -> None:
    monitor = PerformanceMonitor()
    monitor.record("op", 1.0)
    monitor.dispose()
    assert monitor.metrics() == {}
    monitor.record("op", 1.0)
    assert monitor.measure("op", lambda: "still runs") == "still runs"
    assert monitor.stats() == {}
