# topmark:header:start
#
#   project      : DiagWatch
#   file         : helpers.py
#   file_relpath : tests/helpers.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Shared test doubles and builders.

Provides:
    * `ManualScheduler`: a deterministic `Scheduler` driven by `advance()`.
    * `raw_diag` / `make_problem`: compact builders for raw and normalized diagnostics.
    * `make_config`: frozen `Config` with overrides.
    * `make_watcher`: a `DiagnosticsWatcher` over a `StaticDiagnosticSource`.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from diagwatch.config.model import MutableConfig
from diagwatch.engine.watcher import DiagnosticsWatcher
from diagwatch.problems.model import Position, Problem, Range, Severity
from diagwatch.upstream.protocols import WorkspaceFolder
from diagwatch.upstream.static import StaticDiagnosticSource

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from diagwatch.config.model import Config
    from diagwatch.engine.analyzer import BasePhase

BASE_TIME: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)


@dataclass
class ManualTimer:
    """Timer handle returned by `ManualScheduler.call_later`."""

    due: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Deterministic scheduler: time only moves when the test says so.

    ``sleep`` records the requested delay and advances the clock by it, firing
    any timers that become due.
    """

    elapsed: float = 0.0
    sleeps: list[float] = field(default_factory=lambda: [])
    _queue: list[tuple[float, int, ManualTimer]] = field(default_factory=lambda: [])
    _seq: itertools.count[int] = field(default_factory=itertools.count)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(due=self.elapsed + max(0.0, delay_s), callback=callback)
        heapq.heappush(self._queue, (timer.due, next(self._seq), timer))
        return timer

    async def sleep(self, delay_s: float) -> None:
        self.sleeps.append(delay_s)
        self.advance(delay_s)

    def now(self) -> datetime:
        return BASE_TIME + timedelta(seconds=self.elapsed)

    def advance(self, seconds: float) -> int:
        """Move time forward and fire due timers in order; return how many fired."""
        target: float = self.elapsed + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            self.elapsed = due
            if timer.cancelled:
                continue
            timer.callback()
            fired += 1
        self.elapsed = target
        return fired

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, t in self._queue if not t.cancelled)


def raw_diag(
    message: str = "boom",
    *,
    line: int = 0,
    character: int = 0,
    severity: object = 0,
    source: str | None = "ts",
    **extra: Any,
) -> dict[str, Any]:
    """Return a raw diagnostic mapping as an upstream would send it."""
    out: dict[str, Any] = {
        "range": {
            "start": {"line": line, "character": character},
            "end": {"line": line, "character": character + 1},
        },
        "severity": severity,
        "message": message,
    }
    if source is not None:
        out["source"] = source
    out.update(extra)
    return out


def make_problem(
    message: str = "boom",
    *,
    file_path: str = "/ws/app/a.ts",
    workspace_folder: str = "app",
    line: int = 0,
    character: int = 0,
    severity: Severity = Severity.ERROR,
    source: str = "ts",
) -> Problem:
    """Return a normalized `Problem`."""
    return Problem(
        file_path=file_path,
        workspace_folder=workspace_folder,
        range=Range(Position(line, character), Position(line, character + 1)),
        severity=severity,
        message=message,
        source=source,
    )


def make_config(**overrides: Any) -> Config:
    """Return a frozen `Config` built from defaults plus ``overrides``."""
    draft: MutableConfig = MutableConfig.from_defaults()
    for key, value in overrides.items():
        setattr(draft, key, value)
    return draft.freeze()


APP_FOLDERS: tuple[WorkspaceFolder, ...] = (
    WorkspaceFolder(name="app", path="/ws/app"),
    WorkspaceFolder(name="lib", path="/ws/lib"),
)


def make_source(
    diagnostics: Mapping[str, Sequence[object]] | None = None,
    **kwargs: Any,
) -> StaticDiagnosticSource:
    """Return a `StaticDiagnosticSource` with the ``app``/``lib`` workspace folders."""
    return StaticDiagnosticSource(diagnostics, APP_FOLDERS, **kwargs)


def make_watcher(
    source: StaticDiagnosticSource,
    scheduler: ManualScheduler,
    *,
    phases: Sequence[BasePhase] | None = None,
    **config_overrides: Any,
) -> DiagnosticsWatcher:
    """Return a watcher with fast pacing, no automatic export and a manual clock."""
    settings: dict[str, Any] = {
        "debounce_ms": 300,
        "file_delay_ms": 0,
        "batch_delay_ms": 0,
        "settle_ms": 0,
        "performance_logging": False,
    }
    settings.update(config_overrides)
    return DiagnosticsWatcher(
        source,
        make_config(**settings),
        scheduler=scheduler,
        phases=phases,
    )
