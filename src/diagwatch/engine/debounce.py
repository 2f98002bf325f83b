# topmark:header:start
#
#   project      : DiagWatch
#   file         : debounce.py
#   file_relpath : src/diagwatch/engine/debounce.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Debounce gate: coalesce bursts of change notifications.

State machine::

    IDLE --push--> ARMED --timer--> FLUSHING --callback returns--> IDLE
                   ARMED --push---> ARMED (timer rearmed, batch replaced)

Coalescing is last-write: each `push` replaces the pending batch, so one
flush processes only the file identities of the most recent notification.
Intermediate batches are dropped, not replayed.

After `close`, `push` is ignored and a timer that still fires is a no-op.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from diagwatch.config.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.engine.scheduler import Scheduler, TimerHandle

logger: DiagwatchLogger = get_logger(__name__)


class GateState(Enum):
    """States of the debounce gate."""

    IDLE = "idle"
    ARMED = "armed"
    FLUSHING = "flushing"


class DebounceGate:
    """Coalesce batches of file identities into one flush per quiet window.

    Args:
        scheduler (Scheduler): Timer source.
        wait_s (float): Quiet window in seconds.
        on_flush (Callable[[Sequence[str]], None]): Called synchronously with the
            last pushed batch when the window elapses.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        wait_s: float,
        on_flush: Callable[[Sequence[str]], None],
    ) -> None:
        self._scheduler: Scheduler = scheduler
        self._wait_s: float = wait_s
        self._on_flush: Callable[[Sequence[str]], None] = on_flush
        self._state: GateState = GateState.IDLE
        self._pending: tuple[str, ...] = ()
        self._timer: TimerHandle | None = None
        self._generation: int = 0
        self._closed: bool = False
        self.flush_count: int = 0

    @property
    def state(self) -> GateState:
        """Current state of the gate."""
        return self._state

    @property
    def pending(self) -> tuple[str, ...]:
        """The batch that the next flush will process."""
        return self._pending

    @property
    def closed(self) -> bool:
        """True once `close` was called."""
        return self._closed

    def push(self, file_paths: Iterable[str]) -> None:
        """Arm (or rearm) the timer with a new batch, replacing any pending one."""
        if self._closed:
            logger.trace("Debounce gate closed; ignoring batch")
            return
        self._cancel_timer()
        self._pending = tuple(file_paths)
        self._generation += 1
        generation: int = self._generation
        self._timer = self._scheduler.call_later(self._wait_s, lambda: self._fire(generation))
        if self._state is not GateState.FLUSHING:
            self._state = GateState.ARMED
        logger.trace("Debounce gate armed with %d file(s)", len(self._pending))

    def _fire(self, generation: int) -> None:
        # A stale timer whose cancel() raced with the fire is ignored
        if self._closed or generation != self._generation:
            return
        batch: tuple[str, ...] = self._pending
        self._pending = ()
        self._timer = None
        self._state = GateState.FLUSHING
        self.flush_count += 1
        try:
            self._on_flush(batch)
        finally:
            # A push during the callback leaves the gate armed for the next window
            self._state = GateState.ARMED if self._timer is not None else GateState.IDLE

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel(self) -> None:
        """Drop the pending batch and stop the timer."""
        self._cancel_timer()
        self._pending = ()
        self._generation += 1
        if self._state is GateState.ARMED:
            self._state = GateState.IDLE

    def close(self) -> None:
        """Cancel and make every later push or fire a no-op. Idempotent."""
        self.cancel()
        self._closed = True
        self._state = GateState.IDLE
