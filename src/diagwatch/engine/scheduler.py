# topmark:header:start
#
#   project      : DiagWatch
#   file         : scheduler.py
#   file_relpath : src/diagwatch/engine/scheduler.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Injectable scheduler/clock abstraction.

Every suspension point of the engine (the debounce timer, the analyzer's
pacing delays, the periodic export) goes through a `Scheduler`, so tests can
drive time explicitly instead of waiting on the wall clock.

`AsyncioScheduler` is the production implementation: timers are
``loop.call_later`` handles and sleeps are ``asyncio.sleep``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable


class TimerHandle(Protocol):
    """A pending timer that can be cancelled."""

    def cancel(self) -> None:
        """Cancel the timer; a no-op if it already fired."""
        ...


class Scheduler(Protocol):
    """Timer, sleep and clock operations used by the engine."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_s`` seconds."""
        ...

    async def sleep(self, delay_s: float) -> None:
        """Cooperatively yield for ``delay_s`` seconds."""
        ...

    def now(self) -> datetime:
        """Return the current time (timezone-aware, UTC)."""
        ...


class AsyncioScheduler:
    """`Scheduler` backed by an asyncio event loop.

    Args:
        loop (asyncio.AbstractEventLoop | None): Loop used for timers. When
            ``None``, the running loop at the time of each call is used.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop: asyncio.AbstractEventLoop | None = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop if self._loop is not None else asyncio.get_running_loop()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        return self._get_loop().call_later(max(0.0, delay_s), callback)

    async def sleep(self, delay_s: float) -> None:
        await asyncio.sleep(max(0.0, delay_s))

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def isoformat_utc(moment: datetime) -> str:
    """Render ``moment`` as an ISO-8601 UTC string with a ``Z`` suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
