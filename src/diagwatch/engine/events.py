# topmark:header:start
#
#   project      : DiagWatch
#   file         : events.py
#   file_relpath : src/diagwatch/engine/events.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Engine events and the publish/subscribe registry that delivers them.

Events:
    * `ChangeEvent`: one file's problems changed; emitted after the cache update.
    * `RefreshEvent`: full problem list after a workspace analysis.
    * `ProcessingErrorEvent`: one file failed during a flush; the batch continued.

`EventRegistry` keeps typed listener lists per event class and is owned by a
single engine instance. A listener that raises is logged and skipped; it never
prevents delivery to the remaining listeners or breaks the emitting code path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar, Union, cast

from diagwatch.config.logging import get_logger
from diagwatch.engine.scheduler import isoformat_utc

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.problems.model import Problem

logger: DiagwatchLogger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Problems of one file after a cache update.

    Attributes:
        file_path (str): The changed file.
        problems (tuple[Problem, ...]): Current problems for the file (empty when cleared).
    """

    file_path: str
    problems: tuple[Problem, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "filePath": self.file_path,
            "problems": [p.to_dict() for p in self.problems],
        }


@dataclass(frozen=True, slots=True)
class RefreshEvent:
    """Full problem list published at the end of a workspace analysis.

    Attributes:
        problems (tuple[Problem, ...]): Every cached problem.
        timestamp (datetime): When the refresh was produced.
    """

    problems: tuple[Problem, ...]
    timestamp: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "problems": [p.to_dict() for p in self.problems],
            "timestamp": isoformat_utc(self.timestamp),
        }


@dataclass(frozen=True, slots=True)
class ProcessingErrorEvent:
    """A single file failed during a flush.

    Attributes:
        file_path (str): The file whose processing failed.
        error (Exception): The exception raised by the upstream or the normalizer.
    """

    file_path: str
    error: Exception


EngineEvent = Union[ChangeEvent, RefreshEvent, ProcessingErrorEvent]

E = TypeVar("E", ChangeEvent, RefreshEvent, ProcessingErrorEvent)


class EventRegistry:
    """Typed publish/subscribe registry for engine events."""

    def __init__(self) -> None:
        self._listeners: dict[type[object], list[Callable[[object], None]]] = {}

    def subscribe(self, event_type: type[E], listener: Callable[[E], None]) -> Callable[[], None]:
        """Register ``listener`` for events of exactly ``event_type``.

        Args:
            event_type (type[E]): The event class to listen for.
            listener (Callable[[E], None]): Called synchronously on every matching emit.

        Returns:
            Callable[[], None]: A handle removing this registration; safe to call twice.
        """
        bucket: list[Callable[[object], None]] = self._listeners.setdefault(event_type, [])
        entry = cast("Callable[[object], None]", listener)
        bucket.append(entry)

        def _unsubscribe() -> None:
            current = self._listeners.get(event_type)
            if current is not None and entry in current:
                current.remove(entry)

        return _unsubscribe

    def emit(self, event: EngineEvent) -> int:
        """Deliver ``event`` to its listeners in registration order.

        Args:
            event (EngineEvent): The event to publish.

        Returns:
            int: The number of listeners that completed without raising.
        """
        delivered = 0
        # Copy: listeners may unsubscribe while being notified
        for listener in list(self._listeners.get(type(event), ())):
            try:
                listener(event)
            except Exception as exc:
                logger.error("Listener %r failed for %s: %s", listener, type(event).__name__, exc)
                continue
            delivered += 1
        return delivered

    def listener_count(self, event_type: type[object] | None = None) -> int:
        """Return the number of registered listeners (for one type or overall)."""
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(v) for v in self._listeners.values())

    def clear(self) -> None:
        """Drop every registered listener."""
        self._listeners.clear()
