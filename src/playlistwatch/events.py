"""
Typed publish/subscribe bus for registry events.

Event kinds form a closed enumeration and every kind has its own payload
dataclass. These are the only contracts presentation layers depend on.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from . import config
from .models import Stream

logger = logging.getLogger(config.APP_NAME + ".events")


class EventKind(str, Enum):
    STREAMS_UPDATED = "streamsUpdated"
    STREAMS_ERROR = "streamsError"
    STREAM_CHANGED = "streamChanged"
    PLAY_STREAM = "playStream"
    STOP_STREAM = "stopStream"


@dataclass(frozen=True)
class StreamsUpdated:
    streams: List[Stream] = field(default_factory=list)
    from_snapshot: bool = False
    kind: EventKind = field(default=EventKind.STREAMS_UPDATED, init=False)


@dataclass(frozen=True)
class StreamsError:
    error: Exception
    kind: EventKind = field(default=EventKind.STREAMS_ERROR, init=False)

    def to_dict(self) -> Dict[str, object]:
        if hasattr(self.error, "to_dict"):
            return self.error.to_dict()
        return {"error_type": type(self.error).__name__, "message": str(self.error)}


@dataclass(frozen=True)
class StreamChanged:
    stream: Optional[Stream] = None
    kind: EventKind = field(default=EventKind.STREAM_CHANGED, init=False)


@dataclass(frozen=True)
class PlayStream:
    stream: Stream
    requested_at: Optional[float] = None  # Registry clock time of the request
    kind: EventKind = field(default=EventKind.PLAY_STREAM, init=False)


@dataclass(frozen=True)
class StopStream:
    kind: EventKind = field(default=EventKind.STOP_STREAM, init=False)


Event = Union[StreamsUpdated, StreamsError, StreamChanged, PlayStream, StopStream]
Handler = Callable[[Event], None]


class EventBus:
    """
    Synchronous in-process event bus.

    Handlers run in subscription order on the publisher's thread. A handler
    that raises is logged and skipped; the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._handlers: Dict[EventKind, List[Handler]] = {kind: [] for kind in EventKind}

    def subscribe(self, kind: EventKind, handler: Handler) -> Callable[[], None]:
        """
        Register a handler for one event kind.

        Returns:
            A callable that removes the subscription (safe to call twice).
        """
        self._handlers[kind].append(handler)

        def unsubscribe() -> None:
            try:
                self._handlers[kind].remove(handler)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, event: Event) -> int:
        """
        Deliver an event to its kind's handlers.

        Returns:
            Number of handlers that ran without raising
        """
        delivered = 0
        for handler in list(self._handlers[event.kind]):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.error(f"Handler {handler!r} failed for {event.kind.value}", exc_info=True)
        return delivered

    def handler_count(self, kind: EventKind) -> int:
        return len(self._handlers[kind])

    def clear(self) -> None:
        for handlers in self._handlers.values():
            handlers.clear()
