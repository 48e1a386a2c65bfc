"""Notifications emitted by a stream and the emitter that delivers them."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from jsonstream.errors import DecodeError, JSONStreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecordEvent:
    """A structured record decoded from the stream."""

    value: Any


@dataclass(frozen=True, slots=True)
class TextEvent:
    """Plain text with its delimiter reattached."""

    text: str


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """A decode failure or a stream-level I/O error."""

    error: JSONStreamError

    @property
    def raw(self) -> str | None:
        """The offending record for decode errors, otherwise ``None``."""
        if isinstance(self.error, DecodeError):
            return self.error.raw
        return None


@dataclass(frozen=True, slots=True)
class EndEvent:
    """The input side reached end-of-stream."""


type StreamEvent = RecordEvent | TextEvent | ErrorEvent | EndEvent
type EventHandler = Callable[[StreamEvent], None]


class EventEmitter:
    """Synchronous fan-out of stream events to registered handlers.

    Handlers run in registration order on the caller's stack; an exception
    raised by a handler propagates out of ``emit``.
    """

    def __init__(self) -> None:
        self._handlers: list[tuple[type[StreamEvent] | None, EventHandler]] = []

    def add_handler(
        self,
        handler: EventHandler,
        event_type: type[StreamEvent] | None = None,
    ) -> None:
        """Register a handler, optionally filtered to one event type."""
        self._handlers.append((event_type, handler))

    def remove_handler(self, handler: EventHandler) -> None:
        """Remove every registration of a previously added handler."""
        self._handlers = [(t, h) for t, h in self._handlers if h is not handler]

    def emit(self, event: StreamEvent) -> None:
        """Deliver ``event`` to every matching handler."""
        delivered = False
        for filter_type, handler in list(self._handlers):
            if filter_type is None or isinstance(event, filter_type):
                handler(event)
                delivered = True

        if not delivered and isinstance(event, ErrorEvent):
            logger.warning("Unhandled stream error: %s", event.error)


__all__ = [
    "EndEvent",
    "ErrorEvent",
    "EventEmitter",
    "EventHandler",
    "RecordEvent",
    "StreamEvent",
    "TextEvent",
]
