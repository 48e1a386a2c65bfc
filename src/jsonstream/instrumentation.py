"""Lightweight optional counters and timings for the read and write paths."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

_ENABLED_VALUES = frozenset({"1", "true", "yes", "on"})
_INSTRUMENTATION_ENV = "JSONSTREAM_INSTRUMENTATION"
_INSTRUMENTATION_LOG_ENV = "JSONSTREAM_INSTRUMENTATION_LOG"

TIMER_DECODE = "json_parse"
TIMER_COMPOSE = "json_compose"
COUNTER_MESSAGES_READ = "messages_read"
COUNTER_BYTES_READ = "bytes_read"
COUNTER_MESSAGES_WRITTEN = "messages_written"
COUNTER_BYTES_WRITTEN = "bytes_written"
COUNTER_WRITE_BUFFERED = "write_buffered"


def _is_env_enabled(name: str) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return False
    return raw.strip().lower() in _ENABLED_VALUES


class Recorder(Protocol):
    """What a stream reports into. ``Instrumentation`` is the stock implementation."""

    def increment_counter(self, name: str, *, amount: int = 1) -> None: ...

    def timed_operation(self, name: str) -> AbstractContextManager[None]: ...


@dataclass(slots=True)
class _TimingStats:
    count: int = 0
    total_ms: float = 0.0
    min_ms: float = float("inf")
    max_ms: float = 0.0

    def add(self, duration_ms: float) -> None:
        self.count += 1
        self.total_ms += duration_ms
        if duration_ms < self.min_ms:
            self.min_ms = duration_ms
        if duration_ms > self.max_ms:
            self.max_ms = duration_ms

    def to_dict(self) -> dict[str, float | int]:
        min_ms = 0.0 if self.min_ms == float("inf") else self.min_ms
        avg_ms = self.total_ms / self.count if self.count else 0.0
        return {
            "count": self.count,
            "total_ms": self.total_ms,
            "avg_ms": avg_ms,
            "min_ms": min_ms,
            "max_ms": self.max_ms,
        }


class Instrumentation:
    """In-memory counters and timings, shareable between streams.

    A disabled instance accepts every call and records nothing.
    """

    def __init__(self, *, enabled: bool = True, log_events: bool = False) -> None:
        self._lock = threading.Lock()
        self._enabled = enabled
        self._log_events = log_events
        self._counters: dict[str, int] = {}
        self._timings: dict[str, _TimingStats] = {}

    @classmethod
    def from_env(cls) -> Instrumentation:
        """Build an instance from ``JSONSTREAM_INSTRUMENTATION[_LOG]``."""
        return cls(
            enabled=_is_env_enabled(_INSTRUMENTATION_ENV),
            log_events=_is_env_enabled(_INSTRUMENTATION_LOG_ENV),
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def configure(self, *, enabled: bool | None = None, log_events: bool | None = None) -> None:
        """Update runtime instrumentation flags."""
        if enabled is not None:
            self._enabled = enabled
        if log_events is not None:
            self._log_events = log_events

    def reset(self) -> None:
        """Clear all in-memory counters and timings."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of current instrumentation aggregates."""
        with self._lock:
            counters = dict(self._counters)
            timings = {name: stats.to_dict() for name, stats in self._timings.items()}
        return {
            "enabled": self._enabled,
            "log_events": self._log_events,
            "counters": counters,
            "timings": timings,
        }

    def _emit_structured_event(self, *, kind: str, name: str, value: float | int) -> None:
        if not self._log_events:
            return
        payload = {"kind": kind, "name": name, "value": value}
        logger.info("jsonstream.instrumentation %s", json.dumps(payload, sort_keys=True))

    def increment_counter(self, name: str, *, amount: int = 1) -> None:
        """Increment a named counter if instrumentation is enabled."""
        if not self._enabled:
            return
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + amount
        self._emit_structured_event(kind="counter", name=name, value=amount)

    def record_timing(self, name: str, duration_ms: float) -> None:
        """Record an elapsed duration in milliseconds."""
        if not self._enabled:
            return
        with self._lock:
            stats = self._timings.get(name)
            if stats is None:
                stats = _TimingStats()
                self._timings[name] = stats
            stats.add(duration_ms)
        self._emit_structured_event(kind="timing", name=name, value=duration_ms)

    @contextmanager
    def timed_operation(self, name: str) -> Iterator[None]:
        """Measure a block and record timing if enabled."""
        if not self._enabled:
            yield
            return
        started_at = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            self.record_timing(name, elapsed_ms)


__all__ = [
    "COUNTER_BYTES_READ",
    "COUNTER_BYTES_WRITTEN",
    "COUNTER_MESSAGES_READ",
    "COUNTER_MESSAGES_WRITTEN",
    "COUNTER_WRITE_BUFFERED",
    "TIMER_COMPOSE",
    "TIMER_DECODE",
    "Instrumentation",
    "Recorder",
]
