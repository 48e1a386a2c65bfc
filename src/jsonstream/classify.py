"""Record classification: structured records are decoded, the rest is text."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import TYPE_CHECKING

from jsonstream.errors import DecodeError
from jsonstream.events import ErrorEvent, RecordEvent, TextEvent
from jsonstream.instrumentation import COUNTER_BYTES_READ, COUNTER_MESSAGES_READ, TIMER_DECODE
from jsonstream.limits import MAX_LOG_PREVIEW

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from jsonstream.codec import Codec
    from jsonstream.config import StreamConfig
    from jsonstream.events import StreamEvent
    from jsonstream.instrumentation import Recorder

    type Matcher = Callable[[str], object]

logger = logging.getLogger(__name__)


class RecordClassifier:
    """Turns complete records into ``record`` / ``error`` / ``text`` events.

    The match is a cheap prefix test; whether a matching record really is
    valid is left to the codec, and a decode failure only affects that one
    record.
    """

    def __init__(
        self,
        config: StreamConfig,
        codec: Codec,
        *,
        matcher: Matcher | None = None,
        instrumentation: Recorder | None = None,
    ) -> None:
        self.config = config
        self.codec = codec
        self.matcher = matcher
        self.instrumentation = instrumentation

    def is_structured(self, record: str) -> bool:
        if self.matcher is not None:
            return bool(self.matcher(record))
        return self.config.record_pattern.search(record) is not None

    def classify(self, records: Iterable[str]) -> Iterator[StreamEvent]:
        delimiter = self.config.delimiter
        for record in records:
            if self.is_structured(record):
                yield self._decode(record, delimiter)
            elif record.strip() or self.config.preserve_whitespace:
                yield TextEvent(record + delimiter)

    def _decode(self, record: str, delimiter: str) -> RecordEvent | ErrorEvent:
        perf = self.instrumentation
        timer = perf.timed_operation(TIMER_DECODE) if perf is not None else nullcontext()
        try:
            with timer:
                value = self.codec.loads(record)
        except (ValueError, RecursionError) as exc:
            logger.debug("Failed to decode record: %r", record[:MAX_LOG_PREVIEW])
            return ErrorEvent(DecodeError(f"JSON Parse Error: {exc}", raw=record))

        if perf is not None:
            perf.increment_counter(COUNTER_MESSAGES_READ)
            perf.increment_counter(COUNTER_BYTES_READ, amount=len(record) + len(delimiter))
        return RecordEvent(value)


__all__ = ["RecordClassifier"]
