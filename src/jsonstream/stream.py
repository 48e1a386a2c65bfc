"""JSONStream: framing, classification and framed writes over a stream pair."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from jsonstream.classify import RecordClassifier
from jsonstream.codec import JSONCodec
from jsonstream.config import StreamConfig
from jsonstream.errors import EncodeError, JSONStreamError, StreamError
from jsonstream.events import EndEvent, ErrorEvent, EventEmitter
from jsonstream.framing import LineFramer
from jsonstream.instrumentation import (
    COUNTER_BYTES_WRITTEN,
    COUNTER_MESSAGES_WRITTEN,
    COUNTER_WRITE_BUFFERED,
    TIMER_COMPOSE,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from jsonstream.classify import Matcher
    from jsonstream.codec import Codec
    from jsonstream.errors import StreamOrigin
    from jsonstream.events import EventHandler, StreamEvent
    from jsonstream.instrumentation import Recorder

type WriteCallback = Callable[[BaseException | None], None]

logger = logging.getLogger(__name__)


@runtime_checkable
class ChunkSource(Protocol):
    """A readable stream delivering decoded text chunks in order."""

    def subscribe(
        self,
        on_data: Callable[[str], None],
        on_error: Callable[[BaseException], None],
        on_end: Callable[[], None],
    ) -> None: ...


@runtime_checkable
class ChunkSink(Protocol):
    """A writable stream. ``write`` returns False when the data was queued."""

    def write(self, data: str, callback: WriteCallback | None = None) -> bool: ...


@runtime_checkable
class ErrorReporter(Protocol):
    """A sink that can report write-side failures asynchronously."""

    def subscribe_errors(self, on_error: Callable[[BaseException], None]) -> None: ...


class JSONStream:
    """Line-delimited JSON over a readable source and a writable sink.

    ``stream_out`` defaults to ``stream_in`` when the source can also be
    written to. The stream never opens or closes either side; it only reacts
    to what the source delivers and writes to the sink on request.

    Without a source, drive the read side directly::

        stream = JSONStream(sink)
        stream.add_handler(print)
        stream.feed_data('{"a": 1}\\n')
        stream.feed_eof()
    """

    def __init__(
        self,
        stream_in: ChunkSource | ChunkSink | None = None,
        stream_out: ChunkSink | None = None,
        *,
        config: StreamConfig | None = None,
        codec: Codec | None = None,
        matcher: Matcher | None = None,
        instrumentation: Recorder | None = None,
    ) -> None:
        if stream_out is None and isinstance(stream_in, ChunkSink):
            stream_out = stream_in
        self.stream_in = stream_in
        self.stream_out = stream_out
        self.codec = codec or JSONCodec()
        self._config = config or StreamConfig()
        self._instrumentation = instrumentation
        self._framer = LineFramer(self._config)
        self._classifier = RecordClassifier(
            self._config,
            self.codec,
            matcher=matcher,
            instrumentation=instrumentation,
        )
        self._emitter = EventEmitter()
        self._ended = False
        self._attach()

    def _attach(self) -> None:
        source = self.stream_in
        if source is not None and not isinstance(source, (ChunkSource, ChunkSink)):
            msg = f"{type(source).__name__} is neither a ChunkSource nor a ChunkSink"
            raise TypeError(msg)
        reading_from = None
        if isinstance(source, ChunkSource):
            source.subscribe(self.feed_data, self.set_exception, self.feed_eof)
            reading_from = source

        # A duplex object reports all of its errors through the source subscription.
        sink = self.stream_out
        if sink is not None and sink is not reading_from and isinstance(sink, ErrorReporter):
            sink.subscribe_errors(self._on_output_error)

    # -- configuration -----------------------------------------------------

    @property
    def config(self) -> StreamConfig:
        return self._config

    @config.setter
    def config(self, config: StreamConfig) -> None:
        self._config = config
        self._framer.config = config
        self._classifier.config = config

    @property
    def matcher(self) -> Matcher | None:
        """Custom record matcher; ``None`` uses ``config.record_pattern``."""
        return self._classifier.matcher

    @matcher.setter
    def matcher(self, matcher: Matcher | None) -> None:
        self._classifier.matcher = matcher

    def set_instrumentation(self, instrumentation: Recorder | None) -> None:
        """Attach (or detach with ``None``) a timings/counters recorder."""
        self._instrumentation = instrumentation
        self._classifier.instrumentation = instrumentation

    # -- notifications -----------------------------------------------------

    def add_handler(
        self,
        handler: EventHandler,
        event_type: type[StreamEvent] | None = None,
    ) -> None:
        self._emitter.add_handler(handler, event_type)

    def remove_handler(self, handler: EventHandler) -> None:
        self._emitter.remove_handler(handler)

    # -- read path ---------------------------------------------------------

    @property
    def pending(self) -> str:
        """Partial record waiting for its delimiter."""
        return self._framer.pending

    @property
    def at_eof(self) -> bool:
        return self._ended

    def feed_data(self, chunk: str) -> None:
        """Process one chunk of text from the input side."""
        if self._ended:
            logger.debug("Ignoring %d chars received after end of stream", len(chunk))
            return
        records = self._framer.feed(chunk)
        for event in self._classifier.classify(records):
            self._emitter.emit(event)
            if self._ended:
                break

    def feed_eof(self) -> None:
        """Signal end of input. ``EndEvent`` is emitted once; pending data is dropped."""
        if self._ended:
            return
        self._ended = True
        dropped = self._framer.reset()
        if dropped:
            logger.debug("Dropping %d unterminated chars at end of stream", len(dropped))
        self._emitter.emit(EndEvent())

    def set_exception(self, exc: BaseException) -> None:
        """Report an input-side I/O failure."""
        self._emit_stream_error(exc, origin="input")

    def _on_output_error(self, exc: BaseException) -> None:
        self._emit_stream_error(exc, origin="output")

    def _emit_stream_error(self, exc: BaseException, *, origin: StreamOrigin) -> None:
        if isinstance(exc, StreamError):
            error = exc
        else:
            error = StreamError(f"{origin} stream error: {exc}", origin=origin, cause=exc)
        logger.debug("Stream error on %s side: %s", origin, exc)
        self._emitter.emit(ErrorEvent(error))

    # -- write path --------------------------------------------------------

    def write(self, value: Any, callback: WriteCallback | None = None) -> bool:
        """Serialize ``value`` as one delimited frame and write it.

        Returns True if the sink accepted the frame without queuing it.
        ``callback`` is handed to the sink and runs once the frame is flushed
        (or with the exception if flushing failed).

        Raises:
            EncodeError: If ``value`` cannot be serialized.
            JSONStreamError: If the stream has no output sink.
        """
        sink = self.stream_out
        if sink is None:
            msg = "JSONStream has no output sink"
            raise JSONStreamError(msg)

        perf = self._instrumentation
        timer = perf.timed_operation(TIMER_COMPOSE) if perf is not None else nullcontext()
        try:
            with timer:
                data = self.codec.dumps(value)
        except (TypeError, ValueError) as exc:
            msg = f"Cannot serialize {type(value).__name__}: {exc}"
            raise EncodeError(msg) from exc

        delimiter = self._config.delimiter
        flushed = sink.write(data + delimiter, callback)

        if perf is not None:
            perf.increment_counter(COUNTER_MESSAGES_WRITTEN)
            perf.increment_counter(COUNTER_BYTES_WRITTEN, amount=len(data) + len(delimiter))
            if not flushed:
                perf.increment_counter(COUNTER_WRITE_BUFFERED)
        return flushed


__all__ = ["ChunkSink", "ChunkSource", "ErrorReporter", "JSONStream", "WriteCallback"]
