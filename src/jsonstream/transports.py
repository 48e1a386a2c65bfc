"""I/O adapters that connect a ``JSONStream`` to real streams.

Sources decode bytes incrementally, so a multi-byte character split across
two reads reaches the framer intact. ``StreamReaderSource`` and
``StreamWriterSink`` wrap asyncio streams (sockets, subprocess pipes);
``FileSource`` and ``TextIOSink`` are blocking equivalents for stdio.
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from jsonstream.errors import StreamError
from jsonstream.events import EndEvent, ErrorEvent
from jsonstream.limits import DEFAULT_ENCODING, DEFAULT_READ_CHUNK_SIZE
from jsonstream.stream import JSONStream

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from typing import BinaryIO, TextIO

    from jsonstream.events import StreamEvent
    from jsonstream.stream import WriteCallback

    DataCallback = Callable[[str], None]
    ErrorCallback = Callable[[BaseException], None]
    EndCallback = Callable[[], None]

logger = logging.getLogger(__name__)

_READ_ERRORS = (ConnectionError, OSError, UnicodeDecodeError)


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class _DecodingSource:
    """Subscriber bookkeeping and incremental decoding shared by sources."""

    def __init__(self, *, encoding: str, errors: str, chunk_size: int) -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors=errors)
        self._chunk_size = chunk_size
        self._subscribers: list[tuple[DataCallback, ErrorCallback, EndCallback]] = []

    def subscribe(
        self,
        on_data: DataCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        self._subscribers.append((on_data, on_error, on_end))

    def _decode(self, raw: bytes) -> str:
        return self._decoder.decode(raw, final=not raw)

    def _deliver_data(self, text: str) -> None:
        for on_data, _, _ in self._subscribers:
            on_data(text)

    def _deliver_error(self, exc: BaseException) -> None:
        logger.debug("Read failed: %s", exc)
        for _, on_error, _ in self._subscribers:
            on_error(exc)

    def _deliver_end(self) -> None:
        for _, _, on_end in self._subscribers:
            on_end()


class StreamReaderSource(_DecodingSource):
    """Pumps an ``asyncio.StreamReader`` into its subscribers.

    ``run()`` returns after end-of-stream or the first read error; errors are
    delivered to subscribers rather than raised.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        *,
        encoding: str = DEFAULT_ENCODING,
        errors: str = "strict",
        chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    ) -> None:
        super().__init__(encoding=encoding, errors=errors, chunk_size=chunk_size)
        self._reader = reader

    async def run(self) -> None:
        while True:
            try:
                raw = await self._reader.read(self._chunk_size)
                text = self._decode(raw)
            except _READ_ERRORS as exc:
                self._deliver_error(exc)
                return
            if text:
                self._deliver_data(text)
            if not raw:
                break
        self._deliver_end()


class FileSource(_DecodingSource):
    """Blocking source over a binary file object such as ``sys.stdin.buffer``."""

    def __init__(
        self,
        fp: BinaryIO,
        *,
        encoding: str = DEFAULT_ENCODING,
        errors: str = "strict",
        chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    ) -> None:
        super().__init__(encoding=encoding, errors=errors, chunk_size=chunk_size)
        self._fp = fp

    def _read(self) -> bytes:
        # read1 returns whatever is available instead of waiting for a full chunk.
        read1 = getattr(self._fp, "read1", None)
        if read1 is not None:
            return read1(self._chunk_size)
        return self._fp.read(self._chunk_size)

    def run(self) -> None:
        while True:
            try:
                raw = self._read()
                text = self._decode(raw)
            except _READ_ERRORS as exc:
                self._deliver_error(exc)
                return
            if text:
                self._deliver_data(text)
            if not raw:
                break
        self._deliver_end()


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class StreamWriterSink:
    """Writes frames to an ``asyncio.StreamWriter`` without blocking.

    ``write`` reports True when the transport buffer was empty after the
    write. Queued frames are drained in a background task; drain failures go
    to the write callback and to ``subscribe_errors`` handlers.
    """

    def __init__(self, writer: asyncio.StreamWriter, *, encoding: str = DEFAULT_ENCODING) -> None:
        self._writer = writer
        self._encoding = encoding
        self._error_handlers: list[ErrorCallback] = []
        self._drain_tasks: set[asyncio.Task[None]] = set()

    def subscribe_errors(self, on_error: ErrorCallback) -> None:
        self._error_handlers.append(on_error)

    def write(self, data: str, callback: WriteCallback | None = None) -> bool:
        self._writer.write(data.encode(self._encoding))
        flushed = self._writer.transport.get_write_buffer_size() == 0
        if callback is not None or not flushed:
            task = asyncio.create_task(self._drain(callback))
            self._drain_tasks.add(task)
            task.add_done_callback(self._drain_tasks.discard)
        return flushed

    async def drain(self) -> None:
        """Wait until the transport buffer is below its high-water mark."""
        await self._writer.drain()

    async def _drain(self, callback: WriteCallback | None) -> None:
        try:
            await self._writer.drain()
        except (ConnectionError, OSError) as exc:
            logger.debug("Drain failed: %s", exc)
            for on_error in self._error_handlers:
                on_error(exc)
            self._notify(callback, exc)
            return
        self._notify(callback, None)

    @staticmethod
    def _notify(callback: WriteCallback | None, exc: BaseException | None) -> None:
        # Drain tasks are never awaited.
        if callback is None:
            return
        try:
            callback(exc)
        except Exception:
            logger.exception("Write callback failed")


class TextIOSink:
    """Blocking sink over a text file object; every write is flushed."""

    def __init__(self, fp: TextIO) -> None:
        self._fp = fp
        self._error_handlers: list[ErrorCallback] = []

    def subscribe_errors(self, on_error: ErrorCallback) -> None:
        self._error_handlers.append(on_error)

    def write(self, data: str, callback: WriteCallback | None = None) -> bool:
        try:
            self._fp.write(data)
            self._fp.flush()
        except OSError as exc:
            for on_error in self._error_handlers:
                on_error(exc)
            if callback is not None:
                callback(exc)
            return False
        if callback is not None:
            callback(None)
        return True


# ---------------------------------------------------------------------------
# Event iteration
# ---------------------------------------------------------------------------


def _is_terminal(event: StreamEvent) -> bool:
    if isinstance(event, EndEvent):
        return True
    return (
        isinstance(event, ErrorEvent)
        and isinstance(event.error, StreamError)
        and event.error.origin == "input"
    )


async def iter_events(
    reader: asyncio.StreamReader,
    *,
    encoding: str = DEFAULT_ENCODING,
    chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    **stream_kwargs: Any,
) -> AsyncIterator[StreamEvent]:
    """Yield the events of ``reader`` as they are decoded.

    The sequence is lazy and not restartable. It ends after ``EndEvent`` or
    after an input ``StreamError``, which is also how a failure raised while
    decoding or dispatching is reported. ``stream_kwargs`` go to ``JSONStream``.
    """
    source = StreamReaderSource(reader, encoding=encoding, chunk_size=chunk_size)
    stream = JSONStream(source, **stream_kwargs)
    queue: asyncio.Queue[StreamEvent] = asyncio.Queue()
    stream.add_handler(queue.put_nowait)

    def on_pump_done(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Reader pump failed: %r", exc)
            error = StreamError(f"input stream error: {exc!r}", origin="input", cause=exc)
            queue.put_nowait(ErrorEvent(error))

    pump = asyncio.create_task(source.run())
    pump.add_done_callback(on_pump_done)
    try:
        while True:
            event = await queue.get()
            yield event
            if _is_terminal(event):
                break
    finally:
        if not pump.done():
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump


__all__ = [
    "FileSource",
    "StreamReaderSource",
    "StreamWriterSink",
    "TextIOSink",
    "iter_events",
]
