"""Tests for framed writes and the backpressure signal."""

from __future__ import annotations

import pytest
from hypothesis import given

from jsonstream.config import StreamConfig
from jsonstream.errors import EncodeError, JSONStreamError
from jsonstream.instrumentation import Instrumentation
from jsonstream.stream import JSONStream
from tests.helpers import EventLog, MemorySink
from tests.strategies import json_objects

pytestmark = pytest.mark.unit


def test_write_produces_exact_frame(stream: JSONStream, sink: MemorySink) -> None:
    assert stream.write({"code": 0}) is True
    assert sink.data == '{"code":0}\n'


def test_write_uses_configured_delimiter(sink: MemorySink) -> None:
    stream = JSONStream(sink, config=StreamConfig(delimiter="\r\n"))
    stream.write([1, "two"])

    assert sink.frames == ['[1,"two"]\r\n']


def test_write_forwards_callback(stream: JSONStream, sink: MemorySink) -> None:
    def done(exc: BaseException | None) -> None:
        pass

    stream.write({}, done)

    assert sink.callbacks == [done]


def test_queued_write_returns_false_and_counts(instrumentation: Instrumentation) -> None:
    sink = MemorySink(accept=False)
    stream = JSONStream(sink, config=StreamConfig(delimiter="\n"), instrumentation=instrumentation)

    assert stream.write({"a": 1}) is False
    assert stream.write({"b": 22}) is False

    counters = instrumentation.snapshot()["counters"]
    assert counters["write_buffered"] == 2
    assert counters["messages_written"] == 2
    assert counters["bytes_written"] == len('{"a":1}\n') + len('{"b":22}\n')


def test_flushed_write_does_not_count_as_buffered(
    stream: JSONStream, instrumentation: Instrumentation
) -> None:
    stream.set_instrumentation(instrumentation)
    stream.write({"a": 1})

    state = instrumentation.snapshot()
    assert "write_buffered" not in state["counters"]
    assert state["timings"]["json_compose"]["count"] == 1


def test_unserializable_value_raises(stream: JSONStream, sink: MemorySink) -> None:
    with pytest.raises(EncodeError) as excinfo:
        stream.write({"obj": object()})

    assert excinfo.value.__cause__ is not None
    assert sink.frames == []


def test_nan_is_rejected(stream: JSONStream, sink: MemorySink) -> None:
    with pytest.raises(EncodeError):
        stream.write({"x": float("nan")})
    assert sink.frames == []


def test_encode_error_is_not_an_event(stream: JSONStream, events: EventLog) -> None:
    with pytest.raises(EncodeError):
        stream.write(object())
    assert events.events == []


def test_write_without_sink_raises() -> None:
    with pytest.raises(JSONStreamError, match="no output sink"):
        JSONStream().write({"a": 1})


@given(json_objects)
def test_written_frame_reads_back_as_equal_record(value: dict) -> None:
    sink = MemorySink()
    config = StreamConfig(delimiter="\n")
    writer = JSONStream(sink, config=config)
    reader = JSONStream(config=config)
    log = EventLog()
    reader.add_handler(log)

    writer.write(value)
    reader.feed_data(sink.data)

    assert log.records == [value]
