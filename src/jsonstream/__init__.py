"""jsonstream: line-delimited JSON framing over arbitrary text streams."""

from jsonstream.codec import Codec, JSONCodec
from jsonstream.config import StreamConfig, load_config
from jsonstream.errors import (
    ConfigError,
    DecodeError,
    EncodeError,
    JSONStreamError,
    StreamError,
)
from jsonstream.events import EndEvent, ErrorEvent, RecordEvent, StreamEvent, TextEvent
from jsonstream.instrumentation import Instrumentation, Recorder
from jsonstream.stream import ChunkSink, ChunkSource, JSONStream
from jsonstream.version import get_jsonstream_version

__version__ = get_jsonstream_version()

__all__ = [
    "ChunkSink",
    "ChunkSource",
    "Codec",
    "ConfigError",
    "DecodeError",
    "EncodeError",
    "EndEvent",
    "ErrorEvent",
    "Instrumentation",
    "JSONCodec",
    "JSONStream",
    "JSONStreamError",
    "Recorder",
    "RecordEvent",
    "StreamConfig",
    "StreamError",
    "StreamEvent",
    "TextEvent",
    "load_config",
]
