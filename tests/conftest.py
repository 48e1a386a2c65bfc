"""Pytest fixtures for jsonstream tests."""

from __future__ import annotations

import os

import pytest
from hypothesis import Phase, Verbosity, settings

from jsonstream.config import StreamConfig
from jsonstream.instrumentation import Instrumentation
from jsonstream.stream import JSONStream
from tests.helpers import EventLog, MemorySink, MemorySource

settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=50,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture
def config() -> StreamConfig:
    """Config with a fixed newline delimiter regardless of platform."""
    return StreamConfig(delimiter="\n")


@pytest.fixture
def instrumentation() -> Instrumentation:
    return Instrumentation(enabled=True)


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def source() -> MemorySource:
    return MemorySource()


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def stream(config: StreamConfig, sink: MemorySink, events: EventLog) -> JSONStream:
    """A stream writing to ``sink`` whose events land in ``events``."""
    json_stream = JSONStream(sink, config=config)
    json_stream.add_handler(events)
    return json_stream
