"""Test helpers package."""

from tests.helpers.streams import DuplexMemoryStream, EventLog, MemorySink, MemorySource

__all__ = ["DuplexMemoryStream", "EventLog", "MemorySink", "MemorySource"]
