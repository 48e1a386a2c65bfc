"""Exception types raised or reported by jsonstream."""

from __future__ import annotations

from typing import Literal

type StreamOrigin = Literal["input", "output"]


class JSONStreamError(Exception):
    """Base class for all jsonstream errors."""


class DecodeError(JSONStreamError):
    """A record looked structured but could not be decoded.

    Reported through an ``ErrorEvent``; never raised out of the read path.
    """

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.message = message
        self.raw = raw


class EncodeError(JSONStreamError):
    """A value passed to ``JSONStream.write`` could not be serialized."""


class StreamError(JSONStreamError):
    """An I/O failure on the input or output side of a stream."""

    def __init__(self, message: str, *, origin: StreamOrigin, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.origin: StreamOrigin = origin
        self.cause = cause


class ConfigError(JSONStreamError):
    """A configuration file could not be read or validated."""


__all__ = [
    "ConfigError",
    "DecodeError",
    "EncodeError",
    "JSONStreamError",
    "StreamError",
    "StreamOrigin",
]
