"""Chunk-to-record framing with a bounded pending buffer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jsonstream.config import StreamConfig

logger = logging.getLogger(__name__)


def clamp_tail(text: str, limit: int) -> str:
    """Return the last ``limit`` characters of ``text``.

    Front-truncation keeps the most recently received characters, which is
    what matters for carriage-return overwrite output that never sends a
    delimiter.
    """
    if len(text) <= limit:
        return text
    return text[len(text) - limit :]


class LineFramer:
    """Splits arbitrary text chunks into complete delimiter-bounded records.

    After every ``feed`` the pending buffer is either empty or holds exactly
    one partial record that has not seen its delimiter yet.
    """

    def __init__(self, config: StreamConfig) -> None:
        self.config = config
        self._pending = ""

    @property
    def pending(self) -> str:
        """Undelimited tail carried over to the next chunk."""
        return self._pending

    def feed(self, chunk: str) -> list[str]:
        """Consume ``chunk`` and return the records it completed, in order."""
        data = self._pending + chunk if self._pending else chunk
        limit = self.config.max_record_length
        if len(data) > limit:
            logger.debug(
                "Buffered data exceeds %d chars; dropping %d from the front",
                limit,
                len(data) - limit,
            )
            data = clamp_tail(data, limit)

        records = data.split(self.config.delimiter)
        # The last element is "" when data ended on the delimiter, else a partial record.
        self._pending = records.pop()
        return records

    def reset(self) -> str:
        """Discard and return the pending buffer."""
        pending, self._pending = self._pending, ""
        return pending


__all__ = ["LineFramer", "clamp_tail"]
