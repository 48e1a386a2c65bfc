"""Numeric limits and defaults - no circular dependencies."""

from __future__ import annotations

import os

DEFAULT_DELIMITER = os.linesep
"""Record separator used when none is configured (platform newline)."""

DEFAULT_RECORD_PATTERN = r"^\s*\{"
"""Records starting with an opening brace (after whitespace) are decoded."""

DEFAULT_MAX_RECORD_LENGTH = 1024 * 1024  # characters held in the pending buffer

DEFAULT_READ_CHUNK_SIZE = 64 * 1024
DEFAULT_ENCODING = "utf-8"

MAX_LOG_PREVIEW = 200
