"""Stream configuration model and TOML loader."""

from __future__ import annotations

import re
import tomllib
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from jsonstream.errors import ConfigError
from jsonstream.limits import DEFAULT_DELIMITER, DEFAULT_MAX_RECORD_LENGTH, DEFAULT_RECORD_PATTERN

if TYPE_CHECKING:
    from pathlib import Path

CONFIG_TABLE = "stream"


class StreamConfig(BaseModel):
    """Framing and classification settings for one stream.

    Assignments are validated, so a running stream can be reconfigured in
    place (``stream.config.delimiter = "\\r\\n"``); the framer reads these
    fields on every chunk.
    """

    model_config = ConfigDict(validate_assignment=True)

    delimiter: str = Field(
        default=DEFAULT_DELIMITER,
        description="Literal separator between records",
    )
    record_pattern: re.Pattern[str] = Field(
        default_factory=lambda: re.compile(DEFAULT_RECORD_PATTERN),
        description="Records matching this pattern are decoded as JSON",
    )
    preserve_whitespace: bool = Field(
        default=False,
        description="Report whitespace-only plain records instead of dropping them",
    )
    max_record_length: int = Field(
        default=DEFAULT_MAX_RECORD_LENGTH,
        gt=0,
        description="Maximum characters buffered before front-truncation",
    )

    @field_validator("delimiter")
    @classmethod
    def _delimiter_not_empty(cls, value: str) -> str:
        if not value:
            msg = "delimiter must not be empty"
            raise ValueError(msg)
        return value


def load_config(path: Path | None = None, **overrides: Any) -> StreamConfig:
    """Load a ``StreamConfig`` from the ``[stream]`` table of a TOML file.

    A missing file (or no path) yields the defaults. ``overrides`` take
    precedence over values read from the file; ``None`` overrides are ignored.
    """
    data: dict[str, Any] = {}
    if path is not None and path.exists():
        try:
            with path.open("rb") as handle:
                document = tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            msg = f"Cannot read config file {path}: {exc}"
            raise ConfigError(msg) from exc
        table = document.get(CONFIG_TABLE, {})
        if not isinstance(table, dict):
            msg = f"[{CONFIG_TABLE}] in {path} must be a table"
            raise ConfigError(msg)
        data.update(table)

    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return StreamConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid stream configuration: {exc}"
        raise ConfigError(msg) from exc


__all__ = ["CONFIG_TABLE", "StreamConfig", "load_config"]
