"""Value <-> text codecs used for record bodies."""

from __future__ import annotations

import json
from typing import Any, Protocol

from pydantic_core import to_jsonable_python


class Codec(Protocol):
    """Encodes one value to a single record body and back.

    ``loads`` raises ``ValueError`` on malformed text and ``RecursionError``
    on text nested deeper than the interpreter can parse; ``dumps`` raises
    ``TypeError`` or ``ValueError`` for values it cannot represent. The
    encoded text must not contain the stream delimiter.
    """

    name: str

    def dumps(self, value: Any) -> str: ...

    def loads(self, text: str) -> Any: ...


class JSONCodec:
    """Compact single-line JSON.

    Pydantic models, datetimes, UUIDs and other values pydantic knows how to
    serialize are converted on the way out. NaN and infinities are rejected.
    """

    name = "json"

    def dumps(self, value: Any) -> str:
        return json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=to_jsonable_python,
        )

    def loads(self, text: str) -> Any:
        return json.loads(text)


__all__ = ["Codec", "JSONCodec"]
