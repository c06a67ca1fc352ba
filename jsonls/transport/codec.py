"""JSON encoding helpers for network payloads and CLI output."""

from __future__ import annotations

from typing import Any, Union

import orjson

JsonType = Union[str, int, float, bool, None, list["JsonType"], dict[str, "JsonType"]]


def loads(payload: Union[bytes, str]) -> Any:
    """Decode a JSON body; raises ``ValueError`` on malformed input."""
    try:
        return orjson.loads(payload)
    except orjson.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON payload: {exc}") from exc


def dumps(payload: Any, *, indent: bool = False) -> bytes:
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(payload, option=option)
