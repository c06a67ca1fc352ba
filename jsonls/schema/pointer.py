"""JSON Pointer codec plus resolution against parse trees and schema objects.

Both resolvers answer ``None`` for anything they cannot follow; callers treat
that as "no information", never as an error.
"""

from __future__ import annotations

from typing import Any, Iterable, Union

from ..document.parser import NodeKind, ParseNode


def decode_segment(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def encode_segment(segment: Union[str, int]) -> str:
    return str(segment).replace("~", "~0").replace("/", "~1")


def split_pointer(pointer: str) -> list[str]:
    """Split ``pointer`` into decoded segments; a leading ``#`` is ignored."""
    if pointer.startswith("#"):
        pointer = pointer[1:]
    if pointer in ("", "/"):
        return []
    if pointer.startswith("/"):
        pointer = pointer[1:]
    return [decode_segment(segment) for segment in pointer.split("/")]


def join_pointer(segments: Iterable[Union[str, int]]) -> str:
    parts = [encode_segment(segment) for segment in segments]
    return "/" + "/".join(parts) if parts else ""


def _parse_index(segment: str) -> int | None:
    if not segment.isdigit():
        return None
    return int(segment)


def resolve_instance_pointer(root: ParseNode | None, pointer: str) -> ParseNode | None:
    current = root
    for segment in split_pointer(pointer):
        if current is None:
            return None
        if current.kind is NodeKind.OBJECT:
            current = _object_member(current, segment)
        elif current.kind is NodeKind.ARRAY:
            index = _parse_index(segment)
            if index is None or index >= len(current.children):
                return None
            current = current.children[index]
        else:
            return None
    return current


def _object_member(node: ParseNode, key: str) -> ParseNode | None:
    for prop in node.children:
        if prop.children and prop.children[0].value == key:
            return prop.children[1] if len(prop.children) == 2 else None
    return None


def resolve_schema_pointer(schema: Any, pointer: str) -> Any | None:
    current = schema
    for segment in split_pointer(pointer):
        if isinstance(current, dict):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, list):
            index = _parse_index(segment)
            if index is None or index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current
