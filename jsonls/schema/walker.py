"""Queries over a resolved schema: path walking and property lookups.

These are the operations editor features (completion, hover, quick fixes)
build on. Every hop resolves references first.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence, Union

from .refs import COMBINATOR_KEYWORDS, RawSchema, is_schema, resolve_schema

PathSegment = Union[str, int]


def walk(
    schema: Any,
    path: Sequence[PathSegment],
    root: RawSchema,
    known: Mapping[str, RawSchema] | None = None,
) -> RawSchema | None:
    """Return the subschema governing ``path`` or ``None`` when it cannot be followed."""
    current = resolve_schema(schema, root, known=known)
    for segment in path:
        if not is_schema(current):
            return None
        key = str(segment)
        properties = current.get("properties")
        if isinstance(properties, dict) and key in properties:
            current = properties[key]
        else:
            current = _item_schema(current, key)
            if current is None:
                return None
        current = resolve_schema(current, root, known=known)
    return current if is_schema(current) else None


def _item_schema(schema: RawSchema, segment: str) -> Any | None:
    if not segment.isdigit():
        return None
    index = int(segment)
    prefix_items = schema.get("prefixItems")
    if isinstance(prefix_items, list) and index < len(prefix_items):
        return prefix_items[index]
    items = schema.get("items")
    if is_schema(items):
        return items
    if isinstance(items, list) and index < len(items):
        return items[index]
    return None


def _branches(schema: RawSchema, keywords: Sequence[str]) -> list[Any]:
    branches: list[Any] = []
    for keyword in keywords:
        value = schema.get(keyword)
        if isinstance(value, list):
            branches.extend(value)
    return branches


def collect_properties(
    schema: Any, root: RawSchema, known: Mapping[str, RawSchema] | None = None
) -> set[str]:
    """Every property name the schema may accept.

    ``anyOf``/``oneOf`` branches count as possible properties, so this is a
    superset suitable for suggestions rather than for validation.
    """
    resolved = resolve_schema(schema, root, known=known)
    if not is_schema(resolved):
        return set()
    names = set(_own_properties(resolved))
    for branch in _branches(resolved, COMBINATOR_KEYWORDS):
        branch = resolve_schema(branch, root, known=known)
        if is_schema(branch):
            names.update(_own_properties(branch))
    return names


def _own_properties(schema: RawSchema) -> list[str]:
    properties = schema.get("properties")
    return list(properties) if isinstance(properties, dict) else []


def property_schema(
    schema: Any, name: str, root: RawSchema, known: Mapping[str, RawSchema] | None = None
) -> RawSchema | None:
    resolved = resolve_schema(schema, root, known=known)
    if not is_schema(resolved):
        return None
    found = _direct_property(resolved, name, root, known)
    if found is not None:
        return found
    for keywords in (("allOf",), ("anyOf", "oneOf")):
        for branch in _branches(resolved, keywords):
            branch = resolve_schema(branch, root, known=known)
            if is_schema(branch):
                found = _direct_property(branch, name, root, known)
                if found is not None:
                    return found
    return None


def _direct_property(
    schema: RawSchema, name: str, root: RawSchema, known: Mapping[str, RawSchema] | None
) -> RawSchema | None:
    properties = schema.get("properties")
    if not isinstance(properties, dict) or name not in properties:
        return None
    target = resolve_schema(properties[name], root, known=known)
    return target if is_schema(target) else None


def is_required(
    schema: Any, name: str, root: RawSchema, known: Mapping[str, RawSchema] | None = None
) -> bool:
    resolved = resolve_schema(schema, root, known=known)
    if not is_schema(resolved):
        return False
    candidates = [resolved]
    for branch in _branches(resolved, ("allOf",)):
        branch = resolve_schema(branch, root, known=known)
        if is_schema(branch):
            candidates.append(branch)
    for candidate in candidates:
        required = candidate.get("required")
        if isinstance(required, list) and name in required:
            return True
    return False
