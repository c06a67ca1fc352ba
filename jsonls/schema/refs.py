"""``$ref`` / ``$dynamicRef`` resolution with cycle protection.

Schemas handed to these helpers are never mutated; every result is either the
input itself or a node reachable from the root (or from a registered schema).
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping

from .pointer import resolve_schema_pointer

RawSchema = dict[str, Any]

DEFINITION_KEYWORDS = ("definitions", "$defs")
COMBINATOR_KEYWORDS = ("allOf", "anyOf", "oneOf")


def is_schema(value: Any) -> bool:
    return isinstance(value, dict)


def is_ref(schema: Any) -> bool:
    return is_schema(schema) and isinstance(schema.get("$ref"), str)


def is_dynamic_ref(schema: Any) -> bool:
    return is_schema(schema) and isinstance(schema.get("$dynamicRef"), str)


def build_id_index(schema: RawSchema) -> dict[str, RawSchema]:
    """Map every ``$id`` found in the usual subschema locations to its node."""
    index: dict[str, RawSchema] = {}
    if is_schema(schema):
        _index_ids(schema, index)
    return index


def _index_ids(schema: RawSchema, index: MutableMapping[str, RawSchema]) -> None:
    schema_id = schema.get("$id")
    if isinstance(schema_id, str):
        index.setdefault(schema_id, schema)
    for child in _child_schemas(schema, include_items=True):
        _index_ids(child, index)


def resolve_ref(
    ref: str, root: RawSchema, known: Mapping[str, RawSchema] | None = None
) -> RawSchema | None:
    """Resolve a single ``$ref`` value, or ``None`` when it points nowhere we know.

    Fragment refs are pointers into ``root``. Absolute refs are looked up in the
    root's ``$id`` index and then in ``known`` (registered or fetched schemas);
    anything else is left unresolved.
    """
    if ref == "#":
        return root
    if ref.startswith("#"):
        target = resolve_schema_pointer(root, ref)
        return target if is_schema(target) else None
    base, _, fragment = ref.partition("#")
    document = build_id_index(root).get(base)
    if document is None and known:
        document = known.get(base) or known.get(ref)
    if document is None:
        return None
    if not fragment:
        return document
    target = resolve_schema_pointer(document, fragment)
    return target if is_schema(target) else None


def resolve_dynamic_ref(dynamic_ref: str, root: RawSchema) -> RawSchema | None:
    """Find the first ``$dynamicAnchor`` in document order matching the ref.

    This is a whole-tree search rather than true dynamic scoping.
    """
    anchor = dynamic_ref[1:] if dynamic_ref.startswith("#") else dynamic_ref
    if not anchor:
        return root
    return _find_dynamic_anchor(anchor, root, set())


def resolve_schema(
    schema: Any,
    root: RawSchema,
    visited: set[str] | None = None,
    known: Mapping[str, RawSchema] | None = None,
) -> Any:
    """Follow references from ``schema`` until a non-reference node is reached.

    A reference seen twice stops resolution and the reference node itself is
    returned, which guarantees termination on cyclic schemas.
    """
    if visited is None:
        visited = set()
    current = schema
    while True:
        if is_ref(current):
            ref = current["$ref"]
            key = f"$ref:{ref}"
            if key in visited:
                return current
            visited.add(key)
            target = resolve_ref(ref, root, known)
        elif is_dynamic_ref(current):
            dynamic_ref = current["$dynamicRef"]
            key = f"$dynamicRef:{dynamic_ref}"
            if key in visited:
                return current
            visited.add(key)
            target = resolve_dynamic_ref(dynamic_ref, root)
        else:
            return current
        if target is None:
            return current
        current = target


def _find_dynamic_anchor(anchor: str, schema: Any, seen: set[int]) -> RawSchema | None:
    if not is_schema(schema) or id(schema) in seen:
        return None
    seen.add(id(schema))
    if schema.get("$dynamicAnchor") == anchor:
        return schema
    for child in _child_schemas(schema, include_items=False):
        found = _find_dynamic_anchor(anchor, child, seen)
        if found is not None:
            return found
    return None


def _child_schemas(schema: RawSchema, *, include_items: bool) -> list[RawSchema]:
    children: list[RawSchema] = []
    for keyword in DEFINITION_KEYWORDS:
        definitions = schema.get(keyword)
        if isinstance(definitions, dict):
            children.extend(sub for sub in definitions.values() if is_schema(sub))
    properties = schema.get("properties")
    if isinstance(properties, dict):
        children.extend(sub for sub in properties.values() if is_schema(sub))
    for keyword in COMBINATOR_KEYWORDS:
        branches = schema.get(keyword)
        if isinstance(branches, list):
            children.extend(sub for sub in branches if is_schema(sub))
    if include_items and is_schema(schema.get("items")):
        children.append(schema["items"])
    return children
