"""JSON Schema dialect detection and per-draft capabilities."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Mapping


class Draft(str, Enum):
    DRAFT_04 = "draft-04"
    DRAFT_06 = "draft-06"
    DRAFT_07 = "draft-07"
    DRAFT_2019_09 = "draft-2019-09"
    DRAFT_2020_12 = "draft-2020-12"


DEFAULT_DRAFT = Draft.DRAFT_07

# Most specific first: the dated drafts share a host with the numbered ones.
_DRAFT_PATTERNS: tuple[tuple[re.Pattern[str], Draft], ...] = (
    (re.compile(r"json-schema\.org/draft/2020-12"), Draft.DRAFT_2020_12),
    (re.compile(r"json-schema\.org/draft/2019-09"), Draft.DRAFT_2019_09),
    (re.compile(r"json-schema\.org/draft-07"), Draft.DRAFT_07),
    (re.compile(r"json-schema\.org/draft-06"), Draft.DRAFT_06),
    (re.compile(r"json-schema\.org/draft-04"), Draft.DRAFT_04),
)

_META_SCHEMA_URIS = {
    Draft.DRAFT_04: "http://json-schema.org/draft-04/schema#",
    Draft.DRAFT_06: "http://json-schema.org/draft-06/schema#",
    Draft.DRAFT_07: "http://json-schema.org/draft-07/schema#",
    Draft.DRAFT_2019_09: "https://json-schema.org/draft/2019-09/schema",
    Draft.DRAFT_2020_12: "https://json-schema.org/draft/2020-12/schema",
}


def classify_uri(schema_uri: str) -> Draft:
    for pattern, draft in _DRAFT_PATTERNS:
        if pattern.search(schema_uri):
            return draft
    return DEFAULT_DRAFT


def classify(schema: Mapping[str, Any]) -> Draft:
    schema_uri = schema.get("$schema") if isinstance(schema, Mapping) else None
    if not isinstance(schema_uri, str):
        return DEFAULT_DRAFT
    return classify_uri(schema_uri)


def supports_dynamic_ref(draft: Draft) -> bool:
    return draft is Draft.DRAFT_2020_12


def uses_new_defs(draft: Draft) -> bool:
    return draft in (Draft.DRAFT_2019_09, Draft.DRAFT_2020_12)


def definitions_keyword(draft: Draft) -> str:
    return "$defs" if uses_new_defs(draft) else "definitions"


def meta_schema_uri(draft: Draft) -> str:
    return _META_SCHEMA_URIS.get(draft, _META_SCHEMA_URIS[DEFAULT_DRAFT])


def _normalize(uri: str) -> str:
    uri = uri.strip().rstrip("#")
    if uri.startswith("https://"):
        uri = "http://" + uri[len("https://"):]
    return uri


_NORMALIZED_META_URIS = frozenset(_normalize(uri) for uri in _META_SCHEMA_URIS.values())


def is_meta_schema_uri(uri: str) -> bool:
    """True for the draft identifiers themselves, which describe schemas, not documents."""
    return _normalize(uri) in _NORMALIZED_META_URIS
