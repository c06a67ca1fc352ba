"""Per-draft validation engine selection."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from jsonschema import (
    Draft4Validator,
    Draft6Validator,
    Draft7Validator,
    Draft201909Validator,
    Draft202012Validator,
)
from jsonschema.protocols import Validator
from referencing import Registry, Resource, Specification
from referencing.jsonschema import DRAFT4, DRAFT6, DRAFT7, DRAFT201909, DRAFT202012

from ..schema.drafts import Draft, classify

logger = logging.getLogger(__name__)

_VALIDATORS: dict[Draft, type[Validator]] = {
    Draft.DRAFT_04: Draft4Validator,
    Draft.DRAFT_06: Draft6Validator,
    Draft.DRAFT_07: Draft7Validator,
    Draft.DRAFT_2019_09: Draft201909Validator,
    Draft.DRAFT_2020_12: Draft202012Validator,
}

_SPECIFICATIONS: dict[Draft, Specification[Any]] = {
    Draft.DRAFT_04: DRAFT4,
    Draft.DRAFT_06: DRAFT6,
    Draft.DRAFT_07: DRAFT7,
    Draft.DRAFT_2019_09: DRAFT201909,
    Draft.DRAFT_2020_12: DRAFT202012,
}


def specification_for(draft: Draft) -> Specification[Any]:
    return _SPECIFICATIONS[draft]


class DialectRegistry:
    """Activates each draft's validator once per process."""

    def __init__(self) -> None:
        self._active: dict[Draft, type[Validator]] = {}

    def activate(self, draft: Draft) -> type[Validator]:
        validator = self._active.get(draft)
        if validator is None:
            validator = _VALIDATORS[draft]
            self._active[draft] = validator
            logger.info("activated %s vocabulary", draft.value)
        return validator

    def active(self) -> list[Draft]:
        return list(self._active)

    def reset(self) -> None:
        self._active.clear()


def build_engine_registry(schemas: Iterable[tuple[str, dict[str, Any]]]) -> Registry:
    """A ``referencing`` registry holding every registered schema by URI."""
    return Registry().with_resources(
        (uri, schema_resource(schema)) for uri, schema in schemas
    )


def schema_resource(schema: Any) -> Resource[Any]:
    """Wrap ``schema`` under the draft chosen by ``classify``, whatever its $schema holds."""
    return specification_for(classify(schema)).create_resource(schema)
