"""Process-scoped store of registered schemas and filename associations."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from .refs import RawSchema

logger = logging.getLogger(__name__)


class SchemaRegistrationError(ValueError):
    """Raised when a schema cannot be registered."""


@dataclass(frozen=True)
class SchemaAssociation:
    pattern: str
    uri: str
    schema: RawSchema


class SchemaRegistry:
    """Registered schemas by URI plus pattern associations in registration order.

    Schemas are deep-copied on the way in and never mutated afterwards, so
    anything derived from them can be cached by URI.
    """

    def __init__(self) -> None:
        self._schemas: dict[str, RawSchema] = {}
        self._associations: list[SchemaAssociation] = []
        self.generation = 0

    def register(self, uri: str, schema: Any, pattern: str | None = None) -> RawSchema:
        """Register ``schema`` under ``uri``; repeated registration of a URI is a no-op.

        A new non-empty ``pattern`` for an already registered URI is still
        appended as an association.
        """
        if not uri:
            raise SchemaRegistrationError("schema uri is required")
        if not isinstance(schema, dict):
            raise SchemaRegistrationError(f"schema for {uri} must be a JSON object")
        stored = self._schemas.get(uri)
        if stored is None:
            stored = deepcopy(schema)
            self._schemas[uri] = stored
            self.generation += 1
            logger.info("registered schema %s", uri)
        if pattern and not any(
            assoc.pattern == pattern and assoc.uri == uri for assoc in self._associations
        ):
            self._associations.append(SchemaAssociation(pattern=pattern, uri=uri, schema=stored))
            logger.debug(
                "associations now: %d patterns: %s",
                len(self._associations),
                [assoc.pattern for assoc in self._associations],
            )
        return stored

    def register_file(self, path: Path, uri: str | None = None, pattern: str | None = None) -> RawSchema:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SchemaRegistrationError(f"cannot load schema from {path}: {exc}") from exc
        return self.register(uri or path.resolve().as_uri(), data, pattern)

    def get(self, uri: str) -> RawSchema | None:
        return self._schemas.get(uri)

    def __contains__(self, uri: object) -> bool:
        return uri in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def known(self) -> Mapping[str, RawSchema]:
        return self._schemas

    def items(self) -> Iterable[tuple[str, RawSchema]]:
        return self._schemas.items()

    def associations(self) -> list[SchemaAssociation]:
        return list(self._associations)

    def reset(self) -> None:
        self._schemas.clear()
        self._associations.clear()
        self.generation += 1
