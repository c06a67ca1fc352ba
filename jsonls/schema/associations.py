"""Decide which schema governs a document."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..document.parser import NodeKind
from ..document.store import ParsedDocument
from .fetcher import FetchState, SchemaFetcher
from .globs import compile_glob
from .refs import RawSchema
from .registry import SchemaRegistry

logger = logging.getLogger(__name__)


class CatalogLookup(Protocol):
    def lookup(self, document_uri: str) -> str | None: ...


@dataclass(frozen=True)
class ResolvedSchema:
    schema: RawSchema
    uri: str


class ResolutionState(str, Enum):
    NONE = "none"
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class SchemaResolution:
    state: ResolutionState
    resolved: ResolvedSchema | None = None
    pending_uri: str | None = None
    pending: asyncio.Future[RawSchema | None] | None = None

    @classmethod
    def none(cls) -> "SchemaResolution":
        return cls(ResolutionState.NONE)

    @property
    def schema(self) -> ResolvedSchema | None:
        return self.resolved


def matches_pattern(document_uri: str, pattern: str) -> bool:
    """Suffix-anchored glob match against the full URI or its final segment."""
    if not pattern:
        return False
    regex = compile_glob(pattern, full_match=False)
    filename = document_uri.rsplit("/", 1)[-1]
    return regex.search(document_uri) is not None or regex.search(filename) is not None


def inline_schema_uri(document: ParsedDocument) -> str | None:
    """Value of a top-level ``"$schema"`` string property, if any."""
    root = document.root
    if root is None or root.kind is not NodeKind.OBJECT:
        return None
    for prop in root.children:
        if len(prop.children) != 2:
            continue
        key, value = prop.children
        if key.value == "$schema" and value.kind is NodeKind.STRING:
            return value.value
    return None


class SchemaAssociationResolver:
    """Tries inline ``$schema``, then filename patterns, then the remote catalog.

    Resolution never blocks: when a remote schema is needed the fetch is
    started (or joined) and a ``pending`` result carrying the awaitable is
    returned so the caller can validate again once it settles.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        fetcher: SchemaFetcher,
        catalog: CatalogLookup | None = None,
    ) -> None:
        self._registry = registry
        self._fetcher = fetcher
        self._catalog = catalog

    def resolve(self, uri: str, document: ParsedDocument) -> SchemaResolution:
        inline = inline_schema_uri(document)
        if inline:
            resolution = self._resolve_remote(inline)
            if resolution.state is not ResolutionState.NONE:
                return resolution

        for assoc in self._registry.associations():
            if matches_pattern(uri, assoc.pattern):
                return SchemaResolution(
                    ResolutionState.RESOLVED, ResolvedSchema(assoc.schema, assoc.uri)
                )

        if self._catalog is not None:
            schema_uri = self._catalog.lookup(uri)
            if schema_uri:
                logger.debug("catalog matched %s for %s", schema_uri, uri)
                return self._resolve_remote(schema_uri)

        return SchemaResolution.none()

    def _resolve_remote(self, schema_uri: str) -> SchemaResolution:
        schema = self._registry.get(schema_uri) or self._fetcher.cached(schema_uri)
        if schema is not None:
            return SchemaResolution(ResolutionState.RESOLVED, ResolvedSchema(schema, schema_uri))
        if self._fetcher.state(schema_uri) is FetchState.FAILED:
            return SchemaResolution.none()
        pending = self._fetcher.schedule(schema_uri)
        if pending is None:
            return SchemaResolution.none()
        return SchemaResolution(
            ResolutionState.PENDING, pending_uri=schema_uri, pending=pending
        )
