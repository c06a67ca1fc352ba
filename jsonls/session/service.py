"""Document lifecycle: reparse, resolve, validate, publish."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from ..document.parser import node_at_offset, node_path
from ..document.store import DocumentStore, ParsedDocument
from ..schema.associations import ResolutionState, SchemaAssociationResolver, SchemaResolution
from ..schema.refs import RawSchema
from ..schema.registry import SchemaRegistry
from ..schema.walker import walk
from ..validation.diagnostics import Diagnostic
from ..validation.validator import SchemaValidator
from .publisher import DiagnosticsPublisher

logger = logging.getLogger(__name__)


class RevalidationLedger:
    """Schema URIs whose fetch already has a re-validation attached."""

    def __init__(self) -> None:
        self._triggered: set[str] = set()

    def claim(self, uri: str) -> bool:
        if uri in self._triggered:
            return False
        self._triggered.add(uri)
        return True

    def __contains__(self, uri: object) -> bool:
        return uri in self._triggered

    def __len__(self) -> int:
        return len(self._triggered)

    def reset(self) -> None:
        self._triggered.clear()


@dataclass(frozen=True)
class ValidationOutcome:
    uri: str
    version: int
    diagnostics: tuple[Diagnostic, ...]
    resolution: SchemaResolution
    published: bool
    revalidation: asyncio.Task[list["ValidationOutcome"]] | None = field(default=None, compare=False)

    @property
    def schema_uri(self) -> str | None:
        if self.resolution.resolved is not None:
            return self.resolution.resolved.uri
        return self.resolution.pending_uri


class DocumentService:
    """Entry point for document events coming from the host session.

    When a schema has to be fetched first, the document is validated without
    it and the returned outcome carries a task that re-validates the current
    contents of every document waiting on that schema once the fetch settles.
    """

    def __init__(
        self,
        store: DocumentStore,
        registry: SchemaRegistry,
        resolver: SchemaAssociationResolver,
        validator: SchemaValidator,
        publisher: DiagnosticsPublisher,
        ledger: RevalidationLedger | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._resolver = resolver
        self._validator = validator
        self._publisher = publisher
        self._ledger = ledger or RevalidationLedger()
        self._waiting: dict[str, set[str]] = {}
        self._revalidations: dict[str, asyncio.Task[list[ValidationOutcome]]] = {}

    @property
    def ledger(self) -> RevalidationLedger:
        return self._ledger

    def open_documents(self) -> list[str]:
        return self._store.uris()

    async def open(self, uri: str, text: str) -> ValidationOutcome:
        document = self._store.open(uri, text)
        logger.debug("opened %s v%d", uri, document.version)
        return await self._validate(document)

    async def change(self, uri: str, text: str) -> ValidationOutcome:
        document = self._store.change(uri, text)
        return await self._validate(document)

    async def close(self, uri: str) -> None:
        self._store.close(uri)
        await self._publisher.clear(uri)
        logger.debug("closed %s", uri)

    async def validate_current(self, uri: str) -> ValidationOutcome | None:
        document = self._store.get(uri)
        if document is None:
            return None
        return await self._validate(document)

    def schema_at_offset(self, uri: str, offset: int) -> RawSchema | None:
        """Subschema governing the node under ``offset``, for editor features."""
        document = self._store.require(uri)
        resolution = self._resolver.resolve(uri, document)
        if resolution.resolved is None:
            return None
        node = node_at_offset(document.root, offset)
        if node is None:
            return None
        schema = resolution.resolved.schema
        return walk(schema, node_path(node), schema, known=self._registry.known())

    async def _validate(self, document: ParsedDocument) -> ValidationOutcome:
        resolution = self._resolver.resolve(document.uri, document)
        revalidation = None
        if resolution.state is ResolutionState.PENDING and resolution.pending_uri:
            revalidation = self._await_schema(
                document.uri, resolution.pending_uri, resolution.pending
            )
        diagnostics = self._validator.validate(resolution.resolved, document)
        published = False
        if self._store.is_current(document):
            published = await self._publisher.publish(document.uri, document.version, diagnostics)
        else:
            logger.debug("discarding diagnostics for stale %s v%d", document.uri, document.version)
        return ValidationOutcome(
            uri=document.uri,
            version=document.version,
            diagnostics=tuple(diagnostics),
            resolution=resolution,
            published=published,
            revalidation=revalidation,
        )

    def _await_schema(
        self, document_uri: str, schema_uri: str, pending: Any
    ) -> asyncio.Task[list[ValidationOutcome]] | None:
        self._waiting.setdefault(schema_uri, set()).add(document_uri)
        if self._ledger.claim(schema_uri):
            task = asyncio.get_running_loop().create_task(
                self._revalidate_when_settled(schema_uri, pending)
            )
            self._revalidations[schema_uri] = task
            task.add_done_callback(lambda _: self._revalidations.pop(schema_uri, None))
            return task
        return self._revalidations.get(schema_uri)

    async def _revalidate_when_settled(
        self, schema_uri: str, pending: Any
    ) -> list[ValidationOutcome]:
        schema = None
        if pending is not None:
            schema = await asyncio.shield(pending)
        waiting = self._waiting.pop(schema_uri, set())
        if schema is None:
            logger.info("schema %s unavailable, %d document(s) stay unvalidated", schema_uri, len(waiting))
            return []
        outcomes = []
        for document_uri in sorted(waiting):
            # Closed documents are skipped; open ones are validated as they are now.
            document = self._store.get(document_uri)
            if document is not None:
                outcomes.append(await self._validate(document))
        return outcomes

    async def drain(self) -> None:
        """Wait for outstanding re-validations (used at shutdown and in tests)."""
        tasks = list(self._revalidations.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
