"""Unit tests for document lifecycle orchestration."""

from __future__ import annotations

import pytest

from jsonls.document.store import DocumentNotOpenError, DocumentStore
from jsonls.schema.associations import ResolutionState, SchemaAssociationResolver
from jsonls.schema.fetcher import SchemaFetcher
from jsonls.schema.registry import SchemaRegistry
from jsonls.session.publisher import DiagnosticsPublisher
from jsonls.session.service import DocumentService, RevalidationLedger
from jsonls.validation.validator import SchemaValidator

REMOTE_URI = "https://schemas.example.com/person.json"


@pytest.fixture
def registry():
    return SchemaRegistry()


@pytest.fixture
def store():
    return DocumentStore()


@pytest.fixture
def publisher():
    return DiagnosticsPublisher()


@pytest.fixture
def service(registry, store, publisher, schema_server):
    fetcher = SchemaFetcher(registry, client=schema_server.client())
    return DocumentService(
        store,
        registry,
        SchemaAssociationResolver(registry, fetcher),
        SchemaValidator(registry),
        publisher,
    )


def _inline(text_body):
    return '{"$schema": "%s", %s}' % (REMOTE_URI, text_body)


class TestDocumentLifecycle:
    @pytest.mark.asyncio
    async def test_open_validates_and_publishes(self, service, registry, publisher, person_schema):
        registry.register("mem://person", person_schema, "*.person.json")

        outcome = await service.open("file:///work/ada.person.json", '{"age": 36}')

        assert outcome.published
        assert outcome.schema_uri == "mem://person"
        assert [d.code for d in outcome.diagnostics] == ["required"]
        record = await publisher.get("file:///work/ada.person.json")
        assert record.version == outcome.version

    @pytest.mark.asyncio
    async def test_change_replaces_diagnostics(self, service, registry, publisher, person_schema):
        registry.register("mem://person", person_schema, "*.person.json")
        await service.open("file:///work/ada.person.json", '{"age": 36}')

        outcome = await service.change("file:///work/ada.person.json", '{"name": "Ada"}')

        assert outcome.version == 2
        record = await publisher.get("file:///work/ada.person.json")
        assert record.version == 2
        assert record.diagnostics == ()

    @pytest.mark.asyncio
    async def test_close_clears_diagnostics(self, service, store, publisher):
        await service.open("file:///work/a.json", "{")
        await service.close("file:///work/a.json")

        record = await publisher.get("file:///work/a.json")
        assert record.diagnostics == ()
        assert store.get("file:///work/a.json") is None
        assert await service.validate_current("file:///work/a.json") is None

    @pytest.mark.asyncio
    async def test_close_unknown_document(self, service):
        with pytest.raises(DocumentNotOpenError):
            await service.close("file:///work/missing.json")

    @pytest.mark.asyncio
    async def test_results_for_stale_versions_are_not_published(self, service, store, publisher):
        """A validation computed for a superseded version never overwrites the newer result."""
        older = store.open("file:///work/a.json", '{"a": 1}')
        await service.change("file:///work/a.json", "{")

        outcome = await service._validate(older)

        assert not outcome.published
        record = await publisher.get("file:///work/a.json")
        assert record.version == 2
        assert [d.message for d in record.diagnostics] == ["Closing brace expected"]


class TestRevalidation:
    """Documents waiting on a remote schema are re-validated once it arrives."""

    @pytest.mark.asyncio
    async def test_pending_schema_triggers_revalidation(self, service, schema_server, publisher, person_schema):
        schema_server.routes[REMOTE_URI] = person_schema

        outcome = await service.open("file:///work/a.json", _inline('"age": 1'))

        assert outcome.resolution.state is ResolutionState.PENDING
        assert outcome.diagnostics == ()
        assert outcome.revalidation is not None

        revalidated = await outcome.revalidation
        assert [o.uri for o in revalidated] == ["file:///work/a.json"]
        assert [d.code for d in revalidated[0].diagnostics] == ["required"]
        record = await publisher.get("file:///work/a.json")
        assert [d.code for d in record.diagnostics] == ["required"]

    @pytest.mark.asyncio
    async def test_revalidation_uses_current_contents(self, service, schema_server, person_schema):
        schema_server.routes[REMOTE_URI] = person_schema

        first = await service.open("file:///work/a.json", _inline('"age": 1'))
        second = await service.change("file:///work/a.json", _inline('"name": "Ada"'))

        assert second.revalidation is first.revalidation
        revalidated = await first.revalidation
        assert revalidated[0].version == 2
        assert revalidated[0].diagnostics == ()

    @pytest.mark.asyncio
    async def test_one_revalidation_per_schema(self, service, schema_server, person_schema):
        schema_server.routes[REMOTE_URI] = person_schema

        first = await service.open("file:///work/a.json", _inline('"age": 1'))
        second = await service.open("file:///work/b.json", _inline('"name": "Bo"'))

        assert second.revalidation is first.revalidation
        revalidated = await first.revalidation
        assert [o.uri for o in revalidated] == ["file:///work/a.json", "file:///work/b.json"]
        assert REMOTE_URI in service.ledger
        assert len(schema_server.calls) == 1

    @pytest.mark.asyncio
    async def test_closed_document_is_skipped(self, service, schema_server, person_schema):
        schema_server.routes[REMOTE_URI] = person_schema

        outcome = await service.open("file:///work/a.json", _inline('"age": 1'))
        await service.close("file:///work/a.json")

        assert await outcome.revalidation == []

    @pytest.mark.asyncio
    async def test_failed_fetch_leaves_document_unvalidated(self, service, schema_server):
        outcome = await service.open("file:///work/a.json", _inline('"age": 1'))

        assert await outcome.revalidation == []
        again = await service.validate_current("file:///work/a.json")
        assert again.resolution.state is ResolutionState.NONE
        assert again.revalidation is None

    @pytest.mark.asyncio
    async def test_drain_waits_for_outstanding_work(self, service, schema_server, person_schema):
        schema_server.routes[REMOTE_URI] = person_schema
        outcome = await service.open("file:///work/a.json", _inline('"age": 1'))

        await service.drain()

        assert outcome.revalidation.done()


class TestSchemaAtOffset:
    @pytest.mark.asyncio
    async def test_subschema_under_cursor(self, service, registry, person_schema):
        registry.register("mem://person", person_schema, "*.person.json")
        await service.open("file:///work/ada.person.json", '{"name": "Ada"}')

        assert service.schema_at_offset("file:///work/ada.person.json", 10) == {"type": "string"}
        assert service.schema_at_offset("file:///work/ada.person.json", 0) == person_schema

    @pytest.mark.asyncio
    async def test_no_schema(self, service):
        await service.open("file:///work/plain.json", "{}")
        assert service.schema_at_offset("file:///work/plain.json", 0) is None

    def test_unknown_document(self, service):
        with pytest.raises(DocumentNotOpenError):
            service.schema_at_offset("file:///work/missing.json", 0)


class TestRevalidationLedger:
    def test_claim_once(self):
        ledger = RevalidationLedger()
        assert ledger.claim("https://x/s.json")
        assert not ledger.claim("https://x/s.json")
        assert len(ledger) == 1
        ledger.reset()
        assert "https://x/s.json" not in ledger
