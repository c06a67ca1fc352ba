"""Operational stats endpoint."""

from __future__ import annotations

from collections import Counter
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..document.store import DocumentStore
from ..schema.fetcher import SchemaFetcher
from ..schema.registry import SchemaRegistry
from ..session.service import DocumentService

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_registry(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


def _get_fetcher(request: Request) -> SchemaFetcher:
    return request.app.state.fetcher


def _get_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


def _get_service(request: Request) -> DocumentService:
    return request.app.state.document_service


@router.get("/stats")
async def stats(
    request: Request,
    registry: SchemaRegistry = Depends(_get_registry),
    fetcher: SchemaFetcher = Depends(_get_fetcher),
    store: DocumentStore = Depends(_get_store),
    service: DocumentService = Depends(_get_service),
) -> dict[str, Any]:
    associations_by_schema: Counter[str] = Counter(
        assoc.uri for assoc in registry.associations()
    )
    catalog = request.app.state.catalog
    return {
        "registered_schemas": len(registry),
        "associations": dict(associations_by_schema),
        "fetch_cache": fetcher.stats(),
        "open_documents": len(store),
        "revalidations_triggered": len(service.ledger),
        "active_dialects": [draft.value for draft in request.app.state.dialects.active()],
        "catalog_entries": len(catalog.entries()) if catalog is not None else 0,
    }
