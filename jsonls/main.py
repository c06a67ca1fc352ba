from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import httpx
from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status

from .admin import config as admin_config
from .admin import health as admin_health
from .admin import stats as admin_stats
from .config import ServerConfig, get_server_config
from .document.store import DocumentNotOpenError, DocumentStore
from .schema.associations import SchemaAssociationResolver
from .schema.catalog import SchemaCatalog
from .schema.fetcher import SchemaFetcher
from .schema.registry import SchemaRegistrationError, SchemaRegistry
from .session.publisher import DiagnosticsPublisher
from .session.service import DocumentService, ValidationOutcome
from .validation.dialects import DialectRegistry
from .validation.validator import SchemaValidator

logger = logging.getLogger(__name__)


def preload_schemas(registry: SchemaRegistry, settings: ServerConfig) -> None:
    for entry in settings.schemas:
        if entry.schema is not None:
            registry.register(entry.uri, dict(entry.schema), entry.pattern)
        elif entry.path is not None:
            registry.register_file(entry.path, entry.uri, entry.pattern)
        else:
            raise SchemaRegistrationError(f"schema entry {entry.uri} has neither schema nor path")


@asynccontextmanager
async def lifespan(app: FastAPI):
    server_config = get_server_config()
    client = httpx.AsyncClient(follow_redirects=True)
    registry = SchemaRegistry()
    preload_schemas(registry, server_config)
    fetcher = SchemaFetcher(
        registry,
        client=client,
        timeout_seconds=server_config.fetch.timeout_seconds,
        accept=server_config.fetch.accept,
        user_agent=server_config.fetch.user_agent,
    )
    catalog = None
    catalog_task = None
    if server_config.catalog.enabled:
        catalog = SchemaCatalog(
            client=client,
            uri=server_config.catalog.uri,
            timeout_seconds=server_config.catalog.timeout_seconds,
            user_agent=server_config.fetch.user_agent,
        )
        catalog_task = asyncio.create_task(catalog.load())
    dialects = DialectRegistry()
    validator = SchemaValidator(registry, dialects, source=server_config.diagnostics.source)
    store = DocumentStore()
    publisher = DiagnosticsPublisher()
    service = DocumentService(
        store,
        registry,
        SchemaAssociationResolver(registry, fetcher, catalog),
        validator,
        publisher,
    )

    app.state.server_config = server_config
    app.state.schema_registry = registry
    app.state.fetcher = fetcher
    app.state.catalog = catalog
    app.state.dialects = dialects
    app.state.document_store = store
    app.state.publisher = publisher
    app.state.document_service = service
    app.state.start_time = datetime.now(timezone.utc)

    yield

    if catalog_task is not None and not catalog_task.done():
        catalog_task.cancel()
    await service.drain()
    await client.aclose()


app = FastAPI(
    title="JSON Language Service",
    version="1.0.0",
    docs_url="/docs",
    lifespan=lifespan,
)

app.include_router(admin_health.router)
app.include_router(admin_stats.router)
app.include_router(admin_config.router)


# Dependency helpers ---------------------------------------------------------


def get_server_settings(request: Request) -> ServerConfig:
    return request.app.state.server_config


def get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def get_publisher(request: Request) -> DiagnosticsPublisher:
    return request.app.state.publisher


def get_schema_registry(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


# Routes ---------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root(settings: ServerConfig = Depends(get_server_settings)) -> dict[str, Any]:
    return {
        "service": "jsonls",
        "version": app.version,
        "catalog": {"enabled": settings.catalog.enabled, "uri": settings.catalog.uri},
        "diagnostics_source": settings.diagnostics.source,
    }


def _require_field(payload: dict[str, Any], name: str) -> str:
    value = payload.get(name)
    if not isinstance(value, str):
        raise HTTPException(status_code=422, detail=f"{name} is required")
    return value


def format_outcome(outcome: ValidationOutcome) -> dict[str, Any]:
    return {
        "uri": outcome.uri,
        "version": outcome.version,
        "schema": {"state": outcome.resolution.state.value, "uri": outcome.schema_uri},
        "published": outcome.published,
        "diagnostics": [diagnostic.to_lsp() for diagnostic in outcome.diagnostics],
    }


@app.post("/documents/open", tags=["documents"])
async def open_document(
    payload: dict[str, Any] = Body(...),
    service: DocumentService = Depends(get_document_service),
) -> dict[str, Any]:
    uri = _require_field(payload, "uri")
    text = _require_field(payload, "text")
    outcome = await service.open(uri, text)
    return format_outcome(outcome)


@app.post("/documents/change", tags=["documents"])
async def change_document(
    payload: dict[str, Any] = Body(...),
    service: DocumentService = Depends(get_document_service),
) -> dict[str, Any]:
    uri = _require_field(payload, "uri")
    text = _require_field(payload, "text")
    outcome = await service.change(uri, text)
    return format_outcome(outcome)


@app.post("/documents/close", tags=["documents"], status_code=status.HTTP_202_ACCEPTED)
async def close_document(
    payload: dict[str, Any] = Body(...),
    service: DocumentService = Depends(get_document_service),
) -> dict[str, str]:
    uri = _require_field(payload, "uri")
    try:
        await service.close(uri)
    except DocumentNotOpenError as exc:
        raise HTTPException(status_code=404, detail=f"document not open: {uri}") from exc
    return {"status": "closed", "uri": uri}


@app.get("/documents/diagnostics", tags=["documents"])
async def get_diagnostics(
    uri: str = Query(...),
    publisher: DiagnosticsPublisher = Depends(get_publisher),
) -> dict[str, Any]:
    record = await publisher.get(uri)
    if record is None:
        raise HTTPException(status_code=404, detail=f"no diagnostics published for {uri}")
    return record.to_dict()


@app.get("/documents/schema", tags=["documents"])
async def get_schema_at_offset(
    uri: str = Query(...),
    offset: int = Query(..., ge=0),
    service: DocumentService = Depends(get_document_service),
) -> dict[str, Any]:
    try:
        schema = service.schema_at_offset(uri, offset)
    except DocumentNotOpenError as exc:
        raise HTTPException(status_code=404, detail=f"document not open: {uri}") from exc
    return {"uri": uri, "offset": offset, "schema": schema}


@app.post("/schemas", tags=["schemas"], status_code=status.HTTP_201_CREATED)
async def register_schema(
    payload: dict[str, Any] = Body(...),
    registry: SchemaRegistry = Depends(get_schema_registry),
    service: DocumentService = Depends(get_document_service),
) -> dict[str, Any]:
    uri = _require_field(payload, "uri")
    pattern = payload.get("pattern")
    if pattern is not None and not isinstance(pattern, str):
        raise HTTPException(status_code=422, detail="pattern must be a string")
    try:
        registry.register(uri, payload.get("schema"), pattern)
    except SchemaRegistrationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    revalidated = []
    for document_uri in service.open_documents():
        outcome = await service.validate_current(document_uri)
        if outcome is not None:
            revalidated.append(outcome.uri)
    logger.info(f"registered schema {uri}; revalidated {len(revalidated)} document(s)")
    return {"status": "registered", "uri": uri, "pattern": pattern, "revalidated": revalidated}
