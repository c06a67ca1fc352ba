"""Expose currently loaded server config for debugging."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..config import ServerConfig

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_config(request: Request) -> ServerConfig:
    return request.app.state.server_config


@router.get("/config")
async def config(request: Request, config: ServerConfig = Depends(_get_config)) -> dict:
    return {
        "version": request.app.version,
        "fetch": {
            "timeout_seconds": config.fetch.timeout_seconds,
            "user_agent": config.fetch.user_agent,
            "accept": config.fetch.accept,
        },
        "catalog": {
            "enabled": config.catalog.enabled,
            "uri": config.catalog.uri,
            "timeout_seconds": config.catalog.timeout_seconds,
        },
        "diagnostics_source": config.diagnostics.source,
        "preloaded_schemas": [
            {"uri": entry.uri, "pattern": entry.pattern} for entry in config.schemas
        ],
    }
