"""Admin health endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health")
async def health(request: Request) -> dict[str, int | str | bool]:
    start_time = getattr(request.app.state, "start_time", None)
    if start_time:
        uptime = int((datetime.now(timezone.utc) - start_time).total_seconds())
    else:
        uptime = 0
    catalog = request.app.state.catalog
    return {
        "status": "healthy",
        "uptime_seconds": uptime,
        "version": request.app.version,
        "catalog_loaded": bool(catalog is not None and catalog.loaded),
    }
