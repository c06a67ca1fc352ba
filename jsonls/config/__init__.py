"""Configuration helpers for the JSON language service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

_DEFAULT_SERVER_CONFIG = Path(__file__).resolve().parent / "server.yaml"


@dataclass(frozen=True)
class FetchConfig:
    timeout_seconds: float
    user_agent: str
    accept: str


@dataclass(frozen=True)
class CatalogConfig:
    enabled: bool
    uri: str
    timeout_seconds: float


@dataclass(frozen=True)
class DiagnosticsConfig:
    source: str


@dataclass(frozen=True)
class SchemaEntry:
    uri: str
    pattern: str | None
    path: Path | None
    schema: Mapping[str, Any] | None


@dataclass(frozen=True)
class ServerConfig:
    fetch: FetchConfig
    catalog: CatalogConfig
    diagnostics: DiagnosticsConfig
    schemas: tuple[SchemaEntry, ...]


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return yaml.safe_load(path.read_text()) or {}


def _schema_entries(items: Any, base_dir: Path) -> tuple[SchemaEntry, ...]:
    entries = []
    for item in items or []:
        raw_path = item.get("path")
        path = None
        if raw_path:
            path = Path(raw_path)
            if not path.is_absolute():
                path = base_dir / path
        uri = item.get("uri") or (path.resolve().as_uri() if path else "")
        if not uri:
            raise ValueError("schema entries need a uri or a path")
        entries.append(
            SchemaEntry(
                uri=str(uri),
                pattern=item.get("pattern") or None,
                path=path,
                schema=item.get("schema"),
            )
        )
    return tuple(entries)


def load_server_config(path: Path) -> ServerConfig:
    data = _load_yaml(path)
    fetch = data.get("fetch", {})
    catalog = data.get("catalog", {})
    diagnostics = data.get("diagnostics", {})
    return ServerConfig(
        fetch=FetchConfig(
            timeout_seconds=float(fetch.get("timeout_seconds", 10)),
            user_agent=str(fetch.get("user_agent", "jsonls/1.0")),
            accept=str(fetch.get("accept", "application/schema+json, application/json")),
        ),
        catalog=CatalogConfig(
            enabled=bool(catalog.get("enabled", True)),
            uri=str(catalog.get("uri", "https://www.schemastore.org/api/json/catalog.json")),
            timeout_seconds=float(catalog.get("timeout_seconds", 15)),
        ),
        diagnostics=DiagnosticsConfig(source=str(diagnostics.get("source", "jsonls"))),
        schemas=_schema_entries(data.get("schemas"), path.resolve().parent),
    )


@lru_cache(maxsize=1)
def get_server_config() -> ServerConfig:
    path = Path(os.getenv("JSONLS_CONFIG_PATH", _DEFAULT_SERVER_CONFIG))
    return load_server_config(path)
