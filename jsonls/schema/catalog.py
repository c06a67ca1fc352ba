"""Remote file-association catalog (SchemaStore format)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..transport.codec import loads
from .globs import compile_glob

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_URI = "https://www.schemastore.org/api/json/catalog.json"


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    url: str
    file_match: tuple[str, ...]
    description: str | None = None


def matches_file_pattern(filename: str, pattern: str) -> bool:
    if filename == pattern:
        return True
    return compile_glob(pattern, full_match=True).match(filename) is not None


def _filename(document_uri: str) -> str:
    return document_uri.rsplit("/", 1)[-1]


class SchemaCatalog:
    """Loads the catalog once and answers ``lookup(uri) -> schema url``.

    Individual schemas are not fetched here; the association resolver fetches
    them lazily on the first matching document.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        uri: str = DEFAULT_CATALOG_URI,
        timeout_seconds: float = 15.0,
        user_agent: str = "jsonls/1.0",
    ) -> None:
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._uri = uri
        self._timeout = timeout_seconds
        self._user_agent = user_agent
        self._entries: list[CatalogEntry] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    async def close(self) -> None:
        await self._client.aclose()

    async def load(self) -> bool:
        async with self._lock:
            if self._loaded:
                return True
            try:
                data = await asyncio.wait_for(self._download(), timeout=self._timeout)
            except (httpx.HTTPError, asyncio.TimeoutError, ValueError) as exc:
                logger.warning("failed to load schema catalog %s: %s", self._uri, exc)
                return False
            self._entries = self._parse_entries(data)
            self._loaded = True
            logger.info("schema catalog loaded: %d schemas", len(self._entries))
            return True

    async def _download(self) -> Any:
        response = await self._client.get(
            self._uri,
            headers={"Accept": "application/json", "User-Agent": self._user_agent},
            timeout=self._timeout,
        )
        response.raise_for_status()
        return loads(response.content)

    def _parse_entries(self, data: Any) -> list[CatalogEntry]:
        schemas = data.get("schemas") if isinstance(data, dict) else None
        entries: list[CatalogEntry] = []
        for item in schemas or []:
            if not isinstance(item, dict) or not isinstance(item.get("url"), str):
                continue
            patterns = tuple(
                pattern
                for pattern in item.get("fileMatch") or []
                if isinstance(pattern, str) and not pattern.startswith("!")
            )
            if not patterns:
                continue
            entries.append(
                CatalogEntry(
                    name=str(item.get("name", item["url"])),
                    url=item["url"],
                    file_match=patterns,
                    description=item.get("description"),
                )
            )
        return entries

    def find_entry(self, document_uri: str) -> CatalogEntry | None:
        filename = _filename(document_uri)
        for entry in self._entries:
            if any(matches_file_pattern(filename, pattern) for pattern in entry.file_match):
                return entry
        return None

    def lookup(self, document_uri: str) -> str | None:
        entry = self.find_entry(document_uri)
        return entry.url if entry else None
