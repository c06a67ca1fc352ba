"""Remote schema retrieval with caching, single-flight, and a negative cache."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

import httpx

from ..transport.codec import loads
from .drafts import is_meta_schema_uri
from .refs import RawSchema
from .registry import SchemaRegistry

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = "application/schema+json, application/json"
DEFAULT_USER_AGENT = "jsonls/1.0"


class FetchState(str, Enum):
    ABSENT = "absent"
    PENDING = "pending"
    LOADED = "loaded"
    FAILED = "failed"


class SchemaFetchError(RuntimeError):
    """Raised internally when a fetched body is not a usable schema."""


def is_network_uri(uri: str) -> bool:
    return uri.startswith("http://") or uri.startswith("https://")


class SchemaFetcher:
    """Owns the per-URI fetch cache.

    State only moves ``absent -> pending -> loaded | failed``; ``loaded`` and
    ``failed`` are terminal, so a failed URI is never requested again.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        accept: str = DEFAULT_ACCEPT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._registry = registry
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._timeout = timeout_seconds
        self._headers = {"Accept": accept, "User-Agent": user_agent}
        self._loaded: dict[str, RawSchema] = {}
        self._pending: dict[str, asyncio.Task[RawSchema | None]] = {}
        self._failed: set[str] = set()

    async def close(self) -> None:
        await self._client.aclose()

    def state(self, uri: str) -> FetchState:
        if uri in self._loaded:
            return FetchState.LOADED
        if uri in self._failed:
            return FetchState.FAILED
        if uri in self._pending:
            return FetchState.PENDING
        return FetchState.ABSENT

    def cached(self, uri: str) -> RawSchema | None:
        return self._loaded.get(uri)

    def is_fetchable(self, uri: str) -> bool:
        return is_network_uri(uri) and not is_meta_schema_uri(uri)

    def schedule(self, uri: str) -> asyncio.Future[RawSchema | None] | None:
        """Start a fetch for ``uri`` or join the one already in flight.

        Returns ``None`` when nothing will be fetched: the URI is loaded,
        failed, a meta-schema, or not an http(s) URI.
        """
        if uri in self._loaded or uri in self._failed or not self.is_fetchable(uri):
            return None
        task = self._pending.get(uri)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._fetch(uri))
            self._pending[uri] = task
        return task

    async def fetch(self, uri: str) -> RawSchema | None:
        if uri in self._loaded:
            return self._loaded[uri]
        task = self.schedule(uri)
        if task is None:
            return None
        # Shielded: one requester being cancelled must not abort the shared fetch.
        return await asyncio.shield(task)

    async def _fetch(self, uri: str) -> RawSchema | None:
        try:
            schema = await asyncio.wait_for(self._download(uri), timeout=self._timeout)
        except (httpx.HTTPError, asyncio.TimeoutError, SchemaFetchError, ValueError) as exc:
            logger.warning("failed to fetch schema %s: %s", uri, exc)
            self._failed.add(uri)
            return None
        finally:
            self._pending.pop(uri, None)
        self._loaded[uri] = schema
        self._registry.register(uri, schema)
        logger.info("loaded schema %s", uri)
        return schema

    async def _download(self, uri: str) -> RawSchema:
        logger.debug("fetching schema %s", uri)
        response = await self._client.get(uri, headers=self._headers, timeout=self._timeout)
        response.raise_for_status()
        data: Any = loads(response.content)
        if not isinstance(data, dict):
            raise SchemaFetchError(f"schema at {uri} is not a JSON object")
        return data

    def stats(self) -> dict[str, int]:
        return {
            FetchState.LOADED.value: len(self._loaded),
            FetchState.PENDING.value: len(self._pending),
            FetchState.FAILED.value: len(self._failed),
        }

    def reset(self) -> None:
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()
        self._loaded.clear()
        self._failed.clear()
