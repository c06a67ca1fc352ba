"""Latest-wins diagnostics sink with version checks."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from ..validation.diagnostics import Diagnostic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishedDiagnostics:
    uri: str
    version: int
    diagnostics: tuple[Diagnostic, ...]

    def to_dict(self) -> dict:
        return {
            "uri": self.uri,
            "version": self.version,
            "diagnostics": [diagnostic.to_lsp() for diagnostic in self.diagnostics],
        }


Listener = Callable[[PublishedDiagnostics], Awaitable[None]]


class DiagnosticsPublisher:
    """Keeps the full, most recent diagnostic list per document.

    Each publish replaces the previous list. A publish carrying an older
    document version than the one already stored is dropped.
    """

    def __init__(self) -> None:
        self._published: dict[str, PublishedDiagnostics] = {}
        self._listeners: list[Listener] = []
        self._lock = asyncio.Lock()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def publish(self, uri: str, version: int, diagnostics: Iterable[Diagnostic]) -> bool:
        record = PublishedDiagnostics(uri=uri, version=version, diagnostics=tuple(diagnostics))
        async with self._lock:
            current = self._published.get(uri)
            if current is not None and current.version > version:
                logger.debug(
                    "dropping diagnostics for %s v%d, v%d already published",
                    uri,
                    version,
                    current.version,
                )
                return False
            self._published[uri] = record
        await self._notify(record)
        return True

    async def clear(self, uri: str) -> None:
        async with self._lock:
            current = self._published.get(uri)
            version = current.version if current else 0
            record = PublishedDiagnostics(uri=uri, version=version, diagnostics=())
            self._published[uri] = record
        await self._notify(record)

    async def get(self, uri: str) -> PublishedDiagnostics | None:
        async with self._lock:
            return self._published.get(uri)

    async def _notify(self, record: PublishedDiagnostics) -> None:
        for listener in self._listeners:
            try:
                await listener(record)
            except Exception as exc:
                logger.error(f"diagnostics listener failed for {record.uri}: {exc}", exc_info=True)

    def reset(self) -> None:
        self._published.clear()
