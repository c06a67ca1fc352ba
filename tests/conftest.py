"""Shared fixtures for unit tests."""

from __future__ import annotations

from typing import Any

import httpx
import pytest


class FakeSchemaServer:
    """Serves canned JSON bodies by URL through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.calls: list[str] = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        body = self.routes.get(url)
        if body is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle))


@pytest.fixture
def schema_server() -> FakeSchemaServer:
    return FakeSchemaServer()


@pytest.fixture
def person_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
        "required": ["name"],
    }
