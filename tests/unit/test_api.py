"""Unit tests for the HTTP surface and configuration loading."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from jsonls.config import get_server_config, load_server_config
from jsonls.main import app

CONFIG_TEMPLATE = """
fetch:
  timeout_seconds: 2
  user_agent: jsonls-test/0.1
catalog:
  enabled: false
diagnostics:
  source: jsonls-test
schemas:
  - uri: mem://person
    pattern: "*.person.json"
    schema:
      type: object
      properties:
        name:
          type: string
      required: [name]
  - path: address.schema.json
    pattern: "*.address.json"
"""


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    (tmp_path / "address.schema.json").write_text(
        json.dumps({"type": "object", "properties": {"city": {"type": "string"}}})
    )
    path = tmp_path / "server.yaml"
    path.write_text(CONFIG_TEMPLATE)
    monkeypatch.setenv("JSONLS_CONFIG_PATH", str(path))
    get_server_config.cache_clear()
    yield path
    get_server_config.cache_clear()


@pytest.fixture
def client(config_path):
    with TestClient(app) as test_client:
        yield test_client


class TestServerConfig:
    def test_load_sections(self, config_path):
        config = load_server_config(config_path)

        assert config.fetch.timeout_seconds == 2.0
        assert config.fetch.user_agent == "jsonls-test/0.1"
        assert "application/json" in config.fetch.accept
        assert config.catalog.enabled is False
        assert config.diagnostics.source == "jsonls-test"
        assert [entry.pattern for entry in config.schemas] == ["*.person.json", "*.address.json"]
        assert config.schemas[1].path.name == "address.schema.json"
        assert config.schemas[1].path.exists()
        assert config.schemas[1].uri.startswith("file://")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_server_config(tmp_path / "absent.yaml")

    def test_default_config_loads(self, monkeypatch):
        monkeypatch.delenv("JSONLS_CONFIG_PATH", raising=False)
        get_server_config.cache_clear()
        try:
            config = get_server_config()
        finally:
            get_server_config.cache_clear()
        assert config.catalog.enabled is True
        assert config.schemas == ()


class TestDocumentRoutes:
    def test_open_reports_diagnostics(self, client):
        response = client.post(
            "/documents/open",
            json={"uri": "file:///work/ada.person.json", "text": '{"name": 1}'},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["version"] == 1
        assert body["schema"] == {"state": "resolved", "uri": "mem://person"}
        assert body["diagnostics"][0]["code"] == "type"
        assert body["diagnostics"][0]["source"] == "jsonls-test"

    def test_change_then_fetch_diagnostics(self, client):
        client.post("/documents/open", json={"uri": "file:///work/ada.person.json", "text": "{}"})
        client.post(
            "/documents/change",
            json={"uri": "file:///work/ada.person.json", "text": '{"name": "Ada"}'},
        )

        response = client.get("/documents/diagnostics", params={"uri": "file:///work/ada.person.json"})

        assert response.status_code == 200
        assert response.json() == {
            "uri": "file:///work/ada.person.json",
            "version": 2,
            "diagnostics": [],
        }

    def test_schema_from_config_file(self, client):
        response = client.post(
            "/documents/open",
            json={"uri": "file:///work/home.address.json", "text": '{"city": 10}'},
        )
        assert [d["code"] for d in response.json()["diagnostics"]] == ["type"]

    def test_close(self, client):
        client.post("/documents/open", json={"uri": "file:///work/a.json", "text": "{}"})

        closed = client.post("/documents/close", json={"uri": "file:///work/a.json"})
        missing = client.post("/documents/close", json={"uri": "file:///work/a.json"})

        assert closed.status_code == 202
        assert missing.status_code == 404

    def test_missing_fields(self, client):
        response = client.post("/documents/open", json={"uri": "file:///work/a.json"})
        assert response.status_code == 422
        assert "text is required" in response.json()["detail"]

    def test_unknown_diagnostics(self, client):
        response = client.get("/documents/diagnostics", params={"uri": "file:///work/none.json"})
        assert response.status_code == 404

    def test_schema_at_offset(self, client):
        client.post(
            "/documents/open",
            json={"uri": "file:///work/ada.person.json", "text": '{"name": "Ada"}'},
        )

        response = client.get(
            "/documents/schema", params={"uri": "file:///work/ada.person.json", "offset": 10}
        )
        missing = client.get("/documents/schema", params={"uri": "file:///work/x.json", "offset": 0})

        assert response.json()["schema"] == {"type": "string"}
        assert missing.status_code == 404


class TestSchemaRoutes:
    def test_register_revalidates_open_documents(self, client):
        client.post("/documents/open", json={"uri": "file:///work/order.json", "text": '{"id": "x"}'})

        response = client.post(
            "/schemas",
            json={
                "uri": "mem://order",
                "pattern": "order.json",
                "schema": {"properties": {"id": {"type": "integer"}}},
            },
        )

        assert response.status_code == 201
        assert response.json()["revalidated"] == ["file:///work/order.json"]
        diagnostics = client.get("/documents/diagnostics", params={"uri": "file:///work/order.json"})
        assert [d["code"] for d in diagnostics.json()["diagnostics"]] == ["type"]

    def test_register_rejects_non_object(self, client):
        response = client.post("/schemas", json={"uri": "mem://bad", "schema": [1, 2]})
        assert response.status_code == 422


class TestAdminRoutes:
    def test_health(self, client):
        body = client.get("/admin/health").json()
        assert body["status"] == "healthy"
        assert body["catalog_loaded"] is False

    def test_stats(self, client):
        client.post("/documents/open", json={"uri": "file:///work/ada.person.json", "text": "{}"})

        body = client.get("/admin/stats").json()

        assert body["registered_schemas"] == 2
        assert body["open_documents"] == 1
        assert body["fetch_cache"] == {"loaded": 0, "pending": 0, "failed": 0}
        assert body["active_dialects"] == ["draft-07"]
        assert body["catalog_entries"] == 0

    def test_config(self, client):
        body = client.get("/admin/config").json()
        assert body["catalog"]["enabled"] is False
        assert body["diagnostics_source"] == "jsonls-test"
        assert body["preloaded_schemas"][0] == {"uri": "mem://person", "pattern": "*.person.json"}
