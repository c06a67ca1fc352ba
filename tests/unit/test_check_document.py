"""Unit tests for the command-line document checker."""

from __future__ import annotations

import json

from scripts.check_document import check, main


def test_check_reports_positioned_diagnostics(tmp_path, person_schema):
    schema_path = tmp_path / "person.schema.json"
    schema_path.write_text(json.dumps(person_schema))
    document_path = tmp_path / "ada.json"
    document_path.write_text('{\n  "name": 42\n}')

    diagnostics = check(document_path, schema_path)

    assert len(diagnostics) == 1
    assert diagnostics[0]["code"] == "type"
    assert diagnostics[0]["range"]["start"] == {"line": 1, "character": 10}


def test_main_exit_code(tmp_path, person_schema, capsys):
    schema_path = tmp_path / "person.schema.json"
    schema_path.write_text(json.dumps(person_schema))
    valid = tmp_path / "valid.json"
    valid.write_text('{"name": "Ada"}')
    invalid = tmp_path / "invalid.json"
    invalid.write_text("{}")

    assert main([str(valid), str(schema_path)]) == 0
    assert capsys.readouterr().out.strip() == "[]"
    assert main([str(invalid), str(schema_path)]) == 1
    assert "Missing required property" in capsys.readouterr().out
