"""Validates a JSON document against a schema file and prints LSP diagnostics."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from jsonls.document.store import DocumentStore
from jsonls.schema.associations import ResolvedSchema
from jsonls.schema.registry import SchemaRegistry
from jsonls.transport.codec import dumps
from jsonls.validation.validator import SchemaValidator


def check(document_path: Path, schema_path: Path) -> list[dict]:
    registry = SchemaRegistry()
    schema_uri = schema_path.resolve().as_uri()
    schema = registry.register_file(schema_path, schema_uri)
    store = DocumentStore()
    document = store.open(document_path.resolve().as_uri(), document_path.read_text(encoding="utf-8"))
    validator = SchemaValidator(registry)
    diagnostics = validator.validate(ResolvedSchema(schema, schema_uri), document)
    return [diagnostic.to_lsp() for diagnostic in diagnostics]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("document", type=Path)
    parser.add_argument("schema", type=Path)
    args = parser.parse_args(argv)
    diagnostics = check(args.document, args.schema)
    sys.stdout.write(dumps(diagnostics, indent=True).decode() + "\n")
    return 1 if diagnostics else 0


if __name__ == "__main__":
    sys.exit(main())
