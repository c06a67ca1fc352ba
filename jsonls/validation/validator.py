"""Schema validation of parsed documents, mapped back onto document ranges."""

from __future__ import annotations

import logging
from typing import Any

from jsonschema import ValidationError
from referencing import Registry

from ..document.errors import normalize_errors
from ..document.parser import ParseNode, node_value
from ..document.store import ParsedDocument
from ..schema.associations import ResolvedSchema
from ..schema.drafts import classify
from ..schema.pointer import join_pointer, resolve_instance_pointer
from ..schema.refs import RawSchema
from ..schema.registry import SchemaRegistry
from ..schema.walker import walk
from .dialects import DialectRegistry, build_engine_registry, schema_resource
from .diagnostics import DEFAULT_SOURCE, DOCUMENT_START, Diagnostic, Range
from .messages import build_message, custom_message

logger = logging.getLogger(__name__)


def document_to_instance(root: ParseNode | None) -> Any:
    return node_value(root)


class SchemaValidator:
    def __init__(
        self,
        registry: SchemaRegistry,
        dialects: DialectRegistry | None = None,
        *,
        source: str = DEFAULT_SOURCE,
    ) -> None:
        self._registry = registry
        self._dialects = dialects or DialectRegistry()
        self._source = source
        self._engine_registry: Registry | None = None
        self._engine_generation = -1

    def validate(
        self, resolved: ResolvedSchema | None, document: ParsedDocument
    ) -> list[Diagnostic]:
        """Diagnostics for ``document``.

        Syntax errors suppress schema validation. Unexpected failures inside
        the validation engine are logged and reported as "no errors".
        """
        if document.has_syntax_errors:
            return self.syntax_diagnostics(document)
        if resolved is None or document.root is None:
            return []
        try:
            return self._schema_diagnostics(resolved, document)
        except Exception as exc:
            logger.error(
                f"validation of {document.uri} against {resolved.uri} failed: {exc}",
                exc_info=True,
            )
            return []

    def syntax_diagnostics(self, document: ParsedDocument) -> list[Diagnostic]:
        text_document = document.text_document
        return [
            Diagnostic(
                range=Range.from_offsets(text_document, error.offset, error.length),
                message=error.message,
                source=self._source,
            )
            for error in normalize_errors(document.errors)
        ]

    def _schema_diagnostics(
        self, resolved: ResolvedSchema, document: ParsedDocument
    ) -> list[Diagnostic]:
        schema = resolved.schema
        validator_cls = self._dialects.activate(classify(schema))
        engine = self._current_engine_registry()
        if resolved.uri:
            # Relative $refs resolve against the schema URI.
            engine = engine.with_resource(resolved.uri, schema_resource(schema))
            root: Any = {"$ref": resolved.uri}
        else:
            root = schema
        validator = validator_cls(
            root,
            registry=engine,
            format_checker=validator_cls.FORMAT_CHECKER,
        )
        instance = document_to_instance(document.root)
        return [
            self._map_error(error, schema, document)
            for error in validator.iter_errors(instance)
        ]

    def _current_engine_registry(self) -> Registry:
        if self._engine_registry is None or self._engine_generation != self._registry.generation:
            self._engine_registry = build_engine_registry(self._registry.items())
            self._engine_generation = self._registry.generation
        return self._engine_registry

    def _map_error(
        self, error: ValidationError, schema: RawSchema, document: ParsedDocument
    ) -> Diagnostic:
        keyword = str(error.validator) if error.validator else "schema"
        segments = list(error.absolute_path)
        instance_path = join_pointer(segments)
        node = resolve_instance_pointer(document.root, instance_path)
        if node is not None:
            location = Range.from_offsets(document.text_document, node.offset, node.length)
        else:
            location = DOCUMENT_START
        message = build_message(keyword, instance_path)
        governing = walk(schema, segments, schema, known=self._registry.known())
        message = custom_message(governing, keyword) or message
        return Diagnostic(
            range=location,
            message=message,
            source=self._source,
            code=keyword,
            instance_path=instance_path,
        )
