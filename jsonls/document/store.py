"""Single-slot cache of parsed documents keyed by URI."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .parser import ParseError, ParseNode, parse
from .position import TextDocument

logger = logging.getLogger(__name__)


class DocumentNotOpenError(KeyError):
    """Raised when an operation targets a document that is not open."""


@dataclass(frozen=True)
class ParsedDocument:
    uri: str
    version: int
    text_document: TextDocument
    root: ParseNode | None
    errors: tuple[ParseError, ...]

    @property
    def has_syntax_errors(self) -> bool:
        return bool(self.errors)


class DocumentStore:
    """Holds the current parse of every open document.

    Every open/change installs a freshly parsed document; earlier trees are
    never patched, so paths computed against them cannot leak onto new text.
    """

    def __init__(self) -> None:
        self._documents: dict[str, ParsedDocument] = {}
        self._versions: dict[str, int] = {}

    def open(self, uri: str, text: str) -> ParsedDocument:
        return self._install(uri, text)

    def change(self, uri: str, text: str) -> ParsedDocument:
        if uri not in self._documents:
            logger.debug("change for unopened document %s, treating as open", uri)
        return self._install(uri, text)

    def close(self, uri: str) -> None:
        if self._documents.pop(uri, None) is None:
            raise DocumentNotOpenError(uri)

    def get(self, uri: str) -> ParsedDocument | None:
        return self._documents.get(uri)

    def require(self, uri: str) -> ParsedDocument:
        try:
            return self._documents[uri]
        except KeyError as exc:
            raise DocumentNotOpenError(uri) from exc

    def is_current(self, document: ParsedDocument) -> bool:
        current = self._documents.get(document.uri)
        return current is not None and current.version == document.version

    def uris(self) -> list[str]:
        return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def reset(self) -> None:
        self._documents.clear()
        self._versions.clear()

    def _install(self, uri: str, text: str) -> ParsedDocument:
        # Versions keep increasing across close/reopen so stale results from
        # an earlier session of the same URI are still recognised as stale.
        version = self._versions.get(uri, 0) + 1
        self._versions[uri] = version
        result = parse(text)
        document = ParsedDocument(
            uri=uri,
            version=version,
            text_document=TextDocument(uri, text, version),
            root=result.root,
            errors=result.errors,
        )
        self._documents[uri] = document
        return document
