"""Document parsing, positions, and the open-document store."""

from .parser import NodeKind, ParseError, ParseErrorCode, ParseNode, ParseResult, parse
from .store import DocumentNotOpenError, DocumentStore, ParsedDocument

__all__ = [
    "DocumentNotOpenError",
    "DocumentStore",
    "NodeKind",
    "ParseError",
    "ParseErrorCode",
    "ParseNode",
    "ParseResult",
    "ParsedDocument",
    "parse",
]
