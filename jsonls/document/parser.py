"""Tolerant JSON parser producing an offset-annotated parse tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional, Union


class ParseErrorCode(IntEnum):
    INVALID_SYMBOL = 1
    INVALID_NUMBER_FORMAT = 2
    PROPERTY_NAME_EXPECTED = 3
    VALUE_EXPECTED = 4
    COLON_EXPECTED = 5
    COMMA_EXPECTED = 6
    CLOSE_BRACE_EXPECTED = 7
    CLOSE_BRACKET_EXPECTED = 8
    END_OF_FILE_EXPECTED = 9
    INVALID_COMMENT_TOKEN = 10
    UNEXPECTED_END_OF_COMMENT = 11
    UNEXPECTED_END_OF_STRING = 12
    UNEXPECTED_END_OF_NUMBER = 13
    INVALID_UNICODE = 14
    INVALID_ESCAPE_CHARACTER = 15
    INVALID_CHARACTER = 16
    NESTING_TOO_DEEP = 17


class NodeKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    PROPERTY = "property"


@dataclass(frozen=True)
class ParseError:
    code: ParseErrorCode
    offset: int
    length: int


@dataclass(eq=False)
class ParseNode:
    kind: NodeKind
    offset: int
    length: int = 0
    value: Any = None
    parent: Optional["ParseNode"] = field(default=None, repr=False)
    children: list["ParseNode"] = field(default_factory=list, repr=False)
    colon_offset: int | None = None

    @property
    def end(self) -> int:
        return self.offset + self.length

    def contains(self, offset: int, include_right_bound: bool = False) -> bool:
        return self.offset <= offset < self.end or (
            include_right_bound and offset == self.end
        )


@dataclass(frozen=True)
class ParseResult:
    root: ParseNode | None
    errors: tuple[ParseError, ...]


class _Token(Enum):
    OPEN_BRACE = "{"
    CLOSE_BRACE = "}"
    OPEN_BRACKET = "["
    CLOSE_BRACKET = "]"
    COMMA = ","
    COLON = ":"
    NULL = "null"
    TRUE = "true"
    FALSE = "false"
    STRING = "string"
    NUMBER = "number"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    TRIVIA = "trivia"
    UNKNOWN = "unknown"
    EOF = "eof"


_PUNCTUATION = {
    "{": _Token.OPEN_BRACE,
    "}": _Token.CLOSE_BRACE,
    "[": _Token.OPEN_BRACKET,
    "]": _Token.CLOSE_BRACKET,
    ",": _Token.COMMA,
    ":": _Token.COLON,
}
_KEYWORDS = {"null": _Token.NULL, "true": _Token.TRUE, "false": _Token.FALSE}
_WHITESPACE = " \t\r\n"
_WORD_STOP = _WHITESPACE + '{}[],:"/'
_ESCAPES = {'"': '"', "\\": "\\", "/": "/", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}
_HEX = "0123456789abcdefABCDEF"

# Containers nested deeper than this are kept as empty nodes spanning their text.
MAX_NESTING_DEPTH = 128


class _Scanner:
    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self.token = _Token.EOF
        self.token_offset = 0
        self.token_value: Any = None
        self.token_error: ParseErrorCode | None = None

    @property
    def token_length(self) -> int:
        return self._pos - self.token_offset

    def scan(self) -> _Token:
        text = self._text
        self.token_offset = self._pos
        self.token_value = None
        self.token_error = None
        if self._pos >= len(text):
            self.token = _Token.EOF
            return self.token
        char = text[self._pos]
        if char in _WHITESPACE:
            while self._pos < len(text) and text[self._pos] in _WHITESPACE:
                self._pos += 1
            self.token = _Token.TRIVIA
        elif char in _PUNCTUATION:
            self._pos += 1
            self.token = _PUNCTUATION[char]
        elif char == '"':
            self._pos += 1
            self.token_value = self._scan_string()
            self.token = _Token.STRING
        elif char == "/" and text.startswith("//", self._pos):
            end = len(text)
            for terminator in ("\n", "\r"):
                found = text.find(terminator, self._pos)
                if found != -1:
                    end = min(end, found)
            self._pos = end
            self.token = _Token.LINE_COMMENT
        elif char == "/" and text.startswith("/*", self._pos):
            end = text.find("*/", self._pos + 2)
            if end == -1:
                self._pos = len(text)
                self.token_error = ParseErrorCode.UNEXPECTED_END_OF_COMMENT
            else:
                self._pos = end + 2
            self.token = _Token.BLOCK_COMMENT
        elif char == "-" or char.isdigit():
            self.token_value = self._scan_number()
            self.token = _Token.NUMBER
        else:
            start = self._pos
            while self._pos < len(text) and text[self._pos] not in _WORD_STOP:
                self._pos += 1
            if self._pos == start:
                self._pos += 1
            self.token = _KEYWORDS.get(text[start:self._pos], _Token.UNKNOWN)
        return self.token

    def _scan_string(self) -> str:
        text = self._text
        chunks: list[str] = []
        start = self._pos
        while True:
            if self._pos >= len(text):
                chunks.append(text[start:self._pos])
                self.token_error = ParseErrorCode.UNEXPECTED_END_OF_STRING
                break
            char = text[self._pos]
            if char == '"':
                chunks.append(text[start:self._pos])
                self._pos += 1
                break
            if char == "\\":
                chunks.append(text[start:self._pos])
                self._pos += 1
                if self._pos >= len(text):
                    self.token_error = ParseErrorCode.UNEXPECTED_END_OF_STRING
                    break
                escape = text[self._pos]
                self._pos += 1
                if escape in _ESCAPES:
                    chunks.append(_ESCAPES[escape])
                elif escape == "u":
                    code = self._read_hex4(self._pos)
                    if code is None:
                        self.token_error = ParseErrorCode.INVALID_UNICODE
                    else:
                        self._pos += 4
                        # An escaped surrogate pair decodes to one code point.
                        if 0xD800 <= code <= 0xDBFF and text.startswith("\\u", self._pos):
                            low = self._read_hex4(self._pos + 2)
                            if low is not None and 0xDC00 <= low <= 0xDFFF:
                                code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                                self._pos += 6
                        chunks.append(chr(code))
                else:
                    self.token_error = ParseErrorCode.INVALID_ESCAPE_CHARACTER
                start = self._pos
                continue
            if char in "\r\n":
                chunks.append(text[start:self._pos])
                self.token_error = ParseErrorCode.UNEXPECTED_END_OF_STRING
                break
            if ord(char) < 0x20:
                self.token_error = ParseErrorCode.INVALID_CHARACTER
            self._pos += 1
        return "".join(chunks)

    def _read_hex4(self, start: int) -> int | None:
        digits = self._text[start:start + 4]
        if len(digits) == 4 and all(d in _HEX for d in digits):
            return int(digits, 16)
        return None

    def _scan_number(self) -> str:
        text = self._text
        start = self._pos
        if text[self._pos] == "-":
            self._pos += 1
        if self._pos < len(text) and text[self._pos] == "0":
            self._pos += 1
        elif self._pos < len(text) and text[self._pos].isdigit():
            self._consume_digits()
        else:
            self.token_error = ParseErrorCode.UNEXPECTED_END_OF_NUMBER
            return text[start:self._pos]
        if self._pos < len(text) and text[self._pos] == ".":
            self._pos += 1
            if not self._consume_digits():
                self.token_error = ParseErrorCode.UNEXPECTED_END_OF_NUMBER
                return text[start:self._pos]
        if self._pos < len(text) and text[self._pos] in "eE":
            self._pos += 1
            if self._pos < len(text) and text[self._pos] in "+-":
                self._pos += 1
            if not self._consume_digits():
                self.token_error = ParseErrorCode.UNEXPECTED_END_OF_NUMBER
        return text[start:self._pos]

    def _consume_digits(self) -> bool:
        start = self._pos
        while self._pos < len(self._text) and self._text[self._pos].isdigit():
            self._pos += 1
        return self._pos > start


class _Parser:
    def __init__(self, text: str) -> None:
        self._scanner = _Scanner(text)
        self._errors: list[ParseError] = []
        self._depth = 0

    @property
    def _token(self) -> _Token:
        return self._scanner.token

    def parse(self) -> ParseResult:
        self._scan_next()
        root: ParseNode | None = None
        if self._token is _Token.EOF:
            self._error(ParseErrorCode.VALUE_EXPECTED)
        else:
            root = self._parse_value(None)
            if root is None:
                self._error(ParseErrorCode.VALUE_EXPECTED)
            elif self._token is not _Token.EOF:
                self._error(ParseErrorCode.END_OF_FILE_EXPECTED)
        return ParseResult(root=root, errors=tuple(self._errors))

    def _scan_next(self) -> _Token:
        scanner = self._scanner
        while True:
            token = scanner.scan()
            if scanner.token_error is not None:
                self._error(scanner.token_error)
            if token in (_Token.LINE_COMMENT, _Token.BLOCK_COMMENT):
                self._error(ParseErrorCode.INVALID_COMMENT_TOKEN)
            elif token is _Token.UNKNOWN:
                self._error(ParseErrorCode.INVALID_SYMBOL)
            elif token is not _Token.TRIVIA:
                return token

    def _error(
        self,
        code: ParseErrorCode,
        skip_until_after: tuple[_Token, ...] = (),
        skip_until: tuple[_Token, ...] = (),
    ) -> None:
        scanner = self._scanner
        self._errors.append(ParseError(code, scanner.token_offset, scanner.token_length))
        if not (skip_until_after or skip_until):
            return
        token = self._token
        while token is not _Token.EOF:
            if token in skip_until_after:
                self._scan_next()
                break
            if token in skip_until:
                break
            token = self._scan_next()

    def _leaf(self, kind: NodeKind, value: Any, parent: ParseNode | None) -> ParseNode:
        scanner = self._scanner
        node = ParseNode(kind, scanner.token_offset, scanner.token_length, value, parent)
        if parent is not None:
            parent.children.append(node)
        self._scan_next()
        return node

    def _parse_value(self, parent: ParseNode | None) -> ParseNode | None:
        token = self._token
        if token in (_Token.OPEN_BRACE, _Token.OPEN_BRACKET) and self._depth >= MAX_NESTING_DEPTH:
            return self._skip_nested(parent)
        if token is _Token.OPEN_BRACE:
            return self._parse_object(parent)
        if token is _Token.OPEN_BRACKET:
            return self._parse_array(parent)
        if token is _Token.STRING:
            return self._leaf(NodeKind.STRING, self._scanner.token_value, parent)
        if token is _Token.NUMBER:
            return self._leaf(NodeKind.NUMBER, self._number_value(), parent)
        if token is _Token.NULL:
            return self._leaf(NodeKind.NULL, None, parent)
        if token in (_Token.TRUE, _Token.FALSE):
            return self._leaf(NodeKind.BOOLEAN, token is _Token.TRUE, parent)
        return None

    def _number_value(self) -> Union[int, float]:
        raw = self._scanner.token_value
        try:
            if any(marker in raw for marker in ".eE"):
                return float(raw)
            return int(raw)
        except ValueError:
            self._errors.append(
                ParseError(
                    ParseErrorCode.INVALID_NUMBER_FORMAT,
                    self._scanner.token_offset,
                    self._scanner.token_length,
                )
            )
            return 0

    def _parse_object(self, parent: ParseNode | None) -> ParseNode:
        node = self._open_container(NodeKind.OBJECT, parent)
        needs_comma = False
        while self._token not in (_Token.CLOSE_BRACE, _Token.EOF):
            if self._token is _Token.COMMA:
                if not needs_comma:
                    self._error(ParseErrorCode.VALUE_EXPECTED)
                self._scan_next()
            elif needs_comma:
                self._error(ParseErrorCode.COMMA_EXPECTED)
            if not self._parse_property(node):
                self._error(
                    ParseErrorCode.VALUE_EXPECTED,
                    skip_until=(_Token.CLOSE_BRACE, _Token.COMMA),
                )
            needs_comma = True
        self._close_container(node, _Token.CLOSE_BRACE, ParseErrorCode.CLOSE_BRACE_EXPECTED)
        return node

    def _parse_property(self, obj: ParseNode) -> bool:
        scanner = self._scanner
        if self._token is not _Token.STRING:
            self._error(
                ParseErrorCode.PROPERTY_NAME_EXPECTED,
                skip_until=(_Token.CLOSE_BRACE, _Token.COMMA),
            )
            return False
        prop = ParseNode(NodeKind.PROPERTY, scanner.token_offset, parent=obj)
        obj.children.append(prop)
        key = self._leaf(NodeKind.STRING, scanner.token_value, prop)
        end = key.end
        if self._token is _Token.COLON:
            prop.colon_offset = scanner.token_offset
            end = scanner.token_offset + scanner.token_length
            self._scan_next()
            value = self._parse_value(prop)
            if value is None:
                self._error(
                    ParseErrorCode.VALUE_EXPECTED,
                    skip_until=(_Token.CLOSE_BRACE, _Token.COMMA),
                )
            else:
                end = value.end
        else:
            self._error(
                ParseErrorCode.COLON_EXPECTED,
                skip_until=(_Token.CLOSE_BRACE, _Token.COMMA),
            )
        prop.length = end - prop.offset
        return True

    def _parse_array(self, parent: ParseNode | None) -> ParseNode:
        node = self._open_container(NodeKind.ARRAY, parent)
        needs_comma = False
        while self._token not in (_Token.CLOSE_BRACKET, _Token.EOF):
            if self._token is _Token.COMMA:
                if not needs_comma:
                    self._error(ParseErrorCode.VALUE_EXPECTED)
                self._scan_next()
            elif needs_comma:
                self._error(ParseErrorCode.COMMA_EXPECTED)
            if self._parse_value(node) is None:
                self._error(
                    ParseErrorCode.VALUE_EXPECTED,
                    skip_until=(_Token.CLOSE_BRACKET, _Token.COMMA),
                )
            needs_comma = True
        self._close_container(node, _Token.CLOSE_BRACKET, ParseErrorCode.CLOSE_BRACKET_EXPECTED)
        return node

    def _open_container(self, kind: NodeKind, parent: ParseNode | None) -> ParseNode:
        node = ParseNode(kind, self._scanner.token_offset, parent=parent)
        if parent is not None:
            parent.children.append(node)
        self._depth += 1
        self._scan_next()
        return node

    def _close_container(self, node: ParseNode, closer: _Token, code: ParseErrorCode) -> None:
        scanner = self._scanner
        self._depth -= 1
        if self._token is closer:
            node.length = scanner.token_offset + scanner.token_length - node.offset
            self._scan_next()
            return
        node.length = scanner.token_offset - node.offset
        self._error(code, skip_until_after=(closer,))

    def _skip_nested(self, parent: ParseNode | None) -> ParseNode:
        scanner = self._scanner
        kind = NodeKind.OBJECT if self._token is _Token.OPEN_BRACE else NodeKind.ARRAY
        node = ParseNode(kind, scanner.token_offset, parent=parent)
        if parent is not None:
            parent.children.append(node)
        self._error(ParseErrorCode.NESTING_TOO_DEEP)
        balance = 0
        end = scanner.token_offset
        while self._token is not _Token.EOF:
            if self._token in (_Token.OPEN_BRACE, _Token.OPEN_BRACKET):
                balance += 1
            elif self._token in (_Token.CLOSE_BRACE, _Token.CLOSE_BRACKET):
                balance -= 1
            end = scanner.token_offset + scanner.token_length
            self._scan_next()
            if balance == 0:
                break
        node.length = end - node.offset
        return node


def parse(text: str) -> ParseResult:
    """Parse ``text`` into a tree; never raises, errors are collected."""
    return _Parser(text).parse()


def node_at_offset(
    root: ParseNode | None, offset: int, include_right_bound: bool = False
) -> ParseNode | None:
    """Return the deepest node whose span contains ``offset``.

    Falls back to ``root`` when no node contains the offset.
    """
    if root is None:
        return None
    return _find_deepest(root, offset, include_right_bound) or root


def _find_deepest(
    node: ParseNode, offset: int, include_right_bound: bool
) -> ParseNode | None:
    if not node.contains(offset, include_right_bound):
        return None
    for child in node.children:
        if child.offset > offset:
            break
        found = _find_deepest(child, offset, include_right_bound)
        if found is not None:
            return found
    return node


def node_value(node: ParseNode | None) -> Any:
    if node is None:
        return None
    if node.kind is NodeKind.OBJECT:
        result: dict[str, Any] = {}
        for prop in node.children:
            if len(prop.children) == 2:
                result[prop.children[0].value] = node_value(prop.children[1])
        return result
    if node.kind is NodeKind.ARRAY:
        return [node_value(child) for child in node.children]
    if node.kind is NodeKind.PROPERTY:
        return node_value(node.children[1]) if len(node.children) == 2 else None
    return node.value


def node_path(node: ParseNode | None) -> list[Union[str, int]]:
    """Keys and indices leading from the root to ``node``."""
    path: list[Union[str, int]] = []
    while node is not None and node.parent is not None:
        parent = node.parent
        if node.kind is NodeKind.PROPERTY:
            path.append(node.children[0].value)
            node = parent
            continue
        if parent.kind is NodeKind.PROPERTY:
            path.append(parent.children[0].value)
            node = parent.parent
            continue
        if parent.kind is NodeKind.ARRAY:
            path.append(next(i for i, child in enumerate(parent.children) if child is node))
        node = parent
    path.reverse()
    return path
