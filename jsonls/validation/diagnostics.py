"""Positioned diagnostics in the host editor's shape."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from ..document.position import Position, TextDocument

DEFAULT_SOURCE = "jsonls"


class Severity(IntEnum):
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def from_offsets(cls, document: TextDocument, offset: int, length: int) -> "Range":
        return cls(document.position_at(offset), document.position_at(offset + length))

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": {"line": self.start.line, "character": self.start.character},
            "end": {"line": self.end.line, "character": self.end.character},
        }


DOCUMENT_START = Range(Position(0, 0), Position(0, 0))


@dataclass(frozen=True)
class Diagnostic:
    range: Range
    message: str
    severity: Severity = Severity.ERROR
    source: str = DEFAULT_SOURCE
    code: str | None = None
    instance_path: str | None = None

    def to_lsp(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "range": self.range.to_dict(),
            "severity": int(self.severity),
            "message": self.message,
            "source": self.source,
        }
        if self.code is not None:
            payload["code"] = self.code
        return payload
