"""Offset <-> line/character conversion for document text."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    line: int
    character: int


class TextDocument:
    def __init__(self, uri: str, text: str, version: int = 0) -> None:
        self.uri = uri
        self.text = text
        self.version = version
        self._line_offsets = _compute_line_offsets(text)

    @property
    def line_count(self) -> int:
        return len(self._line_offsets)

    def position_at(self, offset: int) -> Position:
        """Line and character for ``offset``; characters count UTF-16 code units."""
        offset = max(0, min(offset, len(self.text)))
        line = bisect_right(self._line_offsets, offset) - 1
        return Position(line, _utf16_length(self.text, self._line_offsets[line], offset))

    def offset_at(self, position: Position) -> int:
        if position.line >= len(self._line_offsets):
            return len(self.text)
        if position.line < 0:
            return 0
        line_offset = self._line_offsets[position.line]
        if position.line + 1 < len(self._line_offsets):
            next_line = self._line_offsets[position.line + 1]
        else:
            next_line = len(self.text)
        offset = line_offset
        units = 0
        while offset < next_line and units < position.character:
            units += 2 if ord(self.text[offset]) > 0xFFFF else 1
            offset += 1
        return offset


def _utf16_length(text: str, start: int, end: int) -> int:
    return (end - start) + sum(1 for char in text[start:end] if ord(char) > 0xFFFF)


def _compute_line_offsets(text: str) -> list[int]:
    offsets = [0]
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\r":
            if index + 1 < len(text) and text[index + 1] == "\n":
                index += 1
            offsets.append(index + 1)
        elif char == "\n":
            offsets.append(index + 1)
        index += 1
    return offsets
