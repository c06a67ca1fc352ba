"""Human-readable messages for parse errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .parser import ParseError, ParseErrorCode

TRAILING_COMMA_MESSAGE = "Trailing comma not allowed"

_MESSAGES = {
    ParseErrorCode.INVALID_SYMBOL: "Invalid JSON symbol",
    ParseErrorCode.INVALID_NUMBER_FORMAT: "Invalid number format",
    ParseErrorCode.VALUE_EXPECTED: "Value expected",
    ParseErrorCode.PROPERTY_NAME_EXPECTED: "Property name expected",
    ParseErrorCode.COLON_EXPECTED: "Colon expected",
    ParseErrorCode.COMMA_EXPECTED: "Comma expected",
    ParseErrorCode.CLOSE_BRACE_EXPECTED: "Closing brace expected",
    ParseErrorCode.CLOSE_BRACKET_EXPECTED: "Closing bracket expected",
    ParseErrorCode.END_OF_FILE_EXPECTED: "Unexpected content after document end",
    ParseErrorCode.INVALID_COMMENT_TOKEN: "Comments are not permitted in JSON",
    ParseErrorCode.UNEXPECTED_END_OF_COMMENT: "Unterminated comment",
    ParseErrorCode.UNEXPECTED_END_OF_STRING: "Unterminated string",
    ParseErrorCode.UNEXPECTED_END_OF_NUMBER: "Incomplete number",
    ParseErrorCode.INVALID_UNICODE: "Invalid unicode escape sequence",
    ParseErrorCode.INVALID_ESCAPE_CHARACTER: "Invalid escape character in string",
    ParseErrorCode.INVALID_CHARACTER: "Invalid control character in string",
    ParseErrorCode.NESTING_TOO_DEEP: "Nesting too deep",
}


@dataclass(frozen=True)
class NormalizedError:
    offset: int
    length: int
    message: str


def normalize_errors(errors: Sequence[ParseError]) -> list[NormalizedError]:
    result: list[NormalizedError] = []
    index = 0
    while index < len(errors):
        error = errors[index]
        following = errors[index + 1] if index + 1 < len(errors) else None
        # A trailing comma surfaces as a property-name error paired with a
        # value error at the same offset.
        if (
            error.code is ParseErrorCode.PROPERTY_NAME_EXPECTED
            and following is not None
            and following.code is ParseErrorCode.VALUE_EXPECTED
            and following.offset == error.offset
        ):
            result.append(NormalizedError(error.offset, error.length, TRAILING_COMMA_MESSAGE))
            index += 2
            continue
        result.append(
            NormalizedError(error.offset, error.length, _MESSAGES.get(error.code, "Invalid JSON"))
        )
        index += 1
    return result
