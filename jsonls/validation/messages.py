"""Diagnostic message templates and schema-declared overrides."""

from __future__ import annotations

from typing import Any

_TEMPLATES = {
    "type": "Incorrect type at {at}",
    "required": "Missing required property at {at}",
    "enum": "Value at {at} is not one of the allowed values",
    "minLength": "String at {at} is too short",
    "maxLength": "String at {at} is too long",
    "minimum": "Number at {at} is below the minimum",
    "maximum": "Number at {at} is above the maximum",
    "pattern": "String at {at} does not match the required pattern",
    "additionalProperties": "Additional property not allowed at {at}",
    "const": "Value at {at} must match the expected constant",
    "uniqueItems": "Array at {at} must have unique items",
    "minItems": "Array at {at} has too few items",
    "maxItems": "Array at {at} has too many items",
    "format": "Value at {at} does not match the expected format",
}
_FALLBACK = "Schema validation failed at {at} ({keyword})"


def build_message(keyword: str, instance_path: str) -> str:
    at = "root" if instance_path in ("", "/") else f'"{instance_path}"'
    return _TEMPLATES.get(keyword, _FALLBACK).format(at=at, keyword=keyword)


def custom_message(schema: Any, keyword: str) -> str | None:
    """``errorMessage`` declared on ``schema``: a string, or a per-keyword map."""
    if not isinstance(schema, dict):
        return None
    declared = schema.get("errorMessage")
    if isinstance(declared, str):
        return declared
    if isinstance(declared, dict):
        message = declared.get(keyword)
        if isinstance(message, str):
            return message
    return None
