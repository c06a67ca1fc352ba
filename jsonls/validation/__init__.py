"""Validation of documents against resolved schemas."""

from .diagnostics import Diagnostic, Range, Severity
from .dialects import DialectRegistry
from .validator import SchemaValidator

__all__ = ["DialectRegistry", "Diagnostic", "Range", "SchemaValidator", "Severity"]
