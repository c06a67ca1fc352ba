"""Document sessions: lifecycle orchestration and diagnostics publishing."""

from .publisher import DiagnosticsPublisher, PublishedDiagnostics
from .service import DocumentService, RevalidationLedger, ValidationOutcome

__all__ = [
    "DiagnosticsPublisher",
    "DocumentService",
    "PublishedDiagnostics",
    "RevalidationLedger",
    "ValidationOutcome",
]
