"""Model namespace for fieldinit artifact schemas."""

from artifacts.models.artifacts.diagnostics import (
    DiagnosticKind,
    DiagnosticRecord,
    SourceSpan,
)
from artifacts.models.artifacts.summary import RunSummary

__all__ = ["DiagnosticKind", "DiagnosticRecord", "RunSummary", "SourceSpan"]
