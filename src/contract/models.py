"""Artifact record models exposed by the contract."""

from artifacts.models.artifacts.diagnostics import DiagnosticRecord, SourceSpan
from artifacts.models.artifacts.summary import RunSummary

__all__ = ["DiagnosticRecord", "RunSummary", "SourceSpan"]
