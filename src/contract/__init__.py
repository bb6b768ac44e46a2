"""Stable artifact contract surface for fieldinit-core.

Record models and validation are loaded lazily so that importing the
filename constants never pulls in the artifact writers.
"""

from contract.artifacts import (
    ARTIFACT_SCHEMA_VERSION,
    ARTIFACT_SPECS,
    DIAGNOSTICS_JSONL,
    SUMMARY_JSON,
    ArtifactSpec,
)


def __getattr__(name: str) -> object:
    if name in {"DiagnosticRecord", "RunSummary", "SourceSpan"}:
        from contract.models import DiagnosticRecord, RunSummary, SourceSpan

        return {
            "DiagnosticRecord": DiagnosticRecord,
            "RunSummary": RunSummary,
            "SourceSpan": SourceSpan,
        }[name]

    if name in {"ValidationMessage", "ValidationResult", "validate_artifacts"}:
        from contract.validation import (
            ValidationMessage,
            ValidationResult,
            validate_artifacts,
        )

        return {
            "ValidationMessage": ValidationMessage,
            "ValidationResult": ValidationResult,
            "validate_artifacts": validate_artifacts,
        }[name]

    msg = f"module 'contract' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "ARTIFACT_SCHEMA_VERSION",
    "ARTIFACT_SPECS",
    "DIAGNOSTICS_JSONL",
    "SUMMARY_JSON",
    "ArtifactSpec",
    "DiagnosticRecord",
    "RunSummary",
    "SourceSpan",
    "ValidationMessage",
    "ValidationResult",
    "validate_artifacts",
]
