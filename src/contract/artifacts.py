"""Artifact contract definitions.

Filenames, formats and the schema version written by ``fieldinit check`` are
the stable surface that downstream tooling (CI annotations, dashboards)
reads.
"""

from __future__ import annotations

from dataclasses import dataclass

# Bump whenever a record gains, loses or renames a field.
ARTIFACT_SCHEMA_VERSION = 1

DIAGNOSTICS_JSONL = "diagnostics.jsonl"
SUMMARY_JSON = "summary.json"


@dataclass(frozen=True)
class ArtifactSpec:
    """Specification for one contract artifact."""

    filename: str
    format: str
    required_fields_note: str


ARTIFACT_SPECS: dict[str, ArtifactSpec] = {
    "diagnostics": ArtifactSpec(
        filename=DIAGNOSTICS_JSONL,
        format="jsonl",
        required_fields_note="DiagnosticRecord fields required by contract.",
    ),
    "summary": ArtifactSpec(
        filename=SUMMARY_JSON,
        format="json",
        required_fields_note="RunSummary fields required by contract.",
    ),
}
