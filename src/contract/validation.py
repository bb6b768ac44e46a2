"""Validation helpers for fieldinit contract artifacts."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import orjson
from pydantic import ValidationError

from contract.artifacts import (
    ARTIFACT_SCHEMA_VERSION,
    ARTIFACT_SPECS,
)
from contract.models import DiagnosticRecord, RunSummary

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True)
class ValidationMessage:
    artifact: str
    path: Path
    message: str
    line: int | None = None

    def location(self) -> str:
        if self.line is None:
            return str(self.path)
        return f"{self.path}:{self.line}"

    def to_dict(self) -> dict[str, object]:
        return {
            "artifact": self.artifact,
            "path": str(self.path),
            "line": self.line,
            "message": self.message,
        }


@dataclass
class ValidationResult:
    errors: list[ValidationMessage] = field(default_factory=list)
    warnings: list[ValidationMessage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error(self, artifact: str, path: Path, message: str, line: int | None = None) -> None:
        self.errors.append(ValidationMessage(artifact, path, message, line))


def validate_artifacts(artifacts_dir: Path) -> ValidationResult:
    """Check both artifacts exist, parse, match their schema and agree."""
    result = ValidationResult()

    if not artifacts_dir.exists():
        result.error("artifacts_dir", artifacts_dir, "Artifacts directory does not exist.")
        return result

    if not artifacts_dir.is_dir():
        result.error("artifacts_dir", artifacts_dir, "Artifacts path is not a directory.")
        return result

    records: list[DiagnosticRecord] | None = None
    summary: RunSummary | None = None
    for artifact_name, spec in ARTIFACT_SPECS.items():
        path = artifacts_dir / spec.filename
        if not path.exists():
            result.error(artifact_name, path, "Required artifact file is missing.")
            continue

        if spec.format == "jsonl":
            records = _validate_diagnostics(artifact_name, path, result)
        elif spec.format == "json":
            summary = _validate_summary(artifact_name, path, result)
        else:
            result.error(artifact_name, path, f"Unsupported artifact format: {spec.format}.")

    if records is not None and summary is not None:
        _check_consistency(artifacts_dir, records, summary, result)

    return result


def _validate_diagnostics(
    artifact_name: str, path: Path, result: ValidationResult
) -> list[DiagnosticRecord] | None:
    try:
        handle = path.open("rb")
    except OSError as exc:
        result.error(artifact_name, path, f"Failed to read file: {exc}.")
        return None

    records: list[DiagnosticRecord] = []
    with handle:
        for line_number, raw_line in enumerate(handle, 1):
            line = raw_line.strip()
            if not line:
                continue
            try:
                data = orjson.loads(line)
            except orjson.JSONDecodeError as exc:
                result.error(artifact_name, path, f"Invalid JSON: {exc}.", line_number)
                continue

            try:
                record = DiagnosticRecord.model_validate(data)
            except ValidationError as exc:
                result.error(
                    artifact_name, path, f"Schema validation failed: {exc}.", line_number
                )
                continue

            if not _check_schema_version(
                artifact_name, path, line_number, data, record.schema_version, result
            ):
                continue
            records.append(record)

    return records


def _validate_summary(
    artifact_name: str, path: Path, result: ValidationResult
) -> RunSummary | None:
    try:
        raw = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        result.error(artifact_name, path, f"Invalid JSON: {exc}.")
        return None

    if not isinstance(raw, dict):
        result.error(artifact_name, path, "Expected JSON object for summary.json.")
        return None

    try:
        summary = RunSummary.model_validate(raw)
    except ValidationError as exc:
        result.error(artifact_name, path, f"Schema validation failed: {exc}.")
        return None

    if not _check_schema_version(
        artifact_name, path, None, raw, summary.schema_version, result
    ):
        return None
    return summary


def _check_schema_version(
    artifact_name: str,
    path: Path,
    line: int | None,
    data: object,
    schema_version: int,
    result: ValidationResult,
) -> bool:
    if not isinstance(data, dict) or "schema_version" not in data:
        result.warnings.append(
            ValidationMessage(
                artifact=artifact_name,
                path=path,
                line=line,
                message=(
                    f"Missing schema_version; defaulted to {ARTIFACT_SCHEMA_VERSION}."
                ),
            )
        )
        return True

    if schema_version != ARTIFACT_SCHEMA_VERSION:
        result.error(
            artifact_name,
            path,
            (
                "Schema version mismatch: "
                f"expected {ARTIFACT_SCHEMA_VERSION}, got {schema_version}."
            ),
            line,
        )
        return False
    return True


def _check_consistency(
    artifacts_dir: Path,
    records: list[DiagnosticRecord],
    summary: RunSummary,
    result: ValidationResult,
) -> None:
    path = artifacts_dir / ARTIFACT_SPECS["summary"].filename
    if summary.diagnostic_count != len(records):
        result.error(
            "summary",
            path,
            (
                f"diagnostic_count is {summary.diagnostic_count} but "
                f"diagnostics.jsonl holds {len(records)} records."
            ),
        )

    by_rule = dict(Counter(record.rule_id for record in records))
    if summary.diagnostics_by_rule != by_rule:
        result.error(
            "summary",
            path,
            "diagnostics_by_rule does not match the records in diagnostics.jsonl.",
        )

    files = set(summary.files)
    for record in records:
        if record.span.path not in files:
            result.warnings.append(
                ValidationMessage(
                    artifact="diagnostics",
                    path=artifacts_dir / ARTIFACT_SPECS["diagnostics"].filename,
                    message=f"Diagnostic refers to unlisted file {record.span.path}.",
                )
            )
            break


__all__ = [
    "ValidationMessage",
    "ValidationResult",
    "validate_artifacts",
]
