from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from analysis.report import DiagnosticKind
from artifacts.models import DiagnosticKind as RecordKind
from contract.artifacts import (
    ARTIFACT_SCHEMA_VERSION,
    ARTIFACT_SPECS,
    DIAGNOSTICS_JSONL,
    SUMMARY_JSON,
)
from contract.validation import (
    ValidationMessage,
    ValidationResult,
    validate_artifacts,
)


def _record(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "schema_version": ARTIFACT_SCHEMA_VERSION,
        "rule_id": "FI002",
        "kind": "field",
        "type_name": "Demo.Widget",
        "constructor": "Widget()",
        "members": ["count"],
        "message": "The field or property 'count' is used before initialization.",
        "span": {
            "path": "src/Widget.cs",
            "start_line": 7,
            "start_col": 13,
            "end_line": 7,
            "end_col": 18,
        },
    }
    record.update(overrides)
    return record


def _summary(**overrides: Any) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "schema_version": ARTIFACT_SCHEMA_VERSION,
        "file_count": 1,
        "type_count": 1,
        "constructor_count": 1,
        "truncated_constructor_count": 0,
        "diagnostic_count": 1,
        "diagnostics_by_rule": {"FI002": 1},
        "files": ["src/Widget.cs"],
    }
    summary.update(overrides)
    return summary


def _write_valid_artifacts(
    d: Path,
    records: list[dict[str, Any]] | None = None,
    summary: dict[str, Any] | None = None,
) -> None:
    """Write a minimal consistent artifact set to directory d."""
    d.mkdir(parents=True, exist_ok=True)
    if records is None:
        records = [_record()]
    (d / DIAGNOSTICS_JSONL).write_text(
        "".join(json.dumps(r) + "\n" for r in records), encoding="utf-8"
    )
    (d / SUMMARY_JSON).write_text(
        json.dumps(summary if summary is not None else _summary()), encoding="utf-8"
    )


def _messages_contain(messages: list[ValidationMessage], needle: str) -> bool:
    """Return True when any validation message contains the given substring."""
    return any(needle in message.message for message in messages)


# Group 1: Data class tests


def test_validation_message_location_with_line() -> None:
    """ValidationMessage.location returns path:line when line is present."""
    msg = ValidationMessage("diagnostics", Path("x.jsonl"), "bad", line=7)
    assert msg.location() == "x.jsonl:7"


def test_validation_message_location_without_line() -> None:
    """ValidationMessage.location returns only path when line is missing."""
    msg = ValidationMessage("summary", Path("x.json"), "bad")
    assert msg.location() == "x.json"


def test_validation_message_to_dict() -> None:
    msg = ValidationMessage("diagnostics", Path("x.jsonl"), "bad", line=3)
    assert msg.to_dict() == {
        "artifact": "diagnostics",
        "path": "x.jsonl",
        "line": 3,
        "message": "bad",
    }


def test_validation_result_ok_tracks_errors() -> None:
    result = ValidationResult()
    assert result.ok is True

    result.error("x", Path("a"), "boom")
    assert result.ok is False


# Group 2: Directory handling


def test_missing_directory() -> None:
    """validate_artifacts reports a missing artifacts directory."""
    result = validate_artifacts(Path("/nonexistent"))
    assert result.ok is False
    assert _messages_contain(result.errors, "Artifacts directory does not exist")


def test_not_a_directory(tmp_path: Path) -> None:
    file_path = tmp_path / "not-a-dir"
    file_path.write_text("x", encoding="utf-8")

    result = validate_artifacts(file_path)

    assert result.ok is False
    assert _messages_contain(result.errors, "Artifacts path is not a directory")


def test_missing_artifact_files(tmp_path: Path) -> None:
    """Each required artifact is reported when the directory is empty."""
    artifacts_dir = tmp_path / "artifacts"
    artifacts_dir.mkdir()

    result = validate_artifacts(artifacts_dir)

    assert result.ok is False
    assert len(result.errors) == len(ARTIFACT_SPECS)
    assert all("Required artifact file is missing" in m.message for m in result.errors)


# Group 3: Happy path


def test_valid_artifacts_pass(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(artifacts_dir)

    result = validate_artifacts(artifacts_dir)

    assert result.ok is True
    assert result.errors == []
    assert result.warnings == []


def test_empty_run_passes(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(
        artifacts_dir,
        records=[],
        summary=_summary(diagnostic_count=0, diagnostics_by_rule={}),
    )

    assert validate_artifacts(artifacts_dir).ok is True


# Group 4: JSONL validation


def test_jsonl_invalid_json(tmp_path: Path) -> None:
    """Invalid JSON in JSONL produces a line-level JSON error."""
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(artifacts_dir)
    (artifacts_dir / DIAGNOSTICS_JSONL).write_text("{not-json}\n", encoding="utf-8")

    result = validate_artifacts(artifacts_dir)

    assert result.ok is False
    assert _messages_contain(result.errors, "Invalid JSON")
    assert result.errors[0].line == 1


def test_jsonl_schema_failure(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(artifacts_dir, records=[_record(kind="method")])

    result = validate_artifacts(artifacts_dir)

    assert result.ok is False
    assert _messages_contain(result.errors, "Schema validation failed")


def test_jsonl_missing_schema_version_is_warning(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    record = _record()
    del record["schema_version"]
    _write_valid_artifacts(artifacts_dir, records=[record])

    result = validate_artifacts(artifacts_dir)

    assert result.ok is True
    assert _messages_contain(result.warnings, "Missing schema_version")


def test_schema_version_mismatch_is_error(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(
        artifacts_dir, summary=_summary(schema_version=ARTIFACT_SCHEMA_VERSION + 1)
    )

    result = validate_artifacts(artifacts_dir)

    assert result.ok is False
    assert _messages_contain(result.errors, "Schema version mismatch")


# Group 5: Summary validation and consistency


def test_summary_must_be_object(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(artifacts_dir)
    (artifacts_dir / SUMMARY_JSON).write_text("[]", encoding="utf-8")

    result = validate_artifacts(artifacts_dir)

    assert _messages_contain(result.errors, "Expected JSON object")


def test_diagnostic_count_mismatch(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(
        artifacts_dir,
        summary=_summary(diagnostic_count=2, diagnostics_by_rule={"FI002": 1}),
    )

    result = validate_artifacts(artifacts_dir)

    assert result.ok is False
    assert _messages_contain(result.errors, "diagnostic_count is 2")


def test_rule_counts_mismatch(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(
        artifacts_dir, summary=_summary(diagnostics_by_rule={"FI001": 1})
    )

    result = validate_artifacts(artifacts_dir)

    assert _messages_contain(result.errors, "diagnostics_by_rule does not match")


def test_unlisted_file_is_warning(tmp_path: Path) -> None:
    artifacts_dir = tmp_path / "artifacts"
    _write_valid_artifacts(artifacts_dir, summary=_summary(files=[]))

    result = validate_artifacts(artifacts_dir)

    assert result.ok is True
    assert _messages_contain(result.warnings, "unlisted file src/Widget.cs")


def test_record_kind_is_the_analysis_diagnostic_kind() -> None:
    assert RecordKind is DiagnosticKind
