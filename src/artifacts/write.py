from __future__ import annotations

from typing import TYPE_CHECKING

from artifacts.generators import DiagnosticsGenerator
from artifacts.models.artifacts.diagnostics import DiagnosticRecord
from artifacts.models.artifacts.summary import RunSummary
from artifacts.utils import _write_json
from contract.artifacts import DIAGNOSTICS_JSONL, SUMMARY_JSON
from rules.config import load_config, resolve_output_dir

if TYPE_CHECKING:
    from pathlib import Path

    from rules.config import FieldInitConfig


def generate_all_artifacts(
    *,
    root: Path,
    out_dir: Path | None = None,
    config: FieldInitConfig | None = None,
) -> dict[str, object]:
    """Analyze a source tree and write diagnostics.jsonl and summary.json.

    Args:
        root: Root directory of the sources to analyze
        out_dir: Optional output directory for generated artifacts
        config: Optional configuration; loaded from fieldinit.toml when omitted

    Returns:
        Dictionary with run counts, the diagnostic records and the list of
        generated artifact paths.
    """
    if config is None:
        config = load_config(root)

    if out_dir is None:
        out_dir = resolve_output_dir(root, config.output_dir)

    diagnostics_gen = DiagnosticsGenerator()
    record_dicts, summary_dict = diagnostics_gen.generate(
        root=root,
        out_dir=out_dir,
        config=config,
    )
    records = [DiagnosticRecord(**d) for d in record_dicts]

    summary = RunSummary(**summary_dict)
    _write_json(out_dir / SUMMARY_JSON, summary)

    artifacts_list = [DIAGNOSTICS_JSONL, SUMMARY_JSON]

    return {
        "file_count": summary.file_count,
        "type_count": summary.type_count,
        "constructor_count": summary.constructor_count,
        "diagnostic_count": summary.diagnostic_count,
        "diagnostics_by_rule": summary.diagnostics_by_rule,
        "diagnostics": records,
        "artifacts": [str(out_dir / name) for name in artifacts_list],
    }
