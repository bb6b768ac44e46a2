"""Diagnostics artifact generator."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any

from analysis.report import sort_key
from analysis.types import analyze_type
from artifacts.models.artifacts.diagnostics import DiagnosticRecord
from artifacts.utils import _get_output_dir_name, _write_jsonl
from contract.artifacts import DIAGNOSTICS_JSONL
from parse.treesitter_csharp import extract_types_treesitter
from rules.config import FieldInitConfig
from scan.files import find_csharp_files

if TYPE_CHECKING:
    from pathlib import Path

    from analysis.report import Diagnostic

logger = logging.getLogger(__name__)


class DiagnosticsGenerator:
    """Generates diagnostics.jsonl from the C# sources under a root."""

    @property
    def name(self) -> str:
        """Generator name for logging and identification."""
        return "diagnostics"

    def generate(
        self,
        root: Path,
        out_dir: Path,
        **kwargs: Any,
    ) -> tuple[list[dict[str, Any]], dict[str, Any]]:
        """Analyze every C# file and write the sorted diagnostics.

        Returns the written records as dicts and the run totals used for
        summary.json.
        """
        config: FieldInitConfig = kwargs.get("config") or FieldInitConfig()
        options = config.analysis.to_options()

        out_dir.mkdir(parents=True, exist_ok=True)
        out_dir_name = _get_output_dir_name(out_dir, root)

        files: list[str] = []
        diagnostics: list[Diagnostic] = []
        type_count = 0
        constructor_count = 0
        truncated_count = 0

        for file_path in find_csharp_files(
            root,
            output_dir=out_dir_name,
            include_patterns=config.include,
            exclude_patterns=config.exclude,
            nested_gitignore=config.nested_gitignore,
        ):
            relative_path = file_path.relative_to(root).as_posix()
            files.append(relative_path)
            logger.debug("Parsing %s", relative_path)

            for type_decl in extract_types_treesitter(file_path, relative_path):
                result = analyze_type(type_decl, options)
                type_count += 1
                constructor_count += len(result.constructors)
                truncated_count += sum(1 for c in result.constructors if c.truncated)
                diagnostics.extend(result.diagnostics)

        diagnostics.sort(key=sort_key)
        records = [DiagnosticRecord.from_diagnostic(d) for d in diagnostics]
        _write_jsonl(out_dir / DIAGNOSTICS_JSONL, records)

        by_rule = Counter(record.rule_id for record in records)
        logger.info(
            "Analyzed %d files, %d types, %d constructors: %d diagnostics",
            len(files),
            type_count,
            constructor_count,
            len(records),
        )

        summary = {
            "file_count": len(files),
            "type_count": type_count,
            "constructor_count": constructor_count,
            "truncated_constructor_count": truncated_count,
            "diagnostic_count": len(records),
            "diagnostics_by_rule": dict(sorted(by_rule.items())),
            "files": files,
        }
        return [record.model_dump() for record in records], summary
