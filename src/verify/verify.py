"""Determinism verification for fieldinit artifacts."""

from __future__ import annotations

import filecmp
import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from artifacts.write import generate_all_artifacts
from contract.artifacts import ARTIFACT_SPECS

if TYPE_CHECKING:
    from rules.config import FieldInitConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    mismatches: tuple[str, ...] = field(default_factory=tuple)
    missing: tuple[str, ...] = field(default_factory=tuple)


def verify_determinism(
    *,
    root: Path,
    artifacts_dir: Path,
    config: FieldInitConfig | None = None,
) -> DeterminismResult:
    """Regenerate the artifacts and compare them byte-for-byte.

    Only the contract artifacts are compared; other files a user keeps next
    to them are ignored.

    Raises:
        FileNotFoundError: If artifacts_dir does not exist.
        NotADirectoryError: If artifacts_dir is not a directory.
    """
    if not artifacts_dir.exists():
        msg = f"Artifacts directory does not exist: {artifacts_dir}"
        raise FileNotFoundError(msg)
    if not artifacts_dir.is_dir():
        msg = f"Artifacts path is not a directory: {artifacts_dir}"
        raise NotADirectoryError(msg)

    missing: list[str] = []
    mismatches: list[str] = []
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        generate_all_artifacts(root=root, out_dir=temp_path, config=config)

        for spec in ARTIFACT_SPECS.values():
            original_path = artifacts_dir / spec.filename
            if not original_path.is_file():
                missing.append(spec.filename)
                continue
            if not filecmp.cmp(original_path, temp_path / spec.filename, shallow=False):
                logger.debug("Regenerated %s differs", spec.filename)
                mismatches.append(spec.filename)

    return DeterminismResult(
        ok=not missing and not mismatches,
        mismatches=tuple(sorted(mismatches)),
        missing=tuple(sorted(missing)),
    )


__all__ = ["DeterminismResult", "verify_determinism"]
