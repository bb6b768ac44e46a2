from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from verify.verify import DeterminismResult, verify_determinism

from artifacts.write import generate_all_artifacts

if TYPE_CHECKING:
    from pathlib import Path


def _write_minimal_repo(root: Path) -> None:
    (root / "src").mkdir(parents=True, exist_ok=True)
    (root / "src" / "Widget.cs").write_text(
        "class Widget\n{\n    int count;\n\n    public Widget() { }\n}\n",
        encoding="utf-8",
    )


def test_verify_determinism_requires_artifacts_dir(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)

    missing_dir = tmp_path / "missing"
    with pytest.raises(FileNotFoundError, match="Artifacts directory does not exist"):
        verify_determinism(root=repo_root, artifacts_dir=missing_dir)


def test_verify_determinism_rejects_file(tmp_path: Path) -> None:
    not_a_dir = tmp_path / "artifacts"
    not_a_dir.write_text("", encoding="utf-8")

    with pytest.raises(NotADirectoryError):
        verify_determinism(root=tmp_path, artifacts_dir=not_a_dir)


def test_regenerated_artifacts_match(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)
    result = generate_all_artifacts(root=repo_root)
    assert result["diagnostic_count"] == 1

    verification = verify_determinism(
        root=repo_root, artifacts_dir=repo_root / ".fieldinit"
    )

    assert verification == DeterminismResult(ok=True)


def test_verify_determinism_reports_missing_and_sorted_mismatches(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_root = tmp_path / "repo"
    repo_root.mkdir()
    _write_minimal_repo(repo_root)

    artifacts_dir = tmp_path / "artifacts"
    artifacts_dir.mkdir()
    (artifacts_dir / "summary.json").write_text("original", encoding="utf-8")
    (artifacts_dir / "notes.txt").write_text("ignored", encoding="utf-8")

    def _fake_generate_all_artifacts(
        *, root: Path, out_dir: Path, config: object = None
    ) -> dict[str, object]:
        (out_dir / "diagnostics.jsonl").write_text("", encoding="utf-8")
        (out_dir / "summary.json").write_text("regenerated", encoding="utf-8")
        return {"artifacts": []}

    monkeypatch.setattr(
        "verify.verify.generate_all_artifacts",
        _fake_generate_all_artifacts,
    )

    result = verify_determinism(root=repo_root, artifacts_dir=artifacts_dir)

    assert result == DeterminismResult(
        ok=False,
        mismatches=("summary.json",),
        missing=("diagnostics.jsonl",),
    )
