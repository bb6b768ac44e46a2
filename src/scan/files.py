"""Source discovery for fieldinit."""

from __future__ import annotations

from fnmatch import fnmatch
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from pathlib import Path


def _relative_posix(path: Path, root: Path) -> str | None:
    """POSIX path of ``path`` under ``root``; ``None`` if it resolves outside."""
    try:
        resolved = path.resolve()
        resolved.relative_to(root.resolve())
    except (OSError, ValueError):
        return None
    return path.relative_to(root).as_posix()


def _matches_any(rel_path: str, patterns: Sequence[str] | None) -> bool:
    return bool(patterns) and any(fnmatch(rel_path, pat) for pat in patterns or ())


def is_source_file(
    path: Path,
    root: Path,
    *,
    output_dir: str,
    gitignore_matches: Callable[[str], bool] | None = None,
    include_patterns: Sequence[str] | None = None,
    exclude_patterns: Sequence[str] | None = None,
) -> bool:
    """Apply the symlink, root, output-dir, .gitignore and glob filters."""
    if path.is_symlink() or not path.is_file():
        return False

    rel_path = _relative_posix(path, root)
    if rel_path is None:
        return False

    first_part = rel_path.split("/", 1)[0]
    if output_dir and first_part == output_dir.strip("/"):
        return False

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    if include_patterns and not _matches_any(rel_path, include_patterns):
        return False

    return not _matches_any(rel_path, exclude_patterns)


def _gitignore_files(root: Path, *, nested: bool) -> list[Path]:
    if not nested:
        candidate = root / ".gitignore"
        return [candidate] if candidate.is_file() else []
    found = {path for path in root.rglob(".gitignore") if path.is_file()}
    return sorted(found, key=lambda p: (len(p.relative_to(root).parts), p.as_posix()))


def build_gitignore_matcher(
    root: Path, *, nested_gitignore: bool = False
) -> Callable[[str], bool] | None:
    """Compose the root (or every nested) .gitignore into one predicate."""
    matchers = [
        cast("Callable[[str], bool]", parse_gitignore(path))
        for path in _gitignore_files(root, nested=nested_gitignore)
    ]
    if not matchers:
        return None
    if len(matchers) == 1:
        return matchers[0]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                # Nested matchers reject paths outside their own directory.
                continue
        return False

    return matches


def find_csharp_files(
    root: Path,
    *,
    output_dir: str = ".fieldinit",
    include_patterns: Sequence[str] | None = None,
    exclude_patterns: Sequence[str] | None = None,
    nested_gitignore: bool = False,
) -> Iterator[Path]:
    """Yield ``*.cs`` files under ``root`` sorted by relative POSIX path.

    Symlinks, files resolving outside ``root``, the output directory and
    .gitignore'd files are skipped. When ``include_patterns`` is given a file
    must match one of them; ``exclude_patterns`` always win.
    """
    gitignore_matches = build_gitignore_matcher(
        root, nested_gitignore=nested_gitignore
    )

    matched = [
        path
        for path in root.rglob("*.cs")
        if is_source_file(
            path,
            root,
            output_dir=output_dir,
            gitignore_matches=gitignore_matches,
            include_patterns=include_patterns,
            exclude_patterns=exclude_patterns,
        )
    ]
    matched.sort(key=lambda p: p.relative_to(root).as_posix())

    yield from matched


__all__ = ["build_gitignore_matcher", "find_csharp_files", "is_source_file"]
