"""Command-line interface for fieldinit-core."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, cast

from artifacts.write import generate_all_artifacts
from contract.validation import validate_artifacts
from rules.config import ConfigError, load_config, resolve_output_dir
from verify.verify import verify_determinism

if TYPE_CHECKING:
    from artifacts.models import DiagnosticRecord

logger = logging.getLogger(__name__)


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Root of the C# sources (default: .)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fieldinit",
        description="Report C# members that constructors leave uninitialized.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log per-type progress to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check", help="Analyze sources and write diagnostics"
    )
    _add_common_paths(check_parser)
    check_parser.add_argument(
        "--out-dir",
        default=None,
        help="Output directory for generated artifacts (default: config output dir)",
    )
    check_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print diagnostics, only set the exit code",
    )

    validate_parser = subparsers.add_parser("validate", help="Validate artifacts")
    _add_common_paths(validate_parser)
    validate_parser.add_argument(
        "--artifacts-dir",
        default=None,
        help="Artifacts directory (default: config output dir)",
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Verify determinism of artifacts"
    )
    _add_common_paths(verify_parser)
    verify_parser.add_argument(
        "--artifacts-dir",
        default=None,
        help="Artifacts directory (default: config output dir)",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_output_dir(out_dir: str | None) -> Path | None:
    if out_dir is None:
        return None
    return Path(out_dir).expanduser().resolve()


def _resolve_artifacts_dir(root: Path, artifacts_dir: str | None) -> Path:
    if artifacts_dir is None:
        config = load_config(root)
        return resolve_output_dir(root, config.output_dir)
    return Path(artifacts_dir).expanduser().resolve()


def _handle_check(root: Path, out_dir: str | None, *, quiet: bool) -> int:
    result = generate_all_artifacts(root=root, out_dir=_resolve_output_dir(out_dir))
    records = cast("list[DiagnosticRecord]", result["diagnostics"])
    if not quiet:
        for record in records:
            sys.stdout.write(f"{record.render()}\n")
    logger.info(
        "%s diagnostics in %s files", result["diagnostic_count"], result["file_count"]
    )
    return 1 if result["diagnostic_count"] else 0


def _handle_validate(root: Path, artifacts_dir: str | None) -> int:
    resolved_artifacts_dir = _resolve_artifacts_dir(root, artifacts_dir)
    result = validate_artifacts(resolved_artifacts_dir)
    for warning in result.warnings:
        sys.stderr.write(f"warning: {warning.location()}: {warning.message}\n")
    if result.errors:
        for error in result.errors:
            sys.stderr.write(f"{error.location()}: {error.message}\n")
        return 1
    return 0


def _handle_verify(root: Path, artifacts_dir: str | None) -> int:
    resolved_artifacts_dir = _resolve_artifacts_dir(root, artifacts_dir)
    try:
        result = verify_determinism(root=root, artifacts_dir=resolved_artifacts_dir)
    except (FileNotFoundError, NotADirectoryError) as exc:
        sys.stderr.write(f"artifacts-dir: {resolved_artifacts_dir}\n")
        sys.stderr.write(f"error: {exc}\n")
        return 2
    if not result.ok:
        for label, paths in (
            ("missing", result.missing),
            ("mismatches", result.mismatches),
        ):
            for path in paths:
                sys.stderr.write(f"{label}: {path}\n")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        sys.stderr.write(f"error: not a directory: {root}\n")
        return 2

    try:
        if args.command == "check":
            return _handle_check(root, args.out_dir, quiet=args.quiet)

        if args.command == "validate":
            return _handle_validate(root, args.artifacts_dir)

        if args.command == "verify":
            return _handle_verify(root, args.artifacts_dir)
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
