from __future__ import annotations

from pathlib import Path

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from analysis.constructor import DEFAULT_MAX_VISITED, AnalysisOptions

CONFIG_FILENAME = "fieldinit.toml"


class AnalysisConfig(BaseModel):
    """Tunables of the constructor initialization analysis."""

    model_config = ConfigDict(extra="forbid")

    max_visited: int = Field(
        default=DEFAULT_MAX_VISITED,
        ge=1,
        description="Maximum number of bodies walked per constructor",
    )
    ref_arguments_initialize: bool = Field(
        default=True,
        description="Treat members passed as 'ref' arguments as initialized",
    )
    report_field_reads: bool = Field(
        default=True,
        description="Report reads of members before their initialization",
    )
    report_uninitialized: bool = Field(
        default=True,
        description="Report members a constructor leaves uninitialized",
    )

    def to_options(self) -> AnalysisOptions:
        return AnalysisOptions(
            max_visited=self.max_visited,
            ref_arguments_initialize=self.ref_arguments_initialize,
            report_field_reads=self.report_field_reads,
            report_uninitialized=self.report_uninitialized,
        )


class FieldInitConfig(BaseModel):
    """Configuration for fieldinit artifact generation."""

    model_config = ConfigDict(extra="forbid")

    output_dir: str = Field(
        default=".fieldinit",
        description="Output directory for generated artifacts",
    )
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all C# files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    analysis: AnalysisConfig = Field(
        default_factory=AnalysisConfig,
        description="Analysis tunables",
    )


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the analyzed root.

    Absolute paths, ``~`` paths and paths that escape the root are rejected.
    """
    if not output_dir:
        msg = "output_dir must be a non-empty relative path"
        raise ConfigError(msg)

    output_path = Path(output_dir)
    if output_dir.startswith("~") or output_path.is_absolute():
        msg = "output_dir must be a relative path within the analyzed root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_output = (resolved_root / output_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve output_dir '{output_dir}': {exc}"
        raise ConfigError(msg) from exc

    if not resolved_output.is_relative_to(resolved_root):
        msg = f"output_dir '{output_dir}' escapes the analyzed root"
        raise ConfigError(msg)

    return resolved_output


def load_config(root: Path) -> FieldInitConfig:
    """Load configuration from fieldinit.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return FieldInitConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return FieldInitConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
