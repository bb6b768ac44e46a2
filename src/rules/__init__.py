"""Configuration for fieldinit runs."""

from rules.config import (
    AnalysisConfig,
    ConfigError,
    FieldInitConfig,
    load_config,
    resolve_output_dir,
)

__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "FieldInitConfig",
    "load_config",
    "resolve_output_dir",
]
