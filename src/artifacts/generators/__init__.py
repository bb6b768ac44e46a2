"""Artifact generators for fieldinit."""

from artifacts.generators.diagnostics import DiagnosticsGenerator

__all__ = ["DiagnosticsGenerator"]
