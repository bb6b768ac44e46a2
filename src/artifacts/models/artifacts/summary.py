"""Run summary written to summary.json."""

from __future__ import annotations

from pydantic import BaseModel, Field

from contract.artifacts import ARTIFACT_SCHEMA_VERSION


class RunSummary(BaseModel):
    """Totals of one analysis run."""

    schema_version: int = Field(default=ARTIFACT_SCHEMA_VERSION)
    file_count: int
    type_count: int
    constructor_count: int = Field(description="Constructors analyzed as entry points")
    truncated_constructor_count: int = Field(
        default=0,
        description="Constructors whose traversal hit the max_visited limit",
    )
    diagnostic_count: int
    diagnostics_by_rule: dict[str, int] = Field(default_factory=dict)
    files: list[str] = Field(default_factory=list)


__all__ = ["RunSummary"]
