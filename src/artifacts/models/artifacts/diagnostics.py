"""Diagnostic records written to diagnostics.jsonl."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from analysis.report import ConstructorDiagnostic, DiagnosticKind
from contract.artifacts import ARTIFACT_SCHEMA_VERSION

if TYPE_CHECKING:
    from analysis.model import Location
    from analysis.report import Diagnostic


class SourceSpan(BaseModel):
    """1-based source span of a diagnostic."""

    path: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    @classmethod
    def from_location(cls, location: Location) -> SourceSpan:
        return cls(
            path=location.path,
            start_line=location.start_line,
            start_col=location.start_col,
            end_line=location.end_line,
            end_col=location.end_col,
        )


class DiagnosticRecord(BaseModel):
    """Schema for diagnostics.jsonl records."""

    schema_version: int = Field(default=ARTIFACT_SCHEMA_VERSION)
    rule_id: str
    kind: DiagnosticKind
    type_name: str
    constructor: str
    members: list[str] = Field(
        description="Uninitialized members (constructor) or the member read (field)"
    )
    message: str
    span: SourceSpan

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> DiagnosticRecord:
        if isinstance(diagnostic, ConstructorDiagnostic):
            members = list(diagnostic.members)
        else:
            members = [diagnostic.member]
        return cls(
            rule_id=diagnostic.rule.rule_id,
            kind=diagnostic.rule.kind,
            type_name=diagnostic.type_name,
            constructor=diagnostic.constructor,
            members=members,
            message=diagnostic.message,
            span=SourceSpan.from_location(diagnostic.location),
        )

    def render(self) -> str:
        """Render ``path:line:col: RULE message`` for terminal output."""
        span = self.span
        return (
            f"{span.path}:{span.start_line}:{span.start_col}: "
            f"{self.rule_id} {self.message}"
        )


__all__ = ["DiagnosticKind", "DiagnosticRecord", "SourceSpan"]
