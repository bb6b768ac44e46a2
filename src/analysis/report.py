"""Diagnostic descriptors and formatting shared by the analyzers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Union

if TYPE_CHECKING:
    from collections.abc import Iterable

    from analysis.model import Location, Symbol

DiagnosticKind = Literal["constructor", "field"]


@dataclass(frozen=True)
class DiagnosticDescriptor:
    rule_id: str
    kind: DiagnosticKind
    title: str
    message_format: str
    description: str
    severity: str = "warning"


CONSTRUCTOR_RULE = DiagnosticDescriptor(
    rule_id="FI001",
    kind="constructor",
    title="Constructor not initializing fields",
    message_format="The constructor doesn't initialize: {0}.",
    description="Constructors should initialize all fields.",
)

FIELD_RULE = DiagnosticDescriptor(
    rule_id="FI002",
    kind="field",
    title="Uninitialized field or property",
    message_format="The field or property '{0}' is used before initialization.",
    description="Fields should be initialized before use.",
)

SUPPORTED_RULES: tuple[DiagnosticDescriptor, ...] = (CONSTRUCTOR_RULE, FIELD_RULE)


@dataclass(frozen=True)
class ConstructorDiagnostic:
    """Members a constructor leaves uninitialized, in declaration order."""

    location: Location
    members: tuple[str, ...]
    type_name: str = ""
    constructor: str = ""

    rule = CONSTRUCTOR_RULE

    @property
    def message(self) -> str:
        return self.rule.message_format.format(
            ", ".join(f"'{name}'" for name in self.members)
        )


@dataclass(frozen=True)
class FieldDiagnostic:
    """A read of a member before any assignment to it was observed."""

    location: Location
    member: str
    type_name: str = ""
    constructor: str = ""

    rule = FIELD_RULE

    @property
    def message(self) -> str:
        return self.rule.message_format.format(self.member)


Diagnostic = Union[ConstructorDiagnostic, FieldDiagnostic]


@dataclass
class Reporter:
    """Collects diagnostics for one constructor of one type."""

    type_name: str = ""
    constructor: str = ""
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def report_constructor_diagnostic(
        self, location: Location, uninitialized: Iterable[Symbol]
    ) -> ConstructorDiagnostic:
        diagnostic = ConstructorDiagnostic(
            location=location,
            members=tuple(symbol.name for symbol in uninitialized),
            type_name=self.type_name,
            constructor=self.constructor,
        )
        self.diagnostics.append(diagnostic)
        return diagnostic

    def report_field_diagnostic(
        self, location: Location, symbol: Symbol
    ) -> FieldDiagnostic:
        diagnostic = FieldDiagnostic(
            location=location,
            member=symbol.name,
            type_name=self.type_name,
            constructor=self.constructor,
        )
        self.diagnostics.append(diagnostic)
        return diagnostic


def sort_key(diagnostic: Diagnostic) -> tuple[str, int, int, str, str]:
    loc = diagnostic.location
    member = (
        diagnostic.member
        if isinstance(diagnostic, FieldDiagnostic)
        else ",".join(diagnostic.members)
    )
    return (loc.path, loc.start_line, loc.start_col, diagnostic.rule.rule_id, member)


__all__ = [
    "CONSTRUCTOR_RULE",
    "ConstructorDiagnostic",
    "Diagnostic",
    "DiagnosticDescriptor",
    "DiagnosticKind",
    "FIELD_RULE",
    "FieldDiagnostic",
    "Reporter",
    "SUPPORTED_RULES",
    "sort_key",
]
