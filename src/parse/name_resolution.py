"""Member name resolution within a single C# type declaration.

Resolution is local: a name resolves only to a member declared
on the type being analyzed. Inherited members, members of other types and
anything shadowed by a local declaration resolve to ``None``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from analysis.model import Symbol

MemberKind = Literal["field", "property", "indexer", "method", "constructor"]
LiteralKind = Literal["integer", "real", "string", "char", "bool", "null"]

_INTEGRAL_TYPES = frozenset(
    {
        "sbyte", "byte", "short", "ushort", "int", "uint", "long", "ulong",
        "nint", "nuint", "SByte", "Byte", "Int16", "UInt16", "Int32", "UInt32",
        "Int64", "UInt64", "IntPtr", "UIntPtr",
    }
)  # fmt: skip
_REAL_TYPES = frozenset({"float", "double", "decimal", "Single", "Double", "Decimal"})
_STRING_TYPES = frozenset({"string", "String"})
_CHAR_TYPES = frozenset({"char", "Char"})
_BOOL_TYPES = frozenset({"bool", "Boolean"})
_UNIVERSAL_TYPES = frozenset({"object", "Object", "dynamic", "var"})

_VALUE_TYPES = _INTEGRAL_TYPES | _REAL_TYPES | _CHAR_TYPES | _BOOL_TYPES
_KNOWN_TYPES = _VALUE_TYPES | _STRING_TYPES

_LITERAL_TARGETS: dict[LiteralKind, frozenset[str]] = {
    "integer": _INTEGRAL_TYPES | _REAL_TYPES,
    "real": _REAL_TYPES,
    "string": _STRING_TYPES,
    "char": _CHAR_TYPES | _INTEGRAL_TYPES - {"sbyte", "byte", "SByte", "Byte"},
    "bool": _BOOL_TYPES,
}


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    type_name: str
    has_default: bool = False
    is_params: bool = False
    modifier: str | None = None


@dataclass(frozen=True)
class MemberInfo:
    symbol: Symbol
    kind: MemberKind
    parameters: tuple[ParameterInfo, ...] = ()
    is_static: bool = False

    def accepts_arity(self, count: int) -> bool:
        required = sum(
            1 for p in self.parameters if not (p.has_default or p.is_params)
        )
        if count < required:
            return False
        if self.parameters and self.parameters[-1].is_params:
            return True
        return count <= len(self.parameters)

    def parameter_for(self, position: int, label: str | None) -> ParameterInfo | None:
        if label is not None:
            for parameter in self.parameters:
                if parameter.name == label:
                    return parameter
            return None
        if position < len(self.parameters):
            return self.parameters[position]
        if self.parameters and self.parameters[-1].is_params:
            return self.parameters[-1]
        return None


@dataclass(frozen=True)
class ArgumentShape:
    """What the resolver can tell about an argument without type inference."""

    literal: LiteralKind | None = None
    label: str | None = None
    modifier: str | None = None


def _normalize_type_name(type_name: str) -> tuple[str, bool]:
    text = "".join(type_name.split())
    nullable = text.endswith("?")
    if nullable:
        text = text[:-1]
    if text.startswith("System."):
        text = text[len("System.") :]
    return text, nullable


def literal_fits(literal: LiteralKind | None, parameter: ParameterInfo) -> bool:
    """Whether a literal argument can bind to ``parameter``.

    Unknown parameter types (user types, generics) accept anything except
    where the literal is plainly a value of a predefined type and the
    parameter is a different predefined type.
    """
    if literal is None:
        return True

    type_name, nullable = _normalize_type_name(parameter.type_name)
    if parameter.is_params and type_name.endswith("[]"):
        type_name = type_name[:-2]

    if type_name in _UNIVERSAL_TYPES:
        return True
    if literal == "null":
        return nullable or type_name not in _VALUE_TYPES
    if type_name not in _KNOWN_TYPES:
        return True
    return type_name in _LITERAL_TARGETS[literal]


class MemberTable:
    """Lookup of one type's declared members by simple name."""

    def __init__(self, type_name: str, members: Iterable[MemberInfo]) -> None:
        self.type_name = type_name
        self._by_name: dict[str, list[MemberInfo]] = defaultdict(list)
        self._constructors: list[MemberInfo] = []
        for member in members:
            if member.kind == "constructor":
                self._constructors.append(member)
            elif member.kind != "indexer":
                self._by_name[member.symbol.name].append(member)

    def resolve_name(
        self, name: str, *, shadowed: frozenset[str] = frozenset()
    ) -> Symbol | None:
        """Resolve a bare name or ``this.name`` to a field or property."""
        if name in shadowed:
            return None
        for member in self._by_name.get(name, ()):
            if member.kind in ("field", "property"):
                return member.symbol
        return None

    def resolve_invocation(
        self,
        name: str,
        arguments: Sequence[ArgumentShape],
        *,
        shadowed: frozenset[str] = frozenset(),
    ) -> Symbol | None:
        if name in shadowed:
            return None
        candidates = [m for m in self._by_name.get(name, ()) if m.kind == "method"]
        return _select_overload(candidates, arguments)

    def resolve_constructor(
        self,
        arguments: Sequence[ArgumentShape],
        *,
        exclude: Symbol | None = None,
    ) -> Symbol | None:
        """Resolve the target of ``: this(...)``; never the caller itself."""
        candidates = [
            m for m in self._constructors if m.symbol != exclude and not m.is_static
        ]
        return _select_overload(candidates, arguments)


def _select_overload(
    candidates: Sequence[MemberInfo], arguments: Sequence[ArgumentShape]
) -> Symbol | None:
    if len(candidates) == 1 and candidates[0].accepts_arity(len(arguments)):
        return candidates[0].symbol

    applicable = [
        candidate
        for candidate in candidates
        if candidate.accepts_arity(len(arguments))
        and _arguments_fit(candidate, arguments)
    ]
    if len(applicable) == 1:
        return applicable[0].symbol
    return None


def _arguments_fit(candidate: MemberInfo, arguments: Sequence[ArgumentShape]) -> bool:
    for position, argument in enumerate(arguments):
        parameter = candidate.parameter_for(position, argument.label)
        if parameter is None:
            return False
        by_ref = ("ref", "out")
        if (
            argument.modifier in by_ref or parameter.modifier in by_ref
        ) and parameter.modifier != argument.modifier:
            return False
        if not literal_fits(argument.literal, parameter):
            return False
    return True


__all__ = [
    "ArgumentShape",
    "LiteralKind",
    "MemberInfo",
    "MemberKind",
    "MemberTable",
    "ParameterInfo",
    "literal_fits",
]
