"""Per-type member map: the read-only index the constructor analysis walks."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, assert_never

from analysis.model import (
    ConstructorDeclaration,
    FieldDeclaration,
    MethodDeclaration,
    PropertyDeclaration,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from analysis.model import AccessorDeclaration, Body, Symbol, TypeDeclaration


@dataclass(frozen=True)
class TrackedVariable:
    """A field or auto-property without an initializer.

    ``can_remain_uninitialized`` is set when code outside the type may assign
    it after construction, so a constructor is not obliged to.
    """

    symbol: Symbol
    can_remain_uninitialized: bool


@dataclass(frozen=True)
class AccessorBody:
    symbol: Symbol
    body: Body


@dataclass(frozen=True)
class PropertyAccessors:
    symbol: Symbol
    getter: AccessorBody | None
    setter: AccessorBody | None
    is_indexer: bool = False
    has_nonprivate_setter: bool = False


@dataclass(frozen=True)
class MethodBody:
    symbol: Symbol
    body: Body


@dataclass(frozen=True)
class ConstructorEntry:
    symbol: Symbol
    declaration: ConstructorDeclaration
    delegates_to: Symbol | None = None


@dataclass(frozen=True)
class MemberMap:
    variables: Mapping[Symbol, TrackedVariable]
    properties: Mapping[Symbol, PropertyAccessors]
    methods: Mapping[Symbol, MethodBody]
    constructors: tuple[ConstructorEntry, ...]
    delegated: frozenset[Symbol]
    _constructors_by_symbol: Mapping[Symbol, ConstructorEntry] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_constructors_by_symbol",
            MappingProxyType({entry.symbol: entry for entry in self.constructors}),
        )

    def constructor(self, symbol: Symbol) -> ConstructorEntry | None:
        return self._constructors_by_symbol.get(symbol)

    @property
    def indexer(self) -> PropertyAccessors | None:
        """The first declared indexer; it stands in for every overload."""
        for accessors in self.properties.values():
            if accessors.is_indexer:
                return accessors
        return None

    def entry_points(self) -> tuple[ConstructorEntry, ...]:
        """Constructors that no sibling constructor delegates to."""
        return tuple(
            entry for entry in self.constructors if entry.symbol not in self.delegated
        )

    def delegation_graph(self) -> dict[Symbol, set[Symbol]]:
        graph: dict[Symbol, set[Symbol]] = {}
        for entry in self.constructors:
            targets = graph.setdefault(entry.symbol, set())
            if entry.delegates_to is not None:
                targets.add(entry.delegates_to)
        return graph


class MemberMapBuilder:
    """Scans one type's members once and classifies them.

    Members whose symbol did not resolve are skipped.
    """

    def __init__(self) -> None:
        self._variables: dict[Symbol, TrackedVariable] = {}
        self._properties: dict[Symbol, PropertyAccessors] = {}
        self._methods: dict[Symbol, MethodBody] = {}
        self._constructors: list[ConstructorEntry] = []
        self._delegated: set[Symbol] = set()

    def _add_field(self, decl: FieldDeclaration) -> None:
        if decl.is_static:
            return

        can_remain_uninitialized = (
            not decl.is_readonly and decl.accessibility == "public"
        )
        for variable in decl.variables:
            if variable.has_initializer or variable.symbol is None:
                continue
            self._variables[variable.symbol] = TrackedVariable(
                variable.symbol, can_remain_uninitialized
            )

    def _add_property_as_variable(
        self, symbol: Symbol, decl: PropertyDeclaration
    ) -> None:
        if decl.has_expression_body or decl.has_initializer:
            return
        if decl.is_abstract or decl.is_static or decl.is_indexer:
            return
        if decl.accessors is None:
            return
        if any(accessor.body is not None for accessor in decl.accessors):
            return

        setter_accessibility = decl.setter_accessibility()
        self._variables[symbol] = TrackedVariable(
            symbol,
            can_remain_uninitialized=(
                setter_accessibility is not None and setter_accessibility != "private"
            ),
        )

    def _add_property_accessors(self, symbol: Symbol, decl: PropertyDeclaration) -> None:
        if decl.is_abstract or decl.is_static or decl.accessors is None:
            return

        getter = decl.getter
        setter = decl.setter
        setter_accessibility = decl.setter_accessibility()
        self._properties[symbol] = PropertyAccessors(
            symbol=symbol,
            getter=_accessor_body(getter),
            setter=_accessor_body(setter),
            is_indexer=decl.is_indexer,
            has_nonprivate_setter=(
                setter_accessibility is not None and setter_accessibility != "private"
            ),
        )

    def _add_method(self, decl: MethodDeclaration) -> None:
        if decl.body is None or decl.symbol is None:
            return
        self._methods[decl.symbol] = MethodBody(decl.symbol, decl.body)

    def _add_constructor(self, decl: ConstructorDeclaration) -> None:
        if decl.is_static:
            return

        delegates_to = None
        initializer = decl.initializer
        if initializer is not None and initializer.kind == "this":
            delegates_to = initializer.target
            if delegates_to is not None:
                self._delegated.add(delegates_to)

        if decl.symbol is not None:
            self._constructors.append(
                ConstructorEntry(decl.symbol, decl, delegates_to=delegates_to)
            )

    def build(self, type_decl: TypeDeclaration) -> MemberMap:
        for member in type_decl.members:
            if isinstance(member, FieldDeclaration):
                self._add_field(member)
            elif isinstance(member, PropertyDeclaration):
                if member.symbol is None:
                    continue
                self._add_property_as_variable(member.symbol, member)
                self._add_property_accessors(member.symbol, member)
            elif isinstance(member, MethodDeclaration):
                self._add_method(member)
            elif isinstance(member, ConstructorDeclaration):
                self._add_constructor(member)
            else:
                assert_never(member)

        return MemberMap(
            variables=MappingProxyType(dict(self._variables)),
            properties=MappingProxyType(dict(self._properties)),
            methods=MappingProxyType(dict(self._methods)),
            constructors=tuple(self._constructors),
            delegated=frozenset(self._delegated),
        )


def _accessor_body(accessor: AccessorDeclaration | None) -> AccessorBody | None:
    if accessor is None or accessor.symbol is None or accessor.body is None:
        return None
    return AccessorBody(accessor.symbol, accessor.body)


def build_member_map(type_decl: TypeDeclaration) -> MemberMap:
    """Build the member map for one type declaration."""
    return MemberMapBuilder().build(type_decl)


__all__ = [
    "AccessorBody",
    "ConstructorEntry",
    "MemberMap",
    "MemberMapBuilder",
    "MethodBody",
    "PropertyAccessors",
    "TrackedVariable",
    "build_member_map",
]
