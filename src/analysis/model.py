"""Declaration and body model consumed by the initialization analysis.

The front end (see ``parse.treesitter_csharp``) produces these objects with
every name already resolved. A reference that could not be resolved is kept
as ``None`` and skipped by the analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

Accessibility = Literal[
    "public",
    "protected internal",
    "internal",
    "protected",
    "private protected",
    "private",
]
AccessorKind = Literal["get", "set", "init"]
ByRefKind = Literal["out", "ref", "in"]
ConstructorInitializerKind = Literal["this", "base"]
TypeKind = Literal["class", "struct", "record"]


@dataclass(frozen=True)
class Symbol:
    """Opaque identity of a declared member.

    ``key`` is globally unique and is the only thing equality depends on;
    ``name`` is the simple name shown in diagnostics.
    """

    key: str
    name: str = field(compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Location:
    """1-based source range."""

    path: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int


# ---------------------------------------------------------------------------
# Body nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ByRefArgument:
    """An ``out``/``ref``/``in`` argument passed to a call or object creation."""

    symbol: Symbol | None
    kind: ByRefKind
    location: Location


@dataclass(frozen=True)
class Assignment:
    """A simple ``target = value`` assignment."""

    target: Symbol | None
    location: Location


@dataclass(frozen=True)
class Invocation:
    """A call; ``callee`` is set only for methods declared on the same type."""

    callee: Symbol | None
    location: Location
    by_ref_arguments: tuple[ByRefArgument, ...] = ()


@dataclass(frozen=True)
class IdentifierReference:
    """A name that resolves to a member of the analyzed type."""

    symbol: Symbol | None
    name: str
    assigned: bool
    location: Location


@dataclass(frozen=True)
class IndexerAccess:
    """``this[...]`` in read (``assigned=False``) or write position."""

    assigned: bool
    location: Location


@dataclass(frozen=True)
class ThisAssignment:
    """``this = value`` in a struct member, which assigns every instance field."""

    location: Location


BodyNode = Union[
    Assignment,
    Invocation,
    ByRefArgument,
    IdentifierReference,
    IndexerAccess,
    ThisAssignment,
]

# Body nodes in pre-order: an enclosing construct precedes its sub-expressions.
Body = tuple[BodyNode, ...]


# ---------------------------------------------------------------------------
# Member declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VariableDeclarator:
    symbol: Symbol | None
    name: str
    has_initializer: bool
    location: Location


@dataclass(frozen=True)
class FieldDeclaration:
    accessibility: Accessibility
    variables: tuple[VariableDeclarator, ...]
    modifiers: frozenset[str] = frozenset()

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers or "const" in self.modifiers

    @property
    def is_readonly(self) -> bool:
        return "readonly" in self.modifiers


@dataclass(frozen=True)
class AccessorDeclaration:
    """One ``get``/``set``/``init`` accessor.

    ``accessibility`` is the accessor's own modifier, ``None`` when it
    inherits the property's accessibility.
    """

    kind: AccessorKind
    symbol: Symbol | None
    body: Body | None = None
    accessibility: Accessibility | None = None


@dataclass(frozen=True)
class PropertyDeclaration:
    symbol: Symbol | None
    name: str
    accessibility: Accessibility
    location: Location
    accessors: tuple[AccessorDeclaration, ...] | None
    modifiers: frozenset[str] = frozenset()
    is_indexer: bool = False
    has_expression_body: bool = False
    has_initializer: bool = False

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers

    def accessor(self, kind: AccessorKind) -> AccessorDeclaration | None:
        for accessor in self.accessors or ():
            if accessor.kind == kind:
                return accessor
        return None

    @property
    def setter(self) -> AccessorDeclaration | None:
        """The ``set`` accessor, or the ``init`` accessor standing in for it."""
        return self.accessor("set") or self.accessor("init")

    @property
    def getter(self) -> AccessorDeclaration | None:
        return self.accessor("get")

    def setter_accessibility(self) -> Accessibility | None:
        setter = self.setter
        if setter is None:
            return None
        return setter.accessibility or self.accessibility


@dataclass(frozen=True)
class MethodDeclaration:
    symbol: Symbol | None
    name: str
    body: Body | None
    modifiers: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ConstructorInitializer:
    """``: this(...)`` or ``: base(...)``; ``target`` resolves only for ``this``."""

    kind: ConstructorInitializerKind
    target: Symbol | None


@dataclass(frozen=True)
class ConstructorDeclaration:
    symbol: Symbol | None
    name: str
    location: Location
    body: Body | None
    initializer: ConstructorInitializer | None = None
    modifiers: frozenset[str] = frozenset()
    signature: str = ""

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def display_name(self) -> str:
        return self.signature or f"{self.name}(...)"


MemberDeclaration = Union[
    FieldDeclaration,
    PropertyDeclaration,
    MethodDeclaration,
    ConstructorDeclaration,
]


@dataclass(frozen=True)
class TypeDeclaration:
    """A class, struct or record with its members in declaration order."""

    symbol: Symbol
    name: str
    qualified_name: str
    kind: TypeKind
    location: Location
    members: tuple[MemberDeclaration, ...] = ()


__all__ = [
    "Accessibility",
    "AccessorDeclaration",
    "AccessorKind",
    "Assignment",
    "Body",
    "BodyNode",
    "ByRefArgument",
    "ByRefKind",
    "ConstructorDeclaration",
    "ConstructorInitializer",
    "FieldDeclaration",
    "IdentifierReference",
    "IndexerAccess",
    "Invocation",
    "Location",
    "MemberDeclaration",
    "MethodDeclaration",
    "PropertyDeclaration",
    "Symbol",
    "ThisAssignment",
    "TypeDeclaration",
    "TypeKind",
    "VariableDeclarator",
]
