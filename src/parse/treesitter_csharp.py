"""Tree-sitter based declaration extraction for C# source."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import tree_sitter_c_sharp
from tree_sitter import Language, Node, Parser

from analysis.model import (
    AccessorDeclaration,
    ConstructorDeclaration,
    ConstructorInitializer,
    FieldDeclaration,
    MethodDeclaration,
    PropertyDeclaration,
    Symbol,
    TypeDeclaration,
    VariableDeclarator,
)
from parse.name_resolution import MemberInfo, MemberTable, ParameterInfo
from parse.treesitter_bodies import (
    BodyContext,
    argument_shapes,
    declared_names,
    lower_body,
    make_location,
    node_text,
)

if TYPE_CHECKING:
    from pathlib import Path

    from analysis.model import (
        Accessibility,
        AccessorKind,
        Body,
        MemberDeclaration,
        TypeKind,
    )

logger = logging.getLogger(__name__)

_PARSER: Parser | None = None

_TYPE_NODES: dict[str, TypeKind] = {
    "class_declaration": "class",
    "struct_declaration": "struct",
    "record_declaration": "record",
    "record_struct_declaration": "struct",
}

_MODIFIER_WORDS = frozenset(
    {
        "abstract", "async", "const", "extern", "file", "fixed", "internal",
        "new", "override", "partial", "private", "protected", "public",
        "readonly", "required", "sealed", "static", "unsafe", "virtual",
        "volatile",
    }
)  # fmt: skip

_PARAMETER_MODIFIERS = frozenset(
    {"ref", "out", "in", "params", "this", "scoped", "readonly"}
)

_BODY_NODES = ("block", "arrow_expression_clause")

_ACCESSOR_KINDS: dict[str, AccessorKind] = {"get": "get", "set": "set", "init": "init"}


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with the C# language."""
    global _PARSER
    if _PARSER is None:
        lang = Language(tree_sitter_c_sharp.language())
        _PARSER = Parser(lang)

    return _PARSER


def _qualify(*parts: str) -> str:
    return ".".join(part for part in parts if part)


def _member_symbol(relative_path: str, qualified_type: str, name: str, node: Node) -> Symbol:
    line = node.start_point[0] + 1
    col = node.start_point[1] + 1
    return Symbol(
        key=f"sym:{relative_path}::{qualified_type}.{name}@L{line}:C{col}",
        name=name,
    )


def _modifiers(node: Node) -> frozenset[str]:
    words = set()
    for child in node.children:
        if child.type == "modifier":
            words.add(node_text(child).strip())
        elif not child.is_named and child.type in _MODIFIER_WORDS:
            words.add(child.type)
    return frozenset(words)


def _accessibility(modifiers: frozenset[str]) -> Accessibility | None:
    if "public" in modifiers:
        return "public"
    if "protected" in modifiers and "internal" in modifiers:
        return "protected internal"
    if "private" in modifiers and "protected" in modifiers:
        return "private protected"
    if "protected" in modifiers:
        return "protected"
    if "internal" in modifiers:
        return "internal"
    if "private" in modifiers:
        return "private"
    return None


def _has_initializer(node: Node) -> bool:
    return any(child.type in ("=", "equals_value_clause") for child in node.children)


def _body_node(node: Node) -> Node | None:
    body = node.child_by_field_name("body")
    if body is not None:
        return body if body.type in _BODY_NODES else None
    for child in node.named_children:
        if child.type in _BODY_NODES:
            return child
    return None


def _first_child(node: Node, *types: str) -> Node | None:
    for child in node.children:
        if child.type in types:
            return child
    return None


# ---------------------------------------------------------------------------
# Parameters and member table
# ---------------------------------------------------------------------------


def _parameter(node: Node) -> ParameterInfo:
    words = set()
    for child in node.children:
        if child.type in ("modifier", "parameter_modifier"):
            words.add(node_text(child).strip())
        elif not child.is_named and child.type in _PARAMETER_MODIFIERS:
            words.add(child.type)

    modifier = next((word for word in ("ref", "out", "in") if word in words), None)
    return ParameterInfo(
        name=node_text(node.child_by_field_name("name")),
        type_name=node_text(node.child_by_field_name("type")),
        has_default=_has_initializer(node),
        is_params="params" in words,
        modifier=modifier,
    )


def _parameters(parameter_list: Node | None) -> tuple[ParameterInfo, ...]:
    if parameter_list is None:
        return ()

    result = []
    in_params_array = False
    params_type = ""
    for child in parameter_list.children:
        if child.type == "parameter":
            result.append(_parameter(child))
        elif child.type == "params":
            # ``params T[] name`` is flattened into the list by the grammar.
            in_params_array = True
        elif in_params_array and child.type == "identifier" and params_type:
            result.append(
                ParameterInfo(name=node_text(child), type_name=params_type, is_params=True)
            )
            in_params_array = False
        elif in_params_array and child.is_named and child.type != "attribute_list":
            params_type = node_text(child)
    return tuple(result)


def _variable_declarators(field_node: Node) -> list[Node]:
    declaration = _first_child(field_node, "variable_declaration")
    if declaration is None:
        return []
    return [c for c in declaration.named_children if c.type == "variable_declarator"]


def _declarator_name(declarator: Node) -> Node | None:
    name = declarator.child_by_field_name("name")
    if name is not None:
        return name
    return _first_child(declarator, "identifier")


class _TypeBuilder:
    """Builds one ``TypeDeclaration`` from a class, struct or record node."""

    def __init__(self, node: Node, qualified_name: str, relative_path: str) -> None:
        self.node = node
        self.qualified_name = qualified_name
        self.relative_path = relative_path
        self.member_nodes = self._member_nodes()
        self.table = MemberTable(qualified_name, self._member_infos())

    def _member_nodes(self) -> list[Node]:
        body = self.node.child_by_field_name("body")
        if body is None:
            body = _first_child(self.node, "declaration_list")
        if body is None:
            return []
        return [child for child in body.named_children if child.type != "comment"]

    def _symbol(self, name: str, node: Node) -> Symbol:
        return _member_symbol(self.relative_path, self.qualified_name, name, node)

    def _named_symbol(self, node: Node) -> tuple[str, Symbol] | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        name = node_text(name_node)
        return name, self._symbol(name, name_node)

    def _indexer_symbol(self, node: Node) -> Symbol:
        anchor = _first_child(node, "this") or node
        return self._symbol("this[]", anchor)

    def _member_infos(self) -> list[MemberInfo]:
        infos = []
        for member in self.member_nodes:
            member_type = member.type
            is_static = "static" in _modifiers(member)
            if member_type == "field_declaration":
                for declarator in _variable_declarators(member):
                    name_node = _declarator_name(declarator)
                    if name_node is None:
                        continue
                    symbol = self._symbol(node_text(name_node), name_node)
                    infos.append(MemberInfo(symbol, "field", is_static=is_static))
            elif member_type == "indexer_declaration":
                infos.append(
                    MemberInfo(
                        self._indexer_symbol(member),
                        "indexer",
                        _parameters(member.child_by_field_name("parameters")),
                    )
                )
            elif member_type in (
                "property_declaration",
                "method_declaration",
                "constructor_declaration",
            ):
                named = self._named_symbol(member)
                if named is None:
                    continue
                kind = {
                    "property_declaration": "property",
                    "method_declaration": "method",
                    "constructor_declaration": "constructor",
                }[member_type]
                infos.append(
                    MemberInfo(
                        named[1],
                        kind,
                        _parameters(member.child_by_field_name("parameters")),
                        is_static=is_static,
                    )
                )
        return infos

    # -- bodies -----------------------------------------------------------

    def _lower(
        self, body: Node | None, owner: Node, implicit: tuple[str, ...] = ()
    ) -> Body | None:
        if body is None:
            return None
        ctx = BodyContext(
            relative_path=self.relative_path,
            table=self.table,
            declared=declared_names(owner, implicit=implicit),
        )
        return lower_body(body, ctx)

    # -- members ----------------------------------------------------------

    def build(self) -> TypeDeclaration:
        members: list[MemberDeclaration] = []
        for member in self.member_nodes:
            declaration = self._member(member)
            if declaration is not None:
                members.append(declaration)

        name_node = self.node.child_by_field_name("name")
        name = node_text(name_node) if name_node is not None else "<anonymous>"
        kind = _TYPE_NODES[self.node.type]
        if kind == "record" and _first_child(self.node, "struct") is not None:
            kind = "struct"
        location = make_location(self.node, self.relative_path)
        return TypeDeclaration(
            symbol=Symbol(
                key=(
                    f"sym:{self.relative_path}::{self.qualified_name}"
                    f"@L{location.start_line}:C{location.start_col}"
                ),
                name=name,
            ),
            name=name,
            qualified_name=self.qualified_name,
            kind=kind,
            location=location,
            members=tuple(members),
        )

    def _member(self, node: Node) -> MemberDeclaration | None:
        member_type = node.type
        if member_type == "field_declaration":
            return self._field(node)
        if member_type in ("property_declaration", "indexer_declaration"):
            return self._property(node)
        if member_type == "method_declaration":
            return self._method(node)
        if member_type == "constructor_declaration":
            return self._constructor(node)
        return None

    def _field(self, node: Node) -> FieldDeclaration:
        modifiers = _modifiers(node)
        variables = []
        for declarator in _variable_declarators(node):
            name_node = _declarator_name(declarator)
            if name_node is None:
                continue
            name = node_text(name_node)
            variables.append(
                VariableDeclarator(
                    symbol=self._symbol(name, name_node),
                    name=name,
                    has_initializer=_has_initializer(declarator),
                    location=make_location(name_node, self.relative_path),
                )
            )
        return FieldDeclaration(
            accessibility=_accessibility(modifiers) or "private",
            variables=tuple(variables),
            modifiers=modifiers,
        )

    def _property(self, node: Node) -> PropertyDeclaration | None:
        is_indexer = node.type == "indexer_declaration"
        if is_indexer:
            name = "this[]"
            symbol = self._indexer_symbol(node)
        else:
            named = self._named_symbol(node)
            if named is None:
                return None
            name, symbol = named

        modifiers = _modifiers(node)
        accessor_list = node.child_by_field_name("accessors") or _first_child(
            node, "accessor_list"
        )
        accessors = None
        if accessor_list is not None:
            accessors = tuple(
                accessor
                for child in accessor_list.named_children
                if child.type == "accessor_declaration"
                and (accessor := self._accessor(child, node, symbol)) is not None
            )

        return PropertyDeclaration(
            symbol=symbol,
            name=name,
            accessibility=_accessibility(modifiers) or "private",
            location=make_location(node, self.relative_path),
            accessors=accessors,
            modifiers=modifiers,
            is_indexer=is_indexer,
            has_expression_body=_first_child(node, "arrow_expression_clause")
            is not None,
            has_initializer=_has_initializer(node),
        )

    def _accessor(
        self, node: Node, owner: Node, property_symbol: Symbol
    ) -> AccessorDeclaration | None:
        keyword = node.child_by_field_name("name")
        kind = _ACCESSOR_KINDS.get(node_text(keyword)) if keyword is not None else None
        if kind is None:
            found = _first_child(node, *_ACCESSOR_KINDS)
            if found is None:
                return None
            kind = _ACCESSOR_KINDS[found.type]

        implicit = ("value",) if kind in ("set", "init") else ()
        return AccessorDeclaration(
            kind=kind,
            symbol=Symbol(key=f"{property_symbol.key}#{kind}", name=property_symbol.name),
            body=self._lower(_body_node(node), owner, implicit),
            accessibility=_accessibility(_modifiers(node)),
        )

    def _method(self, node: Node) -> MethodDeclaration | None:
        named = self._named_symbol(node)
        if named is None:
            return None
        name, symbol = named
        return MethodDeclaration(
            symbol=symbol,
            name=name,
            body=self._lower(_body_node(node), node),
            modifiers=_modifiers(node),
        )

    def _constructor(self, node: Node) -> ConstructorDeclaration | None:
        named = self._named_symbol(node)
        if named is None:
            return None
        name, symbol = named
        parameters = _parameters(node.child_by_field_name("parameters"))
        signature = f"{name}({', '.join(p.type_name for p in parameters)})"
        return ConstructorDeclaration(
            symbol=symbol,
            name=name,
            location=make_location(node, self.relative_path),
            body=self._lower(_body_node(node), node),
            initializer=self._constructor_initializer(node, symbol),
            modifiers=_modifiers(node),
            signature=signature,
        )

    def _constructor_initializer(
        self, node: Node, symbol: Symbol
    ) -> ConstructorInitializer | None:
        initializer = _first_child(node, "constructor_initializer")
        if initializer is None:
            return None
        if _first_child(initializer, "base") is not None:
            return ConstructorInitializer(kind="base", target=None)

        arguments = _first_child(initializer, "argument_list")
        target = self.table.resolve_constructor(
            argument_shapes(arguments), exclude=symbol
        )
        return ConstructorInitializer(kind="this", target=target)


def _collect_types(
    node: Node,
    namespace: str,
    enclosing: tuple[str, ...],
    relative_path: str,
    types: list[TypeDeclaration],
) -> None:
    """Collect type declarations under ``node`` in source order."""
    current_namespace = namespace
    for child in node.named_children:
        child_type = child.type
        if child_type == "namespace_declaration":
            name = _qualify(namespace, node_text(child.child_by_field_name("name")))
            body = child.child_by_field_name("body")
            if body is not None:
                _collect_types(body, name, (), relative_path, types)
        elif child_type == "file_scoped_namespace_declaration":
            # Members may be nested under the declaration or follow it.
            current_namespace = _qualify(
                namespace, node_text(child.child_by_field_name("name"))
            )
            _collect_types(child, current_namespace, (), relative_path, types)
        elif child_type in _TYPE_NODES:
            _handle_type_declaration(
                child, current_namespace, enclosing, relative_path, types
            )


def _handle_type_declaration(
    node: Node,
    namespace: str,
    enclosing: tuple[str, ...],
    relative_path: str,
    types: list[TypeDeclaration],
) -> None:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return

    name = node_text(name_node)
    qualified = _qualify(namespace, *enclosing, name)
    builder = _TypeBuilder(node, qualified, relative_path)
    types.append(builder.build())

    for member in builder.member_nodes:
        if member.type in _TYPE_NODES:
            _handle_type_declaration(
                member, namespace, (*enclosing, name), relative_path, types
            )


def parse_types(source: bytes | str, relative_path: str) -> list[TypeDeclaration]:
    """Parse C# source text into type declarations."""
    if isinstance(source, str):
        source = source.encode("utf8")
    tree = _get_parser().parse(source)
    types: list[TypeDeclaration] = []
    _collect_types(tree.root_node, "", (), relative_path, types)
    return types


def extract_types_treesitter(file_path: Path, relative_path: str) -> list[TypeDeclaration]:
    """Extract class, struct and record declarations from a C# file.

    Args:
        file_path: Absolute path to the C# file
        relative_path: Path relative to repo root (for output)

    Returns:
        List of TypeDeclaration objects, outer types before their nested types.
    """
    try:
        source_bytes = file_path.read_bytes()
    except OSError as exc:
        logger.warning("Skipping unreadable file %s: %s", relative_path, exc)
        return []

    return parse_types(source_bytes, relative_path)


__all__ = ["extract_types_treesitter", "parse_types"]
