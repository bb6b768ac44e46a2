"""Lower C# member bodies to the ordered body-node sequence.

Only the constructs the initialization analysis consumes are emitted:
assignments, invocations, by-reference arguments, references to the type's
own members, ``this[...]`` accesses and a struct's ``this = ...``. Nodes are
emitted in pre-order, so an assignment or call always precedes the
identifiers inside it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from analysis.model import (
    Assignment,
    ByRefArgument,
    IdentifierReference,
    IndexerAccess,
    Invocation,
    Location,
    ThisAssignment,
)
from parse.name_resolution import ArgumentShape

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from tree_sitter import Node

    from analysis.model import Body, BodyNode, Symbol
    from parse.name_resolution import LiteralKind, MemberTable

_LITERAL_KINDS: dict[str, LiteralKind] = {
    "integer_literal": "integer",
    "real_literal": "real",
    "string_literal": "string",
    "verbatim_string_literal": "string",
    "raw_string_literal": "string",
    "interpolated_string_expression": "string",
    "character_literal": "char",
    "boolean_literal": "bool",
    "null_literal": "null",
}

# Parents whose identifier children name types, labels or namespaces.
_TYPE_PARENTS = frozenset(
    {
        "alias_qualified_name",
        "array_type",
        "attribute",
        "base_list",
        "explicit_interface_specifier",
        "generic_name",
        "goto_statement",
        "labeled_statement",
        "name_colon",
        "name_equals",
        "nullable_type",
        "pointer_type",
        "qualified_name",
        "ref_type",
        "scoped_type",
        "sizeof_expression",
        "tuple_element",
        "type_argument_list",
        "type_constraint",
        "type_parameter",
        "type_parameter_constraints_clause",
        "typeof_expression",
        "default_expression",
    }
)

# Subtrees that contain no member reads or writes.
_OPAQUE_NODES = frozenset(
    {
        "attribute_list",
        "generic_name",
        "predefined_type",
        "qualified_name",
        "array_type",
        "nullable_type",
        "pointer_type",
        "typeof_expression",
        "sizeof_expression",
        "default_expression",
        "comment",
    }
)

_DECLARATION_NAME_PARENTS = frozenset(
    {
        "catch_declaration",
        "declaration_expression",
        "declaration_pattern",
        "from_clause",
        "join_clause",
        "join_into_clause",
        "let_clause",
        "query_continuation",
        "variable_declarator",
        "parameter",
    }
)

# Constructs that open a lexical scope for the names declared directly in them.
_SCOPE_NODES = frozenset(
    {
        "anonymous_method_expression",
        "arrow_expression_clause",
        "block",
        "catch_clause",
        "fixed_statement",
        "for_statement",
        "foreach_statement",
        "lambda_expression",
        "local_function_statement",
        "query_expression",
        "switch_section",
        "using_statement",
    }
)

_THIS_NODES = frozenset({"this", "this_expression"})


@dataclass(frozen=True)
class DeclaredNames:
    """Names in scope at some point of a body, which shadow the type's members."""

    variables: frozenset[str] = frozenset()
    functions: frozenset[str] = frozenset()

    def extended(self, inner: DeclaredNames) -> DeclaredNames:
        return DeclaredNames(
            self.variables | inner.variables, self.functions | inner.functions
        )


@dataclass(frozen=True)
class BodyContext:
    relative_path: str
    table: MemberTable
    declared: DeclaredNames = DeclaredNames()


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf8", errors="ignore")


def make_location(node: Node, relative_path: str) -> Location:
    return Location(
        path=relative_path,
        start_line=node.start_point[0] + 1,
        start_col=node.start_point[1] + 1,
        end_line=node.end_point[0] + 1,
        end_col=node.end_point[1] + 1,
    )


def _same(a: Node | None, b: Node | None) -> bool:
    return (
        a is not None
        and b is not None
        and a.type == b.type
        and a.start_byte == b.start_byte
        and a.end_byte == b.end_byte
    )


def _is_this(node: Node | None) -> bool:
    return node is not None and node.type in _THIS_NODES


def _unwrap_parentheses(node: Node) -> Node:
    while node.type == "parenthesized_expression" and node.named_child_count == 1:
        node = node.named_children[0]
    return node


def _simple_name(node: Node | None) -> str | None:
    """Name of an ``identifier`` or ``generic_name`` node."""
    if node is None:
        return None
    if node.type == "identifier":
        return node_text(node)
    if node.type == "generic_name":
        for child in node.children:
            if child.type == "identifier":
                return node_text(child)
    return None


# ---------------------------------------------------------------------------
# Declared names
# ---------------------------------------------------------------------------


def _designation_names(node: Node) -> Iterable[str]:
    if node.type in ("identifier", "implicit_parameter"):
        yield node_text(node)
        return
    for child in node.named_children:
        if child.type in (
            "identifier",
            "parenthesized_variable_designation",
            "tuple_pattern",
            "implicit_parameter",
        ):
            yield from _designation_names(child)


def _parameter_names(parameters: Node | None) -> Iterable[str]:
    if parameters is None:
        return
    if parameters.type in ("identifier", "implicit_parameter"):
        yield node_text(parameters)
        return
    for child in parameters.named_children:
        if child.type == "parameter":
            name = child.child_by_field_name("name")
            if name is not None:
                yield node_text(name)
        elif child.type == "identifier":
            # ``params`` arrays are flattened into the parameter list.
            yield node_text(child)


def declared_names(
    parameter_owner: Node | None = None, *, implicit: Iterable[str] = ()
) -> DeclaredNames:
    """Names in scope for a whole member body: its parameters and ``implicit``."""
    variables: set[str] = set(implicit)
    if parameter_owner is not None:
        variables.update(
            _parameter_names(parameter_owner.child_by_field_name("parameters"))
        )
    return DeclaredNames(frozenset(variables))


def scope_names(scope: Node) -> DeclaredNames:
    """Collect the names ``scope`` declares for its own extent.

    A local is visible throughout the scope that declares it, before its
    declaration included. Scopes nested inside ``scope`` are not searched,
    except that a local function's name belongs to the enclosing scope.
    """
    variables: set[str] = set()
    functions: set[str] = set()

    if scope.type == "foreach_statement":
        left = scope.child_by_field_name("left")
        if left is not None and left.type in ("identifier", "tuple_pattern"):
            variables.update(_designation_names(left))
    elif scope.type == "lambda_expression":
        variables.update(_parameter_names(scope.child_by_field_name("parameters")))

    stack = list(scope.named_children)
    while stack:
        node = stack.pop()
        node_type = node.type

        if node_type in _SCOPE_NODES:
            if node_type == "local_function_statement":
                name = node.child_by_field_name("name")
                if name is not None:
                    functions.add(node_text(name))
            continue

        if node_type in _DECLARATION_NAME_PARENTS:
            name = node.child_by_field_name("name")
            if name is not None:
                variables.update(_designation_names(name))
            elif node_type == "variable_declarator":
                for child in node.children:
                    if child.type == "identifier":
                        variables.add(node_text(child))
                        break
        elif node_type in ("parenthesized_variable_designation", "var_pattern"):
            variables.update(_designation_names(node))
        elif node_type == "implicit_parameter":
            variables.add(node_text(node))

        stack.extend(node.named_children)

    return DeclaredNames(frozenset(variables), frozenset(functions))


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------


def _literal_kind(node: Node | None) -> LiteralKind | None:
    if node is None:
        return None
    node = _unwrap_parentheses(node)
    if node.type == "prefix_unary_expression" and node.named_child_count == 1:
        operator = node_text(node.children[0]) if node.children else ""
        if operator in ("-", "+"):
            node = node.named_children[0]
    return _LITERAL_KINDS.get(node.type)


def _argument_parts(argument: Node) -> tuple[str | None, str | None, Node | None]:
    """Split an ``argument`` node into (label, ref/out/in modifier, expression)."""
    label_node = argument.child_by_field_name("name")
    label = node_text(label_node) if label_node is not None else None
    modifier = None
    expression = None
    for child in argument.children:
        if child.type in ("ref", "out", "in"):
            modifier = child.type
        elif child.type == "name_colon":
            label = _simple_name(child.named_children[0]) if child.named_children else None
        elif child.is_named and not _same(child, label_node):
            expression = child
    return label, modifier, expression


def _arguments(argument_list: Node | None) -> list[Node]:
    if argument_list is None:
        return []
    return [child for child in argument_list.named_children if child.type == "argument"]


def argument_shapes(argument_list: Node | None) -> list[ArgumentShape]:
    shapes = []
    for argument in _arguments(argument_list):
        label, modifier, expression = _argument_parts(argument)
        shapes.append(
            ArgumentShape(
                literal=_literal_kind(expression), label=label, modifier=modifier
            )
        )
    return shapes


def _by_ref_arguments(
    argument_list: Node | None, ctx: BodyContext, shadowed: frozenset[str]
) -> tuple[ByRefArgument, ...]:
    result = []
    for argument in _arguments(argument_list):
        _, modifier, expression = _argument_parts(argument)
        if modifier not in ("out", "ref", "in") or expression is None:
            continue
        result.append(
            ByRefArgument(
                symbol=_resolve_target(expression, ctx, shadowed),
                kind=modifier,
                location=make_location(expression, ctx.relative_path),
            )
        )
    return tuple(result)


# ---------------------------------------------------------------------------
# Position predicates
# ---------------------------------------------------------------------------


def is_assigned(node: Node) -> bool:
    """Whether ``node`` is written: assignment left side, ``++``/``--`` operand,
    or the target of an element access, looking through ``(...)`` and
    ``this.`` qualification.
    """
    current = node
    while True:
        parent = current.parent
        if parent is None:
            return False

        parent_type = parent.type
        if parent_type == "assignment_expression":
            # ``x += 1`` reads ``x`` before writing it.
            return _same(
                parent.child_by_field_name("left"), current
            ) and _assignment_operator(parent) == "="
        if parent_type == "prefix_unary_expression":
            return bool(parent.children) and node_text(parent.children[0]) in (
                "++",
                "--",
            )
        if parent_type == "postfix_unary_expression":
            return bool(parent.children) and node_text(parent.children[-1]) in (
                "++",
                "--",
            )
        if parent_type == "element_access_expression":
            return _same(parent.child_by_field_name("expression"), current)
        if parent_type == "member_access_expression":
            if _same(parent.child_by_field_name("expression"), current):
                return False
        elif parent_type != "parenthesized_expression":
            return False

        current = parent


def _is_type_position(node: Node) -> bool:
    parent = node.parent
    if parent is None:
        return False
    if parent.type in _TYPE_PARENTS:
        return True
    if parent.type in ("as_expression", "is_expression"):
        return _same(parent.child_by_field_name("right"), node)
    return _same(parent.child_by_field_name("type"), node)


def _is_label(node: Node) -> bool:
    """Named-argument labels and anonymous-object member names."""
    parent = node.parent
    if parent is None:
        return False
    if parent.type == "argument":
        return _same(parent.child_by_field_name("name"), node)
    if parent.type == "anonymous_object_creation_expression":
        sibling = node.next_sibling
        return sibling is not None and sibling.type == "="
    return False


def _assignment_operator(assignment: Node) -> str:
    operator = assignment.child_by_field_name("operator")
    if operator is None:
        for child in assignment.children:
            if child.type == "assignment_operator" or not child.is_named:
                operator = child
                break
    return node_text(operator).strip()


def _is_object_initializer_member(assignment: Node) -> bool:
    """``X = 1`` inside ``new T { X = 1 }`` assigns a member of ``T``."""
    parent = assignment.parent
    return parent is not None and parent.type in (
        "initializer_expression",
        "with_initializer",
    )


def _resolve_target(
    node: Node, ctx: BodyContext, shadowed: frozenset[str]
) -> Symbol | None:
    node = _unwrap_parentheses(node)
    if node.type == "identifier":
        return ctx.table.resolve_name(node_text(node), shadowed=shadowed)
    if node.type == "member_access_expression" and _is_this(
        node.child_by_field_name("expression")
    ):
        name = _simple_name(node.child_by_field_name("name"))
        if name is not None:
            return ctx.table.resolve_name(name)
    return None


# ---------------------------------------------------------------------------
# Lowering
# ---------------------------------------------------------------------------


class _Lowering:
    def __init__(self, ctx: BodyContext) -> None:
        self.ctx = ctx
        self.nodes: list[BodyNode] = []
        self._scopes: list[DeclaredNames] = [ctx.declared]
        self._handlers: dict[str, Callable[[Node], bool]] = {
            "invocation_expression": self._invocation,
            "object_creation_expression": self._object_creation,
            "implicit_object_creation_expression": self._object_creation,
            "assignment_expression": self._assignment,
            "member_access_expression": self._member_access,
            "element_access_expression": self._element_access,
            "identifier": self._identifier,
        }

    def lower(self, node: Node) -> None:
        if node.type in _OPAQUE_NODES:
            return
        if node.type not in _SCOPE_NODES:
            self._lower_node(node)
            return
        self._scopes.append(self._scopes[-1].extended(scope_names(node)))
        self._lower_node(node)
        self._scopes.pop()

    def _lower_node(self, node: Node) -> None:
        handler = self._handlers.get(node.type)
        if handler is not None and not handler(node):
            return
        for child in node.named_children:
            self.lower(child)

    @property
    def _shadowed(self) -> frozenset[str]:
        return self._scopes[-1].variables

    def _location(self, node: Node) -> Location:
        return make_location(node, self.ctx.relative_path)

    def _invocation(self, node: Node) -> bool:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None:
            return True
        if function.type == "identifier" and node_text(function) == "nameof":
            return False

        callee = None
        shapes = argument_shapes(arguments)
        if function.type in ("identifier", "generic_name"):
            name = _simple_name(function)
            if name is not None:
                callee = self.ctx.table.resolve_invocation(
                    name,
                    shapes,
                    shadowed=self._shadowed | self._scopes[-1].functions,
                )
        elif function.type == "member_access_expression" and _is_this(
            function.child_by_field_name("expression")
        ):
            name = _simple_name(function.child_by_field_name("name"))
            if name is not None:
                callee = self.ctx.table.resolve_invocation(name, shapes)

        self.nodes.append(
            Invocation(
                callee=callee,
                location=self._location(node),
                by_ref_arguments=_by_ref_arguments(
                    arguments, self.ctx, self._shadowed
                ),
            )
        )
        return True

    def _object_creation(self, node: Node) -> bool:
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            for child in node.named_children:
                if child.type == "argument_list":
                    arguments = child
                    break
        self.nodes.extend(_by_ref_arguments(arguments, self.ctx, self._shadowed))
        return True

    def _assignment(self, node: Node) -> bool:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")

        if _is_object_initializer_member(node):
            if right is not None:
                self.lower(right)
            return False

        if left is None or _assignment_operator(node) != "=":
            return True

        self._emit_assignments(left)
        return True

    def _emit_assignments(self, left: Node) -> None:
        left = _unwrap_parentheses(left)
        if left.type == "tuple_expression":
            for element in _arguments(left):
                _, _, expression = _argument_parts(element)
                if expression is not None:
                    self._emit_assignments(expression)
            return
        if _is_this(left):
            # ``this = ...`` replaces every field of a struct at once.
            self.nodes.append(ThisAssignment(location=self._location(left)))
            return
        self.nodes.append(
            Assignment(
                target=_resolve_target(left, self.ctx, self._shadowed),
                location=self._location(left),
            )
        )

    def _member_access(self, node: Node) -> bool:
        expression = node.child_by_field_name("expression")
        name = node.child_by_field_name("name")
        if not _is_this(expression):
            # ``other.x`` names a member of another object.
            if expression is not None:
                self.lower(expression)
            return False

        if name is not None and name.type == "identifier":
            self._reference(name, self.ctx.table.resolve_name(node_text(name)))
        return False

    def _element_access(self, node: Node) -> bool:
        if _is_this(node.child_by_field_name("expression")):
            self.nodes.append(
                IndexerAccess(assigned=is_assigned(node), location=self._location(node))
            )
        return True

    def _identifier(self, node: Node) -> bool:
        if _is_type_position(node) or _is_label(node):
            return False
        symbol = self.ctx.table.resolve_name(node_text(node), shadowed=self._shadowed)
        self._reference(node, symbol)
        return False

    def _reference(self, node: Node, symbol: Symbol | None) -> None:
        if symbol is None:
            return
        self.nodes.append(
            IdentifierReference(
                symbol=symbol,
                name=symbol.name,
                assigned=is_assigned(node),
                location=self._location(node),
            )
        )


def lower_body(node: Node | None, ctx: BodyContext) -> Body | None:
    """Lower a block or expression body; ``None`` when there is no body."""
    if node is None:
        return None
    lowering = _Lowering(ctx)
    lowering.lower(node)
    return tuple(lowering.nodes)


__all__ = [
    "BodyContext",
    "DeclaredNames",
    "argument_shapes",
    "declared_names",
    "scope_names",
    "is_assigned",
    "lower_body",
    "make_location",
    "node_text",
]
