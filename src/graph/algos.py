"""Graph algorithms for constructor delegation edges."""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Hashable, Mapping

Node = TypeVar("Node", bound="Hashable")


class _TarjanState(Generic[Node]):
    """Mutable state container for Tarjan's SCC algorithm."""

    def __init__(self) -> None:
        self.counter = 0
        self.indices: dict[Node, int] = {}
        self.low_link: dict[Node, int] = {}
        self.on_stack: set[Node] = set()
        self.stack: list[Node] = []
        self.components: list[list[Node]] = []


def _pop_component(state: _TarjanState[Node], root: Node) -> list[Node]:
    component: list[Node] = []
    while True:
        node = state.stack.pop()
        state.on_stack.discard(node)
        component.append(node)
        if node == root:
            return component


def _visit(
    node: Node,
    graph: Mapping[Node, set[Node]],
    order: dict[Node, int],
    state: _TarjanState[Node],
) -> None:
    state.indices[node] = state.low_link[node] = state.counter
    state.counter += 1
    state.stack.append(node)
    state.on_stack.add(node)

    for successor in sorted(graph.get(node, ()), key=lambda n: order.get(n, -1)):
        if successor not in state.indices:
            _visit(successor, graph, order, state)
            state.low_link[node] = min(state.low_link[node], state.low_link[successor])
        elif successor in state.on_stack:
            state.low_link[node] = min(state.low_link[node], state.indices[successor])

    if state.low_link[node] != state.indices[node]:
        return

    component = _pop_component(state, node)
    if len(component) > 1 or node in graph.get(node, ()):
        component.sort(key=lambda n: order.get(n, -1))
        state.components.append(component)


def find_cycles(graph: Mapping[Node, set[Node]]) -> list[list[Node]]:
    """Return the cyclic strongly connected components of ``graph``.

    Nodes need not be orderable: traversal follows the mapping's insertion
    order, so the result is deterministic for a deterministic input.
    A node with an edge to itself forms a cycle on its own.
    """
    order = {node: position for position, node in enumerate(graph)}
    state: _TarjanState[Node] = _TarjanState()

    for node in graph:
        if node not in state.indices:
            _visit(node, graph, order, state)

    return state.components


__all__ = ["find_cycles"]
