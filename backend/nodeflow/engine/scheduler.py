"""Deterministic topological ordering of a workflow graph."""
from enum import Enum

from .errors import CycleDetectedError
from .graph import Graph


class _Color(Enum):
    WHITE = 0  # not visited
    GRAY = 1   # on the current DFS path
    BLACK = 2  # finished, already in the order


def execution_order(graph: Graph) -> list[str]:
    """Depth-first post-order over the dependency relation, dependencies first.

    A node depends on every source of its incoming edges, exec and data alike.
    Roots and dependencies are both visited in node insertion order, so an
    unchanged graph always yields the same order. Raises CycleDetectedError
    naming the node at which a back edge was found.
    """
    node_ids = graph.node_ids()
    position = {nid: i for i, nid in enumerate(node_ids)}
    color = {nid: _Color.WHITE for nid in node_ids}
    order: list[str] = []

    def dependencies(node_id: str) -> list[str]:
        deps = [d for d in graph.predecessors(node_id) if d in position]
        return sorted(deps, key=position.__getitem__)

    for root in node_ids:
        if color[root] is not _Color.WHITE:
            continue
        color[root] = _Color.GRAY
        stack = [(root, iter(dependencies(root)))]
        while stack:
            node_id, pending = stack[-1]
            for dep in pending:
                if color[dep] is _Color.GRAY:
                    raise CycleDetectedError(dep)
                if color[dep] is _Color.WHITE:
                    color[dep] = _Color.GRAY
                    stack.append((dep, iter(dependencies(dep))))
                    break
            else:
                stack.pop()
                color[node_id] = _Color.BLACK
                order.append(node_id)

    return order
