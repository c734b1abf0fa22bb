"""Graph data structures for the execution engine."""
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..nodes.base import BaseNode, PortType, ports_compatible
from .errors import (
    CapacityError,
    DuplicateIdError,
    InvalidConnectionError,
    NotFoundError,
)


RemovalListener = Callable[[str], None]


class EdgeKind(str, Enum):
    EXEC = "exec"  # control flow: "then do this next"
    DATA = "data"  # carries a named value


@dataclass(frozen=True)
class Edge:
    id: str
    source_node: str
    source_output: str  # output port name
    target_node: str
    target_input: str   # input port name
    kind: EdgeKind = EdgeKind.DATA

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.source_node, self.source_output, self.target_node, self.target_input)


def edge_id_for(source: str, output: str, target: str, input_name: str) -> str:
    return f"{source}:{output}->{target}:{input_name}"


def edge_kind_for(source_type: PortType, target_type: PortType) -> EdgeKind:
    if PortType.EXEC in (source_type, target_type):
        return EdgeKind.EXEC
    return EdgeKind.DATA


class Graph:
    """Nodes and edges of a workflow, both kept in insertion order.

    Every mutation validates first and only then changes state, so a rejected
    call leaves the graph untouched.
    """

    def __init__(self):
        self._nodes: dict[str, BaseNode] = {}
        self._edges: dict[str, Edge] = {}
        self._removal_listeners: list[RemovalListener] = []

    @property
    def nodes(self) -> dict[str, BaseNode]:
        return dict(self._nodes)

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges.values())

    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get_node(self, node_id: str) -> BaseNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NotFoundError("node", node_id) from None

    def add_node(self, node: BaseNode) -> BaseNode:
        if node.id in self._nodes:
            raise DuplicateIdError(node.id)
        self._nodes[node.id] = node
        return node

    def remove_node(self, node_id: str) -> BaseNode:
        node = self.get_node(node_id)
        self._edges = {
            eid: e for eid, e in self._edges.items()
            if e.source_node != node_id and e.target_node != node_id
        }
        del self._nodes[node_id]
        for listener in list(self._removal_listeners):
            listener(node_id)
        return node

    def add_edge(
        self,
        source_node: str,
        source_output: str,
        target_node: str,
        target_input: str,
        edge_id: str | None = None,
    ) -> Edge:
        source = self.get_node(source_node)
        target = self.get_node(target_node)

        if source_node == target_node:
            raise InvalidConnectionError(f"Cannot connect node '{source_node}' to itself")

        out_spec = source.output_spec(source_output)
        if out_spec is None:
            raise InvalidConnectionError(
                f"Output '{source_output}' not found on node '{source_node}'"
            )
        in_spec = target.input_spec(target_input)
        if in_spec is None:
            raise InvalidConnectionError(
                f"Input '{target_input}' not found on node '{target_node}'"
            )
        if not ports_compatible(out_spec.port_type, in_spec.port_type):
            raise InvalidConnectionError(
                f"Type mismatch {out_spec.port_type.value} → {in_spec.port_type.value} "
                f"({source_node}.{source_output} → {target_node}.{target_input})"
            )

        key = (source_node, source_output, target_node, target_input)
        if any(e.key == key for e in self._edges.values()):
            raise InvalidConnectionError(
                f"{source_node}.{source_output} is already connected to "
                f"{target_node}.{target_input}"
            )
        if not in_spec.multiple and any(
            e.target_node == target_node and e.target_input == target_input
            for e in self._edges.values()
        ):
            raise CapacityError(target_node, target_input)

        edge_id = edge_id or edge_id_for(*key)
        if edge_id in self._edges:
            raise InvalidConnectionError(f"Edge id '{edge_id}' already in use")

        edge = Edge(
            id=edge_id,
            source_node=source_node,
            source_output=source_output,
            target_node=target_node,
            target_input=target_input,
            kind=edge_kind_for(out_spec.port_type, in_spec.port_type),
        )
        self._edges[edge_id] = edge
        return edge

    def remove_edge(self, edge_id: str) -> Edge:
        try:
            return self._edges.pop(edge_id)
        except KeyError:
            raise NotFoundError("edge", edge_id) from None

    def incoming_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self._edges.values() if e.target_node == node_id]

    def outgoing_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self._edges.values() if e.source_node == node_id]

    def predecessors(self, node_id: str) -> list[str]:
        """Nodes ``node_id`` depends on, through exec and data edges alike."""
        seen: dict[str, None] = {}
        for e in self.incoming_edges(node_id):
            seen.setdefault(e.source_node)
        return list(seen)

    def successors(self, node_id: str) -> list[str]:
        seen: dict[str, None] = {}
        for e in self.outgoing_edges(node_id):
            seen.setdefault(e.target_node)
        return list(seen)

    def add_removal_listener(self, listener: RemovalListener) -> None:
        self._removal_listeners.append(listener)

    def remove_removal_listener(self, listener: RemovalListener) -> None:
        if listener in self._removal_listeners:
            self._removal_listeners.remove(listener)
