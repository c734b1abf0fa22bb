"""Conversion between the persisted workflow format and the Graph model."""
from logging import getLogger

from ..models.schemas import ConnectionSchema, NodeSchema, WorkflowSchema
from ..nodes.registry import NodeRegistry
from .errors import GraphError
from .graph import Graph

logger = getLogger(__name__)


def build_graph(workflow: WorkflowSchema, strict: bool = True) -> Graph:
    """Instantiate every node through the registry and wire the connections.

    Node ``data`` becomes the node's configuration; position and other UI
    fields are ignored. With ``strict=False`` connections that fail
    validation are logged and skipped instead of raised; unknown node types
    and invalid configuration always raise.
    """
    graph = Graph()
    for node in workflow.nodes:
        graph.add_node(NodeRegistry.create(node.type, node_id=node.id, config=node.data))

    for conn in workflow.connections:
        try:
            graph.add_edge(
                conn.source, conn.source_output,
                conn.target, conn.target_input,
                edge_id=conn.id or None,
            )
        except GraphError as e:
            if strict:
                raise
            logger.warning("Skipping connection %s: %s", conn.id or "<unnamed>", e)
    return graph


def dump_workflow(
    graph: Graph,
    positions: dict[str, dict[str, float]] | None = None,
    name: str = "",
    description: str = "",
) -> WorkflowSchema:
    positions = positions or {}
    return WorkflowSchema(
        name=name,
        description=description,
        nodes=[
            NodeSchema(
                id=node.id,
                type=node.node_type,
                position=positions.get(node.id, {}),
                data=node.config.model_dump(mode="json"),
            )
            for node in graph.nodes.values()
        ],
        connections=[
            ConnectionSchema(
                id=e.id,
                source=e.source_node,
                source_output=e.source_output,
                target=e.target_node,
                target_input=e.target_input,
            )
            for e in graph.edges
        ],
    )
