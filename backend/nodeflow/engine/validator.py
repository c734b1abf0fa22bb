"""Graph validation: cycle detection and required inputs."""
from .errors import CycleDetectedError, NodeflowError
from .graph import Graph
from .scheduler import execution_order


class ValidationError(NodeflowError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Graph validation failed: {errors}")


def validate_graph(graph: Graph) -> list[str]:
    """Validate a graph, returning a list of error messages (empty = valid)."""
    errors: list[str] = []
    errors.extend(_check_cycles(graph))
    errors.extend(_check_required_inputs(graph))
    return errors


def ensure_valid(graph: Graph) -> None:
    errors = validate_graph(graph)
    if errors:
        raise ValidationError(errors)


def _check_cycles(graph: Graph) -> list[str]:
    try:
        execution_order(graph)
    except CycleDetectedError as e:
        return [str(e)]
    return []


def _check_required_inputs(graph: Graph) -> list[str]:
    errors: list[str] = []
    for node_id, node in graph.nodes.items():
        connected_inputs = {e.target_input for e in graph.incoming_edges(node_id)}
        for input_name, spec in node.INPUT_TYPES().items():
            if spec.required and input_name not in connected_inputs:
                errors.append(
                    f"Node '{node_id}' ({node.node_type}): "
                    f"required input '{input_name}' not connected"
                )
    return errors
