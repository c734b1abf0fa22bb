"""Exception taxonomy for graph construction, scheduling and execution."""


class NodeflowError(Exception):
    """Base class for all engine errors."""


class GraphError(NodeflowError):
    """A graph mutation was rejected; the graph is left unchanged."""


class DuplicateIdError(GraphError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' already exists")


class NotFoundError(GraphError):
    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind.capitalize()} '{item_id}' not found")


class InvalidConnectionError(GraphError):
    pass


class CapacityError(GraphError):
    def __init__(self, node_id: str, input_name: str):
        self.node_id = node_id
        self.input_name = input_name
        super().__init__(
            f"Input '{input_name}' on node '{node_id}' already has a connection"
        )


class CycleDetectedError(NodeflowError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Cycle detected in the graph at node '{node_id}'")


class AlreadyRunningError(NodeflowError):
    def __init__(self):
        super().__init__("Execution already in progress")


class InvalidTransitionError(NodeflowError):
    pass


class ExecutionCancelledError(NodeflowError):
    pass
