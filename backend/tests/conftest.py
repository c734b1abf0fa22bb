"""Shared test fixtures for Nodeflow backend tests."""
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

# Ensure nodeflow package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from nodeflow.engine.graph import Graph
from nodeflow.nodes.base import BaseNode, InputSpec, OutputSpec, PortType

POSTS = [
    {"title": "New AI model released", "score": 42},
    {"title": "Gardening tips", "score": 7},
    {"title": "AI in healthcare", "score": 19},
]

EXEC_IN = {"exec": InputSpec(PortType.EXEC, multiple=True)}
EXEC_OUT = [OutputSpec(PortType.EXEC, "exec")]


class ScriptedNode(BaseNode):
    """Test node whose ports and behaviour are supplied per instance.

    ``fn(inputs, context)`` may be sync or async; every call's inputs are
    appended to ``calls`` and the node id to the shared ``trace``.
    """

    def __init__(
        self,
        node_id: str,
        inputs: dict[str, InputSpec] | None = None,
        outputs: list[OutputSpec] | None = None,
        fn: Callable[..., Any] | None = None,
        trace: list[str] | None = None,
    ):
        super().__init__(node_id=node_id, node_type="scripted")
        self._inputs = inputs or {}
        self._outputs = outputs or []
        self.fn = fn
        self.calls: list[dict[str, Any]] = []
        self.trace = trace if trace is not None else []

    def INPUT_TYPES(self):
        return self._inputs

    def RETURN_TYPES(self):
        return self._outputs

    async def execute(self, inputs, context):
        self.calls.append(inputs)
        self.trace.append(self.id)
        if self.fn is None:
            return {}
        result = self.fn(inputs, context)
        if hasattr(result, "__await__"):
            result = await result
        return result


@pytest.fixture(scope="session", autouse=True)
def register_nodes():
    """Discover and register all node types once per test session."""
    from nodeflow.nodes.registry import NodeRegistry
    NodeRegistry.discover("nodeflow.nodes")


@pytest.fixture
def trace():
    return []


@pytest.fixture
def make_node(trace):
    def factory(node_id, inputs=None, outputs=None, fn=None):
        return ScriptedNode(node_id, inputs=inputs, outputs=outputs, fn=fn, trace=trace)
    return factory


@pytest.fixture
def data_node(make_node):
    """Node with exec in/out plus one data input ``in`` and one data output ``out``."""
    def factory(node_id, fn=None, multiple=False):
        return make_node(
            node_id,
            inputs={**EXEC_IN, "in": InputSpec(PortType.DATA, multiple=multiple)},
            outputs=[*EXEC_OUT, OutputSpec(PortType.DATA, "out")],
            fn=fn,
        )
    return factory


class Pipeline:
    def __init__(self, graph: Graph, nodes: dict[str, ScriptedNode]):
        self.graph = graph
        self.nodes = nodes


@pytest.fixture
def pipeline(make_node):
    """Start --exec--> Fetch --data(posts)--> Filter --data(output)--> Log."""
    start = make_node("start", outputs=EXEC_OUT)
    fetch = make_node(
        "fetch",
        inputs=EXEC_IN,
        outputs=[*EXEC_OUT, OutputSpec(PortType.DATA, "posts")],
        fn=lambda inputs, ctx: {"posts": POSTS},
    )
    filt = make_node(
        "filter",
        inputs={"posts": InputSpec(PortType.DATA)},
        outputs=[OutputSpec(PortType.DATA, "output")],
        fn=lambda inputs, ctx: {
            "output": [p for p in inputs.get("posts", []) if "AI" in p["title"]]
        },
    )
    log = make_node("log", inputs={"value": InputSpec(PortType.DATA)})

    graph = Graph()
    for node in (start, fetch, filt, log):
        graph.add_node(node)
    graph.add_edge("start", "exec", "fetch", "exec")
    graph.add_edge("fetch", "posts", "filter", "posts")
    graph.add_edge("filter", "output", "log", "value")
    return Pipeline(graph, {"start": start, "fetch": fetch, "filter": filt, "log": log})
