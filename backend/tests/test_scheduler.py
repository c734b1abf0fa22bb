"""Tests for the scheduler: deterministic topological order and cycle detection."""
import random

import pytest

from nodeflow.engine.errors import CycleDetectedError
from nodeflow.engine.graph import Graph
from nodeflow.engine.scheduler import execution_order


def _chain(data_node, ids, multiple=False):
    graph = Graph()
    for nid in ids:
        graph.add_node(data_node(nid, multiple=multiple))
    return graph


class TestExecutionOrder:
    def test_example_pipeline(self, pipeline):
        assert execution_order(pipeline.graph) == ["start", "fetch", "filter", "log"]

    def test_empty_graph(self):
        assert execution_order(Graph()) == []

    def test_isolated_nodes_in_insertion_order(self, data_node):
        graph = _chain(data_node, ["z", "y", "x"])
        assert execution_order(graph) == ["z", "y", "x"]

    def test_dependency_inserted_after_dependent(self, data_node):
        graph = _chain(data_node, ["b", "a"])
        graph.add_edge("a", "out", "b", "in")
        assert execution_order(graph) == ["a", "b"]

    def test_diamond(self, data_node):
        """A -> B, A -> C, B -> D, C -> D"""
        graph = _chain(data_node, ["a", "b", "c", "d"], multiple=True)
        graph.add_edge("a", "out", "b", "in")
        graph.add_edge("a", "out", "c", "in")
        graph.add_edge("b", "out", "d", "in")
        graph.add_edge("c", "out", "d", "in")
        assert execution_order(graph) == ["a", "b", "c", "d"]

    def test_dependencies_visited_in_insertion_order(self, data_node):
        graph = _chain(data_node, ["sink", "late", "early"], multiple=True)
        # Edge order is the reverse of node insertion order
        graph.add_edge("early", "out", "sink", "in")
        graph.add_edge("late", "out", "sink", "in")
        assert execution_order(graph) == ["late", "early", "sink"]

    def test_exec_edges_constrain_order(self, data_node):
        graph = _chain(data_node, ["second", "first"])
        graph.add_edge("first", "exec", "second", "exec")
        assert execution_order(graph) == ["first", "second"]

    def test_repeatable(self, pipeline):
        assert execution_order(pipeline.graph) == execution_order(pipeline.graph)

    def test_every_edge_respected_on_random_dag(self, data_node):
        rng = random.Random(1234)
        ids = [f"n{i}" for i in range(40)]
        shuffled = ids[:]
        rng.shuffle(shuffled)
        graph = _chain(data_node, shuffled, multiple=True)
        # Only connect lower index -> higher index, which keeps the graph acyclic
        for i, src in enumerate(ids):
            for dst in ids[i + 1:]:
                if rng.random() < 0.1:
                    graph.add_edge(src, "out", dst, "in")
        order = execution_order(graph)
        assert sorted(order) == sorted(ids)
        position = {nid: i for i, nid in enumerate(order)}
        for edge in graph.edges:
            assert position[edge.source_node] < position[edge.target_node]

    def test_deep_chain_does_not_recurse(self, data_node):
        ids = [f"n{i}" for i in range(1500)]
        graph = _chain(data_node, reversed(ids))
        for src, dst in zip(ids, ids[1:]):
            graph.add_edge(src, "out", dst, "in")
        assert execution_order(graph) == ids


class TestCycles:
    def test_two_node_cycle(self, data_node):
        graph = _chain(data_node, ["a", "b"])
        graph.add_edge("a", "out", "b", "in")
        graph.add_edge("b", "out", "a", "in")
        with pytest.raises(CycleDetectedError) as exc_info:
            execution_order(graph)
        assert exc_info.value.node_id == "a"
        assert "cycle" in str(exc_info.value).lower()

    def test_cycle_through_exec_edges(self, data_node):
        graph = _chain(data_node, ["a", "b", "c"])
        graph.add_edge("a", "exec", "b", "exec")
        graph.add_edge("b", "exec", "c", "exec")
        graph.add_edge("c", "exec", "a", "exec")
        with pytest.raises(CycleDetectedError):
            execution_order(graph)

    def test_mixed_edge_cycle(self, data_node):
        graph = _chain(data_node, ["a", "b"])
        graph.add_edge("a", "exec", "b", "exec")
        graph.add_edge("b", "out", "a", "in")
        with pytest.raises(CycleDetectedError):
            execution_order(graph)

    def test_cycle_downstream_of_root(self, data_node):
        graph = _chain(data_node, ["root", "x", "y"])
        graph.add_edge("root", "exec", "x", "exec")
        graph.add_edge("x", "out", "y", "in")
        graph.add_edge("y", "exec", "x", "exec")
        with pytest.raises(CycleDetectedError):
            execution_order(graph)
