"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from nodeloom.core.graph import NodeGraph
from nodeloom.core.nodes import DebugLogNode, EndNode, Node, StartNode
from nodeloom.core.runner import GraphRunner, RunnerEvent, runner_events


@pytest.fixture(autouse=True)
def _reset_runner_globals():
    """Keep the process-wide bus and active runner isolated per test."""
    yield
    runner_events.clear()
    GraphRunner.active = None


@pytest.fixture
def graph() -> NodeGraph:
    """Empty in-memory graph."""
    return NodeGraph(name="test")


@pytest.fixture
def chain() -> Callable[..., None]:
    """Connect nodes output -> input in order.

    Usage: chain(graph, start, a, b, end)
    """

    def _chain(graph: NodeGraph, *nodes: Node, out_port: str = "output") -> None:
        for node in nodes:
            graph.add_node(node)
        for left, right in zip(nodes, nodes[1:], strict=False):
            graph.connect(left, out_port, right, "input")

    return _chain


@pytest.fixture
def linear_graph(graph: NodeGraph, chain) -> NodeGraph:
    """Start -> DebugLog -> End."""
    chain(graph, StartNode(id="start"), DebugLogNode(id="log", message="hi"), EndNode(id="end"))
    return graph


@pytest.fixture
def recorder() -> Callable[[GraphRunner], list[RunnerEvent]]:
    """Subscribe to a runner and collect its events."""

    def _record(runner: GraphRunner) -> list[RunnerEvent]:
        events: list[RunnerEvent] = []
        runner.events.subscribe(events.append)
        return events

    return _record
