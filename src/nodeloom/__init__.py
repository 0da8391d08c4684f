"""nodeloom - a graph-based execution engine.

A graph is a set of nodes wired output-port to input-port, plus typed
variables. A runner walks the graph from its Start node one node at a
time, with pause, single-step and breakpoints for debugging.

Layers:
    core/       Engine (ports, variables, nodes, graph store, runner)
    frontends/  User interfaces (CLI, interactive debugger)

Key Concepts:
    Node:       Polymorphic unit of execution; completes asynchronously
    NodeGraph:  Store of nodes, connections and variables (JSON blob)
    GraphRunner: Interpreter with debug control and events

Quick Start:
    >>> from nodeloom import GraphRunner, NodeGraph, StartNode, EndNode
    >>>
    >>> graph = NodeGraph(name="hello")
    >>> start = graph.add_node(StartNode())
    >>> end = graph.add_node(EndNode(message="bye"))
    >>> graph.connect(start, "output", end, "input")
    >>>
    >>> runner = GraphRunner(graph)
    >>> runner.run()
    True
    >>> runner.execution_path == (start.id, end.id)
    True
"""

from nodeloom.__version__ import __version__
from nodeloom.core import (
    Connection,
    EndNode,
    GraphRunner,
    GraphVariable,
    Node,
    NodeGraph,
    NodeState,
    Port,
    StartNode,
    read_graph,
    register_node,
    write_graph,
)

__all__ = [
    "__version__",
    # Nodes
    "Node",
    "NodeState",
    "StartNode",
    "EndNode",
    "register_node",
    # Topology
    "Port",
    "Connection",
    "GraphVariable",
    # Graph
    "NodeGraph",
    "read_graph",
    "write_graph",
    # Runner
    "GraphRunner",
]
