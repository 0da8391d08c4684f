"""Core - the execution engine, free of any user interface.

Architecture:
    types       Enums shared across the engine
    ports       Port and Connection topology primitives
    variables   GraphVariable (typed values stored as text)
    nodes/      Node contract, type registry, built-in variants
    graph/      NodeGraph store and JSON persistence
    runner/     GraphRunner, events, host scheduler

Example:
    >>> from nodeloom.core import GraphRunner, read_graph
    >>>
    >>> async def main():
    ...     graph = read_graph("flow.json")
    ...     runner = GraphRunner(graph, debug=True)
    ...     runner.run()
    ...     await runner.wait()
"""

from nodeloom.core.errors import GraphLoadError, NodeloomError, UnknownNodeTypeError
from nodeloom.core.ports import Connection, Port
from nodeloom.core.types import NodeState, PortCapacity, PortDirection, VariableType
from nodeloom.core.variables import GraphVariable

# Nodes
from nodeloom.core.nodes import (
    BranchWalker,
    CommentNode,
    ConditionalNode,
    DebugLogNode,
    DelayNode,
    EndNode,
    LoopNode,
    Node,
    NodeRegistry,
    ParallelNode,
    RandomBranchNode,
    SequenceNode,
    SetVariableNode,
    StartNode,
    SubGraphNode,
    WaitForSignalNode,
    default_registry,
    register_node,
)

# Graph
from nodeloom.core.graph import GraphDocument, NodeGraph, read_graph, write_graph

# Runner
from nodeloom.core.runner import (
    AsyncioScheduler,
    EventBus,
    GraphRunner,
    RunnerEvent,
    Scheduler,
    runner_events,
)

__all__ = [
    # Errors
    "NodeloomError",
    "GraphLoadError",
    "UnknownNodeTypeError",
    # Types
    "NodeState",
    "PortDirection",
    "PortCapacity",
    "VariableType",
    "Port",
    "Connection",
    "GraphVariable",
    # Nodes
    "Node",
    "NodeRegistry",
    "default_registry",
    "register_node",
    "BranchWalker",
    "StartNode",
    "EndNode",
    "CommentNode",
    "DebugLogNode",
    "DelayNode",
    "SetVariableNode",
    "ConditionalNode",
    "LoopNode",
    "ParallelNode",
    "SequenceNode",
    "RandomBranchNode",
    "WaitForSignalNode",
    "SubGraphNode",
    # Graph
    "NodeGraph",
    "GraphDocument",
    "read_graph",
    "write_graph",
    # Runner
    "GraphRunner",
    "RunnerEvent",
    "EventBus",
    "runner_events",
    "Scheduler",
    "AsyncioScheduler",
]
