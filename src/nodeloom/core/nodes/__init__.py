"""Nodes - the node contract, the type registry and the built-in variants.

Importing this package registers every built-in variant in
`default_registry`. Hosts add their own variants with `register_node`:

    >>> from dataclasses import dataclass
    >>> from nodeloom.core.nodes import Node, register_node
    >>> from nodeloom.core.ports import Port
    >>>
    >>> @register_node("Beep")
    ... @dataclass(repr=False)
    ... class BeepNode(Node):
    ...     name = "Beep"
    ...
    ...     def input_ports(self):
    ...         return [Port.input("input", "Execute")]
    ...
    ...     def output_ports(self):
    ...         return [Port.output("output", "Next")]
    ...
    ...     def on_execute(self):
    ...         print("beep")
    ...         self.complete()
"""

from nodeloom.core.nodes.base import CompletionCallback, Node, new_node_id, transient
from nodeloom.core.nodes.branch import BranchWalker
from nodeloom.core.nodes.conditional import Comparison, ConditionalNode, ConditionType
from nodeloom.core.nodes.fanout import ParallelNode, RandomBranchNode, SequenceNode
from nodeloom.core.nodes.flow import CommentNode, DebugLogNode, DelayNode, EndNode, LogLevel, StartNode
from nodeloom.core.nodes.loop import LoopNode, LoopType
from nodeloom.core.nodes.registry import NodeRegistry, default_registry, register_node
from nodeloom.core.nodes.signal import WaitForSignalNode
from nodeloom.core.nodes.subgraph import SubGraphNode
from nodeloom.core.nodes.variables import SetVariableNode

__all__ = [
    # Contract
    "Node",
    "CompletionCallback",
    "new_node_id",
    "transient",
    "BranchWalker",
    # Registry
    "NodeRegistry",
    "default_registry",
    "register_node",
    # Flow
    "StartNode",
    "EndNode",
    "CommentNode",
    "DebugLogNode",
    "LogLevel",
    "DelayNode",
    # Variables and branching
    "SetVariableNode",
    "ConditionalNode",
    "ConditionType",
    "Comparison",
    # Fan-out
    "LoopNode",
    "LoopType",
    "ParallelNode",
    "SequenceNode",
    "RandomBranchNode",
    # External input and nesting
    "WaitForSignalNode",
    "SubGraphNode",
]
