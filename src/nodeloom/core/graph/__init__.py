"""Graph store - nodes, connections and variables of one graph.

Example:
    >>> from nodeloom.core.graph import NodeGraph, read_graph, write_graph
    >>>
    >>> graph = read_graph("flow.json")
    >>> graph.validate()
    []
    >>> write_graph(graph, "flow.json")
"""

from nodeloom.core.graph.document import (
    ConnectionEntry,
    GraphDocument,
    NodeEntry,
    RawDocument,
    VariableEntry,
)
from nodeloom.core.graph.graph import NodeGraph
from nodeloom.core.graph.persistence import read_graph, write_graph

__all__ = [
    "NodeGraph",
    "read_graph",
    "write_graph",
    # Persisted document
    "GraphDocument",
    "NodeEntry",
    "ConnectionEntry",
    "VariableEntry",
    "RawDocument",
]
