"""SubGraph - run a nested graph as a single node."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from nodeloom.core.nodes.base import Node, transient
from nodeloom.core.nodes.branch import BranchWalker
from nodeloom.core.nodes.registry import register_node
from nodeloom.core.ports import Port

if TYPE_CHECKING:
    from nodeloom.core.graph.graph import NodeGraph

logger = logging.getLogger(__name__)


@register_node("SubGraph")
@dataclass(repr=False)
class SubGraphNode(Node):
    """Execute a nested graph from its entry node, then continue on `complete`.

    The nested graph is stored inline in the payload as a graph document
    (same shape as a graph file). Its nodes run under the outer runner, so
    they appear in the same event stream and stop with it, but they resolve
    connections and variables in the nested graph.

    Attributes:
        subgraph: Nested graph document.
        subgraph_name: Name shown for the node and used for the nested graph.
    """

    name = "Sub Graph"
    category = "Flow"

    subgraph: dict[str, Any] = field(default_factory=dict)
    subgraph_name: str = ""

    _inner: NodeGraph | None = transient()

    @property
    def display_name(self) -> str:
        if self.subgraph_name:
            return f"Sub: {self.subgraph_name}"
        return super().display_name

    @property
    def inner_graph(self) -> NodeGraph | None:
        """The nested graph, built from the inline document on first use."""
        if self._inner is None and self.subgraph:
            from nodeloom.core.graph.graph import NodeGraph

            registry = self.graph.registry if self.graph is not None else None
            self._inner = NodeGraph(
                name=self.subgraph_name or f"{self.id}:subgraph",
                registry=registry,
                blob=json.dumps(self.subgraph),
            )
        return self._inner

    def set_subgraph(self, graph: NodeGraph) -> None:
        """Embed a graph as this node's nested document."""
        self.subgraph = json.loads(graph.save())
        self.subgraph_name = self.subgraph_name or graph.name
        self._inner = None

    def input_ports(self) -> list[Port]:
        return [Port.input("execute", "Execute")]

    def output_ports(self) -> list[Port]:
        return [Port.output("complete", "Complete")]

    def select_output_port(self) -> str:
        return "complete"

    def on_execute(self) -> None:
        inner = self.inner_graph
        if inner is None or inner.node_count == 0:
            logger.error("subgraph_missing: id=%s", self.id)
            self.complete()
            return

        entry = inner.get_entry_node()
        if entry is None:
            logger.error("subgraph_no_entry: id=%s, graph=%s", self.id, inner.name)
            self.complete()
            return

        inner.reset_all_nodes()
        for node in inner.nodes:
            node.runner = self.runner

        logger.debug("subgraph_started: id=%s, graph=%s", self.id, inner.name)
        self.schedule(self._run(inner, entry))

    async def _run(self, inner: NodeGraph, entry: Node) -> None:
        done = asyncio.Event()
        BranchWalker(self, done.set, graph=inner).start(entry)
        await done.wait()

        if not self.runner_active:
            return
        logger.debug("subgraph_finished: id=%s, graph=%s", self.id, inner.name)
        self.complete()
