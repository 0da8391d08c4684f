"""BranchWalker - drives a chain of nodes on behalf of a fan-out variant.

Fan-out is not a runner feature. Variants that need several branches
(Parallel, Sequence, Loop, RandomBranch, SubGraph) walk each branch
themselves: start a node, follow its selected output port when it
completes, and report back when the chain runs out of successors.

Walked nodes bypass the runner's pause/breakpoint gate, but their start
and completion still go through the runner's static broadcast points so
they appear in the same event stream as runner-driven nodes.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING

from nodeloom.core.runner.runner import GraphRunner
from nodeloom.core.types import NodeState

if TYPE_CHECKING:
    from nodeloom.core.graph.graph import NodeGraph
    from nodeloom.core.nodes.base import Node

logger = logging.getLogger(__name__)


class BranchWalker:
    """Walk one branch for an owning node.

    Args:
        owner: The fan-out node walking the branch. Supplies the runner.
        on_finished: Called once when the branch ends (no successor, a node
            raised, or the runner stopped before the branch could start).
        graph: Graph to resolve successors in. Defaults to each walked
            node's owning graph, falling back to the owner's graph.
    """

    def __init__(
        self,
        owner: Node,
        on_finished: Callable[[], None],
        graph: NodeGraph | None = None,
    ) -> None:
        self._owner = owner
        self._on_finished = on_finished
        self._graph = graph
        self._finished = False
        self._ready: deque[Node] = deque()
        self._dispatching = False
        self.visited: list[str] = []

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self, node: Node) -> None:
        """Execute `node` as the next link of the branch.

        Synchronous completions queue their successor instead of recursing,
        so a branch of any length runs in constant stack depth.
        """
        self._ready.append(node)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._ready and not self._finished:
                self._start_node(self._ready.popleft())
        finally:
            self._ready.clear()
            self._dispatching = False

    def _start_node(self, node: Node) -> None:
        runner = self._owner.runner
        if runner is None or not runner.is_running:
            self._finish()
            return

        # Another branch already runs this node; this branch joins it and ends
        if node.state == NodeState.RUNNING:
            logger.debug(
                "branch_joined: owner=%s, node=%s, name=%s", self._owner.id, node.id, node.name
            )
            self._finish()
            return

        if node.state in (NodeState.COMPLETED, NodeState.FAILED):
            node.reset()

        node.runner = runner
        node.on_complete = self._on_node_complete
        self.visited.append(node.id)
        GraphRunner.broadcast_node_started(runner, node)

        try:
            node.execute()
        except Exception:
            logger.exception(
                "branch_node_failed: owner=%s, node=%s, name=%s",
                self._owner.id,
                node.id,
                node.name,
            )
            node.state = NodeState.FAILED
            self._finish()

    def _on_node_complete(self, node: Node) -> None:
        runner = self._owner.runner
        if runner is None or not runner.is_running or self._finished:
            return

        GraphRunner.broadcast_node_completed(runner, node)

        graph = self._graph or node.graph or self._owner.graph
        if graph is None:
            self._finish()
            return

        port = node.select_output_port()
        successors = graph.get_connected_nodes(node.id, port)
        if not successors:
            self._finish()
            return

        self.start(successors[0])

    def _finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._on_finished()
