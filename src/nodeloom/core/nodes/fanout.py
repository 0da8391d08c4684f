"""Fan-out variants: Parallel, Sequence, RandomBranch.

The runner follows one successor per completed node. These variants drive
additional branches themselves (see branch.BranchWalker) and then complete,
after which the runner continues on their `done` port.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field

from nodeloom.core.nodes.base import Node, transient
from nodeloom.core.nodes.branch import BranchWalker
from nodeloom.core.nodes.registry import register_node
from nodeloom.core.ports import Port
from nodeloom.core.types import PortCapacity

logger = logging.getLogger(__name__)


@register_node("Parallel")
@dataclass(repr=False)
class ParallelNode(Node):
    """Run every branch wired to `parallel` concurrently.

    Completes once all branches have ended, then continues on `done`.
    Branches that meet at a node already running in another branch join
    it instead of executing it twice.
    """

    name = "Parallel"
    category = "Flow"

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        return [
            Port.output("parallel", "Parallel (Multi)", PortCapacity.MULTI),
            Port.output("done", "All Done"),
        ]

    def select_output_port(self) -> str:
        return "done"

    def on_execute(self) -> None:
        branches = self.connected_nodes("parallel")
        if not branches:
            logger.warning("parallel_no_branches: id=%s", self.id)
            self.complete()
            return

        logger.debug("parallel_started: id=%s, branches=%d", self.id, len(branches))
        self.schedule(self._run(branches))

    async def _run(self, branches: list[Node]) -> None:
        await asyncio.gather(*(self.run_branch(node) for node in branches))
        if self.runner_active:
            logger.debug("parallel_finished: id=%s", self.id)
            self.complete()


_SEQUENCE_PORT = re.compile(r"^sequence(\d+)$")


def _sequence_index(port_id: str) -> int:
    match = _SEQUENCE_PORT.match(port_id)
    return int(match.group(1)) if match else -1


@register_node("Sequence")
@dataclass(repr=False)
class SequenceNode(Node):
    """Run one branch per step port, in port order, each to its end.

    Step ports are `sequence0`, `sequence1`, ... and each holds a single
    connection. A graph whose node payload lost its port list recovers it
    from the connections (restore_ports_from_connections).
    """

    name = "Sequence"
    category = "Flow"

    sequence_ports: list[str] = field(default_factory=list)

    current_index: int = transient(0)

    def step_ports(self) -> list[str]:
        return list(self.sequence_ports) or ["sequence0"]

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        ports = [
            Port.output(port_id, f"Step {i + 1}", PortCapacity.SINGLE)
            for i, port_id in enumerate(self.step_ports())
        ]
        ports.append(Port.output("addStep", "+ Add Step", PortCapacity.SINGLE))
        ports.append(Port.output("done", "All Done"))
        return ports

    def add_step(self) -> str:
        """Append a step port and return its id."""
        if not self.sequence_ports:
            self.sequence_ports = self.step_ports()
        next_index = max((_sequence_index(p) for p in self.sequence_ports), default=-1) + 1
        port_id = f"sequence{next_index}"
        self.sequence_ports.append(port_id)
        return port_id

    def restore_ports_from_connections(self) -> bool:
        """Rebuild the step ports from this node's outgoing connections.

        Returns:
            True if any step port was found.
        """
        if self.graph is None:
            return False

        used = {
            conn.out_port
            for conn in self.graph.get_outgoing_connections(self.id)
            if _sequence_index(conn.out_port) >= 0
        }
        if not used:
            return False

        self.sequence_ports = sorted(used, key=_sequence_index)
        return True

    def select_output_port(self) -> str:
        return "done"

    def reset(self) -> None:
        super().reset()
        self.current_index = 0

    def on_execute(self) -> None:
        if not self.sequence_ports:
            self.restore_ports_from_connections()

        steps: list[Node] = []
        for port_id in self.step_ports():
            targets = self.connected_nodes(port_id)
            if targets:
                steps.append(targets[0])

        self.current_index = 0
        if not steps:
            self.complete()
            return

        logger.debug("sequence_started: id=%s, steps=%d", self.id, len(steps))
        self.schedule(self._run(steps))

    async def _run(self, steps: list[Node]) -> None:
        for node in steps:
            self.current_index += 1
            await self.run_branch(node)
            if not self.runner_active:
                return

        self.complete()


@register_node("RandomBranch")
@dataclass(repr=False)
class RandomBranchNode(Node):
    """Pick one of `output_count` branches at random.

    With `wait_for_branch` the chosen branch runs to its end before the node
    completes; otherwise the branch is started and the node completes right
    away. Either way the runner then continues on `done`.
    """

    name = "Random Branch"
    category = "Flow"

    output_count: int = 2
    wait_for_branch: bool = True

    selected_port: str | None = transient()
    rng: random.Random = transient(default_factory=random.Random)

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        ports = [Port.output(f"output{i}", f"Option {i + 1}") for i in range(self.output_count)]
        ports.append(Port.output("done", "Done"))
        return ports

    def select_output_port(self) -> str:
        return "done"

    def reset(self) -> None:
        super().reset()
        self.selected_port = None

    def on_execute(self) -> None:
        if self.output_count < 1:
            logger.warning("random_branch_no_outputs: id=%s", self.id)
            self.complete()
            return

        self.selected_port = f"output{self.rng.randrange(self.output_count)}"
        targets = self.connected_nodes(self.selected_port)
        logger.debug("random_branch_selected: id=%s, port=%s", self.id, self.selected_port)

        if not targets:
            self.complete()
            return

        if self.wait_for_branch:
            self.schedule(self._run(targets[0]))
            return

        BranchWalker(self, lambda: None).start(targets[0])
        self.complete()

    async def _run(self, node: Node) -> None:
        await self.run_branch(node)
        if self.runner_active:
            self.complete()
