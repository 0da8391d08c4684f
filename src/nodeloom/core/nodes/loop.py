"""Loop - repeat the chain wired to the `loop` port, then continue on `done`."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from nodeloom.core.nodes.base import Node, transient
from nodeloom.core.nodes.registry import register_node
from nodeloom.core.ports import Port

logger = logging.getLogger(__name__)

# Pause between iterations when nothing is wired to the loop body
EMPTY_BODY_INTERVAL = 0.1


class LoopType(Enum):
    COUNT = "count"
    CONDITION = "condition"
    INFINITE = "infinite"


@register_node("Loop")
@dataclass(repr=False)
class LoopNode(Node):
    """Run the loop body repeatedly.

    Each iteration walks the whole chain starting at the `loop` port and
    waits for it to end before the next iteration starts.

    Modes:
        COUNT: `loop_count` iterations.
        CONDITION: while the bool variable `condition_variable` equals
            `condition_value`, checked before each iteration. A missing
            variable ends the loop.
        INFINITE: until the runner stops; never follows `done`.
    """

    name = "Loop"
    category = "Flow"

    loop_type: LoopType = LoopType.COUNT
    loop_count: int = 3
    condition_variable: str = ""
    condition_value: bool = True

    current_iteration: int = transient(0)

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        return [Port.output("loop", "Loop Body"), Port.output("done", "Done")]

    def select_output_port(self) -> str:
        return "done"

    def reset(self) -> None:
        super().reset()
        self.current_iteration = 0

    def on_execute(self) -> None:
        self.current_iteration = 0
        self.schedule(self._run())

    def _should_continue(self) -> bool:
        if self.loop_type == LoopType.COUNT:
            return self.current_iteration < self.loop_count

        if self.loop_type == LoopType.CONDITION:
            variable = self.get_variable(self.condition_variable)
            if variable is None:
                logger.warning(
                    "loop_condition_missing: id=%s, variable=%s",
                    self.id,
                    self.condition_variable,
                )
                return False
            return variable.get_bool() == self.condition_value

        return True

    async def _run(self) -> None:
        while self.runner_active and self._should_continue():
            self.current_iteration += 1
            logger.debug("loop_iteration: id=%s, iteration=%d", self.id, self.current_iteration)

            body = self.connected_nodes("loop")
            if body:
                await self.run_branch(body[0])
                # A synchronous body never suspends; yield so stop() can land
                await asyncio.sleep(0)
            else:
                await asyncio.sleep(EMPTY_BODY_INTERVAL)

        if not self.runner_active:
            return

        logger.debug("loop_finished: id=%s, iterations=%d", self.id, self.current_iteration)
        self.complete()
