"""WaitForSignal - hold the flow until the host delivers a named signal."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from nodeloom.core.nodes.base import Node, transient
from nodeloom.core.nodes.registry import register_node
from nodeloom.core.ports import Port

logger = logging.getLogger(__name__)


@register_node("WaitForSignal")
@dataclass(repr=False)
class WaitForSignalNode(Node):
    """Wait for `runner.send_signal(signal)`.

    Signals are not latched: a signal sent before the node starts waiting is
    not seen. With `timeout_seconds` > 0 the node gives up after that long
    and continues on `timeout` instead of `output`.
    """

    name = "Wait For Signal"
    category = "Events"

    signal: str = ""
    timeout_seconds: float = 0.0

    timed_out: bool = transient(False)

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        return [Port.output("output", "Received"), Port.output("timeout", "Timed Out")]

    def select_output_port(self) -> str:
        return "timeout" if self.timed_out else "output"

    def reset(self) -> None:
        super().reset()
        self.timed_out = False

    def on_execute(self) -> None:
        self.timed_out = False
        if not self.signal:
            logger.warning("wait_for_signal_skipped: id=%s, no signal name", self.id)
            self.complete()
            return

        logger.debug(
            "waiting_for_signal: id=%s, signal=%s, timeout=%s",
            self.id,
            self.signal,
            self.timeout_seconds,
        )
        self.schedule(self._wait())

    async def _wait(self) -> None:
        if self.runner is None:
            return

        waiter = self.runner.wait_for_signal(self.signal)
        try:
            if self.timeout_seconds > 0:
                await asyncio.wait_for(waiter, self.timeout_seconds)
            else:
                await waiter
        except TimeoutError:
            self.timed_out = True
            logger.info("signal_timeout: id=%s, signal=%s", self.id, self.signal)

        if not self.runner_active:
            return
        self.complete()
