"""Basic flow variants: Start, End, Comment, DebugLog, Delay."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from nodeloom.core.nodes.base import Node
from nodeloom.core.nodes.registry import register_node
from nodeloom.core.ports import Port

logger = logging.getLogger(__name__)


@register_node("Start")
@dataclass(repr=False)
class StartNode(Node):
    """Entry point of a graph. Completes immediately."""

    name = "Start"
    category = "Flow"
    is_entry = True

    def input_ports(self) -> list[Port]:
        return []

    def output_ports(self) -> list[Port]:
        return [Port.output("output", "Next")]

    def on_execute(self) -> None:
        logger.debug("graph_entry: id=%s", self.id)
        self.complete()


@register_node("End")
@dataclass(repr=False)
class EndNode(Node):
    """Terminal node. Logs its message, has no outputs."""

    name = "End"
    category = "Flow"

    message: str = "Flow completed"

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        return []

    def on_execute(self) -> None:
        if self.message:
            logger.info("flow_end: id=%s, message=%s", self.id, self.message)
        self.complete()


@register_node("Comment")
@dataclass(repr=False)
class CommentNode(Node):
    """Documentation only. No ports; completes if ever executed."""

    name = "Comment"
    category = "Documentation"

    comment: str = "Add your comment here..."

    def input_ports(self) -> list[Port]:
        return []

    def output_ports(self) -> list[Port]:
        return []

    def on_execute(self) -> None:
        self.complete()


class LogLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@register_node("DebugLog")
@dataclass(repr=False)
class DebugLogNode(Node):
    name = "Debug Log"
    category = "Debug"

    message: str = "Debug message"
    level: LogLevel = LogLevel.INFO

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        return [Port.output("output", "Next")]

    def on_execute(self) -> None:
        logger.log(_LOG_LEVELS[self.level], "debug_log: id=%s, message=%s", self.id, self.message)
        self.complete()


@register_node("Delay")
@dataclass(repr=False)
class DelayNode(Node):
    """Wait a number of seconds before continuing.

    The wait runs on the host scheduler; the node stays RUNNING meanwhile.
    """

    name = "Delay"
    category = "Flow"

    delay_seconds: float = 1.0

    def input_ports(self) -> list[Port]:
        return [Port.input("input", "Execute")]

    def output_ports(self) -> list[Port]:
        return [Port.output("output", "After Delay")]

    def on_execute(self) -> None:
        logger.debug("delay_started: id=%s, seconds=%s", self.id, self.delay_seconds)
        self.schedule(self._wait())

    async def _wait(self) -> None:
        await asyncio.sleep(max(0.0, self.delay_seconds))
        if not self.runner_active:
            return
        logger.debug("delay_finished: id=%s", self.id)
        self.complete()
