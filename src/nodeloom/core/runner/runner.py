"""GraphRunner - interprets a NodeGraph one node at a time.

The runner walks the graph from its entry node. Each node completes by
calling complete(); the runner then asks the node which output port to
follow and enters the first node wired to it. Debug control (pause,
single step, breakpoints) only takes effect between nodes, never by
preempting a node that is already running.

State machine (per run):
    idle -> running -> (paused <-> running) -> ended

    run()      validate, reset nodes, enter the entry node
    pause()    hold the next node transition
    resume()   clear pause/step and execute the held node
    step()     execute the held node, then pause again
    stop()     hard reset and cancel all scheduled continuations
"""

from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from collections import deque
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from nodeloom.core.runner.events import (
    BREAKPOINT_HIT,
    GRAPH_ENDED,
    GRAPH_STARTED,
    NODE_COMPLETED,
    NODE_STARTED,
    PAUSED,
    RESUMED,
    SIGNAL_SENT,
    STEPPED,
    EventBus,
    RunnerEvent,
    runner_events,
)
from nodeloom.core.runner.scheduler import AsyncioScheduler, Scheduler
from nodeloom.core.types import NodeState

if TYPE_CHECKING:
    from nodeloom.core.graph.graph import NodeGraph
    from nodeloom.core.nodes.base import Node

logger = logging.getLogger(__name__)


def generate_runner_id() -> str:
    """Generate a runner ID like "20261017_143022_x7k"."""
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=3))
    return f"{timestamp}_{suffix}"


@dataclass
class RunnerInfo:
    """Serializable snapshot of a runner's state."""

    runner_id: str
    graph: str | None
    is_running: bool
    is_paused: bool
    step_mode: bool
    current_node: str | None
    pending_node: str | None
    execution_path: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "runner_id": self.runner_id,
            "graph": self.graph,
            "is_running": self.is_running,
            "is_paused": self.is_paused,
            "step_mode": self.step_mode,
            "current_node": self.current_node,
            "pending_node": self.pending_node,
            "execution_path": self.execution_path,
        }


class GraphRunner:
    """Runtime interpreter for a NodeGraph.

    A runner holds a single logical run at a time; run() is refused while a
    run is active. Node work that waits (delays, signals, branches) is
    scheduled on the host Scheduler, an asyncio-backed one by default.

    Args:
        graph: Graph to execute.
        scheduler: Host scheduling primitive for continuation work.
        debug: Log node transitions at INFO instead of DEBUG.
        runner_id: Identifier used in logs and events.

    Example:
        >>> graph = read_graph("flow.json")
        >>> runner = GraphRunner(graph)
        >>> runner.run()
        True
        >>> await runner.wait()
        >>> runner.execution_path
        ('start-id', 'delay-id', 'end-id')
    """

    # Most recently started runner that is still running
    active: ClassVar[GraphRunner | None] = None

    def __init__(
        self,
        graph: NodeGraph | None = None,
        scheduler: Scheduler | None = None,
        debug: bool = False,
        runner_id: str | None = None,
    ) -> None:
        self.runner_id = runner_id or generate_runner_id()
        self.events = EventBus()

        self._graph = graph
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._debug = debug

        self._is_running = False
        self._is_paused = False
        self._step_mode = False
        self._current_node: Node | None = None
        self._pending_node: Node | None = None
        self._execution_path: list[str] = []

        # Nodes ready to execute; drained iteratively so that synchronous
        # chains do not recurse once per node.
        self._ready: deque[Node] = deque()
        self._dispatching = False

        self._signal_waiters: dict[str, list[asyncio.Future[None]]] = {}
        self._ended = asyncio.Event()
        self._ended.set()

    # -- Properties --------------------------------------------------------

    @property
    def graph(self) -> NodeGraph | None:
        return self._graph

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def step_mode(self) -> bool:
        return self._step_mode

    @property
    def current_node(self) -> Node | None:
        return self._current_node

    @property
    def pending_node(self) -> Node | None:
        """Node held by a pause, breakpoint or step, executed on resume/step."""
        return self._pending_node

    @property
    def execution_path(self) -> tuple[str, ...]:
        """Ids of the nodes executed this run, in order."""
        return tuple(self._execution_path)

    def set_graph(self, graph: NodeGraph | None) -> None:
        """Assign the graph to execute.

        Raises:
            RuntimeError: If a run is active.
        """
        if self._is_running:
            raise RuntimeError("Cannot change graph while a run is active")
        self._graph = graph

    def to_info(self) -> RunnerInfo:
        return RunnerInfo(
            runner_id=self.runner_id,
            graph=self._graph.name if self._graph is not None else None,
            is_running=self._is_running,
            is_paused=self._is_paused,
            step_mode=self._step_mode,
            current_node=self._current_node.id if self._current_node else None,
            pending_node=self._pending_node.id if self._pending_node else None,
            execution_path=list(self._execution_path),
        )

    # -- Run control -------------------------------------------------------

    def run(self, start_paused: bool = False) -> bool:
        """Start executing the graph from its entry node.

        Args:
            start_paused: Hold the entry node as pending; use step() or
                resume() to begin.

        Returns:
            True if the run started, False if it was refused (already
            running, no graph, or validation errors).
        """
        if self._is_running:
            logger.warning("run_ignored: runner=%s, already running", self.runner_id)
            return False

        if self._graph is None:
            logger.error("run_failed: runner=%s, no graph assigned", self.runner_id)
            return False

        errors = self._graph.validate()
        if errors:
            for error in errors:
                logger.error("validation_error: graph=%s, %s", self._graph.name, error)
            return False

        self._graph.reset_all_nodes()
        self._execution_path.clear()
        self._ready.clear()
        self._current_node = None
        self._pending_node = None
        self._is_paused = start_paused
        self._step_mode = False

        for node in self._graph.nodes:
            node.runner = self

        entry = self._graph.get_entry_node()
        if entry is None:
            logger.error("run_failed: graph=%s, no entry node", self._graph.name)
            return False

        self._is_running = True
        self._ended.clear()
        GraphRunner.active = self

        self._log(
            "graph_started: runner=%s, graph=%s, nodes=%d",
            self.runner_id,
            self._graph.name,
            self._graph.node_count,
        )
        self._emit(GRAPH_STARTED, data={"graph": self._graph.name})

        self.execute_node(entry)
        return True

    def stop(self) -> None:
        """Hard stop: clear all run state and cancel scheduled continuations."""
        self._is_running = False
        self._is_paused = False
        self._step_mode = False
        self._current_node = None
        self._pending_node = None
        self._ready.clear()

        cancelled = self._scheduler.cancel_all()
        for waiters in self._signal_waiters.values():
            for future in waiters:
                if not future.done():
                    future.cancel()
        self._signal_waiters.clear()

        if GraphRunner.active is self:
            GraphRunner.active = None

        self._log("graph_stopped: runner=%s, cancelled_tasks=%d", self.runner_id, cancelled)
        self._emit(GRAPH_ENDED, data={"reason": "stopped"})
        self._ended.set()

    def pause(self) -> None:
        """Hold the next node transition. The running node is not preempted."""
        if self._is_running and not self._is_paused:
            self._is_paused = True
            self._log("paused: runner=%s", self.runner_id)
            self._emit(PAUSED)

    def resume(self) -> None:
        """Continue a paused run.

        The held node is executed directly; its own breakpoint is the one
        the run is already stopped at, so it is not re-checked.
        """
        if not self._is_paused:
            return

        self._is_paused = False
        self._step_mode = False
        self._log("resumed: runner=%s", self.runner_id)
        self._emit(RESUMED)

        if self._pending_node is not None:
            node, self._pending_node = self._pending_node, None
            self._execute_direct(node)

    def step(self) -> None:
        """Execute the held node, then pause before the one after it."""
        if not self._is_paused:
            return

        self._step_mode = True
        self._is_paused = False
        self._log("stepped: runner=%s", self.runner_id)
        self._emit(STEPPED)

        if self._pending_node is not None:
            node, self._pending_node = self._pending_node, None
            self._execute_direct(node)

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait for the current run to end.

        Returns:
            True if the run ended, False on timeout.
        """
        if not self._is_running:
            return True
        try:
            await asyncio.wait_for(self._ended.wait(), timeout)
        except TimeoutError:
            return False
        return True

    # -- Node entry --------------------------------------------------------

    def execute_node(self, node: Node | None) -> None:
        """Enter a node through the pause/breakpoint gate.

        A paused run holds the node as pending. A node with a breakpoint
        pauses the run and is held. Otherwise the node executes now.
        """
        if not self._is_running or node is None:
            return

        if self._is_paused and not self._step_mode:
            self._pending_node = node
            return

        if node.has_breakpoint:
            logger.info(
                "breakpoint_hit: runner=%s, node=%s, name=%s",
                self.runner_id,
                node.id,
                node.name,
            )
            self._is_paused = True
            self._pending_node = node
            self._emit(BREAKPOINT_HIT, node)
            self._emit(PAUSED, node)
            return

        self._execute_direct(node)

    def _execute_direct(self, node: Node) -> None:
        if not self._is_running:
            return

        self._ready.append(node)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._ready and self._is_running:
                self._start_node(self._ready.popleft())
        finally:
            self._ready.clear()
            self._dispatching = False

    def _start_node(self, node: Node) -> None:
        # Owned by a branch walker that has not finished with it
        if node.state == NodeState.RUNNING:
            logger.warning(
                "node_already_running: runner=%s, node=%s, name=%s",
                self.runner_id,
                node.id,
                node.name,
            )
            return

        if node.state in (NodeState.COMPLETED, NodeState.FAILED):
            node.reset()

        self._current_node = node
        self._execution_path.append(node.id)

        self._log("node_started: runner=%s, node=%s, name=%s", self.runner_id, node.id, node.name)
        self._emit(NODE_STARTED, node, data={"name": node.name})

        node.runner = self
        node.on_complete = self._on_node_complete

        try:
            node.execute()
        except Exception:
            logger.exception(
                "node_failed: runner=%s, node=%s, name=%s", self.runner_id, node.id, node.name
            )
            node.state = NodeState.FAILED
            self._end_run("node_error")

    # -- Completion --------------------------------------------------------

    def _on_node_complete(self, node: Node) -> None:
        if not self._is_running or self._graph is None:
            return

        self._log(
            "node_completed: runner=%s, node=%s, name=%s, state=%s",
            self.runner_id,
            node.id,
            node.name,
            node.state.name,
        )
        self._emit(NODE_COMPLETED, node, data={"name": node.name, "state": node.state.name})

        try:
            port = node.select_output_port()
        except Exception:
            logger.exception("output_port_failed: runner=%s, node=%s", self.runner_id, node.id)
            self._end_run("node_error")
            return

        successors = self._graph.get_connected_nodes(node.id, port)
        if not successors:
            self._end_run("completed")
            return

        next_node = successors[0]

        if self._step_mode:
            self._pending_node = next_node
            self._is_paused = True
            self._step_mode = False
            self._log("paused_after_step: runner=%s, next=%s", self.runner_id, next_node.id)
            self._emit(PAUSED, next_node)
            return

        if self._is_paused:
            self._pending_node = next_node
            return

        if len(successors) > 1:
            logger.warning(
                "multiple_successors: node=%s, port=%s, count=%d, following=%s",
                node.id,
                port,
                len(successors),
                next_node.id,
            )

        self.execute_node(next_node)

    def _end_run(self, reason: str) -> None:
        self._is_running = False
        self._is_paused = False
        self._step_mode = False
        self._current_node = None
        self._pending_node = None
        self._ready.clear()

        if GraphRunner.active is self:
            GraphRunner.active = None

        self._log(
            "graph_ended: runner=%s, reason=%s, executed=%d",
            self.runner_id,
            reason,
            len(self._execution_path),
        )
        self._emit(GRAPH_ENDED, data={"reason": reason})
        self._ended.set()

    # -- Continuations and external input ----------------------------------

    def schedule(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> Any:
        """Spawn continuation work on the host scheduler."""
        if not self._is_running:
            logger.debug("schedule_ignored: runner=%s, name=%s, not running", self.runner_id, name)
            coro.close()
            return None
        return self._scheduler.spawn(coro, name=name)

    async def wait_for_signal(self, name: str) -> None:
        """Suspend until send_signal(name) is called."""
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        waiters = self._signal_waiters.setdefault(name, [])
        waiters.append(future)
        try:
            await future
        finally:
            if future in waiters:
                waiters.remove(future)

    def send_signal(self, name: str) -> int:
        """Deliver a named external event.

        Returns:
            Number of waiting nodes released.
        """
        waiters = self._signal_waiters.pop(name, [])
        released = 0
        for future in waiters:
            if not future.done():
                future.set_result(None)
                released += 1

        self._log("signal_sent: runner=%s, signal=%s, released=%d", self.runner_id, name, released)
        self._emit(SIGNAL_SENT, data={"signal": name, "released": released})
        return released

    def waiting_signals(self) -> list[str]:
        """Names of signals that at least one node is waiting on."""
        return [name for name, waiters in self._signal_waiters.items() if waiters]

    # -- Events ------------------------------------------------------------

    @staticmethod
    def broadcast_node_started(runner: GraphRunner, node: Node) -> None:
        """Emit node_started for a node a variant executes itself."""
        runner._emit(NODE_STARTED, node, data={"name": node.name, "variant_driven": True})

    @staticmethod
    def broadcast_node_completed(runner: GraphRunner, node: Node) -> None:
        """Emit node_completed for a node a variant executes itself."""
        runner._emit(
            NODE_COMPLETED,
            node,
            data={"name": node.name, "state": node.state.name, "variant_driven": True},
        )

    def _emit(
        self, event_type: str, node: Node | None = None, data: dict[str, Any] | None = None
    ) -> None:
        event = RunnerEvent(
            event_type=event_type,
            runner=self,
            node_id=node.id if node is not None else None,
            data=data or {},
        )
        self.events.emit(event)
        runner_events.emit(event)

    def _log(self, msg: str, *args: Any) -> None:
        logger.log(logging.INFO if self._debug else logging.DEBUG, msg, *args)

    def __repr__(self) -> str:
        return f"GraphRunner(id={self.runner_id!r}, running={self._is_running})"
