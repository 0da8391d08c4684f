"""Node abstraction - the polymorphic unit of graph execution.

A node declares its ports, holds its persisted configuration as dataclass
fields, and implements on_execute(). The runner drives the lifecycle:

    IDLE -> execute() -> RUNNING -> complete() -> COMPLETED | FAILED

on_execute() returns immediately. Completion is signaled later by the node
calling complete(), either synchronously or from continuation work handed
to the host scheduler with schedule().

Persisted vs transient:
    Every init field of a node dataclass is persisted in its payload.
    Fields declared with init=False (state, runner, callback, owning graph,
    per-run bookkeeping) are transient and never saved.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from nodeloom.core.ports import Port
from nodeloom.core.types import NodeState, PortCapacity

if TYPE_CHECKING:
    from nodeloom.core.graph.graph import NodeGraph
    from nodeloom.core.runner.runner import GraphRunner
    from nodeloom.core.variables import GraphVariable

logger = logging.getLogger(__name__)

CompletionCallback = Callable[["Node"], None]


def new_node_id() -> str:
    """Generate a fresh, never reused node identifier."""
    return str(uuid.uuid4())


def transient(default: Any = None, default_factory: Callable[[], Any] | None = None) -> Any:
    """Declare a non-persisted node field."""
    if default_factory is not None:
        return field(default_factory=default_factory, init=False, repr=False, compare=False)
    return field(default=default, init=False, repr=False, compare=False)


@dataclass
class Node(ABC):
    """Base class for all node variants.

    Subclasses are dataclasses. Class attributes describe the variant;
    init fields are its persisted configuration.

    Class Attributes:
        name: Display name of the variant.
        category: Grouping for listings.
        is_entry: True for the variant a run starts from.
        type_tag: Persisted type tag (set by register_node).

    Attributes:
        id: Unique identifier, assigned at creation and never changed.
        has_breakpoint: Pause the runner before this node executes.
        display_label: Optional label shown next to the name.
    """

    name: ClassVar[str] = "Node"
    category: ClassVar[str] = "General"
    is_entry: ClassVar[bool] = False
    type_tag: ClassVar[str] = ""

    id: str = field(default_factory=new_node_id)
    has_breakpoint: bool = False
    display_label: str = ""

    state: NodeState = transient(NodeState.IDLE)
    runner: GraphRunner | None = transient()
    on_complete: CompletionCallback | None = transient()
    graph: NodeGraph | None = transient()

    # -- Ports -------------------------------------------------------------

    @abstractmethod
    def input_ports(self) -> list[Port]:
        """Input ports for the current configuration."""
        ...

    @abstractmethod
    def output_ports(self) -> list[Port]:
        """Output ports for the current configuration."""
        ...

    def output_port_capacity(self, port_id: str) -> PortCapacity:
        """Capacity of a declared output port (SINGLE if not declared)."""
        for port in self.output_ports():
            if port.id == port_id:
                return port.capacity  # type: ignore[return-value]
        return PortCapacity.SINGLE

    def has_input_port(self, port_id: str) -> bool:
        return any(port.id == port_id for port in self.input_ports())

    def has_output_port(self, port_id: str) -> bool:
        return any(port.id == port_id for port in self.output_ports())

    # -- Lifecycle ---------------------------------------------------------

    def execute(self) -> None:
        """Start the node (called by the runner or a fan-out variant).

        Re-entering a RUNNING node is skipped with a warning rather than
        raised; some flows re-trigger a node before its last run finished.
        """
        if self.state == NodeState.RUNNING:
            logger.warning(
                "node_already_running: id=%s, name=%s, skipping execution",
                self.id,
                self.name,
            )
            return

        self.state = NodeState.RUNNING
        self.on_execute()

    @abstractmethod
    def on_execute(self) -> None:
        """Variant logic. Must eventually call complete()."""
        ...

    def complete(self) -> None:
        """Signal that the node is done.

        FAILED is preserved so a variant can select a failure branch by
        setting FAILED before completing.
        """
        if self.state != NodeState.FAILED:
            self.state = NodeState.COMPLETED
        if self.on_complete is not None:
            self.on_complete(self)

    def fail(self) -> None:
        """Complete with FAILED state."""
        self.state = NodeState.FAILED
        self.complete()

    def reset(self) -> None:
        """Return to IDLE. Variants extend this to clear per-run tracking."""
        self.state = NodeState.IDLE

    def select_output_port(self) -> str:
        """Output port to follow once this node has completed.

        Branching variants override this and may normalize their state back
        to COMPLETED after reading it.
        """
        return "output"

    # -- Runtime helpers ---------------------------------------------------

    @property
    def runner_active(self) -> bool:
        """Whether the owning runner is still running.

        Continuations resumed after a wait must check this before acting.
        """
        return self.runner is not None and self.runner.is_running

    @property
    def display_name(self) -> str:
        if self.display_label:
            return f"{self.name} ({self.display_label})"
        return self.name

    def schedule(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any] | None:
        """Hand continuation work to the runner's host scheduler."""
        if self.runner is None:
            logger.error("node_schedule_failed: id=%s, name=%s, no runner", self.id, self.name)
            coro.close()
            return None
        return self.runner.schedule(coro, name=f"{self.type_tag or self.name}:{self.id}")

    def connected_nodes(self, port_id: str) -> list[Node]:
        """Nodes wired to one of this node's output ports in the owning graph."""
        if self.graph is None:
            return []
        return self.graph.get_connected_nodes(self.id, port_id)

    def get_variable(self, name: str) -> GraphVariable | None:
        """Look up a variable on the owning graph."""
        if self.graph is None:
            return None
        return self.graph.get_variable(name)

    async def run_branch(self, node: Node) -> None:
        """Run the chain starting at `node` and wait until it ends.

        The chain follows each node's selected output port, first successor
        only, and stops early if the runner stops.
        """
        from nodeloom.core.nodes.branch import BranchWalker

        done = asyncio.Event()
        BranchWalker(self, done.set).start(node)
        await done.wait()

    # -- Persistence -------------------------------------------------------

    def to_payload(self) -> dict[str, Any]:
        """Persisted fields as a JSON-ready dict (enums by value)."""
        payload: dict[str, Any] = {}
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            payload[f.name] = value.value if isinstance(value, Enum) else copy.deepcopy(value)
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Node:
        """Build a node from its persisted payload.

        Unknown keys are ignored. Enum fields are converted from their
        value; an unknown enum value falls back to the field default.
        """
        init_fields = {f.name: f for f in fields(cls) if f.init}
        kwargs: dict[str, Any] = {}

        for key, value in payload.items():
            f = init_fields.get(key)
            if f is None:
                logger.debug("payload_key_ignored: type=%s, key=%s", cls.__name__, key)
                continue
            kwargs[key] = _coerce_field(cls, f, value)

        return cls(**kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


def _coerce_field(cls: type, f: Any, value: Any) -> Any:
    """Convert a persisted value to the type implied by the field default."""
    default = f.default
    if default is MISSING:
        return value

    if isinstance(default, Enum):
        enum_type = type(default)
        try:
            return enum_type(value)
        except ValueError:
            logger.warning(
                "payload_value_invalid: type=%s, field=%s, value=%r, using=%s",
                cls.__name__,
                f.name,
                value,
                default.value,
            )
            return default

    if isinstance(default, float) and isinstance(value, int) and not isinstance(value, bool):
        return float(value)

    return value
