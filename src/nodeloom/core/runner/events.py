"""Runner events for observing graph execution.

Every runner publishes to its own EventBus and to the process-wide
`runner_events` bus, so a host can watch one run or all of them.

Standard event types:
    Run lifecycle:
    - graph_started: run() entered the entry node
    - graph_ended: run finished (no successor) or stop() was called

    Node execution:
    - node_started: a node was executed (runner- or variant-driven)
    - node_completed: a node called complete()

    Debugging:
    - paused: the run paused (pause(), breakpoint, or after a step)
    - resumed: resume() was called
    - stepped: step() was called
    - breakpoint_hit: a node with a breakpoint was reached

    External input:
    - signal_sent: send_signal() delivered a named signal
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from nodeloom.core.runner.runner import GraphRunner

logger = logging.getLogger(__name__)

GRAPH_STARTED = "graph_started"
GRAPH_ENDED = "graph_ended"
NODE_STARTED = "node_started"
NODE_COMPLETED = "node_completed"
PAUSED = "paused"
RESUMED = "resumed"
STEPPED = "stepped"
BREAKPOINT_HIT = "breakpoint_hit"
SIGNAL_SENT = "signal_sent"


def _utc_now() -> datetime:
    """Return current UTC time (helper for default_factory)."""
    return datetime.now(UTC)


@dataclass
class RunnerEvent:
    """Event emitted by a GraphRunner.

    Attributes:
        event_type: One of the standard event types.
        runner: The runner that emitted the event.
        node_id: Node the event relates to, if any.
        data: Event-specific data.
        timestamp: When the event occurred.
    """

    event_type: str
    runner: GraphRunner
    node_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "event_type": self.event_type,
            "runner_id": self.runner.runner_id,
            "node_id": self.node_id,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


EventCallback = Callable[[RunnerEvent], None]


class EventBus:
    """Synchronous publish/subscribe for runner events.

    Subscribers are called in subscription order. A subscriber that raises
    is logged and skipped; it never interrupts the run.
    """

    def __init__(self) -> None:
        self._subscribers: list[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """Add a subscriber. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def clear(self) -> None:
        self._subscribers.clear()

    def emit(self, event: RunnerEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "event_subscriber_failed: event=%s, subscriber=%r",
                    event.event_type,
                    callback,
                )

    def __len__(self) -> int:
        return len(self._subscribers)


# Process-wide bus, receives the events of every runner
runner_events = EventBus()
