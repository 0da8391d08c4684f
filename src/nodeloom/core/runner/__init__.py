"""Runner - interprets a NodeGraph with pause, step and breakpoints.

Example:
    >>> from nodeloom.core.graph import read_graph
    >>> from nodeloom.core.runner import GraphRunner
    >>>
    >>> graph = read_graph("flow.json")
    >>> runner = GraphRunner(graph)
    >>> runner.events.subscribe(lambda e: print(e.event_type, e.node_id))
    >>> runner.run()
    >>> await runner.wait()
"""

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
    EventCallback,
    RunnerEvent,
    runner_events,
)
from nodeloom.core.runner.runner import GraphRunner, RunnerInfo
from nodeloom.core.runner.scheduler import AsyncioScheduler, Scheduler

__all__ = [
    # Runner
    "GraphRunner",
    "RunnerInfo",
    # Scheduling
    "Scheduler",
    "AsyncioScheduler",
    # Events
    "RunnerEvent",
    "EventBus",
    "EventCallback",
    "runner_events",
    "GRAPH_STARTED",
    "GRAPH_ENDED",
    "NODE_STARTED",
    "NODE_COMPLETED",
    "PAUSED",
    "RESUMED",
    "STEPPED",
    "BREAKPOINT_HIT",
    "SIGNAL_SENT",
]
