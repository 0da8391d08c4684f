"""Host scheduling primitive for long-running node work.

Nodes never block. A node that waits (delay, external signal, branches)
hands a coroutine to the runner, which spawns it on a Scheduler. stop()
cancels everything the scheduler still tracks for that run; it does not
unwind logic that already resumed, which is why continuations check
`node.runner_active` after every await.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Scheduler(Protocol):
    """Protocol for cooperative continuation scheduling."""

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> Any:
        """Schedule a coroutine to run later. Must not block."""
        ...

    def cancel_all(self) -> int:
        """Cancel all pending work. Returns how many were cancelled."""
        ...

    @property
    def pending(self) -> int:
        """Number of scheduled items not yet finished."""
        ...


class AsyncioScheduler:
    """Scheduler backed by asyncio tasks on the running event loop.

    Tasks are tracked until they finish. Exceptions raised by a task are
    logged with traceback and otherwise dropped, so a misbehaving node
    cannot crash the host loop.

    Example:
        >>> scheduler = AsyncioScheduler()
        >>> scheduler.spawn(asyncio.sleep(1), name="delay")
        >>> scheduler.cancel_all()
        1
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(
        self, coro: Coroutine[Any, Any, Any], name: str | None = None
    ) -> asyncio.Task[Any] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("schedule_failed: name=%s, no running event loop", name)
            coro.close()
            return None

        task = loop.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "scheduled_task_failed: name=%s, error=%s",
                task.get_name(),
                exc,
                exc_info=exc,
            )

    def cancel_all(self) -> int:
        cancelled = 0
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
                cancelled += 1
        self._tasks.clear()
        return cancelled

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())
