"""Per-event task lifecycle management.

Each inbound event is dispatched in its own asyncio task so a slow
check, converter or handler only stalls that one event. TaskManager
keeps track of in-flight tasks so the client can drain or cancel them
at shutdown.
"""

import asyncio
from typing import Any, Coroutine, Set

import structlog

logger = structlog.get_logger("cmdwire.dispatch")


def log_task_exception(task: asyncio.Task):
    """Log exceptions from fire-and-forget tasks instead of silently swallowing them."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error(
            "background_task_failed",
            task=task.get_name(),
            error=str(exc),
            exc_type=type(exc).__name__,
        )


class TaskManager:
    """Spawns and tracks one task per dispatched event.

    No ordering is kept between tasks, even for events from the same
    author or channel.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str = "") -> asyncio.Task:
        """Schedule ``coro`` without waiting for it."""
        task = asyncio.create_task(coro, name=name or None)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(log_task_exception)
        return task

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every task spawned so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel every in-flight task and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("dispatch_tasks_cancelled", count=len(tasks))
