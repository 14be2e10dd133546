"""Async utilities for supervised background work."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

from rankr.logging import get_logger

log = get_logger(__name__)

ErrorCallback = Callable[[BaseException, Any], None]


class SupervisedTasks:
    """Fire-and-forget task set that keeps failures visible.

    Tasks are held by strong reference until they finish. An exception
    escaping a task is logged and passed to ``on_error`` together with the
    context given at spawn time. Tasks are never cancelled by this class.
    """

    def __init__(self, name: str, on_error: ErrorCallback | None = None):
        self.name = name
        self.on_error = on_error
        self._tasks: dict[asyncio.Task, Any] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], context: Any = None) -> asyncio.Task:
        """Schedule ``coro`` on the running loop without awaiting it."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks[task] = context
        task.add_done_callback(self._on_done)
        log.debug("task_spawned", group=self.name, pending=len(self._tasks))
        return task

    async def drain(self) -> None:
        """Wait for every task spawned so far to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_done(self, task: asyncio.Task) -> None:
        context = self._tasks.pop(task, None)
        if task.cancelled():
            log.warning("task_cancelled", group=self.name)
            return

        exc = task.exception()
        if exc is None:
            return

        log.error("task_failed", group=self.name, error=repr(exc), exc_info=exc)
        if self.on_error is not None:
            self.on_error(exc, context)
