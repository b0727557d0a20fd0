from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger("realtime_console.scheduler")


class DelayedScheduler:
    """
    Delayed callbacks bound to the session that scheduled them.

    ``cancel_all()`` bumps the generation, so a callback from a stopped
    session never runs against the next one even if its task is already
    past the sleep.
    """

    def __init__(self):
        self.generation = 0
        self.tasks: set[asyncio.Task] = set()

    def schedule(self, delay: float, callback: Callable[[], None], name: str = "delayed") -> asyncio.Task:
        generation = self.generation

        async def _run():
            await asyncio.sleep(max(0.0, float(delay)))
            if generation != self.generation:
                logger.info("Stale delayed callback skipped | name=%s", name)
                return
            callback()

        task = asyncio.get_running_loop().create_task(_run(), name=name)
        self.tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self.tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Delayed callback failed | name=%s err=%s", task.get_name(), exc, exc_info=exc)

    def cancel_all(self) -> int:
        self.generation += 1
        pending = list(self.tasks)
        for task in pending:
            task.cancel()
        return len(pending)

    async def drain(self) -> None:
        while True:
            pending = [task for task in self.tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self.tasks)
