"""Async debounce helper for search-as-you-type input."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

AsyncCallback = Callable[[], Awaitable[Any]]


class Debouncer:
    """Delay a callback until input pauses for ``delay`` seconds.

    Scheduling again cancels the previous callback only while it is still
    waiting out the delay. A callback that already started keeps running.
    """

    def __init__(self, delay: float = 0.3) -> None:
        self.delay = delay
        self._pending: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self, callback: AsyncCallback) -> asyncio.Task:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

        task = asyncio.create_task(self._delayed(callback))
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _delayed(self, callback: AsyncCallback) -> Any:
        await asyncio.sleep(self.delay)
        if self._pending is asyncio.current_task():
            self._pending = None
        return await callback()

    async def drain(self) -> None:
        """Wait for every scheduled callback, including cancelled ones."""

        while True:
            tasks = [task for task in self._tasks if not task.done()]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def cancel(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending = None


__all__ = ["Debouncer"]
