"""
Bounded fan-out of download tasks with a completion barrier.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

log = logging.getLogger(__name__)


class DownloadTaskGroup:
    """
    Admits at most `limit` concurrent tasks and lets the caller wait for all of them.

    `spawn` blocks until a slot is free, so the caller is held back while the
    pipeline is full. `wait` is the barrier: it returns once every task spawned
    since the previous `wait` has finished. Failures never cancel sibling
    tasks; with `fail_fast` the first one is raised from `wait`.
    """

    def __init__(self, limit: int, fail_fast: bool = True):
        if limit < 1:
            raise ValueError("Task group limit must be at least 1.")
        self.limit = limit
        self.fail_fast = fail_fast
        self._semaphore = asyncio.Semaphore(limit)
        self._tasks: set[asyncio.Task] = set()
        self._errors: list[BaseException] = []

    @property
    def in_flight(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    @property
    def first_error(self) -> BaseException | None:
        return self._errors[0] if self._errors else None

    async def _run(self, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        try:
            await func(*args)
        except Exception as e:
            self._errors.append(e)
        finally:
            self._semaphore.release()

    async def spawn(self, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        """Waits for a free slot, then starts `func(*args)` as a task."""
        await self._semaphore.acquire()
        try:
            task = asyncio.create_task(self._run(func, *args))
        except BaseException:
            self._semaphore.release()
            raise
        self._tasks.add(task)

    async def wait(self) -> list[BaseException]:
        """
        Blocks until every spawned task has finished.

        Returns:
            The failures recorded since the previous barrier.

        Raises:
            The first recorded failure when `fail_fast` is set.
        """
        if self._tasks:
            await asyncio.gather(*self._tasks)
        self._tasks.clear()
        errors, self._errors = self._errors, []
        if errors and self.fail_fast:
            if len(errors) > 1:
                log.debug(f"{len(errors) - 1} further task failure(s) in this batch.")
            raise errors[0]
        return errors
