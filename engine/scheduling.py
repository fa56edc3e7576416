"""Debounce timers, request sequencing and provider calls on the event loop."""

import asyncio
import functools
import inspect
import logging
from typing import Any, Awaitable, Callable

from .config import CONTENT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class RequestSequence:
    """Monotonic request numbers. Only the latest issued number is current."""

    def __init__(self):
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, number: int) -> bool:
        return number == self._latest

    def invalidate(self) -> None:
        """Make every request issued so far stale."""
        self._latest += 1


class BackgroundTasks:
    """Tracks tasks spawned for one session so teardown can cancel them."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable, name: str | None = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    async def wait(self) -> None:
        """Wait until every tracked task (including ones spawned meanwhile) is done."""
        current = asyncio.current_task()
        while True:
            pending = [t for t in self._tasks if not t.done() and t is not current]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def __len__(self) -> int:
        return sum(1 for t in self._tasks if not t.done())


class Debouncer:
    """A single delayed callback; scheduling again replaces the pending one.

    Only the waiting period is cancelled by a newer schedule. Once the delay
    has elapsed the callback runs to completion and its result is dealt with
    by the caller's own sequencing.
    """

    def __init__(self, tasks: BackgroundTasks, delay: float, name: str = 'debounce'):
        self.tasks = tasks
        self.delay = delay
        self.name = name
        self._timer: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def schedule(self, callback: Callable[[], Any], delay: float | None = None) -> asyncio.Task:
        self.cancel()
        delay = self.delay if delay is None else delay
        self._timer = self.tasks.spawn(self._fire(callback, delay), name=self.name)
        return self._timer

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None or timer.done():
            return
        try:
            if timer is asyncio.current_task():
                return
        except RuntimeError:
            # No running loop: cancelling from synchronous teardown
            pass
        timer.cancel()

    async def _fire(self, callback: Callable[[], Any], delay: float) -> None:
        await asyncio.sleep(delay)
        if self._timer is asyncio.current_task():
            self._timer = None
        result = callback()
        if inspect.isawaitable(result):
            await result


async def call_provider(func: Callable, *args, timeout: float = CONTENT_TIMEOUT_SECONDS, **kwargs):
    """Run a blocking provider method in the default executor with a timeout.

    Raises whatever the provider raised, or asyncio.TimeoutError.
    """
    loop = asyncio.get_running_loop()
    return await asyncio.wait_for(
        loop.run_in_executor(None, functools.partial(func, *args, **kwargs)),
        timeout,
    )
