"""Bounded-concurrency admission control for ISG requests.

The ISG is a slow embedded web server holding one session per client, so
all page fetches go through a single FetchGate that admits at most N
tasks at a time. Tasks queue in FIFO order; completion order is free.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from .constants import DEFAULT_MAX_CONCURRENT_FETCHES

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

TaskFactory = Callable[[], Awaitable[T]]


class FetchGate:
    """Run submitted coroutine factories with a concurrency cap.

    The gate never cancels admitted tasks on its own; timeouts are the
    task's responsibility. When a task finishes (successfully or not) the
    next queued task is admitted.

    Example:
        ```python
        gate = FetchGate(limit=3)
        future = gate.submit(lambda: client.fetch_page("1,0"))
        soup = await future
        ```
    """

    def __init__(self, limit: int = DEFAULT_MAX_CONCURRENT_FETCHES) -> None:
        """Initialize the gate.

        Args:
            limit: Maximum number of concurrently running tasks (>= 1)
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self._limit = limit
        self._queue: deque[tuple[TaskFactory[Any], asyncio.Future[Any]]] = deque()
        self._running = 0
        self._workers: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def limit(self) -> int:
        """Admission limit."""
        return self._limit

    @property
    def running(self) -> int:
        """Number of tasks currently executing."""
        return self._running

    @property
    def pending(self) -> int:
        """Number of tasks waiting for admission."""
        return len(self._queue)

    def submit(self, task: TaskFactory[T]) -> asyncio.Future[T]:
        """Queue a task and return a future for its result.

        Args:
            task: Zero-argument callable returning an awaitable

        Returns:
            Future resolved with the task's result or exception
        """
        if self._closed:
            raise RuntimeError("FetchGate is closed")
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._queue.append((task, future))
        self._admit()
        return future

    def _admit(self) -> None:
        """Start queued tasks while slots are free."""
        while not self._closed and self._running < self._limit and self._queue:
            task, future = self._queue.popleft()
            if future.cancelled():
                continue
            self._running += 1
            worker = asyncio.ensure_future(self._run(task, future))
            self._workers.add(worker)
            worker.add_done_callback(self._workers.discard)

    async def _run(self, task: TaskFactory[Any], future: asyncio.Future[Any]) -> None:
        try:
            result = await task()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as err:
            if not future.done():
                future.set_exception(err)
        else:
            if not future.done():
                future.set_result(result)
        finally:
            self._running -= 1
            self._admit()

    async def close(self) -> None:
        """Cancel queued and running tasks and refuse new submissions."""
        self._closed = True
        while self._queue:
            _task, future = self._queue.popleft()
            future.cancel()
        workers = list(self._workers)
        for worker in workers:
            worker.cancel()
        if workers:
            await asyncio.gather(*workers, return_exceptions=True)
        _LOGGER.debug("FetchGate closed (%d running tasks cancelled)", len(workers))


__all__ = [
    "FetchGate",
]
