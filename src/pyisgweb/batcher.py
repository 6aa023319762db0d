"""Debounced batching of setting writes.

Every user write restarts a single debounce timer; when it fires, all
pending writes go to the ISG in one ``save.php`` request. The pending
batch is taken and cleared when the flush starts, so writes arriving
while a request is in flight land in the next batch. Failed batches are
logged and dropped; the next command poll re-reads the real values.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Any

from .client import IsgClient
from .constants import DEFAULT_COMMAND_DELAY
from .exceptions import IsgError
from .models import CommandWrite

_LOGGER = logging.getLogger(__name__)

FlushedCallback = Callable[[list[CommandWrite]], Awaitable[None]]


class CommandBatcher:
    """Collect writes and submit them after a quiet period.

    Writes to the same name are not collapsed; they are sent in the order
    they were enqueued.

    Example:
        ```python
        batcher = CommandBatcher(client, delay=5.0)
        batcher.enqueue("val86", 21.5)
        batcher.enqueue("aval5", 3)
        # ~5s later: one POST to save.php with both writes
        ```
    """

    def __init__(
        self,
        client: IsgClient,
        delay: float = DEFAULT_COMMAND_DELAY,
        on_flushed: FlushedCallback | None = None,
    ) -> None:
        """Initialize the batcher.

        Args:
            client: Client used to submit batches
            delay: Debounce delay in seconds
            on_flushed: Optional coroutine called with the batch after a
                successful submission
        """
        self.client = client
        self.delay = delay
        self.on_flushed = on_flushed
        self._pending: list[CommandWrite] = []
        self._timer: asyncio.Task[None] | None = None
        self._flushes: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> list[CommandWrite]:
        """Writes waiting for the next flush."""
        return list(self._pending)

    def enqueue(self, name: str, value: Any) -> None:
        """Add a write and (re)start the debounce timer."""
        self._pending.append(CommandWrite(name=name, value=value))
        _LOGGER.debug("Queued %s=%r (%d pending)", name, value, len(self._pending))
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.create_task(self._wait_and_flush())

    async def _wait_and_flush(self) -> None:
        await asyncio.sleep(self.delay)
        # Detach the flush from the timer so a new enqueue cannot cancel it
        task = asyncio.create_task(self.flush())
        self._flushes.add(task)
        task.add_done_callback(self._flushes.discard)
        task.add_done_callback(self._log_flush_failure)

    @staticmethod
    def _log_flush_failure(task: asyncio.Task[bool]) -> None:
        if task.cancelled():
            return
        exception = task.exception()
        if exception is not None:
            _LOGGER.error("Command flush raised an exception", exc_info=exception)

    async def flush(self) -> bool:
        """Submit all pending writes now.

        Returns:
            True if a batch was submitted successfully, False if there was
            nothing to send or the submission failed
        """
        batch, self._pending = self._pending, []
        if not batch:
            return False

        _LOGGER.debug("Submitting %d command(s)", len(batch))
        try:
            await self.client.submit_commands(batch)
        except IsgError as err:
            _LOGGER.error("Error submitting %d command(s): %s", len(batch), err)
            return False

        _LOGGER.info("Submitted %d command(s) to ISG", len(batch))
        if self.on_flushed is not None:
            await self.on_flushed(batch)
        return True

    async def close(self) -> None:
        """Cancel the timer and wait for in-flight flushes; pending writes are dropped."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            with suppress(asyncio.CancelledError):
                await self._timer
        if self._flushes:
            await asyncio.gather(*self._flushes, return_exceptions=True)
        if self._pending:
            _LOGGER.debug("Dropping %d unsent command(s)", len(self._pending))
        self._pending = []


__all__ = [
    "CommandBatcher",
]
