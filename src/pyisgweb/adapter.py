"""ISG adapter: polling pipeline and write handling.

IsgAdapter is the context object tying the pieces together. It owns the
client (and with it the cookie jar), the fetch gate, the reconciler and
the command batcher, and runs two fixed-interval drivers:

- the value/status loop, every ``poll_interval`` seconds
- the command loop, every ``command_interval`` seconds

Every page pass (fetch, extract, reconcile) is submitted to the fetch
gate as one task, so at most ``max_concurrent_fetches`` passes touch the
ISG at a time. Writes made by users to the state store are routed back
to the ISG through the batcher; a write to ``ISGReboot`` reboots the ISG
and restarts the pipeline once it is back.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import suppress
from typing import Any

import aiohttp
from bs4 import BeautifulSoup

from .batcher import CommandBatcher
from .client import IsgClient
from .config import IsgConfig
from .constants import CONNECTION_STATE, REBOOT_STATE, ROLE_BUTTON, ROLE_CONNECTED
from .exceptions import IsgAuthError, IsgConfigError, IsgError
from .extractors import extract_commands, extract_status, extract_values
from .gate import FetchGate
from .models import Command, CommandWrite, Reading, StateObject, StateValue
from .reconciler import Reconciler
from .store import StateStore
from .translations import Translator

_LOGGER = logging.getLogger(__name__)

Extractor = Callable[[BeautifulSoup], Iterable[Reading | Command]]


class IsgAdapter:
    """Mirror one ISG into a state store.

    Example:
        ```python
        store = MemoryStateStore()
        adapter = IsgAdapter(IsgConfig.from_env(), store)
        await adapter.start()
        ...
        await adapter.stop()
        ```
    """

    def __init__(
        self,
        config: IsgConfig,
        store: StateStore,
        *,
        session: aiohttp.ClientSession | None = None,
        translator: Translator | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Connection and polling configuration
            store: State store receiving readings and commands
            session: Optional aiohttp ClientSession for session injection
            translator: Optional translator (defaults to ``config.language``)
        """
        self.config = config
        self.store = store
        self.translator = translator or Translator(config.language)
        self._session = session

        self.client: IsgClient | None = None
        self.gate: FetchGate | None = None
        self.reconciler: Reconciler | None = None
        self.batcher: CommandBatcher | None = None

        self._loops: list[asyncio.Task[None]] = []
        self._restart_task: asyncio.Task[None] | None = None
        self._subscribed = False
        self._running = False

    @property
    def running(self) -> bool:
        """Whether the polling loops are active."""
        return self._running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Validate the configuration, probe the login and start polling.

        Returns:
            True if polling was started, False if the login was rejected

        Raises:
            IsgConfigError: If the configuration is invalid
        """
        await self._teardown()
        await self._create_connection_object()
        await self.set_connection(False)

        try:
            self.config.validate()
        except IsgConfigError as err:
            _LOGGER.error("%s", err)
            raise

        await self.store.create_if_absent(
            REBOOT_STATE,
            StateObject(
                common={
                    "name": self.translator.translate("ISGReboot"),
                    "type": "boolean",
                    "role": ROLE_BUTTON,
                    "read": True,
                    "write": True,
                }
            ),
        )

        self._build_components()
        assert self.client is not None and self.gate is not None

        _LOGGER.info("Connecting to ISG: %s ...", self.config.base_url)
        if not self._subscribed:
            self.store.subscribe("*", self.handle_state_change)
            self._subscribed = True

        try:
            await self.gate.submit(self.client.check_login)
        except IsgAuthError as err:
            _LOGGER.error("%s", err)
            await self.set_connection(False)
            return False
        except IsgError as err:
            _LOGGER.error("Credential check failed: %s", err)
        else:
            _LOGGER.info("Connected to ISG successfully")

        self.schedule_status_and_values()
        self.schedule_commands()

        self._loops = [
            asyncio.create_task(
                self._poll_loop(self.config.poll_interval, self.schedule_status_and_values)
            ),
            asyncio.create_task(
                self._poll_loop(self.config.command_interval, self.schedule_commands)
            ),
        ]
        self._running = True
        return True

    async def stop(self) -> None:
        """Stop polling and release the session."""
        task = self._restart_task
        self._restart_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        await self._teardown()
        _LOGGER.info("ISG adapter stopped")

    async def __aenter__(self) -> IsgAdapter:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.stop()

    async def _create_connection_object(self) -> None:
        await self.store.create_if_absent(
            CONNECTION_STATE,
            StateObject(
                common={
                    "name": self.translator.translate("connection"),
                    "type": "boolean",
                    "role": ROLE_CONNECTED,
                    "read": True,
                    "write": False,
                }
            ),
        )

    def _build_components(self) -> None:
        self.client = IsgClient(
            self.config.base_url,
            self.config.username,
            self.config.password,
            timeout=self.config.request_timeout,
            session=self._session,
            on_connection=self.set_connection,
        )
        self.gate = FetchGate(self.config.max_concurrent_fetches)
        self.reconciler = Reconciler(
            self.store,
            self.translator,
            poll_interval=self.config.poll_interval,
            command_interval=self.config.command_interval,
            avoid_umlauts=self.config.avoid_umlauts,
        )
        self.batcher = CommandBatcher(
            self.client,
            delay=self.config.command_delay,
            on_flushed=self._on_commands_flushed,
        )

    async def _teardown(self) -> None:
        loops, self._loops = self._loops, []
        for task in loops:
            task.cancel()
        for task in loops:
            with suppress(asyncio.CancelledError):
                await task

        if self.batcher is not None:
            await self.batcher.close()
        if self.gate is not None:
            await self.gate.close()
        if self.client is not None:
            await self.client.close()
        self.batcher = None
        self.gate = None
        self.client = None
        self._running = False

    async def _poll_loop(self, interval: float, schedule: Callable[[], Any]) -> None:
        while True:
            await asyncio.sleep(interval)
            schedule()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _submit(self, side_path: str, extractor: Extractor) -> asyncio.Future[None]:
        if self.gate is None:
            raise RuntimeError("Adapter is not started")
        future = self.gate.submit(lambda: self._run_pass(side_path, extractor))
        future.add_done_callback(self._log_pass_failure)
        return future

    @staticmethod
    def _log_pass_failure(future: asyncio.Future[None]) -> None:
        if future.cancelled():
            return
        exception = future.exception()
        if exception is not None:
            _LOGGER.error("Page pass raised an exception", exc_info=exception)

    def schedule_status_and_values(self) -> list[asyncio.Future[None]]:
        """Queue one pass over every value page and every status page."""
        futures = [self.update_values(path) for path in self.config.value_paths]
        futures += [self.update_status(path) for path in self.config.status_paths]
        return futures

    def schedule_commands(self) -> list[asyncio.Future[None]]:
        """Queue one pass over every command page (including expert pages)."""
        return [self.update_commands(path) for path in self.config.command_paths_all]

    def update_status(self, side_path: str) -> asyncio.Future[None]:
        """Queue a status pass over ``side_path``."""
        return self._submit(side_path, lambda soup: extract_status(soup, self.translator))

    def update_values(self, side_path: str) -> asyncio.Future[None]:
        """Queue a value pass over ``side_path``."""
        return self._submit(side_path, lambda soup: extract_values(soup, self.translator))

    def update_commands(self, side_path: str) -> asyncio.Future[None]:
        """Queue a command pass over ``side_path``."""
        return self._submit(
            side_path, lambda soup: extract_commands(soup, side_path, self.translator)
        )

    async def run_once(self) -> None:
        """Run one pass over all configured pages and wait for it to finish.

        The adapter must have been set up with :meth:`setup` or :meth:`start`.
        """
        futures = [*self.schedule_status_and_values(), *self.schedule_commands()]
        if futures:
            await asyncio.gather(*futures, return_exceptions=True)

    async def setup(self) -> None:
        """Validate the configuration and build the components without polling.

        Raises:
            IsgConfigError: If the configuration is invalid
        """
        self.config.validate()
        await self._create_connection_object()
        self._build_components()

    async def _run_pass(self, side_path: str, extractor: Extractor) -> None:
        assert self.client is not None and self.reconciler is not None
        try:
            soup = await self.client.fetch_page(side_path)
        except IsgError as err:
            _LOGGER.debug("Skipping page %s: %s", side_path, err)
            return

        for record in self._iter_records(side_path, extractor(soup)):
            try:
                await self.reconciler.reconcile(record)
            except Exception:  # noqa: BLE001 - one bad record must not stop the page
                _LOGGER.exception("Error storing %s", record.path)

    @staticmethod
    def _iter_records(
        side_path: str, records: Iterable[Reading | Command]
    ) -> Iterator[Reading | Command]:
        try:
            yield from records
        except IsgError as err:
            _LOGGER.warning("Could not parse page %s: %s", side_path, err)

    # ------------------------------------------------------------------
    # Store callbacks
    # ------------------------------------------------------------------

    async def set_connection(self, connected: bool) -> None:
        """Write the connectivity flag."""
        await self.store.set_value(CONNECTION_STATE, connected, ack=True)

    async def handle_state_change(self, path: str, state: StateValue) -> None:
        """Route a user write from the store to the ISG.

        Acknowledged values are our own writes and are ignored.
        """
        if state.ack or path == CONNECTION_STATE:
            return

        command = path.split(".")[-1]
        if command == REBOOT_STATE:
            _LOGGER.info("ISG rebooting")
            await self.reboot()
            return

        if self.batcher is None:
            _LOGGER.warning("Adapter not running, ignoring write to %s", path)
            return
        self.batcher.enqueue(command, state.val)

    async def reboot(self) -> None:
        """Reboot the ISG and restart polling after ``reboot_delay`` seconds."""
        if self.client is not None:
            try:
                await self.client.reboot()
            except IsgError as err:
                _LOGGER.debug("Reboot request aborted: %s", err)

        if self._restart_task is not None and not self._restart_task.done():
            self._restart_task.cancel()
        self._restart_task = asyncio.create_task(self._restart_after(self.config.reboot_delay))

    async def _restart_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        _LOGGER.info("Restarting ISG polling after reboot")
        await self.start()

    async def _on_commands_flushed(self, batch: list[CommandWrite]) -> None:
        _LOGGER.debug("Reading back command pages after %d write(s)", len(batch))
        self.schedule_commands()


__all__ = [
    "IsgAdapter",
]
