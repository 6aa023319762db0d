"""Stiebel Eltron / Tecalor ISG web client.

This module provides an async client for the ISG "Servicewelt" web
interface. The ISG has no API; every page is an HTML document obtained
with a form POST carrying the login credentials, and settings are
written back through ``save.php``.

Key Features:
- Async/await support with aiohttp
- One shared cookie jar per client (the ISG keeps a single session)
- Per-request aiohttp ClientTimeout (0 disables it)
- Support for injected aiohttp.ClientSession
- Connectivity callback fired on every fetch outcome
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import aiohttp
from aiohttp import ClientTimeout
from bs4 import BeautifulSoup

from .constants import (
    DEFAULT_REQUEST_TIMEOUT,
    LOGIN_CHECK_PATH,
    PAGE_HEADERS,
    PAGE_PATH_FMT,
    REBOOT_PATH,
    SAVE_HEADERS,
    SAVE_PATH,
)
from .exceptions import (
    IsgAuthError,
    IsgConnectionError,
    IsgHttpStatusError,
    IsgTimeoutError,
)
from .models import CommandWrite

_LOGGER = logging.getLogger(__name__)

ConnectionCallback = Callable[[bool], Awaitable[None]]


class IsgClient:
    """ISG web interface client.

    Example:
        ```python
        async with IsgClient("http://192.168.1.50", "admin", "secret") as client:
            soup = await client.fetch_page("1,0")
            print(soup.select_one("#sub_nav").get_text())
        ```
    """

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
        on_connection: ConnectionCallback | None = None,
    ) -> None:
        """Initialize the ISG client.

        Args:
            base_url: ISG base URL including scheme (e.g. http://192.168.1.50)
            username: ISG web login user
            password: ISG web login password
            timeout: Request timeout in seconds; 0 disables the timeout
            session: Optional aiohttp ClientSession for session injection
            on_connection: Optional coroutine called with True after a
                successful fetch and False after a failed one
        """
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = ClientTimeout(total=timeout or None)
        self.on_connection = on_connection

        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None

    async def __aenter__(self) -> IsgClient:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session.

        The cookie jar is created with ``unsafe=True`` because the ISG is
        usually addressed by IP, and aiohttp drops cookies for bare IPs
        otherwise.
        """
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                cookie_jar=aiohttp.CookieJar(unsafe=True),
                timeout=self.timeout,
            )
            self._owns_session = True

        return self._session

    async def close(self) -> None:
        """Close the session if we own it."""
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()

    @property
    def _credentials(self) -> dict[str, str]:
        return {"user": self.username, "pass": self.password}

    async def _signal(self, connected: bool) -> None:
        if self.on_connection is not None:
            await self.on_connection(connected)

    async def _post_text(
        self, url: str, data: dict[str, str], headers: dict[str, str]
    ) -> tuple[int, str]:
        session = await self._get_session()
        async with session.post(
            url, data=data, headers=headers, timeout=self.timeout
        ) as response:
            if response.status != 200:
                return response.status, ""
            return response.status, await response.text()

    async def fetch_page(self, side_path: str) -> BeautifulSoup:
        """Fetch and parse one ISG page.

        Args:
            side_path: Page selector as used in the ISG URL (e.g. "1,0")

        Returns:
            BeautifulSoup: Parsed page document

        Raises:
            IsgHttpStatusError: If the ISG answers with a status other than 200
            IsgTimeoutError: If the request exceeded the timeout
            IsgConnectionError: If the ISG could not be reached
        """
        url = self.base_url + PAGE_PATH_FMT.format(side_path=side_path)
        _LOGGER.debug("POST %s", url)

        try:
            status, text = await self._post_text(url, self._credentials, PAGE_HEADERS)
        except TimeoutError as err:
            _LOGGER.debug("Fetching page %s aborted after %ss", side_path, self.timeout.total)
            await self._signal(False)
            raise IsgTimeoutError(f"Timeout fetching {url}") from err
        except aiohttp.ClientError as err:
            _LOGGER.error("Error: %s to %s - Check ISG address!", err, url)
            await self._signal(False)
            raise IsgConnectionError(f"Connection error: {err}") from err

        if status != 200:
            _LOGGER.error("Error: HTTP %s to %s - Check ISG address!", status, url)
            await self._signal(False)
            raise IsgHttpStatusError(status, url)

        await self._signal(True)
        return BeautifulSoup(text, "html.parser")

    async def check_login(self) -> None:
        """Probe the credentials by fetching the system info page.

        Raises:
            IsgAuthError: If the ISG served its login form instead
            IsgError: If the page could not be fetched
        """
        soup = await self.fetch_page(LOGIN_CHECK_PATH)
        main = soup.select_one("#main")
        if main is not None and "login" in (main.get("class") or []):
            raise IsgAuthError(
                "ISG login failed - please check your username and password"
            )

    async def submit_commands(self, commands: Iterable[CommandWrite]) -> None:
        """Send a batch of setting changes to ``save.php``.

        Args:
            commands: Writes to submit, serialised in order

        Raises:
            IsgHttpStatusError: If the ISG answers with a status other than 200
            IsgTimeoutError: If the request exceeded the timeout
            IsgConnectionError: If the ISG could not be reached
        """
        url = self.base_url + SAVE_PATH
        payload = json.dumps([command.model_dump() for command in commands])
        data = {**self._credentials, "data": payload}

        try:
            status, _text = await self._post_text(url, data, SAVE_HEADERS)
        except TimeoutError as err:
            raise IsgTimeoutError(f"Timeout posting to {url}") from err
        except aiohttp.ClientError as err:
            raise IsgConnectionError(f"Connection error: {err}") from err

        if status != 200:
            raise IsgHttpStatusError(status, url)

    async def reboot(self) -> None:
        """Ask the ISG to reboot.

        Raises:
            IsgTimeoutError: If the request exceeded the timeout
            IsgConnectionError: If the ISG could not be reached
        """
        url = self.base_url + REBOOT_PATH
        session = await self._get_session()

        try:
            async with session.get(url, timeout=self.timeout) as response:
                await response.read()
        except TimeoutError as err:
            raise IsgTimeoutError(f"Timeout requesting {url}") from err
        except aiohttp.ClientError as err:
            raise IsgConnectionError(f"Connection error: {err}") from err
        _LOGGER.info("Reboot request sent to ISG")


__all__ = [
    "IsgClient",
]
