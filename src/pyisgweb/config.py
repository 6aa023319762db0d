"""Adapter configuration.

This module provides the IsgConfig dataclass holding everything the
adapter needs to talk to one ISG: address, credentials, intervals, page
lists and behaviour flags. It supports validation and serialization to
and from dictionaries, and loading from environment variables.

Example:
    config = IsgConfig(
        host="192.168.1.50",
        username="admin",
        password="secret",
        value_paths=["1,0", "1,1"],
        command_paths=["0", "4,0,0"],
    )
    config.validate()

    # Legacy ioBroker adapter settings are accepted as well
    config = IsgConfig.from_dict({"isgAddress": "servicewelt.fritz.box"})
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    DEFAULT_COMMAND_DELAY,
    DEFAULT_COMMAND_INTERVAL,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_CONCURRENT_FETCHES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REBOOT_DELAY,
    DEFAULT_REQUEST_TIMEOUT,
    FQDN_RE,
    IPV4_RE,
)
from .exceptions import IsgConfigError
from .sanitize import split_paths

_LOGGER = logging.getLogger(__name__)

# Legacy adapter keys -> IsgConfig field names
_LEGACY_KEYS: dict[str, str] = {
    "isgAddress": "host",
    "isgUser": "username",
    "isgPassword": "password",
    "isgIntervall": "poll_interval",
    "isgCommandIntervall": "command_interval",
    "maxConcurrentFetches": "max_concurrent_fetches",
    "isgStatusPaths": "status_paths",
    "isgValuePaths": "value_paths",
    "isgCommandPaths": "command_paths",
    "isgExpert": "expert",
    "isgExpertPaths": "expert_paths",
}


def _strip_scheme(host: str) -> str:
    host = host.strip()
    for scheme in ("http://", "https://"):
        if host.lower().startswith(scheme):
            return host[len(scheme) :].rstrip("/")
    return host.rstrip("/")


def _as_paths(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return split_paths(value)
    return [str(item).strip() for item in value if str(item).strip()]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class IsgConfig:
    """Configuration for one ISG connection.

    Attributes:
        host: IP address or hostname of the ISG (optionally with scheme)
        username: ISG web login user
        password: ISG web login password
        poll_interval: Seconds between value/status polls
        command_interval: Seconds between command page polls
        max_concurrent_fetches: Fetch Gate admission limit
        request_timeout: Per-request timeout in seconds (0 disables)
        avoid_umlauts: Transliterate Ä/Ö/Ü in store paths
        status_paths: Page paths scraped for status indicators
        value_paths: Page paths scraped for numeric values
        command_paths: Page paths scraped for writable settings
        expert: Also scrape ``expert_paths`` as command pages
        expert_paths: Additional command pages for expert mode
        language: Language of the name translation table
        command_delay: Debounce delay of the command batcher in seconds
        reboot_delay: Seconds to wait after a reboot before restarting
    """

    host: str
    username: str = ""
    password: str = ""
    poll_interval: float = DEFAULT_POLL_INTERVAL
    command_interval: float = DEFAULT_COMMAND_INTERVAL
    max_concurrent_fetches: int = DEFAULT_MAX_CONCURRENT_FETCHES
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    avoid_umlauts: bool = False
    status_paths: list[str] = field(default_factory=list)
    value_paths: list[str] = field(default_factory=list)
    command_paths: list[str] = field(default_factory=list)
    expert: bool = False
    expert_paths: list[str] = field(default_factory=list)
    language: str = DEFAULT_LANGUAGE
    command_delay: float = DEFAULT_COMMAND_DELAY
    reboot_delay: float = DEFAULT_REBOOT_DELAY

    def validate(self) -> None:
        """Validate the configuration and normalise out-of-range numbers.

        Raises:
            IsgConfigError: If the ISG address is missing or malformed
        """
        if not self.host or not self.host.strip():
            raise IsgConfigError("Invalid configuration - ISG address not set")

        address = _strip_scheme(self.host)
        if not IPV4_RE.match(address) and not FQDN_RE.match(address):
            raise IsgConfigError(
                f"ISG address {self.host} format not valid. "
                "Should be e.g. 192.168.123.123 or servicewelt.fritz.box"
            )

        if self.max_concurrent_fetches < 1:
            _LOGGER.warning(
                "max_concurrent_fetches %s invalid, using %d",
                self.max_concurrent_fetches,
                DEFAULT_MAX_CONCURRENT_FETCHES,
            )
            self.max_concurrent_fetches = DEFAULT_MAX_CONCURRENT_FETCHES
        if self.poll_interval < 1:
            self.poll_interval = DEFAULT_POLL_INTERVAL
        if self.command_interval < 1:
            self.command_interval = DEFAULT_COMMAND_INTERVAL
        if self.request_timeout < 0:
            self.request_timeout = 0.0

    @property
    def base_url(self) -> str:
        """ISG base URL with an ``http://`` scheme added when missing."""
        host = self.host.strip().rstrip("/")
        if not host.lower().startswith(("http://", "https://")):
            host = f"http://{host}"
        return host

    @property
    def command_paths_all(self) -> list[str]:
        """Command pages including expert pages when expert mode is on."""
        if self.expert and self.expert_paths:
            return [*self.command_paths, *self.expert_paths]
        return list(self.command_paths)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        return {
            "host": self.host,
            "username": self.username,
            "password": self.password,
            "poll_interval": self.poll_interval,
            "command_interval": self.command_interval,
            "max_concurrent_fetches": self.max_concurrent_fetches,
            "request_timeout": self.request_timeout,
            "avoid_umlauts": self.avoid_umlauts,
            "status_paths": list(self.status_paths),
            "value_paths": list(self.value_paths),
            "command_paths": list(self.command_paths),
            "expert": self.expert,
            "expert_paths": list(self.expert_paths),
            "language": self.language,
            "command_delay": self.command_delay,
            "reboot_delay": self.reboot_delay,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IsgConfig:
        """Create configuration from a dictionary.

        Accepts the field names of this class as well as the keys used by
        the legacy ioBroker adapter settings (``isgAddress``,
        ``isgIntervall``, semicolon-delimited ``isgValuePaths`` ...).

        Args:
            data: Dictionary with configuration values

        Returns:
            IsgConfig instance with values from dictionary
        """
        values: dict[str, Any] = {}
        for key, value in data.items():
            values[_LEGACY_KEYS.get(key, key)] = value

        # Legacy adapter: "no" means "do not use umlauts in object ids"
        if "isgUmlauts" in values:
            values.setdefault("avoid_umlauts", values.pop("isgUmlauts") == "no")
        # Legacy adapter stored the timeout in milliseconds
        if "requestTimeout" in values:
            values.setdefault(
                "request_timeout", float(values.pop("requestTimeout") or 0) / 1000
            )

        return cls(
            host=str(values.get("host") or ""),
            username=str(values.get("username") or ""),
            password=str(values.get("password") or ""),
            poll_interval=float(values.get("poll_interval") or DEFAULT_POLL_INTERVAL),
            command_interval=float(
                values.get("command_interval") or DEFAULT_COMMAND_INTERVAL
            ),
            max_concurrent_fetches=int(
                values.get("max_concurrent_fetches") or DEFAULT_MAX_CONCURRENT_FETCHES
            ),
            request_timeout=float(values.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)),
            avoid_umlauts=_as_bool(values.get("avoid_umlauts", False)),
            status_paths=_as_paths(values.get("status_paths")),
            value_paths=_as_paths(values.get("value_paths")),
            command_paths=_as_paths(values.get("command_paths")),
            expert=_as_bool(values.get("expert", False)),
            expert_paths=_as_paths(values.get("expert_paths")),
            language=str(values.get("language") or DEFAULT_LANGUAGE),
            command_delay=float(values.get("command_delay", DEFAULT_COMMAND_DELAY)),
            reboot_delay=float(values.get("reboot_delay", DEFAULT_REBOOT_DELAY)),
        )

    @classmethod
    def from_env(cls, prefix: str = "ISG_") -> IsgConfig:
        """Create configuration from ``ISG_*`` environment variables.

        Variable names are the upper-cased field names with the prefix,
        e.g. ``ISG_HOST``, ``ISG_VALUE_PATHS`` (semicolon-delimited).
        """
        data: dict[str, Any] = {}
        for name in cls.__dataclass_fields__:
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None:
                data[name] = raw
        return cls.from_dict(data)


__all__ = [
    "IsgConfig",
]
