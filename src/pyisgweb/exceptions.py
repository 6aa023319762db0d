"""Exception classes for pyisgweb.

All errors raised by the library inherit from :class:`IsgError` so callers
can use a single ``except IsgError`` around any device interaction.
"""

from __future__ import annotations


class IsgError(Exception):
    """Base exception for all ISG errors."""

    pass


class IsgConnectionError(IsgError):
    """Network or transport failure talking to the ISG."""

    pass


class IsgHttpStatusError(IsgError):
    """The ISG answered with a status other than 200."""

    def __init__(self, status: int | None, url: str = "") -> None:
        """Initialize with the offending status code.

        Args:
            status: HTTP status returned by the device (None if unknown)
            url: Requested URL, used in the message only
        """
        self.status = status
        self.url = url
        suffix = f" from {url}" if url else ""
        super().__init__(f"HTTP {status}{suffix}")


class IsgTimeoutError(IsgError, TimeoutError):
    """Request deadline exceeded; the in-flight call was cancelled."""

    pass


class IsgAuthError(IsgError):
    """The ISG rejected the configured credentials."""

    pass


class IsgParseError(IsgError):
    """A page fragment did not match the expected layout."""

    pass


class IsgConfigError(IsgError):
    """Invalid adapter configuration (fatal at startup)."""

    pass


__all__ = [
    "IsgAuthError",
    "IsgConfigError",
    "IsgConnectionError",
    "IsgError",
    "IsgHttpStatusError",
    "IsgParseError",
    "IsgTimeoutError",
]
