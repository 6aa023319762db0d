"""Python client and state mirror for the Stiebel Eltron / Tecalor ISG web interface.

Usage:
    Low-level page access:
        from pyisgweb import IsgClient
        from pyisgweb.extractors import extract_values
        from pyisgweb.translations import Translator

        async with IsgClient("http://192.168.1.50", "admin", "secret") as client:
            soup = await client.fetch_page("1,0")
            for reading in extract_values(soup, Translator("de")):
                print(reading.path, reading.value, reading.unit)

    Mirroring into a state store:
        from pyisgweb import IsgAdapter, IsgConfig, MemoryStateStore

        adapter = IsgAdapter(IsgConfig(host="192.168.1.50", value_paths=["1,0"]),
                             MemoryStateStore())
        await adapter.start()
"""

from __future__ import annotations

from .adapter import IsgAdapter
from .batcher import CommandBatcher
from .client import IsgClient
from .config import IsgConfig
from .exceptions import (
    IsgAuthError,
    IsgConfigError,
    IsgConnectionError,
    IsgError,
    IsgHttpStatusError,
    IsgParseError,
    IsgTimeoutError,
)
from .gate import FetchGate
from .models import Command, CommandWrite, Reading, StateObject, StateValue, ValueType
from .reconciler import Reconciler
from .store import MemoryStateStore, StateStore
from .translations import Translator

__version__ = "0.1.0"
__all__ = [
    "IsgAdapter",
    "IsgClient",
    "IsgConfig",
    "CommandBatcher",
    "FetchGate",
    "Reconciler",
    "Translator",
    # Store
    "MemoryStateStore",
    "StateStore",
    # Models
    "Command",
    "CommandWrite",
    "Reading",
    "StateObject",
    "StateValue",
    "ValueType",
    # Exceptions
    "IsgError",
    "IsgAuthError",
    "IsgConfigError",
    "IsgConnectionError",
    "IsgHttpStatusError",
    "IsgParseError",
    "IsgTimeoutError",
]
