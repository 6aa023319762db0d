"""State store interface and in-memory reference implementation.

The adapter mirrors ISG data into a host object store (ioBroker-style:
objects carry metadata in ``common``, states carry the current value).
The host store is an external collaborator; the adapter only relies on
the :class:`StateStore` protocol below. :class:`MemoryStateStore` backs
the CLI and the test suite.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta
from fnmatch import fnmatchcase
from typing import Any, Protocol, runtime_checkable

from .models import StateObject, StateValue

_LOGGER = logging.getLogger(__name__)

StateChangeCallback = Callable[[str, StateValue], Awaitable[None]]


@runtime_checkable
class StateStore(Protocol):
    """Operations the adapter needs from the host object store."""

    async def create_if_absent(self, path: str, obj: StateObject) -> None:
        """Create the object at ``path`` unless it already exists."""
        ...

    async def get_object(self, path: str) -> StateObject | None:
        """Return the object at ``path`` or None."""
        ...

    async def patch_metadata(
        self, path: str, common: dict[str, Any], remove: Iterable[str] = ()
    ) -> None:
        """Merge ``common`` into the object's metadata, dropping ``remove`` keys."""
        ...

    async def set_value(
        self, path: str, value: Any, *, ack: bool = True, expire: int | None = None
    ) -> None:
        """Write a state value, optionally expiring after ``expire`` seconds."""
        ...

    async def get_value(self, path: str) -> StateValue | None:
        """Return the current (non-expired) value at ``path`` or None."""
        ...

    def subscribe(self, pattern: str, callback: StateChangeCallback) -> None:
        """Call ``callback`` for every value written to a path matching ``pattern``."""
        ...


class MemoryStateStore:
    """Dictionary-backed :class:`StateStore`.

    Subscriptions use shell-style patterns (``*`` matches anything).

    Example:
        ```python
        store = MemoryStateStore()
        await store.create_if_absent("info.connection", StateObject(common={"type": "boolean"}))
        await store.set_value("info.connection", True)
        ```
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self.objects: dict[str, StateObject] = {}
        self.states: dict[str, StateValue] = {}
        self._subscriptions: list[tuple[str, StateChangeCallback]] = []

    async def create_if_absent(self, path: str, obj: StateObject) -> None:
        """Create the object at ``path`` unless it already exists."""
        if path not in self.objects:
            self.objects[path] = obj.model_copy(deep=True)

    async def get_object(self, path: str) -> StateObject | None:
        """Return a copy of the object at ``path`` or None."""
        obj = self.objects.get(path)
        return obj.model_copy(deep=True) if obj is not None else None

    async def patch_metadata(
        self, path: str, common: dict[str, Any], remove: Iterable[str] = ()
    ) -> None:
        """Merge ``common`` into the object's metadata.

        Raises:
            KeyError: If no object exists at ``path``
        """
        obj = self.objects[path]
        merged = {**obj.common, **common}
        for key in remove:
            merged.pop(key, None)
        self.objects[path] = obj.model_copy(update={"common": merged})

    async def set_value(
        self, path: str, value: Any, *, ack: bool = True, expire: int | None = None
    ) -> None:
        """Store a value and notify matching subscribers."""
        state = StateValue(val=value, ack=ack, expire=expire)
        self.states[path] = state
        for pattern, callback in list(self._subscriptions):
            if fnmatchcase(path, pattern):
                await callback(path, state)

    async def get_value(self, path: str) -> StateValue | None:
        """Return the value at ``path`` unless it is missing or expired."""
        state = self.states.get(path)
        if state is None:
            return None
        if state.expire and datetime.now() > state.ts + timedelta(seconds=state.expire):
            return None
        return state

    def subscribe(self, pattern: str, callback: StateChangeCallback) -> None:
        """Register ``callback`` for writes to paths matching ``pattern``."""
        self._subscriptions.append((pattern, callback))

    def unsubscribe_all(self) -> None:
        """Drop all subscriptions."""
        self._subscriptions.clear()

    def dump(self) -> dict[str, dict[str, Any]]:
        """Return all objects with their current values as plain data."""
        result: dict[str, dict[str, Any]] = {}
        for path, obj in sorted(self.objects.items()):
            state = self.states.get(path)
            result[path] = {
                "common": obj.common,
                "val": state.val if state is not None else None,
                "ack": state.ack if state is not None else None,
            }
        return result


__all__ = [
    "MemoryStateStore",
    "StateChangeCallback",
    "StateStore",
]
