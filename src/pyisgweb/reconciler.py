"""Reconcile extracted records with the state store.

For every reading or command the reconciler makes sure the store object
exists with the right metadata and then writes the current value:

- Readings are created once (create-if-absent) and then only get value
  writes, expiring after twice the interval of the poll that owns them.
- Commands are compared field by field with the stored metadata and
  patched in place when anything differs. Objects are never recreated,
  so the store keeps their identity and history.

Bounds: ``min``/``max`` are only present when the ISG reported a finite
number. Earlier releases stored ``0`` for missing bounds; re-reconciling
such an object removes the stale key.
"""

from __future__ import annotations

import logging
from typing import Any

from .constants import STATISTICS_GROUP
from .models import Command, Reading, StateObject
from .sanitize import replace_umlauts
from .store import StateStore
from .translations import Translator

_LOGGER = logging.getLogger(__name__)

# Metadata keys compared when deciding whether a command object needs a patch
COMPARED_KEYS: tuple[str, ...] = (
    "name",
    "type",
    "read",
    "write",
    "unit",
    "role",
    "min",
    "max",
    "states",
)
BOUND_KEYS: tuple[str, ...] = ("min", "max")


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _same(a: Any, b: Any) -> bool:
    """Compare two metadata values: mappings structurally, scalars by string form."""
    if isinstance(a, dict) or isinstance(b, dict):
        return a == b
    if _is_number(a) and _is_number(b):
        return float(a) == float(b)
    return str(a) == str(b)


def clamp_to_bounds(value: Any, minimum: Any, maximum: Any) -> Any:
    """Clamp a numeric value the way the ISG's own slider widget does.

    Values below ``minimum`` become ``minimum``. Values above ``maximum``
    also become ``minimum`` (the widget resets overflowing input to its
    lower end); without a minimum they fall back to ``maximum``.

    Non-numeric values and non-numeric bounds leave the value untouched.

    Example:
        >>> clamp_to_bounds(-5, 0, 50)
        0.0
        >>> clamp_to_bounds(75, 10, 50)
        10.0
    """
    if not _is_number(value):
        return value
    low = float(minimum) if _is_number(minimum) else None
    high = float(maximum) if _is_number(maximum) else None
    if low is not None and value < low:
        return low
    if high is not None and value > high:
        return low if low is not None else high
    return value


def desired_command_common(command: Command) -> dict[str, Any]:
    """Build the metadata a command object should carry."""
    common: dict[str, Any] = {
        "name": command.display_name,
        "type": command.value_type.value,
        "read": True,
        "write": True,
        "unit": command.unit,
        "role": command.role,
    }
    if command.min_bound is not None:
        common["min"] = command.min_bound
    if command.max_bound is not None:
        common["max"] = command.max_bound
    if command.states:
        common["states"] = dict(command.states)
    return common


def diff_command_common(
    existing: dict[str, Any], desired: dict[str, Any]
) -> tuple[dict[str, Any], list[str]]:
    """Work out the metadata patch turning ``existing`` into ``desired``.

    Bounds missing from ``desired`` are removed; ``states`` missing from
    ``desired`` are left as stored.

    Returns:
        ``(changes, removed_keys)``; both empty when no patch is needed
    """
    target = dict(existing)
    for key in ("name", "type", "read", "write", "unit", "role"):
        target[key] = desired[key]
    removed: list[str] = []
    for key in BOUND_KEYS:
        if key in desired:
            target[key] = desired[key]
        elif key in target:
            del target[key]
            removed.append(key)
    if "states" in desired:
        target["states"] = desired["states"]

    if all(_same(existing.get(key), target.get(key)) for key in COMPARED_KEYS):
        return {}, []

    changes = {key: target[key] for key in COMPARED_KEYS if key in target}
    return changes, removed


class Reconciler:
    """Mirror readings and commands into a :class:`StateStore`.

    Example:
        ```python
        reconciler = Reconciler(store, Translator("de"), poll_interval=60)
        for record in extract_values(soup, reconciler.translator):
            await reconciler.reconcile(record)
        ```
    """

    def __init__(
        self,
        store: StateStore,
        translator: Translator,
        *,
        poll_interval: float = 60,
        command_interval: float = 60,
        avoid_umlauts: bool = False,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Target state store
            translator: Translator used for the settings/info roots
            poll_interval: Value/status poll interval in seconds
            command_interval: Command poll interval in seconds
            avoid_umlauts: Transliterate Ä/Ö/Ü in store paths
        """
        self.store = store
        self.translator = translator
        self.poll_interval = poll_interval
        self.command_interval = command_interval
        self.avoid_umlauts = avoid_umlauts

    def entity_path(self, record: Reading | Command) -> str:
        """Return the store path of a record."""
        path = record.path
        return replace_umlauts(path) if self.avoid_umlauts else path

    def expire_for(self, group: str) -> int:
        """Expiry (seconds) of a reading in ``group``: twice its poll interval.

        The settings branch and the infographic statistics are refreshed by
        the command poll, everything else by the value/status poll.
        """
        settings_root = self.translator.translate("settings")
        statistics_root = ".".join((self.translator.translate("info"), *STATISTICS_GROUP))
        if group.startswith(settings_root) or group.startswith(statistics_root):
            return int(self.command_interval * 2)
        return int(self.poll_interval * 2)

    async def reconcile(self, record: Reading | Command) -> None:
        """Reconcile one record of either kind."""
        if isinstance(record, Command):
            await self.reconcile_command(record)
        else:
            await self.reconcile_reading(record)

    async def reconcile_reading(self, reading: Reading) -> None:
        """Create the reading's object if needed and write its value."""
        path = self.entity_path(reading)
        expire = reading.expire_after
        if expire is None:
            expire = self.expire_for(".".join(reading.group_path))

        await self.store.create_if_absent(
            path,
            StateObject(
                common={
                    "name": reading.display_name,
                    "type": reading.value_type.value,
                    "read": True,
                    "write": False,
                    "unit": reading.unit,
                    "role": reading.role,
                }
            ),
        )
        await self.write_value(path, reading.value, expire=int(expire))

    async def reconcile_command(self, command: Command) -> None:
        """Create or patch the command's object, then write its value."""
        path = self.entity_path(command)
        desired = desired_command_common(command)
        _LOGGER.debug(
            "Command %s bounds min=%s max=%s", path, command.min_bound, command.max_bound
        )

        existing = await self.store.get_object(path)
        if existing is None:
            await self.store.create_if_absent(path, StateObject(common=desired))
        else:
            changes, removed = diff_command_common(existing.common, desired)
            if changes:
                if removed:
                    _LOGGER.debug("Removing stale %s from %s", ", ".join(removed), path)
                await self.store.patch_metadata(path, changes, remove=removed)

        await self.write_value(path, command.value)

    async def write_value(self, path: str, value: Any, *, expire: int | None = None) -> None:
        """Write an acknowledged value, clamped to the object's declared bounds."""
        if value is None:
            _LOGGER.debug("No value for %s, skipping write", path)
            return

        if _is_number(value):
            obj = await self.store.get_object(path)
            if obj is not None:
                clamped = clamp_to_bounds(
                    value, obj.common.get("min"), obj.common.get("max")
                )
                if clamped != value:
                    _LOGGER.debug("Clamping %s value %s -> %s", path, value, clamped)
                value = clamped

        await self.store.set_value(path, value, ack=True, expire=expire)


__all__ = [
    "Reconciler",
    "clamp_to_bounds",
    "desired_command_common",
    "diff_command_common",
]
