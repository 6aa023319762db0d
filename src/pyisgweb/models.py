"""Pydantic models for ISG readings, commands and store objects.

Readings and commands are produced fresh by the extractors on every poll
and never mutated afterwards (all record models are frozen). Bounds and
state mappings are normalised at the model boundary, so the reconciler
only ever sees finite numbers or ``None`` and a plain ``dict``.
"""

from __future__ import annotations

import json
import logging
import math
import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LOGGER = logging.getLogger(__name__)

# Plain decimal as printed by the ISG (no exponent, no digit separators)
_DECIMAL_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)")

ScalarValue = bool | int | float | str


class ValueType(str, Enum):
    """Value type of a state, as understood by the state store."""

    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"


def parse_bound(raw: Any, label: str = "bound") -> float | None:
    """Parse a min/max annotation into a finite number.

    Empty, non-numeric and non-finite inputs yield ``None``; they are never
    coerced to zero.

    Args:
        raw: Raw bound as scraped (string, number or None)
        label: Name used in the debug log line

    Returns:
        The bound as float, or None if absent/unparseable
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        _LOGGER.debug("Ignoring boolean %s %r", label, raw)
        return None
    if isinstance(raw, int | float):
        number = float(raw)
    else:
        text = str(raw).strip()
        if not text:
            _LOGGER.debug("Empty %s ignored", label)
            return None
        normalized = text.replace(",", ".").replace(" ", "")
        if not _DECIMAL_RE.fullmatch(normalized):
            _LOGGER.debug("Invalid %s %r ignored", label, raw)
            return None
        number = float(normalized)
    if not math.isfinite(number):
        _LOGGER.debug("Non-finite %s %r ignored", label, raw)
        return None
    return number


def parse_states(raw: Any) -> dict[str, str] | None:
    """Normalise a states definition into a ``code -> label`` mapping.

    Accepted shapes:
    - a mapping (returned with keys and labels as strings)
    - a list (index -> label)
    - a JSON string, retried with single quotes swapped for double quotes
    - a ``"0:Off,1:On"`` delimited string

    Unparseable strings are logged and yield ``None``.
    """
    if raw is None or raw == "" or raw == {}:
        return None
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    if isinstance(raw, list | tuple):
        return {str(i): str(v) for i, v in enumerate(raw)}
    if not isinstance(raw, str):
        _LOGGER.warning("Unsupported states type %s ignored", type(raw).__name__)
        return None

    text = raw.strip()
    if text.startswith(("{", "[")):
        for candidate in (text, text.replace("'", '"')):
            try:
                parsed = json.loads(candidate)
            except ValueError:
                continue
            return parse_states(parsed) if parsed else None
        _LOGGER.warning("Could not parse states %r, states will be ignored", raw)
        return None

    states: dict[str, str] = {}
    for pair in text.split(","):
        code, sep, label = pair.partition(":")
        if sep and code.strip():
            states[code.strip()] = label.strip()
    if not states:
        _LOGGER.warning("Could not parse states %r, states will be ignored", raw)
        return None
    return states


class Reading(BaseModel):
    """Read-only observation scraped from an ISG page.

    Attributes:
        group_path: Ordered path segments of the owning group
        key: Sanitized key (last path segment)
        display_name: Human-readable name shown in the store
        value_type: Store value type
        unit: Unit string (may be empty)
        role: Store role (e.g. ``value.temperature``)
        value: Current value
        expire_after: Optional expiry override in seconds
    """

    model_config = ConfigDict(frozen=True)

    group_path: tuple[str, ...]
    key: str
    display_name: str = ""
    value_type: ValueType = ValueType.NUMBER
    unit: str = ""
    role: str = "value"
    value: ScalarValue
    expire_after: float | None = None

    @property
    def path(self) -> str:
        """Dotted store path of this reading."""
        return ".".join((*self.group_path, self.key))


class Command(BaseModel):
    """Writable setpoint or mode scraped from an ISG settings page.

    ``min_bound``/``max_bound`` are only set when the page supplied a finite,
    parseable number. ``states`` maps raw codes to labels.
    """

    model_config = ConfigDict(frozen=True)

    group_path: tuple[str, ...]
    key: str
    display_name: str = ""
    value_type: ValueType = ValueType.NUMBER
    unit: str = ""
    role: str = "state"
    value: ScalarValue | None = None
    states: dict[str, str] | None = None
    min_bound: float | None = None
    max_bound: float | None = None

    @field_validator("min_bound", "max_bound", mode="before")
    @classmethod
    def _validate_bound(cls, value: Any, info: Any) -> float | None:
        return parse_bound(value, info.field_name)

    @field_validator("states", mode="before")
    @classmethod
    def _validate_states(cls, value: Any) -> dict[str, str] | None:
        return parse_states(value)

    @property
    def path(self) -> str:
        """Dotted store path of this command."""
        return ".".join((*self.group_path, self.key))


class CommandWrite(BaseModel):
    """A single pending write, serialised as ``{"name": ..., "value": ...}``."""

    name: str
    value: Any


class StateObject(BaseModel):
    """Store-side object definition (shape + metadata) of a state."""

    type: str = "state"
    common: dict[str, Any] = Field(default_factory=dict)
    native: dict[str, Any] = Field(default_factory=dict)


class StateValue(BaseModel):
    """Store-side value of a state."""

    val: Any
    ack: bool = False
    expire: int | None = None
    ts: datetime = Field(default_factory=datetime.now)


__all__ = [
    "Command",
    "CommandWrite",
    "Reading",
    "ScalarValue",
    "StateObject",
    "StateValue",
    "ValueType",
    "parse_bound",
    "parse_states",
]
