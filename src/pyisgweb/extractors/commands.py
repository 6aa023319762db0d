"""Command page and start page extractor.

Settings pages render each writable parameter as one of a handful of
input widgets inside ``#werte``:

- slider widgets: a hidden input followed by an inline script carrying
  ``['min']``, ``['max']``, ``['val']`` and ``['id']`` annotations. The
  script sits either right after the input or, for ``chval`` containers,
  three elements after the input's grandparent.
- black-box selectors: ``div.black`` groups of radio inputs whose ``alt``
  attribute is the option label and whose checked input is the value.
- ``current`` selectors: read-only display of the active option, reported
  as a reading rather than a command.

The start page (path ``0``) additionally embeds the infographic charts as
an inline script after ``#buehne`` and offers the operating mode selector.

Malformed widgets are logged at debug level and skipped; they never abort
the rest of the page.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from bs4 import BeautifulSoup, Tag

from pyisgweb.constants import (
    CHART_ROLE_RULES,
    CHART_SERIES_RE,
    FALLBACK_COMMAND_GROUP,
    LATEST_VALUE_SEGMENT,
    MODE_OPTION_NAME_RE,
    OPERATING_MODE_TITLE,
    ROLE_INDICATOR,
    ROLE_LEVEL,
    ROLE_STATE,
    START_PAGE_PATH,
    STATISTICS_GROUP,
    SUBNAV_ACTIVE_RE,
    WIDGET_ID_RE,
    WIDGET_MAX_RE,
    WIDGET_MIN_RE,
    WIDGET_VAL_RE,
)
from pyisgweb.exceptions import IsgParseError
from pyisgweb.models import Command, Reading, ValueType
from pyisgweb.sanitize import sanitize_command_id, sanitize_key, sanitize_label
from pyisgweb.translations import Translator

from .common import (
    current_submenu,
    element_text,
    next_element_sibling,
    parent_at,
    parse_widget_number,
    script_text,
)

_LOGGER = logging.getLogger(__name__)

_CHART_POINT_RE = re.compile(r"\[([^\[\]]*)\]")
_INT_PREFIX_RE = re.compile(r"^\s*[-+]?\d+")

Record = Reading | Command


def classify_chart_role(key: str) -> str:
    """Derive the store role of an infographic series key."""
    lowered = key.lower()
    for keyword, role in CHART_ROLE_RULES:
        if keyword in lowered:
            return role
    return ROLE_INDICATOR


def _heading(container: Tag | None) -> str:
    if container is None:
        return ""
    return element_text(container.find("h3"))


def _command_group(soup: BeautifulSoup, translator: Translator) -> tuple[str, ...]:
    """Group path for settings commands: settings root, submenu, active tab."""
    try:
        group = current_submenu(soup) or FALLBACK_COMMAND_GROUP
    except IsgParseError as err:
        _LOGGER.debug(
            "Command page without submenu, using %s: %s", FALLBACK_COMMAND_GROUP, err
        )
        group = FALLBACK_COMMAND_GROUP

    segments = [translator.translate("settings"), group]
    active = SUBNAV_ACTIVE_RE.search(str(soup))
    if active is not None:
        tab = sanitize_label(active.group(1))
        if tab:
            segments.append(tab)
    return tuple(segments)


# ============================================================================
# Infographics (start page)
# ============================================================================


def _chart_script(soup: BeautifulSoup) -> str:
    """Return the inline chart script following ``#buehne``."""
    stage = soup.select_one("#buehne")
    if stage is None:
        return ""
    for steps in (2, 3):
        text = script_text(next_element_sibling(stage, steps))
        if text.strip():
            return text
    return ""


def _chart_points(body: str) -> Iterator[tuple[str, int]]:
    """Yield ``(timestamp, value)`` pairs of one chart series body."""
    for raw_point in _CHART_POINT_RE.findall(body):
        label, sep, raw_value = raw_point.partition(",")
        match = _INT_PREFIX_RE.match(raw_value)
        if not sep or match is None:
            _LOGGER.debug("Skipping malformed chart point %r", raw_point)
            continue
        yield label.strip().strip("\"'"), int(match.group())


def extract_infographics(
    soup: BeautifulSoup, translator: Translator
) -> Iterator[Reading]:
    """Yield readings for the infographic chart series of the start page.

    Each data point produces a reading under its timestamp; the last point
    of each series is also published as ``LATEST_VALUE``.
    """
    script = _chart_script(soup)
    if not script:
        return

    root = translator.translate("info")
    for match in CHART_SERIES_RE.finditer(script):
        index, series, body = match.groups()
        try:
            tab = soup.select_one(f"#tab{index}")
            heading = " ".join(element_text(h3) for h3 in tab.find_all("h3")) if tab else ""
            parts = heading.split("in ")
            value_name = parts[0].strip()
            unit = parts[1].strip() if len(parts) > 1 else ""
            if not value_name:
                raise IsgParseError(f"Chart tab #tab{index} has no heading")
        except IsgParseError as err:
            _LOGGER.debug("Skipping chart series %s: %s", series, err)
            continue

        series_path = (root, *STATISTICS_GROUP, sanitize_key(value_name))
        key = sanitize_key(f"{value_name}_{series}")
        role = classify_chart_role(f"{value_name}_{series}")

        latest: int | None = None
        for timestamp, value in _chart_points(body):
            latest = value
            yield Reading(
                group_path=(*series_path, sanitize_key(timestamp)),
                key=key,
                display_name=value_name,
                value_type=ValueType.NUMBER,
                unit=unit,
                role=role,
                value=value,
            )
        if latest is not None:
            yield Reading(
                group_path=(*series_path, LATEST_VALUE_SEGMENT),
                key=key,
                display_name=value_name,
                value_type=ValueType.NUMBER,
                unit=unit,
                role=role,
                value=latest,
            )


# ============================================================================
# Input widgets
# ============================================================================


def _operating_mode(inp: Tag, translator: Translator) -> Command | None:
    """Parse the start page operating mode selector anchored at ``inp``."""
    if _heading(parent_at(inp, 2)) != OPERATING_MODE_TITLE:
        return None
    if "aval" not in (inp.get("name") or ""):
        return None

    # Options may sit in a sibling column of the selector
    column = parent_at(inp, 4)
    if column is None:
        raise IsgParseError("Operating mode selector without container")

    states: dict[str, str] = {}
    value: float | None = None
    command_id: str | None = None
    for values in column.select("div.values"):
        for option in values.find_all("input"):
            name = option.get("name") or ""
            if not name or "aval" in name or "info" in name:
                continue
            if MODE_OPTION_NAME_RE.search(name):
                label = element_text(option.find_next_sibling())
                states[str(option.get("value", ""))] = label
            else:
                command_id = name
                value = parse_widget_number(option.get("value"))

    if not command_id:
        raise IsgParseError("Operating mode selector without value input")
    return Command(
        group_path=(translator.translate("start"),),
        key=sanitize_command_id(command_id),
        display_name=OPERATING_MODE_TITLE,
        value_type=ValueType.NUMBER,
        unit="",
        role=ROLE_LEVEL,
        value=value,
        states=states or None,
    )


def _black_box(black: Tag, group_path: tuple[str, ...]) -> Command | None:
    """Parse a ``div.black`` radio selector into a command with states."""
    first = black.find("input")
    if first is None or not first.get("name"):
        return None

    states: dict[str, str] = {}
    value: float | None = None
    for option in black.find_all("input"):
        states[str(option.get("value", ""))] = str(option.get("alt", ""))
        if option.get("checked") == "checked":
            value = parse_widget_number(option.get("value"))

    return Command(
        group_path=group_path,
        key=sanitize_command_id(first["name"]),
        display_name=_heading(parent_at(black, 3)),
        value_type=ValueType.NUMBER,
        unit="",
        role=ROLE_LEVEL,
        value=value,
        states=states or None,
    )


def _current_selection(
    black: Tag, group_path: tuple[str, ...], translator: Translator
) -> Reading | None:
    """Parse a read-only ``current`` selector into a reading."""
    options = black.parent
    if options is None:
        return None
    first = options.find("input")
    if first is None or not first.get("id"):
        return None

    value: float | None = None
    for option in options.find_all("input"):
        if option.get("checked") == "checked":
            value = parse_widget_number(option.get("value"))
    if value is None:
        raise IsgParseError(f"No checked option for {first['id']}")

    name = _heading(parent_at(black, 4))
    return Reading(
        group_path=group_path,
        key=sanitize_command_id(first["id"]),
        display_name=translator.translate(name),
        value_type=ValueType.NUMBER,
        unit="",
        role=ROLE_LEVEL,
        value=value,
    )


def _slider(
    script: str, container: Tag | None, group_path: tuple[str, ...]
) -> Command | None:
    """Parse the inline slider annotations into a bounded command."""
    command_id = WIDGET_ID_RE.search(script)
    if command_id is None:
        return None
    min_match = WIDGET_MIN_RE.search(script)
    max_match = WIDGET_MAX_RE.search(script)
    val_match = WIDGET_VAL_RE.search(script)

    unit = element_text(container.select_one(".append-1")) if container else ""
    return Command(
        group_path=group_path,
        key=sanitize_command_id(command_id.group(1)),
        display_name=_heading(container),
        value_type=ValueType.NUMBER,
        unit=unit.replace(" ", ""),
        role=ROLE_STATE,
        value=parse_widget_number(val_match.group(1)) if val_match else None,
        min_bound=min_match.group(1) if min_match else None,
        max_bound=max_match.group(1) if max_match else None,
    )


def _widget_records(
    inp: Tag,
    group_path: tuple[str, ...],
    translator: Translator,
    seen: set[int],
) -> Iterator[Record]:
    parent = inp.parent
    if parent is None:
        return

    blacks = parent.select("div.black")
    if blacks:
        for black in blacks:
            if id(black) in seen:
                continue
            seen.add(id(black))
            command = _black_box(black, group_path)
            if command is not None:
                yield command
        return

    if "current" in (parent.get("class") or []):
        grandparent = parent.parent
        for black in grandparent.select("div.black") if grandparent else []:
            if id(black) in seen:
                continue
            seen.add(id(black))
            reading = _current_selection(black, group_path, translator)
            if reading is not None:
                yield reading
        return

    if "chval" in (parent.get("id") or ""):
        script = script_text(next_element_sibling(parent.parent, 3))
        container = parent_at(inp, 3)
    else:
        script = script_text(next_element_sibling(inp))
        container = parent_at(inp, 2)
    if script:
        command = _slider(script, container, group_path)
        if command is not None:
            yield command


def extract_commands(
    soup: BeautifulSoup, side_path: str, translator: Translator
) -> Iterator[Record]:
    """Yield commands (and read-only selector readings) of a settings page.

    On the start page (``side_path == "0"``) the infographic readings and
    the operating mode command are produced instead of settings widgets.

    Args:
        soup: Parsed settings page
        side_path: Page path the document was fetched from
        translator: Name translator for group roots and display names

    Yields:
        Command or Reading records in document order
    """
    is_start_page = str(side_path) == START_PAGE_PATH
    if is_start_page:
        yield from extract_infographics(soup, translator)

    values_root = soup.select_one("#werte")
    if values_root is None:
        return

    group_path = _command_group(soup, translator)
    seen: set[int] = set()
    for inp in values_root.find_all("input"):
        try:
            if is_start_page:
                command = _operating_mode(inp, translator)
                if command is not None:
                    yield command
                continue
            yield from _widget_records(inp, group_path, translator, seen)
        except (IsgParseError, ValueError, AttributeError, KeyError) as err:
            _LOGGER.debug("Skipping input %s: %s", inp.get("name") or inp.get("id"), err)
