"""Shared traversal helpers for the ISG page extractors.

Every ISG page follows the same outline: a ``#sub_nav`` menu whose first
entry names the current submenu, followed by ``.info`` panels with a
``.round-top`` heading and a table of ``.key``/``.value`` rows.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator

from bs4 import BeautifulSoup, Tag

from pyisgweb.constants import NUMBER_PREFIX_RE
from pyisgweb.exceptions import IsgParseError
from pyisgweb.sanitize import sanitize_label, sanitize_submenu

_LOGGER = logging.getLogger(__name__)


def current_submenu(soup: BeautifulSoup) -> str:
    """Return the sanitized label of the current submenu.

    Raises:
        IsgParseError: If the page has no ``#sub_nav`` menu entries
    """
    sub_nav = soup.select_one("#sub_nav")
    if sub_nav is None:
        raise IsgParseError("Page has no #sub_nav element")
    first = sub_nav.find(True)
    if first is None:
        raise IsgParseError("#sub_nav has no entries")
    return sanitize_submenu(first.get_text())


def iter_panels(soup: BeautifulSoup) -> Iterator[tuple[str, Tag]]:
    """Yield ``(group_label, panel)`` for every ``.info`` panel in order."""
    for panel in soup.select(".info"):
        heading = panel.select_one(".round-top")
        label = sanitize_label(heading.get_text()) if heading is not None else ""
        yield label, panel


def iter_rows(panel: Tag) -> Iterator[tuple[str, Tag | None]]:
    """Yield ``(key_text, value_cell)`` for every table row of a panel.

    Rows without a ``.key`` cell (headings, spacers) are skipped.
    """
    for row in panel.find_all("tr"):
        key_cell = row.select_one(".key")
        if key_cell is None:
            continue
        key_text = key_cell.get_text().strip()
        if not key_text:
            continue
        yield key_text, row.select_one(".value")


def parse_decimal(text: str | None) -> tuple[float, str] | None:
    """Parse the leading decimal number of a cell text.

    A comma is accepted as decimal separator. The remainder of the text,
    with whitespace removed, is returned as the unit.

    Example:
        >>> parse_decimal("5,3 °C")
        (5.3, '°C')

    Returns:
        ``(value, unit)`` or None if the text does not start with a
        finite number
    """
    if not text:
        return None
    normalized = text.strip().replace(",", ".", 1)
    match = NUMBER_PREFIX_RE.match(normalized)
    if match is None:
        return None
    try:
        value = float(match.group().strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    unit = "".join(normalized[match.end() :].split())
    return value, unit


def parse_widget_number(raw: str | None) -> float | None:
    """Parse a widget attribute value such as ``"21,5"`` or ``"1 "``."""
    if raw is None:
        return None
    parsed = parse_decimal(raw.replace(" ", ""))
    return parsed[0] if parsed is not None else None


def element_text(element: Tag | None) -> str:
    """Return the stripped text of ``element`` or an empty string."""
    if element is None:
        return ""
    return element.get_text().strip()


def script_text(element: Tag | None) -> str:
    """Return the text content of a (script) element or an empty string."""
    if element is None:
        return ""
    if element.string is not None:
        return str(element.string)
    return element.get_text()


def next_element_sibling(element: Tag | None, steps: int = 1) -> Tag | None:
    """Walk ``steps`` element siblings forward, skipping text nodes."""
    current = element
    for _ in range(steps):
        if current is None:
            return None
        current = current.find_next_sibling()
    return current


def parent_at(element: Tag, levels: int) -> Tag | None:
    """Return the ancestor ``levels`` steps up (1 = parent)."""
    current: Tag | None = element
    for _ in range(levels):
        if current is None:
            return None
        current = current.parent
    return current
