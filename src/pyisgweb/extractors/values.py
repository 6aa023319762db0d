"""Value page extractor.

Value pages show measurements such as temperatures, pressures and
energy counters as ``<number> <unit>`` text in German notation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from bs4 import BeautifulSoup

from pyisgweb.constants import ROLE_VALUE, VALUE_ROLE_RULES
from pyisgweb.exceptions import IsgParseError
from pyisgweb.models import Reading, ValueType
from pyisgweb.sanitize import sanitize_key
from pyisgweb.translations import Translator

from .common import current_submenu, iter_panels, iter_rows, parse_decimal

_LOGGER = logging.getLogger(__name__)


def classify_value_role(key: str) -> str:
    """Derive the store role from a sanitized key.

    Example:
        >>> classify_value_role("AUSSENTEMPERATUR")
        'value.temperature'
        >>> classify_value_role("P_HEIZUNG_TAG")
        'value.power.consumption'
    """
    for match, keyword, role in VALUE_ROLE_RULES:
        if match == "prefix" and key.startswith(keyword):
            return role
        if match == "contains" and keyword in key:
            return role
    return ROLE_VALUE


def extract_values(soup: BeautifulSoup, translator: Translator) -> Iterator[Reading]:
    """Yield a numeric reading for every parseable value row.

    Rows whose value does not start with a finite number are skipped.

    Args:
        soup: Parsed value page
        translator: Name translator for the group root and display names

    Yields:
        Reading with value, unit and classified role
    """
    try:
        submenu = current_submenu(soup)
    except IsgParseError as err:
        _LOGGER.debug("Value page without submenu: %s", err)
        submenu = ""

    root = translator.translate("info")
    for group, panel in iter_panels(soup):
        group_path = tuple(segment for segment in (root, submenu, group) if segment)
        for key_text, cell in iter_rows(panel):
            key = sanitize_key(key_text)
            cell_text = cell.get_text() if cell is not None else ""
            parsed = parse_decimal(cell_text)
            if not key or parsed is None:
                _LOGGER.debug(
                    "Skipping value row %s: %r is not a number", key_text, cell_text
                )
                continue
            value, unit = parsed
            yield Reading(
                group_path=group_path,
                key=key,
                display_name=translator.translate(key_text),
                value_type=ValueType.NUMBER,
                unit=unit,
                role=classify_value_role(key),
                value=value,
            )
