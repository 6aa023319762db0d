"""Status page extractor.

Status pages list indicators (compressor, pumps, heating stages ...) as
table rows whose value cell shows a lit symbol when the indicator is on.
Only lit indicators are reported; rows without the marker produce no
reading at all, so an indicator that turns off simply stops being
refreshed and expires in the store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from bs4 import BeautifulSoup

from pyisgweb.constants import ROLE_INDICATOR, STATUS_ON_MARKER
from pyisgweb.exceptions import IsgParseError
from pyisgweb.models import Reading, ValueType
from pyisgweb.sanitize import sanitize_key
from pyisgweb.translations import Translator

from .common import current_submenu, iter_panels, iter_rows

_LOGGER = logging.getLogger(__name__)


def extract_status(soup: BeautifulSoup, translator: Translator) -> Iterator[Reading]:
    """Yield a boolean reading for every lit status indicator.

    Args:
        soup: Parsed status page
        translator: Name translator for the group root and display names

    Yields:
        Reading with value True and role ``indicator.state``
    """
    try:
        submenu = current_submenu(soup)
    except IsgParseError as err:
        _LOGGER.debug("Status page without submenu: %s", err)
        submenu = ""

    root = translator.translate("info")
    for group, panel in iter_panels(soup):
        group_path = tuple(segment for segment in (root, submenu, group) if segment)
        for key_text, cell in iter_rows(panel):
            if cell is None or STATUS_ON_MARKER not in cell.decode_contents():
                continue
            key = sanitize_key(key_text)
            if not key:
                continue
            yield Reading(
                group_path=group_path,
                key=key,
                display_name=translator.translate(key_text),
                value_type=ValueType.BOOLEAN,
                unit="",
                role=ROLE_INDICATOR,
                value=True,
            )
