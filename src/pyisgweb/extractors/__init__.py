"""HTML extractors turning ISG pages into readings and commands.

Each extractor is a generator over a parsed page; calling it again on the
same document restarts the extraction. Malformed rows and widgets are
logged and skipped so one bad fragment cannot abort a page.
"""

from __future__ import annotations

from .commands import classify_chart_role, extract_commands, extract_infographics
from .common import current_submenu, parse_decimal
from .status import extract_status
from .values import classify_value_role, extract_values

__all__ = [
    "classify_chart_role",
    "classify_value_role",
    "current_submenu",
    "extract_commands",
    "extract_infographics",
    "extract_status",
    "extract_values",
    "parse_decimal",
]
