"""Constants for the Stiebel Eltron / Tecalor ISG web interface.

Endpoint paths, defaults, role names and the regular expressions used to
pick values out of the inline scripts the ISG embeds in its pages. The
patterns were taken from the ISG "Servicewelt" HTML as served by current
firmware; the page layout is fixed and not versioned.
"""

from __future__ import annotations

import re
from typing import Final

# ============================================================================
# Device endpoints
# ============================================================================

# Every page is fetched with a POST carrying the credentials as form fields
PAGE_PATH_FMT: Final = "/?s={side_path}"
SAVE_PATH: Final = "/save.php"
REBOOT_PATH: Final = "/reboot.php"

# Page used to probe the credentials at startup
LOGIN_CHECK_PATH: Final = "1,0"

# The start page carries the infographics and the operating mode selector
START_PAGE_PATH: Final = "0"

PAGE_HEADERS: Final[dict[str, str]] = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Connection": "keep-alive",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

SAVE_HEADERS: Final[dict[str, str]] = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "*/*",
}

# ============================================================================
# Defaults
# ============================================================================

DEFAULT_POLL_INTERVAL: Final = 60
DEFAULT_COMMAND_INTERVAL: Final = 60
DEFAULT_MAX_CONCURRENT_FETCHES: Final = 3
DEFAULT_REQUEST_TIMEOUT: Final = 60.0
DEFAULT_COMMAND_DELAY: Final = 5.0
DEFAULT_REBOOT_DELAY: Final = 60.0
DEFAULT_LANGUAGE: Final = "en"

# Group used when the submenu label cannot be read from a command page
FALLBACK_COMMAND_GROUP: Final = "Allgemein"

# ============================================================================
# State store paths and roles
# ============================================================================

CONNECTION_STATE: Final = "info.connection"
REBOOT_STATE: Final = "ISGReboot"

# Branch of the info tree holding the infographic statistics
STATISTICS_GROUP: Final = ("ANLAGE", "STATISTIK")
LATEST_VALUE_SEGMENT: Final = "LATEST_VALUE"

ROLE_INDICATOR: Final = "indicator.state"
ROLE_TEMPERATURE: Final = "value.temperature"
ROLE_PRESSURE: Final = "value.pressure"
ROLE_POWER: Final = "value.power.consumption"
ROLE_HUMIDITY: Final = "value.humidity"
ROLE_VALUE: Final = "value"
ROLE_LEVEL: Final = "level"
ROLE_STATE: Final = "state"
ROLE_BUTTON: Final = "button"
ROLE_CONNECTED: Final = "indicator.connected"

# Markup marker of a lit status symbol ("an" = on)
STATUS_ON_MARKER: Final = "symbol_an"

# Panel heading of the start-page operating mode selector
OPERATING_MODE_TITLE: Final = "Betriebsart"

# ============================================================================
# Regular expressions
# ============================================================================

# charts[0]['heizen'] = [["Mo",10],["Di",12]];
CHART_SERIES_RE: Final = re.compile(
    r"charts\[(\d)\]\['(\w*)'\]\s*= \[(.*?)\];", re.MULTILINE
)

# Slider widget annotations
WIDGET_MIN_RE: Final = re.compile(r"\['min'\] = '(.*?)'")
WIDGET_MAX_RE: Final = re.compile(r"\['max'\] = '(.*?)'")
WIDGET_VAL_RE: Final = re.compile(r"\['val'\]='(.*?)'")
WIDGET_ID_RE: Final = re.compile(r"\['id'\]='(.*?)'")

# $("#subnavactivename").html('HEIZEN');
SUBNAV_ACTIVE_RE: Final = re.compile(r"#subnavactivename\"\)\.html\('(.*?)'")

# Leading decimal number, comma already normalised to a dot
NUMBER_PREFIX_RE: Final = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)")

# Radio inputs of the operating mode selector are named like "6s"
MODE_OPTION_NAME_RE: Final = re.compile(r"[0-9]s")

IPV4_RE: Final = re.compile(
    r"^(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\."
    r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\."
    r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\."
    r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
)
FQDN_RE: Final = re.compile(
    r"^(?!://)(?=.{1,255}$)((.{1,63}\.){1,127}(?![0-9]*$)[a-z0-9-]+\.?)$"
)

# ============================================================================
# Role classification for value pages
# ============================================================================

# Ordered: the first matching rule wins. "contains" matches anywhere in the
# sanitized key, "prefix" only at its start.
VALUE_ROLE_RULES: Final[tuple[tuple[str, str, str], ...]] = (
    ("contains", "TEMP", ROLE_TEMPERATURE),
    ("contains", "FROST", ROLE_TEMPERATURE),
    ("prefix", "SOLLWERT_HK", ROLE_TEMPERATURE),
    ("prefix", "ISTWERT_HK", ROLE_TEMPERATURE),
    ("contains", "DRUCK", ROLE_PRESSURE),
    ("prefix", "P_", ROLE_POWER),
    ("contains", "FEUCHTE", ROLE_HUMIDITY),
)

# Same idea for infographic series keys (matched case-insensitively)
CHART_ROLE_RULES: Final[tuple[tuple[str, str], ...]] = (
    ("temperatur", ROLE_TEMPERATURE),
    ("frost", ROLE_TEMPERATURE),
    ("energie", ROLE_POWER),
)
