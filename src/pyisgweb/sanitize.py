"""Label sanitization for state store paths.

The ISG prints German labels with spaces, hyphens, periods and umlauts.
Store paths are dot separated, so labels are flattened before use.
"""

from __future__ import annotations

import re

_SPACE_HYPHEN_RE = re.compile(r"[ -]+")
_SUBMENU_SEPARATOR_RE = re.compile(r"[-/]+")
_SUBMENU_DROP_RE = re.compile(r"[ .]+")

UMLAUT_MAP: dict[str, str] = {
    "Ä": "AE",
    "Ö": "OE",
    "Ü": "UE",
}


def sanitize_label(text: str | None) -> str:
    """Flatten a panel or row label into a single path segment.

    Runs of spaces/hyphens become ``_``, periods are dropped and ``ß`` is
    transliterated to ``SS``.
    """
    if not text:
        return ""
    label = _SPACE_HYPHEN_RE.sub("_", text.strip())
    return label.replace(".", "").replace("ß", "SS")


def sanitize_key(text: str | None) -> str:
    """Sanitize a row label for use as the final path segment.

    Keys are upper-cased like the ISG's own identifiers, and ``*`` (used by
    the ISG for footnoted values) becomes ``_``.
    """
    return sanitize_label(text).upper().replace("*", "_")


def sanitize_command_id(text: str | None) -> str:
    """Sanitize a widget id used as command key.

    The id is written back to ``save.php`` as is, so its case is kept.
    """
    return sanitize_label(text).replace("*", "_")


def sanitize_submenu(text: str | None) -> str:
    """Sanitize the active submenu label that leads every group path.

    Unlike panel labels, spaces and periods are removed outright and
    slashes turn into underscores.
    """
    if not text:
        return ""
    label = _SUBMENU_SEPARATOR_RE.sub("_", text.strip())
    label = _SUBMENU_DROP_RE.sub("", label)
    return label.replace("ß", "SS")


def replace_umlauts(text: str) -> str:
    """Transliterate upper-case umlauts (Ä, Ö, Ü) to two letters."""
    for umlaut, replacement in UMLAUT_MAP.items():
        text = text.replace(umlaut, replacement)
    return text


def split_paths(value: str | None) -> list[str]:
    """Split a semicolon-delimited list of page paths, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(";") if item.strip()]
