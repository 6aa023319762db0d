"""Name translation tables.

Group roots of the state tree (``info``, ``settings``, ``start``) and the
display names of a few fixed entities are translated into the configured
language. Labels scraped from the ISG pass through unchanged unless a
table entry exists for them.
"""

from __future__ import annotations

import logging

from .constants import DEFAULT_LANGUAGE

_LOGGER = logging.getLogger(__name__)

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "info": "Info",
        "settings": "Settings",
        "start": "Start",
        "ISGReboot": "ISG reboot",
        "connection": "Connected to ISG",
    },
    "de": {
        "info": "Info",
        "settings": "Einstellungen",
        "start": "Start",
        "ISGReboot": "ISG Neustart",
        "connection": "Mit ISG verbunden",
    },
}


class Translator:
    """Look up names in a per-language table.

    Example:
        >>> Translator("de").translate("settings")
        'Einstellungen'
        >>> Translator("de").translate("AUSSENTEMPERATUR")
        'AUSSENTEMPERATUR'
    """

    def __init__(
        self,
        language: str = DEFAULT_LANGUAGE,
        table: dict[str, str] | None = None,
    ) -> None:
        """Initialize the translator.

        Args:
            language: Language code; unknown codes fall back to English
            table: Optional explicit table overriding the built-in ones
        """
        if table is not None:
            self.language = language
            self._table = dict(table)
            return

        if language not in TRANSLATIONS:
            _LOGGER.warning(
                "Translations for %s not found, falling back to English", language
            )
            language = DEFAULT_LANGUAGE
        self.language = language
        self._table = TRANSLATIONS[language]

    def translate(self, name: str) -> str:
        """Return the translation of ``name`` or ``name`` itself."""
        return self._table.get(name, name)


__all__ = [
    "TRANSLATIONS",
    "Translator",
]
