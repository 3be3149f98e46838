"""Locale placeholder substitution and date rendering for prompts."""

import re
from datetime import date
from typing import Optional

DEFAULT_LOCALE = "de-DE"

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-z_]+)\s*\}\}")

# Placeholder values per locale; unknown locales use de-DE.
_PLACEHOLDERS: dict[str, dict[str, str]] = {
    "de-DE": {
        "partei": "Bündnis 90/Die Grünen",
        "land": "Deutschland",
        "parlament": "Bundestag",
        "jugendorganisation": "Grüne Jugend",
        "regierungschef": "Bundeskanzler",
    },
    "de-AT": {
        "partei": "Die Grünen",
        "land": "Österreich",
        "parlament": "Nationalrat",
        "jugendorganisation": "Junge Grüne",
        "regierungschef": "Bundeskanzler",
    },
}

_WEEKDAYS = {
    "de": ["Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag"],
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
}

_MONTHS = {
    "de": ["Januar", "Februar", "März", "April", "Mai", "Juni", "Juli",
           "August", "September", "Oktober", "November", "Dezember"],
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
}


def _language(locale: str) -> str:
    return (locale or DEFAULT_LOCALE).split("-")[0].lower()


def placeholder_values(locale: str) -> dict[str, str]:
    return _PLACEHOLDERS.get(locale, _PLACEHOLDERS[DEFAULT_LOCALE])


def localize_placeholders(text: str, locale: str = DEFAULT_LOCALE) -> str:
    """Replace ``{{name}}`` placeholders with locale-specific values.

    Unknown placeholders are left untouched.
    """
    if not text:
        return text
    values = placeholder_values(locale)

    def _sub(match: re.Match) -> str:
        return values.get(match.group(1), match.group(0))

    return _PLACEHOLDER_RE.sub(_sub, text)


def format_full_date(day: Optional[date] = None, locale: str = DEFAULT_LOCALE) -> str:
    """Render a date in the locale's long form, e.g. ``Sonntag, 18. Oktober 2026``."""
    day = day or date.today()
    lang = _language(locale)
    if lang == "en":
        weekday = _WEEKDAYS["en"][day.weekday()]
        month = _MONTHS["en"][day.month - 1]
        return f"{weekday}, {month} {day.day}, {day.year}"

    weekday = _WEEKDAYS["de"][day.weekday()]
    month = _MONTHS["de"][day.month - 1]
    if locale == "de-AT" and day.month == 1:
        month = "Jänner"
    return f"{weekday}, {day.day}. {month} {day.year}"
