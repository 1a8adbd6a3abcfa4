"""UI strings for the tracker, one catalog per language.

``static/translations.json`` maps a language code to a tree of strings:

    {"en": {"errors": {"load_members": "Failed to load users", ...}}, "es": {...}}

use_locale() picks the catalog from Settings.locale (``es_ES`` -> ``es``);
keys missing from that catalog fall back to English.

Usage:
    from committee.services.localizer import t

    message = t("errors.member_not_found", member_id="42")
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from babel import Locale, UnknownLocaleError

logger = logging.getLogger(__name__)

TRANSLATIONS_PATH = Path(__file__).parent.parent / "static" / "translations.json"
FALLBACK_LANGUAGE = "en"

_language = FALLBACK_LANGUAGE


@lru_cache(maxsize=None)
def load_catalogs(path: Path = TRANSLATIONS_PATH) -> dict[str, dict[str, Any]]:
    """Read every language catalog from ``path``; an unreadable file yields none."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.error("Failed to load translations from %s: %s", path, e)
        return {}


def use_locale(locale_str: str) -> str:
    """Select the catalog for ``locale_str``'s language.

    Returns:
        The language whose catalog is now active
    """
    global _language
    try:
        language = Locale.parse(locale_str).language
    except (UnknownLocaleError, ValueError, TypeError):
        language = FALLBACK_LANGUAGE
    if language not in load_catalogs():
        logger.warning("No UI strings for %r, using %s", locale_str, FALLBACK_LANGUAGE)
        language = FALLBACK_LANGUAGE
    _language = language
    return language


def current_language() -> str:
    return _language


def get_translations() -> dict[str, Any]:
    """Active catalog, as served to the browser."""
    catalogs = load_catalogs()
    return catalogs.get(_language) or catalogs.get(FALLBACK_LANGUAGE, {})


def _lookup(tree: Any, parts: list[str]) -> Any:
    for part in parts:
        if not isinstance(tree, dict) or part not in tree:
            return None
        tree = tree[part]
    return tree


def t(key: str, **kwargs: Any) -> str:
    """String for a dot-notation key such as ``errors.load_members``.

    Placeholders are filled from ``kwargs``. Unknown keys, and keys naming a
    group rather than a string, return the key itself.
    """
    catalogs = load_catalogs()
    parts = key.split(".")
    value = _lookup(catalogs.get(_language), parts)
    if value is None and _language != FALLBACK_LANGUAGE:
        value = _lookup(catalogs.get(FALLBACK_LANGUAGE), parts)

    if not isinstance(value, str):
        logger.warning("Translation key not found: %s", key)
        return key

    try:
        return value.format(**kwargs)
    except KeyError as e:
        logger.warning("Missing placeholder %s for key: %s", e, key)
        return value


__all__ = ["t", "use_locale", "current_language", "get_translations", "load_catalogs"]
