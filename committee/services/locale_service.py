"""Locale service for currency formatting and name ordering.

The active locale comes from Settings.locale and is applied once at startup
with configure_locale(); amounts are then formatted with babel in that
locale's territory currency.

Example:
    >>> from committee.services.locale_service import configure_locale, format_amount
    >>> configure_locale("en_US")
    'en_US'
    >>> format_amount(1234.5)
    '$1,234.50'
"""

import logging
import unicodedata
from decimal import Decimal

from babel import Locale, UnknownLocaleError
from babel.numbers import (
    format_currency as babel_format_currency,
)
from babel.numbers import (
    format_decimal as babel_format_decimal,
)
from babel.numbers import (
    get_territory_currencies,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en_US"
DEFAULT_CURRENCY = "USD"

LOCALE = DEFAULT_LOCALE
CURRENCY = DEFAULT_CURRENCY


def _parse_locale(locale_str: str) -> Locale | None:
    try:
        return Locale.parse(locale_str)
    except (UnknownLocaleError, ValueError, TypeError) as e:
        logger.warning("Invalid locale %r: %s", locale_str, e)
        return None


def _get_currency_from_locale(locale_str: str) -> str:
    """Currency of the locale's territory (e.g. 'en_GB' -> 'GBP'), else USD."""
    locale = _parse_locale(locale_str)
    if locale is not None and locale.territory:
        currencies = get_territory_currencies(locale.territory)
        if currencies:
            return currencies[0]
    return DEFAULT_CURRENCY


def configure_locale(locale_str: str) -> str:
    """Make ``locale_str`` the formatting locale.

    Unknown locales fall back to en_US.

    Returns:
        The locale actually applied
    """
    global LOCALE, CURRENCY
    if _parse_locale(locale_str) is None:
        logger.warning("Falling back to locale %s", DEFAULT_LOCALE)
        locale_str = DEFAULT_LOCALE
    LOCALE = locale_str
    CURRENCY = _get_currency_from_locale(locale_str)
    logger.info("Locale %s, currency %s", LOCALE, CURRENCY)
    return LOCALE


def format_amount(amount: float | Decimal, include_symbol: bool = True) -> str:
    """Format a contribution, receivable or total in the active locale.

    Example:
        >>> format_amount(150)
        '$150.00'
        >>> format_amount(1234.5, include_symbol=False)
        '1,234.5'
    """
    if include_symbol:
        return babel_format_currency(float(amount), CURRENCY, locale=LOCALE)
    return babel_format_decimal(float(amount), locale=LOCALE)


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def name_sort_key(name: str) -> tuple[str, str, str]:
    """Sort key approximating a locale-aware ascending name comparison.

    Names compare first ignoring case and accents ("émile" sits next to
    "Emile", before "Zoe"), then case-insensitively, then with lowercase
    before uppercase ("alice" before "Alice"), as ICU collation does.
    """
    return (_fold(name), name.casefold(), name.swapcase())


__all__ = [
    "LOCALE",
    "CURRENCY",
    "configure_locale",
    "format_amount",
    "name_sort_key",
]
