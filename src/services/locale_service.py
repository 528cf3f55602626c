"""Centralized locale service for currency lookup, money and date formatting.

Single source of truth for all locale-related operations.
Uses babel library for formatting.

Configuration:
    LOCALE env var (default: en_SG) - determines number/date formatting

Currency is not derived from the locale: each unit carries a country, mapped
to a currency through a static table (SGD when unknown). No currency
conversion is ever performed.

Example:
    >>> from src.services.locale_service import format_amount, get_currency_for_country
    >>> get_currency_for_country("MY")
    'MYR'
    >>> format_amount(1234.5, "SGD")
    '$1,234.50'
"""

import logging
import os
from datetime import date
from decimal import Decimal
from typing import NamedTuple

from babel import Locale, UnknownLocaleError
from babel.dates import format_date as babel_format_date
from babel.numbers import UnknownCurrencyError
from babel.numbers import format_currency as babel_format_currency
from babel.numbers import format_decimal as babel_format_decimal
from babel.numbers import get_currency_symbol as babel_get_currency_symbol

from src.models.unit_member import ContributionPeriod
from src.services.allocation_service import FixedContribution, MemberSnapshot
from src.services.period_service import add_months

logger = logging.getLogger(__name__)

# Default locale if LOCALE env var is invalid or missing
DEFAULT_LOCALE = "en_SG"
DEFAULT_CURRENCY = "SGD"


class Country(NamedTuple):
    code: str
    name: str
    currency: str


COUNTRIES_WITH_CURRENCY: list[Country] = [
    Country("SG", "Singapore", "SGD"),
    Country("MY", "Malaysia", "MYR"),
    Country("ID", "Indonesia", "IDR"),
    Country("TH", "Thailand", "THB"),
    Country("VN", "Vietnam", "VND"),
    Country("PH", "Philippines", "PHP"),
    Country("IN", "India", "INR"),
    Country("CN", "China", "CNY"),
    Country("HK", "Hong Kong", "HKD"),
    Country("JP", "Japan", "JPY"),
    Country("KR", "South Korea", "KRW"),
    Country("AU", "Australia", "AUD"),
    Country("NZ", "New Zealand", "NZD"),
    Country("US", "United States", "USD"),
    Country("GB", "United Kingdom", "GBP"),
    Country("EU", "Eurozone", "EUR"),
    Country("CH", "Switzerland", "CHF"),
    Country("AE", "United Arab Emirates", "AED"),
    Country("SA", "Saudi Arabia", "SAR"),
    Country("CA", "Canada", "CAD"),
    Country("DE", "Germany", "EUR"),
    Country("FR", "France", "EUR"),
    Country("NL", "Netherlands", "EUR"),
    Country("ES", "Spain", "EUR"),
    Country("IT", "Italy", "EUR"),
    Country("PT", "Portugal", "EUR"),
    Country("IE", "Ireland", "EUR"),
    Country("BE", "Belgium", "EUR"),
    Country("AT", "Austria", "EUR"),
    Country("PL", "Poland", "PLN"),
    Country("SE", "Sweden", "SEK"),
    Country("NO", "Norway", "NOK"),
    Country("DK", "Denmark", "DKK"),
    Country("FI", "Finland", "EUR"),
    Country("BR", "Brazil", "BRL"),
    Country("MX", "Mexico", "MXN"),
    Country("AR", "Argentina", "ARS"),
    Country("ZA", "South Africa", "ZAR"),
    Country("EG", "Egypt", "EGP"),
    Country("NG", "Nigeria", "NGN"),
    Country("KE", "Kenya", "KES"),
    Country("PK", "Pakistan", "PKR"),
    Country("BD", "Bangladesh", "BDT"),
    Country("LK", "Sri Lanka", "LKR"),
    Country("NP", "Nepal", "NPR"),
    Country("MM", "Myanmar", "MMK"),
    Country("KH", "Cambodia", "KHR"),
    Country("LA", "Laos", "LAK"),
]


def _get_locale() -> str:
    """Get locale from environment with validation and fallback.

    Returns:
        Valid locale string (e.g., 'en_SG')
    """
    locale_str = os.getenv("LOCALE", DEFAULT_LOCALE)
    try:
        Locale.parse(locale_str)
        return locale_str
    except (UnknownLocaleError, ValueError) as e:
        logger.warning(f"Invalid LOCALE '{locale_str}': {e}. Falling back to '{DEFAULT_LOCALE}'")
        return DEFAULT_LOCALE


# Module-level constant (computed once at import)
LOCALE = _get_locale()


def get_country_by_code(code: str | None) -> Country | None:
    """Find a country by ISO code or (case-insensitive) name."""
    if not code:
        return None
    needle = code.strip()
    for country in COUNTRIES_WITH_CURRENCY:
        if country.code == needle or country.name.lower() == needle.lower():
            return country
    return None


def get_currency_for_country(code: str | None) -> str:
    """ISO 4217 currency for a unit's country, SGD when missing or unknown."""
    country = get_country_by_code(code)
    return country.currency if country else DEFAULT_CURRENCY


def get_currency_symbol(currency: str | None) -> str:
    """Currency symbol for display (falls back to the code itself)."""
    code = currency or DEFAULT_CURRENCY
    try:
        return babel_get_currency_symbol(code, locale=LOCALE)
    except UnknownCurrencyError:
        return code


def format_amount(
    amount: float | Decimal, currency: str | None = None, include_symbol: bool = True
) -> str:
    """Format monetary amount according to locale.

    Args:
        amount: Numeric amount to format
        currency: ISO currency code (default: SGD)
        include_symbol: Whether to include currency symbol (default True)

    Returns:
        Formatted currency string (e.g., '$1,234.50')
    """
    code = currency or DEFAULT_CURRENCY
    if include_symbol:
        return babel_format_currency(Decimal(str(amount)), code, locale=LOCALE)
    return babel_format_decimal(
        Decimal(str(amount)), format="#,##0.00", locale=LOCALE
    )


def format_date(value: date) -> str:
    """Format a date as e.g. '3 Mar 2025'."""
    return babel_format_date(value, format="d MMM y", locale=LOCALE)


def format_month_label(value: date) -> str:
    """Format a month as e.g. 'Mar 2025'."""
    return babel_format_date(value, format="MMM y", locale=LOCALE)


def format_contribution(
    member: MemberSnapshot, currency: str | None = None, short: bool = False
) -> str:
    """Describe a member's contribution, e.g. '60%' or '$200.00/mo until 1 Mar 2026'."""
    contribution = member.contribution
    if isinstance(contribution, FixedContribution):
        suffix = "yr" if contribution.period == ContributionPeriod.YEARLY else "mo"
        base = f"{format_amount(contribution.amount, currency)}/{suffix}"
    else:
        base = f"{contribution.percentage.normalize():f}%"
    if not short and member.contribution_end_date:
        return f"{base} until {format_date(member.contribution_end_date)}"
    return base


def _ordinal_suffix(day: int) -> str:
    if day in (1, 21, 31):
        return "st"
    if day in (2, 22):
        return "nd"
    if day in (3, 23):
        return "rd"
    return "th"


def format_due_date(due_day: int) -> str:
    """Format a due day, e.g. '5th of each month'."""
    return f"{due_day}{_ordinal_suffix(due_day)} of each month"


def next_due_date(due_day: int, today: date) -> date:
    """Due date in this month, or next month when it has already passed."""
    this_month = today.replace(day=due_day)
    if this_month >= today:
        return this_month
    return add_months(today, 1).replace(day=due_day)


__all__ = [
    "LOCALE",
    "COUNTRIES_WITH_CURRENCY",
    "Country",
    "DEFAULT_CURRENCY",
    "format_amount",
    "format_contribution",
    "format_date",
    "format_due_date",
    "format_month_label",
    "get_country_by_code",
    "get_currency_for_country",
    "get_currency_symbol",
    "next_due_date",
]
