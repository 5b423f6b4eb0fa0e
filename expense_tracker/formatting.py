"""Formatting utilities for currency, dates and names."""

from __future__ import annotations

from typing import Any, Union

from .config import DEFAULT_CURRENCY
from .normalization import to_date

CURRENCY_SYMBOLS = {
    'USD': '$',
    'CAD': 'CA$',
    'AUD': 'A$',
    'EUR': '€',
    'GBP': '£',
    'JPY': '¥',
    'INR': '₹',
}


def format_currency(amount: Union[float, int], currency: str = DEFAULT_CURRENCY) -> str:
    """Format an amount with thousands separators and a currency marker.

    Currencies without a known symbol are prefixed with their ISO code.

    Example:
        >>> format_currency(1234.5)
        '$1,234.50'
        >>> format_currency(-10, 'EUR')
        '-€10.00'
        >>> format_currency(3, 'SAR')
        'SAR 3.00'
    """
    code = (currency or DEFAULT_CURRENCY).upper()
    sign = '-' if amount < 0 else ''
    formatted = f"{abs(amount):,.2f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{formatted}"
    return f"{sign}{code} {formatted}"


def escape_dollar_for_markdown(text: str) -> str:
    """Escape dollar signs so Streamlit markdown does not read them as LaTeX."""
    return text.replace("$", "\\$")


def format_date(value: Any) -> str:
    """Format a date as ``Jan 15, 2024``; empty string when unparseable."""
    parsed = to_date(value) if value else None
    if parsed is None:
        return ''
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def get_initials(name: str) -> str:
    if not name:
        return ''
    return ''.join(part[0] for part in name.split() if part).upper()
