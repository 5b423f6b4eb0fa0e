"""Normalization of raw storage rows and form values into typed records.

All coercion of loosely-typed input happens here, at the point where data
enters the application.  Downstream code (budget status, analytics,
charts) can rely on well-typed ``Expense`` and ``Budget`` values.
"""

from __future__ import annotations

import logging
import numbers
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from .models import Budget, Expense

logger = logging.getLogger(__name__)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def coerce_amount(value: Any) -> float:
    """Convert an amount to float, treating anything non-numeric as zero.

    Numeric scalars of any kind (``Decimal``, numpy numbers) are converted
    directly.  Strings are parsed after stripping ``$`` and thousands
    separators, the way bank exports are cleaned.

    Example:
        >>> coerce_amount("$1,234.50")
        1234.5
        >>> coerce_amount("n/a")
        0.0
    """
    if isinstance(value, bool) or _is_missing(value):
        return 0.0
    if isinstance(value, (numbers.Real, Decimal)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.strip().replace("$", "").replace(",", "")
        if not cleaned:
            return 0.0
        number = pd.to_numeric(pd.Series([cleaned]), errors='coerce').iloc[0]
        return 0.0 if pd.isna(number) else float(number)
    return 0.0


def to_date(value: Any) -> Optional[date]:
    """Parse a date-like value into a ``datetime.date`` or ``None``."""
    if _is_missing(value) or value == "":
        return None
    if hasattr(value, 'to_pydatetime'):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        ts = pd.to_datetime(value, errors='coerce')
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    return ts.date()


def to_iso_date(value: Any) -> Optional[str]:
    parsed = to_date(value)
    return parsed.isoformat() if parsed else None


def _text(value: Any) -> str:
    if _is_missing(value):
        return ''
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def expense_from_record(record: Mapping[str, Any]) -> Optional[Expense]:
    """Build an ``Expense`` from a storage row or form payload.

    Returns ``None`` when the record has no usable date.  The category is
    kept verbatim so attribution stays an exact comparison.  Negative
    amounts are stored as zero.
    """
    expense_date = to_date(record.get('date'))
    if expense_date is None:
        logger.debug("Skipping expense %s with unparseable date %r", record.get('id'), record.get('date'))
        return None
    amount = coerce_amount(record.get('amount'))
    if amount < 0:
        logger.debug("Clamping negative amount %r on expense %s to zero", record.get('amount'), record.get('id'))
        amount = 0.0
    category = record.get('category')
    return Expense(
        id=_optional_text(record.get('id')),
        user_id=_text(record.get('user_id')),
        amount=amount,
        category='' if _is_missing(category) else str(category),
        date=expense_date,
        name=_text(record.get('name')),
        description=_text(record.get('description')),
        created_at=_optional_text(record.get('created_at')),
        updated_at=_optional_text(record.get('updated_at')),
    )


def normalize_expenses(records: Iterable[Mapping[str, Any]]) -> List[Expense]:
    """Normalize many records, dropping those that cannot be dated."""
    expenses: List[Expense] = []
    for record in records:
        expense = expense_from_record(record)
        if expense is not None:
            expenses.append(expense)
    return expenses


def budget_from_record(record: Mapping[str, Any]) -> Budget:
    """Build a ``Budget`` from a storage row or form payload.

    Raises:
        ValueError: If the start date cannot be parsed.
    """
    start = to_date(record.get('start_date'))
    if start is None:
        raise ValueError(f"Budget start date is not a valid date: {record.get('start_date')!r}")
    category = record.get('category')
    return Budget(
        id=_optional_text(record.get('id')),
        user_id=_text(record.get('user_id')),
        category='' if _is_missing(category) else str(category),
        amount=coerce_amount(record.get('amount')),
        period=_text(record.get('period')) or 'monthly',
        start_date=start,
        end_date=to_date(record.get('end_date')),
        notes=_text(record.get('notes')),
        created_at=_optional_text(record.get('created_at')),
        updated_at=_optional_text(record.get('updated_at')),
    )
