"""CSV export of expense lists."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

import pandas as pd

from .formatting import format_date
from .models import Expense

EXPORT_COLUMNS = ['Name', 'Amount', 'Category', 'Date']


def expenses_to_csv(expenses: Iterable[Expense]) -> str:
    """Render expenses as CSV text with a Name,Amount,Category,Date header.

    Names fall back to the description; dates are written as ``Jan 15, 2024``.
    """
    rows = [
        {
            'Name': expense.label,
            'Amount': expense.amount,
            'Category': expense.category,
            'Date': format_date(expense.date),
        }
        for expense in expenses
    ]
    frame = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    return frame.to_csv(index=False, lineterminator='\n')


def export_filename(today: Optional[date] = None) -> str:
    return f"expenses_{(today or date.today()).isoformat()}.csv"
