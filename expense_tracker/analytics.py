"""Spending analytics over a user's expenses.

This module turns already-fetched expenses into pandas structures for the
dashboard: totals by category and by day, top categories, recent activity,
and the period-over-period spending summary.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from .config import FALLBACK_CATEGORY, OVER_THRESHOLD, RECENT_EXPENSES_LIMIT, TOP_CATEGORIES_LIMIT, WARNING_THRESHOLD
from .models import Expense

FRAME_COLUMNS = ['id', 'Date', 'Name', 'Description', 'Category', 'Amount']
MOVING_AVERAGE_DAYS = 7


def expenses_to_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    """Convert expenses into a DataFrame with display-friendly columns."""
    rows = [
        {
            'id': expense.id,
            'Date': pd.Timestamp(expense.date),
            'Name': expense.label,
            'Description': expense.description,
            'Category': expense.category,
            'Amount': expense.amount,
        }
        for expense in expenses
    ]
    frame = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    if frame.empty:
        frame['Date'] = pd.to_datetime(frame['Date'])
        frame['Amount'] = frame['Amount'].astype(float)
    return frame


class ExpenseAnalytics:
    """Aggregations over a frame produced by :func:`expenses_to_frame`."""

    def __init__(self, data: pd.DataFrame):
        """Initialize with expense data."""
        self.data = data.copy()
        self._prepare_data()

    def _prepare_data(self) -> None:
        """Prepare data for analysis."""
        self.data['Date'] = pd.to_datetime(self.data['Date'])
        self.data['Amount'] = pd.to_numeric(self.data['Amount'], errors='coerce').fillna(0.0)
        category = self.data['Category'].fillna('').astype(str)
        self.data['Category'] = category.where(category.str.strip() != '', FALLBACK_CATEGORY)

    def filter_window(self, start: Optional[date], end: Optional[date]) -> 'ExpenseAnalytics':
        """Return analytics restricted to an inclusive date window."""
        mask = pd.Series(True, index=self.data.index)
        if start is not None:
            mask &= self.data['Date'] >= pd.Timestamp(start)
        if end is not None:
            mask &= self.data['Date'] <= pd.Timestamp(end)
        return ExpenseAnalytics(self.data[mask])

    def total_spent(self) -> float:
        return float(self.data['Amount'].sum())

    def expense_count(self) -> int:
        return int(len(self.data))

    def spending_by_category(self) -> pd.Series:
        """Total spent per category, largest first."""
        if self.data.empty:
            return pd.Series(dtype=float, name='Amount')
        return self.data.groupby('Category')['Amount'].sum().sort_values(ascending=False)

    def top_categories(self, limit: int = TOP_CATEGORIES_LIMIT) -> pd.DataFrame:
        """Largest categories with their share of total spend in percent."""
        by_category = self.spending_by_category().head(limit)
        total = self.total_spent()
        frame = by_category.rename('Amount').reset_index()
        frame.columns = ['Category', 'Amount']
        frame['Percentage'] = frame['Amount'] / total * 100 if total > 0 else 0.0
        return frame

    def daily_totals(self) -> pd.DataFrame:
        """Spend per calendar day plus a trailing 7-day moving average.

        The average is taken over the days that have spending, matching
        how the trend card plots consecutive data points.
        """
        if self.data.empty:
            return pd.DataFrame(columns=['Amount', 'Average'], index=pd.DatetimeIndex([], name='Date'))
        daily = (
            self.data.groupby(self.data['Date'].dt.normalize())['Amount']
            .sum()
            .sort_index()
            .to_frame()
        )
        daily.index.name = 'Date'
        daily['Average'] = daily['Amount'].rolling(MOVING_AVERAGE_DAYS, min_periods=1).mean()
        return daily

    def recent_expenses(self, limit: int = RECENT_EXPENSES_LIMIT) -> pd.DataFrame:
        return self.data.sort_values('Date', ascending=False).head(limit)


def spending_summary(
    total_expense: float,
    previous_period_expense: Optional[float] = None,
    total_budget: float = 0.0,
) -> Dict[str, Any]:
    """Summarize spend against the previous period and the budget total.

    Returns:
        Dictionary with ``has_comparison``, ``change_amount``,
        ``change_percentage`` (rounded), ``is_increase``,
        ``utilization_percentage`` (rounded and capped at 100),
        ``status_color``, ``has_budget``, ``over_budget`` and
        ``budget_gap`` (amount over or remaining, never negative).
    """
    has_comparison = previous_period_expense is not None and previous_period_expense > 0
    change_amount = total_expense - previous_period_expense if has_comparison else 0.0
    change_percentage = round(change_amount / previous_period_expense * 100) if has_comparison else 0

    utilization = min(round(total_expense / total_budget * 100), 100) if total_budget > 0 else 0
    if utilization >= OVER_THRESHOLD:
        status_color = 'red'
    elif utilization >= WARNING_THRESHOLD:
        status_color = 'yellow'
    else:
        status_color = 'green'

    return {
        'has_comparison': has_comparison,
        'change_amount': change_amount,
        'change_percentage': change_percentage,
        'is_increase': change_amount > 0,
        'utilization_percentage': utilization,
        'status_color': status_color,
        'has_budget': total_budget > 0,
        'over_budget': total_budget > 0 and total_expense > total_budget,
        'budget_gap': abs(total_budget - total_expense) if total_budget > 0 else 0.0,
    }
