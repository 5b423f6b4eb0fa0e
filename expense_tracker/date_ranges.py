"""Date window helpers for the dashboard and analytics pages."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Dict, Optional, Tuple

import pandas as pd

DateRange = Tuple[date, date]

DATE_RANGE_PRESETS: Dict[str, str] = {
    'this-week': 'This week',
    'this-month': 'This month',
    'last-month': 'Last month',
    'this-quarter': 'This quarter',
    'this-year': 'This year',
    'last-30': 'Last 30 days',
    'last-90': 'Last 90 days',
}

ANALYTICS_WINDOWS: Dict[str, str] = {
    'week': 'Last 7 Days',
    'month': 'This Month',
    'quarter': 'Last 3 Months',
    'year': 'This Year',
    'all': 'All Time',
}


def month_range(day: date) -> DateRange:
    """First and last calendar day of the month containing ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def previous_month_range(start: date) -> DateRange:
    """The full calendar month before the month containing ``start``."""
    last_of_previous = start.replace(day=1) - timedelta(days=1)
    return month_range(last_of_previous)


def preset_range(preset: str, today: Optional[date] = None) -> DateRange:
    """Resolve a dashboard preset into an inclusive ``(from, to)`` pair.

    Unknown presets fall back to the last 30 days.
    """
    today = today or date.today()
    if preset == 'this-week':
        # Weeks start on Sunday
        return today - timedelta(days=(today.weekday() + 1) % 7), today
    if preset == 'this-month':
        return today.replace(day=1), today
    if preset == 'last-month':
        return previous_month_range(today)
    if preset == 'this-quarter':
        quarter_start_month = (today.month - 1) // 3 * 3 + 1
        return date(today.year, quarter_start_month, 1), today
    if preset == 'this-year':
        return date(today.year, 1, 1), today
    if preset == 'last-90':
        return today - timedelta(days=90), today
    return today - timedelta(days=30), today


def analytics_window(key: str, today: Optional[date] = None) -> Optional[DateRange]:
    """Resolve an analytics time range; ``None`` means no filtering."""
    today = today or date.today()
    if key == 'all':
        return None
    if key == 'week':
        return today - timedelta(days=7), today
    if key == 'quarter':
        start = (pd.Timestamp(today) - pd.DateOffset(months=3)).date()
        return start, today
    if key == 'year':
        return date(today.year, 1, 1), today
    return today.replace(day=1), today
