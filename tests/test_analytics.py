from datetime import date

import pandas as pd
import pytest

from expense_tracker.analytics import ExpenseAnalytics, expenses_to_frame, spending_summary
from expense_tracker.models import Expense


def sample_expenses():
    return [
        Expense(user_id='u1', amount=100.0, category='Housing', date=date(2024, 1, 1), name='Rent'),
        Expense(user_id='u1', amount=30.0, category='Food', date=date(2024, 1, 2), description='Groceries'),
        Expense(user_id='u1', amount=20.0, category='Food', date=date(2024, 1, 2), name='Lunch'),
        Expense(user_id='u1', amount=60.0, category='', date=date(2024, 1, 9), name='Misc'),
    ]


def test_frame_uses_display_columns():
    frame = expenses_to_frame(sample_expenses())
    assert list(frame.columns) == ['id', 'Date', 'Name', 'Description', 'Category', 'Amount']
    assert frame.loc[1, 'Name'] == 'Groceries'


def test_empty_frame_is_analysable():
    analytics = ExpenseAnalytics(expenses_to_frame([]))
    assert analytics.total_spent() == 0.0
    assert analytics.expense_count() == 0
    assert analytics.spending_by_category().empty
    assert analytics.top_categories().empty
    assert analytics.daily_totals().empty
    assert analytics.recent_expenses().empty


def test_spending_by_category_sorted_with_blank_as_other():
    totals = ExpenseAnalytics(expenses_to_frame(sample_expenses())).spending_by_category()
    assert list(totals.index) == ['Housing', 'Other', 'Food']
    assert totals['Food'] == 50.0
    assert totals['Other'] == 60.0


def test_top_categories_percentages():
    top = ExpenseAnalytics(expenses_to_frame(sample_expenses())).top_categories(limit=2)
    assert list(top['Category']) == ['Housing', 'Other']
    assert top['Percentage'].tolist() == pytest.approx([100 / 210 * 100, 60 / 210 * 100])


def test_daily_totals_with_moving_average():
    daily = ExpenseAnalytics(expenses_to_frame(sample_expenses())).daily_totals()
    assert list(daily.index) == [pd.Timestamp('2024-01-01'), pd.Timestamp('2024-01-02'), pd.Timestamp('2024-01-09')]
    assert daily['Amount'].tolist() == [100.0, 50.0, 60.0]
    assert daily['Average'].tolist() == pytest.approx([100.0, 75.0, 70.0])


def test_filter_window_is_inclusive():
    analytics = ExpenseAnalytics(expenses_to_frame(sample_expenses()))
    window = analytics.filter_window(date(2024, 1, 2), date(2024, 1, 9))
    assert window.expense_count() == 3
    assert window.total_spent() == 110.0
    assert analytics.filter_window(None, date(2024, 1, 1)).total_spent() == 100.0


def test_recent_expenses_newest_first():
    recent = ExpenseAnalytics(expenses_to_frame(sample_expenses())).recent_expenses(limit=2)
    assert recent['Name'].tolist()[0] == 'Misc'
    assert len(recent) == 2


def test_spending_summary_comparison():
    summary = spending_summary(150.0, previous_period_expense=100.0)
    assert summary['has_comparison'] is True
    assert summary['change_amount'] == 50.0
    assert summary['change_percentage'] == 50
    assert summary['is_increase'] is True
    assert summary['has_budget'] is False


def test_spending_summary_without_previous_spend():
    summary = spending_summary(80.0, previous_period_expense=0.0)
    assert summary['has_comparison'] is False
    assert summary['change_percentage'] == 0


@pytest.mark.parametrize('total, color, over, gap', [
    (100.0, 'green', False, 100.0),
    (170.0, 'yellow', False, 30.0),
    (200.0, 'red', False, 0.0),
    (260.0, 'red', True, 60.0),
])
def test_spending_summary_budget_bands(total, color, over, gap):
    summary = spending_summary(total, total_budget=200.0)
    assert summary['status_color'] == color
    assert summary['over_budget'] is over
    assert summary['budget_gap'] == gap
    assert summary['utilization_percentage'] <= 100
