from datetime import date, datetime
from decimal import Decimal

import numpy as np
import pandas as pd
import pytest

from expense_tracker.normalization import (
    budget_from_record,
    coerce_amount,
    expense_from_record,
    normalize_expenses,
    to_date,
    to_iso_date,
)


@pytest.mark.parametrize('raw, expected', [
    (12, 12.0),
    (3.5, 3.5),
    ('42.10', 42.1),
    ('$1,234.50', 1234.5),
    ('(15.00)', 0.0),
    ('n/a', 0.0),
    ('', 0.0),
    (None, 0.0),
    (float('nan'), 0.0),
    (np.float64(7.25), 7.25),
    (np.int64(5), 5.0),
    (Decimal('12.50'), 12.5),
    (Decimal('NaN'), 0.0),
    (True, 0.0),
    ({'amount': 5}, 0.0),
])
def test_coerce_amount(raw, expected):
    assert coerce_amount(raw) == expected


def test_to_date_accepts_common_shapes():
    assert to_date('2024-01-15') == date(2024, 1, 15)
    assert to_date(datetime(2024, 1, 15, 9, 30)) == date(2024, 1, 15)
    assert to_date(pd.Timestamp('2024-01-15')) == date(2024, 1, 15)
    assert to_date(date(2024, 1, 15)) == date(2024, 1, 15)


def test_to_date_rejects_garbage():
    assert to_date('not a date') is None
    assert to_date('') is None
    assert to_date(None) is None
    assert to_iso_date('garbage') is None
    assert to_iso_date('2024-02-29') == '2024-02-29'


def test_expense_from_record_coerces_amount_and_keeps_category():
    expense = expense_from_record({
        'id': 'abc',
        'user_id': 'u1',
        'amount': 'oops',
        'category': ' Food ',
        'date': '2024-01-05',
        'name': None,
    })
    assert expense.amount == 0.0
    assert expense.category == ' Food '
    assert expense.name == ''
    assert expense.date == date(2024, 1, 5)


@pytest.mark.parametrize('raw', [-25.0, '-25', Decimal('-3.10')])
def test_expense_from_record_never_negative(raw):
    expense = expense_from_record({'user_id': 'u1', 'amount': raw, 'category': 'Food', 'date': '2024-01-05'})
    assert expense.amount == 0.0


def test_normalize_expenses_drops_undated_rows():
    records = [
        {'user_id': 'u1', 'amount': 5, 'category': 'Food', 'date': '2024-01-01'},
        {'user_id': 'u1', 'amount': 5, 'category': 'Food', 'date': None},
        {'user_id': 'u1', 'amount': 5, 'category': 'Food', 'date': 'yesterday-ish'},
    ]
    expenses = normalize_expenses(records)
    assert len(expenses) == 1


def test_budget_from_record_defaults():
    budget = budget_from_record({
        'user_id': 'u1',
        'category': 'Food',
        'amount': '200',
        'start_date': '2024-01-01',
    })
    assert budget.amount == 200.0
    assert budget.period == 'monthly'
    assert budget.end_date is None
    assert budget.notes == ''


def test_budget_from_record_requires_start_date():
    with pytest.raises(ValueError):
        budget_from_record({'user_id': 'u1', 'category': 'Food', 'amount': 10, 'start_date': 'soon'})
