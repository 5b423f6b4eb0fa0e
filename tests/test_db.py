import sqlite3
from datetime import date, datetime

import pytest

from expense_tracker.budget_status import calculate_budget_status
from expense_tracker.db import ExpenseStore, RecordNotFoundError, matches_search
from expense_tracker.models import Budget, Expense


@pytest.fixture
def store(tmp_path):
    store = ExpenseStore(tmp_path / 'expenses.db')
    store.init_db()
    return store


def add_expense(store, user_id='u1', amount=10.0, category='Food', day=date(2024, 1, 10), name='', description=''):
    return store.create_expense(Expense(
        user_id=user_id,
        amount=amount,
        category=category,
        date=day,
        name=name,
        description=description,
    ))


def add_budget(store, user_id='u1', category='Food', amount=200.0, start=date(2024, 1, 1), end=None, period='monthly'):
    return store.create_budget(Budget(
        user_id=user_id,
        category=category,
        amount=amount,
        period=period,
        start_date=start,
        end_date=end,
    ))


def test_create_expense_assigns_id_and_timestamps(store):
    created = add_expense(store, name='Lunch')
    assert created.id
    assert created.created_at == created.updated_at
    fetched = store.get_expense(created.id, 'u1')
    assert fetched.name == 'Lunch'
    assert fetched.amount == 10.0
    assert fetched.date == date(2024, 1, 10)


def test_create_expense_rejects_invalid_values(store):
    with pytest.raises(ValueError):
        add_expense(store, amount=-1.0)
    with pytest.raises(ValueError):
        add_expense(store, category='  ')


def test_datetime_dates_are_stored_as_calendar_dates(store):
    created = add_expense(store, amount=50.0, day=datetime(2024, 1, 31, 12, 0))
    assert created.date == date(2024, 1, 31)
    assert len(store.list_expenses('u1', to_date=date(2024, 1, 31))) == 1
    assert store.get_expense(created.id, 'u1').date == date(2024, 1, 31)

    budget = add_budget(store, start=datetime(2024, 1, 1, 8, 0), end=date(2024, 1, 31))
    assert budget.start_date == date(2024, 1, 1)
    status = calculate_budget_status(budget, [created])
    assert status.total_spent == 50.0

    created.date = datetime(2024, 2, 1, 23, 59)
    updated = store.update_expense(created)
    assert updated.date == date(2024, 2, 1)
    assert store.list_expenses('u1', from_date=date(2024, 2, 1), to_date=date(2024, 2, 1))[0].id == created.id


def test_get_expense_enforces_ownership(store):
    created = add_expense(store)
    with pytest.raises(RecordNotFoundError):
        store.get_expense(created.id, 'someone-else')
    with pytest.raises(RecordNotFoundError):
        store.get_expense('missing')


def test_update_expense_replaces_fields_and_keeps_created_at(store):
    created = add_expense(store, name='Lunch')
    created.amount = 25.0
    created.category = 'Entertainment'
    created.name = 'Cinema'
    updated = store.update_expense(created)
    assert updated.created_at == created.created_at
    fetched = store.get_expense(created.id, 'u1')
    assert (fetched.amount, fetched.category, fetched.name) == (25.0, 'Entertainment', 'Cinema')


def test_update_expense_requires_id(store):
    with pytest.raises(ValueError):
        store.update_expense(Expense(user_id='u1', amount=1.0, category='Food', date=date(2024, 1, 1)))


def test_update_expense_of_other_user_is_not_found(store):
    created = add_expense(store)
    created.user_id = 'intruder'
    with pytest.raises(RecordNotFoundError):
        store.update_expense(created)


def test_delete_expense(store):
    created = add_expense(store)
    assert store.delete_expense(created.id, 'u1') is True
    with pytest.raises(RecordNotFoundError):
        store.get_expense(created.id)


def test_list_expenses_scoped_to_user_and_sorted(store):
    add_expense(store, day=date(2024, 1, 1), amount=5.0)
    add_expense(store, day=date(2024, 1, 3), amount=1.0)
    add_expense(store, user_id='u2', day=date(2024, 1, 2))
    expenses = store.list_expenses('u1')
    assert [e.date for e in expenses] == [date(2024, 1, 3), date(2024, 1, 1)]
    by_amount = store.list_expenses('u1', sort_by='amount', sort_direction='asc')
    assert [e.amount for e in by_amount] == [1.0, 5.0]


def test_list_expenses_without_user_is_empty(store):
    add_expense(store)
    assert store.list_expenses('') == []
    assert store.list_expenses(None) == []


def test_list_expenses_filters(store):
    add_expense(store, category='Food', day=date(2024, 1, 1), description='Groceries')
    add_expense(store, category='Travel', day=date(2024, 1, 15), name='Train')
    add_expense(store, category='Food', day=date(2024, 1, 31), amount=42.5)

    assert len(store.list_expenses('u1', category='Food')) == 2
    window = store.list_expenses('u1', from_date=date(2024, 1, 1), to_date='2024-01-15')
    assert {e.date for e in window} == {date(2024, 1, 1), date(2024, 1, 15)}
    assert [e.category for e in store.list_expenses('u1', search='train')] == ['Travel']
    assert [e.description for e in store.list_expenses('u1', search='GROCER')] == ['Groceries']
    assert [e.amount for e in store.list_expenses('u1', search='42.5')] == [42.5]
    assert len(store.list_expenses('u1', limit=2)) == 2


def test_list_expenses_rejects_unknown_sort_field(store):
    with pytest.raises(ValueError):
        store.list_expenses('u1', sort_by='user_id; DROP TABLE expenses')


def test_list_expenses_degrades_to_empty_on_storage_error(tmp_path):
    store = ExpenseStore(tmp_path / 'never-initialised.db')
    assert store.list_expenses('u1') == []


def test_stored_garbage_amount_reads_back_as_zero(store):
    created = add_expense(store, amount=10.0)
    with store.connect() as conn:
        conn.execute("UPDATE expenses SET amount = 'lots' WHERE id = ?", (created.id,))
        conn.commit()
    assert store.get_expense(created.id).amount == 0.0


def test_expenses_grouped_by_category_and_day(store):
    add_expense(store, category='Food', amount=10.0, day=date(2024, 1, 1))
    add_expense(store, category='Food', amount=5.0, day=date(2024, 1, 2))
    add_expense(store, category='Travel', amount=7.0, day=date(2024, 1, 2))

    by_category = store.expenses_by_category('u1')
    assert by_category['Food'].total == 15.0
    assert by_category['Food'].count == 2
    assert by_category['Travel'].count == 1

    by_day = store.expenses_by_day('u1', from_date=date(2024, 1, 2))
    assert list(by_day) == ['2024-01-02']
    assert by_day['2024-01-02'].total == 12.0


def test_blank_category_grouped_as_other(store):
    created = add_expense(store)
    with store.connect() as conn:
        conn.execute("UPDATE expenses SET category = '' WHERE id = ?", (created.id,))
        conn.commit()
    assert list(store.expenses_by_category('u1')) == ['Other']


def test_budget_crud(store):
    budget = add_budget(store, end=date(2024, 1, 31))
    fetched = store.get_budget(budget.id, 'u1')
    assert fetched.end_date == date(2024, 1, 31)

    fetched.amount = 300.0
    fetched.end_date = None
    store.update_budget(fetched)
    again = store.get_budget(budget.id, 'u1')
    assert again.amount == 300.0
    assert again.end_date is None
    assert again.created_at == budget.created_at

    assert store.delete_budget(budget.id, 'u1') is True
    with pytest.raises(RecordNotFoundError):
        store.get_budget(budget.id, 'u1')


@pytest.mark.parametrize('overrides', [
    {'amount': 0.0},
    {'period': 'daily'},
    {'start': date(2024, 2, 1), 'end': date(2024, 1, 1)},
])
def test_create_budget_rejects_invalid_values(store, overrides):
    with pytest.raises(ValueError):
        add_budget(store, **overrides)


def test_list_budgets_newest_start_first(store):
    add_budget(store, start=date(2024, 1, 1))
    add_budget(store, start=date(2024, 3, 1))
    add_budget(store, user_id='u2', start=date(2024, 2, 1))
    assert [b.start_date for b in store.list_budgets('u1')] == [date(2024, 3, 1), date(2024, 1, 1)]
    assert store.list_budgets('') == []


def test_current_month_budgets_overlap_rules(store):
    add_budget(store, category='Food', start=date(2024, 1, 1))
    add_budget(store, category='Travel', start=date(2024, 2, 10), end=date(2024, 2, 20))
    add_budget(store, category='Housing', start=date(2024, 1, 1), end=date(2024, 1, 31))
    add_budget(store, category='Gifts', start=date(2024, 3, 1))
    add_budget(store, category='Education', start=date(2024, 1, 1), period='yearly')

    current = store.current_month_budgets('u1', today=date(2024, 2, 15))
    assert sorted(b.category for b in current) == ['Food', 'Travel']


def test_list_budgets_raises_storage_errors(tmp_path):
    store = ExpenseStore(tmp_path / 'missing-tables.db')
    with pytest.raises(sqlite3.Error):
        store.list_budgets('u1')


def test_matches_search_uses_amount_text():
    expense = Expense(user_id='u1', amount=12.0, category='Food', date=date(2024, 1, 1), name='Tea')
    assert matches_search(expense, '12')
    assert matches_search(expense, 'food')
    assert not matches_search(expense, 'coffee')
