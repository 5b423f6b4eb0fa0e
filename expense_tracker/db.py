"""SQLite-backed document store for expenses and budgets.

Every record is owned by a single user.  Identifiers and timestamps are
assigned here, never by callers.  Rows read back from SQLite go through
:mod:`normalization` before they reach the rest of the application.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import pandas as pd

from .config import DB_PATH, FALLBACK_CATEGORY, ensure_data_directories
from .models import Budget, CategoryTotal, Expense, validate_budget, validate_expense
from .normalization import budget_from_record, normalize_expenses, to_date, to_iso_date
from .date_ranges import month_range

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    amount REAL,
    category TEXT,
    date TEXT,
    name TEXT,
    description TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_expenses_user_date ON expenses (user_id, date);
CREATE INDEX IF NOT EXISTS ix_expenses_user_category ON expenses (user_id, category);

CREATE TABLE IF NOT EXISTS budgets (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    category TEXT,
    amount REAL,
    period TEXT,
    start_date TEXT,
    end_date TEXT,
    notes TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_budgets_user_start ON budgets (user_id, start_date);
"""

EXPENSE_COLUMNS = ['id', 'user_id', 'amount', 'category', 'date', 'name', 'description', 'created_at', 'updated_at']
BUDGET_COLUMNS = ['id', 'user_id', 'category', 'amount', 'period', 'start_date', 'end_date', 'notes', 'created_at', 'updated_at']
SORTABLE_FIELDS = {'date', 'amount', 'category', 'name', 'created_at'}


class RecordNotFoundError(LookupError):
    """Raised when an expense or budget does not exist for the caller."""


def _server_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def matches_search(expense: Expense, term: str) -> bool:
    """Case-insensitive match over description, name, category and amount."""
    needle = term.lower()
    return (
        needle in expense.description.lower()
        or needle in expense.name.lower()
        or needle in expense.category.lower()
        or needle in f"{expense.amount:g}"
    )


class ExpenseStore:
    """Expense and budget persistence for one SQLite database file."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the store.

        Args:
            db_path: Optional database file. Defaults to DB_PATH from config.
        """
        self.db_path = Path(db_path) if db_path else DB_PATH

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        if self.db_path == DB_PATH:
            ensure_data_directories()
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        logger.info("Expense store ready at %s", self.db_path)

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def create_expense(self, expense: Expense) -> Expense:
        """Insert a new expense and return it with id and timestamps set.

        Raises:
            ValueError: If the expense violates its invariants.
        """
        expense = replace(expense, date=to_date(expense.date))
        validate_expense(expense)
        now = _server_timestamp()
        record = Expense(
            id=_new_id(),
            user_id=expense.user_id,
            amount=float(expense.amount),
            category=expense.category,
            date=expense.date,
            name=expense.name,
            description=expense.description,
            created_at=now,
            updated_at=now,
        )
        try:
            with self.connect() as conn:
                conn.execute(
                    "INSERT INTO expenses (id, user_id, amount, category, date, name, description, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.id, record.user_id, record.amount, record.category,
                        record.date.isoformat(), record.name, record.description,
                        record.created_at, record.updated_at,
                    ),
                )
                conn.commit()
        except sqlite3.Error:
            logger.exception("Error adding expense for user %s", expense.user_id)
            raise
        logger.debug("Created expense %s for user %s", record.id, record.user_id)
        return record

    def _fetch_row(self, conn: sqlite3.Connection, sql: str, params: tuple) -> Optional[sqlite3.Row]:
        cursor = conn.cursor()
        cursor.row_factory = sqlite3.Row
        return cursor.execute(sql, params).fetchone()

    def get_expense(self, expense_id: str, user_id: Optional[str] = None) -> Expense:
        """Fetch one expense.

        Raises:
            RecordNotFoundError: If no such expense exists for ``user_id``.
        """
        try:
            with self.connect() as conn:
                row = self._fetch_row(
                    conn,
                    f"SELECT {', '.join(EXPENSE_COLUMNS)} FROM expenses WHERE id = ?",
                    (expense_id,),
                )
        except sqlite3.Error:
            logger.exception("Error getting expense %s", expense_id)
            raise
        if row is None or (user_id is not None and row['user_id'] != user_id):
            raise RecordNotFoundError(f"Expense with ID {expense_id} not found")
        expenses = normalize_expenses([dict(row)])
        if not expenses:
            raise RecordNotFoundError(f"Expense with ID {expense_id} has no valid date")
        return expenses[0]

    def update_expense(self, expense: Expense) -> Expense:
        """Replace every user-editable field of an existing expense.

        Raises:
            ValueError: If the id is missing or the new values are invalid.
            RecordNotFoundError: If the expense does not exist for its user.
        """
        if not expense.id:
            raise ValueError("Expense ID is required for updates")
        expense = replace(expense, date=to_date(expense.date))
        validate_expense(expense)
        existing = self.get_expense(expense.id, expense.user_id)
        updated = Expense(
            id=existing.id,
            user_id=existing.user_id,
            amount=float(expense.amount),
            category=expense.category,
            date=expense.date,
            name=expense.name,
            description=expense.description,
            created_at=existing.created_at,
            updated_at=_server_timestamp(),
        )
        try:
            with self.connect() as conn:
                conn.execute(
                    "UPDATE expenses SET amount = ?, category = ?, date = ?, name = ?, description = ?, updated_at = ? "
                    "WHERE id = ?",
                    (
                        updated.amount, updated.category, updated.date.isoformat(),
                        updated.name, updated.description, updated.updated_at, updated.id,
                    ),
                )
                conn.commit()
        except sqlite3.Error:
            logger.exception("Error updating expense %s", expense.id)
            raise
        return updated

    def delete_expense(self, expense_id: str, user_id: Optional[str] = None) -> bool:
        """Delete an expense.

        Raises:
            RecordNotFoundError: If the expense does not exist for ``user_id``.
        """
        self.get_expense(expense_id, user_id)
        try:
            with self.connect() as conn:
                conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
                conn.commit()
        except sqlite3.Error:
            logger.exception("Error deleting expense %s", expense_id)
            raise
        return True

    def list_expenses(
        self,
        user_id: Optional[str],
        limit: Optional[int] = None,
        sort_by: str = 'date',
        sort_direction: str = 'desc',
        category: Optional[str] = None,
        from_date: Any = None,
        to_date: Any = None,
        search: Optional[str] = None,
    ) -> List[Expense]:
        """List a user's expenses with optional filters.

        Storage failures are logged and yield an empty list so that the
        dashboard can fall back to its empty state.

        Raises:
            ValueError: If ``sort_by`` is not a sortable field.
        """
        if not user_id:
            logger.debug("No user provided to list_expenses, returning empty list")
            return []
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort expenses by {sort_by!r}")

        where = ["user_id = ?"]
        params: List[Any] = [user_id]
        if category:
            where.append("category = ?")
            params.append(category)
        start = to_iso_date(from_date)
        if start:
            where.append("date >= ?")
            params.append(start)
        end = to_iso_date(to_date)
        if end:
            where.append("date <= ?")
            params.append(end)

        direction = 'ASC' if sort_direction == 'asc' else 'DESC'
        sql = (
            f"SELECT {', '.join(EXPENSE_COLUMNS)} FROM expenses WHERE {' AND '.join(where)} "
            f"ORDER BY {sort_by} {direction}, created_at {direction}"
        )
        if limit:
            sql += " LIMIT ?"
            params.append(int(limit))

        try:
            with self.connect() as conn:
                frame = pd.read_sql_query(sql, conn, params=params)
        except (sqlite3.Error, pd.errors.DatabaseError):
            logger.exception("Error getting expenses for user %s", user_id)
            return []

        expenses = normalize_expenses(frame.to_dict('records'))
        if search:
            expenses = [expense for expense in expenses if matches_search(expense, search)]
        logger.debug("Returning %d expenses for user %s", len(expenses), user_id)
        return expenses

    def expenses_by_category(self, user_id: str, from_date: Any = None, to_date: Any = None) -> Dict[str, CategoryTotal]:
        grouped: Dict[str, CategoryTotal] = {}
        for expense in self.list_expenses(user_id, from_date=from_date, to_date=to_date):
            key = expense.category or FALLBACK_CATEGORY
            grouped.setdefault(key, CategoryTotal()).add(expense)
        return grouped

    def expenses_by_day(self, user_id: str, from_date: Any = None, to_date: Any = None) -> Dict[str, CategoryTotal]:
        grouped: Dict[str, CategoryTotal] = {}
        for expense in self.list_expenses(user_id, from_date=from_date, to_date=to_date):
            grouped.setdefault(expense.date.isoformat(), CategoryTotal()).add(expense)
        return grouped

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------

    def _budget_params(self, budget: Budget) -> tuple:
        return (
            budget.category,
            float(budget.amount),
            budget.period,
            budget.start_date.isoformat(),
            budget.end_date.isoformat() if budget.end_date else None,
            budget.notes,
        )

    def create_budget(self, budget: Budget) -> Budget:
        """Insert a new budget and return it with id and timestamps set.

        Raises:
            ValueError: If the budget violates its invariants.
        """
        budget = replace(budget, start_date=to_date(budget.start_date), end_date=to_date(budget.end_date))
        validate_budget(budget)
        now = _server_timestamp()
        record = Budget(
            id=_new_id(),
            user_id=budget.user_id,
            category=budget.category,
            amount=float(budget.amount),
            period=budget.period,
            start_date=budget.start_date,
            end_date=budget.end_date,
            notes=budget.notes,
            created_at=now,
            updated_at=now,
        )
        try:
            with self.connect() as conn:
                conn.execute(
                    "INSERT INTO budgets (id, user_id, category, amount, period, start_date, end_date, notes, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (record.id, record.user_id, *self._budget_params(record), record.created_at, record.updated_at),
                )
                conn.commit()
        except sqlite3.Error:
            logger.exception("Error creating budget for user %s", budget.user_id)
            raise
        return record

    def get_budget(self, budget_id: str, user_id: Optional[str] = None) -> Budget:
        """Fetch one budget.

        Raises:
            RecordNotFoundError: If no such budget exists for ``user_id``.
        """
        try:
            with self.connect() as conn:
                row = self._fetch_row(
                    conn,
                    f"SELECT {', '.join(BUDGET_COLUMNS)} FROM budgets WHERE id = ?",
                    (budget_id,),
                )
        except sqlite3.Error:
            logger.exception("Error fetching budget %s", budget_id)
            raise
        if row is None or (user_id is not None and row['user_id'] != user_id):
            raise RecordNotFoundError(f"Budget with ID {budget_id} not found")
        return budget_from_record(dict(row))

    def update_budget(self, budget: Budget) -> Budget:
        """Replace every user-editable field of an existing budget.

        Raises:
            ValueError: If the id is missing or the new values are invalid.
            RecordNotFoundError: If the budget does not exist for its user.
        """
        if not budget.id:
            raise ValueError("Budget ID is required for updates")
        budget = replace(budget, start_date=to_date(budget.start_date), end_date=to_date(budget.end_date))
        validate_budget(budget)
        existing = self.get_budget(budget.id, budget.user_id)
        updated = Budget(
            id=existing.id,
            user_id=existing.user_id,
            category=budget.category,
            amount=float(budget.amount),
            period=budget.period,
            start_date=budget.start_date,
            end_date=budget.end_date,
            notes=budget.notes,
            created_at=existing.created_at,
            updated_at=_server_timestamp(),
        )
        try:
            with self.connect() as conn:
                conn.execute(
                    "UPDATE budgets SET category = ?, amount = ?, period = ?, start_date = ?, end_date = ?, notes = ?, "
                    "updated_at = ? WHERE id = ?",
                    (*self._budget_params(updated), updated.updated_at, updated.id),
                )
                conn.commit()
        except sqlite3.Error:
            logger.exception("Error updating budget %s", budget.id)
            raise
        return updated

    def delete_budget(self, budget_id: str, user_id: Optional[str] = None) -> bool:
        self.get_budget(budget_id, user_id)
        try:
            with self.connect() as conn:
                conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
                conn.commit()
        except sqlite3.Error:
            logger.exception("Error deleting budget %s", budget_id)
            raise
        return True

    def list_budgets(self, user_id: Optional[str]) -> List[Budget]:
        """All budgets for a user, newest start date first."""
        if not user_id:
            return []
        try:
            with self.connect() as conn:
                cursor = conn.cursor()
                cursor.row_factory = sqlite3.Row
                rows = cursor.execute(
                    f"SELECT {', '.join(BUDGET_COLUMNS)} FROM budgets WHERE user_id = ? "
                    "ORDER BY start_date DESC, created_at DESC",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error:
            logger.exception("Error fetching budgets for user %s", user_id)
            raise
        logger.info("Fetched %d budgets for user %s", len(rows), user_id)
        return [budget_from_record(dict(row)) for row in rows]

    def current_month_budgets(self, user_id: Optional[str], today: Optional[date] = None) -> List[Budget]:
        """Monthly budgets that overlap the current calendar month."""
        first_day, last_day = month_range(today or date.today())
        return [
            budget
            for budget in self.list_budgets(user_id)
            if budget.period == 'monthly'
            and budget.start_date <= last_day
            and (budget.end_date is None or budget.end_date >= first_day)
        ]
