"""Typed records for expenses, budgets and derived budget status.

Records are plain dataclasses.  Storage assigns ``id`` and the
``created_at``/``updated_at`` timestamps; everything else comes from the
user through the forms.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from .config import BUDGET_PERIODS

STATUS_UNDER = 'under'
STATUS_WARNING = 'warning'
STATUS_OVER = 'over'


@dataclass
class Expense:
    user_id: str
    amount: float
    category: str
    date: date
    name: str = ''
    description: str = ''
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def label(self) -> str:
        """Display name, falling back to the description."""
        return self.name or self.description or ''


@dataclass
class Budget:
    user_id: str
    category: str
    amount: float
    period: str
    start_date: date
    end_date: Optional[date] = None
    notes: str = ''
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class BudgetStatus:
    budget: Budget
    total_spent: float
    remaining: float
    percentage_spent: float
    status: str


@dataclass
class CategoryTotal:
    """Running total for a group of expenses (by category or by day)."""
    total: float = 0.0
    count: int = 0
    expenses: List[Expense] = field(default_factory=list)

    def add(self, expense: Expense) -> None:
        self.total += expense.amount
        self.count += 1
        self.expenses.append(expense)


def validate_expense(expense: Expense) -> None:
    """Check expense invariants before it is written.

    Raises:
        ValueError: If the amount is negative, the category is blank,
            the date is not a calendar date or the owner is missing.
    """
    if not expense.user_id:
        raise ValueError("Expense must belong to a user")
    if expense.amount < 0:
        raise ValueError("Expense amount cannot be negative")
    if not expense.category or not expense.category.strip():
        raise ValueError("Expense category cannot be empty")
    if not isinstance(expense.date, date):
        raise ValueError("Expense date must be a valid calendar date")


def validate_budget(budget: Budget) -> None:
    """Check budget invariants before it is written.

    Raises:
        ValueError: If the amount is not positive, the period is unknown
            or the end date precedes the start date.
    """
    if not budget.user_id:
        raise ValueError("Budget must belong to a user")
    if not budget.category or not budget.category.strip():
        raise ValueError("Budget category cannot be empty")
    if budget.amount <= 0:
        raise ValueError("Budget amount must be greater than zero")
    if budget.period not in BUDGET_PERIODS:
        raise ValueError(f"Unknown budget period: {budget.period!r}")
    if not isinstance(budget.start_date, date):
        raise ValueError("Budget start date must be a valid calendar date")
    if budget.end_date is not None and budget.end_date < budget.start_date:
        raise ValueError("Budget end date cannot be before its start date")
