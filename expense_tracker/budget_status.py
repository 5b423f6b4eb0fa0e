"""Budget status calculation.

A budget's status is derived on every read from the current expense
history; nothing computed here is persisted.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import OVER_THRESHOLD, WARNING_THRESHOLD
from .models import (
    STATUS_OVER,
    STATUS_UNDER,
    STATUS_WARNING,
    Budget,
    BudgetStatus,
    Expense,
)


def classify_utilization(percentage_spent: float) -> str:
    """Map a utilization percentage onto under/warning/over."""
    if percentage_spent >= OVER_THRESHOLD:
        return STATUS_OVER
    if percentage_spent >= WARNING_THRESHOLD:
        return STATUS_WARNING
    return STATUS_UNDER


def budget_window(budget: Budget, as_of: Optional[date] = None) -> Tuple[date, date]:
    """Return the inclusive date window a budget covers.

    Budgets without an end date run up to ``as_of`` (today by default), so
    an open budget keeps accumulating spend across period boundaries.
    """
    end = budget.end_date or as_of or date.today()
    return budget.start_date, end


def is_attributed(expense: Expense, budget: Budget, window: Tuple[date, date]) -> bool:
    """True when the expense counts toward the budget.

    Categories must match exactly; no case folding or trimming.
    """
    start, end = window
    return expense.category == budget.category and start <= expense.date <= end


def calculate_budget_status(
    budget: Budget,
    expenses: Iterable[Expense],
    as_of: Optional[date] = None,
) -> BudgetStatus:
    """Compute spend, remaining amount, utilization and status for a budget.

    Args:
        budget: Budget with a positive amount.
        expenses: Unfiltered expenses; only attributed ones are summed.
        as_of: Upper bound used when the budget has no end date.

    Returns:
        BudgetStatus. ``remaining`` may be negative and
        ``percentage_spent`` may exceed 100.

    Example:
        >>> status = calculate_budget_status(budget, expenses)
        >>> status.status
        'warning'
    """
    window = budget_window(budget, as_of)
    total_spent = sum(
        (expense.amount for expense in expenses if is_attributed(expense, budget, window)),
        0.0,
    )
    percentage_spent = total_spent * 100 / budget.amount
    return BudgetStatus(
        budget=budget,
        total_spent=total_spent,
        remaining=budget.amount - total_spent,
        percentage_spent=percentage_spent,
        status=classify_utilization(percentage_spent),
    )


def calculate_budget_statuses(
    budgets: Sequence[Budget],
    expenses: Iterable[Expense],
    as_of: Optional[date] = None,
) -> List[BudgetStatus]:
    """Compute a status for each budget against the same expense list."""
    expense_list = list(expenses)
    return [calculate_budget_status(budget, expense_list, as_of) for budget in budgets]
