"""Expense Tracker package.

Personal expense tracking with per-category budgets whose status is
recomputed from the expense history on every read.
"""

__version__ = "0.1.0"
