"""Configuration management for the expense tracker.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in expense_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("EXPENSE_TRACKER_DATA_DIR", _PROJECT_ROOT / "data"))
PREFERENCES_DIR = Path(
    os.getenv("EXPENSE_TRACKER_PREFERENCES_DIR", DATA_DIR / "preferences")
)

# Database
DB_PATH = Path(
    os.getenv("EXPENSE_TRACKER_DB_PATH", DATA_DIR / "expenses.db")
).resolve()

LOG_LEVEL = os.getenv("EXPENSE_TRACKER_LOG_LEVEL", "INFO").upper()

CATEGORIES = [
    "Food",
    "Transportation",
    "Housing",
    "Entertainment",
    "Utilities",
    "Healthcare",
    "Education",
    "Shopping",
    "Personal",
    "Travel",
    "Gifts",
    "Other",
]
FALLBACK_CATEGORY = "Other"

BUDGET_PERIODS = ["weekly", "monthly", "yearly"]

# Utilization thresholds, in percent of the budget amount
WARNING_THRESHOLD = 80.0
OVER_THRESHOLD = 100.0

DEFAULT_CURRENCY = "USD"
RECENT_EXPENSES_LIMIT = 5
TOP_CATEGORIES_LIMIT = 5


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, PREFERENCES_DIR, DB_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the Streamlit process."""
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
