"""Main entry point for the Streamlit multi-page app.

This file enables Streamlit's automatic page discovery.
Pages in the pages/ directory will automatically appear in the sidebar.
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from expense_tracker.shared_sidebar import render_shared_sidebar
from expense_tracker.ui import ExpenseTrackerUI


def main() -> None:
    """Main entry point for the expense tracker."""
    ui = ExpenseTrackerUI()
    ui.setup_page_config("Expense Tracker", "💰")

    sidebar = render_shared_sidebar()
    context = sidebar['context']
    ui.apply_dark_mode(bool(context.preferences.get('dark_mode')))
    _render_welcome_screen(context.signed_in)


def _render_welcome_screen(signed_in: bool) -> None:
    """Render welcome screen."""
    st.markdown("""
    # Welcome to Your Expense Tracker! 💰

    This dashboard helps you:
    - 💳 **Record expenses** with a category, date and description
    - 📋 **Set budgets** per category and watch their status live
    - 📈 **Analyze spending patterns** over time
    - ⬇️ **Export** your expenses as CSV

    ## Getting Started

    1. **Enter your email** in the sidebar
    2. **Use the pages** in the sidebar to navigate different sections:
       - 📊 **Dashboard**: Spending summary, budget goals and charts
       - 💳 **Expenses**: Add, edit, search and export expenses
       - 📋 **Budgets**: Create budgets and track their status
       - 📈 **Analytics**: Category and daily spending trends
       - ⚙️ **Settings**: Profile, currency and notifications
    """)
    if not signed_in:
        st.info("👈 Enter your email in the sidebar to get started.")


if __name__ == "__main__":
    main()
