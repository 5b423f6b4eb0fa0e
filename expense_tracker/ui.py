"""Expense tracker UI components and layout.

This module contains the Streamlit building blocks shared by the pages:
summary metrics, budget goals, top categories, recent transactions and the
expense and budget forms.  Components receive everything they render as
arguments; nothing here reads from storage directly.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import streamlit as st
from streamlit.errors import StreamlitAPIException

from .config import BUDGET_PERIODS, CATEGORIES, DEFAULT_CURRENCY
from .export import expenses_to_csv, export_filename
from .formatting import escape_dollar_for_markdown, format_currency, format_date
from .models import STATUS_OVER, STATUS_WARNING, Budget, BudgetStatus, Expense
from .normalization import budget_from_record, expense_from_record

STATUS_BADGES = {
    STATUS_OVER: '🔴 Over budget',
    STATUS_WARNING: '🟡 Warning',
}
UNDER_BADGE = '🟢 On track'


class ExpenseTrackerUI:
    """UI components for expense tracking pages."""

    def __init__(self, currency: str = DEFAULT_CURRENCY):
        self.currency = currency

    def money(self, amount: float) -> str:
        return format_currency(amount, self.currency)

    def setup_page_config(self, page_title: str = "Expense Tracker", page_icon: str = "💰") -> None:
        """Configure Streamlit page settings."""
        try:
            st.set_page_config(
                page_title=page_title,
                page_icon=page_icon,
                layout="wide",
                initial_sidebar_state="expanded",
            )
        except StreamlitAPIException:
            # Already configured for this run
            pass

    def render_header(self, title: str, subtitle: str = "") -> None:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.title(title)
            if subtitle:
                st.markdown(subtitle)
        with col2:
            st.metric(label="Today", value=format_date(date.today()))

    def render_spending_summary(self, total: float, summary: Dict[str, Any], expense_count: int, total_budget: float) -> None:
        """Render the headline spend, comparison and budget metrics."""
        st.subheader("📊 Spending Summary")
        col1, col2, col3 = st.columns(3)

        with col1:
            delta = None
            if summary['has_comparison']:
                delta = f"{summary['change_percentage']:+d}% vs last month"
            st.metric(
                label="💸 Total Spent",
                value=self.money(total),
                delta=delta,
                delta_color="inverse",
                help="Total expenses for the selected period",
            )

        with col2:
            st.metric(label="🧾 Expenses", value=f"{expense_count}")

        with col3:
            if summary['has_budget']:
                gap_label = "over budget" if summary['over_budget'] else "remaining"
                st.metric(
                    label="📋 Budget Used",
                    value=f"{summary['utilization_percentage']}%",
                    delta=f"{self.money(summary['budget_gap'])} {gap_label}",
                    delta_color="inverse" if summary['over_budget'] else "normal",
                    help=f"Against {self.money(total_budget)} of monthly budgets",
                )
                st.progress(summary['utilization_percentage'] / 100)
            else:
                st.metric(label="📋 Budget Used", value="n/a", help="No budgets for this month")

    def render_budget_goals(self, statuses: Sequence[BudgetStatus]) -> None:
        """Render one progress row per budget status."""
        st.subheader("🎯 Budget Goals")
        if not statuses:
            st.info("No budgets for this month. Create one on the Budgets page.")
            return
        for status in statuses:
            budget = status.budget
            col1, col2 = st.columns([3, 1])
            with col1:
                st.markdown(f"**{budget.category}** · {budget.period}")
                st.progress(min(status.percentage_spent, 100.0) / 100)
            with col2:
                st.markdown(STATUS_BADGES.get(status.status, UNDER_BADGE))
                st.caption(
                    escape_dollar_for_markdown(
                        f"{self.money(status.total_spent)} of {self.money(budget.amount)}"
                    )
                )

    def render_top_categories(self, top: pd.DataFrame) -> None:
        st.subheader("🏷️ Top Categories")
        if top.empty:
            st.info("No spending in this period.")
            return
        for row in top.itertuples(index=False):
            st.markdown(escape_dollar_for_markdown(f"• **{row.Category}**: {self.money(row.Amount)}"))
            st.progress(min(float(row.Percentage), 100.0) / 100)

    def render_recent_transactions(self, recent: pd.DataFrame) -> None:
        st.subheader("🕒 Recent Transactions")
        if recent.empty:
            st.info("No expenses recorded yet.")
            return
        display = pd.DataFrame({
            'Date': recent['Date'].map(format_date),
            'Name': recent['Name'],
            'Category': recent['Category'],
            'Amount': recent['Amount'].map(self.money),
        })
        st.dataframe(display, use_container_width=True, hide_index=True)

    def render_expense_table(self, expenses: Sequence[Expense]) -> None:
        if not expenses:
            st.info("No expenses match the current filters.")
            return
        display = pd.DataFrame([
            {
                'Date': format_date(expense.date),
                'Name': expense.label,
                'Category': expense.category,
                'Amount': self.money(expense.amount),
                'Description': expense.description,
            }
            for expense in expenses
        ])
        st.dataframe(display, use_container_width=True, hide_index=True)

    def render_export_button(self, expenses: Sequence[Expense]) -> None:
        st.download_button(
            "⬇️ Export CSV",
            data=expenses_to_csv(expenses),
            file_name=export_filename(),
            mime="text/csv",
            disabled=not expenses,
        )

    def render_expense_form(self, user_id: str, existing: Optional[Expense] = None, key: str = "expense_form") -> Optional[Expense]:
        """Render the add/edit expense form.

        Returns:
            The submitted expense (carrying the existing id when editing),
            or None when the form was not submitted.
        """
        categories = list(CATEGORIES)
        if existing is not None and existing.category not in categories:
            categories.append(existing.category)

        with st.form(key, clear_on_submit=existing is None):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Name", value=existing.name if existing else "")
                amount = st.number_input(
                    "Amount",
                    min_value=0.0,
                    step=0.01,
                    value=max(float(existing.amount), 0.0) if existing else 0.0,
                )
                category = st.selectbox(
                    "Category",
                    options=categories,
                    index=categories.index(existing.category) if existing else 0,
                )
            with col2:
                expense_date = st.date_input("Date", value=existing.date if existing else date.today())
                description = st.text_area("Description", value=existing.description if existing else "")

            submitted = st.form_submit_button("Save Expense" if existing else "Add Expense")

        if not submitted:
            return None
        return expense_from_record({
            'id': existing.id if existing else None,
            'user_id': user_id,
            'amount': amount,
            'category': category,
            'date': expense_date,
            'name': name,
            'description': description,
        })

    def render_budget_form(self, user_id: str, existing: Optional[Budget] = None, key: str = "budget_form") -> Optional[Budget]:
        """Render the add/edit budget form; None until submitted."""
        categories = list(CATEGORIES)
        if existing is not None and existing.category not in categories:
            categories.append(existing.category)

        with st.form(key, clear_on_submit=existing is None):
            col1, col2 = st.columns(2)
            with col1:
                category = st.selectbox(
                    "Category",
                    options=categories,
                    index=categories.index(existing.category) if existing else 0,
                )
                amount = st.number_input(
                    "Budget Amount",
                    min_value=0.0,
                    step=10.0,
                    value=max(float(existing.amount), 0.0) if existing else 0.0,
                )
                period = st.selectbox(
                    "Period",
                    options=BUDGET_PERIODS,
                    index=BUDGET_PERIODS.index(existing.period) if existing and existing.period in BUDGET_PERIODS else 1,
                )
            with col2:
                start_date = st.date_input("Start Date", value=existing.start_date if existing else date.today().replace(day=1))
                has_end = st.checkbox("Has end date", value=bool(existing and existing.end_date))
                end_date = st.date_input("End Date", value=(existing.end_date if existing and existing.end_date else date.today()))
                notes = st.text_input("Notes", value=existing.notes if existing else "")

            submitted = st.form_submit_button("Save Budget" if existing else "Create Budget")

        if not submitted:
            return None
        return budget_from_record({
            'id': existing.id if existing else None,
            'user_id': user_id,
            'category': category,
            'amount': amount,
            'period': period,
            'start_date': start_date,
            'end_date': end_date if has_end else None,
            'notes': notes,
        })

    def render_budget_list(self, statuses: List[BudgetStatus]) -> None:
        """Tabular view of every budget with its live status."""
        if not statuses:
            st.info("No budgets yet. Create your first budget above.")
            return
        display = pd.DataFrame([
            {
                'Category': s.budget.category,
                'Period': s.budget.period,
                'Start': format_date(s.budget.start_date),
                'End': format_date(s.budget.end_date) or 'Open',
                'Budget': self.money(s.budget.amount),
                'Spent': self.money(s.total_spent),
                'Remaining': self.money(s.remaining),
                'Used': f"{s.percentage_spent:.0f}%",
                'Status': STATUS_BADGES.get(s.status, UNDER_BADGE),
            }
            for s in statuses
        ])
        st.dataframe(display, use_container_width=True, hide_index=True)

    def apply_dark_mode(self, enabled: bool) -> None:
        """Apply dark mode styling."""
        if enabled:
            st.markdown("""
            <style>
            .stApp {
                background-color: #1e1e1e;
                color: #ffffff;
            }
            .stMetric {
                background-color: #2d2d2d;
                padding: 1rem;
                border-radius: 0.5rem;
            }
            </style>
            """, unsafe_allow_html=True)
