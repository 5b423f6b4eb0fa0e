"""Shared sidebar components for the multi-page app.

This module builds the per-run :class:`AppContext` from Streamlit's
session state and renders the sidebar elements available on every page:
the signed-in user, the dashboard date range and the notification panel.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

import streamlit as st

from .budget_status import calculate_budget_statuses
from .config import DEFAULT_CURRENCY, configure_logging
from .date_ranges import DATE_RANGE_PRESETS, DateRange, preset_range
from .db import ExpenseStore
from .formatting import escape_dollar_for_markdown
from .notifications import NOTIFICATION_ICONS, NotificationCenter, format_relative_time
from .preferences import avatar_initials, display_name, load_preferences

logger = logging.getLogger(__name__)

STORE_KEY = '_expense_store'
USER_KEY = 'user_id'
PREFERENCES_KEY = '_preferences'
NOTIFICATIONS_KEY = '_notifications'
PRESET_KEY = 'date_range_preset'


@dataclass
class AppContext:
    """Everything a page needs for the current user, passed explicitly."""
    user_id: str
    store: ExpenseStore
    preferences: Dict[str, Any]
    notifications: NotificationCenter

    @property
    def currency(self) -> str:
        return self.preferences.get('currency') or DEFAULT_CURRENCY

    @property
    def signed_in(self) -> bool:
        return bool(self.user_id)


def _get_store() -> ExpenseStore:
    store = st.session_state.get(STORE_KEY)
    if store is None:
        configure_logging()
        store = ExpenseStore()
        store.init_db()
        st.session_state[STORE_KEY] = store
    return store


def _get_preferences(user_id: str) -> Dict[str, Any]:
    cached = st.session_state.get(PREFERENCES_KEY)
    if not isinstance(cached, dict) or cached.get('user_id') != user_id:
        cached = {'user_id': user_id, 'values': load_preferences(user_id) if user_id else {}}
        st.session_state[PREFERENCES_KEY] = cached
    return cached['values']


def _get_notifications(user_id: str) -> NotificationCenter:
    centers = st.session_state.setdefault(NOTIFICATIONS_KEY, {})
    center = centers.get(user_id)
    if center is None:
        center = NotificationCenter()
        centers[user_id] = center
    return center


def get_app_context() -> AppContext:
    """Build the context for this script run from session state."""
    user_id = (st.session_state.get(USER_KEY) or '').strip()
    return AppContext(
        user_id=user_id,
        store=_get_store(),
        preferences=_get_preferences(user_id),
        notifications=_get_notifications(user_id),
    )


def set_preferences(context: AppContext, preferences: Dict[str, Any]) -> None:
    """Replace the cached preferences after they were saved."""
    context.preferences.clear()
    context.preferences.update(preferences)
    st.session_state[PREFERENCES_KEY] = {'user_id': context.user_id, 'values': context.preferences}


def refresh_budget_alerts(context: AppContext, today: Optional[date] = None) -> None:
    """Recompute current-month budget statuses and sync the alert list."""
    if not context.signed_in:
        return
    budgets = context.store.current_month_budgets(context.user_id, today)
    expenses = context.store.list_expenses(context.user_id)
    statuses = calculate_budget_statuses(budgets, expenses, as_of=today)
    context.notifications.sync_budget_alerts(
        statuses,
        enabled=bool(context.preferences.get('notify_budget_warnings', True)),
    )


def render_user_section(context: AppContext) -> None:
    st.sidebar.subheader("👤 Account")
    entered = st.sidebar.text_input(
        "Signed in as",
        value=context.user_id,
        placeholder="you@example.com",
        help="Expenses and budgets are stored per user",
    ).strip()
    if entered != context.user_id:
        st.session_state[USER_KEY] = entered
        logger.info("Switched user to %s", entered or '<none>')
        st.rerun()
    if context.signed_in:
        initials = avatar_initials(context.user_id, context.preferences)
        st.sidebar.markdown(f"**{initials}** · {display_name(context.user_id, context.preferences)}")
    else:
        st.sidebar.info("Enter your email to start tracking expenses.")


def render_date_range_selector(today: Optional[date] = None) -> DateRange:
    """Dashboard date-range preset, remembered for the session."""
    keys = list(DATE_RANGE_PRESETS)
    current = st.session_state.get(PRESET_KEY, 'this-month')
    preset = st.sidebar.selectbox(
        "Date range",
        options=keys,
        index=keys.index(current) if current in keys else keys.index('this-month'),
        format_func=DATE_RANGE_PRESETS.get,
    )
    st.session_state[PRESET_KEY] = preset
    return preset_range(preset, today)


def render_notifications(context: AppContext) -> None:
    center = context.notifications
    unread = center.unread_count()
    label = f"🔔 Notifications ({unread})" if unread else "🔔 Notifications"
    with st.sidebar.expander(label, expanded=False):
        items = center.items
        if not items:
            st.caption("No notifications")
            return
        if unread and st.button("Mark all as read", key="notifications_mark_all"):
            center.mark_all_as_read()
            st.rerun()
        for item in items:
            icon = NOTIFICATION_ICONS.get(item.type, '🔔')
            title = item.title if item.read else f"**{item.title}**"
            st.markdown(f"{icon} {title}")
            st.caption(f"{escape_dollar_for_markdown(item.message)} · {format_relative_time(item.created_at)}")
            col1, col2 = st.columns(2)
            if not item.read and col1.button("Read", key=f"read_{item.id}"):
                center.mark_as_read(item.id)
                st.rerun()
            if col2.button("Dismiss", key=f"dismiss_{item.id}"):
                center.remove(item.id)
                st.rerun()


def render_shared_sidebar(show_date_range: bool = False) -> Dict[str, Any]:
    """Render shared sidebar elements available on all pages.

    Returns:
        Dict with keys: 'context' and, when requested, 'date_range'
    """
    context = get_app_context()
    render_user_section(context)
    date_range = render_date_range_selector() if show_date_range else None
    try:
        refresh_budget_alerts(context)
    except (ValueError, sqlite3.Error):
        logger.exception("Could not refresh budget alerts for %s", context.user_id)
        st.sidebar.warning("Budget alerts are unavailable right now.")
    render_notifications(context)
    return {'context': context, 'date_range': date_range}
