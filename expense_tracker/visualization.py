"""Plotly visualisation helpers for the expense tracker.

Each function accepts a pandas object produced by :mod:`analytics` (or a
list of budget statuses) and returns a ``plotly.graph_objects.Figure``
that Streamlit renders via ``st.plotly_chart``.  Empty input yields a
placeholder figure titled "No data to display".
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .models import STATUS_OVER, STATUS_WARNING, BudgetStatus

CHART_COLORS = ["#f43f5e", "#3b82f6", "#facc15", "#10b981", "#8b5cf6", "#f97316"]
STATUS_COLORS = {
    STATUS_OVER: "#ef4444",
    STATUS_WARNING: "#eab308",
}
UNDER_COLOR = "#22c55e"


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_category_pie_chart(series: pd.Series, title: str | None = None) -> go.Figure:
    """Generate a pie chart of spending by category.

    Parameters
    ----------
    series : pandas.Series
        Series indexed by category with summed amounts.
    title : str, optional
        Title for the chart.
    """
    if series.empty:
        return _empty_figure()
    df = series.reset_index()
    df.columns = ["Category", "Amount"]
    fig = px.pie(df, names="Category", values="Amount", color_discrete_sequence=CHART_COLORS)
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_category_bar_chart(series: pd.Series, title: str | None = None) -> go.Figure:
    """Generate a bar chart of spending by category."""
    if series.empty:
        return _empty_figure()
    df = series.reset_index()
    df.columns = ["Category", "Amount"]
    fig = px.bar(df, x="Category", y="Amount", color="Category", color_discrete_sequence=CHART_COLORS)
    fig.update_layout(
        title=title or "Category totals",
        xaxis_title="Category",
        yaxis_title="Amount",
        showlegend=False,
    )
    return fig


def create_daily_trend_chart(daily: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Line chart of daily spending with its 7-day moving average.

    Parameters
    ----------
    daily : pandas.DataFrame
        Output of :meth:`ExpenseAnalytics.daily_totals`, indexed by date
        with ``Amount`` and ``Average`` columns.
    """
    if daily.empty:
        return _empty_figure()
    df = daily.reset_index()
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=df["Date"], y=df["Amount"], mode="lines+markers", name="Daily Expenses"))
    fig.add_trace(go.Scatter(x=df["Date"], y=df["Average"], mode="lines", name="7-Day Average", line=dict(dash="dash")))
    fig.update_layout(
        title=title or "Daily spending",
        xaxis_title="Date",
        yaxis_title="Amount",
    )
    return fig


def create_budget_progress_chart(statuses: Sequence[BudgetStatus], title: str | None = None) -> go.Figure:
    """Horizontal bars of percentage spent per budget, coloured by status.

    Bars are not clamped at 100 so overspend stays visible; a reference
    line marks the full budget.
    """
    if not statuses:
        return _empty_figure()
    labels = [f"{s.budget.category} ({s.budget.period})" for s in statuses]
    percentages = np.array([s.percentage_spent for s in statuses])
    status_names = np.array([s.status for s in statuses])
    colors = np.select(
        [status_names == STATUS_OVER, status_names == STATUS_WARNING],
        [STATUS_COLORS[STATUS_OVER], STATUS_COLORS[STATUS_WARNING]],
        default=UNDER_COLOR,
    )
    fig = go.Figure(
        go.Bar(
            x=percentages,
            y=labels,
            orientation="h",
            marker_color=colors.tolist(),
            text=[f"{p:.0f}%" for p in percentages],
            textposition="auto",
        )
    )
    fig.add_vline(x=100, line_dash="dot", line_color="#64748b")
    fig.update_layout(
        title=title or "Budget utilization",
        xaxis_title="Percent of budget spent",
        yaxis_title="Budget",
    )
    return fig
