"""In-app notifications: budget alerts and activity messages."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Sequence, Set, Tuple

from .formatting import format_currency
from .models import STATUS_OVER, STATUS_WARNING, BudgetStatus

BUDGET_WARNING = 'budget_warning'
EXPENSE_ADDED = 'expense_added'
SYSTEM_UPDATE = 'system_update'
NOTIFICATION_TYPES = (BUDGET_WARNING, EXPENSE_ADDED, SYSTEM_UPDATE)

NOTIFICATION_ICONS = {
    BUDGET_WARNING: '⚠️',
    EXPENSE_ADDED: '✅',
    SYSTEM_UPDATE: '🔔',
}


@dataclass(frozen=True)
class Notification:
    type: str
    title: str
    message: str
    created_at: datetime = field(default_factory=datetime.now)
    read: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    # Budget the alert was raised for, so alerts can be refreshed in place
    source_id: Optional[str] = None


def budget_alert(status: BudgetStatus, now: Optional[datetime] = None) -> Notification:
    budget = status.budget
    if status.status == STATUS_OVER:
        title = 'Budget Exceeded'
        message = (
            f"You've spent {status.percentage_spent:.0f}% of your {budget.category} budget "
            f"({format_currency(-status.remaining)} over)."
        )
    else:
        title = 'Budget Alert'
        message = f"You've reached {status.percentage_spent:.0f}% of your {budget.category} budget."
    return Notification(
        type=BUDGET_WARNING,
        title=title,
        message=message,
        created_at=now or datetime.now(),
        source_id=budget.id,
    )


class NotificationCenter:
    """Holds a user's notifications for the lifetime of a session."""

    def __init__(self, notifications: Optional[Sequence[Notification]] = None):
        self._items: List[Notification] = list(notifications or [])
        # (budget id, message) pairs the user dismissed
        self._dismissed: Set[Tuple[Optional[str], str]] = set()

    @property
    def items(self) -> List[Notification]:
        return sorted(self._items, key=lambda n: n.created_at, reverse=True)

    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    def add(self, notification: Notification) -> None:
        if notification.type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {notification.type!r}")
        self._items.append(notification)

    def mark_as_read(self, notification_id: str) -> None:
        self._items = [replace(n, read=True) if n.id == notification_id else n for n in self._items]

    def mark_all_as_read(self) -> None:
        self._items = [replace(n, read=True) for n in self._items]

    def remove(self, notification_id: str) -> None:
        for n in self._items:
            if n.id == notification_id and n.type == BUDGET_WARNING:
                self._dismissed.add((n.source_id, n.message))
        self._items = [n for n in self._items if n.id != notification_id]

    def sync_budget_alerts(self, statuses: Sequence[BudgetStatus], enabled: bool = True, now: Optional[datetime] = None) -> None:
        """Replace budget alerts with one per budget at warning or over.

        An alert whose budget is still flagged with the same message keeps
        its read state; one the user dismissed stays dismissed until its
        alert changes or goes away.
        """
        alerts = [budget_alert(status, now) for status in statuses if status.status in (STATUS_WARNING, STATUS_OVER)]
        # Forget dismissals whose alert changed or cleared
        self._dismissed &= {(alert.source_id, alert.message) for alert in alerts}
        previous = {n.source_id: n for n in self._items if n.type == BUDGET_WARNING}
        self._items = [n for n in self._items if n.type != BUDGET_WARNING]
        if not enabled:
            return
        for alert in alerts:
            if (alert.source_id, alert.message) in self._dismissed:
                continue
            earlier = previous.get(alert.source_id)
            if earlier is not None and earlier.message == alert.message:
                alert = earlier
            self._items.append(alert)


def format_relative_time(moment: datetime, now: Optional[datetime] = None) -> str:
    """Human-friendly age of a notification, e.g. ``5 minutes ago``."""
    seconds = int(((now or datetime.now()) - moment).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if seconds < 60:
        return 'just now'
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    return f"{days} day{'s' if days != 1 else ''} ago"
