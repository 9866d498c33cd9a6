"""Rate and classification calculators used by every report.

Pure functions over raw counts and records; no store access.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from council_reports.models import ActionItem, ActionStatus
from council_reports.utils.normalization import parse_datetime


def _rate(part: int, whole: int) -> str:
    """Percentage with one fractional digit, "0.0" when whole is zero."""
    if not whole:
        return "0.0"
    return f"{part / whole * 100:.1f}"


def attendance_rate(attended: int, total: int) -> str:
    """Attendance as a percentage string, e.g. attendance_rate(2, 3) == "66.7".

    Zero meetings in scope is not an error: the rate is "0.0".
    """
    return _rate(attended, total)


def task_completion_rate(completed: int, assigned: int) -> str:
    """Share of assigned tasks completed, same format as attendance_rate."""
    return _rate(completed, assigned)


def is_overdue(deadline, status, now: datetime) -> bool:
    """True iff a deadline is set, has passed, and the item is not completed.

    ``deadline`` may be a datetime, a date (compared as midnight) or any
    string parse_datetime accepts. The stored status is only consulted for
    completion; a stored "overdue" value is never trusted on its own.
    Timezone-aware values on either side are compared as naive UTC.
    """
    if ActionStatus(status) == ActionStatus.COMPLETED:
        return False
    due = parse_datetime(deadline)
    if due is None:
        return False
    return due < parse_datetime(now)


@dataclass
class TaskBreakdown:
    """Partition of action items by effective status."""
    pending: list = field(default_factory=list)
    in_progress: list = field(default_factory=list)
    completed: list = field(default_factory=list)
    overdue: list = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.pending) + len(self.in_progress) + len(self.completed) + len(self.overdue)

    def counts(self) -> dict:
        return {
            "pending": len(self.pending),
            "in_progress": len(self.in_progress),
            "completed": len(self.completed),
            "overdue": len(self.overdue),
        }


def effective_status(item: ActionItem, now: datetime) -> ActionStatus:
    """Status of an action item as of ``now``.

    Overdue is recomputed from the deadline. An item stored as overdue whose
    deadline has not passed (or was removed) counts as pending.
    """
    status = ActionStatus(item.status)
    if is_overdue(item.deadline, status, now):
        return ActionStatus.OVERDUE
    if status == ActionStatus.OVERDUE:
        return ActionStatus.PENDING
    return status


def task_status_breakdown(items: Iterable, now: datetime,
                          key=None) -> TaskBreakdown:
    """Partition action items into pending / in progress / completed / overdue.

    Args:
        items: ActionItem records, or wrappers around them.
        now: Reference time for overdue detection.
        key: Optional callable returning the ActionItem for each element,
            for callers that partition annotated wrappers.

    Returns:
        TaskBreakdown whose list sizes sum to the number of items.
    """
    breakdown = TaskBreakdown()
    buckets = {
        ActionStatus.PENDING: breakdown.pending,
        ActionStatus.IN_PROGRESS: breakdown.in_progress,
        ActionStatus.COMPLETED: breakdown.completed,
        ActionStatus.OVERDUE: breakdown.overdue,
    }
    for element in items:
        item = key(element) if key else element
        buckets[effective_status(item, now)].append(element)
    return breakdown


def avatar_initials(full_name: Optional[str]) -> str:
    """Up to two upper-case initials: "Ada Lovelace" -> "AL", "" -> ""."""
    tokens = (full_name or "").split()
    return "".join(t[0] for t in tokens).upper()[:2]
