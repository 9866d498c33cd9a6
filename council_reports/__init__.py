"""Council meeting, attendance and performance reports.

The three entry points build renderer-agnostic DocumentModels:

    from council_reports import build_monthly_activity
    doc = build_monthly_activity(db, 2026, 3, caller)
"""

from council_reports.reports import (
    build_meeting_minutes,
    build_member_performance,
    build_monthly_activity,
)

__all__ = [
    "build_meeting_minutes",
    "build_member_performance",
    "build_monthly_activity",
]
