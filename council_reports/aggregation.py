"""Aggregation of meetings, members and action items for report scopes.

The Aggregator joins records from a RecordStore into one statistics bundle
per report scope:

  - a single meeting (minutes report)
  - a single member (performance report)
  - a calendar month (monthly activity report)

Nothing here is cached between calls; every bundle is computed fresh from
the store. Missing primary records raise NotFound. Missing secondary
references (attendees, assignees, officers) become placeholder text.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from council_reports.errors import NotFound
from council_reports.metrics import (
    TaskBreakdown,
    attendance_rate,
    avatar_initials,
    effective_status,
    task_status_breakdown,
)
from council_reports.models import (
    ActionItem,
    ActionStatus,
    Attendee,
    AttendanceStat,
    MeetingRecord,
    Role,
    UserProfile,
    UserRef,
)
from council_reports.store import RecordStore

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown"
UNASSIGNED = "Unassigned"
NOT_SPECIFIED = "Not specified"
DEFAULT_ATTENDEE_ROLE = Role.MEMBER.value

# Illustrative series shown on every performance report. It is not derived
# from the member's history.
PERFORMANCE_TREND = (
    ("Jan", 3.5),
    ("Feb", 4.0),
    ("Mar", 4.2),
    ("Apr", 4.5),
    ("May", 4.8),
    ("Jun", 4.9),
)

EXCLUDED_FROM_STATISTICS = (Role.GUEST,)


# ── Bundles ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AttendeeEntry:
    user: UserRef
    attendee: Attendee


@dataclass(frozen=True)
class ActionEntry:
    """An action item joined with its assignee and owning meeting."""
    item: ActionItem
    assignee: UserRef
    meeting_id: str
    meeting_title: str
    status: ActionStatus

    @property
    def overdue(self) -> bool:
        return self.status == ActionStatus.OVERDUE


@dataclass
class MeetingBundle:
    meeting: MeetingRecord
    chairperson: UserRef
    minutes_taker: UserRef
    attendees: list[AttendeeEntry] = field(default_factory=list)
    action_items: list[ActionEntry] = field(default_factory=list)


@dataclass
class MemberBundle:
    user: UserProfile
    initials: str
    trend: tuple = PERFORMANCE_TREND


@dataclass
class MonthlyBundle:
    year: int
    month: int
    start: date
    end: date
    meetings: list[MeetingRecord] = field(default_factory=list)
    members: list[UserProfile] = field(default_factory=list)
    attendance: list[AttendanceStat] = field(default_factory=list)
    action_items: list[ActionEntry] = field(default_factory=list)
    breakdown: TaskBreakdown = field(default_factory=TaskBreakdown)

    @property
    def overdue(self) -> list[ActionEntry]:
        return self.breakdown.overdue


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month, e.g. (2026-02-01, 2026-02-28)."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    start = date(year, month, 1)
    end = start + relativedelta(months=1, days=-1)
    return start, end


class Aggregator:
    """Builds per-scope statistics bundles from a RecordStore."""

    def __init__(self, store: RecordStore):
        self.store = store

    # ---- Reference resolution ----

    def _user_ref(self, user_id: Optional[str], placeholder: str,
                  placeholder_role: str = "", cache: Optional[dict] = None) -> UserRef:
        """Project a user reference to {name, role}, or a placeholder."""
        if cache is not None and user_id in cache:
            user = cache[user_id]
        else:
            user = self.store.resolve_user(user_id)
            if cache is not None:
                cache[user_id] = user
        if user is None:
            if user_id:
                logger.warning(f"Unresolved user reference {user_id}, using '{placeholder}'")
            return UserRef(id=user_id, name=placeholder, role=placeholder_role, resolved=False)
        return UserRef(id=user.id, name=user.name, role=user.role.value)

    def _action_entries(self, meeting: MeetingRecord, now: datetime,
                        cache: dict) -> list[ActionEntry]:
        if not meeting.minutes:
            return []
        return [
            ActionEntry(
                item=item,
                assignee=self._user_ref(item.assignee_id, UNASSIGNED, cache=cache),
                meeting_id=meeting.id,
                meeting_title=meeting.title,
                status=effective_status(item, now),
            )
            for item in meeting.minutes.action_items
        ]

    # ---- Scopes ----

    def meeting_bundle(self, meeting_id: str, now: datetime) -> MeetingBundle:
        """Resolve one meeting with its people populated.

        Raises:
            NotFound: if the meeting does not exist.
        """
        meeting = self.store.get_meeting(meeting_id)
        if meeting is None:
            raise NotFound("Meeting", meeting_id)

        cache: dict = {}
        attendees = [
            AttendeeEntry(
                user=self._user_ref(att.user_id, UNKNOWN_USER, DEFAULT_ATTENDEE_ROLE, cache),
                attendee=att,
            )
            for att in meeting.attendees
        ]
        bundle = MeetingBundle(
            meeting=meeting,
            chairperson=self._user_ref(meeting.chairperson_id, NOT_SPECIFIED, cache=cache),
            minutes_taker=self._user_ref(meeting.minutes_taker_id, NOT_SPECIFIED, cache=cache),
            attendees=attendees,
            action_items=self._action_entries(meeting, now, cache),
        )
        logger.info(
            f"Aggregated meeting {meeting_id}: {len(attendees)} attendees, "
            f"{len(bundle.action_items)} action items"
        )
        return bundle

    def member_bundle(self, user_id: str) -> MemberBundle:
        """Resolve a member and their stored performance block.

        Raises:
            NotFound: if the member does not exist.
        """
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFound("User", user_id)
        return MemberBundle(user=user, initials=avatar_initials(user.name))

    def monthly_bundle(self, year: int, month: int, now: datetime) -> MonthlyBundle:
        """Compute attendance and action item statistics for a calendar month.

        The meetings and members reads are independent and run concurrently;
        statistics are computed once both have completed.
        """
        start, end = month_bounds(year, month)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="monthly-read") as pool:
            meetings_future = pool.submit(self.store.find_meetings_between, start, end)
            members_future = pool.submit(self.store.list_members, EXCLUDED_FROM_STATISTICS)
            meetings = meetings_future.result()
            members = members_future.result()

        total = len(meetings)
        attendee_sets = [{att.user_id for att in m.attendees} for m in meetings]
        attendance = []
        for user in members:
            attended = sum(1 for ids in attendee_sets if user.id in ids)
            attendance.append(AttendanceStat(
                user_id=user.id,
                name=user.name,
                role=user.role.value,
                total_meetings=total,
                attended=attended,
                attendance_rate=attendance_rate(attended, total),
            ))

        cache: dict = {u.id: u for u in members}
        action_items = []
        for meeting in meetings:
            action_items.extend(self._action_entries(meeting, now, cache))

        breakdown = task_status_breakdown(action_items, now, key=lambda e: e.item)
        logger.info(
            f"Aggregated {start} to {end}: {total} meetings, {len(members)} members, "
            f"{len(action_items)} action items ({len(breakdown.overdue)} overdue)"
        )
        return MonthlyBundle(
            year=year,
            month=month,
            start=start,
            end=end,
            meetings=meetings,
            members=members,
            attendance=attendance,
            action_items=action_items,
            breakdown=breakdown,
        )
