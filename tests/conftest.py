"""Shared fixtures: a SQLite database under tmp_path and an in-memory store."""

from datetime import date, datetime

import pytest

from council_reports.database import Database
from council_reports.models import (
    ActionItem,
    ActionStatus,
    Attendee,
    AttendeeStatus,
    MeetingRecord,
    Minutes,
    Role,
    UserProfile,
)
from council_reports.store import RecordStore


class MemoryStore(RecordStore):
    """Dict-backed store for tests. Records reads so tests can inspect them."""

    def __init__(self, users=(), meetings=()):
        self.users = {u.id: u for u in users}
        self.meetings = {m.id: m for m in meetings}
        self.reads: list[str] = []

    def get_meeting(self, meeting_id):
        self.reads.append(f"meeting:{meeting_id}")
        return self.meetings.get(meeting_id)

    def get_user(self, user_id):
        self.reads.append(f"user:{user_id}")
        return self.users.get(user_id)

    def find_meetings_between(self, start, end):
        self.reads.append("meetings_between")
        found = [m for m in self.meetings.values() if start <= m.date <= end]
        return sorted(found, key=lambda m: (m.date, m.start_time, m.id))

    def list_members(self, exclude_roles=()):
        self.reads.append("members")
        excluded = set(exclude_roles)
        return sorted((u for u in self.users.values() if u.role not in excluded),
                      key=lambda u: (u.name, u.id))


def _make_meeting(id, day, attendee_ids=(), action_items=None, **kwargs) -> MeetingRecord:
    """Meeting on the given date chaired by u1, attended by ``attendee_ids``."""
    minutes = Minutes(action_items=list(action_items)) if action_items is not None else None
    defaults = dict(
        title=f"Meeting {id}",
        start_time="17:00",
        end_time="18:00",
        chairperson_id="u1",
        created_by="u1",
        attendees=[Attendee(user_id=u, status=AttendeeStatus.PRESENT) for u in attendee_ids],
        minutes=minutes,
    )
    defaults.update(kwargs)
    return MeetingRecord(id=id, date=day, **defaults)


@pytest.fixture
def members():
    return [
        UserProfile(id="u1", name="Ada Lovelace", role=Role.PRESIDENT, student_id="SIT-1"),
        UserProfile(id="u2", name="Grace Hopper", role=Role.SECRETARY),
        UserProfile(id="u3", name="Alan Turing", role=Role.MEMBER),
        UserProfile(id="g1", name="Visiting Guest", role=Role.GUEST),
    ]


@pytest.fixture
def minutes_meeting():
    """3 attendees (2 present, 1 absent), one overdue and one completed item."""
    return MeetingRecord(
        id="m1",
        title="March General Assembly",
        date=date(2026, 3, 5),
        start_time="17:00",
        end_time="18:30",
        chairperson_id="u1",
        minutes_taker_id="u2",
        created_by="u1",
        location="Main Hall",
        attendees=[
            Attendee(user_id="u1", status=AttendeeStatus.PRESENT),
            Attendee(user_id="u2", status=AttendeeStatus.PRESENT),
            Attendee(user_id="u3", status=AttendeeStatus.ABSENT),
        ],
        minutes=Minutes(
            summary="Budget approved.",
            decisions=["Approve the spring budget"],
            action_items=[
                ActionItem(task="Book the hall", assignee_id="u2",
                           deadline=datetime(2026, 3, 14), status=ActionStatus.PENDING),
                ActionItem(task="Publish the budget", assignee_id="u3",
                           deadline=datetime(2026, 3, 10), status=ActionStatus.COMPLETED),
            ],
        ),
    )


@pytest.fixture
def store(members, minutes_meeting):
    return MemoryStore(users=members, meetings=[minutes_meeting])


@pytest.fixture
def db(tmp_path):
    """Create a migrated database under tmp_path."""
    db = Database(tmp_path / "test.db")
    db.migrate()
    yield db
    db.close()


@pytest.fixture
def make_meeting():
    """Factory for MeetingRecords; see _make_meeting."""
    return _make_meeting


@pytest.fixture
def make_store(members):
    """Build a MemoryStore over the shared members and the given meetings."""
    def _build(meetings=(), users=None):
        return MemoryStore(users=members if users is None else users, meetings=meetings)
    return _build
