"""Seed data loader for council members and meetings.

Loads members and meetings (with attendees, agenda and minutes) from a YAML
seed file into the database. All operations are idempotent: running twice
produces no duplicates.
"""

import logging
from pathlib import Path

import yaml

from council_reports.database import Database
from council_reports.models import (
    ActionItem,
    ActionStatus,
    AgendaItem,
    AgendaStatus,
    Attendee,
    AttendeeStatus,
    MeetingRecord,
    MeetingStatus,
    MeetingType,
    Minutes,
    NextMeeting,
    Priority,
)
from council_reports.utils.normalization import parse_date, parse_datetime

logger = logging.getLogger(__name__)

DEFAULT_SEED_PATH = Path("data/seed/council.yaml")


def _meeting_from_seed(data: dict) -> MeetingRecord:
    meeting_date = parse_date(data.get("date"))
    if meeting_date is None:
        raise ValueError(f"Meeting {data.get('id')} has no valid date")

    minutes = None
    if data.get("minutes") is not None:
        m = data["minutes"]
        next_meeting = None
        if m.get("next_meeting"):
            nm = m["next_meeting"]
            next_meeting = NextMeeting(
                date=parse_date(nm.get("date")),
                time=nm.get("time"),
                location=nm.get("location"),
                agenda=nm.get("agenda"),
            )
        minutes = Minutes(
            summary=m.get("summary"),
            decisions=list(m.get("decisions") or []),
            action_items=[
                ActionItem(
                    task=a["task"],
                    assignee_id=a.get("assignee"),
                    deadline=parse_datetime(a.get("deadline")),
                    priority=Priority(a.get("priority", "medium")),
                    status=ActionStatus(a.get("status", "pending")),
                    completed_at=parse_datetime(a.get("completed_at")),
                )
                for a in m.get("action_items") or []
            ],
            next_meeting=next_meeting,
        )

    return MeetingRecord(
        id=str(data["id"]),
        title=data["title"],
        date=meeting_date,
        start_time=str(data["start_time"]),
        end_time=str(data["end_time"]),
        chairperson_id=data["chairperson"],
        created_by=data.get("created_by", data["chairperson"]),
        type=MeetingType(data.get("type", "regular")),
        location=data.get("location"),
        minutes_taker_id=data.get("minutes_taker"),
        objective=data.get("objective"),
        agenda=[
            AgendaItem(
                title=a["title"],
                presenter=a.get("presenter"),
                duration_minutes=a.get("duration", 15),
                description=a.get("description"),
                status=AgendaStatus(a.get("status", "pending")),
                order=a.get("order", i),
            )
            for i, a in enumerate(data.get("agenda") or [])
        ],
        attendees=[
            Attendee(
                user_id=a["user"],
                status=AttendeeStatus(a.get("status", "pending")),
                arrival_time=a.get("arrival_time"),
                notes=a.get("notes"),
            )
            for a in data.get("attendees") or []
        ],
        minutes=minutes,
        status=MeetingStatus(data.get("status", "scheduled")),
        is_archived=bool(data.get("archived", False)),
    )


def load_seed(db: Database, seed_path: Path | None = None) -> dict:
    """Load members and meetings from a YAML seed file.

    Args:
        db: Database instance (must already be migrated).
        seed_path: Path to YAML seed file. Defaults to data/seed/council.yaml.

    Returns:
        Dict with counts: users_loaded, meetings_loaded.
    """
    seed_path = Path(seed_path or DEFAULT_SEED_PATH)
    if not seed_path.exists():
        raise FileNotFoundError(f"Seed file not found: {seed_path}")

    with open(seed_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    users_loaded = 0
    meetings_loaded = 0

    for user in data.get("users", []):
        perf = user.get("performance") or {}
        db.upsert_user(
            id=str(user["id"]),
            name=user["name"],
            role=user.get("role", "Member"),
            email=user.get("email"),
            student_id=user.get("student_id"),
            department=user.get("department"),
            join_date=parse_date(user.get("join_date")),
            is_active=user.get("is_active", True),
            meetings_attended=perf.get("meetings_attended", 0),
            tasks_completed=perf.get("tasks_completed", 0),
            rating=perf.get("rating", 0.0),
            streak=perf.get("streak", 0),
            achievements=perf.get("achievements", []),
            points=perf.get("points", 0),
        )
        users_loaded += 1
        logger.debug(f"Loaded member: {user['name']}")

    for meeting in data.get("meetings", []):
        db.save_meeting(_meeting_from_seed(meeting))
        meetings_loaded += 1
        logger.debug(f"Loaded meeting: {meeting['title']}")

    logger.info(f"Seed complete: {users_loaded} members, {meetings_loaded} meetings")

    return {
        "users_loaded": users_loaded,
        "meetings_loaded": meetings_loaded,
    }
