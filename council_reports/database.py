"""Database module for council reports.

Manages SQLite database creation, migrations, and CRUD operations for
members and meetings, and implements the RecordStore read interface the
report engine consumes.
"""

import json
import sqlite3
import threading
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

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
    Performance,
    Priority,
    Role,
    UserProfile,
)
from council_reports.store import RecordStore
from council_reports.utils.normalization import parse_date, parse_datetime


DEFAULT_DB_PATH = Path("data/council.db")

# User references (chairperson, attendees, assignees) carry no foreign keys:
# members can be removed while old meetings still point at them.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT,
    role TEXT NOT NULL DEFAULT 'Member',
    student_id TEXT UNIQUE,
    department TEXT,
    join_date DATE,
    is_active BOOLEAN DEFAULT TRUE,
    meetings_attended INTEGER DEFAULT 0,
    tasks_completed INTEGER DEFAULT 0,
    rating REAL DEFAULT 0,
    streak INTEGER DEFAULT 0,
    achievements TEXT DEFAULT '[]',
    points INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS meetings (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'regular',
    date DATE NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    location TEXT,
    chairperson_id TEXT NOT NULL,
    minutes_taker_id TEXT,
    objective TEXT,
    has_minutes BOOLEAN DEFAULT FALSE,
    minutes_summary TEXT,
    next_meeting_date DATE,
    next_meeting_time TEXT,
    next_meeting_location TEXT,
    next_meeting_agenda TEXT,
    status TEXT NOT NULL DEFAULT 'scheduled',
    is_archived BOOLEAN DEFAULT FALSE,
    created_by TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_meetings_date ON meetings(date);
CREATE INDEX IF NOT EXISTS idx_meetings_status ON meetings(status);

CREATE TABLE IF NOT EXISTS attendees (
    id TEXT PRIMARY KEY,
    meeting_id TEXT NOT NULL REFERENCES meetings(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    user_id TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    arrival_time TEXT,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS agenda_items (
    id TEXT PRIMARY KEY,
    meeting_id TEXT NOT NULL REFERENCES meetings(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    title TEXT NOT NULL,
    presenter TEXT,
    duration_minutes INTEGER DEFAULT 15,
    description TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    item_order INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS decisions (
    id TEXT PRIMARY KEY,
    meeting_id TEXT NOT NULL REFERENCES meetings(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    text TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS action_items (
    id TEXT PRIMARY KEY,
    meeting_id TEXT NOT NULL REFERENCES meetings(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    task TEXT NOT NULL,
    assignee_id TEXT,
    deadline TIMESTAMP,
    priority TEXT NOT NULL DEFAULT 'medium',
    status TEXT NOT NULL DEFAULT 'pending',
    completed_at TIMESTAMP
);
"""


def generate_id() -> str:
    """Generate a UUID for use as a primary key."""
    return str(uuid.uuid4())


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class Database(RecordStore):
    """SQLite database manager for council members and meetings.

    Connections are per thread so that independent reads issued from a
    thread pool within one report request do not share a connection.
    """

    def __init__(self, db_path: Optional[str | Path] = None):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._lock = threading.Lock()
        self._connections: list[sqlite3.Connection] = []

    @property
    def conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            self._local.conn = conn
            with self._lock:
                self._connections.append(conn)
        return conn

    def close(self):
        with self._lock:
            for conn in self._connections:
                conn.close()
            self._connections = []
        self._local = threading.local()

    def migrate(self):
        """Create all tables if they don't exist. Safe to run repeatedly."""
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()

    # ---- Users ----

    def upsert_user(
        self,
        id: str,
        name: str,
        role: Role | str = Role.MEMBER,
        email: Optional[str] = None,
        student_id: Optional[str] = None,
        department: Optional[str] = None,
        join_date: Optional[date | str] = None,
        is_active: bool = True,
        meetings_attended: int = 0,
        tasks_completed: int = 0,
        rating: float = 0.0,
        streak: int = 0,
        achievements: Optional[list[str]] = None,
        points: int = 0,
    ) -> str:
        """Insert or update a member record."""
        if not 0 <= rating <= 5:
            raise ValueError(f"Rating must be between 0 and 5, got {rating}")
        now = datetime.utcnow().isoformat()
        self.conn.execute(
            """INSERT INTO users (id, name, email, role, student_id, department,
                join_date, is_active, meetings_attended, tasks_completed, rating,
                streak, achievements, points, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                email=excluded.email,
                role=excluded.role,
                student_id=excluded.student_id,
                department=excluded.department,
                join_date=excluded.join_date,
                is_active=excluded.is_active,
                meetings_attended=excluded.meetings_attended,
                tasks_completed=excluded.tasks_completed,
                rating=excluded.rating,
                streak=excluded.streak,
                achievements=excluded.achievements,
                points=excluded.points,
                updated_at=excluded.updated_at
            """,
            (id, name, email, Role(role).value, student_id, department,
             _iso(join_date), is_active, meetings_attended, tasks_completed,
             rating, streak, json.dumps(achievements or []), points, now, now),
        )
        self.conn.commit()
        return id

    def save_user(self, user: UserProfile) -> str:
        """Insert or update a member from a UserProfile."""
        perf = user.performance
        return self.upsert_user(
            id=user.id, name=user.name, role=user.role, email=user.email,
            student_id=user.student_id, department=user.department,
            join_date=user.join_date, is_active=user.is_active,
            meetings_attended=perf.meetings_attended,
            tasks_completed=perf.tasks_completed, rating=perf.rating,
            streak=perf.streak, achievements=perf.achievements, points=perf.points,
        )

    def delete_user(self, id: str):
        """Remove a member. Meetings that reference them are left untouched."""
        self.conn.execute("DELETE FROM users WHERE id = ?", (id,))
        self.conn.commit()

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        """Get a member by ID."""
        row = self.conn.execute(
            "SELECT * FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        return self._row_to_user(row) if row else None

    def list_members(self, exclude_roles: Iterable[Role] = ()) -> list[UserProfile]:
        """List members ordered by name, skipping the given roles."""
        excluded = [Role(r).value for r in exclude_roles]
        query = "SELECT * FROM users"
        if excluded:
            query += f" WHERE role NOT IN ({', '.join('?' for _ in excluded)})"
        query += " ORDER BY name, id"
        rows = self.conn.execute(query, excluded).fetchall()
        return [self._row_to_user(r) for r in rows]

    def count_users(self) -> int:
        """Count member records."""
        return self.conn.execute("SELECT COUNT(*) as cnt FROM users").fetchone()["cnt"]

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> UserProfile:
        return UserProfile(
            id=row["id"],
            name=row["name"],
            role=Role(row["role"]),
            email=row["email"],
            student_id=row["student_id"],
            department=row["department"],
            join_date=parse_date(row["join_date"]),
            is_active=bool(row["is_active"]),
            performance=Performance(
                meetings_attended=row["meetings_attended"] or 0,
                tasks_completed=row["tasks_completed"] or 0,
                rating=row["rating"] or 0.0,
                streak=row["streak"] or 0,
                achievements=json.loads(row["achievements"] or "[]"),
                points=row["points"] or 0,
            ),
        )

    # ---- Meetings ----

    def save_meeting(self, meeting: MeetingRecord) -> str:
        """Insert or update a meeting and replace its attendees, agenda and minutes.

        The whole write happens in one transaction.
        """
        now = datetime.utcnow().isoformat()
        minutes = meeting.minutes
        nxt = minutes.next_meeting if minutes else None
        with self.conn:
            self.conn.execute(
                """INSERT INTO meetings (id, title, type, date, start_time, end_time,
                    location, chairperson_id, minutes_taker_id, objective, has_minutes,
                    minutes_summary, next_meeting_date, next_meeting_time,
                    next_meeting_location, next_meeting_agenda, status, is_archived,
                    created_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    type=excluded.type,
                    date=excluded.date,
                    start_time=excluded.start_time,
                    end_time=excluded.end_time,
                    location=excluded.location,
                    chairperson_id=excluded.chairperson_id,
                    minutes_taker_id=excluded.minutes_taker_id,
                    objective=excluded.objective,
                    has_minutes=excluded.has_minutes,
                    minutes_summary=excluded.minutes_summary,
                    next_meeting_date=excluded.next_meeting_date,
                    next_meeting_time=excluded.next_meeting_time,
                    next_meeting_location=excluded.next_meeting_location,
                    next_meeting_agenda=excluded.next_meeting_agenda,
                    status=excluded.status,
                    is_archived=excluded.is_archived,
                    created_by=excluded.created_by,
                    updated_at=excluded.updated_at
                """,
                (meeting.id, meeting.title, MeetingType(meeting.type).value,
                 _iso(parse_date(meeting.date)), meeting.start_time, meeting.end_time,
                 meeting.location, meeting.chairperson_id, meeting.minutes_taker_id,
                 meeting.objective, minutes is not None,
                 minutes.summary if minutes else None,
                 _iso(parse_date(nxt.date)) if nxt else None, nxt.time if nxt else None,
                 nxt.location if nxt else None, nxt.agenda if nxt else None,
                 MeetingStatus(meeting.status).value, meeting.is_archived,
                 meeting.created_by, now, now),
            )
            for table in ("attendees", "agenda_items", "decisions", "action_items"):
                self.conn.execute(f"DELETE FROM {table} WHERE meeting_id = ?", (meeting.id,))

            for pos, att in enumerate(meeting.attendees):
                self.conn.execute(
                    """INSERT INTO attendees (id, meeting_id, position, user_id, status,
                        arrival_time, notes) VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (generate_id(), meeting.id, pos, att.user_id,
                     AttendeeStatus(att.status).value, att.arrival_time, att.notes),
                )
            for pos, item in enumerate(meeting.agenda):
                self.conn.execute(
                    """INSERT INTO agenda_items (id, meeting_id, position, title, presenter,
                        duration_minutes, description, status, item_order)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (generate_id(), meeting.id, pos, item.title, item.presenter,
                     item.duration_minutes, item.description,
                     AgendaStatus(item.status).value, item.order),
                )
            if minutes:
                for pos, text in enumerate(minutes.decisions):
                    self.conn.execute(
                        """INSERT INTO decisions (id, meeting_id, position, text)
                        VALUES (?, ?, ?, ?)""",
                        (generate_id(), meeting.id, pos, text),
                    )
                for pos, item in enumerate(minutes.action_items):
                    self.conn.execute(
                        """INSERT INTO action_items (id, meeting_id, position, task,
                            assignee_id, deadline, priority, status, completed_at)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                        (generate_id(), meeting.id, pos, item.task, item.assignee_id,
                         _iso(item.deadline), Priority(item.priority).value,
                         ActionStatus(item.status).value, _iso(item.completed_at)),
                    )
        return meeting.id

    def get_meeting(self, meeting_id: str) -> Optional[MeetingRecord]:
        """Get a meeting by ID with all sub-records loaded."""
        row = self.conn.execute(
            "SELECT * FROM meetings WHERE id = ?", (meeting_id,)
        ).fetchone()
        return self._load_meeting(row) if row else None

    def find_meetings_between(self, start: date, end: date) -> list[MeetingRecord]:
        """Meetings dated within [start, end], inclusive, in date order."""
        rows = self.conn.execute(
            """SELECT * FROM meetings
            WHERE date >= ? AND date <= ?
            ORDER BY date, start_time, id""",
            (start.isoformat(), end.isoformat()),
        ).fetchall()
        return [self._load_meeting(r) for r in rows]

    def count_meetings(self) -> int:
        """Count meeting records."""
        return self.conn.execute("SELECT COUNT(*) as cnt FROM meetings").fetchone()["cnt"]

    def _children(self, table: str, meeting_id: str) -> list[sqlite3.Row]:
        return self.conn.execute(
            f"SELECT * FROM {table} WHERE meeting_id = ? ORDER BY position",
            (meeting_id,),
        ).fetchall()

    def _load_meeting(self, row: sqlite3.Row) -> MeetingRecord:
        meeting_id = row["id"]
        meeting_date = parse_date(row["date"])
        if meeting_date is None:
            raise ValueError(f"Meeting {meeting_id} has an invalid date: {row['date']!r}")

        attendees = [
            Attendee(
                user_id=r["user_id"],
                status=AttendeeStatus(r["status"]),
                arrival_time=r["arrival_time"],
                notes=r["notes"],
            )
            for r in self._children("attendees", meeting_id)
        ]
        agenda = [
            AgendaItem(
                title=r["title"],
                presenter=r["presenter"],
                duration_minutes=r["duration_minutes"] if r["duration_minutes"] is not None else 15,
                description=r["description"],
                status=AgendaStatus(r["status"]),
                order=r["item_order"] or 0,
            )
            for r in self._children("agenda_items", meeting_id)
        ]

        minutes = None
        if row["has_minutes"]:
            next_meeting = None
            if any(row[k] for k in ("next_meeting_date", "next_meeting_time",
                                    "next_meeting_location", "next_meeting_agenda")):
                next_meeting = NextMeeting(
                    date=parse_date(row["next_meeting_date"]),
                    time=row["next_meeting_time"],
                    location=row["next_meeting_location"],
                    agenda=row["next_meeting_agenda"],
                )
            minutes = Minutes(
                summary=row["minutes_summary"],
                decisions=[r["text"] for r in self._children("decisions", meeting_id)],
                action_items=[
                    ActionItem(
                        task=r["task"],
                        assignee_id=r["assignee_id"],
                        deadline=parse_datetime(r["deadline"]),
                        priority=Priority(r["priority"]),
                        status=ActionStatus(r["status"]),
                        completed_at=parse_datetime(r["completed_at"]),
                    )
                    for r in self._children("action_items", meeting_id)
                ],
                next_meeting=next_meeting,
            )

        return MeetingRecord(
            id=meeting_id,
            title=row["title"],
            date=meeting_date,
            start_time=row["start_time"],
            end_time=row["end_time"],
            chairperson_id=row["chairperson_id"],
            created_by=row["created_by"],
            type=MeetingType(row["type"]),
            location=row["location"],
            minutes_taker_id=row["minutes_taker_id"],
            objective=row["objective"],
            agenda=agenda,
            attendees=attendees,
            minutes=minutes,
            status=MeetingStatus(row["status"]),
            is_archived=bool(row["is_archived"]),
        )
