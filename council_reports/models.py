"""Record types for council meetings, members and derived statistics.

Status-like fields are closed enumerations. Values read from storage are
coerced through the enum constructors, so an unknown value raises
ValueError instead of silently flowing into a report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


# ── Enumerations ─────────────────────────────────────────────────────────

class MeetingType(str, Enum):
    REGULAR = "regular"
    RANDOM = "random"
    SPECIAL = "special"
    COMMITTEE = "committee"


class MeetingStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendeeStatus(str, Enum):
    PENDING = "pending"
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class AgendaStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DEFERRED = "deferred"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class Role(str, Enum):
    PRESIDENT = "President"
    VICE_PRESIDENT = "Vice President"
    SECRETARY = "Secretary"
    TREASURER = "Treasurer"
    PRO = "PRO"
    COORDINATOR = "Coordinator"
    MEMBER = "Member"
    GUEST = "Guest"


# ── Members ──────────────────────────────────────────────────────────────

@dataclass
class Performance:
    """Performance counters stored on the member record."""
    meetings_attended: int = 0
    tasks_completed: int = 0
    rating: float = 0.0
    streak: int = 0
    achievements: list[str] = field(default_factory=list)
    points: int = 0


@dataclass
class UserProfile:
    id: str
    name: str
    role: Role = Role.MEMBER
    email: Optional[str] = None
    student_id: Optional[str] = None
    department: Optional[str] = None
    join_date: Optional[date] = None
    is_active: bool = True
    performance: Performance = field(default_factory=Performance)


@dataclass(frozen=True)
class UserRef:
    """Display projection of a user reference: just what reports print.

    ``resolved`` is False when the reference was missing or dangling and
    ``name``/``role`` hold placeholder text.
    """
    id: Optional[str]
    name: str
    role: str
    resolved: bool = True


# ── Meetings ─────────────────────────────────────────────────────────────

@dataclass
class Attendee:
    user_id: str
    status: AttendeeStatus = AttendeeStatus.PENDING
    arrival_time: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class AgendaItem:
    title: str
    presenter: Optional[str] = None
    duration_minutes: int = 15
    description: Optional[str] = None
    status: AgendaStatus = AgendaStatus.PENDING
    order: int = 0


@dataclass
class ActionItem:
    task: str
    assignee_id: Optional[str] = None
    deadline: Optional[datetime] = None
    priority: Priority = Priority.MEDIUM
    status: ActionStatus = ActionStatus.PENDING
    completed_at: Optional[datetime] = None


@dataclass
class NextMeeting:
    date: Optional[date] = None
    time: Optional[str] = None
    location: Optional[str] = None
    agenda: Optional[str] = None


@dataclass
class Minutes:
    summary: Optional[str] = None
    decisions: list[str] = field(default_factory=list)
    action_items: list[ActionItem] = field(default_factory=list)
    next_meeting: Optional[NextMeeting] = None


@dataclass
class MeetingRecord:
    id: str
    title: str
    date: date
    start_time: str
    end_time: str
    chairperson_id: str
    created_by: str
    type: MeetingType = MeetingType.REGULAR
    location: Optional[str] = None
    minutes_taker_id: Optional[str] = None
    objective: Optional[str] = None
    agenda: list[AgendaItem] = field(default_factory=list)
    attendees: list[Attendee] = field(default_factory=list)
    minutes: Optional[Minutes] = None
    status: MeetingStatus = MeetingStatus.SCHEDULED
    is_archived: bool = False


# ── Derived ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AttendanceStat:
    """Per-member participation over a report period. Never persisted."""
    user_id: str
    name: str
    role: str
    total_meetings: int
    attended: int
    attendance_rate: str


@dataclass(frozen=True)
class Caller:
    """Identity of whoever requested a report. Used for display only."""
    name: str
    role: str

    def __str__(self) -> str:
        return f"{self.name} ({self.role})"
