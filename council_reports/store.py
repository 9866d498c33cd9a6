"""Read interface the report engine needs from persistence.

Any backend (the bundled SQLite Database, a test fake, a remote service)
can feed the reports by implementing these four lookups. The engine never
writes through this interface.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional

from council_reports.models import MeetingRecord, Role, UserProfile

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Abstract read-only view over meetings and members.

    Each store knows how to:
    - Look up a single meeting or member by id
    - List the meetings held in a date range
    - List members, excluding given roles
    """

    @abstractmethod
    def get_meeting(self, meeting_id: str) -> Optional[MeetingRecord]:
        """Return the meeting with its agenda, attendees and minutes, or None."""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserProfile]:
        """Return the member profile, or None if no such member exists."""

    @abstractmethod
    def find_meetings_between(self, start: date, end: date) -> list[MeetingRecord]:
        """Return meetings whose date is in [start, end], both ends inclusive,
        ordered by date."""

    @abstractmethod
    def list_members(self, exclude_roles: Iterable[Role] = ()) -> list[UserProfile]:
        """Return all members whose role is not in ``exclude_roles``."""

    def resolve_user(self, user_id: Optional[str]) -> Optional[UserProfile]:
        """Resolve a secondary user reference.

        Returns None (unresolved) for a missing id or a dangling reference,
        never raises for a missing record. Backend failures still propagate.
        """
        if not user_id:
            return None
        user = self.get_user(user_id)
        if user is None:
            logger.debug(f"User reference {user_id} could not be resolved")
        return user
