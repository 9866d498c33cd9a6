"""Tests for the YAML seed loader."""

from datetime import date, datetime
from pathlib import Path

import pytest

from council_reports.models import ActionStatus, AttendeeStatus, MeetingType, Role
from council_reports.reports import build_monthly_activity
from council_reports.seed import load_seed

SEED_PATH = Path(__file__).resolve().parent.parent / "data" / "seed" / "council.yaml"


class TestLoadSeed:
    def test_counts(self, db):
        counts = load_seed(db, SEED_PATH)
        assert counts == {"users_loaded": 5, "meetings_loaded": 2}
        assert db.count_users() == 5
        assert db.count_meetings() == 2

    def test_idempotent(self, db):
        load_seed(db, SEED_PATH)
        load_seed(db, SEED_PATH)
        assert db.count_users() == 5
        assert db.count_meetings() == 2
        assert len(db.get_meeting("m-2026-03-a").attendees) == 4

    def test_members(self, db):
        load_seed(db, SEED_PATH)
        ada = db.get_user("u-president")
        assert ada.role == Role.PRESIDENT
        assert ada.join_date == date(2024, 9, 1)
        assert len(ada.performance.achievements) == 2
        assert db.get_user("u-guest").role == Role.GUEST

    def test_meeting(self, db):
        load_seed(db, SEED_PATH)
        meeting = db.get_meeting("m-2026-03-a")
        assert meeting.chairperson_id == "u-president"
        assert meeting.attendees[2].status == AttendeeStatus.LATE
        assert meeting.agenda[0].duration_minutes == 20
        assert meeting.agenda[1].duration_minutes == 15
        assert meeting.minutes.action_items[1].deadline == datetime(2026, 3, 20)
        assert meeting.minutes.action_items[0].status == ActionStatus.COMPLETED
        assert meeting.minutes.next_meeting.date == date(2026, 3, 26)

        committee = db.get_meeting("m-2026-03-b")
        assert committee.type == MeetingType.COMMITTEE
        assert committee.minutes is None

    def test_missing_file(self, db, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_seed(db, tmp_path / "missing.yaml")

    def test_custom_file(self, db, tmp_path):
        seed = tmp_path / "small.yaml"
        seed.write_text(
            "users:\n"
            "  - {id: u1, name: Ada}\n"
            "meetings:\n"
            "  - id: m1\n"
            "    title: Kick-off\n"
            "    date: 2026-05-04\n"
            "    start_time: '10:00'\n"
            "    end_time: '11:00'\n"
            "    chairperson: u1\n"
            "    minutes: {}\n",
            encoding="utf-8",
        )
        assert load_seed(db, seed) == {"users_loaded": 1, "meetings_loaded": 1}
        meeting = db.get_meeting("m1")
        assert meeting.created_by == "u1"
        assert meeting.minutes is not None

    def test_seeded_monthly_report(self, db):
        load_seed(db, SEED_PATH)
        doc = build_monthly_activity(db, 2026, 3, now=datetime(2026, 3, 25))
        stats = {row[0]: row for row in doc.table("Attendance Statistics").rows}
        assert "Visiting Speaker" not in stats
        assert stats["Grace Hopper"][2:] == ("2", "2", "100.0")
        assert stats["Alan Turing"][2:] == ("2", "1", "50.0")
        overdue = doc.table("Overdue Action Items").rows
        assert len(overdue) == 1
        assert overdue[0][0].startswith("Book the main hall")
        assert overdue[0][0].endswith("...")
