"""Tests for per-scope aggregation."""

import logging
from datetime import date, datetime

import pytest

from council_reports.aggregation import (
    NOT_SPECIFIED,
    PERFORMANCE_TREND,
    UNASSIGNED,
    UNKNOWN_USER,
    Aggregator,
    month_bounds,
)
from council_reports.errors import NotFound
from council_reports.models import ActionItem, ActionStatus, Attendee, AttendeeStatus

NOW = datetime(2026, 3, 15, 12, 0, 0)


class TestMonthBounds:
    def test_february_non_leap(self):
        assert month_bounds(2026, 2) == (date(2026, 2, 1), date(2026, 2, 28))

    def test_february_leap(self):
        assert month_bounds(2028, 2) == (date(2028, 2, 1), date(2028, 2, 29))

    def test_december(self):
        assert month_bounds(2026, 12) == (date(2026, 12, 1), date(2026, 12, 31))

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month(self, month):
        with pytest.raises(ValueError):
            month_bounds(2026, month)


class TestMeetingBundle:
    def test_missing_meeting(self, store):
        with pytest.raises(NotFound) as exc:
            Aggregator(store).meeting_bundle("nope", NOW)
        assert exc.value.entity == "Meeting"
        assert exc.value.entity_id == "nope"

    def test_people_resolved(self, store):
        bundle = Aggregator(store).meeting_bundle("m1", NOW)
        assert bundle.chairperson.name == "Ada Lovelace"
        assert bundle.minutes_taker.name == "Grace Hopper"
        assert [(e.user.name, e.user.role) for e in bundle.attendees] == [
            ("Ada Lovelace", "President"),
            ("Grace Hopper", "Secretary"),
            ("Alan Turing", "Member"),
        ]

    def test_action_items_classified(self, store):
        bundle = Aggregator(store).meeting_bundle("m1", NOW)
        assert [e.status for e in bundle.action_items] == [
            ActionStatus.OVERDUE, ActionStatus.COMPLETED,
        ]
        assert [e.overdue for e in bundle.action_items] == [True, False]
        assert bundle.action_items[0].assignee.name == "Grace Hopper"

    def test_dangling_references_become_placeholders(self, store, minutes_meeting, caplog):
        minutes_meeting.chairperson_id = "deleted"
        minutes_meeting.minutes_taker_id = None
        minutes_meeting.attendees.append(Attendee(user_id="ghost", status=AttendeeStatus.PRESENT))
        minutes_meeting.minutes.action_items.append(ActionItem(task="Orphan", assignee_id="ghost"))

        with caplog.at_level(logging.WARNING, logger="council_reports.aggregation"):
            bundle = Aggregator(store).meeting_bundle("m1", NOW)

        assert bundle.chairperson.name == NOT_SPECIFIED
        assert bundle.chairperson.resolved is False
        assert bundle.minutes_taker.name == NOT_SPECIFIED
        ghost = bundle.attendees[-1].user
        assert (ghost.name, ghost.role) == (UNKNOWN_USER, "Member")
        assert bundle.action_items[-1].assignee.name == UNASSIGNED
        assert "ghost" in caplog.text

    def test_missing_assignee_is_unassigned(self, store, minutes_meeting):
        minutes_meeting.minutes.action_items[0].assignee_id = None
        bundle = Aggregator(store).meeting_bundle("m1", NOW)
        assert bundle.action_items[0].assignee.name == UNASSIGNED

    def test_no_minutes_no_action_items(self, store, minutes_meeting):
        minutes_meeting.minutes = None
        assert Aggregator(store).meeting_bundle("m1", NOW).action_items == []


class TestMemberBundle:
    def test_missing_member(self, store):
        with pytest.raises(NotFound) as exc:
            Aggregator(store).member_bundle("nobody")
        assert exc.value.entity == "User"

    def test_member(self, store):
        bundle = Aggregator(store).member_bundle("u1")
        assert bundle.user.name == "Ada Lovelace"
        assert bundle.initials == "AL"
        assert bundle.trend == PERFORMANCE_TREND


class TestMonthlyBundle:
    def test_attendance_rates(self, make_store, make_meeting):
        meetings = [
            make_meeting("a", date(2026, 3, 2), ["u1", "u2"]),
            make_meeting("b", date(2026, 3, 9), ["u1"]),
            make_meeting("c", date(2026, 3, 16), ["u1", "u3"]),
            make_meeting("d", date(2026, 3, 23), ["u2"]),
            make_meeting("outside", date(2026, 4, 1), ["u1", "u2", "u3"]),
        ]
        bundle = Aggregator(make_store(meetings)).monthly_bundle(2026, 3, NOW)

        assert [m.id for m in bundle.meetings] == ["a", "b", "c", "d"]
        stats = {s.user_id: s for s in bundle.attendance}
        assert stats["u1"].attended == 3
        assert stats["u1"].attendance_rate == "75.0"
        assert stats["u2"].attendance_rate == "50.0"
        assert stats["u3"].attendance_rate == "25.0"
        assert all(s.total_meetings == 4 for s in bundle.attendance)

    def test_guests_excluded(self, make_store, make_meeting):
        bundle = Aggregator(make_store([
            make_meeting("a", date(2026, 3, 2), ["g1"]),
        ])).monthly_bundle(2026, 3, NOW)
        assert "g1" not in {s.user_id for s in bundle.attendance}
        assert "g1" not in {u.id for u in bundle.members}

    def test_attendance_ordered_by_name(self, make_store):
        bundle = Aggregator(make_store()).monthly_bundle(2026, 3, NOW)
        assert [s.name for s in bundle.attendance] == ["Ada Lovelace", "Alan Turing", "Grace Hopper"]

    def test_any_listed_attendee_counts(self, make_store, make_meeting):
        meeting = make_meeting("a", date(2026, 3, 2))
        meeting.attendees = [Attendee(user_id="u1", status=AttendeeStatus.ABSENT)]
        bundle = Aggregator(make_store([meeting])).monthly_bundle(2026, 3, NOW)
        stats = {s.user_id: s for s in bundle.attendance}
        assert stats["u1"].attendance_rate == "100.0"

    def test_month_edges_inclusive(self, make_store, make_meeting):
        bundle = Aggregator(make_store([
            make_meeting("first", date(2026, 3, 1)),
            make_meeting("last", date(2026, 3, 31)),
            make_meeting("before", date(2026, 2, 28)),
        ])).monthly_bundle(2026, 3, NOW)
        assert [m.id for m in bundle.meetings] == ["first", "last"]

    def test_empty_month(self, make_store):
        bundle = Aggregator(make_store()).monthly_bundle(2026, 3, NOW)
        assert bundle.meetings == []
        assert all(s.attendance_rate == "0.0" for s in bundle.attendance)
        assert bundle.breakdown.total == 0

    def test_action_items_across_meetings(self, make_store, make_meeting):
        meetings = [
            make_meeting("a", date(2026, 3, 2), action_items=[
                ActionItem(task="late", assignee_id="u2", deadline=datetime(2026, 3, 10)),
                ActionItem(task="done", status=ActionStatus.COMPLETED),
            ]),
            make_meeting("b", date(2026, 3, 9), action_items=[
                ActionItem(task="future", deadline=datetime(2026, 4, 1),
                           status=ActionStatus.IN_PROGRESS),
            ]),
            make_meeting("c", date(2026, 3, 12)),
        ]
        bundle = Aggregator(make_store(meetings)).monthly_bundle(2026, 3, NOW)

        assert len(bundle.action_items) == 3
        assert bundle.breakdown.counts() == {
            "pending": 0, "in_progress": 1, "completed": 1, "overdue": 1,
        }
        (late,) = bundle.overdue
        assert late.item.task == "late"
        assert late.assignee.name == "Grace Hopper"
        assert late.meeting_title == "Meeting a"

    def test_reads_both_collections(self, make_store):
        store = make_store()
        Aggregator(store).monthly_bundle(2026, 3, NOW)
        assert sorted(store.reads) == ["meetings_between", "members"]

    def test_invalid_month(self, make_store):
        with pytest.raises(ValueError):
            Aggregator(make_store()).monthly_bundle(2026, 13, NOW)
