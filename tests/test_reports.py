"""Tests for the report entry points."""

import logging
from datetime import date, datetime, timezone

import pytest

from council_reports import (
    build_meeting_minutes,
    build_member_performance,
    build_monthly_activity,
)
from council_reports.document import KeyValueBlock, ReportKind
from council_reports.errors import NotFound, ReportBuildError, ReportError
from council_reports.models import ActionItem, Caller
from council_reports.reports import meeting_filename, monthly_filename, performance_filename

NOW = datetime(2026, 3, 15, 12, 0, 0)
CALLER = Caller("Grace Hopper", "Secretary")


class TestEntryPoints:
    def test_meeting_minutes(self, store):
        doc = build_meeting_minutes(store, "m1", CALLER, now=NOW)
        assert doc.kind == ReportKind.MEETING_MINUTES
        assert len(doc.table("Attendees").rows) == 3
        actions = doc.table("Action Items")
        assert len(actions.rows) == 2
        assert actions.flagged_rows == (0,)

    def test_member_performance(self, store):
        doc = build_member_performance(store, "u1", CALLER, now=NOW)
        assert doc.kind == ReportKind.MEMBER_PERFORMANCE
        assert doc.title == "Performance Report: Ada Lovelace"

    def test_monthly_activity_empty(self, make_store):
        doc = build_monthly_activity(make_store(), 2026, 2, CALLER, now=NOW)
        pairs = dict(doc.of_type(KeyValueBlock)[0].pairs)
        assert pairs["Total Meetings"] == "0"
        assert pairs["Generated By"] == "Grace Hopper (Secretary)"
        attendance = doc.table("Attendance Statistics")
        assert attendance.header == ("Member", "Role", "Total", "Attended", "Rate %")
        assert all(row[4] == "0.0" for row in attendance.rows)

    def test_generated_by_only_on_monthly(self, store):
        for doc in (build_meeting_minutes(store, "m1", CALLER, now=NOW),
                    build_member_performance(store, "u1", CALLER, now=NOW)):
            assert "Generated By" not in doc.to_json()
            assert "Grace Hopper (Secretary)" not in doc.to_json()

    def test_generated_at_defaults_to_now(self, store):
        doc = build_meeting_minutes(store, "m1", now=NOW)
        assert "Generated: March 15, 2026" in doc.footer.fields

    def test_generated_at_only_changes_footer(self, store):
        a = build_meeting_minutes(store, "m1", now=NOW, generated_at=datetime(2026, 3, 15))
        b = build_meeting_minutes(store, "m1", now=NOW, generated_at=datetime(2026, 4, 1))
        assert a.sections[:-1] == b.sections[:-1]
        assert a.footer != b.footer

    def test_idempotent(self, store, make_store, make_meeting):
        assert (build_meeting_minutes(store, "m1", now=NOW).to_json()
                == build_meeting_minutes(store, "m1", now=NOW).to_json())
        monthly_store = make_store([make_meeting("a", date(2026, 3, 2), ["u1"], action_items=[
            ActionItem(task="late", deadline=datetime(2026, 3, 1)),
        ])])
        first = build_monthly_activity(monthly_store, 2026, 3, CALLER, now=NOW)
        second = build_monthly_activity(monthly_store, 2026, 3, CALLER, now=NOW)
        assert first.to_json() == second.to_json()

    def test_aware_now(self, store, make_store, make_meeting):
        aware_now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
        doc = build_meeting_minutes(store, "m1", now=aware_now)
        assert doc.table("Action Items").flagged_rows == (0,)
        assert "Generated: March 15, 2026" in doc.footer.fields

        monthly_store = make_store([make_meeting("a", date(2026, 3, 2), ["u1"], action_items=[
            ActionItem(task="late", deadline=datetime(2026, 3, 1)),
        ])])
        monthly = build_monthly_activity(monthly_store, 2026, 3, now=aware_now)
        assert len(monthly.table("Overdue Action Items").rows) == 1

    def test_overdue_depends_on_now(self, store):
        before = build_meeting_minutes(store, "m1", now=datetime(2026, 3, 1))
        assert before.table("Action Items").flagged_rows == ()


class TestFailures:
    def test_missing_meeting(self, store):
        with pytest.raises(NotFound, match="Meeting not found: nope"):
            build_meeting_minutes(store, "nope", now=NOW)

    def test_missing_member(self, store):
        with pytest.raises(NotFound, match="User not found: nobody"):
            build_member_performance(store, "nobody", now=NOW)

    def test_store_failure_wrapped(self, store, caplog):
        def broken(meeting_id):
            raise RuntimeError("connection lost")
        store.get_meeting = broken

        with caplog.at_level(logging.ERROR, logger="council_reports.reports"):
            with pytest.raises(ReportBuildError) as exc:
                build_meeting_minutes(store, "m1", now=NOW)

        err = exc.value
        assert err.report_kind == "meeting_minutes"
        assert err.scope == {"meeting_id": "m1"}
        assert isinstance(err.__cause__, RuntimeError)
        assert "connection lost" in caplog.text

    def test_invalid_month_wrapped(self, make_store):
        with pytest.raises(ReportBuildError) as exc:
            build_monthly_activity(make_store(), 2026, 13, now=NOW)
        assert isinstance(exc.value.__cause__, ValueError)
        assert exc.value.scope == {"year": 2026, "month": 13}

    def test_malformed_status_wrapped(self, store, minutes_meeting):
        minutes_meeting.minutes.action_items[0].status = "blocked"
        with pytest.raises(ReportError):
            build_meeting_minutes(store, "m1", now=NOW)

    def test_not_found_is_report_error(self):
        assert issubclass(NotFound, ReportError)
        assert issubclass(ReportBuildError, ReportError)


class TestFilenames:
    def test_names(self, members):
        assert meeting_filename("m1") == "SIT-Meeting-m1"
        assert monthly_filename(2026, 3) == "SIT-Monthly-Report-2026-3"
        assert performance_filename(members[0]) == "SIT-Performance-SIT-1"
        assert performance_filename(members[1]) == "SIT-Performance-Grace Hopper"
