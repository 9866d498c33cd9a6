"""Report entry points: one per report kind.

Each entry point aggregates records from the store, builds the document
model and returns it. Access control happens before these are called;
the caller identity is only used for display.

Failures:
    NotFound is raised unchanged when the meeting or member does not exist.
    Anything else is logged with the report kind and scope and re-raised as
    ReportBuildError. Nothing is retried here.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from council_reports.aggregation import Aggregator
from council_reports.builder import DocumentBuilder
from council_reports.document import DocumentModel, ReportKind
from council_reports.errors import NotFound, ReportBuildError
from council_reports.models import Caller, UserProfile
from council_reports.store import RecordStore
from council_reports.utils.normalization import parse_datetime

logger = logging.getLogger(__name__)


@contextmanager
def _report_failures(kind: ReportKind, scope: dict):
    try:
        yield
    except NotFound as e:
        logger.warning(f"{kind.value} report for {scope}: {e}")
        raise
    except ReportBuildError:
        raise
    except Exception as e:
        logger.error(f"Failed to build {kind.value} report for {scope}: {type(e).__name__}: {e}")
        raise ReportBuildError(kind.value, scope, f"{type(e).__name__}: {e}") from e


def build_meeting_minutes(
    store: RecordStore,
    meeting_id: str,
    caller: Optional[Caller] = None,
    now: Optional[datetime] = None,
    generated_at: Optional[datetime] = None,
) -> DocumentModel:
    """Build the official minutes document for one meeting.

    Args:
        store: Record store to read from.
        meeting_id: Meeting to report on.
        caller: Who asked for the report. Not printed on minutes.
        now: Reference time for overdue detection. Defaults to the current time.
        generated_at: Timestamp printed in the footer. Defaults to ``now``.

    Returns:
        DocumentModel of kind MEETING_MINUTES.
    """
    kind = ReportKind.MEETING_MINUTES
    now = parse_datetime(now) or datetime.now()
    with _report_failures(kind, {"meeting_id": meeting_id}):
        bundle = Aggregator(store).meeting_bundle(meeting_id, now)
        doc = DocumentBuilder(generated_at or now, caller).build(kind, bundle)
    logger.info(f"Built meeting minutes for {meeting_id} ({len(doc.sections)} sections)")
    return doc


def build_member_performance(
    store: RecordStore,
    user_id: str,
    caller: Optional[Caller] = None,
    now: Optional[datetime] = None,
    generated_at: Optional[datetime] = None,
) -> DocumentModel:
    """Build the performance report for one member.

    Shows the performance block stored on the member record as-is; nothing
    is recomputed from meeting history.
    """
    kind = ReportKind.MEMBER_PERFORMANCE
    now = parse_datetime(now) or datetime.now()
    with _report_failures(kind, {"user_id": user_id}):
        bundle = Aggregator(store).member_bundle(user_id)
        doc = DocumentBuilder(generated_at or now, caller).build(kind, bundle)
    logger.info(f"Built performance report for {user_id}")
    return doc


def build_monthly_activity(
    store: RecordStore,
    year: int,
    month: int,
    caller: Optional[Caller] = None,
    now: Optional[datetime] = None,
    generated_at: Optional[datetime] = None,
) -> DocumentModel:
    """Build the organisation-wide activity report for a calendar month.

    The caller is printed in the executive summary's "Generated By" field.
    """
    kind = ReportKind.MONTHLY_ACTIVITY
    now = parse_datetime(now) or datetime.now()
    with _report_failures(kind, {"year": year, "month": month}):
        bundle = Aggregator(store).monthly_bundle(year, month, now)
        doc = DocumentBuilder(generated_at or now, caller).build(kind, bundle)
    logger.info(f"Built monthly activity report for {year}-{month:02d}")
    return doc


# ---- Artifact naming ----

def meeting_filename(meeting_id: str) -> str:
    return f"SIT-Meeting-{meeting_id}"


def performance_filename(user: UserProfile) -> str:
    return f"SIT-Performance-{user.student_id or user.name}"


def monthly_filename(year: int, month: int) -> str:
    return f"SIT-Monthly-Report-{year}-{month}"
