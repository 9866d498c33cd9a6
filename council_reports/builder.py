"""Turns aggregated bundles into DocumentModels.

Section order is fixed per report kind. Page breaks go before the
top-level sections listed in PAGE_BREAKS_BEFORE. Table cells are truncated
to CELL_MAX_CHARS; paragraphs are never truncated.
"""

import logging
from datetime import datetime
from typing import Optional

from council_reports.aggregation import (
    ActionEntry,
    MeetingBundle,
    MemberBundle,
    MonthlyBundle,
)
from council_reports.document import (
    DocumentModel,
    Footer,
    Heading,
    KeyValueBlock,
    PageBreak,
    Paragraph,
    ReportKind,
    SignatureBlock,
    Table,
)
from council_reports.metrics import task_completion_rate
from council_reports.models import (
    ActionStatus,
    AgendaStatus,
    AttendeeStatus,
    Caller,
    MeetingStatus,
    MeetingType,
    Priority,
)
from council_reports.utils.normalization import format_date, truncate

logger = logging.getLogger(__name__)

ORGANIZATION = "SIT STUDENT COUNCIL"
ORGANIZATION_TITLE = "SIT Student Council"
CELL_MAX_CHARS = 50
TO_BE_DETERMINED = "To be determined"
PAGE_PLACEHOLDER = "Page {page}"
MIN_HEALTHY_MEETINGS = 4

# Top-level sections that start on a new page.
PAGE_BREAKS_BEFORE = {
    ReportKind.MEETING_MINUTES: {"attendees", "agenda", "minutes", "next_meeting", "approvals"},
    ReportKind.MEMBER_PERFORMANCE: {"trend"},
    ReportKind.MONTHLY_ACTIVITY: {"attendance", "action_items", "recommendations"},
}

# ── Labels ───────────────────────────────────────────────────────────────
# One table per enumeration; every member must have a label.

STATUS_LABELS = {
    MeetingType: {
        MeetingType.REGULAR: "Regular",
        MeetingType.RANDOM: "Random",
        MeetingType.SPECIAL: "Special",
        MeetingType.COMMITTEE: "Committee",
    },
    MeetingStatus: {
        MeetingStatus.SCHEDULED: "Scheduled",
        MeetingStatus.IN_PROGRESS: "In-progress",
        MeetingStatus.COMPLETED: "Completed",
        MeetingStatus.CANCELLED: "Cancelled",
    },
    AttendeeStatus: {
        AttendeeStatus.PENDING: "Pending",
        AttendeeStatus.PRESENT: "Present",
        AttendeeStatus.ABSENT: "Absent",
        AttendeeStatus.LATE: "Late",
    },
    AgendaStatus: {
        AgendaStatus.PENDING: "Pending",
        AgendaStatus.IN_PROGRESS: "In-progress",
        AgendaStatus.COMPLETED: "Completed",
        AgendaStatus.DEFERRED: "Deferred",
    },
    ActionStatus: {
        ActionStatus.PENDING: "Pending",
        ActionStatus.IN_PROGRESS: "In-progress",
        ActionStatus.COMPLETED: "Completed",
        ActionStatus.OVERDUE: "Overdue",
    },
    Priority: {
        Priority.HIGH: "High",
        Priority.MEDIUM: "Medium",
        Priority.LOW: "Low",
    },
}

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def label(value) -> str:
    """Display label for an enum member. Raises KeyError for unlabelled values."""
    return STATUS_LABELS[type(value)][value]


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1] if 1 <= month <= 12 else "Unknown"


def cell(text) -> str:
    """Table cell text, cut to CELL_MAX_CHARS with an ellipsis."""
    return truncate("" if text is None else str(text), CELL_MAX_CHARS)


def build_table(title: str, header, col_widths, rows, flagged_rows=()) -> Table:
    """Table section with every cell truncated.

    An empty ``rows`` still yields a table carrying its header.
    """
    return Table(
        title=title,
        header=tuple(header),
        col_widths=tuple(col_widths),
        rows=tuple(tuple(cell(c) for c in row) for row in rows),
        flagged_rows=tuple(flagged_rows),
    )


class DocumentBuilder:
    """Builds the DocumentModel for a report kind from its bundle.

    ``generated_at`` only feeds footer text, so two builds with the same
    bundle and timestamp produce identical models.
    """

    def __init__(self, generated_at: datetime, caller: Optional[Caller] = None):
        self.generated_at = generated_at
        self.caller = caller
        self._builders = {
            ReportKind.MEETING_MINUTES: (MeetingBundle, self._meeting_minutes),
            ReportKind.MEMBER_PERFORMANCE: (MemberBundle, self._member_performance),
            ReportKind.MONTHLY_ACTIVITY: (MonthlyBundle, self._monthly_activity),
        }

    def build(self, kind: ReportKind, bundle) -> DocumentModel:
        kind = ReportKind(kind)
        bundle_type, build = self._builders[kind]
        if not isinstance(bundle, bundle_type):
            raise TypeError(
                f"{kind.value} report needs a {bundle_type.__name__}, "
                f"got {type(bundle).__name__}"
            )
        doc = build(bundle)
        logger.debug(f"Built {kind.value} document with {len(doc.sections)} sections")
        return doc

    # ---- Helpers ----

    @staticmethod
    def _top_level(doc: DocumentModel, name: str, heading: str):
        """Start a top-level section, with a page break if its kind wants one."""
        if name in PAGE_BREAKS_BEFORE[doc.kind]:
            doc.add(PageBreak())
        doc.add(Heading(heading, level=2))

    @staticmethod
    def _numbered(doc: DocumentModel, lines, indent: int = 20):
        for i, line in enumerate(lines, 1):
            doc.add(Paragraph(f"{i}. {line}", indent=indent))

    @staticmethod
    def _bullets(doc: DocumentModel, lines, indent: int = 20):
        for line in lines:
            doc.add(Paragraph(f"• {line}", indent=indent))

    def _generated(self) -> str:
        return format_date(self.generated_at)

    # ── Meeting minutes ──────────────────────────────────────────────────

    def _meeting_minutes(self, bundle: MeetingBundle) -> DocumentModel:
        m = bundle.meeting
        doc = DocumentModel(kind=ReportKind.MEETING_MINUTES, title=f"Meeting Minutes: {m.title}")

        doc.add(
            Heading(ORGANIZATION, level=1, align="center"),
            Heading("OFFICIAL MEETING MINUTES", level=2, align="center"),
        )

        self._top_level(doc, "details", "MEETING DETAILS")
        doc.add(KeyValueBlock(pairs=(
            ("Title", m.title),
            ("Date", format_date(m.date)),
            ("Type", label(m.type)),
            ("Time", f"{m.start_time} - {m.end_time}"),
            ("Location", m.location or "Not specified"),
            ("Status", label(m.status)),
            ("Chairperson", bundle.chairperson.name),
            ("Minutes Taker", bundle.minutes_taker.name),
        ), columns=2))

        if m.objective:
            self._top_level(doc, "objectives", "MEETING OBJECTIVES")
            doc.add(Paragraph(m.objective))

        self._top_level(doc, "attendees", "ATTENDEES")
        doc.add(build_table(
            "Attendees",
            ("No.", "Name", "Role", "Status"),
            (30, 200, 150, 100),
            [
                (str(i), entry.user.name, entry.user.role, label(entry.attendee.status))
                for i, entry in enumerate(bundle.attendees, 1)
            ],
        ))

        if m.agenda:
            self._top_level(doc, "agenda", "AGENDA ITEMS")
            for i, item in enumerate(m.agenda, 1):
                doc.add(Paragraph(f"{i}. {item.title}", indent=20))
                doc.add(Paragraph(
                    f"Presenter: {item.presenter or 'Not specified'} | "
                    f"Duration: {item.duration_minutes} mins | "
                    f"Status: {label(item.status)}",
                    indent=20, style="small",
                ))
                if item.description:
                    doc.add(Paragraph(f"Description: {item.description}", indent=40, style="small"))

        self._minutes(doc, bundle)

        self._top_level(doc, "approvals", "APPROVALS")
        taker, chair = bundle.minutes_taker, bundle.chairperson
        doc.add(
            SignatureBlock(
                label="Prepared by:",
                name=taker.name if taker.resolved else "Secretary",
                title=taker.role if taker.resolved else ORGANIZATION_TITLE,
            ),
            SignatureBlock(
                label="Approved by:",
                name=chair.name if chair.resolved else "Chairperson",
                title=chair.role if chair.resolved else ORGANIZATION_TITLE,
            ),
        )

        doc.add(Footer(fields=(
            f"Document ID: SIT-MIN-{m.id}",
            f"Generated: {self._generated()}",
            PAGE_PLACEHOLDER,
        )))
        return doc

    def _minutes(self, doc: DocumentModel, bundle: MeetingBundle):
        minutes = bundle.meeting.minutes
        self._top_level(doc, "minutes", "MEETING MINUTES")
        if minutes is None:
            doc.add(Paragraph("Minutes have not been recorded for this meeting."))
        else:
            if minutes.summary:
                doc.add(Paragraph("Summary:", style="label"))
                doc.add(Paragraph(minutes.summary, indent=20))
            if minutes.decisions:
                doc.add(Paragraph("Decisions Made:", style="label"))
                self._numbered(doc, minutes.decisions)

        doc.add(Paragraph("Action Items:", style="label"))
        doc.add(self._action_items_table(bundle.action_items))

        next_meeting = minutes.next_meeting if minutes else None
        if next_meeting:
            self._top_level(doc, "next_meeting", "NEXT MEETING")
            doc.add(KeyValueBlock(pairs=(
                ("Date", format_date(next_meeting.date) if next_meeting.date else TO_BE_DETERMINED),
                ("Time", next_meeting.time or TO_BE_DETERMINED),
                ("Location", next_meeting.location or TO_BE_DETERMINED),
            )))
            if next_meeting.agenda:
                doc.add(Paragraph("Proposed Agenda:", style="label"))
                doc.add(Paragraph(next_meeting.agenda, indent=20))

    def _action_items_table(self, entries: list[ActionEntry]) -> Table:
        rows = [
            (entry.item.task, entry.assignee.name, format_date(entry.item.deadline), label(entry.status))
            for entry in entries
        ]
        flagged = [i for i, entry in enumerate(entries) if entry.overdue]
        return build_table(
            "Action Items",
            ("Task", "Assignee", "Deadline", "Status"),
            (250, 100, 80, 80),
            rows,
            flagged,
        )

    # ── Member performance ───────────────────────────────────────────────

    def _member_performance(self, bundle: MemberBundle) -> DocumentModel:
        user = bundle.user
        perf = user.performance
        doc = DocumentModel(kind=ReportKind.MEMBER_PERFORMANCE, title=f"Performance Report: {user.name}")

        doc.add(
            Heading(ORGANIZATION, level=1, align="center"),
            Heading("PERFORMANCE REPORT", level=2, align="center"),
        )

        self._top_level(doc, "member", "MEMBER INFORMATION")
        doc.add(KeyValueBlock(pairs=(
            ("Name", user.name),
            ("Initials", bundle.initials),
            ("Role", user.role.value),
            ("Student ID", user.student_id or "N/A"),
            ("Department", user.department or "N/A"),
            ("Join Date", format_date(user.join_date)),
        )))

        self._top_level(doc, "metrics", "PERFORMANCE METRICS")
        doc.add(build_table(
            "Performance Metrics",
            ("Metric", "Value"),
            (250, 150),
            [
                ("Meetings Attended", str(perf.meetings_attended)),
                ("Tasks Completed", str(perf.tasks_completed)),
                ("Performance Rating", f"{perf.rating:.1f}/5"),
                ("Current Streak", str(perf.streak)),
                ("Achievement Points", str(perf.points)),
            ],
        ))

        if perf.achievements:
            self._top_level(doc, "achievements", "ACHIEVEMENTS")
            self._numbered(doc, perf.achievements)

        self._top_level(doc, "trend", "PERFORMANCE TREND")
        doc.add(Paragraph("Monthly Performance Overview:", style="label"))
        doc.add(build_table(
            "Performance Trend",
            ("Month", "Score"),
            (100, 300),
            [(month, f"{score:.1f}") for month, score in bundle.trend],
        ))

        doc.add(Footer(fields=(
            f"Report Generated: {self._generated()}",
            f"{ORGANIZATION_TITLE} - Performance Management System",
        )))
        return doc

    # ── Monthly activity ─────────────────────────────────────────────────

    def _monthly_activity(self, bundle: MonthlyBundle) -> DocumentModel:
        period = f"{month_name(bundle.month)} {bundle.year}"
        doc = DocumentModel(kind=ReportKind.MONTHLY_ACTIVITY, title=f"Monthly Activity Report: {period}")

        doc.add(
            Heading(ORGANIZATION, level=1, align="center"),
            Heading("MONTHLY ACTIVITY REPORT", level=2, align="center"),
            Heading(period, level=3, align="center"),
        )

        self._top_level(doc, "summary", "EXECUTIVE SUMMARY")
        doc.add(KeyValueBlock(pairs=(
            ("Total Meetings", str(len(bundle.meetings))),
            ("Total Council Members", str(len(bundle.members))),
            ("Report Period", f"{format_date(bundle.start)} to {format_date(bundle.end)}"),
            ("Generated By", str(self.caller) if self.caller else "N/A"),
        )))

        self._top_level(doc, "meetings", "MEETINGS SUMMARY")
        if not bundle.meetings:
            doc.add(Paragraph("No meetings were held in this period."))
        for i, meeting in enumerate(bundle.meetings, 1):
            doc.add(Paragraph(f"{i}. {meeting.title}", indent=20))
            doc.add(Paragraph(
                f"Date: {format_date(meeting.date)} | Type: {label(meeting.type)} | "
                f"Status: {label(meeting.status)}",
                indent=40, style="small",
            ))

        self._top_level(doc, "attendance", "ATTENDANCE STATISTICS")
        doc.add(build_table(
            "Attendance Statistics",
            ("Member", "Role", "Total", "Attended", "Rate %"),
            (150, 100, 80, 80, 80),
            [
                (s.name, s.role, str(s.total_meetings), str(s.attended), s.attendance_rate)
                for s in bundle.attendance
            ],
        ))

        breakdown = bundle.breakdown
        self._top_level(doc, "action_items", "ACTION ITEMS SUMMARY")
        doc.add(KeyValueBlock(pairs=(
            ("Total Action Items", str(len(bundle.action_items))),
            ("Pending", str(len(breakdown.pending))),
            ("In Progress", str(len(breakdown.in_progress))),
            ("Completed", str(len(breakdown.completed))),
            ("Overdue", str(len(breakdown.overdue))),
            ("Task Completion Rate %",
             task_completion_rate(len(breakdown.completed), len(bundle.action_items))),
        ), columns=2))
        doc.add(Heading("OVERDUE ACTION ITEMS", level=3))
        doc.add(build_table(
            "Overdue Action Items",
            ("Task", "Assignee", "Meeting", "Due"),
            (200, 100, 130, 80),
            [
                (e.item.task, e.assignee.name, e.meeting_title, format_date(e.item.deadline))
                for e in breakdown.overdue
            ],
            range(len(breakdown.overdue)),
        ))

        self._top_level(doc, "recommendations", "RECOMMENDATIONS & NOTES")
        doc.add(Paragraph("Key Achievements:", style="label"))
        self._bullets(doc, recommendations_achievements(bundle))
        doc.add(Paragraph("Areas for Improvement:", style="label"))
        self._bullets(doc, recommendations_improvements(bundle))

        doc.add(Footer(fields=(
            f"Report Generated: {self._generated()}",
            f"Confidential - {ORGANIZATION_TITLE} Internal Use Only",
            PAGE_PLACEHOLDER,
        )))
        return doc


def recommendations_achievements(bundle: MonthlyBundle) -> list[str]:
    return [
        f"Successfully conducted {len(bundle.meetings)} meetings",
        f"{len(bundle.breakdown.completed)} action items completed",
        f"{len(bundle.members)} active council members",
    ]


def recommendations_improvements(bundle: MonthlyBundle) -> list[str]:
    overdue = len(bundle.breakdown.overdue)
    return [
        f"Address {overdue} overdue action items" if overdue else "All action items are on track",
        "Consider increasing meeting frequency"
        if len(bundle.meetings) < MIN_HEALTHY_MEETINGS else "Meeting frequency is adequate",
        "Continue monitoring member participation",
    ]
