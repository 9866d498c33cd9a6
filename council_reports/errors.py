"""Exceptions raised while building reports."""


class ReportError(Exception):
    """Base class for report build failures."""


class NotFound(ReportError):
    """The primary record a report is scoped to does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class ReportBuildError(ReportError):
    """Unexpected failure while building a report.

    Carries the report kind and scope so the caller can log and retry.
    The original exception is chained as ``__cause__``.
    """

    def __init__(self, report_kind: str, scope: dict, message: str):
        self.report_kind = report_kind
        self.scope = scope
        super().__init__(f"Failed to build {report_kind} report for {scope}: {message}")
