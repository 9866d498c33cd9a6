"""Normalization utilities for dates and display strings.

All parsing functions handle None, empty strings, "N/A", "-" gracefully
by returning None instead of raising exceptions.
"""

from datetime import date, datetime, timezone
from typing import Optional

from dateutil import parser as dateutil_parser


# Values that should be treated as "no data"
_EMPTY_VALUES = {None, "", "N/A", "n/a", "NA", "na", "-", "--", "None", "none", "null"}

MISSING_DATE = "N/A"


def _is_empty(value) -> bool:
    """Check if a value represents missing data."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in _EMPTY_VALUES
    return False


def parse_datetime(value) -> Optional[datetime]:
    """Parse a date or timestamp into a naive datetime.

    Handles datetime and date objects, ISO strings ("2026-03-14",
    "2026-03-14T17:00:00") and anything else dateutil understands
    ("March 14, 2026"). Timezone-aware values are converted to naive UTC
    so they compare against naive ``now`` values.

    Returns:
        datetime, or None if the value is empty or unparseable.
    """
    if _is_empty(value):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = dateutil_parser.parse(str(value).strip())
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value) -> Optional[date]:
    """Parse a value into a date. Returns None if empty or unparseable."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def format_date(value) -> str:
    """Format a date the single way reports print dates: "October 19, 2026".

    Missing or unparseable values render as "N/A".
    """
    parsed = parse_date(value)
    if parsed is None:
        return MISSING_DATE
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def truncate(text: Optional[str], limit: int, marker: str = "...") -> str:
    """Cut text to ``limit`` characters, appending ``marker`` when cut."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + marker
