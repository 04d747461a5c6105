"""
Date parsing and day arithmetic for sheet values.

All datetimes handed to the services are naive; aware values are converted
to UTC first so rows from the Apps Script backend (ISO with Z) and rows from
an Excel export (naive) compare cleanly.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

import pandas as pd

SECONDS_PER_DAY = 86400

_STRING_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%d/%m/%Y",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d.%m.%Y",
    "%Y/%m/%d",
)

# "Mon Jan 01 2024 00:00:00 GMT+0200 (Israel Standard Time)"
_JS_DATE_STRING = re.compile(
    r"^[A-Z][a-z]{2} ([A-Z][a-z]{2} \d{2} \d{4} \d{2}:\d{2}:\d{2}) GMT([+-]\d{4})"
)


def to_naive_utc(value: datetime) -> datetime:
    """Drop tzinfo after converting aware datetimes to UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_sheet_date(value: Any) -> Optional[datetime]:
    """
    Parse a sheet cell into a naive datetime.

    Accepts datetime/date objects, pandas Timestamps, ISO strings (with or
    without Z), day-first strings used in the Hebrew sheet, and the
    JavaScript Date.toString() output the Apps Script backend produces.

    Args:
        value: Raw cell value

    Returns:
        Naive datetime, or None if value is empty or unparseable
    """
    if value is None:
        return None
    if isinstance(value, float) and value != value:  # NaN
        return None
    if value is pd.NaT:
        return None

    if isinstance(value, pd.Timestamp):
        return to_naive_utc(value.to_pydatetime())
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    value_str = str(value).strip()
    if not value_str:
        return None

    js_match = _JS_DATE_STRING.match(value_str)
    if js_match:
        try:
            parsed = datetime.strptime(
                f"{js_match.group(1)} {js_match.group(2)}",
                "%b %d %Y %H:%M:%S %z"
            )
            return to_naive_utc(parsed)
        except ValueError:
            return None

    try:
        return to_naive_utc(datetime.fromisoformat(value_str.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in _STRING_FORMATS:
        try:
            return datetime.strptime(value_str, fmt)
        except ValueError:
            continue

    return None


def whole_days_between(start: datetime, end: datetime) -> int:
    """
    Whole days from start to end, floored.

    Negative when end precedes start (e.g. a future-dated row).
    """
    return int((end - start).total_seconds() // SECONDS_PER_DAY)


def resolve_reference_now(as_of: Optional[datetime] = None) -> datetime:
    """Reference time for a request: as_of (naive UTC) or the current UTC time."""
    if as_of is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    return to_naive_utc(as_of)
