"""Flexible date and datetime parsing for command-line input."""

import re
from datetime import date, datetime, timedelta
from typing import Optional

from dailylog.retrieval.aggregator import add_months

DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %I:%M%p",
    "%Y-%m-%d %I:%M %p",
    "%Y-%m-%d %I:%M%p",
    "%b %d, %Y %H:%M",
    "%b %d, %Y %I:%M %p",
    "%d %b %Y %H:%M",
    "%d %b %Y %I:%M %p",
]

TIME_FORMATS = ["%H:%M", "%I:%M %p", "%I:%M%p", "%I%p", "%I %p", "%H"]

_RELATIVE_RE = re.compile(
    r"^(\d+)\s+(second|minute|hour|day|week|month|year)s?\s+(ago|from\s+now)$"
)


def _parse_time(text: str) -> Optional[datetime]:
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_relative(text: str, now: datetime) -> Optional[datetime]:
    match = _RELATIVE_RE.match(text)
    if not match:
        return None

    amount = int(match.group(1))
    unit = match.group(2)
    if match.group(3) == "ago":
        amount = -amount

    if unit == "month":
        return datetime.combine(add_months(now.date(), amount), now.time())
    if unit == "year":
        return datetime.combine(add_months(now.date(), amount * 12), now.time())
    return now + timedelta(**{f"{unit}s": amount})


def parse_flexible_datetime(value: str, now: Optional[datetime] = None) -> datetime:
    """Parse absolute, time-only and relative datetimes.

    Accepts e.g. "2025-09-29 14:30", "3:04 PM", "yesterday 3pm",
    "2 hours ago" and "1 week from now".
    """
    now = now or datetime.now()
    text = value.strip()

    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    parsed_time = _parse_time(text)
    if parsed_time is not None:
        return datetime.combine(now.date(), parsed_time.time())

    lower = text.lower()
    if lower in ("now", "today"):
        return now
    if lower == "yesterday":
        return now - timedelta(days=1)
    if lower == "tomorrow":
        return now + timedelta(days=1)

    relative = _parse_relative(lower, now)
    if relative is not None:
        return relative

    parts = lower.split(None, 1)
    if len(parts) == 2 and parts[0] in ("yesterday", "today", "tomorrow"):
        offset = {"yesterday": -1, "today": 0, "tomorrow": 1}[parts[0]]
        parsed_time = _parse_time(parts[1])
        if parsed_time is not None:
            base = now.date() + timedelta(days=offset)
            return datetime.combine(base, parsed_time.time().replace(second=0))

    raise ValueError(f"unable to parse datetime: {value}")


def parse_day(value: str, today: Optional[date] = None) -> date:
    """Parse YYYY-MM-DD or one of today/yesterday/tomorrow."""
    today = today or date.today()
    lower = value.strip().lower()
    if lower == "today":
        return today
    if lower == "yesterday":
        return today - timedelta(days=1)
    if lower == "tomorrow":
        return today + timedelta(days=1)
    try:
        return date.fromisoformat(lower)
    except ValueError:
        raise ValueError(f"invalid date: {value} (use YYYY-MM-DD)")
