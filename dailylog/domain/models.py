"""Domain models for daily log entries, day logs and query records."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Union

from dailylog.domain.errors import ValidationError

STATUS_MIN = 1
STATUS_MAX = 10
PRIORITY_MIN = 1
PRIORITY_MAX = 5

_FRACTION_RE = re.compile(r"\.(\d+)")


class EntryType(Enum):
    """Types of log entries."""
    ACTIVITY = "activity"
    STATUS = "status"
    NOTE = "note"
    SUMMARY = "summary"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class SearchMode(Enum):
    """How a search treats its result limit."""
    FIRST = "first"    # stop at the first `limit` matches in date order
    LATEST = "latest"  # scan the whole window, keep the newest `limit` matches


def parse_date(value: Union[str, date]) -> date:
    """Parse a YYYY-MM-DD date, tolerating a trailing time component."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO 8601 / RFC 3339 timestamp into a naive local datetime.

    Fractions longer than microseconds (as written by nanosecond clocks) are
    truncated, and timezone-aware values are converted to local time.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def validate_entry_type(value: Union[str, EntryType]) -> EntryType:
    """Coerce a type tag into an EntryType."""
    if isinstance(value, EntryType):
        return value
    try:
        return EntryType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            "type", f"must be one of {', '.join(EntryType.values())}, got {value!r}"
        )


def validate_status(value: int, field_name: str = "status") -> None:
    if value != 0 and not STATUS_MIN <= value <= STATUS_MAX:
        raise ValidationError(
            field_name, f"must be between {STATUS_MIN} and {STATUS_MAX} (0 means unset), got {value}"
        )


def validate_priority(value: int) -> None:
    if value != 0 and not PRIORITY_MIN <= value <= PRIORITY_MAX:
        raise ValidationError(
            "priority",
            f"must be between {PRIORITY_MIN} and {PRIORITY_MAX} (0 means unset), got {value}"
        )


def validate_duration(value: Optional[int]) -> None:
    if value is not None and value < 0:
        raise ValidationError("duration", f"must not be negative, got {value}")


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Strip tags and drop empties and duplicates, keeping first occurrence."""
    seen = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


@dataclass
class Entry:
    """A single logged item owned by exactly one day log."""

    id: str
    timestamp: datetime
    entry_type: EntryType
    title: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    status: int = 0
    priority: int = 0
    duration: Optional[int] = None
    location: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.entry_type = validate_entry_type(self.entry_type)
        self.tags = normalize_tags(self.tags)

    def has_any_tag(self, tags: List[str]) -> bool:
        return any(tag in self.tags for tag in tags)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.entry_type.value,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "status": self.status,
            "priority": self.priority,
            "duration": self.duration,
            "location": self.location,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        entry_type = data.get("type", EntryType.NOTE.value)
        # Records written before the mood -> status rename
        if entry_type == "mood":
            entry_type = EntryType.STATUS.value

        return cls(
            id=data["id"],
            timestamp=parse_timestamp(data["timestamp"]),
            entry_type=entry_type,
            title=data.get("title", ""),
            description=data.get("description") or "",
            tags=data.get("tags") or [],
            status=int(data.get("status", data.get("mood", 0)) or 0),
            priority=int(data.get("priority") or 0),
            duration=data.get("duration"),
            location=data.get("location") or "",
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
        )


@dataclass
class DayLog:
    """All entries for a single calendar date.

    `status_average` and `total_entries` are derived from `entries` and are
    recomputed after every mutation; they are never set directly.
    """

    date: date
    entries: List[Entry] = field(default_factory=list)
    day_summary: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
    status_average: float = field(default=0.0, init=False)
    total_entries: int = field(default=0, init=False)

    def __post_init__(self):
        self._recalculate()

    def add_entry(self, entry: Entry) -> None:
        self.entries.append(entry)
        self.updated_at = datetime.now()
        self._recalculate()

    def update_entry(self, entry_id: str, updated: Entry) -> bool:
        """Replace the entry with `entry_id`. Returns False if it is absent."""
        for i, entry in enumerate(self.entries):
            if entry.id == entry_id:
                self.entries[i] = updated
                self.updated_at = datetime.now()
                self._recalculate()
                return True
        return False

    def remove_entry(self, entry_id: str) -> bool:
        """Remove the entry with `entry_id`. Returns False if it is absent."""
        for i, entry in enumerate(self.entries):
            if entry.id == entry_id:
                del self.entries[i]
                self.updated_at = datetime.now()
                self._recalculate()
                return True
        return False

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def get_entries_by_type(self, entry_type: Union[str, EntryType]) -> List[Entry]:
        wanted = validate_entry_type(entry_type)
        return [entry for entry in self.entries if entry.entry_type == wanted]

    def get_entries_by_tag(self, tag: str) -> List[Entry]:
        return [entry for entry in self.entries if tag in entry.tags]

    def _recalculate(self) -> None:
        self.total_entries = len(self.entries)
        rated = [entry.status for entry in self.entries if entry.status > 0]
        self.status_average = sum(rated) / len(rated) if rated else 0.0

    @property
    def date_string(self) -> str:
        return self.date.isoformat()

    @property
    def filename(self) -> str:
        return f"{self.date_string}.json"

    @property
    def is_empty(self) -> bool:
        return self.total_entries == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date_string,
            "entries": [entry.to_dict() for entry in self.entries],
            "day_summary": self.day_summary,
            "status_average": self.status_average,
            "total_entries": self.total_entries,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayLog":
        now = datetime.now()
        created_at = data.get("created_at")
        updated_at = data.get("updated_at")
        return cls(
            date=parse_date(data["date"]),
            entries=[Entry.from_dict(item) for item in data.get("entries") or []],
            day_summary=data.get("day_summary") or "",
            created_at=parse_timestamp(created_at) if created_at else now,
            updated_at=parse_timestamp(updated_at) if updated_at else now,
            metadata=data.get("metadata") or {},
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "DayLog":
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return cls.from_dict(json.loads(data))


@dataclass
class WeekLog:
    """Monday-to-Sunday view over the day logs of one week."""

    week_start: date
    week_end: date
    days: List[DayLog] = field(default_factory=list)
    week_summary: str = ""
    total_entries: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "days": [day.to_dict() for day in self.days],
            "week_summary": self.week_summary,
            "total_entries": self.total_entries,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class MonthLog:
    """View over the day logs of one calendar month."""

    month: str  # "2025-09"
    year: int
    days: List[DayLog] = field(default_factory=list)
    month_summary: str = ""
    total_entries: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "year": self.year,
            "days": [day.to_dict() for day in self.days],
            "month_summary": self.month_summary,
            "total_entries": self.total_entries,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class LogSearchRequest:
    """Independent optional filters for a log search.

    With `SearchMode.FIRST` a positive `limit` stops the scan at the first
    `limit` matches in ascending date order; the result is best-effort and
    not a top-K by any ranking. `SearchMode.LATEST` scans the full window and
    keeps the newest `limit` matches.
    """

    date_start: Optional[date] = None
    date_end: Optional[date] = None
    entry_type: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    status_min: Optional[int] = None
    status_max: Optional[int] = None
    query: str = ""
    limit: int = 0
    metadata: Dict[str, str] = field(default_factory=dict)
    mode: SearchMode = SearchMode.FIRST
    include_days: bool = False

    def validate(self) -> None:
        if self.entry_type:
            self.entry_type = validate_entry_type(self.entry_type).value
        if self.status_min is not None:
            validate_status(self.status_min, "status_min")
        if self.status_max is not None:
            validate_status(self.status_max, "status_max")
        if self.limit < 0:
            raise ValidationError("limit", f"must not be negative, got {self.limit}")
        if self.date_start and self.date_end and self.date_start > self.date_end:
            raise ValidationError("date_start", "must not be after date_end")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date_start": self.date_start.isoformat() if self.date_start else None,
            "date_end": self.date_end.isoformat() if self.date_end else None,
            "type": self.entry_type,
            "tags": list(self.tags),
            "status_min": self.status_min,
            "status_max": self.status_max,
            "query": self.query,
            "limit": self.limit,
            "metadata": dict(self.metadata),
            "mode": self.mode.value,
        }


@dataclass
class LogSearchResponse:
    """Matched entries plus an echo of the originating request."""

    entries: List[Entry]
    request: LogSearchRequest
    total_count: int = 0
    days: List[DayLog] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "entries": [entry.to_dict() for entry in self.entries],
            "total_count": self.total_count,
            "search_query": self.request.to_dict(),
        }
        if self.days:
            result["days"] = [day.to_dict() for day in self.days]
        return result


@dataclass
class CreateEntryRequest:
    """Request to append a new entry to a day log.

    The owning day is `date` if given, otherwise the date of `timestamp`
    (or today). When only `date` is given the entry is stamped with the
    current time of day on that date.
    """

    title: str
    entry_type: Union[str, EntryType] = EntryType.ACTIVITY
    date: Optional[date] = None
    timestamp: Optional[datetime] = None
    description: str = ""
    tags: List[str] = field(default_factory=list)
    status: int = 0
    priority: int = 0
    duration: Optional[int] = None
    location: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("title", "is required")
        self.entry_type = validate_entry_type(self.entry_type)
        validate_status(self.status)
        validate_priority(self.priority)
        validate_duration(self.duration)

    def resolve_timestamp(self) -> datetime:
        now = datetime.now()
        if self.timestamp is not None:
            return self.timestamp
        if self.date is not None:
            return datetime.combine(self.date, now.time())
        return now

    def day(self, timestamp: Optional[datetime] = None) -> date:
        """The owning day; pass the already resolved timestamp to avoid a second clock read."""
        if self.date is not None:
            return self.date
        return (timestamp or self.resolve_timestamp()).date()


@dataclass
class UpdateEntryRequest:
    """Partial update of an existing entry; `None` fields are left unchanged.

    The owning `date` is required: entries cannot be located by id alone.
    """

    id: str
    date: Optional[date] = None
    entry_type: Optional[Union[str, EntryType]] = None
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[int] = None
    priority: Optional[int] = None
    duration: Optional[int] = None
    location: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None

    def validate(self) -> None:
        if not self.id:
            raise ValidationError("id", "is required")
        if self.date is None:
            raise ValidationError("date", "is required to locate the entry's day log")
        if self.title is not None and not self.title.strip():
            raise ValidationError("title", "must not be empty")
        if self.entry_type is not None:
            self.entry_type = validate_entry_type(self.entry_type)
        if self.status is not None:
            validate_status(self.status)
        if self.priority is not None:
            validate_priority(self.priority)
        validate_duration(self.duration)

    def apply(self, entry: Entry) -> Entry:
        """Return a copy of `entry` with the requested fields changed."""
        changes = {
            name: value
            for name, value in (
                ("entry_type", self.entry_type),
                ("title", self.title),
                ("description", self.description),
                ("tags", self.tags),
                ("status", self.status),
                ("priority", self.priority),
                ("duration", self.duration),
                ("location", self.location),
                ("metadata", self.metadata),
            )
            if value is not None
        }
        return replace(entry, **changes)


@dataclass
class LogStats:
    """Aggregate statistics over a date range.

    `average_status` is the mean of each day's own status average over days
    whose average is non-zero, not a mean weighted by entries.
    """

    start_date: date
    end_date: date
    total_entries: int = 0
    total_days: int = 0
    average_status: float = 0.0
    entries_per_day: float = 0.0
    entries_by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_entries": self.total_entries,
            "total_days": self.total_days,
            "average_status": self.average_status,
            "entries_per_day": self.entries_per_day,
            "entries_by_type": dict(self.entries_by_type),
        }


@dataclass
class StatusAnalysis:
    """Status ratings over a set of entries, ignoring unset ratings."""

    rated_entries: int = 0
    average: float = 0.0
    minimum: int = 0
    maximum: int = 0
    distribution: Dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rated_entries": self.rated_entries,
            "average": self.average,
            "minimum": self.minimum,
            "maximum": self.maximum,
            "distribution": {str(k): v for k, v in self.distribution.items()},
        }


class SummaryType(Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"


@dataclass
class SummaryRequest:
    """Request a summary of a day, week, month or custom range."""

    summary_type: Union[str, SummaryType] = SummaryType.DAY
    date: date = field(default_factory=date.today)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    use_ai: bool = False
    prompt: str = ""

    def validate(self) -> None:
        try:
            self.summary_type = SummaryType(
                self.summary_type.value if isinstance(self.summary_type, SummaryType)
                else str(self.summary_type).lower()
            )
        except ValueError:
            raise ValidationError(
                "type", f"must be one of day, week, month, custom, got {self.summary_type!r}"
            )
        if self.summary_type == SummaryType.CUSTOM:
            if self.start_date is None or self.end_date is None:
                raise ValidationError("start_date", "custom summaries need start_date and end_date")
            if self.start_date > self.end_date:
                raise ValidationError("start_date", "must not be after end_date")


@dataclass
class SummaryResponse:
    """Generated summary text plus the statistics it was built from."""

    summary: str
    summary_type: str
    period: str
    stats: LogStats
    created_at: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "type": self.summary_type,
            "period": self.period,
            "stats": self.stats.to_dict(),
            "created_at": self.created_at.isoformat(),
            "metadata": dict(self.metadata),
        }

