"""Week, month and statistics views derived from stored day logs."""

import calendar
import logging
from collections import Counter
from datetime import date, timedelta
from typing import Iterator, List, Optional, Tuple, TYPE_CHECKING

from dailylog.domain.errors import DailyLogError, ValidationError
from dailylog.domain.models import DayLog, WeekLog, MonthLog, LogStats

if TYPE_CHECKING:
    from dailylog.storage.interface import DailyLogStorage

logger = logging.getLogger(__name__)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from `start` to `end`, both inclusive, ascending."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def add_months(day: date, months: int) -> date:
    """Shift by calendar months, clamping the day to the target month's end."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def week_bounds(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the ISO week containing `day`."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("month", f"must be between 1 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def default_window(today: Optional[date] = None, months: int = 3) -> Tuple[date, date]:
    """The trailing search window: `months` calendar months back to today."""
    today = today or date.today()
    return add_months(today, -months), today


def compute_stats(days: List[DayLog], start: date, end: date) -> LogStats:
    """Aggregate day logs into LogStats.

    The average status is a mean of the per-day averages over days whose
    average is non-zero, so busy days weigh the same as quiet ones.
    """
    stats = LogStats(start_date=start, end_date=end)
    day_averages = []
    type_counts = Counter()

    for day in days:
        if day.total_entries == 0:
            continue
        stats.total_entries += day.total_entries
        stats.total_days += 1
        if day.status_average > 0:
            day_averages.append(day.status_average)
        type_counts.update(entry.entry_type.value for entry in day.entries)

    if day_averages:
        stats.average_status = sum(day_averages) / len(day_averages)
    if stats.total_days > 0:
        stats.entries_per_day = stats.total_entries / stats.total_days
    stats.entries_by_type = dict(type_counts)

    return stats


class LogAggregator:
    """Builds range, week, month and stats views on top of a storage backend."""

    def __init__(self, storage: "DailyLogStorage"):
        self.storage = storage

    def date_range(self, start: date, end: date) -> List[DayLog]:
        """Day logs with at least one entry; unreadable days are skipped."""
        days = []
        for day in iter_days(start, end):
            try:
                day_log = self.storage.get_day(day)
            except DailyLogError as e:
                logger.warning(f"Skipping {day.isoformat()}: {e}")
                continue
            if day_log.total_entries > 0:
                days.append(day_log)
        return days

    def week(self, day: date) -> WeekLog:
        week_start, week_end = week_bounds(day)
        days = self.storage.get_date_range(week_start, week_end)
        return WeekLog(
            week_start=week_start,
            week_end=week_end,
            days=days,
            total_entries=sum(d.total_entries for d in days),
        )

    def month(self, year: int, month: int) -> MonthLog:
        month_start, month_end = month_bounds(year, month)
        days = self.storage.get_date_range(month_start, month_end)
        return MonthLog(
            month=f"{year:04d}-{month:02d}",
            year=year,
            days=days,
            total_entries=sum(d.total_entries for d in days),
        )

    def stats(self, start: date, end: date) -> LogStats:
        return compute_stats(self.storage.get_date_range(start, end), start, end)
