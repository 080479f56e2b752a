"""Tests for week, month and statistics views."""

import pytest
from datetime import date

from dailylog.domain.errors import StorageError, ValidationError
from dailylog.domain.models import CreateEntryRequest, DayLog
from dailylog.retrieval.aggregator import (
    add_months,
    compute_stats,
    default_window,
    iter_days,
    month_bounds,
    week_bounds,
)
from dailylog.storage import InMemoryObjectStore, RemoteLogStorage


@pytest.fixture
def storage():
    """Empty in-memory storage."""
    return RemoteLogStorage(InMemoryObjectStore())


def log(storage, day, status=0, entry_type="activity", title="Work"):
    storage.create_entry(
        CreateEntryRequest(title=title, date=day, status=status, entry_type=entry_type)
    )


def test_week_bounds():
    """Weeks run Monday to Sunday."""
    assert week_bounds(date(2025, 10, 1)) == (date(2025, 9, 29), date(2025, 10, 5))
    assert week_bounds(date(2025, 9, 29)) == (date(2025, 9, 29), date(2025, 10, 5))
    assert week_bounds(date(2025, 10, 5)) == (date(2025, 9, 29), date(2025, 10, 5))


def test_month_bounds():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(2025, 12) == (date(2025, 12, 1), date(2025, 12, 31))
    with pytest.raises(ValidationError):
        month_bounds(2025, 13)


def test_add_months_clamps():
    assert add_months(date(2025, 5, 31), -3) == date(2025, 2, 28)
    assert add_months(date(2025, 1, 15), -3) == date(2024, 10, 15)
    assert default_window(date(2025, 10, 1)) == (date(2025, 7, 1), date(2025, 10, 1))


def test_iter_days_inclusive():
    days = list(iter_days(date(2025, 9, 29), date(2025, 10, 1)))
    assert days == [date(2025, 9, 29), date(2025, 9, 30), date(2025, 10, 1)]
    assert list(iter_days(date(2025, 10, 2), date(2025, 10, 1))) == []


def test_date_range_skips_empty_days(storage):
    log(storage, date(2025, 9, 29))
    log(storage, date(2025, 10, 1))

    days = storage.get_date_range(date(2025, 9, 28), date(2025, 10, 2))
    assert [d.date for d in days] == [date(2025, 9, 29), date(2025, 10, 1)]


def test_date_range_skips_failing_days(storage):
    log(storage, date(2025, 9, 29))
    log(storage, date(2025, 9, 30))
    original = storage.get_day

    def get_day(day):
        if day == date(2025, 9, 29):
            raise StorageError("GetDay", "boom")
        return original(day)

    storage.get_day = get_day
    days = storage.get_date_range(date(2025, 9, 29), date(2025, 9, 30))
    assert [d.date for d in days] == [date(2025, 9, 30)]


def test_get_week(storage):
    log(storage, date(2025, 9, 28))
    log(storage, date(2025, 9, 29))
    log(storage, date(2025, 10, 5))
    log(storage, date(2025, 10, 5))
    log(storage, date(2025, 10, 6))

    week = storage.get_week(date(2025, 10, 1))

    assert week.week_start == date(2025, 9, 29)
    assert week.week_end == date(2025, 10, 5)
    assert [d.date for d in week.days] == [date(2025, 9, 29), date(2025, 10, 5)]
    assert week.total_entries == 3


def test_get_month(storage):
    log(storage, date(2025, 8, 31))
    log(storage, date(2025, 9, 1))
    log(storage, date(2025, 9, 30))

    month = storage.get_month(2025, 9)

    assert month.month == "2025-09"
    assert month.year == 2025
    assert [d.date for d in month.days] == [date(2025, 9, 1), date(2025, 9, 30)]
    assert month.total_entries == 2


def test_stats_without_entries(storage):
    """No division by zero over an empty range."""
    stats = storage.get_stats(date(2025, 9, 1), date(2025, 9, 30))

    assert stats.total_entries == 0
    assert stats.total_days == 0
    assert stats.average_status == 0.0
    assert stats.entries_per_day == 0.0
    assert stats.entries_by_type == {}


def test_stats_mean_of_day_means(storage):
    """A busy day weighs the same as a quiet one in the average."""
    for status in (10, 10, 10, 10):
        log(storage, date(2025, 9, 1), status=status)
    log(storage, date(2025, 9, 2), status=2)
    log(storage, date(2025, 9, 3), entry_type="note", title="Unrated")

    stats = storage.get_stats(date(2025, 9, 1), date(2025, 9, 30))

    assert stats.total_entries == 6
    assert stats.total_days == 3
    assert stats.average_status == 6.0
    assert stats.entries_per_day == 2.0
    assert stats.entries_by_type == {"activity": 5, "note": 1}


def test_compute_stats_ignores_empty_days():
    stats = compute_stats([DayLog(date=date(2025, 9, 1))], date(2025, 9, 1), date(2025, 9, 1))
    assert stats.total_days == 0
    assert stats.to_dict()["start_date"] == "2025-09-01"
