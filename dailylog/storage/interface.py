"""Operation set every daily log storage backend must honor."""

from abc import ABC, abstractmethod
from datetime import date
from typing import List

from dailylog.domain.models import (
    DayLog,
    Entry,
    WeekLog,
    MonthLog,
    LogSearchRequest,
    LogSearchResponse,
    CreateEntryRequest,
    UpdateEntryRequest,
    LogStats,
    SummaryRequest,
    SummaryResponse,
)


class DailyLogStorage(ABC):
    """Abstract base class for daily log storage.

    Errors raised by implementations are limited to ValidationError,
    StorageError and NotFoundError.
    """

    # Day operations

    @abstractmethod
    def get_day(self, day: date) -> DayLog:
        """Get a day's log; a day never written comes back empty, not missing."""
        pass

    @abstractmethod
    def save_day(self, day_log: DayLog) -> None:
        """Replace the stored content for the day log's date."""
        pass

    @abstractmethod
    def delete_day(self, day: date) -> None:
        """Delete a stored day; NotFoundError if it was never written."""
        pass

    # Entry operations

    @abstractmethod
    def create_entry(self, request: CreateEntryRequest) -> Entry:
        pass

    @abstractmethod
    def update_entry(self, request: UpdateEntryRequest) -> Entry:
        pass

    @abstractmethod
    def delete_entry(self, entry_id: str, day: date) -> None:
        pass

    @abstractmethod
    def get_entry(self, entry_id: str, day: date) -> Entry:
        pass

    # Search and retrieval

    @abstractmethod
    def search_logs(self, request: LogSearchRequest) -> LogSearchResponse:
        pass

    @abstractmethod
    def get_date_range(self, start: date, end: date) -> List[DayLog]:
        """Day logs with entries between `start` and `end`, both inclusive."""
        pass

    @abstractmethod
    def get_week(self, day: date) -> WeekLog:
        pass

    @abstractmethod
    def get_month(self, year: int, month: int) -> MonthLog:
        pass

    # Summary operations

    @abstractmethod
    def generate_summary(self, request: SummaryRequest) -> SummaryResponse:
        pass

    @abstractmethod
    def save_summary(self, summary: SummaryResponse, target_type: str, day: date) -> None:
        pass

    # Utility operations

    @abstractmethod
    def list_days(self, start: date, end: date) -> List[date]:
        """Dates in range that have a stored day log."""
        pass

    @abstractmethod
    def get_stats(self, start: date, end: date) -> LogStats:
        pass

    @abstractmethod
    def backup(self) -> None:
        pass

    @abstractmethod
    def health_check(self) -> None:
        pass
