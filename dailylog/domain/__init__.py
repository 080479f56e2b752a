"""Domain models and errors for the daily log system."""

from .errors import DailyLogError, ValidationError, StorageError, NotFoundError
from .models import (
    Entry,
    EntryType,
    DayLog,
    WeekLog,
    MonthLog,
    LogSearchRequest,
    LogSearchResponse,
    SearchMode,
    CreateEntryRequest,
    UpdateEntryRequest,
    LogStats,
    StatusAnalysis,
    SummaryRequest,
    SummaryResponse,
    SummaryType,
)

__all__ = [
    "DailyLogError", "ValidationError", "StorageError", "NotFoundError",
    "Entry", "EntryType", "DayLog", "WeekLog", "MonthLog",
    "LogSearchRequest", "LogSearchResponse", "SearchMode",
    "CreateEntryRequest", "UpdateEntryRequest", "LogStats", "StatusAnalysis",
    "SummaryRequest", "SummaryResponse", "SummaryType",
]
