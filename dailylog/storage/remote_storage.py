"""Daily log storage on top of a versioned object store.

Each day lives in one JSON object at ``base_path/YYYY/MM/YYYY-MM-DD.json``,
so a sorted listing of the store is also a chronological one.
"""

import logging
import time
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple, TypeVar

from dailylog.domain.errors import StorageError, NotFoundError, ValidationError
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
from dailylog.generation.insights import InsightProvider, TemplateInsightProvider
from dailylog.generation.summary import SummaryGenerator
from dailylog.retrieval.aggregator import LogAggregator, iter_days
from dailylog.retrieval.searcher import LogSearcher
from dailylog.storage.interface import DailyLogStorage
from dailylog.storage.object_store import (
    ObjectStore,
    ObjectStoreError,
    VersionConflictError,
    ListingTruncatedError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteLogStorage(DailyLogStorage):
    """DailyLogStorage backed by an ObjectStore with optimistic concurrency.

    Mutations re-read the day, re-apply the change and retry the versioned
    write up to `max_write_attempts` times before giving up with a
    StorageError.
    """

    def __init__(
        self,
        store: ObjectStore,
        base_path: str = "logs",
        max_write_attempts: int = 3,
        insight_provider: Optional[InsightProvider] = None,
        ai_enabled: bool = False,
        backup_enabled: bool = False,
        backup_path: str = "backups",
        search_window_months: int = 3
    ):
        if max_write_attempts < 1:
            raise ValidationError("max_write_attempts", "must be at least 1")

        self.store = store
        self.base_path = base_path.strip("/")
        self.max_write_attempts = max_write_attempts
        self.backup_enabled = backup_enabled
        self.backup_path = backup_path.strip("/")

        self.searcher = LogSearcher(self, window_months=search_window_months)
        self.aggregator = LogAggregator(self)
        self.summaries = SummaryGenerator(
            self,
            insight_provider=insight_provider or TemplateInsightProvider(),
            ai_enabled=ai_enabled
        )
        self._last_id_ns = 0

    # Paths and ids

    def day_path(self, day: date) -> str:
        parts = [self.base_path, f"{day:%Y}", f"{day:%m}", f"{day.isoformat()}.json"]
        return "/".join(part for part in parts if part)

    def _month_prefix(self, year: int, month: int) -> str:
        return "/".join(part for part in [self.base_path, f"{year:04d}", f"{month:02d}"] if part)

    def _new_entry_id(self) -> str:
        # Strictly increasing even when the clock does not advance between calls
        ns = max(time.time_ns(), self._last_id_ns + 1)
        self._last_id_ns = ns
        return f"entry_{ns}"

    # Low-level read/write

    def _read(self, day: date, operation: str) -> Tuple[Optional[DayLog], Optional[str]]:
        """Fetch and decode a day; (None, None) if it has never been written."""
        path = self.day_path(day)
        try:
            stored = self.store.get(path)
        except ObjectStoreError as e:
            raise StorageError(operation, f"failed to get day {day.isoformat()}", e)

        if stored is None:
            return None, None

        try:
            day_log = DayLog.from_json(stored.content)
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise StorageError(operation, f"failed to parse day log JSON at {path}", e)
        return day_log, stored.version

    def _put(self, day_log: DayLog, version: Optional[str]) -> None:
        """Versioned write; VersionConflictError propagates to the caller."""
        verb = "Update" if version else "Create"
        self.store.put(
            self.day_path(day_log.date),
            day_log.to_json().encode("utf-8"),
            version,
            f"{verb} daily log for {day_log.date_string}",
        )
        logger.info(f"{verb}d day log {day_log.date_string} ({day_log.total_entries} entries)")

    def _mutate(self, day: date, operation: str, mutation: Callable[[DayLog], T]) -> T:
        """Read-modify-write one day, retrying the whole cycle on conflict.

        `mutation` may run more than once and must only depend on the day
        log it is given.
        """
        conflict = None
        for attempt in range(1, self.max_write_attempts + 1):
            day_log, version = self._read(day, operation)
            if day_log is None:
                day_log = DayLog(date=day)

            result = mutation(day_log)

            try:
                self._put(day_log, version)
                return result
            except VersionConflictError as e:
                conflict = e
                logger.warning(
                    f"{operation}: day {day.isoformat()} changed during write "
                    f"(attempt {attempt}/{self.max_write_attempts})"
                )
            except ObjectStoreError as e:
                raise StorageError(operation, f"failed to save day {day.isoformat()}", e)

        raise StorageError(
            operation,
            f"write conflict on day {day.isoformat()} persisted after "
            f"{self.max_write_attempts} attempts",
            conflict,
        )

    # Day operations

    def get_day(self, day: date) -> DayLog:
        day_log, _ = self._read(day, "GetDay")
        if day_log is None:
            return DayLog(date=day)
        return day_log

    def save_day(self, day_log: DayLog) -> None:
        path = self.day_path(day_log.date)
        try:
            existing = self.store.get(path)
            self._put(day_log, existing.version if existing else None)
        except ObjectStoreError as e:
            raise StorageError("SaveDay", f"failed to save day {day_log.date_string}", e)

    def delete_day(self, day: date) -> None:
        path = self.day_path(day)
        try:
            existing = self.store.get(path)
        except ObjectStoreError as e:
            raise StorageError("DeleteDay", f"failed to get day {day.isoformat()}", e)

        if existing is None:
            raise NotFoundError("day log", day.isoformat())

        try:
            self.store.delete(path, existing.version, f"Delete daily log for {day.isoformat()}")
        except ObjectStoreError as e:
            raise StorageError("DeleteDay", f"failed to delete day {day.isoformat()}", e)
        logger.info(f"Deleted day log {day.isoformat()}")

    # Entry operations

    def create_entry(self, request: CreateEntryRequest) -> Entry:
        request.validate()
        timestamp = request.resolve_timestamp()
        entry = Entry(
            id=self._new_entry_id(),
            timestamp=timestamp,
            entry_type=request.entry_type,
            title=request.title.strip(),
            description=request.description,
            tags=list(request.tags),
            status=request.status,
            priority=request.priority,
            duration=request.duration,
            location=request.location,
            metadata=dict(request.metadata),
        )
        self._mutate(request.day(timestamp), "CreateEntry", lambda day_log: day_log.add_entry(entry))
        return entry

    def update_entry(self, request: UpdateEntryRequest) -> Entry:
        request.validate()

        def apply(day_log: DayLog) -> Entry:
            current = day_log.get_entry(request.id)
            if current is None:
                raise NotFoundError("log entry", request.id)
            updated = request.apply(current)
            day_log.update_entry(request.id, updated)
            return updated

        return self._mutate(request.date, "UpdateEntry", apply)

    def delete_entry(self, entry_id: str, day: date) -> None:
        def apply(day_log: DayLog) -> None:
            if not day_log.remove_entry(entry_id):
                raise NotFoundError("log entry", entry_id)

        self._mutate(day, "DeleteEntry", apply)

    def get_entry(self, entry_id: str, day: date) -> Entry:
        day_log, _ = self._read(day, "GetEntry")
        entry = day_log.get_entry(entry_id) if day_log else None
        if entry is None:
            raise NotFoundError("log entry", entry_id)
        return entry

    # Search and retrieval

    def search_logs(self, request: LogSearchRequest) -> LogSearchResponse:
        return self.searcher.search(request)

    def get_date_range(self, start: date, end: date) -> List[DayLog]:
        return self.aggregator.date_range(start, end)

    def get_week(self, day: date) -> WeekLog:
        return self.aggregator.week(day)

    def get_month(self, year: int, month: int) -> MonthLog:
        return self.aggregator.month(year, month)

    # Summary operations

    def generate_summary(self, request: SummaryRequest) -> SummaryResponse:
        return self.summaries.generate(request)

    def save_summary(self, summary: SummaryResponse, target_type: str, day: date) -> None:
        target = target_type.lower()
        if target in ("week", "month", "custom"):
            # No durable home for these yet; only day summaries are stored
            logger.info(f"{target} summaries are not persisted; skipping save for {day.isoformat()}")
            return
        if target != "day":
            raise ValidationError("target_type", f"must be day, week or month, got {target_type!r}")

        def apply(day_log: DayLog) -> None:
            day_log.day_summary = summary.summary
            day_log.updated_at = datetime.now()

        self._mutate(day, "SaveSummary", apply)

    # Utility operations

    def list_days(self, start: date, end: date) -> List[date]:
        if start > end:
            return []

        months = sorted({(d.year, d.month) for d in (start, end)})
        if len(months) == 1:
            prefix = self._month_prefix(*months[0])
        else:
            prefix = self.base_path

        try:
            paths = self.store.list_objects(prefix)
        except ListingTruncatedError:
            logger.warning(f"Listing of {prefix or 'store'} was truncated; checking each day instead")
            return self._scan_days(start, end)
        except ObjectStoreError as e:
            raise StorageError("ListDays", f"failed to list {prefix or 'store'}", e)

        days = set()
        for path in paths:
            name = path.rsplit("/", 1)[-1]
            if not name.endswith(".json"):
                continue
            try:
                day = date.fromisoformat(name[:-len(".json")])
            except ValueError:
                continue
            if start <= day <= end and path == self.day_path(day):
                days.add(day)
        return sorted(days)

    def _scan_days(self, start: date, end: date) -> List[date]:
        days = []
        for day in iter_days(start, end):
            try:
                if self.store.get(self.day_path(day)) is not None:
                    days.append(day)
            except ObjectStoreError as e:
                raise StorageError("ListDays", f"failed to get day {day.isoformat()}", e)
        return days

    def get_stats(self, start: date, end: date) -> LogStats:
        return self.aggregator.stats(start, end)

    def backup(self) -> None:
        """Copy every day object under `backup_path/<timestamp>/`."""
        if not self.backup_enabled:
            logger.info(f"Backups disabled; {self.store.describe()} keeps its own history")
            return

        stamp = datetime.now().strftime("%Y%m%dT%H%M%S")
        try:
            paths = self.store.list_objects(self.base_path)
            copied = 0
            for path in paths:
                if self.backup_path and path.startswith(self.backup_path + "/"):
                    continue
                stored = self.store.get(path)
                if stored is None:
                    continue
                target = f"{self.backup_path}/{stamp}/{path}" if self.backup_path else f"{stamp}/{path}"
                self.store.put(target, stored.content, None, f"Backup {path}")
                copied += 1
        except ObjectStoreError as e:
            raise StorageError("Backup", f"failed to back up {self.store.describe()}", e)

        logger.info(f"Backed up {copied} day logs to {self.backup_path}/{stamp}")

    def health_check(self) -> None:
        try:
            self.store.ping()
        except ObjectStoreError as e:
            raise StorageError("HealthCheck", f"failed to access {self.store.describe()}", e)
        logger.debug(f"{self.store.describe()} is reachable")
