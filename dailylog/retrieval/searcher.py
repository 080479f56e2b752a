"""Date-window search over stored day logs."""

import logging
from datetime import date
from typing import List, Optional, TYPE_CHECKING

from dailylog.domain.errors import DailyLogError
from dailylog.domain.models import (
    DayLog,
    Entry,
    LogSearchRequest,
    LogSearchResponse,
    SearchMode,
)
from dailylog.retrieval.aggregator import default_window, iter_days

if TYPE_CHECKING:
    from dailylog.storage.interface import DailyLogStorage

logger = logging.getLogger(__name__)


def matches(entry: Entry, request: LogSearchRequest) -> bool:
    """Apply the request's filters to one entry, cheapest first."""
    if request.entry_type and entry.entry_type.value != request.entry_type:
        return False

    if request.status_min is not None and entry.status < request.status_min:
        return False
    if request.status_max is not None and entry.status > request.status_max:
        return False

    if request.query:
        needle = request.query.lower()
        if needle not in entry.title.lower() and needle not in entry.description.lower():
            return False

    # Any requested tag is enough
    if request.tags and not entry.has_any_tag(request.tags):
        return False

    for key, value in request.metadata.items():
        if entry.metadata.get(key) != value:
            return False

    return True


class LogSearcher:
    """Scans every day in a window through the storage contract."""

    def __init__(self, storage: "DailyLogStorage", window_months: int = 3):
        self.storage = storage
        self.window_months = window_months

    def search(
        self,
        request: LogSearchRequest,
        today: Optional[date] = None
    ) -> LogSearchResponse:
        """
        Search entries matching all filters of the request.

        Args:
            request: Filters, limit and search mode
            today: Reference date for the default window

        Returns:
            Matching entries in ascending date order (newest first for
            SearchMode.LATEST) with the total match count
        """
        request.validate()
        start, end = self._window(request, today)
        logger.debug(f"Searching {start.isoformat()}..{end.isoformat()} ({request.mode.value})")

        response = LogSearchResponse(entries=[], request=request)
        early_exit = request.mode == SearchMode.FIRST and request.limit > 0

        for day in iter_days(start, end):
            day_log = self._fetch(day)
            if day_log is None:
                continue

            matched_today = False
            for entry in day_log.entries:
                if not matches(entry, request):
                    continue
                response.entries.append(entry)
                response.total_count += 1
                matched_today = True

                if early_exit and response.total_count >= request.limit:
                    self._attach_day(response, day_log, request)
                    return response

            if matched_today:
                self._attach_day(response, day_log, request)

        if request.mode == SearchMode.LATEST:
            response.entries.sort(key=lambda e: e.timestamp, reverse=True)
            if request.limit > 0:
                response.entries = response.entries[:request.limit]
                kept = {e.id for e in response.entries}
                response.days = [
                    d for d in response.days if any(e.id in kept for e in d.entries)
                ]

        return response

    def _window(self, request: LogSearchRequest, today: Optional[date]):
        default_start, default_end = default_window(today, self.window_months)
        start = request.date_start or default_start
        end = request.date_end or default_end
        return start, end

    def _fetch(self, day: date) -> Optional[DayLog]:
        # A failing day counts as a day without entries
        try:
            return self.storage.get_day(day)
        except DailyLogError as e:
            logger.warning(f"Search skipped {day.isoformat()}: {e}")
            return None

    @staticmethod
    def _attach_day(response: LogSearchResponse, day_log: DayLog, request: LogSearchRequest):
        if request.include_days and day_log not in response.days:
            response.days.append(day_log)
