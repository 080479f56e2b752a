"""Templated summaries of days, weeks, months and custom ranges."""

import logging
from typing import List, Optional, TYPE_CHECKING

from dailylog.domain.models import (
    DayLog,
    Entry,
    LogStats,
    SummaryRequest,
    SummaryResponse,
    SummaryType,
)
from dailylog.generation.insights import InsightProvider
from dailylog.retrieval.aggregator import compute_stats, month_bounds

if TYPE_CHECKING:
    from dailylog.storage.interface import DailyLogStorage

logger = logging.getLogger(__name__)


def day_summary_text(day_log: DayLog) -> str:
    if day_log.total_entries == 0:
        return "No activities recorded for this day."
    return (
        f"Day had {day_log.total_entries} activities "
        f"with an average status of {day_log.status_average:.1f}"
    )


def span_summary_text(label: str, stats: LogStats) -> str:
    return f"{label} had {stats.total_entries} total activities across {stats.total_days} days"


class SummaryGenerator:
    """Builds summary text from counts already computed by the storage layer."""

    def __init__(
        self,
        storage: "DailyLogStorage",
        insight_provider: Optional[InsightProvider] = None,
        ai_enabled: bool = False
    ):
        self.storage = storage
        self.insight_provider = insight_provider
        self.ai_enabled = ai_enabled

    def generate(self, request: SummaryRequest) -> SummaryResponse:
        """
        Generate a summary for the requested period.

        Args:
            request: Period type, reference date and AI options

        Returns:
            Summary text, the period label and the statistics behind it
        """
        request.validate()

        if request.summary_type == SummaryType.DAY:
            day_log = self.storage.get_day(request.date)
            days = [day_log]
            stats = compute_stats(days, request.date, request.date)
            text = day_summary_text(day_log)
            period = request.date.isoformat()

        elif request.summary_type == SummaryType.WEEK:
            week = self.storage.get_week(request.date)
            days = week.days
            stats = compute_stats(days, week.week_start, week.week_end)
            text = span_summary_text("Week", stats)
            period = f"{week.week_start.isoformat()} to {week.week_end.isoformat()}"

        elif request.summary_type == SummaryType.MONTH:
            month = self.storage.get_month(request.date.year, request.date.month)
            start, end = month_bounds(month.year, request.date.month)
            days = month.days
            stats = compute_stats(days, start, end)
            text = span_summary_text("Month", stats)
            period = month.month

        else:
            days = self.storage.get_date_range(request.start_date, request.end_date)
            stats = compute_stats(days, request.start_date, request.end_date)
            text = span_summary_text("Period", stats)
            period = f"{request.start_date.isoformat()} to {request.end_date.isoformat()}"

        metadata = {"generator": "template"}
        if request.use_ai:
            if self.ai_enabled and self.insight_provider is not None:
                text = self.insight_provider.summarize(self._entries(days), request.prompt)
                metadata["generator"] = self.insight_provider.get_provider_info().get(
                    "provider", type(self.insight_provider).__name__
                )
            else:
                logger.info("AI summary requested but AI is disabled; using template text")
                metadata["ai_skipped"] = "disabled"

        return SummaryResponse(
            summary=text,
            summary_type=request.summary_type.value,
            period=period,
            stats=stats,
            metadata=metadata,
        )

    @staticmethod
    def _entries(days: List[DayLog]) -> List[Entry]:
        return [entry for day in days for entry in day.entries]
