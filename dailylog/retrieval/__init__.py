"""Search and aggregation over stored day logs."""

from .searcher import LogSearcher, matches
from .aggregator import LogAggregator, compute_stats, week_bounds, month_bounds, default_window

__all__ = [
    "LogSearcher", "matches", "LogAggregator", "compute_stats",
    "week_bounds", "month_bounds", "default_window",
]
