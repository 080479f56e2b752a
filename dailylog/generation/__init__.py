"""Summary, insight and standup generation."""

from .insights import InsightProvider, TemplateInsightProvider
from .summary import SummaryGenerator
from .standup import StandupReporter

__all__ = ["InsightProvider", "TemplateInsightProvider", "SummaryGenerator", "StandupReporter"]
