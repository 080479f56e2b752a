"""Insight provider interface and the built-in template implementation."""

from abc import ABC, abstractmethod
from collections import Counter
from typing import List, Dict, Any
import logging
import re

from dailylog.domain.models import DayLog, Entry, StatusAnalysis

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z0-9]+")
_HASHTAG_RE = re.compile(r"#([\w-]+)")

TAG_KEYWORDS = {
    "meeting": {"meeting", "standup", "sync", "call", "1on1"},
    "deployment": {"deploy", "deployed", "deployment", "release", "released", "rollout"},
    "bugfix": {"bug", "fix", "fixed", "debug", "debugging", "hotfix"},
    "incident": {"incident", "outage", "oncall", "pager"},
    "review": {"review", "reviewed", "pr"},
    "planning": {"plan", "planning", "roadmap", "backlog"},
    "learning": {"learn", "learned", "study", "course", "read", "reading"},
    "exercise": {"run", "gym", "walk", "workout", "yoga", "bike"},
    "writing": {"write", "wrote", "writing", "docs", "blog"},
}


class InsightProvider(ABC):
    """Abstract interface for AI-style assistance over log entries.

    Real text-generation services are injected as implementations of this
    interface; the core only depends on the interface.
    """

    @abstractmethod
    def summarize(self, entries: List[Entry], prompt: str = "") -> str:
        """Summarize a set of entries, optionally guided by a prompt."""
        pass

    @abstractmethod
    def suggest_tags(self, description: str) -> List[str]:
        """Suggest tags for a free-text description."""
        pass

    @abstractmethod
    def analyze_status(self, entries: List[Entry]) -> StatusAnalysis:
        """Describe the status ratings of a set of entries."""
        pass

    @abstractmethod
    def generate_insights(self, day_logs: List[DayLog]) -> str:
        """Point out patterns across several days."""
        pass

    @abstractmethod
    def improve_wording(self, text: str) -> str:
        """Tidy up a piece of text."""
        pass

    @abstractmethod
    def get_provider_info(self) -> dict:
        """Get information about the provider."""
        pass


class TemplateInsightProvider(InsightProvider):
    """Deterministic, template-based insights with no external service."""

    def summarize(self, entries: List[Entry], prompt: str = "") -> str:
        if not entries:
            return "No activities recorded."

        analysis = self.analyze_status(entries)
        titles = "; ".join(entry.title for entry in entries[:5])
        if len(entries) > 5:
            titles += f"; and {len(entries) - 5} more"

        text = f"{len(entries)} entries: {titles}."
        if analysis.rated_entries:
            text += f" Average status {analysis.average:.1f}/10."
        if prompt:
            text += f" Focus: {prompt.strip()}"
        return text

    def suggest_tags(self, description: str) -> List[str]:
        lowered = description.lower()
        words = set(_WORD_RE.findall(lowered))

        tags = []
        for hashtag in _HASHTAG_RE.findall(lowered):
            if hashtag not in tags:
                tags.append(hashtag)
        for tag, keywords in TAG_KEYWORDS.items():
            if words & keywords and tag not in tags:
                tags.append(tag)
        return tags

    def analyze_status(self, entries: List[Entry]) -> StatusAnalysis:
        rated = [entry.status for entry in entries if entry.status > 0]
        if not rated:
            return StatusAnalysis()
        return StatusAnalysis(
            rated_entries=len(rated),
            average=sum(rated) / len(rated),
            minimum=min(rated),
            maximum=max(rated),
            distribution=dict(sorted(Counter(rated).items())),
        )

    def generate_insights(self, day_logs: List[DayLog]) -> str:
        days = [day for day in day_logs if day.total_entries > 0]
        if not days:
            return "No entries to analyze."

        total = sum(day.total_entries for day in days)
        lines = [f"Across {len(days)} days you logged {total} entries."]

        busiest = max(days, key=lambda d: d.total_entries)
        lines.append(f"Busiest day: {busiest.date_string} ({busiest.total_entries} entries).")

        rated_days = [day for day in days if day.status_average > 0]
        if rated_days:
            best = max(rated_days, key=lambda d: d.status_average)
            worst = min(rated_days, key=lambda d: d.status_average)
            lines.append(f"Highest status: {best.date_string} ({best.status_average:.1f}).")
            if worst is not best:
                lines.append(f"Lowest status: {worst.date_string} ({worst.status_average:.1f}).")

        tag_counts = Counter(tag for day in days for entry in day.entries for tag in entry.tags)
        if tag_counts:
            top = ", ".join(tag for tag, _ in tag_counts.most_common(3))
            lines.append(f"Most used tags: {top}.")

        return "\n".join(lines)

    def improve_wording(self, text: str) -> str:
        cleaned = " ".join(text.split())
        if not cleaned:
            return cleaned
        cleaned = cleaned[0].upper() + cleaned[1:]
        if cleaned[-1].isalnum():
            cleaned += "."
        return cleaned

    def get_provider_info(self) -> Dict[str, Any]:
        return {
            "provider": "template",
            "backend": "none",
            "note": "Template-based insights, no language model involved",
        }
