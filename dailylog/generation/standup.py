"""Standup reports: what was done yesterday, what is on today."""

import json
from datetime import date, timedelta
from typing import List, TYPE_CHECKING

from dailylog.domain.errors import ValidationError
from dailylog.domain.models import Entry, EntryType

if TYPE_CHECKING:
    from dailylog.storage.interface import DailyLogStorage

STANDUP_FORMATS = ("default", "slack-yaml", "json")


def _short(day: date) -> str:
    return f"{day:%b} {day.day}"


def activities(entries: List[Entry]) -> List[Entry]:
    return [entry for entry in entries if entry.entry_type == EntryType.ACTIVITY]


class StandupReporter:
    """Renders yesterday's and today's activity entries for a standup."""

    def __init__(self, storage: "DailyLogStorage"):
        self.storage = storage

    def generate(self, day: date, report_format: str = "default") -> str:
        if report_format not in STANDUP_FORMATS:
            raise ValidationError(
                "format", f"must be one of {', '.join(STANDUP_FORMATS)}, got {report_format!r}"
            )

        yesterday = day - timedelta(days=1)
        done = activities(self.storage.get_day(yesterday).entries)
        planned = activities(self.storage.get_day(day).entries)

        if report_format == "slack-yaml":
            return self._slack_yaml(day, done, planned)
        if report_format == "json":
            return self._json(day, done, planned)
        return self._default(day, done, planned)

    @staticmethod
    def _default(day: date, done: List[Entry], planned: List[Entry]) -> str:
        yesterday = day - timedelta(days=1)
        lines = [f"Standup Report - {day.isoformat()}", "=" * 40, ""]

        lines.append(f"Yesterday ({_short(yesterday)}):")
        if not done:
            lines.append("  • No activities recorded")
        lines.extend(f"  • {entry.title}" for entry in done)

        lines.append("")
        lines.append(f"Today ({_short(day)}):")
        if not planned:
            lines.append("  • Planning session")
        lines.extend(f"  • {entry.title}" for entry in planned)

        return "\n".join(lines) + "\n"

    @staticmethod
    def _slack_yaml(day: date, done: List[Entry], planned: List[Entry]) -> str:
        yesterday = day - timedelta(days=1)
        lines = [f"Standup Report - {day.isoformat()}", "```yaml"]

        lines.append(f"Y: # Yesterday ({_short(yesterday)})")
        if not done:
            lines.append("  - No activities recorded")
        for entry in done:
            status = f" (status: {entry.status}/10)" if entry.status > 0 else ""
            lines.append(f"  - {entry.title}{status}")

        lines.append("")
        lines.append(f"T: # Today ({_short(day)})")
        if not planned:
            lines.append("  - Planning session")
        for entry in planned:
            priority = f" (priority: {entry.priority}/5)" if entry.priority > 0 else ""
            lines.append(f"  - {entry.title}{priority}")

        lines.append("```")
        return "\n".join(lines)

    @staticmethod
    def _json(day: date, done: List[Entry], planned: List[Entry]) -> str:
        yesterday = day - timedelta(days=1)
        report = {
            "date": day.isoformat(),
            "yesterday": {
                "date": yesterday.isoformat(),
                "activities": [entry.to_dict() for entry in done],
            },
            "today": {
                "date": day.isoformat(),
                "planned": [entry.to_dict() for entry in planned],
            },
        }
        return json.dumps(report, indent=2, ensure_ascii=False)
