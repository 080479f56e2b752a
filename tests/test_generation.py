"""Tests for summaries, insights and standup reports."""

import json
import pytest
from datetime import date, datetime

from dailylog.domain.errors import ValidationError
from dailylog.domain.models import CreateEntryRequest, DayLog, Entry, SummaryRequest
from dailylog.generation import InsightProvider, StandupReporter, TemplateInsightProvider
from dailylog.storage import InMemoryObjectStore, RemoteLogStorage

DAY = date(2025, 10, 1)


class EchoProvider(TemplateInsightProvider):
    """Insight provider that records what it was asked to summarize."""

    def __init__(self):
        self.calls = []

    def summarize(self, entries, prompt=""):
        self.calls.append((len(entries), prompt))
        return f"echo {len(entries)}"

    def get_provider_info(self):
        return {"provider": "echo"}


@pytest.fixture
def storage():
    """In-memory storage with entries on Sep 30 and Oct 1, 2025."""
    storage = RemoteLogStorage(InMemoryObjectStore())
    storage.create_entry(CreateEntryRequest(
        title="Fixed login bug", date=date(2025, 9, 30), status=8, priority=2
    ))
    storage.create_entry(CreateEntryRequest(
        title="Team sync", date=date(2025, 9, 30), entry_type="note"
    ))
    storage.create_entry(CreateEntryRequest(
        title="Ship release", date=DAY, status=4, priority=4
    ))
    return storage


def make_entry(title, status=0, tags=None):
    return Entry(
        id=f"entry_{title}",
        timestamp=datetime(2025, 10, 1, 12, 0),
        entry_type="activity",
        title=title,
        tags=tags or [],
        status=status,
    )


# Summaries

def test_day_summary(storage):
    result = storage.generate_summary(SummaryRequest(summary_type="day", date=date(2025, 9, 30)))

    assert result.summary == "Day had 2 activities with an average status of 8.0"
    assert result.summary_type == "day"
    assert result.period == "2025-09-30"
    assert result.stats.total_entries == 2
    assert result.metadata["generator"] == "template"


def test_empty_day_summary(storage):
    result = storage.generate_summary(SummaryRequest(summary_type="day", date=date(2025, 9, 1)))
    assert result.summary == "No activities recorded for this day."
    assert result.stats.total_days == 0


def test_week_summary(storage):
    result = storage.generate_summary(SummaryRequest(summary_type="week", date=DAY))

    assert result.summary == "Week had 3 total activities across 2 days"
    assert result.period == "2025-09-29 to 2025-10-05"
    assert result.stats.average_status == 6.0


def test_month_summary(storage):
    result = storage.generate_summary(SummaryRequest(summary_type="month", date=DAY))
    assert result.summary == "Month had 1 total activities across 1 days"
    assert result.period == "2025-10"


def test_custom_summary(storage):
    result = storage.generate_summary(SummaryRequest(
        summary_type="custom", start_date=date(2025, 9, 1), end_date=date(2025, 10, 31)
    ))
    assert result.summary == "Period had 3 total activities across 2 days"
    assert result.period == "2025-09-01 to 2025-10-31"
    assert result.to_dict()["type"] == "custom"


def test_ai_summary_skipped_when_disabled(storage):
    result = storage.generate_summary(SummaryRequest(summary_type="day", date=DAY, use_ai=True))
    assert result.summary.startswith("Day had 1 activities")
    assert result.metadata["ai_skipped"] == "disabled"


def test_ai_summary_uses_provider():
    provider = EchoProvider()
    storage = RemoteLogStorage(InMemoryObjectStore(), insight_provider=provider, ai_enabled=True)
    storage.create_entry(CreateEntryRequest(title="Ship release", date=DAY))

    result = storage.generate_summary(
        SummaryRequest(summary_type="day", date=DAY, use_ai=True, prompt="wins")
    )

    assert result.summary == "echo 1"
    assert result.metadata["generator"] == "echo"
    assert provider.calls == [(1, "wins")]


# Insights

def test_insight_provider_is_abstract():
    with pytest.raises(TypeError):
        InsightProvider()


def test_template_summarize():
    provider = TemplateInsightProvider()
    assert provider.summarize([]) == "No activities recorded."

    text = provider.summarize([make_entry("Deploy", status=8), make_entry("Review", status=6)])
    assert text == "2 entries: Deploy; Review. Average status 7.0/10."


def test_suggest_tags():
    provider = TemplateInsightProvider()
    tags = provider.suggest_tags("Deployed the hotfix after the standup #backend")

    assert tags[0] == "backend"
    assert "deployment" in tags
    assert "bugfix" in tags
    assert "meeting" in tags


def test_analyze_status():
    analysis = TemplateInsightProvider().analyze_status(
        [make_entry("a", 8), make_entry("b", 4), make_entry("c", 8), make_entry("d")]
    )
    assert analysis.rated_entries == 3
    assert analysis.minimum == 4
    assert analysis.maximum == 8
    assert analysis.distribution == {4: 1, 8: 2}


def test_generate_insights():
    busy = DayLog(date=date(2025, 9, 30), entries=[
        make_entry("a", 9, ["work"]), make_entry("b", 7, ["work"])
    ])
    quiet = DayLog(date=date(2025, 10, 1), entries=[make_entry("c", 3, ["home"])])

    text = TemplateInsightProvider().generate_insights([busy, quiet, DayLog(date=date(2025, 10, 2))])

    assert "Across 2 days you logged 3 entries." in text
    assert "Busiest day: 2025-09-30 (2 entries)." in text
    assert "Lowest status: 2025-10-01 (3.0)." in text
    assert "Most used tags: work, home." in text


def test_improve_wording():
    provider = TemplateInsightProvider()
    assert provider.improve_wording("  fixed   the build ") == "Fixed the build."
    assert provider.improve_wording("Done!") == "Done!"
    assert provider.improve_wording("   ") == ""


# Standup

def test_standup_default(storage):
    report = StandupReporter(storage).generate(DAY)

    assert report.startswith("Standup Report - 2025-10-01\n" + "=" * 40)
    assert "Yesterday (Sep 30):\n  • Fixed login bug" in report
    assert "Team sync" not in report
    assert "Today (Oct 1):\n  • Ship release" in report


def test_standup_empty_days(storage):
    report = StandupReporter(storage).generate(date(2025, 12, 1))
    assert "  • No activities recorded" in report
    assert "  • Planning session" in report


def test_standup_slack_yaml(storage):
    report = StandupReporter(storage).generate(DAY, "slack-yaml")
    lines = report.splitlines()

    assert lines[1] == "```yaml"
    assert "Y: # Yesterday (Sep 30)" in lines
    assert "  - Fixed login bug (status: 8/10)" in lines
    assert "T: # Today (Oct 1)" in lines
    assert "  - Ship release (priority: 4/5)" in lines
    assert lines[-1] == "```"


def test_standup_json(storage):
    report = json.loads(StandupReporter(storage).generate(DAY, "json"))

    assert report["date"] == "2025-10-01"
    assert report["yesterday"]["date"] == "2025-09-30"
    assert [a["title"] for a in report["yesterday"]["activities"]] == ["Fixed login bug"]
    assert [a["title"] for a in report["today"]["planned"]] == ["Ship release"]


def test_standup_unknown_format(storage):
    with pytest.raises(ValidationError) as exc:
        StandupReporter(storage).generate(DAY, "markdown")
    assert exc.value.field == "format"
