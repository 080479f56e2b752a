"""Main CLI interface for the daily log system."""

import click
import json
from collections import Counter
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional, Dict, Any

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dailylog import __version__
from dailylog.application.config import Config
from dailylog.application.engine import LogEngine
from dailylog.cli.dates import parse_flexible_datetime, parse_day
from dailylog.domain.errors import DailyLogError
from dailylog.domain.models import (
    Entry,
    EntryType,
    CreateEntryRequest,
    UpdateEntryRequest,
    LogSearchRequest,
    SearchMode,
    SummaryRequest,
)
from dailylog.generation.insights import InsightProvider, TemplateInsightProvider
from dailylog.generation.standup import STANDUP_FORMATS
from dailylog.retrieval.aggregator import week_bounds, month_bounds
from dailylog.retrieval.searcher import matches

console = Console()


# Formatting helpers

def format_duration(minutes: Optional[int]) -> str:
    if not minutes:
        return ""
    if minutes < 60:
        return f"{minutes}m"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h" if rest == 0 else f"{hours}h{rest}m"


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[:length - 3] + "..."


def _rating(value: int, scale: int) -> str:
    return f"{value}/{scale}" if value else ""


def _split_tags(values: List[str]) -> List[str]:
    return [tag for value in values for tag in value.split(",") if tag.strip()]


def _parse_meta(values: List[str]) -> Dict[str, str]:
    metadata = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--meta")
        metadata[key.strip()] = value.strip()
    return metadata


def entries_table(entries: List[Entry], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Time", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Title")
    table.add_column("Tags", style="green")
    table.add_column("Status", style="yellow")
    table.add_column("Priority", style="yellow")
    table.add_column("Duration")
    table.add_column("ID", style="dim")

    for entry in entries:
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M"),
            entry.entry_type.value,
            truncate(entry.title, 50),
            ",".join(entry.tags),
            _rating(entry.status, 10),
            _rating(entry.priority, 5),
            format_duration(entry.duration),
            entry.id,
        )
    return table


def emit(ctx, data: Any, render) -> None:
    """Print `data` as JSON/YAML, or call `render` for table output."""
    output_format = ctx.obj['config'].output_format
    if output_format == 'json':
        click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))
    elif output_format == 'yaml':
        click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True))
    else:
        render()


def fail(ctx, error: Exception) -> None:
    console.print(f"[red]Error: {error}[/red]")
    ctx.exit(1)


def _storage(ctx):
    return ctx.obj['engine'].get_storage()


def _day_option(value: Optional[str]) -> date:
    return parse_day(value) if value else date.today()


def _insight_provider(ctx) -> InsightProvider:
    """The configured provider, or the template one while features.ai_enabled is off."""
    engine = ctx.obj['engine']
    engine.initialize()
    if ctx.obj['config'].features.ai_enabled:
        return engine.insight_provider
    return TemplateInsightProvider()


# Root

@click.group()
@click.version_option(version=__version__, prog_name="dailyctl")
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file path')
@click.option('--github-repo', help='GitHub repository for storage (owner/repo)')
@click.option('--github-token', help='GitHub personal access token')
@click.option('--github-path', help='Path within the repository for logs')
@click.option('--backend', type=click.Choice(['github', 'local', 'memory']), help='Storage backend')
@click.option('--output', '-o', 'output_format', type=click.Choice(['table', 'json', 'yaml']),
              help='Output format')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, config, github_repo, github_token, github_path, backend, output_format, verbose):
    """dailyctl - log, search and summarize your daily activities."""
    ctx.ensure_object(dict)

    if 'config' not in ctx.obj:
        ctx.obj['config'] = Config.load(Path(config) if config else None)
    config_obj = ctx.obj['config']

    if github_repo:
        config_obj.github.repo = github_repo
    if github_token:
        config_obj.github.token = github_token
    if github_path:
        config_obj.storage.base_path = github_path
    if backend:
        config_obj.storage.backend = backend
    if output_format:
        config_obj.output_format = output_format
    if verbose:
        config_obj.log_level = "DEBUG"

    if 'engine' not in ctx.obj:
        ctx.obj['engine'] = LogEngine(config_obj)


# Entry creation

def _make_log_command(entry_type: str) -> click.Command:
    @click.command(name=entry_type, help=f"Log a {entry_type} entry.")
    @click.argument('title')
    @click.option('--date', 'date_str', help='Date for the entry (YYYY-MM-DD, defaults to today)')
    @click.option('--datetime', 'datetime_str',
                  help="Date and time, e.g. '2025-09-29 14:30', 'yesterday 3pm', '2 hours ago'")
    @click.option('--description', '-d', default='', help='Detailed description')
    @click.option('--tags', '-t', multiple=True, help='Tags (comma separated or repeated)')
    @click.option('--status', '-s', default=0, type=int, help='Status rating (1-10)')
    @click.option('--priority', '-p', default=0, type=int, help='Priority level (1-5)')
    @click.option('--duration', type=int, help='Duration in minutes')
    @click.option('--location', default='', help='Location')
    @click.option('--meta', multiple=True, help='Metadata as key=value')
    @click.pass_context
    def command(ctx, title, date_str, datetime_str, description, tags, status, priority,
                duration, location, meta):
        if date_str and datetime_str:
            raise click.UsageError("--date and --datetime are mutually exclusive")

        try:
            request = CreateEntryRequest(
                title=title,
                entry_type=entry_type,
                date=parse_day(date_str) if date_str else None,
                timestamp=parse_flexible_datetime(datetime_str) if datetime_str else None,
                description=description,
                tags=_split_tags(tags),
                status=status,
                priority=priority,
                duration=duration,
                location=location,
                metadata=_parse_meta(meta),
            )
            entry = _storage(ctx).create_entry(request)
        except (DailyLogError, ValueError) as e:
            fail(ctx, e)
            return

        def render():
            console.print(f"[green]✓ Created {entry_type} entry:[/green] {entry.title}")
            console.print(f"  ID: {entry.id}")
            console.print(f"  Date: {request.day(entry.timestamp).isoformat()}")
            console.print(f"  Time: {entry.timestamp.strftime('%H:%M:%S')}")
            if entry.tags:
                console.print(f"  Tags: {', '.join(entry.tags)}")
            if entry.status:
                console.print(f"  Status: {entry.status}/10")
            if entry.priority:
                console.print(f"  Priority: {entry.priority}/5")
            if entry.duration:
                console.print(f"  Duration: {entry.duration} minutes")
            if entry.location:
                console.print(f"  Location: {entry.location}")

        emit(ctx, entry.to_dict(), render)

    return command


@cli.group()
def log():
    """Create log entries."""


for _entry_type in EntryType.values():
    log.add_command(_make_log_command(_entry_type))


# Retrieval

def entry_stats(entries: List[Entry]) -> Dict[str, Any]:
    """Average status and priority plus the most common type and tags."""
    analysis = TemplateInsightProvider().analyze_status(entries)
    priorities = [entry.priority for entry in entries if entry.priority > 0]
    type_counts = Counter(entry.entry_type.value for entry in entries)
    tag_counts = Counter(tag for entry in entries for tag in entry.tags)

    common_tags = []
    if tag_counts:
        top = max(tag_counts.values())
        common_tags = [tag for tag, count in tag_counts.items() if count == top]

    return {
        "total_entries": len(entries),
        "average_status": analysis.average,
        "average_priority": sum(priorities) / len(priorities) if priorities else 0.0,
        "common_type": type_counts.most_common(1)[0][0] if type_counts else "",
        "common_tags": common_tags,
    }


def print_entry_stats(stats: Dict[str, Any]) -> None:
    table = Table(title="Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Average Status", f"{stats['average_status']:.1f}")
    table.add_row("Average Priority", f"{stats['average_priority']:.1f}")
    table.add_row("Most Common Type", stats["common_type"] or "-")
    table.add_row("Most Common Tags", ", ".join(stats["common_tags"]) or "-")
    console.print(table)


def _filter_request(ctx, start: date, end: date) -> LogSearchRequest:
    filters = ctx.obj['get_filters']
    return LogSearchRequest(
        date_start=start,
        date_end=end,
        entry_type=filters['entry_type'],
        tags=filters['tags'],
        limit=filters['limit'],
    )


def _show_range(ctx, start: date, end: date, label: str) -> None:
    try:
        response = _storage(ctx).search_logs(_filter_request(ctx, start, end))
    except DailyLogError as e:
        fail(ctx, e)
        return

    data = response.to_dict()
    stats = entry_stats(response.entries) if ctx.obj['get_filters']['stats'] else None
    if stats is not None:
        data["stats"] = stats

    def render():
        console.print(f"[bold]{label}[/bold] ({start.isoformat()} to {end.isoformat()})")
        if response.entries:
            console.print(entries_table(response.entries, f"{len(response.entries)} entries"))
        else:
            console.print("[yellow]No entries found.[/yellow]")
        if stats is not None:
            print_entry_stats(stats)

    emit(ctx, data, render)


def _show_day(ctx, day: date) -> None:
    request = _filter_request(ctx, day, day)
    try:
        request.validate()
        day_log = _storage(ctx).get_day(day)
    except DailyLogError as e:
        fail(ctx, e)
        return

    entries = [entry for entry in day_log.entries if matches(entry, request)]
    if request.limit:
        entries = entries[:request.limit]

    # Derived day fields still describe the whole day
    data = day_log.to_dict()
    data["entries"] = [entry.to_dict() for entry in entries]
    stats = entry_stats(entries) if ctx.obj['get_filters']['stats'] else None
    if stats is not None:
        data["stats"] = stats

    def render():
        if not entries:
            console.print(f"[yellow]No entries for {day.isoformat()}.[/yellow]")
            return
        title = f"{day_log.date_string} ({day_log.total_entries} entries"
        if day_log.status_average:
            title += f", avg status {day_log.status_average:.1f}"
        console.print(entries_table(entries, title + ")"))
        if day_log.day_summary:
            console.print(Panel(day_log.day_summary, title="Day summary", border_style="cyan"))
        if stats is not None:
            print_entry_stats(stats)

    emit(ctx, data, render)


@cli.group()
@click.option('--type', 'entry_type', type=click.Choice(EntryType.values()),
              help='Only entries of this type')
@click.option('--tags', '-t', multiple=True, help='Only entries with any of these tags')
@click.option('--limit', '-l', default=0, help='Maximum number of entries (0 = no limit)')
@click.option('--stats', 'show_stats', is_flag=True, help='Include summary statistics')
@click.pass_context
def get(ctx, entry_type, tags, limit, show_stats):
    """Get log entries for dates or date ranges."""
    ctx.obj['get_filters'] = {
        'entry_type': entry_type,
        'tags': _split_tags(tags),
        'limit': limit,
        'stats': show_stats,
    }


@get.command()
@click.pass_context
def today(ctx):
    """Get today's entries."""
    _show_day(ctx, date.today())


@get.command()
@click.pass_context
def yesterday(ctx):
    """Get yesterday's entries."""
    _show_day(ctx, date.today() - timedelta(days=1))


@get.command()
@click.option('--date', 'date_str', help='Any day in the week (YYYY-MM-DD)')
@click.pass_context
def week(ctx, date_str):
    """Get a week's entries (Monday to Sunday)."""
    try:
        start, end = week_bounds(_day_option(date_str))
    except ValueError as e:
        fail(ctx, e)
        return
    _show_range(ctx, start, end, "Week")


@get.command()
@click.option('--date', 'date_str', help='Any day in the month (YYYY-MM-DD)')
@click.pass_context
def month(ctx, date_str):
    """Get a month's entries."""
    try:
        day = _day_option(date_str)
    except ValueError as e:
        fail(ctx, e)
        return
    start, end = month_bounds(day.year, day.month)
    _show_range(ctx, start, end, "Month")


@get.command(name='date')
@click.argument('day')
@click.pass_context
def get_date(ctx, day):
    """Get entries for a specific date (YYYY-MM-DD)."""
    try:
        target = parse_day(day)
    except ValueError as e:
        fail(ctx, e)
        return
    _show_day(ctx, target)


@get.command(name='range')
@click.option('--since', required=True, help='Start date (YYYY-MM-DD)')
@click.option('--until', default=None, help='End date (YYYY-MM-DD), defaults to today')
@click.pass_context
def get_range(ctx, since, until):
    """Get entries for an inclusive date range."""
    try:
        start, end = parse_day(since), _day_option(until)
    except ValueError as e:
        fail(ctx, e)
        return
    _show_range(ctx, start, end, "Range")


# Mutation

@cli.command()
@click.argument('entry_id')
@click.option('--date', 'date_str', required=True, help="Date of the entry's day (YYYY-MM-DD)")
@click.option('--type', 'entry_type', type=click.Choice(EntryType.values()), help='New type')
@click.option('--title', help='New title')
@click.option('--description', help='New description')
@click.option('--tags', '-t', multiple=True, help='Replace tags')
@click.option('--status', '-s', type=int, help='New status (1-10, 0 to unset)')
@click.option('--priority', '-p', type=int, help='New priority (1-5, 0 to unset)')
@click.option('--duration', type=int, help='New duration in minutes')
@click.option('--location', help='New location')
@click.pass_context
def update(ctx, entry_id, date_str, entry_type, title, description, tags, status, priority,
           duration, location):
    """Update fields of an existing entry."""
    try:
        request = UpdateEntryRequest(
            id=entry_id,
            date=parse_day(date_str),
            entry_type=entry_type,
            title=title,
            description=description,
            tags=_split_tags(tags) if tags else None,
            status=status,
            priority=priority,
            duration=duration,
            location=location,
        )
        entry = _storage(ctx).update_entry(request)
    except (DailyLogError, ValueError) as e:
        fail(ctx, e)
        return

    emit(ctx, entry.to_dict(),
         lambda: console.print(f"[green]✓ Updated entry:[/green] {entry.title} ({entry.id})"))


@cli.group()
def delete():
    """Delete entries or whole days."""


@delete.command(name='entry')
@click.argument('entry_id')
@click.option('--date', 'date_str', required=True, help="Date of the entry's day (YYYY-MM-DD)")
@click.pass_context
def delete_entry(ctx, entry_id, date_str):
    """Delete a single entry."""
    try:
        _storage(ctx).delete_entry(entry_id, parse_day(date_str))
    except (DailyLogError, ValueError) as e:
        fail(ctx, e)
        return
    console.print(f"[green]✓ Deleted entry {entry_id}[/green]")


@delete.command(name='day')
@click.argument('day')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def delete_day(ctx, day, yes):
    """Delete a whole day log."""
    try:
        target = parse_day(day)
    except ValueError as e:
        fail(ctx, e)
        return
    if not yes:
        click.confirm(f"Delete all entries of {target.isoformat()}?", abort=True)
    try:
        _storage(ctx).delete_day(target)
    except DailyLogError as e:
        fail(ctx, e)
        return
    console.print(f"[green]✓ Deleted day {target.isoformat()}[/green]")


# Search and summaries

@cli.command()
@click.option('--query', '-q', default='', help='Text to find in title or description')
@click.option('--type', 'entry_type', type=click.Choice(EntryType.values()), help='Entry type')
@click.option('--tags', '-t', multiple=True, help='Match any of these tags')
@click.option('--status-min', type=int, help='Minimum status')
@click.option('--status-max', type=int, help='Maximum status')
@click.option('--since', help='Start date (YYYY-MM-DD), defaults to three months ago')
@click.option('--until', help='End date (YYYY-MM-DD), defaults to today')
@click.option('--limit', '-l', default=0, help='Maximum number of entries (0 = no limit)')
@click.option('--latest', is_flag=True, help='Scan the whole window and keep the newest matches')
@click.option('--meta', multiple=True, help='Metadata filter as key=value')
@click.pass_context
def search(ctx, query, entry_type, tags, status_min, status_max, since, until, limit, latest, meta):
    """Search log entries."""
    try:
        request = LogSearchRequest(
            date_start=parse_day(since) if since else None,
            date_end=parse_day(until) if until else None,
            entry_type=entry_type,
            tags=_split_tags(tags),
            status_min=status_min,
            status_max=status_max,
            query=query,
            limit=limit,
            metadata=_parse_meta(meta),
            mode=SearchMode.LATEST if latest else SearchMode.FIRST,
        )
        response = _storage(ctx).search_logs(request)
    except (DailyLogError, ValueError) as e:
        fail(ctx, e)
        return

    def render():
        if not response.entries:
            console.print("[yellow]No matching entries.[/yellow]")
            return
        console.print(entries_table(response.entries, f"Search results ({response.total_count})"))
        if limit and response.total_count >= limit and not latest:
            console.print("[dim]Limit reached; older-first scan stopped early.[/dim]")

    emit(ctx, response.to_dict(), render)


@cli.command()
@click.argument('period', type=click.Choice(['day', 'week', 'month', 'custom']))
@click.option('--date', 'date_str', help='Reference date (YYYY-MM-DD), defaults to today')
@click.option('--since', help='Start date for custom ranges')
@click.option('--until', help='End date for custom ranges')
@click.option('--ai', 'use_ai', is_flag=True, help='Use the insight provider for the text')
@click.option('--prompt', default='', help='Prompt for the insight provider')
@click.option('--save', is_flag=True, help='Store the summary in the day log (day only)')
@click.pass_context
def summarize(ctx, period, date_str, since, until, use_ai, prompt, save):
    """Generate a day, week, month or custom summary."""
    try:
        request = SummaryRequest(
            summary_type=period,
            date=_day_option(date_str),
            start_date=parse_day(since) if since else None,
            end_date=parse_day(until) if until else None,
            use_ai=use_ai,
            prompt=prompt,
        )
        storage = _storage(ctx)
        result = storage.generate_summary(request)
        if save:
            storage.save_summary(result, period, request.date)
    except (DailyLogError, ValueError) as e:
        fail(ctx, e)
        return

    def render():
        console.print(Panel(result.summary, title=f"Summary: {result.period}", border_style="cyan"))
        if save and period == 'day':
            console.print("[dim]Saved to the day log.[/dim]")

    emit(ctx, result.to_dict(), render)


@cli.command()
@click.option('--format', 'report_format', default='default', type=click.Choice(STANDUP_FORMATS),
              help='Report format')
@click.option('--date', 'date_str', help='Standup date (YYYY-MM-DD), defaults to today')
@click.pass_context
def standup(ctx, report_format, date_str):
    """Generate a standup report from yesterday's and today's activities."""
    try:
        report = ctx.obj['engine'].standup_report(_day_option(date_str), report_format)
    except (DailyLogError, ValueError) as e:
        fail(ctx, e)
        return
    click.echo(report)


@cli.command()
@click.option('--since', help='Start date (YYYY-MM-DD), defaults to 30 days ago')
@click.option('--until', help='End date (YYYY-MM-DD), defaults to today')
@click.pass_context
def stats(ctx, since, until):
    """Show statistics for a date range."""
    try:
        end = _day_option(until)
        start = parse_day(since) if since else end - timedelta(days=30)
        result = _storage(ctx).get_stats(start, end)
    except (DailyLogError, ValueError) as e:
        fail(ctx, e)
        return

    def render():
        table = Table(title=f"Statistics {start.isoformat()} to {end.isoformat()}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="magenta")
        table.add_row("Total Entries", str(result.total_entries))
        table.add_row("Days With Entries", str(result.total_days))
        table.add_row("Average Status", f"{result.average_status:.1f}")
        table.add_row("Entries Per Day", f"{result.entries_per_day:.1f}")
        for entry_type, count in sorted(result.entries_by_type.items()):
            table.add_row(f"Type: {entry_type}", str(count))
        console.print(table)

    emit(ctx, result.to_dict(), render)


# Assistance

@cli.command(name='suggest-tags')
@click.argument('description')
@click.pass_context
def suggest_tags(ctx, description):
    """Suggest tags for a description."""
    try:
        provider = _insight_provider(ctx)
    except DailyLogError as e:
        fail(ctx, e)
        return
    tags = provider.suggest_tags(description)
    emit(ctx, tags, lambda: console.print(", ".join(tags) or "[yellow]No suggestions.[/yellow]"))


@cli.command()
@click.option('--since', help='Start date (YYYY-MM-DD), defaults to 7 days ago')
@click.option('--until', help='End date (YYYY-MM-DD), defaults to today')
@click.pass_context
def insights(ctx, since, until):
    """Point out patterns across recent days."""
    try:
        end = _day_option(until)
        start = parse_day(since) if since else end - timedelta(days=7)
        days = _storage(ctx).get_date_range(start, end)
        provider = _insight_provider(ctx)
    except (DailyLogError, ValueError) as e:
        fail(ctx, e)
        return
    text = provider.generate_insights(days)
    emit(ctx, {"insights": text},
         lambda: console.print(Panel(text, title="Insights", border_style="blue")))


# Maintenance

@cli.command()
def version():
    """Show the dailyctl version."""
    click.echo(f"dailyctl {__version__}")


@cli.command()
@click.pass_context
def health(ctx):
    """Check that the storage backend is reachable."""
    try:
        _storage(ctx).health_check()
    except DailyLogError as e:
        fail(ctx, e)
        return
    console.print("[green]✓ Storage is reachable[/green]")


@cli.command()
@click.pass_context
def backup(ctx):
    """Back up all day logs (when backups are enabled)."""
    try:
        storage = _storage(ctx)
        storage.backup()
    except DailyLogError as e:
        fail(ctx, e)
        return
    if storage.backup_enabled:
        console.print(f"[green]✓ Backup written to {storage.backup_path}/[/green]")
    else:
        console.print("[yellow]Backups are disabled (features.backup_enabled)[/yellow]")


@cli.command()
@click.pass_context
def config_show(ctx):
    """Show current configuration."""
    config = ctx.obj['config']
    config_json = json.dumps(config.redacted(), indent=2, default=str)

    panel = Panel(
        config_json,
        title="Current Configuration",
        border_style="green"
    )
    console.print(panel)


@cli.command()
@click.option('--output', '-o', required=True, help='Output file path')
@click.pass_context
def config_save(ctx, output):
    """Save current configuration to file."""
    config = ctx.obj['config']
    output_path = Path(output)

    try:
        config.save_to_file(output_path)
        console.print(f"[green]Configuration saved to {output_path}[/green]")
    except (OSError, ValueError) as e:
        console.print(f"[red]Error saving configuration: {e}[/red]")


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
