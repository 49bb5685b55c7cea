"""Agenda CLI - recurring tasks and appointments."""

import json
import logging
import sys
from datetime import date, time, timedelta

import click

from .adapters.json_store import StoreError
from .config import load_config
from .core.expansion import month_bounds, week_bounds
from .core.items import BaseItem, Instance
from .core.rules import (
    AfterCount,
    Custom,
    Daily,
    MonthlyByDay,
    MonthlyByPosition,
    Never,
    OnDate,
    RecurrenceRule,
    ValidationError,
    Weekly,
    Yearly,
    describe_rule,
    weekday_index,
)
from .workflows import (
    ItemNotFoundError,
    add_item,
    delete,
    list_instances,
    new_item_id,
    show,
    skip,
    stats,
    toggle,
)

# Errors a command reports as "Error: ..." before exiting with status 1
_USER_ERRORS = (ItemNotFoundError, StoreError, ValidationError, ValueError)

_DAY_ABBREVIATIONS = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Agenda - recurring tasks and appointments."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


def _parse_days(value: str | None) -> frozenset[int]:
    """Parse 'mon,wed,fri' into weekday indices (0=Sunday)."""
    if not value:
        return frozenset()
    days = set()
    for part in value.split(","):
        part = part.strip().lower()[:3]
        if part not in _DAY_ABBREVIATIONS:
            raise click.BadParameter(f"unknown weekday {part!r}")
        days.add(_DAY_ABBREVIATIONS.index(part))
    return frozenset(days)


def _instance_to_dict(instance: Instance) -> dict:
    return {
        "id": instance.instance_id,
        "base_id": instance.base_id,
        "date": instance.occurrence_date.isoformat(),
        "title": instance.title,
        "kind": instance.kind,
        "completed": instance.completed,
        "category_id": instance.category_id,
        "start_time": instance.start_time.strftime("%H:%M") if instance.start_time else None,
        "duration_minutes": instance.duration_minutes,
        "recurring": instance.is_recurring,
    }


def _show_instances(instances: list[Instance], as_json: bool, empty_msg: str) -> None:
    """Shared instance display logic."""
    if as_json:
        click.echo(json.dumps([_instance_to_dict(i) for i in instances], indent=2))
        return

    if not instances:
        click.echo(empty_msg)
        return

    current_date = None
    for instance in instances:
        if instance.occurrence_date != current_date:
            if current_date is not None:
                click.echo()
            click.echo(f"### {instance.occurrence_date.strftime('%A, %B %d')}")
            current_date = instance.occurrence_date

        mark = "x" if instance.completed else " "
        repeat = " ↻" if instance.is_recurring else ""
        click.echo(f"  [{mark}] {instance.format_time():8} {instance.title}{repeat}  ({instance.instance_id})")


@main.command("list")
@click.option("--day", "span", flag_value="day", help="Only today (or --from)")
@click.option("--week", "span", flag_value="week", help="The week containing today (or --from)")
@click.option("--month", "span", flag_value="month", help="The month containing today (or --from)")
@click.option("--from", "start_str", default=None, help="Window start (YYYY-MM-DD)")
@click.option("--to", "end_str", default=None, help="Window end (YYYY-MM-DD)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(span: str | None, start_str: str | None, end_str: str | None, as_json: bool):
    """List occurrences in a date window."""
    config = load_config()
    start = _parse_date(start_str) or date.today()

    if span == "day":
        end = start
    elif span == "week":
        start, end = week_bounds(start, config.week_start_index)
    elif span == "month":
        start, end = month_bounds(start.year, start.month)
    else:
        end = _parse_date(end_str) or start + timedelta(days=config.upcoming_days - 1)

    try:
        instances = list_instances(config, start, end)
    except _USER_ERRORS as e:
        _fail(e)

    _show_instances(instances, as_json, f"Nothing scheduled {start} - {end}.")


def _build_rule(
    repeat: str | None,
    interval: int,
    days: str | None,
    day_of_month: int | None,
    week_of_month: int | None,
    until: str | None,
    count: int | None,
    anchor: date,
) -> RecurrenceRule | None:
    if until and count is not None:
        raise click.UsageError("--until and --count are mutually exclusive")
    if day_of_month is not None and week_of_month is not None:
        raise click.UsageError("--day-of-month and --week-of-month are mutually exclusive")
    if days and repeat != "weekly":
        raise click.UsageError("--days requires --repeat weekly")
    if (day_of_month is not None or week_of_month is not None) and repeat != "monthly":
        raise click.UsageError("--day-of-month and --week-of-month require --repeat monthly")
    if repeat is None:
        return None

    match repeat:
        case "daily":
            pattern = Daily(interval)
        case "custom":
            pattern = Custom(interval)
        case "weekly":
            pattern = Weekly(interval, _parse_days(days))
        case "monthly" if week_of_month is not None:
            pattern = MonthlyByPosition(interval, week_of_month, weekday_index(anchor))
        case "monthly":
            pattern = MonthlyByDay(interval, anchor.day if day_of_month is None else day_of_month)
        case "yearly":
            pattern = Yearly(interval)
        case _:
            raise click.BadParameter(f"unknown repeat {repeat!r}")

    if until:
        termination = OnDate(_parse_date(until))
    elif count is not None:
        termination = AfterCount(count)
    else:
        termination = Never()
    return RecurrenceRule(pattern, termination)


@main.command()
@click.argument("title")
@click.option("--date", "-d", "date_str", required=True, help="First occurrence (YYYY-MM-DD)")
@click.option("--appointment", is_flag=True, help="Create an appointment instead of a task")
@click.option("--time", "time_str", default=None, help="Start time (HH:MM)")
@click.option("--duration", type=int, default=None, help="Duration in minutes")
@click.option("--category", default=None, help="Category id")
@click.option("--description", default="", help="Longer description")
@click.option("--priority", type=click.Choice(["low", "medium", "high"]), default="medium")
@click.option("--repeat", type=click.Choice(["daily", "weekly", "monthly", "yearly", "custom"]), default=None)
@click.option("--interval", type=int, default=1, help="Repeat every N units")
@click.option("--days", default=None, help="Weekly days, e.g. mon,wed,fri")
@click.option("--day-of-month", type=int, default=None, help="Monthly on a fixed day (1-31)")
@click.option("--week-of-month", type=int, default=None, help="Monthly on the n-th weekday (5 = last)")
@click.option("--until", default=None, help="Last possible date (YYYY-MM-DD)")
@click.option("--count", type=int, default=None, help="Number of occurrences")
def add(
    title: str,
    date_str: str,
    appointment: bool,
    time_str: str | None,
    duration: int | None,
    category: str | None,
    description: str,
    priority: str,
    repeat: str | None,
    interval: int,
    days: str | None,
    day_of_month: int | None,
    week_of_month: int | None,
    until: str | None,
    count: int | None,
):
    """Add a task or appointment."""
    config = load_config()
    anchor = _parse_date(date_str)

    try:
        start_time = time.fromisoformat(time_str) if time_str else None
        rule = _build_rule(repeat, interval, days, day_of_month, week_of_month, until, count, anchor)
        item = BaseItem(
            id=new_item_id(),
            title=title,
            anchor=anchor,
            kind="appointment" if appointment else "task",
            rule=rule,
            description=description,
            category_id=category,
            priority=priority,
            start_time=start_time,
            duration_minutes=duration,
        )
        item = add_item(config, item)
    except _USER_ERRORS as e:
        _fail(e)

    summary = describe_rule(item.rule) if item.rule else "once"
    click.echo(f"✓ Added {item.kind} '{item.title}' ({summary}) [{item.id}]")


@main.command("toggle")
@click.argument("item_id")
def toggle_cmd(item_id: str):
    """Toggle completion of an item or one occurrence."""
    config = load_config()
    try:
        item = toggle(config, item_id)
    except _USER_ERRORS as e:
        _fail(e)

    click.echo(f"✓ Toggled {item_id} ({item.title})")


@main.command("skip")
@click.argument("item_id")
def skip_cmd(item_id: str):
    """Skip one occurrence of a recurring item."""
    config = load_config()
    try:
        item = skip(config, item_id)
    except _USER_ERRORS as e:
        _fail(e)

    click.echo(f"✓ Skipped {item_id} ({item.title})")


@main.command("delete")
@click.argument("item_id")
@click.option("--series", is_flag=True, help="Delete the whole series, not just this occurrence")
def delete_cmd(item_id: str, series: bool):
    """Delete an item, one occurrence, or a whole series."""
    config = load_config()
    try:
        updated = delete(config, item_id, series=series)
    except _USER_ERRORS as e:
        _fail(e)

    if updated is None:
        click.echo(f"✓ Deleted {item_id}")
    else:
        click.echo(f"✓ Skipped {item_id} ({updated.title})")


@main.command("show")
@click.argument("item_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_cmd(item_id: str, as_json: bool):
    """Show the stored item behind an id."""
    config = load_config()
    try:
        item = show(config, item_id)
    except _USER_ERRORS as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(item.to_dict(), indent=2))
        return

    click.echo(f"{item.title} [{item.id}]")
    click.echo(f"  {item.kind}, starts {item.anchor.isoformat()}")
    if item.rule:
        click.echo(f"  Repeats: {describe_rule(item.rule)}")
        if item.rule.exception_dates:
            skipped = ", ".join(d.isoformat() for d in sorted(item.rule.exception_dates))
            click.echo(f"  Skipped: {skipped}")
        done = sum(1 for e in item.completions if e.completed)
        click.echo(f"  Completed occurrences: {done}")
    else:
        click.echo(f"  Completed: {'yes' if item.completed else 'no'}")


@main.command("stats")
@click.option("--date", "-d", "date_str", default=None, help="Reference date (YYYY-MM-DD)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats_cmd(date_str: str | None, as_json: bool):
    """Show completion statistics."""
    config = load_config()
    as_of = _parse_date(date_str) or date.today()
    try:
        result = stats(config, as_of)
    except _USER_ERRORS as e:
        _fail(e)

    buckets = {"today": result.daily, "this week": result.weekly, "this month": result.monthly}
    if as_json:
        click.echo(
            json.dumps(
                {
                    "daily": vars(result.daily) | {"percentage": result.daily.percentage},
                    "weekly": vars(result.weekly) | {"percentage": result.weekly.percentage},
                    "monthly": vars(result.monthly) | {"percentage": result.monthly.percentage},
                    "categories": {
                        cid: vars(s) | {"percentage": s.percentage}
                        for cid, s in result.categories.items()
                    },
                },
                indent=2,
            )
        )
        return

    for label, bucket in buckets.items():
        click.echo(f"{label:12} {bucket.format()}")
    if result.categories:
        click.echo()
        click.echo("By category:")
        for cid, bucket in result.categories.items():
            click.echo(f"  {cid:10} {bucket.format()}")


if __name__ == "__main__":
    main()
