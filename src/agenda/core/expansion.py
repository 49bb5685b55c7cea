"""Pure window expansion of recurring items - no I/O dependencies."""

import calendar
import logging
import warnings
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator

from .items import BaseItem, Instance, materialize
from .rules import AfterCount, OnDate, RecurrenceRule, next_occurrence

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 1000
SUNDAY = 6  # Python weekday numbering, used for week boundaries


class TruncatedExpansion(RuntimeWarning):
    """Expansion stopped at the iteration cap before the window was covered."""


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _finished(rule: RecurrenceRule, candidate: date, end: date, produced: int) -> bool:
    """True once no further occurrence can be emitted."""
    if candidate > end:
        return True
    match rule.termination:
        case OnDate(until=until) if candidate > until:
            return True
        case AfterCount(count=count) if produced >= count:
            return True
    return False


def expand(
    item: BaseItem,
    start: date | datetime,
    end: date | datetime,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> Iterator[date]:
    """
    Yield the occurrence dates of `item` within [start, end], in order.

    Pure function - no I/O. Walks from the anchor, so occurrences before the
    window are computed but not yielded. Excepted dates count toward an
    occurrence limit but are never yielded. If `max_iterations` candidates
    are walked first, a TruncatedExpansion warning is issued and the
    sequence ends early.
    """
    start, end = _as_date(start), _as_date(end)
    if start > end:
        return

    rule = item.rule
    if rule is None:
        if start <= item.anchor <= end:
            yield item.anchor
        return

    candidate = item.anchor
    produced = 0
    for _ in range(max_iterations):
        if _finished(rule, candidate, end, produced):
            return
        produced += 1
        if candidate >= start and candidate not in rule.exception_dates:
            yield candidate
        candidate = next_occurrence(rule, item.anchor, candidate)

    if not _finished(rule, candidate, end, produced):
        logger.warning(
            f"Expansion of item {item.id} truncated after {max_iterations} iterations at {candidate}"
        )
        warnings.warn(
            f"expansion of item {item.id!r} stopped after {max_iterations} iterations",
            TruncatedExpansion,
            stacklevel=2,
        )


def _sort_key(instance: Instance) -> tuple:
    # All-day items sort before timed ones on the same date
    start = instance.start_time.isoformat() if instance.start_time else ""
    return (instance.occurrence_date, start, instance.title.lower())


def expand_items(
    items: Iterable[BaseItem],
    start: date | datetime,
    end: date | datetime,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[Instance]:
    """
    Materialize every instance of every item within [start, end].

    Pure function - no I/O. Sorted by date, start time, then title.
    """
    instances = [
        materialize(item, d)
        for item in items
        for d in expand(item, start, end, max_iterations)
    ]
    return sorted(instances, key=_sort_key)


def week_bounds(day: date, week_start: int = SUNDAY) -> tuple[date, date]:
    """First and last day of the week containing `day`.

    week_start uses Python weekday numbering (0=Monday..6=Sunday).
    """
    first = day - timedelta(days=(day.weekday() - week_start) % 7)
    return first, first + timedelta(days=6)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month."""
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def items_for_day(
    items: Iterable[BaseItem],
    day: date,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[Instance]:
    """Instances falling on a single day."""
    return expand_items(items, day, day, max_iterations)


def items_for_week(
    items: Iterable[BaseItem],
    day: date,
    week_start: int = SUNDAY,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[Instance]:
    """Instances in the week containing `day`."""
    first, last = week_bounds(day, week_start)
    return expand_items(items, first, last, max_iterations)


def items_for_month(
    items: Iterable[BaseItem],
    year: int,
    month: int,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[Instance]:
    """Instances in a calendar month."""
    first, last = month_bounds(year, month)
    return expand_items(items, first, last, max_iterations)


def items_for_range(
    items: Iterable[BaseItem],
    start: date | datetime,
    end: date | datetime,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[Instance]:
    """Instances in an arbitrary inclusive range."""
    return expand_items(items, start, end, max_iterations)
