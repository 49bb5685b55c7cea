"""Pure completion statistics over expanded instances - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from .expansion import (
    DEFAULT_MAX_ITERATIONS,
    SUNDAY,
    expand_items,
    month_bounds,
    week_bounds,
)
from .items import BaseItem, Instance


@dataclass
class CompletionStats:
    """Completed vs total instances for one bucket."""

    completed: int = 0
    total: int = 0

    @property
    def percentage(self) -> int:
        if not self.total:
            return 0
        return round(self.completed / self.total * 100)

    def format(self) -> str:
        return f"{self.completed}/{self.total} ({self.percentage}%)"


@dataclass
class ProductivityStats:
    """Completion stats for today, this week, this month and per category."""

    daily: CompletionStats
    weekly: CompletionStats
    monthly: CompletionStats
    categories: dict[str, CompletionStats]


def completion_stats(instances: Iterable[Instance]) -> CompletionStats:
    """Count completed and total instances."""
    stats = CompletionStats()
    for instance in instances:
        stats.total += 1
        if instance.completed:
            stats.completed += 1
    return stats


def category_breakdown(
    instances: Iterable[Instance],
    category_ids: Iterable[str],
) -> dict[str, CompletionStats]:
    """
    Completion stats per category.

    Every requested category is present, even with no instances. Instances
    in other categories are ignored.
    """
    breakdown = {cid: CompletionStats() for cid in category_ids}
    for instance in instances:
        stats = breakdown.get(instance.category_id)
        if stats is None:
            continue
        stats.total += 1
        if instance.completed:
            stats.completed += 1
    return breakdown


def productivity_stats(
    items: list[BaseItem],
    category_ids: Iterable[str],
    as_of: date | None = None,
    week_start: int = SUNDAY,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> ProductivityStats:
    """
    Assemble dashboard statistics.

    Pure function - no I/O. Categories cover January 1 of last year through
    December 31 of next year.
    """
    as_of = as_of or date.today()
    week_first, week_last = week_bounds(as_of, week_start)
    month_first, month_last = month_bounds(as_of.year, as_of.month)

    wide = expand_items(
        items,
        date(as_of.year - 1, 1, 1),
        date(as_of.year + 1, 12, 31),
        max_iterations,
    )

    return ProductivityStats(
        daily=completion_stats(expand_items(items, as_of, as_of, max_iterations)),
        weekly=completion_stats(expand_items(items, week_first, week_last, max_iterations)),
        monthly=completion_stats(expand_items(items, month_first, month_last, max_iterations)),
        categories=category_breakdown(wide, category_ids),
    )
