"""Tests for window expansion."""

import warnings
from datetime import date, datetime, time

import pytest

from agenda.core.expansion import (
    TruncatedExpansion,
    expand,
    expand_items,
    items_for_day,
    items_for_month,
    items_for_range,
    items_for_week,
    month_bounds,
    week_bounds,
)
from agenda.core.items import BaseItem
from agenda.core.rules import (
    AfterCount,
    Daily,
    MonthlyByDay,
    OnDate,
    RecurrenceRule,
    Weekly,
)


# Fixtures
@pytest.fixture
def make_item():
    """Factory for creating base items."""
    def _make(
        rule: RecurrenceRule | None = None,
        anchor: date = date(2026, 1, 1),
        item_id: str = "item1",
        title: str = "Item",
        **kwargs,
    ) -> BaseItem:
        return BaseItem(id=item_id, title=title, anchor=anchor, rule=rule, **kwargs)
    return _make


def dates(*days: tuple[int, int]) -> list[date]:
    return [date(2026, m, d) for m, d in days]


class TestExpandScenarios:
    def test_daily(self, make_item):
        item = make_item(RecurrenceRule(Daily()))
        result = list(expand(item, date(2026, 1, 1), date(2026, 1, 5)))
        assert result == dates((1, 1), (1, 2), (1, 3), (1, 4), (1, 5))

    def test_weekly_days(self, make_item):
        item = make_item(RecurrenceRule(Weekly(days={1, 3, 5})), anchor=date(2026, 1, 5))
        result = list(expand(item, date(2026, 1, 5), date(2026, 1, 18)))
        assert result == dates((1, 5), (1, 7), (1, 9), (1, 12), (1, 14), (1, 16))

    def test_monthly_day_31_clamps(self, make_item):
        item = make_item(RecurrenceRule(MonthlyByDay(day=31)), anchor=date(2026, 1, 31))
        result = list(expand(item, date(2026, 2, 1), date(2026, 4, 30)))
        assert result == dates((2, 28), (3, 31), (4, 30))

    def test_one_off_in_window(self, make_item):
        item = make_item(anchor=date(2026, 3, 10))
        assert list(expand(item, date(2026, 1, 1), date(2026, 12, 31))) == [date(2026, 3, 10)]

    def test_one_off_outside_window(self, make_item):
        item = make_item(anchor=date(2026, 3, 10))
        assert list(expand(item, date(2026, 4, 1), date(2026, 4, 30))) == []


class TestExpandWindow:
    def test_anchor_before_window(self, make_item):
        item = make_item(RecurrenceRule(Daily()))
        result = list(expand(item, date(2026, 1, 10), date(2026, 1, 12)))
        assert result == dates((1, 10), (1, 11), (1, 12))

    def test_window_before_anchor(self, make_item):
        item = make_item(RecurrenceRule(Daily()), anchor=date(2026, 6, 1))
        assert list(expand(item, date(2026, 1, 1), date(2026, 5, 31))) == []

    def test_inverted_window_is_empty(self, make_item):
        item = make_item(RecurrenceRule(Daily()))
        assert list(expand(item, date(2026, 1, 5), date(2026, 1, 1))) == []

    def test_datetime_bounds_are_normalised(self, make_item):
        item = make_item(RecurrenceRule(Daily()))
        result = list(expand(item, datetime(2026, 1, 2, 15, 0), datetime(2026, 1, 3, 0, 0)))
        assert result == dates((1, 2), (1, 3))

    def test_anchor_off_pattern_is_still_first(self, make_item):
        # 2026-01-06 is a Tuesday
        item = make_item(RecurrenceRule(Weekly(days={1, 3, 5})), anchor=date(2026, 1, 6))
        result = list(expand(item, date(2026, 1, 1), date(2026, 1, 12)))
        assert result == dates((1, 6), (1, 7), (1, 9), (1, 12))

    def test_is_lazy(self, make_item):
        item = make_item(RecurrenceRule(Daily()))
        gen = expand(item, date(2026, 1, 1), date(2026, 12, 31))
        assert next(gen) == date(2026, 1, 1)
        assert next(gen) == date(2026, 1, 2)


class TestExpandTermination:
    def test_until_date(self, make_item):
        item = make_item(RecurrenceRule(Daily(), OnDate(date(2026, 1, 3))))
        result = list(expand(item, date(2026, 1, 1), date(2026, 1, 31)))
        assert result == dates((1, 1), (1, 2), (1, 3))

    def test_until_before_window(self, make_item):
        item = make_item(RecurrenceRule(Daily(), OnDate(date(2026, 1, 3))))
        assert list(expand(item, date(2026, 2, 1), date(2026, 2, 28))) == []

    def test_count(self, make_item):
        item = make_item(RecurrenceRule(Weekly(), AfterCount(4)))
        result = list(expand(item, date(2026, 1, 1), date(2100, 12, 31)))
        assert result == dates((1, 1), (1, 8), (1, 15), (1, 22))

    def test_count_includes_exceptions(self, make_item):
        rule = RecurrenceRule(Daily(), AfterCount(3), frozenset({date(2026, 1, 2)}))
        item = make_item(rule)
        result = list(expand(item, date(2026, 1, 1), date(2026, 1, 31)))
        assert result == dates((1, 1), (1, 3))

    def test_count_includes_occurrences_before_window(self, make_item):
        item = make_item(RecurrenceRule(Daily(), AfterCount(5)))
        result = list(expand(item, date(2026, 1, 4), date(2026, 1, 31)))
        assert result == dates((1, 4), (1, 5))

    def test_exceptions_skipped(self, make_item):
        rule = RecurrenceRule(Daily(), exception_dates=frozenset({date(2026, 1, 2), date(2026, 1, 4)}))
        item = make_item(rule)
        result = list(expand(item, date(2026, 1, 1), date(2026, 1, 5)))
        assert result == dates((1, 1), (1, 3), (1, 5))


class TestIterationCap:
    def test_truncation_warns(self, make_item):
        item = make_item(RecurrenceRule(Daily()), anchor=date(2020, 1, 1))
        with pytest.warns(TruncatedExpansion):
            result = list(expand(item, date(2026, 1, 1), date(2026, 1, 10)))
        assert result == []

    def test_partial_result_kept(self, make_item):
        item = make_item(RecurrenceRule(Daily()))
        with pytest.warns(TruncatedExpansion):
            result = list(expand(item, date(2026, 1, 1), date(2026, 12, 31), max_iterations=10))
        assert len(result) == 10
        assert result[-1] == date(2026, 1, 10)

    def test_no_warning_when_window_fits_exactly(self, make_item):
        item = make_item(RecurrenceRule(Daily()))
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = list(expand(item, date(2026, 1, 1), date(2026, 1, 5), max_iterations=5))
        assert len(result) == 5

    def test_no_warning_when_count_reached(self, make_item):
        item = make_item(RecurrenceRule(Daily(), AfterCount(3)))
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = list(expand(item, date(2026, 1, 1), date(2030, 1, 1), max_iterations=3))
        assert len(result) == 3


class TestExpandProperties:
    def test_idempotent(self, make_item):
        item = make_item(RecurrenceRule(Weekly(days={0, 6})))
        window = (date(2026, 1, 1), date(2026, 6, 30))
        assert list(expand(item, *window)) == list(expand(item, *window))

    def test_narrow_window_is_subsequence(self, make_item):
        item = make_item(RecurrenceRule(Weekly(2, days={1, 4})), anchor=date(2026, 1, 5))
        wide = list(expand(item, date(2026, 1, 1), date(2026, 12, 31)))
        s2, e2 = date(2026, 3, 15), date(2026, 7, 4)
        narrow = list(expand(item, s2, e2))
        assert narrow
        assert narrow == [d for d in wide if s2 <= d <= e2]

    def test_count_bounds_unbounded_window(self, make_item):
        item = make_item(RecurrenceRule(MonthlyByDay(day=15), AfterCount(7)), anchor=date(2026, 1, 15))
        assert len(list(expand(item, date(2000, 1, 1), date(2200, 1, 1)))) == 7


class TestExpandItems:
    def test_sorted_by_date_time_title(self, make_item):
        items = [
            make_item(item_id="b", title="Yoga", anchor=date(2026, 1, 2), start_time=time(9, 0)),
            make_item(item_id="a", title="Standup", anchor=date(2026, 1, 2), start_time=time(8, 0)),
            make_item(item_id="c", title="Laundry", anchor=date(2026, 1, 2)),
            make_item(item_id="d", title="Earlier", anchor=date(2026, 1, 1), start_time=time(20, 0)),
        ]
        result = expand_items(items, date(2026, 1, 1), date(2026, 1, 2))
        assert [i.title for i in result] == ["Earlier", "Laundry", "Standup", "Yoga"]

    def test_mixes_recurring_and_one_off(self, make_item):
        items = [
            make_item(RecurrenceRule(Daily()), item_id="daily", title="Daily"),
            make_item(item_id="once", title="Once", anchor=date(2026, 1, 2)),
        ]
        result = expand_items(items, date(2026, 1, 1), date(2026, 1, 3))
        assert [i.instance_id for i in result] == [
            "daily@2026-01-01",
            "daily@2026-01-02",
            "once",
            "daily@2026-01-03",
        ]


class TestWindowHelpers:
    def test_week_bounds_sunday_start(self):
        assert week_bounds(date(2026, 1, 7)) == (date(2026, 1, 4), date(2026, 1, 10))

    def test_week_bounds_monday_start(self):
        assert week_bounds(date(2026, 1, 7), week_start=0) == (date(2026, 1, 5), date(2026, 1, 11))

    def test_week_bounds_on_first_day(self):
        assert week_bounds(date(2026, 1, 4)) == (date(2026, 1, 4), date(2026, 1, 10))

    def test_month_bounds(self):
        assert month_bounds(2026, 2) == (date(2026, 2, 1), date(2026, 2, 28))

    def test_items_for_day(self, make_item):
        item = make_item(RecurrenceRule(Weekly()), anchor=date(2026, 1, 5))
        assert len(items_for_day([item], date(2026, 1, 12))) == 1
        assert items_for_day([item], date(2026, 1, 13)) == []

    def test_items_for_week(self, make_item):
        item = make_item(RecurrenceRule(Daily()))
        result = items_for_week([item], date(2026, 1, 7))
        assert [i.occurrence_date for i in result][0] == date(2026, 1, 4)
        assert len(result) == 7

    def test_items_for_month(self, make_item):
        item = make_item(RecurrenceRule(Weekly()), anchor=date(2026, 1, 5))
        result = items_for_month([item], 2026, 2)
        assert [i.occurrence_date for i in result] == dates((2, 2), (2, 9), (2, 16), (2, 23))

    def test_items_for_range(self, make_item):
        weekly = make_item(RecurrenceRule(Weekly()), anchor=date(2026, 1, 5))
        once = make_item(anchor=date(2026, 1, 20), item_id="once")
        result = items_for_range([weekly, once], date(2026, 1, 10), date(2026, 1, 25))
        assert [i.occurrence_date for i in result] == dates((1, 12), (1, 19), (1, 20))
