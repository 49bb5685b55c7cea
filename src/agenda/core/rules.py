"""Pure recurrence rule logic - no I/O dependencies."""

import calendar
from dataclasses import dataclass, field, replace
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta
from dateutil.rrule import weekday as rd_weekday

# Weekday indices used throughout the planner: 0=Sunday..6=Saturday
WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
LAST_WEEK = 5

_ORDINALS = {1: "first", 2: "second", 3: "third", 4: "fourth", LAST_WEEK: "last"}


class ValidationError(ValueError):
    """A rule or item failed validation."""

    def __init__(self, field_name: str, message: str):
        super().__init__(f"{field_name}: {message}")
        self.field = field_name


def weekday_index(d: date) -> int:
    """Weekday of a date as 0=Sunday..6=Saturday."""
    return (d.weekday() + 1) % 7


def _check_interval(interval: int) -> None:
    if not isinstance(interval, int) or interval < 1:
        raise ValidationError("interval", f"must be a positive integer, got {interval!r}")


def _check_weekday(field_name: str, value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= 6:
        raise ValidationError(field_name, f"weekday must be 0-6, got {value!r}")


# ============== Patterns ==============


@dataclass(frozen=True)
class Daily:
    interval: int = 1
    frequency = "daily"

    def __post_init__(self):
        _check_interval(self.interval)


@dataclass(frozen=True)
class Weekly:
    """Every N weeks, either on the anchor's weekday or on explicit days."""

    interval: int = 1
    days: frozenset[int] = frozenset()
    frequency = "weekly"

    def __post_init__(self):
        _check_interval(self.interval)
        object.__setattr__(self, "days", frozenset(self.days))
        for d in self.days:
            _check_weekday("days", d)


@dataclass(frozen=True)
class MonthlyByDay:
    """Every N months on a fixed day of the month."""

    interval: int = 1
    day: int = 1
    frequency = "monthly"

    def __post_init__(self):
        _check_interval(self.interval)
        if not isinstance(self.day, int) or not 1 <= self.day <= 31:
            raise ValidationError("day", f"day of month must be 1-31, got {self.day!r}")


@dataclass(frozen=True)
class MonthlyByPosition:
    """Every N months on the n-th (or last, week=5) weekday of the month.

    weekday=None means the anchor's weekday.
    """

    interval: int = 1
    week: int = 1
    weekday: int | None = None
    frequency = "monthly"

    def __post_init__(self):
        _check_interval(self.interval)
        if not isinstance(self.week, int) or not 1 <= self.week <= LAST_WEEK:
            raise ValidationError("week", f"week of month must be 1-5, got {self.week!r}")
        if self.weekday is not None:
            _check_weekday("weekday", self.weekday)


@dataclass(frozen=True)
class Yearly:
    interval: int = 1
    frequency = "yearly"

    def __post_init__(self):
        _check_interval(self.interval)


@dataclass(frozen=True)
class Custom:
    """Every N days. The only custom form the planner offers."""

    interval: int = 1
    frequency = "custom"

    def __post_init__(self):
        _check_interval(self.interval)


Pattern = Daily | Weekly | MonthlyByDay | MonthlyByPosition | Yearly | Custom


# ============== Termination ==============


@dataclass(frozen=True)
class Never:
    pass


@dataclass(frozen=True)
class OnDate:
    until: date


@dataclass(frozen=True)
class AfterCount:
    count: int

    def __post_init__(self):
        if not isinstance(self.count, int) or self.count < 1:
            raise ValidationError("count", f"occurrence count must be >= 1, got {self.count!r}")


Termination = Never | OnDate | AfterCount


@dataclass(frozen=True)
class RecurrenceRule:
    """How a base item repeats."""

    pattern: Pattern
    termination: Termination = field(default_factory=Never)
    exception_dates: frozenset[date] = frozenset()

    def __post_init__(self):
        if not isinstance(self.pattern, Pattern):
            raise ValidationError("pattern", f"unsupported pattern {self.pattern!r}")
        if not isinstance(self.termination, Termination):
            raise ValidationError("termination", f"unsupported termination {self.termination!r}")
        object.__setattr__(self, "exception_dates", frozenset(self.exception_dates))

    @property
    def frequency(self) -> str:
        return self.pattern.frequency

    @property
    def interval(self) -> int:
        return self.pattern.interval

    def with_exception(self, d: date) -> "RecurrenceRule":
        """Copy of this rule that also skips `d`."""
        return replace(self, exception_dates=self.exception_dates | {d})


# ============== Interpreter ==============


def _clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping day to the last day of the month."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def _next_weekly_day(current: date, days: frozenset[int], interval: int) -> date:
    current_idx = weekday_index(current)
    ordered = sorted(days)
    later = [d for d in ordered if d > current_idx]
    if later:
        return current + timedelta(days=later[0] - current_idx)
    # Wrap to the first day of the week `interval` weeks ahead
    return current + timedelta(days=(7 - current_idx) + ordered[0] + 7 * (interval - 1))


def _nth_weekday(first_of_month: date, week: int, weekday: int) -> date:
    # dateutil counts weekdays from Monday
    wd = rd_weekday((weekday - 1) % 7)
    if week == LAST_WEEK:
        return first_of_month + relativedelta(day=31, weekday=wd(-1))
    return first_of_month + relativedelta(day=1, weekday=wd(week))


def next_occurrence(rule: RecurrenceRule, anchor: date, current: date) -> date:
    """
    Compute the occurrence that follows `current`.

    Pure function - no I/O. `current` is normally a previous occurrence of
    the same rule, starting from `anchor`.
    """
    pattern = rule.pattern
    interval = pattern.interval

    match pattern:
        case Daily() | Custom():
            return current + timedelta(days=interval)

        case Weekly(days=days) if days:
            return _next_weekly_day(current, days, interval)

        case Weekly():
            return current + timedelta(days=7 * interval)

        case MonthlyByDay(day=day):
            target = current.replace(day=1) + relativedelta(months=interval)
            return _clamp_day(target.year, target.month, day)

        case MonthlyByPosition(week=week, weekday=weekday):
            if weekday is None:
                weekday = weekday_index(anchor)
            first = current.replace(day=1) + relativedelta(months=interval)
            return _nth_weekday(first, week, weekday)

        case Yearly():
            return _clamp_day(current.year + interval, anchor.month, anchor.day)

    raise ValidationError("pattern", f"unsupported pattern {pattern!r}")


# ============== Serialization ==============


def _parse_date(field_name: str, value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).split("T")[0])
    except ValueError:
        raise ValidationError(field_name, f"invalid date {value!r}") from None


def rule_from_dict(data: dict, anchor: date) -> RecurrenceRule:
    """
    Build a rule from the planner's stored recurrence config.

    Keys: type, interval, daysOfWeek, dayOfMonth, monthlyType, weekOfMonth,
    endType, endDate, occurrences, exceptions.
    """
    if not isinstance(data, dict):
        raise ValidationError("recurrence", f"expected an object, got {type(data).__name__}")
    kind = data.get("type")
    interval = data.get("interval")
    if interval is None:
        interval = 1

    match kind:
        case "daily":
            pattern = Daily(interval)
        case "custom":
            pattern = Custom(interval)
        case "weekly":
            days = data.get("daysOfWeek") or []
            if not isinstance(days, list):
                raise ValidationError("daysOfWeek", f"expected a list, got {days!r}")
            pattern = Weekly(interval, frozenset(days))
        case "monthly":
            if data.get("monthlyType") == "position":
                if data.get("weekOfMonth") is None:
                    raise ValidationError("weekOfMonth", "required for position-based monthly rules")
                pattern = MonthlyByPosition(
                    interval, data["weekOfMonth"], data.get("weekday", weekday_index(anchor))
                )
            else:
                day = data.get("dayOfMonth")
                pattern = MonthlyByDay(interval, anchor.day if day is None else day)
        case "yearly":
            pattern = Yearly(interval)
        case _:
            raise ValidationError("type", f"unknown frequency {kind!r}")

    end_type = data.get("endType") or "never"
    match end_type:
        case "never":
            termination = Never()
        case "date":
            if not data.get("endDate"):
                raise ValidationError("endDate", "required when endType is 'date'")
            termination = OnDate(_parse_date("endDate", data["endDate"]))
        case "count":
            if data.get("occurrences") is None:
                raise ValidationError("occurrences", "required when endType is 'count'")
            termination = AfterCount(data["occurrences"])
        case _:
            raise ValidationError("endType", f"unknown end type {end_type!r}")

    raw_exceptions = data.get("exceptions") or []
    if not isinstance(raw_exceptions, list):
        raise ValidationError("exceptions", f"expected a list, got {raw_exceptions!r}")
    exceptions = frozenset(_parse_date("exceptions", d) for d in raw_exceptions)
    return RecurrenceRule(pattern, termination, exceptions)


def rule_to_dict(rule: RecurrenceRule) -> dict:
    """Serialize a rule to the stored recurrence config shape."""
    pattern = rule.pattern
    data: dict = {"type": pattern.frequency, "interval": pattern.interval}

    match pattern:
        case Weekly(days=days) if days:
            data["daysOfWeek"] = sorted(days)
        case MonthlyByDay(day=day):
            data["monthlyType"] = "day"
            data["dayOfMonth"] = day
        case MonthlyByPosition(week=week, weekday=weekday):
            data["monthlyType"] = "position"
            data["weekOfMonth"] = week
            if weekday is not None:
                data["weekday"] = weekday

    match rule.termination:
        case OnDate(until=until):
            data["endType"] = "date"
            data["endDate"] = until.isoformat()
        case AfterCount(count=count):
            data["endType"] = "count"
            data["occurrences"] = count
        case _:
            data["endType"] = "never"

    data["exceptions"] = sorted(d.isoformat() for d in rule.exception_dates)
    return data


# ============== Display ==============


_UNITS = {"daily": "day", "custom": "day", "weekly": "week", "monthly": "month", "yearly": "year"}


def describe_rule(rule: RecurrenceRule) -> str:
    """Human-readable summary, e.g. 'Every 2 weeks on Mon, Wed'."""
    pattern = rule.pattern
    if pattern.interval == 1:
        text = {"custom": "Daily"}.get(pattern.frequency, pattern.frequency.capitalize())
    else:
        text = f"Every {pattern.interval} {_UNITS[pattern.frequency]}s"

    match pattern:
        case Weekly(days=days) if days:
            text += " on " + ", ".join(WEEKDAY_NAMES[d] for d in sorted(days))
        case MonthlyByDay(day=day):
            text += f" on day {day}"
        case MonthlyByPosition(week=week, weekday=weekday):
            name = WEEKDAY_NAMES[weekday] if weekday is not None else "anchor weekday"
            text += f" on the {_ORDINALS[week]} {name}"

    match rule.termination:
        case OnDate(until=until):
            text += f", until {until.isoformat()}"
        case AfterCount(count=count):
            text += f", {count} times"

    return text
