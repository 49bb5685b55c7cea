"""Pure planner item logic - base items, instances, completion ledger."""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time

from .identity import SEPARATOR, BaseRef, InstanceRef, ItemRef
from .rules import RecurrenceRule, ValidationError, rule_from_dict, rule_to_dict

logger = logging.getLogger(__name__)

KINDS = ("task", "appointment")


@dataclass(frozen=True)
class CompletionEntry:
    """Completion state of one occurrence of a recurring item."""

    occurrence_date: date
    completed: bool
    completed_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "instanceDate": self.occurrence_date.isoformat(),
            "completed": self.completed,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompletionEntry":
        completed_at = data.get("completedAt")
        return cls(
            occurrence_date=date.fromisoformat(data["instanceDate"].split("T")[0]),
            completed=bool(data.get("completed", False)),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
        )


@dataclass(frozen=True)
class BaseItem:
    """A stored task or appointment, optionally recurring."""

    id: str
    title: str
    anchor: date
    kind: str = "task"
    rule: RecurrenceRule | None = None
    completions: tuple[CompletionEntry, ...] = ()
    completed: bool = False
    description: str = ""
    category_id: str | None = None
    priority: str = "medium"
    start_time: time | None = None
    duration_minutes: int | None = None
    location: str = ""
    user_id: str = ""

    def __post_init__(self):
        if not self.id:
            raise ValidationError("id", "must not be empty")
        if SEPARATOR in self.id:
            raise ValidationError("id", f"must not contain {SEPARATOR!r}, got {self.id!r}")
        if self.kind not in KINDS:
            raise ValidationError("kind", f"must be one of {KINDS}, got {self.kind!r}")
        if self.duration_minutes is not None and self.duration_minutes < 0:
            raise ValidationError("duration_minutes", "must not be negative")
        object.__setattr__(self, "completions", tuple(self.completions))

    @property
    def is_recurring(self) -> bool:
        return self.rule is not None

    def ledger_entry(self, occurrence_date: date) -> CompletionEntry | None:
        """Ledger entry for a date, if any."""
        for entry in self.completions:
            if entry.occurrence_date == occurrence_date:
                return entry
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kind": self.kind,
            "title": self.title,
            "description": self.description,
            "category_id": self.category_id,
            "priority": self.priority,
            "date": self.anchor.isoformat(),
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "duration_minutes": self.duration_minutes,
            "location": self.location,
            "completed": self.completed,
            "recurrence": rule_to_dict(self.rule) if self.rule else None,
            "recurring_completions": [e.to_dict() for e in self.completions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BaseItem":
        """Create a BaseItem from its stored representation."""
        raw_date = data.get("date") or data.get("due_date") or data.get("start_date")
        if not raw_date:
            raise ValidationError("date", f"item {data.get('id')!r} has no date")
        if not isinstance(raw_date, str):
            raise ValidationError("date", f"expected an ISO date string, got {raw_date!r}")
        anchor = date.fromisoformat(raw_date.split("T")[0])

        start = data.get("start_time")
        rule = data.get("recurrence")
        return cls(
            id=data["id"],
            title=data["title"],
            anchor=anchor,
            kind=data.get("kind", "task") or "task",
            rule=rule_from_dict(rule, anchor) if rule else None,
            completions=tuple(
                CompletionEntry.from_dict(e) for e in data.get("recurring_completions") or ()
            ),
            completed=bool(data.get("completed", False)),
            description=data.get("description") or "",
            category_id=data.get("category_id"),
            priority=data.get("priority") or "medium",
            start_time=time.fromisoformat(start) if start else None,
            duration_minutes=data.get("duration_minutes"),
            location=data.get("location") or "",
            user_id=data.get("user_id") or "",
        )


@dataclass
class Instance:
    """One concrete occurrence of a base item. Derived, never stored."""

    ref: ItemRef
    occurrence_date: date
    completed: bool
    title: str
    kind: str
    description: str = ""
    category_id: str | None = None
    priority: str = "medium"
    start_time: time | None = None
    duration_minutes: int | None = None
    location: str = ""
    is_recurring: bool = False

    @property
    def instance_id(self) -> str:
        return self.ref.to_id()

    @property
    def base_id(self) -> str:
        return self.ref.base_id if isinstance(self.ref, InstanceRef) else self.ref.id

    def format_time(self) -> str:
        """Format the start time for display."""
        if self.start_time is None:
            return "All day"
        return self.start_time.strftime("%H:%M")


def is_completed(item: BaseItem, occurrence_date: date) -> bool:
    """Resolved completion for one occurrence."""
    if not item.is_recurring:
        return item.completed
    entry = item.ledger_entry(occurrence_date)
    return entry.completed if entry else False


def materialize(item: BaseItem, occurrence_date: date) -> Instance:
    """
    Build the instance of `item` for one occurrence date.

    Pure function - no I/O. One-off items keep their own id.
    """
    ref: ItemRef
    if item.is_recurring:
        ref = InstanceRef(item.id, occurrence_date)
    else:
        ref = BaseRef(item.id)

    return Instance(
        ref=ref,
        occurrence_date=occurrence_date,
        completed=is_completed(item, occurrence_date),
        title=item.title,
        kind=item.kind,
        description=item.description,
        category_id=item.category_id,
        priority=item.priority,
        start_time=item.start_time,
        duration_minutes=item.duration_minutes,
        location=item.location,
        is_recurring=item.is_recurring,
    )


def toggle_completion(
    item: BaseItem,
    occurrence_date: date,
    now: datetime | None = None,
) -> BaseItem:
    """
    Flip completion of one occurrence and return the updated item.

    One-off items flip `completed`. Recurring items flip (or create) the
    ledger entry for the date. Dates the rule never produces are stored too.
    """
    if not item.is_recurring:
        return replace(item, completed=not item.completed)

    now = now or datetime.now()
    existing = item.ledger_entry(occurrence_date)
    completed = not existing.completed if existing else True
    entry = CompletionEntry(occurrence_date, completed, now if completed else None)

    if existing:
        completions = tuple(entry if e is existing else e for e in item.completions)
    else:
        completions = item.completions + (entry,)

    logger.debug(f"Item {item.id}: {occurrence_date} completed={completed}")
    return replace(item, completions=completions)


def add_exception(item: BaseItem, occurrence_date: date) -> BaseItem:
    """
    Skip one occurrence of a recurring item and return the updated item.

    Ledger entries for the date are left in place. One-off items are
    returned unchanged.
    """
    if not item.is_recurring:
        logger.debug(f"Item {item.id} is not recurring, ignoring exception for {occurrence_date}")
        return item
    logger.debug(f"Item {item.id}: skipping {occurrence_date}")
    return replace(item, rule=item.rule.with_exception(occurrence_date))
