"""Functional core - pure recurrence logic with no I/O."""

from .rules import (
    RecurrenceRule,
    Daily,
    Weekly,
    MonthlyByDay,
    MonthlyByPosition,
    Yearly,
    Custom,
    Never,
    OnDate,
    AfterCount,
    ValidationError,
    next_occurrence,
    describe_rule,
    rule_from_dict,
    rule_to_dict,
)
from .identity import BaseRef, InstanceRef, ItemRef, is_instance_id, base_id_of, date_of, parse_ref
from .items import (
    BaseItem,
    CompletionEntry,
    Instance,
    materialize,
    toggle_completion,
    add_exception,
    is_completed,
)
from .expansion import TruncatedExpansion, expand, expand_items
from .stats import CompletionStats, ProductivityStats, productivity_stats

__all__ = [
    # Rules
    "RecurrenceRule",
    "Daily",
    "Weekly",
    "MonthlyByDay",
    "MonthlyByPosition",
    "Yearly",
    "Custom",
    "Never",
    "OnDate",
    "AfterCount",
    "ValidationError",
    "next_occurrence",
    "describe_rule",
    "rule_from_dict",
    "rule_to_dict",
    # Identity
    "BaseRef",
    "InstanceRef",
    "ItemRef",
    "is_instance_id",
    "base_id_of",
    "date_of",
    "parse_ref",
    # Items
    "BaseItem",
    "CompletionEntry",
    "Instance",
    "materialize",
    "toggle_completion",
    "add_exception",
    "is_completed",
    # Expansion
    "TruncatedExpansion",
    "expand",
    "expand_items",
    # Stats
    "CompletionStats",
    "ProductivityStats",
    "productivity_stats",
]
