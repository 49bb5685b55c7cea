"""Identity of base items and their virtual instances."""

from dataclasses import dataclass
from datetime import date

SEPARATOR = "@"


@dataclass(frozen=True)
class BaseRef:
    """Reference to a stored base item (a whole series, or a one-off item)."""

    id: str

    def to_id(self) -> str:
        return self.id


@dataclass(frozen=True)
class InstanceRef:
    """Reference to one occurrence of a recurring base item."""

    base_id: str
    occurrence_date: date

    def to_id(self) -> str:
        return f"{self.base_id}{SEPARATOR}{self.occurrence_date.isoformat()}"


ItemRef = BaseRef | InstanceRef


def is_instance_id(item_id: str) -> bool:
    """True if the id names a single occurrence rather than a base item."""
    return SEPARATOR in item_id


def base_id_of(item_id: str) -> str:
    """Base item id: everything before the first separator."""
    return item_id.partition(SEPARATOR)[0]


def date_of(item_id: str) -> date | None:
    """
    Occurrence date encoded in an instance id, or None for a base id.

    Raises ValueError if the part after the separator is not an ISO date.
    """
    if not is_instance_id(item_id):
        return None
    return date.fromisoformat(item_id.partition(SEPARATOR)[2])


def parse_ref(item_id: str) -> ItemRef:
    """Parse an id string back into a typed reference."""
    occurrence = date_of(item_id)
    if occurrence is None:
        return BaseRef(item_id)
    return InstanceRef(base_id_of(item_id), occurrence)
