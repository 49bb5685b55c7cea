"""Item repository interface."""

from typing import Protocol

from agenda.core.items import BaseItem


class ItemRepository(Protocol):
    """Interface for loading and storing base items in any backend."""

    def fetch_all(self, user_id: str | None = None) -> list[BaseItem]:
        """Fetch all items, optionally only those of one user."""
        ...

    def get(self, item_id: str) -> BaseItem | None:
        """Fetch one item by id. Returns None if not found."""
        ...

    def save(self, item: BaseItem) -> None:
        """Insert or replace an item."""
        ...

    def delete(self, item_id: str) -> bool:
        """Remove an item. Returns False if it did not exist."""
        ...
