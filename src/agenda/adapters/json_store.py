"""File-based item storage adapter."""

import json
import logging
import os
import tempfile
from pathlib import Path

from agenda.core.items import BaseItem

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The item store could not be read or written."""


class JsonItemStore:
    """
    JSON file item storage.

    Implements ItemRepository protocol. All items live in one file as
    {"items": [...]}; every write replaces the file atomically.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_raw(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt item store {self.path}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise StoreError(f"Corrupt item store {self.path}: expected an 'items' list")
        return data["items"]

    def _write_raw(self, raw: list[dict]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".items-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump({"items": raw}, f, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            Path(tmp).unlink(missing_ok=True)
            raise StoreError(f"Failed to write {self.path}: {e}") from e

    def fetch_all(self, user_id: str | None = None) -> list[BaseItem]:
        """Fetch all items, optionally only those of one user."""
        items = []
        for data in self._read_raw():
            try:
                item = BaseItem.from_dict(data)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                # ValidationError is a ValueError
                item_id = data.get("id") if isinstance(data, dict) else data
                logger.warning(f"Skipping unreadable item {item_id!r}: {e}")
                continue
            if user_id is None or item.user_id == user_id:
                items.append(item)
        return items

    def get(self, item_id: str) -> BaseItem | None:
        """Fetch one item by id. Returns None if not found."""
        for data in self._read_raw():
            if isinstance(data, dict) and data.get("id") == item_id:
                try:
                    return BaseItem.from_dict(data)
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    raise StoreError(f"Item {item_id!r} is unreadable: {e}") from e
        return None

    def save(self, item: BaseItem) -> None:
        """Insert or replace an item."""
        raw = self._read_raw()
        new = item.to_dict()
        for i, data in enumerate(raw):
            if isinstance(data, dict) and data.get("id") == item.id:
                raw[i] = new
                break
        else:
            raw.append(new)
        self._write_raw(raw)

    def delete(self, item_id: str) -> bool:
        """Remove an item. Returns False if it did not exist."""
        raw = self._read_raw()
        kept = [data for data in raw if not (isinstance(data, dict) and data.get("id") == item_id)]
        if len(kept) == len(raw):
            return False
        self._write_raw(kept)
        return True
