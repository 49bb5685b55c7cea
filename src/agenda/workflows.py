"""Shared workflow layer between the CLI and other front ends.

Each function loads base items from the store, runs the pure core, saves
any updated item back, and returns the result.
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime

from .adapters.json_store import JsonItemStore
from .config import Config
from .core.expansion import expand_items
from .core.identity import BaseRef, InstanceRef, parse_ref
from .core.items import BaseItem, Instance, add_exception, toggle_completion
from .core.stats import ProductivityStats, productivity_stats
from .ports.item_repo import ItemRepository

logger = logging.getLogger(__name__)


class ItemNotFoundError(KeyError):
    """No stored item matches the given id."""

    def __str__(self) -> str:
        return f"No item with id {self.args[0]!r}"


def get_store(config: Config) -> ItemRepository:
    """Resolve the item store from config."""
    return JsonItemStore(config.data_path)


def new_item_id() -> str:
    return uuid.uuid4().hex


def _load(store: ItemRepository, base_id: str) -> BaseItem:
    item = store.get(base_id)
    if item is None:
        raise ItemNotFoundError(base_id)
    return item


def load_items(config: Config) -> list[BaseItem]:
    """All items visible to the configured user."""
    return get_store(config).fetch_all(config.user_id or None)


def list_instances(config: Config, start: date, end: date) -> list[Instance]:
    """Expand every stored item over [start, end]."""
    return expand_items(load_items(config), start, end, config.expansion_cap)


def show(config: Config, item_id: str) -> BaseItem:
    """Base item behind a base or instance id."""
    ref = parse_ref(item_id)
    base_id = ref.base_id if isinstance(ref, InstanceRef) else ref.id
    return _load(get_store(config), base_id)


def add_item(config: Config, item: BaseItem) -> BaseItem:
    """Store a new item, stamping the configured user if it has none."""
    if config.user_id and not item.user_id:
        item = replace(item, user_id=config.user_id)
    get_store(config).save(item)
    logger.info(f"Added item {item.id} ({item.title})")
    return item


def toggle(config: Config, item_id: str, now: datetime | None = None) -> BaseItem:
    """Toggle completion of a one-off item or of one occurrence."""
    store = get_store(config)
    ref = parse_ref(item_id)

    match ref:
        case InstanceRef(base_id=base_id, occurrence_date=occurrence):
            item = _load(store, base_id)
            updated = toggle_completion(item, occurrence, now)
        case BaseRef(id=base_id):
            item = _load(store, base_id)
            if item.is_recurring:
                raise ValueError(f"Item {base_id!r} is recurring; toggle one occurrence instead")
            updated = toggle_completion(item, item.anchor, now)

    store.save(updated)
    return updated


def skip(config: Config, item_id: str) -> BaseItem:
    """Remove a single occurrence from its series."""
    ref = parse_ref(item_id)
    if not isinstance(ref, InstanceRef):
        raise ValueError(f"{item_id!r} is not an occurrence id")

    store = get_store(config)
    item = _load(store, ref.base_id)
    updated = add_exception(item, ref.occurrence_date)
    store.save(updated)
    return updated


def delete(config: Config, item_id: str, series: bool = False) -> BaseItem | None:
    """
    Delete one occurrence or a whole item.

    An occurrence id skips that occurrence unless `series` is set; a base id
    (or `series`) removes the stored item and all its occurrences. Returns
    the updated item, or None when the item was removed.
    """
    ref = parse_ref(item_id)
    if isinstance(ref, InstanceRef) and not series:
        return skip(config, item_id)

    base_id = ref.base_id if isinstance(ref, InstanceRef) else ref.id
    if not get_store(config).delete(base_id):
        raise ItemNotFoundError(base_id)
    logger.info(f"Deleted item {base_id}")
    return None


def stats(config: Config, as_of: date | None = None) -> ProductivityStats:
    """Dashboard statistics for the configured user."""
    items = load_items(config)
    category_ids = config.categories or sorted(
        {item.category_id for item in items if item.category_id}
    )
    return productivity_stats(
        items,
        category_ids,
        as_of=as_of,
        week_start=config.week_start_index,
        max_iterations=config.expansion_cap,
    )
