"""Ports - interfaces/protocols for external dependencies."""

from .item_repo import ItemRepository

__all__ = [
    "ItemRepository",
]
