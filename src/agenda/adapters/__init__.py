"""Adapters - I/O implementations of ports."""

from .json_store import JsonItemStore, StoreError

__all__ = [
    "JsonItemStore",
    "StoreError",
]
