"""Local queue store and its persistence boundary."""

from __future__ import annotations

from .storage import FileStorage, KeyValueStorage, MemoryStorage
from .store import LocalQueueStore

__all__ = [
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "LocalQueueStore",
]
