"""Message store backends."""

from .base import BaseStore
from .memory_store import MemoryStore
from .sqlite_store import SQLiteStore

__all__ = ["BaseStore", "MemoryStore", "SQLiteStore"]
