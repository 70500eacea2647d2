"""Infra layer utilities (SQLite connections, message store backends)."""

from .storage import MEMORY_DB, SQLiteManager
from .store import BaseStore, MemoryStore, SQLiteStore

__all__ = ["MEMORY_DB", "BaseStore", "MemoryStore", "SQLiteManager", "SQLiteStore"]
