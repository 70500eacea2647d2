"""SQLite connection management for messages, subscriptions and the share index."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock, RLock
from typing import Dict

# Per-manager in-memory database; contents vanish when the connection closes.
MEMORY_DB = Path(":memory:")


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees.

    One connection per database file is shared by every component; callers
    serialise access with the matching ``lock(path)``.
    """

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._locks: Dict[Path, RLock] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        if path != MEMORY_DB:
            path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if path not in self._connections:
                conn = sqlite3.connect(str(path), check_same_thread=False)
                conn.row_factory = sqlite3.Row
                self._connections[path] = conn
                self._locks.setdefault(path, RLock())
                self._ensure_schema(conn)
            return self._connections[path]

    def lock(self, path: Path) -> RLock:
        with self._lock:
            return self._locks.setdefault(path, RLock())

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY,
                payload BLOB NOT NULL
            );
            CREATE TABLE IF NOT EXISTS sequences (
                name TEXT PRIMARY KEY,
                value INTEGER NOT NULL
            );
            CREATE TABLE IF NOT EXISTS subscriptions (
                url TEXT PRIMARY KEY,
                created_at TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS share_index (
                origin_url TEXT NOT NULL,
                source_url TEXT NOT NULL,
                fingerprint TEXT NOT NULL,
                message_id INTEGER NOT NULL,
                shared_at TEXT NOT NULL,
                PRIMARY KEY (origin_url, source_url, fingerprint)
            );
            """
        )
        conn.commit()

    def reset(self, path: Path) -> None:
        with self._lock:
            if path in self._connections:
                self._connections[path].close()
                del self._connections[path]
        if path != MEMORY_DB and path.exists():
            path.unlink()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()


__all__ = ["MEMORY_DB", "SQLiteManager"]
