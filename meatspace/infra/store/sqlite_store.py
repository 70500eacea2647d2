"""Persist serialized messages in SQLite."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from ..storage import SQLiteManager
from .base import BaseStore

_SEQUENCE = "message_id"


class SQLiteStore(BaseStore):
    """Key/value table ``messages(id, payload)`` plus a monotonic id sequence."""

    def __init__(self, manager: SQLiteManager, path: Path) -> None:
        self.manager = manager
        self.path = path
        self._conn = manager.connect(path)
        self._lock = manager.lock(path)

    def get(self, key: int) -> bytes | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT payload FROM messages WHERE id = ?", (key,)
            ).fetchone()
        return bytes(row["payload"]) if row is not None else None

    def put(self, key: int, value: bytes) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO messages(id, payload) VALUES (?, ?)",
                (key, value),
            )
            self._conn.commit()

    def delete(self, key: int) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM messages WHERE id = ?", (key,))
            self._conn.commit()

    def scan(self) -> Iterator[tuple[int, bytes]]:
        with self._lock:
            rows = self._conn.execute("SELECT id, payload FROM messages ORDER BY id").fetchall()
        for row in rows:
            yield int(row["id"]), bytes(row["payload"])

    def allocate_id(self) -> int:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM sequences WHERE name = ?", (_SEQUENCE,)
            ).fetchone()
            if row is None:
                # Seed from existing rows so a database created without the
                # sequence table never reissues a stored id.
                seed = self._conn.execute("SELECT COALESCE(MAX(id), 0) FROM messages").fetchone()[0]
                value = int(seed) + 1
                self._conn.execute(
                    "INSERT INTO sequences(name, value) VALUES (?, ?)", (_SEQUENCE, value)
                )
            else:
                value = int(row["value"]) + 1
                self._conn.execute(
                    "UPDATE sequences SET value = ? WHERE name = ?", (value, _SEQUENCE)
                )
            self._conn.commit()
            return value

    def count(self) -> int:
        with self._lock:
            return int(self._conn.execute("SELECT count(*) FROM messages").fetchone()[0])


__all__ = ["SQLiteStore"]
