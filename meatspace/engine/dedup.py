"""Share deduplication index backed by the SQLite ``share_index`` table."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..infra.storage import SQLiteManager


@dataclass(frozen=True)
class ShareKey:
    """Identity of one external item re-shared from one source URL."""

    origin_url: str
    source_url: str
    fingerprint: str


class ShareIndex:
    """Map ``ShareKey`` to the local message id created for it."""

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self._conn = manager.connect(db_path)
        self._lock = manager.lock(db_path)

    def lookup(self, key: ShareKey) -> int | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT message_id FROM share_index"
                " WHERE origin_url = ? AND source_url = ? AND fingerprint = ?",
                (key.origin_url, key.source_url, key.fingerprint),
            ).fetchone()
        return int(row["message_id"]) if row is not None else None

    def record(self, key: ShareKey, message_id: int) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO share_index"
                "(origin_url, source_url, fingerprint, message_id, shared_at)"
                " VALUES (?, ?, ?, ?, datetime('now'))",
                (key.origin_url, key.source_url, key.fingerprint, message_id),
            )
            self._conn.commit()

    def forget(self, key: ShareKey) -> None:
        with self._lock:
            self._conn.execute(
                "DELETE FROM share_index"
                " WHERE origin_url = ? AND source_url = ? AND fingerprint = ?",
                (key.origin_url, key.source_url, key.fingerprint),
            )
            self._conn.commit()

    def history(self, source_url: str, limit: int = 20) -> list[tuple[int, str]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT message_id, shared_at FROM share_index WHERE source_url = ?"
                " ORDER BY shared_at DESC, message_id DESC LIMIT ?",
                (source_url, limit),
            ).fetchall()
        return [(int(row["message_id"]), row["shared_at"]) for row in rows]


__all__ = ["ShareIndex", "ShareKey"]
