"""Durable set of subscribed feed URLs."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

import structlog

from ..errors import ValidationError
from ..infra.storage import SQLiteManager


def normalise_url(url: str) -> str:
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationError(f"Subscription URL must be absolute http(s): {url!r}", fields=["url"])
    return candidate


class SubscriptionRegistry:
    """Add, remove and enumerate subscriptions stored in SQLite."""

    def __init__(
        self,
        manager: SQLiteManager,
        db_path: Path,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.manager = manager
        self.db_path = db_path
        self.logger = logger or structlog.get_logger("meatspace.subscriptions")
        self._conn = manager.connect(db_path)
        self._lock = manager.lock(db_path)

    def subscribe(self, url: str) -> str:
        target = normalise_url(url)
        with self._lock:
            cur = self._conn.execute(
                "INSERT OR IGNORE INTO subscriptions(url, created_at) VALUES (?, datetime('now'))",
                (target,),
            )
            self._conn.commit()
        if cur.rowcount:
            self.logger.info("subscribed", url=target)
        return target

    def unsubscribe(self, url: str) -> None:
        target = (url or "").strip()
        with self._lock:
            cur = self._conn.execute("DELETE FROM subscriptions WHERE url = ?", (target,))
            self._conn.commit()
        if cur.rowcount:
            self.logger.info("unsubscribed", url=target)

    def list(self) -> list[str]:
        with self._lock:
            rows = self._conn.execute("SELECT url FROM subscriptions ORDER BY rowid").fetchall()
        return [row["url"] for row in rows]

    def contains(self, url: str) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT 1 FROM subscriptions WHERE url = ?", ((url or "").strip(),)
            ).fetchone()
        return row is not None

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self.contains(url)

    def __len__(self) -> int:
        return len(self.list())


__all__ = ["SubscriptionRegistry", "normalise_url"]
