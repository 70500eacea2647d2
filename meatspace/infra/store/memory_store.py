"""In-process store used for ephemeral instances and tests."""

from __future__ import annotations

from threading import Lock
from typing import Iterator

from .base import BaseStore


class MemoryStore(BaseStore):
    """Dict-backed store; contents vanish with the process."""

    def __init__(self) -> None:
        self._records: dict[int, bytes] = {}
        self._next_id = 1
        self._lock = Lock()

    def get(self, key: int) -> bytes | None:
        with self._lock:
            return self._records.get(key)

    def put(self, key: int, value: bytes) -> None:
        with self._lock:
            self._records[key] = bytes(value)
            if key >= self._next_id:
                self._next_id = key + 1

    def delete(self, key: int) -> None:
        with self._lock:
            self._records.pop(key, None)

    def scan(self) -> Iterator[tuple[int, bytes]]:
        with self._lock:
            snapshot = sorted(self._records.items())
        yield from snapshot

    def allocate_id(self) -> int:
        with self._lock:
            value = self._next_id
            self._next_id += 1
            return value

    def count(self) -> int:
        with self._lock:
            return len(self._records)


__all__ = ["MemoryStore"]
