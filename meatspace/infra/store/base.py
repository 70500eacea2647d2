"""Store Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator


class BaseStore(ABC):
    """Durable, ordered mapping from integer id to serialized message bytes."""

    @abstractmethod
    def get(self, key: int) -> bytes | None:
        """Return the stored bytes or ``None`` when absent."""

    @abstractmethod
    def put(self, key: int, value: bytes) -> None:
        """Insert or replace a record."""

    @abstractmethod
    def delete(self, key: int) -> None:
        """Remove a record; removing an absent key is a no-op."""

    @abstractmethod
    def scan(self) -> Iterator[tuple[int, bytes]]:
        """Yield every record in ascending id order."""

    @abstractmethod
    def allocate_id(self) -> int:
        """Atomically reserve the next id. Ids are never handed out twice."""

    def count(self) -> int:
        return sum(1 for _ in self.scan())

    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseStore"]
