"""Wire the store, sharing, subscriptions, ingest and publish components together."""

from __future__ import annotations

from concurrent.futures import Future
from pathlib import Path
from typing import Any, Mapping

import httpx

from .config import ConfigRepository, GlobalConfig
from .engine import (
    FeedIngestor,
    FeedPublisher,
    Fetcher,
    Message,
    MessageDraft,
    MessageStore,
    MessageUpdate,
    PullResult,
    ShareIndex,
    SharingEngine,
    SubscriptionRegistry,
    ThreadPoolManager,
)
from .engine.messages import Clock
from .errors import MeatspaceError, NotFoundError
from .infra import MEMORY_DB, BaseStore, MemoryStore, SQLiteManager, SQLiteStore
from .logging_conf import configure_logging, subscription_logger


class Orchestrator:
    """Central coordinator exposing every message, subscription and feed operation."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        scheduler,
        thread_pool: ThreadPoolManager,
        storage: SQLiteManager,
        transport: httpx.BaseTransport | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.scheduler = scheduler
        self.thread_pool = thread_pool
        self.storage = storage
        self.logger = configure_logging().bind(component="orchestrator")

        self.db_path: Path = config_repository.database_path(self.global_config)
        self.store = self._create_store()
        self.messages = MessageStore(self.store, self.global_config.owner, clock=clock)
        self.share_index = ShareIndex(storage, self._share_index_path())
        self.sharing = SharingEngine(self.messages, self.share_index)
        self.registry = SubscriptionRegistry(storage, self.db_path)
        self.fetcher = Fetcher(self.global_config.fetch, transport=transport)
        self.ingestor = FeedIngestor(
            self.registry, self.fetcher, self.sharing, logger_factory=subscription_logger
        )
        self.publisher = FeedPublisher(self.messages, page_size=self.global_config.feed.page_size)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def create(self, draft: MessageDraft | Mapping[str, Any]) -> Message:
        return self.messages.create(draft)

    def get(self, message_id: int) -> Message:
        return self.messages.get(message_id)

    def update(self, message: Message | MessageUpdate | Mapping[str, Any]) -> Message:
        return self.messages.update(message)

    def delete(self, message_id: int) -> None:
        self.messages.delete(message_id)

    def list_all(self, offset: int = 0, limit: int | None = None) -> list[Message]:
        return self.messages.list_all(offset, limit)

    def share(self, external: Mapping[str, Any], source_url: str) -> Message:
        return self.sharing.share(external, source_url)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, url: str) -> str:
        return self.registry.subscribe(url)

    def unsubscribe(self, url: str) -> None:
        self.registry.unsubscribe(url)

    def subscriptions(self) -> list[str]:
        return self.registry.list()

    def share_history(self, url: str, limit: int = 20) -> list[tuple[Message, str]]:
        """Most recent local shares made from ``url`` that still exist."""

        shared: list[tuple[Message, str]] = []
        for message_id, shared_at in self.share_index.history(url.strip(), limit):
            try:
                shared.append((self.messages.get(message_id), shared_at))
            except NotFoundError:
                continue
        return shared

    def pull(self, url: str) -> PullResult:
        return self.ingestor.pull(url)

    def pull_all(self) -> dict[str, PullResult | MeatspaceError]:
        urls = self.registry.list()
        if not urls:
            return {}
        executor = self.thread_pool.get()
        futures: dict[str, Future[PullResult]] = {
            url: executor.submit(self.ingestor.pull, url) for url in urls
        }
        outcomes: dict[str, PullResult | MeatspaceError] = {}
        for url, future in futures.items():
            try:
                outcomes[url] = future.result()
            except MeatspaceError as exc:
                self.logger.warning("pull_failed", url=url, code=exc.code, error=exc.message)
                outcomes[url] = exc
        created = sum(len(r.created) for r in outcomes.values() if isinstance(r, PullResult))
        failed = sum(1 for r in outcomes.values() if isinstance(r, MeatspaceError))
        self.logger.info("pull_all_completed", subscriptions=len(urls), created=created, failed=failed)
        return outcomes

    # ------------------------------------------------------------------
    # Feed
    # ------------------------------------------------------------------
    def recent(self, offset: int = 0, limit: int | None = None) -> list[Message]:
        return self.publisher.recent(offset, limit)

    def one(self, message_id: int) -> Message:
        return self.publisher.one(message_id)

    def write_feed(self, path: Path | None = None) -> Path:
        target = path or self.global_config.feed.output_path
        if target is None:
            raise ValueError("No feed output path configured")
        if not target.is_absolute():
            target = self.config_repository.locator.data_dir / target
        written = self.publisher.write_feed(target)
        self.logger.info("feed_written", path=str(written))
        return written

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def poll_cycle(self) -> dict[str, PullResult | MeatspaceError]:
        outcomes = self.pull_all()
        if self.global_config.feed.output_path is not None:
            self.write_feed()
        return outcomes

    def register_schedules(self) -> None:
        self.scheduler.schedule_pull(self.global_config.poll_schedule, self.poll_cycle)
        self.scheduler.start()

    def close(self) -> None:
        self.fetcher.close()
        self.thread_pool.shutdown()
        self.store.close()
        self.storage.close_all()

    def _share_index_path(self) -> Path:
        # The index maps to message ids, so it must not outlive the store.
        if self.global_config.store.backend == "memory":
            return MEMORY_DB
        return self.db_path

    def _create_store(self) -> BaseStore:
        if self.global_config.store.backend == "memory":
            return MemoryStore()
        return SQLiteStore(self.storage, self.db_path)


__all__ = ["Orchestrator"]
