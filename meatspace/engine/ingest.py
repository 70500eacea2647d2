"""Pull a subscription's feed and re-share its posts locally."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import structlog

from ..errors import DuplicateShareError, MeatspaceError, NotSubscribedError
from .fetcher import Fetcher
from .models import Message
from .parser import FeedParser
from .sharing import SharingEngine
from .subscriptions import SubscriptionRegistry


@dataclass(slots=True)
class ItemFailure:
    index: int
    reason: str


@dataclass(slots=True)
class PullResult:
    """Outcome of one pull: new shares plus per-item bookkeeping."""

    url: str
    created: list[Message] = field(default_factory=list)
    duplicates: int = 0
    failures: list[ItemFailure] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return {
            "created": len(self.created),
            "duplicates": self.duplicates,
            "failed": len(self.failures),
        }


class FeedIngestor:
    """Fetch, parse and share every post of a subscribed feed, in feed order."""

    def __init__(
        self,
        registry: SubscriptionRegistry,
        fetcher: Fetcher,
        sharing: SharingEngine,
        parser: FeedParser | None = None,
        logger_factory: Callable[[str], structlog.BoundLogger] | None = None,
    ) -> None:
        self.registry = registry
        self.fetcher = fetcher
        self.sharing = sharing
        self.parser = parser or FeedParser()
        self.logger_factory = logger_factory or (
            lambda url: structlog.get_logger("meatspace.ingest").bind(subscription=url)
        )

    def pull(self, subscription_url: str) -> PullResult:
        url = (subscription_url or "").strip()
        if not self.registry.contains(url):
            raise NotSubscribedError(url)
        log = self.logger_factory(url)
        response = self.fetcher.fetch(url)
        items = self.parser.parse_feed(response.text, url)

        result = PullResult(url=url)
        for item in items:
            if not item.valid:
                result.failures.append(ItemFailure(item.index, item.error or "invalid post"))
                log.warning("post_rejected", index=item.index, reason=item.error)
                continue
            try:
                result.created.append(self.sharing.share(item.message, url))
            except DuplicateShareError:
                result.duplicates += 1
            except MeatspaceError as exc:
                result.failures.append(ItemFailure(item.index, exc.message))
                log.warning("post_failed", index=item.index, error=exc.message)
        log.info("pull_completed", posts=len(items), **result.summary())
        return result


__all__ = ["FeedIngestor", "ItemFailure", "PullResult"]
