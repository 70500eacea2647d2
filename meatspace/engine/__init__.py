"""Engine components: message store, sharing, subscriptions, ingest and publish."""

from .dedup import ShareIndex, ShareKey
from .fetcher import FetchResponse, Fetcher
from .ingest import FeedIngestor, ItemFailure, PullResult
from .messages import MessageStore
from .models import ExternalMessage, Message, MessageDraft, MessageUpdate, UrlRef
from .parser import FeedItem, FeedParser
from .publisher import FeedPublisher
from .sharing import SharingEngine
from .subscriptions import SubscriptionRegistry
from .thread_pool import ThreadPoolManager

__all__ = [
    "ExternalMessage",
    "FeedIngestor",
    "FeedItem",
    "FeedParser",
    "FeedPublisher",
    "FetchResponse",
    "Fetcher",
    "ItemFailure",
    "Message",
    "MessageDraft",
    "MessageStore",
    "MessageUpdate",
    "PullResult",
    "ShareIndex",
    "ShareKey",
    "SharingEngine",
    "SubscriptionRegistry",
    "ThreadPoolManager",
    "UrlRef",
]
