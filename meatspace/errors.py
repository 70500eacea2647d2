"""
Error types raised by the meatspace core.

Every error is a local, recoverable outcome surfaced to the caller:
- ValidationError: owner identity or payload is incomplete
- NotFoundError: unknown message id
- DuplicateShareError: item already shared for the source URL
- NotSubscribedError: pull against an unregistered feed URL
- FetchError: transport failure or non-2xx response
- ParseError: feed body is not a JSON object with a ``posts`` array
- PrivateMessageError: a single private message was requested from the feed
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class MeatspaceError(Exception):
    """Base exception for all meatspace errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "MEATSPACE_ERROR"
        self.details = details or {}


class ValidationError(MeatspaceError):
    """Owner identity or message payload failed validation."""

    def __init__(self, message: str, fields: Optional[List[str]] = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR", details={"fields": fields or []})
        self.fields = fields or []


class NotFoundError(MeatspaceError):
    """No message is stored under the requested id."""

    def __init__(self, message_id: Any) -> None:
        super().__init__(
            f"Message not found: {message_id}",
            code="NOT_FOUND",
            details={"id": message_id},
        )
        self.message_id = message_id


class DuplicateShareError(MeatspaceError):
    """The external message was already shared from this source URL."""

    def __init__(self, source_url: str, message_id: int | None = None) -> None:
        super().__init__(
            f"Already shared from {source_url}",
            code="DUPLICATE_SHARE",
            details={"source_url": source_url, "id": message_id},
        )
        self.source_url = source_url
        self.message_id = message_id


class NotSubscribedError(MeatspaceError):
    """Pull requested for a feed URL that is not subscribed."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Not subscribed: {url}", code="NOT_SUBSCRIBED", details={"url": url})
        self.url = url


class FetchError(MeatspaceError):
    """Feed could not be retrieved."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(
            f"Fetch failed for {url}: {reason}",
            code="FETCH_ERROR",
            details={"url": url, "status_code": status_code},
        )
        self.url = url
        self.status_code = status_code


class ParseError(MeatspaceError):
    """Feed body does not have the ``{"posts": [...]}`` shape."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(
            f"Invalid feed from {url}: {reason}",
            code="PARSE_ERROR",
            details={"url": url},
        )
        self.url = url


class PrivateMessageError(MeatspaceError):
    """The message exists but is private and cannot be published."""

    def __init__(self, message_id: int) -> None:
        super().__init__(
            f"Message is private: {message_id}",
            code="PRIVATE_MESSAGE",
            details={"id": message_id},
        )
        self.message_id = message_id


__all__ = [
    "DuplicateShareError",
    "FetchError",
    "MeatspaceError",
    "NotFoundError",
    "NotSubscribedError",
    "ParseError",
    "PrivateMessageError",
    "ValidationError",
]
