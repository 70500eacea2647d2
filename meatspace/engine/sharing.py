"""Turn externally authored messages into local shares, once per source URL."""

from __future__ import annotations

from threading import RLock
from typing import Any, Mapping

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..errors import DuplicateShareError, NotFoundError, ValidationError
from .dedup import ShareIndex, ShareKey
from .messages import MessageStore
from .models import DraftContent, DraftMeta, ExternalMessage, Message, MessageDraft


class SharingEngine:
    """Decide whether an external item is new for a source URL and persist it."""

    def __init__(
        self,
        messages: MessageStore,
        index: ShareIndex,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.messages = messages
        self.index = index
        self.logger = logger or structlog.get_logger("meatspace.sharing")
        self._lock = RLock()

    def share(self, external: ExternalMessage | Mapping[str, Any], source_url: str) -> Message:
        item = self.coerce(external)
        key = ShareKey(
            origin_url=item.meta.origin_url,
            source_url=source_url,
            fingerprint=item.fingerprint(),
        )
        with self._lock:
            existing = self._existing_share(key)
            if existing is not None:
                self.logger.debug(
                    "share_duplicate", source_url=source_url, origin_url=key.origin_url, id=existing
                )
                raise DuplicateShareError(source_url, existing)
            draft = MessageDraft(
                content=DraftContent(
                    message=item.content.message,
                    urls=[link.model_copy() for link in item.content.urls],
                ),
                meta=DraftMeta(
                    origin_url=item.meta.origin_url,
                    location=item.meta.location,
                    is_private=False,
                    is_shared=True,
                ),
                shares=[source_url],
            )
            message = self.messages.create(draft)
            self.index.record(key, message.id)
        self.logger.info(
            "message_shared", id=message.id, source_url=source_url, origin_url=key.origin_url
        )
        return message

    @staticmethod
    def coerce(external: ExternalMessage | Mapping[str, Any]) -> ExternalMessage:
        if isinstance(external, ExternalMessage):
            return external
        try:
            return ExternalMessage.model_validate(dict(external))
        except (PydanticValidationError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid external message: {exc}") from exc

    def _existing_share(self, key: ShareKey) -> int | None:
        message_id = self.index.lookup(key)
        if message_id is None:
            return None
        try:
            message = self.messages.get(message_id)
        except NotFoundError:
            self.index.forget(key)
            return None
        if key.source_url not in message.shares or message.meta.origin_url != key.origin_url:
            self.index.forget(key)
            return None
        return message_id


__all__ = ["SharingEngine"]
