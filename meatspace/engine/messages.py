"""Message store owning id generation, validation and versioning."""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Mapping

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..config import OwnerIdentity
from ..errors import NotFoundError, ValidationError
from ..infra.store import BaseStore
from .models import Message, MessageContent, MessageDraft, MessageMeta, MessageUpdate

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _describe(exc: PydanticValidationError) -> list[str]:
    return [".".join(str(part) for part in error["loc"]) for error in exc.errors()]


class MessageStore:
    """Create, read, update, delete and list messages on top of a ``BaseStore``."""

    def __init__(
        self,
        store: BaseStore,
        owner: OwnerIdentity,
        clock: Clock | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.store = store
        self.owner = owner
        self.clock = clock or utcnow
        self.logger = logger or structlog.get_logger("meatspace.messages")
        self._id_lock = Lock()

    def create(self, draft: MessageDraft | Mapping[str, Any]) -> Message:
        missing = self.owner.missing_fields()
        if missing:
            raise ValidationError(
                f"Owner identity incomplete: {', '.join(missing)}", fields=missing
            )
        parsed = self._coerce_draft(draft)
        now = self.clock()
        with self._id_lock:
            message_id = self.store.allocate_id()
        message = Message(
            id=message_id,
            username=str(self.owner.username),
            full_name=str(self.owner.full_name),
            content=MessageContent(
                message=parsed.content.message,
                urls=[link.model_copy() for link in parsed.content.urls],
                created=now,
                updated=now,
            ),
            meta=MessageMeta(
                origin_url=parsed.meta.origin_url or str(self.owner.post_url),
                location=parsed.meta.location,
                is_private=parsed.meta.is_private,
                is_shared=parsed.meta.is_shared,
            ),
            shares=list(parsed.shares),
        )
        self.store.put(message_id, message.to_bytes())
        self.logger.info(
            "message_created",
            id=message_id,
            private=message.meta.is_private,
            shared=message.meta.is_shared,
        )
        return self.get(message_id)

    def get(self, message_id: int) -> Message:
        payload = self.store.get(message_id)
        if payload is None:
            raise NotFoundError(message_id)
        return Message.from_bytes(payload)

    def update(self, message: Message | MessageUpdate | Mapping[str, Any]) -> Message:
        change = self._coerce_update(message)
        current = self.get(change.id)
        now = self.clock()
        created = current.content.created
        merged = Message(
            id=current.id,
            username=change.username or current.username,
            full_name=change.full_name or current.full_name,
            content=MessageContent(
                message=change.content.message,
                urls=[link.model_copy() for link in change.content.urls],
                created=created,
                updated=now if now >= created else created,
            ),
            meta=change.meta.model_copy(
                update={"is_shared": current.meta.is_shared or change.meta.is_shared}
            ),
            shares=list(change.shares),
        )
        self.store.put(merged.id, merged.to_bytes())
        self.logger.info("message_updated", id=merged.id, private=merged.meta.is_private)
        return self.get(merged.id)

    def delete(self, message_id: int) -> None:
        if self.store.get(message_id) is None:
            raise NotFoundError(message_id)
        self.store.delete(message_id)
        self.logger.info("message_deleted", id=message_id)

    def list_all(self, offset: int = 0, limit: int | None = None) -> list[Message]:
        messages: list[Message] = []
        for index, (_, payload) in enumerate(self.store.scan()):
            if index < offset:
                continue
            if limit is not None and len(messages) >= limit:
                break
            messages.append(Message.from_bytes(payload))
        return messages

    def count(self) -> int:
        return self.store.count()

    @staticmethod
    def _coerce_draft(draft: MessageDraft | Mapping[str, Any]) -> MessageDraft:
        if isinstance(draft, MessageDraft):
            return draft.model_copy(deep=True)
        try:
            return MessageDraft.model_validate(dict(draft))
        except PydanticValidationError as exc:
            fields = _describe(exc)
            raise ValidationError(f"Invalid message draft: {', '.join(fields)}", fields=fields) from exc

    @staticmethod
    def _coerce_update(message: Message | MessageUpdate | Mapping[str, Any]) -> MessageUpdate:
        if isinstance(message, MessageUpdate):
            return message.model_copy(deep=True)
        if isinstance(message, Message):
            return MessageUpdate.model_validate(message.model_dump())
        try:
            return MessageUpdate.model_validate(dict(message))
        except PydanticValidationError as exc:
            fields = _describe(exc)
            raise ValidationError(f"Invalid message: {', '.join(fields)}", fields=fields) from exc


__all__ = ["Clock", "MessageStore", "utcnow"]
