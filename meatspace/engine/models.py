"""Message, draft and feed item models.

Attributes are snake_case in Python; the stored and wire representation uses
the camelCase names other instances expect (``fullName``, ``originUrl``,
``isPrivate`` ...).
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class UrlRef(_WireModel):
    """A titled link attached to a message."""

    title: str = ""
    url: str


class MessageContent(_WireModel):
    message: str
    urls: list[UrlRef] = Field(default_factory=list)
    created: datetime
    updated: datetime


class MessageMeta(_WireModel):
    origin_url: str = ""
    location: str = ""
    is_private: bool = False
    is_shared: bool = False

    @property
    def is_public(self) -> bool:
        return not self.is_private


class Message(_WireModel):
    """A stored message."""

    id: int
    username: str
    full_name: str
    content: MessageContent
    meta: MessageMeta = Field(default_factory=MessageMeta)
    shares: list[str] = Field(default_factory=list)

    @field_validator("shares")
    @classmethod
    def _dedupe_shares(cls, value: list[str]) -> list[str]:
        return _unique(value)

    @property
    def is_public(self) -> bool:
        return self.meta.is_public

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_bytes(cls, payload: bytes) -> "Message":
        return cls.model_validate_json(payload)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class DraftContent(_WireModel):
    message: str
    urls: list[UrlRef] = Field(default_factory=list)


class DraftMeta(_WireModel):
    origin_url: str | None = None
    location: str = ""
    is_private: bool = False
    is_shared: bool = False


class MessageDraft(_WireModel):
    """Input accepted by ``MessageStore.create``; unknown keys are ignored."""

    content: DraftContent
    meta: DraftMeta = Field(default_factory=DraftMeta)
    shares: list[str] = Field(default_factory=list)

    @field_validator("shares")
    @classmethod
    def _dedupe_shares(cls, value: list[str]) -> list[str]:
        return _unique(value)


class MessageUpdate(_WireModel):
    """Input accepted by ``MessageStore.update``.

    Timestamps are owned by the store, so ``content.created``/``updated`` may be
    omitted and are ignored when present. Missing author fields keep the
    stored values.
    """

    id: int
    username: str | None = None
    full_name: str | None = None
    content: DraftContent
    meta: MessageMeta = Field(default_factory=MessageMeta)
    shares: list[str] = Field(default_factory=list)

    @field_validator("shares")
    @classmethod
    def _dedupe_shares(cls, value: list[str]) -> list[str]:
        return _unique(value)


class ExternalMeta(_WireModel):
    origin_url: str = Field(min_length=1)
    location: str = ""


class ExternalMessage(_WireModel):
    """One item of a remote feed's ``posts`` array."""

    id: Any = None
    content: DraftContent
    meta: ExternalMeta

    def fingerprint(self) -> str:
        """Identity of this item within its origin feed."""

        if isinstance(self.id, str):
            return f"id:{self.id}"
        if self.id is not None:
            return "id:" + json.dumps(self.id, sort_keys=True, ensure_ascii=False, default=str)
        seed = json.dumps(
            {
                "message": self.content.message,
                "urls": [link.model_dump() for link in self.content.urls],
            },
            sort_keys=True,
            ensure_ascii=False,
        )
        return "sha256:" + hashlib.sha256(seed.encode("utf-8")).hexdigest()


__all__ = [
    "DraftContent",
    "DraftMeta",
    "ExternalMessage",
    "ExternalMeta",
    "Message",
    "MessageContent",
    "MessageDraft",
    "MessageUpdate",
    "MessageMeta",
    "UrlRef",
]
