"""JSON feed parsing helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..errors import ParseError
from .models import ExternalMessage


@dataclass
class FeedItem:
    """One ``posts`` entry: the parsed item, or the reason it was rejected."""

    index: int
    raw: Any
    message: ExternalMessage | None = None
    error: str | None = None

    @property
    def valid(self) -> bool:
        return self.message is not None


class FeedParser:
    """Parse ``{"posts": [...]}`` bodies produced by other instances."""

    def parse_json(self, payload: str, url: str = "") -> Any:
        try:
            return json.loads(payload)
        except (json.JSONDecodeError, TypeError) as exc:
            raise ParseError(url, f"body is not valid JSON ({exc})") from exc

    def parse_feed(self, payload: str, url: str = "") -> list[FeedItem]:
        document = self.parse_json(payload, url)
        if not isinstance(document, dict):
            raise ParseError(url, f"expected a JSON object, got {type(document).__name__}")
        posts = document.get("posts")
        if not isinstance(posts, list):
            raise ParseError(url, "missing 'posts' array")
        return [self._parse_item(index, raw) for index, raw in enumerate(posts)]

    @staticmethod
    def _parse_item(index: int, raw: Any) -> FeedItem:
        if not isinstance(raw, dict):
            return FeedItem(index=index, raw=raw, error="post is not an object")
        try:
            message = ExternalMessage.model_validate(raw)
        except PydanticValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            return FeedItem(index=index, raw=raw, error=f"invalid post: {fields}")
        return FeedItem(index=index, raw=raw, message=message)


__all__ = ["FeedItem", "FeedParser"]
