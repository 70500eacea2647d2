"""This instance's outward feed, as consumed by other instances' pulls."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from ..errors import PrivateMessageError
from .messages import MessageStore
from .models import Message


class FeedPublisher:
    """Expose public messages only."""

    def __init__(self, messages: MessageStore, page_size: int = 20) -> None:
        self.messages = messages
        self.page_size = page_size

    def recent(self, offset: int = 0, limit: int | None = None) -> list[Message]:
        public = [message for message in self.messages.list_all() if message.is_public]
        window = public[offset:]
        return window if limit is None else window[:limit]

    def one(self, message_id: int) -> Message:
        message = self.messages.get(message_id)
        if message.meta.is_private:
            raise PrivateMessageError(message_id)
        return message

    def render_feed(self, offset: int = 0) -> dict[str, Any]:
        return {"posts": [m.to_wire() for m in self.recent(offset, self.page_size)]}

    def render_one(self, message_id: int) -> dict[str, Any]:
        return self.one(message_id).to_wire()

    def write_feed(self, path: Path, offset: int = 0) -> Path:
        """Write the feed document atomically so a static server never serves half a file."""

        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self.render_feed(offset), ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(prefix=".feed-", suffix=".json", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as stream:
                stream.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return path


__all__ = ["FeedPublisher"]
