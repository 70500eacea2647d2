from __future__ import annotations

import json

import pytest

from meatspace.engine import FeedPublisher
from meatspace.errors import NotFoundError, PrivateMessageError


@pytest.fixture
def publisher(message_store) -> FeedPublisher:
    return FeedPublisher(message_store, page_size=2)


@pytest.fixture
def seeded(message_store, sharing, build_draft, external_message):
    public = message_store.create(build_draft())
    private = message_store.create(build_draft(isPrivate=True))
    shared = sharing.share(external_message(), "http://url.to.blog.com/recent.json")
    later = message_store.create(build_draft())
    return public, private, shared, later


def test_recent_excludes_private(publisher, seeded) -> None:
    public, private, shared, later = seeded
    recent = publisher.recent(0)
    assert [m.id for m in recent] == [public.id, shared.id, later.id]
    assert all(not m.meta.is_private for m in recent)


def test_recent_offset_counts_public_messages(publisher, seeded) -> None:
    _, _, shared, later = seeded
    assert [m.id for m in publisher.recent(1)] == [shared.id, later.id]
    assert [m.id for m in publisher.recent(1, limit=1)] == [shared.id]


def test_recent_reflects_privacy_flips(publisher, message_store, seeded) -> None:
    public = seeded[0]
    public.meta.is_private = True
    message_store.update(public)
    assert public.id not in [m.id for m in publisher.recent()]


def test_one_public_and_private(publisher, seeded) -> None:
    public, private, _, _ = seeded
    assert publisher.one(public.id).meta.is_private is False
    with pytest.raises(PrivateMessageError):
        publisher.one(private.id)
    with pytest.raises(NotFoundError):
        publisher.one(9999)


def test_render_feed_uses_wire_names_and_page_size(publisher, seeded) -> None:
    document = publisher.render_feed()
    assert len(document["posts"]) == 2
    post = document["posts"][0]
    assert set(post) == {"id", "username", "fullName", "content", "meta", "shares"}
    assert set(post["meta"]) == {"originUrl", "location", "isPrivate", "isShared"}
    assert isinstance(post["content"]["created"], str)


def test_write_feed_is_valid_json(publisher, seeded, tmp_path) -> None:
    target = tmp_path / "public" / "recent.json"
    publisher.write_feed(target)
    document = json.loads(target.read_text(encoding="utf-8"))
    assert [post["id"] for post in document["posts"]] == [seeded[0].id, seeded[2].id]
    assert list(target.parent.glob(".feed-*")) == []
