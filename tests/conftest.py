"""Shared fixtures: isolated home directory, fake clock and wired components."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from meatspace.config import ConfigLocator, ConfigRepository, GlobalConfig, OwnerIdentity, StoreConfig
from meatspace.engine import MessageStore, ShareIndex, SharingEngine, SubscriptionRegistry
from meatspace.infra import SQLiteManager, SQLiteStore

OWN_FEED = "http://test.com/recent.json"


class FakeClock:
    """Deterministic clock; ``advance`` moves time forward."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 20, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("MEATSPACE_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def owner() -> OwnerIdentity:
    return OwnerIdentity(full_name="test name", username="test", post_url=OWN_FEED)


@pytest.fixture
def sqlite_manager() -> Iterable[SQLiteManager]:
    manager = SQLiteManager()
    yield manager
    manager.close_all()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "meatspace.db"


@pytest.fixture
def message_store(sqlite_manager: SQLiteManager, db_path: Path, owner: OwnerIdentity, clock: FakeClock) -> MessageStore:
    return MessageStore(SQLiteStore(sqlite_manager, db_path), owner, clock=clock)


@pytest.fixture
def share_index(sqlite_manager: SQLiteManager, db_path: Path) -> ShareIndex:
    return ShareIndex(sqlite_manager, db_path)


@pytest.fixture
def sharing(message_store: MessageStore, share_index: ShareIndex) -> SharingEngine:
    return SharingEngine(message_store, share_index)


@pytest.fixture
def registry(sqlite_manager: SQLiteManager, db_path: Path) -> SubscriptionRegistry:
    return SubscriptionRegistry(sqlite_manager, db_path)


@pytest.fixture
def build_draft() -> Callable[..., dict[str, Any]]:
    def _builder(**meta: Any) -> dict[str, Any]:
        base_meta: dict[str, Any] = {
            "originUrl": OWN_FEED,
            "location": "37.3882807, -122.0828559",
            "isPrivate": False,
            "isShared": False,
        }
        base_meta.update(meta)
        return {
            "content": {
                "message": "some message",
                "urls": [{"title": "some url", "url": "http://some.url.com"}],
            },
            "meta": base_meta,
            "shares": [],
        }

    return _builder


@pytest.fixture
def external_message() -> Callable[..., dict[str, Any]]:
    def _builder(text: str = "some other message", **extra: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "content": {"message": text},
            "meta": {
                "originUrl": "http://some.other.url.com/recent.json",
                "location": "37.3882807, -122.0828559",
                "isPrivate": False,
                "isShared": False,
            },
            "shares": [],
        }
        payload.update(extra)
        return payload

    return _builder


@pytest.fixture
def sample_global_config(owner: OwnerIdentity) -> GlobalConfig:
    return GlobalConfig(owner=owner, store=StoreConfig(path="meatspace.db"), thread_pool_workers=2)


@pytest.fixture
def temp_config_repository(tmp_path: Path, sample_global_config: GlobalConfig) -> ConfigRepository:
    repository = ConfigRepository(ConfigLocator(project_root=tmp_path))
    repository.save_global_config(sample_global_config)
    return repository
