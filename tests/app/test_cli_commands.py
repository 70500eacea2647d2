from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from typer.testing import CliRunner

from meatspace.app import AppState, app
from meatspace.config import OwnerIdentity
from meatspace.engine import ThreadPoolManager
from meatspace.infra import SQLiteManager
from meatspace.orchestrator import Orchestrator

FEED = "http://friend.example/recent.json"


def _handler(request: httpx.Request) -> httpx.Response:
    body = {"posts": [{"id": 9, "content": {"message": "from a friend"}, "meta": {"originUrl": FEED}}]}
    return httpx.Response(200, json=body)


@pytest.fixture
def state(temp_config_repository, monkeypatch) -> AppState:
    storage = SQLiteManager()
    scheduler = SimpleNamespace(list_jobs=lambda: [], shutdown=lambda: None)
    orchestrator = Orchestrator(
        config_repository=temp_config_repository,
        scheduler=MagicMock(),
        thread_pool=ThreadPoolManager(1),
        storage=storage,
        transport=httpx.MockTransport(_handler),
    )
    app_state = AppState(
        repository=temp_config_repository,
        scheduler=scheduler,
        orchestrator=orchestrator,
        storage=storage,
    )
    monkeypatch.setattr("meatspace.app.build_state", lambda verbose: app_state)
    yield app_state
    orchestrator.close()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_post_lifecycle(state, runner) -> None:
    result = runner.invoke(app, ["post", "create", "hello world", "--link", "Site=http://site.example"])
    assert result.exit_code == 0, result.stdout
    assert "Created message 1." in result.stdout

    result = runner.invoke(app, ["post", "show", "1"])
    assert result.exit_code == 0, result.stdout
    shown = json.loads(result.stdout)
    assert shown["content"]["urls"] == [{"title": "Site", "url": "http://site.example"}]
    assert shown["fullName"] == "test name"

    result = runner.invoke(app, ["post", "edit", "1", "--text", "edited", "--private"])
    assert result.exit_code == 0, result.stdout
    message = state.orchestrator.get(1)
    assert message.content.message == "edited"
    assert message.meta.is_private

    result = runner.invoke(app, ["post", "list"])
    assert result.exit_code == 0, result.stdout
    assert "edited" in result.stdout

    result = runner.invoke(app, ["post", "delete", "1"], input="n\n")
    assert "Cancelled." in result.stdout
    result = runner.invoke(app, ["post", "delete", "1", "--yes"])
    assert result.exit_code == 0, result.stdout

    result = runner.invoke(app, ["post", "show", "1"])
    assert result.exit_code == 1
    assert "NOT_FOUND" in result.stdout


def test_post_create_requires_owner(state, runner) -> None:
    state.orchestrator.messages.owner = OwnerIdentity()
    result = runner.invoke(app, ["post", "create", "hello"])
    assert result.exit_code == 1
    assert "VALIDATION_ERROR" in result.stdout


def test_subscription_commands(state, runner) -> None:
    result = runner.invoke(app, ["sub", "add", "ftp://nope"])
    assert result.exit_code == 1

    result = runner.invoke(app, ["sub", "pull", FEED])
    assert result.exit_code == 1
    assert "NOT_SUBSCRIBED" in result.stdout

    assert runner.invoke(app, ["sub", "add", FEED]).exit_code == 0
    result = runner.invoke(app, ["sub", "list"])
    assert FEED in result.stdout

    result = runner.invoke(app, ["sub", "pull-all"])
    assert result.exit_code == 0, result.stdout
    shared = state.orchestrator.list_all()
    assert [m.content.message for m in shared] == ["from a friend"]
    assert shared[0].shares == [FEED]

    result = runner.invoke(app, ["sub", "history", FEED])
    assert result.exit_code == 0, result.stdout
    assert "from a friend" in result.stdout

    assert runner.invoke(app, ["sub", "remove", FEED]).exit_code == 0
    assert state.orchestrator.subscriptions() == []


def test_feed_commands(state, runner, tmp_path) -> None:
    state.orchestrator.create({"content": {"message": "visible"}, "meta": {}})
    state.orchestrator.create({"content": {"message": "hidden"}, "meta": {"isPrivate": True}})

    result = runner.invoke(app, ["feed", "recent"])
    assert result.exit_code == 0, result.stdout
    document = json.loads(result.stdout)
    assert [post["content"]["message"] for post in document["posts"]] == ["visible"]

    result = runner.invoke(app, ["feed", "one", "2"])
    assert result.exit_code == 1
    assert "PRIVATE_MESSAGE" in result.stdout

    target = tmp_path / "site" / "recent.json"
    result = runner.invoke(app, ["feed", "write", "--output", str(target)])
    assert result.exit_code == 0, result.stdout
    assert json.loads(target.read_text(encoding="utf-8"))["posts"][0]["id"] == 1


def test_owner_set_persists(state, runner) -> None:
    result = runner.invoke(app, ["owner", "set", "--post-url", "not a url"])
    assert result.exit_code == 1

    result = runner.invoke(app, ["owner", "set", "--full-name", "New Name"])
    assert result.exit_code == 0, result.stdout
    assert state.repository.reload().owner.full_name == "New Name"

    result = runner.invoke(app, ["owner", "show"])
    assert "New Name" in result.stdout


def test_owner_change_applies_to_next_post(state, runner) -> None:
    runner.invoke(app, ["owner", "set", "--username", "renamed"])
    runner.invoke(app, ["post", "create", "after rename"])
    assert state.orchestrator.get(1).username == "renamed"
