from __future__ import annotations

import json
from pathlib import Path

import pytest

from meatspace.config import ConfigLocator, ConfigRepository, GlobalConfig, OwnerIdentity


def test_config_locator_uses_env_and_creates_directories(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEATSPACE_HOME", str(tmp_path / "home"))
    locator = ConfigLocator()
    assert locator.project_root == (tmp_path / "home").resolve()
    assert locator.data_dir.exists()
    assert locator.logs_dir.exists()
    assert locator.global_config_path() == locator.data_dir / "global_config.yaml"


def test_load_creates_default_config(tmp_path: Path) -> None:
    repo = ConfigRepository(ConfigLocator(project_root=tmp_path))
    config = repo.load_global_config()
    assert config == GlobalConfig()
    assert repo.locator.global_config_path().exists()


def test_global_roundtrip(tmp_path: Path) -> None:
    repo = ConfigRepository(ConfigLocator(project_root=tmp_path))
    config = GlobalConfig(owner=OwnerIdentity(full_name="a", username="b", post_url="http://c/recent.json"))
    repo.save_global_config(config)
    assert repo.reload() == config


def test_json_config_is_honoured(tmp_path: Path) -> None:
    locator = ConfigLocator(project_root=tmp_path)
    json_path = locator.data_dir / "global_config.json"
    json_path.write_text(json.dumps({"feed": {"page_size": 5}}), encoding="utf-8")
    repo = ConfigRepository(locator)
    assert repo.load_global_config().feed.page_size == 5


def test_non_mapping_config_is_rejected(tmp_path: Path) -> None:
    locator = ConfigLocator(project_root=tmp_path)
    locator.global_config_path().write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        ConfigRepository(locator).load_global_config()


def test_database_path_is_relative_to_data_dir(tmp_path: Path) -> None:
    repo = ConfigRepository(ConfigLocator(project_root=tmp_path))
    assert repo.database_path() == repo.locator.data_dir / "meatspace.db"


def test_explicit_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    explicit = tmp_path / "elsewhere" / "meatspace.json"
    monkeypatch.setenv("MEATSPACE_CONFIG", str(explicit))
    repo = ConfigRepository(ConfigLocator(project_root=tmp_path))
    repo.load_global_config()
    assert explicit.exists()
    assert not (repo.locator.data_dir / "global_config.yaml").exists()
    assert json.loads(explicit.read_text(encoding="utf-8"))["feed"]["page_size"] == 20


def test_update_owner_merges_and_persists(tmp_path: Path) -> None:
    repo = ConfigRepository(ConfigLocator(project_root=tmp_path))
    config = repo.load_global_config()
    live_owner = config.owner

    repo.update_owner(full_name="Jane", username=None)
    repo.update_owner(username="jane")

    assert live_owner.full_name == "Jane"
    assert live_owner.username == "jane"
    assert repo.reload().owner == OwnerIdentity(full_name="Jane", username="jane")
