"""Locate, read and write the instance configuration.

The home directory is ``$MEATSPACE_HOME`` when set, otherwise the checkout
root. Configuration lives at ``<home>/data/global_config.{yaml,yml,json}``
unless ``$MEATSPACE_CONFIG`` names a file explicitly.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import GlobalConfig, OwnerIdentity

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
GLOBAL_CONFIG_STEM = "global_config"
HOME_ENV = "MEATSPACE_HOME"
CONFIG_ENV = "MEATSPACE_CONFIG"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    if path.suffix == ".json":
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    else:
        text = yaml.safe_dump(payload, allow_unicode=True, sort_keys=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=path.suffix, dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as stream:
            stream.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


@dataclass(slots=True)
class ConfigLocator:
    """Resolve the home, data and logs directories."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV)
        if env_root:
            root = Path(env_root).expanduser()
        else:
            root = self.project_root or Path(__file__).resolve().parents[2]
        self.project_root = root.resolve()
        self.data_dir = self.project_root / "data"
        self.logs_dir = self.project_root / "logs"
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        """Where a new configuration file is written."""

        explicit = os.environ.get(CONFIG_ENV)
        if explicit:
            return Path(explicit).expanduser().resolve()
        return self.data_dir / f"{GLOBAL_CONFIG_STEM}.yaml"

    def existing_config_path(self) -> Path | None:
        """The configuration file to read, if one exists."""

        preferred = self.global_config_path()
        if preferred.exists() or os.environ.get(CONFIG_ENV):
            return preferred if preferred.exists() else None
        for suffix in CONFIG_EXTENSIONS:
            candidate = self.data_dir / f"{GLOBAL_CONFIG_STEM}{suffix}"
            if candidate.exists():
                return candidate
        return None


class ConfigRepository:
    """Cached access to the validated ``GlobalConfig``."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        if self._cache is None:
            path = self.locator.existing_config_path()
            if path is None:
                self.save_global_config(GlobalConfig())
            else:
                self._cache = GlobalConfig.model_validate(_read_file(path))
        return self._cache

    def save_global_config(self, config: GlobalConfig) -> Path:
        path = self.locator.existing_config_path() or self.locator.global_config_path()
        _write_file(path, config.model_dump(mode="json"))
        self._cache = config
        return path

    def reload(self) -> GlobalConfig:
        self._cache = None
        return self.load_global_config()

    def update_owner(self, **changes: Any) -> OwnerIdentity:
        """Apply non-``None`` owner field changes, validate and persist them."""

        config = self.load_global_config()
        merged = config.owner.model_dump()
        merged.update({key: value for key, value in changes.items() if value is not None})
        validated = OwnerIdentity.model_validate(merged)
        for name, value in validated.model_dump().items():
            setattr(config.owner, name, value)
        self.save_global_config(config)
        return config.owner

    def database_path(self, config: GlobalConfig | None = None) -> Path:
        cfg = config or self.load_global_config()
        return cfg.store.resolved_path(self.locator.data_dir)


__all__ = ["CONFIG_ENV", "CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository", "HOME_ENV"]
