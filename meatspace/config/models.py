"""Pydantic models used across meatspace configuration flow."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .. import __version__


class ScheduleType(str, Enum):
    """Scheduler modes for the subscription poll."""

    CRON = "cron"
    INTERVAL = "interval"
    ONCE = "once"


class ScheduleConfig(BaseModel):
    """Configuration describing when subscriptions are polled."""

    type: ScheduleType = Field(default=ScheduleType.INTERVAL)
    value: Any = Field(
        default=300,
        description="Cron expression, interval seconds or ISO datetime, depending on type.",
    )

    @model_validator(mode="after")
    def _validate_value(self) -> "ScheduleConfig":
        if self.type is ScheduleType.CRON and not isinstance(self.value, str):
            raise ValueError("Cron schedule requires string expression")
        if self.type is ScheduleType.INTERVAL and not isinstance(self.value, (int, float, dict)):
            raise ValueError("Interval schedule requires seconds (int/float) or kwargs dict")
        if (
            self.type is ScheduleType.ONCE
            and self.value is not None
            and not isinstance(self.value, str)
        ):
            raise ValueError("Once schedule expects ISO datetime string or null")
        return self


class OwnerIdentity(BaseModel):
    """Author metadata stamped on every message created by this instance.

    Mutable: edits made through ``ConfigRepository.update_owner`` are seen
    by the next ``create``.
    """

    full_name: str | None = None
    username: str | None = None
    post_url: str | None = None

    def missing_fields(self) -> list[str]:
        missing = []
        for name in ("full_name", "username", "post_url"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                missing.append(name)
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


class StoreConfig(BaseModel):
    """Where messages live."""

    backend: Literal["sqlite", "memory"] = "sqlite"
    path: Path = Field(default=Path("meatspace.db"))

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    def resolved_path(self, base_dir: Path) -> Path:
        """Return the database path relative to the project data directory."""

        if not self.path.is_absolute():
            return (base_dir / self.path).resolve()
        return self.path


class FetchConfig(BaseModel):
    """HTTP client settings used when pulling subscriptions."""

    timeout: float = 15.0
    user_agent: str = f"meatspace/{__version__}"
    follow_redirects: bool = True

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return value


class FeedConfig(BaseModel):
    """Outward feed settings."""

    page_size: int = 20
    output_path: Path | None = None

    @field_validator("page_size")
    @classmethod
    def _validate_page_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("page_size must be >= 1")
        return value

    @field_validator("output_path", mode="before")
    @classmethod
    def _coerce_output(cls, value: Any) -> Path | None:
        if value in (None, ""):
            return None
        return Path(value)


class GlobalConfig(BaseModel):
    """Process-wide settings, constructed once at startup."""

    owner: OwnerIdentity = Field(default_factory=OwnerIdentity)
    store: StoreConfig = Field(default_factory=StoreConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    poll_schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    thread_pool_workers: int = 4

    @field_validator("thread_pool_workers")
    @classmethod
    def _validate_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("thread_pool_workers must be >= 1")
        return value


__all__ = [
    "FeedConfig",
    "FetchConfig",
    "GlobalConfig",
    "OwnerIdentity",
    "ScheduleConfig",
    "ScheduleType",
    "StoreConfig",
]
