"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    FeedConfig,
    FetchConfig,
    GlobalConfig,
    OwnerIdentity,
    ScheduleConfig,
    ScheduleType,
    StoreConfig,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "FeedConfig",
    "FetchConfig",
    "GlobalConfig",
    "OwnerIdentity",
    "ScheduleConfig",
    "ScheduleType",
    "StoreConfig",
]
