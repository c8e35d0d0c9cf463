"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    ChannelConfig,
    FeedConfig,
    FilterConfig,
    QueueConfig,
    RelayConfig,
    ScheduleConfig,
    ScheduleType,
)

__all__ = [
    "ChannelConfig",
    "ConfigLocator",
    "ConfigRepository",
    "FeedConfig",
    "FilterConfig",
    "QueueConfig",
    "RelayConfig",
    "ScheduleConfig",
    "ScheduleType",
]
