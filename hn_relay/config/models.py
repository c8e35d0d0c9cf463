"""Pydantic models describing HN Relay configuration."""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class ScheduleType(str, Enum):
    """Scheduler modes supported by the relay jobs."""

    CRON = "cron"
    INTERVAL = "interval"
    ONCE = "once"


class ScheduleConfig(BaseModel):
    """Configuration describing when a job should run."""

    type: ScheduleType = Field(default=ScheduleType.ONCE)
    value: Any = Field(
        default=None,
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


class FeedConfig(BaseModel):
    """Where top stories and item details are read from."""

    api_base: str = "https://hacker-news.firebaseio.com/v0"
    permalink_base: str = "https://news.ycombinator.com/item?id="
    batch_size: int = 30

    @field_validator("api_base", mode="before")
    @classmethod
    def _strip_slash(cls, value: Any) -> str:
        return str(value).rstrip("/")

    @field_validator("batch_size")
    @classmethod
    def _positive_batch(cls, value: int) -> int:
        if value < 1:
            raise ValueError("batch_size must be >= 1")
        return value

    def top_stories_url(self) -> str:
        return f"{self.api_base}/topstories.json"

    def item_url(self, item_id: int) -> str:
        return f"{self.api_base}/item/{item_id}.json"

    def permalink(self, item_id: int) -> str:
        return f"{self.permalink_base}{item_id}"


class ChannelConfig(BaseModel):
    """Telegram bot endpoint and target channel."""

    api_base: str = "https://api.telegram.org/"
    bot_token: str = ""
    chat_id: str = "@yahnc"
    parse_mode: str = "HTML"

    def method_url(self, method: str) -> str:
        base = self.api_base if self.api_base.endswith("/") else self.api_base + "/"
        return f"{base}bot{self.bot_token}/{method}"


class FilterConfig(BaseModel):
    """Thresholds deciding which stories are posted and which are marked hot."""

    score_threshold: int = 50
    comments_threshold: int = 10
    hot_threshold: int = 100

    @model_validator(mode="after")
    def _validate_non_negative(self) -> "FilterConfig":
        if self.score_threshold < 0:
            raise ValueError("score_threshold must be >= 0")
        if self.comments_threshold < 0:
            raise ValueError("comments_threshold must be >= 0")
        return self


class QueueConfig(BaseModel):
    """Worker pool and retry policy of the task queue."""

    workers: int = 8
    max_attempts: int = 3
    retry_backoff_seconds: float = 5.0

    @model_validator(mode="after")
    def _validate_limits(self) -> "QueueConfig":
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0")
        return self


class RelayConfig(BaseModel):
    """Top-level configuration passed to every relay component."""

    feed: FeedConfig = Field(default_factory=FeedConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    retention_hours: float = 24
    cycle_deadline_seconds: float = 540
    store_path: Path = Field(default=Path("data/relay.db"))
    poll_schedule: ScheduleConfig = Field(
        default_factory=lambda: ScheduleConfig(type=ScheduleType.INTERVAL, value=300)
    )
    cleanup_schedule: ScheduleConfig = Field(
        default_factory=lambda: ScheduleConfig(type=ScheduleType.CRON, value="0 * * * *")
    )

    @field_validator("store_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_durations(self) -> "RelayConfig":
        if self.retention_hours <= 0:
            raise ValueError("retention_hours must be > 0")
        if self.cycle_deadline_seconds <= 0:
            raise ValueError("cycle_deadline_seconds must be > 0")
        return self

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.retention_hours)

    def resolved_store_path(self, base_dir: Path) -> Path:
        """Return the SQLite path relative to the project root."""

        if not self.store_path.is_absolute():
            return (base_dir / self.store_path).resolve()
        return self.store_path


__all__ = [
    "ChannelConfig",
    "FeedConfig",
    "FilterConfig",
    "QueueConfig",
    "RelayConfig",
    "ScheduleConfig",
    "ScheduleType",
]
