"""Domain types shared by the reconciler, dispatcher and sweeper."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

from ..config import FilterConfig

STORY_TYPE = "story"
STORE_NAMESPACE = "TopStory"


class FeedItem(BaseModel):
    """One item as returned by the feed's item endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = ""
    score: int = 0
    descendants: int = 0
    url: str = ""
    title: str = ""

    @field_validator("type", "url", "title", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("score", "descendants", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        return 0 if value is None else value

    def should_ignore(self, filters: FilterConfig) -> bool:
        return (
            self.type != STORY_TYPE
            or self.score < filters.score_threshold
            or self.descendants < filters.comments_threshold
            or self.url == ""
        )


@dataclass(slots=True)
class StoryRecord:
    """Persisted notification state for one posted story."""

    item_id: int
    message_id: int = 0
    last_save: datetime | None = None

    def age(self, now: datetime) -> timedelta:
        if self.last_save is None:
            return timedelta.max
        return now - self.last_save

    def is_expired(self, now: datetime, retention: timedelta) -> bool:
        return self.age(now) > retention


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(slots=True)
class LookupResult:
    """Outcome of one key in a bulk store lookup."""

    item_id: int
    status: LookupStatus
    record: StoryRecord | None = None
    error: Exception | None = None


def project_record(item: FeedItem, message_id: int, now: datetime) -> StoryRecord:
    """Reduce an enriched feed item to the fields that are persisted."""

    return StoryRecord(item_id=item.id, message_id=message_id, last_save=now)


class ActionKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class Action:
    """A unit of work for the dispatcher, submitted through the task queue."""

    kind: ActionKind
    item_id: int
    message_id: int | None = None

    def __post_init__(self) -> None:
        if self.kind is not ActionKind.CREATE and not self.message_id:
            raise ValueError(f"{self.kind.value} action requires a message_id")

    @classmethod
    def create(cls, item_id: int) -> "Action":
        return cls(ActionKind.CREATE, item_id)

    @classmethod
    def update(cls, item_id: int, message_id: int) -> "Action":
        return cls(ActionKind.UPDATE, item_id, message_id)

    @classmethod
    def delete(cls, item_id: int, message_id: int) -> "Action":
        return cls(ActionKind.DELETE, item_id, message_id)


class DispatchOutcome(str, Enum):
    """Non-error results of executing one action."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    PURGED = "purged"
    IGNORED = "ignored"
    ALREADY_POSTED = "already_posted"


@dataclass(slots=True)
class CycleReport:
    fetched: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    submit_failed: int = 0
    task_ids: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        return {
            "fetched": self.fetched,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "submit_failed": self.submit_failed,
        }


@dataclass(slots=True)
class SweepReport:
    scanned: int = 0
    expired: int = 0
    submitted: int = 0
    submit_failed: int = 0
    task_ids: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        return {
            "scanned": self.scanned,
            "expired": self.expired,
            "submitted": self.submitted,
            "submit_failed": self.submit_failed,
        }


__all__ = [
    "Action",
    "ActionKind",
    "CycleReport",
    "DispatchOutcome",
    "FeedItem",
    "LookupResult",
    "LookupStatus",
    "STORE_NAMESPACE",
    "STORY_TYPE",
    "StoryRecord",
    "SweepReport",
    "project_record",
]
