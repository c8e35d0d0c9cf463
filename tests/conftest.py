"""Pytest configuration providing shared relay fixtures and stubs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from hn_relay.config import (
    ConfigLocator,
    ConfigRepository,
    FilterConfig,
    QueueConfig,
    RelayConfig,
)
from hn_relay.engine import Deadline, FeedItem
from hn_relay.engine.channel import DeleteMessageResponse
from hn_relay.infra import SQLiteManager, StoryStore

FROZEN_NOW = datetime(2024, 5, 20, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime = FROZEN_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingQueue:
    """Stand-in for TaskQueue that only records submissions."""

    def __init__(self, fail_for: Iterable[int] = ()) -> None:
        self.actions: list = []
        self.fail_for = set(fail_for)

    def submit(self, action) -> str:
        if action.item_id in self.fail_for:
            raise RuntimeError(f"queue rejected {action.item_id}")
        self.actions.append(action)
        return f"task-{len(self.actions)}"


class StubFeed:
    def __init__(self, top_ids: list[int] | Exception | None = None) -> None:
        self.top_ids = top_ids if top_ids is not None else []
        self.items: dict[int, FeedItem | Exception] = {}
        self.item_calls: list[int] = []

    def add(self, **fields: Any) -> FeedItem:
        item = make_item(**fields)
        self.items[item.id] = item
        return item

    def top_story_ids(self, deadline, limit: int | None = None) -> list[int]:
        if isinstance(self.top_ids, Exception):
            raise self.top_ids
        return list(self.top_ids)[: limit or None]

    def item(self, item_id: int, deadline) -> FeedItem:
        self.item_calls.append(item_id)
        value = self.items[item_id]
        if isinstance(value, Exception):
            raise value
        return value

    def close(self) -> None:
        return


class StubChannel:
    def __init__(self, first_message_id: int = 1000) -> None:
        self.next_message_id = first_message_id
        self.sent: list = []
        self.edited: list = []
        self.deleted: list = []
        self.delete_response = DeleteMessageResponse(ok=True)
        self.send_error: Exception | None = None
        self.edit_error: Exception | None = None

    def send_message(self, request, deadline) -> int:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(request)
        message_id = self.next_message_id
        self.next_message_id += 1
        return message_id

    def edit_message(self, request, deadline) -> None:
        if self.edit_error is not None:
            raise self.edit_error
        self.edited.append(request)

    def delete_message(self, request, deadline) -> DeleteMessageResponse:
        self.deleted.append(request)
        return self.delete_response

    def close(self) -> None:
        return


def make_item(**overrides: Any) -> FeedItem:
    base: dict[str, Any] = {
        "id": 8863,
        "type": "story",
        "score": 150,
        "descendants": 50,
        "url": "https://example.com/story",
        "title": "My YC app: Dropbox",
    }
    base.update(overrides)
    return FeedItem(**base)


@pytest.fixture
def make_config() -> Callable[..., RelayConfig]:
    def _builder(**overrides: Any) -> RelayConfig:
        base: dict[str, Any] = {
            "filters": FilterConfig(score_threshold=50, comments_threshold=10),
            "queue": QueueConfig(workers=2, max_attempts=3, retry_backoff_seconds=0),
        }
        base.update(overrides)
        return RelayConfig(**base)

    return _builder


@pytest.fixture
def relay_config(make_config) -> RelayConfig:
    return make_config()


@pytest.fixture
def storage() -> Iterable[SQLiteManager]:
    manager = SQLiteManager()
    yield manager
    manager.close_all()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "relay.db"


@pytest.fixture
def story_store(storage: SQLiteManager, db_path: Path) -> StoryStore:
    return StoryStore(storage, db_path)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def deadline() -> Deadline:
    return Deadline(60)


@pytest.fixture
def recording_queue() -> RecordingQueue:
    return RecordingQueue()


@pytest.fixture
def item_factory() -> Callable[..., FeedItem]:
    return make_item


@pytest.fixture
def stub_feed() -> StubFeed:
    return StubFeed()


@pytest.fixture
def stub_channel() -> StubChannel:
    return StubChannel()


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("HN_RELAY_HOME", str(tmp_path))
    monkeypatch.delenv("HN_RELAY_BOT_TOKEN", raising=False)
    monkeypatch.delenv("BOT_KEY", raising=False)
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository

