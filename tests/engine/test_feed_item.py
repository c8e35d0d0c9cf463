from __future__ import annotations

from datetime import timedelta

import pytest

from hn_relay.config import FilterConfig
from hn_relay.engine.models import Action, ActionKind, FeedItem, StoryRecord, project_record

FILTERS = FilterConfig(score_threshold=50, comments_threshold=10)


@pytest.mark.parametrize(
    ("overrides", "ignored"),
    [
        ({}, False),
        ({"type": "job"}, True),
        ({"type": "comment"}, True),
        ({"score": 49}, True),
        ({"score": 50}, False),
        ({"descendants": 9}, True),
        ({"descendants": 10}, False),
        ({"url": ""}, True),
        ({"type": "poll", "score": 1, "url": ""}, True),
    ],
)
def test_should_ignore(item_factory, overrides, ignored) -> None:
    assert item_factory(**overrides).should_ignore(FILTERS) is ignored


def test_feed_item_tolerates_missing_and_null_fields() -> None:
    item = FeedItem.model_validate({"id": 1, "type": "story", "url": None, "descendants": None, "kids": [2, 3]})
    assert item.url == ""
    assert item.title == ""
    assert item.descendants == 0
    assert item.score == 0
    assert item.should_ignore(FILTERS)


def test_projection_keeps_only_persisted_fields(item_factory, clock) -> None:
    item = item_factory(id=77)
    record = project_record(item, 555, clock())
    assert record == StoryRecord(item_id=77, message_id=555, last_save=clock.now)


def test_record_expiry_is_strictly_greater(clock) -> None:
    retention = timedelta(hours=24)
    at_threshold = StoryRecord(1, 10, clock.now - retention)
    just_over = StoryRecord(2, 11, clock.now - retention - timedelta(seconds=1))
    assert not at_threshold.is_expired(clock.now, retention)
    assert just_over.is_expired(clock.now, retention)


def test_update_and_delete_actions_require_message_id() -> None:
    assert Action.create(5).message_id is None
    assert Action.update(5, 9).kind is ActionKind.UPDATE
    with pytest.raises(ValueError):
        Action(ActionKind.UPDATE, 5)
    with pytest.raises(ValueError):
        Action.delete(5, 0)
