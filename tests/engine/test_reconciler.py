from __future__ import annotations

import pytest

from hn_relay.engine.errors import DetailFetchError, StorageError
from hn_relay.engine.models import ActionKind, StoryRecord
from hn_relay.engine.reconciler import ReconciliationEngine


@pytest.fixture
def make_engine(relay_config, stub_feed, story_store, recording_queue):
    def _build(store=story_store, queue=recording_queue, config=relay_config) -> ReconciliationEngine:
        return ReconciliationEngine(config, stub_feed, store, queue)

    return _build


def test_new_ids_become_creates_and_known_ids_updates(
    make_engine, stub_feed, story_store, recording_queue, deadline, clock
) -> None:
    stub_feed.top_ids = [30, 10, 20]
    story_store.put(StoryRecord(10, 501, clock.now))

    report = make_engine().run_cycle(deadline)

    assert [(a.kind, a.item_id, a.message_id) for a in recording_queue.actions] == [
        (ActionKind.CREATE, 30, None),
        (ActionKind.UPDATE, 10, 501),
        (ActionKind.CREATE, 20, None),
    ]
    assert report.as_dict() == {"fetched": 3, "created": 2, "updated": 1, "skipped": 0, "submit_failed": 0}
    assert report.task_ids == ["task-1", "task-2", "task-3"]


def test_cycle_does_not_fetch_item_details(make_engine, stub_feed, deadline) -> None:
    stub_feed.top_ids = [1, 2]
    make_engine().run_cycle(deadline)
    assert stub_feed.item_calls == []


def test_duplicate_ids_are_classified_once(make_engine, stub_feed, recording_queue, deadline) -> None:
    stub_feed.top_ids = [7, 8, 7, 8, 9]
    report = make_engine().run_cycle(deadline)
    assert [a.item_id for a in recording_queue.actions] == [7, 8, 9]
    assert report.fetched == 3


def test_batch_size_caps_the_snapshot(make_config, make_engine, stub_feed, recording_queue, deadline) -> None:
    stub_feed.top_ids = list(range(1, 11))
    config = make_config(feed={"batch_size": 4})
    make_engine(config=config).run_cycle(deadline)
    assert [a.item_id for a in recording_queue.actions] == [1, 2, 3, 4]


def test_corrupt_record_skips_only_that_story(
    make_engine, stub_feed, story_store, storage, db_path, recording_queue, deadline, clock
) -> None:
    stub_feed.top_ids = [1, 2, 3]
    story_store.put(StoryRecord(1, 11, clock.now))
    conn = storage.connect(db_path)
    conn.execute(
        "INSERT INTO stories(namespace, item_id, message_id, last_save) VALUES (?, ?, NULL, ?)",
        ("TopStory", 2, clock.now.isoformat()),
    )
    conn.commit()

    report = make_engine().run_cycle(deadline)

    assert [(a.kind, a.item_id) for a in recording_queue.actions] == [
        (ActionKind.UPDATE, 1),
        (ActionKind.CREATE, 3),
    ]
    assert report.skipped == 1


def test_submit_failure_is_counted_and_cycle_continues(
    make_engine, stub_feed, recording_queue, deadline
) -> None:
    stub_feed.top_ids = [1, 2, 3]
    recording_queue.fail_for = {2}
    report = make_engine().run_cycle(deadline)
    assert [a.item_id for a in recording_queue.actions] == [1, 3]
    assert report.submit_failed == 1
    assert report.created == 2


def test_top_stories_failure_returns_empty_report(make_engine, stub_feed, recording_queue, deadline) -> None:
    stub_feed.top_ids = DetailFetchError("unexpected status 503")
    report = make_engine().run_cycle(deadline)
    assert report.fetched == 0
    assert recording_queue.actions == []


def test_empty_feed_submits_nothing(make_engine, stub_feed, recording_queue, deadline) -> None:
    stub_feed.top_ids = []
    report = make_engine().run_cycle(deadline)
    assert report.as_dict()["fetched"] == 0
    assert recording_queue.actions == []


class FailingStore:
    def get_multi(self, item_ids):
        raise StorageError("bulk lookup failed: disk I/O error")


def test_bulk_lookup_failure_skips_every_story(make_engine, stub_feed, recording_queue, deadline) -> None:
    stub_feed.top_ids = [1, 2, 3]
    report = make_engine(store=FailingStore()).run_cycle(deadline)
    assert report.skipped == 3
    assert recording_queue.actions == []


def test_record_without_message_is_skipped(
    make_engine, stub_feed, story_store, recording_queue, deadline, clock
) -> None:
    stub_feed.top_ids = [1, 2, 3]
    story_store.put(StoryRecord(1, 0, clock.now))

    report = make_engine().run_cycle(deadline)

    assert [(a.kind, a.item_id) for a in recording_queue.actions] == [
        (ActionKind.CREATE, 2),
        (ActionKind.CREATE, 3),
    ]
    assert report.skipped == 1
    assert report.created == 2
