from __future__ import annotations

from datetime import timedelta

import pytest

from hn_relay.engine.deadline import Deadline
from hn_relay.engine.errors import StorageError
from hn_relay.engine.models import ActionKind, StoryRecord
from hn_relay.engine.sweeper import RetentionSweeper


@pytest.fixture
def sweeper(relay_config, story_store, recording_queue, clock) -> RetentionSweeper:
    return RetentionSweeper(relay_config, story_store, recording_queue, clock=clock)


def test_only_records_past_retention_are_deleted(sweeper, story_store, recording_queue, deadline, clock) -> None:
    story_store.put(StoryRecord(1, 101, clock.now - timedelta(hours=24)))
    story_store.put(StoryRecord(2, 102, clock.now - timedelta(hours=24, seconds=1)))
    story_store.put(StoryRecord(3, 103, clock.now - timedelta(hours=2)))
    story_store.put(StoryRecord(4, 104, clock.now - timedelta(days=3)))

    report = sweeper.sweep(deadline)

    assert [(a.kind, a.item_id, a.message_id) for a in recording_queue.actions] == [
        (ActionKind.DELETE, 2, 102),
        (ActionKind.DELETE, 4, 104),
    ]
    assert report.as_dict() == {"scanned": 4, "expired": 2, "submitted": 2, "submit_failed": 0}


def test_sweep_does_not_touch_store_itself(sweeper, story_store, deadline, clock) -> None:
    story_store.put(StoryRecord(1, 101, clock.now - timedelta(days=2)))
    sweeper.sweep(deadline)
    assert story_store.exists(1)


def test_record_without_message_is_dropped_directly(
    sweeper, story_store, recording_queue, deadline, clock
) -> None:
    story_store.put(StoryRecord(1, 0, clock.now - timedelta(days=2)))
    report = sweeper.sweep(deadline)
    assert recording_queue.actions == []
    assert report.expired == 1
    assert not story_store.exists(1)


def test_submit_failure_does_not_stop_sweep(sweeper, story_store, recording_queue, deadline, clock) -> None:
    for item_id in (1, 2, 3):
        story_store.put(StoryRecord(item_id, 100 + item_id, clock.now - timedelta(days=2)))
    recording_queue.fail_for = {2}
    report = sweeper.sweep(deadline)
    assert [a.item_id for a in recording_queue.actions] == [1, 3]
    assert report.submit_failed == 1
    assert report.submitted == 2


def test_spent_deadline_stops_submissions(sweeper, story_store, recording_queue, clock) -> None:
    story_store.put(StoryRecord(1, 101, clock.now - timedelta(days=2)))
    report = sweeper.sweep(Deadline(0))
    assert recording_queue.actions == []
    assert report.submitted == 0


class BrokenStore:
    def scan_all(self):
        raise StorageError("scan failed: database is locked")


def test_scan_failure_returns_empty_report(relay_config, recording_queue, clock, deadline) -> None:
    report = RetentionSweeper(relay_config, BrokenStore(), recording_queue, clock=clock).sweep(deadline)
    assert report.scanned == 0
    assert recording_queue.actions == []


def test_retention_follows_config(make_config, story_store, recording_queue, clock, deadline) -> None:
    story_store.put(StoryRecord(1, 101, clock.now - timedelta(hours=7)))
    config = make_config(retention_hours=6)
    RetentionSweeper(config, story_store, recording_queue, clock=clock).sweep(deadline)
    assert [a.item_id for a in recording_queue.actions] == [1]


def test_corrupt_record_does_not_block_sweep(
    sweeper, story_store, storage, db_path, recording_queue, deadline, clock
) -> None:
    story_store.put(StoryRecord(1, 101, clock.now - timedelta(days=2)))
    conn = storage.connect(db_path)
    conn.execute(
        "INSERT INTO stories(namespace, item_id, message_id, last_save) VALUES (?, ?, NULL, ?)",
        ("TopStory", 2, (clock.now - timedelta(days=2)).isoformat()),
    )
    conn.commit()

    report = sweeper.sweep(deadline)

    assert [(a.kind, a.item_id, a.message_id) for a in recording_queue.actions] == [
        (ActionKind.DELETE, 1, 101),
    ]
    assert report.submitted == 1
