"""Poll cycle: classify the current top stories against stored state."""

from __future__ import annotations

import structlog

from ..config import RelayConfig
from .deadline import Deadline
from .errors import RelayError
from .feed import HackerNewsFeed
from .intset import IdSet
from .models import Action, ActionKind, CycleReport, LookupStatus


class ReconciliationEngine:
    """Turn one snapshot of the feed into Create/Update submissions.

    The engine waits for submissions only; execution happens on the queue.
    A storage error on one key skips that story and nothing else.
    """

    def __init__(
        self,
        config: RelayConfig,
        feed: HackerNewsFeed,
        store,
        queue,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.feed = feed
        self.store = store
        self.queue = queue
        self.logger = logger or structlog.get_logger("hn_relay.reconciler").bind(component="reconciler")

    def run_cycle(self, deadline: Deadline) -> CycleReport:
        report = CycleReport()
        try:
            fetched = self.feed.top_story_ids(deadline, limit=self.config.feed.batch_size)
        except RelayError as exc:
            self.logger.error("top_stories_failed", error=str(exc), error_type=type(exc).__name__)
            return report

        ids = IdSet(fetched)
        report.fetched = len(ids)
        if not ids:
            self.logger.info("no_top_stories")
            return report
        if len(ids) != len(fetched):
            self.logger.warning("duplicate_ids_in_feed", fetched=len(fetched), unique=len(ids))
        self.logger.info("top_stories_fetched", count=len(ids), min_id=ids.min(), max_id=ids.max())

        try:
            results = self.store.get_multi(ids.as_list())
        except RelayError as exc:
            self.logger.error("bulk_lookup_failed", error=str(exc))
            report.skipped = len(ids)
            return report

        for result in results:
            if result.status is LookupStatus.FOUND and not result.record.message_id:
                # Nothing to edit; the retention sweep drops such records.
                self.logger.warning("record_without_message", item_id=result.item_id)
                report.skipped += 1
                continue
            if result.status is LookupStatus.FOUND:
                action = Action.update(result.item_id, result.record.message_id)
            elif result.status is LookupStatus.NOT_FOUND:
                action = Action.create(result.item_id)
            else:
                self.logger.error("story_lookup_failed", item_id=result.item_id, error=str(result.error))
                report.skipped += 1
                continue
            self._submit(action, report)

        self.logger.info("cycle_submitted", **report.as_dict())
        return report

    def _submit(self, action: Action, report: CycleReport) -> None:
        try:
            task_id = self.queue.submit(action)
        except Exception as exc:  # noqa: BLE001
            self.logger.error(
                "submit_failed", item_id=action.item_id, kind=action.kind.value, error=str(exc)
            )
            report.submit_failed += 1
            return
        report.task_ids.append(task_id)
        if action.kind is ActionKind.CREATE:
            report.created += 1
        else:
            report.updated += 1


__all__ = ["ReconciliationEngine"]
