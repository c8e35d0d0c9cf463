"""Retention sweep: delete notifications older than the retention window."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from ..config import RelayConfig
from .deadline import Deadline
from .dispatcher import utc_now
from .errors import DeadlineExceeded, RelayError
from .models import Action, SweepReport


class RetentionSweeper:
    def __init__(
        self,
        config: RelayConfig,
        store,
        queue,
        clock: Callable[[], datetime] = utc_now,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.queue = queue
        self.clock = clock
        self.logger = logger or structlog.get_logger("hn_relay.sweeper").bind(component="sweeper")

    def sweep(self, deadline: Deadline) -> SweepReport:
        """Submit one Delete per expired record and return without waiting for them."""

        report = SweepReport()
        try:
            records = self.store.scan_all()
        except RelayError as exc:
            self.logger.error("scan_failed", error=str(exc))
            return report

        now = self.clock()
        retention = self.config.retention
        report.scanned = len(records)
        for record in records:
            if not record.is_expired(now, retention):
                continue
            report.expired += 1
            try:
                deadline.remaining()
            except DeadlineExceeded:
                self.logger.error("sweep_deadline_exceeded", **report.as_dict())
                break
            if not record.message_id:
                self._drop_orphan(record.item_id)
                continue
            try:
                task_id = self.queue.submit(Action.delete(record.item_id, record.message_id))
            except Exception as exc:  # noqa: BLE001
                self.logger.error("submit_failed", item_id=record.item_id, kind="delete", error=str(exc))
                report.submit_failed += 1
                continue
            report.submitted += 1
            report.task_ids.append(task_id)

        self.logger.info("sweep_submitted", **report.as_dict())
        return report

    def _drop_orphan(self, item_id: int) -> None:
        # No message was ever posted for this record; nothing to retract.
        self.logger.warning("record_without_message", item_id=item_id)
        try:
            self.store.delete(item_id)
        except RelayError as exc:
            self.logger.error("orphan_delete_failed", item_id=item_id, error=str(exc))


__all__ = ["RetentionSweeper"]
