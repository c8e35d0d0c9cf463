"""Relay service wiring the feed, store, queue and channel behind the two triggers."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

from .config import RelayConfig
from .engine import (
    ActionKind,
    Deadline,
    HackerNewsFeed,
    ItemDispatcher,
    ReconciliationEngine,
    RetentionSweeper,
    StoryRecord,
    TaskQueue,
    TelegramChannel,
)
from .engine.dispatcher import utc_now
from .engine.models import CycleReport, SweepReport
from .infra import SQLiteManager, StoryStore
from .logging_conf import component_logger


class RelayService:
    """Central coordinator exposing the ``poll`` and ``cleanup`` triggers."""

    def __init__(
        self,
        config: RelayConfig,
        store: StoryStore,
        queue: TaskQueue,
        feed: HackerNewsFeed,
        channel: TelegramChannel,
        scheduler=None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.store = store
        self.queue = queue
        self.feed = feed
        self.channel = channel
        self.scheduler = scheduler
        self.logger = component_logger("service")
        self.dispatcher = ItemDispatcher(config, feed, channel, store, clock=clock)
        self.reconciler = ReconciliationEngine(config, feed, store, queue)
        self.sweeper = RetentionSweeper(config, store, queue, clock=clock)
        for kind in ActionKind:
            self.queue.register(kind, self.dispatcher.handle)

    @classmethod
    def from_config(
        cls,
        config: RelayConfig,
        store_path: Path,
        storage: SQLiteManager | None = None,
        scheduler=None,
    ) -> "RelayService":
        storage = storage or SQLiteManager()
        store = StoryStore(storage, store_path)
        queue = TaskQueue(storage, store_path, config.queue, config.cycle_deadline_seconds)
        return cls(
            config,
            store=store,
            queue=queue,
            feed=HackerNewsFeed(config.feed),
            channel=TelegramChannel(config.channel),
            scheduler=scheduler,
        )

    # ------------------------------------------------------------------
    def poll(self) -> CycleReport:
        """Run one reconciliation cycle; per-item failures never escape."""
        try:
            return self.reconciler.run_cycle(Deadline(self.config.cycle_deadline_seconds))
        except Exception:  # noqa: BLE001
            self.logger.exception("poll_cycle_crashed")
            return CycleReport()

    def cleanup(self) -> SweepReport:
        """Run one retention sweep; per-item failures never escape."""
        try:
            return self.sweeper.sweep(Deadline(self.config.cycle_deadline_seconds))
        except Exception:  # noqa: BLE001
            self.logger.exception("sweep_crashed")
            return SweepReport()

    def register_schedules(self) -> None:
        if self.scheduler is None:
            raise RuntimeError("no scheduler configured")
        self.scheduler.schedule_job("poll", self.config.poll_schedule, self.poll)
        self.scheduler.schedule_job("cleanup", self.config.cleanup_schedule, self.cleanup)
        self.scheduler.start()

    def records(self) -> list[StoryRecord]:
        return self.store.scan_all()

    def close(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown()
        self.queue.shutdown(wait=True)
        self.feed.close()
        self.channel.close()


__all__ = ["RelayService"]
