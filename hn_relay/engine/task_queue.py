"""Durable, at-least-once task queue running actions on a thread pool."""

from __future__ import annotations

import uuid
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Condition, Lock, Timer
from typing import Any, Callable

import structlog

from ..config import QueueConfig
from ..infra.storage import SQLiteManager
from .deadline import Deadline
from .models import Action, ActionKind

TaskHandler = Callable[[Action, Deadline], Any]


@dataclass(slots=True)
class QueuedTask:
    task_id: str
    action: Action
    attempts: int = 0


class TaskQueue:
    """Run registered handlers for submitted actions, retrying retryable failures.

    Every task is written to the ``task_queue`` table before it is scheduled
    and removed once it finishes or is given up on, so rows left behind by a
    crashed process can be replayed with :meth:`recover`.
    """

    def __init__(
        self,
        manager: SQLiteManager,
        db_path: Path,
        config: QueueConfig,
        task_deadline_seconds: float,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.task_deadline_seconds = task_deadline_seconds
        self.logger = logger or structlog.get_logger("hn_relay.queue").bind(component="queue")
        self._conn = manager.connect(db_path)
        self._db_lock = manager.lock_for(db_path)
        self._executor = ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="relay")
        self._handlers: dict[ActionKind, TaskHandler] = {}
        self._state_lock = Lock()
        self._idle = Condition(self._state_lock)
        self._inflight = 0
        self._closed = False
        self.stats: Counter[str] = Counter()

    def register(self, kind: ActionKind, handler: TaskHandler) -> None:
        self._handlers[kind] = handler

    def submit(self, action: Action) -> str:
        """Persist and schedule an action; return once it is durably enqueued."""
        if action.kind not in self._handlers:
            raise KeyError(f"no handler registered for {action.kind.value}")
        if self._closed:
            raise RuntimeError("task queue is shut down")
        task = QueuedTask(task_id=uuid.uuid4().hex, action=action)
        with self._db_lock:
            self._conn.execute(
                "INSERT INTO task_queue(task_id, kind, item_id, message_id, attempts, enqueued_at) "
                "VALUES (?, ?, ?, ?, 0, ?)",
                (
                    task.task_id,
                    action.kind.value,
                    action.item_id,
                    action.message_id,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            self._conn.commit()
        self._schedule(task)
        return task.task_id

    def recover(self) -> int:
        """Reschedule tasks persisted by an earlier process that never finished."""
        with self._db_lock:
            rows = self._conn.execute(
                "SELECT task_id, kind, item_id, message_id, attempts FROM task_queue ORDER BY enqueued_at"
            ).fetchall()
        recovered = 0
        for row in rows:
            try:
                action = Action(ActionKind(row["kind"]), row["item_id"], row["message_id"])
            except ValueError as exc:
                self.logger.error("task_unrecoverable", task_id=row["task_id"], error=str(exc))
                self._forget(row["task_id"])
                continue
            self._schedule(QueuedTask(row["task_id"], action, row["attempts"]))
            recovered += 1
        if recovered:
            self.logger.info("tasks_recovered", count=recovered)
        return recovered

    def pending(self) -> int:
        with self._db_lock:
            return self._conn.execute("SELECT count(*) FROM task_queue").fetchone()[0]

    def drain(self, timeout: float | None = None) -> bool:
        """Block until no task is running or waiting for a retry."""
        with self._idle:
            return self._idle.wait_for(lambda: self._inflight == 0, timeout=timeout)

    def shutdown(self, wait: bool = False) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    def _schedule(self, task: QueuedTask, delay: float = 0.0) -> None:
        with self._state_lock:
            self._inflight += 1
        if delay > 0:
            timer = Timer(delay, self._start, args=(task,))
            timer.daemon = True
            timer.start()
        else:
            self._start(task)

    def _start(self, task: QueuedTask) -> None:
        try:
            self._executor.submit(self._run, task)
        except RuntimeError:
            # Executor already shut down; the row stays for recover().
            self.logger.warning("task_deferred", task_id=task.task_id, item_id=task.action.item_id)
            self._finish()

    def _run(self, task: QueuedTask) -> None:
        action = task.action
        task.attempts += 1
        log = self.logger.bind(
            task_id=task.task_id, kind=action.kind.value, item_id=action.item_id, attempt=task.attempts
        )
        try:
            self._record_attempt(task)
            handler = self._handlers[action.kind]
            result = handler(action, Deadline(self.task_deadline_seconds))
        except Exception as exc:  # noqa: BLE001
            self._handle_failure(task, exc, log)
        else:
            outcome = getattr(result, "value", result)
            self._count(str(outcome) if outcome is not None else "done")
            log.debug("task_done", outcome=outcome)
            self._forget(task.task_id)
        finally:
            self._finish()

    def _handle_failure(self, task: QueuedTask, exc: Exception, log: structlog.BoundLogger) -> None:
        retryable = getattr(exc, "retryable", False)
        if retryable and task.attempts < self.config.max_attempts:
            if self._closed:
                log.warning("task_deferred", error=str(exc))
                return
            delay = self.config.retry_backoff_seconds * task.attempts
            log.warning("task_retry", error=str(exc), error_type=type(exc).__name__, retry_in=delay)
            self._count("retried")
            self._schedule(task, delay=delay)
            return
        log.error("task_failed", error=str(exc), error_type=type(exc).__name__, retryable=retryable)
        self._count("failed")
        self._forget(task.task_id)

    def _record_attempt(self, task: QueuedTask) -> None:
        with self._db_lock:
            self._conn.execute(
                "UPDATE task_queue SET attempts = ? WHERE task_id = ?",
                (task.attempts, task.task_id),
            )
            self._conn.commit()

    def _forget(self, task_id: str) -> None:
        with self._db_lock:
            self._conn.execute("DELETE FROM task_queue WHERE task_id = ?", (task_id,))
            self._conn.commit()

    def _count(self, key: str) -> None:
        with self._state_lock:
            self.stats[key] += 1

    def _finish(self) -> None:
        with self._idle:
            self._inflight -= 1
            if self._inflight == 0:
                self._idle.notify_all()


__all__ = ["QueuedTask", "TaskHandler", "TaskQueue"]
