"""Keyed story record storage on top of SQLite."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

import structlog

from ..engine.errors import RecordNotFoundError, StorageError
from ..engine.models import STORE_NAMESPACE, LookupResult, LookupStatus, StoryRecord
from .storage import SQLiteManager


def _encode_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _decode_time(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class StoryStore:
    """Story records keyed by item id under a fixed namespace.

    Writes are single-key puts and deletes. Nothing here provides mutual
    exclusion across tasks; callers resolve same-id races themselves.
    Rows that cannot be decoded are reported per key by ``get_multi`` and
    skipped by ``scan_all``.
    """

    def __init__(
        self,
        manager: SQLiteManager,
        db_path: Path,
        namespace: str = STORE_NAMESPACE,
    ) -> None:
        self.manager = manager
        self.db_path = db_path
        self.namespace = namespace
        self._conn = self.manager.connect(db_path)
        self._lock = self.manager.lock_for(db_path)
        self.logger = structlog.get_logger("hn_relay.store").bind(component="store")

    def get(self, item_id: int) -> StoryRecord:
        row = self._fetch_row(item_id)
        if row is None:
            raise RecordNotFoundError(item_id)
        return self._decode_row(row)

    def exists(self, item_id: int) -> bool:
        return self._fetch_row(item_id) is not None

    def get_multi(self, item_ids: Iterable[int]) -> list[LookupResult]:
        """Look up many ids in one query, reporting success or failure per key."""

        ids = list(item_ids)
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        try:
            with self._lock:
                rows = self._conn.execute(
                    f"SELECT item_id, message_id, last_save FROM stories "
                    f"WHERE namespace = ? AND item_id IN ({placeholders})",
                    (self.namespace, *ids),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"bulk lookup failed: {exc}") from exc

        by_id = {row["item_id"]: row for row in rows}
        results: list[LookupResult] = []
        for item_id in ids:
            row = by_id.get(item_id)
            if row is None:
                results.append(LookupResult(item_id, LookupStatus.NOT_FOUND))
                continue
            try:
                record = self._decode_row(row)
            except StorageError as exc:
                results.append(LookupResult(item_id, LookupStatus.ERROR, error=exc))
            else:
                results.append(LookupResult(item_id, LookupStatus.FOUND, record=record))
        return results

    def put(self, record: StoryRecord) -> None:
        last_save = record.last_save or datetime.now(timezone.utc)
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO stories(namespace, item_id, message_id, last_save) "
                    "VALUES (?, ?, ?, ?)",
                    (self.namespace, record.item_id, record.message_id, _encode_time(last_save)),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"put failed: {exc}", item_id=record.item_id) from exc

    def delete(self, item_id: int) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "DELETE FROM stories WHERE namespace = ? AND item_id = ?",
                    (self.namespace, item_id),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"delete failed: {exc}", item_id=item_id) from exc

    def scan_all(self) -> list[StoryRecord]:
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT item_id, message_id, last_save FROM stories "
                    "WHERE namespace = ? ORDER BY item_id",
                    (self.namespace,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"scan failed: {exc}") from exc
        records: list[StoryRecord] = []
        for row in rows:
            try:
                records.append(self._decode_row(row))
            except StorageError as exc:
                self.logger.error("corrupt_record_skipped", item_id=exc.item_id, error=str(exc))
        return records

    def _fetch_row(self, item_id: int) -> sqlite3.Row | None:
        try:
            with self._lock:
                cur = self._conn.execute(
                    "SELECT item_id, message_id, last_save FROM stories "
                    "WHERE namespace = ? AND item_id = ?",
                    (self.namespace, item_id),
                )
                return cur.fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"lookup failed: {exc}", item_id=item_id) from exc

    @staticmethod
    def _decode_row(row: sqlite3.Row) -> StoryRecord:
        item_id = row["item_id"]
        message_id = row["message_id"]
        raw_time = row["last_save"]
        if not isinstance(message_id, int) or not isinstance(raw_time, str):
            raise StorageError(f"corrupt story record: {item_id}", item_id=item_id)
        try:
            last_save = _decode_time(raw_time)
        except ValueError as exc:
            raise StorageError(f"corrupt last_save for {item_id}: {raw_time!r}", item_id=item_id) from exc
        return StoryRecord(item_id=item_id, message_id=message_id, last_save=last_save)


__all__ = ["StoryStore"]
