"""SQLite connection management for story records and queued tasks."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock, RLock
from typing import Dict


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._conn_locks: Dict[Path, RLock] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if path not in self._connections:
                conn = sqlite3.connect(path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                self._connections[path] = conn
                self._conn_locks[path] = RLock()
                self._ensure_schema(conn)
            return self._connections[path]

    def lock_for(self, path: Path) -> RLock:
        """Return the lock every user of the connection at ``path`` must hold."""
        self.connect(path)
        with self._lock:
            return self._conn_locks[path]

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS stories (
                namespace TEXT NOT NULL,
                item_id INTEGER NOT NULL,
                message_id INTEGER,
                last_save TEXT,
                PRIMARY KEY (namespace, item_id)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS task_queue (
                task_id TEXT PRIMARY KEY,
                kind TEXT NOT NULL,
                item_id INTEGER NOT NULL,
                message_id INTEGER,
                attempts INTEGER NOT NULL DEFAULT 0,
                enqueued_at TEXT NOT NULL
            )
            """
        )
        conn.commit()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()
            self._conn_locks.clear()


__all__ = ["SQLiteManager"]
