"""
SQLite-backed durable key/value store.

A single SQLite file holds every durable key (snapshot cache, remote
credentials). A byte quota emulates the capacity limit of browser storage
so capacity failures surface the same way on every platform.

Table schema:
    kv_entries:
        - key TEXT PRIMARY KEY
        - value TEXT NOT NULL
        - size_bytes INTEGER NOT NULL
        - updated_at INTEGER (Unix ms)

Invariants:
    - Each set() runs in one transaction; a refused write leaves the old value
    - size_bytes always equals entry_size(key, value)

How to change safely:
    - Schema changes must keep existing kv_entries readable
    - Keep calls synchronous; they run on the event loop thread
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .base import DEFAULT_QUOTA_BYTES, check_quota, entry_size

logger = logging.getLogger(__name__)


class SqliteDurableStore:
    """DurableStore backed by one SQLite file.

    Thread safety:
        A connection is opened per operation. Intended for a single writer
        (the event loop thread).

    Example:
        >>> store = SqliteDurableStore("/var/lib/school/local.db")
        >>> store.set("school-data", "{}")
    """

    def __init__(
        self,
        db_path: str | Path,
        quota_bytes: int | None = DEFAULT_QUOTA_BYTES,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the store, creating the file and schema if needed.

        Args:
            db_path: Path of the SQLite file
            quota_bytes: Byte quota across all keys (None = unlimited)
            busy_timeout_ms: SQLite busy timeout
        """
        self.db_path = Path(db_path)
        self.quota_bytes = quota_bytes
        self.busy_timeout_ms = busy_timeout_ms

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    size_bytes INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
                """
            )

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit by default, explicit transactions
        )
        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            conn.execute("PRAGMA synchronous = NORMAL")
            yield conn
        finally:
            conn.close()

    def get(self, key: str) -> str | None:
        with self._connection() as conn:
            row = conn.execute("SELECT value FROM kv_entries WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute(
                    "SELECT COALESCE(SUM(size_bytes), 0) FROM kv_entries WHERE key != ?",
                    (key,),
                ).fetchone()
                check_quota(key, int(row[0]), value, self.quota_bytes)
                conn.execute(
                    """
                    INSERT INTO kv_entries (key, value, size_bytes, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        size_bytes = excluded.size_bytes,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, entry_size(key, value), int(time.time() * 1000)),
                )
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        logger.debug("Durable write", extra={"key": key, "bytes": len(value)})

    def remove(self, key: str) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))

    def used_bytes(self) -> int:
        """Total bytes counted against the quota."""
        with self._connection() as conn:
            row = conn.execute("SELECT COALESCE(SUM(size_bytes), 0) FROM kv_entries").fetchone()
        return int(row[0])
