"""
db.py
SQLite-backed key-value store (one table of key -> text value).
"""

from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

DB_FILE = Path(os.getenv("GYM_DB_FILE") or Path(__file__).with_name("gym.db"))


class KeyValueStore:
    """
    Synchronous store: every call opens a connection, commits and closes.
    sqlite3 errors propagate to the caller unchanged.
    """

    def __init__(self, db_file: str | Path | None = None):
        self.db_file = Path(db_file or DB_FILE)
        self._create_tables()

    @contextmanager
    def get_conn(self):
        conn = sqlite3.connect(self.db_file, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def execute(self, sql: str, params: tuple = ()) -> int:
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.rowcount

    def fetch_one(self, sql: str, params: tuple = ()):
        with self.get_conn() as conn:
            cur = conn.execute(sql, params)
            return cur.fetchone()

    def _create_tables(self) -> None:
        self.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )

    def get(self, key: str, default: str | None = None) -> str | None:
        row = self.fetch_one("SELECT value FROM kv_store WHERE key = ?", (key,))
        if row:
            return str(row["value"])
        return default

    def set(self, key: str, value: str) -> None:
        self.execute(
            """
            INSERT INTO kv_store(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (key, value),
        )
        logger.debug("Wrote %d chars to key %s in %s", len(value), key, self.db_file)

    def delete(self, key: str) -> bool:
        return self.execute("DELETE FROM kv_store WHERE key = ?", (key,)) > 0
