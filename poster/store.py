"""
Process-wide key/value store shared by the hub and page agents.

Values are JSON documents in a single SQLite table. Readers tolerate absence.
"""
import json
import logging
import os
import sqlite3
from typing import Any, Optional

from scraper.utils import now_iso

logger = logging.getLogger(__name__)


PENDING_POST_KEY = "pendingPost"
SESSION_KEY = "userSession"

DDL_KV = """
CREATE TABLE IF NOT EXISTS kv (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL,
  updated_at TEXT
);
"""


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    if path != ":memory:":
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute(DDL_KV)
    conn.commit()
    return conn


class KeyValueStore:
    """Small JSON key/value store on top of SQLite."""

    def __init__(self, path: str = ":memory:"):
        self.path = path
        self.conn = db_connect(path)

    def get(self, key: str, default: Any = None) -> Any:
        cur = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = cur.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("Discarding unreadable value for key %s", key)
            return default

    def set(self, key: str, value: Any) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
            (key, json.dumps(value, ensure_ascii=False), now_iso()),
        )
        self.conn.commit()

    def remove(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()


class PendingPostStore:
    """Typed view over the pending-post key."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def load(self) -> Optional[dict]:
        data = self.kv.get(PENDING_POST_KEY)
        return data if isinstance(data, dict) and data else None

    def save(self, data: dict) -> None:
        self.kv.set(PENDING_POST_KEY, data)

    def clear(self) -> None:
        self.kv.remove(PENDING_POST_KEY)
