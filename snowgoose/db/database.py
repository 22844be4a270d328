"""SQLite connection and schema."""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS api_vendors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS models (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    api_name TEXT NOT NULL,
    name TEXT NOT NULL,
    api_vendor_id INTEGER REFERENCES api_vendors(id),
    is_vision INTEGER NOT NULL DEFAULT 0,
    is_image_generation INTEGER NOT NULL DEFAULT 0,
    is_thinking INTEGER NOT NULL DEFAULT 0,
    is_web_search INTEGER NOT NULL DEFAULT 0,
    input_token_cost REAL,
    output_token_cost REAL,
    image_output_cost REAL,
    web_search_cost REAL,
    paid_only INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    auth_id TEXT NOT NULL UNIQUE,
    username TEXT NOT NULL UNIQUE,
    email TEXT,
    is_admin INTEGER NOT NULL DEFAULT 0,
    credit_balance REAL NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS credit_transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    credits_amount REAL NOT NULL,
    source TEXT NOT NULL,
    expires_at TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_credit_transactions_user ON credit_transactions(user_id);
"""


class Database:
    """Shared SQLite connection used by the repositories.

    Writes go through ``transaction()`` so balance updates and their ledger
    rows commit together.
    """

    def __init__(self, path: Path | str):
        self.path = str(path) if str(path) == ":memory:" else str(Path(path).expanduser())
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = Lock()

    def connect(self) -> None:
        """Open the connection and create the schema."""
        if self._conn is not None:
            return
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        # Requests are served from the event loop and from test client threads
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON")
        if self.path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.info(f"Database ready: {self.path}")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self.connect()
        return self._conn

    def fetch_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchone()

    def fetch_all(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the lock for one write transaction; commit or roll back."""
        with self._lock:
            conn = self.conn
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()

    def close(self) -> None:
        """Close the connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
