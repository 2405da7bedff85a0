"""SQLite storage for the local product table."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeAlias

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = structlog.get_logger(__name__)

Params: TypeAlias = "tuple[Any, ...] | dict[str, Any]"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS products (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        price REAL NOT NULL DEFAULT 0 CHECK (price >= 0),
        category TEXT,
        is_available INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_products_name ON products(name)",
    "CREATE INDEX IF NOT EXISTS idx_products_is_available ON products(is_available)",
    "CREATE INDEX IF NOT EXISTS idx_products_category ON products(category)",
)


class Database:
    """Lazily opened SQLite connection plus the product schema.

    One instance serves one request or command. The connection may be
    opened and closed on different worker threads of the HTTP server, so
    it is created with check_same_thread=False; calls on it stay serial.
    """

    def __init__(self, db_path: str = "data/restaurant.db", busy_timeout: float = 5.0) -> None:
        self.db_path = db_path
        self.busy_timeout = busy_timeout
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            conn = sqlite3.connect(
                self.db_path,
                timeout=self.busy_timeout,
                check_same_thread=False,
            )
            conn.row_factory = sqlite3.Row
            # WAL lets concurrent requests read while one writes
            conn.execute("PRAGMA journal_mode=WAL")
            self._connection = conn
        return self._connection

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor; commit on success, roll back on any exception."""
        with self.connection as conn:
            yield conn.cursor()

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        return self.connection.execute(sql, params)

    def fetchone(self, sql: str, params: Params = ()) -> sqlite3.Row | None:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def close(self) -> None:
        if self._connection is None:
            return
        self._connection.close()
        self._connection = None

    def init_db(self) -> None:
        """Create the products table and its indexes when missing."""
        logger.info("initializing_database", path=self.db_path)
        with self.transaction() as cursor:
            for statement in _SCHEMA:
                cursor.execute(statement)
        logger.info("database_initialized", path=self.db_path)
