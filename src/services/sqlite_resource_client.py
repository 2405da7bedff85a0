"""Remote Resource Client backed by a local SQLite table."""

from __future__ import annotations

import re
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from src.models.mutation_result import MutationResult

if TYPE_CHECKING:
    from src.services.database import Database

logger = structlog.get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        msg = f"Invalid SQL identifier: {name!r}"
        raise ValueError(msg)
    return name


class SQLiteResourceClient:
    """CRUD over one SQLite table keyed by a text id column.

    Every mutation runs in its own transaction and returns the touched row.
    UPDATE reports matched rows, so setting a flag to the value it already
    has still reports one affected row.
    """

    def __init__(
        self,
        db: Database,
        table: str = "products",
        id_column: str = "id",
        timestamp_column: str | None = "updated_at",
        owns_database: bool = False,
    ) -> None:
        self.db = db
        self.table = _check_identifier(table)
        self.id_column = _check_identifier(id_column)
        self.timestamp_column = (
            _check_identifier(timestamp_column) if timestamp_column else None
        )
        self._owns_database = owns_database

    def _select(self, item_id: str) -> dict[str, Any] | None:
        row = self.db.fetchone(
            f"SELECT * FROM {self.table} WHERE {self.id_column} = ?",
            (item_id,),
        )
        return dict(row) if row else None

    def select_by_id(self, item_id: str) -> dict[str, Any] | None:
        """Get a row by id."""
        return self._select(item_id)

    def insert(self, values: dict[str, Any]) -> MutationResult:
        """Insert one row. values must include the id column."""
        if self.id_column not in values:
            return MutationResult.failure(f"Missing required column: {self.id_column}")
        columns = [_check_identifier(column) for column in values]
        placeholders = ", ".join("?" for _ in columns)
        sql = (
            f"INSERT INTO {self.table} ({', '.join(columns)}) "
            f"VALUES ({placeholders})"
        )
        try:
            with self.db.transaction() as cursor:
                cursor.execute(sql, tuple(values.values()))
        except sqlite3.Error as exc:
            logger.error("sqlite_insert_failed", table=self.table, error=str(exc))
            return MutationResult.failure(str(exc))
        row = self._select(str(values[self.id_column]))
        return MutationResult.from_rows([row] if row else [])

    def update(self, item_id: str, values: dict[str, Any]) -> MutationResult:
        """Update one row by id. Zero affected rows means the id was not found."""
        if not values:
            return MutationResult.failure("No values to update")
        assignments = dict(values)
        if self.timestamp_column and self.timestamp_column not in assignments:
            assignments[self.timestamp_column] = datetime.now(UTC).isoformat()

        set_clause = ", ".join(f"{_check_identifier(column)} = ?" for column in assignments)
        sql = f"UPDATE {self.table} SET {set_clause} WHERE {self.id_column} = ?"
        try:
            with self.db.transaction() as cursor:
                cursor.execute(sql, (*assignments.values(), item_id))
                affected = cursor.rowcount
        except sqlite3.Error as exc:
            logger.error("sqlite_update_failed", table=self.table, id=item_id, error=str(exc))
            return MutationResult.failure(str(exc))

        if affected == 0:
            return MutationResult()
        row = self._select(item_id)
        return MutationResult(affected_rows=affected, rows=[row] if row else [])

    def delete(self, item_id: str) -> MutationResult:
        """Delete one row by id, returning the deleted row."""
        try:
            existing = self._select(item_id)
            with self.db.transaction() as cursor:
                cursor.execute(
                    f"DELETE FROM {self.table} WHERE {self.id_column} = ?",
                    (item_id,),
                )
                affected = cursor.rowcount
        except sqlite3.Error as exc:
            logger.error("sqlite_delete_failed", table=self.table, id=item_id, error=str(exc))
            return MutationResult.failure(str(exc))

        rows = [existing] if existing and affected else []
        return MutationResult(affected_rows=affected, rows=rows)

    def set_flag(self, item_id: str, flag_name: str, value: bool) -> MutationResult:
        """Set a boolean column, stored as 0/1."""
        return self.update(item_id, {_check_identifier(flag_name): int(value)})

    def close(self) -> None:
        """Close the underlying database when this client opened it."""
        if self._owns_database:
            self.db.close()
