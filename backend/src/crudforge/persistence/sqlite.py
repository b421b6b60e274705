"""SQLite persistence adapter."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from crudforge.persistence.errors import (
    CHECK_VIOLATION,
    FOREIGN_KEY_VIOLATION,
    INVALID_TEXT_REPRESENTATION,
    NOT_NULL_VIOLATION,
    UNIQUE_VIOLATION,
    BackendError,
)
from crudforge.persistence.fetch import BulkFetchConfig
from crudforge.persistence.sql import build_select, column_definitions, quote

if TYPE_CHECKING:
    from crudforge.models.base import ModelConfiguration

logger = logging.getLogger(__name__)


# Extended SQLite result codes mapped onto SQLSTATE codes
_SQLITE_ERROR_CODES = {
    "SQLITE_CONSTRAINT_NOTNULL": NOT_NULL_VIOLATION,
    "SQLITE_CONSTRAINT_FOREIGNKEY": FOREIGN_KEY_VIOLATION,
    "SQLITE_CONSTRAINT_UNIQUE": UNIQUE_VIOLATION,
    "SQLITE_CONSTRAINT_PRIMARYKEY": UNIQUE_VIOLATION,
    "SQLITE_CONSTRAINT_CHECK": CHECK_VIOLATION,
    "SQLITE_CONSTRAINT_DATATYPE": INVALID_TEXT_REPRESENTATION,
}

# Fallback for builds that do not report an extended error name
_SQLITE_MESSAGE_PREFIXES = {
    "NOT NULL constraint failed": NOT_NULL_VIOLATION,
    "FOREIGN KEY constraint failed": FOREIGN_KEY_VIOLATION,
    "UNIQUE constraint failed": UNIQUE_VIOLATION,
    "CHECK constraint failed": CHECK_VIOLATION,
    "cannot store": INVALID_TEXT_REPRESENTATION,
}


def translate_error(exc: sqlite3.Error) -> BackendError:
    """Translate a sqlite3 error into a BackendError with a SQLSTATE code."""
    message = str(exc)
    code = _SQLITE_ERROR_CODES.get(getattr(exc, "sqlite_errorname", ""))
    if code is None:
        for prefix, prefix_code in _SQLITE_MESSAGE_PREFIXES.items():
            if message.startswith(prefix):
                code = prefix_code
                break

    constraint = None
    if code == CHECK_VIOLATION and ":" in message:
        constraint = message.split(":", 1)[1].strip()

    return BackendError(message, code=code, detail=message, constraint=constraint)


def _to_param(value: Any) -> Any:
    """Convert a Python value to something sqlite3 stores natively."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    return value


class SQLiteAdapter:
    """Simple SQLite persistence adapter."""

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Establish database connection."""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def initialize_table(self, configuration: ModelConfiguration) -> None:
        """Create table for the model if it doesn't exist."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        columns = column_definitions(
            configuration, primary_key_type="INTEGER PRIMARY KEY AUTOINCREMENT"
        )
        sql = f"CREATE TABLE IF NOT EXISTS {quote(configuration.table_name)} ({', '.join(columns)})"
        self.conn.execute(sql)
        self.conn.commit()

    def load(self, configuration: ModelConfiguration, id: int) -> dict[str, Any] | None:
        """Fetch a single row by primary key."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        sql = f"SELECT * FROM {quote(configuration.table_name)} WHERE {quote('id')} = ?"
        row = self._execute(sql, [id]).fetchone()
        return dict(row) if row else None

    def insert(self, configuration: ModelConfiguration, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new row and return it as stored."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        data = dict(data)
        now = datetime.now(timezone.utc)
        if configuration.has_field("created_at"):
            data["created_at"] = now
        if configuration.has_field("modified_at"):
            data["modified_at"] = now

        table = quote(configuration.table_name)
        if data:
            columns = ", ".join(quote(name) for name in data)
            placeholders = ", ".join("?" for _ in data)
            sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"

        cursor = self._execute(sql, list(data.values()), commit=True)
        return self.load(configuration, cursor.lastrowid)  # type: ignore[return-value]

    def update(
        self, configuration: ModelConfiguration, id: int, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Update an existing row and return it as stored."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        data = {k: v for k, v in data.items() if k != "id"}
        if configuration.has_field("modified_at"):
            data["modified_at"] = datetime.now(timezone.utc)

        if not data:
            return self.load(configuration, id)

        set_clause = ", ".join(f"{quote(name)} = ?" for name in data)
        sql = f"UPDATE {quote(configuration.table_name)} SET {set_clause} WHERE {quote('id')} = ?"

        cursor = self._execute(sql, [*data.values(), id], commit=True)
        if cursor.rowcount == 0:
            return None
        return self.load(configuration, id)

    def delete(self, configuration: ModelConfiguration, id: int) -> bool:
        """Delete a row. Returns False when nothing was deleted."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        sql = f"DELETE FROM {quote(configuration.table_name)} WHERE {quote('id')} = ?"
        cursor = self._execute(sql, [id], commit=True)
        return cursor.rowcount > 0

    def bulk_fetch(
        self, configuration: ModelConfiguration, fetch_config: BulkFetchConfig
    ) -> list[dict[str, Any]]:
        """Fetch rows matching predicates with sorting and pagination."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        sql, params = build_select(configuration, fetch_config, "?", unbounded_limit="-1")
        cursor = self._execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    def _execute(self, sql: str, params: list[Any], commit: bool = False) -> sqlite3.Cursor:
        assert self.conn is not None
        try:
            cursor = self.conn.execute(sql, [_to_param(p) for p in params])
            if commit:
                self.conn.commit()
            return cursor
        except sqlite3.Error as e:
            self.conn.rollback()
            logger.debug("SQLite statement failed: %s (%s)", sql, e)
            raise translate_error(e) from e
