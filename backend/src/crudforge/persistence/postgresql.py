"""PostgreSQL persistence adapter.

Uses psycopg v3 (psycopg[binary]>=3.1.0) for database access.
Mirrors SQLiteAdapter method-for-method with PostgreSQL-specific SQL:
  - %s placeholders instead of ?
  - BIGSERIAL primary keys and TIMESTAMPTZ / DOUBLE PRECISION columns
  - INSERT/UPDATE ... RETURNING to read back the stored row
  - dict_row cursor factory for dict-based row access

Every failed statement is rolled back before the error is raised so the
connection stays usable for the next request. psycopg errors carry the
SQLSTATE code and diagnostics the REST layer maps to HTTP outcomes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from crudforge.persistence.errors import BackendError
from crudforge.persistence.fetch import BulkFetchConfig
from crudforge.persistence.sql import build_select, column_definitions, quote

if TYPE_CHECKING:
    from crudforge.models.base import ModelConfiguration

logger = logging.getLogger(__name__)


_PG_TYPES = {
    "TIMESTAMP": "TIMESTAMPTZ",
    "REAL": "DOUBLE PRECISION",
    "INTEGER": "BIGINT",
}


def translate_error(exc: Any) -> BackendError:
    """Translate a psycopg error into a BackendError.

    Reads ``sqlstate`` and the ``diag`` fields psycopg exposes for
    server-side errors; client-side errors carry neither.
    """
    diag = getattr(exc, "diag", None)
    message = (getattr(diag, "message_primary", None) if diag else None) or str(exc)
    return BackendError(
        message,
        code=getattr(exc, "sqlstate", None),
        detail=getattr(diag, "message_detail", None) if diag else None,
        constraint=getattr(diag, "constraint_name", None) if diag else None,
    )


class PostgreSQLAdapter:
    """PostgreSQL persistence adapter using psycopg v3."""

    def __init__(self, url: str):
        # psycopg.connect() wants a plain libpq DSN or postgres:// URL,
        # so strip the +psycopg driver suffix when present.
        self.url = url.replace("postgresql+psycopg://", "postgresql://")
        self.conn: Any = None

    def connect(self) -> None:
        """Establish database connection."""
        import psycopg
        from psycopg.rows import dict_row

        self.conn = psycopg.connect(self.url, row_factory=dict_row)
        self.conn.autocommit = False

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
            configuration, primary_key_type="BIGSERIAL PRIMARY KEY", type_map=_PG_TYPES
        )
        sql = f"CREATE TABLE IF NOT EXISTS {quote(configuration.table_name)} ({', '.join(columns)})"
        self._execute(sql, [], commit=True)

    def load(self, configuration: ModelConfiguration, id: int) -> dict[str, Any] | None:
        """Fetch a single row by primary key."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        sql = (
            f"SELECT {self._select_cols(configuration)} FROM {quote(configuration.table_name)} "
            f"WHERE {quote('id')} = %s"
        )
        row = self._execute(sql, [id], commit=True).fetchone()
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
        returning = self._select_cols(configuration)
        if data:
            columns = ", ".join(quote(name) for name in data)
            placeholders = ", ".join("%s" for _ in data)
            sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING {returning}"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES RETURNING {returning}"

        row = self._execute(sql, list(data.values()), commit=True).fetchone()
        return dict(row)

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

        set_clause = ", ".join(f"{quote(name)} = %s" for name in data)
        sql = (
            f"UPDATE {quote(configuration.table_name)} SET {set_clause} "
            f"WHERE {quote('id')} = %s RETURNING {self._select_cols(configuration)}"
        )
        row = self._execute(sql, [*data.values(), id], commit=True).fetchone()
        return dict(row) if row else None

    def delete(self, configuration: ModelConfiguration, id: int) -> bool:
        """Delete a row. Returns False when nothing was deleted."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        sql = f"DELETE FROM {quote(configuration.table_name)} WHERE {quote('id')} = %s"
        cursor = self._execute(sql, [id], commit=True)
        return cursor.rowcount > 0

    def bulk_fetch(
        self, configuration: ModelConfiguration, fetch_config: BulkFetchConfig
    ) -> list[dict[str, Any]]:
        """Fetch rows matching predicates with sorting and pagination."""
        if not self.conn:
            raise RuntimeError("Database not connected")

        sql, params = build_select(configuration, fetch_config, "%s")
        cursor = self._execute(sql, params, commit=True)
        return [dict(row) for row in cursor.fetchall()]

    def _select_cols(self, configuration: ModelConfiguration) -> str:
        return ", ".join(quote(name) for name in configuration.field_names)

    def _execute(self, sql: str, params: list[Any], commit: bool = False) -> Any:
        import psycopg

        try:
            cursor = self.conn.execute(sql, params)
            if commit:
                self.conn.commit()
            return cursor
        except psycopg.Error as e:
            self.conn.rollback()
            logger.debug("PostgreSQL statement failed: %s (%s)", sql, e)
            raise translate_error(e) from e
