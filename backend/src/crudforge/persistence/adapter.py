"""PersistenceAdapter Protocol: shared interface for all database adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from crudforge.persistence.fetch import BulkFetchConfig

if TYPE_CHECKING:
    from crudforge.models.base import ModelConfiguration


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Interface all persistence adapters must implement.

    Rows are exchanged as plain dicts keyed by column name. Store failures
    are raised as ``BackendError`` carrying a SQLSTATE-style code.
    """

    # Raw connection handle (sqlite3.Connection, psycopg.Connection).
    conn: Any

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def initialize_table(self, configuration: ModelConfiguration) -> None: ...

    def load(self, configuration: ModelConfiguration, id: int) -> dict[str, Any] | None: ...

    def insert(
        self, configuration: ModelConfiguration, data: dict[str, Any]
    ) -> dict[str, Any]: ...

    def update(
        self, configuration: ModelConfiguration, id: int, data: dict[str, Any]
    ) -> dict[str, Any] | None: ...

    def delete(self, configuration: ModelConfiguration, id: int) -> bool: ...

    def bulk_fetch(
        self, configuration: ModelConfiguration, fetch_config: BulkFetchConfig
    ) -> list[dict[str, Any]]: ...
