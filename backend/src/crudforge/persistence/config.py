"""Database selection from the environment.

``DATABASE_URL`` wins; otherwise ``CRUDFORGE_DB_PATH`` names a SQLite
file; otherwise the SQLite file lives at ``<base>/data/crudforge.db``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from crudforge.persistence.adapter import PersistenceAdapter

MEMORY = ":memory:"


@dataclass(frozen=True)
class DatabaseConfig:
    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url)

        db_path = os.environ.get("CRUDFORGE_DB_PATH")
        if not db_path:
            db_path = str(base_path / "data" / "crudforge.db") if base_path else "crudforge.db"
        return cls(f"sqlite:///{db_path}")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def sqlite_path(self) -> str:
        """File path of a ``sqlite:///`` URL, ``:memory:`` when it names none."""
        return self.url.removeprefix("sqlite:///") or MEMORY

    def ensure_sqlite_directory(self) -> None:
        """Create the directory a SQLite database file will be written to."""
        if self.is_sqlite and self.sqlite_path != MEMORY:
            Path(self.sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def create_adapter(config: DatabaseConfig) -> PersistenceAdapter:
    """An unconnected adapter for the URL's scheme.

    Raises:
        ValueError: For a scheme other than sqlite or postgresql
    """
    if config.is_sqlite:
        from crudforge.persistence.sqlite import SQLiteAdapter

        return SQLiteAdapter(config.sqlite_path)

    if config.is_postgresql:
        from crudforge.persistence.postgresql import PostgreSQLAdapter

        return PostgreSQLAdapter(config.url)

    raise ValueError(f"Unsupported database URL scheme: {config.url}")
