"""Models: field configuration plus per-request entity instances.

A ``ModelConfiguration`` describes a table. A ``Model`` is one entity
instance bound to a configuration and a persistence adapter; it is
created fresh for each request by a factory returned from
``build_model`` and discarded after the response is rendered.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from crudforge.core.types import ValueKind
from crudforge.persistence.errors import RecordNotFound
from crudforge.persistence.fetch import BulkFetchConfig

if TYPE_CHECKING:
    from crudforge.persistence.adapter import PersistenceAdapter


PRIMARY_KEY = "id"
CREATED_AT = "created_at"
MODIFIED_AT = "modified_at"


@dataclass
class Field:
    """A model field.

    Attributes:
        name: Column name, also the form key the value is read from
        kind: Value kind (decides coercion and default rules)
        insertable: Accepted on create
        updatable: Accepted on update
        skip_validation: Never read from request input
        primary_key: The auto-generated integer identifier
        unique: Column carries a UNIQUE constraint
        references: Table whose ``id`` this column references
        check: SQL expression for a CHECK constraint named
            ``<table>_<field>_check``
    """

    name: str
    kind: ValueKind
    insertable: bool = True
    updatable: bool = True
    skip_validation: bool = False
    primary_key: bool = False
    unique: bool = False
    references: str | None = None
    check: str | None = None


@dataclass
class ModelConfiguration:
    table_name: str
    fields: list[Field]
    unique_together: list[tuple[str, ...]] = field(default_factory=list)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)

    def get_field(self, name: str) -> Field:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"Model '{self.table_name}' has no field '{name}'")


class Model:
    """A single entity instance.

    Values are held in declaration order and accessed by field name.
    Persistence methods mutate the instance in place.
    """

    def __init__(self, configuration: ModelConfiguration, adapter: PersistenceAdapter):
        self.configuration = configuration
        self.adapter = adapter
        self.values: dict[str, Any] = {f.name: f.kind.zero for f in configuration.fields}

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        if name not in self.values:
            raise KeyError(f"Model '{self.configuration.table_name}' has no field '{name}'")
        self.values[name] = value

    def __repr__(self) -> str:
        return f"<Model {self.configuration.table_name} id={self.id}>"

    def get_configuration(self) -> ModelConfiguration:
        return self.configuration

    @property
    def id(self) -> int:
        return self.values[PRIMARY_KEY]

    @id.setter
    def id(self, value: int) -> None:
        self.values[PRIMARY_KEY] = value

    def load(self) -> None:
        """Load the row identified by ``id`` into this instance.

        Raises:
            RecordNotFound: If no row has this id
        """
        row = self.adapter.load(self.configuration, self.id)
        if row is None:
            raise RecordNotFound(self.configuration.table_name, self.id)
        self._hydrate(row)

    def insert(self) -> None:
        """Insert this instance and refresh it from the stored row."""
        data = {
            f.name: self.values[f.name]
            for f in self.configuration.fields
            if f.insertable and not f.primary_key
        }
        row = self.adapter.insert(self.configuration, data)
        self._hydrate(row)

    def update(self, fields: Iterable[str] | None = None) -> None:
        """Persist updatable fields, or exactly the given ``fields``.

        Raises:
            RecordNotFound: If the row no longer exists
        """
        if fields is None:
            names = [
                f.name for f in self.configuration.fields
                if f.updatable and not f.primary_key
            ]
        else:
            names = list(fields)
        data = {name: self.values[name] for name in names}
        row = self.adapter.update(self.configuration, self.id, data)
        if row is None:
            raise RecordNotFound(self.configuration.table_name, self.id)
        self._hydrate(row)

    def delete(self) -> None:
        """Delete the row identified by ``id``.

        Raises:
            RecordNotFound: If no row was deleted
        """
        if not self.adapter.delete(self.configuration, self.id):
            raise RecordNotFound(self.configuration.table_name, self.id)

    def bulk_fetch(
        self,
        fetch_config: BulkFetchConfig,
        build: Callable[[], Model],
    ) -> list[Model]:
        """Fetch rows matching ``fetch_config`` as fresh instances from ``build``."""
        rows = self.adapter.bulk_fetch(self.configuration, fetch_config)
        models = []
        for row in rows:
            model = build()
            model._hydrate(row)
            models.append(model)
        return models

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)

    def _hydrate(self, row: dict[str, Any]) -> None:
        for f in self.configuration.fields:
            if f.name in row:
                self.values[f.name] = f.kind.load(row[f.name])


ModelFactory = Callable[[], Model]


def build_model(configuration: ModelConfiguration, adapter: PersistenceAdapter) -> ModelFactory:
    """Return a factory producing fresh instances of the configured model."""

    def factory() -> Model:
        return Model(configuration, adapter)

    factory.__name__ = f"build_{configuration.table_name}"
    return factory
