"""Persistence layer - database adapters, bulk fetch descriptors and errors."""

from crudforge.persistence.adapter import PersistenceAdapter
from crudforge.persistence.config import DatabaseConfig, create_adapter
from crudforge.persistence.errors import BackendError, RecordNotFound
from crudforge.persistence.fetch import (
    BulkFetchConfig,
    OrderBy,
    Predicate,
    PredicateType,
)

__all__ = [
    "BackendError",
    "BulkFetchConfig",
    "DatabaseConfig",
    "OrderBy",
    "PersistenceAdapter",
    "Predicate",
    "PredicateType",
    "RecordNotFound",
    "create_adapter",
]
