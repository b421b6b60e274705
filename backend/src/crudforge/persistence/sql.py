"""SQL fragments shared by the SQLite and PostgreSQL adapters.

Identifiers are always double-quoted; both dialects accept that form.
Values are always passed as parameters using the adapter's placeholder.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from crudforge.persistence.fetch import BulkFetchConfig, Predicate, PredicateType

if TYPE_CHECKING:
    from crudforge.models.base import ModelConfiguration


AUDIT_FIELDS = ("created_at", "modified_at")

_COMPARISONS = {
    PredicateType.EQUAL: "=",
    PredicateType.NOT_EQUAL: "!=",
    PredicateType.GREATER_THAN: ">",
    PredicateType.GREATER_THAN_OR_EQUAL: ">=",
    PredicateType.LESS_THAN: "<",
    PredicateType.LESS_THAN_OR_EQUAL: "<=",
}


def quote(name: str) -> str:
    """Return a double-quoted identifier."""
    return '"' + name.replace('"', '""') + '"'


def column_definitions(
    configuration: ModelConfiguration,
    primary_key_type: str,
    type_map: dict[str, str] | None = None,
) -> list[str]:
    """Build the column and table constraint list for CREATE TABLE."""
    type_map = type_map or {}
    table = configuration.table_name
    parts = []
    for f in configuration.fields:
        if f.primary_key:
            parts.append(f"{quote(f.name)} {primary_key_type}")
            continue

        col = f"{quote(f.name)} {type_map.get(f.kind.storage_type, f.kind.storage_type)}"
        if not f.kind.nullable and f.name not in AUDIT_FIELDS:
            col += " NOT NULL"
        if f.unique:
            col += " UNIQUE"
        if f.references:
            col += f" REFERENCES {quote(f.references)}({quote('id')})"
        if f.check:
            col += f" CONSTRAINT {quote(f'{table}_{f.name}_check')} CHECK ({f.check})"
        parts.append(col)

    for columns in configuration.unique_together:
        parts.append(f"UNIQUE ({', '.join(quote(c) for c in columns)})")
    return parts


def build_condition(predicate: Predicate, placeholder: str) -> tuple[str, list[Any]]:
    """Build a SQL condition from a predicate."""
    column = quote(predicate.field)
    ptype = predicate.predicate_type
    values = list(predicate.values)

    if ptype in _COMPARISONS:
        return f"{column} {_COMPARISONS[ptype]} {placeholder}", values[:1]
    if ptype in (PredicateType.IN, PredicateType.NOT_IN):
        if not values:
            # An empty IN matches nothing, an empty NOT IN matches everything
            return ("1 = 0" if ptype is PredicateType.IN else "1 = 1"), []
        placeholders = ", ".join(placeholder for _ in values)
        op = "IN" if ptype is PredicateType.IN else "NOT IN"
        return f"{column} {op} ({placeholders})", values
    if ptype is PredicateType.IS_NULL:
        return f"{column} IS NULL", []
    if ptype is PredicateType.IS_NOT_NULL:
        return f"{column} IS NOT NULL", []

    raise ValueError(f"Unsupported predicate type: {ptype}")


def build_select(
    configuration: ModelConfiguration,
    fetch_config: BulkFetchConfig,
    placeholder: str,
    unbounded_limit: str | None = None,
) -> tuple[str, list[Any]]:
    """Build the SELECT statement for a bulk fetch.

    ``unbounded_limit`` is emitted before a bare OFFSET for dialects that
    require a LIMIT clause (SQLite uses -1).
    """
    columns = ", ".join(quote(name) for name in configuration.field_names)
    sql = f"SELECT {columns} FROM {quote(configuration.table_name)}"
    params: list[Any] = []

    conditions = []
    for predicate in fetch_config.predicates:
        condition, values = build_condition(predicate, placeholder)
        conditions.append(condition)
        params.extend(values)
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)

    if fetch_config.order_by:
        order = ", ".join(
            f"{quote(o.field)} {'DESC' if o.descending else 'ASC'}"
            for o in fetch_config.order_by
        )
        sql += f" ORDER BY {order}"

    if fetch_config.limit is not None:
        sql += f" LIMIT {int(fetch_config.limit)} OFFSET {int(fetch_config.offset)}"
    elif fetch_config.offset:
        if unbounded_limit is not None:
            sql += f" LIMIT {unbounded_limit}"
        sql += f" OFFSET {int(fetch_config.offset)}"

    return sql, params
