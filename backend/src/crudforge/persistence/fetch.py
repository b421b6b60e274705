"""Bulk fetch descriptors: limit, offset, predicates and ordering."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PredicateType(Enum):
    """Comparison applied by a single predicate."""

    EQUAL = "eq"
    NOT_EQUAL = "neq"
    GREATER_THAN = "gt"
    GREATER_THAN_OR_EQUAL = "gte"
    LESS_THAN = "lt"
    LESS_THAN_OR_EQUAL = "lte"
    IN = "in"
    NOT_IN = "notIn"
    IS_NULL = "isNull"
    IS_NOT_NULL = "isNotNull"


@dataclass
class Predicate:
    """A single filter condition.

    Attributes:
        field: Column the condition applies to
        predicate_type: The comparison
        values: Operands (one for comparisons, any number for IN/NOT_IN,
            none for the NULL checks)
    """

    field: str
    predicate_type: PredicateType
    values: list[Any] = field(default_factory=list)


@dataclass
class OrderBy:
    field: str
    descending: bool = False


@dataclass
class BulkFetchConfig:
    """Mutable query descriptor built up across pipeline stages.

    A limit of None fetches every matching row.
    """

    limit: int | None = None
    offset: int = 0
    predicates: list[Predicate] = field(default_factory=list)
    order_by: list[OrderBy] = field(default_factory=list)

    def consume_sort_query(self, sort: str) -> None:
        """Append ordering from a sort query such as ``"name,-created_at"``.

        A leading '-' sorts that field descending. Empty entries are skipped.
        """
        for entry in sort.split(","):
            entry = entry.strip()
            if not entry:
                continue
            if entry.startswith("-"):
                self.order_by.append(OrderBy(field=entry[1:], descending=True))
            else:
                self.order_by.append(OrderBy(field=entry))

    def where(self, field_name: str, predicate_type: PredicateType, *values: Any) -> "BulkFetchConfig":
        """Append a predicate and return self for chaining."""
        self.predicates.append(Predicate(field_name, predicate_type, list(values)))
        return self
