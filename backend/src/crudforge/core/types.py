"""Value kind registry with storage, coercion and validation defaults.

Every model field is bound to one of a closed set of value kinds. A kind
knows how to turn raw form input into a Python value, how to read a value
back from the backing store, and which validation rules apply to it when
no explicit rules are given.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(raw: str) -> bool:
    """Parse a boolean the way form inputs usually spell it."""
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean: {raw!r}")


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def parse_int(raw: str) -> int:
    """Parse an integer that fits a signed 64-bit column."""
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"integer out of range: {raw!r}")
    return value


def parse_float(raw: str) -> float:
    """Parse a finite float. NaN and infinities are rejected."""
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"non-finite number: {raw!r}")
    return value


def parse_time(raw: str) -> datetime:
    """Parse an ISO-8601 / RFC 3339 timestamp, assuming UTC when naive."""
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _time_from_storage(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return parse_time(str(value))


def _bool_from_storage(value: Any) -> bool | None:
    if value is None:
        return None
    return bool(value)


@dataclass(frozen=True)
class ValueKind:
    """A field value kind.

    Attributes:
        name: Registry key (e.g. "int", "null_string")
        storage_type: Column type used when creating tables
        nullable: Whether the kind admits NULL
        label: Human-readable type name used in validation messages
        zero: Value a fresh model holds before anything is assigned
        coerce: Converts non-empty raw form input to the Python value
        from_storage: Converts a stored column value to the Python value
    """

    name: str
    storage_type: str
    nullable: bool
    label: str
    zero: Any
    coerce: Callable[[str], Any]
    from_storage: Callable[[Any], Any]

    @property
    def is_string(self) -> bool:
        return self.label == "string"

    def parse(self, raw: str) -> Any:
        """Convert raw input to a value.

        Nullable kinds map empty input to None; everything else is handed
        to the coercion function, which raises ValueError on bad input.
        """
        if raw == "":
            if self.nullable:
                return None
            return self.zero
        return self.coerce(raw)

    def load(self, value: Any) -> Any:
        if value is None:
            return None if self.nullable else self.zero
        return self.from_storage(value)

    def default_rules(self) -> list:
        """Rules applied when a field of this kind is validated.

        Nullable kinds carry no rules. Plain strings must be at least one
        character long so a blank value can only be stored through a
        nullable string; every other primitive must be set.
        """
        from crudforge.validation.rules import is_set, min_len

        if self.nullable:
            return []
        if self.is_string:
            return [min_len(1)]
        return [is_set]


# Built-in value kinds
VALUE_KINDS: dict[str, ValueKind] = {
    "int": ValueKind(
        name="int",
        storage_type="INTEGER",
        nullable=False,
        label="integer",
        zero=0,
        coerce=parse_int,
        from_storage=int,
    ),
    "string": ValueKind(
        name="string",
        storage_type="TEXT",
        nullable=False,
        label="string",
        zero="",
        coerce=str,
        from_storage=str,
    ),
    "bool": ValueKind(
        name="bool",
        storage_type="BOOLEAN",
        nullable=False,
        label="boolean",
        zero=False,
        coerce=parse_bool,
        from_storage=_bool_from_storage,
    ),
    "float": ValueKind(
        name="float",
        storage_type="REAL",
        nullable=False,
        label="number",
        zero=0.0,
        coerce=parse_float,
        from_storage=float,
    ),
    "time": ValueKind(
        name="time",
        storage_type="TIMESTAMP",
        nullable=False,
        label="timestamp",
        zero=None,
        coerce=parse_time,
        from_storage=_time_from_storage,
    ),
    "null_int": ValueKind(
        name="null_int",
        storage_type="INTEGER",
        nullable=True,
        label="integer",
        zero=None,
        coerce=parse_int,
        from_storage=int,
    ),
    "null_string": ValueKind(
        name="null_string",
        storage_type="TEXT",
        nullable=True,
        label="string",
        zero=None,
        coerce=str,
        from_storage=str,
    ),
    "null_bool": ValueKind(
        name="null_bool",
        storage_type="BOOLEAN",
        nullable=True,
        label="boolean",
        zero=None,
        coerce=parse_bool,
        from_storage=_bool_from_storage,
    ),
    "null_time": ValueKind(
        name="null_time",
        storage_type="TIMESTAMP",
        nullable=True,
        label="timestamp",
        zero=None,
        coerce=parse_time,
        from_storage=_time_from_storage,
    ),
    "null_float": ValueKind(
        name="null_float",
        storage_type="REAL",
        nullable=True,
        label="number",
        zero=None,
        coerce=parse_float,
        from_storage=float,
    ),
}


def get_value_kind(type_name: str, nullable: bool = False) -> ValueKind:
    """Get a value kind by its base type name.

    Args:
        type_name: "int", "string", "bool", "float" or "time" (a "null_"
            prefixed name is accepted as well)
        nullable: Select the nullable variant of the base type

    Raises:
        ValueError: If the type is unknown
    """
    key = type_name
    if nullable and not key.startswith("null_"):
        key = f"null_{key}"
    if key not in VALUE_KINDS:
        raise ValueError(
            f"Unknown value type '{type_name}'. "
            f"Expected one of: {', '.join(list_value_kinds())}"
        )
    return VALUE_KINDS[key]


def list_value_kinds() -> list[str]:
    """List all registered value kind names."""
    return list(VALUE_KINDS.keys())
