"""Request value validation.

Usage:
    from crudforge.validation import Value, validate, is_set

    result = validate([Value(name="id", input="7", rules=[is_set], kind=INT)])
    if not result.valid:
        print(result.details)
"""

from crudforge.validation.rules import (
    is_set,
    max_value,
    min_len,
    min_value,
    sort_fields,
)
from crudforge.validation.types import (
    Rule,
    ValidationError,
    ValidationResult,
    Value,
)
from crudforge.validation.validator import validate

__all__ = [
    "Rule",
    "ValidationError",
    "ValidationResult",
    "Value",
    "is_set",
    "max_value",
    "min_len",
    "min_value",
    "sort_fields",
    "validate",
]
