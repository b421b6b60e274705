"""Validation rules.

Each rule is a callable ``(name, raw, value) -> ValidationError | None``.
Parameterised rules are built by factory functions.
"""

from collections.abc import Iterable
from typing import Any

from crudforge.validation.types import Rule, ValidationError


def is_set(name: str, raw: str, value: Any) -> ValidationError | None:
    """The raw input must not be empty."""
    if raw == "":
        return ValidationError(
            message=f"Parameter '{name}' is required.",
            code="REQUIRED",
            field=name,
        )
    return None


def min_len(length: int) -> Rule:
    def rule(name: str, raw: str, value: Any) -> ValidationError | None:
        if len(raw) < length:
            return ValidationError(
                message=f"Parameter '{name}' must be at least {length} characters long.",
                code="MIN_LENGTH",
                field=name,
            )
        return None

    return rule


def min_value(minimum: int | float) -> Rule:
    def rule(name: str, raw: str, value: Any) -> ValidationError | None:
        if value is not None and value < minimum:
            return ValidationError(
                message=f"Parameter '{name}' must be at least {minimum}.",
                code="MIN_VALUE",
                field=name,
            )
        return None

    return rule


def max_value(maximum: int | float) -> Rule:
    def rule(name: str, raw: str, value: Any) -> ValidationError | None:
        if value is not None and value > maximum:
            return ValidationError(
                message=f"Parameter '{name}' must be at most {maximum}.",
                code="MAX_VALUE",
                field=name,
            )
        return None

    return rule


def sort_fields(field_names: Iterable[str]) -> Rule:
    """Every comma-separated entry must name a field, optionally prefixed with '-'."""
    allowed = set(field_names)

    def rule(name: str, raw: str, value: Any) -> ValidationError | None:
        for entry in raw.split(","):
            column = entry[1:] if entry.startswith("-") else entry
            if column not in allowed:
                return ValidationError(
                    message=(
                        f"Parameter '{name}' must only contain fields within the model. "
                        f"Input '{entry}' is invalid."
                    ),
                    code="INVALID_SORT",
                    field=name,
                )
        return None

    return rule
