"""Core types for request value validation."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from crudforge.core.types import ValueKind


@dataclass(frozen=True)
class ValidationError:
    """A single validation failure.

    Attributes:
        message: Human-readable message naming the parameter
        code: Machine-readable error code (e.g., "REQUIRED")
        field: Parameter name this error relates to
    """

    message: str
    code: str
    field: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "field": self.field,
        }


# A rule inspects the raw input and the coerced value and returns an
# error message, or None when the value passes.
Rule = Callable[[str, str, Any], "ValidationError | None"]


@dataclass
class Value:
    """A named input to be validated and written to a target slot.

    Attributes:
        name: Parameter name, used in error messages
        input: Raw string input (form value, query value or path segment)
        rules: Rules checked after coercion
        default: Substituted for an empty input before anything else
        kind: Value kind used to coerce the input (None keeps the string)
        target: Called with the coerced value once the value is valid
    """

    name: str
    input: str
    rules: list[Rule] = field(default_factory=list)
    default: str | None = None
    kind: ValueKind | None = None
    target: Callable[[Any], None] | None = None
    result: Any = None


@dataclass
class ValidationResult:
    """Aggregate result of validating a list of values."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def details(self) -> str | None:
        """All error messages joined into a single detail string."""
        if not self.errors:
            return None
        return " ".join(e.message for e in self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }
