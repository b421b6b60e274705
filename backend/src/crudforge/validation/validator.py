"""Validate a list of request values and write them to their targets."""

import logging

from crudforge.validation.types import ValidationError, ValidationResult, Value

logger = logging.getLogger(__name__)


def validate(values: list[Value]) -> ValidationResult:
    """Validate every value, collecting all failures.

    For each value the default replaces an empty input, the input is
    coerced by the value's kind, and the rules are checked against both
    the raw input and the coerced result. Targets are only written for
    values that pass; a failing value leaves its slot untouched.
    """
    errors: list[ValidationError] = []

    for value in values:
        raw = value.input
        if raw == "" and value.default is not None:
            raw = value.default

        if value.kind is not None:
            try:
                coerced = value.kind.parse(raw)
            except ValueError:
                errors.append(
                    ValidationError(
                        message=f"Parameter '{value.name}' must be a valid {value.kind.label}.",
                        code="INVALID_TYPE",
                        field=value.name,
                    )
                )
                continue
        else:
            coerced = raw

        failures = [
            error
            for error in (rule(value.name, raw, coerced) for rule in value.rules)
            if error is not None
        ]
        if failures:
            errors.extend(failures)
            continue

        value.result = coerced
        if value.target is not None:
            value.target(coerced)

    if errors:
        logger.debug("Validation failed: %s", [e.code for e in errors])
    return ValidationResult(valid=not errors, errors=errors)
