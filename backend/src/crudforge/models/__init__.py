"""Model layer - field configuration and per-request entity instances."""

from crudforge.models.base import (
    CREATED_AT,
    MODIFIED_AT,
    PRIMARY_KEY,
    Field,
    Model,
    ModelConfiguration,
    ModelFactory,
    build_model,
)

__all__ = [
    "CREATED_AT",
    "MODIFIED_AT",
    "PRIMARY_KEY",
    "Field",
    "Model",
    "ModelConfiguration",
    "ModelFactory",
    "build_model",
]
