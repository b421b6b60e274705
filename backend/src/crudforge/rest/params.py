"""Request value extraction.

Builds the ``Value`` descriptors the validator consumes: path identifiers,
paging and sort parameters, and one value per writable model field.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from functools import partial
from typing import Any

from starlette.requests import Request

from crudforge.core.types import get_value_kind
from crudforge.models.base import CREATED_AT, PRIMARY_KEY, Field, Model, ModelConfiguration
from crudforge.rest.errors import RestError
from crudforge.validation import Value, is_set, max_value, min_value, sort_fields

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 5000
DEFAULT_OFFSET = 0

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def id_value(request: Request) -> Value:
    """The ``id`` path parameter."""
    return Value(
        name="id",
        input=request.path_params.get("id", ""),
        rules=[is_set],
        kind=get_value_kind("int"),
    )


def nested_id_value(request: Request) -> Value:
    """The ``nested_id`` path parameter."""
    return Value(
        name="nested_id",
        input=request.path_params.get("nested_id", ""),
        rules=[is_set],
        kind=get_value_kind("int"),
    )


def limit_value(request: Request) -> Value:
    return Value(
        name="limit",
        input=request.query_params.get("limit", ""),
        rules=[min_value(1), max_value(MAX_LIMIT)],
        default=str(DEFAULT_LIMIT),
        kind=get_value_kind("int"),
    )


def offset_value(request: Request) -> Value:
    return Value(
        name="offset",
        input=request.query_params.get("offset", ""),
        rules=[min_value(0)],
        default=str(DEFAULT_OFFSET),
        kind=get_value_kind("int"),
    )


def sort_value(request: Request, configuration: ModelConfiguration) -> Value:
    """The ``sort`` query parameter, restricted to the model's fields.

    Defaults to ``created_at`` when the model has one, otherwise ``id``.
    """
    default = CREATED_AT if configuration.has_field(CREATED_AT) else PRIMARY_KEY
    return Value(
        name="sort",
        input=request.query_params.get("sort", ""),
        rules=[sort_fields(configuration.field_names)],
        default=default,
    )


def _field_value(form: Mapping[str, str], model: Model, field: Field) -> Value:
    return Value(
        name=field.name,
        input=form.get(field.name, ""),
        rules=field.kind.default_rules(),
        kind=field.kind,
        target=partial(model.__setitem__, field.name),
    )


def _excluded(field: Field, exclusions: Iterable[str]) -> bool:
    return field.primary_key or field.skip_validation or field.name in exclusions


def insert_values(
    form: Mapping[str, str], model: Model, exclusions: Iterable[str] = ()
) -> list[Value]:
    """Values for every insertable field not excluded.

    ``exclusions`` names linkage fields populated from the path instead
    of the request.
    """
    exclusions = set(exclusions)
    return [
        _field_value(form, model, f)
        for f in model.get_configuration().fields
        if f.insertable and not _excluded(f, exclusions)
    ]


def update_values(
    form: Mapping[str, str], model: Model, exclusions: Iterable[str] = ()
) -> list[Value]:
    """Values for updatable fields present in the submitted form.

    Fields the request does not mention are left untouched.
    """
    exclusions = set(exclusions)
    return [
        _field_value(form, model, f)
        for f in model.get_configuration().fields
        if f.updatable and f.name in form and not _excluded(f, exclusions)
    ]


def _form_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


async def read_form(request: Request) -> dict[str, str]:
    """Collect submitted values, body first and query string as fallback.

    URL-encoded and multipart bodies are read as forms. A JSON object body
    is accepted as well, its scalar members converted to form strings.
    File uploads are ignored.

    Raises:
        RestError: 400 if a JSON body is not an object
    """
    values: dict[str, str] = dict(request.query_params)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        for key, value in form.items():
            if isinstance(value, str):
                values[key] = value
    elif content_type.startswith("application/json"):
        body = await request.body()
        if body:
            try:
                payload = json.loads(body)
            except ValueError:
                raise RestError(400, "Request body must be a JSON object.") from None
            if not isinstance(payload, dict):
                raise RestError(400, "Request body must be a JSON object.")
            for key, value in payload.items():
                values[key] = _form_string(value)

    return values
