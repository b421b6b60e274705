"""JSON response envelope.

Every controller response has the same shape:

    {
        "meta": {"status_code": 404, "status_text": "Not Found", "error_details": null},
        "result": null
    }
"""

from http import HTTPStatus
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from crudforge.models.base import Model


class Meta(BaseModel):
    """Envelope metadata."""

    status_code: int
    status_text: str
    error_details: str | None = None


class Envelope(BaseModel):
    """Full response body."""

    meta: Meta
    result: Any = None


def _status_text(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


def _serialize(result: Any) -> Any:
    if isinstance(result, Model):
        return result.to_dict()
    if isinstance(result, list):
        return [_serialize(item) for item in result]
    return result


class RestResponse:
    """Mutable per-request envelope.

    Starts out as a 500 with no result, so a pipeline that stops without
    writing anything (a hook halting without setting a result) answers
    with a generic server error.
    """

    def __init__(self) -> None:
        self.status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
        self.result: Any = None
        self.error_details: str | None = None

    def set_result(self, status_code: int, result: Any) -> None:
        self.status_code = int(status_code)
        self.result = result

    def set_error_details(self, details: str | None) -> None:
        self.error_details = details

    def envelope(self) -> Envelope:
        return Envelope(
            meta=Meta(
                status_code=self.status_code,
                status_text=_status_text(self.status_code),
                error_details=self.error_details,
            ),
            result=_serialize(self.result),
        )

    def render(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=jsonable_encoder(self.envelope()),
        )
