"""Pipeline errors and backend error mapping."""

import logging

from crudforge.persistence.errors import (
    CHECK_VIOLATION,
    FOREIGN_KEY_VIOLATION,
    INVALID_TEXT_REPRESENTATION,
    NOT_NULL_VIOLATION,
    UNIQUE_VIOLATION,
    BackendError,
)

logger = logging.getLogger(__name__)


class RestError(Exception):
    """Stops a pipeline stage with a terminal status and optional detail."""

    def __init__(self, status_code: int, detail: str | None = None):
        super().__init__(detail or str(status_code))
        self.status_code = status_code
        self.detail = detail

    def apply(self, response) -> None:
        """Write this error onto a RestResponse."""
        response.set_error_details(self.detail)
        response.set_result(self.status_code, None)


class PipelineHalted(Exception):
    """A lifecycle hook stopped the pipeline and owns the response."""


def to_rest_error(exc: Exception) -> RestError:
    """Translate a store failure into the HTTP outcome it maps to.

    Constraint violations become client errors carrying the store's own
    detail. Anything else is a 500 with no detail.
    """
    if isinstance(exc, BackendError):
        if exc.code in (NOT_NULL_VIOLATION, FOREIGN_KEY_VIOLATION):
            return RestError(400, exc.detail)
        if exc.code == INVALID_TEXT_REPRESENTATION:
            return RestError(400, exc.message)
        if exc.code == UNIQUE_VIOLATION:
            return RestError(409, exc.detail)
        if exc.code == CHECK_VIOLATION:
            return RestError(400, f"Failed to satisfy constraint '{exc.constraint}'")

    logger.error("Unmapped backend error: %r", exc, exc_info=exc)
    return RestError(500)


def map_backend_error(response, exc: Exception) -> None:
    """Write the HTTP outcome for a store failure onto ``response``."""
    to_rest_error(exc).apply(response)
