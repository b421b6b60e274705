"""Request pipeline shared by every controller shape.

A controller exposes one async stage per method. Each stage receives the
request's ``RestResponse`` and either writes a result or unwinds with a
``RestError`` (terminal status plus detail) or ``PipelineHalted`` (a hook
already wrote the response). ``dispatch`` turns every outcome into exactly
one rendered envelope.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any

from fastapi import APIRouter, Request
from fastapi.params import Depends
from fastapi.responses import JSONResponse

from crudforge.hooks import HookService, LifecycleHooks
from crudforge.models.base import MODIFIED_AT, Model, ModelFactory
from crudforge.persistence.errors import BackendError, RecordNotFound
from crudforge.persistence.fetch import BulkFetchConfig
from crudforge.rest.conditional import (
    PRECONDITION_FAILED_DETAIL,
    apply_modified_since,
    is_unmodified_since,
)
from crudforge.rest.errors import PipelineHalted, RestError, to_rest_error
from crudforge.rest.methods import Method
from crudforge.rest.params import limit_value, offset_value, sort_value
from crudforge.rest.response import RestResponse
from crudforge.validation import Value, validate

logger = logging.getLogger(__name__)

Stage = Callable[[RestResponse, Request], Awaitable[None]]

# (method, HTTP method, path)
Route = tuple[Method, str, str]


class Controller:
    """Base for all controller shapes.

    Subclasses implement the ``create``/``index``/``show``/``update``/
    ``delete`` stages and ``_route_table``.
    """

    def __init__(
        self,
        lifecycle_hooks: LifecycleHooks | None = None,
        method_white_list: Iterable[Method] | None = None,
    ):
        self.lifecycle_hooks = lifecycle_hooks or LifecycleHooks()
        self.method_white_list = set(method_white_list) if method_white_list else None
        self.hook_service = HookService()

    # =========================================================================
    # Registration
    # =========================================================================

    def _route_table(self) -> list[Route]:
        raise NotImplementedError

    def allows(self, method: Method) -> bool:
        return self.method_white_list is None or method in self.method_white_list

    def routes(self) -> list[Route]:
        """Routes this controller registers, honouring the method white list."""
        return [route for route in self._route_table() if self.allows(route[0])]

    def register(
        self, router: APIRouter, dependencies: Sequence[Depends] | None = None
    ) -> None:
        """Add this controller's routes to ``router``.

        ``dependencies`` run before every route, in the manner of
        per-route middleware.
        """
        for method, http_method, path in self.routes():
            router.add_api_route(
                path,
                self._endpoint(getattr(self, method.value)),
                methods=[http_method],
                dependencies=list(dependencies) if dependencies else None,
                name=f"{type(self).__name__}.{method.value}:{path}",
            )
            logger.debug("Registered %s %s", http_method, path)

    def _endpoint(self, stage: Stage) -> Callable[[Request], Awaitable[JSONResponse]]:
        async def endpoint(request: Request):
            return await self.dispatch(stage, request)

        endpoint.__name__ = stage.__name__
        return endpoint

    async def dispatch(self, stage: Stage, request: Request) -> JSONResponse:
        """Run one stage and render its response."""
        response = RestResponse()
        try:
            await stage(response, request)
        except RestError as e:
            if e.status_code < 500:
                logger.debug(
                    "%s %s -> %d %s", request.method, request.url.path, e.status_code, e.detail or ""
                )
            e.apply(response)
        except PipelineHalted:
            pass
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.url.path)
            response = RestResponse()
        return response.render()

    # =========================================================================
    # Pipeline helpers
    # =========================================================================

    async def _hook(
        self, hook_point: str, response: RestResponse, request: Request, *subject: Any
    ) -> None:
        """Run a lifecycle hook, unwinding the pipeline if it stops."""
        proceed = await self.hook_service.run(
            hook_point, self.lifecycle_hooks, response, request, *subject
        )
        if not proceed:
            raise PipelineHalted(hook_point)

    def _validate(self, values: list[Value]) -> None:
        result = validate(values)
        if not result.valid:
            raise RestError(400, result.details)

    def _load(self, model: Model) -> None:
        try:
            model.load()
        except RecordNotFound:
            raise RestError(404) from None
        except BackendError as e:
            raise to_rest_error(e) from e

    def _insert(self, model: Model) -> None:
        try:
            model.insert()
        except BackendError as e:
            raise to_rest_error(e) from e

    def _update(self, model: Model, fields: Iterable[str] | None = None) -> None:
        try:
            model.update(fields)
        except RecordNotFound:
            raise RestError(404) from None
        except BackendError as e:
            raise to_rest_error(e) from e

    def _delete(self, model: Model) -> None:
        try:
            model.delete()
        except RecordNotFound:
            raise RestError(404) from None
        except BackendError as e:
            raise to_rest_error(e) from e

    def _bulk_fetch(
        self, fetch_config: BulkFetchConfig, get_model: ModelFactory
    ) -> list[Model]:
        try:
            return get_model().bulk_fetch(fetch_config, get_model)
        except BackendError as e:
            raise to_rest_error(e) from e

    def _check_unmodified_since(self, model: Model, request: Request) -> None:
        if not is_unmodified_since(model, request.headers.get("If-Unmodified-Since")):
            raise RestError(412, PRECONDITION_FAILED_DETAIL)

    def _paging_values(self, request: Request, model: Model) -> list[Value]:
        """``limit``, ``offset`` and ``sort`` values for an Index stage."""
        return [
            limit_value(request),
            offset_value(request),
            sort_value(request, model.get_configuration()),
        ]

    def _fetch_config(self, request: Request, model: Model, paging: list[Value]) -> BulkFetchConfig:
        """Build the fetch config from validated paging values and headers."""
        limit, offset, sort = paging
        fetch_config = BulkFetchConfig(limit=limit.result, offset=offset.result)
        fetch_config.consume_sort_query(sort.result)
        if model.get_configuration().has_field(MODIFIED_AT):
            apply_modified_since(fetch_config, request.headers.get("If-Modified-Since"))
        return fetch_config

    # =========================================================================
    # Stages
    # =========================================================================

    async def create(self, response: RestResponse, request: Request) -> None:
        raise RestError(405)

    async def index(self, response: RestResponse, request: Request) -> None:
        raise RestError(405)

    async def show(self, response: RestResponse, request: Request) -> None:
        raise RestError(405)

    async def update(self, response: RestResponse, request: Request) -> None:
        raise RestError(405)

    async def delete(self, response: RestResponse, request: Request) -> None:
        raise RestError(405)
