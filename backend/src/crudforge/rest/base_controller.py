"""Controller for a single table."""

from collections.abc import Iterable

from fastapi import Request

from crudforge.hooks import LifecycleHooks
from crudforge.models.base import ModelFactory
from crudforge.rest.methods import Method
from crudforge.rest.params import id_value, insert_values, read_form, update_values
from crudforge.rest.pipeline import Controller, Route
from crudforge.rest.response import RestResponse


class BaseController(Controller):
    """Create/Index/Show/Update/Delete for one model.

    Routes:
        POST   /{table}
        GET    /{table}
        GET    /{table}/{id}
        PUT    /{table}/{id}
        DELETE /{table}/{id}
    """

    def __init__(
        self,
        get_model: ModelFactory,
        lifecycle_hooks: LifecycleHooks | None = None,
        method_white_list: Iterable[Method] | None = None,
    ):
        super().__init__(lifecycle_hooks, method_white_list)
        self.get_model = get_model

    def _route_table(self) -> list[Route]:
        table = self.get_model().get_configuration().table_name
        return [
            (Method.CREATE, "POST", f"/{table}"),
            (Method.INDEX, "GET", f"/{table}"),
            (Method.SHOW, "GET", f"/{table}/{{id}}"),
            (Method.UPDATE, "PUT", f"/{table}/{{id}}"),
            (Method.DELETE, "DELETE", f"/{table}/{{id}}"),
        ]

    async def create(self, response: RestResponse, request: Request) -> None:
        model = self.get_model()
        form = await read_form(request)
        self._validate(insert_values(form, model))

        await self._hook("before_create", response, request, model)
        self._insert(model)
        await self._hook("after_create", response, request, model)

        response.set_result(200, model)

    async def index(self, response: RestResponse, request: Request) -> None:
        model = self.get_model()
        paging = self._paging_values(request, model)
        self._validate(paging)

        fetch_config = self._fetch_config(request, model, paging)
        await self._hook("before_index", response, request, fetch_config)
        models = self._bulk_fetch(fetch_config, self.get_model)
        await self._hook("after_index", response, request, models)

        response.set_result(200, models)

    async def show(self, response: RestResponse, request: Request) -> None:
        id = id_value(request)
        self._validate([id])

        model = self.get_model()
        model.id = id.result
        await self._hook("before_show", response, request, model)
        self._load(model)
        await self._hook("after_show", response, request, model)

        response.set_result(200, model)

    async def update(self, response: RestResponse, request: Request) -> None:
        id = id_value(request)
        self._validate([id])

        model = self.get_model()
        model.id = id.result
        self._load(model)
        self._check_unmodified_since(model, request)

        form = await read_form(request)
        self._validate(update_values(form, model))

        await self._hook("before_update", response, request, model)
        self._update(model)
        await self._hook("after_update", response, request, model)

        response.set_result(200, model)

    async def delete(self, response: RestResponse, request: Request) -> None:
        id = id_value(request)
        self._validate([id])

        model = self.get_model()
        model.id = id.result
        self._load(model)

        await self._hook("before_delete", response, request, model)
        self._delete(model)
        await self._hook("after_delete", response, request)

        response.set_result(200, None)
