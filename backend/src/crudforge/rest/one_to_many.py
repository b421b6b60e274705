"""Controller for a nested model owned by a parent row.

The nested model holds the link: ``foreign_reference`` is a field on the
nested model carrying the parent's ``id``. It is always populated from
the path, never from the request body.
"""

from collections.abc import Callable, Iterable

from fastapi import Request

from crudforge.hooks import LifecycleHooks
from crudforge.models.base import Model, ModelFactory
from crudforge.persistence.fetch import PredicateType
from crudforge.rest.errors import RestError
from crudforge.rest.methods import Method
from crudforge.rest.params import (
    id_value,
    insert_values,
    nested_id_value,
    read_form,
    update_values,
)
from crudforge.rest.pipeline import Controller, Route
from crudforge.rest.response import RestResponse

BelongsTo = Callable[[Model, Model], bool]


class OneToManyController(Controller):
    """Routes:
        POST   /{base}/{id}/{nested}
        GET    /{base}/{id}/{nested}
        GET    /{base}/{id}/{nested}/{nested_id}
        PUT    /{base}/{id}/{nested}/{nested_id}
        DELETE /{base}/{id}/{nested}/{nested_id}
    """

    def __init__(
        self,
        get_base_model: ModelFactory,
        get_nested_model: ModelFactory,
        foreign_reference: str,
        belongs_to: BelongsTo | None = None,
        lifecycle_hooks: LifecycleHooks | None = None,
        method_white_list: Iterable[Method] | None = None,
    ):
        super().__init__(lifecycle_hooks, method_white_list)
        self.get_base_model = get_base_model
        self.get_nested_model = get_nested_model
        self.foreign_reference = foreign_reference
        self.belongs_to = belongs_to or self._references_base

    def _references_base(self, base: Model, nested: Model) -> bool:
        return nested[self.foreign_reference] == base.id

    def _route_table(self) -> list[Route]:
        base = self.get_base_model().get_configuration().table_name
        nested = self.get_nested_model().get_configuration().table_name
        collection = f"/{base}/{{id}}/{nested}"
        member = f"{collection}/{{nested_id}}"
        return [
            (Method.CREATE, "POST", collection),
            (Method.INDEX, "GET", collection),
            (Method.SHOW, "GET", member),
            (Method.UPDATE, "PUT", member),
            (Method.DELETE, "DELETE", member),
        ]

    def _load_base(self, id: int) -> Model:
        base = self.get_base_model()
        base.id = id
        self._load(base)
        return base

    def _check_ownership(self, base: Model, nested: Model) -> None:
        if not self.belongs_to(base, nested):
            raise RestError(404)

    def _resolve(self, request: Request) -> tuple[Model, Model]:
        """Validate both ids, then load and check the parent and nested rows."""
        id = id_value(request)
        nested_id = nested_id_value(request)
        self._validate([id, nested_id])

        base = self._load_base(id.result)
        nested = self.get_nested_model()
        nested.id = nested_id.result
        self._load(nested)
        self._check_ownership(base, nested)
        return base, nested

    async def create(self, response: RestResponse, request: Request) -> None:
        nested = self.get_nested_model()
        form = await read_form(request)
        id = id_value(request)
        self._validate([*insert_values(form, nested, [self.foreign_reference]), id])

        base = self._load_base(id.result)
        nested[self.foreign_reference] = base.id

        await self._hook("before_create", response, request, nested)
        self._insert(nested)
        await self._hook("after_create", response, request, nested)

        response.set_result(200, nested)

    async def index(self, response: RestResponse, request: Request) -> None:
        nested = self.get_nested_model()
        id = id_value(request)
        paging = self._paging_values(request, nested)
        self._validate([id, *paging])

        base = self._load_base(id.result)

        fetch_config = self._fetch_config(request, nested, paging)
        fetch_config.where(self.foreign_reference, PredicateType.EQUAL, base.id)
        await self._hook("before_index", response, request, fetch_config)
        models = self._bulk_fetch(fetch_config, self.get_nested_model)
        await self._hook("after_index", response, request, models)

        response.set_result(200, models)

    async def show(self, response: RestResponse, request: Request) -> None:
        id = id_value(request)
        nested_id = nested_id_value(request)
        self._validate([id, nested_id])

        base = self._load_base(id.result)
        nested = self.get_nested_model()
        nested.id = nested_id.result

        await self._hook("before_show", response, request, nested)
        self._load(nested)
        self._check_ownership(base, nested)
        await self._hook("after_show", response, request, nested)

        response.set_result(200, nested)

    async def update(self, response: RestResponse, request: Request) -> None:
        _, nested = self._resolve(request)
        self._check_unmodified_since(nested, request)

        form = await read_form(request)
        self._validate(update_values(form, nested, [self.foreign_reference]))

        await self._hook("before_update", response, request, nested)
        self._update(nested)
        await self._hook("after_update", response, request, nested)

        response.set_result(200, nested)

    async def delete(self, response: RestResponse, request: Request) -> None:
        _, nested = self._resolve(request)

        await self._hook("before_delete", response, request, nested)
        self._delete(nested)
        await self._hook("after_delete", response, request)

        response.set_result(200, None)
