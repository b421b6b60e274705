"""Controller for two models joined through a relation table.

A relation row carries ``base_model_foreign_reference`` (the base row's
id) and ``nested_model_foreign_reference`` (the nested row's id). Create
and Delete act on relation rows; Index and Show return nested rows.
"""

from collections.abc import Iterable

from fastapi import Request

from crudforge.hooks import LifecycleHooks
from crudforge.models.base import PRIMARY_KEY, Model, ModelFactory
from crudforge.persistence.fetch import BulkFetchConfig, PredicateType
from crudforge.rest.errors import RestError
from crudforge.rest.methods import Method
from crudforge.rest.params import id_value, nested_id_value
from crudforge.rest.pipeline import Controller, Route
from crudforge.rest.response import RestResponse


class ManyToManyController(Controller):
    """Routes:
        POST   /{base}/{id}/{nested}/{nested_id}
        GET    /{base}/{id}/{nested}
        GET    /{base}/{id}/{nested}/{nested_id}
        PUT    /{base}/{id}/{nested}/{nested_id}   (always 405)
        DELETE /{base}/{id}/{nested}/{nested_id}
    """

    def __init__(
        self,
        get_base_model: ModelFactory,
        get_nested_model: ModelFactory,
        get_relation_model: ModelFactory,
        base_model_foreign_reference: str,
        nested_model_foreign_reference: str,
        lifecycle_hooks: LifecycleHooks | None = None,
        method_white_list: Iterable[Method] | None = None,
    ):
        super().__init__(lifecycle_hooks, method_white_list)
        self.get_base_model = get_base_model
        self.get_nested_model = get_nested_model
        self.get_relation_model = get_relation_model
        self.base_model_foreign_reference = base_model_foreign_reference
        self.nested_model_foreign_reference = nested_model_foreign_reference

    def _route_table(self) -> list[Route]:
        base = self.get_base_model().get_configuration().table_name
        nested = self.get_nested_model().get_configuration().table_name
        collection = f"/{base}/{{id}}/{nested}"
        member = f"{collection}/{{nested_id}}"
        return [
            (Method.CREATE, "POST", member),
            (Method.INDEX, "GET", collection),
            (Method.SHOW, "GET", member),
            (Method.UPDATE, "PUT", member),
            (Method.DELETE, "DELETE", member),
        ]

    def _validate_ids(self, request: Request) -> tuple[int, int]:
        id = id_value(request)
        nested_id = nested_id_value(request)
        self._validate([id, nested_id])
        return id.result, nested_id.result

    def _find_relation(self, id: int, nested_id: int) -> Model:
        """The relation row joining ``id`` and ``nested_id``."""
        fetch_config = (
            BulkFetchConfig(limit=1)
            .where(self.base_model_foreign_reference, PredicateType.EQUAL, id)
            .where(self.nested_model_foreign_reference, PredicateType.EQUAL, nested_id)
        )
        relations = self._bulk_fetch(fetch_config, self.get_relation_model)
        if not relations:
            raise RestError(404)
        return relations[0]

    async def create(self, response: RestResponse, request: Request) -> None:
        id, nested_id = self._validate_ids(request)

        base = self.get_base_model()
        base.id = id
        self._load(base)
        nested = self.get_nested_model()
        nested.id = nested_id
        self._load(nested)

        relation = self.get_relation_model()
        relation[self.base_model_foreign_reference] = id
        relation[self.nested_model_foreign_reference] = nested_id

        await self._hook("before_create", response, request, relation)
        self._insert(relation)
        await self._hook("after_create", response, request, relation)

        response.set_result(200, relation)

    async def index(self, response: RestResponse, request: Request) -> None:
        nested = self.get_nested_model()
        id = id_value(request)
        paging = self._paging_values(request, nested)
        self._validate([id, *paging])

        base = self.get_base_model()
        base.id = id.result
        self._load(base)

        relations = self._bulk_fetch(
            BulkFetchConfig().where(self.base_model_foreign_reference, PredicateType.EQUAL, base.id),
            self.get_relation_model,
        )
        if not relations:
            response.set_result(200, [])
            return
        nested_ids = [r[self.nested_model_foreign_reference] for r in relations]

        fetch_config = self._fetch_config(request, nested, paging)
        fetch_config.where(PRIMARY_KEY, PredicateType.IN, *nested_ids)
        await self._hook("before_index", response, request, fetch_config)
        models = self._bulk_fetch(fetch_config, self.get_nested_model)
        await self._hook("after_index", response, request, models)

        response.set_result(200, models)

    async def show(self, response: RestResponse, request: Request) -> None:
        id, nested_id = self._validate_ids(request)
        self._find_relation(id, nested_id)

        nested = self.get_nested_model()
        nested.id = nested_id
        await self._hook("before_show", response, request, nested)
        self._load(nested)
        await self._hook("after_show", response, request, nested)

        response.set_result(200, nested)

    async def update(self, response: RestResponse, request: Request) -> None:
        raise RestError(405)

    async def delete(self, response: RestResponse, request: Request) -> None:
        id, nested_id = self._validate_ids(request)
        relation = self._find_relation(id, nested_id)

        await self._hook("before_delete", response, request, relation)
        self._delete(relation)
        await self._hook("after_delete", response, request)

        response.set_result(200, None)
