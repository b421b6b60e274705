"""Controller for a nested model linked one-to-one from its parent.

The parent row holds the link: ``foreign_reference`` is a field on the
base model pointing at the nested row's ``id``.
"""

import logging
from collections.abc import Iterable

from fastapi import Request

from crudforge.hooks import LifecycleHooks
from crudforge.models.base import Model, ModelFactory
from crudforge.persistence.errors import BackendError, RecordNotFound
from crudforge.rest.errors import RestError
from crudforge.rest.methods import Method
from crudforge.rest.params import id_value, insert_values, read_form, update_values
from crudforge.rest.pipeline import Controller, Route
from crudforge.rest.response import RestResponse

logger = logging.getLogger(__name__)


class OneToOneController(Controller):
    """Routes:
        POST   /{base}/{id}/{nested_singular}
        GET    /{base}/{id}/{nested_singular}
        PUT    /{base}/{id}/{nested_singular}
        DELETE /{base}/{id}/{nested_singular}

    There is no Index for a one-to-one relation.
    """

    def __init__(
        self,
        get_base_model: ModelFactory,
        get_nested_model: ModelFactory,
        nested_model_name_singular: str,
        foreign_reference: str,
        lifecycle_hooks: LifecycleHooks | None = None,
        method_white_list: Iterable[Method] | None = None,
    ):
        super().__init__(lifecycle_hooks, method_white_list)
        self.get_base_model = get_base_model
        self.get_nested_model = get_nested_model
        self.nested_model_name_singular = nested_model_name_singular
        self.foreign_reference = foreign_reference

    def _route_table(self) -> list[Route]:
        base = self.get_base_model().get_configuration().table_name
        path = f"/{base}/{{id}}/{self.nested_model_name_singular}"
        return [
            (Method.CREATE, "POST", path),
            (Method.SHOW, "GET", path),
            (Method.UPDATE, "PUT", path),
            (Method.DELETE, "DELETE", path),
        ]

    def _load_base(self, id: int) -> Model:
        base = self.get_base_model()
        base.id = id
        self._load(base)
        return base

    def _linked_id(self, base: Model) -> int | None:
        return base[self.foreign_reference] or None

    def _resolve(self, base: Model) -> Model:
        """The nested model the base links to, with its id set (not loaded)."""
        linked_id = self._linked_id(base)
        if linked_id is None:
            raise RestError(404)
        nested = self.get_nested_model()
        nested.id = linked_id
        return nested

    async def create(self, response: RestResponse, request: Request) -> None:
        nested = self.get_nested_model()
        form = await read_form(request)
        id = id_value(request)
        self._validate([*insert_values(form, nested), id])

        base = self._load_base(id.result)
        if self._linked_id(base) is not None:
            raise RestError(409)

        await self._hook("before_create", response, request, nested)
        self._insert(nested)

        base[self.foreign_reference] = nested.id
        try:
            base.update([self.foreign_reference])
        except (BackendError, RecordNotFound):
            logger.exception(
                "Failed to link %s.%s to new row %s",
                base.get_configuration().table_name,
                self.foreign_reference,
                nested.id,
            )
            raise RestError(500) from None

        await self._hook("after_create", response, request, nested)
        response.set_result(200, nested)

    async def show(self, response: RestResponse, request: Request) -> None:
        id = id_value(request)
        self._validate([id])

        nested = self._resolve(self._load_base(id.result))
        await self._hook("before_show", response, request, nested)
        self._load(nested)
        await self._hook("after_show", response, request, nested)

        response.set_result(200, nested)

    async def update(self, response: RestResponse, request: Request) -> None:
        id = id_value(request)
        self._validate([id])

        nested = self._resolve(self._load_base(id.result))
        self._load(nested)
        self._check_unmodified_since(nested, request)

        form = await read_form(request)
        self._validate(update_values(form, nested))

        await self._hook("before_update", response, request, nested)
        self._update(nested)
        await self._hook("after_update", response, request, nested)

        response.set_result(200, nested)

    async def delete(self, response: RestResponse, request: Request) -> None:
        id = id_value(request)
        self._validate([id])

        base = self._load_base(id.result)
        nested = self._resolve(base)
        self._load(nested)

        configuration = base.get_configuration()
        if not configuration.get_field(self.foreign_reference).kind.nullable:
            raise RestError(
                500,
                f"{configuration.table_name}.{self.foreign_reference} is not nullable.  "
                "DELETE should not be allowed.",
            )

        base[self.foreign_reference] = None
        try:
            base.update([self.foreign_reference])
        except (BackendError, RecordNotFound):
            logger.exception(
                "Failed to unlink %s.%s", configuration.table_name, self.foreign_reference
            )
            raise RestError(500) from None

        await self._hook("before_delete", response, request, nested)
        self._delete(nested)
        await self._hook("after_delete", response, request)

        response.set_result(200, None)
