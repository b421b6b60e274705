"""REST controllers generated from model descriptions.

Usage:
    from fastapi import APIRouter
    from crudforge.rest import BaseController, OneToManyController

    router = APIRouter()
    BaseController(get_model=build_model(authors, adapter)).register(router)
    OneToManyController(
        get_base_model=build_model(authors, adapter),
        get_nested_model=build_model(books, adapter),
        foreign_reference="author_id",
    ).register(router)
"""

from crudforge.rest.base_controller import BaseController
from crudforge.rest.errors import RestError, map_backend_error, to_rest_error
from crudforge.rest.many_to_many import ManyToManyController
from crudforge.rest.methods import Method
from crudforge.rest.one_to_many import OneToManyController
from crudforge.rest.one_to_one import OneToOneController
from crudforge.rest.pipeline import Controller, Route
from crudforge.rest.response import RestResponse

__all__ = [
    "BaseController",
    "Controller",
    "ManyToManyController",
    "Method",
    "OneToManyController",
    "OneToOneController",
    "RestError",
    "RestResponse",
    "Route",
    "map_backend_error",
    "to_rest_error",
]
