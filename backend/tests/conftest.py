"""Shared fixtures: a small library schema on an in-memory SQLite database."""

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from crudforge.core.types import get_value_kind
from crudforge.hooks import HookRegistry
from crudforge.models import Field, ModelConfiguration, build_model
from crudforge.persistence.sqlite import SQLiteAdapter


def _id() -> Field:
    return Field(
        "id", get_value_kind("int"), insertable=False, updatable=False, primary_key=True
    )


def _timestamps() -> list[Field]:
    return [
        Field("created_at", get_value_kind("time"), insertable=False, updatable=False),
        Field("modified_at", get_value_kind("time"), insertable=False, updatable=False),
    ]


PROFILES = ModelConfiguration(
    table_name="profiles",
    fields=[
        _id(),
        Field("website", get_value_kind("string", nullable=True)),
        Field("twitter", get_value_kind("string", nullable=True)),
        *_timestamps(),
    ],
)

AUTHORS = ModelConfiguration(
    table_name="authors",
    fields=[
        _id(),
        Field("name", get_value_kind("string")),
        Field("email", get_value_kind("string", nullable=True), unique=True),
        Field("bio", get_value_kind("string", nullable=True)),
        Field(
            "profile_id",
            get_value_kind("int", nullable=True),
            skip_validation=True,
            references="profiles",
        ),
        *_timestamps(),
    ],
)

BOOKS = ModelConfiguration(
    table_name="books",
    fields=[
        _id(),
        Field("author_id", get_value_kind("int"), references="authors"),
        Field("title", get_value_kind("string")),
        Field(
            "pages",
            get_value_kind("int", nullable=True),
            check="pages IS NULL OR pages > 0",
        ),
        Field("published", get_value_kind("bool", nullable=True)),
        *_timestamps(),
    ],
)

TAGS = ModelConfiguration(
    table_name="tags",
    fields=[
        _id(),
        Field("name", get_value_kind("string"), unique=True),
        *_timestamps(),
    ],
)

BOOK_TAGS = ModelConfiguration(
    table_name="book_tags",
    fields=[
        _id(),
        Field("book_id", get_value_kind("int"), references="books"),
        Field("tag_id", get_value_kind("int"), references="tags"),
        *_timestamps(),
    ],
    unique_together=[("book_id", "tag_id")],
)

ALL_MODELS = (PROFILES, AUTHORS, BOOKS, TAGS, BOOK_TAGS)


@pytest.fixture(autouse=True)
def clear_hook_registry():
    """Clear hook registry before and after each test."""
    HookRegistry.clear()
    yield
    HookRegistry.clear()


@pytest.fixture
def adapter():
    """Connected in-memory SQLite adapter with every test table created."""
    db = SQLiteAdapter(":memory:")
    db.connect()
    for configuration in ALL_MODELS:
        db.initialize_table(configuration)
    yield db
    db.close()


@pytest.fixture
def factories(adapter):
    """Model factories keyed by table name."""
    return {c.table_name: build_model(c, adapter) for c in ALL_MODELS}


@pytest.fixture
def make_client():
    """Build a TestClient serving the given controllers."""

    def make(*controllers) -> TestClient:
        app = FastAPI()
        router = APIRouter()
        for controller in controllers:
            controller.register(router)
        app.include_router(router)
        return TestClient(app)

    return make


def seed(factory, **values):
    """Insert a row through a model factory and return the model."""
    model = factory()
    for name, value in values.items():
        model[name] = value
    model.insert()
    return model
