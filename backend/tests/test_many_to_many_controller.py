"""Tests for ManyToManyController (books <-> tags through book_tags)."""

from unittest.mock import AsyncMock

import pytest

from conftest import seed
from crudforge.hooks import LifecycleHooks
from crudforge.rest import ManyToManyController, Method


def meta(response):
    return response.json()["meta"]


def result(response):
    return response.json()["result"]


def _controller(factories, **kwargs):
    return ManyToManyController(
        get_base_model=factories["books"],
        get_nested_model=factories["tags"],
        get_relation_model=factories["book_tags"],
        base_model_foreign_reference="book_id",
        nested_model_foreign_reference="tag_id",
        **kwargs,
    )


@pytest.fixture
def client(make_client, factories):
    return make_client(_controller(factories))


@pytest.fixture
def book(factories):
    author = seed(factories["authors"], name="Ada")
    return seed(factories["books"], author_id=author.id, title="Notes")


@pytest.fixture
def tags(factories):
    return {name: seed(factories["tags"], name=name) for name in ("math", "poetry", "engines")}


def _tag(client, book, tag):
    return client.post(f"/books/{book.id}/tags/{tag.id}")


class TestRoutes:
    def test_routes(self, factories):
        assert _controller(factories).routes() == [
            (Method.CREATE, "POST", "/books/{id}/tags/{nested_id}"),
            (Method.INDEX, "GET", "/books/{id}/tags"),
            (Method.SHOW, "GET", "/books/{id}/tags/{nested_id}"),
            (Method.UPDATE, "PUT", "/books/{id}/tags/{nested_id}"),
            (Method.DELETE, "DELETE", "/books/{id}/tags/{nested_id}"),
        ]

    def test_whitelist_drops_update(self, factories):
        controller = _controller(
            factories,
            method_white_list=[Method.CREATE, Method.INDEX, Method.SHOW, Method.DELETE],
        )
        assert Method.UPDATE not in [method for method, _, _ in controller.routes()]


class TestCreate:
    def test_create_returns_relation_row(self, client, book, tags):
        response = _tag(client, book, tags["math"])
        assert response.status_code == 200
        relation = result(response)
        assert relation["book_id"] == book.id
        assert relation["tag_id"] == tags["math"].id
        assert relation["id"] > 0

    def test_duplicate_is_conflict(self, client, book, tags):
        _tag(client, book, tags["math"])
        assert _tag(client, book, tags["math"]).status_code == 409

    def test_missing_nested(self, client, book):
        assert client.post(f"/books/{book.id}/tags/99").status_code == 404

    def test_missing_base(self, client, tags):
        assert client.post(f"/books/99/tags/{tags['math'].id}").status_code == 404

    def test_invalid_ids(self, client):
        response = client.post("/books/a/tags/b")
        assert response.status_code == 400
        assert meta(response)["error_details"] == (
            "Parameter 'id' must be a valid integer. "
            "Parameter 'nested_id' must be a valid integer."
        )


class TestIndex:
    def test_lists_related_rows(self, client, book, tags):
        _tag(client, book, tags["poetry"])
        _tag(client, book, tags["math"])
        response = client.get(f"/books/{book.id}/tags?sort=name")
        assert response.status_code == 200
        assert [t["name"] for t in result(response)] == ["math", "poetry"]

    def test_paging(self, client, book, tags):
        for tag in tags.values():
            _tag(client, book, tag)
        response = client.get(f"/books/{book.id}/tags?sort=-name&limit=2&offset=1")
        assert [t["name"] for t in result(response)] == ["math", "engines"]

    def test_no_relations_skips_nested_fetch(
        self, make_client, factories, adapter, book, monkeypatch
    ):
        fetched_tables = []
        bulk_fetch = adapter.bulk_fetch

        def spy(configuration, fetch_config):
            fetched_tables.append(configuration.table_name)
            return bulk_fetch(configuration, fetch_config)

        monkeypatch.setattr(adapter, "bulk_fetch", spy)
        before_index = AsyncMock(return_value=None)
        client = make_client(
            _controller(factories, lifecycle_hooks=LifecycleHooks(before_index=before_index))
        )
        response = client.get(f"/books/{book.id}/tags")
        assert response.status_code == 200
        assert result(response) == []
        assert fetched_tables == ["book_tags"]
        before_index.assert_not_awaited()

    def test_nested_fetch_follows_relations(
        self, client, adapter, book, tags, monkeypatch
    ):
        _tag(client, book, tags["math"])
        fetched_tables = []
        bulk_fetch = adapter.bulk_fetch

        def spy(configuration, fetch_config):
            fetched_tables.append(configuration.table_name)
            return bulk_fetch(configuration, fetch_config)

        monkeypatch.setattr(adapter, "bulk_fetch", spy)
        client.get(f"/books/{book.id}/tags")
        assert fetched_tables == ["book_tags", "tags"]

    def test_missing_base(self, client):
        assert client.get("/books/99/tags").status_code == 404


class TestShow:
    def test_show(self, client, book, tags):
        _tag(client, book, tags["engines"])
        response = client.get(f"/books/{book.id}/tags/{tags['engines'].id}")
        assert response.status_code == 200
        assert result(response)["name"] == "engines"

    def test_unrelated_is_not_found(self, client, book, tags):
        assert client.get(f"/books/{book.id}/tags/{tags['math'].id}").status_code == 404


class TestUpdate:
    def test_always_method_not_allowed(self, client, book, tags):
        _tag(client, book, tags["math"])
        response = client.put(f"/books/{book.id}/tags/{tags['math'].id}", data={"name": "x"})
        assert response.status_code == 405
        assert meta(response)["status_text"] == "Method Not Allowed"


class TestDelete:
    def test_delete_removes_relation_only(self, client, book, tags, factories):
        _tag(client, book, tags["math"])
        response = client.delete(f"/books/{book.id}/tags/{tags['math'].id}")
        assert response.status_code == 200
        assert result(response) is None
        assert client.get(f"/books/{book.id}/tags/{tags['math'].id}").status_code == 404

        tag = factories["tags"]()
        tag.id = tags["math"].id
        tag.load()
        assert tag["name"] == "math"

    def test_unrelated_is_not_found(self, client, book, tags):
        assert client.delete(f"/books/{book.id}/tags/{tags['math'].id}").status_code == 404

    def test_before_delete_receives_relation(self, make_client, factories, book, tags):
        before_delete = AsyncMock(return_value=None)
        client = make_client(
            _controller(factories, lifecycle_hooks=LifecycleHooks(before_delete=before_delete))
        )
        _tag(client, book, tags["math"])
        client.delete(f"/books/{book.id}/tags/{tags['math'].id}")
        relation = before_delete.await_args.args[2]
        assert relation.get_configuration().table_name == "book_tags"
        assert relation["tag_id"] == tags["math"].id
