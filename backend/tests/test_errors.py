"""Tests for backend error mapping and the response envelope."""

from datetime import datetime, timezone

from conftest import TAGS
from crudforge.models import Model
from crudforge.persistence.errors import BackendError
from crudforge.rest import RestResponse, map_backend_error, to_rest_error


class TestToRestError:
    def test_not_null(self):
        error = to_rest_error(BackendError("m", code="23502", detail="null value in title"))
        assert (error.status_code, error.detail) == (400, "null value in title")

    def test_foreign_key(self):
        error = to_rest_error(BackendError("m", code="23503", detail="Key (author_id)=(9)"))
        assert (error.status_code, error.detail) == (400, "Key (author_id)=(9)")

    def test_invalid_text_uses_message(self):
        error = to_rest_error(
            BackendError('invalid input syntax for type integer: "x"', code="22P02", detail="d")
        )
        assert (error.status_code, error.detail) == (
            400,
            'invalid input syntax for type integer: "x"',
        )

    def test_unique_is_conflict(self):
        error = to_rest_error(BackendError("m", code="23505", detail="Key (name)=(x) exists."))
        assert (error.status_code, error.detail) == (409, "Key (name)=(x) exists.")

    def test_check_names_constraint(self):
        error = to_rest_error(
            BackendError("m", code="23514", detail="d", constraint="books_pages_check")
        )
        assert (error.status_code, error.detail) == (
            400,
            "Failed to satisfy constraint 'books_pages_check'",
        )

    def test_unknown_code_hides_detail(self):
        error = to_rest_error(BackendError("disk I/O error", code="58030", detail="secret"))
        assert (error.status_code, error.detail) == (500, None)

    def test_other_exceptions(self):
        assert to_rest_error(RuntimeError("x")).status_code == 500

    def test_map_backend_error_writes_response(self):
        response = RestResponse()
        map_backend_error(response, BackendError("m", code="23505", detail="dup"))
        assert response.status_code == 409
        assert response.error_details == "dup"
        assert response.result is None


class TestRestResponse:
    def test_initial_state_is_500(self):
        body = RestResponse().envelope().model_dump()
        assert body == {
            "meta": {
                "status_code": 500,
                "status_text": "Internal Server Error",
                "error_details": None,
            },
            "result": None,
        }

    def test_render_model(self):
        model = Model(TAGS, adapter=None)
        model.id = 3
        model["name"] = "poetry"
        model["created_at"] = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        response = RestResponse()
        response.set_result(200, [model])
        rendered = response.render()
        assert rendered.status_code == 200
        assert b'"status_text":"OK"' in rendered.body
        assert b'"name":"poetry"' in rendered.body
        assert b'"created_at":"2024-01-02T03:04:05' in rendered.body
