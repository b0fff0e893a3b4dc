import jwt
import pytest
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from movie_catalog import aggregation, config, errors
from movie_catalog.main import app


@pytest.mark.parametrize("exc, expected", [
    (errors.NotFoundError("Movie not found"), (404, "Movie not found")),
    (errors.ForbiddenError("Nope"), (403, "Nope")),
    (errors.AppError("Teapot", status_code=418), (418, "Teapot")),
    (jwt.ExpiredSignatureError("old"), (401, "Token expired")),
    (jwt.InvalidSignatureError("bad"), (401, "Invalid token")),
    (RuntimeError("boom"), (500, "Server error")),
])
def test_classify_error(exc, expected):
    assert errors.classify_error(exc) == expected


def test_classify_integrity_errors():
    unique = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.username"))
    foreign = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
    other = IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: movies.title"))
    assert errors.classify_error(unique) == (400, "Resource already exists")
    assert errors.classify_error(foreign) == (400, "Invalid reference")
    assert errors.classify_error(other) == (400, "Invalid data")


def test_classify_validation_error():
    exc = RequestValidationError([{"loc": ("body", "username"), "msg": "too short", "type": "value_error"}])
    assert errors.classify_error(exc) == (400, "username: too short")


def test_unknown_route_uses_error_shape(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


def test_unexpected_error_is_hidden(db, monkeypatch):
    def explode(_db):
        raise RuntimeError("database on fire")

    monkeypatch.setattr(aggregation, "get_database_stats", explode)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/stats/database")
    assert response.status_code == 500
    body = response.json()
    assert body == {"success": False, "message": "Server error"}


def test_debug_mode_includes_stack(client, monkeypatch):
    monkeypatch.setattr(config, "DEBUG", True)
    body = client.get("/api/movies/404").json()
    assert body["message"] == "Movie not found"
    assert "NotFoundError" in body["stack"]
