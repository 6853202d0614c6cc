"""Tests for mapping domain and unexpected errors to HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from core.error_handler import (
    global_exception_handler,
    release_notes_exception_handler,
)
from core.middleware import CorrelationIdMiddleware
from services.notes.exceptions import (
    CacheStorageError,
    GenerationValidationError,
    ReleaseNotesError,
    UpstreamError,
)


class Item(BaseModel):
    name: str = Field(min_length=3)


def build_test_app() -> TestClient:
    app = FastAPI()
    app.add_middleware(CorrelationIdMiddleware)
    app.add_exception_handler(ReleaseNotesError, release_notes_exception_handler)
    app.add_exception_handler(HTTPException, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.post("/items")
    async def create_item(item: Item):  # pragma: no cover - executed via client
        return {"ok": True}

    @app.get("/validation")
    async def validation():
        raise GenerationValidationError()

    @app.get("/upstream")
    async def upstream():
        raise UpstreamError(details="rate limited")

    @app.get("/storage")
    async def storage():
        raise CacheStorageError()

    @app.get("/missing")
    async def missing():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="nope")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("Exploded")

    return TestClient(app, raise_server_exceptions=False)


def test_validation_error_maps_to_400():
    response = build_test_app().get("/validation")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing diff content"}


def test_upstream_error_maps_to_500_with_details():
    response = build_test_app().get("/upstream")

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate notes",
        "details": "rate limited",
    }


def test_other_domain_errors_map_to_500():
    response = build_test_app().get("/storage")

    assert response.status_code == 500
    assert response.json() == {"error": "Malformed cached notes payload"}


def test_http_exception_uses_envelope():
    response = build_test_app().get("/missing")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["type"] == "http_error"
    assert body["error"]["correlation_id"] == response.headers["X-Correlation-ID"]


def test_request_validation_maps_to_422():
    response = build_test_app().post("/items", json={"name": "x"})

    assert response.status_code == 422
    body = response.json()
    assert body["error"]["type"] == "validation_error"
    assert body["error"]["validation_errors"]


def test_unhandled_exception_maps_to_500():
    response = build_test_app().get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "An internal error occurred"
    assert body["error"]["type"] == "internal_server_error"
    assert body["error"]["exception_type"] == "RuntimeError"
