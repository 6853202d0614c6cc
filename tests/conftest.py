"""Shared test fixtures for pytest.

ENVIRONMENT is forced to `test` before anything imports settings so no env
file is read and no model credentials are required. Generation is driven by
pydantic-ai's `FunctionModel`, so nothing here talks to a real provider.
"""

import os
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from pydantic_ai import models
from pydantic_ai.messages import ModelMessage
from pydantic_ai.models.function import AgentInfo, FunctionModel
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool


os.environ["ENVIRONMENT"] = "test"

from dependencies.relay import get_relay
from main import app
from services.notes.cache import NotesCache
from services.notes.relay import NotesRelay


# Block any real model requests in tests
models.ALLOW_MODEL_REQUESTS = False


def _make_relay(*chunks: str, fail_after: int | None = None) -> NotesRelay:
    """Build a relay whose model streams `chunks` in order.

    With `fail_after=n` the model raises after yielding `n` chunks, which
    simulates the backend dropping mid-generation (or before it starts when
    `n` is 0).
    """

    async def stream_function(
        messages: list[ModelMessage], info: AgentInfo
    ) -> AsyncIterator[str]:
        for index, chunk in enumerate(chunks):
            if fail_after is not None and index >= fail_after:
                break
            yield chunk
        if fail_after is not None:
            raise RuntimeError("model backend unavailable")

    return NotesRelay(FunctionModel(stream_function=stream_function))


@pytest.fixture
def make_relay() -> Callable[..., NotesRelay]:
    """Factory for relays backed by a scripted `FunctionModel`."""
    return _make_relay


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def use_relay() -> Generator[Callable[[NotesRelay], None], None, None]:
    """Route `get_relay` to a test relay for the duration of one test."""

    def _install(relay: NotesRelay) -> None:
        app.dependency_overrides[get_relay] = lambda: relay

    yield _install
    app.dependency_overrides.pop(get_relay, None)


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Async client bound to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def notes_cache() -> AsyncGenerator[NotesCache, None]:
    """In-memory notes cache; StaticPool keeps one connection so data persists."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    cache = NotesCache(engine)
    await cache.init()
    yield cache
    await cache.close()
