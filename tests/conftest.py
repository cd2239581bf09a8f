"""
conftest.py - Shared fixtures for the Resource Store API tests.

Every SQLite-backed fixture gets its own database file under pytest's
``tmp_path`` so tests never share state.  ``any_store`` and
``any_client`` are parametrized over all three backends so the CRUD
contract is checked once per implementation.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from resource_store_api.app.core.config import Settings
from resource_store_api.app.main import create_app
from resource_store_api.app.storage import (
    DocumentResourceStore,
    InMemoryResourceStore,
    RelationalResourceStore,
)

BACKENDS = ["memory", "relational", "document"]


@pytest.fixture()
def database_url(tmp_path) -> str:
    return str(tmp_path / "resources.db")


def make_settings(backend: str, database_url: str = "", **overrides) -> Settings:
    """Build settings for ``backend`` without touching the environment."""
    return Settings(
        store_backend=backend,
        database_url=database_url if backend != "memory" else "",
        log_level="DEBUG",
        log_file="",
        **overrides,
    )


def make_store(backend: str, database_url: str):
    if backend == "memory":
        return InMemoryResourceStore()
    if backend == "relational":
        return RelationalResourceStore(database_url)
    return DocumentResourceStore(database_url)


@pytest_asyncio.fixture(params=BACKENDS)
async def any_store(request, database_url):
    """An opened store of each backend."""
    store = make_store(request.param, database_url)
    await store.open()
    yield store
    await store.close()


@pytest_asyncio.fixture()
async def relational_store(database_url):
    store = RelationalResourceStore(database_url)
    await store.open()
    yield store
    await store.close()


@pytest.fixture(params=BACKENDS)
def any_client(request, database_url):
    """TestClient for an app served by each backend."""
    app = create_app(make_settings(request.param, database_url))
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def relational_client(database_url):
    app = create_app(make_settings("relational", database_url))
    with TestClient(app) as client:
        yield client
