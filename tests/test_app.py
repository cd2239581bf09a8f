"""
test_app.py - Startup, configuration, deadline and error mapping.
"""

import asyncio
import logging

import pytest
from fastapi.testclient import TestClient

from resource_store_api.app.core.config import env_number
from resource_store_api.app.core.errors import ConfigurationError, NotFound, PersistenceError
from resource_store_api.app.core.logging_config import setup_logging
from resource_store_api.app.main import create_app
from resource_store_api.app.schemas.resource import ResourceCreate
from resource_store_api.app.services.resource_service import ResourceService
from resource_store_api.app.storage import (
    DocumentResourceStore,
    InMemoryResourceStore,
    RelationalResourceStore,
    build_store,
)

from .conftest import make_settings


class SlowStore(InMemoryResourceStore):
    async def get(self, resource_id):
        await asyncio.sleep(1)
        return await super().get(resource_id)


class BrokenStore(InMemoryResourceStore):
    async def create(self, data):
        raise RuntimeError("disk on fire")


class UnopenableStore(InMemoryResourceStore):
    async def open(self):
        raise OSError("database unreachable")


# ── Configuration ────────────────────────────────────────────────────


class TestSettings:
    def test_memory_needs_no_database_url(self):
        make_settings("memory").validate()

    @pytest.mark.parametrize("backend", ["relational", "document"])
    def test_missing_database_url_is_rejected(self, backend):
        with pytest.raises(ConfigurationError, match="DATABASE_URL"):
            make_settings(backend, "").validate()

    def test_unknown_backend_is_rejected(self):
        with pytest.raises(ConfigurationError, match="STORE_BACKEND"):
            make_settings("redis", "x.db").validate()

    def test_non_positive_timeout_is_rejected(self):
        with pytest.raises(ConfigurationError):
            make_settings("memory", request_timeout_seconds=0).validate()

    @pytest.mark.parametrize("raw", ["soon", "", "nan", "inf"])
    def test_unusable_timeout_env_is_a_configuration_error(self, monkeypatch, raw):
        monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", raw)
        timeout = env_number("REQUEST_TIMEOUT_SECONDS", "10", float)
        with pytest.raises(ConfigurationError, match="REQUEST_TIMEOUT_SECONDS"):
            make_settings("memory", request_timeout_seconds=timeout).validate()

    @pytest.mark.parametrize("raw", ["http", "80.5", "70000"])
    def test_unusable_port_env_is_a_configuration_error(self, monkeypatch, raw):
        monkeypatch.setenv("PORT", raw)
        port = env_number("PORT", "8000", int)
        with pytest.raises(ConfigurationError, match="PORT"):
            make_settings("memory", port=port).validate()

    def test_numeric_env_defaults_and_whitespace(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", " 2.5 ")
        assert env_number("PORT", "8000", int) == 8000
        assert env_number("REQUEST_TIMEOUT_SECONDS", "10", float) == 2.5

    def test_bad_timeout_aborts_startup_before_serving(self):
        app = create_app(make_settings("memory", request_timeout_seconds=None))
        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass


class TestBuildStore:
    def test_builds_each_backend(self, database_url):
        assert isinstance(build_store(make_settings("memory")), InMemoryResourceStore)
        assert isinstance(build_store(make_settings("relational", database_url)), RelationalResourceStore)
        assert isinstance(build_store(make_settings("document", database_url)), DocumentResourceStore)

    def test_invalid_settings_raise(self):
        with pytest.raises(ConfigurationError):
            build_store(make_settings("relational", ""))


# ── Startup ──────────────────────────────────────────────────────────


class TestStartup:
    def test_missing_database_url_aborts_startup(self):
        app = create_app(make_settings("relational", ""))
        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass

    def test_unopenable_store_aborts_startup(self):
        app = create_app(make_settings("memory"), store=UnopenableStore())
        with pytest.raises(OSError):
            with TestClient(app):
                pass

    def test_injected_store_is_served(self):
        store = InMemoryResourceStore()
        app = create_app(make_settings("memory"), store=store)
        with TestClient(app) as client:
            client.post("/resource", json={"name": "shared"})
            assert app.state.resource_service.store is store
            assert app.state.resource_service.backend == "memory"
            assert [r["name"] for r in client.get("/resource").json()] == ["shared"]


# ── Error mapping ────────────────────────────────────────────────────


class TestBoundary:
    def test_slow_request_times_out_with_504(self):
        app = create_app(make_settings("memory", request_timeout_seconds=0.05), store=SlowStore())
        with TestClient(app) as client:
            resp = client.get("/resource/1")
        assert resp.status_code == 504
        assert resp.json() == {"detail": "Request exceeded 0.05s deadline"}

    def test_fast_requests_are_unaffected_by_deadline(self):
        app = create_app(make_settings("memory", request_timeout_seconds=5))
        with TestClient(app) as client:
            assert client.post("/resource", json={"name": "x"}).status_code == 201

    def test_unexpected_store_error_is_500(self):
        app = create_app(make_settings("memory"), store=BrokenStore())
        with TestClient(app) as client:
            resp = client.post("/resource", json={"name": "x"})
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Resource store unavailable"}


class TestResourceService:
    @pytest.mark.asyncio
    async def test_unexpected_errors_are_wrapped_with_context(self):
        service = ResourceService(BrokenStore())
        with pytest.raises(PersistenceError) as excinfo:
            await service.create_resource(ResourceCreate(name="x"))
        assert excinfo.value.operation == "create"
        assert isinstance(excinfo.value.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_not_found_passes_through(self):
        service = ResourceService(InMemoryResourceStore())
        with pytest.raises(NotFound):
            await service.get_resource(1)

    @pytest.mark.asyncio
    async def test_mutations_are_logged(self, caplog):
        service = ResourceService(InMemoryResourceStore())
        with caplog.at_level(logging.INFO, logger="resource_store_api.app.services.resource_service"):
            created = await service.create_resource(ResourceCreate(name="x"))
            await service.delete_resource(created.id)
        messages = [r.getMessage() for r in caplog.records]
        assert "Created resource 1 (memory store)" in messages
        assert "Deleted resource 1" in messages


class TestLogging:
    def test_setup_logging_does_not_stack_handlers(self, tmp_path):
        root = logging.getLogger()
        before = list(root.handlers)
        level = root.level
        setup_logging("warning", str(tmp_path / "app.log"))
        setup_logging("warning")
        added = [h for h in root.handlers if h not in before]
        try:
            assert len(added) <= 2
            assert root.level == logging.WARNING
        finally:
            root.setLevel(level)
            for handler in added:
                root.removeHandler(handler)
                handler.close()

    def test_each_log_file_is_attached_once(self, tmp_path):
        root = logging.getLogger()
        before = list(root.handlers)
        level = root.level
        first, second = tmp_path / "first.log", tmp_path / "second.log"
        setup_logging("info", str(first))
        setup_logging("info", str(first))
        setup_logging("info", str(second))
        added = [h for h in root.handlers if h not in before]
        try:
            files = [h.baseFilename for h in added if isinstance(h, logging.FileHandler)]
            assert sorted(files) == sorted([str(first.resolve()), str(second.resolve())])
            logging.getLogger("resource_store_api.app.main").info("Serving resources from the memory store")
            assert "Serving resources from the memory store" in second.read_text(encoding="utf-8")
        finally:
            root.setLevel(level)
            for handler in added:
                root.removeHandler(handler)
                handler.close()
