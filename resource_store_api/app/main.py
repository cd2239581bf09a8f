"""
Main entrypoint for the Resource Store API.

This module assembles the FastAPI application: it sets up logging,
builds the configured store once in the lifespan handler, enforces the
per-request deadline and maps the error taxonomy from ``core.errors``
onto HTTP status codes.  ``create_app`` builds and configures the app,
which is then instantiated at module import time as ``app`` so it can
be served with::

    uvicorn resource_store_api.app.main:app
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.errors import (
    ConfigurationError,
    NotFound,
    PersistenceError,
    RequestTimeout,
    ResourceStoreError,
    ValidationError,
)
from .core.logging_config import setup_logging
from .services.resource_service import ResourceService
from .storage import ResourceStore, build_store

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    store: Optional[ResourceStore] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use; defaults to the ones read from the environment.
    store : Optional[ResourceStore]
        A ready-made store to serve instead of the one named by
        ``app_settings.store_backend``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.  The store is not
        opened until the application starts.
    """
    app_settings = app_settings or default_settings
    setup_logging(app_settings.log_level, app_settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Any failure here (bad configuration, unreachable database)
        # propagates and stops the server.
        try:
            app_settings.validate()
            resource_store = store if store is not None else build_store(app_settings)
            await resource_store.open()
        except ConfigurationError as exc:
            logger.critical("Invalid configuration: %s", exc)
            raise
        except Exception:
            logger.critical("Unable to open the %s store", app_settings.store_backend, exc_info=True)
            raise
        app.state.resource_service = ResourceService(resource_store)
        logger.info("Serving resources from the %s store", resource_store.backend)
        try:
            yield
        finally:
            await resource_store.close()

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # The same routes are served at the root (``/resource``) and under
    # the versioned prefix (``/api/v1/resource``).
    app.include_router(v1_router)
    app.include_router(v1_router, prefix="/api/v1")

    # Runs outside FastAPI's exception handlers, so the 504 is built here.
    @app.middleware("http")
    async def enforce_deadline(request: Request, call_next):
        timeout = app_settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(call_next(request), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("%s %s abandoned after %ss", request.method, request.url.path, timeout)
            return _error_response(status.HTTP_504_GATEWAY_TIMEOUT, str(RequestTimeout(timeout)))

    register_exception_handlers(app)
    return app


def _error_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses."""

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        logger.debug("%s %s: %s", request.method, request.url.path, exc)
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning("%s %s: %s", request.method, request.url.path, exc)
        return _error_response(422, str(exc))

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error(
            "%s %s: store %s failed for %s",
            request.method,
            request.url.path,
            exc.operation,
            exc.resource_id,
            exc_info=exc,
        )
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Resource store unavailable")

    @app.exception_handler(ResourceStoreError)
    async def store_error_handler(request: Request, exc: ResourceStoreError) -> JSONResponse:
        logger.error("%s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
