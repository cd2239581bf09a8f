"""Entry point for the Resource Store API.

Launches the FastAPI application under Uvicorn.  Host, port and the
store backend are read from the environment (``HOST``, ``PORT``,
``STORE_BACKEND``, ``DATABASE_URL``); see
``resource_store_api.app.core.config`` for the full list.

Usage:
    DATABASE_URL=resources.db python run.py
"""
import asyncio
import logging
import sys

from uvicorn import Config, Server

from resource_store_api.app.core.config import settings
from resource_store_api.app.core.errors import ConfigurationError
from resource_store_api.app.main import app


async def main() -> None:
    """Validate configuration, then serve the API until interrupted."""
    try:
        settings.validate()
    except ConfigurationError as exc:
        logging.critical("Refusing to start: %s", exc)
        sys.exit(1)
    config = Config(app=app, host=settings.host, port=settings.port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()
    if not server.started:
        # Lifespan startup failed (e.g. the database could not be opened).
        sys.exit(3)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
