"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for every field except
the database location, which must be supplied externally for the
``relational`` and ``document`` backends.  A missing or unusable
configuration is detected by ``Settings.validate`` during application
startup and aborts the process; it is never reported per request.
Values come from the process environment only; no ``.env`` file is
read.
"""

import math
import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from .errors import ConfigurationError

#: Backends understood by :func:`resource_store_api.app.storage.build_store`.
STORE_BACKENDS = ("memory", "relational", "document")

T = TypeVar("T", int, float)


def env_number(name: str, default: str, convert: Callable[[str], T]) -> Optional[T]:
    """Read a numeric environment variable.

    Returns ``None`` when the value cannot be converted so that the
    problem surfaces from ``Settings.validate`` instead of at import.
    """
    try:
        return convert(os.getenv(name, default).strip())
    except ValueError:
        return None


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Resource Store API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Which store implementation backs the service.  One of
    # ``memory``, ``relational`` or ``document``.
    store_backend: str = os.getenv("STORE_BACKEND", "relational").lower()

    # Path or connection string for the SQLite database used by the
    # relational and document stores.  Either a plain filesystem path or
    # a ``sqlite:///path`` URL.  Ignored by the in-memory store.
    database_url: str = os.getenv("DATABASE_URL", "")

    # Requests that take longer than this are abandoned with a 504.
    request_timeout_seconds: Optional[float] = env_number("REQUEST_TIMEOUT_SECONDS", "10", float)

    host: str = os.getenv("HOST", "0.0.0.0")
    port: Optional[int] = env_number("PORT", "8000", int)

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if the service cannot start."""
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}; got {self.store_backend!r}"
            )
        if self.store_backend != "memory" and not self.database_url:
            raise ConfigurationError(
                f"DATABASE_URL is required for the {self.store_backend!r} store backend"
            )
        timeout = self.request_timeout_seconds
        if timeout is None or not math.isfinite(timeout) or timeout <= 0:
            raise ConfigurationError("REQUEST_TIMEOUT_SECONDS must be a positive number of seconds")
        if self.port is None or not 0 <= self.port <= 65535:
            raise ConfigurationError("PORT must be an integer between 0 and 65535")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Because the dataclass
# computes values at import time, environment variables should be set
# before importing this module.
settings = Settings()
