"""
Interchangeable resource stores.

``build_store`` picks the implementation named by
``Settings.store_backend``.  Callers only ever see the ``ResourceStore``
interface.
"""

from ..core.config import Settings
from ..core.errors import ConfigurationError
from .base import ResourceStore
from .document import DocumentResourceStore
from .memory import InMemoryResourceStore
from .relational import RelationalResourceStore

__all__ = [
    "ResourceStore",
    "InMemoryResourceStore",
    "RelationalResourceStore",
    "DocumentResourceStore",
    "build_store",
]


def build_store(settings: Settings) -> ResourceStore:
    """Construct the store configured in ``settings``.

    ``settings`` is validated first so that a missing ``DATABASE_URL``
    surfaces as ``ConfigurationError`` rather than as a failed query.
    """
    settings.validate()
    if settings.store_backend == "memory":
        return InMemoryResourceStore()
    if settings.store_backend == "relational":
        return RelationalResourceStore(settings.database_url)
    if settings.store_backend == "document":
        return DocumentResourceStore(settings.database_url)
    raise ConfigurationError(f"Unknown store backend {settings.store_backend!r}")
