"""
Service layer for resources.

``ResourceService`` wraps the store configured at startup.  It logs
every mutation and makes sure that any unexpected store failure leaves
the service as a ``PersistenceError`` carrying the operation and
identifier, so the boundary layer only has to deal with the error
taxonomy in ``core.errors``.  No call is ever retried.
"""

import logging
from typing import List, Optional

from ..core.errors import PersistenceError, ResourceStoreError
from ..schemas.resource import ResourceCreate, ResourceId, ResourcePatch, ResourceRead
from ..storage.base import ResourceStore

logger = logging.getLogger(__name__)


class ResourceService:
    """CRUD operations over a single shared ``ResourceStore``."""

    def __init__(self, store: ResourceStore) -> None:
        self.store = store

    @property
    def backend(self) -> str:
        return self.store.backend

    async def create_resource(self, data: ResourceCreate) -> ResourceRead:
        """Insert a new resource and return the stored record."""
        try:
            resource = await self.store.create(data)
        except ResourceStoreError:
            raise
        except Exception as exc:
            raise PersistenceError("create", cause=exc) from exc
        logger.info("Created resource %s (%s store)", resource.id, self.backend)
        return resource

    async def get_resource(self, resource_id: ResourceId) -> ResourceRead:
        """Retrieve a single resource; raises ``NotFound`` if absent."""
        try:
            return await self.store.get(resource_id)
        except ResourceStoreError:
            raise
        except Exception as exc:
            raise PersistenceError("read", resource_id, exc) from exc

    async def list_resources(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[ResourceRead]:
        """Return resources in insertion order.

        ``offset`` entries are skipped and at most ``limit`` returned;
        ``limit=None`` means no upper bound.  Slicing past the end yields
        an empty list.
        """
        try:
            return await self.store.list(offset=offset, limit=limit)
        except ResourceStoreError:
            raise
        except Exception as exc:
            raise PersistenceError("list", cause=exc) from exc

    async def update_resource(self, resource_id: ResourceId, patch: ResourcePatch) -> ResourceRead:
        """Apply a partial update.

        Only fields provided in ``patch`` are changed.  Concurrent updates
        to the same id are not ordered; the last write wins.
        """
        try:
            resource = await self.store.update(resource_id, patch)
        except ResourceStoreError:
            raise
        except Exception as exc:
            raise PersistenceError("update", resource_id, exc) from exc
        logger.info("Updated resource %s fields %s", resource_id, sorted(patch.changes()))
        return resource

    async def delete_resource(self, resource_id: ResourceId) -> bool:
        """Delete a resource.

        Returns ``True`` if a record was deleted, ``False`` otherwise.
        """
        try:
            deleted = await self.store.delete(resource_id)
        except ResourceStoreError:
            raise
        except Exception as exc:
            raise PersistenceError("delete", resource_id, exc) from exc
        if deleted:
            logger.info("Deleted resource %s", resource_id)
        return deleted
