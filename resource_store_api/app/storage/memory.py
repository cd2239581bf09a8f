"""
In-memory resource store.

Records live in a plain ``dict`` keyed by id, which preserves insertion
order for ``list``.  The whole table is guarded by a single
readers/writer lock: reads run alongside other reads while any write
holds the table exclusively.  Ids come from a counter owned by the
store instance, starting at 1.
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from itertools import islice
from typing import AsyncIterator, Dict, List, Optional

from ..core.errors import NotFound
from ..schemas.resource import ResourceCreate, ResourceId, ResourcePatch, ResourceRead
from .base import ResourceStore, parse_int_id

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Asyncio readers/writer lock.

    Any number of readers may hold the lock together.  A writer waits
    until all readers have left and then holds it alone.  Waiting writers
    block new readers so that a steady stream of reads cannot starve a
    write.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and not self._writers_waiting)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and not self._readers)
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class InMemoryResourceStore(ResourceStore):
    """Process-local store; contents vanish when the process exits."""

    backend = "memory"

    def __init__(self) -> None:
        self._table: Dict[int, ResourceRead] = {}
        self._next_id = 1
        self._lock = ReadWriteLock()

    async def create(self, data: ResourceCreate) -> ResourceRead:
        async with self._lock.write():
            resource = ResourceRead(id=self._next_id, **data.model_dump())
            self._table[self._next_id] = resource
            self._next_id += 1
        return resource

    async def get(self, resource_id: ResourceId) -> ResourceRead:
        key = parse_int_id(resource_id)
        async with self._lock.read():
            resource = self._table.get(key) if key is not None else None
        if resource is None:
            raise NotFound(resource_id)
        return resource

    async def list(self, offset: int = 0, limit: Optional[int] = None) -> List[ResourceRead]:
        # islice rejects indices above sys.maxsize.
        start = min(offset, sys.maxsize)
        stop = None if limit is None else min(offset + limit, sys.maxsize)
        async with self._lock.read():
            return list(islice(self._table.values(), start, stop))

    async def update(self, resource_id: ResourceId, patch: ResourcePatch) -> ResourceRead:
        key = parse_int_id(resource_id)
        async with self._lock.write():
            current = self._table.get(key) if key is not None else None
            if current is None:
                raise NotFound(resource_id)
            updated = patch.apply(current)
            self._table[key] = updated
        return updated

    async def delete(self, resource_id: ResourceId) -> bool:
        key = parse_int_id(resource_id)
        if key is None:
            return False
        async with self._lock.write():
            return self._table.pop(key, None) is not None

    async def close(self) -> None:
        logger.debug("Discarding %d in-memory resources", len(self._table))
