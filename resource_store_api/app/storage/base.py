"""
Storage contract shared by every backend.

A ``ResourceStore`` is constructed once at startup and shared by all
concurrent requests.  Implementations must give identical semantics for
each operation regardless of where the data lives:

* ``create`` assigns the id and returns the full stored record.
* ``get`` and ``update`` raise ``NotFound`` for unknown ids.
* ``list`` returns records in insertion order, sliced by offset/limit.
* ``delete`` returns whether a record was removed and never raises for
  unknown ids.

Backend failures are raised as ``PersistenceError``.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..schemas.resource import ResourceCreate, ResourceId, ResourcePatch, ResourceRead

#: Largest value a SQLite INTEGER column (signed 64-bit) can hold.
MAX_INTEGER_ID = 2**63 - 1


class ResourceStore(ABC):
    """Abstract CRUD store for resources."""

    #: Short backend name used in logs.
    backend: str = "abstract"

    async def open(self) -> None:
        """Prepare the store for use.  Errors raised here abort startup."""

    async def close(self) -> None:
        """Release any resources held by the store."""

    @abstractmethod
    async def create(self, data: ResourceCreate) -> ResourceRead:
        """Persist a new resource and return it with its assigned id."""

    @abstractmethod
    async def get(self, resource_id: ResourceId) -> ResourceRead:
        """Return the resource with ``resource_id`` or raise ``NotFound``."""

    @abstractmethod
    async def list(self, offset: int = 0, limit: Optional[int] = None) -> List[ResourceRead]:
        """Return up to ``limit`` resources after skipping ``offset``."""

    @abstractmethod
    async def update(self, resource_id: ResourceId, patch: ResourcePatch) -> ResourceRead:
        """Overlay ``patch`` on the stored resource and return the result."""

    @abstractmethod
    async def delete(self, resource_id: ResourceId) -> bool:
        """Remove the resource; return ``False`` if it did not exist."""


def parse_int_id(resource_id: ResourceId) -> Optional[int]:
    """Coerce a path identifier to ``int`` for integer-keyed stores.

    Only plain ASCII digit strings are accepted, so each record is
    reachable under exactly one path id.  Returns ``None`` when the value
    cannot name a record in such a store (including values beyond a
    64-bit INTEGER column), which callers translate into ``NotFound`` (or
    ``False`` on delete).
    """
    if isinstance(resource_id, bool):
        return None
    if isinstance(resource_id, int):
        key = resource_id
    elif isinstance(resource_id, str) and resource_id.isascii() and resource_id.isdigit():
        key = int(resource_id)
    else:
        return None
    if not 0 <= key <= MAX_INTEGER_ID:
        return None
    return key


def clamp_window(offset: int, limit: Optional[int]) -> Tuple[int, int]:
    """Bound ``offset``/``limit`` to what SQLite can bind.

    ``limit=None`` becomes ``-1``, SQLite's "no limit".  Values past the
    INTEGER range are clamped; no table can hold that many rows, so the
    result is the same empty page.
    """
    offset = min(offset, MAX_INTEGER_ID)
    if limit is None:
        return offset, -1
    return offset, min(limit, MAX_INTEGER_ID)
