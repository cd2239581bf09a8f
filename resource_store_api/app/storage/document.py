"""
Document resource store.

Resources are kept as JSON documents in the ``documents`` collection
table, keyed by a random hex token.  Every write replaces exactly one
document in a single statement, so each document changes atomically;
nothing else is coordinated between requests.
"""

import json
import logging
import sqlite3
import uuid
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from ..core.db import get_cursor, init_db
from ..core.errors import NotFound, PersistenceError, ValidationError
from ..schemas.resource import ResourceCreate, ResourceId, ResourcePatch, ResourceRead
from .base import ResourceStore, clamp_window

logger = logging.getLogger(__name__)


def new_token() -> str:
    """Return a fresh document key."""
    return uuid.uuid4().hex


class DocumentResourceStore(ResourceStore):
    """Store resources as JSON documents addressed by token."""

    backend = "document"

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url

    async def open(self) -> None:
        version = await run_in_threadpool(init_db, self.database_url)
        logger.info("Document store ready (schema version %s)", version)

    async def create(self, data: ResourceCreate) -> ResourceRead:
        resource = ResourceRead(id=new_token(), **data.model_dump())

        def _insert() -> None:
            with get_cursor(self.database_url) as cursor:
                cursor.execute(
                    "INSERT INTO documents (key, body) VALUES (?, ?)",
                    (resource.id, self._dump(resource)),
                )

        try:
            await run_in_threadpool(_insert)
        except sqlite3.Error as exc:
            raise PersistenceError("create", cause=exc) from exc
        return resource

    async def get(self, resource_id: ResourceId) -> ResourceRead:
        key = str(resource_id)

        def _find() -> Optional[sqlite3.Row]:
            with get_cursor(self.database_url) as cursor:
                return cursor.execute(
                    "SELECT key, body FROM documents WHERE key = ?", (key,)
                ).fetchone()

        try:
            row = await run_in_threadpool(_find)
        except sqlite3.Error as exc:
            raise PersistenceError("read", resource_id, exc) from exc
        if row is None:
            raise NotFound(resource_id)
        return self._load(row)

    async def list(self, offset: int = 0, limit: Optional[int] = None) -> List[ResourceRead]:
        offset, limit = clamp_window(offset, limit)

        def _find_all() -> List[sqlite3.Row]:
            with get_cursor(self.database_url) as cursor:
                return cursor.execute(
                    "SELECT key, body FROM documents ORDER BY seq ASC LIMIT ? OFFSET ?",
                    (limit, offset),
                ).fetchall()

        try:
            rows = await run_in_threadpool(_find_all)
        except sqlite3.Error as exc:
            raise PersistenceError("list", cause=exc) from exc
        return [self._load(row) for row in rows]

    async def update(self, resource_id: ResourceId, patch: ResourcePatch) -> ResourceRead:
        key = str(resource_id)

        def _replace() -> Optional[ResourceRead]:
            with get_cursor(self.database_url) as cursor:
                row = cursor.execute(
                    "SELECT key, body FROM documents WHERE key = ?", (key,)
                ).fetchone()
                if row is None:
                    return None
                updated = patch.apply(self._load(row))
                cursor.execute(
                    "UPDATE documents SET body = ? WHERE key = ?",
                    (self._dump(updated), key),
                )
                return updated

        try:
            updated = await run_in_threadpool(_replace)
        except sqlite3.Error as exc:
            raise PersistenceError("update", resource_id, exc) from exc
        if updated is None:
            raise NotFound(resource_id)
        return updated

    async def delete(self, resource_id: ResourceId) -> bool:
        key = str(resource_id)

        def _remove() -> int:
            with get_cursor(self.database_url) as cursor:
                cursor.execute("DELETE FROM documents WHERE key = ?", (key,))
                return cursor.rowcount

        try:
            affected = await run_in_threadpool(_remove)
        except sqlite3.Error as exc:
            raise PersistenceError("delete", resource_id, exc) from exc
        return affected > 0

    @staticmethod
    def _dump(resource: ResourceRead) -> str:
        return json.dumps({"name": resource.name, "status": resource.status})

    @staticmethod
    def _load(row: sqlite3.Row) -> ResourceRead:
        """Rebuild a resource from its stored document.

        The key column is authoritative for the id; the body only carries
        the mutable fields.
        """
        try:
            body = json.loads(row["body"])
            return ResourceRead(id=row["key"], **body)
        except (TypeError, json.JSONDecodeError, PydanticValidationError) as exc:
            raise ValidationError(f"Stored document {row['key']} is malformed: {exc}") from exc
