"""
Relational resource store backed by SQLite.

Each operation opens a short-lived connection, runs one parameterized
statement and closes it.  The blocking ``sqlite3`` calls are pushed to
the worker threadpool so the event loop keeps serving other requests.
Concurrency control is left entirely to the database; there is no
application-level lock and no transaction spans more than one call.
"""

import logging
import sqlite3
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from ..core.db import get_cursor, init_db
from ..core.errors import NotFound, PersistenceError
from ..schemas.resource import ResourceCreate, ResourceId, ResourcePatch, ResourceRead
from .base import ResourceStore, clamp_window, parse_int_id

logger = logging.getLogger(__name__)


class RelationalResourceStore(ResourceStore):
    """Store resources as rows of the ``resources`` table."""

    backend = "relational"

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url

    async def open(self) -> None:
        version = await run_in_threadpool(init_db, self.database_url)
        logger.info("Relational store ready (schema version %s)", version)

    async def create(self, data: ResourceCreate) -> ResourceRead:
        def _insert() -> int:
            with get_cursor(self.database_url) as cursor:
                cursor.execute(
                    "INSERT INTO resources (reference, status) VALUES (?, ?)",
                    (data.name, int(data.status)),
                )
                return cursor.lastrowid

        try:
            resource_id = await run_in_threadpool(_insert)
        except sqlite3.Error as exc:
            raise PersistenceError("create", cause=exc) from exc
        return ResourceRead(id=resource_id, name=data.name, status=data.status)

    async def get(self, resource_id: ResourceId) -> ResourceRead:
        key = parse_int_id(resource_id)
        if key is None:
            raise NotFound(resource_id)
        try:
            row = await run_in_threadpool(self._fetch_row, key)
        except sqlite3.Error as exc:
            raise PersistenceError("read", resource_id, exc) from exc
        if row is None:
            raise NotFound(resource_id)
        return self._row_to_resource(row)

    async def list(self, offset: int = 0, limit: Optional[int] = None) -> List[ResourceRead]:
        offset, limit = clamp_window(offset, limit)

        def _select() -> list:
            with get_cursor(self.database_url) as cursor:
                return cursor.execute(
                    "SELECT id, reference, status FROM resources ORDER BY id ASC LIMIT ? OFFSET ?",
                    (limit, offset),
                ).fetchall()

        try:
            rows = await run_in_threadpool(_select)
        except sqlite3.Error as exc:
            raise PersistenceError("list", cause=exc) from exc
        return [self._row_to_resource(row) for row in rows]

    async def update(self, resource_id: ResourceId, patch: ResourcePatch) -> ResourceRead:
        key = parse_int_id(resource_id)
        if key is None:
            raise NotFound(resource_id)

        def _merge_and_write() -> Optional[ResourceRead]:
            with get_cursor(self.database_url) as cursor:
                row = cursor.execute(
                    "SELECT id, reference, status FROM resources WHERE id = ?", (key,)
                ).fetchone()
                if row is None:
                    return None
                updated = patch.apply(self._row_to_resource(row))
                cursor.execute(
                    "UPDATE resources SET reference = ?, status = ? WHERE id = ?",
                    (updated.name, int(updated.status), key),
                )
                return updated

        try:
            updated = await run_in_threadpool(_merge_and_write)
        except sqlite3.Error as exc:
            raise PersistenceError("update", resource_id, exc) from exc
        if updated is None:
            raise NotFound(resource_id)
        return updated

    async def delete(self, resource_id: ResourceId) -> bool:
        key = parse_int_id(resource_id)
        if key is None:
            return False

        def _delete() -> int:
            with get_cursor(self.database_url) as cursor:
                cursor.execute("DELETE FROM resources WHERE id = ?", (key,))
                return cursor.rowcount

        try:
            affected = await run_in_threadpool(_delete)
        except sqlite3.Error as exc:
            raise PersistenceError("delete", resource_id, exc) from exc
        return affected > 0

    def _fetch_row(self, key: int) -> Optional[sqlite3.Row]:
        with get_cursor(self.database_url) as cursor:
            return cursor.execute(
                "SELECT id, reference, status FROM resources WHERE id = ?", (key,)
            ).fetchone()

    @staticmethod
    def _row_to_resource(row: sqlite3.Row) -> ResourceRead:
        """Convert a database row to a ResourceRead schema instance."""
        return ResourceRead(id=row["id"], name=row["reference"], status=bool(row["status"]))
