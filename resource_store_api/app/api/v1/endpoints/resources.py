"""
Resource endpoints for API v1.

These routes expose create, read, list, partial update and delete for
resources.  Handlers only translate between HTTP and the service:
``NotFound`` and ``PersistenceError`` raised underneath are turned into
404 and 500 responses by the exception handlers registered in
``app.main``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from resource_store_api.app.api.deps import get_resource_service
from resource_store_api.app.schemas.resource import ResourceCreate, ResourcePatch, ResourceRead
from resource_store_api.app.services.resource_service import ResourceService

router = APIRouter()


@router.get("", response_model=List[ResourceRead])
async def list_resources(
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=0),
    service: ResourceService = Depends(get_resource_service),
) -> List[ResourceRead]:
    """Return resources in insertion order.

    - **offset** - number of records to skip (default 0).
    - **limit** - maximum number of records to return (default: all).

    Paging past the end returns an empty list.
    """
    return await service.list_resources(offset=offset, limit=limit)


@router.get("/{resource_id}", response_model=ResourceRead)
async def get_resource(
    resource_id: str,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceRead:
    """Retrieve a single resource by its ID.  Returns 404 if absent."""
    return await service.get_resource(resource_id)


@router.post("", response_model=ResourceRead, status_code=status.HTTP_201_CREATED)
async def create_resource(
    resource_in: ResourceCreate,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceRead:
    """Create a resource; the response carries the assigned id."""
    return await service.create_resource(resource_in)


@router.patch("/{resource_id}", response_model=ResourceRead)
async def update_resource(
    resource_id: str,
    patch: ResourcePatch,
    service: ResourceService = Depends(get_resource_service),
) -> ResourceRead:
    """Update an existing resource.

    Partial updates are supported; any unspecified fields remain
    unchanged.
    """
    return await service.update_resource(resource_id, patch)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: str,
    service: ResourceService = Depends(get_resource_service),
) -> Response:
    """Delete a resource.  Returns 404 if there was nothing to delete."""
    deleted = await service.delete_resource(resource_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Resource {resource_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
