"""
Request dependencies.

The service (and the store behind it) is built once in the application
lifespan and kept on ``app.state``; handlers receive it through
``Depends(get_resource_service)`` instead of importing a global.
"""

from fastapi import Request

from ..services.resource_service import ResourceService


def get_resource_service(request: Request) -> ResourceService:
    """Return the shared ``ResourceService`` for this application."""
    return request.app.state.resource_service
