"""
Top‑level router for version 1 of the API.

When new endpoints are added, update this file to include their
routers.
"""

from fastapi import APIRouter

from .endpoints import resources

router = APIRouter()

router.include_router(resources.router, prefix="/resource", tags=["resources"])
