"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from assethub.api.v1.dependencies.
"""

from fastapi import APIRouter

from assethub.api.v1.endpoints import files, health, storage

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
api_router.include_router(storage.router, prefix="/storage", tags=["storage"])
