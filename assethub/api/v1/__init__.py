"""API v1: routers mounted under /api/v1."""

from assethub.api.v1.router import api_router

__all__ = ["api_router"]
