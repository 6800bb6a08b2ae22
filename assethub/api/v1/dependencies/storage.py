"""Storage backend dependencies.

The backend is built once (lifespan) and kept on app.state so every request
shares the same client, and the local backend's in-memory tokens survive
across requests.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from assethub.application.interfaces.storage import IStorageService
from assethub.infrastructure.external.storage import StorageFactory
from assethub.infrastructure.external.storage.local_storage import LocalStorageService


def get_storage_service(request: Request) -> IStorageService:
    """Return the shared storage backend (created on first use if lifespan did not run)."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = StorageFactory.create_storage_service()
        request.app.state.storage = storage
    return storage


def get_local_storage(
    storage: Annotated[IStorageService, Depends(get_storage_service)],
) -> LocalStorageService:
    """Token endpoints only exist for the local backend; 404 otherwise."""
    if not isinstance(storage, LocalStorageService):
        raise HTTPException(status_code=404, detail="Not found")
    return storage
