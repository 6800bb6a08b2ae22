"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the storage backend and file use cases.
Routes depend only on these dependencies, not on infrastructure directly.
"""

from assethub.api.v1.dependencies.files import (
    get_file_deletion_service,
    get_file_query_service,
    get_file_query_service_for_write,
    get_file_upload_service,
)
from assethub.api.v1.dependencies.storage import get_local_storage, get_storage_service

__all__ = [
    "get_storage_service",
    "get_local_storage",
    "get_file_upload_service",
    "get_file_query_service",
    "get_file_query_service_for_write",
    "get_file_deletion_service",
]
