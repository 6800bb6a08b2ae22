"""File use case dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from assethub.application.interfaces.storage import IStorageService
from assethub.application.use_cases.files import (
    FileDeletionService,
    FileQueryService,
    FileUploadService,
)
from assethub.core.config import get_settings
from assethub.infrastructure.persistence.database import get_db, get_db_transactional
from assethub.infrastructure.persistence.repositories import FileRepository

from .storage import get_storage_service


async def get_file_upload_service(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    storage: Annotated[IStorageService, Depends(get_storage_service)],
) -> FileUploadService:
    """Build FileUploadService (transactional session + shared storage backend)."""
    settings = get_settings()
    return FileUploadService(
        storage_service=storage,
        file_repo=FileRepository(db),
        upload_url_expiry=settings.upload_url_expiry_seconds,
        part_url_expiry=settings.upload_url_expiry_seconds,
        sniff_bytes=settings.mime_sniff_bytes,
        verify_uploads_on_confirm=settings.verify_uploads_on_confirm,
    )


async def get_file_query_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[IStorageService, Depends(get_storage_service)],
) -> FileQueryService:
    """Build FileQueryService for reads, download URLs and passthrough downloads."""
    return FileQueryService(
        storage_service=storage,
        file_repo=FileRepository(db),
        download_url_expiry=get_settings().download_url_expiry_seconds,
    )


async def get_file_query_service_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    storage: Annotated[IStorageService, Depends(get_storage_service)],
) -> FileQueryService:
    """FileQueryService on the request's transactional session (sees uncommitted writes)."""
    return FileQueryService(
        storage_service=storage,
        file_repo=FileRepository(db),
        download_url_expiry=get_settings().download_url_expiry_seconds,
    )


async def get_file_deletion_service(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    storage: Annotated[IStorageService, Depends(get_storage_service)],
) -> FileDeletionService:
    """Build FileDeletionService (transactional)."""
    return FileDeletionService(storage_service=storage, file_repo=FileRepository(db))
