"""File repository. Returns application DTOs."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from assethub.application.dtos.file import FileCreate, FileResult
from assethub.domain.enums import FileStatus
from assethub.domain.exceptions import ResourceNotFoundException
from assethub.infrastructure.persistence.models.file import File
from assethub.infrastructure.persistence.repositories.base import BaseRepository
from assethub.shared.utils import ensure_utc, utc_now


def _create_to_file(f: FileCreate) -> File:
    """Map FileCreate (write-model) to ORM File for persistence."""
    return File(
        id=f.id,
        name=f.name,
        size=f.size,
        content_type=f.content_type,
        storage_key=f.storage_key,
        status=FileStatus(f.status).value,
        upload_id=f.upload_id,
        hash=f.hash,
        deleted_at=None,
    )


def _file_to_result(f: File) -> FileResult:
    """Map ORM File to application FileResult."""
    return FileResult(
        id=f.id,
        name=f.name,
        size=f.size,
        content_type=f.content_type,
        storage_key=f.storage_key,
        status=FileStatus(f.status),
        upload_id=f.upload_id,
        hash=f.hash,
        created_at=ensure_utc(f.created_at),
        updated_at=ensure_utc(f.updated_at),
        deleted_at=ensure_utc(f.deleted_at),
    )


class FileRepository(BaseRepository[File]):
    """File repository. create_file() accepts FileCreate (write-model); returns FileResult (read-model).

    Passive adapter: status rules live in the upload use cases.
    """

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, File)

    async def _get_live_orm(self, file_id: str) -> File:
        result = await self.db.execute(
            select(File).where(File.id == file_id, File.deleted_at.is_(None))
        )
        orm = result.scalar_one_or_none()
        if orm is None:
            raise ResourceNotFoundException("file", file_id)
        return orm

    async def create_file(self, file: FileCreate) -> FileResult:
        """Create file record from write-model DTO; return read-model."""
        async with self.db_errors("create_file"):
            created = await self._add(_create_to_file(file))
            return _file_to_result(created)

    async def get_by_id(self, file_id: str) -> FileResult:
        """Return the live record; ResourceNotFoundException when absent or soft-deleted."""
        async with self.db_errors("get_by_id"):
            return _file_to_result(await self._get_live_orm(file_id))

    async def get_by_storage_key(self, storage_key: str) -> FileResult | None:
        async with self.db_errors("get_by_storage_key"):
            result = await self.db.execute(
                select(File).where(
                    File.storage_key == storage_key, File.deleted_at.is_(None)
                )
            )
            row = result.scalar_one_or_none()
            return _file_to_result(row) if row else None

    async def update(self, file: FileResult) -> FileResult:
        """Overwrite mutable columns from DTO (no version check); storage_key is never written."""
        async with self.db_errors("update"):
            orm = await self._get_live_orm(file.id)
            orm.name = file.name
            orm.size = file.size
            orm.content_type = file.content_type
            orm.status = FileStatus(file.status).value
            orm.upload_id = file.upload_id
            orm.hash = file.hash
            orm.deleted_at = file.deleted_at
            return _file_to_result(await self._save(orm))

    async def update_status(self, file_id: str, status: FileStatus) -> FileResult:
        async with self.db_errors("update_status"):
            orm = await self._get_live_orm(file_id)
            orm.status = FileStatus(status).value
            return _file_to_result(await self._save(orm))

    async def soft_delete(self, file_id: str) -> FileResult:
        """Stamp deleted_at; later reads treat the record as absent."""
        async with self.db_errors("soft_delete"):
            orm = await self._get_live_orm(file_id)
            orm.deleted_at = utc_now()
            return _file_to_result(await self._save(orm))

    async def list_files(
        self, *, offset: int = 0, limit: int = 100
    ) -> tuple[list[FileResult], int]:
        """Return one page of live records (newest first) and the live total."""
        async with self.db_errors("list_files"):
            total = await self.db.scalar(
                select(func.count(File.id)).where(File.deleted_at.is_(None))
            )
            result = await self.db.execute(
                select(File)
                .where(File.deleted_at.is_(None))
                .order_by(File.created_at.desc(), File.id.desc())
                .offset(offset)
                .limit(limit)
            )
            items = [_file_to_result(row) for row in result.scalars().all()]
            return items, total or 0

    async def list_stale(
        self,
        statuses: tuple[FileStatus, ...],
        created_before: datetime,
        *,
        offset: int = 0,
        limit: int = 500,
    ) -> list[FileResult]:
        """Return live records in statuses created before the cutoff (oldest first)."""
        async with self.db_errors("list_stale"):
            result = await self.db.execute(
                select(File)
                .where(
                    File.status.in_([FileStatus(s).value for s in statuses]),
                    File.created_at < created_before,
                    File.deleted_at.is_(None),
                )
                .order_by(File.created_at.asc(), File.id.asc())
                .offset(offset)
                .limit(limit)
            )
            return [_file_to_result(row) for row in result.scalars().all()]
