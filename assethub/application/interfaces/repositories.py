"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from assethub.application.dtos.file import FileCreate, FileResult
    from assethub.domain.enums import FileStatus


class IFileRepository(Protocol):
    """Protocol for file metadata repository (DIP).

    Passive adapter: no business rules. Database failures are raised as
    MetadataStoreError.
    """

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Scoped transaction; rolls back every write inside it when the block raises.

        Nests as a SAVEPOINT when the session already has a transaction open.
        """

    async def create_file(self, file: FileCreate) -> FileResult:
        """Insert a new record from the write-model; return created read-model."""

    async def get_by_id(self, file_id: str) -> FileResult:
        """Return the live record.

        Raises:
            ResourceNotFoundException: When absent or soft-deleted.
        """

    async def get_by_storage_key(self, storage_key: str) -> FileResult | None:
        """Return the live record for a storage key, or None."""

    async def update(self, file: FileResult) -> FileResult:
        """Overwrite every mutable column (no version check)."""

    async def update_status(self, file_id: str, status: FileStatus) -> FileResult:
        """Set status only; raises ResourceNotFoundException when absent."""

    async def soft_delete(self, file_id: str) -> FileResult:
        """Stamp deleted_at; raises ResourceNotFoundException when absent or already deleted."""

    async def list_files(
        self, *, offset: int = 0, limit: int = 100
    ) -> tuple[list[FileResult], int]:
        """Return one page of live records (newest first) and the live total."""

    async def list_stale(
        self,
        statuses: tuple[FileStatus, ...],
        created_before: datetime,
        *,
        offset: int = 0,
        limit: int = 500,
    ) -> list[FileResult]:
        """Return live records in statuses created before the cutoff (oldest first)."""
