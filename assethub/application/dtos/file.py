"""DTOs for file use cases (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime

from assethub.domain.enums import FileStatus


@dataclass(frozen=True)
class FileCreate:
    """Input for creating a file record (write-model). Use case builds this; repo persists and returns FileResult."""

    id: str
    name: str
    size: int
    content_type: str
    storage_key: str
    status: FileStatus
    upload_id: str | None = None
    hash: str | None = None


@dataclass(frozen=True)
class FileResult:
    """File read-model (result of get_by_id, create, update, update_status)."""

    id: str
    name: str
    size: int
    content_type: str
    storage_key: str
    status: FileStatus
    upload_id: str | None
    hash: str | None
    created_at: datetime | None
    updated_at: datetime | None
    deleted_at: datetime | None = None

    @property
    def is_multipart(self) -> bool:
        return bool(self.upload_id)

    @property
    def is_completed(self) -> bool:
        return self.status == FileStatus.COMPLETED


@dataclass(frozen=True)
class FilePage:
    """One page of list_files."""

    items: list[FileResult]
    total: int
    offset: int
    limit: int


@dataclass(frozen=True)
class PresignedUploadResult:
    """Result of init_presigned_upload: URL the client PUTs the bytes to."""

    file_id: str
    upload_url: str
    storage_key: str
    expires_in: int


@dataclass(frozen=True)
class MultipartUploadResult:
    """Result of init_multipart_upload."""

    file_id: str
    upload_id: str
    storage_key: str


@dataclass(frozen=True)
class PartUploadResult:
    """Presigned URL for a single multipart part."""

    part_number: int
    upload_url: str
    expires_in: int


@dataclass(frozen=True)
class DownloadUrlResult:
    """Presigned (or token) URL for reading a completed file."""

    file_id: str
    url: str
    expires_in: int
