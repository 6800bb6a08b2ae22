"""Application DTOs (no dependency on ORM or HTTP schemas)."""

from assethub.application.dtos.file import (
    DownloadUrlResult,
    FileCreate,
    FilePage,
    FileResult,
    MultipartUploadResult,
    PartUploadResult,
    PresignedUploadResult,
)

__all__ = [
    "FileCreate",
    "FileResult",
    "FilePage",
    "PresignedUploadResult",
    "MultipartUploadResult",
    "PartUploadResult",
    "DownloadUrlResult",
]
