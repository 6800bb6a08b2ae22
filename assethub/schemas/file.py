"""File API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from assethub.domain.enums import FileStatus


class FileResponse(BaseModel):
    """File record as returned by get, list, confirm and complete."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    size: int
    content_type: str
    storage_key: str
    status: FileStatus
    upload_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FileListResponse(BaseModel):
    """Response for GET /files."""

    items: list[FileResponse]
    total: int
    offset: int
    limit: int


class DirectUploadResponse(BaseModel):
    """Response for POST /files/upload: the completed record and a download URL."""

    file: FileResponse
    download_url: str
    expires_in: int


class UploadInitRequest(BaseModel):
    """Request body for POST /files/presigned and POST /files/multipart."""

    name: str = Field(..., min_length=1, max_length=255)
    content_type: str | None = Field(default=None, max_length=255)
    size: int = Field(default=0, ge=0)


class PresignedUploadResponse(BaseModel):
    """Response for POST /files/presigned."""

    model_config = ConfigDict(from_attributes=True)

    file_id: str
    upload_url: str
    storage_key: str
    expires_in: int


class MultipartUploadResponse(BaseModel):
    """Response for POST /files/multipart."""

    model_config = ConfigDict(from_attributes=True)

    file_id: str
    upload_id: str
    storage_key: str


class PartUrlRequest(BaseModel):
    """Request body for POST /files/{file_id}/parts."""

    part_number: int = Field(..., ge=1, le=10000)


class PartUrlResponse(BaseModel):
    """Response for POST /files/{file_id}/parts."""

    model_config = ConfigDict(from_attributes=True)

    part_number: int
    upload_url: str
    expires_in: int


class CompletedPartItem(BaseModel):
    """One uploaded part: number and the ETag returned by the part PUT."""

    part_number: int = Field(..., ge=1, le=10000)
    etag: str = Field(..., min_length=1)


class CompleteMultipartRequest(BaseModel):
    """Request body for POST /files/{file_id}/complete."""

    parts: list[CompletedPartItem]


class DownloadUrlResponse(BaseModel):
    """Response for GET /files/{file_id}/download-url."""

    model_config = ConfigDict(from_attributes=True)

    file_id: str
    url: str
    expires_in: int
