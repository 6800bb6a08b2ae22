"""Storage service protocol and transfer types.

Defines the contract every object-store backend fulfills. The upload
orchestrator depends only on this module, never on a vendor SDK.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import BinaryIO, Protocol


@dataclass(frozen=True)
class CompletedPart:
    """One uploaded part of a multipart session (number + ETag the backend returned)."""

    part_number: int
    etag: str


@dataclass(frozen=True)
class PresignOptions:
    """Response header overrides for a presigned download URL."""

    content_type: str | None = None
    content_disposition: str | None = None


@dataclass(frozen=True)
class MultipartUpload:
    """An open multipart session on the backend."""

    upload_id: str
    key: str


@dataclass(frozen=True)
class ObjectInfo:
    """Object metadata returned by stat."""

    key: str
    size: int
    content_type: str
    etag: str | None = None


@dataclass(frozen=True)
class ObjectStream:
    """Streaming body for a passthrough download."""

    body: AsyncIterator[bytes]
    content_type: str
    content_length: int


class IStorageService(Protocol):
    """Protocol for object storage backends (S3, OSS, local filesystem).

    Backends:
    - S3: boto3 against AWS or any S3-compatible endpoint
    - OSS: boto3 against the Aliyun OSS S3-compatible endpoint
    - Local: filesystem under a root directory, token URLs served by the API

    All vendor failures are raised as StorageException subclasses.
    """

    async def upload(
        self,
        key: str,
        stream: BinaryIO,
        size: int,
        content_type: str,
    ) -> None:
        """Write the object in one streaming pass with content_type set at write time.

        Args:
            key: Storage key.
            stream: Readable binary stream (consumed once).
            size: Declared byte count (hint; not verified).
            content_type: MIME type stored with the object.

        Raises:
            StorageUploadError: If the write fails.
        """
        ...

    async def presign_upload_url(
        self, key: str, expiry: int, content_type: str
    ) -> str:
        """Return a single-shot PUT URL bound to the exact content_type."""
        ...

    async def init_multipart_upload(
        self, key: str, content_type: str
    ) -> MultipartUpload:
        """Open a multipart session for key."""
        ...

    async def presign_part_url(
        self, key: str, upload_id: str, part_number: int, expiry: int
    ) -> str:
        """Return a PUT URL for one part (part_number >= 1)."""
        ...

    async def complete_multipart_upload(
        self, key: str, upload_id: str, parts: list[CompletedPart]
    ) -> None:
        """Finalize a session; parts are ordered by part_number and validated by the backend."""
        ...

    async def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        """Discard an open session and any uploaded parts."""
        ...

    async def presign_download_url(
        self, key: str, expiry: int, options: PresignOptions | None = None
    ) -> str:
        """Return a GET URL; disposition honored, content-type override only where the vendor allows."""
        ...

    async def open_download(self, key: str) -> ObjectStream:
        """Open a streaming read of the object.

        Raises:
            StorageNotFoundError: If the object does not exist.
        """
        ...

    async def stat(self, key: str) -> ObjectInfo | None:
        """Return object metadata, or None when the object is absent."""
        ...

    async def delete(self, key: str) -> None:
        """Remove the object; an absent key is not an error."""
        ...
