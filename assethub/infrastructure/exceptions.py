"""Infrastructure exceptions for storage and metadata-store operations.

Both families extend UpstreamFailureException so presentation can map
them to a single upstream-failure response while keeping the vendor
reason in details for diagnostics.
"""

from assethub.domain.exceptions import UpstreamFailureException


class StorageException(UpstreamFailureException):
    """Base exception for storage operations."""


class StorageNotFoundError(StorageException):
    """Object not found in storage."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Object not found: {key}",
            "STORAGE_NOT_FOUND",
            {"key": key},
        )


class StorageUploadError(StorageException):
    """Object upload (single-shot or multipart) failed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            f"Failed to upload object: {key}",
            "STORAGE_UPLOAD_ERROR",
            {"key": key, "reason": reason},
        )


class StorageDownloadError(StorageException):
    """Object download or stat failed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            f"Failed to download object: {key}",
            "STORAGE_DOWNLOAD_ERROR",
            {"key": key, "reason": reason},
        )


class StorageDeleteError(StorageException):
    """Object deletion failed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(
            f"Failed to delete object: {key}",
            "STORAGE_DELETE_ERROR",
            {"key": key, "reason": reason},
        )


class StoragePresignError(StorageException):
    """Presigned URL generation failed."""

    def __init__(self, key: str, operation: str, reason: str) -> None:
        super().__init__(
            f"Failed to presign {operation} for object: {key}",
            "STORAGE_PRESIGN_ERROR",
            {"key": key, "operation": operation, "reason": reason},
        )


class StorageMultipartError(StorageException):
    """Multipart session operation (init, complete, abort) failed."""

    def __init__(self, key: str, upload_id: str | None, operation: str, reason: str) -> None:
        super().__init__(
            f"Multipart {operation} failed for object: {key}",
            "STORAGE_MULTIPART_ERROR",
            {
                "key": key,
                "upload_id": upload_id,
                "operation": operation,
                "reason": reason,
            },
        )


class StoragePermissionError(StorageException):
    """Insufficient permissions or path escapes the storage root."""

    def __init__(self, key: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {key}",
            "STORAGE_PERMISSION_ERROR",
            {"key": key, "operation": operation},
        )


class StorageConfigurationError(StorageException):
    """Backend could not be built from configuration (unknown type, missing field)."""

    def __init__(self, backend: str, reason: str) -> None:
        super().__init__(
            f"Invalid storage configuration for backend '{backend}': {reason}",
            "STORAGE_CONFIGURATION_ERROR",
            {"backend": backend, "reason": reason},
        )


class MetadataStoreError(UpstreamFailureException):
    """Database call for file metadata failed."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Metadata store {operation} failed",
            "METADATA_STORE_ERROR",
            {"operation": operation, "reason": reason},
        )
