"""Storage: local filesystem, S3-compatible and Aliyun OSS backends.

Factory creates the backend from assethub.core.config. Implementations are
imported inside StorageFactory.create_storage_service() so only the selected
backend is loaded.

Implementations satisfy IStorageService (upload, presign_upload_url,
init_multipart_upload, presign_part_url, complete_multipart_upload,
abort_multipart_upload, presign_download_url, open_download, stat, delete).
"""

from assethub.infrastructure.external.storage.factory import StorageFactory

__all__ = [
    "StorageFactory",
]
