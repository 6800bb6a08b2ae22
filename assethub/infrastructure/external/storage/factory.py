"""Storage service factory: creates the s3, oss or local backend from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assethub.application.interfaces.storage import IStorageService
from assethub.infrastructure.exceptions import StorageConfigurationError

if TYPE_CHECKING:
    from assethub.core.config import Settings

logger = logging.getLogger(__name__)


class StorageFactory:
    """Factory for storage service instances based on configuration."""

    @staticmethod
    def create_storage_service(settings: "Settings | None" = None) -> IStorageService:
        """Create storage service from settings.

        Args:
            settings: Application settings; if None, uses get_settings().

        Returns:
            LocalStorageService, S3StorageService or OSSStorageService.

        Raises:
            StorageConfigurationError: Unknown backend or missing required config.
        """
        from assethub.core.config import get_settings

        s = settings or get_settings()
        backend = s.storage_backend.lower()

        if backend == "local":
            from assethub.infrastructure.external.storage.local_storage import (
                LocalStorageService,
            )

            if not s.storage_root:
                raise StorageConfigurationError(backend, "STORAGE_ROOT required")
            logger.info("Using local storage at %s", s.storage_root)
            return LocalStorageService(
                storage_root=s.storage_root,
                base_url=s.storage_base_url,
            )
        if backend == "s3":
            from assethub.infrastructure.external.storage.s3_storage import (
                S3StorageService,
            )

            if not s.s3_bucket:
                raise StorageConfigurationError(backend, "S3_BUCKET required")
            logger.info("Using S3 storage bucket=%s region=%s", s.s3_bucket, s.s3_region)
            return S3StorageService(
                bucket=s.s3_bucket,
                region=s.s3_region,
                endpoint_url=s.s3_endpoint_url,
                access_key=s.s3_access_key,
                secret_key=(
                    s.s3_secret_key.get_secret_value() if s.s3_secret_key else None
                ),
                use_path_style=s.s3_use_path_style,
            )
        if backend == "oss":
            from assethub.infrastructure.external.storage.oss_storage import (
                OSSStorageService,
            )

            if not s.oss_endpoint or not s.oss_bucket:
                raise StorageConfigurationError(backend, "OSS_ENDPOINT and OSS_BUCKET required")
            if not s.oss_access_key_id or not s.oss_access_key_secret:
                raise StorageConfigurationError(
                    backend, "OSS_ACCESS_KEY_ID and OSS_ACCESS_KEY_SECRET required"
                )
            logger.info("Using OSS storage bucket=%s endpoint=%s", s.oss_bucket, s.oss_endpoint)
            return OSSStorageService(
                endpoint=s.oss_endpoint,
                bucket=s.oss_bucket,
                access_key_id=s.oss_access_key_id,
                access_key_secret=s.oss_access_key_secret.get_secret_value(),
            )
        raise StorageConfigurationError(
            backend, "Supported: 'local', 's3', 'oss'"
        )
