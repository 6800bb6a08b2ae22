"""Aliyun OSS storage through its S3-compatible API.

OSS only accepts virtual-host addressing and refuses the response
content-type override on presigned GETs, so both are fixed here. Everything
else is shared with S3StorageService.
"""

from __future__ import annotations

import re
from typing import Any

from assethub.application.interfaces.storage import PresignOptions
from assethub.infrastructure.external.storage.s3_storage import S3StorageService

DEFAULT_OSS_REGION = "cn-hangzhou"

_REGION_PATTERN = re.compile(r"oss-([a-z0-9-]+?)(?:-internal)?\.aliyuncs\.com")


def region_from_endpoint(endpoint: str) -> str:
    """Derive the region from an endpoint like oss-cn-shanghai.aliyuncs.com."""
    match = _REGION_PATTERN.search(endpoint)
    return match.group(1) if match else DEFAULT_OSS_REGION


def normalize_endpoint(endpoint: str) -> str:
    """Add https:// when the endpoint is given as a bare host."""
    if endpoint.startswith(("http://", "https://")):
        return endpoint.rstrip("/")
    return f"https://{endpoint.rstrip('/')}"


class OSSStorageService(S3StorageService):
    """OSS backend: boto3 against https://oss-<region>.aliyuncs.com with virtual-host addressing."""

    def __init__(
        self,
        endpoint: str,
        bucket: str,
        access_key_id: str,
        access_key_secret: str,
    ) -> None:
        self.bucket = bucket
        self.region = region_from_endpoint(endpoint)
        self.endpoint_url = normalize_endpoint(endpoint)
        self._client = self._build_client(
            region=self.region,
            endpoint_url=self.endpoint_url,
            access_key=access_key_id,
            secret_key=access_key_secret,
            addressing_style="virtual",
        )

    def _download_params(self, key: str, options: PresignOptions | None) -> dict[str, Any]:
        # OSS rejects response-content-type on signed URLs; disposition only.
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key}
        if options and options.content_disposition:
            params["ResponseContentDisposition"] = options.content_disposition
        return params
