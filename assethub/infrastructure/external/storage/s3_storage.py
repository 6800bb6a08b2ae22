"""S3-compatible object storage (AWS S3, MinIO, etc.) with presigned URLs and multipart sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, BinaryIO

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from assethub.application.interfaces.storage import (
    CompletedPart,
    MultipartUpload,
    ObjectInfo,
    ObjectStream,
    PresignOptions,
)
from assethub.core.constants import DEFAULT_CONTENT_TYPE
from assethub.infrastructure.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageMultipartError,
    StorageNotFoundError,
    StoragePresignError,
    StorageUploadError,
)

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class S3StorageService:
    """S3-compatible storage with presigned URLs and multipart sessions.

    Uses boto3 (sync) via asyncio.to_thread for async API. Compatible with
    AWS S3, MinIO, DigitalOcean Spaces. MinIO and most self-hosted endpoints
    need use_path_style=True.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        use_path_style: bool = False,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            region: AWS region.
            endpoint_url: Custom endpoint (MinIO/Spaces).
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
            use_path_style: Address the bucket in the path instead of the host.
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        addressing = "path" if use_path_style else "virtual"
        self._client = self._build_client(
            region=region,
            endpoint_url=endpoint_url,
            access_key=access_key,
            secret_key=secret_key,
            addressing_style=addressing,
        )

    @staticmethod
    def _build_client(
        *,
        region: str,
        endpoint_url: str | None,
        access_key: str | None,
        secret_key: str | None,
        addressing_style: str,
    ) -> Any:
        extra: dict[str, Any] = {}
        checksums: dict[str, str] = {}
        if endpoint_url is not None:
            extra["endpoint_url"] = endpoint_url
            # S3-compatible stores (OSS, MinIO) reject aws-chunked bodies with
            # trailing checksums; only send checksums an operation requires.
            checksums = {
                "request_checksum_calculation": "when_required",
                "response_checksum_validation": "when_required",
            }
        return boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": addressing_style},
                **checksums,
            ),
            **extra,
        )

    async def upload(
        self,
        key: str,
        stream: BinaryIO,
        size: int,
        content_type: str,
    ) -> None:
        """Stream the body with boto3's managed transfer (multipart above its threshold)."""
        def _upload() -> None:
            self._client.upload_fileobj(
                stream,
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )

        try:
            await asyncio.to_thread(_upload)
        except (ClientError, BotoCoreError, OSError) as e:
            raise StorageUploadError(key, str(e)) from e
        logger.debug("Uploaded s3://%s/%s (%d bytes declared)", self.bucket, key, size)

    async def presign_upload_url(
        self, key: str, expiry: int, content_type: str
    ) -> str:
        """Return presigned PUT URL; the client must send the same Content-Type."""
        def _presign() -> str:
            return self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expiry,
            )

        try:
            return await asyncio.to_thread(_presign)
        except (ClientError, BotoCoreError) as e:
            raise StoragePresignError(key, "put_object", str(e)) from e

    async def init_multipart_upload(
        self, key: str, content_type: str
    ) -> MultipartUpload:
        """Open a multipart session."""
        def _create() -> str:
            resp = self._client.create_multipart_upload(
                Bucket=self.bucket, Key=key, ContentType=content_type
            )
            return resp["UploadId"]

        try:
            upload_id = await asyncio.to_thread(_create)
        except (ClientError, BotoCoreError) as e:
            raise StorageMultipartError(key, None, "init", str(e)) from e
        return MultipartUpload(upload_id=upload_id, key=key)

    async def presign_part_url(
        self, key: str, upload_id: str, part_number: int, expiry: int
    ) -> str:
        """Return presigned PUT URL for one part."""
        def _presign() -> str:
            return self._client.generate_presigned_url(
                "upload_part",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "UploadId": upload_id,
                    "PartNumber": part_number,
                },
                ExpiresIn=expiry,
            )

        try:
            return await asyncio.to_thread(_presign)
        except (ClientError, BotoCoreError) as e:
            raise StoragePresignError(key, "upload_part", str(e)) from e

    async def complete_multipart_upload(
        self, key: str, upload_id: str, parts: list[CompletedPart]
    ) -> None:
        """Finalize the session; S3 rejects unknown parts or ETag mismatches."""
        def _complete() -> None:
            self._client.complete_multipart_upload(
                Bucket=self.bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={
                    "Parts": [
                        {"PartNumber": p.part_number, "ETag": p.etag} for p in parts
                    ]
                },
            )

        try:
            await asyncio.to_thread(_complete)
        except (ClientError, BotoCoreError) as e:
            raise StorageMultipartError(key, upload_id, "complete", str(e)) from e

    async def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        """Abort the session; an already-gone session is not an error."""
        def _abort() -> None:
            try:
                self._client.abort_multipart_upload(
                    Bucket=self.bucket, Key=key, UploadId=upload_id
                )
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") == "NoSuchUpload":
                    return
                raise

        try:
            await asyncio.to_thread(_abort)
        except (ClientError, BotoCoreError) as e:
            raise StorageMultipartError(key, upload_id, "abort", str(e)) from e

    def _download_params(self, key: str, options: PresignOptions | None) -> dict[str, Any]:
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key}
        if options and options.content_type:
            params["ResponseContentType"] = options.content_type
        if options and options.content_disposition:
            params["ResponseContentDisposition"] = options.content_disposition
        return params

    async def presign_download_url(
        self, key: str, expiry: int, options: PresignOptions | None = None
    ) -> str:
        """Return presigned GET URL with optional response header overrides."""
        params = self._download_params(key, options)

        def _presign() -> str:
            return self._client.generate_presigned_url(
                "get_object", Params=params, ExpiresIn=expiry
            )

        try:
            return await asyncio.to_thread(_presign)
        except (ClientError, BotoCoreError) as e:
            raise StoragePresignError(key, "get_object", str(e)) from e

    async def open_download(self, key: str) -> ObjectStream:
        """Open GetObject and stream its body in CHUNK_SIZE reads."""
        def _get() -> dict[str, Any]:
            return self._client.get_object(Bucket=self.bucket, Key=key)

        try:
            resp = await asyncio.to_thread(_get)
        except ClientError as e:
            if _is_not_found(e):
                raise StorageNotFoundError(key) from e
            raise StorageDownloadError(key, str(e)) from e
        except BotoCoreError as e:
            raise StorageDownloadError(key, str(e)) from e

        body = resp["Body"]

        async def _iter() -> AsyncIterator[bytes]:
            try:
                while True:
                    chunk = await asyncio.to_thread(body.read, self.CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
            finally:
                body.close()

        return ObjectStream(
            body=_iter(),
            content_type=resp.get("ContentType") or DEFAULT_CONTENT_TYPE,
            content_length=int(resp.get("ContentLength") or 0),
        )

    async def stat(self, key: str) -> ObjectInfo | None:
        """HeadObject; None when absent."""
        def _head() -> dict[str, Any] | None:
            try:
                return self._client.head_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                if _is_not_found(e):
                    return None
                raise

        try:
            head = await asyncio.to_thread(_head)
        except (ClientError, BotoCoreError) as e:
            raise StorageDownloadError(key, str(e)) from e
        if head is None:
            return None
        return ObjectInfo(
            key=key,
            size=int(head["ContentLength"]),
            content_type=head.get("ContentType") or DEFAULT_CONTENT_TYPE,
            etag=(head.get("ETag") or "").strip('"') or None,
        )

    async def delete(self, key: str) -> None:
        """DeleteObject (S3 treats a missing key as success)."""
        def _delete() -> None:
            self._client.delete_object(Bucket=self.bucket, Key=key)

        try:
            await asyncio.to_thread(_delete)
        except ClientError as e:
            if _is_not_found(e):
                return
            raise StorageDeleteError(key, str(e)) from e
        except BotoCoreError as e:
            raise StorageDeleteError(key, str(e)) from e
