"""Local filesystem storage with path validation, atomic writes and token URLs."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
import shutil
import tempfile
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, BinaryIO, cast

import aiofiles
import aiofiles.os

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
    StoragePermissionError,
    StorageUploadError,
)
from assethub.shared.utils.datetime import utc_now
from assethub.shared.utils.generators import generate_access_token, generate_upload_id

logger = logging.getLogger(__name__)

TOKEN_UPLOAD = "upload"
TOKEN_PART = "part"
TOKEN_DOWNLOAD = "download"

MULTIPART_DIR = ".multipart"
SESSION_FILE = "session.json"


@dataclass(frozen=True)
class TokenGrant:
    """What a presigned local token allows (one key, one operation, until expires_at)."""

    kind: str
    key: str
    expires_at: datetime
    content_type: str | None = None
    content_disposition: str | None = None
    upload_id: str | None = None
    part_number: int | None = None


async def _iter_stream(stream: BinaryIO, chunk_size: int) -> AsyncIterator[bytes]:
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        yield chunk


class LocalStorageService:
    """Local filesystem storage with atomic writes and path traversal protection.

    Paths are validated against storage_root. Writes use temp file + rename.
    Content type stored in .meta.json sidecar. Presigned URLs are in-memory
    tokens served by the /api/v1/storage endpoints. Multipart parts are staged
    under .multipart/<upload_id>/ and their ETag is the MD5 hex of the part.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB
    URL_PREFIX = "/api/v1/storage"

    def __init__(self, storage_root: str, base_url: str | None = None) -> None:
        """Initialize local storage.

        Args:
            storage_root: Base directory for all files.
            base_url: Base URL for token endpoints (e.g. https://api.example.com).
        """
        self.storage_root = Path(storage_root).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)
        self._tokens: dict[str, TokenGrant] = {}

    # -- paths ---------------------------------------------------------------

    def _get_full_path(self, key: str) -> Path:
        """Resolve and validate path under storage_root. Raises StoragePermissionError if traversal."""
        full_path = (self.storage_root / key).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(key, "path_validation") from e
        if full_path == self.storage_root:
            raise StoragePermissionError(key, "path_validation")
        return full_path

    @staticmethod
    def _meta_path(file_path: Path) -> Path:
        return file_path.with_suffix(file_path.suffix + ".meta.json")

    def _session_dir(self, upload_id: str) -> Path:
        if not upload_id or not upload_id.isalnum():
            raise StoragePermissionError(upload_id, "multipart_session")
        return self.storage_root / MULTIPART_DIR / upload_id

    @staticmethod
    def _part_path(session_dir: Path, part_number: int) -> Path:
        return session_dir / f"{part_number:05d}.part"

    # -- sidecar -------------------------------------------------------------

    async def _write_metadata(self, file_path: Path, metadata: dict[str, Any]) -> None:
        """Write JSON sidecar."""
        meta_path = self._meta_path(file_path)
        async with aiofiles.open(meta_path, "w") as f:
            await f.write(json.dumps(metadata, indent=2))
        os.chmod(meta_path, 0o640)

    async def _read_metadata(self, file_path: Path) -> dict[str, Any]:
        """Read JSON sidecar or empty dict."""
        meta_path = self._meta_path(file_path)
        if not meta_path.exists():
            return {}
        async with aiofiles.open(meta_path, "r") as f:
            content = await f.read()
            result = json.loads(content)
            return cast(dict[str, Any], result) if isinstance(result, dict) else {}

    # -- writes --------------------------------------------------------------

    async def _write_atomic(
        self, target_path: Path, chunks: AsyncIterator[bytes]
    ) -> tuple[int, str]:
        """Stream chunks to a temp file in the target dir, then rename. Returns (size, md5 hex)."""
        target_path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=target_path.parent,
            prefix=".tmp_",
            suffix=target_path.suffix,
        )
        os.close(temp_fd)
        md5 = hashlib.md5()
        size = 0
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                async for chunk in chunks:
                    md5.update(chunk)
                    size += len(chunk)
                    await f.write(chunk)
            os.chmod(temp_path, 0o640)
            os.replace(temp_path, target_path)
        finally:
            if Path(temp_path).exists():
                os.unlink(temp_path)
        return size, md5.hexdigest()

    async def _store_object(
        self, key: str, chunks: AsyncIterator[bytes], content_type: str
    ) -> str:
        """Write the object plus its sidecar; returns the ETag (MD5 hex)."""
        target_path = self._get_full_path(key)
        size, etag = await self._write_atomic(target_path, chunks)
        await self._write_metadata(
            target_path,
            {
                "key": key,
                "size": size,
                "content_type": content_type,
                "etag": etag,
                "uploaded_at": utc_now().isoformat(),
            },
        )
        return etag

    async def upload(
        self,
        key: str,
        stream: BinaryIO,
        size: int,
        content_type: str,
    ) -> None:
        """Single-pass write with atomic rename; content type goes to the sidecar."""
        try:
            await self._store_object(
                key, _iter_stream(stream, self.CHUNK_SIZE), content_type
            )
        except StoragePermissionError:
            raise
        except Exception as e:
            raise StorageUploadError(key, str(e)) from e

    # -- tokens --------------------------------------------------------------

    def _issue_token(self, grant: TokenGrant, route: str) -> str:
        self._cleanup_expired_tokens()
        token = generate_access_token()
        self._tokens[token] = grant
        path = f"{self.URL_PREFIX}/{route}/{token}"
        return f"{self.base_url}{path}" if self.base_url else path

    def _cleanup_expired_tokens(self) -> None:
        """Remove expired tokens."""
        now = utc_now()
        for token in [t for t, g in self._tokens.items() if g.expires_at <= now]:
            del self._tokens[token]

    def validate_token(self, token: str, kind: str) -> TokenGrant | None:
        """Return the grant if token exists, has this kind, and is not expired."""
        grant = self._tokens.get(token)
        if grant is None or grant.kind != kind:
            return None
        if utc_now() > grant.expires_at:
            del self._tokens[token]
            return None
        return grant

    async def presign_upload_url(
        self, key: str, expiry: int, content_type: str
    ) -> str:
        """Return a token URL for PUT /storage/upload/{token} bound to content_type."""
        self._get_full_path(key)
        grant = TokenGrant(
            kind=TOKEN_UPLOAD,
            key=key,
            expires_at=utc_now() + timedelta(seconds=expiry),
            content_type=content_type,
        )
        return self._issue_token(grant, "upload")

    async def write_from_token(
        self, grant: TokenGrant, chunks: AsyncIterator[bytes]
    ) -> str:
        """Store a body received on an upload token. Returns the ETag."""
        try:
            return await self._store_object(
                grant.key, chunks, grant.content_type or DEFAULT_CONTENT_TYPE
            )
        except StoragePermissionError:
            raise
        except Exception as e:
            raise StorageUploadError(grant.key, str(e)) from e

    # -- multipart -----------------------------------------------------------

    async def init_multipart_upload(
        self, key: str, content_type: str
    ) -> MultipartUpload:
        """Create .multipart/<upload_id>/ with a session.json describing the target."""
        self._get_full_path(key)
        upload_id = generate_upload_id()
        session_dir = self._session_dir(upload_id)
        try:
            session_dir.mkdir(parents=True, mode=0o750)
            async with aiofiles.open(session_dir / SESSION_FILE, "w") as f:
                await f.write(json.dumps({"key": key, "content_type": content_type}))
        except OSError as e:
            raise StorageMultipartError(key, upload_id, "init", str(e)) from e
        return MultipartUpload(upload_id=upload_id, key=key)

    async def _read_session(self, key: str, upload_id: str, operation: str) -> dict[str, Any]:
        session_file = self._session_dir(upload_id) / SESSION_FILE
        if not session_file.exists():
            raise StorageMultipartError(key, upload_id, operation, "no such upload")
        async with aiofiles.open(session_file, "r") as f:
            session = json.loads(await f.read())
        if session.get("key") != key:
            raise StorageMultipartError(key, upload_id, operation, "upload belongs to another key")
        return cast(dict[str, Any], session)

    async def presign_part_url(
        self, key: str, upload_id: str, part_number: int, expiry: int
    ) -> str:
        """Return a token URL for PUT /storage/parts/{token}."""
        if part_number < 1:
            raise StorageMultipartError(key, upload_id, "presign_part", "part_number must be >= 1")
        await self._read_session(key, upload_id, "presign_part")
        grant = TokenGrant(
            kind=TOKEN_PART,
            key=key,
            expires_at=utc_now() + timedelta(seconds=expiry),
            upload_id=upload_id,
            part_number=part_number,
        )
        return self._issue_token(grant, "parts")

    async def write_part(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        chunks: AsyncIterator[bytes],
    ) -> str:
        """Stage one part (re-upload replaces it). Returns its ETag (MD5 hex)."""
        await self._read_session(key, upload_id, "upload_part")
        part_path = self._part_path(self._session_dir(upload_id), part_number)
        try:
            _, etag = await self._write_atomic(part_path, chunks)
        except OSError as e:
            raise StorageMultipartError(key, upload_id, "upload_part", str(e)) from e
        return etag

    async def complete_multipart_upload(
        self, key: str, upload_id: str, parts: list[CompletedPart]
    ) -> None:
        """Check parts are contiguous from 1 with matching ETags, then concatenate."""
        session = await self._read_session(key, upload_id, "complete")
        session_dir = self._session_dir(upload_id)
        ordered = sorted(parts, key=lambda p: p.part_number)
        if not ordered:
            raise StorageMultipartError(key, upload_id, "complete", "no parts")
        for expected_number, part in enumerate(ordered, start=1):
            if part.part_number != expected_number:
                raise StorageMultipartError(
                    key, upload_id, "complete",
                    f"parts must be contiguous from 1; missing part {expected_number}",
                )
            part_path = self._part_path(session_dir, part.part_number)
            if not part_path.exists():
                raise StorageMultipartError(
                    key, upload_id, "complete", f"part {part.part_number} was not uploaded"
                )
            actual = await self._md5_of(part_path)
            if actual != part.etag.strip('"').lower():
                raise StorageMultipartError(
                    key, upload_id, "complete", f"ETag mismatch for part {part.part_number}"
                )

        async def _concat() -> AsyncIterator[bytes]:
            for part in ordered:
                async with aiofiles.open(self._part_path(session_dir, part.part_number), "rb") as f:
                    while True:
                        chunk = await f.read(self.CHUNK_SIZE)
                        if not chunk:
                            break
                        yield chunk

        try:
            await self._store_object(
                key, _concat(), session.get("content_type") or DEFAULT_CONTENT_TYPE
            )
        except StoragePermissionError:
            raise
        except OSError as e:
            raise StorageMultipartError(key, upload_id, "complete", str(e)) from e
        await asyncio.to_thread(shutil.rmtree, session_dir, True)

    async def _md5_of(self, path: Path) -> str:
        md5 = hashlib.md5()
        async with aiofiles.open(path, "rb") as f:
            while True:
                chunk = await f.read(self.CHUNK_SIZE)
                if not chunk:
                    break
                md5.update(chunk)
        return md5.hexdigest()

    async def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        """Remove the staging directory; a missing session is not an error."""
        session_dir = self._session_dir(upload_id)
        if not session_dir.exists():
            return
        try:
            await asyncio.to_thread(shutil.rmtree, session_dir)
        except OSError as e:
            raise StorageMultipartError(key, upload_id, "abort", str(e)) from e

    # -- reads ---------------------------------------------------------------

    async def presign_download_url(
        self, key: str, expiry: int, options: PresignOptions | None = None
    ) -> str:
        """Return a token URL for GET /storage/download/{token}."""
        self._get_full_path(key)
        grant = TokenGrant(
            kind=TOKEN_DOWNLOAD,
            key=key,
            expires_at=utc_now() + timedelta(seconds=expiry),
            content_type=options.content_type if options else None,
            content_disposition=options.content_disposition if options else None,
        )
        return self._issue_token(grant, "download")

    async def open_download(self, key: str) -> ObjectStream:
        """Stream file content in CHUNK_SIZE reads."""
        file_path = self._get_full_path(key)
        if not file_path.is_file():
            raise StorageNotFoundError(key)
        try:
            stored = await self._read_metadata(file_path)
            size = file_path.stat().st_size
        except (OSError, ValueError) as e:
            raise StorageDownloadError(key, str(e)) from e

        async def _iter() -> AsyncIterator[bytes]:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    chunk = await f.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk

        return ObjectStream(
            body=_iter(),
            content_type=stored.get("content_type") or DEFAULT_CONTENT_TYPE,
            content_length=size,
        )

    async def stat(self, key: str) -> ObjectInfo | None:
        """Return size, content type and ETag from the sidecar; None when absent."""
        file_path = self._get_full_path(key)
        if not file_path.is_file():
            return None
        stored = await self._read_metadata(file_path)
        return ObjectInfo(
            key=key,
            size=file_path.stat().st_size,
            content_type=stored.get("content_type") or DEFAULT_CONTENT_TYPE,
            etag=stored.get("etag"),
        )

    async def delete(self, key: str) -> None:
        """Delete file and sidecar, then prune empty parent directories."""
        try:
            file_path = self._get_full_path(key)
            if file_path.exists():
                await aiofiles.os.remove(file_path)
            meta_path = self._meta_path(file_path)
            if meta_path.exists():
                await aiofiles.os.remove(meta_path)
            parent = file_path.parent
            while parent != self.storage_root:
                try:
                    if not any(parent.iterdir()):
                        parent.rmdir()
                        parent = parent.parent
                    else:
                        break
                except OSError:
                    break
        except StoragePermissionError:
            raise
        except OSError as e:
            raise StorageDeleteError(key, str(e)) from e
