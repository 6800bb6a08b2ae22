"""File operations: upload orchestration (write), query (read) and deletion.

Three upload protocols converge on one metadata record:

- direct: bytes are proxied through the service (content type sniffed);
- presigned single: client PUTs to a presigned URL, then confirms;
- presigned multipart: client PUTs parts to per-part URLs, then completes.

The storage key is minted once, before any object exists, and never changes.
Status only moves forward (FileStatus.can_transition_to).
"""

from __future__ import annotations

import asyncio
import logging
from typing import BinaryIO

from assethub.application.dtos.file import (
    DownloadUrlResult,
    FileCreate,
    FilePage,
    FileResult,
    MultipartUploadResult,
    PartUploadResult,
    PresignedUploadResult,
)
from assethub.application.interfaces.repositories import IFileRepository
from assethub.application.interfaces.storage import (
    CompletedPart,
    IStorageService,
    ObjectStream,
    PresignOptions,
)
from assethub.application.services import mime_resolver
from assethub.core.constants import (
    DISPOSITION_ATTACHMENT,
    DISPOSITION_INLINE,
    DOWNLOAD_URL_EXPIRY_SECONDS,
    MIME_SNIFF_BYTES,
    PART_URL_EXPIRY_SECONDS,
    STORAGE_KEY_PREFIX,
    UPLOAD_URL_EXPIRY_SECONDS,
)
from assethub.domain.enums import FileStatus
from assethub.domain.exceptions import (
    InvalidStatusTransitionException,
    PreconditionFailedException,
    ValidationException,
)
from assethub.infrastructure.exceptions import StorageException
from assethub.shared.telemetry.tracing import add_span_attributes, add_span_event, traced
from assethub.shared.utils.datetime import unix_seconds
from assethub.shared.utils.generators import generate_file_id

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255
MAX_PAGE_SIZE = 1000


class PrefixedStream:
    """Readable stream that replays an already-consumed prefix before the rest of inner.

    Lets the orchestrator sniff the first bytes and still hand the backend a
    single pass over the full body.
    """

    def __init__(self, prefix: bytes, inner: BinaryIO) -> None:
        self._prefix = prefix
        self._offset = 0
        self._inner = inner

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def read(self, size: int = -1) -> bytes:
        remaining = self._prefix[self._offset:]
        if size is None or size < 0:
            self._offset = len(self._prefix)
            return remaining + self._inner.read()
        head = remaining[:size]
        self._offset += len(head)
        if len(head) == size:
            return head
        return head + self._inner.read(size - len(head))


def _read_prefix(stream: BinaryIO, limit: int) -> bytes:
    """Blocking: read up to limit bytes (loops over short reads)."""
    buf = bytearray()
    while len(buf) < limit:
        chunk = stream.read(limit - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


def build_storage_key(file_id: str, name: str, content_type: str, ts: int | None = None) -> str:
    """files/<unix-ts>/<file-id><ext>; ext from the name, else from the content type."""
    ext = mime_resolver.file_extension(name) or mime_resolver.reverse_to_extension(content_type)
    return f"{STORAGE_KEY_PREFIX}/{ts if ts is not None else unix_seconds()}/{file_id}{ext}"


def disposition_for(content_type: str) -> str:
    """inline for types browsers can preview, attachment otherwise."""
    if mime_resolver.is_previewable(content_type):
        return DISPOSITION_INLINE
    return DISPOSITION_ATTACHMENT


def _validate_name(name: str) -> str:
    cleaned = (name or "").replace("\x00", "").strip()
    if not cleaned:
        raise ValidationException("File name must not be empty", field="name")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationException(
            f"File name must be at most {MAX_NAME_LENGTH} characters", field="name"
        )
    return cleaned


def _validate_size(size: int) -> int:
    if size < 0:
        raise ValidationException("Size must be >= 0", field="size")
    return size


class _FileServiceBase:
    """Shared wiring: one repository and one storage backend."""

    def __init__(self, storage_service: IStorageService, file_repo: IFileRepository) -> None:
        self.storage = storage_service
        self.file_repo = file_repo

    async def _transition(self, file: FileResult, target: FileStatus) -> FileResult:
        if not file.status.can_transition_to(target):
            raise InvalidStatusTransitionException(file.id, file.status.value, target.value)
        if file.status == target:
            return file
        return await self.file_repo.update_status(file.id, target)

    async def _discard_object(self, key: str) -> None:
        """Best-effort delete of an object whose record could not be finalized."""
        add_span_event("compensation.delete_object", {"storage_key": key})
        try:
            await self.storage.delete(key)
        except StorageException:
            logger.exception("Compensation failed: could not delete orphaned object %s", key)

    async def _upload_or_discard(
        self, key: str, stream: BinaryIO, size: int, content_type: str
    ) -> None:
        """Upload; when the caller is cancelled mid-transfer, delete the object once it lands.

        Backends transfer in worker threads that cancellation cannot stop, so
        the object may still be written after the request is gone.
        """
        upload = asyncio.ensure_future(self.storage.upload(key, stream, size, content_type))
        try:
            await asyncio.shield(upload)
        except asyncio.CancelledError:
            await asyncio.shield(self._discard_when_done(upload, key))
            raise

    async def _discard_when_done(self, upload: asyncio.Future, key: str) -> None:
        try:
            await upload
        except StorageException:
            logger.warning("Upload of %s failed after the request was cancelled", key)
        await self._discard_object(key)

    async def _abort_session(self, key: str, upload_id: str) -> None:
        """Best-effort abort of a multipart session whose record could not be written."""
        add_span_event("compensation.abort_multipart", {"storage_key": key})
        try:
            await self.storage.abort_multipart_upload(key, upload_id)
        except StorageException:
            logger.exception(
                "Compensation failed: could not abort multipart session %s for %s",
                upload_id,
                key,
            )


class FileUploadService(_FileServiceBase):
    """Upload orchestration for the direct, presigned single and multipart protocols."""

    def __init__(
        self,
        storage_service: IStorageService,
        file_repo: IFileRepository,
        *,
        upload_url_expiry: int = UPLOAD_URL_EXPIRY_SECONDS,
        part_url_expiry: int = PART_URL_EXPIRY_SECONDS,
        sniff_bytes: int = MIME_SNIFF_BYTES,
        verify_uploads_on_confirm: bool = False,
    ) -> None:
        super().__init__(storage_service, file_repo)
        self.upload_url_expiry = upload_url_expiry
        self.part_url_expiry = part_url_expiry
        self.sniff_bytes = sniff_bytes
        self.verify_uploads_on_confirm = verify_uploads_on_confirm

    @traced("file.upload_direct")
    async def upload_direct(
        self,
        name: str,
        declared_type: str | None,
        size: int,
        stream: BinaryIO,
    ) -> FileResult:
        """Proxy the bytes to storage and return the completed record.

        The declared type is not trusted: the content type is sniffed from the
        first bytes. The pending row and the status change share one scoped
        transaction, so a failed upload leaves no record behind. When the
        status change fails after the bytes landed, or the request is cancelled
        while the transfer runs, the object is deleted.
        """
        name = _validate_name(name)
        size = _validate_size(size)
        prefix = await asyncio.to_thread(_read_prefix, stream, self.sniff_bytes)
        content_type = mime_resolver.sniff_from_bytes(prefix)
        if declared_type and mime_resolver.base_type(declared_type) != mime_resolver.base_type(content_type):
            logger.debug(
                "Declared type %s overridden by sniffed type %s for %s",
                declared_type,
                content_type,
                name,
            )
        body = PrefixedStream(prefix, stream)

        file_id = generate_file_id()
        key = build_storage_key(file_id, name, content_type)
        add_span_attributes(file_id=file_id, storage_key=key, content_type=content_type)

        async with self.file_repo.transaction():
            staged = await self.file_repo.create_file(
                FileCreate(
                    id=file_id,
                    name=name,
                    size=size,
                    content_type=content_type,
                    storage_key=key,
                    status=FileStatus.PENDING,
                )
            )
            await self._upload_or_discard(key, body, size, content_type)
            try:
                completed = await self._transition(staged, FileStatus.COMPLETED)
            except Exception:
                await self._discard_object(key)
                raise
        logger.info("Direct upload completed: file_id=%s key=%s", file_id, key)
        return completed

    @traced("file.init_presigned_upload")
    async def init_presigned_upload(
        self,
        name: str,
        declared_type: str | None,
        size: int,
    ) -> PresignedUploadResult:
        """Create a pending record and a PUT URL bound to the resolved content type."""
        name = _validate_name(name)
        size = _validate_size(size)
        content_type = mime_resolver.resolve_declared(name, declared_type)
        file_id = generate_file_id()
        key = build_storage_key(file_id, name, content_type)
        add_span_attributes(file_id=file_id, storage_key=key)

        upload_url = await self.storage.presign_upload_url(
            key, self.upload_url_expiry, content_type
        )
        await self.file_repo.create_file(
            FileCreate(
                id=file_id,
                name=name,
                size=size,
                content_type=content_type,
                storage_key=key,
                status=FileStatus.PENDING,
            )
        )
        return PresignedUploadResult(
            file_id=file_id,
            upload_url=upload_url,
            storage_key=key,
            expires_in=self.upload_url_expiry,
        )

    @traced("file.confirm_upload")
    async def confirm_upload(self, file_id: str) -> FileResult:
        """Mark a presigned single upload completed (idempotent once completed)."""
        file = await self.file_repo.get_by_id(file_id)
        if file.is_multipart:
            raise ValidationException(
                "File was initialised for multipart upload; complete it instead",
                field="file_id",
            )
        if file.is_completed:
            return file
        if self.verify_uploads_on_confirm:
            info = await self.storage.stat(file.storage_key)
            if info is None:
                raise PreconditionFailedException(
                    f"Object for file {file.id} has not been uploaded",
                    file.id,
                    file.status.value,
                )
        return await self._transition(file, FileStatus.COMPLETED)

    @traced("file.init_multipart_upload")
    async def init_multipart_upload(
        self,
        name: str,
        declared_type: str | None,
        size: int,
    ) -> MultipartUploadResult:
        """Open a backend session, then record it as uploading (session aborted if the record fails)."""
        name = _validate_name(name)
        size = _validate_size(size)
        content_type = mime_resolver.resolve_declared(name, declared_type)
        file_id = generate_file_id()
        key = build_storage_key(file_id, name, content_type)
        add_span_attributes(file_id=file_id, storage_key=key)

        session = await self.storage.init_multipart_upload(key, content_type)
        try:
            await self.file_repo.create_file(
                FileCreate(
                    id=file_id,
                    name=name,
                    size=size,
                    content_type=content_type,
                    storage_key=key,
                    status=FileStatus.UPLOADING,
                    upload_id=session.upload_id,
                )
            )
        except Exception:
            await self._abort_session(key, session.upload_id)
            raise
        return MultipartUploadResult(
            file_id=file_id,
            upload_id=session.upload_id,
            storage_key=key,
        )

    async def _get_open_multipart(self, file_id: str) -> FileResult:
        file = await self.file_repo.get_by_id(file_id)
        if not file.upload_id:
            raise ValidationException(
                f"File {file_id} is not a multipart upload", field="file_id"
            )
        if file.is_completed:
            raise ValidationException(
                f"Multipart upload for file {file_id} is already completed",
                field="file_id",
            )
        return file

    @traced("file.get_part_upload_url")
    async def get_part_upload_url(self, file_id: str, part_number: int) -> PartUploadResult:
        """Presigned PUT URL for one part of an open multipart session."""
        if part_number < 1:
            raise ValidationException("part_number must be >= 1", field="part_number")
        file = await self._get_open_multipart(file_id)
        url = await self.storage.presign_part_url(
            file.storage_key, file.upload_id or "", part_number, self.part_url_expiry
        )
        return PartUploadResult(
            part_number=part_number,
            upload_url=url,
            expires_in=self.part_url_expiry,
        )

    @traced("file.complete_multipart_upload")
    async def complete_multipart_upload(
        self, file_id: str, parts: list[CompletedPart]
    ) -> FileResult:
        """Forward the ordered part list to the backend, then mark the record completed."""
        if not parts:
            raise ValidationException("At least one part is required", field="parts")
        ordered = sorted(parts, key=lambda p: p.part_number)
        seen: set[int] = set()
        for part in ordered:
            if part.part_number < 1:
                raise ValidationException("part_number must be >= 1", field="parts")
            if part.part_number in seen:
                raise ValidationException(
                    f"Duplicate part_number {part.part_number}", field="parts"
                )
            if not part.etag:
                raise ValidationException(
                    f"Missing etag for part {part.part_number}", field="parts"
                )
            seen.add(part.part_number)

        file = await self._get_open_multipart(file_id)
        add_span_attributes(file_id=file.id, part_count=len(ordered))
        await self.storage.complete_multipart_upload(
            file.storage_key, file.upload_id or "", ordered
        )
        return await self._transition(file, FileStatus.COMPLETED)


class FileQueryService(_FileServiceBase):
    """Read side: records, listings, download URLs and passthrough streams."""

    def __init__(
        self,
        storage_service: IStorageService,
        file_repo: IFileRepository,
        *,
        download_url_expiry: int = DOWNLOAD_URL_EXPIRY_SECONDS,
    ) -> None:
        super().__init__(storage_service, file_repo)
        self.download_url_expiry = download_url_expiry

    async def get_file(self, file_id: str) -> FileResult:
        return await self.file_repo.get_by_id(file_id)

    async def list_files(self, offset: int = 0, limit: int = 100) -> FilePage:
        if offset < 0:
            raise ValidationException("offset must be >= 0", field="offset")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationException(
                f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit"
            )
        items, total = await self.file_repo.list_files(offset=offset, limit=limit)
        return FilePage(items=items, total=total, offset=offset, limit=limit)

    async def _get_completed(self, file_id: str) -> FileResult:
        file = await self.file_repo.get_by_id(file_id)
        if not file.is_completed:
            raise PreconditionFailedException(
                f"File {file_id} is not ready for download",
                file.id,
                file.status.value,
            )
        return file

    @traced("file.get_download_url")
    async def get_download_url(self, file_id: str) -> DownloadUrlResult:
        """Presigned GET URL; inline disposition for previewable types."""
        file = await self._get_completed(file_id)
        options = PresignOptions(
            content_type=file.content_type,
            content_disposition=disposition_for(file.content_type),
        )
        url = await self.storage.presign_download_url(
            file.storage_key, self.download_url_expiry, options
        )
        return DownloadUrlResult(
            file_id=file.id, url=url, expires_in=self.download_url_expiry
        )

    @traced("file.open_download")
    async def open_download(self, file_id: str) -> tuple[FileResult, ObjectStream, str]:
        """Open the object for passthrough streaming. Returns (record, stream, disposition)."""
        file = await self._get_completed(file_id)
        stream = await self.storage.open_download(file.storage_key)
        return file, stream, disposition_for(file.content_type)


class FileDeletionService(_FileServiceBase):
    """Soft-delete the record and remove the object as one unit."""

    @traced("file.delete_file")
    async def delete_file(self, file_id: str) -> None:
        """Soft-delete then delete the object; an object failure rolls the soft delete back.

        Raises:
            ResourceNotFoundException: Unknown or already deleted id.
        """
        async with self.file_repo.transaction():
            file = await self.file_repo.soft_delete(file_id)
            await self.storage.delete(file.storage_key)
        if file.upload_id and not file.is_completed:
            await self._abort_session(file.storage_key, file.upload_id)
        logger.info("Deleted file %s (key=%s)", file.id, file.storage_key)
