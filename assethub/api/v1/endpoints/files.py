"""File API: thin routes delegating to FileUploadService, FileQueryService and FileDeletionService."""

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile

from assethub.api.v1.dependencies import (
    get_file_deletion_service,
    get_file_query_service,
    get_file_query_service_for_write,
    get_file_upload_service,
)
from assethub.api.v1.responses import content_disposition, streaming_download
from assethub.application.interfaces.storage import CompletedPart
from assethub.application.use_cases.files import (
    FileDeletionService,
    FileQueryService,
    FileUploadService,
)
from assethub.core.limiter import limit_upload, limit_writes
from assethub.schemas.file import (
    CompleteMultipartRequest,
    DirectUploadResponse,
    DownloadUrlResponse,
    FileListResponse,
    FileResponse,
    MultipartUploadResponse,
    PartUrlRequest,
    PartUrlResponse,
    PresignedUploadResponse,
    UploadInitRequest,
)

router = APIRouter()


@router.post("/upload", response_model=DirectUploadResponse, status_code=201)
@limit_upload
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    name: str | None = Form(None),
    content_type: str | None = Form(None),
    upload_svc: FileUploadService = Depends(get_file_upload_service),
    query_svc: FileQueryService = Depends(get_file_query_service_for_write),
):
    """Proxy the bytes to storage (content type sniffed) and return the record with a download URL."""
    display_name = name or file.filename or ""
    created = await upload_svc.upload_direct(
        display_name,
        content_type or file.content_type,
        file.size or 0,
        file.file,
    )
    download = await query_svc.get_download_url(created.id)
    return DirectUploadResponse(
        file=FileResponse.model_validate(created),
        download_url=download.url,
        expires_in=download.expires_in,
    )


@router.post("/presigned", response_model=PresignedUploadResponse, status_code=201)
@limit_writes
async def init_presigned_upload(
    request: Request,
    body: UploadInitRequest,
    upload_svc: FileUploadService = Depends(get_file_upload_service),
):
    """Create a pending record and a single-shot PUT URL (client uploads, then confirms)."""
    result = await upload_svc.init_presigned_upload(body.name, body.content_type, body.size)
    return PresignedUploadResponse.model_validate(result)


@router.post("/multipart", response_model=MultipartUploadResponse, status_code=201)
@limit_writes
async def init_multipart_upload(
    request: Request,
    body: UploadInitRequest,
    upload_svc: FileUploadService = Depends(get_file_upload_service),
):
    """Open a multipart session and record it as uploading."""
    result = await upload_svc.init_multipart_upload(body.name, body.content_type, body.size)
    return MultipartUploadResponse.model_validate(result)


@router.post("/{file_id}/confirm", response_model=FileResponse)
@limit_writes
async def confirm_upload(
    request: Request,
    file_id: str,
    upload_svc: FileUploadService = Depends(get_file_upload_service),
):
    """Mark a presigned single upload completed."""
    return FileResponse.model_validate(await upload_svc.confirm_upload(file_id))


@router.post("/{file_id}/parts", response_model=PartUrlResponse)
async def get_part_upload_url(
    file_id: str,
    body: PartUrlRequest,
    upload_svc: FileUploadService = Depends(get_file_upload_service),
):
    """Presigned PUT URL for one part of an open multipart upload."""
    result = await upload_svc.get_part_upload_url(file_id, body.part_number)
    return PartUrlResponse.model_validate(result)


@router.post("/{file_id}/complete", response_model=FileResponse)
@limit_writes
async def complete_multipart_upload(
    request: Request,
    file_id: str,
    body: CompleteMultipartRequest,
    upload_svc: FileUploadService = Depends(get_file_upload_service),
):
    """Finalize a multipart upload with the part numbers and ETags the client collected."""
    parts = [CompletedPart(part_number=p.part_number, etag=p.etag) for p in body.parts]
    return FileResponse.model_validate(
        await upload_svc.complete_multipart_upload(file_id, parts)
    )


@router.get("", response_model=FileListResponse)
async def list_files(
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    query_svc: FileQueryService = Depends(get_file_query_service),
):
    """List live files, newest first."""
    page = await query_svc.list_files(offset=offset, limit=limit)
    return FileListResponse(
        items=[FileResponse.model_validate(f) for f in page.items],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
    )


@router.get("/{file_id}/download-url", response_model=DownloadUrlResponse)
async def get_download_url(
    file_id: str,
    query_svc: FileQueryService = Depends(get_file_query_service),
):
    """Presigned download URL for a completed file. Defined before /{file_id} for route precedence."""
    return DownloadUrlResponse.model_validate(await query_svc.get_download_url(file_id))


@router.get("/{file_id}/download")
async def download_file(
    file_id: str,
    query_svc: FileQueryService = Depends(get_file_query_service),
):
    """Stream the object through the service."""
    file, stream, disposition = await query_svc.open_download(file_id)
    return streaming_download(
        stream.body,
        file.content_type,
        stream.content_length,
        content_disposition(disposition, file.name),
    )


@router.get("/{file_id}", response_model=FileResponse)
async def get_file(
    file_id: str,
    query_svc: FileQueryService = Depends(get_file_query_service),
):
    """Get file metadata by id."""
    return FileResponse.model_validate(await query_svc.get_file(file_id))


@router.delete("/{file_id}", status_code=204)
@limit_writes
async def delete_file(
    request: Request,
    file_id: str,
    deletion_svc: FileDeletionService = Depends(get_file_deletion_service),
):
    """Soft-delete the record and remove the object."""
    await deletion_svc.delete_file(file_id)
    return Response(status_code=204)
