"""Token endpoints backing presigned URLs of the local storage backend.

Mirror what S3 does for a presigned URL: PUT bodies for single-shot and part
uploads (returning the ETag header), GET for downloads. Other backends
answer 404 here because their presigned URLs point at the vendor.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from assethub.api.v1.dependencies import get_local_storage
from assethub.api.v1.responses import streaming_download
from assethub.application.services import mime_resolver
from assethub.core.limiter import limit_parts
from assethub.infrastructure.external.storage.local_storage import (
    TOKEN_DOWNLOAD,
    TOKEN_PART,
    TOKEN_UPLOAD,
    LocalStorageService,
)

router = APIRouter()

_INVALID_TOKEN = "Invalid or expired token"


@router.put("/upload/{token}")
@limit_parts
async def put_object(
    request: Request,
    token: str,
    storage: Annotated[LocalStorageService, Depends(get_local_storage)],
):
    """Store the request body for a presigned single-shot upload."""
    grant = storage.validate_token(token, TOKEN_UPLOAD)
    if grant is None:
        raise HTTPException(status_code=403, detail=_INVALID_TOKEN)
    sent_type = request.headers.get("content-type")
    if mime_resolver.base_type(sent_type) != mime_resolver.base_type(grant.content_type):
        raise HTTPException(
            status_code=403,
            detail="Content-Type does not match the presigned upload",
        )
    etag = await storage.write_from_token(grant, request.stream())
    return Response(status_code=200, headers={"ETag": f'"{etag}"'})


@router.put("/parts/{token}")
@limit_parts
async def put_part(
    request: Request,
    token: str,
    storage: Annotated[LocalStorageService, Depends(get_local_storage)],
):
    """Stage one multipart part; the ETag header is what the client sends on complete."""
    grant = storage.validate_token(token, TOKEN_PART)
    if grant is None or grant.upload_id is None or grant.part_number is None:
        raise HTTPException(status_code=403, detail=_INVALID_TOKEN)
    etag = await storage.write_part(
        grant.key, grant.upload_id, grant.part_number, request.stream()
    )
    return Response(status_code=200, headers={"ETag": f'"{etag}"'})


@router.get("/download/{token}")
async def get_object(
    token: str,
    storage: Annotated[LocalStorageService, Depends(get_local_storage)],
):
    """Stream the object for a presigned download, honoring the signed overrides."""
    grant = storage.validate_token(token, TOKEN_DOWNLOAD)
    if grant is None:
        raise HTTPException(status_code=403, detail=_INVALID_TOKEN)
    stream = await storage.open_download(grant.key)
    return streaming_download(
        stream.body,
        grant.content_type or stream.content_type,
        stream.content_length,
        grant.content_disposition,
    )
