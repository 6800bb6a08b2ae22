"""Response helpers shared by the file and storage routes."""

from collections.abc import AsyncIterator
from urllib.parse import quote

from fastapi.responses import StreamingResponse


def content_disposition(disposition: str, filename: str | None) -> str:
    """Build a Content-Disposition value: '<disposition>; filename="<name>"'.

    Non-ASCII names get an RFC 5987 filename* parameter next to an ASCII fallback.
    """
    if not filename:
        return disposition
    safe = filename.replace("\\", "_").replace('"', "_").replace("\r", "").replace("\n", "")
    ascii_name = safe.encode("ascii", "replace").decode("ascii").replace("?", "_")
    value = f'{disposition}; filename="{ascii_name}"'
    if ascii_name != safe:
        value += f"; filename*=UTF-8''{quote(safe, safe='')}"
    return value


def streaming_download(
    body: AsyncIterator[bytes],
    content_type: str,
    content_length: int,
    disposition: str | None,
) -> StreamingResponse:
    """Passthrough response with Content-Type, Content-Length and Content-Disposition."""
    headers = {"Content-Length": str(content_length)}
    if disposition:
        headers["Content-Disposition"] = disposition
    return StreamingResponse(body, media_type=content_type, headers=headers)
