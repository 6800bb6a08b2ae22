"""Request correlation ids.

Each HTTP request gets an id: the client's header value when it is a short
token of [A-Za-z0-9_-], otherwise a fresh uuid4 hex. The id is echoed on the
response, kept on request.state, and bound to request_id_var so log lines
written while serving the request carry it. Raw ASGI, so streamed downloads
are not buffered.
"""

import re
import uuid
from typing import Callable

from assethub.shared.telemetry.logging import request_id_var

REQUEST_ID_MAX_LENGTH = 64
_SAFE_REQUEST_ID = re.compile(rf"[A-Za-z0-9_-]{{1,{REQUEST_ID_MAX_LENGTH}}}")


def resolve_request_id(headers: list[tuple[bytes, bytes]], header: bytes) -> str:
    """Forward a safe client id; mint one when it is missing or unsafe."""
    for name, value in headers:
        if name.lower() != header:
            continue
        candidate = value.decode("latin-1").strip()
        if _SAFE_REQUEST_ID.fullmatch(candidate):
            return candidate
        break
    return uuid.uuid4().hex


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Bind a request id for the request and add it to the response headers."""
    header = header_name.lower().encode("latin-1")

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = resolve_request_id(scope.get("headers", []), header)
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header, request_id.encode("latin-1")),
                ]
            await send(message)

        token = request_id_var.set(request_id)
        try:
            await app(scope, receive, send_with_id)
        finally:
            request_id_var.reset(token)

    return asgi_app
