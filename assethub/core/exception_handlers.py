"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from assethub.core.config import get_settings
from assethub.domain.exceptions import (
    AssetHubException,
    PreconditionFailedException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UpstreamFailureException,
    ValidationException,
)
from assethub.infrastructure.exceptions import StorageNotFoundError, StoragePermissionError

logger = logging.getLogger(__name__)

# First matching class wins (subclasses before their bases).
_EXCEPTION_STATUS: tuple[tuple[type[AssetHubException], int], ...] = (
    (ResourceNotFoundException, 404),
    (StorageNotFoundError, 404),
    (StoragePermissionError, 403),
    (ValidationException, 400),
    (PreconditionFailedException, 409),
    (UpstreamFailureException, 502),
    (SqlNotConfiguredException, 503),
)


def status_for(exc: AssetHubException) -> int:
    """HTTP status for a domain exception (400 when unmapped)."""
    for exc_type, status in _EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 400


def _assethub_exception_handler(
    request: Request, exc: AssetHubException
) -> JSONResponse:
    """Return JSON from AssetHubException.to_dict() with appropriate status code."""
    status = status_for(exc)
    if status >= 500:
        logger.error(
            "%s %s failed: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.details.get("reason", exc.error_code),
        )
    return JSONResponse(
        status_code=status,
        content=jsonable_encoder(exc.to_dict()),
    )


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with validation error details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail, "details": {}},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": detail, "details": {}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: AssetHubException (and
    subclasses), RequestValidationError, StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(AssetHubException, _assethub_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
