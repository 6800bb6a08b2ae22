"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
No business logic here. See assethub.core.lifespan and
assethub.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
optionally clear get_settings cache) before importing or calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from assethub.api.v1 import api_router
from assethub.core.config import get_settings
from assethub.core.exception_handlers import register_exception_handlers
from assethub.core.lifespan import create_lifespan
from assethub.core.limiter import limiter
from assethub.middleware import (
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    TimeoutMiddleware,
)
from assethub.shared.telemetry import setup_logging

API_PREFIX = "/api/v1"
# Token uploads are sized by the client (multipart parts); streams have no deadline.
STORAGE_TOKEN_PREFIX = f"{API_PREFIX}/storage/"
STREAMING_SUFFIXES = ("/download",)


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # Middleware: first added = innermost. Effective order: timeout → size limit → request ID → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", settings.request_id_header],
    )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_bytes=settings.max_upload_size,
        exempt_prefixes=(STORAGE_TOKEN_PREFIX,),
    )
    app.add_middleware(
        TimeoutMiddleware,
        timeout_seconds=settings.request_timeout_seconds,
        exempt_prefixes=(STORAGE_TOKEN_PREFIX,),
        exempt_suffixes=STREAMING_SUFFIXES,
    )

    app.include_router(api_router, prefix=API_PREFIX)

    return app


app = create_app()
