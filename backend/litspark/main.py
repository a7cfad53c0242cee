"""
LitSpark Uploads — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, exception
       handling and lifecycle management in one place.
Who:   Called by uvicorn (uvicorn litspark.main:app).

Exception Handlers:
    ValidationError / UploadLimitError → 400 (payload from UploadGateway.translate_error)
    InvalidInputError                  → 400
    NotFoundError                      → 404
    FileStorageError                   → 500 (details logged, not returned)
    Exception (fallback)               → 500

Lifecycle:
    Startup:  configure logging, create both upload partitions
    Shutdown: log only (no pooled resources to release)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from litspark import __version__
from litspark.config import settings
from litspark.exceptions import (
    FileStorageError,
    InvalidInputError,
    LitSparkError,
    NotFoundError,
    ValidationError,
)
from litspark.middleware.logging import RequestLoggingMiddleware
from litspark.middleware.request_id import RequestIDMiddleware, request_id_var
from litspark.routes import health, uploads
from litspark.schemas.upload import ErrorResponse
from litspark.services.file_service import file_service
from litspark.services.upload_service import upload_gateway

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """
    Configure the root logger once for the whole application.

    Format: 2024-01-15T12:00:00 [INFO] litspark.services.file_service: File stored: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("LitSpark Uploads %s starting up...", __version__)

    try:
        file_service.ensure_partitions()
    except OSError as e:
        # Keep serving: /health reports the partition as unavailable
        logger.error("Could not create upload directories: %s", str(e))
    logger.info("Public uploads:  %s", file_service.public_root)
    logger.info("Private uploads: %s", file_service.private_root)
    logger.info(
        "Limits: %d bytes per file, %d files per upload",
        settings.max_file_size,
        settings.max_files_per_upload,
    )

    yield

    logger.info("LitSpark Uploads shutting down.")


def _error_body(exc: LitSparkError, rid: str, include_details: bool = False) -> dict:
    return ErrorResponse(
        error=exc.error_code,
        message=exc.message,
        details=exc.context if include_details and exc.context else None,
        request_id=rid,
    ).model_dump(exclude_none=True)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Exception handlers never expose file system paths or OS errors; those
    are logged server-side with the request ID.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Rejected upload: say why and what would have been accepted."""
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        payload = upload_gateway.translate_error(exc)
        if payload is None:
            return JSONResponse(
                status_code=exc.status_code,
                content=_error_body(exc, rid, include_details=True),
            )
        content = payload.model_dump()
        content.update(error=exc.error_code, request_id=rid)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(request: Request, exc: InvalidInputError):
        rid = request_id_var.get("")
        logger.warning("[%s] Invalid input: %s", rid, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc, rid))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc, rid))

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        """File system error: generic message out, details into the log."""
        rid = request_id_var.get("")
        logger.error("[%s] File storage error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc, rid))

    @app.exception_handler(LitSparkError)
    async def handle_app_error(request: Request, exc: LitSparkError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc, rid))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace goes to the log only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


def create_app() -> FastAPI:
    app = FastAPI(
        title="LitSpark Uploads API",
        description=(
            "File uploads for the LitSpark agency platform: allow-list validation, "
            "public/private storage and accessibility metadata for every file."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


# uvicorn expects `litspark.main:app`
app = create_app()
