"""
Main entrypoint for the DevCamper API.

This module assembles the FastAPI application, sets up logging, error
handling and CORS and includes the versioned routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``, e.g.::

    uvicorn devcamper_api.app.main:app --reload

Collaborators (document store, geocoder, mailer, photo storage) are
attached to ``app.state``.  ``create_app`` accepts replacements for each
of them, which is how the tests run against a temporary database and
fake external services.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import SQLiteDocumentStore
from .core.errors import ApiError
from .core.logging_config import setup_logging
from .core.store import DocumentStore
from .services.geocoder import Geocoder, build_geocoder
from .services.mailer import LoggingMailer, Mailer
from .services.photo_storage import LocalPhotoStorage, PhotoStorage

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"success": false, "error": ...}``."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ())[1:])
            messages.append(f"{location}: {error['msg']}" if location else error["msg"])
        return error_response(status.HTTP_400_BAD_REQUEST, ", ".join(messages) or "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error")


def create_app(
    store: Optional[DocumentStore] = None,
    geocoder: Optional[Geocoder] = None,
    mailer: Optional[Mailer] = None,
    photo_storage: Optional[PhotoStorage] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    store : Optional[DocumentStore]
        Storage backend.  Defaults to ``SQLiteDocumentStore`` on
        ``settings.database_url``.
    geocoder : Optional[Geocoder]
        Address lookup.  Defaults to MapQuest when an API key is
        configured, otherwise a geocoder that finds nothing.
    mailer : Optional[Mailer]
        Outgoing mail.  Defaults to writing messages to the log.
    photo_storage : Optional[PhotoStorage]
        Where bootcamp photos go.  Defaults to ``settings.file_upload_path``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Initialise logging before anything else so that the setup below
    # can log.
    setup_logging(settings.log_level, settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Create tables and indexes before the first request.
        app.state.store.migrate()
        logger.info("%s %s started", settings.project_name, settings.api_version)
        yield

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug, lifespan=lifespan)
    app.state.store = store or SQLiteDocumentStore()
    app.state.geocoder = geocoder or build_geocoder(settings)
    app.state.mailer = mailer or LoggingMailer()
    app.state.photo_storage = photo_storage or LocalPhotoStorage(settings.file_upload_path)

    origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Mount versioned routes under /api/v1.
    app.include_router(v1_router, prefix="/api/v1")
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
