"""Identigraf Uploader Application.

This is the main entry point for the uploader service. The service accepts
image uploads, validates and stages them in a temporary folder for the
matching service, and removes them once each request is done.

Modules:
    - upload: multipart acceptance, validation, cleanup and error translation
    - identigraf: upload endpoints (search, compare)
    - monitoring: liveness and readiness probes

Run with:
    uvicorn uploader.main:app
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from uploader.config import AppSettings, get_settings
from uploader.identigraf.router import router as identigraf_router
from uploader.middleware import RequestLoggingMiddleware
from uploader.monitoring.router import router as monitoring_router
from uploader.upload import UploadError, upload_error_handler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Multipart parser internals log every chunk at debug level.
logging.getLogger("python_multipart").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    settings: AppSettings = app.state.settings

    # Apply configured log level to the root logger so that
    # `server.log_level: "debug"` in uploader.settings.yaml activates DEBUG output.
    configured_level = getattr(logging, settings.server.log_level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", settings.server.log_level.upper())

    upload_dir = settings.upload.temp_directory
    upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(
        f"Uploads staged in {upload_dir} "
        f"(max {settings.upload.max_file_count} files of {settings.upload.max_file_size} bytes)"
    )

    yield  # Application runs here

    logger.info("Application shutdown complete")


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Build the FastAPI application around an immutable settings object."""
    app = FastAPI(
        title="Identigraf Uploader API",
        description="Accepts and stages image uploads for the Identigraf matching service",
        version="1.3.7",
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(UploadError, upload_error_handler)

    app.include_router(identigraf_router)
    app.include_router(monitoring_router)
    return app


app = create_app()
