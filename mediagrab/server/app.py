"""FastAPI application for the mediagrab server.

This module provides the FastAPI application with:
- Metadata lookup and download submission endpoints
- Job status polling
- Listing and serving finished files
- Request IDs, request logging and JSON error handling
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from mediagrab import __version__
from mediagrab.config import MediagrabConfig, get_config
from mediagrab.core.pipeline import DownloadPipeline
from mediagrab.logging import get_logger, setup_logging
from mediagrab.server.exceptions import (
    MediagrabAPIException,
    general_exception_handler,
    http_exception_handler,
    mediagrab_exception_handler,
    validation_exception_handler,
)
from mediagrab.server.middleware.request_id import RequestIDMiddleware
from mediagrab.server.middleware.request_logging import RequestLoggingMiddleware
from mediagrab.server.routes import files, health, media, status

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging on startup and cancels in-flight downloads on shutdown.
    """
    setup_logging()
    health.set_server_start_time()
    pipeline: DownloadPipeline = app.state.pipeline
    logger.info(
        "mediagrab server ready",
        download_root=str(pipeline.download_root.resolve()),
    )

    yield

    logger.info("Shutting down mediagrab server...")
    await pipeline.shutdown()


def create_app(
    pipeline: Optional[DownloadPipeline] = None,
    config: Optional[MediagrabConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        pipeline: Download pipeline to serve (built from config if omitted)
        config: Configuration (global config if omitted)

    Returns:
        Configured FastAPI application instance
    """
    config = config or get_config()
    pipeline = pipeline or DownloadPipeline.from_config(config)

    app = FastAPI(
        title="mediagrab API",
        description="Fetch, transcode and merge online video streams as tracked jobs",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.pipeline = pipeline

    # Middleware added last runs first: request IDs must exist before logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    cors_origins = config.cors_origin_list()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_exception_handler(MediagrabAPIException, mediagrab_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(media.router, tags=["Media"])
    app.include_router(status.router, tags=["Status"])
    app.include_router(files.router, tags=["Files"])
    app.include_router(health.router, tags=["Health"])

    return app


# Application instance
app = create_app()
