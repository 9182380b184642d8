"""FOMS Backend - Main FastAPI Application

Fiber Optic Management System API: soft-delete retention and purge of
construction assets (vaults, midpoints, cables) and their photos.

This module creates and configures the FastAPI application, including:
- Admin maintenance and observability routers
- Middleware (request ID correlation, CORS)
- Exception handlers
- Lifespan that selects the storage provider and runs the purge scheduler
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import get_settings
from .database import SessionLocal
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .purge.router import router as purge_router
from .purge.scheduler import PurgeScheduler
from .storage import build_storage_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Startup: select the storage provider (fatal if misconfigured), start the
      purge scheduler unless Retention.PurgeJobEnabled is false
    - Shutdown: stop the scheduler, letting an in-flight pass finish
    """
    settings = get_settings()
    logger.info("FOMS API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    app.state.storage = build_storage_provider(settings.STORAGE)

    scheduler = None
    if settings.RETENTION.purge_job_enabled:
        scheduler = PurgeScheduler.from_settings(settings.RETENTION, SessionLocal, app.state.storage)
        scheduler.start()
    else:
        logger.info("In-process purge scheduler disabled")
    app.state.purge_scheduler = scheduler

    yield

    logger.info("FOMS API shutting down...")
    if scheduler is not None:
        await scheduler.stop()


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Return field-level details for request validation errors."""
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"errors": exc.errors()}
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Log unhandled exceptions and return a generic 500."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


def create_app() -> FastAPI:
    settings = get_settings()

    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    docs_enabled = settings.ENVIRONMENT != "production"
    app = FastAPI(
        title="FOMS API",
        description="Fiber Optic Management System: asset retention and purge",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    # Request ID Middleware (must be first for proper correlation)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(observability_router)
    app.include_router(purge_router)

    return app


app = create_app()
