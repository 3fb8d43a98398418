"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.api.dependencies import build_email_sender, build_object_storage
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.referrals import ReferralRegistry, ReferralResolver

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Conference Registration API v1 - Submit delegate, chair and admin applications",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Loads the referral code registry
    - Builds the storage and email adapters
    - Closes connection pool and HTTP clients on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    # Run migrations
    logger.info("Running database migrations...")
    run_migrations(pool)

    registry = ReferralRegistry.from_json_file(settings.referral_codes_path)

    # Store shared state in app state for dependency injection
    app.state.pool = pool
    app.state.referral_resolver = ReferralResolver(
        registry,
        suggestion_limit=settings.referral_suggestion_limit,
        max_distance=settings.referral_max_distance,
    )
    app.state.object_storage = build_object_storage(settings)
    app.state.email_sender = build_email_sender(settings)

    logger.info(
        "Application startup complete (storage=%s, email=%s)",
        settings.storage_backend,
        settings.email_backend,
    )

    yield

    # Shutdown
    logger.info("Shutting down application...")
    for adapter in (app.state.object_storage, app.state.email_sender):
        close = getattr(adapter, "close", None)
        if close is not None:
            close()
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="vofmun-registration",
    description="Conference Registration API - Intake pipeline for delegate, chair and admin sign-ups",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report unparseable request bodies with the same shape as field errors."""
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"status": "error", "message": "Validation error", "errors": errors},
    )


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    # Validate database connectivity
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}


def serve() -> None:
    """Run the API with uvicorn using HOST, PORT and LOG_LEVEL from settings."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    serve()
