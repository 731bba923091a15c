"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
wires adapters into app.state, and manages lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.auth.memory import InMemoryAuthProvider
from src.adapters.repository.memory import InMemoryApplicationRepository, InMemoryProfileStore
from src.adapters.repository.postgres import (
    PostgresApplicationRepository,
    PostgresProfileStore,
    run_migrations,
)
from src.adapters.smtp.console import ConsoleMailer
from src.adapters.storage.memory import InMemoryDocumentStore
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Driving Licence Portal API v1 - Signup, profile, verification and theory exam",
    },
]


def configure_adapters(app: FastAPI, settings: Settings) -> ConnectionPool | None:
    """
    Create adapters for the configured storage backend and store them in app.state.

    Returns:
        The connection pool when the postgres backend is used, else None
    """
    app.state.auth_provider = InMemoryAuthProvider(ConsoleMailer(), bcrypt_cost=settings.bcrypt_cost)
    app.state.document_store = InMemoryDocumentStore()
    app.state.pool = None

    if settings.storage_backend == "memory":
        app.state.profile_store = InMemoryProfileStore()
        app.state.application_repository = InMemoryApplicationRepository()
        return None

    logger.info("Connecting to database...")
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    app.state.pool = pool
    app.state.profile_store = PostgresProfileStore(pool)
    app.state.application_repository = PostgresApplicationRepository(pool)
    return pool


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates adapters for the configured storage backend
    - Creates the connection pool and runs migrations for postgres
    - Closes the connection pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application with %s storage...", settings.storage_backend)
    pool = configure_adapters(app, settings)
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="licence-portal",
    description="Driving Licence Portal API - Application workflow and eligibility engine",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint.

    Validates database connectivity when the postgres backend is in use.
    """
    pool = request.app.state.pool
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}
