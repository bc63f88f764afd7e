"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from clubauth.adapters.repository.memory import InMemoryAccountRepository, InMemoryOtpRepository
from clubauth.adapters.repository.postgres import (
    PostgresAccountRepository,
    PostgresOtpRepository,
    run_migrations,
)
from clubauth.adapters.smtp.console import ConsoleEmailSender
from clubauth.adapters.smtp.retrying import RetryingEmailSender
from clubauth.adapters.smtp.smtp import SmtpEmailSender
from clubauth.api.errors import register_exception_handlers
from clubauth.api.v1 import router as v1_router
from clubauth.config.settings import Settings, get_settings
from clubauth.domain.ports import EmailSender

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Club Authentication API v1 - Sign up, verify email, log in and recover passwords",
    },
]


def build_email_sender(settings: Settings) -> EmailSender:
    """
    Choose the email sender from settings.

    Without an SMTP host codes are logged to the console; otherwise the
    SMTP sender is wrapped in the retry policy.
    """
    if not settings.smtp_host:
        logger.info("No SMTP host configured; one-time codes will be logged")
        return ConsoleEmailSender()

    smtp = SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.email_from,
        username=settings.smtp_user,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        subject=settings.email_subject,
        ttl_minutes=settings.otp_ttl_seconds // 60,
    )
    return RetryingEmailSender(
        smtp,
        attempts=settings.email_retry_attempts,
        wait_seconds=settings.email_retry_wait_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and runs migrations (postgres backend)
    - Constructs repositories and the email sender
    - Closes connection pool on shutdown
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")

    pool = None
    if settings.storage_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=True,
        )

        logger.info("Running database migrations...")
        run_migrations(pool)

        app.state.account_repository = PostgresAccountRepository(pool)
        app.state.otp_repository = PostgresOtpRepository(pool)
    else:
        logger.warning("Using in-memory storage; data is lost on restart")
        app.state.account_repository = InMemoryAccountRepository()
        app.state.otp_repository = InMemoryOtpRepository()

    app.state.pool = pool
    app.state.email_sender = build_email_sender(settings)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="clubauth",
    description="Club Authentication API - Email-verified signup with one-time codes",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = getattr(request.app.state, "pool", None)
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}
