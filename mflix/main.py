import hmac
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from mflix.api.routes.health import router as health_router
from mflix.core.config import AppEnvironment, settings
from mflix.core.db import close_client, get_database
from mflix.core.errors import MflixError, get_status_code
from mflix.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    get_request_id,
    metrics_endpoint,
)
from mflix.db.indexes import ensure_indexes

# Configure structured logging before creating logger
if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Error detail keys that identify an account and are not echoed back in prod
_SENSITIVE_DETAIL_KEYS = frozenset({"email", "user_id", "jwt", "password"})


def _sanitize_error_details(details: dict) -> dict:
    """
    Strip account identifiers from error details in production.

    Args:
        details: Original error details dictionary

    Returns:
        Sanitized details dictionary
    """
    if settings.app_env != AppEnvironment.PROD:
        return details
    return {
        key: "[REDACTED]" if key in _SENSITIVE_DETAIL_KEYS else value
        for key, value in details.items()
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Tie the MongoDB client to the application's lifetime."""
    if settings.mongodb_create_indexes_on_startup:
        await ensure_indexes(get_database())
    yield
    await close_client()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Sets up:
    - MongoDB client lifecycle (lifespan)
    - Observability middleware (metrics, request tracking)
    - Exception handlers for domain errors
    - Health routers
    - Metrics endpoint for Prometheus scraping
    """
    app = FastAPI(
        title="MFlix Data Access",
        description="User and session persistence for the MFlix catalog",
        version="0.1.0",
        lifespan=lifespan,
    )

    if settings.observability_enabled:
        app.add_middleware(ObservabilityMiddleware)

    # ============================================================================
    # Exception Handlers
    # ============================================================================

    @app.exception_handler(MflixError)
    async def mflix_error_handler(request: Request, exc: MflixError) -> JSONResponse:
        """
        Map domain errors to HTTP status codes and structured error bodies.
        """
        status_code = get_status_code(exc)
        context = {
            "details": exc.details,
            "path": request.url.path,
            "request_id": get_request_id(),
        }

        if status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}", extra=context)
        else:
            logger.warning(f"{exc.__class__.__name__}: {exc.message}", extra=context)

        return JSONResponse(
            status_code=status_code,
            content={
                "error": exc.__class__.__name__,
                "message": exc.message,
                "details": _sanitize_error_details(exc.details),
            },
        )

    app.include_router(health_router, prefix=API_PREFIX)

    # ============================================================================
    # Metrics Endpoint (Prometheus) - Token Protected
    # ============================================================================

    async def protected_metrics(request: Request) -> Response:
        """
        Prometheus metrics endpoint.

        Requires the X-Metrics-Token header when METRICS_TOKEN is set.
        """
        expected_token = settings.metrics_token
        if expected_token:
            metrics_token = request.headers.get("X-Metrics-Token")
            if not hmac.compare_digest(metrics_token or "", expected_token):
                logger.warning(
                    "Unauthorized metrics access attempt",
                    extra={"security_event": True, "event_type": "METRICS_ACCESS_DENIED"},
                )
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Invalid metrics token",
                )
        return metrics_endpoint()

    if settings.observability_enabled:
        app.add_route("/metrics", protected_metrics)

    return app


app = create_app()
