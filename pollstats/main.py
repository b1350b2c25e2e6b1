"""FastAPI application entry point for the poll analytics service.

This module initializes the FastAPI application, sets up logging,
builds the shared services, registers routers, and handles global
exception handling.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pollstats import __version__
from pollstats.config import get_settings
from pollstats.dependencies import build_services
from pollstats.logging_config import setup_logging, get_logger
from pollstats.models.database import engine, init_database
from pollstats.routes import health, metrics, poll

logger = get_logger(__name__)

UNMATCHED_ROUTE = "unmatched"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup:
    - Configure logging
    - Create missing tables
    - Build shared services (metrics, cache, notifiers)

    Shutdown:
    - Close the chat HTTP client and cache connections
    - Dispose of the database engine
    """
    settings = get_settings()
    setup_logging()

    init_database()
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(settings)

    logger.info(
        f"Poll service starting - "
        f"Environment: {settings.environment}, "
        f"Port: {settings.port}, "
        f"Database: {settings.database_url.split('@')[-1] if '@' in settings.database_url else 'configured'}, "
        f"Cache: {'enabled' if app.state.services.cache.enabled else 'disabled'}, "
        f"Version: {__version__}"
    )

    yield

    logger.info("SIGTERM received, shutting down gracefully")
    app.state.services.close()
    engine.dispose()


app = FastAPI(
    title="Poll Analytics Service",
    description="Poll submissions, interaction tracking and cached analytics",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().get_allowed_origins_list(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def record_request_metrics(request: Request, call_next):
    """Count every request and observe its duration by route template."""
    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        services = getattr(request.app.state, "services", None)
        if services is not None:
            route = request.scope.get("route")
            # Unmatched paths share one label so scans cannot create new series
            route_path = getattr(route, "path", None) or UNMATCHED_ROUTE
            services.metrics.observe_request(
                request.method, route_path, status_code, time.perf_counter() - start
            )


@app.get("/")
def root() -> dict:
    """Root endpoint with basic API information."""
    settings = get_settings()
    return {
        "service": "Poll Analytics Service",
        "version": __version__,
        "environment": settings.environment,
        "status": "operational"
    }


# Register routers
app.include_router(health.router, tags=["Health"])
app.include_router(metrics.router, tags=["Metrics"])
app.include_router(poll.router, tags=["Poll"])


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed payloads with a 400 and a short error message."""
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    logger.info(f"Rejected invalid payload for {request.method} {request.url.path}: {details}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request payload", "details": details},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions.

    Logs all unhandled exceptions and returns a generic error response
    to prevent leaking sensitive information.
    """
    logger.error(
        f"Unhandled exception for {request.method} {request.url}: {exc}",
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )
