"""Liveness and readiness endpoints for monitoring and deployment.

``/health`` only says the process is up. ``/ready`` requires the database
and checks the cache without depending on it.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pollstats.dependencies import ServiceContainer, get_services
from pollstats.logging_config import get_logger
from pollstats.models.database import get_db

logger = get_logger(__name__)

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Example response:
        {
            "status": "healthy",
            "timestamp": "2026-10-19T09:00:00+00:00"
        }
    """
    return {"status": "healthy", "timestamp": _now_iso()}


@router.get("/ready")
def readiness_check(
    db: Session = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
):
    """Readiness check.

    Verifies that:
    1. The database answers a trivial query (required)
    2. The cache answers a ping (reported, not required)

    Returns:
        200: {"status": "ready", "timestamp": ..., "cache": "connected" | "unavailable"}
        503: {"status": "not ready", "error": ...}
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "error": "database connection failed"},
        )

    cache_status = "connected" if services.cache.ping() else "unavailable"
    if cache_status == "unavailable":
        logger.warning("Aggregate cache unavailable, serving in degraded mode")

    return {"status": "ready", "timestamp": _now_iso(), "cache": cache_status}
