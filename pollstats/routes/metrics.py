"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from pollstats.dependencies import ServiceContainer, get_services
from pollstats.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/metrics")
def metrics(services: ServiceContainer = Depends(get_services)) -> Response:
    """Expose the metrics registry in the Prometheus text format.

    An exposition failure only fails this request.
    """
    try:
        body = services.metrics.render()
    except Exception as e:
        logger.error(f"Error generating metrics: {e}", exc_info=True)
        return PlainTextResponse("Error generating metrics", status_code=500)

    return Response(content=body, media_type=services.metrics.content_type)
