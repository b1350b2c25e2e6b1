"""Poll API endpoints: submissions, interaction tracking and analytics.

Handlers are thin: they validate the body through the Pydantic schemas,
call a pipeline and translate service errors into status codes.
"""

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from pollstats.dependencies import (
    ServiceContainer,
    get_interaction_pipeline,
    get_services,
    get_submission_pipeline,
)
from pollstats.logging_config import get_logger
from pollstats.models.database import get_db
from pollstats.schemas.poll import (
    InteractionBatchRequest,
    InteractionRequest,
    PollSubmission,
)
from pollstats.services.errors import (
    DuplicateSubmissionError,
    InvalidSubmissionError,
    StoreError,
)
from pollstats.services.interactions import InteractionPipeline
from pollstats.services.submission import SubmissionPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/api/poll")

INVALID_PAYLOAD = "Invalid request payload"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/submit", status_code=201)
def submit_poll(
    submission: PollSubmission,
    background_tasks: BackgroundTasks,
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline),
):
    """Record a completed poll.

    Notifications are sent after the response has been returned.

    Returns:
        201: {"success": true, "id": <response id>, "message": ...}
        400: A value the database cannot store
        409: Session already submitted a response
        500: Database failure
    """
    try:
        response = pipeline.submit(submission, schedule=background_tasks.add_task)
    except DuplicateSubmissionError:
        return _error(409, "Response already submitted for this session")
    except InvalidSubmissionError:
        return _error(400, INVALID_PAYLOAD)
    except StoreError:
        return _error(500, "Failed to submit poll response")

    return {
        "success": True,
        "id": response.id,
        "message": "Poll response submitted successfully",
    }


@router.post("/interaction", status_code=201)
def track_interaction(
    event: InteractionRequest,
    pipeline: InteractionPipeline = Depends(get_interaction_pipeline),
):
    """Record a single UI interaction.

    Returns:
        201: {"success": true}
        400: A value the database cannot store
        500: Database failure
    """
    try:
        pipeline.record(event)
    except InvalidSubmissionError:
        return _error(400, INVALID_PAYLOAD)
    except StoreError:
        return _error(500, "Failed to track interaction")

    return {"success": True}


@router.post("/interactions/batch", status_code=201)
def track_interactions_batch(
    batch: InteractionBatchRequest,
    pipeline: InteractionPipeline = Depends(get_interaction_pipeline),
):
    """Record a batch of UI interactions for one session, all or nothing.

    Returns:
        201: {"success": true, "processed": <count>}
        400: A value the database cannot store (no event is stored)
        500: Database failure (no event from the batch is stored)
    """
    try:
        processed = pipeline.record_batch(batch.session_id, batch.interactions)
    except InvalidSubmissionError:
        return _error(400, INVALID_PAYLOAD)
    except StoreError:
        return _error(500, "Failed to batch track interactions")

    return {"success": True, "processed": processed}


@router.get("/analytics")
def poll_analytics(
    db: Session = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
):
    """Return the 30-day analytics snapshot (cached for a few minutes).

    Returns:
        200: {totalResponses, averageCompletionTime, averageInteractions,
              averagePriceWilling, interactionTypes, responseData}
        500: Database failure on a cache miss
    """
    try:
        return services.analytics.read(db)
    except StoreError:
        return _error(500, "Failed to generate analytics")
