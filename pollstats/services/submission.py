"""Submission pipeline for recording completed polls.

This module records a poll response, refreshes the cached aggregate
statistics, hands the response to the notification dispatcher and
counts the outcome.
"""

import secrets
import string
import time
from typing import Any, Callable, Optional

from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pollstats.logging_config import get_logger
from pollstats.models.response import PollResponse
from pollstats.schemas.poll import PollSubmission
from pollstats.services.analytics import refresh_aggregate_stats
from pollstats.services.cache import AggregateCache
from pollstats.services.dispatcher import NotificationDispatcher, SubmissionSummary
from pollstats.services.errors import (
    DuplicateSubmissionError,
    InvalidSubmissionError,
    StoreError,
)
from pollstats.services.metrics import PollMetrics

logger = get_logger(__name__)

_SESSION_ALPHABET = string.ascii_lowercase + string.digits

# Runs a callable with arguments, now or later (e.g. BackgroundTasks.add_task)
Scheduler = Callable[..., Any]


def generate_session_id(now_ms: Optional[int] = None) -> str:
    """Generate a session identifier for clients that did not send one.

    Format: ``session_<epoch millis>_<9 random base36 chars>``.

    Example:
        >>> generate_session_id(1700000000000)  # doctest: +SKIP
        'session_1700000000000_k3j9x0a1b'
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(9))
    return f"session_{now_ms}_{suffix}"


def _run_now(func: Callable[..., Any], *args: Any) -> None:
    try:
        func(*args)
    except Exception as e:
        logger.error(f"Notification dispatch failed: {e}", exc_info=True)


class SubmissionPipeline:
    """Records poll submissions.

    Only database failures and duplicates are reported to the caller.
    Cache updates and notifications are best effort.
    """

    def __init__(
        self,
        db: Session,
        cache: AggregateCache,
        metrics: PollMetrics,
        dispatcher: NotificationDispatcher,
        stats_ttl: int = 3600,
    ):
        """Initialize the pipeline.

        Args:
            db: SQLAlchemy database session
            cache: Aggregate cache for the stats entry
            metrics: Metrics registry
            dispatcher: Notification dispatcher
            stats_ttl: Expiry in seconds of the cached stats entry
        """
        self.db = db
        self.cache = cache
        self.metrics = metrics
        self.dispatcher = dispatcher
        self.stats_ttl = stats_ttl

    def submit(self, submission: PollSubmission, schedule: Optional[Scheduler] = None) -> PollResponse:
        """Record a poll submission.

        Flow:
        1. Resolve the session id (generate one when missing)
        2. Reject the submission if the session already responded
        3. Insert the response
        4. Refresh the cached aggregate stats
        5. Schedule notifications
        6. Count the outcome

        Args:
            submission: Validated submission payload
            schedule: Runs the notification dispatch; called inline when omitted

        Returns:
            PollResponse: The stored response

        Raises:
            DuplicateSubmissionError: If the session already submitted a response
            InvalidSubmissionError: If the database rejects a submitted value
            StoreError: If the database fails
        """
        session_id = submission.session_id or generate_session_id()

        try:
            if PollResponse.exists_for_session(self.db, session_id):
                logger.info("Duplicate submission rejected", extra={"session_id": session_id})
                self.metrics.record_submission("duplicate")
                raise DuplicateSubmissionError(session_id)

            response = PollResponse(
                session_id=session_id,
                interest=submission.interest,
                use_cases=submission.use_cases,
                frequency=submission.frequency,
                pain_point=submission.pain_point,
                price_willing=submission.price_willing,
                features=submission.features,
                feedback=submission.feedback,
                notify=submission.notify,
                email=submission.email,
                time_to_complete=submission.time_to_complete,
                interaction_count=submission.interaction_count,
                user_agent=submission.user_agent,
                viewport=submission.viewport,
                referrer=submission.referrer,
            )
            self.db.add(response)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            self._handle_integrity_error(session_id, e)
        except DataError as e:
            # Value the column type cannot hold (length, numeric range, encoding)
            self.db.rollback()
            logger.warning(f"Submission rejected by the database: {e}", extra={"session_id": session_id})
            raise InvalidSubmissionError("Submitted values do not fit the response table") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error submitting poll: {e}", exc_info=True, extra={"session_id": session_id})
            self.metrics.record_submission("error")
            raise StoreError("Failed to submit poll response") from e

        response_id = response.id
        logger.info(f"Recorded poll response {response_id}", extra={"session_id": session_id})

        refresh_aggregate_stats(self.db, self.cache, self.stats_ttl)

        summary = SubmissionSummary(
            interest=response.interest,
            price_willing=response.price_willing,
            use_cases=list(response.use_cases or []),
            email=response.email,
            time_to_complete=response.time_to_complete,
            interaction_count=response.interaction_count,
            submitted_at=response.timestamp,
        )
        (schedule or _run_now)(self.dispatcher.notify, summary)

        self.metrics.record_submission("success")
        return response

    def _handle_integrity_error(self, session_id: str, error: IntegrityError) -> None:
        # Another request for the same session won the race to insert
        try:
            duplicate = PollResponse.exists_for_session(self.db, session_id)
        except SQLAlchemyError:
            duplicate = False

        if duplicate:
            logger.info("Concurrent duplicate submission rejected", extra={"session_id": session_id})
            self.metrics.record_submission("duplicate")
            raise DuplicateSubmissionError(session_id) from error

        logger.error(f"Error submitting poll: {error}", exc_info=True, extra={"session_id": session_id})
        self.metrics.record_submission("error")
        raise StoreError("Failed to submit poll response") from error
