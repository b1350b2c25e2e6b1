"""Interaction pipeline for recording UI interaction events."""

import time
from typing import Sequence

from sqlalchemy.exc import DataError, SQLAlchemyError
from sqlalchemy.orm import Session

from pollstats.logging_config import get_logger
from pollstats.models.interaction import PollInteraction
from pollstats.schemas.poll import InteractionPayload, InteractionRequest
from pollstats.services.errors import InvalidSubmissionError, StoreError
from pollstats.services.metrics import PollMetrics

logger = get_logger(__name__)


def build_interaction(session_id: str, payload: InteractionPayload) -> PollInteraction:
    """Build an interaction row from a request payload.

    Events without a client timestamp are stamped with the server time.
    """
    timestamp = payload.timestamp
    if timestamp is None:
        timestamp = int(time.time() * 1000)

    return PollInteraction(
        session_id=session_id,
        timestamp=timestamp,
        type=payload.type,
        element=payload.element,
        value=payload.value,
        question=payload.question,
        time_on_page=payload.time_on_page,
        user_agent=payload.user_agent,
        viewport=payload.viewport,
    )


class InteractionPipeline:
    """Records single and batched interaction events.

    Metrics are only counted for events that were committed.
    """

    def __init__(self, db: Session, metrics: PollMetrics):
        self.db = db
        self.metrics = metrics

    def record(self, event: InteractionRequest) -> PollInteraction:
        """Record one interaction event.

        Args:
            event: Validated interaction request

        Returns:
            PollInteraction: The stored event

        Raises:
            InvalidSubmissionError: If the database rejects a value
            StoreError: If the insert fails
        """
        row = build_interaction(event.session_id, event)
        try:
            self.db.add(row)
            self.db.commit()
        except DataError as e:
            self.db.rollback()
            logger.warning(f"Interaction rejected by the database: {e}", extra={"session_id": event.session_id})
            raise InvalidSubmissionError("Interaction values do not fit the interaction table") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error tracking interaction: {e}", exc_info=True, extra={"session_id": event.session_id})
            raise StoreError("Failed to track interaction") from e

        self.metrics.record_interaction(event.type, event.question)
        return row

    def record_batch(self, session_id: str, interactions: Sequence[InteractionPayload]) -> int:
        """Record a batch of interaction events atomically.

        Events are inserted in the given order inside one transaction.
        If any insert fails the whole batch is rolled back.

        Args:
            session_id: Session every event in the batch belongs to
            interactions: Events in client order

        Returns:
            Number of events recorded

        Raises:
            InvalidSubmissionError: If the database rejects a value (nothing is stored)
            StoreError: If any insert fails (nothing from the batch is stored)
        """
        try:
            for payload in interactions:
                self.db.add(build_interaction(session_id, payload))
                self.db.flush()
            self.db.commit()
        except DataError as e:
            self.db.rollback()
            logger.warning(
                f"Interaction batch rejected by the database: {e}",
                extra={"session_id": session_id, "event_count": len(interactions)},
            )
            raise InvalidSubmissionError("Interaction values do not fit the interaction table") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Error batch tracking interactions: {e}",
                exc_info=True,
                extra={"session_id": session_id, "event_count": len(interactions)},
            )
            raise StoreError("Failed to batch track interactions") from e

        for payload in interactions:
            self.metrics.record_interaction(payload.type, payload.question)

        logger.info(
            f"Recorded {len(interactions)} interactions",
            extra={"session_id": session_id, "event_count": len(interactions)},
        )
        return len(interactions)
