"""PollResponse model for storing completed survey submissions.

This module defines the PollResponse model which stores one submitted
poll per browser session.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    Index,
    String,
    Text,
    Integer,
    DateTime,
    select,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, Session

from pollstats.models.database import Base, JSONDocument, TextArray


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PollResponse(Base):
    """Model for storing a submitted poll.

    Each browser session may submit at most once. The unique constraint on
    session_id is what rejects a second submission, including two requests
    racing past the application-level duplicate check.

    Attributes:
        id: Primary key
        session_id: Client or server generated session identifier (unique)
        interest: Interest level (e.g., "very-interested")
        use_cases: Selected use cases
        frequency: Expected usage frequency
        pain_point: Main pain point selected
        price_willing: Monthly price the respondent would pay
        features: Desired features
        feedback: Free text feedback
        notify: Whether the respondent wants to be notified
        email: Optional contact email
        time_to_complete: Milliseconds spent filling in the poll
        interaction_count: Number of UI interactions before submitting
        user_agent: Browser user agent
        viewport: Browser viewport dimensions
        referrer: Page referrer
        timestamp: Submission time
        created_at: Row creation time
    """

    __tablename__ = "poll_responses"

    # Primary Key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Session Identification
    session_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Session identifier, one response per session"
    )

    # Answers
    interest: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    use_cases: Mapped[list[str]] = mapped_column(
        TextArray,
        nullable=False,
        default=list,
        comment="Selected use cases"
    )
    frequency: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    pain_point: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    price_willing: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Monthly price the respondent is willing to pay"
    )
    features: Mapped[list[str]] = mapped_column(
        TextArray,
        nullable=False,
        default=list,
        comment="Desired features"
    )
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notify: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Engagement
    time_to_complete: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Milliseconds spent completing the poll"
    )
    interaction_count: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Number of UI interactions before submitting"
    )

    # Client Context
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    viewport: Mapped[Optional[Any]] = mapped_column(JSONDocument, nullable=True)
    referrer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the poll was submitted"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the row was created"
    )

    # Indexes
    __table_args__ = (
        Index("idx_poll_responses_session_id", "session_id"),
        Index("idx_poll_responses_timestamp", "timestamp"),
    )

    @classmethod
    def exists_for_session(cls, db: Session, session_id: str) -> bool:
        """Check if a response was already submitted for a session.

        Args:
            db: Database session
            session_id: Session identifier to check

        Returns:
            bool: True if a response exists, False otherwise
        """
        result = db.execute(
            select(cls.id).where(cls.session_id == session_id)
        ).first()
        return result is not None

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<PollResponse(id={self.id}, "
            f"session_id={self.session_id}, "
            f"interest={self.interest}, "
            f"price_willing={self.price_willing})>"
        )
