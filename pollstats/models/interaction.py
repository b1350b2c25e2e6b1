"""PollInteraction model for storing granular UI interaction events."""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    BigInteger,
    Index,
    String,
    Text,
    Integer,
    DateTime,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from pollstats.models.database import Base, JSONDocument


class PollInteraction(Base):
    """Model for a single UI interaction captured by the poll page.

    Interactions reference a session by identifier only; the session does
    not need to have submitted a response yet, and events may arrive out
    of order.

    Attributes:
        id: Primary key
        session_id: Session the interaction belongs to
        timestamp: Client-side event time in epoch milliseconds
        type: Event type (click, focus, change, ...)
        element: Identifier of the target element
        value: Captured value
        question: Question the element belongs to
        time_on_page: Cumulative milliseconds on page at event time
        user_agent: Browser user agent
        viewport: Browser viewport dimensions
        created_at: Row creation time
    """

    __tablename__ = "poll_interactions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    session_id: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Client-side event time in epoch milliseconds"
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    element: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    question: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    time_on_page: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    viewport: Mapped[Optional[Any]] = mapped_column(JSONDocument, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_poll_interactions_session_id", "session_id"),
        Index("idx_poll_interactions_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<PollInteraction(id={self.id}, "
            f"session_id={self.session_id}, "
            f"type={self.type}, "
            f"question={self.question})>"
        )
