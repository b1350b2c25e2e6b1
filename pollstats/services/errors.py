"""Errors raised by the poll services.

Only these errors reach the client. Cache and notification failures are
handled where they happen and never surface as exceptions.
"""


class PollServiceError(Exception):
    """Base class for client-visible poll service errors."""
    pass


class InvalidSubmissionError(PollServiceError):
    """Raised when a request payload is malformed."""
    pass


class DuplicateSubmissionError(PollServiceError):
    """Raised when a response was already recorded for the session."""

    def __init__(self, session_id: str):
        super().__init__(f"Response already submitted for session {session_id}")
        self.session_id = session_id


class StoreError(PollServiceError):
    """Raised when the database fails during a request."""
    pass
