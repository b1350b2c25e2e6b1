"""Pydantic schemas for poll submission and interaction requests.

Field aliases keep the exact JSON field names the browser client sends
(``sessionId``, ``use-cases``, ``timeToComplete``, ...). Values are
normalized here, at the boundary, so the services only ever see clean
Python types.
"""

import math
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

# Column limits of the poll tables; larger values are rejected here instead
# of failing the insert
INT_MAX = 2**31 - 1
BIGINT_MAX = 2**63 - 1


def coerce_price(value: Any) -> Optional[int]:
    """Coerce a submitted price to an integer.

    Accepts integers, integral floats and numeric strings. Empty values
    become None.

    Args:
        value: Raw value from the request body

    Returns:
        Integer price or None when no price was given

    Raises:
        ValueError: If the value cannot be read as a whole number

    Example:
        >>> coerce_price("25")
        25
        >>> coerce_price(None) is None
        True
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("price_willing must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        raise ValueError("price_willing must be an integer")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return int(stripped)
        except ValueError:
            pass
        try:
            as_float = float(stripped)
        except ValueError:
            raise ValueError(f"price_willing must be an integer. Got: {value!r}")
        if math.isfinite(as_float) and as_float.is_integer():
            return int(as_float)
        raise ValueError(f"price_willing must be an integer. Got: {value!r}")
    raise ValueError("price_willing must be an integer")


def normalize_list(value: Any) -> List[str]:
    """Normalize a multi-choice answer to a list of strings.

    Absent values become an empty list, a single scalar becomes a
    one-element list, and empty entries are dropped.

    Example:
        >>> normalize_list("travel")
        ['travel']
        >>> normalize_list(None)
        []
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item not in (None, "")]
    if value == "" or value is False:
        return []
    return [str(value)]


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        raise ValueError("Expected a scalar value")
    return str(value)


class PollSubmission(BaseModel):
    """Poll submission sent by the browser when the respondent finishes.

    Example:
        {
            "sessionId": "session_1700000000000_k3j9x0a1b",
            "interest": "very-interested",
            "use-cases": ["travel", "business"],
            "price_willing": "25",
            "email": "someone@example.com",
            "timeToComplete": 45000,
            "interactionCount": 17
        }
    """

    session_id: Optional[str] = Field(default=None, max_length=255, alias="sessionId")
    interest: Optional[str] = Field(default=None, max_length=50)
    use_cases: List[str] = Field(default_factory=list, alias="use-cases")
    frequency: Optional[str] = Field(default=None, max_length=50)
    pain_point: Optional[str] = Field(default=None, max_length=100, alias="pain-point")
    price_willing: Optional[int] = Field(default=None, ge=-INT_MAX - 1, le=INT_MAX)
    features: List[str] = Field(default_factory=list)
    feedback: Optional[str] = None
    notify: Optional[str] = Field(default=None, max_length=10)
    email: Optional[str] = Field(default=None, max_length=255)
    time_to_complete: Optional[int] = Field(default=None, ge=0, le=INT_MAX, alias="timeToComplete")
    interaction_count: Optional[int] = Field(default=None, ge=0, le=INT_MAX, alias="interactionCount")
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    viewport: Optional[Any] = None
    referrer: Optional[str] = None

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("session_id", "email", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty strings as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("price_willing", mode="before")
    @classmethod
    def validate_price(cls, v: Any) -> Optional[int]:
        """Reject prices that are not whole numbers instead of storing garbage."""
        return coerce_price(v)

    @field_validator("use_cases", "features", mode="before")
    @classmethod
    def validate_multi_choice(cls, v: Any) -> List[str]:
        """Accept a single value or a list for multi-choice answers."""
        return normalize_list(v)

    @field_validator("notify", mode="before")
    @classmethod
    def validate_notify(cls, v: Any) -> Optional[str]:
        """Store the notify preference as text."""
        return _optional_text(v)


class InteractionPayload(BaseModel):
    """A single UI interaction as captured by the poll page."""

    timestamp: Optional[int] = Field(default=None, ge=0, le=BIGINT_MAX)
    type: str = Field(..., min_length=1, max_length=50)
    element: Optional[str] = Field(default=None, max_length=100)
    value: Optional[str] = None
    question: Optional[str] = None
    time_on_page: Optional[int] = Field(default=None, ge=0, le=INT_MAX, alias="timeOnPage")
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    viewport: Optional[Any] = None

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("value", "element", "question", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> Optional[str]:
        """Captured values may be numbers or booleans; store them as text."""
        return _optional_text(v)


class InteractionRequest(InteractionPayload):
    """Single interaction request, tied to a session."""

    session_id: str = Field(..., min_length=1, max_length=255, alias="sessionId")


class InteractionBatchRequest(BaseModel):
    """Batch of interactions for one session, persisted atomically."""

    session_id: str = Field(..., min_length=1, max_length=255, alias="sessionId")
    interactions: List[InteractionPayload] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
    }
