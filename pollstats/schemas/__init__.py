"""Pydantic schemas for data validation.

This package contains the request models for poll submissions and
interaction tracking.
"""

from pollstats.schemas.poll import (
    PollSubmission,
    InteractionPayload,
    InteractionRequest,
    InteractionBatchRequest,
    coerce_price,
    normalize_list,
)

__all__ = [
    "PollSubmission",
    "InteractionPayload",
    "InteractionRequest",
    "InteractionBatchRequest",
    "coerce_price",
    "normalize_list",
]
