"""Aggregate statistics and the cached analytics snapshot.

The database is the source of truth; everything here can be recomputed
from the ``poll_responses`` and ``poll_interactions`` tables. The cache
only saves the aggregate queries on repeated reads.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pollstats.logging_config import get_logger
from pollstats.models.interaction import PollInteraction
from pollstats.models.response import PollResponse
from pollstats.services.cache import ANALYTICS_KEY, STATS_KEY, AggregateCache
from pollstats.services.dispatcher import VERY_INTERESTED
from pollstats.services.errors import StoreError

logger = get_logger(__name__)


def _as_float(value: Any) -> Optional[float]:
    # AVG comes back as Decimal on PostgreSQL and float on SQLite
    if value is None:
        return None
    return float(value)


def compute_aggregate_stats(db: Session) -> Dict[str, Any]:
    """Compute all-time aggregate statistics over every response.

    Args:
        db: Database session

    Returns:
        dict with total_responses, avg_completion_time, avg_interactions,
        avg_price_willing and very_interested_count
    """
    row = db.execute(
        select(
            func.count(PollResponse.id),
            func.avg(PollResponse.time_to_complete),
            func.avg(PollResponse.interaction_count),
            func.avg(PollResponse.price_willing),
            func.count(case((PollResponse.interest == VERY_INTERESTED, 1))),
        )
    ).one()

    return {
        "total_responses": int(row[0]),
        "avg_completion_time": _as_float(row[1]),
        "avg_interactions": _as_float(row[2]),
        "avg_price_willing": _as_float(row[3]),
        "very_interested_count": int(row[4]),
    }


def refresh_aggregate_stats(db: Session, cache: AggregateCache, ttl: int) -> Optional[Dict[str, Any]]:
    """Recompute aggregate statistics and store them in the cache.

    Best effort: query and cache failures are logged and reported as None.

    Args:
        db: Database session
        cache: Aggregate cache
        ttl: Expiry in seconds for the cached entry

    Returns:
        The computed statistics, or None if they could not be computed
    """
    try:
        stats = compute_aggregate_stats(db)
    except SQLAlchemyError as e:
        logger.error(f"Error updating stats: {e}")
        return None

    cache.set_json(STATS_KEY, stats, ttl)
    return stats


def generate_analytics(
    db: Session,
    window_days: int = 30,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build the analytics snapshot for the trailing window.

    Runs three queries over rows created within the window:
    per-response rows, interaction counts by type, and scalar averages.

    Args:
        db: Database session
        window_days: Size of the trailing window in days
        now: Reference time (defaults to the current UTC time)

    Returns:
        JSON-ready analytics snapshot

    Raises:
        SQLAlchemyError: If any of the queries fail
    """
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=window_days)

    responses = db.execute(
        select(
            PollResponse.interest,
            PollResponse.frequency,
            PollResponse.pain_point,
            PollResponse.price_willing,
            PollResponse.use_cases,
            PollResponse.features,
            PollResponse.time_to_complete,
            PollResponse.interaction_count,
        )
        .where(PollResponse.created_at > cutoff)
        .order_by(PollResponse.id)
    ).all()

    count_column = func.count(PollInteraction.id)
    interaction_types = db.execute(
        select(PollInteraction.type, count_column)
        .where(PollInteraction.created_at > cutoff)
        .group_by(PollInteraction.type)
        .order_by(count_column.desc(), PollInteraction.type)
    ).all()

    stats = db.execute(
        select(
            func.count(PollResponse.id),
            func.avg(PollResponse.time_to_complete),
            func.avg(PollResponse.interaction_count),
            func.avg(PollResponse.price_willing),
        ).where(PollResponse.created_at > cutoff)
    ).one()

    response_data: List[Dict[str, Any]] = [
        {
            "interest": row.interest,
            "frequency": row.frequency,
            "pain_point": row.pain_point,
            "price_willing": row.price_willing,
            "use_case_count": len(row.use_cases or []),
            "feature_count": len(row.features or []),
            "time_to_complete": row.time_to_complete,
            "interaction_count": row.interaction_count,
        }
        for row in responses
    ]

    return {
        "totalResponses": int(stats[0]),
        "averageCompletionTime": _as_float(stats[1]),
        "averageInteractions": _as_float(stats[2]),
        "averagePriceWilling": _as_float(stats[3]),
        "interactionTypes": [
            {"type": event_type, "count": int(count)}
            for event_type, count in interaction_types
        ],
        "responseData": response_data,
    }


class AnalyticsReader:
    """Serves the analytics snapshot, preferring the cached copy."""

    def __init__(self, cache: AggregateCache, ttl: int = 300, window_days: int = 30):
        self.cache = cache
        self.ttl = ttl
        self.window_days = window_days

    def read(self, db: Session) -> Dict[str, Any]:
        """Return the analytics snapshot.

        On a cache hit the cached payload is returned as is. On a miss (or
        when the cache is down) the snapshot is recomputed and written back.

        Args:
            db: Database session

        Returns:
            Analytics snapshot

        Raises:
            StoreError: If the snapshot has to be recomputed and the database fails
        """
        cached = self.cache.get_json(ANALYTICS_KEY)
        if isinstance(cached, dict):
            logger.debug("Serving analytics from cache")
            return cached

        try:
            analytics = generate_analytics(db, window_days=self.window_days)
        except SQLAlchemyError as e:
            logger.error(f"Error generating analytics: {e}", exc_info=True)
            raise StoreError("Failed to generate analytics") from e

        self.cache.set_json(ANALYTICS_KEY, analytics, self.ttl)
        return analytics
