"""Best-effort aggregate cache backed by Redis.

Every method here swallows and logs cache errors and reports the outcome
through its return value. Callers never wrap cache calls in try/except;
a missing or broken Redis simply means cache misses and skipped writes.
"""

import json
from typing import Any, Optional

import redis

from pollstats.logging_config import get_logger

logger = get_logger(__name__)

STATS_KEY = "poll_stats"
ANALYTICS_KEY = "poll_analytics"
DAILY_SUBMISSIONS_PREFIX = "daily_submissions_"


class AggregateCache:
    """Advisory key-value cache for derived statistics.

    Usage:
        cache = AggregateCache.from_url("redis://localhost:6379/0")

        snapshot = cache.get_json(ANALYTICS_KEY)
        if snapshot is None:
            snapshot = recompute()
            cache.set_json(ANALYTICS_KEY, snapshot, ttl=300)
    """

    def __init__(self, client: Optional[redis.Redis]):
        """Initialize the cache.

        Args:
            client: Redis client, or None to run with the cache disabled
        """
        self.client = client

    @classmethod
    def from_url(cls, url: Optional[str], socket_timeout: float = 2.0) -> "AggregateCache":
        """Create a cache for the given Redis URL.

        Connections are opened lazily, so an unreachable server does not
        prevent startup.

        Args:
            url: Redis connection string, or None to disable caching
            socket_timeout: Seconds to wait on connect and on each command

        Returns:
            AggregateCache instance
        """
        if not url:
            logger.warning("REDIS_URL not configured, aggregate cache disabled")
            return cls(None)

        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            decode_responses=True,
        )
        return cls(client)

    @property
    def enabled(self) -> bool:
        """Whether a cache backend is configured."""
        return self.client is not None

    def get_json(self, key: str) -> Optional[Any]:
        """Read and decode a JSON value.

        Returns:
            Decoded value, or None on miss, decode error or cache failure
        """
        if self.client is None:
            return None
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Redis cache read failed: {e}", extra={"cache_key": key})
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Discarding undecodable cache entry: {e}", extra={"cache_key": key})
            return None

    def set_json(self, key: str, value: Any, ttl: int) -> bool:
        """Encode and store a JSON value with an expiry.

        Returns:
            True if the value was stored, False otherwise
        """
        if self.client is None:
            return False
        try:
            self.client.setex(key, ttl, json.dumps(value))
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Redis cache write failed: {e}", extra={"cache_key": key})
            return False

    def increment(self, key: str, ttl: int) -> Optional[int]:
        """Increment a counter and (re)set its expiry.

        Returns:
            Counter value after the increment, or None on failure
        """
        if self.client is None:
            return None
        try:
            pipe = self.client.pipeline()
            pipe.incr(key)
            pipe.expire(key, ttl)
            value, _ = pipe.execute()
            return int(value)
        except redis.RedisError as e:
            logger.warning(f"Redis counter update failed: {e}", extra={"cache_key": key})
            return None

    def ping(self) -> bool:
        """Check the cache is reachable."""
        if self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis not available: {e}")
            return False

    def close(self) -> None:
        """Release pooled connections."""
        if self.client is None:
            return
        try:
            self.client.close()
        except redis.RedisError as e:
            logger.warning(f"Error closing Redis client: {e}")
