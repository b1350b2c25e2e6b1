"""Unit tests for the best-effort aggregate cache."""

from unittest.mock import MagicMock

import redis

from pollstats.services.cache import AggregateCache


class TestAggregateCache:
    """Tests against an in-process fake Redis."""

    def test_set_and_get_json(self, cache):
        payload = {"totalResponses": 3, "averagePriceWilling": 12.5, "interactionTypes": []}

        assert cache.set_json("poll_analytics", payload, ttl=300) is True
        assert cache.get_json("poll_analytics") == payload

    def test_set_json_applies_ttl(self, cache, redis_client):
        cache.set_json("poll_stats", {"total_responses": 1}, ttl=3600)

        assert 0 < redis_client.ttl("poll_stats") <= 3600

    def test_get_missing_key(self, cache):
        assert cache.get_json("poll_analytics") is None

    def test_undecodable_entry_is_a_miss(self, cache, redis_client):
        redis_client.set("poll_analytics", "{not json")

        assert cache.get_json("poll_analytics") is None

    def test_increment_sets_expiry(self, cache, redis_client):
        assert cache.increment("daily_submissions_2026-10-19", ttl=86400) == 1
        assert cache.increment("daily_submissions_2026-10-19", ttl=86400) == 2
        assert 0 < redis_client.ttl("daily_submissions_2026-10-19") <= 86400

    def test_ping(self, cache):
        assert cache.ping() is True


class TestCacheOutage:
    """Cache failures degrade to misses and skipped writes."""

    def test_operations_swallow_connection_errors(self, cache, redis_server):
        redis_server.connected = False

        assert cache.get_json("poll_analytics") is None
        assert cache.set_json("poll_analytics", {"a": 1}, ttl=300) is False
        assert cache.increment("daily_submissions_2026-10-19", ttl=86400) is None
        assert cache.ping() is False

    def test_timeouts_are_swallowed(self):
        client = MagicMock()
        client.get.side_effect = redis.TimeoutError("timed out")
        client.setex.side_effect = redis.TimeoutError("timed out")
        cache = AggregateCache(client)

        assert cache.get_json("poll_stats") is None
        assert cache.set_json("poll_stats", {}, ttl=10) is False

    def test_unserializable_value_is_not_stored(self, cache):
        assert cache.set_json("poll_stats", {"when": object()}, ttl=10) is False


class TestDisabledCache:
    """A cache without a Redis URL behaves as permanently empty."""

    def test_from_url_without_url(self):
        cache = AggregateCache.from_url(None)

        assert cache.enabled is False
        assert cache.get_json("poll_stats") is None
        assert cache.set_json("poll_stats", {}, ttl=10) is False
        assert cache.increment("k", ttl=10) is None
        assert cache.ping() is False
        cache.close()

    def test_from_url_is_lazy(self):
        """Test an unreachable server does not fail construction."""
        cache = AggregateCache.from_url("redis://127.0.0.1:1/0", socket_timeout=0.1)

        assert cache.enabled is True
        assert cache.get_json("poll_stats") is None
        cache.close()
