"""
Network summary cache.

Optional short-TTL memoization of per-root dashboard summaries in Redis.
Claim verification never reads from it.
"""

import json

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import RedisError

from heaven.config.settings import settings
from heaven.network.types import NetworkSummary


KEY_PREFIX = "heaven:network_summary:"


def get_redis_client() -> redis.Redis:
    """
    Create a Redis client with settings from config.

    Returns:
        redis.Redis: Configured Redis client with decode_responses=True
    """
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )


class SummaryCache:
    """
    Redis-backed summary memoization.

    Cache errors never fail a request: reads fall back to recomputation
    and writes are skipped.
    """

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int) -> None:
        """
        Initialize summary cache.

        Args:
            redis_client: Async Redis client
            ttl_seconds: Entry lifetime
        """
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    async def get(self, user_id: str) -> NetworkSummary | None:
        """Get a memoized summary, or None on miss or cache failure."""
        try:
            raw = await self.redis_client.get(KEY_PREFIX + user_id)
        except RedisError as e:
            logger.warning(f"Summary cache read failed for user {user_id}: {e}")
            return None

        if raw is None:
            return None
        return NetworkSummary.from_dict(json.loads(raw))

    async def set(self, summary: NetworkSummary) -> None:
        """Memoize a summary for ttl_seconds."""
        try:
            await self.redis_client.setex(
                KEY_PREFIX + summary.user_id,
                self.ttl_seconds,
                json.dumps(summary.to_dict()),
            )
        except RedisError as e:
            logger.warning(
                f"Summary cache write failed for user {summary.user_id}: {e}"
            )

    async def invalidate(self, user_id: str) -> None:
        """Drop a memoized summary."""
        try:
            await self.redis_client.delete(KEY_PREFIX + user_id)
        except RedisError as e:
            logger.warning(f"Summary cache invalidation failed for user {user_id}: {e}")


def build_summary_cache() -> SummaryCache | None:
    """
    Create the summary cache configured in settings.

    Returns:
        SummaryCache, or None when NETWORK_SUMMARY_CACHE_TTL is 0
    """
    if settings.network_summary_cache_ttl <= 0:
        return None
    return SummaryCache(get_redis_client(), settings.network_summary_cache_ttl)
