"""Redis connection and the JSON read-through cache used for provider lookups."""

import json
from collections.abc import Awaitable, Callable
from typing import Any, cast

import redis
import structlog

from app.config import settings

logger = structlog.get_logger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Shared Redis client, created lazily on first use."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password or None,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Whether Redis answers a PING."""
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    """Drop the shared client and its pool."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """
    JSON cache on top of Redis.

    Every operation degrades to a miss (or a no-op) when Redis is
    unreachable, so callers fall back to the database. Values are stored as
    JSON; UUIDs and datetimes come back as strings.
    """

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """Cached value for ``key``, or None on a miss, corrupt entry or Redis error."""
        try:
            raw = cast(str | None, self.redis.get(key))
        except redis.RedisError as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_value_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store ``value`` under ``key``, expiring after ``ttl`` seconds when given."""
        payload = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
        except redis.RedisError as e:
            logger.warning("cache_set_failed", key=key, error=str(e))
            return False
        return True

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: int | None = None,
    ) -> Any | None:
        """
        Read-through lookup.

        Returns the cached value when present; otherwise awaits ``loader``,
        caches a non-None result and returns it.
        """
        cached = self.get_json(key)
        if cached is not None:
            return cached

        value = await loader()
        if value is not None:
            self.set_json(key, value, ttl=ttl)
        return value

    def delete(self, key: str) -> bool:
        """Remove one key."""
        try:
            self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))
            return False
        return True

    def delete_pattern(self, pattern: str) -> int:
        """
        Remove every key matching a glob pattern, e.g. ``provider:list:*``.

        Uses SCAN rather than KEYS so large keyspaces do not block the server.

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis.scan_iter(match=pattern))
            if not keys:
                return 0
            return cast(int, self.redis.delete(*keys))
        except redis.RedisError as e:
            logger.warning("cache_delete_pattern_failed", pattern=pattern, error=str(e))
            return 0
