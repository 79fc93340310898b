"""Redis service for response caching and rate limiting."""

import json
import logging
from typing import Any, Callable, Optional

import redis

from newsroom.config import settings

logger = logging.getLogger(__name__)

# Redis client (singleton)
redis_client: Optional[redis.Redis] = None
_connection_attempted = False


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client.

    Returns None when REDIS_URL is empty or the first connection attempt
    failed; the application then runs without caching and rate limiting.
    """
    global redis_client, _connection_attempted

    if redis_client is None and not _connection_attempted:
        _connection_attempted = True
        if not settings.REDIS_URL:
            logger.info("REDIS_URL not set, continuing without Redis")
            return None
        try:
            client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )
            client.ping()
            redis_client = client
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except redis.RedisError as e:
            logger.warning("Redis connection failed, continuing without Redis cache: %s", e)
            redis_client = None

    return redis_client


def reset_redis_client(client: Optional[redis.Redis] = None):
    """Replace the shared client; the next get_redis_client() reconnects when client is None."""
    global redis_client, _connection_attempted
    redis_client = client
    _connection_attempted = client is not None


def is_redis_available() -> bool:
    """Check if Redis is available."""
    client = get_redis_client()
    if client is None:
        return False

    try:
        client.ping()
        return True
    except redis.RedisError:
        return False


class RedisCache:
    """
    JSON values under a key prefix.

    Every operation degrades to its fallback value when Redis is not
    configured or a command fails, so callers never see redis errors.
    """

    def __init__(self, prefix: str = "cache"):
        self.prefix = prefix

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _run(self, name: str, fallback: Any, operation: Callable[[redis.Redis], Any]) -> Any:
        client = get_redis_client()
        if client is None:
            return fallback

        try:
            return operation(client)
        except redis.RedisError as e:
            logger.warning("Redis %s on %s:* failed: %s", name, self.prefix, e)
            return fallback

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on a miss."""
        raw = self._run("GET", None, lambda client: client.get(self._make_key(key)))
        return json.loads(raw) if raw else None

    def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store a JSON-serializable value for ttl seconds."""
        def store(client):
            client.setex(self._make_key(key), ttl, json.dumps(value))
            return True

        return self._run("SET", False, store)

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key of this prefix matching a glob pattern such as "response:*"."""
        def purge(client):
            keys = list(client.scan_iter(match=self._make_key(pattern)))
            return client.delete(*keys) if keys else 0

        return self._run("DELETE_PATTERN", 0, purge)

    def increment(self, key: str, amount: int = 1, ttl: Optional[int] = None) -> Optional[int]:
        """Add to a counter; ttl only applies when this call created the counter."""
        def bump(client):
            full_key = self._make_key(key)
            value = client.incrby(full_key, amount)
            if ttl and value == amount:
                client.expire(full_key, ttl)
            return value

        return self._run("INCRBY", None, bump)


class RateLimiter:
    """Fixed-window request counter per client identifier."""

    def __init__(self, max_requests: int = 60, window_seconds: int = 60):
        self.cache = RedisCache(prefix="ratelimit")
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def hit(self, identifier: str) -> int:
        """Record a request and return how many remain in the window."""
        current = self.cache.increment(identifier, ttl=self.window_seconds)
        if current is None:
            # Unlimited without Redis
            return self.max_requests
        return self.max_requests - current

    def is_allowed(self, identifier: str) -> bool:
        return self.hit(identifier) >= 0


api_cache = RedisCache(prefix="api")
rate_limiter = RateLimiter(max_requests=settings.RATE_LIMIT_PER_MINUTE, window_seconds=60)
