"""Redis cache manager with connection pooling and retry logic."""

import json
import logging
from typing import Any, Callable, Optional

import redis
from redis.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.config import Settings

logger = logging.getLogger(__name__)

_redis_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type((ConnectionError, TimeoutError)),
    reraise=True,
)


class CacheManager:
    """
    Redis cache manager:
    - Connection pooling for performance
    - Automatic retry with exponential backoff on transient errors
    - Graceful degradation on failures (callers just recompute)
    - TTL management
    """

    def __init__(self, settings: Settings, client: Optional[redis.Redis] = None):
        """Initialize cache manager with settings (and optionally a ready client)."""
        self.settings = settings
        self.enabled = settings.CACHE_ENABLED
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = client
        self._is_connected = client is not None

        logger.info(f"CacheManager initialized. Enabled: {self.enabled}")

    def connect(self) -> None:
        """Establish Redis connection with connection pooling."""
        if not self.enabled:
            logger.info("Cache is disabled. Skipping Redis connection.")
            return
        if self._client is not None:
            return

        try:
            self._pool = ConnectionPool(
                host=self.settings.REDIS_HOST,
                port=self.settings.REDIS_PORT,
                db=self.settings.REDIS_DB,
                password=self.settings.REDIS_PASSWORD or None,
                max_connections=self.settings.REDIS_MAX_CONNECTIONS,
                socket_keepalive=self.settings.REDIS_SOCKET_KEEPALIVE,
                socket_timeout=self.settings.REDIS_SOCKET_TIMEOUT,
                retry_on_timeout=self.settings.REDIS_RETRY_ON_TIMEOUT,
                health_check_interval=self.settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            self._client.ping()
            self._is_connected = True

            logger.info(
                f"Redis cache connected to {self.settings.REDIS_HOST}:{self.settings.REDIS_PORT}"
            )

        except RedisError as e:
            logger.error(f"Failed to connect to Redis cache: {e}")
            logger.warning("Cache will operate in degraded mode (no caching)")
            self._client = None
            self._is_connected = False
            self.enabled = False

    def disconnect(self) -> None:
        """Close Redis connection and cleanup resources."""
        if self._client:
            try:
                self._client.close()
                logger.info("Redis cache connection closed")
            except RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")

        if self._pool:
            self._pool.disconnect()

        self._client = None
        self._is_connected = False

    @property
    def available(self) -> bool:
        return self.enabled and self._client is not None

    def is_healthy(self) -> bool:
        """Check if Redis connection is healthy."""
        if not self.available:
            return False
        try:
            self._client.ping()
            return True
        except RedisError:
            return False

    @_redis_retry
    def _execute(self, command: Callable[..., Any], *args, **kwargs) -> Any:
        return command(*args, **kwargs)

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns the JSON-decoded value, or None on miss, when disabled,
        or when Redis misbehaves.
        """
        if not self.available:
            return None

        try:
            value = self._execute(self._client.get, key)
        except RedisError as e:
            logger.warning(f"Redis error getting key '{key}': {e}. Continuing without cache.")
            return None

        if value is None:
            logger.debug(f"Cache MISS: {key}")
            return None

        try:
            logger.debug(f"Cache HIT: {key}")
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to deserialize cached value for key '{key}': {e}")
            self.delete(key)
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set a JSON-serializable value with a TTL in seconds."""
        if not self.available:
            return False

        ttl = ttl or self.settings.CACHE_DEFAULT_TTL
        try:
            serialized_value = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize value for key '{key}': {e}")
            return False

        try:
            result = self._execute(self._client.setex, key, ttl, serialized_value)
        except RedisError as e:
            logger.warning(f"Redis error setting key '{key}': {e}. Continuing without cache.")
            return False

        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return bool(result)

    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.available:
            return False

        try:
            result = self._execute(self._client.delete, key)
        except RedisError as e:
            logger.error(f"Redis error deleting key '{key}': {e}")
            return False

        logger.debug(f"Cache DELETE: {key}")
        return bool(result)

    def incr_with_ttl(self, key: str, ttl: int) -> Optional[int]:
        """
        Increment a counter, starting its TTL on first increment.

        Returns the new count, or None when the cache is unavailable.
        """
        if not self.available:
            return None

        try:
            count = self._execute(self._client.incr, key)
            if count == 1:
                self._execute(self._client.expire, key, ttl)
        except RedisError as e:
            logger.warning(f"Redis error incrementing '{key}': {e}")
            return None

        return int(count)

    def get_stats(self) -> dict:
        """Summary for the health endpoint."""
        if not self.available:
            return {"enabled": False, "connected": False}

        return {
            "enabled": True,
            "connected": self.is_healthy(),
            "host": f"{self.settings.REDIS_HOST}:{self.settings.REDIS_PORT}",
            "db": self.settings.REDIS_DB,
        }


# Singleton instance (initialized by main.py)
_cache_manager_instance: Optional[CacheManager] = None


def get_cache_manager() -> Optional[CacheManager]:
    """Get the global cache manager instance."""
    return _cache_manager_instance


def set_cache_manager(manager: CacheManager) -> None:
    """Set the global cache manager instance."""
    global _cache_manager_instance
    _cache_manager_instance = manager
