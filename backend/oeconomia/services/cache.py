"""
Cache service for upstream API responses.

Redis-backed JSON cache with TTL. When Redis cannot be reached the service
reports itself unavailable and every operation becomes a no-op, so callers
never have to handle cache failures.
"""
import json
import logging
from typing import Any, Optional
import redis

logger = logging.getLogger(__name__)


class CacheService:
    """Manage response caching with Redis."""

    def __init__(self, redis_url: str, key_prefix: str = "oeconomia"):
        """
        Connect to Redis.

        Args:
            redis_url: redis://[password@]host[:port]/[db]
            key_prefix: Namespace prepended to every key
        """
        self.key_prefix = key_prefix
        self.redis_client = None
        self.available = False
        try:
            self.redis_client = redis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
            )
            self.redis_client.ping()
            self.available = True
            logger.info("Cache service initialized successfully")
        except Exception as e:
            logger.warning(f"Cache service unavailable: {str(e)}")

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value (deserialized from JSON) or None if not found/cache unavailable
        """
        if not self.available:
            return None

        try:
            value = self.redis_client.get(self._key(key))
            if value is None:
                return None
            return json.loads(value)
        except Exception as e:
            logger.debug(f"Cache get error for key {key}: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl_seconds: int = 60) -> bool:
        """
        Set value in cache with TTL.

        Returns:
            True if successful, False otherwise
        """
        if not self.available or ttl_seconds <= 0:
            return False

        try:
            self.redis_client.setex(self._key(key), ttl_seconds, json.dumps(value))
            return True
        except Exception as e:
            logger.debug(f"Cache set error for key {key}: {str(e)}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache. Returns True if a key was removed."""
        if not self.available:
            return False

        try:
            return self.redis_client.delete(self._key(key)) > 0
        except Exception as e:
            logger.debug(f"Cache delete error for key {key}: {str(e)}")
            return False

    def close(self) -> None:
        if self.redis_client is not None:
            try:
                self.redis_client.close()
            except Exception as e:
                logger.debug(f"Cache close error: {str(e)}")
