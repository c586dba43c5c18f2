"""
Cache Utility
Async get/set/ttl cache collaborators: in-process memory or Upstash Redis REST.
"""

import json
import time
from typing import Any, Optional

import httpx

from app.config import settings
from app.utils.logger import app_logger


class MemoryCache:
    """
    In-process cache with per-key expiry.
    Used when no Redis credentials are configured (local development, tests).
    """

    def __init__(self, default_ttl: Optional[int] = None):
        self.default_ttl = default_ttl or settings.REDIS_TTL_DEFAULT
        self._store: dict[str, tuple[float, str]] = {}
        self._clock = time.monotonic

    async def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None

        expires_at, serialized = entry
        if self._clock() >= expires_at:
            self._store.pop(key, None)
            return None
        return json.loads(serialized)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON-serializable value; values are copied through JSON."""
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as e:
            app_logger.warning(f"Cache SET skipped for key {key}: {e}")
            return False

        self._purge_expired()
        self._store[key] = (self._clock() + (ttl or self.default_ttl), serialized)
        return True

    async def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def flush_all(self) -> bool:
        self._store.clear()
        return True

    async def close(self) -> None:
        return None

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._store.items() if now >= expires_at]
        for key in expired:
            del self._store[key]


class RedisCache:
    """
    Redis cache client using Upstash REST API.
    Provides simple get/set/delete operations with TTL support.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None):
        self.base_url = (base_url or settings.UPSTASH_REDIS_REST_URL or "").rstrip("/")
        self.token = token or settings.UPSTASH_REDIS_REST_TOKEN
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        self.client = httpx.AsyncClient(headers=self.headers, timeout=10.0)

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value (deserialized from JSON) or None if not found
        """
        try:
            response = await self.client.get(f"{self.base_url}/get/{key}")
            response.raise_for_status()
            result = response.json().get("result")

            if result is None:
                return None

            try:
                return json.loads(result)
            except (json.JSONDecodeError, TypeError):
                return result

        except httpx.HTTPError as e:
            app_logger.warning(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            ttl: Time to live in seconds (default: settings.REDIS_TTL_DEFAULT)

        Returns:
            True if successful, False otherwise
        """
        try:
            payload = ["SETEX", key, ttl or settings.REDIS_TTL_DEFAULT, json.dumps(value)]
            response = await self.client.post(self.base_url, json=payload)
            response.raise_for_status()
            return True

        except (httpx.HTTPError, TypeError, ValueError) as e:
            app_logger.warning(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        return await self._command(["DEL", key]) is not None

    async def exists(self, key: str) -> bool:
        return await self._command(["EXISTS", key]) == 1

    async def flush_all(self) -> bool:
        """Clear all keys from cache. Use with caution!"""
        return await self._command(["FLUSHDB"]) is not None

    async def close(self) -> None:
        """Close the HTTP client connection"""
        await self.client.aclose()

    async def _command(self, command: list[Any]) -> Optional[Any]:
        try:
            response = await self.client.post(self.base_url, json=command)
            response.raise_for_status()
            return response.json().get("result")
        except httpx.HTTPError as e:
            app_logger.warning(f"Redis {command[0]} error: {e}")
            return None


_cache: Optional[MemoryCache | RedisCache] = None


def get_cache() -> MemoryCache | RedisCache:
    """Shared cache collaborator; Redis when Upstash credentials are configured."""
    global _cache
    if _cache is None:
        _cache = RedisCache() if settings.redis_configured else MemoryCache()
    return _cache
