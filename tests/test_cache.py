"""Tests for cache collaborators."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.utils import cache as cache_module
from app.utils.cache import MemoryCache, RedisCache, get_cache


@pytest.mark.asyncio
async def test_memory_cache_round_trip() -> None:
    cache = MemoryCache(default_ttl=60)

    assert await cache.set("strategy:AAPL", {"score": 74}) is True
    assert await cache.get("strategy:AAPL") == {"score": 74}
    assert await cache.exists("strategy:AAPL") is True
    assert await cache.delete("strategy:AAPL") is True
    assert await cache.get("strategy:AAPL") is None


@pytest.mark.asyncio
async def test_memory_cache_expiry() -> None:
    cache = MemoryCache(default_ttl=60)
    clock = {"now": 1000.0}
    cache._clock = lambda: clock["now"]

    await cache.set("key", "value", ttl=10)
    clock["now"] += 9
    assert await cache.get("key") == "value"
    clock["now"] += 2
    assert await cache.get("key") is None


@pytest.mark.asyncio
async def test_memory_cache_set_evicts_expired_keys() -> None:
    """Keys that are never read again do not accumulate past their TTL."""
    cache = MemoryCache(default_ttl=60)
    clock = {"now": 0.0}
    cache._clock = lambda: clock["now"]

    for i in range(1000):
        await cache.set(f"strategy:AAPL:7:{i}", i, ttl=10)
    assert len(cache._store) == 1000

    clock["now"] = 100.0
    await cache.set("strategy:AAPL:7:fresh", "value", ttl=10)

    assert list(cache._store) == ["strategy:AAPL:7:fresh"]


@pytest.mark.asyncio
async def test_memory_cache_rejects_unserializable() -> None:
    cache = MemoryCache()
    assert await cache.set("key", object()) is False
    assert await cache.get("key") is None


@pytest.mark.asyncio
async def test_redis_get_decodes_json() -> None:
    cache = RedisCache(base_url="https://test.upstash.io", token="token")
    response = MagicMock()
    response.raise_for_status = MagicMock()
    response.json = MagicMock(return_value={"result": '{"score": 74}'})
    cache.client = AsyncMock()
    cache.client.get = AsyncMock(return_value=response)

    assert await cache.get("strategy:AAPL") == {"score": 74}
    cache.client.get.assert_awaited_once_with("https://test.upstash.io/get/strategy:AAPL")


@pytest.mark.asyncio
async def test_redis_set_uses_setex() -> None:
    cache = RedisCache(base_url="https://test.upstash.io/", token="token")
    response = MagicMock()
    response.raise_for_status = MagicMock()
    cache.client = AsyncMock()
    cache.client.post = AsyncMock(return_value=response)

    assert await cache.set("key", {"a": 1}, ttl=180) is True
    cache.client.post.assert_awaited_once_with(
        "https://test.upstash.io", json=["SETEX", "key", 180, '{"a": 1}']
    )


@pytest.mark.asyncio
async def test_redis_errors_are_soft() -> None:
    cache = RedisCache(base_url="https://test.upstash.io", token="token")
    cache.client = AsyncMock()
    cache.client.get = AsyncMock(side_effect=httpx.ConnectError("down"))
    cache.client.post = AsyncMock(side_effect=httpx.ConnectError("down"))

    assert await cache.get("key") is None
    assert await cache.set("key", 1) is False
    assert await cache.exists("key") is False


def test_get_cache_defaults_to_memory(monkeypatch) -> None:
    monkeypatch.setattr(cache_module, "_cache", None)
    monkeypatch.setattr(cache_module.settings, "UPSTASH_REDIS_REST_URL", None)

    cache = get_cache()

    assert isinstance(cache, MemoryCache)
    assert get_cache() is cache
