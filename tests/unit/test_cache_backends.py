"""Unit tests for cache backends."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from playshelf.cache.backends import (
    CacheBackend,
    MemoryCacheBackend,
    RedisCacheBackend,
    create_cache_backend,
)
from playshelf.common.config import CacheConfig


class TestMemoryCacheBackend:

    @pytest.mark.asyncio
    async def test_set_get_delete(self):
        backend = MemoryCacheBackend()
        await backend.set("k", b"v", 60)
        assert await backend.get("k") == b"v"

        await backend.delete("k")
        assert await backend.get("k") is None

    @pytest.mark.asyncio
    async def test_entry_expires(self):
        backend = MemoryCacheBackend()
        await backend.set("k", b"v", 0)
        await asyncio.sleep(0.01)

        assert await backend.get("k") is None

    @pytest.mark.asyncio
    async def test_oldest_entry_evicted_at_capacity(self):
        backend = MemoryCacheBackend(max_entries=2)
        await backend.set("a", b"1", 60)
        await backend.set("b", b"2", 60)
        await backend.set("c", b"3", 60)

        assert backend.size == 2
        assert await backend.get("a") is None
        assert await backend.get("c") == b"3"

    @pytest.mark.asyncio
    async def test_close_clears(self):
        backend = MemoryCacheBackend()
        await backend.set("k", b"v", 60)
        await backend.close()
        assert backend.size == 0

    def test_satisfies_protocol(self):
        assert isinstance(MemoryCacheBackend(), CacheBackend)


def make_redis_client() -> MagicMock:
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=b"cached")
    client.setex = AsyncMock()
    client.delete = AsyncMock()
    client.aclose = AsyncMock()
    return client


class TestRedisCacheBackend:

    @pytest.mark.asyncio
    async def test_lazy_connect_and_commands(self):
        client = make_redis_client()
        factory = MagicMock(return_value=client)
        backend = RedisCacheBackend("redis://localhost:6379/0", client_factory=factory)

        factory.assert_not_called()

        assert await backend.get("k") == b"cached"
        await backend.set("k", b"v", 30)
        await backend.delete("k")

        factory.assert_called_once()
        client.setex.assert_awaited_once_with("k", 30, b"v")
        client.delete.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_concurrent_first_use_connects_once(self):
        client = make_redis_client()

        async def slow_ping():
            await asyncio.sleep(0.02)
            return True

        client.ping = AsyncMock(side_effect=slow_ping)
        factory = MagicMock(return_value=client)
        backend = RedisCacheBackend("redis://localhost", client_factory=factory)

        await asyncio.gather(*(backend.get(f"k{i}") for i in range(5)))

        factory.assert_called_once()
        client.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_connect_is_retried_on_next_call(self):
        bad = make_redis_client()
        bad.ping = AsyncMock(side_effect=ConnectionError("refused"))
        good = make_redis_client()
        factory = MagicMock(side_effect=[bad, good])
        backend = RedisCacheBackend("redis://localhost", client_factory=factory)

        with pytest.raises(ConnectionError):
            await backend.get("k")
        bad.aclose.assert_awaited_once()

        assert await backend.get("k") == b"cached"
        assert factory.call_count == 2

    @pytest.mark.asyncio
    async def test_close_waits_for_pending_connect(self):
        client = make_redis_client()
        gate = asyncio.Event()

        async def gated_ping():
            await gate.wait()
            return True

        client.ping = AsyncMock(side_effect=gated_ping)
        backend = RedisCacheBackend("redis://localhost", client_factory=MagicMock(return_value=client))

        getter = asyncio.create_task(backend.get("k"))
        await asyncio.sleep(0.01)
        closer = asyncio.create_task(backend.close())
        await asyncio.sleep(0.01)
        assert not closer.done()

        gate.set()
        await getter
        await closer

        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_connect_is_noop(self):
        factory = MagicMock()
        backend = RedisCacheBackend("redis://localhost", client_factory=factory)

        await backend.close()

        factory.assert_not_called()


class TestCreateCacheBackend:

    def test_memory_default(self):
        backend = create_cache_backend(CacheConfig(max_entries=5))
        assert isinstance(backend, MemoryCacheBackend)
        assert backend.max_entries == 5

    def test_redis(self):
        backend = create_cache_backend(
            CacheConfig(backend="redis", redis_url="redis://cache:6379/1")
        )
        assert isinstance(backend, RedisCacheBackend)
        assert backend.url == "redis://cache:6379/1"
