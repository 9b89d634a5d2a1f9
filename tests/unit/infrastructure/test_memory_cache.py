"""Tests for the in-process cache adapter."""

from __future__ import annotations

import pytest

from codeseek.infrastructure.cache import MemoryCacheAdapter


class TestMemoryCacheAdapter:
    async def test_set_get_delete(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", {"a": 1})
        assert await memory_cache.get("k") == {"a": 1}
        assert await memory_cache.exists("k")
        assert await memory_cache.delete("k") is True
        assert await memory_cache.get("k") is None
        assert await memory_cache.delete("k") is False

    async def test_zero_ttl_expires_immediately(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", "v", ttl=0)
        assert await memory_cache.get("k") is None
        assert await memory_cache.keys() == []

    async def test_keys_by_prefix(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("detail_a", 1)
        await memory_cache.set("detail_b", 2)
        await memory_cache.set("other", 3)
        assert sorted(await memory_cache.keys("detail_")) == ["detail_a", "detail_b"]

    async def test_clear(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", 1)
        await memory_cache.clear()
        assert await memory_cache.keys() == []

    async def test_use_before_open_raises(self) -> None:
        cache = MemoryCacheAdapter()
        with pytest.raises(RuntimeError):
            await cache.get("k")

    async def test_closed_cache_is_empty(self) -> None:
        cache = MemoryCacheAdapter()
        async with cache:
            await cache.set("k", 1)
        assert await cache.keys() == []
        assert await cache.exists("k") is False
