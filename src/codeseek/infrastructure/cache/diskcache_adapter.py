"""Diskcache adapter - SQLite-backed cache that survives restarts."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)


class DiskcacheAdapter:
    """Async wrapper for diskcache.Cache (sync-only library).

    Disk I/O runs in `asyncio.to_thread`; a semaphore bounds the number of
    concurrent SQLite operations.

    Args:
        directory: SQLite DB path (default: `./cache`).
        ttl_seconds: Default TTL for `set()` without explicit value.
        max_concurrent: Max parallel disk ops.
    """

    backend_name = "diskcache"

    def __init__(
        self,
        directory: str | Path = "./cache",
        ttl_seconds: int = 3600,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self._cache: DiskCache | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> DiskcacheAdapter:
        if self._cache is None:
            self._cache = await asyncio.to_thread(DiskCache, str(self.directory))
            log.info(
                "diskcache_opened",
                path=str(self.directory),
                default_ttl=self.default_ttl,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.close)
            self._cache = None
            log.info("diskcache_closed", directory=str(self.directory))

    def _require(self) -> DiskCache:
        if self._cache is None:
            raise RuntimeError(
                "Cache not initialized. Use 'async with cache:' or await cache.__aenter__()"
            )
        return self._cache

    async def get(self, key: str) -> Any | None:
        cache = self._require()
        async with self._semaphore:
            value = await asyncio.to_thread(cache.get, key, None)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        cache = self._require()
        expire_time = ttl if ttl is not None else self.default_ttl
        async with self._semaphore:
            await asyncio.to_thread(cache.set, key, value, expire=expire_time)
        log.debug("cache_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        if self._cache is None:
            return False
        async with self._semaphore:
            return bool(await asyncio.to_thread(self._cache.delete, key))

    async def exists(self, key: str) -> bool:
        if self._cache is None:
            return False
        cache = self._cache
        async with self._semaphore:
            # __contains__ honours expiry
            return await asyncio.to_thread(cache.__contains__, key)

    async def keys(self, prefix: str = "") -> list[str]:
        if self._cache is None:
            return []
        cache = self._cache

        def _scan() -> list[str]:
            return [
                k
                for k in cache.iterkeys()
                if isinstance(k, str) and k.startswith(prefix) and k in cache
            ]

        async with self._semaphore:
            return await asyncio.to_thread(_scan)

    async def clear(self) -> None:
        if self._cache is None:
            return
        async with self._semaphore:
            await asyncio.to_thread(self._cache.clear)
        log.warning("cache_cleared", directory=str(self.directory))
