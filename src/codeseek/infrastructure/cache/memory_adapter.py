"""In-process cache adapter - a dict with per-key expiry."""

from __future__ import annotations

import time
from typing import Any

import structlog

log = structlog.get_logger(__name__)


class MemoryCacheAdapter:
    """CachePort over a plain dict.

    Lives and dies with the process. Expired keys are dropped when they are
    touched or listed, there is no background sweeper.

    Args:
        ttl_seconds: Default TTL for `set()` without explicit value.
    """

    backend_name = "memory"

    def __init__(self, ttl_seconds: int = 3600) -> None:
        self.default_ttl = ttl_seconds
        self._store: dict[str, tuple[Any, float]] | None = None

    async def __aenter__(self) -> MemoryCacheAdapter:
        if self._store is None:
            self._store = {}
            log.info("memory_cache_opened", default_ttl=self.default_ttl)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._store is not None:
            self._store = None
            log.info("memory_cache_closed")

    def _require(self) -> dict[str, tuple[Any, float]]:
        if self._store is None:
            raise RuntimeError(
                "Cache not initialized. Use 'async with cache:' or await cache.__aenter__()"
            )
        return self._store

    def _live(self, key: str) -> Any | None:
        store = self._require()
        item = store.get(key)
        if item is None:
            return None
        value, expires = item
        if time.monotonic() >= expires:
            del store[key]
            return None
        return value

    async def get(self, key: str) -> Any | None:
        value = self._live(key)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expire_time = ttl if ttl is not None else self.default_ttl
        self._require()[key] = (value, time.monotonic() + expire_time)
        log.debug("cache_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        if self._store is None:
            return False
        return self._store.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        if self._store is None:
            return False
        return self._live(key) is not None

    async def keys(self, prefix: str = "") -> list[str]:
        if self._store is None:
            return []
        return [k for k in list(self._store) if k.startswith(prefix) and self._live(k) is not None]

    async def clear(self) -> None:
        if self._store is not None:
            self._store.clear()
            log.warning("memory_cache_cleared")
