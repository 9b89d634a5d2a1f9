"""Cache factory - builds adapters and probes the preferred backend."""

from __future__ import annotations

from typing import Literal

import structlog
from redis.exceptions import RedisError

from codeseek.domain.ports.cache import CachePort
from codeseek.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from codeseek.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from codeseek.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["auto", "redis", "memory", "diskcache"]

REDIS_MAX_CONCURRENT = 50


def create_cache(
    backend: CacheBackend = "memory",
    *,
    directory: str = "./cache",
    redis_url: str | None = "redis://localhost:6379/0",
    ttl_seconds: int = 3600,
    max_concurrent: int = 10,
) -> CachePort:
    """Build an unopened adapter for one concrete backend.

    Raises:
        ValueError: unknown backend, ``auto`` (use :func:`open_cache`), or
            ``redis`` without a URL.
    """
    if backend == "memory":
        return MemoryCacheAdapter(ttl_seconds=ttl_seconds)
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    if backend == "redis":
        if not redis_url:
            raise ValueError("Cache backend 'redis' needs a redis_url")
        return RedisAdapter(
            url=redis_url,
            ttl_seconds=ttl_seconds,
            max_concurrent=REDIS_MAX_CONCURRENT,
        )
    raise ValueError(
        f"Unknown cache backend: {backend!r}. "
        "Must be 'redis', 'memory' or 'diskcache'."
    )


def _candidates(backend: CacheBackend, redis_url: str | None) -> list[str]:
    if backend == "auto":
        return (["redis"] if redis_url else []) + ["memory", "diskcache"]
    if backend not in ("redis", "memory", "diskcache"):
        raise ValueError(f"Unknown cache backend: {backend!r}")
    # An explicit choice falls back to memory when it cannot be opened.
    return [backend] if backend == "memory" else [backend, "memory"]


async def open_cache(
    backend: CacheBackend = "auto",
    *,
    directory: str = "./cache",
    redis_url: str | None = None,
    ttl_seconds: int = 3600,
    max_concurrent: int = 10,
) -> CachePort:
    """Open the first reachable backend in preference order.

    ``auto`` tries Redis (only when a URL is configured), then memory, then
    diskcache. The probe runs once; the returned adapter is already entered.
    """
    last_error: Exception | None = None
    for name in _candidates(backend, redis_url):
        cache = create_cache(
            name,  # type: ignore[arg-type]
            directory=directory,
            redis_url=redis_url,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
        try:
            await cache.__aenter__()
        except (RedisError, OSError) as e:
            last_error = e
            log.warning("cache_backend_unavailable", backend=name, error=str(e))
            continue
        log.info("cache_backend_selected", backend=name, requested=backend, ttl=ttl_seconds)
        return cache
    raise RuntimeError(f"No cache backend could be opened: {last_error}")
