"""Redis adapter - shared cache via redis.asyncio, values stored as JSON."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Async Redis cache.

    Values must be JSON-serialisable; they are stored as UTF-8 JSON text so
    other processes can read the entries too. Backend errors are logged and
    reported as a miss (`get`) or a no-op (`set`, `delete`).

    Args:
        url: Redis URL (e.g. `redis://localhost:6379/0`).
        ttl_seconds: Default TTL.
        max_concurrent: Max parallel Redis ops.
    """

    backend_name = "redis"

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 3600,
        max_concurrent: int = 50,
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> RedisAdapter:
        """Create the client and PING it. Raises when Redis is unreachable."""
        if self._client is None:
            client = Redis.from_url(self.url, decode_responses=True)
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                await client.aclose()
                raise
            self._client = client
            log.info("redis_connected", url=self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    async def get(self, key: str) -> Any | None:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with cache:'")

        async with self._semaphore:
            try:
                raw = await self._client.get(key)
                if raw is None:
                    log.debug("cache_miss", key=key)
                    return None
                log.debug("cache_hit", key=key)
                return json.loads(raw)
            except (RedisError, ValueError) as e:
                log.error("redis_get_error", key=key, error=str(e))
                return None

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        if self._client is None:
            raise RuntimeError("Redis not initialized.")

        expire_time = ttl if ttl is not None else self.default_ttl
        try:
            packed = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            log.error("redis_serialize_error", key=key, error=str(e))
            return

        async with self._semaphore:
            try:
                await self._client.setex(key, max(1, int(expire_time)), packed)
                log.debug("cache_set", key=key, ttl=expire_time, size_bytes=len(packed))
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False

        async with self._semaphore:
            try:
                return await self._client.delete(key) > 0
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                return False

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False

        async with self._semaphore:
            try:
                return await self._client.exists(key) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                return False

    async def keys(self, prefix: str = "") -> list[str]:
        """Keys matching ``prefix*``, collected with SCAN."""
        if self._client is None:
            return []

        async with self._semaphore:
            try:
                return [k async for k in self._client.scan_iter(match=f"{prefix}*")]
            except RedisError as e:
                log.error("redis_scan_error", prefix=prefix, error=str(e))
                return []

    async def clear(self) -> None:
        """FLUSHDB: drops every key of the selected database."""
        if self._client is None:
            return

        async with self._semaphore:
            try:
                await self._client.flushdb()
                log.warning("redis_flushed")
            except RedisError as e:
                log.error("redis_flush_error", error=str(e))
