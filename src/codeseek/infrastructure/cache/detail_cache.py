"""Detail record cache on top of any CachePort backend.

Entries are :class:`CacheEntry` envelopes stored as plain dicts under
``detail_<16 hex chars>`` keys. Expiry, access bookkeeping and LRU
eviction happen here; the backend TTL is only a safety net so abandoned
keys eventually disappear.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import math
import time
from typing import Any, Callable, Iterable

import structlog

from codeseek.domain.entities import CacheEntry, CacheStats, DetailRecord
from codeseek.domain.ports.cache import CachePort
from codeseek.domain.validation.urls import normalize_url

log = structlog.get_logger(__name__)

KEY_PREFIX = "detail_"
DEFAULT_CACHE_DURATION_MS = 24 * 60 * 60 * 1000
DEFAULT_MAX_ENTRIES = 1000
EXPORT_VERSION = "1.0"


def _now_ms() -> int:
    return int(time.time() * 1000)


def cache_key(url: str) -> str:
    digest = hashlib.sha256(normalize_url(url).encode("utf-8")).hexdigest()
    return KEY_PREFIX + digest[:16]


class DetailCacheManager:
    """get/set/delete of detail records keyed by normalized URL.

    Every backend failure is logged and turned into a miss (reads) or a
    skipped write; nothing here raises into the extraction pipeline.

    Args:
        cache: Opened backend adapter.
        default_ttl_ms: TTL used by :meth:`set` when none is given.
        max_entries: Size cap enforced after each write by LRU eviction.
        clock: Epoch-milliseconds source (tests inject a fake one).
    """

    def __init__(
        self,
        cache: CachePort,
        *,
        default_ttl_ms: int = DEFAULT_CACHE_DURATION_MS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.cache = cache
        self.default_ttl_ms = default_ttl_ms
        self.max_entries = max_entries
        self._clock = clock

    @property
    def backend(self) -> str:
        return getattr(self.cache, "backend_name", type(self.cache).__name__)

    cache_key = staticmethod(cache_key)

    # --- low level ----------------------------------------------------

    async def _load(self, key: str) -> CacheEntry | None:
        try:
            raw = await self.cache.get(key)
        except Exception:
            log.warning("detail_cache_read_failed", key=key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return CacheEntry.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            log.warning("detail_cache_entry_corrupt", key=key)
            await self._remove(key)
            return None

    async def _store(self, entry: CacheEntry) -> bool:
        ttl_seconds = max(1, math.ceil((entry.expires_at - self._clock()) / 1000))
        try:
            await self.cache.set(entry.key, entry.to_dict(), ttl=ttl_seconds)
        except Exception:
            log.warning("detail_cache_write_failed", key=entry.key, exc_info=True)
            return False
        return True

    async def _remove(self, key: str) -> bool:
        try:
            return await self.cache.delete(key)
        except Exception:
            log.warning("detail_cache_delete_failed", key=key, exc_info=True)
            return False

    async def _keys(self) -> list[str]:
        try:
            return await self.cache.keys(KEY_PREFIX)
        except Exception:
            log.warning("detail_cache_list_failed", exc_info=True)
            return []

    async def _entries(self) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        for key in await self._keys():
            entry = await self._load(key)
            if entry is not None:
                entries.append(entry)
        return entries

    # --- public API ---------------------------------------------------

    async def get(self, url: str) -> DetailRecord | None:
        key = cache_key(url)
        entry = await self._load(key)
        if entry is None:
            return None

        now = self._clock()
        if entry.is_expired(now):
            log.debug("detail_cache_expired", key=key, url=url)
            await self._remove(key)
            return None

        try:
            record = DetailRecord.from_dict(json.loads(entry.data))
        except (TypeError, ValueError):
            log.warning("detail_cache_payload_corrupt", key=key)
            await self._remove(key)
            return None

        entry.last_accessed = now
        entry.access_count += 1
        await self._store(entry)
        log.debug("detail_cache_hit", key=key, access_count=entry.access_count)
        return record

    async def set(self, url: str, record: DetailRecord, ttl_ms: int | None = None) -> bool:
        ttl_ms = self.default_ttl_ms if ttl_ms is None else ttl_ms
        if ttl_ms <= 0:
            return False

        payload = json.dumps(record.to_dict(), ensure_ascii=False)
        now = self._clock()
        entry = CacheEntry(
            key=cache_key(url),
            data=payload,
            url=url,
            created_at=now,
            expires_at=now + ttl_ms,
            last_accessed=now,
            access_count=0,
            size=len(payload.encode("utf-8")),
        )
        if not await self._store(entry):
            return False
        log.debug("detail_cache_set", key=entry.key, ttl_ms=ttl_ms, size=entry.size)
        await self._enforce_size_limit()
        return True

    async def delete(self, url: str) -> bool:
        return await self._remove(cache_key(url))

    async def clear(self) -> int:
        """Remove every detail entry. Other keys in the backend are left alone."""
        removed = 0
        for key in await self._keys():
            if await self._remove(key):
                removed += 1
        log.info("detail_cache_cleared", removed=removed)
        return removed

    async def cleanup_expired(self) -> int:
        now = self._clock()
        removed = 0
        for entry in await self._entries():
            if entry.is_expired(now) and await self._remove(entry.key):
                removed += 1
        if removed:
            log.info("detail_cache_expired_removed", removed=removed)
        return removed

    async def cleanup_least_recently_used(self, count: int = 10) -> int:
        if count <= 0:
            return 0
        entries = sorted(await self._entries(), key=lambda e: e.last_accessed)
        removed = 0
        for entry in entries[:count]:
            if await self._remove(entry.key):
                removed += 1
        log.info("detail_cache_lru_evicted", removed=removed)
        return removed

    async def _enforce_size_limit(self) -> None:
        keys = await self._keys()
        overflow = len(keys) - self.max_entries
        if overflow > 0:
            await self.cleanup_least_recently_used(overflow)

    async def stats(self) -> CacheStats:
        entries = await self._entries()
        if not entries:
            return CacheStats(backend=self.backend)

        now = self._clock()
        total_size = sum(e.size for e in entries)
        accessed = sum(1 for e in entries if e.access_count > 0)
        return CacheStats(
            total_items=len(entries),
            total_size=total_size,
            expired_items=sum(1 for e in entries if e.is_expired(now)),
            oldest_item=min(entries, key=lambda e: e.created_at).key,
            newest_item=max(entries, key=lambda e: e.created_at).key,
            most_accessed=max(entries, key=lambda e: e.access_count).key,
            average_size=round(total_size / len(entries)),
            hit_rate=round(accessed / len(entries) * 100, 2),
            backend=self.backend,
        )

    async def export_entries(self) -> dict[str, Any]:
        items = [
            {
                "key": e.key,
                "url": e.url,
                "data": e.data,
                "createdAt": e.created_at,
                "expiresAt": e.expires_at,
            }
            for e in await self._entries()
        ]
        return {
            "version": EXPORT_VERSION,
            "exportTime": self._clock(),
            "totalItems": len(items),
            "items": items,
        }

    async def import_entries(self, data: dict[str, Any]) -> int:
        """Restore exported entries; expired or incomplete items are skipped."""
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            log.error("detail_cache_import_invalid")
            return 0

        now = self._clock()
        imported = 0
        for item in items:
            if not isinstance(item, dict) or not (item.get("url") and item.get("data")):
                log.debug("detail_cache_import_skip_incomplete")
                continue
            expires_at = int(item.get("expiresAt") or now + self.default_ttl_ms)
            if expires_at <= now:
                continue
            payload = str(item["data"])
            entry = CacheEntry(
                key=cache_key(item["url"]),
                data=payload,
                url=item["url"],
                created_at=int(item.get("createdAt") or now),
                expires_at=expires_at,
                last_accessed=now,
                access_count=0,
                size=len(payload.encode("utf-8")),
            )
            if await self._store(entry):
                imported += 1
        log.info("detail_cache_imported", imported=imported, offered=len(items))
        await self._enforce_size_limit()
        return imported

    async def warmup(self, urls: Iterable[str]) -> dict[str, bool]:
        """Touch each URL's entry; returns which ones are cached."""
        return {url: await self.get(url) is not None for url in urls}

    async def run_periodic_cleanup(self, interval_seconds: float) -> None:
        """Sweep expired entries forever. Run as a task; cancel to stop."""
        log.info("detail_cache_sweeper_started", interval=interval_seconds)
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                try:
                    await self.cleanup_expired()
                except Exception:
                    log.error("detail_cache_sweep_error", exc_info=True)
        except asyncio.CancelledError:
            log.info("detail_cache_sweeper_cancelled")
            raise
