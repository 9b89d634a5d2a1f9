from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Async key-value store with per-key TTL.

    Adapters: ``MemoryCacheAdapter`` (in-process), ``DiskcacheAdapter``
    (SQLite) and ``RedisAdapter``. Values must be JSON-compatible. An
    adapter is usable only inside ``async with`` (or after ``__aenter__``).
    """

    backend_name: str

    async def get(self, key: str) -> Any:
        """Stored value, or None when missing or expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store *value*; *ttl* is in seconds."""
        ...

    async def delete(self, key: str) -> bool:
        """True when a key was removed."""
        ...

    async def exists(self, key: str) -> bool: ...

    async def keys(self, prefix: str = "") -> list[str]:
        """Live keys starting with *prefix*."""
        ...

    async def clear(self) -> None: ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
