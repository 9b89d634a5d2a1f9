from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class CacheEntry:
    """Stored envelope around a serialized DetailRecord.

    All timestamps are epoch milliseconds.
    """

    key: str
    data: str
    url: str
    created_at: int
    expires_at: int
    last_accessed: int
    access_count: int = 0
    size: int = 0

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        return cls(
            key=str(data["key"]),
            data=str(data["data"]),
            url=str(data.get("url", "")),
            created_at=int(data["created_at"]),
            expires_at=int(data["expires_at"]),
            last_accessed=int(data.get("last_accessed", data["created_at"])),
            access_count=int(data.get("access_count", 0)),
            size=int(data.get("size", 0)),
        )


@dataclass(frozen=True)
class CacheStats:
    total_items: int = 0
    total_size: int = 0
    expired_items: int = 0
    oldest_item: str | None = None
    newest_item: str | None = None
    most_accessed: str | None = None
    average_size: int = 0
    hit_rate: float = 0.0
    backend: str = "memory"

    def to_dict(self) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "totalItems": self.total_items,
            "totalSize": self.total_size,
            "expiredItems": self.expired_items,
            "oldestItem": self.oldest_item,
            "newestItem": self.newest_item,
            "mostAccessed": self.most_accessed,
            "averageSize": self.average_size,
            "hitRate": self.hit_rate,
        }
