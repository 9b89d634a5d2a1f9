"""Cache infrastructure: backend adapters and the detail cache manager."""

from .cache_factory import CacheBackend, create_cache, open_cache
from .detail_cache import DetailCacheManager
from .diskcache_adapter import DiskcacheAdapter
from .memory_adapter import MemoryCacheAdapter
from .redis_adapter import RedisAdapter

__all__ = [
    "CacheBackend",
    "DetailCacheManager",
    "DiskcacheAdapter",
    "MemoryCacheAdapter",
    "RedisAdapter",
    "create_cache",
    "open_cache",
]
