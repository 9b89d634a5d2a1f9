from __future__ import annotations

from .load import load_config
from .schema import (
    AppConfig,
    CacheConfig,
    EnvOverrides,
    ExtractionConfig,
    ExtractionOptions,
    system_limits,
)

__all__ = [
    "AppConfig",
    "CacheConfig",
    "EnvOverrides",
    "ExtractionConfig",
    "ExtractionOptions",
    "load_config",
    "system_limits",
]
