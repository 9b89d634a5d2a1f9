"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "codeseek",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/131.0.0.0 Safari/537.36"
        ),
    },
    "logging": {
        "level": "INFO",
        "format": None,  # derived from environment in schema.py
    },
    "cache": {
        "backend": "auto",
        "dir": "./.cache/codeseek",
        "ttl_seconds": 86_400,
        "max_entries": 1000,
        "cleanup_interval_seconds": 600.0,
    },
    "extraction": {
        "enable_detail_extraction": True,
        "extraction_timeout_ms": 15_000,
        "enable_retry": True,
        "max_retry_attempts": 1,
        "enable_cache": True,
        "cache_duration_ms": 86_400_000,
        "extraction_batch_size": 3,
        "max_batch_size": 20,
    },
}
