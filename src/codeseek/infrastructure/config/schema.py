"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["auto", "redis", "memory", "diskcache"]

# System limits for per-user extraction settings.
MIN_TIMEOUT_MS = 5_000
MAX_TIMEOUT_MS = 30_000
MIN_BATCH_SIZE = 1
MAX_CONCURRENT_EXTRACTIONS = 10
MAX_BATCH_SIZE = 50
MAX_RETRY_ATTEMPTS = 5
MIN_CACHE_DURATION_MS = 0
MAX_CACHE_DURATION_MS = 30 * 24 * 60 * 60 * 1000
MAX_LINK_LIMIT = 50


def _normalize_path(value: Any) -> Path:
    """Normalize a path-like value. Never touches the filesystem."""
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseSettings):
    """Cache configuration (backend-agnostic)."""

    backend: CacheBackendName = Field(
        default="auto",
        description=(
            "'auto' probes redis (when redis_url is set), then memory. "
            "'diskcache' persists to SQLite under dir."
        ),
    )
    directory: Path = Field(
        default=Path("./.cache/codeseek"),
        alias="dir",
        description="Diskcache directory (only when backend=diskcache)",
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL, e.g. redis://localhost:6379/0",
    )
    ttl_seconds: int = Field(
        default=86_400,
        description="Backend-level safety TTL for entries (seconds)",
    )
    max_entries: int = Field(
        default=1000,
        description="Detail entries kept before LRU eviction kicks in",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )
    cleanup_interval_seconds: float = Field(
        default=600.0,
        description="Expired-entry sweep interval. 0 disables the sweeper.",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_dir(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("max_entries", "max_concurrent")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class ExtractionOptions(BaseModel):
    """Per-call overrides; unset fields fall back to :class:`ExtractionConfig`."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timeout_ms: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("timeout_ms", "timeoutMs", "timeout"),
    )
    enable_retry: Optional[bool] = None
    max_retries: Optional[int] = None
    enable_cache: Optional[bool] = None
    strict_validation: Optional[bool] = None


class ExtractionConfig(BaseModel):
    """Per-user detail extraction settings. Read-only to the core."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enable_detail_extraction: bool = True
    extraction_timeout_ms: int = Field(default=15_000)
    enable_retry: bool = True
    max_retry_attempts: int = Field(default=1)

    max_download_links: int = Field(default=10)
    max_magnet_links: int = Field(default=10)
    max_screenshots: int = Field(default=10)

    cache_duration_ms: int = Field(default=86_400_000)
    enable_cache: bool = True
    strict_validation: bool = True

    show_screenshots: bool = True
    show_download_links: bool = True
    show_magnet_links: bool = True
    show_actress_info: bool = True

    enable_content_filter: bool = False
    content_filter_keywords: list[str] = Field(default_factory=list)

    extraction_batch_size: int = Field(default=3)
    max_batch_size: int = Field(default=20)

    @field_validator("extraction_timeout_ms")
    @classmethod
    def _validate_timeout(cls, v: int) -> int:
        if not MIN_TIMEOUT_MS <= v <= MAX_TIMEOUT_MS:
            raise ValueError(
                f"extraction_timeout_ms must be between {MIN_TIMEOUT_MS} "
                f"and {MAX_TIMEOUT_MS}"
            )
        return v

    @field_validator("extraction_batch_size")
    @classmethod
    def _validate_batch_size(cls, v: int) -> int:
        if not MIN_BATCH_SIZE <= v <= MAX_CONCURRENT_EXTRACTIONS:
            raise ValueError(
                f"extraction_batch_size must be between {MIN_BATCH_SIZE} "
                f"and {MAX_CONCURRENT_EXTRACTIONS}"
            )
        return v

    @field_validator("max_batch_size")
    @classmethod
    def _validate_max_batch(cls, v: int) -> int:
        if not 1 <= v <= MAX_BATCH_SIZE:
            raise ValueError(f"max_batch_size must be between 1 and {MAX_BATCH_SIZE}")
        return v

    @field_validator("cache_duration_ms")
    @classmethod
    def _validate_cache_duration(cls, v: int) -> int:
        if not MIN_CACHE_DURATION_MS <= v <= MAX_CACHE_DURATION_MS:
            raise ValueError("cache_duration_ms must be >= 0 and at most 30 days")
        return v

    @field_validator("max_retry_attempts")
    @classmethod
    def _validate_retries(cls, v: int) -> int:
        if not 0 <= v <= MAX_RETRY_ATTEMPTS:
            raise ValueError(f"max_retry_attempts must be between 0 and {MAX_RETRY_ATTEMPTS}")
        return v

    @field_validator("max_download_links", "max_magnet_links", "max_screenshots")
    @classmethod
    def _validate_link_limits(cls, v: int) -> int:
        if not 0 <= v <= MAX_LINK_LIMIT:
            raise ValueError(f"link limits must be between 0 and {MAX_LINK_LIMIT}")
        return v

    @field_validator("content_filter_keywords", mode="before")
    @classmethod
    def _split_keywords(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v

    def clamp_options(self, options: ExtractionOptions | None = None) -> ExtractionOptions:
        """Layer per-call *options* over this config.

        Every field of the result is set. The timeout is clamped into the
        system range instead of rejected, and retries are zero when
        retrying is off.
        """
        options = options or ExtractionOptions()
        timeout = options.timeout_ms or self.extraction_timeout_ms
        timeout = max(MIN_TIMEOUT_MS, min(MAX_TIMEOUT_MS, timeout))

        enable_retry = self.enable_retry if options.enable_retry is None else options.enable_retry
        max_retries = self.max_retry_attempts if options.max_retries is None else options.max_retries
        max_retries = max(0, min(MAX_RETRY_ATTEMPTS, max_retries)) if enable_retry else 0

        return ExtractionOptions(
            timeout_ms=timeout,
            enable_retry=enable_retry,
            max_retries=max_retries,
            enable_cache=self.enable_cache if options.enable_cache is None else options.enable_cache,
            strict_validation=(
                self.strict_validation
                if options.strict_validation is None
                else options.strict_validation
            ),
        )


def system_limits() -> dict[str, int]:
    return {
        "minTimeout": MIN_TIMEOUT_MS,
        "maxTimeout": MAX_TIMEOUT_MS,
        "minCacheDuration": MIN_CACHE_DURATION_MS,
        "maxCacheDuration": MAX_CACHE_DURATION_MS,
        "maxBatchSize": MAX_BATCH_SIZE,
        "maxConcurrentExtractions": MAX_CONCURRENT_EXTRACTIONS,
        "maxRetryAttempts": MAX_RETRY_ATTEMPTS,
        "maxLinkLimit": MAX_LINK_LIMIT,
    }


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    YAML is sectioned (http/logging/cache/extraction). Environment variables
    come in through EnvOverrides so load.py controls precedence
    (defaults < YAML < ENV < CLI).
    """

    app_name: str = Field(default="codeseek", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Upper bound for the shared HTTP client; per-fetch timeouts are shorter.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
    )
    http_user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for upstream catalog requests.",
    )

    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description="console/json. If unset, derived from environment.",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # console in dev/test, json in prod
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Dump configuration in the sectioned shape used by config.yaml."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache.backend,
                "dir": str(self.cache.directory),
                "redis_url": self.cache.redis_url,
                "ttl_seconds": self.cache.ttl_seconds,
                "max_entries": self.cache.max_entries,
                "max_concurrent": self.cache.max_concurrent,
                "cleanup_interval_seconds": self.cache.cleanup_interval_seconds,
            },
            "extraction": self.extraction.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py reads CODESEEK_* variables through this model, keeps only the
    ones that were set and merges them over YAML/defaults.

    Examples:
    - CODESEEK_ENVIRONMENT
    - CODESEEK_LOG_LEVEL
    - CODESEEK_CACHE_BACKEND
    - CODESEEK_EXTRACTION_TIMEOUT_MS
    """

    model_config = SettingsConfigDict(
        env_prefix="CODESEEK_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_redis_url: Optional[str] = None
    cache_ttl_seconds: Optional[int] = None
    cache_max_entries: Optional[int] = None

    extraction_timeout_ms: Optional[int] = None
    extraction_batch_size: Optional[int] = None
    extraction_enable_cache: Optional[bool] = None
    extraction_enable_retry: Optional[bool] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """Only values that were actually provided (non-None), for merging."""
        return self.model_dump(exclude_none=True)
