"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from codeseek.application.use_cases import DetailExtractionUseCase, ExtractionSettings
from codeseek.domain.entities import ParseLimits
from codeseek.infrastructure.cache import DetailCacheManager, open_cache
from codeseek.infrastructure.config import AppConfig, ExtractionConfig, ExtractionOptions
from codeseek.infrastructure.extraction.detail_parser import DetailContentParser
from codeseek.infrastructure.extraction.search_links import SearchLinkExtractor
from codeseek.infrastructure.http.httpx_fetcher import HttpxPageFetcher
from codeseek.infrastructure.rules.registry import SiteRuleRegistry
from codeseek.infrastructure.validation.record_validator import DetailRecordValidator
from codeseek.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def settings_from_config(
    config: ExtractionConfig, options: ExtractionOptions | None = None
) -> ExtractionSettings:
    """Resolve the use-case settings for one call."""
    resolved = config.clamp_options(options)
    return ExtractionSettings(
        timeout_ms=resolved.timeout_ms,
        max_retries=resolved.max_retries,
        enable_cache=resolved.enable_cache and config.cache_duration_ms > 0,
        cache_ttl_ms=config.cache_duration_ms,
        strict_validation=resolved.strict_validation,
        concurrency=config.extraction_batch_size,
        limits=ParseLimits(
            max_screenshots=config.max_screenshots,
            max_download_links=config.max_download_links,
            max_magnet_links=config.max_magnet_links,
        ),
    )


async def build_state(state: AppState, config: AppConfig, *, start_sweeper: bool = True) -> None:
    """Create every resource on *state*. Pair with :func:`teardown_state`.

    Order matters:
        1. Cache backend (probed) + detail cache manager
        2. HTTP client + page fetcher
        3. Rule registry, link extractor, detail parser
        4. Detail extraction use case
        5. Expired-entry sweeper (optional)
    """
    state.config = config
    state._sweeper_task = None

    # 1) Cache
    state.cache = await open_cache(
        config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        ttl_seconds=config.cache.ttl_seconds,
        max_concurrent=config.cache.max_concurrent,
    )
    state.detail_cache = DetailCacheManager(
        state.cache,
        default_ttl_ms=config.extraction.cache_duration_ms,
        max_entries=config.cache.max_entries,
    )
    log.info("cache_initialized", backend=state.detail_cache.backend)

    # 2) HTTP client (per-fetch timeouts are set by the fetcher)
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    state.fetcher = HttpxPageFetcher(state.http_client, user_agent=config.http_user_agent)
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) Rules + extraction components
    state.rule_registry = SiteRuleRegistry()
    state.link_extractor = SearchLinkExtractor(state.rule_registry)
    state.detail_parser = DetailContentParser(state.rule_registry)
    log.info("rule_registry_initialized", sites=state.rule_registry.supported_site_ids())

    # 4) Use case
    state.detail_extraction_uc = DetailExtractionUseCase(
        fetcher=state.fetcher,
        link_extractor=state.link_extractor,
        parser=state.detail_parser,
        validator=DetailRecordValidator(state.rule_registry),
        cache=state.detail_cache,
    )

    # 5) Sweeper
    interval = config.cache.cleanup_interval_seconds
    if start_sweeper and interval > 0:
        state._sweeper_task = asyncio.create_task(
            state.detail_cache.run_periodic_cleanup(interval)
        )


async def teardown_state(state: AppState) -> None:
    """Release resources in reverse order of :func:`build_state`."""
    task = getattr(state, "_sweeper_task", None)
    if task is not None:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        log.info("detail_cache_sweeper_stopped")

    await state.fetcher.aclose()
    await state.http_client.aclose()
    log.info("http_client_closed")

    await state.cache.aclose()
    log.info("cache_closed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build resources on startup and tear them down on shutdown."""
    state = cast(AppState, app.state)
    await build_state(state, state.config)
    log.info("app_startup_complete")
    try:
        yield
    finally:
        await teardown_state(state)
        log.info("app_shutdown_complete")
