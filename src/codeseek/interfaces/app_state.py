"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from codeseek.infrastructure.config import AppConfig

if TYPE_CHECKING:
    import asyncio

    from codeseek.application.use_cases import DetailExtractionUseCase
    from codeseek.domain.ports import CachePort, PageFetcherPort
    from codeseek.infrastructure.cache import DetailCacheManager
    from codeseek.infrastructure.extraction.detail_parser import DetailContentParser
    from codeseek.infrastructure.extraction.search_links import SearchLinkExtractor
    from codeseek.infrastructure.rules.registry import SiteRuleRegistry


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    fetcher: PageFetcherPort

    # Extraction pipeline
    detail_cache: DetailCacheManager
    rule_registry: SiteRuleRegistry
    link_extractor: SearchLinkExtractor
    detail_parser: DetailContentParser
    detail_extraction_uc: DetailExtractionUseCase

    # Expired-entry sweeper (optional, cache.cleanup_interval_seconds > 0)
    _sweeper_task: asyncio.Task | None
