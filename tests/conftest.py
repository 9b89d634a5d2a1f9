"""Shared test fixtures for the codeseek test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest

from codeseek.domain.entities import (
    Actress,
    DetailRecord,
    DownloadLink,
    MagnetLink,
    SearchResultStub,
)
from codeseek.infrastructure.cache import DetailCacheManager, MemoryCacheAdapter
from codeseek.infrastructure.config import ExtractionConfig
from codeseek.infrastructure.rules.registry import SiteRuleRegistry

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def javbus_stub() -> SearchResultStub:
    """Search hit that already points at a javbus detail page."""
    return SearchResultStub(
        id="1",
        title="SSIS-001 Beautiful Day",
        url="https://www.javbus.com/SSIS-001",
        source="javbus",
    )


@pytest.fixture()
def detail_record() -> DetailRecord:
    """Fully populated successful record."""
    return DetailRecord(
        title="SSIS-001 Beautiful Day",
        code="SSIS-001",
        cover_image="https://www.javbus.com/pics/cover/abc_b.jpg",
        screenshots=["https://www.javbus.com/pics/sample/1.jpg"],
        actresses=[Actress(name="Actress One", profile_url="https://www.javbus.com/star/abc")],
        release_date="2023-01-15",
        duration="120",
        download_links=[
            DownloadLink(name="HD", url="https://www.javbus.com/download/1", size="4 GB")
        ],
        magnet_links=[
            MagnetLink(name="Magnet", magnet="magnet:?xt=urn:btih:ABCDEF", seeders=5)
        ],
        description="A beautiful day.",
        tags=["Drama"],
        rating=8.5,
        source_type="javbus",
        detail_url="https://www.javbus.com/SSIS-001",
        search_url="https://www.javbus.com/SSIS-001",
        extraction_time=120,
        extracted_at=START_MS,
    )


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def registry() -> SiteRuleRegistry:
    """Registry with the built-in rule tables."""
    return SiteRuleRegistry()


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
async def memory_cache() -> AsyncIterator[MemoryCacheAdapter]:
    """Opened in-process cache backend."""
    async with MemoryCacheAdapter(ttl_seconds=3600) as cache:
        yield cache


@pytest.fixture()
def detail_cache(memory_cache: MemoryCacheAdapter, fake_clock: FakeClock) -> DetailCacheManager:
    return DetailCacheManager(
        memory_cache,
        default_ttl_ms=60_000,
        max_entries=100,
        clock=fake_clock,
    )


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """AsyncMock standing in for a CachePort backend."""
    cache = AsyncMock()
    cache.get.return_value = None
    cache.keys.return_value = []
    cache.delete.return_value = False
    cache.backend_name = "mock"
    return cache


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def extraction_config() -> ExtractionConfig:
    return ExtractionConfig()
