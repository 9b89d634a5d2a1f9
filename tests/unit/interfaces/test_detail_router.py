"""Tests for the /api/v1/detail router."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from codeseek.application.use_cases import compute_batch_stats
from codeseek.domain.entities import (
    BatchResult,
    CacheStats,
    DetailRecord,
    ExtractionResult,
    ExtractionValidationError,
    SearchResultStub,
)
from codeseek.infrastructure.config import AppConfig
from codeseek.infrastructure.rules.registry import SiteRuleRegistry
from codeseek.interfaces.api.detail.router import router

STUB_JSON = {
    "id": "1",
    "title": "SSIS-001 Beautiful Day",
    "url": "https://www.javbus.com/SSIS-001",
    "source": "javbus",
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def use_case(detail_record: DetailRecord, javbus_stub: SearchResultStub) -> AsyncMock:
    uc = AsyncMock()
    uc.extract_single.return_value = ExtractionResult(
        stub=javbus_stub, record=detail_record, cache_key="detail_abc", total_time=5
    )
    results = [ExtractionResult(stub=javbus_stub, record=detail_record)]
    uc.extract_batch.return_value = BatchResult(
        results=results, stats=compute_batch_stats(results, 100)
    )
    return uc


@pytest.fixture()
def cache_manager() -> AsyncMock:
    manager = AsyncMock()
    manager.stats.return_value = CacheStats(total_items=3, total_size=300, backend="memory")
    manager.cleanup_expired.return_value = 1
    manager.clear.return_value = 3
    manager.cleanup_least_recently_used.return_value = 2
    manager.delete.side_effect = lambda url: url.endswith("SSIS-001")
    return manager


@pytest.fixture()
def client(
    use_case: AsyncMock, cache_manager: AsyncMock, registry: SiteRuleRegistry
) -> TestClient:
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.state.config = AppConfig()
    app.state.detail_extraction_uc = use_case
    app.state.detail_cache = cache_manager
    app.state.rule_registry = registry
    return TestClient(app)


# ---------------------------------------------------------------------------
# POST /detail/extract
# ---------------------------------------------------------------------------


class TestExtract:
    def test_success(self, client: TestClient, use_case: AsyncMock) -> None:
        resp = client.post("/api/v1/detail/extract", json={"searchResult": STUB_JSON})

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["detailInfo"]["code"] == "SSIS-001"
        assert data["metadata"]["cacheKey"] == "detail_abc"

        stub, settings = use_case.extract_single.await_args.args
        assert stub.url == STUB_JSON["url"]
        assert settings.timeout_ms == 15_000
        assert settings.concurrency == 3

    def test_options_are_clamped(self, client: TestClient, use_case: AsyncMock) -> None:
        client.post(
            "/api/v1/detail/extract",
            json={"searchResult": STUB_JSON, "options": {"timeout": 1000, "enableRetry": False}},
        )
        settings = use_case.extract_single.await_args.args[1]
        assert settings.timeout_ms == 5000
        assert settings.max_retries == 0

    def test_user_config_applies_show_flags(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/detail/extract",
            json={"searchResult": STUB_JSON, "config": {"showMagnetLinks": False}},
        )
        assert "magnetLinks" not in resp.json()["detailInfo"]

    def test_validation_error(self, client: TestClient, use_case: AsyncMock) -> None:
        use_case.extract_single.side_effect = ExtractionValidationError(
            "Search result URL is required"
        )
        resp = client.post("/api/v1/detail/extract", json={})

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["type"] == "ValidationError"
        assert body["detailInfo"]["searchUrl"] == "unknown"

    def test_error_record_maps_status(self, client: TestClient, use_case: AsyncMock) -> None:
        record = DetailRecord(
            title="x",
            extraction_status="error",
            extraction_error="HTTP 503: Service Unavailable",
            error_type="NetworkError",
            error_category="network",
            retryable=True,
        )
        use_case.extract_single.return_value = ExtractionResult(
            stub=SearchResultStub(**STUB_JSON), record=record
        )
        resp = client.post("/api/v1/detail/extract", json={"searchResult": STUB_JSON})

        assert resp.status_code == 502
        assert resp.json()["error"]["category"] == "network"

    def test_disabled_extraction(self, client: TestClient, use_case: AsyncMock) -> None:
        resp = client.post(
            "/api/v1/detail/extract",
            json={"searchResult": STUB_JSON, "config": {"enableDetailExtraction": False}},
        )
        assert resp.status_code == 400
        use_case.extract_single.assert_not_awaited()


# ---------------------------------------------------------------------------
# POST /detail/extract-batch
# ---------------------------------------------------------------------------


class TestExtractBatch:
    def test_success(self, client: TestClient, use_case: AsyncMock) -> None:
        resp = client.post("/api/v1/detail/extract-batch", json={"searchResults": [STUB_JSON]})

        assert resp.status_code == 200
        data = resp.json()
        assert data["summary"]["total"] == 1
        assert data["results"][0]["searchResult"]["url"] == STUB_JSON["url"]
        assert use_case.extract_batch.await_args.kwargs["max_batch_size"] == 20

    def test_rejected_batch(self, client: TestClient, use_case: AsyncMock) -> None:
        use_case.extract_batch.side_effect = ExtractionValidationError(
            "Search results must be a non-empty list"
        )
        resp = client.post("/api/v1/detail/extract-batch", json={"searchResults": []})
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Cache management
# ---------------------------------------------------------------------------


class TestCacheEndpoints:
    def test_stats(self, client: TestClient) -> None:
        resp = client.get("/api/v1/detail/cache/stats")
        assert resp.status_code == 200
        assert resp.json()["stats"]["totalItems"] == 3

    @pytest.mark.parametrize(
        ("operation", "method", "cleaned"),
        [
            ("expired", "cleanup_expired", 1),
            ("all", "clear", 3),
            ("lru", "cleanup_least_recently_used", 2),
        ],
    )
    def test_operations(
        self,
        client: TestClient,
        cache_manager: AsyncMock,
        operation: str,
        method: str,
        cleaned: int,
    ) -> None:
        resp = client.delete("/api/v1/detail/cache", params={"operation": operation})

        assert resp.status_code == 200
        assert resp.json()["cleanedCount"] == cleaned
        getattr(cache_manager, method).assert_awaited_once()

    def test_selective(self, client: TestClient) -> None:
        resp = client.delete(
            "/api/v1/detail/cache",
            params={
                "operation": "selective",
                "urls": ["https://www.javbus.com/SSIS-001", "https://www.javbus.com/SSIS-002"],
            },
        )
        details = resp.json()["details"]
        assert details["deleted"] == ["https://www.javbus.com/SSIS-001"]
        assert details["missing"] == ["https://www.javbus.com/SSIS-002"]

    def test_selective_without_urls(self, client: TestClient) -> None:
        resp = client.delete("/api/v1/detail/cache", params={"operation": "selective"})
        assert resp.status_code == 400

    def test_unknown_operation(self, client: TestClient) -> None:
        resp = client.delete("/api/v1/detail/cache", params={"operation": "nuke"})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Metadata endpoints
# ---------------------------------------------------------------------------


class TestMetadata:
    def test_sources(self, client: TestClient) -> None:
        sources = client.get("/api/v1/detail/sources").json()["sources"]
        assert "javbus" in sources
        assert "generic" in sources

    def test_config_defaults(self, client: TestClient) -> None:
        data = client.get("/api/v1/detail/config/defaults").json()
        assert data["config"]["extractionTimeoutMs"] == 15_000
        assert data["limits"]["maxBatchSize"] == 50
