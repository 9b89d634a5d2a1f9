from __future__ import annotations

import time
from typing import Literal, Optional, cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from codeseek.domain.entities import (
    ExtractionValidationError,
    ProgressEvent,
    SearchResultStub,
)
from codeseek.infrastructure.config import (
    ExtractionConfig,
    ExtractionOptions,
    system_limits,
)
from codeseek.interfaces.api.detail.presenter import (
    error_payload,
    present_batch,
    present_single,
    record_error_payload,
)
from codeseek.interfaces.app_state import AppState
from codeseek.interfaces.composition import settings_from_config

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/detail", tags=["detail"])

CacheOperation = Literal["expired", "all", "lru", "selective"]


class SearchResultIn(BaseModel):
    id: str = ""
    title: str = ""
    url: str = ""
    source: str = ""
    keyword: Optional[str] = None

    def to_stub(self) -> SearchResultStub:
        return SearchResultStub(
            id=self.id,
            title=self.title,
            url=self.url.strip(),
            source=self.source,
            keyword=self.keyword,
        )


class ExtractRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_result: Optional[SearchResultIn] = Field(default=None, alias="searchResult")
    options: Optional[ExtractionOptions] = None
    config: Optional[ExtractionConfig] = None


class ExtractBatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_results: list[SearchResultIn] = Field(default_factory=list, alias="searchResults")
    options: Optional[ExtractionOptions] = None
    config: Optional[ExtractionConfig] = None


def _state(request: Request) -> AppState:
    return cast(AppState, request.app.state)


def _ms_since(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _error_response(exc: Exception, *, search_url: str | None, start: float) -> JSONResponse:
    payload, status = error_payload(exc, search_url=search_url, extraction_time=_ms_since(start))
    return JSONResponse(status_code=status, content=payload)


@router.post("/extract")
async def extract_detail(request: Request, body: ExtractRequest) -> JSONResponse:
    """Extract one detail record. The record is filtered by the show flags."""
    state = _state(request)
    config = body.config or state.config.extraction
    search_url = body.search_result.url if body.search_result else None
    start = time.perf_counter()

    if not config.enable_detail_extraction:
        return _error_response(
            ExtractionValidationError("Detail extraction is disabled"),
            search_url=search_url,
            start=start,
        )

    stub = body.search_result.to_stub() if body.search_result else None
    try:
        result = await state.detail_extraction_uc.extract_single(
            stub,  # type: ignore[arg-type]
            settings_from_config(config, body.options),
        )
    except ExtractionValidationError as e:
        log.info("detail_extract_rejected", url=search_url, reason=str(e))
        return _error_response(e, search_url=search_url, start=start)

    if result.record.is_error:
        payload, status = record_error_payload(result)
        return JSONResponse(status_code=status, content=payload)
    return JSONResponse(content=present_single(result, config))


@router.post("/extract-batch")
async def extract_batch(request: Request, body: ExtractBatchRequest) -> JSONResponse:
    state = _state(request)
    config = body.config or state.config.extraction
    start = time.perf_counter()

    if not config.enable_detail_extraction:
        return _error_response(
            ExtractionValidationError("Detail extraction is disabled"),
            search_url=None,
            start=start,
        )

    def on_progress(event: ProgressEvent) -> None:
        log.debug(
            "detail_batch_progress",
            current=event.current,
            total=event.total,
            status=event.status,
        )

    try:
        batch = await state.detail_extraction_uc.extract_batch(
            [item.to_stub() for item in body.search_results],
            settings_from_config(config, body.options),
            progress_callback=on_progress,
            max_batch_size=config.max_batch_size,
        )
    except ExtractionValidationError as e:
        log.info("detail_batch_rejected", reason=str(e))
        return _error_response(e, search_url=None, start=start)

    return JSONResponse(content=present_batch(batch, config))


@router.get("/cache/stats")
async def cache_stats(request: Request) -> JSONResponse:
    stats = await _state(request).detail_cache.stats()
    return JSONResponse(content={"success": True, "stats": stats.to_dict()})


@router.delete("/cache")
async def clear_cache(
    request: Request,
    operation: CacheOperation = Query(default="expired"),
    count: int = Query(default=10, ge=1, le=1000, description="Entries to evict for 'lru'."),
    urls: Optional[list[str]] = Query(default=None, description="URLs for 'selective'."),
) -> JSONResponse:
    """Remove cache entries: expired ones, all, the least recently used, or by URL."""
    detail_cache = _state(request).detail_cache
    before = await detail_cache.stats()

    details: dict[str, object] = {}
    if operation == "expired":
        cleaned = await detail_cache.cleanup_expired()
    elif operation == "all":
        cleaned = await detail_cache.clear()
    elif operation == "lru":
        cleaned = await detail_cache.cleanup_least_recently_used(count)
    else:
        if not urls:
            return JSONResponse(
                status_code=400,
                content={"success": False, "message": "'selective' needs at least one url"},
            )
        deleted = [u for u in urls if await detail_cache.delete(u)]
        cleaned = len(deleted)
        details = {"deleted": deleted, "missing": [u for u in urls if u not in deleted]}

    after = await detail_cache.stats()
    log.info("detail_cache_cleanup_requested", operation=operation, cleaned=cleaned)
    return JSONResponse(
        content={
            "success": True,
            "operation": operation,
            "cleanedCount": cleaned,
            "details": details,
            "stats": {
                "before": {"totalItems": before.total_items, "totalSize": before.total_size},
                "after": {"totalItems": after.total_items, "totalSize": after.total_size},
                "freed": {
                    "items": before.total_items - after.total_items,
                    "size": before.total_size - after.total_size,
                },
            },
        }
    )


@router.get("/sources")
async def supported_sources(request: Request) -> JSONResponse:
    sources = _state(request).rule_registry.supported_site_ids()
    return JSONResponse(content={"success": True, "sources": sources})


@router.get("/config/defaults")
async def config_defaults() -> JSONResponse:
    return JSONResponse(
        content={
            "success": True,
            "config": ExtractionConfig().model_dump(by_alias=True),
            "limits": system_limits(),
        }
    )
