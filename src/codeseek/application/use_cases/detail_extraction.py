"""Detail extraction use case: search result stub -> validated DetailRecord."""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

import structlog

from codeseek.domain.entities import (
    BatchResult,
    BatchStats,
    DetailRecord,
    ExtractionParseError,
    ExtractionResult,
    ExtractionValidationError,
    LinkCandidate,
    ParseLimits,
    ProgressEvent,
    SearchResultStub,
    SourceStats,
)
from codeseek.domain.entities.errors import classify
from codeseek.domain.ports import (
    DetailParserPort,
    DetailRecordCachePort,
    DetailRecordValidatorPort,
    PageFetcherPort,
    SearchLinkExtractorPort,
)
from codeseek.domain.validation.codes import extract_code_from_text, extract_code_from_url
from codeseek.domain.validation.detail_url import (
    detect_source_type,
    extract_search_keyword,
    is_detail_page_url,
)
from codeseek.domain.validation.scoring import calculate_enhanced_match_score
from codeseek.domain.validation.urls import (
    contains_search_indicators,
    extract_domain,
    is_domain_or_subdomain,
    is_http_url,
    is_spam_url,
    normalize_url,
)

log = structlog.get_logger(__name__)

RETRY_DELAY_MS = 1000
INTER_CHUNK_DELAY_MS = 500
DEFAULT_TIMEOUT_MS = 15_000
DEFAULT_CONCURRENCY = 3

ProgressCallback = Callable[[ProgressEvent], "Awaitable[None] | None"]

# Fields only a real detail page can fill. Title and code are compared with the
# search result because the fallback parser derives them from its title.
_CONTENT_FIELDS: tuple[str, ...] = (
    "cover_image",
    "screenshots",
    "actresses",
    "director",
    "studio",
    "label",
    "series",
    "release_date",
    "duration",
    "description",
    "tags",
    "download_links",
    "magnet_links",
)


def has_page_content(data: dict[str, Any], fallback_title: str = "") -> bool:
    """True when the parsed field bag holds anything beyond the fallback title."""
    if any(data.get(name) for name in _CONTENT_FIELDS):
        return True
    code = extract_code_from_text(data.get("code"))
    if code and code != extract_code_from_text(fallback_title):
        return True
    title = (data.get("title") or "").strip()
    return bool(title) and title != (fallback_title or "").strip()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


@dataclass(frozen=True)
class ExtractionSettings:
    """Resolved per-call settings (user config with call options layered on)."""

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_retries: int = 1
    enable_cache: bool = True
    cache_ttl_ms: int | None = None
    strict_validation: bool = True
    concurrency: int = DEFAULT_CONCURRENCY
    limits: ParseLimits = field(default_factory=ParseLimits)


def compute_batch_stats(results: Sequence[ExtractionResult], total_time_ms: int) -> BatchStats:
    total = len(results)
    if total == 0:
        return BatchStats()

    stats = BatchStats(total=total, total_time=total_time_ms)
    for result in results:
        status = result.record.extraction_status
        source = stats.by_source.setdefault(result.record.source_type, SourceStats())
        source.total += 1
        if status in ("success", "cached"):
            stats.successful += 1
            source.successful += 1
        elif status == "partial":
            stats.partial += 1
            source.successful += 1
        else:
            stats.failed += 1
            source.failed += 1
        if result.from_cache:
            stats.cached += 1

    stats.average_time = round(sum(r.total_time for r in results) / total)
    stats.success_rate = round(stats.successful / total * 100)
    stats.cache_hit_rate = round(stats.cached / total * 100)
    if total_time_ms > 0:
        stats.items_per_second = round(total / (total_time_ms / 1000), 2)
    return stats


class DetailExtractionUseCase:
    """Turns raw search hits into detail records.

    Flow per item:
        1. Detect the source site from the URL
        2. Resolve the detail URL (re-crawl the search page if needed)
        3. Fetch and parse the detail page; a page that yields nothing
           raises :class:`ExtractionParseError`
        4. Validate and enhance the parsed fields
        5. Attach provenance

    Retryable failures rerun the whole pipeline after ``retry_delay_ms``.
    A final failure becomes a record with ``extraction_status="error"``;
    only :class:`ExtractionValidationError` escapes, before any network call.
    """

    def __init__(
        self,
        fetcher: PageFetcherPort,
        link_extractor: SearchLinkExtractorPort,
        parser: DetailParserPort,
        validator: DetailRecordValidatorPort,
        cache: DetailRecordCachePort | None = None,
        *,
        retry_delay_ms: int = RETRY_DELAY_MS,
        inter_chunk_delay_ms: int = INTER_CHUNK_DELAY_MS,
    ) -> None:
        self.fetcher = fetcher
        self.link_extractor = link_extractor
        self.parser = parser
        self.validator = validator
        self.cache = cache
        self.retry_delay_ms = retry_delay_ms
        self.inter_chunk_delay_ms = inter_chunk_delay_ms

    # ------------------------------------------------------------------
    # Input validation
    # ------------------------------------------------------------------

    @staticmethod
    def validate_stub(stub: SearchResultStub | None) -> None:
        if stub is None or not stub.url:
            raise ExtractionValidationError("Search result URL is required")
        if not is_http_url(stub.url):
            raise ExtractionValidationError(f"Invalid search result URL: {stub.url}")

    def validate_batch(
        self, stubs: Sequence[SearchResultStub], max_batch_size: int | None = None
    ) -> None:
        if not stubs:
            raise ExtractionValidationError("Search results must be a non-empty list")
        if max_batch_size is not None and len(stubs) > max_batch_size:
            raise ExtractionValidationError(
                f"Batch size {len(stubs)} exceeds the limit of {max_batch_size}"
            )
        for index, stub in enumerate(stubs):
            try:
                self.validate_stub(stub)
            except ExtractionValidationError as e:
                raise ExtractionValidationError(f"Item {index}: {e}") from e

    # ------------------------------------------------------------------
    # Single
    # ------------------------------------------------------------------

    async def extract_single(
        self,
        stub: SearchResultStub,
        settings: ExtractionSettings | None = None,
    ) -> ExtractionResult:
        settings = settings or ExtractionSettings()
        self.validate_stub(stub)
        start = time.perf_counter()

        use_cache = settings.enable_cache and self.cache is not None
        key = self.cache.cache_key(stub.url) if self.cache is not None else None

        if use_cache:
            cached = await self.cache.get(stub.url)
            if cached is not None:
                log.info("detail_cache_served", url=stub.url, key=key)
                record = replace(cached, extraction_status="cached", extraction_time=0)
                return ExtractionResult(
                    stub=stub,
                    record=record,
                    from_cache=True,
                    cache_key=key,
                    total_time=_elapsed_ms(start),
                )

        record = await self._extract_with_retry(stub, settings)

        if use_cache and record.extraction_status == "success":
            await self.cache.set(stub.url, record, settings.cache_ttl_ms)

        log.info(
            "detail_extraction_done",
            url=stub.url,
            status=record.extraction_status,
            ms=record.extraction_time,
            retries=record.retry_count,
        )
        return ExtractionResult(
            stub=stub,
            record=record,
            from_cache=False,
            cache_key=key,
            total_time=_elapsed_ms(start),
        )

    async def _extract_with_retry(
        self, stub: SearchResultStub, settings: ExtractionSettings
    ) -> DetailRecord:
        attempt = 0
        start = time.perf_counter()
        while True:
            try:
                record = await self._run_pipeline(stub, settings)
            except Exception as e:
                _, _, retryable = classify(e)
                if retryable and attempt < settings.max_retries:
                    attempt += 1
                    log.warning(
                        "detail_extraction_retry",
                        url=stub.url,
                        attempt=attempt,
                        error=str(e),
                    )
                    await asyncio.sleep(self.retry_delay_ms / 1000)
                    continue
                log.error(
                    "detail_extraction_failed",
                    url=stub.url,
                    attempts=attempt + 1,
                    error=str(e),
                    exc_info=not retryable,
                )
                return self._error_record(stub, e, attempt, _elapsed_ms(start))
            record.retry_count = attempt
            return record

    async def _run_pipeline(
        self, stub: SearchResultStub, settings: ExtractionSettings
    ) -> DetailRecord:
        start = time.perf_counter()
        source_type = detect_source_type(stub.url, stub.source or None)

        detail_url = await self.resolve_detail_url(stub, source_type, settings)

        html = await self.fetcher.fetch(
            detail_url,
            timeout_ms=settings.timeout_ms,
            source_type=source_type,
        )
        data = self.parser.parse_detail_page(
            html,
            source_type=source_type,
            original_url=detail_url,
            original_title=stub.title,
            limits=settings.limits,
        )
        if not has_page_content(data, stub.title):
            log.warning("detail_page_empty", url=detail_url, source_type=source_type)
            raise ExtractionParseError(
                data.get("extraction_error") or f"No content could be extracted from {detail_url}"
            )

        record = self.validator.validate_and_enhance(
            data,
            stub=stub,
            detail_url=detail_url,
            source_type=source_type,
            strict=settings.strict_validation,
        )
        record.source_type = source_type
        record.detail_url = detail_url
        record.search_url = stub.url
        record.extraction_status = "partial" if record.extraction_error else "success"
        record.extraction_time = _elapsed_ms(start)
        record.extracted_at = _now_ms()
        return record

    # ------------------------------------------------------------------
    # Detail URL resolution
    # ------------------------------------------------------------------

    async def resolve_detail_url(
        self,
        stub: SearchResultStub,
        source_type: str,
        settings: ExtractionSettings,
    ) -> str:
        """Detail page URL for *stub*; the stub URL itself when nothing better exists."""
        expected_domain = extract_domain(stub.url)
        if is_detail_page_url(stub.url, source_type, expected_domain):
            log.debug("detail_url_direct", url=stub.url, source_type=source_type)
            return stub.url

        html = await self.fetcher.fetch(
            stub.url,
            timeout_ms=settings.timeout_ms,
            source_type=source_type,
        )
        keyword = extract_search_keyword(stub)
        candidates = self.link_extractor.extract_detail_links(
            html,
            source_type=source_type,
            base_url=stub.url,
            search_keyword=keyword,
        )
        survivors = [
            c for c in candidates if self._acceptable_candidate(c, stub.url, expected_domain)
        ]
        if not survivors:
            log.warning(
                "detail_url_unresolved",
                url=stub.url,
                source_type=source_type,
                candidates=len(candidates),
            )
            return stub.url

        best = max(survivors, key=lambda c: calculate_enhanced_match_score(c, stub, keyword))
        log.debug(
            "detail_url_resolved",
            search_url=stub.url,
            detail_url=best.url,
            extracted_from=best.extracted_from,
        )
        return best.url

    @staticmethod
    def _acceptable_candidate(
        candidate: LinkCandidate, search_url: str, expected_domain: str
    ) -> bool:
        url = candidate.url
        if not is_domain_or_subdomain(extract_domain(url), expected_domain):
            return False
        if normalize_url(url) == normalize_url(search_url):
            return False
        if contains_search_indicators(url):
            return False
        return not is_spam_url(url)

    def _error_record(
        self, stub: SearchResultStub, exc: BaseException, attempts: int, elapsed: int
    ) -> DetailRecord:
        error_type, category, retryable = classify(exc)
        return DetailRecord(
            title=stub.title,
            code=extract_code_from_text(stub.title) or extract_code_from_url(stub.url),
            source_type=detect_source_type(stub.url, stub.source or None),
            detail_url=stub.url,
            search_url=stub.url,
            extraction_status="error",
            extraction_time=elapsed,
            extracted_at=_now_ms(),
            extraction_error=str(exc) or error_type,
            error_type=error_type,
            error_category=category,
            retryable=retryable,
            retry_count=attempts,
        )

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def extract_batch(
        self,
        stubs: Sequence[SearchResultStub],
        settings: ExtractionSettings | None = None,
        *,
        progress_callback: ProgressCallback | None = None,
        max_batch_size: int | None = None,
    ) -> BatchResult:
        """Extract *stubs* in chunks of ``settings.concurrency``.

        A chunk runs concurrently and is awaited as a whole before the
        next one starts. Results keep input order.
        """
        settings = settings or ExtractionSettings()
        self.validate_batch(stubs, max_batch_size)
        size = max(1, settings.concurrency)
        total = len(stubs)
        start = time.perf_counter()

        log.info("detail_batch_started", total=total, concurrency=size)

        results: list[ExtractionResult] = []
        for offset in range(0, total, size):
            if offset and self.inter_chunk_delay_ms > 0:
                await asyncio.sleep(self.inter_chunk_delay_ms / 1000)
            chunk = stubs[offset : offset + size]
            chunk_results = await asyncio.gather(
                *(self._extract_item(stub, settings) for stub in chunk)
            )
            for result in chunk_results:
                results.append(result)
                await self._notify(
                    progress_callback,
                    ProgressEvent(
                        current=len(results),
                        total=total,
                        status=result.record.extraction_status,
                        item=result.stub.title or result.stub.url,
                        error=result.record.extraction_error,
                    ),
                )

        stats = compute_batch_stats(results, _elapsed_ms(start))
        log.info(
            "detail_batch_done",
            total=stats.total,
            successful=stats.successful,
            failed=stats.failed,
            cached=stats.cached,
            ms=stats.total_time,
        )
        return BatchResult(results=results, stats=stats)

    async def _extract_item(
        self, stub: SearchResultStub, settings: ExtractionSettings
    ) -> ExtractionResult:
        try:
            return await self.extract_single(stub, settings)
        except Exception as e:
            log.error("detail_batch_item_failed", url=stub.url, error=str(e), exc_info=True)
            return ExtractionResult(
                stub=stub, record=self._error_record(stub, e, 0, 0)
            )

    @staticmethod
    async def _notify(callback: ProgressCallback | None, event: ProgressEvent) -> None:
        if callback is None:
            return
        try:
            outcome = callback(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            log.warning("progress_callback_failed", current=event.current, exc_info=True)
