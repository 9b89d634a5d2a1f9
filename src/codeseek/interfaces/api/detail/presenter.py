"""JSON shaping for the detail extraction API.

Applies the user's show flags and content filter to records and builds
the error payload with remediation hints.
"""

from __future__ import annotations

import time
from dataclasses import asdict
from typing import Any

from codeseek.domain.entities import BatchResult, DetailRecord, ExtractionResult
from codeseek.domain.entities.errors import ExtractionError, classify, suggestions_for
from codeseek.infrastructure.config import ExtractionConfig

STATUS_BY_CATEGORY: dict[str, int] = {
    "validation": 400,
    "timeout": 408,
    "network": 502,
    "parsing": 422,
    "internal": 500,
}

# camelCase keys hidden by each show flag.
_SHOW_FLAGS: dict[str, tuple[str, ...]] = {
    "show_screenshots": ("screenshots",),
    "show_download_links": ("downloadLinks",),
    "show_magnet_links": ("magnetLinks",),
    "show_actress_info": ("actresses",),
}

# Kept when a record is withheld by the content filter.
_FILTERED_KEEP = (
    "title",
    "code",
    "sourceType",
    "detailUrl",
    "searchUrl",
    "extractionStatus",
    "extractionTime",
    "extractedAt",
)

_MESSAGES = {
    "success": "Detail extraction completed",
    "partial": "Detail extraction completed with fallback parsing",
    "cached": "Served from cache",
    "error": "Detail extraction failed",
}


def matched_filter_keyword(record: DetailRecord, keywords: list[str]) -> str | None:
    """First keyword found in title, description, tags or actress names."""
    haystack = " ".join(
        [record.title, record.description, *record.tags, *(a.name for a in record.actresses)]
    ).lower()
    for keyword in keywords:
        if keyword and keyword.lower() in haystack:
            return keyword
    return None


def present_record(record: DetailRecord, config: ExtractionConfig) -> dict[str, Any]:
    data = record.to_dict()

    if config.enable_content_filter and config.content_filter_keywords:
        keyword = matched_filter_keyword(record, config.content_filter_keywords)
        if keyword is not None:
            withheld = {k: data[k] for k in _FILTERED_KEEP if k in data}
            withheld["contentFiltered"] = True
            withheld["filterReason"] = f"Matched filtered keyword: {keyword}"
            return withheld

    for flag, keys in _SHOW_FLAGS.items():
        if not getattr(config, flag):
            for key in keys:
                data.pop(key, None)
    return data


def _metadata(result: ExtractionResult) -> dict[str, Any]:
    return {
        "totalTime": result.total_time,
        "fromCache": result.from_cache,
        "retryCount": result.record.retry_count,
        "cacheKey": result.cache_key,
    }


def present_single(result: ExtractionResult, config: ExtractionConfig) -> dict[str, Any]:
    detail = present_record(result.record, config)
    detail["fromCache"] = result.from_cache
    return {
        "success": True,
        "detailInfo": detail,
        "metadata": _metadata(result),
        "message": _MESSAGES.get(result.record.extraction_status, ""),
    }


def present_batch(batch: BatchResult, config: ExtractionConfig) -> dict[str, Any]:
    stats = batch.stats
    results = []
    for result in batch.results:
        detail = present_record(result.record, config)
        detail["fromCache"] = result.from_cache
        results.append(
            {
                "searchResult": asdict(result.stub),
                "detailInfo": detail,
                "metadata": _metadata(result),
            }
        )
    return {
        "success": True,
        "results": results,
        "stats": stats.to_dict(),
        "summary": {
            "total": stats.total,
            "successful": stats.successful,
            "partial": stats.partial,
            "failed": stats.failed,
            "cached": stats.cached,
            "message": (
                f"Batch finished: {stats.successful}/{stats.total} successful, "
                f"{stats.cached} from cache"
            ),
        },
    }


def _error_body(
    message: str,
    *,
    error_type: str,
    category: str,
    retryable: bool,
    detail: dict[str, Any],
) -> dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "detailInfo": {
            "extractionStatus": "error",
            "extractionError": detail.get("extractionError", message),
            "errorType": error_type,
            "errorCategory": category,
            "retryable": retryable,
            **detail,
        },
        "error": {
            "type": error_type,
            "category": category,
            "retryable": retryable,
            "suggestions": suggestions_for(error_type),
        },
    }


def error_payload(
    exc: BaseException,
    *,
    search_url: str | None = None,
    extraction_time: int = 0,
) -> tuple[dict[str, Any], int]:
    """Payload and HTTP status for an exception raised past the use case."""
    error_type, category, retryable = classify(exc)
    status = exc.status_code if isinstance(exc, ExtractionError) else 500
    body = _error_body(
        f"Detail extraction failed: {exc}",
        error_type=error_type,
        category=category,
        retryable=retryable,
        detail={
            "extractionError": str(exc),
            "extractionTime": extraction_time,
            "extractedAt": int(time.time() * 1000),
            "searchUrl": search_url or "unknown",
        },
    )
    return body, status


def record_error_payload(result: ExtractionResult) -> tuple[dict[str, Any], int]:
    """Payload and HTTP status for a record that ended in ``error``."""
    record = result.record
    category = record.error_category or "internal"
    error_type = record.error_type or "InternalError"
    body = _error_body(
        f"Detail extraction failed: {record.extraction_error}",
        error_type=error_type,
        category=category,
        retryable=bool(record.retryable),
        detail=record.to_dict(),
    )
    return body, STATUS_BY_CATEGORY.get(category, 500)
