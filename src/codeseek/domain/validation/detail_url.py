"""Per-site "is this a detail page?" predicates and source detection."""

from __future__ import annotations

import re
from typing import Callable

from codeseek.domain.entities import SearchResultStub
from codeseek.domain.validation.codes import (
    extract_code_from_url,
    has_code_path,
)
from codeseek.domain.validation.urls import (
    contains_search_indicators,
    extract_domain,
    is_domain_or_subdomain,
)

# Hostname fragment -> site id. Order matters only for overlapping hosts.
SOURCE_PATTERNS: tuple[tuple[str, str], ...] = (
    ("javbus.com", "javbus"),
    ("javdb.com", "javdb"),
    ("javlibrary.com", "javlibrary"),
    ("jable.tv", "jable"),
    ("javgg.net", "javgg"),
    ("javmost.com", "javmost"),
    ("missav.com", "missav"),
    ("javhd.porn", "javhdporn"),
    ("av01.tv", "av01"),
    ("sukebei.nyaa.si", "sukebei"),
    ("jav.guru", "javguru"),
)

_JAVDB_VIDEO = re.compile(r"/v/[a-zA-Z0-9]+")
_JAVLIBRARY_VIDEO = re.compile(r"\?v=[a-zA-Z0-9]+")
_JABLE_VIDEO = re.compile(r"/videos/[^/?]+")
_JAVGG_VIDEO = re.compile(r"/jav/[A-Z]{2,6}-?\d{3,6}[^/]*/?", re.IGNORECASE)
_SUKEBEI_VIEW = re.compile(r"/view/\d+")
_JAVMOST_CODE = re.compile(r"/[A-Z]{2,6}-?\d{3,6}[^/]*(?:/|$)", re.IGNORECASE)
_JAVGURU_PATH = re.compile(r"/(watch|video|play)/")

_GENERIC_DETAIL_INDICATORS = (
    "/video/",
    "/watch/",
    "/play/",
    "/view/",
    "/detail/",
    "/movie/",
    "/film/",
    "/content/",
    "/jav/",
)

_HIGH_QUALITY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[A-Z]{2,6}-?\d{3,6}", re.IGNORECASE),
    _JAVDB_VIDEO,
    _JAVLIBRARY_VIDEO,
    re.compile(r"/videos/[^/]+"),
    _SUKEBEI_VIEW,
    re.compile(r"/jav/[^/]+"),
)


def detect_source_type(url: str, source_id: str | None = None) -> str:
    """Map a URL onto a known site id; falls back to *source_id*, then generic."""
    lowered = (url or "").lower()
    for fragment, site_id in SOURCE_PATTERNS:
        if fragment in lowered:
            return site_id
    return source_id or "generic"


def _is_javbus(url: str) -> bool:
    lowered = url.lower()
    return (
        has_code_path(url)
        and "/search" not in lowered
        and "/genre/" not in lowered
        and "/actresses/" not in lowered
    )


def _is_javdb(url: str) -> bool:
    return bool(_JAVDB_VIDEO.search(url) or has_code_path(url)) and "/search" not in url.lower()


def _is_javlibrary(url: str) -> bool:
    return bool(_JAVLIBRARY_VIDEO.search(url)) and "vl_searchbyid" not in url.lower()


def _is_jable(url: str) -> bool:
    return bool(_JABLE_VIDEO.search(url)) and "/search" not in url.lower()


def _is_javgg(url: str) -> bool:
    return bool(_JAVGG_VIDEO.search(url)) and "/search" not in url.lower()


def _is_missav(url: str) -> bool:
    lowered = url.lower()
    return has_code_path(url) and "/search" not in lowered and "/actresses/" not in lowered


def _is_sukebei(url: str) -> bool:
    return bool(_SUKEBEI_VIEW.search(url))


def _is_javmost(url: str) -> bool:
    return bool(_JAVMOST_CODE.search(url)) and "/search" not in url.lower()


def _is_javguru(url: str) -> bool:
    lowered = url.lower()
    return "?s=" not in lowered and bool(_JAVGURU_PATH.search(lowered) or has_code_path(url))


def is_generic_detail_url(url: str) -> bool:
    lowered = url.lower()
    return any(i in lowered for i in _GENERIC_DETAIL_INDICATORS) or has_code_path(url)


DETAIL_PAGE_PREDICATES: dict[str, Callable[[str], bool]] = {
    "javbus": _is_javbus,
    "javdb": _is_javdb,
    "javlibrary": _is_javlibrary,
    "jable": _is_jable,
    "javgg": _is_javgg,
    "missav": _is_missav,
    "sukebei": _is_sukebei,
    "javmost": _is_javmost,
    "javguru": _is_javguru,
}


def is_detail_page_url(url: str, site_id: str, expected_domain: str = "") -> bool:
    """True when *url* already points at a detail page of *site_id*."""
    if not url or not isinstance(url, str):
        return False
    if (
        expected_domain
        and url.startswith("http")
        and not is_domain_or_subdomain(extract_domain(url), expected_domain)
    ):
        return False
    if contains_search_indicators(url):
        return False
    predicate = DETAIL_PAGE_PREDICATES.get(site_id, is_generic_detail_url)
    return predicate(url)


def is_high_quality_detail_url(url: str) -> bool:
    return any(p.search(url) for p in _HIGH_QUALITY_PATTERNS)


def extract_search_keyword(stub: SearchResultStub) -> str:
    """Keyword used to rank candidates: explicit keyword, title, code in URL."""
    for source in (stub.keyword, stub.title):
        if source and source.strip():
            return source.strip()
    return extract_code_from_url(stub.url)
