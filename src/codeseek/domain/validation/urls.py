"""URL and domain helpers shared by the extractor and the validators."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urljoin, urlsplit

SEARCH_INDICATORS: tuple[str, ...] = (
    # search and listing pages
    "/search/",
    "/search?",
    "?q=",
    "?s=",
    "?query=",
    "?keyword=",
    "/page/",
    "/list/",
    "/category/",
    "/genre/",
    "/actresses/",
    "/studio/",
    "/label/",
    "/uncensored/",
    "/forum/",
    "/doc/",
    "/terms",
    "/privacy",
    "/login",
    "/register",
    "/static/",
    "/assets/",
    "/admin/",
    "/api/",
    "/ajax/",
)

STATIC_SUFFIXES: tuple[str, ...] = (".css", ".js", ".ico", ".xml", ".txt", ".json")

# Ad and redirect farms that show up on several catalog sites.
SPAM_DOMAINS: frozenset[str] = frozenset(
    {
        "seedmm.cyou",
        "busfan.cyou",
        "dmmsee.ink",
        "ph7zhi.vip",
        "8pla6t.vip",
        "ltrpvkga.com",
        "frozaflurkiveltra.com",
        "shvaszc.cc",
        "fpnylxm.cc",
        "mvqttfwf.com",
        "jempoprostoklimor.com",
        "128zha.cc",
        "aciyopg.cc",
        "mnaspm.com",
        "asacp.org",
        "pr0rze.vip",
        "go.mnaspm.com",
    }
)


def extract_domain(url: str | None) -> str:
    """Lower-cased hostname of *url*, ``""`` when it cannot be parsed."""
    if not url:
        return ""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return ""
    return (host or "").lower()


def normalize_url(url: str | None) -> str:
    """Canonical form used for equality and cache keys.

    Origin plus path, lower-cased, without query, fragment or trailing slash.
    """
    if not url:
        return ""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url.lower()
    if not parts.scheme or not parts.netloc:
        return url.lower()
    normalized = f"{parts.scheme}://{parts.netloc}{parts.path}"
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized.lower()


def resolve_relative_url(href: str | None, base_url: str) -> str:
    if not href:
        return ""
    if href.startswith("http"):
        return href
    try:
        return urljoin(base_url, href)
    except ValueError:
        return href


def is_http_url(url: str | None) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def is_domain_or_subdomain(link_domain: str | None, base_domain: str | None) -> bool:
    """Exact match or ``*.base_domain``. Case-insensitive."""
    if not link_domain or not base_domain:
        return False
    link = link_domain.lower()
    base = base_domain.lower()
    return link == base or link.endswith("." + base)


def is_domain_or_subdomain_match(url: str, expected_domain: str) -> bool:
    return is_domain_or_subdomain(extract_domain(url), expected_domain)


def contains_search_indicators(url: str | None) -> bool:
    if not url:
        return False
    lowered = url.lower()
    if any(indicator in lowered for indicator in SEARCH_INDICATORS):
        return True
    try:
        path = urlsplit(lowered).path
    except ValueError:
        return False
    return path.endswith(STATIC_SUFFIXES)


def homepage_of(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}/"


def is_spam_url(url: str, spam_domains: Iterable[str] = SPAM_DOMAINS) -> bool:
    domain = extract_domain(url)
    lowered = url.lower()
    for spam in spam_domains:
        if is_domain_or_subdomain(domain, spam) or spam in lowered:
            return True
    return False
