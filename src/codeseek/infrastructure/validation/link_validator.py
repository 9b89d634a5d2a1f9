"""Validation and clean-up of extracted links and scalar fields."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date

import structlog

from codeseek.domain.entities import DownloadLink, MagnetLink
from codeseek.domain.validation.urls import (
    SPAM_DOMAINS,
    extract_domain,
    is_domain_or_subdomain,
    is_http_url,
    is_spam_url,
)

log = structlog.get_logger(__name__)

MAGNET_PREFIX = "magnet:?xt=urn:btih:"

DEFAULT_DOWNLOAD_NAME = "Download"
DEFAULT_MAGNET_NAME = "Magnet"

NAVIGATION_TEXTS: tuple[str, ...] = (
    "english",
    "中文",
    "日本語",
    "한국의",
    "有碼",
    "無碼",
    "女優",
    "類別",
    "論壇",
    "下一页",
    "上一页",
    "首页",
    "terms",
    "privacy",
    "登入",
    "agent_code",
    "rta",
    "2257",
    "contact",
    "about",
    "help",
    "support",
)

_DATE_RE = re.compile(r"(\d{4})[-/.年](\d{1,2})[-/.月](\d{1,2})")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def is_navigation_text(text: str | None) -> bool:
    """True when *text* looks like a site navigation label.

    Short labels are matched as whole words so that e.g. "rta" does not
    reject a release named "Sparta".
    """
    if not text:
        return False
    lowered = text.lower()
    words = set(re.split(r"[\s|/,:;()\[\]-]+", lowered))
    for nav in NAVIGATION_TEXTS:
        if nav.isascii():
            if nav in words:
                return True
        elif nav in lowered:
            return True
    return False


def detect_link_type(url: str) -> str:
    lowered = url.lower()
    if lowered.startswith("magnet:"):
        return "magnet"
    if lowered.endswith(".torrent") or ".torrent?" in lowered:
        return "torrent"
    if lowered.startswith("ed2k:"):
        return "ed2k"
    if lowered.startswith("ftp:"):
        return "ftp"
    if "pan.baidu.com" in lowered:
        return "baidu_pan"
    if "drive.google.com" in lowered:
        return "google_drive"
    return "http"


def matches_any_pattern(domain: str, patterns: Iterable[str]) -> bool:
    return any(re.search(p, domain, re.IGNORECASE) for p in patterns)


def validate_image_url(url: str | None) -> str:
    return url if is_http_url(url) else ""


def validate_date(value: str | None) -> str:
    """Return ``YYYY-MM-DD`` or ``""`` when *value* holds no real date."""
    if not value:
        return ""
    match = _DATE_RE.search(value)
    if not match:
        return ""
    try:
        parsed = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return ""
    return parsed.isoformat()


def validate_rating(value: object) -> float:
    """Parse and clamp a rating into ``[0, 10]``; unparsable -> 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMBER_RE.search(str(value))
        if not match:
            return 0.0
        number = float(match.group(0))
    return max(0.0, min(10.0, number))


def validate_magnet_links(links: Iterable[MagnetLink]) -> list[MagnetLink]:
    out: list[MagnetLink] = []
    for link in links:
        if not link.magnet or not link.magnet.startswith(MAGNET_PREFIX):
            log.debug("magnet_rejected", magnet=link.magnet[:60] if link.magnet else "")
            continue
        out.append(
            MagnetLink(
                name=link.name or DEFAULT_MAGNET_NAME,
                magnet=link.magnet,
                size=link.size or "",
                seeders=link.seeders or 0,
                leechers=link.leechers or 0,
            )
        )
    return out


def is_allowed_download_url(
    url: str,
    name: str,
    expected_domain: str,
    *,
    allowed_domain_patterns: Iterable[str] = (),
    exclude_domains: Iterable[str] = (),
    spam_domains: Iterable[str] = SPAM_DOMAINS,
) -> bool:
    """Domain, spam and navigation-text checks for one download link."""
    if url.startswith("http"):
        domain = extract_domain(url)
        patterns = tuple(allowed_domain_patterns)
        on_domain = is_domain_or_subdomain(domain, expected_domain)
        if not on_domain and not (patterns and matches_any_pattern(domain, patterns)):
            log.debug("download_link_off_domain", url=url, expected=expected_domain)
            return False
        if any(is_domain_or_subdomain(domain, d) for d in exclude_domains):
            log.debug("download_link_excluded_domain", url=url)
            return False
    if is_spam_url(url, spam_domains):
        log.debug("download_link_spam", url=url)
        return False
    if is_navigation_text(name):
        log.debug("download_link_navigation_text", name=name)
        return False
    return True


def validate_and_filter_download_links(
    links: Iterable[DownloadLink],
    expected_domain: str,
    allowed_domain_patterns: Iterable[str] = (),
    *,
    spam_domains: Iterable[str] = SPAM_DOMAINS,
) -> list[DownloadLink]:
    """Drop off-domain, spam and navigation links; fill defaults on the rest."""
    patterns = tuple(allowed_domain_patterns)
    out: list[DownloadLink] = []
    for link in links:
        if not link.url:
            continue
        if link.url.startswith("http") and not is_http_url(link.url):
            continue
        if not is_allowed_download_url(
            link.url,
            link.name,
            expected_domain,
            allowed_domain_patterns=patterns,
            spam_domains=spam_domains,
        ):
            continue
        out.append(
            DownloadLink(
                name=link.name or DEFAULT_DOWNLOAD_NAME,
                url=link.url,
                type=link.type or detect_link_type(link.url),
                size=link.size or "",
                quality=link.quality or "",
            )
        )
    return out
