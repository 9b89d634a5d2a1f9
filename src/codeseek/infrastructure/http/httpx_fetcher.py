"""Upstream page fetcher on a shared httpx.AsyncClient."""

from __future__ import annotations

import re

import httpx
import structlog

from codeseek.domain.entities import ExtractionNetworkError, ExtractionTimeoutError
from codeseek.domain.validation.urls import homepage_of

log = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)
MIN_CONTENT_LENGTH = 100

# Sites that reject requests without their own homepage as referer.
REFERER_SITES: frozenset[str] = frozenset({"javdb", "javlibrary"})

_BASE_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.8,en;q=0.6,ja;q=0.4",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

# Matched against the page <title> only; nav bars mention "login" everywhere.
_TITLE_ISSUE_MARKERS: dict[str, tuple[str, ...]] = {
    "login_page": ("login", "log in", "sign in", "登录", "登入", "captcha", "验证码"),
    "not_found_page": ("404", "not found"),
    "cloudflare_challenge": ("just a moment", "attention required", "cloudflare"),
}
_BODY_CHALLENGE_RE = re.compile(
    r"checking your browser|ddos protection|cf-browser-verification|challenge-platform",
    re.IGNORECASE,
)
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def request_headers(
    *,
    user_agent: str = DEFAULT_USER_AGENT,
    referer: str | None = None,
) -> dict[str, str]:
    headers = {"User-Agent": user_agent, **_BASE_HEADERS}
    if referer:
        headers["Referer"] = referer
    return headers


def referer_for(url: str, source_type: str | None) -> str | None:
    """Homepage referer for sites in :data:`REFERER_SITES`, else None."""
    if source_type in REFERER_SITES:
        return homepage_of(url)
    return None


def analyze_page_content(html: str) -> list[str]:
    """Names of the problems *html* looks like it has; ``[]`` for a normal page.

    Detects login/captcha walls, soft 404 pages and Cloudflare challenges.
    """
    issues: list[str] = []
    match = _TITLE_RE.search(html)
    title = match.group(1).strip().lower() if match else ""
    if title:
        for issue, markers in _TITLE_ISSUE_MARKERS.items():
            if any(marker in title for marker in markers):
                issues.append(issue)
    if "cloudflare_challenge" not in issues and _BODY_CHALLENGE_RE.search(html):
        issues.append("cloudflare_challenge")
    return issues


class HttpxPageFetcher:
    """Implements ``PageFetcherPort``.

    The client is owned by the composition root; :meth:`aclose` only
    closes it when the fetcher created the client itself.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        follow_redirects: bool = True,
        min_content_length: int = MIN_CONTENT_LENGTH,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=follow_redirects)
        self._user_agent = user_agent
        self._min_content_length = min_content_length

    async def fetch(
        self,
        url: str,
        *,
        timeout_ms: int,
        source_type: str | None = None,
    ) -> str:
        timeout = httpx.Timeout(timeout_ms / 1000)
        headers = request_headers(
            user_agent=self._user_agent, referer=referer_for(url, source_type)
        )
        try:
            resp = await self._client.get(url, headers=headers, timeout=timeout)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            log.warning("page_fetch_timeout", url=url, timeout_ms=timeout_ms)
            raise ExtractionTimeoutError(
                f"Request timed out after {timeout_ms} ms: {url}"
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log.warning("page_fetch_http_error", url=url, status=status)
            raise ExtractionNetworkError(
                f"HTTP {status}: {e.response.reason_phrase}"
            ) from e
        except httpx.TransportError as e:
            log.warning("page_fetch_transport_error", url=url, error=str(e))
            raise ExtractionNetworkError(f"Network error: {e}") from e

        html = resp.text
        if len(html) < self._min_content_length:
            log.warning("page_fetch_empty_body", url=url, length=len(html))
            raise ExtractionNetworkError("Page content is empty or too short")

        issues = analyze_page_content(html)
        if issues:
            log.warning("page_content_suspect", url=url, issues=issues)

        log.debug("page_fetched", url=url, status=resp.status_code, length=len(html))
        return html

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
