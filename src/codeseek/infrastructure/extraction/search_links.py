"""
Search-page link extraction.

Given the HTML of a catalog site's search page, find the links that most
likely lead to the detail page for the searched code. Supports:
- Site-specific strategies (selector priority lists + URL shape checks)
- A rule-driven strategy fed by the site rule registry
- A generic scan as the last resort
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping

import structlog

from codeseek.domain.entities import LinkCandidate
from codeseek.domain.validation.codes import extract_code_from_text
from codeseek.domain.validation.detail_url import DETAIL_PAGE_PREDICATES
from codeseek.domain.validation.scoring import calculate_match_score
from codeseek.domain.validation.urls import (
    contains_search_indicators,
    extract_domain,
    is_domain_or_subdomain,
    is_spam_url,
    normalize_url,
    resolve_relative_url,
)
from codeseek.infrastructure.common.html_selectors import Document, Element, parse_html
from codeseek.infrastructure.rules.registry import SiteRuleRegistry, link_passes_rule

log = structlog.get_logger(__name__)

MAX_GENERIC_LINKS_PER_PAGE = 50
GENERIC_SCORE_THRESHOLD = 20

_ONCLICK_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"""window\.open\(\s*['"]([^'"]+)['"]"""),
    re.compile(r"""location\.href\s*=\s*['"]([^'"]+)['"]"""),
)

_ITEM_CONTAINER = ".item, .movie, .video, .result"

_GENERIC_SELECTORS: tuple[str, ...] = (
    'a[href*="/"][href]:not([href*="/search"]):not([href*="/page"])',
    'a[href*="/"][title]:not([href*="/search"])',
    ".item a, .movie a, .video a, .result a",
)

_GENERIC_EXCLUDES: tuple[str, ...] = (
    "/search", "/category", "/tag", "/list", "/page", "?page",
    "/login", "/register", "/user", "/profile", "/settings",
    "/en/", "/ja/", "/ko/", "/forum", "/doc", "/terms", "/privacy",
    ".css", ".js", ".png", ".jpg", ".gif", ".ico", "/#",
)

_GENERIC_DETAIL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"/[A-Z]{2,6}-?\d{3,6}(?:/|$)", re.IGNORECASE),
    re.compile(r"/v/[a-zA-Z0-9]+"),
    re.compile(r"\?v=[a-zA-Z0-9]+"),
    re.compile(r"/videos/[^/]+"),
    re.compile(r"/jav/[^/]+"),
    re.compile(r"/view/\d+"),
    re.compile(r"/(watch|play|video|movie)/"),
)


def is_generic_detail_link(url: str) -> bool:
    lowered = url.lower()
    if any(ex in lowered for ex in _GENERIC_EXCLUDES):
        return False
    return any(p.search(url) for p in _GENERIC_DETAIL_PATTERNS)


def href_of(el: Element) -> str | None:
    """Return the link target of *el*, following ``onclick`` redirects."""
    href = el.get_attribute("href")
    if href and not href.startswith("javascript") and href != "#":
        return href
    onclick = el.get_attribute("onclick")
    if onclick:
        for pattern in _ONCLICK_PATTERNS:
            match = pattern.search(onclick)
            if match:
                return match.group(1)
    return None


def _anchor_of(el: Element) -> Element | None:
    if el.get_attribute("href") is not None or el.get_attribute("onclick") is not None:
        return el
    return el.query_selector("a[href]")


def _scoped_text(anchor: Element, selector: str) -> str:
    found = anchor.query_selector(selector)
    if found is None:
        container = anchor.closest(_ITEM_CONTAINER)
        found = container.query_selector(selector) if container is not None else None
    return found.text_content if found is not None else ""


@dataclass(frozen=True)
class SelectorStep:
    """One selector of a site strategy and how to read a title off its match."""

    selector: str
    extracted_from: str
    title_selector: str | None = None
    title_attributes: tuple[str, ...] = ()


@dataclass(frozen=True)
class LinkStrategy:
    """Selector priority list plus the URL shape a detail page must have.

    ``home_domain`` pins candidates to the site's own domain; otherwise the
    domain of the search page is used.
    """

    steps: tuple[SelectorStep, ...]
    is_detail_url: Callable[[str], bool]
    home_domain: str | None = None


DEFAULT_STRATEGIES: Mapping[str, LinkStrategy] = {
    "javbus": LinkStrategy(
        steps=(
            SelectorStep(
                ".movie-box",
                "javbus_moviebox",
                title_selector="img",
                title_attributes=("title", "alt"),
            ),
            SelectorStep(
                'a[href*="/"][href]:not([href*="/search"]):not([href*="/page"])',
                "javbus_direct",
            ),
        ),
        is_detail_url=DETAIL_PAGE_PREDICATES["javbus"],
    ),
    "javdb": LinkStrategy(
        steps=tuple(
            SelectorStep(sel, "javdb_video", title_selector=".video-title, .title, h4")
            for sel in (".movie-list .item a", ".grid-item a", ".video-node a", 'a[href*="/v/"]')
        ),
        is_detail_url=DETAIL_PAGE_PREDICATES["javdb"],
    ),
    "javlibrary": LinkStrategy(
        steps=tuple(
            SelectorStep(sel, "javlibrary_video")
            for sel in (".videos .video a", ".video-title a", 'a[href*="?v="]')
        ),
        is_detail_url=DETAIL_PAGE_PREDICATES["javlibrary"],
    ),
    "jable": LinkStrategy(
        steps=tuple(
            SelectorStep(sel, "jable_video", title_selector=".title, h4, .video-title")
            for sel in (
                '.video-item a[href*="/videos/"]',
                '.list-videos a[href*="/videos/"]',
                'a[href*="/videos/"]:not([href*="/search"])',
            )
        ),
        is_detail_url=DETAIL_PAGE_PREDICATES["jable"],
        home_domain="jable.tv",
    ),
    "javgg": LinkStrategy(
        steps=tuple(
            SelectorStep(sel, "javgg_video", title_selector=".title, h3, .video-title")
            for sel in (
                '.video-item a[href*="/jav/"]',
                '.movie-item a[href*="/jav/"]',
                'a[href*="/jav/"]:not([href*="/search"])',
            )
        ),
        is_detail_url=DETAIL_PAGE_PREDICATES["javgg"],
    ),
    "sukebei": LinkStrategy(
        steps=tuple(
            SelectorStep(sel, "sukebei_torrent")
            for sel in ("tr td:first-child a", ".torrent-name a", 'a[href*="/view/"]')
        ),
        is_detail_url=DETAIL_PAGE_PREDICATES["sukebei"],
    ),
    "javmost": LinkStrategy(
        steps=tuple(
            SelectorStep(sel, "javmost_video")
            for sel in (
                ".video-item a",
                ".movie-item a",
                'a[href*="/"][href]:not([href*="/search"])',
            )
        ),
        is_detail_url=DETAIL_PAGE_PREDICATES["javmost"],
        home_domain="javmost.com",
    ),
    "javguru": LinkStrategy(
        steps=tuple(
            SelectorStep(sel, "javguru_video")
            for sel in (
                ".video-item a",
                ".movie-item a",
                'a[href*="/watch/"]',
                'a[href*="/video/"]',
                'a[href*="/play/"]',
            )
        ),
        is_detail_url=DETAIL_PAGE_PREDICATES["javguru"],
    ),
}


def dedupe_and_rank(links: list[LinkCandidate]) -> list[LinkCandidate]:
    """Sort by score (stable) and keep the best entry per normalized URL."""
    seen: set[str] = set()
    out: list[LinkCandidate] = []
    for link in sorted(links, key=lambda c: c.score, reverse=True):
        key = normalize_url(link.url)
        if key in seen:
            continue
        seen.add(key)
        out.append(link)
    return out


class SearchLinkExtractor:
    """Turns a search page into ranked :class:`LinkCandidate` objects.

    Dispatch goes through a strategy table keyed by site id. Sites without
    an entry use the selectors of their rule set (or the generic rule set).
    Every path ends in the generic scan when it finds nothing, and no path
    raises: a broken page yields ``[]``.
    """

    def __init__(
        self,
        registry: SiteRuleRegistry,
        *,
        strategies: Mapping[str, LinkStrategy] | None = None,
        max_generic_links: int = MAX_GENERIC_LINKS_PER_PAGE,
        generic_score_threshold: int = GENERIC_SCORE_THRESHOLD,
    ) -> None:
        self.registry = registry
        self.strategies = dict(DEFAULT_STRATEGIES if strategies is None else strategies)
        self.max_generic_links = max_generic_links
        self.generic_score_threshold = generic_score_threshold

    def extract_detail_links(
        self,
        html: str,
        *,
        source_type: str,
        base_url: str,
        search_keyword: str | None = None,
    ) -> list[LinkCandidate]:
        try:
            doc = parse_html(html)
            base_domain = extract_domain(base_url)
            site_id = (source_type or "generic").lower()

            strategy = self.strategies.get(site_id)
            if strategy is not None:
                links = self._run_strategy(doc, strategy, base_url, base_domain, search_keyword)
            else:
                links = self._run_rules(doc, site_id, base_url, base_domain, search_keyword)

            if not links:
                log.debug("search_links_generic_fallback", source_type=site_id)
                links = self._run_generic(doc, base_url, base_domain, search_keyword)
        except Exception as e:
            log.error(
                "search_links_extraction_failed",
                source_type=source_type,
                base_url=base_url,
                error=str(e),
                exc_info=True,
            )
            return []

        ranked = dedupe_and_rank(links)
        log.debug(
            "search_links_extracted",
            source_type=source_type,
            count=len(ranked),
            best=ranked[0].url if ranked else None,
        )
        return ranked

    # ------------------------------------------------------------------
    # shared checks
    # ------------------------------------------------------------------

    @staticmethod
    def _basic_reject(url: str, base_url: str, domain: str) -> bool:
        if not is_domain_or_subdomain(extract_domain(url), domain):
            return True
        if normalize_url(url) == normalize_url(base_url):
            return True
        if contains_search_indicators(url):
            return True
        return is_spam_url(url)

    def _candidate(
        self, url: str, title: str, code: str, keyword: str | None, extracted_from: str
    ) -> LinkCandidate:
        code = code or extract_code_from_text(title) or extract_code_from_text(url)
        return LinkCandidate(
            url=url,
            title=title,
            code=code,
            score=calculate_match_score(title, code, keyword),
            extracted_from=extracted_from,
        )

    # ------------------------------------------------------------------
    # strategies
    # ------------------------------------------------------------------

    def _run_strategy(
        self,
        doc: Document,
        strategy: LinkStrategy,
        base_url: str,
        base_domain: str,
        keyword: str | None,
    ) -> list[LinkCandidate]:
        domain = strategy.home_domain or base_domain
        for step in strategy.steps:
            found: list[LinkCandidate] = []
            for el in doc.query_selector_all(step.selector):
                anchor = _anchor_of(el)
                href = href_of(anchor) if anchor is not None else None
                if not href:
                    continue
                url = resolve_relative_url(href, base_url)
                if self._basic_reject(url, base_url, domain):
                    continue
                if not strategy.is_detail_url(url):
                    continue
                title = self._step_title(el, anchor, step)
                found.append(self._candidate(url, title, "", keyword, step.extracted_from))
            if found:
                return found
        return []

    @staticmethod
    def _step_title(el: Element, anchor: Element, step: SelectorStep) -> str:
        if step.title_selector:
            holder = el.query_selector(step.title_selector)
            if holder is not None:
                for attr in step.title_attributes:
                    value = (holder.get_attribute(attr) or "").strip()
                    if value:
                        return value
                if not step.title_attributes and holder.text_content:
                    return holder.text_content
        return anchor.text_content or anchor.title_hint

    def _run_rules(
        self,
        doc: Document,
        site_id: str,
        base_url: str,
        base_domain: str,
        keyword: str | None,
    ) -> list[LinkCandidate]:
        rules = self.registry.get_search_page_rules(site_id)
        predicate = DETAIL_PAGE_PREDICATES.get(site_id)

        for rule in rules.detail_link_selectors:
            found: list[LinkCandidate] = []
            for el in doc.query_selector_all(rule.selector):
                href = href_of(el)
                if not href:
                    continue
                url = resolve_relative_url(href, base_url)
                if not rule.allowed_domain_patterns and not is_domain_or_subdomain(
                    extract_domain(url), base_domain
                ):
                    log.debug("detail_link_off_domain", url=url, expected=base_domain)
                    continue
                if normalize_url(url) == normalize_url(base_url):
                    continue
                if contains_search_indicators(url) or is_spam_url(url):
                    continue
                if predicate is not None and not predicate(url):
                    continue

                if rule.title_attribute and el.get_attribute(rule.title_attribute):
                    title = (el.get_attribute(rule.title_attribute) or "").strip()
                elif rule.title_selector:
                    title = (
                        _scoped_text(el, rule.title_selector)
                        or el.text_content
                        or el.title_hint
                    )
                else:
                    title = el.text_content or el.title_hint
                code = (
                    extract_code_from_text(_scoped_text(el, rule.code_selector))
                    if rule.code_selector
                    else ""
                )
                if not link_passes_rule(rule, url, f"{title} {code}", base_domain):
                    continue
                found.append(self._candidate(url, title, code, keyword, "search_page"))
            if found:
                return found
        return []

    def _run_generic(
        self,
        doc: Document,
        base_url: str,
        base_domain: str,
        keyword: str | None,
    ) -> list[LinkCandidate]:
        for selector in _GENERIC_SELECTORS:
            found: list[LinkCandidate] = []
            for el in doc.query_selector_all(selector)[: self.max_generic_links]:
                href = href_of(el)
                if not href:
                    continue
                url = resolve_relative_url(href, base_url)
                if self._basic_reject(url, base_url, base_domain):
                    continue
                if not is_generic_detail_link(url):
                    continue
                title = el.title_hint or el.text_content
                candidate = self._candidate(url, title, "", keyword, "generic")
                if keyword and candidate.score < self.generic_score_threshold:
                    continue
                found.append(candidate)
            if found:
                return found
        return []
