"""
Detail-page content parsing.

Applies a site's :class:`DetailPageRules` to a detail page and returns an
unvalidated field bag keyed by :class:`DetailRecord` field names. When the
rule-driven parse blows up, a heuristic scan of the page takes over.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from codeseek.domain.entities import (
    Actress,
    DownloadLink,
    FieldRule,
    MagnetLink,
    ParseLimits,
)
from codeseek.domain.validation.urls import extract_domain, resolve_relative_url
from codeseek.infrastructure.common.converters import first_number, to_int
from codeseek.infrastructure.common.html_selectors import (
    Document,
    Element,
    parse_html,
    split_selector_list,
)
from codeseek.infrastructure.rules.registry import SiteRuleRegistry
from codeseek.infrastructure.rules.transforms import apply_transforms
from codeseek.infrastructure.validation.link_validator import (
    DEFAULT_DOWNLOAD_NAME,
    DEFAULT_MAGNET_NAME,
    MAGNET_PREFIX,
    detect_link_type,
)

log = structlog.get_logger(__name__)

_CODE_RE = re.compile(r"([A-Z]{2,6}-?\d{3,6})", re.IGNORECASE)

_TEXT_FIELDS = (
    "title",
    "code",
    "director",
    "studio",
    "label",
    "series",
    "release_date",
    "duration",
    "quality",
    "file_size",
    "resolution",
    "description",
)

_FALLBACK_COVER_SELECTORS = (
    'img[class*="cover"]',
    'img[class*="poster"]',
    'img[class*="thumb"]',
    ".cover img",
    ".poster img",
    ".thumbnail img",
    'img[src*="cover"]',
    'img[src*="poster"]',
)
_FALLBACK_DESCRIPTION_SELECTORS = (
    ".description",
    ".summary",
    ".synopsis",
    '[class*="desc"]',
    '[class*="summary"]',
)
_FALLBACK_DOWNLOAD_SELECTOR = 'a[href*="download"], a[class*="download"], .download a'


def clean_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Drop ``None``, blank strings and empty lists; strip strings."""
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        elif isinstance(value, list):
            value = [
                v for v in value if v is not None and not (isinstance(v, str) and not v.strip())
            ]
            if not value:
                continue
        cleaned[key] = value
    return cleaned


def _image_src(el: Element, rule: FieldRule | None) -> str:
    if rule is not None and rule.attribute:
        value = el.get_attribute(rule.attribute)
        if not value and rule.fallback_attribute:
            value = el.get_attribute(rule.fallback_attribute)
        return (value or "").strip()
    return (el.get_attribute("src") or el.get_attribute("data-src") or "").strip()


def _near(el: Element, selector: str | None) -> Element | None:
    """Sub-element matching *selector* inside *el* or its parent."""
    if not selector:
        return None
    found = el.query_selector(selector)
    if found is None and el.parent is not None:
        found = el.parent.query_selector(selector)
    return found


def _count(el: Element | None) -> int | None:
    return to_int(el.text_content) if el is not None else None


class DetailContentParser:
    """Rule-driven detail page parser with a heuristic fallback."""

    def __init__(self, registry: SiteRuleRegistry, *, limits: ParseLimits | None = None) -> None:
        self.registry = registry
        self.limits = limits or ParseLimits()

    def parse_detail_page(
        self,
        html: str,
        *,
        source_type: str,
        original_url: str,
        original_title: str = "",
        limits: ParseLimits | None = None,
    ) -> dict[str, Any]:
        limits = limits or self.limits
        doc = parse_html(html)
        rules = self.registry.get_detail_page_rules(source_type)

        if not any(True for _ in rules.items()):
            log.debug("detail_rules_empty", source_type=source_type)
            return self.parse_with_generic_fallback(doc, original_url, original_title, limits)

        try:
            data = self._parse_with_rules(doc, source_type, original_url, limits)
        except Exception as e:
            log.warning(
                "detail_parse_failed_fallback",
                source_type=source_type,
                url=original_url,
                error=str(e),
                exc_info=True,
            )
            return self.parse_with_generic_fallback(
                doc, original_url, original_title, limits, error=str(e)
            )
        return clean_fields(data)

    # ------------------------------------------------------------------
    # rule-driven parse
    # ------------------------------------------------------------------

    def _parse_with_rules(
        self,
        doc: Document,
        source_type: str,
        original_url: str,
        limits: ParseLimits,
    ) -> dict[str, Any]:
        rules = self.registry.get_detail_page_rules(source_type)
        data: dict[str, Any] = {}

        for name in _TEXT_FIELDS:
            rule = getattr(rules, name)
            if rule is not None:
                data[name] = self.extract_text(doc, rule)

        if rules.cover_image is not None:
            data["cover_image"] = self.extract_image(doc, rules.cover_image, original_url)
        if rules.screenshots is not None:
            data["screenshots"] = self.extract_images(
                doc, rules.screenshots, original_url, limits.max_screenshots
            )
        if rules.actresses is not None:
            data["actresses"] = self.extract_actresses(doc, rules.actresses, original_url)
        if rules.tags is not None:
            data["tags"] = self.extract_tags(doc, rules.tags, limits.max_tags)
        if rules.magnet_links is not None:
            data["magnet_links"] = self.extract_magnet_links(
                doc, rules.magnet_links, limits.max_magnet_links
            )
        if rules.download_links is not None:
            data["download_links"] = self.extract_download_links(
                doc, rules.download_links, original_url, limits.max_download_links
            )
        if rules.rating is not None:
            data["rating"] = self.extract_rating(doc, rules.rating)
        return data

    @staticmethod
    def _read(el: Element, rule: FieldRule) -> str:
        if rule.attribute:
            value = el.get_attribute(rule.attribute)
            if not value and rule.fallback_attribute:
                value = el.get_attribute(rule.fallback_attribute)
            return value or ""
        return el.text_content

    def extract_text(self, doc: Document, rule: FieldRule) -> str:
        """First non-empty value over the rule's selector alternatives."""
        for selector in split_selector_list(rule.selector):
            el = doc.query_selector(selector)
            if el is None:
                continue
            value = apply_transforms(self._read(el, rule), rule.transforms).strip()
            if value:
                return value
        return ""

    def extract_image(self, doc: Document, rule: FieldRule, base_url: str) -> str:
        for selector in split_selector_list(rule.selector):
            el = doc.query_selector(selector)
            if el is None:
                continue
            src = _image_src(el, rule)
            if src:
                return resolve_relative_url(src, base_url)
        return ""

    def extract_images(
        self, doc: Document, rule: FieldRule, base_url: str, limit: int
    ) -> list[str]:
        urls: list[str] = []
        for el in doc.query_selector_all(rule.selector):
            src = _image_src(el, rule)
            if not src:
                continue
            url = resolve_relative_url(src, base_url)
            if url not in urls:
                urls.append(url)
            if len(urls) >= limit:
                break
        return urls

    def extract_actresses(self, doc: Document, rule: FieldRule, base_url: str) -> list[Actress]:
        actresses: list[Actress] = []
        seen: set[str] = set()
        for el in doc.query_selector_all(rule.selector):
            name = el.text_content
            if not name or name in seen:
                continue
            seen.add(name)
            profile_url = avatar = None
            if rule.extract_profile:
                link = el if el.get_attribute("href") else el.query_selector("a[href]")
                href = link.get_attribute("href") if link is not None else None
                profile_url = resolve_relative_url(href, base_url) if href else None
                img = el.query_selector("img")
                src = _image_src(img, None) if img is not None else ""
                avatar = resolve_relative_url(src, base_url) if src else None
            actresses.append(Actress(name=name, profile_url=profile_url, avatar=avatar))
        return actresses

    def extract_tags(self, doc: Document, rule: FieldRule, limit: int) -> list[str]:
        tags: list[str] = []
        excluded = set(rule.exclude_texts)
        for el in doc.query_selector_all(rule.selector):
            tag = apply_transforms(el.text_content, rule.transforms).strip()
            if not tag or tag in excluded or tag in tags:
                continue
            tags.append(tag)
            if len(tags) >= limit:
                break
        return tags

    def extract_magnet_links(self, doc: Document, rule: FieldRule, limit: int) -> list[MagnetLink]:
        links: list[MagnetLink] = []
        seen: set[str] = set()
        for el in doc.query_selector_all(rule.selector):
            if len(links) >= limit:
                break
            magnet = (el.get_attribute("href") or el.text_content or "").strip()
            if not magnet.startswith(MAGNET_PREFIX) or magnet in seen:
                continue
            seen.add(magnet)

            name_el = el.query_selector(".name, .title")
            name = (
                (el.get_attribute("title") or "").strip()
                or (name_el.text_content if name_el is not None else "")
                or el.text_content
                or DEFAULT_MAGNET_NAME
            )
            size_el = _near(el, rule.size_selector)
            links.append(
                MagnetLink(
                    name=name,
                    magnet=magnet,
                    size=size_el.text_content if size_el is not None else None,
                    seeders=_count(_near(el, rule.seeders_selector)),
                    leechers=_count(_near(el, rule.leechers_selector)),
                )
            )
        return links

    def extract_download_links(
        self, doc: Document, rule: FieldRule, base_url: str, limit: int
    ) -> list[DownloadLink]:
        expected_domain = extract_domain(base_url)
        links: list[DownloadLink] = []
        seen: set[str] = set()
        for el in doc.query_selector_all(rule.selector):
            if len(links) >= limit:
                break
            href = (el.get_attribute("href") or "").strip()
            if not href or href.startswith(("magnet:", "javascript", "#")):
                continue
            url = resolve_relative_url(href, base_url)
            if url in seen:
                continue
            name = el.text_content or DEFAULT_DOWNLOAD_NAME
            if not self.registry.is_valid_download_link(url, name, expected_domain, rule):
                continue
            seen.add(url)
            size_el = _near(el, rule.size_selector)
            quality_el = _near(el, rule.quality_selector)
            links.append(
                DownloadLink(
                    name=name,
                    url=url,
                    type=detect_link_type(url),
                    size=size_el.text_content if size_el is not None else None,
                    quality=quality_el.text_content if quality_el is not None else None,
                )
            )
        return links

    def extract_rating(self, doc: Document, rule: FieldRule) -> float | None:
        for selector in split_selector_list(rule.selector):
            el = doc.query_selector(selector)
            if el is None:
                continue
            number = first_number(apply_transforms(self._read(el, rule), rule.transforms))
            if number is not None:
                return number
        return None

    # ------------------------------------------------------------------
    # heuristic fallback
    # ------------------------------------------------------------------

    def parse_with_generic_fallback(
        self,
        doc: Document,
        original_url: str,
        original_title: str,
        limits: ParseLimits | None = None,
        *,
        error: str | None = None,
    ) -> dict[str, Any]:
        """Title, code, cover, description and link scan. Never raises."""
        limits = limits or self.limits
        data: dict[str, Any] = {"title": original_title, "extraction_error": error}
        try:
            page_title = doc.title
            if page_title:
                data["title"] = page_title

            match = _CODE_RE.search(page_title or original_title or "")
            if match:
                data["code"] = match.group(1).upper()

            for selector in _FALLBACK_COVER_SELECTORS:
                img = doc.query_selector(selector)
                src = _image_src(img, None) if img is not None else ""
                if src:
                    data["cover_image"] = resolve_relative_url(src, original_url)
                    break

            for selector in _FALLBACK_DESCRIPTION_SELECTORS:
                el = doc.query_selector(selector)
                if el is not None and el.text_content:
                    data["description"] = el.text_content
                    if len(el.text_content) > 50:
                        break

            magnets: list[MagnetLink] = []
            for el in doc.query_selector_all('a[href^="magnet:"]')[: limits.max_magnet_links]:
                magnets.append(
                    MagnetLink(
                        name=el.text_content or DEFAULT_MAGNET_NAME,
                        magnet=el.get_attribute("href") or "",
                    )
                )
            data["magnet_links"] = magnets

            downloads: list[DownloadLink] = []
            for el in doc.query_selector_all(_FALLBACK_DOWNLOAD_SELECTOR):
                if len(downloads) >= limits.max_download_links:
                    break
                href = el.get_attribute("href")
                if not href or href.startswith("magnet:"):
                    continue
                url = resolve_relative_url(href, original_url)
                downloads.append(
                    DownloadLink(
                        name=el.text_content or DEFAULT_DOWNLOAD_NAME,
                        url=url,
                        type=detect_link_type(url),
                    )
                )
            data["download_links"] = downloads
        except Exception as e:
            log.error("detail_generic_fallback_failed", url=original_url, error=str(e))
            data["extraction_error"] = error or str(e)
        return clean_fields(data)
