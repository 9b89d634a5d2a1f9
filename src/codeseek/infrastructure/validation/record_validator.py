"""Turns a parser's raw field bag into a validated DetailRecord."""

from __future__ import annotations

from dataclasses import fields
from typing import Any

from codeseek.domain.entities import DetailRecord, SearchResultStub
from codeseek.domain.validation.codes import extract_code_from_text, extract_code_from_url
from codeseek.domain.validation.urls import extract_domain, is_spam_url
from codeseek.infrastructure.rules.registry import SiteRuleRegistry
from codeseek.infrastructure.validation.link_validator import (
    validate_and_filter_download_links,
    validate_date,
    validate_image_url,
    validate_magnet_links,
    validate_rating,
)

_RECORD_FIELDS = frozenset(f.name for f in fields(DetailRecord))


class DetailRecordValidator:
    """Implements ``DetailRecordValidatorPort``.

    Download links are checked against the detail page's domain plus the
    allow-list of the site's download rule; in lenient mode only the spam
    blacklist applies.
    """

    def __init__(self, registry: SiteRuleRegistry) -> None:
        self.registry = registry

    def validate_and_enhance(
        self,
        data: dict[str, Any],
        *,
        stub: SearchResultStub,
        detail_url: str,
        source_type: str,
        strict: bool = True,
    ) -> DetailRecord:
        values = {k: v for k, v in data.items() if k in _RECORD_FIELDS}

        downloads = list(values.get("download_links") or [])
        if strict:
            rule = self.registry.get_detail_page_rules(source_type).download_links
            patterns = rule.allowed_domain_patterns if rule is not None else ()
            downloads = validate_and_filter_download_links(
                downloads, extract_domain(detail_url), patterns
            )
        else:
            downloads = [d for d in downloads if d.url and not is_spam_url(d.url)]
        values["download_links"] = downloads
        values["magnet_links"] = validate_magnet_links(values.get("magnet_links") or [])

        if "rating" in values:
            values["rating"] = validate_rating(values["rating"])
        values["release_date"] = validate_date(values.get("release_date"))
        values["cover_image"] = validate_image_url(values.get("cover_image"))
        values["screenshots"] = [
            s for s in values.get("screenshots") or [] if validate_image_url(s)
        ]

        title = (values.get("title") or "").strip() or stub.title
        values["title"] = title
        values["code"] = (
            extract_code_from_text(values.get("code"))
            or extract_code_from_url(detail_url)
            or extract_code_from_text(title)
        )
        return DetailRecord(**values)
