"""Site rule registry: lookup, link qualification and offline tuning hooks."""

from __future__ import annotations

import re
import time
from dataclasses import replace
from functools import lru_cache
from typing import Any, Iterable

import structlog

from codeseek.domain.entities import (
    DetailPageRules,
    FieldRule,
    LinkSelectorRule,
    SearchPageRules,
    SiteRuleSet,
)
from codeseek.domain.validation.codes import contains_code
from codeseek.domain.validation.detail_url import detect_source_type
from codeseek.domain.validation.urls import (
    extract_domain,
    is_domain_or_subdomain,
    is_spam_url,
)
from codeseek.infrastructure.rules.site_rules import BUILTIN_RULE_SETS
from codeseek.infrastructure.validation.link_validator import (
    is_navigation_text,
    matches_any_pattern,
)

log = structlog.get_logger(__name__)

GENERIC_SITE_ID = "generic"
RULES_EXPORT_VERSION = "2.3"


@lru_cache(maxsize=128)
def _pattern(raw: str) -> re.Pattern[str]:
    return re.compile(raw)


def link_passes_rule(
    rule: LinkSelectorRule,
    href: str,
    content: str | None,
    expected_domain: str | None = None,
) -> bool:
    """Apply one selector rule's href predicates to *href*."""
    link_domain = extract_domain(href)

    if href.startswith("http") and expected_domain:
        if rule.allowed_domain_patterns:
            if not matches_any_pattern(link_domain, rule.allowed_domain_patterns):
                log.debug("detail_link_domain_pattern_mismatch", href=href)
                return False
        elif rule.strict_domain_check and not is_domain_or_subdomain(
            link_domain, expected_domain
        ):
            log.debug("detail_link_domain_mismatch", href=href, expected=expected_domain)
            return False
    if any(is_domain_or_subdomain(link_domain, d) for d in rule.exclude_domains):
        log.debug("detail_link_domain_excluded", href=href)
        return False

    href_lower = href.lower()
    if any(ex.lower() in href_lower for ex in rule.exclude_hrefs):
        log.debug("detail_link_excluded_path", href=href)
        return False

    if rule.require_pattern and not _pattern(rule.require_pattern).search(href):
        log.debug("detail_link_pattern_mismatch", href=href)
        return False

    if rule.must_contain_code and not (contains_code(href) or contains_code(content)):
        log.debug("detail_link_without_code", href=href)
        return False
    return True


class SiteRuleRegistry:
    """Holds one :class:`SiteRuleSet` per site id plus the generic fallback.

    Lookups never fail: unknown or empty site ids resolve to the generic
    rule set. Mutation hooks replace whole rule sets so readers never see a
    half-updated table.
    """

    def __init__(self, rule_sets: Iterable[SiteRuleSet] = BUILTIN_RULE_SETS) -> None:
        self._rules: dict[str, SiteRuleSet] = {rs.site_id.lower(): rs for rs in rule_sets}
        if GENERIC_SITE_ID not in self._rules:
            raise ValueError("Rule registry requires a 'generic' rule set")

    # --- lookup ---------------------------------------------------------

    def get_rule_set(self, site_id: str | None) -> SiteRuleSet:
        if not site_id:
            return self._rules[GENERIC_SITE_ID]
        return self._rules.get(site_id.lower(), self._rules[GENERIC_SITE_ID])

    def get_search_page_rules(self, site_id: str | None) -> SearchPageRules:
        return self.get_rule_set(site_id).search_page

    def get_detail_page_rules(self, site_id: str | None) -> DetailPageRules:
        return self.get_rule_set(site_id).detail_page

    def has_rules(self, site_id: str | None) -> bool:
        return bool(site_id) and site_id.lower() in self._rules

    def supported_site_ids(self) -> list[str]:
        return list(self._rules)

    @staticmethod
    def infer_site_id_from_url(url: str | None) -> str:
        if not url or not isinstance(url, str):
            return GENERIC_SITE_ID
        return detect_source_type(url)

    # --- link qualification ---------------------------------------------

    def is_valid_detail_link(
        self,
        href: str | None,
        content: str | None,
        site_id: str | None,
        expected_domain: str | None = None,
    ) -> bool:
        """Check *href* against every selector rule configured for the site."""
        if not href or not isinstance(href, str):
            return False
        rules = self.get_search_page_rules(site_id)
        return all(
            link_passes_rule(rule, href, content, expected_domain)
            for rule in rules.detail_link_selectors
        )

    @staticmethod
    def is_valid_download_link(
        url: str | None,
        name: str | None,
        expected_domain: str | None,
        rule: FieldRule | None = None,
    ) -> bool:
        if not url or not isinstance(url, str):
            return False

        link_domain = extract_domain(url)
        if rule is not None and rule.strict_validation and expected_domain:
            if rule.allowed_domain_patterns:
                if not matches_any_pattern(link_domain, rule.allowed_domain_patterns):
                    log.debug("download_link_not_allowed", url=url)
                    return False
            elif url.startswith("http") and not is_domain_or_subdomain(
                link_domain, expected_domain
            ):
                log.debug("download_link_domain_mismatch", url=url, expected=expected_domain)
                return False
            if any(d in url.lower() for d in rule.exclude_domains):
                log.debug("download_link_domain_excluded", url=url)
                return False

        if is_spam_url(url):
            log.debug("download_link_spam", url=url)
            return False
        if is_navigation_text(name):
            log.debug("download_link_navigation_text", name=name)
            return False
        return True

    # --- tuning hooks -----------------------------------------------------

    def add_custom_rules(self, site_id: str, rules: SiteRuleSet) -> bool:
        """Register *rules* for *site_id*, filling gaps from the generic set.

        Missing search selectors fall back to the generic ones; detail fields
        not set in *rules* are taken from the generic detail rules.
        """
        if not site_id:
            return False
        generic = self._rules[GENERIC_SITE_ID]
        selectors = (
            rules.search_page.detail_link_selectors
            or generic.search_page.detail_link_selectors
        )
        merged = SiteRuleSet(
            site_id=site_id.lower(),
            search_page=SearchPageRules(detail_link_selectors=selectors),
            detail_page=generic.detail_page.merged_with(rules.detail_page),
        )
        self._rules[merged.site_id] = merged
        log.info("site_rules_added", site_id=merged.site_id)
        return True

    def update_rules(
        self,
        site_id: str,
        *,
        search_page: SearchPageRules | None = None,
        detail_page: DetailPageRules | None = None,
    ) -> bool:
        key = (site_id or "").lower()
        current = self._rules.get(key)
        if current is None:
            log.warning("site_rules_update_unknown", site_id=site_id)
            return False
        updated = current
        if search_page is not None and search_page.detail_link_selectors:
            updated = replace(updated, search_page=search_page)
        if detail_page is not None:
            updated = replace(updated, detail_page=updated.detail_page.merged_with(detail_page))
        self._rules[key] = updated
        log.info("site_rules_updated", site_id=key)
        return True

    def delete_rules(self, site_id: str) -> bool:
        key = (site_id or "").lower()
        if key == GENERIC_SITE_ID:
            log.warning("site_rules_delete_generic_refused")
            return False
        if self._rules.pop(key, None) is None:
            return False
        log.info("site_rules_deleted", site_id=key)
        return True

    def export_rules(self) -> dict[str, Any]:
        return {
            "version": RULES_EXPORT_VERSION,
            "exportTime": int(time.time() * 1000),
            "rules": {site_id: rs.to_dict() for site_id, rs in self._rules.items()},
        }

    def import_rules(self, data: dict[str, Any]) -> bool:
        """Merge exported rules into the table. All-or-nothing."""
        raw_rules = data.get("rules") if isinstance(data, dict) else None
        if not isinstance(raw_rules, dict):
            log.error("site_rules_import_invalid")
            return False

        backup = dict(self._rules)
        try:
            for site_id, raw in raw_rules.items():
                rule_set = SiteRuleSet.from_dict(site_id.lower(), raw)
                for rule in rule_set.search_page.detail_link_selectors:
                    if rule.require_pattern:
                        _pattern(rule.require_pattern)
                self._rules[rule_set.site_id] = rule_set
        except (TypeError, ValueError, KeyError, AttributeError, re.error) as e:
            self._rules = backup
            log.error("site_rules_import_failed", error=str(e))
            return False

        log.info("site_rules_imported", count=len(raw_rules))
        return True
