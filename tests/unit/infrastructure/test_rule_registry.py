"""Tests for SiteRuleRegistry."""

from __future__ import annotations

import pytest

from codeseek.domain.entities import (
    DetailPageRules,
    FieldRule,
    LinkSelectorRule,
    SearchPageRules,
    SiteRuleSet,
)
from codeseek.infrastructure.rules.registry import (
    GENERIC_SITE_ID,
    SiteRuleRegistry,
    link_passes_rule,
)
from codeseek.infrastructure.rules.site_rules import GENERIC, JAVBUS


class TestLookup:
    def test_builtin_sites(self, registry: SiteRuleRegistry) -> None:
        sites = registry.supported_site_ids()
        for site in ("javbus", "javdb", "javlibrary", "jable", "sukebei", GENERIC_SITE_ID):
            assert site in sites

    def test_unknown_site_falls_back_to_generic(self, registry: SiteRuleRegistry) -> None:
        assert registry.get_rule_set("nope").site_id == GENERIC_SITE_ID
        assert registry.get_rule_set(None).site_id == GENERIC_SITE_ID
        assert registry.get_detail_page_rules("") == GENERIC.detail_page

    def test_lookup_is_case_insensitive(self, registry: SiteRuleRegistry) -> None:
        assert registry.has_rules("JAVBUS")
        assert registry.get_rule_set("JavBus") is JAVBUS
        assert not registry.has_rules("")

    def test_generic_is_required(self) -> None:
        with pytest.raises(ValueError):
            SiteRuleRegistry([JAVBUS])

    def test_infer_site_id(self) -> None:
        assert SiteRuleRegistry.infer_site_id_from_url("https://javdb.com/v/x") == "javdb"
        assert SiteRuleRegistry.infer_site_id_from_url(None) == GENERIC_SITE_ID


class TestDetailLinkQualification:
    def test_javbus_detail_link(self, registry: SiteRuleRegistry) -> None:
        assert registry.is_valid_detail_link(
            "https://www.javbus.com/SSIS-001", "SSIS-001", "javbus", "www.javbus.com"
        )

    def test_javbus_genre_link(self, registry: SiteRuleRegistry) -> None:
        assert not registry.is_valid_detail_link(
            "https://www.javbus.com/genre/abc", "Drama", "javbus", "www.javbus.com"
        )

    def test_blacklisted_domain_rejected(self, registry: SiteRuleRegistry) -> None:
        assert not registry.is_valid_detail_link(
            "https://seedmm.cyou/SSIS-001", "SSIS-001", "javbus", "www.javbus.com"
        )

    def test_empty_href(self, registry: SiteRuleRegistry) -> None:
        assert not registry.is_valid_detail_link("", "x", "javbus")

    def test_strict_domain_check(self) -> None:
        rule = LinkSelectorRule(selector="a", strict_domain_check=True)
        assert link_passes_rule(rule, "https://a.example.com/x", None, "example.com")
        assert not link_passes_rule(rule, "https://other.com/x", None, "example.com")

    def test_allowed_domain_patterns(self) -> None:
        rule = LinkSelectorRule(selector="a", allowed_domain_patterns=(r"^cdn\.site\.tv$",))
        assert link_passes_rule(rule, "https://cdn.site.tv/v", None, "site.tv")
        assert not link_passes_rule(rule, "https://site.tv/v", None, "site.tv")

    def test_must_contain_code_accepts_code_in_content(self) -> None:
        rule = LinkSelectorRule(selector="a", must_contain_code=True, strict_domain_check=False)
        assert link_passes_rule(rule, "https://x.com/v/1", "SSIS-001 title", "x.com")
        assert not link_passes_rule(rule, "https://x.com/v/1", "title", "x.com")


class TestDownloadLinkQualification:
    STRICT = FieldRule(selector="a", strict_validation=True, exclude_domains=("ads.javbus.com",))

    def test_on_domain(self) -> None:
        assert SiteRuleRegistry.is_valid_download_link(
            "https://www.javbus.com/download/1", "HD", "www.javbus.com", self.STRICT
        )

    def test_off_domain_under_strict_rule(self) -> None:
        assert not SiteRuleRegistry.is_valid_download_link(
            "https://other.com/d", "HD", "www.javbus.com", self.STRICT
        )

    def test_excluded_domain(self) -> None:
        assert not SiteRuleRegistry.is_valid_download_link(
            "https://ads.javbus.com/d", "HD", "javbus.com", self.STRICT
        )

    def test_off_domain_allowed_without_rule(self) -> None:
        assert SiteRuleRegistry.is_valid_download_link(
            "https://other.com/d", "HD", "www.javbus.com"
        )

    def test_spam_and_navigation(self) -> None:
        assert not SiteRuleRegistry.is_valid_download_link(
            "https://seedmm.cyou/d", "HD", "www.javbus.com"
        )
        assert not SiteRuleRegistry.is_valid_download_link(
            "https://www.javbus.com/d", "English", "www.javbus.com"
        )


class TestTuningHooks:
    def test_add_custom_rules_fills_from_generic(self, registry: SiteRuleRegistry) -> None:
        custom = SiteRuleSet(
            site_id="MySite",
            detail_page=DetailPageRules(title=FieldRule("h5.name")),
        )
        assert registry.add_custom_rules("MySite", custom)

        stored = registry.get_rule_set("mysite")
        assert stored.site_id == "mysite"
        assert stored.detail_page.title == FieldRule("h5.name")
        assert stored.detail_page.code == GENERIC.detail_page.code
        assert (
            stored.search_page.detail_link_selectors
            == GENERIC.search_page.detail_link_selectors
        )

    def test_add_custom_rules_needs_site_id(self, registry: SiteRuleRegistry) -> None:
        assert not registry.add_custom_rules("", SiteRuleSet(site_id=""))

    def test_update_rules(self, registry: SiteRuleRegistry) -> None:
        selectors = SearchPageRules(detail_link_selectors=(LinkSelectorRule(selector="a.x"),))
        assert registry.update_rules(
            "javbus",
            search_page=selectors,
            detail_page=DetailPageRules(title=FieldRule("h1.t")),
        )
        updated = registry.get_rule_set("javbus")
        assert updated.search_page == selectors
        assert updated.detail_page.title == FieldRule("h1.t")
        assert updated.detail_page.code == JAVBUS.detail_page.code

    def test_update_unknown_site(self, registry: SiteRuleRegistry) -> None:
        assert not registry.update_rules("nope", detail_page=DetailPageRules())

    def test_delete_rules(self, registry: SiteRuleRegistry) -> None:
        assert registry.delete_rules("javbus")
        assert registry.get_rule_set("javbus").site_id == GENERIC_SITE_ID
        assert not registry.delete_rules("javbus")

    def test_generic_cannot_be_deleted(self, registry: SiteRuleRegistry) -> None:
        assert not registry.delete_rules("generic")


class TestExportImport:
    def test_roundtrip_into_fresh_registry(self, registry: SiteRuleRegistry) -> None:
        exported = registry.export_rules()
        assert exported["version"] == "2.3"

        fresh = SiteRuleRegistry([GENERIC])
        assert fresh.import_rules(exported)
        assert fresh.get_rule_set("javbus") == JAVBUS

    def test_malformed_rules_leave_table_unchanged(self, registry: SiteRuleRegistry) -> None:
        before = registry.supported_site_ids()
        bad = {"rules": {"bad": {"search_page": {"detail_link_selectors": [{"oops": 1}]}}}}
        assert not registry.import_rules(bad)
        assert registry.supported_site_ids() == before

    def test_invalid_regex_rejected(self, registry: SiteRuleRegistry) -> None:
        bad = {
            "rules": {
                "bad": {
                    "search_page": {
                        "detail_link_selectors": [{"selector": "a", "require_pattern": "("}]
                    }
                }
            }
        }
        assert not registry.import_rules(bad)
        assert not registry.has_rules("bad")

    def test_missing_rules_key(self, registry: SiteRuleRegistry) -> None:
        assert not registry.import_rules({"version": "2.3"})
