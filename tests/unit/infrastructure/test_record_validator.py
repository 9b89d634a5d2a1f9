"""Tests for DetailRecordValidator."""

from __future__ import annotations

from codeseek.domain.entities import DownloadLink, SearchResultStub
from codeseek.infrastructure.rules.registry import SiteRuleRegistry
from codeseek.infrastructure.validation.record_validator import DetailRecordValidator

DETAIL_URL = "https://www.javbus.com/SSIS-001"

LINKS = [
    DownloadLink(name="SSIS-001 HD", url="https://www.javbus.com/dl/SSIS-001.zip"),
    DownloadLink(name="SSIS-001 Mirror", url="https://mirror.example/SSIS-001.zip"),
    DownloadLink(name="SSIS-001", url="https://seedmm.cyou/SSIS-001"),
]


def _validate(
    registry: SiteRuleRegistry, data: dict, stub: SearchResultStub, *, strict: bool = True
):
    return DetailRecordValidator(registry).validate_and_enhance(
        data, stub=stub, detail_url=DETAIL_URL, source_type="javbus", strict=strict
    )


class TestDownloads:
    def test_strict_keeps_only_page_domain(
        self, registry: SiteRuleRegistry, javbus_stub: SearchResultStub
    ) -> None:
        record = _validate(registry, {"download_links": LINKS}, javbus_stub)
        assert [d.url for d in record.download_links] == [LINKS[0].url]

    def test_lenient_drops_only_spam(
        self, registry: SiteRuleRegistry, javbus_stub: SearchResultStub
    ) -> None:
        record = _validate(registry, {"download_links": LINKS}, javbus_stub, strict=False)
        assert [d.url for d in record.download_links] == [LINKS[0].url, LINKS[1].url]


class TestFields:
    def test_title_and_code_fall_back_to_stub_and_url(
        self, registry: SiteRuleRegistry, javbus_stub: SearchResultStub
    ) -> None:
        record = _validate(registry, {"title": "  ", "release_date": "2023-01-15"}, javbus_stub)
        assert record.title == javbus_stub.title
        assert record.code == "SSIS-001"
        assert record.release_date == "2023-01-15"

    def test_unknown_keys_ignored(
        self, registry: SiteRuleRegistry, javbus_stub: SearchResultStub
    ) -> None:
        record = _validate(registry, {"title": "SSIS-001 Day", "bogus": 1}, javbus_stub)
        assert record.title == "SSIS-001 Day"
