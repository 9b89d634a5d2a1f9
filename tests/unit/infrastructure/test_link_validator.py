"""Tests for link and field validation helpers."""

from __future__ import annotations

import pytest

from codeseek.domain.entities import DownloadLink, MagnetLink
from codeseek.infrastructure.validation.link_validator import (
    detect_link_type,
    is_allowed_download_url,
    is_navigation_text,
    is_spam_url,
    validate_and_filter_download_links,
    validate_date,
    validate_image_url,
    validate_magnet_links,
    validate_rating,
)

VALID_MAGNET = "magnet:?xt=urn:btih:0123456789ABCDEF0123456789ABCDEF01234567"


class TestSpamAndNavigation:
    def test_spam_domain(self) -> None:
        assert is_spam_url("https://seedmm.cyou/x")
        assert is_spam_url("https://a.seedmm.cyou/x")

    def test_spam_in_redirect_target(self) -> None:
        assert is_spam_url("https://www.javbus.com/go?u=https://busfan.cyou/")

    def test_clean_url(self) -> None:
        assert not is_spam_url("https://www.javbus.com/SSIS-001")

    @pytest.mark.parametrize("text", ["English", "下一页", "Terms | Privacy", "RTA"])
    def test_navigation_text(self, text: str) -> None:
        assert is_navigation_text(text)

    @pytest.mark.parametrize("text", ["Sparta Collection", "HD Download", "", None])
    def test_not_navigation_text(self, text: str | None) -> None:
        assert not is_navigation_text(text)


class TestDetectLinkType:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            (VALID_MAGNET, "magnet"),
            ("https://x.com/a.torrent", "torrent"),
            ("https://x.com/a.torrent?sig=1", "torrent"),
            ("ed2k://|file|a.mp4|1|ABC|/", "ed2k"),
            ("ftp://x.com/a", "ftp"),
            ("https://pan.baidu.com/s/1abc", "baidu_pan"),
            ("https://drive.google.com/file/d/1", "google_drive"),
            ("https://x.com/file", "http"),
        ],
    )
    def test_types(self, url: str, expected: str) -> None:
        assert detect_link_type(url) == expected


class TestScalarValidators:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2023-01-05", "2023-01-05"),
            ("2023/1/5", "2023-01-05"),
            ("2023年1月5日", "2023-01-05"),
            ("Released: 2021.12.31", "2021-12-31"),
            ("2023-02-30", ""),
            ("unknown", ""),
            (None, ""),
        ],
    )
    def test_validate_date(self, value: str | None, expected: str) -> None:
        assert validate_date(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("8.5分", 8.5), (15, 10.0), (-2, 0.0), ("n/a", 0.0), (None, 0.0), (7, 7.0)],
    )
    def test_validate_rating(self, value: object, expected: float) -> None:
        assert validate_rating(value) == expected

    def test_validate_image_url(self) -> None:
        assert validate_image_url("https://x.com/a.jpg") == "https://x.com/a.jpg"
        assert validate_image_url("data:image/png;base64,AAA") == ""
        assert validate_image_url(None) == ""


class TestMagnetValidation:
    def test_keeps_btih_and_fills_defaults(self) -> None:
        links = validate_magnet_links([MagnetLink(name="", magnet=VALID_MAGNET)])
        assert links == [
            MagnetLink(name="Magnet", magnet=VALID_MAGNET, size="", seeders=0, leechers=0)
        ]

    def test_drops_non_btih(self) -> None:
        links = validate_magnet_links(
            [
                MagnetLink(name="a", magnet="magnet:?xt=urn:sha1:ABC"),
                MagnetLink(name="b", magnet=""),
            ]
        )
        assert links == []


class TestDownloadLinkFiltering:
    def test_filters_off_domain_spam_and_navigation(self) -> None:
        links = [
            DownloadLink(name="HD", url="https://www.javbus.com/download/1"),
            DownloadLink(name="Mirror", url="https://other.com/download/2"),
            DownloadLink(name="Ad", url="https://www.javbus.com/go?u=seedmm.cyou"),
            DownloadLink(name="English", url="https://www.javbus.com/download/en"),
            DownloadLink(name="", url="ed2k://|file|a.mp4|1|ABC|/", type=""),
            DownloadLink(name="empty", url=""),
        ]
        kept = validate_and_filter_download_links(links, "javbus.com")
        assert [link.url for link in kept] == [
            "https://www.javbus.com/download/1",
            "ed2k://|file|a.mp4|1|ABC|/",
        ]
        assert kept[1].name == "Download"
        assert kept[1].type == "ed2k"

    def test_allowed_domain_pattern_admits_cdn(self) -> None:
        links = [DownloadLink(name="CDN", url="https://cdn.example.net/file.mp4")]
        kept = validate_and_filter_download_links(
            links, "javbus.com", [r"^cdn\.example\.net$"]
        )
        assert len(kept) == 1

    def test_excluded_domain(self) -> None:
        assert not is_allowed_download_url(
            "https://dl.bad.com/f",
            "HD",
            "bad.com",
            exclude_domains=["dl.bad.com"],
        )
