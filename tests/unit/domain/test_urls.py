"""Tests for URL and domain helpers."""

from __future__ import annotations

import pytest

from codeseek.domain.validation.urls import (
    contains_search_indicators,
    extract_domain,
    homepage_of,
    is_domain_or_subdomain,
    is_domain_or_subdomain_match,
    is_http_url,
    normalize_url,
    resolve_relative_url,
)


class TestNormalizeUrl:
    def test_drops_query_fragment_and_trailing_slash(self) -> None:
        assert (
            normalize_url("https://WWW.Example.com/Path/?q=1#x")
            == "https://www.example.com/path"
        )

    def test_equal_for_equivalent_urls(self) -> None:
        assert normalize_url("https://a.com/x/") == normalize_url("https://A.com/x?utm=1")

    def test_non_url_is_lowercased(self) -> None:
        assert normalize_url("Not A Url") == "not a url"

    def test_empty(self) -> None:
        assert normalize_url("") == ""
        assert normalize_url(None) == ""


class TestExtractDomain:
    def test_lowercases_and_drops_port(self) -> None:
        assert extract_domain("https://Sub.Example.com:8080/x") == "sub.example.com"

    def test_invalid(self) -> None:
        assert extract_domain("") == ""
        assert extract_domain("no-scheme") == ""


class TestDomainMatching:
    @pytest.mark.parametrize(
        ("link", "base", "expected"),
        [
            ("example.com", "example.com", True),
            ("a.example.com", "example.com", True),
            ("A.Example.COM", "example.com", True),
            ("badexample.com", "example.com", False),
            ("example.com", "a.example.com", False),
            ("", "example.com", False),
        ],
    )
    def test_is_domain_or_subdomain(self, link: str, base: str, expected: bool) -> None:
        assert is_domain_or_subdomain(link, base) is expected

    def test_url_variant(self) -> None:
        assert is_domain_or_subdomain_match("https://cdn.jable.tv/a.jpg", "jable.tv")


class TestSearchIndicators:
    @pytest.mark.parametrize(
        "url",
        [
            "https://x.com/search/abc",
            "https://x.com/?q=abc",
            "https://x.com/genre/12",
            "https://x.com/static/app.css",
            "https://x.com/feed.xml",
        ],
    )
    def test_detects(self, url: str) -> None:
        assert contains_search_indicators(url)

    def test_detail_page_is_clean(self) -> None:
        assert not contains_search_indicators("https://x.com/ABC-123")
        assert not contains_search_indicators(None)


class TestMisc:
    def test_resolve_relative(self) -> None:
        assert (
            resolve_relative_url("/ABC-123", "https://x.com/search/abc")
            == "https://x.com/ABC-123"
        )

    def test_resolve_absolute_untouched(self) -> None:
        assert resolve_relative_url("https://y.com/a", "https://x.com/") == "https://y.com/a"

    def test_resolve_empty(self) -> None:
        assert resolve_relative_url(None, "https://x.com/") == ""

    def test_is_http_url(self) -> None:
        assert is_http_url("https://x.com")
        assert not is_http_url("ftp://x.com")
        assert not is_http_url("https://")
        assert not is_http_url(None)

    def test_homepage_of(self) -> None:
        assert homepage_of("https://javdb.com/v/abc?x=1") == "https://javdb.com/"
