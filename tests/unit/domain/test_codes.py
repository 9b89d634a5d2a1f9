"""Tests for catalog code recognition."""

from __future__ import annotations

import pytest

from codeseek.domain.validation.codes import (
    contains_code,
    extract_code_from_text,
    extract_code_from_title,
    extract_code_from_url,
    has_code_path,
)


class TestExtractCodeFromText:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Watch SSIS-001 now", "SSIS-001"),
            ("abp123 uncensored", "ABP123"),
            ("[FC2] 123456abc", "123456ABC"),
            ("no code here", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_extracts(self, text: str | None, expected: str) -> None:
        assert extract_code_from_text(text) == expected

    def test_title_alias(self) -> None:
        assert extract_code_from_title("IPX-777 Title") == "IPX-777"


class TestExtractCodeFromUrl:
    def test_path_segment(self) -> None:
        assert extract_code_from_url("https://www.javbus.com/SSIS-001") == "SSIS-001"

    def test_path_segment_with_trailing_slash(self) -> None:
        assert extract_code_from_url("https://missav.com/en/ipx-777/") == "IPX-777"

    def test_query_string(self) -> None:
        assert extract_code_from_url("https://x.com/find?id=abc-123") == "ABC-123"

    def test_no_code(self) -> None:
        assert extract_code_from_url("https://x.com/about") == ""
        assert extract_code_from_url(None) == ""


class TestPredicates:
    def test_contains_code(self) -> None:
        assert contains_code("movie SSIS-001")
        assert not contains_code("movie")
        assert not contains_code(None)

    def test_has_code_path(self) -> None:
        assert has_code_path("https://a.com/abc-123/")
        assert not has_code_path("https://a.com/abc-123x")
