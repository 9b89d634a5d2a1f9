"""Tests for HttpxPageFetcher."""

from __future__ import annotations

import httpx
import pytest
import respx

from codeseek.domain.entities import ExtractionNetworkError, ExtractionTimeoutError
from codeseek.infrastructure.http.httpx_fetcher import (
    DEFAULT_USER_AGENT,
    HttpxPageFetcher,
    analyze_page_content,
    referer_for,
    request_headers,
)

URL = "https://www.javbus.com/SSIS-001"
PAGE = "<html><body>" + "<p>SSIS-001 detail page</p>" * 10 + "</body></html>"
LOGIN_PAGE = (
    "<html><head><title>Login - JavDB</title></head><body>"
    + "<form><input name=\"captcha\"></form>" * 5
    + "</body></html>"
)


class TestHeaders:
    def test_defaults(self) -> None:
        headers = request_headers()
        assert headers["User-Agent"] == DEFAULT_USER_AGENT
        assert "Referer" not in headers

    def test_referer(self) -> None:
        assert request_headers(referer="https://javdb.com/")["Referer"] == "https://javdb.com/"

    def test_referer_for_picky_sites(self) -> None:
        assert referer_for("https://javdb.com/v/abc", "javdb") == "https://javdb.com/"
        assert referer_for(URL, "javbus") is None


class TestFetch:
    @respx.mock
    async def test_success(self) -> None:
        respx.get(URL).respond(200, text=PAGE)
        fetcher = HttpxPageFetcher()
        try:
            assert await fetcher.fetch(URL, timeout_ms=5000) == PAGE
        finally:
            await fetcher.aclose()

    @respx.mock
    async def test_sends_referer(self) -> None:
        route = respx.get("https://javdb.com/v/abc").respond(200, text=PAGE)
        async with httpx.AsyncClient() as client:
            fetcher = HttpxPageFetcher(client)
            await fetcher.fetch("https://javdb.com/v/abc", timeout_ms=5000, source_type="javdb")
        assert route.calls.last.request.headers["Referer"] == "https://javdb.com/"

    @respx.mock
    async def test_no_referer_for_other_sites(self) -> None:
        route = respx.get(URL).respond(200, text=PAGE)
        async with httpx.AsyncClient() as client:
            await HttpxPageFetcher(client).fetch(URL, timeout_ms=5000, source_type="javbus")
        assert "Referer" not in route.calls.last.request.headers

    @respx.mock
    async def test_suspect_page_still_returned(self) -> None:
        respx.get(URL).respond(200, text=LOGIN_PAGE)
        async with httpx.AsyncClient() as client:
            assert await HttpxPageFetcher(client).fetch(URL, timeout_ms=5000) == LOGIN_PAGE

    @respx.mock
    async def test_timeout(self) -> None:
        respx.get(URL).mock(side_effect=httpx.ConnectTimeout("slow"))
        async with httpx.AsyncClient() as client:
            with pytest.raises(ExtractionTimeoutError):
                await HttpxPageFetcher(client).fetch(URL, timeout_ms=5000)

    @respx.mock
    async def test_http_status(self) -> None:
        respx.get(URL).respond(404, text="not here")
        async with httpx.AsyncClient() as client:
            with pytest.raises(ExtractionNetworkError, match="HTTP 404"):
                await HttpxPageFetcher(client).fetch(URL, timeout_ms=5000)

    @respx.mock
    async def test_transport_error(self) -> None:
        respx.get(URL).mock(side_effect=httpx.ConnectError("refused"))
        async with httpx.AsyncClient() as client:
            with pytest.raises(ExtractionNetworkError, match="Network error"):
                await HttpxPageFetcher(client).fetch(URL, timeout_ms=5000)

    @respx.mock
    async def test_short_body(self) -> None:
        respx.get(URL).respond(200, text="<html></html>")
        async with httpx.AsyncClient() as client:
            with pytest.raises(ExtractionNetworkError, match="too short"):
                await HttpxPageFetcher(client).fetch(URL, timeout_ms=5000)

    async def test_shared_client_left_open(self) -> None:
        async with httpx.AsyncClient() as client:
            await HttpxPageFetcher(client).aclose()
            assert not client.is_closed


class TestAnalyzePageContent:
    def test_normal_page(self) -> None:
        html = (
            "<html><head><title>SSIS-001 - JavBus</title></head>"
            "<body><a href='/login'>Login</a></body></html>"
        )
        assert analyze_page_content(html) == []

    def test_login_wall(self) -> None:
        assert analyze_page_content(LOGIN_PAGE) == ["login_page"]

    def test_soft_not_found(self) -> None:
        html = "<html><head><title>404 Page Not Found</title></head><body></body></html>"
        assert analyze_page_content(html) == ["not_found_page"]

    def test_cloudflare_challenge_in_body(self) -> None:
        html = (
            "<html><head><title>javdb.com</title></head>"
            "<body>Checking your browser before accessing</body></html>"
        )
        assert analyze_page_content(html) == ["cloudflare_challenge"]

    def test_cloudflare_title_not_reported_twice(self) -> None:
        html = (
            "<html><head><title>Just a moment...</title></head>"
            "<body>challenge-platform</body></html>"
        )
        assert analyze_page_content(html) == ["cloudflare_challenge"]
