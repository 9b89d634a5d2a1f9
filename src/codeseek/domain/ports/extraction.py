"""Ports for the pieces the detail extraction use case is built from."""

from __future__ import annotations

from typing import Any, Protocol

from codeseek.domain.entities import DetailRecord, LinkCandidate, ParseLimits, SearchResultStub


class SearchLinkExtractorPort(Protocol):
    def extract_detail_links(
        self,
        html: str,
        *,
        source_type: str,
        base_url: str,
        search_keyword: str | None = None,
    ) -> list[LinkCandidate]:
        """Ranked detail-page candidates found on a search page. Never raises."""
        ...


class DetailParserPort(Protocol):
    def parse_detail_page(
        self,
        html: str,
        *,
        source_type: str,
        original_url: str,
        original_title: str = "",
        limits: ParseLimits | None = None,
    ) -> dict[str, Any]:
        """Unvalidated field bag keyed by DetailRecord field names."""
        ...


class DetailRecordCachePort(Protocol):
    def cache_key(self, url: str) -> str: ...

    async def get(self, url: str) -> DetailRecord | None: ...

    async def set(self, url: str, record: DetailRecord, ttl_ms: int | None = None) -> bool: ...


class DetailRecordValidatorPort(Protocol):
    def validate_and_enhance(
        self,
        data: dict[str, Any],
        *,
        stub: SearchResultStub,
        detail_url: str,
        source_type: str,
        strict: bool = True,
    ) -> DetailRecord:
        """Filter links, normalize scalar fields and fill title/code fallbacks."""
        ...
