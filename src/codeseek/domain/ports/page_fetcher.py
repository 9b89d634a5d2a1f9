from __future__ import annotations

from typing import Protocol


class PageFetcherPort(Protocol):
    """Fetches upstream HTML pages.

    ``source_type`` lets the implementation add site-specific request
    headers. Implementations raise ``ExtractionTimeoutError`` on timeout and
    ``ExtractionNetworkError`` on non-2xx status, transport failure or a
    body too short to be a real page.
    """

    async def fetch(self, url: str, *, timeout_ms: int, source_type: str | None = None) -> str:
        ...

    async def aclose(self) -> None: ...
