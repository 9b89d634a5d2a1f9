"""Catalog code ("ABC-123") recognition."""

from __future__ import annotations

import re

# Letters+digits with optional dash, then bare letters+digits, then the
# reversed digits-first form some uploaders use.
_TEXT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"([A-Z]{2,6}-?\d{3,6})", re.IGNORECASE),
    re.compile(r"([A-Z]+\d{3,6})", re.IGNORECASE),
    re.compile(r"(\d{3,6}[A-Z]{2,6})", re.IGNORECASE),
)

_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"/([A-Z]{2,6}-?\d{3,6})(?:/|$)", re.IGNORECASE),
    re.compile(r"[?&].*?([A-Z]{2,6}-?\d{3,6})", re.IGNORECASE),
)

CODE_RE = re.compile(r"[A-Z]{2,6}-?\d{3,6}", re.IGNORECASE)
CODE_PATH_RE = re.compile(r"/[A-Z]{2,6}-?\d{3,6}(?:/|$)", re.IGNORECASE)


def extract_code_from_text(text: str | None) -> str:
    """Return the first catalog code found in *text*, upper-cased, or ``""``."""
    if not text:
        return ""
    for pattern in _TEXT_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).upper()
    return ""


def extract_code_from_title(title: str | None) -> str:
    return extract_code_from_text(title)


def extract_code_from_url(url: str | None) -> str:
    if not url:
        return ""
    for pattern in _URL_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1).upper()
    return ""


def contains_code(text: str | None) -> bool:
    return bool(text) and CODE_RE.search(text) is not None


def has_code_path(url: str) -> bool:
    return CODE_PATH_RE.search(url) is not None
