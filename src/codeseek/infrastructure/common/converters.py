"""Lenient number parsing for scraped text."""

from __future__ import annotations

import re

_FLOAT_RE = re.compile(r"\d+(?:\.\d+)?")


def to_int(raw: str | int | None) -> int | None:
    """Digits of *raw* as an int, ``None`` when there are none.

    ``"1,234 seeds"`` -> 1234, ``"12"`` -> 12, ``""`` -> None.
    """
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    digits = "".join(ch for ch in raw if ch.isdigit())
    if not digits:
        return None
    return int(digits)


def first_number(raw: str | None) -> float | None:
    """First decimal number in *raw*: ``"Score 8.5/10"`` -> 8.5."""
    if not raw:
        return None
    match = _FLOAT_RE.search(raw)
    return float(match.group(0)) if match else None
