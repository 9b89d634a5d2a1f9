"""Common infrastructure utilities."""

from __future__ import annotations

from .converters import first_number, to_int
from .html_selectors import Document, Element, parse_html, split_selector_list

__all__ = [
    "Document",
    "Element",
    "first_number",
    "parse_html",
    "split_selector_list",
    "to_int",
]
