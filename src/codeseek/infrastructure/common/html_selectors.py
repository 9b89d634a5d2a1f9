"""Queryable document facade over BeautifulSoup.

Extraction code talks to :class:`Document` and :class:`Element` only, never
to bs4 directly.  Selectors are evaluated by soupsieve; an invalid or
unsupported selector is logged and yields no elements instead of raising,
so one broken rule never takes down a whole parse.
"""

from __future__ import annotations

import re
from functools import cached_property

import soupsieve as sv
import structlog
from bs4 import BeautifulSoup, Tag

from codeseek.domain.validation.codes import extract_code_from_text

log = structlog.get_logger(__name__)

SELECTOR_CACHE_SIZE = 256

_STRIPPED_TAGS = ("script", "style", "noscript", "template")
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TITLE_LIKE = "h1, h2, h3, h4, h5, h6, .title, .video-title"


def _select(root: Tag, selector: str) -> list[Tag]:
    try:
        return list(root.select(selector))
    except (sv.SelectorSyntaxError, NotImplementedError, ValueError) as e:
        log.debug("selector_unsupported", selector=selector, error=str(e))
        return []


def _collapse(text: str) -> str:
    return " ".join(text.split())


class Element:
    """Read-only view of one tag."""

    def __init__(self, tag: Tag, document: Document) -> None:
        self._tag = tag
        self._document = document

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Element) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"<Element {self.tag_name} {self.text_content[:40]!r}>"

    @property
    def tag_name(self) -> str:
        return self._tag.name or ""

    def get_attribute(self, name: str) -> str | None:
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    @cached_property
    def text_content(self) -> str:
        return _collapse(self._tag.get_text(" "))

    def query_selector(self, selector: str) -> Element | None:
        found = _select(self._tag, selector)
        return Element(found[0], self._document) if found else None

    def query_selector_all(self, selector: str) -> list[Element]:
        return [Element(t, self._document) for t in _select(self._tag, selector)]

    @property
    def parent(self) -> Element | None:
        parent = self._tag.parent
        if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup):
            return Element(parent, self._document)
        return None

    def closest(self, selector: str) -> Element | None:
        try:
            found = sv.closest(selector, self._tag)
        except (sv.SelectorSyntaxError, NotImplementedError, ValueError) as e:
            log.debug("selector_unsupported", selector=selector, error=str(e))
            return None
        return Element(found, self._document) if found is not None else None

    # --- lazy hints ---------------------------------------------------------

    @cached_property
    def title_hint(self) -> str:
        """Best-effort title for a link-like element.

        Lookup order: own ``title`` attribute, nested image title/alt,
        nested heading-like tag, then a div whose class mentions "title".
        """
        own = self.get_attribute("title")
        if own and own.strip():
            return own.strip()
        img = self.query_selector("img[title], img[alt]")
        if img is not None:
            text = img.get_attribute("title") or img.get_attribute("alt") or ""
            if text.strip():
                return text.strip()
        heading = self.query_selector(_TITLE_LIKE)
        if heading is not None and heading.text_content:
            return heading.text_content
        div = self.query_selector('div[class*="title"]')
        if div is not None and div.text_content:
            return div.text_content
        return ""

    @cached_property
    def code_hint(self) -> str:
        for text in (self.title_hint, self.text_content, self.get_attribute("href") or ""):
            code = extract_code_from_text(text)
            if code:
                return code
        return ""

    @cached_property
    def date_hint(self) -> str:
        match = _DATE_RE.search(self.text_content)
        return match.group(0) if match else ""


class Document:
    """Parsed HTML page with a bounded per-document selector cache."""

    def __init__(self, soup: BeautifulSoup, *, cache_size: int = SELECTOR_CACHE_SIZE) -> None:
        self._soup = soup
        self._cache: dict[str, list[Element]] = {}
        self._cache_size = cache_size

    @property
    def title(self) -> str:
        tag = self._soup.title
        return _collapse(tag.get_text(" ")) if tag is not None else ""

    @property
    def cached_selectors(self) -> int:
        return len(self._cache)

    def query_selector_all(self, selector: str) -> list[Element]:
        key = f"all:{selector}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        result = [Element(t, self) for t in _select(self._soup, selector)]
        if len(self._cache) >= self._cache_size:
            self._cache.clear()
        self._cache[key] = result
        return result

    def query_selector(self, selector: str) -> Element | None:
        found = self.query_selector_all(selector)
        return found[0] if found else None

    def select_items(self, *selectors: str) -> list[Element]:
        """Return matches of the first selector that yields any."""
        for sel in selectors:
            items = self.query_selector_all(sel)
            if items:
                return items
        return []


def parse_html(html: str) -> Document:
    """Parse an HTML string into a :class:`Document`.

    Script-like tags are dropped up front so text content never carries
    inline code.
    """
    soup = BeautifulSoup(html or "", "lxml")
    for tag in soup(list(_STRIPPED_TAGS)):
        tag.decompose()
    return Document(soup)


def split_selector_list(selector: str) -> list[str]:
    """Split a comma-separated selector list into its alternatives.

    Commas inside parentheses, brackets or quotes do not split, so
    ``a:-soup-contains("x, y"), b`` yields two parts.
    """
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    quote = ""
    for ch in selector:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = ""
            continue
        if ch in "\"'":
            quote = ch
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        elif ch == "," and depth == 0:
            part = "".join(buf).strip()
            if part:
                parts.append(part)
            buf = []
            continue
        buf.append(ch)
    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return parts