"""Relevance scoring of detail-link candidates against a search keyword.

Two stages:

* :func:`calculate_match_score` scores a raw candidate while the search
  page is being scanned.
* :func:`calculate_enhanced_match_score` re-scores the survivors when the
  orchestrator picks the single best detail URL.

Both keep exact code matches strictly ahead of substring code matches.
"""

from __future__ import annotations

import re

from codeseek.domain.entities import LinkCandidate, SearchResultStub
from codeseek.domain.validation.detail_url import is_high_quality_detail_url

NO_KEYWORD_SCORE = 50
EXACT_CODE_SCORE_FLOOR = 70

EXACT_CODE_BONUS = 40
SUBSTRING_CODE_BONUS = 30
EXACT_TITLE_BONUS = 30
CONTAINED_TITLE_BONUS = 20
SIMILARITY_WEIGHT = 30

ENHANCED_EXACT_CODE_BONUS = 40
ENHANCED_SUBSTRING_CODE_BONUS = 25
ENHANCED_SIMILARITY_WEIGHT = 15
ENHANCED_QUALITY_URL_BONUS = 10
ENHANCED_TRUSTED_RULE_BONUS = 15

TRUSTED_SOURCES: frozenset[str] = frozenset(
    {"javbus_moviebox", "javdb_video", "javlibrary_video", "javgg_video"}
)

_NON_ALNUM = re.compile(r"[^\w]", re.UNICODE)


def _words(text: str) -> set[str]:
    out: set[str] = set()
    for token in text.lower().split():
        word = _NON_ALNUM.sub("", token)
        if len(word) > 2:
            out.add(word)
    return out


def calculate_text_similarity(a: str | None, b: str | None) -> float:
    """Jaccard similarity over normalised words longer than two chars."""
    if not a or not b:
        return 0.0
    if _NON_ALNUM.sub("", a.lower()) == _NON_ALNUM.sub("", b.lower()):
        return 1.0
    words_a = _words(a)
    words_b = _words(b)
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def _code_relation(code: str, keyword: str) -> str:
    """``"exact"``, ``"substring"`` or ``""``."""
    if not code or not keyword:
        return ""
    c = code.lower()
    k = keyword.lower()
    if c == k:
        return "exact"
    if c in k or k in c:
        return "substring"
    return ""


def calculate_match_score(title: str, code: str, keyword: str | None) -> int:
    """Score a search-page candidate in ``[0, 100]``."""
    if not keyword:
        return NO_KEYWORD_SCORE

    kw = keyword.lower().strip()
    score = 0

    relation = _code_relation(code, kw)
    if relation == "exact":
        score += EXACT_CODE_BONUS
    elif relation == "substring":
        score += SUBSTRING_CODE_BONUS

    lowered_title = (title or "").lower()
    if lowered_title and lowered_title == kw:
        score += EXACT_TITLE_BONUS
    elif lowered_title and kw in lowered_title:
        score += CONTAINED_TITLE_BONUS

    score += round(calculate_text_similarity(title, keyword) * SIMILARITY_WEIGHT)
    score = min(100, score)

    if relation == "exact":
        score = max(score, EXACT_CODE_SCORE_FLOOR)
    elif relation == "substring":
        score = min(score, EXACT_CODE_SCORE_FLOOR - 1)
    return score


def calculate_enhanced_match_score(
    link: LinkCandidate,
    search_result: SearchResultStub,
    keyword: str | None,
) -> int:
    score = float(link.score)

    relation = _code_relation(link.code, (keyword or "").strip())
    if relation == "exact":
        score += ENHANCED_EXACT_CODE_BONUS
    elif relation == "substring":
        score += ENHANCED_SUBSTRING_CODE_BONUS

    if search_result.title and link.title:
        score += (
            calculate_text_similarity(search_result.title, link.title)
            * ENHANCED_SIMILARITY_WEIGHT
        )

    if is_high_quality_detail_url(link.url):
        score += ENHANCED_QUALITY_URL_BONUS

    if link.extracted_from in TRUSTED_SOURCES:
        score += ENHANCED_TRUSTED_RULE_BONUS

    return int(round(max(0.0, min(100.0, score))))
