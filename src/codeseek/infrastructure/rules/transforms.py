from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable

import structlog

from codeseek.domain.entities import TextTransform

log = structlog.get_logger(__name__)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error as e:
        log.debug("transform_pattern_invalid", pattern=pattern, error=str(e))
        return None


def apply_transforms(text: str, transforms: Iterable[TextTransform]) -> str:
    """Run *text* through each transform in order.

    An ``extract`` that does not match leaves the text unchanged; an invalid
    pattern is skipped.
    """
    result = text
    for t in transforms:
        if t.kind == "replace":
            regex = _compile(t.pattern)
            if regex is not None:
                result = regex.sub(t.replacement, result)
        elif t.kind == "trim":
            result = result.strip()
        elif t.kind == "uppercase":
            result = result.upper()
        elif t.kind == "lowercase":
            result = result.lower()
        elif t.kind == "extract":
            regex = _compile(t.pattern)
            match = regex.search(result) if regex is not None else None
            if match is not None:
                try:
                    group = match.group(t.group)
                except IndexError:
                    group = None
                if group:
                    result = group
    return result
