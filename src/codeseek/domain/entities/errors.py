"""Error taxonomy for detail extraction.

Every error carries enough metadata for the API layer to build a
user-facing payload (type, category, retryable flag, remediation hints)
without inspecting the exception class itself.
"""

from __future__ import annotations

from typing import Literal

ErrorCategory = Literal["validation", "timeout", "network", "parsing", "internal"]


_SUGGESTIONS: dict[str, tuple[str, ...]] = {
    "TimeoutError": (
        "Increase the extraction timeout",
        "Check the network connection",
        "Retry later",
    ),
    "ValidationError": (
        "Check the input format",
        "Make sure the URL is valid",
    ),
    "NetworkError": (
        "Check the network connection",
        "The target site may be temporarily unavailable",
    ),
    "ParseError": (
        "The page structure may have changed",
        "Try generic parsing",
    ),
}

_DEFAULT_SUGGESTIONS: tuple[str, ...] = (
    "Retry later",
    "Contact support if the problem persists",
)


def suggestions_for(error_type: str) -> list[str]:
    """Remediation hints for an error type name."""
    return list(_SUGGESTIONS.get(error_type, _DEFAULT_SUGGESTIONS))


class ExtractionError(Exception):
    """Base error for the extraction pipeline."""

    error_type: str = "InternalError"
    category: ErrorCategory = "internal"
    retryable: bool = False
    status_code: int = 500

    def suggestions(self) -> list[str]:
        return suggestions_for(self.error_type)


class ExtractionValidationError(ExtractionError):
    """Input rejected before any network call."""

    error_type = "ValidationError"
    category = "validation"
    status_code = 400


class ExtractionTimeoutError(ExtractionError):
    error_type = "TimeoutError"
    category = "timeout"
    retryable = True
    status_code = 408


class ExtractionNetworkError(ExtractionError):
    """Non-2xx status, transport failure or an empty body."""

    error_type = "NetworkError"
    category = "network"
    retryable = True
    status_code = 502


class ExtractionParseError(ExtractionError):
    error_type = "ParseError"
    category = "parsing"
    status_code = 422


def classify(exc: BaseException) -> tuple[str, ErrorCategory, bool]:
    """Return ``(error_type, category, retryable)`` for any exception."""
    if isinstance(exc, ExtractionError):
        return exc.error_type, exc.category, exc.retryable
    return "InternalError", "internal", False
