from .cache import CacheEntry, CacheStats
from .detail import (
    Actress,
    BatchResult,
    BatchStats,
    DetailRecord,
    DownloadLink,
    ExtractionResult,
    ExtractionStatus,
    LinkCandidate,
    MagnetLink,
    ParseLimits,
    ProgressEvent,
    SearchResultStub,
    SourceStats,
)
from .errors import (
    ExtractionError,
    ExtractionNetworkError,
    ExtractionParseError,
    ExtractionTimeoutError,
    ExtractionValidationError,
)
from .rules import (
    DetailPageRules,
    FieldRule,
    LinkSelectorRule,
    SearchPageRules,
    SiteRuleSet,
    TextTransform,
)

__all__ = [
    "Actress",
    "BatchResult",
    "BatchStats",
    "CacheEntry",
    "CacheStats",
    "DetailPageRules",
    "DetailRecord",
    "DownloadLink",
    "ExtractionError",
    "ExtractionNetworkError",
    "ExtractionParseError",
    "ExtractionResult",
    "ExtractionStatus",
    "ExtractionTimeoutError",
    "ExtractionValidationError",
    "FieldRule",
    "LinkCandidate",
    "LinkSelectorRule",
    "MagnetLink",
    "ParseLimits",
    "ProgressEvent",
    "SearchPageRules",
    "SearchResultStub",
    "SiteRuleSet",
    "SourceStats",
    "TextTransform",
]
