from .cache import CachePort
from .extraction import (
    DetailParserPort,
    DetailRecordCachePort,
    DetailRecordValidatorPort,
    SearchLinkExtractorPort,
)
from .page_fetcher import PageFetcherPort

__all__ = [
    "CachePort",
    "DetailParserPort",
    "DetailRecordCachePort",
    "DetailRecordValidatorPort",
    "PageFetcherPort",
    "SearchLinkExtractorPort",
]
