from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal

ExtractionStatus = Literal["success", "cached", "partial", "error"]
ProgressStatus = Literal["success", "cached", "partial", "error"]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _snake(name: str) -> str:
    out: list[str] = []
    for ch in name:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


@dataclass(frozen=True)
class SearchResultStub:
    """A raw search hit handed over by the search front-end."""

    id: str
    title: str
    url: str
    source: str = ""
    keyword: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchResultStub:
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            source=str(data.get("source") or ""),
            keyword=data.get("keyword") or None,
        )


@dataclass(frozen=True)
class LinkCandidate:
    url: str
    title: str = ""
    code: str = ""
    score: int = 0
    extracted_from: str = "generic"


@dataclass(frozen=True)
class Actress:
    name: str
    profile_url: str | None = None
    avatar: str | None = None


@dataclass(frozen=True)
class DownloadLink:
    name: str
    url: str
    type: str = "http"
    size: str | None = None
    quality: str | None = None


@dataclass(frozen=True)
class MagnetLink:
    name: str
    magnet: str
    size: str | None = None
    seeders: int | None = None
    leechers: int | None = None


@dataclass(frozen=True)
class ParseLimits:
    """Caps on multi-value fields of one parsed page."""

    max_screenshots: int = 10
    max_download_links: int = 10
    max_magnet_links: int = 10
    max_tags: int = 20


_NESTED_LISTS: dict[str, type] = {
    "actresses": Actress,
    "download_links": DownloadLink,
    "magnet_links": MagnetLink,
}


def _nested_to_dict(item: Any) -> dict[str, Any]:
    return {_camel(k): v for k, v in asdict(item).items() if v is not None}


def _nested_from_dict(kind: type, raw: Any) -> Any:
    if isinstance(raw, kind):
        return raw
    data = {_snake(k): v for k, v in dict(raw).items()}
    allowed = {f.name for f in fields(kind)}
    return kind(**{k: v for k, v in data.items() if k in allowed})


@dataclass
class DetailRecord:
    """Structured detail information mined from a catalog page."""

    title: str = ""
    code: str = ""
    cover_image: str = ""
    screenshots: list[str] = field(default_factory=list)
    actresses: list[Actress] = field(default_factory=list)
    director: str = ""
    studio: str = ""
    label: str = ""
    series: str = ""
    release_date: str = ""
    duration: str = ""
    quality: str = ""
    file_size: str = ""
    resolution: str = ""
    download_links: list[DownloadLink] = field(default_factory=list)
    magnet_links: list[MagnetLink] = field(default_factory=list)
    description: str = ""
    tags: list[str] = field(default_factory=list)
    rating: float | None = None

    # Provenance
    source_type: str = "generic"
    detail_url: str = ""
    search_url: str = ""
    extraction_status: ExtractionStatus = "success"
    extraction_time: int = 0
    extracted_at: int = 0
    extraction_error: str | None = None
    error_type: str | None = None
    error_category: str | None = None
    retryable: bool | None = None
    retry_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Camel-cased, JSON-ready dict. ``None`` values are omitted."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name in _NESTED_LISTS:
                value = [_nested_to_dict(v) for v in value]
            elif isinstance(value, list):
                value = list(value)
            out[_camel(f.name)] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DetailRecord:
        allowed = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _snake(key)
            if name not in allowed:
                continue
            if name in _NESTED_LISTS:
                value = [_nested_from_dict(_NESTED_LISTS[name], v) for v in value or []]
            kwargs[name] = value
        return cls(**kwargs)

    @property
    def is_error(self) -> bool:
        return self.extraction_status == "error"


@dataclass(frozen=True)
class ExtractionResult:
    """One item of a batch: the record plus where it came from."""

    stub: SearchResultStub
    record: DetailRecord
    from_cache: bool = False
    cache_key: str | None = None
    total_time: int = 0


@dataclass(frozen=True)
class ProgressEvent:
    current: int
    total: int
    status: ProgressStatus
    item: str
    error: str | None = None


@dataclass
class SourceStats:
    total: int = 0
    successful: int = 0
    failed: int = 0


@dataclass
class BatchStats:
    total: int = 0
    successful: int = 0
    cached: int = 0
    partial: int = 0
    failed: int = 0
    total_time: int = 0
    average_time: int = 0
    success_rate: int = 0
    cache_hit_rate: int = 0
    items_per_second: float = 0.0
    by_source: dict[str, SourceStats] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "cached": self.cached,
            "partial": self.partial,
            "failed": self.failed,
            "totalTime": self.total_time,
            "averageTime": self.average_time,
            "successRate": self.success_rate,
            "cacheHitRate": self.cache_hit_rate,
            "bySource": {k: asdict(v) for k, v in self.by_source.items()},
            "performance": {"itemsPerSecond": self.items_per_second},
        }


@dataclass(frozen=True)
class BatchResult:
    results: list[ExtractionResult]
    stats: BatchStats
