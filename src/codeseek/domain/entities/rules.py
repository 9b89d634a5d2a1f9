"""Typed per-site parsing rules.

A :class:`SiteRuleSet` describes how to find detail links on a site's
search page and how to pull fields out of its detail page. Rule sets are
immutable; the registry swaps whole sets instead of mutating them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Iterator, Literal

TransformKind = Literal["replace", "trim", "uppercase", "lowercase", "extract"]


@dataclass(frozen=True)
class TextTransform:
    kind: TransformKind
    pattern: str = ""
    replacement: str = ""
    group: int = 1

    @classmethod
    def replace(cls, pattern: str, replacement: str) -> TextTransform:
        return cls("replace", pattern=pattern, replacement=replacement)

    @classmethod
    def trim(cls) -> TextTransform:
        return cls("trim")

    @classmethod
    def uppercase(cls) -> TextTransform:
        return cls("uppercase")

    @classmethod
    def lowercase(cls) -> TextTransform:
        return cls("lowercase")

    @classmethod
    def extract(cls, pattern: str, group: int = 1) -> TextTransform:
        return cls("extract", pattern=pattern, group=group)


@dataclass(frozen=True)
class LinkSelectorRule:
    """How to recognise detail links on a search page."""

    selector: str
    title_selector: str | None = None
    title_attribute: str | None = None
    code_selector: str | None = None
    require_pattern: str | None = None
    exclude_hrefs: tuple[str, ...] = ()
    allowed_domain_patterns: tuple[str, ...] = ()
    exclude_domains: tuple[str, ...] = ()
    must_contain_code: bool = False
    strict_domain_check: bool = True


@dataclass(frozen=True)
class FieldRule:
    """Selector plus post-processing for one detail field."""

    selector: str
    attribute: str | None = None
    fallback_attribute: str | None = None
    transforms: tuple[TextTransform, ...] = ()
    exclude_texts: tuple[str, ...] = ()
    extract_profile: bool = False
    size_selector: str | None = None
    seeders_selector: str | None = None
    leechers_selector: str | None = None
    quality_selector: str | None = None
    strict_validation: bool = False
    allowed_domain_patterns: tuple[str, ...] = ()
    exclude_domains: tuple[str, ...] = ()


@dataclass(frozen=True)
class SearchPageRules:
    detail_link_selectors: tuple[LinkSelectorRule, ...] = ()


@dataclass(frozen=True)
class DetailPageRules:
    title: FieldRule | None = None
    code: FieldRule | None = None
    cover_image: FieldRule | None = None
    screenshots: FieldRule | None = None
    actresses: FieldRule | None = None
    director: FieldRule | None = None
    studio: FieldRule | None = None
    label: FieldRule | None = None
    series: FieldRule | None = None
    release_date: FieldRule | None = None
    duration: FieldRule | None = None
    quality: FieldRule | None = None
    file_size: FieldRule | None = None
    resolution: FieldRule | None = None
    description: FieldRule | None = None
    tags: FieldRule | None = None
    magnet_links: FieldRule | None = None
    download_links: FieldRule | None = None
    rating: FieldRule | None = None

    def items(self) -> Iterator[tuple[str, FieldRule]]:
        """Yield ``(field_name, rule)`` for every configured field."""
        for f in fields(self):
            rule = getattr(self, f.name)
            if rule is not None:
                yield f.name, rule

    def merged_with(self, override: DetailPageRules) -> DetailPageRules:
        """Return a copy where every field configured in *override* wins."""
        return replace(self, **dict(override.items()))


@dataclass(frozen=True)
class SiteRuleSet:
    site_id: str
    search_page: SearchPageRules = field(default_factory=SearchPageRules)
    detail_page: DetailPageRules = field(default_factory=DetailPageRules)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, site_id: str, data: dict[str, Any]) -> SiteRuleSet:
        """Rebuild a rule set from its :meth:`to_dict` shape.

        Raises:
            TypeError / ValueError: on unknown keys or malformed values.
        """
        search = data.get("search_page") or {}
        detail = data.get("detail_page") or {}
        selectors = tuple(
            _link_rule_from_dict(raw) for raw in search.get("detail_link_selectors", ())
        )
        detail_rules = DetailPageRules(
            **{
                name: _field_rule_from_dict(raw)
                for name, raw in detail.items()
                if raw is not None
            }
        )
        return cls(
            site_id=site_id,
            search_page=SearchPageRules(detail_link_selectors=selectors),
            detail_page=detail_rules,
        )


_TUPLE_KEYS = ("exclude_hrefs", "allowed_domain_patterns", "exclude_domains", "exclude_texts")


def _tupled(raw: dict[str, Any]) -> dict[str, Any]:
    data = dict(raw)
    for key in _TUPLE_KEYS:
        if key in data:
            data[key] = tuple(data[key])
    return data


def _link_rule_from_dict(raw: dict[str, Any]) -> LinkSelectorRule:
    return LinkSelectorRule(**_tupled(raw))


def _field_rule_from_dict(raw: dict[str, Any]) -> FieldRule:
    data = _tupled(raw)
    data["transforms"] = tuple(TextTransform(**t) for t in data.get("transforms", ()))
    return FieldRule(**data)
