"""Built-in rule tables for the supported catalog sites.

Selectors are CSS as understood by soupsieve; label matching uses
``:-soup-contains()``.  For single-value fields the comma-separated
alternatives are tried left to right, so list the most specific first.
"""

from __future__ import annotations

from codeseek.domain.entities import (
    DetailPageRules,
    FieldRule,
    LinkSelectorRule,
    SearchPageRules,
    SiteRuleSet,
    TextTransform,
)
from codeseek.domain.validation.urls import SPAM_DOMAINS

# --- shared transforms ------------------------------------------------------

_CLEAN_TITLE = (TextTransform.replace(r"\s+", " "), TextTransform.trim())
_TRIM = (TextTransform.trim(),)
_CODE = (
    TextTransform.extract(r"(?i)([A-Z]{2,6}-?\d{3,6})"),
    TextTransform.uppercase(),
)
_ISO_DATE = (TextTransform.extract(r"(\d{4}-\d{2}-\d{2})"),)
_NUMBER = (TextTransform.extract(r"(\d+(?:\.\d+)?)"),)
_MINUTES = (TextTransform.extract(r"(\d+)"),)

_CODE_PATH = r"(?i)/[A-Z]{2,6}-?\d{3,6}(?:/|$)"

_SPAM = tuple(sorted(SPAM_DOMAINS))


def _domain_patterns(domain: str) -> tuple[str, ...]:
    escaped = domain.replace(".", r"\.")
    return (rf"^.*\.{escaped}$", rf"^{escaped}$")


def _image(selector: str, fallback: str = "data-src") -> FieldRule:
    return FieldRule(selector=selector, attribute="src", fallback_attribute=fallback)


# --- javbus -----------------------------------------------------------------

JAVBUS = SiteRuleSet(
    site_id="javbus",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector=(
                    'a[href*="/"][href]:not([href*="/search"]):not([href*="/page"])'
                    ':not([href*="/genre"]):not([href*="/actress"])'
                ),
                title_selector="img[title], img[alt]",
                title_attribute="title",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=(
                    "/search/", "/category/", "/star/", "/studio/", "/label/",
                    "/genre/", "/actresses/", "/uncensored/", "/forum/", "/doc/",
                    "/page/", "/en", "/ja", "/ko", "/#", ".css", ".js",
                    "javascript:", "/terms", "/privacy", "/rss", "/sitemap",
                    "/api/", "/ajax/", "/admin/",
                ),
                require_pattern=_CODE_PATH,
                exclude_domains=_SPAM,
            ),
            LinkSelectorRule(
                selector=".movie-box a[href], a.movie-box[href]",
                title_selector="img",
                title_attribute="title",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=("/search/", "/category/", "/genre/", "/actresses/"),
                require_pattern=_CODE_PATH,
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule("h3, .title, title", transforms=_CLEAN_TITLE),
        code=FieldRule(".header .title span, h3 span, .info span:first-child", transforms=_CODE),
        cover_image=_image(".screencap img, .bigImage img, .poster img"),
        screenshots=_image(".sample-box img, .screenshot img, .preview img"),
        actresses=FieldRule(
            '.star-name a, .actress a, .info .genre:-soup-contains("演員") a',
            extract_profile=True,
        ),
        director=FieldRule('.info .genre:-soup-contains("導演") a, .director a', transforms=_TRIM),
        studio=FieldRule('.info .genre:-soup-contains("製作商") a, .studio a', transforms=_TRIM),
        label=FieldRule('.info .genre:-soup-contains("發行商") a, .label a', transforms=_TRIM),
        series=FieldRule('.info .genre:-soup-contains("系列") a, .series a', transforms=_TRIM),
        release_date=FieldRule(
            '.info .genre:-soup-contains("發行日期"), .release-date', transforms=_ISO_DATE
        ),
        duration=FieldRule(
            '.info .genre:-soup-contains("長度"), .duration',
            transforms=(TextTransform.extract(r"(\d+)\s*分"),),
        ),
        description=FieldRule(".description, .summary, .intro", transforms=_TRIM),
        tags=FieldRule(
            ".genre a, .tag a, .category a",
            exclude_texts=("演員", "導演", "製作商", "發行商", "系列", "發行日期", "長度"),
        ),
        magnet_links=FieldRule(
            'a[href^="magnet:"], .magnet-link',
            size_selector=".size, .filesize",
            seeders_selector=".seeders, .seeds",
        ),
        download_links=FieldRule(
            'a[href*="download"], .download-link',
            size_selector=".size",
            quality_selector=".quality",
            strict_validation=True,
            exclude_domains=_SPAM,
        ),
        rating=FieldRule(".rating, .score, .rate", transforms=_NUMBER),
    ),
)

# --- javdb ------------------------------------------------------------------

_JAVDB_EXCLUDES = ("/search/", "/actors/", "/makers/", "/publishers/")

JAVDB = SiteRuleSet(
    site_id="javdb",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector='a[href*="/v/"]:not([href*="/search"])',
                title_selector=".video-title, .title, h4",
                strict_domain_check=False,
                exclude_hrefs=_JAVDB_EXCLUDES,
                require_pattern=r"/v/[a-zA-Z0-9]+",
            ),
            LinkSelectorRule(
                selector=".movie-list .item a, .grid-item a, .video-node a",
                title_selector=".video-title, .title, h4",
                code_selector=".video-number, .uid, .meta strong",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=_JAVDB_EXCLUDES,
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule("h2.title, .video-title, title", transforms=_CLEAN_TITLE),
        code=FieldRule(".first-block .value, .video-meta strong", transforms=_CODE),
        cover_image=_image(".video-cover img, .cover img"),
        screenshots=_image(".tile-images img, .preview-images img"),
        actresses=FieldRule(
            '.panel-block:-soup-contains("演員") .value a, .actress-tag a',
            extract_profile=True,
        ),
        director=FieldRule('.panel-block:-soup-contains("導演") .value, .director', transforms=_TRIM),
        studio=FieldRule('.panel-block:-soup-contains("片商") .value, .studio', transforms=_TRIM),
        label=FieldRule('.panel-block:-soup-contains("廠牌") .value, .label', transforms=_TRIM),
        series=FieldRule('.panel-block:-soup-contains("系列") .value, .series', transforms=_TRIM),
        release_date=FieldRule(
            '.panel-block:-soup-contains("時間") .value, .release-date', transforms=_ISO_DATE
        ),
        duration=FieldRule('.panel-block:-soup-contains("時長") .value, .duration', transforms=_MINUTES),
        description=FieldRule(".description, .content", transforms=_TRIM),
        tags=FieldRule(
            '.panel-block:-soup-contains("類別") .tag a, .genre-tag a',
            exclude_texts=("演員", "導演", "片商", "廠牌", "系列", "時間", "時長"),
        ),
        magnet_links=FieldRule(
            'a[href^="magnet:"], .magnet-link',
            size_selector=".size",
            seeders_selector=".seeds",
        ),
        rating=FieldRule(".score, .rating", transforms=_NUMBER),
    ),
)

# --- javlibrary -------------------------------------------------------------

_JAVLIBRARY_EXCLUDES = ("/vl_searchbyid", "/vl_star", "/vl_director")

JAVLIBRARY = SiteRuleSet(
    site_id="javlibrary",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector='a[href*="?v="]:not([href*="vl_searchbyid"])',
                title_selector=".title, img[title]",
                title_attribute="title",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=_JAVLIBRARY_EXCLUDES,
                require_pattern=r"\?v=[a-zA-Z0-9]+",
            ),
            LinkSelectorRule(
                selector=".videos .video a, .video-title a",
                title_selector=".title, .video-title",
                code_selector=".id",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=_JAVLIBRARY_EXCLUDES,
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule("#video_title .post-title, h3", transforms=_CLEAN_TITLE),
        code=FieldRule("#video_id .text, .id", transforms=_CODE),
        cover_image=FieldRule("#video_jacket_img, .cover img", attribute="src"),
        actresses=FieldRule("#video_cast .star a, .cast a", extract_profile=True),
        director=FieldRule("#video_director a, .director a", transforms=_TRIM),
        studio=FieldRule("#video_maker a, .maker a", transforms=_TRIM),
        label=FieldRule("#video_label a, .label a", transforms=_TRIM),
        release_date=FieldRule("#video_date .text, .date", transforms=_ISO_DATE),
        duration=FieldRule("#video_length .text, .length", transforms=_MINUTES),
        tags=FieldRule("#video_genres a, .genre a"),
        rating=FieldRule(".score, #video_review .score", transforms=_NUMBER),
    ),
)

# --- jable ------------------------------------------------------------------

_JABLE_DOMAINS = _domain_patterns("jable.tv")

JABLE = SiteRuleSet(
    site_id="jable",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector='a[href*="/videos/"]:not([href*="/search"])',
                title_selector=".title, .video-title",
                strict_domain_check=False,
                exclude_hrefs=("/search/", "/categories/", "/models/"),
                require_pattern=r"/videos/[^/]+",
                allowed_domain_patterns=_JABLE_DOMAINS,
                exclude_domains=_SPAM,
            ),
            LinkSelectorRule(
                selector=".video-item a, .list-videos a",
                title_selector=".title, h4, .video-title",
                must_contain_code=True,
                strict_domain_check=False,
                allowed_domain_patterns=_JABLE_DOMAINS,
                exclude_hrefs=("/search/", "/categories/", "/models/"),
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule(".title-video, h1, .video-title", transforms=_CLEAN_TITLE),
        code=FieldRule(".models a, .video-detail strong, h4, h1", transforms=_CODE),
        cover_image=_image(".video-cover img, video[poster]", fallback="poster"),
        screenshots=_image(".video-screenshots img, .preview img"),
        actresses=FieldRule(".models a, .actress a", extract_profile=True),
        release_date=FieldRule(".video-detail .date, .publish-time", transforms=_ISO_DATE),
        duration=FieldRule(".video-detail .duration, .length", transforms=_MINUTES),
        tags=FieldRule(".tag a, .category a"),
        download_links=FieldRule(
            'a[href*="download"], .download-btn',
            quality_selector=".quality, .resolution",
            strict_validation=True,
            allowed_domain_patterns=_JABLE_DOMAINS,
            exclude_domains=_SPAM,
        ),
    ),
)

# --- javgg ------------------------------------------------------------------

_JAVGG_DOMAINS = _domain_patterns("javgg.net")

JAVGG = SiteRuleSet(
    site_id="javgg",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector='a[href*="/jav/"]:not([href*="/search"])',
                title_selector=".title, .video-title, h3",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=("/search/", "/category/", "/tag/", "/page/"),
                require_pattern=r"(?i)/jav/[A-Z]{2,6}-?\d{3,6}[^/]*/?",
                allowed_domain_patterns=_JAVGG_DOMAINS,
            ),
            LinkSelectorRule(
                selector=".video-item a, .movie-item a, .item a",
                title_selector=".title, h3, .video-title",
                must_contain_code=True,
                strict_domain_check=False,
                allowed_domain_patterns=_JAVGG_DOMAINS,
                exclude_hrefs=("/search/", "/category/", "/tag/"),
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule("h1, .video-title, .title", transforms=_CLEAN_TITLE),
        code=FieldRule("h1, .video-title, .code, .video-meta", transforms=_CODE),
        cover_image=_image(".video-cover img, .poster img, .cover img"),
        screenshots=_image(".screenshots img, .preview img, .gallery img"),
        actresses=FieldRule(".actress a, .performer a, .stars a", extract_profile=True),
        description=FieldRule(".description, .summary, .content", transforms=_TRIM),
        tags=FieldRule(".tag a, .genre a, .category a"),
        download_links=FieldRule(
            'a[href*="download"], .download-link',
            strict_validation=True,
            allowed_domain_patterns=_JAVGG_DOMAINS,
        ),
    ),
)

# --- sukebei ----------------------------------------------------------------

_SUKEBEI_DOMAINS = _domain_patterns("sukebei.nyaa.si")

SUKEBEI = SiteRuleSet(
    site_id="sukebei",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector='a[href*="/view/"]:not([href*="/?"])',
                strict_domain_check=False,
                exclude_hrefs=("/user/", "/?"),
                require_pattern=r"/view/\d+",
                allowed_domain_patterns=_SUKEBEI_DOMAINS,
            ),
            LinkSelectorRule(
                selector="tr td:first-child a, .torrent-name a",
                must_contain_code=True,
                strict_domain_check=False,
                allowed_domain_patterns=_SUKEBEI_DOMAINS,
                exclude_hrefs=("/user/", "/?"),
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule(".torrent-title, h3, .title", transforms=_CLEAN_TITLE),
        code=FieldRule(".torrent-title, .title, h3", transforms=_CODE),
        magnet_links=FieldRule(
            'a[href^="magnet:"], .magnet',
            size_selector=".size, .torrent-size",
            seeders_selector=".seeders, .seeds",
            leechers_selector=".leechers, .peers",
        ),
        download_links=FieldRule('a[href$=".torrent"], .torrent-download', size_selector=".size"),
        release_date=FieldRule(".date, .upload-time", transforms=_ISO_DATE),
        file_size=FieldRule(".size, .file-size", transforms=_TRIM),
    ),
)

# --- javmost ----------------------------------------------------------------

_JAVMOST_DOMAINS = _domain_patterns("javmost.com")

JAVMOST = SiteRuleSet(
    site_id="javmost",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector='a[href*="/"][href]:not([href*="/search"]):not([href*="/tag"])',
                title_selector=".title, h3, .video-title",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=("/search/", "/tag/", "/category/", "/page/"),
                require_pattern=r"(?i)/[A-Z]{2,6}-?\d{3,6}[^/]*(?:/|$)",
                allowed_domain_patterns=_JAVMOST_DOMAINS,
            ),
            LinkSelectorRule(
                selector=".video-item a, .movie-item a",
                title_selector=".title, h3",
                must_contain_code=True,
                strict_domain_check=False,
                allowed_domain_patterns=_JAVMOST_DOMAINS,
                exclude_hrefs=("/search/", "/tag/", "/category/"),
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule("h1, .video-title, .title", transforms=_CLEAN_TITLE),
        code=FieldRule("h1, .video-code, .title", transforms=_CODE),
        cover_image=_image(".video-cover img, .poster img"),
        actresses=FieldRule(".actress a, .performer a", extract_profile=True),
        description=FieldRule(".description, .summary", transforms=_TRIM),
        download_links=FieldRule(
            'a[href*="/"][title], .download-link',
            strict_validation=True,
            allowed_domain_patterns=_JAVMOST_DOMAINS,
            exclude_domains=("go.mnaspm.com", "mnaspm.com", "asacp.org"),
        ),
    ),
)

# --- javguru ----------------------------------------------------------------

JAVGURU = SiteRuleSet(
    site_id="javguru",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector='a[href*="/watch/"]:not([href*="?s="])',
                title_selector=".title, h3",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=("?s=", "/search/", "/category/"),
                allowed_domain_patterns=_domain_patterns("jav.guru"),
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule("h1, .video-title", transforms=_CLEAN_TITLE),
        code=FieldRule("h1, .video-title", transforms=_CODE),
    ),
)

# --- generic ----------------------------------------------------------------

_GENERIC_TITLE_SELECTOR = ".title, h1, h2, h3, h4, img[alt]"

GENERIC = SiteRuleSet(
    site_id="generic",
    search_page=SearchPageRules(
        detail_link_selectors=(
            LinkSelectorRule(
                selector=(
                    'a[href*="/"][href]:not([href*="/search"]):not([href*="/page"])'
                    ':not([href*="/category"])'
                ),
                title_selector=_GENERIC_TITLE_SELECTOR,
                title_attribute="title",
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=(
                    "/search/", "/category/", "/tag/", "/list/", "/page/", "/genre/",
                    "/actresses/", "/studio/", "/label/", "/forum/", "/doc/",
                    "/terms", "/privacy", "/#", ".css", ".js", "javascript:",
                    "/rss", "/sitemap",
                ),
                require_pattern=r"(?i)[A-Z]{2,6}-?\d{3,6}",
            ),
            LinkSelectorRule(
                selector=".item a, .movie a, .video a, .result a",
                title_selector=_GENERIC_TITLE_SELECTOR,
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=("/search/", "/category/", "/tag/", "/list/", "/page/"),
            ),
            LinkSelectorRule(
                selector='a[href]:not([href*="/search"]):not([href*="/page"])',
                title_selector=_GENERIC_TITLE_SELECTOR,
                must_contain_code=True,
                strict_domain_check=False,
                exclude_hrefs=(
                    "/search/", "/category/", "/tag/", "/list/", "/page/", "?page",
                    "/genre/", "/actresses/", "/studio/", "/label/", "/forum/",
                    "/doc/", "/terms", "/privacy", "/#", ".css", ".js",
                    "javascript:", "/en", "/ja", "/ko", "/rss", "/sitemap",
                    "/api/", "/ajax/",
                ),
            ),
        )
    ),
    detail_page=DetailPageRules(
        title=FieldRule("h1, h2, h3, .title, title", transforms=_CLEAN_TITLE),
        code=FieldRule("h1, h2, h3, .title, .code", transforms=_CODE),
        cover_image=_image('img[class*="cover"], img[class*="poster"], img[class*="thumb"]'),
        screenshots=_image(
            'img[class*="screenshot"], img[class*="preview"], img[class*="sample"]'
        ),
        actresses=FieldRule(
            'a[class*="actress"], a[class*="performer"], a[class*="star"]',
            extract_profile=True,
        ),
        description=FieldRule(".description, .summary, .content, .intro", transforms=_TRIM),
        tags=FieldRule(".tag a, .genre a, .category a"),
        magnet_links=FieldRule(
            'a[href^="magnet:"]',
            size_selector=".size",
            seeders_selector=".seeds, .seeders",
        ),
        download_links=FieldRule(
            'a[href*="download"], .download',
            size_selector=".size",
            strict_validation=True,
        ),
        rating=FieldRule(".rating, .score, .rate", transforms=_NUMBER),
    ),
)

BUILTIN_RULE_SETS: tuple[SiteRuleSet, ...] = (
    JAVBUS,
    JAVDB,
    JAVLIBRARY,
    JABLE,
    JAVGG,
    SUKEBEI,
    JAVMOST,
    JAVGURU,
    GENERIC,
)
