"""
XML sitemap analysis and discovery.

``analyze_sitemap`` fetches and classifies one sitemap; ``discover_sitemaps``
finds candidates via robots.txt, ``<link rel="sitemap">`` and conventional
paths and sums their coverage. Sitemap indexes are listed, not recursed.
"""

import asyncio
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field, asdict
from enum import Enum
from urllib.parse import urlparse

import httpx

from siteaudit.config import settings
from siteaudit.services.http import open_client
from siteaudit.services.markup import resolve_url

logger = logging.getLogger(__name__)

MAX_LISTED_ENTRIES = 50

COMMON_SITEMAP_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap-index.xml",
    "/wp-sitemap.xml",
    "/sitemap1.xml",
    "/sitemaps.xml",
)


class SitemapCategory(str, Enum):
    CATEGORY = "category"
    PRODUCT = "product"
    BLOG = "blog"
    STATIC = "static"
    CURRENT = "current"
    OTHER = "other"


class SitemapSource(str, Enum):
    ROBOTS = "robots.txt"
    HTML = "html"
    COMMON_PATH = "common-path"


# Evaluated top to bottom; the first matching rule wins.
CATEGORY_RULES: tuple[tuple[SitemapCategory, tuple[str, ...]], ...] = (
    (SitemapCategory.CATEGORY, ("/category/", "/categories/", "/tag/", "/tags/")),
    (SitemapCategory.PRODUCT, ("/product/", "/products/", "/item/", "/items/")),
    (SitemapCategory.BLOG, ("/blog/", "/post/", "/posts/", "/article/", "/articles/")),
)

STATIC_MAX_DEPTH = 1


def _normalize(url: str) -> str:
    return url.split("#", 1)[0].rstrip("/").lower()


def _path_depth(path: str) -> int:
    return len([segment for segment in path.split("/") if segment])


def classify_url(location: str, audited_url: str) -> SitemapCategory:
    path = urlparse(location).path.lower()
    probe = path if path.endswith("/") else f"{path}/"
    for category, markers in CATEGORY_RULES:
        if any(marker in probe for marker in markers):
            return category
    if _normalize(location) == _normalize(audited_url):
        return SitemapCategory.CURRENT
    if _path_depth(path) <= STATIC_MAX_DEPTH:
        return SitemapCategory.STATIC
    return SitemapCategory.OTHER


@dataclass
class SitemapEntry:
    location: str
    last_modified: str | None = None
    change_frequency: str | None = None
    priority: str | None = None
    category: SitemapCategory = SitemapCategory.OTHER


@dataclass
class SitemapCoverage:
    total_pages: int = 0
    category_pages: int = 0
    product_pages: int = 0
    blog_pages: int = 0
    static_pages: int = 0
    current_pages: int = 0
    other_pages: int = 0
    has_current_page: bool = False

    def count(self, category: SitemapCategory) -> None:
        attr = f"{category.value}_pages"
        setattr(self, attr, getattr(self, attr) + 1)
        self.total_pages += 1
        if category == SitemapCategory.CURRENT:
            self.has_current_page = True

    def __add__(self, other: "SitemapCoverage") -> "SitemapCoverage":
        return SitemapCoverage(
            total_pages=self.total_pages + other.total_pages,
            category_pages=self.category_pages + other.category_pages,
            product_pages=self.product_pages + other.product_pages,
            blog_pages=self.blog_pages + other.blog_pages,
            static_pages=self.static_pages + other.static_pages,
            current_pages=self.current_pages + other.current_pages,
            other_pages=self.other_pages + other.other_pages,
            has_current_page=self.has_current_page or other.has_current_page,
        )


@dataclass
class SitemapAnalysis:
    url: str
    source: str = ""
    analyzed: bool = False
    kind: str | None = None
    total_pages: int = 0
    sitemap_count: int = 0
    entries: list[SitemapEntry] = field(default_factory=list)
    coverage: SitemapCoverage = field(default_factory=SitemapCoverage)
    error: str | None = None
    all_locations: list[str] = field(default_factory=list, repr=False)

    def lists(self, url: str) -> bool:
        """True if ``url`` is one of this sitemap's locations."""
        target = _normalize(url)
        return any(_normalize(location) == target for location in self.all_locations)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("all_locations")
        return data


@dataclass
class SitemapReport:
    found: bool = False
    sitemaps: list[SitemapAnalysis] = field(default_factory=list)
    coverage: SitemapCoverage = field(default_factory=SitemapCoverage)

    @property
    def has_current_page(self) -> bool:
        return self.coverage.has_current_page

    @property
    def analyzed(self) -> list[SitemapAnalysis]:
        return [s for s in self.sitemaps if s.analyzed]

    def to_dict(self) -> dict:
        return {
            "found": self.found,
            "sitemaps": [s.to_dict() for s in self.sitemaps],
            "coverage": asdict(self.coverage),
            "has_current_page": self.has_current_page,
        }


def _localname(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[-1]
    return tag


def _child_text(node: ET.Element, name: str) -> str | None:
    for child in node:
        if _localname(child.tag) == name and child.text:
            return child.text.strip()
    return None


def parse_sitemap_xml(content: bytes | str, url: str, audited_url: str) -> SitemapAnalysis:
    """Parse sitemap XML already in hand. Invalid XML gives ``analyzed=False``."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        return SitemapAnalysis(url=url, error=f"Invalid XML: {e}")

    root_name = _localname(root.tag)
    analysis = SitemapAnalysis(url=url, analyzed=True, kind=root_name)

    if root_name == "sitemapindex":
        for node in root:
            if _localname(node.tag) != "sitemap":
                continue
            loc = _child_text(node, "loc")
            if not loc:
                continue
            location = resolve_url(url, loc)
            if location is None:
                continue
            analysis.all_locations.append(location)
            if len(analysis.entries) < MAX_LISTED_ENTRIES:
                analysis.entries.append(SitemapEntry(
                    location=location,
                    last_modified=_child_text(node, "lastmod"),
                ))
        analysis.sitemap_count = len(analysis.all_locations)
        return analysis

    if root_name != "urlset":
        return SitemapAnalysis(url=url, kind=root_name, error=f"Unsupported root element: {root_name}")

    for node in root:
        if _localname(node.tag) != "url":
            continue
        loc = _child_text(node, "loc")
        if not loc:
            continue
        location = resolve_url(url, loc)
        if location is None:
            continue
        category = classify_url(location, audited_url)
        analysis.coverage.count(category)
        analysis.all_locations.append(location)
        if len(analysis.entries) < MAX_LISTED_ENTRIES:
            analysis.entries.append(SitemapEntry(
                location=location,
                last_modified=_child_text(node, "lastmod"),
                change_frequency=_child_text(node, "changefreq"),
                priority=_child_text(node, "priority"),
                category=category,
            ))

    analysis.total_pages = analysis.coverage.total_pages
    return analysis


async def analyze_sitemap(
    url: str,
    audited_url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
    source: str = "",
) -> SitemapAnalysis:
    """Fetch and analyze one sitemap. Never raises."""
    timeout = timeout if timeout is not None else settings.SITEMAP_TIMEOUT
    try:
        async with open_client(client, timeout) as http:
            response = await http.get(url, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Failed to fetch sitemap {url}: {e}")
        return SitemapAnalysis(url=url, source=source, error=str(e) or type(e).__name__)

    if not response.is_success:
        return SitemapAnalysis(url=url, source=source, error=f"HTTP {response.status_code}")

    analysis = parse_sitemap_xml(response.content, url, audited_url)
    analysis.source = source
    if analysis.analyzed:
        logger.info(f"Analyzed sitemap {url}: {analysis.kind}, {len(analysis.all_locations)} entries")
    else:
        logger.warning(f"Could not parse sitemap {url}: {analysis.error}")
    return analysis


async def probe_sitemap(url: str, client: httpx.AsyncClient, timeout: float) -> bool | None:
    """Cheap HEAD check.

    Returns True when the response is a 2xx XML document, False when the
    sitemap is definitely missing, None when the probe is inconclusive.
    """
    try:
        response = await client.head(url, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.debug(f"HEAD probe failed for {url}: {e}")
        return None
    if response.status_code in (404, 410):
        return False
    if response.is_success and "xml" in response.headers.get("content-type", "").lower():
        return True
    return None


async def _check_declared(
    url: str,
    audited_url: str,
    client: httpx.AsyncClient,
    timeout: float,
    source: str,
) -> SitemapAnalysis:
    if await probe_sitemap(url, client, timeout) is False:
        return SitemapAnalysis(url=url, source=source, error="Not found")
    return await analyze_sitemap(url, audited_url, client=client, timeout=timeout, source=source)


async def discover_sitemaps(
    audited_url: str,
    robots_sitemap_urls=(),
    page_links=(),
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> SitemapReport:
    """Find, analyze and aggregate the sitemaps of the audited site."""
    timeout = timeout if timeout is not None else settings.SITEMAP_TIMEOUT
    parsed = urlparse(audited_url)
    origin = f"{parsed.scheme}://{parsed.netloc}"

    candidates: list[tuple[str, str]] = []
    seen: set[str] = set()
    for source, urls in ((SitemapSource.ROBOTS, robots_sitemap_urls), (SitemapSource.HTML, page_links)):
        for raw in urls:
            absolute = resolve_url(audited_url, raw)
            if absolute and absolute not in seen:
                seen.add(absolute)
                candidates.append((absolute, source.value))

    report = SitemapReport()
    async with open_client(client, timeout) as http:
        if candidates:
            report.sitemaps = list(await asyncio.gather(*(
                _check_declared(url, audited_url, http, timeout, source)
                for url, source in candidates
            )))

        if not report.analyzed:
            for path in COMMON_SITEMAP_PATHS:
                url = f"{origin}{path}"
                if url in seen:
                    continue
                analysis = await analyze_sitemap(
                    url, audited_url, client=http, timeout=timeout,
                    source=SitemapSource.COMMON_PATH.value,
                )
                if analysis.analyzed:
                    report.sitemaps.append(analysis)
                    break

    for analysis in report.analyzed:
        report.coverage = report.coverage + analysis.coverage
    report.found = bool(report.analyzed)

    logger.info(f"Sitemap discovery for {audited_url}: {len(report.analyzed)} analyzed, "
                f"{report.coverage.total_pages} pages")
    return report
