"""
HTML markup extraction.

Structured data (JSON-LD), Open Graph / Twitter cards, hreflang, images,
links, meta robots and the basic on-page elements. Every URL is resolved to
an absolute URL against the audited page when it is extracted.
"""

import json
import logging
import re
from dataclasses import dataclass, field, asdict
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from siteaudit.services.content_analyzer import round_half_up

logger = logging.getLogger(__name__)

MAX_IMAGES = 100
SKIPPED_LINK_PREFIXES = ("#", "javascript:", "mailto:", "tel:")

SOCIAL_PLATFORMS = {
    "facebook.com": "facebook",
    "fb.com": "facebook",
    "twitter.com": "twitter",
    "x.com": "twitter",
    "instagram.com": "instagram",
    "linkedin.com": "linkedin",
    "youtube.com": "youtube",
    "youtu.be": "youtube",
    "pinterest.com": "pinterest",
    "tiktok.com": "tiktok",
    "github.com": "github",
}


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def resolve_url(base_url: str, href: str) -> str | None:
    """Absolute form of ``href``, or None when it cannot be parsed.

    Idempotent for already absolute URLs.
    """
    try:
        return urljoin(base_url, href.strip())
    except ValueError as e:
        logger.debug(f"Skipping unresolvable URL {href!r}: {e}")
        return None


def _host(netloc: str) -> str:
    host = netloc.lower().split("@")[-1].split(":")[0]
    return host[4:] if host.startswith("www.") else host


# ============================================================================
# Structured data
# ============================================================================

SCHEMA_TYPE_FLAGS: dict[str, frozenset[str]] = {
    "organization": frozenset({"Organization", "LocalBusiness"}),
    "article": frozenset({"Article", "NewsArticle"}),
    "product": frozenset({"Product", "Service"}),
    "breadcrumb": frozenset({"BreadcrumbList"}),
    "local_business": frozenset({"LocalBusiness"}),
}
RATING_FIELDS = ("aggregateRating", "rating")


@dataclass
class StructuredDataSummary:
    schemas_found: int = 0
    types: list[str] = field(default_factory=list)
    organization: bool = False
    article: bool = False
    product: bool = False
    breadcrumb: bool = False
    local_business: bool = False
    rating: bool = False


def extract_json_ld(soup: BeautifulSoup) -> list[dict]:
    """Parse each JSON-LD block on its own; malformed blocks are skipped."""
    schemas: list[dict] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError) as e:
            logger.debug(f"Skipping malformed JSON-LD block: {e}")
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            graph = item.get("@graph")
            if isinstance(graph, list):
                schemas.extend(node for node in graph if isinstance(node, dict))
            else:
                schemas.append(item)
    return schemas


def summarize_structured_data(schemas: list[dict]) -> StructuredDataSummary:
    summary = StructuredDataSummary(schemas_found=len(schemas))
    for schema in schemas:
        schema_type = schema.get("@type")
        if isinstance(schema_type, list):
            schema_type = schema_type[0] if schema_type else None
        if not schema_type:
            continue
        schema_type = str(schema_type)

        if schema_type not in summary.types:
            summary.types.append(schema_type)
        for flag, type_names in SCHEMA_TYPE_FLAGS.items():
            if schema_type in type_names:
                setattr(summary, flag, True)
        if any(schema.get(name) for name in RATING_FIELDS):
            summary.rating = True
    return summary


def analyze_structured_data(soup: BeautifulSoup) -> StructuredDataSummary:
    return summarize_structured_data(extract_json_ld(soup))


# ============================================================================
# Open Graph / Twitter cards
# ============================================================================

OG_BASIC_PROPERTIES = (
    "og:title", "og:description", "og:type", "og:url", "og:site_name", "og:locale", "og:updated_time",
)
OG_IMAGE_START = "og:image"
# og:image:url repeats og:image; it and the remaining og:image:* tags describe the current image
OG_IMAGE_URL_PROPERTIES = ("og:image:url", "og:image:secure_url")
OG_IMAGE_ATTRIBUTES = {
    "og:image:secure_url": "secure_url",
    "og:image:width": "width",
    "og:image:height": "height",
    "og:image:alt": "alt",
    "og:image:type": "type",
}
OG_ALLOWED_PREFIXES = ("og:", "fb:", "twitter:", "article:", "video:", "music:", "book:", "profile:")
OG_URL_PROPERTIES = frozenset({"og:url", "og:video", "og:video:url", "og:video:secure_url", "twitter:image"})

SOCIAL_ID_PROPERTIES = ("fb:app_id", "fb:admins", "fb:pages", "twitter:site", "twitter:creator")
TIME_PROPERTIES = (
    "article:published_time", "article:modified_time", "og:updated_time", "video:duration", "video:release_date",
)

# (check name, points); see _satisfied for what each check means
OG_COMPLETENESS_WEIGHTS: tuple[tuple[str, int], ...] = (
    ("title", 15),
    ("description", 15),
    ("image", 15),
    ("url", 5),
    ("type", 5),
    ("site_name", 5),
    ("social_id", 10),
    ("twitter_card", 10),
    ("multi_image", 5),
    ("time_metadata", 10),
    ("locale", 3),
    ("image_dimensions", 2),
)


@dataclass
class OpenGraphImage:
    url: str
    secure_url: str | None = None
    width: str | None = None
    height: str | None = None
    alt: str | None = None
    type: str | None = None


@dataclass
class OpenGraphProfile:
    found: bool = False
    basic: dict[str, str | None] = field(default_factory=dict)
    facebook: dict[str, str] = field(default_factory=dict)
    twitter: dict[str, str] = field(default_factory=dict)
    article: dict[str, str] = field(default_factory=dict)
    video: dict[str, str] = field(default_factory=dict)
    images: list[OpenGraphImage] = field(default_factory=list)
    completeness: int = 0


def _og_tags(soup: BeautifulSoup, base_url: str) -> list[tuple[str, str]]:
    tags = []
    for meta in soup.find_all("meta"):
        key = (meta.get("property") or meta.get("name") or "").strip().lower()
        content = (meta.get("content") or "").strip()
        if not key or not content or not key.startswith(OG_ALLOWED_PREFIXES):
            continue
        if key in OG_URL_PROPERTIES or key == OG_IMAGE_START or key in OG_IMAGE_URL_PROPERTIES:
            content = resolve_url(base_url, content)
            if content is None:
                continue
        tags.append((key, content))
    return tags


def _satisfied(profile: OpenGraphProfile, tags: dict[str, str], check: str) -> bool:
    if check in ("title", "description", "url", "type", "site_name", "locale"):
        return bool(profile.basic.get(check))
    if check == "image":
        return bool(profile.images)
    if check == "social_id":
        return any(tags.get(p) for p in SOCIAL_ID_PROPERTIES)
    if check == "twitter_card":
        return bool(tags.get("twitter:card"))
    if check == "multi_image":
        return len(profile.images) > 1
    if check == "time_metadata":
        return any(tags.get(p) for p in TIME_PROPERTIES)
    if check == "image_dimensions":
        return any(img.width and img.height for img in profile.images)
    return False


def analyze_open_graph(soup: BeautifulSoup, base_url: str) -> OpenGraphProfile:
    tags = _og_tags(soup, base_url)
    first_values: dict[str, str] = {}
    for key, content in tags:
        first_values.setdefault(key, content)

    profile = OpenGraphProfile()
    profile.basic = {prop.split(":", 1)[1]: first_values.get(prop) for prop in OG_BASIC_PROPERTIES}

    current: OpenGraphImage | None = None
    seen_urls: set[str] = set()
    for key, content in tags:
        if key == OG_IMAGE_START:
            if content in seen_urls:
                current = None
                continue
            seen_urls.add(content)
            current = OpenGraphImage(url=content)
            profile.images.append(current)
        elif key in OG_IMAGE_ATTRIBUTES and current is not None:
            setattr(current, OG_IMAGE_ATTRIBUTES[key], content)

    for key, content in first_values.items():
        if key.startswith("fb:"):
            profile.facebook[key] = content
        elif key.startswith("twitter:"):
            profile.twitter[key] = content
        elif key.startswith("article:"):
            profile.article[key] = content
        elif key.startswith(("og:video", "video:")):
            profile.video[key] = content

    profile.found = bool(profile.basic.get("title") or profile.basic.get("description") or profile.images)
    score = sum(points for check, points in OG_COMPLETENESS_WEIGHTS if _satisfied(profile, first_values, check))
    profile.completeness = min(100, score)
    return profile


# ============================================================================
# Hreflang
# ============================================================================

X_DEFAULT = "x-default"


@dataclass
class HreflangEntry:
    lang: str
    href: str
    source: str = "link"


@dataclass
class HreflangSet:
    entries: list[HreflangEntry] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    has_x_default: bool = False
    is_valid: bool = False

    @property
    def found(self) -> bool:
        return bool(self.entries)

    @property
    def count(self) -> int:
        return len(self.entries)


def _rel_values(tag) -> list[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return [value.lower() for value in rel]


def analyze_hreflang(soup: BeautifulSoup, base_url: str) -> HreflangSet:
    result = HreflangSet()
    for link in soup.find_all("link", hreflang=True):
        if "alternate" not in _rel_values(link):
            continue
        lang = link.get("hreflang", "").strip()
        href = (link.get("href") or "").strip()
        if not lang or not href:
            continue
        full_href = resolve_url(base_url, href)
        if full_href is None:
            continue
        result.entries.append(HreflangEntry(lang=lang, href=full_href))
        if lang.lower() == X_DEFAULT:
            result.has_x_default = True
        elif lang not in result.languages:
            result.languages.append(lang)

    audited_path = urlparse(base_url).path.rstrip("/")
    self_referencing = any(
        urlparse(entry.href).path.rstrip("/") == audited_path for entry in result.entries
    )
    result.is_valid = bool(result.entries) and (len(result.languages) > 1 or self_referencing)
    return result


# ============================================================================
# Links
# ============================================================================

@dataclass
class LinkInfo:
    url: str
    text: str = ""
    nofollow: bool = False
    platform: str | None = None


@dataclass
class LinkProfile:
    internal: list[LinkInfo] = field(default_factory=list)
    external: list[LinkInfo] = field(default_factory=list)

    @property
    def social(self) -> list[LinkInfo]:
        return [link for link in self.external if link.platform]

    @property
    def internal_count(self) -> int:
        return len(self.internal)

    @property
    def external_count(self) -> int:
        return len(self.external)

    @property
    def nofollow_count(self) -> int:
        return sum(1 for link in self.internal + self.external if link.nofollow)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.update(
            social=[asdict(link) for link in self.social],
            internal_count=self.internal_count,
            external_count=self.external_count,
            nofollow_count=self.nofollow_count,
        )
        return data


def social_platform(netloc: str) -> str | None:
    host = _host(netloc)
    for domain, platform in SOCIAL_PLATFORMS.items():
        if host == domain or host.endswith(f".{domain}"):
            return platform
    return None


def is_internal_host(netloc: str, site_host: str) -> bool:
    host = _host(netloc)
    site = _host(site_host)
    return host == site or host.endswith(f".{site}")


def extract_links(soup: BeautifulSoup, page_url: str) -> LinkProfile:
    site_host = urlparse(page_url).netloc
    profile = LinkProfile()

    for a in soup.find_all("a", href=True):
        href = a.get("href", "").strip()
        if not href or href.lower().startswith(SKIPPED_LINK_PREFIXES):
            continue

        full_url = resolve_url(page_url, href)
        if full_url is None:
            continue
        parsed = urlparse(full_url)
        link = LinkInfo(
            url=full_url,
            text=a.get_text(strip=True)[:100],
            nofollow="nofollow" in _rel_values(a),
        )

        if not urlparse(href).netloc or is_internal_host(parsed.netloc, site_host):
            profile.internal.append(link)
        else:
            link.platform = social_platform(parsed.netloc)
            profile.external.append(link)

    return profile


# ============================================================================
# Images
# ============================================================================

@dataclass
class ImageInfo:
    url: str
    alt: str | None = None
    width: str | None = None
    height: str | None = None

    @property
    def has_alt(self) -> bool:
        return self.alt is not None


@dataclass
class ImageInventory:
    total: int = 0
    has_alt: int = 0
    missing_alt: int = 0
    optimization_rate: int = 0
    images: list[ImageInfo] = field(default_factory=list)


def extract_images(soup: BeautifulSoup, page_url: str) -> ImageInventory:
    inventory = ImageInventory()
    with_dimensions = 0

    for img in soup.find_all("img"):
        inventory.total += 1
        if img.get("alt") is not None:
            inventory.has_alt += 1
        if img.get("width") and img.get("height"):
            with_dimensions += 1

        src = img.get("src", "") or img.get("data-src", "")
        image_url = resolve_url(page_url, src) if src else None
        if image_url and len(inventory.images) < MAX_IMAGES:
            inventory.images.append(ImageInfo(
                url=image_url,
                alt=img.get("alt"),
                width=img.get("width"),
                height=img.get("height"),
            ))

    inventory.missing_alt = inventory.total - inventory.has_alt
    if inventory.total:
        inventory.optimization_rate = round_half_up(with_dimensions / inventory.total * 100)
    return inventory


# ============================================================================
# Meta robots & page basics
# ============================================================================

@dataclass
class MetaRobots:
    found: bool = False
    content: str | None = None
    allows_indexing: bool = True
    allows_following: bool = True
    directives: list[str] = field(default_factory=list)


def analyze_meta_robots(soup: BeautifulSoup) -> MetaRobots:
    content = ""
    for name in ("robots", "googlebot"):
        tag = soup.find("meta", attrs={"name": re.compile(f"^{name}$", re.I)})
        if tag and tag.get("content"):
            content = tag["content"]
            break
    if not content:
        return MetaRobots()

    directives = [d.strip().lower() for d in content.split(",") if d.strip()]
    return MetaRobots(
        found=True,
        content=content,
        allows_indexing="noindex" not in directives and "none" not in directives,
        allows_following="nofollow" not in directives and "none" not in directives,
        directives=directives,
    )


@dataclass
class PageMarkup:
    """Everything extracted from one rendered HTML document."""
    url: str
    title: str = ""
    description: str = ""
    canonical_url: str | None = None
    html_lang: str = ""
    has_viewport_meta: bool = False
    h1: str = "Missing"
    h1_count: int = 0
    headings: dict[str, int] = field(default_factory=dict)
    text_content: str = ""
    sitemap_links: list[str] = field(default_factory=list)
    links: LinkProfile = field(default_factory=LinkProfile)
    images: ImageInventory = field(default_factory=ImageInventory)
    structured_data: StructuredDataSummary = field(default_factory=StructuredDataSummary)
    open_graph: OpenGraphProfile = field(default_factory=OpenGraphProfile)
    hreflang: HreflangSet = field(default_factory=HreflangSet)
    meta_robots: MetaRobots = field(default_factory=MetaRobots)


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"name": name})
    return (tag.get("content") or "").strip() if tag else ""


def extract_page(html: str, page_url: str) -> PageMarkup:
    """Run every extractor over one HTML document."""
    soup = parse_html(html)

    title_tag = soup.find("title")
    canonical_tag = soup.find("link", rel="canonical")
    html_tag = soup.find("html")
    h1_tags = soup.find_all("h1")

    page = PageMarkup(
        url=page_url,
        title=title_tag.get_text(strip=True) if title_tag else "",
        description=_meta_content(soup, "description"),
        canonical_url=resolve_url(page_url, canonical_tag["href"]) if canonical_tag and canonical_tag.get("href") else None,
        html_lang=html_tag.get("lang", "") if html_tag else "",
        has_viewport_meta=soup.find("meta", attrs={"name": "viewport"}) is not None,
        h1=" ".join(h.get_text(strip=True) for h in h1_tags).strip() or "Missing",
        h1_count=len(h1_tags),
        headings={f"h{level}": len(soup.find_all(f"h{level}")) for level in range(1, 7)},
        sitemap_links=[
            url for url in (
                resolve_url(page_url, link["href"])
                for link in soup.find_all("link", href=True)
                if "sitemap" in _rel_values(link)
            ) if url
        ],
        links=extract_links(soup, page_url),
        images=extract_images(soup, page_url),
        structured_data=analyze_structured_data(soup),
        open_graph=analyze_open_graph(soup, page_url),
        hreflang=analyze_hreflang(soup, page_url),
        meta_robots=analyze_meta_robots(soup),
    )

    # Text extraction last: it strips script/style (JSON-LD included) from the tree.
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    body = soup.find("body") or soup
    page.text_content = " ".join(body.get_text(separator=" ").split())
    return page


def markup_to_dict(page: PageMarkup) -> dict[str, Any]:
    data = asdict(page)
    data["links"] = page.links.to_dict()
    data["hreflang"].update(found=page.hreflang.found, count=page.hreflang.count)
    return data
