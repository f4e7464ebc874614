"""
Subpage policy audit.

Checks a fixed catalogue of conventional site paths against the robots.txt
rules and the parsed sitemaps, and recommends what to change for each.
"""

import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from urllib.parse import urlparse

from siteaudit.services.robots import RobotsPolicy, is_path_allowed
from siteaudit.services.sitemap import SitemapAnalysis

logger = logging.getLogger(__name__)

SUBPAGE_CATALOGUE = (
    "/admin",
    "/wp-admin",
    "/login",
    "/dashboard",
    "/category/example",
    "/blog",
    "/products",
    "/services",
    "/contact",
    "/about",
    "/search",
    "/api",
    "/user/profile",
    "/cart",
    "/checkout",
)


class PathClass(str, Enum):
    ADMIN = "admin"
    CONTENT = "content"
    IMPORTANT = "important"
    OTHER = "other"


# First match wins.
PATH_CLASS_RULES: tuple[tuple[PathClass, tuple[str, ...]], ...] = (
    (PathClass.ADMIN, ("admin", "login", "dashboard", "user", "cart", "checkout")),
    (PathClass.CONTENT, ("category", "blog", "product", "article", "post")),
    (PathClass.IMPORTANT, ("services", "contact", "about")),
)

PROPERLY_CONFIGURED = "Properly configured"
SHOULD_BE_BLOCKED = "Should be blocked in robots.txt"
SHOULD_BE_BLOCKED_AND_UNLISTED = "Should be blocked in robots.txt and removed from sitemap"
INCLUDE_IN_SITEMAP = "Should be included in sitemap"
CONSIDER_SITEMAP = "Consider adding to sitemap"
ALLOW_IN_ROBOTS = "Should be allowed in robots.txt"
REVIEW_BLOCKING = "Review blocking rules"

ALLOWED_LISTED = "allowed_listed"
ALLOWED_UNLISTED = "allowed_unlisted"
BLOCKED = "blocked"

RECOMMENDATIONS: dict[PathClass, dict[str, str]] = {
    PathClass.ADMIN: {
        ALLOWED_LISTED: SHOULD_BE_BLOCKED_AND_UNLISTED,
        ALLOWED_UNLISTED: SHOULD_BE_BLOCKED,
        BLOCKED: PROPERLY_CONFIGURED,
    },
    PathClass.CONTENT: {
        ALLOWED_LISTED: PROPERLY_CONFIGURED,
        ALLOWED_UNLISTED: INCLUDE_IN_SITEMAP,
        BLOCKED: ALLOW_IN_ROBOTS,
    },
    PathClass.IMPORTANT: {
        ALLOWED_LISTED: PROPERLY_CONFIGURED,
        ALLOWED_UNLISTED: CONSIDER_SITEMAP,
        BLOCKED: ALLOW_IN_ROBOTS,
    },
    PathClass.OTHER: {
        ALLOWED_LISTED: PROPERLY_CONFIGURED,
        ALLOWED_UNLISTED: PROPERLY_CONFIGURED,
        BLOCKED: REVIEW_BLOCKING,
    },
}


def classify_path(path: str) -> PathClass:
    lowered = path.lower()
    for path_class, markers in PATH_CLASS_RULES:
        if any(marker in lowered for marker in markers):
            return path_class
    return PathClass.OTHER


def recommend(path_class: PathClass, robots_allowed: bool, in_sitemap: bool) -> str:
    if not robots_allowed:
        state = BLOCKED
    elif in_sitemap:
        state = ALLOWED_LISTED
    else:
        state = ALLOWED_UNLISTED
    return RECOMMENDATIONS[path_class][state]


@dataclass
class SubpageProbe:
    path: str
    url: str
    path_class: PathClass
    robots_allowed: bool
    in_sitemap: bool
    recommendation: str


@dataclass
class SubpageSummary:
    total_checked: int = 0
    allowed: int = 0
    in_sitemap: int = 0
    properly_configured: int = 0


@dataclass
class SubpageAudit:
    probes: list[SubpageProbe] = field(default_factory=list)
    summary: SubpageSummary = field(default_factory=SubpageSummary)

    def to_dict(self) -> dict:
        return asdict(self)


def _listed(path: str, url: str, sitemaps: list[SitemapAnalysis]) -> bool:
    prefix = path.rstrip("/") + "/"
    for sitemap in sitemaps:
        if not sitemap.analyzed:
            continue
        if sitemap.lists(url):
            return True
        for location in sitemap.all_locations:
            location_path = urlparse(location).path
            if location_path.rstrip("/") == path.rstrip("/") or location_path.startswith(prefix):
                return True
    return False


def audit_subpages(
    audited_url: str,
    robots: RobotsPolicy,
    sitemaps: list[SitemapAnalysis],
    catalogue=SUBPAGE_CATALOGUE,
) -> SubpageAudit:
    """Evaluate every catalogue path. Pure: no network access."""
    parsed = urlparse(audited_url)
    origin = f"{parsed.scheme}://{parsed.netloc}"

    audit = SubpageAudit()
    for path in catalogue:
        url = f"{origin}{path}"
        robots_allowed = is_path_allowed(path, robots.disallow_rules, robots.allow_rules)
        in_sitemap = _listed(path, url, sitemaps)
        path_class = classify_path(path)
        recommendation = recommend(path_class, robots_allowed, in_sitemap)

        audit.probes.append(SubpageProbe(
            path=path,
            url=url,
            path_class=path_class,
            robots_allowed=robots_allowed,
            in_sitemap=in_sitemap,
            recommendation=recommendation,
        ))
        audit.summary.total_checked += 1
        audit.summary.allowed += int(robots_allowed)
        audit.summary.in_sitemap += int(in_sitemap)
        audit.summary.properly_configured += int(recommendation == PROPERLY_CONFIGURED)

    logger.debug(f"Subpage audit for {audited_url}: {audit.summary}")
    return audit
