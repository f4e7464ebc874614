"""
Robots.txt policy parsing and path evaluation.

Only the wildcard user-agent group is honored. Rules keep the order they
appeared in the file; precedence between them is decided by specificity
(longest matching prefix), see ``is_path_allowed``.
"""

import logging
from dataclasses import dataclass, asdict
from urllib.parse import urlparse

import httpx

from siteaudit.config import settings
from siteaudit.services.http import open_client
from siteaudit.services.markup import resolve_url

logger = logging.getLogger(__name__)

WILDCARD_AGENT = "*"
CONTENT_PREVIEW_CHARS = 2000


@dataclass(frozen=True)
class RobotsPolicy:
    url: str
    exists: bool = False
    disallow_rules: tuple[str, ...] = ()
    allow_rules: tuple[str, ...] = ()
    blocks_all: bool = False
    allows_all: bool = False
    sitemap_urls: tuple[str, ...] = ()
    crawl_delay: float | None = None
    current_path: str = "/"
    current_path_allowed: bool = True
    content: str = ""
    error: str | None = None

    @property
    def allows_indexing(self) -> bool:
        return not self.blocks_all or self.allows_all

    @property
    def has_sitemap(self) -> bool:
        return len(self.sitemap_urls) > 0

    def is_allowed(self, path: str) -> bool:
        return is_path_allowed(path, self.disallow_rules, self.allow_rules)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["allows_indexing"] = self.allows_indexing
        data["has_sitemap"] = self.has_sitemap
        return data


def is_path_allowed(path: str, disallow_rules, allow_rules) -> bool:
    """Decide whether ``path`` may be crawled.

    Any disallow rule that prefixes the path blocks it, unless an allow rule
    that also prefixes the path is strictly longer than that disallow rule.
    """
    allowed = True
    for rule in disallow_rules:
        if not path.startswith(rule):
            continue
        allowed = False
        for allow_rule in allow_rules:
            if path.startswith(allow_rule) and len(allow_rule) > len(rule):
                allowed = True
                break
    return allowed


def robots_url_for(page_url: str) -> str:
    parsed = urlparse(page_url)
    return f"{parsed.scheme}://{parsed.netloc}/robots.txt"


def _directive(line: str) -> tuple[str, str] | None:
    if ":" not in line:
        return None
    name, value = line.split(":", 1)
    if "#" in value:
        value = value.split("#", 1)[0]
    return name.strip().lower(), value.strip()


def parse_robots_txt(content: str, page_url: str, robots_url: str | None = None) -> RobotsPolicy:
    """Parse robots.txt text into a ``RobotsPolicy`` for ``page_url``."""
    robots_url = robots_url or robots_url_for(page_url)
    current_path = urlparse(page_url).path or "/"

    current_agent = None
    blocks_all = False
    allows_all = False
    crawl_delay = None
    disallow_rules: list[str] = []
    allow_rules: list[str] = []
    sitemaps: list[str] = []

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        parsed = _directive(line)
        if parsed is None:
            continue
        name, value = parsed

        if name == "user-agent":
            current_agent = WILDCARD_AGENT if value == WILDCARD_AGENT else value
            continue

        if name == "sitemap":
            if value:
                sitemap_url = resolve_url(robots_url, value)
                if sitemap_url and sitemap_url not in sitemaps:
                    sitemaps.append(sitemap_url)
            continue

        if current_agent != WILDCARD_AGENT:
            continue

        if name == "disallow":
            if value in ("", "/"):
                blocks_all = True
            else:
                disallow_rules.append(value)
        elif name == "allow":
            if value in ("", "/"):
                allows_all = True
            else:
                allow_rules.append(value)
        elif name == "crawl-delay":
            try:
                crawl_delay = float(value)
            except ValueError:
                logger.debug(f"Ignoring malformed crawl-delay: {value!r}")

    return RobotsPolicy(
        url=robots_url,
        exists=True,
        disallow_rules=tuple(disallow_rules),
        allow_rules=tuple(allow_rules),
        blocks_all=blocks_all,
        allows_all=allows_all,
        sitemap_urls=tuple(sitemaps),
        crawl_delay=crawl_delay,
        current_path=current_path,
        current_path_allowed=is_path_allowed(current_path, disallow_rules, allow_rules),
        content=content[:CONTENT_PREVIEW_CHARS],
    )


async def fetch_robots_policy(
    page_url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> RobotsPolicy:
    """Fetch and parse robots.txt for the origin of ``page_url``.

    A missing or unreachable robots.txt never blocks anything: the returned
    policy is permissive with ``exists=False``.
    """
    robots_url = robots_url_for(page_url)
    current_path = urlparse(page_url).path or "/"
    timeout = timeout if timeout is not None else settings.ROBOTS_TIMEOUT

    try:
        async with open_client(client, timeout) as http:
            response = await http.get(robots_url, timeout=timeout)
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch robots.txt from {robots_url}: {e}")
        return RobotsPolicy(url=robots_url, current_path=current_path, error=str(e) or type(e).__name__)

    if not response.is_success:
        logger.info(f"No robots.txt at {robots_url} (HTTP {response.status_code})")
        return RobotsPolicy(url=robots_url, current_path=current_path)

    logger.info(f"Loaded robots.txt from {robots_url}")
    return parse_robots_txt(response.text, page_url, robots_url=robots_url)
