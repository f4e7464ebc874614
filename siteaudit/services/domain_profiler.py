"""
Domain facts and a best-effort age estimate from the Wayback Machine CDX index.

The archive lookup has its own short timeout and never fails the audit.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from urllib.parse import urlparse

import httpx

from siteaudit.config import settings
from siteaudit.services.http import open_client

logger = logging.getLogger(__name__)

ARCHIVE_CDX_URL = "https://web.archive.org/cdx/search/cdx"
UNKNOWN = "Unknown"


@dataclass
class DomainProfile:
    hostname: str
    domain_name: str = ""
    tld: str = ""
    subdomain: bool = False
    ssl: bool = False
    age: str = UNKNOWN
    age_in_years: int | None = None
    first_seen: str | None = None
    estimated_authority: str = UNKNOWN
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def parse_snapshot_timestamp(timestamp: str) -> datetime:
    """Parse a 14-digit ``YYYYMMDDHHMMSS`` archive timestamp (time part optional)."""
    if len(timestamp) < 8 or not timestamp[:8].isdigit():
        raise ValueError(f"Malformed archive timestamp: {timestamp!r}")
    return datetime(int(timestamp[0:4]), int(timestamp[4:6]), int(timestamp[6:8]))


def describe_age(first_seen: datetime, now: datetime) -> tuple[str, int | None]:
    days = (now - first_seen).days
    if days < 0:
        return UNKNOWN, None
    years = days // 365
    if years < 1:
        months = days // 30
        return ("Less than 1 month" if months < 1 else f"{months} months"), years
    if years < 5:
        return f"{years} years", years
    if years < 10:
        return f"{years} years (Established)", years
    return f"{years}+ years (Very Established)", years


def authority_tier(age_in_years: int | None) -> str:
    if age_in_years is None:
        return UNKNOWN
    if age_in_years >= 3:
        return "Established"
    if age_in_years >= 1:
        return "Moderate"
    return "New"


def first_snapshot(data) -> str | None:
    """First snapshot timestamp from a CDX JSON response (header row first)."""
    if not isinstance(data, list) or len(data) < 2:
        return None
    row = data[1]
    if not isinstance(row, list) or len(row) < 2 or not row[1]:
        return None
    return str(row[1])


async def lookup_first_snapshot(
    hostname: str,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> str | None:
    timeout = timeout if timeout is not None else settings.ARCHIVE_TIMEOUT
    params = {"url": hostname, "output": "json", "limit": "1", "collapse": "urlkey"}
    async with open_client(client, timeout) as http:
        response = await http.get(ARCHIVE_CDX_URL, params=params, timeout=timeout)
        response.raise_for_status()
        return first_snapshot(response.json())


async def profile_domain(
    url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
    now: datetime | None = None,
) -> DomainProfile:
    hostname = (urlparse(url).hostname or "").lower()
    if not hostname:
        return DomainProfile(hostname=UNKNOWN, ssl=url.startswith("https://"), error="No hostname in URL")

    labels = hostname.split(".")
    is_subdomain = len(labels) > 2
    profile = DomainProfile(
        hostname=hostname,
        domain_name=".".join(labels[-2:]) if is_subdomain else hostname,
        tld=labels[-1],
        subdomain=is_subdomain,
        ssl=url.startswith("https://"),
    )

    try:
        timestamp = await lookup_first_snapshot(hostname, client=client, timeout=timeout)
        if timestamp:
            first_seen = parse_snapshot_timestamp(timestamp)
            profile.first_seen = first_seen.date().isoformat()
            profile.age, profile.age_in_years = describe_age(first_seen, now or datetime.now())
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Archive lookup failed for {hostname}: {e}")
        profile.error = str(e) or type(e).__name__

    profile.estimated_authority = authority_tier(profile.age_in_years)
    return profile
