"""
Google PageSpeed Insights API client.

Runs a Lighthouse audit for the page and returns the category scores and the
timing audits the report needs.
"""
import logging
from dataclasses import dataclass, field, asdict
from typing import Any

import httpx

from siteaudit.config import settings

logger = logging.getLogger(__name__)

CATEGORIES = ("performance", "seo", "accessibility", "best-practices")

# Report name -> Lighthouse audit id
TIMING_AUDITS = {
    "first-contentful-paint": "first-contentful-paint",
    "largest-contentful-paint": "largest-contentful-paint",
    "cumulative-layout-shift": "cumulative-layout-shift",
    "total-blocking-time": "total-blocking-time",
    "speed-index": "speed-index",
    "time-to-interactive": "interactive",
    "time-to-first-byte": "server-response-time",
}


@dataclass
class TimingAudit:
    display_value: str = ""
    numeric_value: float | None = None
    score: float | None = None


@dataclass
class PerformanceMetrics:
    performance: int = 0
    seo: int = 0
    accessibility: int = 0
    best_practices: int = 0
    mobile_friendly: bool = False
    audits: dict[str, TimingAudit] = field(default_factory=dict)
    strategy: str = "mobile"
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def _category_score(categories: dict, name: str) -> int:
    score = categories.get(name, {}).get("score")
    return round(score * 100) if score is not None else 0


class PageSpeedClient:
    """HTTP client for Google PageSpeed Insights API."""

    BASE_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.PAGESPEED_API_KEY
        self.timeout = timeout or settings.PAGESPEED_TIMEOUT
        self._transport = transport

    async def analyze(self, url: str, strategy: str | None = None) -> PerformanceMetrics:
        """
        Analyze a URL with PageSpeed Insights.

        Args:
            url: The URL to analyze
            strategy: 'mobile' or 'desktop'

        Returns:
            PerformanceMetrics; zeroed with ``error`` set when the audit fails.
        """
        strategy = strategy or settings.PAGESPEED_STRATEGY
        params: list[tuple[str, str]] = [("url", url), ("strategy", strategy)]
        params.extend(("category", cat) for cat in CATEGORIES)
        if self.api_key:
            params.append(("key", self.api_key))

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                logger.info(f"[PSI] Analyzing {url} ({strategy})")
                response = await client.get(self.BASE_URL, params=params)
                response.raise_for_status()
                data = response.json()

            return self.parse_response(data, strategy)

        except httpx.TimeoutException:
            logger.error(f"[PSI] Timeout analyzing {url}")
            return PerformanceMetrics(strategy=strategy, error="Request timeout")
        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}"
            if e.response.status_code == 429:
                error_msg = "Rate limit exceeded"
            elif e.response.status_code == 400:
                error_msg = "Invalid URL or request"
            logger.error(f"[PSI] Error analyzing {url}: {error_msg}")
            return PerformanceMetrics(strategy=strategy, error=error_msg)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[PSI] Unexpected error analyzing {url}: {e}")
            return PerformanceMetrics(strategy=strategy, error=str(e))

    def parse_response(self, data: dict[str, Any], strategy: str = "mobile") -> PerformanceMetrics:
        """Parse a PSI API response into PerformanceMetrics."""
        lighthouse = data.get("lighthouseResult", {})
        categories = lighthouse.get("categories", {})
        audits = lighthouse.get("audits", {})

        viewport_ok = audits.get("viewport", {}).get("score") == 1
        # tap-targets was dropped from newer Lighthouse versions; absent counts as passing
        tap_targets = audits.get("tap-targets")
        tap_targets_ok = tap_targets is None or tap_targets.get("score") == 1

        return PerformanceMetrics(
            performance=_category_score(categories, "performance"),
            seo=_category_score(categories, "seo"),
            accessibility=_category_score(categories, "accessibility"),
            best_practices=_category_score(categories, "best-practices"),
            mobile_friendly=viewport_ok and tap_targets_ok,
            audits=self._extract_timings(audits),
            strategy=strategy,
        )

    def _extract_timings(self, audits: dict) -> dict[str, TimingAudit]:
        timings = {}
        for name, audit_id in TIMING_AUDITS.items():
            audit = audits.get(audit_id)
            if not audit:
                continue
            timings[name] = TimingAudit(
                display_value=audit.get("displayValue", ""),
                numeric_value=audit.get("numericValue"),
                score=audit.get("score"),
            )
        return timings
