"""
Audit service: runs the whole single-page SEO audit.
"""
import asyncio
import logging
import os
import shutil
import tempfile
from dataclasses import replace
from urllib.parse import urlparse

from siteaudit.config import Settings, settings as default_settings
from siteaudit.core.exceptions import RenderFailedError
from siteaudit.integrations.pagespeed import PageSpeedClient
from siteaudit.services.advice import AdviceService
from siteaudit.services.content_analyzer import analyze_content
from siteaudit.services.domain_profiler import profile_domain
from siteaudit.services.http import build_client
from siteaudit.services.markup import extract_page
from siteaudit.services.notification_service import EmailConfig, NotificationService
from siteaudit.services.renderer import PageRenderer
from siteaudit.services.report_aggregator import Report, aggregate_report
from siteaudit.services.robots import fetch_robots_policy
from siteaudit.services.sitemap import discover_sitemaps
from siteaudit.services.subpages import audit_subpages

logger = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Strip whitespace and default to https when no scheme is given."""
    url = url.strip()
    if url and not urlparse(url).scheme:
        url = f"https://{url}"
    return url


class AuditService:
    """Service for running audits. One instance owns its collaborators."""

    def __init__(
        self,
        settings: Settings | None = None,
        renderer: PageRenderer | None = None,
        pagespeed: PageSpeedClient | None = None,
        advisor: AdviceService | None = None,
        notifier: NotificationService | None = None,
    ):
        self.settings = settings or default_settings
        self.renderer = renderer or PageRenderer()
        self.pagespeed = pagespeed or PageSpeedClient()
        self.advisor = advisor or AdviceService()
        self.notifier = notifier or NotificationService(EmailConfig.from_settings())

    def _make_workdir(self) -> str:
        root = self.settings.RENDER_WORKDIR_ROOT or None
        if root:
            os.makedirs(root, exist_ok=True)
        return tempfile.mkdtemp(prefix="siteaudit-", dir=root)

    async def run_audit(self, url: str, email: str | None = None) -> Report:
        """
        Audit one page.

        Raises:
            RenderFailedError: the renderer produced no HTML.
        """
        logger.info(f"Starting audit for {url}")
        workdir = self._make_workdir()
        try:
            rendered, metrics = await asyncio.gather(
                self.renderer.render(url, workdir),
                self.pagespeed.analyze(url),
            )
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

        if not rendered.html:
            reason = "; ".join(rendered.errors) or "empty document"
            raise RenderFailedError(url, reason)

        page = extract_page(rendered.html, url)
        content = analyze_content(page.text_content, page.title, page.description)

        async with build_client(timeout=self.settings.SITEMAP_TIMEOUT) as client:
            robots, domain = await asyncio.gather(
                fetch_robots_policy(url, client=client, timeout=self.settings.ROBOTS_TIMEOUT),
                profile_domain(url, client=client, timeout=self.settings.ARCHIVE_TIMEOUT),
            )
            sitemap = await discover_sitemaps(
                url,
                robots_sitemap_urls=robots.sitemap_urls,
                page_links=page.sitemap_links,
                client=client,
                timeout=self.settings.SITEMAP_TIMEOUT,
            )

        subpages = audit_subpages(url, robots, sitemap.analyzed)
        report = aggregate_report(
            url=url,
            metrics=metrics,
            markup=page,
            content=content,
            robots=robots,
            sitemap=sitemap,
            subpages=subpages,
            domain=domain,
        )

        advice = await self.advisor.advise(report.to_dict())
        report = replace(report, advice=advice)
        logger.info(
            f"Audit complete for {url}: grade {report.structure.competitive_analysis.overall_grade}"
        )

        if email:
            result = await self.notifier.send_report(report.to_dict(), email)
            if not result["success"]:
                logger.warning(f"Report email to {email} not sent: {result.get('error')}")

        return report

    async def close(self):
        await self.advisor.close()
