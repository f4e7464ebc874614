"""
Unit tests for the audit orchestration.
"""
import os
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from siteaudit.config import Settings
from siteaudit.core.exceptions import RenderFailedError
from siteaudit.integrations.pagespeed import PerformanceMetrics
from siteaudit.services.audit_service import AuditService, normalize_url
from siteaudit.services.renderer import RenderedPage
from tests.fixtures.network import make_transport
from tests.fixtures.sample_pages import AUDIT_PAGE_HTML, PAGE_URL


def rendered(html: str, errors=None) -> RenderedPage:
    return RenderedPage(
        url=PAGE_URL,
        final_url=PAGE_URL,
        status_code=200 if html else 0,
        html=html,
        load_time_ms=120,
        timestamp="2026-01-10T12:00:00+00:00",
        errors=errors or [],
        success=bool(html),
    )


@pytest.fixture
def workdirs():
    return []


@pytest.fixture
def renderer(workdirs):
    renderer = MagicMock()

    async def render(url, user_data_dir):
        workdirs.append(user_data_dir)
        assert os.path.isdir(user_data_dir)
        return rendered(AUDIT_PAGE_HTML)

    renderer.render = AsyncMock(side_effect=render)
    return renderer


@pytest.fixture
def pagespeed():
    client = MagicMock()
    client.analyze = AsyncMock(return_value=PerformanceMetrics(performance=92, seo=88))
    return client


@pytest.fixture
def advisor():
    advisor = MagicMock()
    advisor.advise = AsyncMock(return_value={"health_score": 90, "summary": "Great", "recommendations": []})
    advisor.close = AsyncMock()
    return advisor


@pytest.fixture
def notifier():
    notifier = MagicMock()
    notifier.send_report = AsyncMock(return_value={"channel": "email", "success": True})
    return notifier


@pytest.fixture
def service(tmp_path, renderer, pagespeed, advisor, notifier):
    settings = Settings(RENDER_WORKDIR_ROOT=str(tmp_path / "browser"))
    return AuditService(settings, renderer=renderer, pagespeed=pagespeed, advisor=advisor, notifier=notifier)


@pytest.fixture
def patched_network(site_routes):
    """Route the service's own httpx client through the example.com fakes."""
    from siteaudit.services import audit_service
    from siteaudit.services.http import build_client

    def fake_build_client(timeout=10.0, **kwargs):
        return build_client(timeout=timeout, transport=make_transport(site_routes))

    with patch.object(audit_service, "build_client", side_effect=fake_build_client):
        yield


class TestNormalizeUrl:
    @pytest.mark.parametrize("raw,expected", [
        ("example.com", "https://example.com"),
        ("  example.com/page ", "https://example.com/page"),
        ("http://example.com", "http://example.com"),
        ("", ""),
        ("   ", ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_url(raw) == expected


class TestRunAudit:
    @pytest.mark.asyncio
    async def test_full_pipeline(self, service, patched_network, advisor, notifier):
        report = await service.run_audit(PAGE_URL)

        assert report.advice["summary"] == "Great"
        assert report.metrics.performance == 92
        structure = report.structure
        assert structure.robots.exists is True
        assert structure.robots.disallow_rules == ("/admin", "/checkout")
        assert structure.sitemap.found is True
        assert structure.sitemap.has_current_page is True
        assert structure.domain.estimated_authority == "Established"
        assert structure.subpages.summary.total_checked == 15
        assert structure.competitive_analysis.overall_grade == "A"

        advised_payload = advisor.advise.await_args.args[0]
        assert advised_payload["report"] is None
        notifier.send_report.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_workdir_removed_after_audit(self, service, patched_network, workdirs):
        await service.run_audit(PAGE_URL)

        assert len(workdirs) == 1
        assert not os.path.exists(workdirs[0])

    @pytest.mark.asyncio
    async def test_email_sent_when_requested(self, service, patched_network, notifier):
        await service.run_audit(PAGE_URL, email="owner@example.com")

        report_dict, recipient = notifier.send_report.await_args.args
        assert recipient == "owner@example.com"
        assert report_dict["report"]["summary"] == "Great"

    @pytest.mark.asyncio
    async def test_empty_render_raises(self, service, renderer, workdirs, advisor):
        async def render(url, user_data_dir):
            workdirs.append(user_data_dir)
            return rendered("", errors=["net::ERR_NAME_NOT_RESOLVED"])

        renderer.render.side_effect = render

        with pytest.raises(RenderFailedError) as exc_info:
            await service.run_audit(PAGE_URL)

        assert "ERR_NAME_NOT_RESOLVED" in str(exc_info.value)
        assert not os.path.exists(workdirs[0])
        advisor.advise.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_workdir_removed_when_renderer_raises(self, service, renderer, workdirs):
        async def render(url, user_data_dir):
            workdirs.append(user_data_dir)
            raise RuntimeError("browser crashed")

        renderer.render.side_effect = render

        with pytest.raises(RuntimeError):
            await service.run_audit(PAGE_URL)

        assert not os.path.exists(workdirs[0])

    @pytest.mark.asyncio
    async def test_unreachable_site_still_reports(self, service):
        from siteaudit.services import audit_service
        from siteaudit.services.http import build_client

        def offline_client(timeout=10.0, **kwargs):
            return build_client(timeout=timeout, transport=make_transport({}))

        with patch.object(audit_service, "build_client", side_effect=offline_client):
            report = await service.run_audit(PAGE_URL)

        assert report.structure.robots.exists is False
        assert report.structure.sitemap.found is False
        assert report.structure.domain.age == "Unknown"
        assert report.structure.robots_allowed is True

    @pytest.mark.asyncio
    async def test_malformed_urls_in_page_and_robots_degrade(self, service, renderer, site_routes):
        from siteaudit.services import audit_service
        from siteaudit.services.http import build_client

        html = AUDIT_PAGE_HTML.replace("</body>", '<a href="http://[::1">broken</a></body>')
        renderer.render.side_effect = None
        renderer.render.return_value = rendered(html)
        site_routes["https://example.com/robots.txt"] = httpx.Response(
            200, text="User-agent: *\nSitemap: http://[::1\nSitemap: /sitemap.xml\n"
        )

        def fake_build_client(timeout=10.0, **kwargs):
            return build_client(timeout=timeout, transport=make_transport(site_routes))

        with patch.object(audit_service, "build_client", side_effect=fake_build_client):
            report = await service.run_audit(PAGE_URL)

        assert report.structure.robots.sitemap_urls == ("https://example.com/sitemap.xml",)
        assert report.structure.sitemap.found is True
        assert all("[::1" not in link.url for link in report.structure.markup.links.internal)
