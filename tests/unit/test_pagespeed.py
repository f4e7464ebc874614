"""
Unit tests for the PageSpeed Insights client.
"""
import httpx
import pytest

from siteaudit.integrations.pagespeed import PageSpeedClient
from tests.fixtures.network import make_transport
from tests.fixtures.sample_pages import PAGESPEED_RESPONSE


class TestParseResponse:
    def test_scores_and_timings(self):
        metrics = PageSpeedClient(api_key="").parse_response(PAGESPEED_RESPONSE)

        assert metrics.performance == 91
        assert metrics.seo == 85
        assert metrics.accessibility == 78
        assert metrics.best_practices == 100
        assert metrics.mobile_friendly is True
        assert metrics.audits["time-to-interactive"].display_value == "2.5 s"
        assert metrics.audits["time-to-first-byte"].numeric_value == 120
        assert metrics.audits["cumulative-layout-shift"].score == 1
        assert set(metrics.audits) == {
            "first-contentful-paint",
            "largest-contentful-paint",
            "cumulative-layout-shift",
            "total-blocking-time",
            "speed-index",
            "time-to-interactive",
            "time-to-first-byte",
        }

    def test_failed_tap_targets_is_not_mobile_friendly(self):
        data = {"lighthouseResult": {"audits": {"viewport": {"score": 1}, "tap-targets": {"score": 0.5}}}}

        metrics = PageSpeedClient(api_key="").parse_response(data)

        assert metrics.mobile_friendly is False
        assert metrics.performance == 0

    def test_empty_response(self):
        metrics = PageSpeedClient(api_key="").parse_response({})

        assert metrics.performance == 0
        assert metrics.audits == {}
        assert metrics.mobile_friendly is False


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_request_parameters(self):
        requests = []
        transport = make_transport({PageSpeedClient.BASE_URL: httpx.Response(200, json=PAGESPEED_RESPONSE)}, requests)
        client = PageSpeedClient(api_key="secret", transport=transport)

        metrics = await client.analyze("https://example.com/", strategy="mobile")

        assert metrics.performance == 91
        assert metrics.error is None
        params = requests[0].url.params
        assert params["url"] == "https://example.com/"
        assert params["strategy"] == "mobile"
        assert params["key"] == "secret"
        assert params.get_list("category") == ["performance", "seo", "accessibility", "best-practices"]

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        transport = make_transport({PageSpeedClient.BASE_URL: httpx.Response(429)})

        metrics = await PageSpeedClient(api_key="", transport=transport).analyze("https://example.com/")

        assert metrics.error == "Rate limit exceeded"
        assert metrics.performance == 0

    @pytest.mark.asyncio
    async def test_timeout(self):
        transport = make_transport({PageSpeedClient.BASE_URL: httpx.ReadTimeout("slow")})

        metrics = await PageSpeedClient(api_key="", transport=transport).analyze("https://example.com/")

        assert metrics.error == "Request timeout"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        transport = make_transport({PageSpeedClient.BASE_URL: httpx.Response(200, text="<html>")})

        metrics = await PageSpeedClient(api_key="", transport=transport).analyze("https://example.com/")

        assert metrics.error is not None
        assert metrics.to_dict()["performance"] == 0
