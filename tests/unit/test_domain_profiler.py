"""
Unit tests for the domain profiler.
"""
import json
from datetime import datetime

import httpx
import pytest
from httpx import AsyncClient

from siteaudit.services.domain_profiler import (
    ARCHIVE_CDX_URL,
    authority_tier,
    describe_age,
    first_snapshot,
    parse_snapshot_timestamp,
    profile_domain,
)
from tests.fixtures.network import make_transport
from tests.fixtures.sample_pages import CDX_RESPONSE

NOW = datetime(2026, 1, 10)


class TestAgeBuckets:
    @pytest.mark.parametrize("first_seen,expected,years", [
        (datetime(2026, 1, 1), "Less than 1 month", 0),
        (datetime(2025, 6, 1), "7 months", 0),
        (datetime(2023, 1, 1), "3 years", 3),
        (datetime(2019, 1, 1), "7 years (Established)", 7),
        (datetime(2012, 3, 15), "13+ years (Very Established)", 13),
    ])
    def test_describe_age(self, first_seen, expected, years):
        assert describe_age(first_seen, NOW) == (expected, years)

    def test_future_timestamp_is_unknown(self):
        assert describe_age(datetime(2030, 1, 1), NOW) == ("Unknown", None)

    @pytest.mark.parametrize("years,tier", [
        (None, "Unknown"),
        (0, "New"),
        (1, "Moderate"),
        (2, "Moderate"),
        (3, "Established"),
        (20, "Established"),
    ])
    def test_authority_tier(self, years, tier):
        assert authority_tier(years) == tier


class TestSnapshotParsing:
    def test_parse_timestamp(self):
        assert parse_snapshot_timestamp("20120315083000") == datetime(2012, 3, 15)

    def test_malformed_timestamp(self):
        with pytest.raises(ValueError):
            parse_snapshot_timestamp("2012")

    def test_first_snapshot(self):
        assert first_snapshot(CDX_RESPONSE) == "20120315083000"

    @pytest.mark.parametrize("data", [[], [["urlkey", "timestamp"]], {"error": "x"}, [["h"], "row"]])
    def test_first_snapshot_missing(self, data):
        assert first_snapshot(data) is None


class TestProfileDomain:
    @pytest.mark.asyncio
    async def test_known_domain(self):
        requests = []
        transport = make_transport(
            {ARCHIVE_CDX_URL: httpx.Response(200, text=json.dumps(CDX_RESPONSE))}, requests
        )
        async with AsyncClient(transport=transport) as client:
            profile = await profile_domain("https://www.example.com/page", client=client, now=NOW)

        assert profile.hostname == "www.example.com"
        assert profile.domain_name == "example.com"
        assert profile.tld == "com"
        assert profile.subdomain is True
        assert profile.ssl is True
        assert profile.first_seen == "2012-03-15"
        assert profile.age == "13+ years (Very Established)"
        assert profile.estimated_authority == "Established"
        assert profile.error is None

        params = requests[0].url.params
        assert params["url"] == "www.example.com"
        assert params["output"] == "json"
        assert params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_archive_failure_is_unknown(self):
        transport = make_transport({ARCHIVE_CDX_URL: httpx.ConnectError("refused")})
        async with AsyncClient(transport=transport) as client:
            profile = await profile_domain("http://example.com", client=client, now=NOW)

        assert profile.ssl is False
        assert profile.subdomain is False
        assert profile.age == "Unknown"
        assert profile.estimated_authority == "Unknown"
        assert profile.error == "refused"

    @pytest.mark.asyncio
    async def test_archive_error_status(self):
        transport = make_transport({ARCHIVE_CDX_URL: httpx.Response(503)})
        async with AsyncClient(transport=transport) as client:
            profile = await profile_domain("https://example.com", client=client, now=NOW)

        assert profile.age == "Unknown"
        assert profile.error is not None

    @pytest.mark.asyncio
    async def test_no_captures(self):
        transport = make_transport({ARCHIVE_CDX_URL: httpx.Response(200, text="[]")})
        async with AsyncClient(transport=transport) as client:
            profile = await profile_domain("https://example.com", client=client, now=NOW)

        assert profile.age == "Unknown"
        assert profile.error is None

    @pytest.mark.asyncio
    async def test_url_without_host(self):
        profile = await profile_domain("not a url")

        assert profile.hostname == "Unknown"
        assert profile.error == "No hostname in URL"
