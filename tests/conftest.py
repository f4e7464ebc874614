"""
Pytest configuration and fixtures for siteaudit tests.
"""
import json
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from siteaudit.core.deps import get_audit_service
from tests.fixtures.network import make_transport, xml_response
from tests.fixtures.sample_pages import (
    CDX_RESPONSE,
    ROBOTS_TXT,
    SITEMAP_INDEX_XML,
    URLSET_XML,
)


# ============================================================================
# Network Fixtures
# ============================================================================

@pytest.fixture
def site_routes() -> dict:
    """Routes for a well-behaved example.com."""
    return {
        "https://example.com/robots.txt": httpx.Response(200, text=ROBOTS_TXT),
        "https://example.com/sitemap.xml": xml_response(URLSET_XML),
        "https://example.com/news-sitemap.xml": xml_response(SITEMAP_INDEX_XML),
        "https://example.com/page-sitemap.xml": httpx.Response(404),
        "https://web.archive.org/cdx/search/cdx": httpx.Response(200, text=json.dumps(CDX_RESPONSE)),
    }


@pytest_asyncio.fixture
async def site_client(site_routes) -> AsyncGenerator[AsyncClient, None]:
    """httpx client answering from ``site_routes``."""
    async with AsyncClient(transport=make_transport(site_routes), follow_redirects=True) as client:
        yield client


# ============================================================================
# Collaborator Fixtures
# ============================================================================

@pytest.fixture
def mock_llm():
    """Configured LLM client returning canned advice."""
    llm = MagicMock()
    llm.configured = True
    llm.complete_json = AsyncMock(return_value={
        "health_score": 82,
        "summary": "Solid page with minor issues",
        "recommendations": [
            {"priority": "Quick Win", "category": "Meta", "issue": "Title too long", "fix": "Shorten it"},
        ],
    })
    llm.close = AsyncMock()
    return llm


@pytest.fixture
def audit_service_stub() -> MagicMock:
    """Stand-in for AuditService; tests set ``run_audit`` behaviour."""
    service = MagicMock()
    service.run_audit = AsyncMock()
    service.close = AsyncMock()
    return service


# ============================================================================
# FastAPI App Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def app(audit_service_stub) -> FastAPI:
    """Create test FastAPI application."""
    from siteaudit.main import app as main_app

    async def override_get_audit_service():
        yield audit_service_stub

    main_app.dependency_overrides[get_audit_service] = override_get_audit_service

    yield main_app

    main_app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
