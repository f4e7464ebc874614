"""
Shared httpx client helpers for the audit's network fetches.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from siteaudit.config import settings


def build_client(timeout: float = 10.0, **kwargs) -> httpx.AsyncClient:
    """Create the client used for one audit's outbound requests."""
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": settings.USER_AGENT},
        **kwargs,
    )


@asynccontextmanager
async def open_client(client: httpx.AsyncClient | None, timeout: float) -> AsyncIterator[httpx.AsyncClient]:
    """Yield ``client`` if given, otherwise a short-lived client closed on exit."""
    if client is not None:
        yield client
        return
    async with build_client(timeout=timeout) as own_client:
        yield own_client
