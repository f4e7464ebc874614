"""
Headless browser rendering of the audited page using Playwright.

Returns the final DOM as HTML. Each render runs in its own persistent browser
profile directory, supplied by the caller and removed by the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from playwright.async_api import async_playwright, Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from siteaudit.config import settings

logger = logging.getLogger(__name__)


@dataclass
class RenderedPage:
    """Result of rendering a page."""
    url: str
    final_url: str
    status_code: int
    html: str
    load_time_ms: int
    timestamp: str
    errors: list[str] = field(default_factory=list)
    success: bool = True


@dataclass
class RenderConfig:
    """Configuration for rendering."""
    timeout_ms: int = 45000
    wait_until: str = "domcontentloaded"  # load, domcontentloaded, networkidle
    wait_after_load_ms: int = 500
    viewport_width: int = 412
    viewport_height: int = 915
    is_mobile: bool = True
    user_agent: str = ""
    block_resources: list[str] = field(default_factory=lambda: ["font", "media"])
    headless: bool = True
    ignore_https_errors: bool = True

    @classmethod
    def from_settings(cls) -> RenderConfig:
        return cls(timeout_ms=settings.RENDER_TIMEOUT_MS, user_agent=settings.USER_AGENT)


class PageRenderer:
    """Renders one page in headless Chromium and returns its HTML."""

    def __init__(self, config: RenderConfig | None = None):
        self.config = config or RenderConfig.from_settings()

    async def render(self, url: str, user_data_dir: str) -> RenderedPage:
        start_time = time.time()
        try:
            async with async_playwright() as playwright:
                context = await playwright.chromium.launch_persistent_context(
                    user_data_dir,
                    headless=self.config.headless,
                    viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
                    is_mobile=self.config.is_mobile,
                    user_agent=self.config.user_agent or None,
                    ignore_https_errors=self.config.ignore_https_errors,
                    args=["--no-sandbox", "--disable-setuid-sandbox", "--disable-gpu"],
                )
                try:
                    page = await context.new_page()
                    if self.config.block_resources:
                        await page.route("**/*", self._handle_route)

                    logger.info(f"Rendering {url}")
                    response = await page.goto(
                        url,
                        timeout=self.config.timeout_ms,
                        wait_until=self.config.wait_until,
                    )
                    if self.config.wait_after_load_ms > 0:
                        await page.wait_for_timeout(self.config.wait_after_load_ms)

                    html = await page.content()
                    return RenderedPage(
                        url=url,
                        final_url=page.url,
                        status_code=response.status if response else 0,
                        html=html,
                        load_time_ms=int((time.time() - start_time) * 1000),
                        timestamp=datetime.now(timezone.utc).isoformat(),
                    )
                finally:
                    await context.close()

        except PlaywrightTimeout:
            logger.warning(f"Timeout rendering {url}")
            return self._failed(url, start_time, "Timeout waiting for page to load")
        except PlaywrightError as e:
            logger.error(f"Error rendering {url}: {e}")
            return self._failed(url, start_time, str(e))

    def _failed(self, url: str, start_time: float, reason: str) -> RenderedPage:
        return RenderedPage(
            url=url,
            final_url=url,
            status_code=0,
            html="",
            load_time_ms=int((time.time() - start_time) * 1000),
            timestamp=datetime.now(timezone.utc).isoformat(),
            errors=[reason],
            success=False,
        )

    async def _handle_route(self, route):
        """Handle resource blocking."""
        if route.request.resource_type in self.config.block_resources:
            await route.abort()
        else:
            await route.continue_()
