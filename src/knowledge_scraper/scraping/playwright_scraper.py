"""Playwright-based renderer for dynamic content."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ..domain.errors import NavigationError, NetworkTimeoutError
from ..observability.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderedPage:
    url: str
    html: str


class PageRenderer:
    """Renders a URL into HTML.

    Implementations must honor ``timeout_ms`` and raise NetworkTimeoutError
    on timeout and NavigationError on any other navigation failure.
    """

    async def render(self, url: str, timeout_ms: int) -> RenderedPage:  # pragma: no cover - interface
        raise NotImplementedError


class PlaywrightRenderer(PageRenderer):
    """Scraping layer.

    Responsibilities:
    - Fetch web content (dynamic pages)
    - Respect timeouts
    - Return raw HTML (no filtering, no storage)
    - Close the browser on every exit path
    """

    def __init__(self, user_agent: str, *, headless: bool = True, settle_ms: int = 500):
        self._user_agent = user_agent
        self._headless = headless
        self._settle_ms = settle_ms

    async def render(self, url: str, timeout_ms: int) -> RenderedPage:
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=self._headless)
                try:
                    context = await browser.new_context(user_agent=self._user_agent)
                    page = await context.new_page()
                    page.set_default_timeout(timeout_ms)
                    await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                    # Client-side rendered pages need a moment to populate the DOM;
                    # networkidle is best-effort since background requests may never settle.
                    try:
                        await page.wait_for_load_state("networkidle", timeout=min(5000, timeout_ms))
                    except PlaywrightTimeoutError:
                        logger.debug("networkidle_not_reached", url=url)
                    if self._settle_ms:
                        await page.wait_for_timeout(self._settle_ms)
                    html = await page.content()
                    return RenderedPage(url=url, html=html)
                finally:
                    await browser.close()
        except (asyncio.TimeoutError, PlaywrightTimeoutError) as e:
            raise NetworkTimeoutError(f"Timeout while rendering {url}", detail=str(e)) from e
        except PlaywrightError as e:
            raise NavigationError(f"Failed to load {url}", detail=str(e)) from e
