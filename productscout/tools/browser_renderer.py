"""Playwright-based page renderer.

Used only when a plain fetch is blocked or returns too little content. Every
render launches its own isolated browser and tears it down again on every
exit path: success, error, timeout and cancellation.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from playwright.async_api import Browser, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from productscout.logging_utils import LoggerLike, with_trace
from productscout.tools.http_fetcher import FetchOutcome, FetchStatus
from productscout.tools.retailers import MOBILE_USER_AGENTS

logger = logging.getLogger(__name__)

DEFAULT_RENDER_TIMEOUT_MS = 30000
SETTLE_DELAY_MS = 2000
MOBILE_VIEWPORT = {"width": 375, "height": 667}
MOBILE_USER_AGENT = MOBILE_USER_AGENTS[0]

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-features=TranslateUI",
]

EXTRA_HEADERS = {
    "Accept-Language": "de-DE,de;q=0.9,en;q=0.8",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}


class RenderClient:
    """Renders a page in headless Chromium and returns the final HTML."""

    def __init__(
        self,
        timeout_ms: int = DEFAULT_RENDER_TIMEOUT_MS,
        settle_delay_ms: int = SETTLE_DELAY_MS,
        headless: bool = True,
        playwright_factory: Callable = async_playwright,
        log: Optional[LoggerLike] = None,
    ):
        self.timeout_ms = timeout_ms
        self.settle_delay_ms = settle_delay_ms
        self.headless = headless
        self._playwright_factory = playwright_factory
        self.logger = log or logger

    @asynccontextmanager
    async def _browser(self) -> AsyncIterator[Browser]:
        """Launch a browser for exactly one render."""
        playwright = await self._playwright_factory().start()
        browser = None
        try:
            browser = await playwright.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
            yield browser
        finally:
            try:
                if browser is not None:
                    await browser.close()
            finally:
                await playwright.stop()

    async def _render(self, url: str) -> FetchOutcome:
        async with self._browser() as browser:
            context = await browser.new_context(
                viewport=MOBILE_VIEWPORT,
                is_mobile=True,
                has_touch=True,
                user_agent=MOBILE_USER_AGENT,
                extra_http_headers=EXTRA_HEADERS,
            )
            page = await context.new_page()
            page.set_default_timeout(self.timeout_ms)
            response = await page.goto(url, wait_until="networkidle")
            # late-loading product widgets
            await page.wait_for_timeout(self.settle_delay_ms)
            html = await page.content()

            status_code = response.status if response is not None else None
            if status_code is not None and status_code >= 400:
                return FetchOutcome(FetchStatus.HTTP_ERROR, status_code=status_code, content_type="text/html")
            return FetchOutcome(
                FetchStatus.OK,
                status_code=status_code,
                body_text=html,
                content_type="text/html; charset=utf-8",
                final_url=page.url,
            )

    async def render(
        self,
        url: str,
        timeout_ms: Optional[int] = None,
        trace_id: Optional[str] = None,
    ) -> FetchOutcome:
        """Render `url` within a hard deadline.

        Returns a `FetchOutcome`; browser failures are reported, not raised.
        Cancellation by the caller propagates after the browser is closed.
        """
        log = with_trace(self.logger, trace_id)
        timeout_ms = timeout_ms or self.timeout_ms
        log.info(f"[Render] Starting headless render for {url}")
        try:
            outcome = await asyncio.wait_for(self._render(url), timeout_ms / 1000)
        except (asyncio.TimeoutError, PlaywrightTimeout):
            log.warning(f"[Render] Timeout after {timeout_ms}ms: {url}")
            return FetchOutcome(FetchStatus.TIMEOUT, error=f"Render timed out after {timeout_ms}ms")
        except PlaywrightError as e:
            log.error(f"[Render] Browser error for {url}: {e}")
            return FetchOutcome(FetchStatus.NETWORK_ERROR, error=str(e))

        log.info(f"[Render] {outcome.describe()}")
        return outcome
