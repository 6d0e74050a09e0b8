"""Fetch retailer pages for display in a sandboxed viewer.

Three tiers, cheapest first:

1. plain HTTP fetch with retries and header rotation
2. headless browser render
3. a minimal descriptor so the caller can offer "view on retailer site"

Tier failures are logged and never raised; only a malformed URL is an error.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

from productscout.config import PipelineConfig
from productscout.logging_utils import LoggerLike, with_trace
from productscout.models.product import (
    PLACEHOLDER_TITLE,
    FallbackDescriptor,
    ProxyMethod,
    ProxyResult,
)
from productscout.tools.browser_renderer import RenderClient
from productscout.tools.http_fetcher import FetchClient, FetchOutcome, RetryingFetcher
from productscout.tools.sanitizer import sanitize_html

logger = logging.getLogger(__name__)


class InvalidURLError(ValueError):
    """Raised for URLs that are not absolute http(s) URLs."""


class DeadlineExceeded(Exception):
    pass


def validate_url(url: str) -> str:
    url = (url or "").strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL {url!r}: {e}")
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidURLError(f"Invalid URL {url!r}: expected an absolute http(s) URL")
    return url


class ContentProxy:
    """Layered fetch -> render -> fallback content acquisition."""

    def __init__(
        self,
        fetcher: Optional[RetryingFetcher] = None,
        renderer: Optional[RenderClient] = None,
        config: Optional[PipelineConfig] = None,
        log: Optional[LoggerLike] = None,
    ):
        self.config = config or PipelineConfig.from_env()
        self.fetcher = fetcher or RetryingFetcher(
            client=FetchClient(timeout_ms=self.config.fetch_timeout_ms),
            min_content_length=self.config.min_content_length,
        )
        self.renderer = renderer or RenderClient(timeout_ms=self.config.render_timeout_ms)
        self.logger = log or logger

    async def _run_tier(
        self,
        name: str,
        call: Callable[[], Awaitable[FetchOutcome]],
        deadline: Optional[float],
        log: LoggerLike,
    ) -> Optional[FetchOutcome]:
        loop = asyncio.get_running_loop()
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise DeadlineExceeded(f"deadline passed before {name}")
        else:
            remaining = None

        try:
            return await asyncio.wait_for(call(), remaining)
        except asyncio.TimeoutError as e:
            if deadline is not None:
                raise DeadlineExceeded(f"deadline expired during {name}")
            log.error(f"[Proxy] ❌ {name} timed out: {e}")
            return None
        except Exception as e:
            log.error(f"[Proxy] ❌ {name} failed: {e}")
            return None

    def _fallback(self, url: str, error: str) -> ProxyResult:
        return ProxyResult(
            success=False,
            method=ProxyMethod.FALLBACK,
            fallback_descriptor=FallbackDescriptor(
                title=PLACEHOLDER_TITLE,
                retailer=urlparse(url).hostname or "",
                url=url,
            ),
            is_blocked=True,
            error=error,
        )

    async def proxy(
        self,
        url: str,
        deadline_s: Optional[float] = None,
        trace_id: Optional[str] = None,
    ) -> ProxyResult:
        """Acquire displayable HTML for `url`.

        Raises InvalidURLError for malformed URLs. When `deadline_s` is given,
        no tier starts after it has elapsed and a running tier is cancelled.
        """
        url = validate_url(url)
        log = with_trace(self.logger, trace_id)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + deadline_s if deadline_s is not None else None
        log.info(f"[Proxy] Proxying {url}")

        try:
            outcome = await self._run_tier(
                "fetch",
                lambda: self.fetcher.fetch_with_retry(
                    url, max_attempts=self.config.fetch_max_attempts, trace_id=log.trace_id
                ),
                deadline,
                log,
            )
            if outcome is not None and self.fetcher.is_sufficient(outcome):
                # relative links resolve against the page we ended up on after redirects
                base_url = outcome.final_url or url
                body = sanitize_html(outcome.body_text, base_url) if outcome.is_html else outcome.body_text
                log.info(f"[Proxy] ✅ Served via fetch ({len(body)} chars)")
                return ProxyResult(
                    success=True,
                    method=ProxyMethod.FETCH,
                    sanitized_html=body,
                    content_type=outcome.content_type or "text/html",
                )
            if outcome is not None:
                log.info(f"[Proxy] Fetch insufficient ({outcome.describe()}), escalating to render")

            outcome = await self._run_tier(
                "render",
                lambda: self.renderer.render(url, trace_id=log.trace_id),
                deadline,
                log,
            )
            if outcome is not None and outcome.ok and outcome.body_text:
                log.info(f"[Proxy] ✅ Served via render ({len(outcome.body_text)} chars)")
                return ProxyResult(
                    success=True,
                    method=ProxyMethod.RENDER,
                    sanitized_html=sanitize_html(outcome.body_text, outcome.final_url or url),
                    content_type="text/html; charset=utf-8",
                )
            if outcome is not None:
                log.info(f"[Proxy] Render failed ({outcome.describe()})")
        except DeadlineExceeded as e:
            log.warning(f"[Proxy] ⚠️ Deadline of {deadline_s}s exceeded ({e})")
            return self._fallback(url, "Deadline exceeded")

        log.warning(f"[Proxy] ⚠️ All methods failed for {url}, returning fallback")
        return self._fallback(url, "All proxy methods failed")
