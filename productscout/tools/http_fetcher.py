"""Plain HTTP fetching with retry, header rotation and a content-sufficiency check.

`FetchClient` performs exactly one GET and classifies the outcome instead of
raising. `RetryingFetcher` applies the retry policy on top of it:

- 403/429 and too-short bodies: back off and retry with a different user agent
- other failures: back off and retry with the same headers
- sufficient 200: return immediately
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx

from productscout.logging_utils import LoggerLike, with_trace
from productscout.tools.retailers import (
    build_headers,
    hostname_of,
    pick_user_agent,
    resolve_retailer,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 15000
DEFAULT_MIN_CONTENT_LENGTH = 1000
BLOCKED_STATUS_CODES = (403, 429)


class FetchStatus(str, Enum):
    OK = "ok"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"


@dataclass
class FetchOutcome:
    """Result of one fetch or render attempt."""

    status: FetchStatus
    status_code: Optional[int] = None
    body_text: str = ""
    content_type: str = ""
    error: str = ""
    final_url: str = ""

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.OK

    @property
    def is_blocked(self) -> bool:
        return self.status == FetchStatus.HTTP_ERROR and self.status_code in BLOCKED_STATUS_CODES

    @property
    def is_html(self) -> bool:
        return "html" in self.content_type.lower()

    def describe(self) -> str:
        if self.status == FetchStatus.HTTP_ERROR:
            return f"HTTP {self.status_code}"
        if self.ok:
            return f"OK ({len(self.body_text)} chars)"
        return f"{self.status.value}: {self.error}" if self.error else self.status.value


class FetchClient:
    """Single HTTP GET with a hard timeout."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ):
        self._client = client
        self.timeout_ms = timeout_ms

    async def get(
        self,
        url: str,
        headers: Optional[dict] = None,
        timeout_ms: Optional[int] = None,
    ) -> FetchOutcome:
        """Fetch a URL, following redirects.

        HTTP error codes are returned as `http_error`; only connection-level
        failures become `network_error` or `timeout`.
        """
        timeout_s = (timeout_ms or self.timeout_ms) / 1000
        try:
            # wait_for cancels the request, which also bounds slow-drip bodies
            return await asyncio.wait_for(self._get(url, headers or {}, timeout_s), timeout_s)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return FetchOutcome(FetchStatus.TIMEOUT, error=f"Timed out after {timeout_s:.0f}s")
        except httpx.HTTPError as e:
            return FetchOutcome(FetchStatus.NETWORK_ERROR, error=str(e) or e.__class__.__name__)

    async def _get(self, url: str, headers: dict, timeout_s: float) -> FetchOutcome:
        if self._client is not None:
            response = await self._client.get(url, headers=headers, follow_redirects=True, timeout=timeout_s)
        else:
            async with httpx.AsyncClient(follow_redirects=True, timeout=timeout_s) as client:
                response = await client.get(url, headers=headers)

        content_type = response.headers.get("content-type", "")
        if response.is_success:
            return FetchOutcome(
                FetchStatus.OK,
                status_code=response.status_code,
                body_text=response.text,
                content_type=content_type,
                final_url=str(response.url),
            )
        return FetchOutcome(
            FetchStatus.HTTP_ERROR,
            status_code=response.status_code,
            content_type=content_type,
            error=response.reason_phrase,
        )


class RetryingFetcher:
    """Bounded retry-with-backoff around `FetchClient`."""

    def __init__(
        self,
        client: Optional[FetchClient] = None,
        min_content_length: int = DEFAULT_MIN_CONTENT_LENGTH,
        backoff_ms: int = 1000,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        log: Optional[LoggerLike] = None,
    ):
        self.client = client or FetchClient()
        self.min_content_length = min_content_length
        self.backoff_ms = backoff_ms
        self.rng = rng or random.Random()
        self._sleep = sleep
        self.logger = log or logger

    def is_sufficient(self, outcome: FetchOutcome) -> bool:
        """An OK response long enough not to be an "access denied" stub."""
        return outcome.ok and len(outcome.body_text) >= self.min_content_length

    async def fetch_with_retry(
        self,
        url: str,
        max_attempts: int = 3,
        trace_id: Optional[str] = None,
    ) -> FetchOutcome:
        """Fetch with up to `max_attempts` tries; returns the last outcome on exhaustion."""
        log = with_trace(self.logger, trace_id)
        profile = resolve_retailer(hostname_of(url))
        pool_size = len(profile.user_agents)
        rotation = self.rng.randrange(pool_size)
        outcome = FetchOutcome(FetchStatus.NETWORK_ERROR, error="No attempts made")

        for attempt in range(1, max_attempts + 1):
            headers = build_headers(profile, pick_user_agent(profile, rotation=rotation))
            log.info(f"[Fetch] Attempt {attempt}/{max_attempts} for {url} ({profile.display_name})")
            outcome = await self.client.get(url, headers=headers)

            if self.is_sufficient(outcome):
                log.info(f"[Fetch] ✅ {outcome.describe()}")
                return outcome

            if attempt == max_attempts:
                break

            if outcome.is_blocked or outcome.ok:
                reason = "content too short" if outcome.ok else outcome.describe()
                log.info(f"[Fetch] ⚠️ {reason}, rotating headers")
                rotation += 1
            else:
                log.warning(f"[Fetch] ⚠️ Attempt {attempt} failed: {outcome.describe()}")

            await self._sleep(attempt * self.backoff_ms / 1000)

        log.warning(f"[Fetch] All {max_attempts} attempts exhausted: {outcome.describe()}")
        return outcome
