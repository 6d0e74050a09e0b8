"""Firecrawl-based product extraction for single product pages.

`ExtractionService.extract` never raises: when the extraction API is blocked,
returns generic data, is misconfigured or fails outright, the result falls
back to a title guessed from the URL and is tagged `heuristic`.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

from firecrawl import FirecrawlApp

from productscout.config import PipelineConfig
from productscout.logging_utils import LoggerLike, with_trace
from productscout.models.product import (
    BlockageVerdict,
    ExtractedProduct,
    ExtractionConfidence,
    ExtractionResponse,
    ExtractionResult,
)
from productscout.tools.blockage import classify_extraction, is_generic_title
from productscout.tools.text_cleaning import (
    clean_price,
    clean_text,
    placeholder_image,
    validate_image_url,
)
from productscout.tools.url_heuristics import extract_from_url

logger = logging.getLogger(__name__)

PRODUCT_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "The exact product name"},
        "description": {"type": "string", "description": "A brief description of the product"},
        "price": {"type": "string", "description": "The current price including currency, if shown"},
        "image": {"type": "string", "description": "Absolute URL of the main product image"},
        "retailer": {"type": "string", "description": "Name of the shop selling the product"},
    },
    "required": ["title", "description", "image", "retailer"],
}

EXTRACTION_PROMPT = (
    "Extract the product shown on this furniture/home product page: exact title, "
    "a brief description, the current price and the main product image URL. "
    "Omit fields that are not on the page."
)


class ExtractionApi(Protocol):
    async def extract(self, url: str) -> ExtractionResponse: ...


def _normalize_response(result: Any) -> ExtractionResponse:
    """Turn whatever the Firecrawl SDK returned into an `ExtractionResponse`."""
    if isinstance(result, dict):
        success = bool(result.get("success", True))
        data = result.get("data", {})
        error = result.get("error") or ""
    else:
        success = bool(getattr(result, "success", True))
        data = getattr(result, "data", None)
        error = getattr(result, "error", None) or ""

    if isinstance(data, list):
        data = data[0] if data else None
    if data is not None and not isinstance(data, dict):
        data = data.model_dump() if hasattr(data, "model_dump") else vars(data)

    return ExtractionResponse(
        success=success and not error,
        data=ExtractedProduct.model_validate(data) if data else None,
        error=str(error),
    )


class FirecrawlExtractClient:
    """Async facade over the synchronous Firecrawl SDK."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig.from_env()
        if not self.config.firecrawl_api_key:
            raise ValueError("Firecrawl API key not configured. Set FIRECRAWL_API_KEY")

        kwargs = {"api_key": self.config.firecrawl_api_key}
        if self.config.firecrawl_api_url:
            kwargs["api_url"] = self.config.firecrawl_api_url
        self._app = FirecrawlApp(**kwargs)

    async def extract(self, url: str) -> ExtractionResponse:
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(
                    self._app.extract, urls=[url], schema=PRODUCT_SCHEMA, prompt=EXTRACTION_PROMPT
                ),
                timeout=self.config.firecrawl_timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"Extract timed out after {self.config.firecrawl_timeout}s")
        return _normalize_response(result)


def has_meaningful_data(data: Optional[ExtractedProduct]) -> bool:
    """A real title plus at least a description or an image."""
    if data is None or not data.title.strip() or is_generic_title(data.title):
        return False
    return bool(data.description.strip() or data.image.strip())


class ExtractionService:
    """Structured product extraction with blockage detection and URL fallback."""

    def __init__(
        self,
        api: Optional[ExtractionApi] = None,
        config: Optional[PipelineConfig] = None,
        backoff_ms: int = 1000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        log: Optional[LoggerLike] = None,
    ):
        self._api = api
        self.config = config or PipelineConfig.from_env()
        self.backoff_ms = backoff_ms
        self._sleep = sleep
        self.logger = log or logger

    @property
    def api(self) -> ExtractionApi:
        """Lazy-load the Firecrawl client."""
        if self._api is None:
            self._api = FirecrawlExtractClient(self.config)
        return self._api

    @property
    def is_configured(self) -> bool:
        return self._api is not None or bool(self.config.firecrawl_api_key)

    def heuristic_result(self, url: str, retailer_hint: Optional[str] = None) -> ExtractionResult:
        """Low-confidence result built from the URL alone."""
        guess = extract_from_url(url)
        retailer = guess.retailer
        if retailer_hint and retailer in ("Unknown Retailer", "Unknown"):
            retailer = retailer_hint
        return ExtractionResult(
            title=guess.title,
            description=f"Product from {retailer}. Limited information available.",
            image=placeholder_image(guess.title),
            price=None,
            retailer=retailer,
            url=url,
            confidence=ExtractionConfidence.HEURISTIC,
            heuristic_confidence=guess.confidence,
        )

    def _scraped_result(
        self, url: str, data: ExtractedProduct, retailer_hint: Optional[str]
    ) -> ExtractionResult:
        retailer = retailer_hint or clean_text(data.retailer) or extract_from_url(url).retailer
        title = clean_text(data.title)
        return ExtractionResult(
            title=title,
            description=clean_text(data.description) or f"Product from {retailer}.",
            image=validate_image_url(data.image, title),
            price=clean_price(data.price),
            retailer=retailer,
            url=url,
            confidence=ExtractionConfidence.SCRAPED,
        )

    async def _attempt(
        self, url: str, retailer_hint: Optional[str], log: LoggerLike
    ) -> tuple[ExtractionResult, BlockageVerdict]:
        try:
            response = await self.api.extract(url)
        except Exception as e:
            log.error(f"[Extract] ❌ Extraction API failed for {url}: {e}")
            response = ExtractionResponse(success=False, error=str(e) or e.__class__.__name__)

        verdict = classify_extraction(response)
        if verdict.is_blocked:
            log.info(f"[Extract] Blocked or generic data ({verdict.reason}), using URL fallback")
            return self.heuristic_result(url, retailer_hint), verdict

        if response.success and has_meaningful_data(response.data):
            result = self._scraped_result(url, response.data, retailer_hint)
            log.info(
                f"[Extract] ✅ Scraped '{result.title}' "
                f"(price: {result.price or 'n/a'}, image: {result.image.startswith('http')})"
            )
            return result, verdict

        log.info(f"[Extract] No meaningful data ({verdict.reason}), using URL fallback")
        return self.heuristic_result(url, retailer_hint), verdict

    async def extract(
        self,
        url: str,
        retailer_hint: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> ExtractionResult:
        """Extract product data from `url` in a single attempt. Never raises."""
        log = with_trace(self.logger, trace_id)
        if not self.is_configured:
            log.warning("[Extract] FIRECRAWL_API_KEY not set, using URL fallback")
            return self.heuristic_result(url, retailer_hint)

        log.info(f"[Extract] Starting extraction for {url}")
        result, _ = await self._attempt(url, retailer_hint, log)
        return result

    async def extract_with_retry(
        self,
        url: str,
        retailer_hint: Optional[str] = None,
        max_attempts: Optional[int] = None,
        trace_id: Optional[str] = None,
    ) -> ExtractionResult:
        """Like `extract`, retrying only transient failures that produced no real data."""
        log = with_trace(self.logger, trace_id)
        max_attempts = max_attempts or self.config.extract_max_attempts
        result = self.heuristic_result(url, retailer_hint)
        if not self.is_configured:
            log.warning("[Extract] FIRECRAWL_API_KEY not set, using URL fallback")
            return result

        for attempt in range(1, max_attempts + 1):
            log.info(f"[Extract] Attempt {attempt}/{max_attempts} for {url}")
            result, verdict = await self._attempt(url, retailer_hint, log)
            if result.is_scraped:
                return result
            if not verdict.can_retry or attempt == max_attempts:
                break
            log.info(f"[Extract] {verdict.reason}, retrying...")
            await self._sleep(attempt * self.backoff_ms / 1000)

        return result
