"""End-to-end suggestion pipeline: generate names, resolve URLs, extract products."""

import asyncio
import logging
from typing import Optional

from productscout.logging_utils import LoggerLike, new_trace_id, with_trace
from productscout.models.product import (
    ExtractionResult,
    FinalizedSuggestion,
    Suggestion,
    SuggestionHistory,
)
from productscout.tools.firecrawl_extractor import ExtractionService
from productscout.tools.product_type import detect_product_type
from productscout.tools.search_resolver import SearchResolver
from productscout.tools.suggestion_generator import SuggestionGenerator

logger = logging.getLogger(__name__)


def finalize(suggestion: Suggestion, product: ExtractionResult) -> FinalizedSuggestion:
    """Merge the reasoning service's justification into the extracted product."""
    return FinalizedSuggestion(
        **product.model_dump(),
        name=suggestion.name,
        category=suggestion.category,
        reasoning=suggestion.reasoning,
        confidence_score=suggestion.confidence_score,
        product_type=detect_product_type(product.url, product.title, product.description),
    )


class SuggestionPipeline:
    """Chains SuggestionGenerator, SearchResolver and ExtractionService.

    Suggestions whose product page cannot be found are dropped; a failure
    while enriching one suggestion never affects the others.
    """

    def __init__(
        self,
        generator: Optional[SuggestionGenerator] = None,
        resolver: Optional[SearchResolver] = None,
        extractor: Optional[ExtractionService] = None,
        max_concurrency: int = 1,
        retry_extraction: bool = True,
        log: Optional[LoggerLike] = None,
    ):
        self.generator = generator or SuggestionGenerator()
        self.resolver = resolver or SearchResolver()
        self.extractor = extractor or ExtractionService()
        self.max_concurrency = max(1, max_concurrency)
        self.retry_extraction = retry_extraction
        self.logger = log or logger

    async def _enrich(self, suggestion: Suggestion) -> Optional[FinalizedSuggestion]:
        trace_id = new_trace_id()
        log = with_trace(self.logger, trace_id)
        log.info(f"[Pipeline] Enriching '{suggestion.name}' ({suggestion.retailer})")

        try:
            url = await self.resolver.find_product_url(
                suggestion.name, suggestion.retailer, suggestion.category, trace_id=trace_id
            )
            if not url:
                log.warning(f"[Pipeline] No product page for '{suggestion.name}', dropping")
                return None

            if self.retry_extraction:
                product = await self.extractor.extract_with_retry(
                    url, retailer_hint=suggestion.retailer, trace_id=trace_id
                )
            else:
                product = await self.extractor.extract(url, retailer_hint=suggestion.retailer, trace_id=trace_id)
        except Exception as e:
            log.error(f"[Pipeline] ❌ Failed to enrich '{suggestion.name}': {e}")
            return None

        result = finalize(suggestion, product)
        log.info(
            f"[Pipeline] ✅ '{result.title}' via {result.confidence.value} extraction "
            f"(type: {result.product_type})"
        )
        return result

    async def _enrich_all(self, suggestions: list[Suggestion]) -> list[Optional[FinalizedSuggestion]]:
        if self.max_concurrency == 1:
            return [await self._enrich(s) for s in suggestions]

        slots: list[Optional[FinalizedSuggestion]] = [None] * len(suggestions)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def worker(index: int, suggestion: Suggestion) -> None:
            async with semaphore:
                slots[index] = await self._enrich(suggestion)

        await asyncio.gather(*(worker(i, s) for i, s in enumerate(suggestions)))
        return slots

    async def run(
        self,
        category: str,
        history: Optional[SuggestionHistory] = None,
        count: int = 3,
        trace_id: Optional[str] = None,
    ) -> list[FinalizedSuggestion]:
        """Suggest up to `count` real products for `category`, in suggestion order."""
        log = with_trace(self.logger, trace_id)
        log.info(f"[Pipeline] Generating {count} '{category}' suggestions")

        suggestions = await self.generator.generate(category, history, count, trace_id=log.trace_id)
        if not suggestions:
            log.warning("[Pipeline] No suggestions generated")
            return []

        enriched = await self._enrich_all(suggestions)
        results = [r for r in enriched if r is not None]
        log.info(f"[Pipeline] {len(results)}/{len(suggestions)} suggestions finalized")
        return results
