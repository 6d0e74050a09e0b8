"""Resolve a product name to a retailer product page via Serper web search.

The query is pinned to the retailer's shop domain when we know it and biased
towards product pages with German purchase-intent terms. Results are taken in
the search engine's order; the first one that passes the product-page checks
wins.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from productscout.config import PipelineConfig
from productscout.logging_utils import LoggerLike, with_trace
from productscout.models.product import SearchCandidate, SerperResponse
from productscout.tools.retailers import find_search_domain

logger = logging.getLogger(__name__)

PURCHASE_INTENT_TERMS = "kaufen bestellen produkt artikel"

LISTING_PATH_MARKERS = ("/search", "/suche", "/category", "/kategorie", "/catalog", "/products", "/shop")
PRODUCT_PATH_MARKERS = (
    "/p/", "/product/", "/artikel/", "/produkt/", "/item/",
    "/dp/", "/gp/product/", "/kaufen/", "/bestellen/",
)
PURCHASE_WORDS = ("kaufen", "bestellen")
CATEGORY_PAGE_URL_MARKERS = ("/category/", "/kategorie/", "/search", "/suche")
CATEGORY_PAGE_TITLE_MARKERS = ("alle ", "category", "kategorie")

CATEGORY_KEYWORDS = {
    "chair": ("stuhl", "chair", "sessel"),
    "sofa": ("sofa", "couch", "ecke", "eck"),
    "table": ("tisch", "table"),
    "bed": ("bett", "bed"),
    "desk": ("schreibtisch", "desk"),
    "shelf": ("regal", "shelf", "bord"),
    "lamp": ("lampe", "lamp", "leuchte"),
}


class SearchResolver:
    """Find the product page URL for a suggested product name."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        log: Optional[LoggerLike] = None,
    ):
        self.config = config or PipelineConfig.from_env()
        self._client = client
        self.logger = log or logger

    @property
    def market_tld(self) -> str:
        return "." + self.config.search_market

    def build_search_query(self, product_name: str, retailer: str, category: str) -> str:
        domain = find_search_domain(retailer)
        site_filter = f"site:{domain}" if domain else f"site:*{self.market_tld}"
        parts = [retailer, product_name, category, PURCHASE_INTENT_TERMS, site_filter]
        return " ".join(p.strip() for p in parts if p and p.strip())

    async def _search(self, query: str) -> list[SearchCandidate]:
        payload = {
            "q": query,
            "gl": self.config.search_market,
            "hl": self.config.search_market,
            "num": self.config.search_num_results,
        }
        headers = {"X-API-KEY": self.config.serper_api_key, "Content-Type": "application/json"}

        if self._client is not None:
            response = await self._client.post(self.config.serper_url, headers=headers, json=payload, timeout=15.0)
        else:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.post(self.config.serper_url, headers=headers, json=payload)

        if response.status_code == 403:
            raise ValueError("Search API credits exhausted")
        response.raise_for_status()

        organic = SerperResponse.model_validate(response.json()).organic
        return [
            SearchCandidate(url=item.link, title=item.title, snippet=item.snippet)
            for item in organic[: self.config.search_num_results]
            if item.link
        ]

    def _is_valid_product_url(self, url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        hostname = (parsed.hostname or "").lower()
        if not hostname.endswith(self.market_tld):
            return False
        path = parsed.path.lower()
        return not any(marker in path for marker in LISTING_PATH_MARKERS)

    @staticmethod
    def _looks_like_product_page(candidate: SearchCandidate, category: str) -> bool:
        url = candidate.url.lower()
        title = candidate.title.lower()
        snippet = candidate.snippet.lower()

        has_product_path = any(marker in url for marker in PRODUCT_PATH_MARKERS)
        keywords = CATEGORY_KEYWORDS.get((category or "").lower(), ())
        has_category_keyword = any(k in title or k in snippet for k in keywords)
        has_purchase_terms = any(w in title or w in snippet for w in PURCHASE_WORDS)

        is_category_page = any(m in url for m in CATEGORY_PAGE_URL_MARKERS) or any(
            m in title for m in CATEGORY_PAGE_TITLE_MARKERS
        )
        return (has_product_path or has_category_keyword or has_purchase_terms) and not is_category_page

    def find_best_match(
        self,
        results: list[SearchCandidate],
        retailer: str,
        category: str,
        log: Optional[LoggerLike] = None,
    ) -> Optional[str]:
        """First result, in ranked order, that passes the product-page checks."""
        log = log or self.logger
        for candidate in results:
            if not self._is_valid_product_url(candidate.url):
                log.debug(f"[Search] Rejected (market/listing): {candidate.url}")
                continue
            if self._looks_like_product_page(candidate, category):
                return candidate.url
            log.debug(f"[Search] Not a product page: {candidate.url}")
        return None

    async def find_product_url(
        self,
        product_name: str,
        retailer: str,
        category: str,
        trace_id: Optional[str] = None,
    ) -> Optional[str]:
        """Search for the product page of `product_name` at `retailer`.

        Returns None when nothing qualifies or the search API fails. Raises
        ValueError for an empty product name.
        """
        if not product_name or not product_name.strip():
            raise ValueError("Product name is required for search")

        log = with_trace(self.logger, trace_id)
        if not self.config.serper_api_key:
            log.warning("[Search] SERPER_API_KEY not set, search unavailable")
            return None

        query = self.build_search_query(product_name, retailer, category)
        log.info(f'[Search] Query: "{query}"')
        try:
            results = await self._search(query)
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            log.error(f"[Search] ❌ Search failed for '{product_name}': {e}")
            return None

        log.info(f"[Search] {len(results)} results")
        url = self.find_best_match(results, retailer, category, log=log)
        if url:
            log.info(f"[Search] ✅ Found product page: {url}")
        else:
            log.warning(f"[Search] No suitable product page for '{product_name}'")
        return url
