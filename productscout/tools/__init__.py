"""Tools for fetching, rendering, extracting and searching retailer products."""

from productscout.tools.blockage import classify_extraction
from productscout.tools.browser_renderer import RenderClient
from productscout.tools.firecrawl_extractor import ExtractionService
from productscout.tools.http_fetcher import FetchClient, FetchOutcome, FetchStatus, RetryingFetcher
from productscout.tools.retailers import RetailerProfile, resolve_retailer
from productscout.tools.sanitizer import sanitize_html
from productscout.tools.search_resolver import SearchResolver
from productscout.tools.suggestion_generator import SuggestionGenerator
from productscout.tools.url_heuristics import extract_from_url

__all__ = [
    "classify_extraction",
    "RenderClient",
    "ExtractionService",
    "FetchClient",
    "FetchOutcome",
    "FetchStatus",
    "RetryingFetcher",
    "RetailerProfile",
    "resolve_retailer",
    "sanitize_html",
    "SearchResolver",
    "SuggestionGenerator",
    "extract_from_url",
]
