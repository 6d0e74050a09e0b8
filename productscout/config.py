"""Runtime configuration for the content-acquisition pipeline.

Values come from environment variables (a `.env` file is loaded by the
entry point). Missing API keys are not fatal here: each stage degrades on
its own when its key is absent.
"""

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class PipelineConfig:
    """Configuration for every stage of the pipeline."""

    # Structured extraction (Firecrawl)
    firecrawl_api_key: str = ""
    firecrawl_api_url: str = ""
    firecrawl_timeout: float = 60.0
    extract_max_attempts: int = 2

    # Web search (Serper)
    serper_api_key: str = ""
    serper_url: str = "https://google.serper.dev/search"
    search_market: str = "de"
    search_num_results: int = 5

    # Reasoning service (OpenAI-compatible)
    suggestion_api_key: str = ""
    suggestion_base_url: str = "https://api.perplexity.ai"
    suggestion_model: str = "sonar-pro"

    # Plain fetch and headless render
    fetch_timeout_ms: int = 15000
    fetch_max_attempts: int = 3
    render_timeout_ms: int = 30000
    min_content_length: int = 1000

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Load configuration from environment variables."""
        return cls(
            firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY", ""),
            firecrawl_api_url=os.getenv("FIRECRAWL_API_URL", ""),
            firecrawl_timeout=float(os.getenv("FIRECRAWL_TIMEOUT", "60")),
            extract_max_attempts=_env_int("EXTRACT_MAX_ATTEMPTS", 2),
            serper_api_key=os.getenv("SERPER_API_KEY", ""),
            search_market=os.getenv("SEARCH_MARKET", "de").lower().lstrip("."),
            suggestion_api_key=os.getenv("PERPLEXITY_API_KEY", ""),
            suggestion_base_url=os.getenv("SUGGESTION_BASE_URL", "https://api.perplexity.ai"),
            suggestion_model=os.getenv("SUGGESTION_MODEL", "sonar-pro"),
            fetch_timeout_ms=_env_int("FETCH_TIMEOUT_MS", 15000),
            fetch_max_attempts=_env_int("FETCH_MAX_ATTEMPTS", 3),
            render_timeout_ms=_env_int("RENDER_TIMEOUT_MS", 30000),
            min_content_length=_env_int("MIN_CONTENT_LENGTH", 1000),
        )
