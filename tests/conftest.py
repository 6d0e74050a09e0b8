"""Pytest configuration and fixtures for ProductScout tests."""

import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables
load_dotenv(project_root / ".env")

from productscout.config import PipelineConfig  # noqa: E402
from productscout.tools.http_fetcher import FetchOutcome, FetchStatus  # noqa: E402


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedFetchClient:
    """Returns pre-baked FetchOutcomes in order and records request headers."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def get(self, url, headers=None, timeout_ms=None):
        self.calls.append({"url": url, "headers": dict(headers or {})})
        return self.outcomes.pop(0)


@pytest.fixture
def config():
    """Configuration with dummy keys; never talks to real services."""
    return PipelineConfig(
        firecrawl_api_key="fc-test",
        serper_api_key="serper-test",
        suggestion_api_key="pplx-test",
    )


@pytest.fixture
def no_sleep():
    """Sleep replacement that returns immediately."""
    return RecordingSleep()


@pytest.fixture
def scripted_client():
    """Factory for a fetch client returning the given outcomes."""
    return ScriptedFetchClient


@pytest.fixture
def html_page():
    """A product page comfortably above the minimum content length."""
    filler = "<p>Bequemes Sofa mit Bezug aus Baumwolle.</p>" * 40
    return (
        "<!DOCTYPE html><html lang=\"de\"><head><title>KIVIK Sofa</title>"
        "<meta http-equiv=\"X-Frame-Options\" content=\"DENY\"></head>"
        f"<body><img src=\"//cdn.example.de/kivik.jpg\">{filler}</body></html>"
    )


@pytest.fixture
def ok_outcome(html_page):
    return FetchOutcome(
        FetchStatus.OK,
        status_code=200,
        body_text=html_page,
        content_type="text/html; charset=utf-8",
    )


@pytest.fixture
def sample_product_url():
    """Provide a sample IKEA product URL for testing."""
    return "https://www.ikea.com/de/de/p/kivik-sofa-s59440564/"
