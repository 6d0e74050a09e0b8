"""Tests for structured extraction with heuristic fallback."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from productscout.models.product import ExtractedProduct, ExtractionConfidence, ExtractionResponse
from productscout.tools.firecrawl_extractor import (
    ExtractionService,
    FirecrawlExtractClient,
    _normalize_response,
)

URL = "https://www.ikea.com/de/de/p/kivik-sofa-s59440564/"

KIVIK = ExtractedProduct(
    title="KIVIK 3er-Sofa",
    description="Ein großzügiges Sofa mit tiefer Sitzfläche.",
    price="ab 599,00 €",
    image="https://www.ikea.com/images/kivik.jpg",
    retailer="IKEA Deutschland",
)


class ScriptedExtractionApi:
    """Returns responses (or raises exceptions) in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    async def extract(self, url):
        self.calls += 1
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def service_factory(config, no_sleep):
    def make(*responses):
        api = ScriptedExtractionApi(*responses)
        return ExtractionService(api=api, config=config, sleep=no_sleep), api

    return make


@pytest.mark.asyncio
async def test_scraped_result_is_cleaned(service_factory):
    service, _ = service_factory(ExtractionResponse(success=True, data=KIVIK))

    result = await service.extract(URL)

    assert result.confidence == ExtractionConfidence.SCRAPED
    assert result.title == "KIVIK 3er-Sofa"
    assert result.price == "599,00 €"
    assert result.image == "https://www.ikea.com/images/kivik.jpg"
    assert result.retailer == "IKEA Deutschland"
    assert result.heuristic_confidence is None


@pytest.mark.asyncio
async def test_retailer_hint_wins_over_extracted_retailer(service_factory):
    service, _ = service_factory(ExtractionResponse(success=True, data=KIVIK))

    result = await service.extract(URL, retailer_hint="IKEA")

    assert result.retailer == "IKEA"


@pytest.mark.asyncio
async def test_network_error_falls_back_to_url_heuristic(service_factory):
    service, _ = service_factory(ConnectionError("network unreachable"))

    result = await service.extract(URL)

    assert result.confidence == ExtractionConfidence.HEURISTIC
    assert result.title == "Kivik Sofa"
    assert result.retailer == "IKEA"
    assert result.description == "Product from IKEA. Limited information available."
    assert result.image.startswith("/placeholder.svg")


@pytest.mark.asyncio
async def test_generic_data_is_not_reported_as_scraped(service_factory):
    service, _ = service_factory(ExtractionResponse(success=True, data=ExtractedProduct(title="Robot Check")))

    result = await service.extract(URL)

    assert result.confidence == ExtractionConfidence.HEURISTIC
    assert result.title == "Kivik Sofa"


@pytest.mark.asyncio
async def test_title_is_never_empty(service_factory):
    service, _ = service_factory(ExtractionResponse(success=False, error="boom"))

    result = await service.extract("https://shop.example.org/")

    assert result.title == "Product"
    assert result.confidence == ExtractionConfidence.HEURISTIC


@pytest.mark.asyncio
async def test_heuristic_uses_hint_for_unknown_retailer(service_factory):
    service, _ = service_factory(ExtractionResponse(success=True))

    result = await service.extract("https://shop.example.org/p/eames-chair", retailer_hint="Vitra")

    assert result.retailer == "Vitra"
    assert result.title == "Eames Chair"


@pytest.mark.asyncio
async def test_retry_recovers_from_transient_failure(service_factory, no_sleep):
    service, api = service_factory(
        TimeoutError("Extract timed out after 60s"),
        ExtractionResponse(success=True, data=KIVIK),
    )

    result = await service.extract_with_retry(URL, max_attempts=2)

    assert result.confidence == ExtractionConfidence.SCRAPED
    assert api.calls == 2
    assert no_sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_retry_stops_on_blocked_response(service_factory):
    service, api = service_factory(
        ExtractionResponse(success=False, error="403 Forbidden"),
        ExtractionResponse(success=True, data=KIVIK),
    )

    result = await service.extract_with_retry(URL, max_attempts=2)

    assert result.confidence == ExtractionConfidence.HEURISTIC
    assert api.calls == 1


@pytest.mark.asyncio
async def test_missing_api_key_degrades_to_heuristic(config):
    config.firecrawl_api_key = ""
    service = ExtractionService(config=config)

    result = await service.extract(URL)

    assert result.confidence == ExtractionConfidence.HEURISTIC


@pytest.mark.asyncio
async def test_missing_api_key_is_not_retried(config, no_sleep):
    config.firecrawl_api_key = ""
    service = ExtractionService(config=config, sleep=no_sleep)

    result = await service.extract_with_retry(URL, max_attempts=3)

    assert result.confidence == ExtractionConfidence.HEURISTIC
    assert result.title
    assert no_sleep.delays == []


def test_normalize_response_accepts_sdk_objects():
    sdk_result = SimpleNamespace(success=True, data=[{"title": "KIVIK", "price": 599}], error=None)

    response = _normalize_response(sdk_result)

    assert response.success
    assert response.data.title == "KIVIK"
    assert response.data.price == "599"


def test_normalize_response_accepts_dicts_with_errors():
    response = _normalize_response({"success": False, "error": "Rate limit exceeded"})

    assert not response.success
    assert response.data is None
    assert response.error == "Rate limit exceeded"


@pytest.mark.asyncio
@patch("productscout.tools.firecrawl_extractor.FirecrawlApp")
async def test_firecrawl_client_passes_schema(mock_app, config):
    mock_app.return_value.extract.return_value = {"success": True, "data": KIVIK.model_dump()}
    client = FirecrawlExtractClient(config)

    response = await client.extract(URL)

    mock_app.assert_called_once_with(api_key="fc-test")
    kwargs = mock_app.return_value.extract.call_args.kwargs
    assert kwargs["urls"] == [URL]
    assert "title" in kwargs["schema"]["properties"]
    assert response.data.title == "KIVIK 3er-Sofa"
