"""Tests for extraction blockage classification."""

from productscout.models.product import ExtractedProduct, ExtractionResponse
from productscout.tools.blockage import classify_extraction, is_generic_title


def test_empty_response_is_blocked_without_retry():
    verdict = classify_extraction(ExtractionResponse(success=True))

    assert verdict.is_blocked
    assert not verdict.can_retry


def test_empty_data_object_is_blocked():
    verdict = classify_extraction(ExtractionResponse(success=True, data=ExtractedProduct()))

    assert verdict.is_blocked
    assert not verdict.can_retry


def test_generic_title_without_details_is_generic_data():
    response = ExtractionResponse(success=True, data=ExtractedProduct(title="Amazon.de"))

    verdict = classify_extraction(response)

    assert verdict.is_blocked
    assert verdict.is_generic_data
    assert not verdict.can_retry


def test_timeout_is_retryable():
    verdict = classify_extraction(ExtractionResponse(success=False, error="Request timeout after 60s"))

    assert not verdict.is_blocked
    assert verdict.can_retry
    assert verdict.reason == "Connection timeout"


def test_network_error_is_retryable():
    verdict = classify_extraction(ExtractionResponse(success=False, error="Network unreachable"))

    assert verdict.can_retry
    assert verdict.reason == "Network error"


def test_forbidden_is_blocked():
    verdict = classify_extraction(ExtractionResponse(success=False, error="HTTP 403 Forbidden"))

    assert verdict.is_blocked
    assert not verdict.can_retry


def test_unrecognised_error_is_unknown_and_retryable():
    verdict = classify_extraction(ExtractionResponse(success=False, error="something odd"))

    assert not verdict.is_blocked
    assert verdict.can_retry
    assert verdict.reason == "unknown"


def test_real_data_is_not_blocked():
    response = ExtractionResponse(
        success=True,
        data=ExtractedProduct(title="KIVIK Sofa", description="3er-Sofa", image="https://x.de/a.jpg"),
    )

    assert not classify_extraction(response).is_blocked


def test_generic_titles_match_exactly():
    assert is_generic_title("  Robot Check ")
    assert not is_generic_title("IKEA KIVIK Sofa")
