"""Tests for the fetch -> render -> fallback content proxy."""

import asyncio
from dataclasses import replace

import httpx
import pytest

from productscout.models.product import ProxyMethod
from productscout.pipeline.content_proxy import ContentProxy, InvalidURLError
from productscout.tools.http_fetcher import FetchClient, FetchOutcome, FetchStatus, RetryingFetcher

URL = "https://www.ikea.com/de/de/p/kivik-sofa-s59440564/"


class FakeRenderer:
    def __init__(self, outcome=None, delay=0.0, error=None):
        self.outcome = outcome
        self.delay = delay
        self.error = error
        self.calls = 0

    async def render(self, url, timeout_ms=None, trace_id=None):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.outcome


@pytest.fixture
def make_proxy(config, scripted_client, no_sleep):
    def make(fetch_outcomes, renderer):
        fetcher = RetryingFetcher(client=scripted_client(fetch_outcomes), sleep=no_sleep)
        return ContentProxy(fetcher=fetcher, renderer=renderer, config=config)

    return make


def _blocked(n):
    return [FetchOutcome(FetchStatus.HTTP_ERROR, status_code=403) for _ in range(n)]


@pytest.mark.asyncio
async def test_fetch_tier_serves_sanitized_html(make_proxy, ok_outcome):
    renderer = FakeRenderer()
    proxy = make_proxy([ok_outcome], renderer)

    result = await proxy.proxy(URL)

    assert result.success
    assert result.method == ProxyMethod.FETCH
    assert '<base href="https://www.ikea.com/">' in result.sanitized_html
    assert "X-Frame-Options" not in result.sanitized_html
    assert renderer.calls == 0


@pytest.mark.asyncio
async def test_non_html_content_is_passed_through(make_proxy):
    body = '{"product": "KIVIK"}' + " " * 1200
    outcome = FetchOutcome(FetchStatus.OK, status_code=200, body_text=body, content_type="application/json")
    proxy = make_proxy([outcome], FakeRenderer())

    result = await proxy.proxy(URL)

    assert result.method == ProxyMethod.FETCH
    assert result.sanitized_html == body
    assert result.content_type == "application/json"


@pytest.mark.asyncio
async def test_blocked_fetch_escalates_to_render(make_proxy, ok_outcome):
    renderer = FakeRenderer(outcome=ok_outcome)
    proxy = make_proxy(_blocked(3), renderer)

    result = await proxy.proxy(URL)

    assert result.success
    assert result.method == ProxyMethod.RENDER
    assert 'src="https://cdn.example.de/kivik.jpg"' in result.sanitized_html
    assert renderer.calls == 1


@pytest.mark.asyncio
async def test_fetch_tier_resolves_links_against_redirect_target(config, no_sleep, html_page):
    def handler(request):
        if request.url.host == "www.ikea.com":
            return httpx.Response(302, headers={"location": "https://www.ikea.de/p/kivik-sofa"})
        return httpx.Response(200, text=html_page, headers={"content-type": "text/html; charset=utf-8"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = RetryingFetcher(client=FetchClient(client), sleep=no_sleep)
        proxy = ContentProxy(fetcher=fetcher, renderer=FakeRenderer(), config=config)
        result = await proxy.proxy(URL)

    assert result.method == ProxyMethod.FETCH
    assert '<base href="https://www.ikea.de/">' in result.sanitized_html
    assert "www.ikea.com" not in result.sanitized_html


@pytest.mark.asyncio
async def test_render_tier_resolves_links_against_final_page(make_proxy, ok_outcome):
    rendered = replace(ok_outcome, final_url="https://www.ikea.de/p/kivik-sofa")
    proxy = make_proxy(_blocked(3), FakeRenderer(outcome=rendered))

    result = await proxy.proxy(URL)

    assert result.method == ProxyMethod.RENDER
    assert '<base href="https://www.ikea.de/">' in result.sanitized_html


@pytest.mark.asyncio
async def test_all_tiers_failing_returns_fallback(make_proxy):
    renderer = FakeRenderer(outcome=FetchOutcome(FetchStatus.TIMEOUT, error="Render timed out"))
    proxy = make_proxy(_blocked(3), renderer)

    result = await proxy.proxy(URL)

    assert not result.success
    assert result.method == ProxyMethod.FALLBACK
    assert result.is_blocked
    assert result.error == "All proxy methods failed"
    assert result.fallback_descriptor.title == "Product"
    assert result.fallback_descriptor.retailer == "www.ikea.com"
    assert result.fallback_descriptor.url == URL


@pytest.mark.asyncio
async def test_render_exception_is_not_surfaced(make_proxy):
    proxy = make_proxy(_blocked(3), FakeRenderer(error=RuntimeError("browser crashed")))

    result = await proxy.proxy(URL)

    assert result.method == ProxyMethod.FALLBACK


@pytest.mark.asyncio
async def test_deadline_cancels_running_tier(make_proxy):
    renderer = FakeRenderer(delay=5)
    proxy = make_proxy(_blocked(3), renderer)

    result = await proxy.proxy(URL, deadline_s=0.05)

    assert result.method == ProxyMethod.FALLBACK
    assert result.error == "Deadline exceeded"


@pytest.mark.asyncio
async def test_expired_deadline_starts_no_tier(make_proxy):
    renderer = FakeRenderer()
    proxy = make_proxy([], renderer)

    result = await proxy.proxy(URL, deadline_s=0)

    assert result.method == ProxyMethod.FALLBACK
    assert proxy.fetcher.client.calls == []
    assert renderer.calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["", "not a url", "ftp://example.de/file", "/relative/path", "http://[::1"])
async def test_malformed_url_raises(make_proxy, url):
    proxy = make_proxy([], FakeRenderer())

    with pytest.raises(InvalidURLError):
        await proxy.proxy(url)
