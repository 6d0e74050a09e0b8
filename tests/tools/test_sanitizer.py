"""Tests for HTML sanitization."""

import pytest

from productscout.tools.sanitizer import origin_of, sanitize_html

URL = "https://www.ikea.com/de/de/p/kivik-sofa-s59440564/"


def test_removes_frame_blocking_meta(html_page):
    result = sanitize_html(html_page, URL)

    assert "X-Frame-Options" not in result
    assert "<title>KIVIK Sofa</title>" in result


def test_removes_csp_meta():
    html = "<html><head><meta http-equiv='Content-Security-Policy' content=\"default-src 'self'\"></head></html>"

    assert "Content-Security-Policy" not in sanitize_html(html, URL)


def test_rewrites_protocol_relative_urls(html_page):
    result = sanitize_html(html_page, URL)

    assert 'src="https://cdn.example.de/kivik.jpg"' in result
    assert 'src="//' not in result


def test_injects_base_into_existing_head():
    result = sanitize_html("<html><head><title>x</title></head><body></body></html>", URL)

    assert result.startswith('<html><head><base href="https://www.ikea.com/">')


def test_injects_head_when_missing():
    result = sanitize_html("<html><body>hi</body></html>", URL)

    assert result == '<html><head><base href="https://www.ikea.com/"></head><body>hi</body></html>'


def test_fragment_without_html_tag():
    assert sanitize_html("<p>hi</p>", URL) == '<head><base href="https://www.ikea.com/"></head><p>hi</p>'


def test_existing_base_tag_is_kept():
    html = '<html><head><base href="https://other.example/"></head></html>'

    assert sanitize_html(html, URL) == html


def test_sanitize_is_idempotent(html_page):
    once = sanitize_html(html_page, URL)

    assert sanitize_html(once, URL) == once


def test_origin_requires_absolute_url():
    assert origin_of("http://localhost:8080/a/b") == "http://localhost:8080"
    with pytest.raises(ValueError):
        origin_of("/relative/path")
