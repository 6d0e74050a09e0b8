"""Rewrite fetched HTML so it can be displayed outside its origin.

The transformation is pure text processing and idempotent.
"""

import re
from urllib.parse import urlparse

_FRAME_BLOCKING_META = re.compile(
    r"<meta\b[^>]*http-equiv\s*=\s*[\"']?(?:x-frame-options|content-security-policy(?:-report-only)?)\b[^>]*>",
    re.IGNORECASE,
)
_PROTOCOL_RELATIVE_ATTR = re.compile(
    r"""(\s(?:src|href|data-src|poster)\s*=\s*["']?)//(?=[^/\s"'>])""",
    re.IGNORECASE,
)
_BASE_TAG = re.compile(r"<base\b", re.IGNORECASE)
_HEAD_OPEN = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
_HTML_OPEN = re.compile(r"<html\b[^>]*>", re.IGNORECASE)


def origin_of(url: str) -> str:
    """`scheme://host[:port]` of a URL."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Cannot derive origin from {url!r}")
    return f"{parsed.scheme}://{parsed.netloc}"


def _inject_base(html: str, base_href: str) -> str:
    tag = f'<base href="{base_href}">'
    head = _HEAD_OPEN.search(html)
    if head:
        return html[: head.end()] + tag + html[head.end():]
    root = _HTML_OPEN.search(html)
    if root:
        return html[: root.end()] + f"<head>{tag}</head>" + html[root.end():]
    return f"<head>{tag}</head>" + html


def sanitize_html(html: str, original_url: str) -> str:
    """Make `html` embeddable: drop frame-blocking meta tags, absolutize
    protocol-relative resources and add a `<base>` tag for relative links."""
    base_href = origin_of(original_url) + "/"

    html = _FRAME_BLOCKING_META.sub("", html)
    html = _PROTOCOL_RELATIVE_ATTR.sub(r"\1https://", html)
    if not _BASE_TAG.search(html):
        html = _inject_base(html, base_href)
    return html
