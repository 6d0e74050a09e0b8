"""Cleanup for scraped product fields."""

import re
from typing import Optional
from urllib.parse import quote, urlparse

MAX_TEXT_LENGTH = 500
PLACEHOLDER_IMAGE = "/placeholder.svg?height=400&width=300"

_PRICE_PATTERN = re.compile(r"[€$£]?\s*\d[\d.,]*\s*[€$£]?")
_DISALLOWED_CHARS = re.compile(r"[^\w\s\-.,:;!?()&'/+%€$£\"]")


def clean_text(text: str, max_length: int = MAX_TEXT_LENGTH) -> str:
    """Collapse whitespace, drop markup debris and cap the length."""
    text = re.sub(r"\s+", " ", text or "").strip()
    text = _DISALLOWED_CHARS.sub("", text)
    return text[:max_length].strip()


def clean_price(price: Optional[str]) -> Optional[str]:
    """Pull the first price-looking token out of a price string ("ab 299,99 €" -> "299,99 €")."""
    if not price or not str(price).strip():
        return None
    price = str(price)
    match = _PRICE_PATTERN.search(price)
    return match.group(0).strip() if match else price.strip()


def placeholder_image(title: str) -> str:
    return f"{PLACEHOLDER_IMAGE}&query={quote(title)}"


def validate_image_url(image_url: Optional[str], title: str = "") -> str:
    """Keep absolute http(s) image URLs, replace anything else with a placeholder."""
    if image_url:
        image_url = image_url.strip()
        if image_url.startswith("//"):
            image_url = "https:" + image_url
        parsed = urlparse(image_url)
        if parsed.scheme in ("http", "https") and parsed.netloc:
            return image_url
    return placeholder_image(title)
