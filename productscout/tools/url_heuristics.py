"""Derive a best-effort product title from a bare URL.

Used only when structured extraction fails. Structured product-ID paths carry
the most specific name data and are tried first; the last path segment and
finally the whole path are fallbacks of decreasing confidence.
"""

import re
from typing import Optional
from urllib.parse import unquote, urlparse

from productscout.models.product import PLACEHOLDER_TITLE, HeuristicConfidence, UrlHeuristic
from productscout.tools.retailers import resolve_retailer

# (pattern, group holding the name slug)
STRUCTURED_PATTERNS = [
    (re.compile(r"/([^/]+)/dp/[A-Z0-9]{10}(?:[/?]|$)"), 1),  # Amazon: /Name-Slug/dp/ASIN
    (re.compile(r"/dp/[A-Z0-9]{10}/([^/?]+)"), 1),
    (re.compile(r"/gp/product/[A-Z0-9]{10}/([^/?]+)"), 1),
    (re.compile(r"/(?:p|product|products|produkt|item|artikel)/([^/?]+)", re.IGNORECASE), 1),
]

BOILERPLATE_WORDS = {"product", "products", "item", "items", "page", "produkt", "artikel", "dp", "p"}
FILE_EXTENSION = re.compile(r"\.(?:html?|php|aspx?|jsp)$", re.IGNORECASE)
# IKEA-style article numbers (s59440564), SKUs and long digit runs
ID_TOKEN = re.compile(r"^(?:[a-zA-Z]?\d{5,}|B0[A-Z0-9]{8})$")
LOCALE_SEGMENT = re.compile(r"^[a-z]{2}(?:[-_][a-z]{2})?$", re.IGNORECASE)


def _words(slug: str, retailer_words: set, min_length: int = 1) -> list[str]:
    if "=" in slug:
        return []  # tracking segments such as ref=sr_1_1
    slug = FILE_EXTENSION.sub("", unquote(slug))
    words = []
    for word in re.split(r"[-_+\s.]+", slug):
        if not word or len(word) < min_length:
            continue
        if ID_TOKEN.match(word) or word.isdigit():
            continue
        if word.lower() in BOILERPLATE_WORDS or word.lower() in retailer_words:
            continue
        words.append(word)
    return words


def _title_case(words: list[str]) -> str:
    return " ".join(w[:1].upper() + w[1:] if w.islower() else w for w in words)


def _structured_title(path: str, retailer_words: set) -> Optional[str]:
    for pattern, group in STRUCTURED_PATTERNS:
        match = pattern.search(path)
        if match:
            words = _words(match.group(group), retailer_words)
            if words:
                return _title_case(words)
    return None


def extract_from_url(url: str) -> UrlHeuristic:
    """Guess `{title, retailer, confidence}` from the URL alone. Never raises."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return UrlHeuristic(title=PLACEHOLDER_TITLE, retailer="Unknown", confidence=HeuristicConfidence.LOW)

    hostname = (parsed.hostname or "").lower()
    retailer = resolve_retailer(hostname).display_name
    retailer_words = {w.lower() for w in re.split(r"\W+", retailer) if w}
    retailer_words.update(p for p in hostname.split(".") if p not in ("www", "com", "de", "at", "ch"))
    path = parsed.path or ""

    title = _structured_title(path, retailer_words)
    if title:
        return UrlHeuristic(title=title, retailer=retailer, confidence=HeuristicConfidence.HIGH)

    segments = [s for s in path.split("/") if s and not LOCALE_SEGMENT.match(s)]
    if segments and len(segments[-1]) > 3:
        words = _words(segments[-1], retailer_words, min_length=3)
        if words:
            return UrlHeuristic(title=_title_case(words), retailer=retailer, confidence=HeuristicConfidence.MEDIUM)

    words = []
    for segment in segments:
        words.extend(_words(segment, retailer_words, min_length=3))
    title = _title_case(words) if words else PLACEHOLDER_TITLE
    return UrlHeuristic(title=title, retailer=retailer, confidence=HeuristicConfidence.LOW)
