"""Classify extraction attempts as blocked, generic, transient or unknown.

Order matters: a generic page served with 200 OK must not be retried (the
extractor will just see the same page again), while a timeout often succeeds
on the next attempt.
"""

from productscout.models.product import BlockageVerdict, ExtractionResponse

# Titles that mean we got a homepage, a bot wall or a placeholder instead of a product
GENERIC_TITLES = {
    "product",
    "furniture item",
    "amazon.de",
    "amazon.com",
    "amazon.de: günstige preise für elektronik & foto, filme, musik, bücher, games, spielzeug & mehr",
    "robot check",
    "access denied",
    "attention required! | cloudflare",
    "just a moment...",
    "ikea",
    "wayfair",
    "otto",
}

BLOCKED_MARKERS = ("blocked", "forbidden", "403", "429", "rate limit", "too many requests", "captcha", "access denied")
TRANSIENT_MARKERS = ("timeout", "timed out", "network", "connection", "temporarily unavailable", "502", "503", "504")


def is_generic_title(title: str) -> bool:
    return (title or "").strip().lower() in GENERIC_TITLES


def classify_extraction(attempt: ExtractionResponse) -> BlockageVerdict:
    """Decide whether an extraction attempt was blocked and whether retrying can help."""
    error = (attempt.error or "").lower()
    data = attempt.data

    if (data is None or data.is_empty) and not error:
        return BlockageVerdict(is_blocked=True, reason="No data extracted", can_retry=False)

    if data is not None and not data.is_empty:
        no_details = not data.description.strip() and not data.image.strip()
        if no_details and (is_generic_title(data.title) or not data.title.strip()):
            return BlockageVerdict(
                is_blocked=True,
                reason="Generic/empty data extracted - likely blocked",
                can_retry=False,
                is_generic_data=True,
            )

    if any(marker in error for marker in BLOCKED_MARKERS):
        return BlockageVerdict(is_blocked=True, reason="Access blocked", can_retry=False)

    if any(marker in error for marker in TRANSIENT_MARKERS):
        timed_out = "timeout" in error or "timed out" in error
        return BlockageVerdict(
            is_blocked=False,
            reason="Connection timeout" if timed_out else "Network error",
            can_retry=True,
        )

    return BlockageVerdict(is_blocked=False, reason="unknown", can_retry=True)
