"""Static retailer profiles keyed by hostname.

The table is ordered: lookups use case-insensitive substring containment
and the first match wins, so more specific patterns must come first.
"""

import random
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import urlparse


class DeviceClass(str, Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"


# Mobile profiles are blocked less often by the big marketplaces
MOBILE_USER_AGENTS = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 13; SM-G991B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
    "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
)

DESKTOP_USER_AGENTS = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "de-DE,de;q=0.9,en-US;q=0.7,en;q=0.5",
    "Accept-Encoding": "gzip, deflate, br",  # br is decoded by httpx[brotli]
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

_GOOGLE_REFERER = {"Referer": "https://www.google.com/", "Sec-Fetch-Site": "cross-site"}
_RICH_ACCEPT = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8",
}


@dataclass(frozen=True)
class RetailerProfile:
    """Display name, device class and request headers for one retailer."""

    hostname_patterns: tuple[str, ...]
    display_name: str
    device_class: DeviceClass = DeviceClass.DESKTOP
    extra_headers: dict = field(default_factory=dict)
    search_domain: Optional[str] = None

    @property
    def user_agents(self) -> tuple[str, ...]:
        if self.device_class == DeviceClass.MOBILE:
            return MOBILE_USER_AGENTS
        return DESKTOP_USER_AGENTS

    def matches(self, hostname: str) -> bool:
        hostname = hostname.lower()
        return any(pattern in hostname for pattern in self.hostname_patterns)


RETAILER_PROFILES: tuple[RetailerProfile, ...] = (
    RetailerProfile(("ikea",), "IKEA", DeviceClass.MOBILE, _GOOGLE_REFERER, "ikea.de"),
    RetailerProfile(
        ("wayfair",), "Wayfair", DeviceClass.MOBILE,
        {"Referer": "https://www.google.com/", "X-Requested-With": "XMLHttpRequest"},
        "wayfair.de",
    ),
    RetailerProfile(
        ("amazon",), "Amazon", DeviceClass.MOBILE,
        {"Referer": "https://www.amazon.com/", **_RICH_ACCEPT},
        "amazon.de",
    ),
    RetailerProfile(("kare-design", "kare."), "KARE", DeviceClass.MOBILE, {**_GOOGLE_REFERER, **_RICH_ACCEPT}),
    RetailerProfile(("otto.de", "otto.at"), "OTTO", search_domain="otto.de"),
    RetailerProfile(("hoeffner",), "Höffner", search_domain="hoeffner.de"),
    RetailerProfile(("home24",), "home24", search_domain="home24.de"),
    RetailerProfile(("moebel.de",), "moebel.de", search_domain="moebel.de"),
    RetailerProfile(("segmueller",), "Segmüller", search_domain="segmueller.de"),
    RetailerProfile(("westelm",), "West Elm"),
    RetailerProfile(("cb2",), "CB2"),
    RetailerProfile(("potterybarn",), "Pottery Barn"),
    RetailerProfile(("crateandbarrel",), "Crate & Barrel"),
    RetailerProfile(("overstock",), "Overstock"),
    RetailerProfile(("homedepot",), "Home Depot"),
    RetailerProfile(("lowes",), "Lowe's"),
    RetailerProfile(("target",), "Target", DeviceClass.MOBILE),
    RetailerProfile(("article.com",), "Article"),
)

UNKNOWN_RETAILER = RetailerProfile((), "Unknown Retailer")


def hostname_of(url: str) -> str:
    """Lower-cased hostname of a URL, or an empty string."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def resolve_retailer(hostname: str) -> RetailerProfile:
    """Look up the profile for a hostname; unknown hosts get the default profile."""
    hostname = (hostname or "").lower()
    if hostname:
        for profile in RETAILER_PROFILES:
            if profile.matches(hostname):
                return profile
    return UNKNOWN_RETAILER


def _fold(text: str) -> str:
    text = text.lower()
    for umlaut, replacement in (("ä", "ae"), ("ö", "oe"), ("ü", "ue"), ("ß", "ss")):
        text = text.replace(umlaut, replacement)
    return re.sub(r"[^a-z0-9]", "", text)


def find_search_domain(retailer_name: str) -> Optional[str]:
    """Domain to restrict a web search to, based on a free-text retailer name."""
    folded = _fold(retailer_name or "")
    if not folded:
        return None
    for profile in RETAILER_PROFILES:
        if not profile.search_domain:
            continue
        keys = [_fold(p.split(".")[0]) for p in profile.hostname_patterns]
        if any(key and key in folded for key in keys):
            return profile.search_domain
    return None


def pick_user_agent(
    profile: RetailerProfile,
    rng: Optional[random.Random] = None,
    rotation: Optional[int] = None,
) -> str:
    """Choose a user agent from the profile's device-class pool.

    With `rotation` set, the pool is walked deterministically so consecutive
    retries never reuse the same agent.
    """
    pool = profile.user_agents
    if rotation is not None:
        return pool[rotation % len(pool)]
    return (rng or random).choice(pool)


def build_headers(profile: RetailerProfile, user_agent: str) -> dict[str, str]:
    """Full request header set for a retailer."""
    headers = {"User-Agent": user_agent, **BASE_HEADERS}
    headers.update(profile.extra_headers)
    return headers
