"""
Page Priority Classifier

Assigns each URL a tier and score weight from its URL shape:
- Tier 1 (weight 3.0): homepage, main service listing, contact/conversion
  paths, main location listing
- Tier 2 (weight 2.0): service/location/service-area detail pages,
  about/team/portfolio pages
- Tier 3 (weight 1.0): everything else

The tier orders the bounded fetch budget and optionally weights scoring.
Within a tier, URLs are ordered by a crawl-order heuristic, then by URL.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from site_audit.models import DiscoveredUrl, PagePriority, PageType
from site_audit.urls import normalize_url, path_depth

TIER_WEIGHTS = {1: 3.0, 2: 2.0, 3: 1.0}
TIER_IMPACT = {1: "high", 2: "medium", 3: "low"}

# (pattern, page type label) per tier, checked in order
TIER_1_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"^/$|^/index|^/home/?$", re.I), "homepage"),
    (re.compile(r"^/services?/?$", re.I), "main-service"),
    (re.compile(r"/contact|/quote|/estimate|/booking", re.I), "contact"),
    (re.compile(r"^/locations?/?$", re.I), "primary-location"),
]

TIER_2_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"/services?/[^/]+", re.I), "service"),
    (re.compile(r"/locations?/[^/]+", re.I), "location"),
    (re.compile(r"/(service-areas?|areas-served|areas?)(/|$)", re.I), "service-area"),
    (re.compile(r"/about|/company|/team", re.I), "about"),
    (re.compile(r"/gallery|/portfolio|/(our-)?work(/|$)", re.I), "gallery"),
]

# Fallback from the discovery hint when no URL pattern matched
_HINT_TIERS = {
    PageType.HOMEPAGE: (1, "homepage"),
    PageType.CONTACT: (1, "contact"),
    PageType.SERVICE: (2, "service"),
    PageType.SERVICE_AREA: (2, "service-area"),
    PageType.LOCATION: (2, "location"),
    PageType.ABOUT: (2, "about"),
    PageType.GALLERY: (2, "gallery"),
}

_TIER_EXPLANATIONS = {
    1: "Tier 1 (High Priority): Critical business page that directly impacts conversions and user acquisition",
    2: "Tier 2 (Medium Priority): Important supporting page that builds trust and provides service details",
    3: "Tier 3 (Low Priority): Supporting content that enhances user experience and SEO",
}

# Crawl-order heuristic: (path pattern, score delta)
_CRAWL_SCORE_BONUSES = [
    (re.compile(r"contact", re.I), 40),
    (re.compile(r"about", re.I), 35),
    (re.compile(r"service|product", re.I), 30),
    (re.compile(r"location", re.I), 25),
    (re.compile(r"team|portfolio", re.I), 20),
    (re.compile(r"blog|news", re.I), 15),
    (re.compile(r"faq|help", re.I), 10),
]
_CRAWL_SCORE_PENALTIES = [
    ("/tag/", 20),
    ("/category/", 15),
    ("/archive/", 25),
    ("/page/", 10),
]


def _path(url: str) -> str:
    return urlparse(url).path or "/"


def classify(url: str, page_type_hint: Optional[PageType] = None) -> PagePriority:
    """
    Classify a URL into a priority tier.

    Args:
        url: Absolute page URL
        page_type_hint: Optional page type estimate, used when no URL pattern matches

    Returns:
        PagePriority with tier 1-3 and weight 3.0/2.0/1.0
    """
    path = _path(url)

    for tier, patterns in ((1, TIER_1_PATTERNS), (2, TIER_2_PATTERNS)):
        for pattern, label in patterns:
            if pattern.search(path):
                return _priority(tier, label)

    if page_type_hint in _HINT_TIERS:
        tier, label = _HINT_TIERS[page_type_hint]
        return _priority(tier, label)

    return _priority(3, "supporting")


def _priority(tier: int, label: str) -> PagePriority:
    return PagePriority(
        tier=tier,
        weight=TIER_WEIGHTS[tier],
        page_type=label,
        business_impact=TIER_IMPACT[tier],
    )


def crawl_order_score(url: str) -> int:
    """Higher scores are fetched earlier within a tier."""
    path = _path(url).lower()
    score = 50
    for pattern, bonus in _CRAWL_SCORE_BONUSES:
        if pattern.search(path):
            score += bonus
    score -= path_depth(url) * 5
    for token, penalty in _CRAWL_SCORE_PENALTIES:
        if token in path:
            score -= penalty
    return score


def order_for_fetch(urls: Iterable[DiscoveredUrl]) -> List[Tuple[DiscoveredUrl, PagePriority]]:
    """
    Sort discovered URLs into fetch order.

    Tier ascending, then crawl-order score descending, then normalized URL
    so the order never depends on discovery order.
    """
    ranked = [(item, classify(item.url, item.page_type_hint)) for item in urls]
    ranked.sort(key=lambda pair: (
        pair[1].tier,
        -crawl_order_score(pair[0].url),
        normalize_url(pair[0].url),
    ))
    return ranked


def select_for_fetch(
    urls: Iterable[DiscoveredUrl],
    max_pages: int,
) -> List[Tuple[DiscoveredUrl, PagePriority]]:
    """
    Pick the URLs that fit the page budget.

    The homepage is fetched separately and is not counted here; the caller
    passes only non-homepage URLs.

    Args:
        urls: Discovered URLs (homepage excluded)
        max_pages: Page budget

    Returns:
        Up to max_pages (url, priority) pairs, tier 1 and 2 first
    """
    return order_for_fetch(urls)[:max(0, max_pages)]


def get_priority_explanation(priority: PagePriority) -> str:
    return f"{_TIER_EXPLANATIONS[priority.tier]} ({priority.page_type})"


def calculate_priority_distribution(priorities: Iterable[PagePriority]) -> Dict[str, Dict[str, float]]:
    """
    Tier counts and percentages over a set of pages.

    Returns:
        {"tier1": {"count": n, "percentage": p}, "tier2": ..., "tier3": ...}
    """
    counts = {1: 0, 2: 0, 3: 0}
    for priority in priorities:
        counts[priority.tier] += 1
    total = sum(counts.values())

    distribution = {}
    for tier, count in counts.items():
        percentage = round(count * 100.0 / total) if total else 0
        distribution[f"tier{tier}"] = {"count": count, "percentage": percentage}
    return distribution
