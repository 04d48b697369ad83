"""
Page type classification.

Two entry points:
- estimate_page_type(url): cheap URL-token guess used as a discovery hint
- determine_page_type(url, title, text): post-fetch multi-signal typing

Each type has up to four independent signals (URL path, title keywords,
content phrases, structural pattern). A page gets the first type in
PAGE_TYPE_RULES for which at least two signals agree, otherwise "other".
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern
from urllib.parse import urlparse

from site_audit.models import PageType

PHONE_RE = re.compile(r"(\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
ADDRESS_RE = re.compile(
    r"\d+\s+[A-Za-z\s]+(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln)\b",
    re.IGNORECASE,
)
PRICE_RE = re.compile(r"\$\s?\d+")
WEEKDAY_RE = re.compile(r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.I)
YEAR_FOUNDED_RE = re.compile(r"\b(founded|established|since)\s+(in\s+)?(19|20)\d{2}\b", re.I)

HOMEPAGE_PATH_RE = re.compile(r"^/(index(\.\w+)?|home)?/?$", re.I)


@dataclass(frozen=True)
class PageTypeRule:
    """Signals for one page type. Any attribute left as None is not counted."""
    page_type: PageType
    url: Optional[Pattern] = None
    title: Optional[Pattern] = None
    content: Optional[Pattern] = None
    structure: Optional[Callable[[str], bool]] = None

    def signals(self, path: str, title: str, text: str) -> int:
        count = 0
        if self.url is not None and self.url.search(path):
            count += 1
        if self.title is not None and self.title.search(title):
            count += 1
        if self.content is not None and self.content.search(text):
            count += 1
        if self.structure is not None and self.structure(text):
            count += 1
        return count


def _has_contact_details(text: str) -> bool:
    return bool(PHONE_RE.search(text)) and bool(EMAIL_RE.search(text) or ADDRESS_RE.search(text))


def _has_opening_hours(text: str) -> bool:
    return bool(WEEKDAY_RE.search(text)) or bool(ADDRESS_RE.search(text))


def _has_price(text: str) -> bool:
    return bool(PRICE_RE.search(text))


def _has_founding_year(text: str) -> bool:
    return bool(YEAR_FOUNDED_RE.search(text))


def _has_pricing_language(text: str) -> bool:
    return bool(re.search(r"\b(pricing|free estimate|free quote|request a quote|rates)\b", text, re.I))


def _has_post_metadata(text: str) -> bool:
    return bool(re.search(r"\b(posted|published)\s+(on|by)\b", text, re.I))


PAGE_TYPE_RULES: List[PageTypeRule] = [
    PageTypeRule(
        PageType.CONTACT,
        url=re.compile(r"/(contact|get-in-touch|reach-us)", re.I),
        title=re.compile(r"\b(contact|get in touch)\b", re.I),
        content=re.compile(r"\b(get in touch|send us a message|reach out to us|contact form|drop us a line)\b", re.I),
        structure=_has_contact_details,
    ),
    PageTypeRule(
        PageType.SERVICE_AREA,
        url=re.compile(r"/(service-areas?|areas-served|area|coverage)(/|$)", re.I),
        title=re.compile(r"\b(service areas?|areas (we )?serve[d]?)\b", re.I),
        content=re.compile(r"\b(areas we serve|proudly serving|serving the|communities we serve)\b", re.I),
    ),
    PageTypeRule(
        PageType.SERVICE,
        url=re.compile(r"/services?(/|$)", re.I),
        title=re.compile(r"\bservices?\b", re.I),
        content=re.compile(r"\b(we offer|our services|services include|we provide|we specialize)\b", re.I),
        structure=_has_pricing_language,
    ),
    PageTypeRule(
        PageType.LOCATION,
        url=re.compile(r"/(locations?|offices?|branch(es)?)(/|$)", re.I),
        title=re.compile(r"\b(location|office|directions|visit us)\b", re.I),
        content=re.compile(r"\b(get directions|our address|hours of operation|office hours)\b", re.I),
        structure=_has_opening_hours,
    ),
    PageTypeRule(
        PageType.ABOUT,
        url=re.compile(r"/(about|company|team|our-story)", re.I),
        title=re.compile(r"\b(about|our story|who we are|our team)\b", re.I),
        content=re.compile(r"\b(our story|our mission|who we are|meet the team|our history)\b", re.I),
        structure=_has_founding_year,
    ),
    PageTypeRule(
        PageType.BLOG,
        url=re.compile(r"/(blog|news|articles?|posts?)(/|$)", re.I),
        title=re.compile(r"\b(blog|news|article)\b", re.I),
        content=re.compile(r"\b(read more|leave a comment|comments|share this)\b", re.I),
        structure=_has_post_metadata,
    ),
    PageTypeRule(
        PageType.PRODUCT,
        url=re.compile(r"/(products?|shop|store|catalog)(/|$)", re.I),
        title=re.compile(r"\b(product|shop|buy)\b", re.I),
        content=re.compile(r"\b(add to cart|buy now|in stock|free shipping)\b", re.I),
        structure=_has_price,
    ),
    PageTypeRule(
        PageType.GALLERY,
        url=re.compile(r"/(gallery|portfolio|our-work|projects)(/|$)", re.I),
        title=re.compile(r"\b(gallery|portfolio|our work|projects)\b", re.I),
        content=re.compile(r"\b(before and after|recent projects|our portfolio|photo gallery)\b", re.I),
    ),
]

# URL-token hints used before a page is fetched
_URL_HINTS = [
    (re.compile(r"/(contact|quote|estimate|booking|get-in-touch)", re.I), PageType.CONTACT),
    (re.compile(r"/(service-areas?|areas-served|area|coverage)(/|$)", re.I), PageType.SERVICE_AREA),
    (re.compile(r"/(services?|solutions|practice-areas|specialties|treatments)(/|$)", re.I), PageType.SERVICE),
    (re.compile(r"/(locations?|offices?)(/|$)", re.I), PageType.LOCATION),
    (re.compile(r"/(about|about-us|company|team|staff|our-story)", re.I), PageType.ABOUT),
    (re.compile(r"/(blog|news|articles?)(/|$)", re.I), PageType.BLOG),
    (re.compile(r"/(products?|shop|store|catalog)(/|$)", re.I), PageType.PRODUCT),
    (re.compile(r"/(gallery|portfolio|our-work|projects|case-studies)(/|$)", re.I), PageType.GALLERY),
]


def is_homepage_path(url: str) -> bool:
    return bool(HOMEPAGE_PATH_RE.match(urlparse(url).path or "/"))


def estimate_page_type(url: str) -> PageType:
    """Guess a page type from URL tokens alone."""
    if is_homepage_path(url):
        return PageType.HOMEPAGE
    path = urlparse(url).path
    for pattern, page_type in _URL_HINTS:
        if pattern.search(path):
            return page_type
    return PageType.OTHER


def determine_page_type(url: str, title: str, text: str) -> PageType:
    """
    Classify a fetched page.

    Args:
        url: Page URL
        title: Page title
        text: Extracted body text

    Returns:
        First PageType with at least two agreeing signals, HOMEPAGE for the
        site root, otherwise OTHER
    """
    if is_homepage_path(url):
        return PageType.HOMEPAGE

    path = urlparse(url).path
    title = title or ""
    text = text or ""
    for rule in PAGE_TYPE_RULES:
        if rule.signals(path, title, text) >= 2:
            return rule.page_type
    return PageType.OTHER
