"""
Page Type Classification Tests

Run with: python3 -m pytest tests/test_page_types.py -v
"""

import pytest

from site_audit.models import PageType
from site_audit.page_types import determine_page_type, estimate_page_type, is_homepage_path

BASE = "https://example.com"


class TestEstimate:
    """URL-only hints."""

    @pytest.mark.parametrize("path,expected", [
        ("/", PageType.HOMEPAGE),
        ("/index.html", PageType.HOMEPAGE),
        ("/contact-us", PageType.CONTACT),
        ("/free-estimate", PageType.OTHER),
        ("/estimate", PageType.CONTACT),
        ("/services/roofing", PageType.SERVICE),
        ("/service-areas/north", PageType.SERVICE_AREA),
        ("/locations/downtown", PageType.LOCATION),
        ("/about", PageType.ABOUT),
        ("/blog/post", PageType.BLOG),
        ("/shop", PageType.PRODUCT),
        ("/gallery", PageType.GALLERY),
        ("/privacy", PageType.OTHER),
    ])
    def test_estimate(self, path, expected):
        assert estimate_page_type(BASE + path) == expected

    def test_homepage_path(self):
        assert is_homepage_path(BASE + "/home")
        assert not is_homepage_path(BASE + "/homes-for-sale")


class TestDetermine:
    """Two-signal post-fetch typing."""

    def test_contact_by_url_and_title(self):
        assert determine_page_type(BASE + "/contact", "Contact Us", "") == PageType.CONTACT

    def test_contact_by_content_and_structure(self):
        text = "Get in touch with us. Call (555) 123-4567 or email info@example.com."
        assert determine_page_type(BASE + "/reach", "Hello", text) == PageType.CONTACT

    def test_single_signal_is_other(self):
        assert determine_page_type(BASE + "/contact", "Welcome", "Nothing relevant here.") == PageType.OTHER

    def test_service_area(self):
        text = "Proudly serving the greater Springfield region."
        assert determine_page_type(BASE + "/coverage", "Where we work", text) == PageType.SERVICE_AREA

    def test_about(self):
        text = "Our story began in 1998. Founded in 1998 by two brothers."
        assert determine_page_type(BASE + "/who", "About Acme", text) == PageType.ABOUT

    def test_blog(self):
        text = "Posted on May 2 by Sam. Leave a comment below."
        assert determine_page_type(BASE + "/notes/x", "Tips", text) == PageType.BLOG

    def test_product(self):
        text = "Add to cart now for $49 with free shipping."
        assert determine_page_type(BASE + "/item/9", "Widget", text) == PageType.PRODUCT

    def test_homepage_wins(self):
        assert determine_page_type(BASE + "/", "Contact us today", "Get in touch") == PageType.HOMEPAGE
