"""
URL Normalization Tests

Run with: python3 -m pytest tests/test_urls.py -v
"""

import pytest

from site_audit.urls import (
    extract_domain,
    has_excluded_extension,
    is_same_domain,
    is_subdomain_of,
    is_valid_page_url,
    normalize_url,
    path_depth,
    resolve_url,
)

BASE = "https://example.com/"


class TestNormalizeUrl:
    """Comparison-key normalization."""

    @pytest.mark.parametrize("url,expected", [
        ("https://Example.com/About/", "https://example.com/About"),
        ("https://www.example.com/about", "https://example.com/about"),
        ("https://example.com:443/about", "https://example.com/about"),
        ("https://example.com/about?utm_source=x#team", "https://example.com/about"),
        ("https://example.com", "https://example.com/"),
        ("https://example.com/", "https://example.com/"),
        ("http://example.com/about", "http://example.com/about"),
        ("https://example.com:8443/about", "https://example.com:8443/about"),
    ])
    def test_normalize(self, url, expected):
        assert normalize_url(url) == expected

    def test_idempotent(self):
        url = "https://WWW.Example.com:443/Services/?q=1#x"
        assert normalize_url(normalize_url(url)) == normalize_url(url)


class TestDomains:
    """Domain comparison helpers."""

    def test_extract_domain(self):
        assert extract_domain("https://www.Example.com/x") == "example.com"
        assert extract_domain("/relative/path") is None

    def test_same_domain(self):
        assert is_same_domain("https://www.example.com/a", "https://example.com/b")
        assert not is_same_domain("https://shop.example.com/a", "https://example.com/")

    def test_subdomain(self):
        assert is_subdomain_of("https://shop.example.com/a", BASE)
        assert is_subdomain_of("https://example.com/a", BASE)
        assert not is_subdomain_of("https://badexample.com/a", BASE)


class TestValidity:
    """Page URL filtering."""

    def test_resolve(self):
        assert resolve_url("/about#team", BASE) == "https://example.com/about"
        assert resolve_url("contact", "https://example.com/services/") == "https://example.com/services/contact"
        assert resolve_url("mailto:hi@example.com", BASE) is None
        assert resolve_url("tel:5551234567", BASE) is None
        assert resolve_url("#top", BASE) is None
        assert resolve_url("", BASE) is None

    @pytest.mark.parametrize("url", [
        "https://example.com/brochure.pdf",
        "https://example.com/img/logo.PNG",
        "https://example.com/static/app.js",
    ])
    def test_excluded_extensions(self, url):
        assert has_excluded_extension(url)
        assert not is_valid_page_url(url, BASE)

    def test_valid_pages(self):
        assert is_valid_page_url("https://example.com/about", BASE)
        assert is_valid_page_url("https://example.com/about.html", BASE)
        assert not is_valid_page_url("https://other.com/about", BASE)
        assert not is_valid_page_url("ftp://example.com/file", BASE)

    def test_subdomains_opt_in(self):
        url = "https://blog.example.com/post"
        assert not is_valid_page_url(url, BASE)
        assert is_valid_page_url(url, BASE, include_subdomains=True)

    def test_path_depth(self):
        assert path_depth("https://example.com/") == 0
        assert path_depth("https://example.com/a/b/") == 2
