"""
Pytest configuration and shared fixtures for site-audit tests.

Provides HTML fixtures, a page-record factory and an httpx MockTransport
site builder. No test touches the real network or launches a browser.
"""

import os

# Console logging only during tests
os.environ["AUDIT_LOG_DIR"] = ""

from typing import Dict, Optional, Tuple

import httpx
import pytest

from site_audit.config import AuditConfig
from site_audit.extraction import extract_page_record
from site_audit.models import FetchMethod, PageRecord


# Test markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


HOMEPAGE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Acme Plumbing | Licensed Plumbers in Springfield</title>
  <meta name="description" content="Acme Plumbing offers licensed, insured plumbing repair, drain cleaning and water heater installation for homes and businesses across Springfield.">
  <link rel="canonical" href="https://example.com/">
  <link rel="icon" href="/favicon.ico">
  <script type="application/ld+json">
  {"@context": "https://schema.org", "@type": "LocalBusiness", "name": "Acme Plumbing",
   "address": {"@type": "PostalAddress", "streetAddress": "123 Main Street"}}
  </script>
</head>
<body>
  <header><nav class="navbar">
    <a href="/">Home</a>
    <a href="/services">Services</a>
    <a href="/about">About Us</a>
    <a href="/contact">Contact</a>
    <a href="/blog/winter-pipes">Blog</a>
    <a href="https://facebook.com/acme">Facebook</a>
  </nav></header>
  <main>
    <h1>Springfield's Trusted Plumbers</h1>
    <p>We fix leaks, clear drains and install water heaters. Our licensed team serves the local community every day.</p>
    <h2>Our Services</h2>
    <ul><li>Drain cleaning</li><li>Leak repair</li><li>Water heaters</li></ul>
    <p>Call us at (555) 123-4567 or visit 123 Main Street. Open Monday to Friday.</p>
    <a class="cta" href="/contact">Get a free estimate</a>
  </main>
  <footer><a href="/privacy">Privacy Policy</a></footer>
</body>
</html>
"""

CONTACT_HTML = """<!DOCTYPE html>
<html lang="en"><head><title>Contact Acme Plumbing</title></head>
<body><main>
  <h1>Contact Us</h1>
  <p>Get in touch with our team today. Call (555) 123-4567 or email hello@example.com.</p>
  <p>Visit our office at 123 Main Street, Springfield. We answer every message within one business day.</p>
  <form><label for="name">Name</label><input id="name"><button type="submit">Send</button></form>
</main></body></html>
"""

SERVICES_HTML = """<!DOCTYPE html>
<html lang="en"><head><title>Plumbing Services | Acme Plumbing</title></head>
<body><main>
  <h1>Our Services</h1>
  <p>We offer drain cleaning, leak detection, repiping and water heater installation.
  Request a quote for any job and our licensed plumbers will arrive the same day.</p>
</main></body></html>
"""

ABOUT_HTML = """<!DOCTYPE html>
<html lang="en"><head><title>About Acme Plumbing</title></head>
<body><main>
  <h1>About Us</h1>
  <p>Our story began when the company was founded in 1998 by two brothers with one truck.
  Meet the team of certified plumbers who keep Springfield flowing.</p>
</main></body></html>
"""

BLOG_HTML = """<!DOCTYPE html>
<html lang="en"><head><title>Protecting Pipes in Winter | Blog</title></head>
<body><main><article>
  <h1>Protecting Your Pipes in Winter</h1>
  <p>Posted on January 5 by the Acme team. Frozen pipes burst when water expands.
  Insulate exposed pipes and keep cabinet doors open on cold nights. Read more tips below.</p>
</article></main></body></html>
"""

ROBOTS_TXT = "User-agent: *\nAllow: /\nSitemap: https://example.com/sitemap.xml\n"

SITEMAP_XML = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://example.com/</loc></url>
  <url><loc>https://example.com/services</loc></url>
  <url><loc>https://example.com/about</loc></url>
  <url><loc>https://example.com/contact</loc></url>
</urlset>
"""


@pytest.fixture
def config():
    """Fast config: no retries delay, static friendly."""
    return AuditConfig(
        max_pages=10,
        max_retries=1,
        retry_backoff=0.0,
        settle_delay=0.0,
        profile_timeout=1.0,
        request_timeout=1.0,
        probe_timeout=1.0,
    )


@pytest.fixture
def make_page():
    """Factory building a PageRecord from HTML through the real extraction path."""
    def _make(
        url: str = "https://example.com/",
        html: str = HOMEPAGE_HTML,
        status_code: int = 200,
        load_time_ms: float = 800.0,
        headers: Optional[Dict[str, str]] = None,
    ) -> PageRecord:
        return extract_page_record(
            url=url,
            html=html,
            status_code=status_code,
            fetch_method=FetchMethod.STATIC,
            load_time_ms=load_time_ms,
            response_headers=headers or {"content-type": "text/html"},
        )
    return _make


# path -> (status, body, content-type)
SiteRoutes = Dict[str, Tuple[int, str, str]]


def default_routes() -> SiteRoutes:
    return {
        "/": (200, HOMEPAGE_HTML, "text/html; charset=utf-8"),
        "/contact": (200, CONTACT_HTML, "text/html; charset=utf-8"),
        "/services": (200, SERVICES_HTML, "text/html; charset=utf-8"),
        "/about": (200, ABOUT_HTML, "text/html; charset=utf-8"),
        "/blog/winter-pipes": (200, BLOG_HTML, "text/html; charset=utf-8"),
        "/robots.txt": (200, ROBOTS_TXT, "text/plain"),
        "/sitemap.xml": (200, SITEMAP_XML, "application/xml"),
    }


def site_transport(routes: SiteRoutes, log: Optional[list] = None) -> httpx.MockTransport:
    """MockTransport serving routes; unknown paths get 404."""
    def handler(request: httpx.Request) -> httpx.Response:
        if log is not None:
            log.append((request.method, request.url.path))
        status, body, content_type = routes.get(request.url.path, (404, "Not found", "text/plain"))
        if request.method == "HEAD":
            return httpx.Response(status, headers={"content-type": content_type})
        return httpx.Response(status, text=body, headers={"content-type": content_type})
    return httpx.MockTransport(handler)


@pytest.fixture
def routes():
    return default_routes()


@pytest.fixture
def mock_client_factory(monkeypatch):
    """
    Patch httpx.AsyncClient so every client created by the code under test
    uses the given transport.
    """
    original = httpx.AsyncClient

    def _install(transport: httpx.MockTransport):
        def _factory(*args, **kwargs):
            kwargs["transport"] = transport
            return original(*args, **kwargs)
        monkeypatch.setattr(httpx, "AsyncClient", _factory)
    return _install


@pytest.fixture
def make_transport():
    """Build a MockTransport from a routes dict (optionally logging requests)."""
    return site_transport


@pytest.fixture
def html():
    """Named HTML fixtures."""
    return {
        "home": HOMEPAGE_HTML,
        "contact": CONTACT_HTML,
        "services": SERVICES_HTML,
        "about": ABOUT_HTML,
        "blog": BLOG_HTML,
        "robots": ROBOTS_TXT,
        "sitemap": SITEMAP_XML,
    }
