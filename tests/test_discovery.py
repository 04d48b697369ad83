"""
Page Discoverer Tests

Strategy merging, failure tolerance, sitemap parsing and API sniffing.
All HTTP goes through httpx.MockTransport.

Run with: python3 -m pytest tests/test_discovery.py -v
"""

import asyncio
from types import SimpleNamespace

import httpx
import pytest

from site_audit.discovery import (
    PageDiscoverer,
    is_sitemap_index,
    parse_sitemap,
    sniff_api_endpoints,
)
from site_audit.exceptions import ParseError
from site_audit.models import DiscoveryMethod, PageType, SiteProfile

BASE = "https://example.com/"


def big_sitemap(count):
    entries = "".join(f"<url><loc>https://example.com/page-{i}</loc></url>" for i in range(count))
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def run_discovery(config, transport, profile=None, render_pool=None):
    profile = profile or SiteProfile(base_url=BASE)

    async def _run():
        async with httpx.AsyncClient(transport=transport) as client:
            return await PageDiscoverer(client, config, render_pool=render_pool).discover(profile)
    return asyncio.run(_run())


class TestSitemapParsing:
    """Sitemap helpers."""

    def test_parse_urlset(self, html):
        urls = parse_sitemap(html["sitemap"], cap=50)
        assert urls[0] == "https://example.com/"
        assert len(urls) == 4

    def test_cap(self):
        assert len(parse_sitemap(big_sitemap(120), cap=50)) == 50

    def test_not_a_sitemap(self):
        with pytest.raises(ParseError):
            parse_sitemap("<html><body>Not found</body></html>", cap=50)

    def test_index_detection(self):
        index = (
            '<?xml version="1.0"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            "<sitemap><loc>https://example.com/pages.xml</loc></sitemap></sitemapindex>"
        )
        assert is_sitemap_index(index)
        assert not is_sitemap_index(big_sitemap(1))


class TestApiSniffing:
    """REST/GraphQL endpoint detection."""

    def test_endpoints_resolved_and_unique(self):
        scripts = [
            "fetch('/api/products?page=1'); fetch('/api/products?page=1');",
            "client.query('/graphql')",
        ]
        found = sniff_api_endpoints(scripts, BASE)
        assert found == ["https://example.com/api/products?page=1", "https://example.com/graphql"]


class TestDiscover:
    """Merged discovery over the fixture site."""

    def test_static_site(self, config, routes, make_transport):
        result = run_discovery(config, make_transport(routes))
        urls = [item.url for item in result.urls]

        assert "https://example.com/" not in urls
        assert "https://example.com/services" in urls
        assert "https://example.com/contact" in urls
        assert "https://example.com/blog/winter-pipes" in urls
        assert not any("facebook.com" in url for url in urls)
        # No normalized duplicates
        assert len(urls) == len({url.rstrip("/") for url in urls})

        assert result.failed_strategies == []
        assert result.robots_txt is not None
        assert result.sitemap_urls == ["https://example.com/sitemap.xml"]

    def test_links_first(self, config, routes, make_transport):
        """Strategies merge in fixed order, so homepage links win attribution."""
        result = run_discovery(config, make_transport(routes))
        by_url = {item.url: item for item in result.urls}
        assert by_url["https://example.com/services"].method == DiscoveryMethod.LINK
        assert by_url["https://example.com/contact"].page_type_hint == PageType.CONTACT

    def test_failed_strategy_tolerated(self, config, routes):
        """A strategy whose request blows up contributes nothing; the others still run."""
        def handler(request):
            if request.url.path == "/robots.txt":
                raise httpx.ConnectError("connection refused", request=request)
            status, body, content_type = routes.get(request.url.path, (404, "", "text/plain"))
            return httpx.Response(status, text=body, headers={"content-type": content_type})

        result = run_discovery(config, httpx.MockTransport(handler))
        assert result.failed_strategies == ["robots"]
        assert result.strategy_counts["robots"] == 0
        assert result.robots_txt is None
        assert any(item.url == "https://example.com/services" for item in result.urls)

    def test_homepage_failure_only_fails_links(self, config, routes, make_transport):
        routes = dict(routes)
        routes["/"] = (500, "error", "text/html")
        result = run_discovery(config, make_transport(routes))
        assert "links" in result.failed_strategies
        assert "sitemap" not in result.failed_strategies
        assert any(item.url == "https://example.com/about" for item in result.urls)

    def test_sitemap_index_followed(self, config, routes, make_transport):
        routes = dict(routes)
        routes["/sitemap.xml"] = (
            200,
            '<?xml version="1.0"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            "<sitemap><loc>https://example.com/sitemap-pages.xml</loc></sitemap></sitemapindex>",
            "application/xml",
        )
        routes["/sitemap-pages.xml"] = (200, big_sitemap(3), "application/xml")
        result = run_discovery(config, make_transport(routes))
        sitemap_found = [item.url for item in result.urls if item.method == DiscoveryMethod.SITEMAP]
        assert "https://example.com/page-0" in sitemap_found

    def test_sitemap_cap_applied(self, config, routes, make_transport):
        routes = dict(routes)
        routes["/sitemap.xml"] = (200, big_sitemap(80), "application/xml")
        result = run_discovery(config, make_transport(routes))
        assert result.strategy_counts["sitemap"] == config.sitemap_url_cap

    def test_subdomains(self, config, routes, make_transport):
        routes = dict(routes)
        routes["/"] = (
            200,
            '<html><body><a href="https://shop.example.com/catalog">Shop</a></body></html>',
            "text/html",
        )
        excluded = run_discovery(config, make_transport(routes))
        assert not any("shop.example.com" in item.url for item in excluded.urls)

        config.include_subdomains = True
        included = run_discovery(config, make_transport(routes))
        assert any("shop.example.com" in item.url for item in included.urls)

    def test_api_strategy_for_render_dependent_site(self, config, routes, make_transport):
        homepage = (
            "<html><body><div id='root'></div>"
            "<script>fetch('/api/services').then(r => r.json())</script></body></html>"
        )

        class FakePool:
            async def render(self, url):
                return SimpleNamespace(html=homepage, url=url)

        profile = SiteProfile(base_url=BASE, is_render_dependent=True)
        result = run_discovery(config, make_transport(routes), profile=profile, render_pool=FakePool())

        assert result.api_endpoints == ["https://example.com/api/services"]
        assert all(item.method != DiscoveryMethod.API for item in result.page_urls)
        assert any(item.method == DiscoveryMethod.API for item in result.urls)


LOCALIZED_HOME = """<html><head><title>Acme</title></head><body>
<a href="services">Services</a>
<a href="contact-us">Contact</a>
</body></html>"""


def redirecting_site(home_html, home_path="/en/"):
    """/ redirects to home_path; everything else is 404."""
    def handler(request):
        if request.url.path == "/":
            return httpx.Response(302, headers={"location": home_path})
        if request.url.path == home_path:
            return httpx.Response(200, text=home_html, headers={"content-type": "text/html"})
        return httpx.Response(404, text="Not found", headers={"content-type": "text/plain"})
    return httpx.MockTransport(handler)


class TestLinkResolution:
    """Homepage anchors resolve against the page they were found on."""

    def link_urls(self, result):
        return {d.url for d in result.urls if d.method == DiscoveryMethod.LINK}

    def test_relative_links_after_redirect(self, config):
        result = run_discovery(config, redirecting_site(LOCALIZED_HOME))
        urls = self.link_urls(result)
        assert "https://example.com/en/services" in urls
        assert "https://example.com/en/contact-us" in urls
        assert "https://example.com/services" not in urls

    def test_base_href(self, config):
        home = LOCALIZED_HOME.replace("<head>", '<head><base href="/v2/">')
        result = run_discovery(config, redirecting_site(home, home_path="/"))
        urls = self.link_urls(result)
        assert "https://example.com/v2/services" in urls
        assert "https://example.com/v2/contact-us" in urls

    def test_rendered_final_url(self, config):
        class RedirectedPool:
            async def render(self, url):
                return SimpleNamespace(html=LOCALIZED_HOME, url="https://example.com/en/")

        profile = SiteProfile(base_url=BASE, is_render_dependent=True)
        result = run_discovery(
            config, redirecting_site(LOCALIZED_HOME), profile=profile, render_pool=RedirectedPool(),
        )
        assert "https://example.com/en/services" in self.link_urls(result)
