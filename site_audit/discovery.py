"""
Page Discoverer

Enumerates candidate pages with independent strategies that run
concurrently and are merged once all have finished:
- links:    anchors on the homepage (rendered DOM for render-dependent sites)
- sitemap:  /sitemap.xml and /sitemap_index.xml (capped per sitemap)
- robots:   Sitemap: directives listed in robots.txt
- patterns: HEAD probes of common and industry-specific paths
- api:      REST/GraphQL paths sniffed from inline scripts (render-dependent only)

A failing strategy logs a warning and contributes nothing.
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from runner.logging_setup import get_logger
from site_audit.config import AuditConfig
from site_audit.document import ParsedDocument
from site_audit.exceptions import AuditCancelledError, NetworkError, ParseError
from site_audit.models import DiscoveredUrl, DiscoveryMethod, SiteProfile
from site_audit.page_types import estimate_page_type
from site_audit.urls import is_valid_page_url, normalize_url, resolve_url

logger = get_logger("page_discovery")

SITEMAP_PATHS = ["/sitemap.xml", "/sitemap_index.xml"]

COMMON_PATHS = [
    "about", "about-us", "contact", "contact-us", "get-in-touch",
    "services", "products", "solutions", "portfolio", "work",
    "case-studies", "projects", "blog", "news", "resources",
    "locations", "offices", "service-areas", "coverage", "areas-served",
    "team", "staff", "careers", "faq", "help",
    "privacy", "terms", "sitemap",
]

INDUSTRY_PATHS: Dict[str, List[str]] = {
    "medical": ["practice-areas", "specialties", "doctors", "physicians", "treatments"],
    "retail": ["catalog", "shop"],
    "real-estate": ["properties", "listings"],
    "restaurant": ["menu", "catering", "reservations", "hours"],
    "legal": ["attorneys", "lawyers", "legal-services", "consultation"],
}

API_PATTERNS = [
    re.compile(r"/api/[^\"'\s]+"),
    re.compile(r"/graphql[^\"'\s]*"),
    re.compile(r"/rest/[^\"'\s]+"),
    re.compile(r"/v\d+/[^\"'\s]+"),
]

SITEMAP_DIRECTIVE_RE = re.compile(r"^\s*sitemap\s*:\s*(\S+)", re.I | re.M)

MAX_CONCURRENT_PROBES = 8


@dataclass
class DiscoveryResult:
    """Merged output of all discovery strategies."""
    urls: List[DiscoveredUrl] = field(default_factory=list)
    robots_txt: Optional[str] = None
    sitemap_urls: List[str] = field(default_factory=list)
    api_endpoints: List[str] = field(default_factory=list)
    strategy_counts: Dict[str, int] = field(default_factory=dict)
    failed_strategies: List[str] = field(default_factory=list)

    @property
    def page_urls(self) -> List[DiscoveredUrl]:
        """Discovered URLs that are fetch candidates (API endpoints excluded)."""
        return [url for url in self.urls if url.method != DiscoveryMethod.API]

    def to_dict(self) -> Dict:
        return {
            "urls": [url.to_dict() for url in self.urls],
            "sitemap_urls": list(self.sitemap_urls),
            "api_endpoints": list(self.api_endpoints),
            "strategy_counts": dict(self.strategy_counts),
            "failed_strategies": list(self.failed_strategies),
            "has_robots_txt": self.robots_txt is not None,
        }


def parse_sitemap(xml: str, cap: int) -> List[str]:
    """
    Extract <loc> entries from a sitemap or sitemap index.

    Args:
        xml: Sitemap document
        cap: Maximum number of entries returned

    Raises:
        ParseError: If the document is not a sitemap
    """
    try:
        soup = BeautifulSoup(xml, "xml")
    except Exception as e:
        raise ParseError(f"Sitemap parse failed: {e}") from e

    root = soup.find(["urlset", "sitemapindex"])
    if root is None:
        raise ParseError("Document is not a sitemap (no urlset or sitemapindex root)")

    locations = []
    for loc in root.find_all("loc"):
        text = loc.get_text(strip=True)
        if text:
            locations.append(text)
        if len(locations) >= cap:
            break
    return locations


def is_sitemap_index(xml: str) -> bool:
    return "<sitemapindex" in xml[:2000].lower()


def sniff_api_endpoints(scripts: Sequence[str], base_url: str) -> List[str]:
    """REST/GraphQL paths referenced in inline scripts, resolved against base_url."""
    found = []
    seen = set()
    for code in scripts:
        for pattern in API_PATTERNS:
            for match in pattern.findall(code):
                absolute = urljoin(base_url, match)
                if absolute not in seen:
                    seen.add(absolute)
                    found.append(absolute)
    return found


class PageDiscoverer:
    """Runs every discovery strategy for one site."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: AuditConfig,
        render_pool=None,
    ):
        self.client = client
        self.config = config
        self.render_pool = render_pool
        self._robots_txt: Optional[str] = None
        self._sitemap_urls: List[str] = []
        self._api_endpoints: List[str] = []

    async def _get(self, url: str, timeout: float) -> httpx.Response:
        try:
            response = await self.client.get(url, timeout=timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            raise NetworkError(f"GET {url} failed: {e}", url=url) from e
        if response.status_code >= 400:
            raise NetworkError(f"GET {url} returned {response.status_code}", url=url, status=response.status_code)
        return response

    async def _get_text(self, url: str, timeout: float) -> str:
        return (await self._get(url, timeout)).text

    async def _homepage_html(self, profile: SiteProfile) -> Tuple[str, str]:
        """(html, final URL after redirects)"""
        if profile.is_render_dependent and self.render_pool is not None:
            rendered = await self.render_pool.render(profile.base_url)
            return rendered.html, rendered.url or profile.base_url
        response = await self._get(profile.base_url, self.config.request_timeout)
        return response.text, str(response.url)

    async def _from_links(self, profile: SiteProfile, homepage: "asyncio.Future") -> List[str]:
        html, page_url = await homepage
        doc = ParsedDocument(html)
        # Relative hrefs resolve against <base href>, else the redirected URL
        base_href = doc.base_href()
        link_base = (resolve_url(base_href, page_url) if base_href else None) or page_url
        urls = []
        for node in doc.find_all("a"):
            resolved = resolve_url(doc.attr(node, "href") or "", link_base)
            if resolved:
                urls.append(resolved)
        return urls

    async def _read_sitemap(self, sitemap_url: str) -> List[str]:
        xml = await self._get_text(sitemap_url, self.config.request_timeout)
        cap = self.config.sitemap_url_cap
        entries = parse_sitemap(xml, cap)
        if not is_sitemap_index(xml):
            return entries

        # Follow an index one level deep
        urls: List[str] = []
        for child in entries:
            try:
                child_xml = await self._get_text(child, self.config.request_timeout)
                urls.extend(parse_sitemap(child_xml, cap))
            except (NetworkError, ParseError) as e:
                logger.debug(f"Skipping child sitemap {child}: {e}")
        return urls

    async def _from_sitemaps(self, profile: SiteProfile) -> List[str]:
        urls: List[str] = []
        for path in SITEMAP_PATHS:
            sitemap_url = urljoin(profile.base_url, path)
            try:
                found = await self._read_sitemap(sitemap_url)
            except (NetworkError, ParseError) as e:
                logger.debug(f"No sitemap at {sitemap_url}: {e}")
                continue
            self._sitemap_urls.append(sitemap_url)
            urls.extend(found)
        return urls

    async def _from_robots(self, profile: SiteProfile) -> List[str]:
        robots_url = urljoin(profile.base_url, "/robots.txt")
        self._robots_txt = await self._get_text(robots_url, self.config.probe_timeout)

        conventional = {urljoin(profile.base_url, path) for path in SITEMAP_PATHS}
        urls: List[str] = []
        for sitemap_url in SITEMAP_DIRECTIVE_RE.findall(self._robots_txt):
            if sitemap_url in conventional:
                continue
            try:
                urls.extend(await self._read_sitemap(sitemap_url))
                self._sitemap_urls.append(sitemap_url)
            except (NetworkError, ParseError) as e:
                logger.debug(f"Sitemap from robots.txt unavailable {sitemap_url}: {e}")
        return urls

    async def _probe(self, url: str, semaphore: asyncio.Semaphore) -> Optional[str]:
        async with semaphore:
            try:
                response = await self.client.head(
                    url,
                    timeout=self.config.probe_timeout,
                    follow_redirects=True,
                )
            except httpx.HTTPError:
                return None
        return str(response.url) if response.status_code < 400 else None

    async def _from_patterns(self, profile: SiteProfile) -> List[str]:
        paths = list(COMMON_PATHS)
        for industry_paths in INDUSTRY_PATHS.values():
            paths.extend(industry_paths)

        semaphore = asyncio.Semaphore(MAX_CONCURRENT_PROBES)
        candidates = [urljoin(profile.base_url, "/" + path) for path in paths]
        results = await asyncio.gather(*(self._probe(url, semaphore) for url in candidates))
        return [url for url in results if url]

    async def _from_api(self, profile: SiteProfile, homepage: "asyncio.Future") -> List[str]:
        html, _ = await homepage
        doc = ParsedDocument(html)
        self._api_endpoints = sniff_api_endpoints(doc.inline_scripts(), profile.base_url)
        return self._api_endpoints

    async def _run_strategy(self, name: str, coro) -> List[str]:
        try:
            urls = await coro
        except (NetworkError, ParseError, httpx.HTTPError) as e:
            logger.warning(f"Discovery strategy '{name}' failed: {e}")
            raise
        logger.info(f"Discovery strategy '{name}' found {len(urls)} URLs")
        return urls

    async def discover(self, profile: SiteProfile) -> DiscoveryResult:
        """
        Run all strategies and merge their results.

        Args:
            profile: Site profile (decides link mode and API sniffing)

        Returns:
            DiscoveryResult with URLs deduplicated by normalized form, the
            base URL excluded, merged in fixed strategy order
        """
        homepage = asyncio.ensure_future(self._homepage_html(profile))

        strategies = [
            ("links", DiscoveryMethod.LINK, self._from_links(profile, homepage)),
            ("sitemap", DiscoveryMethod.SITEMAP, self._from_sitemaps(profile)),
            ("robots", DiscoveryMethod.SITEMAP, self._from_robots(profile)),
            ("patterns", DiscoveryMethod.PATTERN, self._from_patterns(profile)),
        ]
        if profile.is_render_dependent:
            strategies.append(("api", DiscoveryMethod.API, self._from_api(profile, homepage)))

        try:
            outcomes = await asyncio.gather(
                *(self._run_strategy(name, coro) for name, _, coro in strategies),
                return_exceptions=True,
            )
        finally:
            if not homepage.done():
                homepage.cancel()
            elif not homepage.cancelled():
                # Retrieved so a failed homepage fetch is not reported as unhandled
                homepage.exception()

        result = DiscoveryResult()
        base_key = normalize_url(profile.base_url)
        seen = {base_key}

        for (name, method, _), outcome in zip(strategies, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, AuditCancelledError) or not isinstance(outcome, Exception):
                    raise outcome
                if not isinstance(outcome, (NetworkError, ParseError, httpx.HTTPError)):
                    logger.warning(f"Discovery strategy '{name}' failed unexpectedly: {outcome!r}")
                result.failed_strategies.append(name)
                result.strategy_counts[name] = 0
                continue

            added = 0
            for url in outcome:
                if method != DiscoveryMethod.API and not is_valid_page_url(
                    url, profile.base_url, self.config.include_subdomains
                ):
                    continue
                key = normalize_url(url)
                if key in seen:
                    continue
                seen.add(key)
                result.urls.append(DiscoveredUrl(
                    url=url,
                    method=method,
                    page_type_hint=estimate_page_type(url),
                ))
                added += 1
            result.strategy_counts[name] = added

        result.robots_txt = self._robots_txt
        result.sitemap_urls = list(self._sitemap_urls)
        result.api_endpoints = list(self._api_endpoints)

        logger.info(
            f"Discovered {len(result.urls)} unique URLs for {profile.base_url} "
            f"({', '.join(f'{k}={v}' for k, v in result.strategy_counts.items())})"
        )
        return result
