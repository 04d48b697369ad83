"""
Site Profiler

Fetches the homepage once and decides whether the site needs a headless
browser to show its content.

Signals:
- Framework markers: React, Angular, Vue, SPA bundles, webpack, service worker
- Script counts: total, async/deferred, render-blocking
- Dynamic DOM APIs in inline scripts (document.write, innerHTML)
- Informational: jQuery, AMP, Server / X-Powered-By headers, generator meta

A network or parse failure never fails the run: the profiler returns a
static-mode default profile instead.
"""

import re
import time
from typing import Dict, List

import httpx

from runner.logging_setup import get_logger
from site_audit.config import AuditConfig
from site_audit.document import ParsedDocument
from site_audit.exceptions import ParseError, ProfilingError
from site_audit.models import SiteProfile

logger = get_logger("site_profiler")

# Marker name -> pattern searched in the raw markup
FRAMEWORK_PATTERNS: Dict[str, re.Pattern] = {
    "react": re.compile(r"react(-dom)?[.\-/]|data-reactroot|__NEXT_DATA__|/_next/", re.I),
    "angular": re.compile(r"\bng-(app|version|controller|model)\b|angular(\.min)?\.js", re.I),
    "vue": re.compile(r"vue(\.min)?\.js|\bdata-v-[0-9a-f]{6,}|__NUXT__|\bv-cloak\b", re.I),
    "spa-bundle": re.compile(r"/(app|bundle)(\.[0-9a-f]{6,})?\.js", re.I),
    "webpack": re.compile(r"webpack|webpackJsonp|__webpack_require__", re.I),
    "service-worker": re.compile(r"serviceWorker\.register", re.I),
}

INFO_PATTERNS: Dict[str, re.Pattern] = {
    "jquery": re.compile(r"jquery(\.min)?(-\d[\d.]*)?\.js|jQuery\(", re.I),
    "amp": re.compile(r"<html[^>]*\s(amp|⚡)[\s>]", re.I),
}

DYNAMIC_CONTENT_RE = re.compile(r"document\.write\s*\(|\.innerHTML\s*=")

MAX_STATIC_SCRIPT_COUNT = 10
MAX_RENDER_BLOCKING_SCRIPTS = 5


def build_profile(base_url: str, html: str, headers: Dict[str, str]) -> SiteProfile:
    """
    Derive a SiteProfile from homepage markup and headers.

    Raises:
        ParseError: If the markup cannot be parsed
    """
    doc = ParsedDocument(html)

    scripts = doc.find_all("script")
    external = [node for node in scripts if node.get("src")]
    async_count = sum(1 for node in scripts if node.has_attr("async") or node.has_attr("defer"))
    render_blocking = sum(
        1 for node in external if not (node.has_attr("async") or node.has_attr("defer"))
    )

    markers: List[str] = [name for name, pattern in FRAMEWORK_PATTERNS.items() if pattern.search(html)]
    info_markers = [name for name, pattern in INFO_PATTERNS.items() if pattern.search(html)]

    inline_code = "\n".join(doc.inline_scripts())
    has_dynamic = bool(DYNAMIC_CONTENT_RE.search(inline_code))

    is_render_dependent = (
        bool(markers)
        or len(scripts) > MAX_STATIC_SCRIPT_COUNT
        or render_blocking > MAX_RENDER_BLOCKING_SCRIPTS
        or has_dynamic
    )

    lowered = {k.lower(): v for k, v in headers.items()}
    return SiteProfile(
        base_url=base_url,
        is_render_dependent=is_render_dependent,
        script_count=len(scripts),
        async_script_count=async_count,
        render_blocking_scripts=render_blocking,
        framework_markers=tuple(markers + info_markers),
        has_service_worker="service-worker" in markers,
        has_dynamic_content=has_dynamic,
        server=lowered.get("server"),
        powered_by=lowered.get("x-powered-by"),
        generator=doc.meta("generator"),
    )


class SiteProfiler:
    """Builds the SiteProfile for one audit run."""

    def __init__(self, client: httpx.AsyncClient, config: AuditConfig):
        self.client = client
        self.config = config

    async def _fetch_homepage(self, base_url: str) -> httpx.Response:
        try:
            response = await self.client.get(
                base_url,
                timeout=self.config.profile_timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            raise ProfilingError(f"Homepage fetch failed for {base_url}: {e}") from e

        if response.status_code >= 400:
            raise ProfilingError(f"Homepage returned HTTP {response.status_code} for {base_url}")
        return response

    async def profile(self, base_url: str) -> SiteProfile:
        """
        Profile the site behind base_url.

        Args:
            base_url: Site root URL

        Returns:
            SiteProfile; a static-mode default when detection fails
        """
        start = time.monotonic()
        try:
            response = await self._fetch_homepage(base_url)
            try:
                profile = build_profile(base_url, response.text, dict(response.headers))
            except ParseError as e:
                raise ProfilingError(f"Homepage parse failed for {base_url}: {e}") from e
        except ProfilingError as e:
            logger.warning(f"Site profiling failed, defaulting to static mode: {e}")
            return SiteProfile(base_url=base_url, is_render_dependent=False, is_default=True)

        logger.info(
            f"Site profile for {base_url}: render_dependent={profile.is_render_dependent}, "
            f"scripts={profile.script_count}, markers={list(profile.framework_markers)} "
            f"({time.monotonic() - start:.2f}s)"
        )
        return profile
