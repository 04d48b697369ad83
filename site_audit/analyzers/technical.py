"""
Technical SEO Analyzer

Markup, crawlability, performance and security checks.

Site-level inputs (robots.txt, sitemap locations) are passed in at
construction; they are the same for every page of a run.
"""

import re
from typing import Optional, Sequence
from urllib.parse import parse_qs, urlparse

from site_audit.analyzers.base import (
    CheckResult,
    FactorAnalyzer,
    PageContext,
    check,
    ok_or,
    tiered,
    tiered_below,
)
from site_audit.document import schema_types
from site_audit.models import Category, Importance, Status
from site_audit.urls import is_subdomain_of, normalize_url

HIGH, MEDIUM, LOW = Importance.HIGH, Importance.MEDIUM, Importance.LOW

BUSINESS_SCHEMA_TYPES = {"LocalBusiness", "Organization", "ProfessionalService", "HomeAndConstructionBusiness"}
OPEN_GRAPH_TAGS = ["og:title", "og:description", "og:image", "og:url"]
SECURITY_HEADERS = [
    "strict-transport-security",
    "content-security-policy",
    "x-frame-options",
    "x-content-type-options",
]


class TechnicalSEOAnalyzer(FactorAnalyzer):
    """Technical factors: markup, crawlability, speed, security."""

    name = "technical_seo"
    category = Category.TECHNICAL

    def __init__(self, robots_txt: Optional[str] = None, sitemap_urls: Sequence[str] = ()):
        self.robots_txt = robots_txt
        self.sitemap_urls = list(sitemap_urls)

    @check("URL Structure Optimization", MEDIUM, "Short, lowercase, hyphenated URLs")
    def _url_structure(self, ctx: PageContext) -> CheckResult:
        parsed = urlparse(ctx.page.url)
        segments = [s for s in parsed.path.split("/") if s]
        issues = []
        if len(ctx.page.url) > 100:
            issues.append("longer than 100 characters")
        if "_" in parsed.path:
            issues.append("underscores")
        if parsed.path != parsed.path.lower():
            issues.append("uppercase letters")
        if len(parse_qs(parsed.query)) > 3:
            issues.append("more than 3 query parameters")
        if len(segments) > 3 and not any("-" in s for s in segments):
            issues.append("deep path without hyphenated words")
        if not issues:
            return Status.OK, "URL is clean and readable"
        status = Status.OFI if len(issues) <= 2 else Status.PRIORITY_OFI
        return status, "URL issues: " + ", ".join(issues)

    @check("Structured Data Implementation", HIGH, "Schema.org markup describing the business")
    def _structured_data(self, ctx: PageContext) -> CheckResult:
        types = schema_types(ctx.page.structured_data)
        has_business = any(t in BUSINESS_SCHEMA_TYPES for t in types)
        if len(types) >= 2 and has_business:
            return Status.OK, f"Schema types: {', '.join(types)}"
        if types:
            return Status.OFI, f"Schema types: {', '.join(types)}; add LocalBusiness/Organization and supporting types"
        return Status.PRIORITY_OFI, "No structured data found"

    @check("Meta Tags Optimization", HIGH, "Title 30-60 characters, description 120-160 characters")
    def _meta_tags(self, ctx: PageContext) -> CheckResult:
        title_len = len(ctx.page.title)
        desc_len = len(ctx.page.meta_description)
        if not title_len or not desc_len:
            missing = [name for name, size in (("title", title_len), ("meta description", desc_len)) if not size]
            return Status.PRIORITY_OFI, f"Missing {' and '.join(missing)}"
        if 30 <= title_len <= 60 and 120 <= desc_len <= 160:
            return Status.OK, f"Title {title_len} chars, description {desc_len} chars"
        return Status.OFI, f"Title {title_len} chars (30-60), description {desc_len} chars (120-160)"

    @check("Canonical URL Implementation", MEDIUM, "A canonical link pointing at the preferred URL")
    def _canonical(self, ctx: PageContext) -> CheckResult:
        canonical = ctx.page.canonical_url
        if not canonical:
            return Status.OFI, "No canonical link"
        if normalize_url(canonical) == normalize_url(ctx.page.url):
            return Status.OK, "Self-referencing canonical"
        return Status.OFI, f"Canonical points elsewhere: {canonical}"

    @check("Image SEO Optimization", MEDIUM, "Alt text and descriptive file names")
    def _image_seo(self, ctx: PageContext) -> CheckResult:
        images = ctx.page.images
        if not images:
            return Status.NA, "No images"
        with_alt = sum(1 for image in images if image.alt)
        named = sum(1 for image in images if re.search(r"/[a-z]+[-_][a-z]", image.src.lower()))
        ratio = (with_alt + named) / (2 * len(images))
        return tiered(ratio, 0.8, 0.5), f"{with_alt}/{len(images)} with alt text, {named} with descriptive names"

    @check("Robots Meta Tag Configuration", HIGH, "Page must not be excluded from indexing")
    def _robots_meta(self, ctx: PageContext) -> CheckResult:
        robots = (ctx.doc.meta("robots") or "").lower()
        header = ctx.page.response_headers.get("x-robots-tag", "").lower()
        if "noindex" in robots or "noindex" in header:
            return Status.PRIORITY_OFI, "Page is set to noindex"
        if "nofollow" in robots:
            return Status.OFI, "Page is set to nofollow"
        return Status.OK, "Indexable"

    @check("HTML Validation and Structure", MEDIUM, "Doctype, language and charset declared")
    def _html_structure(self, ctx: PageContext) -> CheckResult:
        has_charset = ctx.count("meta[charset]") > 0 or "charset=" in ctx.html_lower[:3000]
        checks = [ctx.doc.has_doctype(), bool(ctx.doc.html_attr("lang")), has_charset]
        passed = sum(checks)
        return tiered(passed, 3, 2), f"{passed}/3 of doctype, lang, charset present"

    @check("SSL Certificate Implementation", HIGH, "Page served over HTTPS")
    def _ssl(self, ctx: PageContext) -> CheckResult:
        if urlparse(ctx.page.url).scheme == "https":
            return Status.OK, "Served over HTTPS"
        return Status.PRIORITY_OFI, "Served over plain HTTP"

    @check("Mobile Responsiveness", HIGH, "Responsive viewport, layout and media queries")
    def _mobile(self, ctx: PageContext) -> CheckResult:
        viewport = (ctx.doc.meta("viewport") or "").lower()
        signals = sum([
            "width=device-width" in viewport,
            bool(re.search(r'class="[^"]*\b(col-|container|row|responsive|flex|grid)', ctx.html_lower)),
            "@media" in ctx.html_lower,
        ])
        return tiered(signals, 2, 1), f"{signals}/3 responsive signals"

    @check("Page Loading Speed", HIGH, "Page should load in under 3 seconds")
    def _speed(self, ctx: PageContext) -> CheckResult:
        load = ctx.page.load_time_ms
        return tiered_below(load, 3000, 5000), f"Loaded in {load / 1000:.2f}s"

    @check("Core Web Vitals Performance", HIGH, "Fast load and light page weight")
    def _core_web_vitals(self, ctx: PageContext) -> CheckResult:
        fast = ctx.page.load_time_ms < 2500
        light = ctx.page.byte_size < 500000
        if fast and light:
            return Status.OK, "Load time and page weight within budget"
        if fast or light:
            return Status.OFI, f"{ctx.page.load_time_ms / 1000:.2f}s load, {ctx.page.byte_size // 1024} KB"
        return Status.PRIORITY_OFI, f"Slow ({ctx.page.load_time_ms / 1000:.2f}s) and heavy ({ctx.page.byte_size // 1024} KB)"

    @check("Advanced Structured Data", LOW, "Multiple schema types for rich results")
    def _advanced_schema(self, ctx: PageContext) -> CheckResult:
        count = len(set(schema_types(ctx.page.structured_data)))
        if count >= 3:
            return Status.OK, f"{count} schema types"
        if count >= 1:
            return Status.OFI, f"Only {count} schema types"
        return Status.NA, "No structured data to extend"

    @check("Open Graph Meta Tags", MEDIUM, "og:title, og:description, og:image, og:url")
    def _open_graph(self, ctx: PageContext) -> CheckResult:
        present = [tag for tag in OPEN_GRAPH_TAGS if ctx.doc.meta(tag)]
        if len(present) == len(OPEN_GRAPH_TAGS):
            return Status.OK, "All core Open Graph tags present"
        return Status.OFI, f"{len(present)}/{len(OPEN_GRAPH_TAGS)} Open Graph tags present"

    @check("Twitter Card Meta Tags", LOW, "twitter:card for link previews")
    def _twitter(self, ctx: PageContext) -> CheckResult:
        if ctx.doc.meta("twitter:card"):
            return Status.OK, "Twitter card configured"
        return Status.NA, "No Twitter card"

    @check("Internal Linking Structure", MEDIUM, "Links to other pages on the site")
    def _internal_linking(self, ctx: PageContext) -> CheckResult:
        count = len(ctx.page.internal_links)
        return tiered(count, 5, 2), f"{count} internal links"

    @check("External Linking Strategy", LOW, "Links to relevant outside resources")
    def _external_linking(self, ctx: PageContext) -> CheckResult:
        count = len(ctx.page.external_links)
        return ok_or(count >= 1), f"{count} external links"

    @check("Descriptive Alt Text Usage", MEDIUM, "Alt text longer than a word or two")
    def _descriptive_alt(self, ctx: PageContext) -> CheckResult:
        images = ctx.page.images
        if not images:
            return Status.NA, "No images"
        descriptive = sum(1 for image in images if len(image.alt) > 10)
        ratio = descriptive / len(images)
        return tiered(ratio, 0.7, 0.4), f"{descriptive}/{len(images)} images have descriptive alt text"

    @check("URL Parameter Optimization", LOW, "Few query parameters in page URLs")
    def _url_params(self, ctx: PageContext) -> CheckResult:
        count = len(parse_qs(urlparse(ctx.page.url).query))
        return ok_or(count <= 2), f"{count} query parameters"

    @check("Redirect Chain Optimization", MEDIUM, "No client-side refresh redirects")
    def _redirects(self, ctx: PageContext) -> CheckResult:
        refresh = ctx.count('meta[http-equiv="refresh"], meta[http-equiv="Refresh"]')
        return ok_or(refresh == 0), "Meta refresh redirect found" if refresh else "No meta refresh redirects"

    @check("HTTP Header Optimization", MEDIUM, "200 response with caching headers")
    def _http_headers(self, ctx: PageContext) -> CheckResult:
        headers = ctx.page.response_headers
        if ctx.page.status_code != 200:
            return Status.PRIORITY_OFI, f"HTTP {ctx.page.status_code}"
        if "cache-control" in headers or "etag" in headers:
            return Status.OK, "HTTP 200 with caching headers"
        return Status.OFI, "HTTP 200 without Cache-Control or ETag"

    @check("JavaScript Optimization", MEDIUM, "Limited external and inline scripts")
    def _javascript(self, ctx: PageContext) -> CheckResult:
        external = len(ctx.page.scripts)
        inline = len([s for s in ctx.doc.inline_scripts() if s.strip()])
        return ok_or(external <= 5 and inline <= 3), f"{external} external, {inline} inline scripts"

    @check("CSS Optimization", MEDIUM, "Limited stylesheets and style blocks")
    def _css(self, ctx: PageContext) -> CheckResult:
        sheets = len(ctx.page.stylesheets)
        blocks = ctx.count("style")
        return ok_or(sheets <= 3 and blocks <= 2), f"{sheets} stylesheets, {blocks} style blocks"

    @check("Resource Loading Optimization", MEDIUM, "Total requested resources kept low")
    def _resources(self, ctx: PageContext) -> CheckResult:
        total = len(ctx.page.scripts) + len(ctx.page.stylesheets) + len(ctx.page.images)
        return tiered_below(total, 21, 41), f"{total} scripts, stylesheets and images"

    @check("Web Vitals Optimization", MEDIUM, "Sized images avoid layout shift")
    def _web_vitals(self, ctx: PageContext) -> CheckResult:
        images = ctx.page.images
        if not images:
            return Status.NA, "No images"
        sized = sum(1 for image in images if image.width and image.height)
        return ok_or(sized / len(images) >= 0.8), f"{sized}/{len(images)} images have explicit dimensions"

    @check("Security Headers Implementation", MEDIUM, "HSTS, CSP, frame and content-type protections")
    def _security_headers(self, ctx: PageContext) -> CheckResult:
        present = [h for h in SECURITY_HEADERS if h in ctx.page.response_headers]
        if len(present) >= 3:
            return Status.OK, f"{len(present)}/4 security headers"
        return Status.OFI, f"{len(present)}/4 security headers"

    @check("Accessibility Compliance", MEDIUM, "ARIA attributes, labels and alt text")
    def _accessibility(self, ctx: PageContext) -> CheckResult:
        elements = ctx.count("[aria-label], [aria-labelledby], [role], label, img[alt]")
        return ok_or(elements >= 3), f"{elements} accessibility attributes"

    @check("Breadcrumb Navigation", LOW, "Breadcrumb trail for deeper pages")
    def _breadcrumbs(self, ctx: PageContext) -> CheckResult:
        found = ctx.count('.breadcrumb, .breadcrumbs, nav[aria-label*="readcrumb"]') > 0
        found = found or "BreadcrumbList" in schema_types(ctx.page.structured_data)
        if found:
            return Status.OK, "Breadcrumbs present"
        return Status.NA, "No breadcrumbs"

    @check("Pagination Implementation", LOW, "rel=next/prev on paginated series")
    def _pagination(self, ctx: PageContext) -> CheckResult:
        if ctx.doc.link_href("next") or ctx.doc.link_href("prev"):
            return Status.OK, "Pagination links declared"
        return Status.NA, "Not a paginated series"

    @check("Language Attribute Implementation", MEDIUM, "lang attribute on <html>")
    def _lang(self, ctx: PageContext) -> CheckResult:
        lang = ctx.doc.html_attr("lang")
        return ok_or(bool(lang)), f"lang='{lang}'" if lang else "Missing lang attribute"

    @check("Viewport Configuration", HIGH, "Viewport meta with width=device-width")
    def _viewport(self, ctx: PageContext) -> CheckResult:
        viewport = ctx.doc.meta("viewport")
        if viewport is None:
            return Status.PRIORITY_OFI, "No viewport meta tag"
        if "width=device-width" in viewport.lower():
            return Status.OK, "Viewport configured"
        return Status.OFI, f"Viewport lacks width=device-width: {viewport}"

    @check("Favicon Implementation", LOW, "Site icon declared")
    def _favicon(self, ctx: PageContext) -> CheckResult:
        found = bool(ctx.doc.link_href("icon") or ctx.doc.link_href("apple-touch-icon"))
        return ok_or(found), "Favicon declared" if found else "No favicon link"

    @check("XML Sitemap Implementation", MEDIUM, "Sitemap available to crawlers")
    def _sitemap(self, ctx: PageContext) -> CheckResult:
        if self.sitemap_urls:
            return Status.OK, f"Sitemap found: {self.sitemap_urls[0]}"
        return Status.OFI, "No XML sitemap found"

    @check("Robots.txt Implementation", MEDIUM, "robots.txt present and not blocking the site")
    def _robots_txt(self, ctx: PageContext) -> CheckResult:
        if self.robots_txt is None:
            return Status.OFI, "No robots.txt"
        if re.search(r"^\s*disallow\s*:\s*/\s*$", self.robots_txt, re.I | re.M):
            return Status.PRIORITY_OFI, "robots.txt disallows the whole site"
        return Status.OK, "robots.txt present"

    @check("HTTP/2 Protocol Support", LOW, "Modern protocol advertised")
    def _http2(self, ctx: PageContext) -> CheckResult:
        alt_svc = ctx.page.response_headers.get("alt-svc", "")
        if "h2" in alt_svc or "h3" in alt_svc:
            return Status.OK, "HTTP/2 or HTTP/3 advertised"
        return Status.NA, "Protocol version not observable"

    @check("Lazy Loading Implementation", LOW, "Offscreen images load lazily")
    def _lazy_loading(self, ctx: PageContext) -> CheckResult:
        total = len(ctx.page.images)
        if total < 4:
            return Status.NA, f"Only {total} images"
        lazy = ctx.count('img[loading="lazy"], img[data-src]')
        return ok_or(lazy * 2 >= total), f"{lazy}/{total} images lazy-loaded"

    @check("Service Worker Implementation", LOW, "Offline support via service worker")
    def _service_worker(self, ctx: PageContext) -> CheckResult:
        if "serviceworker.register" in ctx.html_lower:
            return Status.OK, "Service worker registered"
        return Status.NA, "No service worker"

    @check("WebP Image Format Usage", LOW, "Modern image formats")
    def _webp(self, ctx: PageContext) -> CheckResult:
        images = ctx.page.images
        if not images:
            return Status.NA, "No images"
        modern = sum(1 for image in images if image.src.lower().split("?")[0].endswith((".webp", ".avif")))
        modern += ctx.count('source[type="image/webp"], source[type="image/avif"]')
        return ok_or(modern > 0), f"{modern} modern-format images"

    @check("Content Compression", MEDIUM, "Compressed transfer or light payload")
    def _compression(self, ctx: PageContext) -> CheckResult:
        encoding = ctx.page.response_headers.get("content-encoding", "")
        if encoding in ("gzip", "br", "deflate", "zstd"):
            return Status.OK, f"Served with {encoding}"
        return ok_or(ctx.page.byte_size < 500000), f"No compression header, {ctx.page.byte_size // 1024} KB"

    @check("Critical Resource Optimization", MEDIUM, "Few render-blocking scripts in <head>")
    def _critical_resources(self, ctx: PageContext) -> CheckResult:
        blocking = ctx.count("head script[src]:not([async]):not([defer])")
        return ok_or(blocking <= 2), f"{blocking} render-blocking scripts in <head>"

    @check("Third-Party Script Optimization", MEDIUM, "Limited third-party scripts")
    def _third_party(self, ctx: PageContext) -> CheckResult:
        third_party = sum(1 for src in ctx.page.scripts if not is_subdomain_of(src, ctx.page.url))
        return tiered_below(third_party, 4, 7), f"{third_party} third-party scripts"
