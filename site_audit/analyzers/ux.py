"""
UX & Performance Analyzer

Performance, Core Web Vitals estimates, mobile usability, navigation and
accessibility checks.

Vitals are estimated from load time and markup; when a rendered fetch
supplied browser metrics those take precedence.
"""

from site_audit.analyzers.base import (
    CheckResult,
    FactorAnalyzer,
    PageContext,
    check,
    ok_or,
    tiered,
    tiered_below,
)
from site_audit.models import Category, Importance, Status

HIGH, MEDIUM, LOW = Importance.HIGH, Importance.MEDIUM, Importance.LOW

# Used when the fetch did not record a value
DEFAULT_LOAD_MS = 5000
DEFAULT_PAGE_BYTES = 1024 * 1024

NAV_SELECTOR = "nav, .navigation, .menu, .navbar"
MOBILE_MENU_SELECTOR = ".mobile-menu, .hamburger, .menu-toggle, .nav-toggle"
CTA_SELECTOR = 'button, .cta, .call-to-action, input[type="submit"], .button'
SEARCH_SELECTOR = 'input[type="search"], .search, #search, .search-box'
FOCUSABLE_SELECTOR = "a[href], button, input, select, textarea, [tabindex]"
SEMANTIC_TAGS = ("header", "nav", "main", "article", "section", "aside", "footer")


def _load_ms(ctx: PageContext) -> float:
    return ctx.page.load_time_ms or DEFAULT_LOAD_MS


def _metric(ctx: PageContext, key: str):
    metrics = ctx.page.render_metrics or {}
    value = metrics.get(key)
    return value if isinstance(value, (int, float)) and value > 0 else None


class UXPerformanceAnalyzer(FactorAnalyzer):
    """User experience, performance and accessibility factors."""

    name = "ux_performance"
    category = Category.UX

    # Performance

    @check("Page Load Speed Optimization", HIGH, "Load in under 3 seconds")
    def _load_speed(self, ctx: PageContext) -> CheckResult:
        load = _load_ms(ctx)
        return tiered_below(load, 3000, 5000), f"Loaded in {load / 1000:.2f}s"

    @check("Page Size Optimization", MEDIUM, "Keep HTML payload under 1 MB")
    def _page_size(self, ctx: PageContext) -> CheckResult:
        size = ctx.page.byte_size or DEFAULT_PAGE_BYTES
        return tiered_below(size, 1024 * 1024, 3 * 1024 * 1024), f"{size / 1024:.0f} KB"

    @check("Image Performance Optimization", MEDIUM, "Modern formats and sensible dimensions")
    def _image_performance(self, ctx: PageContext) -> CheckResult:
        images = ctx.page.images
        if not images:
            return Status.NA, "No images"
        optimized = sum(
            1 for image in images
            if ".webp" in image.src.lower()
            or "optimized" in image.src.lower()
            or (image.width is not None and image.width <= 1200)
        )
        return tiered(optimized / len(images), 0.8, 0.5), f"{optimized}/{len(images)} images optimized"

    @check("Resource Compression", MEDIUM, "Compressed or small payloads")
    def _compression(self, ctx: PageContext) -> CheckResult:
        size = ctx.page.byte_size or DEFAULT_PAGE_BYTES
        return ok_or(size < 500 * 1024), f"{size / 1024:.0f} KB transferred"

    @check("Critical Rendering Path Optimization", MEDIUM, "Few blocking scripts, styles delivered early")
    def _critical_path(self, ctx: PageContext) -> CheckResult:
        blocking = ctx.count("script[src]:not([async]):not([defer])")
        styles = ctx.count('style, link[rel="stylesheet"]')
        return ok_or(blocking <= 2 and styles >= 1), f"{blocking} blocking scripts, {styles} style sources"

    @check("Browser Caching Optimization", MEDIUM, "Static assets cacheable")
    def _caching(self, ctx: PageContext) -> CheckResult:
        cached = "cdn" in ctx.page.url.lower() or "cache-control" in ctx.page.response_headers
        if cached or ctx.page.byte_size < 500000:
            return Status.OK, "Cache headers present or page is light"
        return Status.OFI, f"No cache headers, {ctx.page.byte_size // 1024} KB"

    @check("Content Delivery Network Usage", LOW, "Assets served from a CDN")
    def _cdn(self, ctx: PageContext) -> CheckResult:
        sources = " ".join(ctx.page.scripts + ctx.page.stylesheets + tuple(i.src for i in ctx.page.images))
        sources = (sources + " " + ctx.page.url).lower()
        if any(marker in sources for marker in ("cdn", "cloudflare", "amazonaws", "cloudfront")):
            return Status.OK, "CDN in use"
        return Status.NA, "No CDN detected"

    @check("Code Minification", LOW, "Minified inline CSS and JavaScript")
    def _minification(self, ctx: PageContext) -> CheckResult:
        blocks = [block.strip() for block in ctx.doc.inline_scripts() + [ctx.doc.style_text()] if block.strip()]
        if not blocks:
            return Status.OK, "No inline code"
        minified = any(";" in block and "\n" not in block for block in blocks)
        return ok_or(minified), "Inline code minified" if minified else "Inline code not minified"

    # Core Web Vitals

    @check("Largest Contentful Paint (LCP)", HIGH, "LCP under 2.5 seconds")
    def _lcp(self, ctx: PageContext) -> CheckResult:
        lcp = _metric(ctx, "firstContentfulPaint") or _load_ms(ctx) * 0.7
        return tiered_below(lcp, 2500, 4000), f"LCP ~{lcp / 1000:.2f}s"

    @check("First Input Delay (FID)", HIGH, "FID under 100 ms")
    def _fid(self, ctx: PageContext) -> CheckResult:
        fid = ctx.count("script") * 20
        return tiered_below(fid, 100, 300), f"FID ~{fid} ms"

    @check("Cumulative Layout Shift (CLS)", HIGH, "CLS under 0.1")
    def _cls(self, ctx: PageContext) -> CheckResult:
        unsized = sum(1 for image in ctx.page.images if not (image.width and image.height))
        cls = unsized * 0.1 + ctx.count(".loading, .lazy, [data-src]") * 0.05
        return tiered_below(cls, 0.1, 0.25), f"CLS ~{cls:.2f} ({unsized} unsized images)"

    @check("Interaction to Next Paint (INP)", MEDIUM, "INP under 200 ms")
    def _inp(self, ctx: PageContext) -> CheckResult:
        inp = ctx.count("script") * 15
        return tiered_below(inp, 200, 500), f"INP ~{inp} ms"

    # Mobile

    @check("Mobile Responsiveness", HIGH, "Responsive viewport and media queries")
    def _mobile(self, ctx: PageContext) -> CheckResult:
        viewport = (ctx.doc.meta("viewport") or "").lower()
        score = (2 if "width=device-width" in viewport else 0) + (1 if "@media" in ctx.doc.style_text() else 0)
        return tiered(score, 2, 1), f"Responsive score {score}/3"

    @check("Touch Target Sizing", MEDIUM, "Tappable elements with meaningful labels")
    def _touch_targets(self, ctx: PageContext) -> CheckResult:
        targets = ctx.doc.find_all("button", "a")
        if not targets:
            return Status.NA, "No interactive elements"
        adequate = sum(1 for node in targets if len(ctx.doc.text(node)) >= 3)
        return tiered(adequate / len(targets), 0.8, 0.6), f"{adequate}/{len(targets)} adequate touch targets"

    @check("Mobile Viewport Configuration", HIGH, "width=device-width, initial-scale=1, zoom allowed")
    def _viewport(self, ctx: PageContext) -> CheckResult:
        viewport = ctx.doc.meta("viewport")
        if viewport is None:
            return Status.PRIORITY_OFI, "No viewport meta tag"
        value = viewport.lower().replace(" ", "")
        score = ("width=device-width" in value) + ("initial-scale=1" in value) - ("user-scalable=no" in value)
        return ok_or(score >= 1), f"Viewport: {viewport}"

    @check("Mobile Navigation Design", MEDIUM, "Collapsible menu for small screens")
    def _mobile_nav(self, ctx: PageContext) -> CheckResult:
        found = ctx.count(MOBILE_MENU_SELECTOR) > 0 or ctx.count('nav[class*="collapse"], .collapse') > 0
        return ok_or(found), "Mobile menu present" if found else "No mobile menu"

    @check("Mobile Page Speed", HIGH, "Mobile load under 3 seconds")
    def _mobile_speed(self, ctx: PageContext) -> CheckResult:
        load = _load_ms(ctx) * 1.2
        return tiered_below(load, 3000, 5000), f"Estimated mobile load {load / 1000:.2f}s"

    # Usability

    @check("Navigation Usability", HIGH, "Clear navigation with enough links")
    def _navigation(self, ctx: PageContext) -> CheckResult:
        nav_links = ctx.count("nav a, .navigation a, .menu a, .navbar a")
        score = sum([ctx.count(NAV_SELECTOR) > 0, nav_links >= 3, ctx.count(MOBILE_MENU_SELECTOR) > 0])
        return tiered(score, 2, 1), f"Navigation score {score}/3 ({nav_links} nav links)"

    @check("Content Readability and Structure", MEDIUM, "Paragraphs, headings and lists")
    def _structure(self, ctx: PageContext) -> CheckResult:
        score = sum([
            ctx.count("p") >= 3,
            ctx.count("h1, h2, h3, h4, h5, h6") >= 2,
            ctx.count("ul, ol") >= 1,
        ])
        return tiered(score, 2, 1), f"Structure score {score}/3"

    @check("Visual Hierarchy and Typography", MEDIUM, "Single H1, supporting headings, emphasis")
    def _hierarchy(self, ctx: PageContext) -> CheckResult:
        score = sum([
            ctx.count("h1") == 1,
            ctx.count("h1, h2, h3") >= 3,
            ctx.count("strong, em, b, i") >= 2,
        ])
        return tiered(score, 2, 1), f"Hierarchy score {score}/3"

    @check("Call-to-Action Visibility", HIGH, "Visible buttons with action wording")
    def _cta(self, ctx: PageContext) -> CheckResult:
        score = sum([
            ctx.count(CTA_SELECTOR) >= 2,
            ctx.mentions("contact", "call", "get quote", "book", "schedule") > 0,
        ])
        return tiered(score, 2, 1), f"CTA score {score}/2"

    @check("Form Usability and Design", MEDIUM, "Labelled form fields")
    def _forms(self, ctx: PageContext) -> CheckResult:
        forms = ctx.count("form")
        if not forms:
            return Status.NA, "No forms"
        labels = ctx.count("label")
        return ok_or(labels >= forms), f"{labels} labels across {forms} forms"

    @check("Site Search Functionality", LOW, "Search box for larger sites")
    def _search(self, ctx: PageContext) -> CheckResult:
        if ctx.count(SEARCH_SELECTOR):
            return Status.OK, "Site search available"
        return Status.NA, "No site search"

    @check("Breadcrumb Navigation", LOW, "Breadcrumb trail")
    def _breadcrumbs(self, ctx: PageContext) -> CheckResult:
        if ctx.count('.breadcrumb, .breadcrumbs, nav[aria-label*="breadcrumb" i]'):
            return Status.OK, "Breadcrumbs present"
        return Status.NA, "No breadcrumbs"

    @check("Search Interface Usability", LOW, "Search box with a submit control")
    def _search_interface(self, ctx: PageContext) -> CheckResult:
        if not ctx.count(SEARCH_SELECTOR):
            return Status.NA, "No site search"
        has_button = ctx.count('button[type="submit"], .search-button') > 0
        return ok_or(has_button), "Search has a submit button" if has_button else "Search lacks a submit button"

    # Accessibility

    @check("Color Contrast Accessibility", MEDIUM, "Explicit text colors")
    def _contrast(self, ctx: PageContext) -> CheckResult:
        styled = "color" in ctx.doc.style_text().lower()
        return ok_or(styled), "Colors declared" if styled else "No color declarations in page styles"

    @check("Keyboard Navigation Support", MEDIUM, "Focusable interactive elements")
    def _keyboard(self, ctx: PageContext) -> CheckResult:
        focusable = ctx.count(FOCUSABLE_SELECTOR)
        return ok_or(focusable >= 3), f"{focusable} focusable elements"

    @check("Screen Reader Compatibility", MEDIUM, "ARIA labels and heading structure")
    def _screen_reader(self, ctx: PageContext) -> CheckResult:
        aria = ctx.count("[aria-label], [aria-labelledby], [aria-describedby]")
        headings = ctx.count("h1, h2, h3, h4, h5, h6")
        return ok_or(aria >= 2 and headings >= 2), f"{aria} ARIA labels, {headings} headings"

    @check("Image Alt Text Accessibility", MEDIUM, "Alt text on every image")
    def _alt_text(self, ctx: PageContext) -> CheckResult:
        images = ctx.page.images
        if not images:
            return Status.NA, "No images"
        with_alt = sum(1 for image in images if image.alt)
        return tiered(with_alt / len(images), 0.9, 0.7), f"{with_alt}/{len(images)} images with alt text"

    @check("Focus Indicators", MEDIUM, "Visible :focus styles")
    def _focus(self, ctx: PageContext) -> CheckResult:
        found = ":focus" in ctx.doc.style_text()
        return ok_or(found), "Focus styles declared" if found else "No :focus styles"

    @check("Semantic HTML Usage", MEDIUM, "Landmark elements instead of generic containers")
    def _semantic(self, ctx: PageContext) -> CheckResult:
        semantic = len(ctx.doc.find_all(*SEMANTIC_TAGS))
        generic = len(ctx.doc.find_all("div", "span"))
        total = semantic + generic
        if not total:
            return Status.NA, "No layout elements"
        ratio = semantic / total
        return tiered(ratio, 0.3, 0.1), f"{ratio:.0%} semantic elements"
