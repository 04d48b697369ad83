"""
Content Quality Analyzer

Readability, depth, structure, trust and engagement of the page copy.
"""

import re
from collections import Counter
from datetime import datetime
from urllib.parse import urlparse

from site_audit.analyzers.base import CheckResult, FactorAnalyzer, PageContext, check, ok_or, tiered
from site_audit.analyzers.readability import flesch_reading_ease
from site_audit.models import Category, Importance, PageType, Status

HIGH, MEDIUM, LOW = Importance.HIGH, Importance.MEDIUM, Importance.LOW

# Minimum word counts by page type
MIN_WORDS = {
    PageType.HOMEPAGE: 500,
    PageType.SERVICE: 800,
    PageType.LOCATION: 600,
    PageType.SERVICE_AREA: 600,
    PageType.CONTACT: 200,
}
DEFAULT_MIN_WORDS = 300

STOP_WORDS = {
    "the", "and", "for", "are", "but", "not", "you", "all", "any", "can", "her", "was",
    "one", "our", "out", "has", "have", "this", "that", "with", "from", "your", "they",
    "will", "been", "were", "what", "when", "which", "their", "there", "about", "would",
    "into", "more", "other", "than", "then", "them", "these", "some", "also", "just",
}

YEAR_RE = re.compile(r"\b(19|20)\d{2}\b")


class ContentQualityAnalyzer(FactorAnalyzer):
    """Content factors: readability, length, structure, E-E-A-T signals."""

    name = "content_quality"
    category = Category.CONTENT

    @check("Content Readability Score", HIGH, "Copy should score 60+ on Flesch Reading Ease")
    def _readability(self, ctx: PageContext) -> CheckResult:
        if ctx.word_count < 20:
            return Status.NA, "Too little text to measure readability"
        score = flesch_reading_ease(ctx.text).flesch_reading_ease
        return tiered(score, 60, 30), f"Flesch Reading Ease {score:.1f} (target 60+)"

    @check("Sufficient Content Length", HIGH, "Page should carry enough copy for its type")
    def _content_length(self, ctx: PageContext) -> CheckResult:
        minimum = MIN_WORDS.get(ctx.page.page_type, DEFAULT_MIN_WORDS)
        status = tiered(ctx.word_count, minimum, minimum * 0.7)
        return status, f"{ctx.word_count} words (target {minimum}+ for a {ctx.page.page_type.value} page)"

    @check("Keyword Density Optimization", MEDIUM, "Main terms should appear naturally, without stuffing")
    def _keyword_density(self, ctx: PageContext) -> CheckResult:
        terms = [w for w in ctx.words if len(w) > 3 and w not in STOP_WORDS]
        if len(terms) < 50:
            return Status.NA, "Not enough copy to measure keyword density"
        word, count = Counter(terms).most_common(1)[0]
        density = count * 100.0 / len(ctx.words)
        if 0.5 <= density <= 3.0:
            return Status.OK, f"Top term '{word}' at {density:.1f}% density"
        if density > 3.0:
            return Status.OFI, f"Top term '{word}' at {density:.1f}% looks over-optimized (target 0.5-3%)"
        return Status.OFI, f"No term reaches 0.5% density (top '{word}' at {density:.1f}%)"

    @check("Call-to-Action Presence", HIGH, "Page should guide visitors to a next step")
    def _cta_presence(self, ctx: PageContext) -> CheckResult:
        ctas = ctx.count(
            'button, .cta, .call-to-action, a[href*="contact"], a[href*="quote"], '
            'a[href*="book"], a[href*="schedule"]'
        )
        return tiered(ctas, 2, 1), f"{ctas} call-to-action elements found"

    @check("Customer Reviews/Testimonials", MEDIUM, "Reviews and testimonials build trust")
    def _reviews(self, ctx: PageContext) -> CheckResult:
        reviews = ctx.count(".review, .testimonial, .rating, [itemprop=review], blockquote")
        if reviews >= 3:
            return Status.OK, f"{reviews} review/testimonial elements"
        if reviews >= 1:
            return Status.OFI, f"Only {reviews} review/testimonial elements (target 3+)"
        return Status.NA, "No reviews or testimonials on this page"

    @check("Content Structure Organization", MEDIUM, "Lists and sections make copy easier to follow")
    def _structure(self, ctx: PageContext) -> CheckResult:
        items = ctx.count("ul, ol, li")
        return ok_or(items >= 3), f"{items} list elements"

    @check("Content Uniqueness", HIGH, "Copy should not repeat itself")
    def _uniqueness(self, ctx: PageContext) -> CheckResult:
        if len(ctx.words) < 20:
            return Status.NA, "Too little text to measure uniqueness"
        ratio = len(set(ctx.words)) / len(ctx.words)
        return ok_or(ratio >= 0.6 or len(ctx.words) > 1500 and ratio >= 0.3), f"Unique word ratio {ratio:.2f}"

    @check("Heading Structure Hierarchy", MEDIUM, "One H1 followed by supporting subheadings")
    def _heading_hierarchy(self, ctx: PageContext) -> CheckResult:
        h1 = len(ctx.page.headings_at(1))
        sub = sum(len(ctx.page.headings_at(level)) for level in range(2, 7))
        if h1 == 1 and sub >= 2:
            return Status.OK, f"1 H1 and {sub} subheadings"
        if h1 == 0:
            return Status.PRIORITY_OFI, "No H1 heading"
        return Status.OFI, f"{h1} H1 headings and {sub} subheadings (target 1 H1, 2+ subheadings)"

    @check("Image Content Optimization", MEDIUM, "Images should carry alt text")
    def _image_content(self, ctx: PageContext) -> CheckResult:
        images = ctx.page.images
        if not images:
            return Status.OFI, "No images support the copy"
        ratio = sum(1 for image in images if image.alt) / len(images)
        return tiered(ratio, 0.8, 0.5), f"{ratio:.0%} of {len(images)} images have alt text"

    @check("Video Content Integration", LOW, "Video can improve engagement")
    def _video(self, ctx: PageContext) -> CheckResult:
        videos = ctx.count('video, iframe[src*="youtube"], iframe[src*="vimeo"]')
        if videos:
            return Status.OK, f"{videos} embedded videos"
        return Status.NA, "No video content"

    @check("Content Freshness", MEDIUM, "Copy should show it is current")
    def _freshness(self, ctx: PageContext) -> CheckResult:
        current = datetime.now().year
        years = {int(m.group(0)) for m in YEAR_RE.finditer(ctx.full_text_lower)}
        recent = any(current - 1 <= year <= current for year in years)
        return ok_or(recent), "Mentions the current or previous year" if recent else "No recent date found"

    @check("Content Depth and Detail", MEDIUM, "Substantial copy covers the topic in depth")
    def _depth(self, ctx: PageContext) -> CheckResult:
        return ok_or(ctx.word_count >= 500), f"{ctx.word_count} words (target 500+)"

    @check("Content Relevance to URL", HIGH, "Copy should match the topic named in the URL")
    def _url_relevance(self, ctx: PageContext) -> CheckResult:
        tokens = [t for t in re.split(r"[-_/.]+", urlparse(ctx.page.url).path.lower()) if len(t) > 3]
        if not tokens:
            return Status.NA, "URL has no topic words"
        matched = [t for t in tokens if t in ctx.text_lower]
        return ok_or(bool(matched)), f"{len(matched)}/{len(tokens)} URL topic words appear in the copy"

    @check("Content Engagement Elements", LOW, "Interactive elements invite visitors to act")
    def _engagement(self, ctx: PageContext) -> CheckResult:
        elements = ctx.count("button, form, input, .interactive")
        return ok_or(elements >= 2), f"{elements} interactive elements"

    @check("Social Proof Elements", MEDIUM, "Ratings, shares and testimonials signal credibility")
    def _social_proof(self, ctx: PageContext) -> CheckResult:
        elements = ctx.count(".social, .share, .testimonial, .rating")
        if elements >= 2:
            return Status.OK, f"{elements} social proof elements"
        if elements == 1:
            return Status.OFI, "Only one social proof element"
        return Status.NA, "No social proof elements"

    @check("Content Scannability", MEDIUM, "Subheadings, lists and emphasis help skimming")
    def _scannability(self, ctx: PageContext) -> CheckResult:
        elements = ctx.count("h2, h3, ul, ol, strong, em")
        return ok_or(elements >= 5), f"{elements} scannable elements (target 5+)"

    @check("Content Tone Appropriateness", LOW, "Confident, positive professional tone")
    def _tone(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("great", "excellent", "best", "quality", "professional")
        return ok_or(found >= 2), f"{found} positive tone markers"

    @check("Multimedia Content Usage", LOW, "Images, video and audio enrich the page")
    def _multimedia(self, ctx: PageContext) -> CheckResult:
        media = ctx.count("img, video, audio, iframe")
        if media >= 3:
            return Status.OK, f"{media} media elements"
        if media >= 1:
            return Status.OFI, f"Only {media} media elements"
        return Status.NA, "No media elements"

    @check("Content Flow and Logic", MEDIUM, "Headings should outline a logical flow")
    def _flow(self, ctx: PageContext) -> CheckResult:
        headings = sum(len(ctx.page.headings_at(level)) for level in (1, 2, 3))
        return ok_or(headings >= 3), f"{headings} H1-H3 headings"

    @check("Content Accuracy and Facts", HIGH, "Specific figures and facts back up claims")
    def _facts(self, ctx: PageContext) -> CheckResult:
        has_facts = bool(re.search(r"\d+%|\b\d{2,}\+?\s+(years|customers|clients|projects)\b", ctx.text_lower))
        return ok_or(has_facts), "Includes concrete figures" if has_facts else "No concrete figures or data points"

    @check("Semantic Keyword Usage", MEDIUM, "Varied related vocabulary around the topic")
    def _semantic(self, ctx: PageContext) -> CheckResult:
        terms = Counter(w for w in ctx.words if len(w) > 4 and w not in STOP_WORDS)
        repeated = sum(1 for _, count in terms.items() if count >= 2)
        return ok_or(repeated >= 5), f"{repeated} supporting terms used more than once"

    @check("Content Intent Alignment", HIGH, "Copy should answer what visitors came for")
    def _intent(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("what", "how", "why", "guide", "tips", "service", "contact")
        return ok_or(found >= 2), f"{found} intent-matching terms"

    @check("E-E-A-T Signals", HIGH, "Experience, expertise, authority and trust indicators")
    def _eeat(self, ctx: PageContext) -> CheckResult:
        signals = 0
        signals += ctx.count('[rel="author"], .author, .byline') > 0
        signals += ctx.mentions("certified", "licensed", "accredited", "award") > 0
        signals += ctx.count(".testimonial, .review") > 0
        return tiered(signals, 2, 1), f"{signals}/3 trust signal types present"

    @check("Content Comprehensiveness", MEDIUM, "Long-form copy that covers the subject fully")
    def _comprehensive(self, ctx: PageContext) -> CheckResult:
        indicator = ctx.mentions("overview", "complete", "comprehensive", "detailed") > 0
        ok = indicator and ctx.word_count >= 800
        return ok_or(ok), f"{ctx.word_count} words, comprehensive framing {'present' if indicator else 'absent'}"

    @check("Internal Linking Strategy", HIGH, "Copy should link to related pages on the site")
    def _internal_links(self, ctx: PageContext) -> CheckResult:
        count = len(ctx.page.internal_links)
        return tiered(count, 3, 1), f"{count} internal links"

    @check("Content Hierarchy Structure", MEDIUM, "Sections and articles group related copy")
    def _hierarchy(self, ctx: PageContext) -> CheckResult:
        sections = ctx.count("section, article")
        return ok_or(sections >= 2), f"{sections} section/article elements"

    @check("Callout Boxes and Highlights", LOW, "Highlighted boxes draw attention to key points")
    def _callouts(self, ctx: PageContext) -> CheckResult:
        callouts = ctx.count(".callout, .highlight, .alert, .notice, aside, blockquote")
        if callouts:
            return Status.OK, f"{callouts} callout elements"
        return Status.NA, "No callout elements"

    @check("FAQ Section Inclusion", MEDIUM, "FAQs answer common objections")
    def _faq(self, ctx: PageContext) -> CheckResult:
        has_faq = ctx.count('.faq, #faq, [itemtype*="FAQPage"], details') > 0 or "frequently asked" in ctx.full_text_lower
        if has_faq:
            return Status.OK, "FAQ content present"
        return Status.NA, "No FAQ section"

    @check("Content Personalization", LOW, "Copy addresses the reader directly")
    def _personalization(self, ctx: PageContext) -> CheckResult:
        count = sum(1 for w in ctx.words if w in ("you", "your", "you're", "yours"))
        return ok_or(count >= 5), f"{count} direct second-person references"

    @check("Content Accessibility", MEDIUM, "Alt text, labels and titles support assistive technology")
    def _accessibility(self, ctx: PageContext) -> CheckResult:
        elements = ctx.count("[alt], [aria-label], [title]")
        return ok_or(elements >= 3), f"{elements} accessible labels"

    @check("Multilingual Content Support", LOW, "Language is declared on the document")
    def _multilingual(self, ctx: PageContext) -> CheckResult:
        lang = ctx.doc.html_attr("lang")
        return ok_or(bool(lang)), f"html lang='{lang}'" if lang else "No lang attribute on <html>"

    @check("Content Citations and Sources", LOW, "Citations support claims")
    def _citations(self, ctx: PageContext) -> CheckResult:
        citations = ctx.count('cite, .source, .reference, a[href*="study"], a[href*="research"]')
        if citations >= 2:
            return Status.OK, f"{citations} citations"
        if citations == 1:
            return Status.OFI, "Only one citation"
        return Status.NA, "No citations"

    @check("Content Update Frequency", LOW, "Visible update dates show the copy is maintained")
    def _update_frequency(self, ctx: PageContext) -> CheckResult:
        updated = ctx.mentions("updated", "last modified") > 0 or ctx.count("time[datetime]") > 0
        return ok_or(updated), "Update date shown" if updated else "No update date shown"

    @check("Topical Authority Signals", HIGH, "Expertise vocabulary establishes authority")
    def _authority(self, ctx: PageContext) -> CheckResult:
        found = ctx.mentions("expert", "professional", "certified", "licensed", "experienced")
        return tiered(found, 2, 1), f"{found} expertise terms"
