"""
Factor Analyzer Tests

Catalog sizes, robustness on bad markup, check isolation and a few
representative factor verdicts.

Run with: python3 -m pytest tests/test_analyzers.py -v
"""

import pytest

from site_audit.analyzers import (
    ContentQualityAnalyzer,
    FactorAnalyzer,
    LocalSEOAnalyzer,
    TechnicalSEOAnalyzer,
    UXPerformanceAnalyzer,
    check,
    default_analyzers,
    run_analyzers,
)
from site_audit.analyzers.base import tiered, tiered_below
from site_audit.analyzers.readability import count_syllables, flesch_reading_ease
from site_audit.document import ParsedDocument
from site_audit.models import Category, Importance, Status

MALFORMED_HTML = [
    "",
    "<html><body><div><p>Unclosed <b>tags<i> everywhere",
    "<<<>>> not really html &&& <script>var x = '</div>';",
    '<html><head><script type="application/ld+json">{broken json</script></head><body></body></html>',
    "<html><body>" + "<div>" * 100 + "deep" + "</div>" * 10,
]


def by_name(assessments):
    return {a.name: a for a in assessments}


class TestCatalog:
    """Factor catalog per analyzer."""

    @pytest.mark.parametrize("analyzer,count,category", [
        (ContentQualityAnalyzer(), 34, Category.CONTENT),
        (TechnicalSEOAnalyzer(), 40, Category.TECHNICAL),
        (LocalSEOAnalyzer(), 35, Category.LOCAL),
        (UXPerformanceAnalyzer(), 31, Category.UX),
    ])
    def test_factor_counts(self, analyzer, count, category, make_page):
        names = analyzer.factor_names()
        assert len(names) == count
        assert len(set(names)) == count

        assessments = analyzer.analyze(make_page(), ParsedDocument(make_page().html))
        assert len(assessments) == count
        assert all(a.category == category for a in assessments)

    def test_default_set_order(self):
        categories = [analyzer.category for analyzer in default_analyzers()]
        assert categories == [Category.CONTENT, Category.TECHNICAL, Category.LOCAL, Category.UX]

    def test_factor_names_unique_across_analyzers(self):
        names = [name for analyzer in default_analyzers() for name in analyzer.factor_names()]
        assert len(names) == len(set(names))


class TestRobustness:
    """Analyzers never raise on bad input."""

    @pytest.mark.parametrize("markup", MALFORMED_HTML)
    def test_malformed_markup(self, markup, make_page):
        page = make_page("https://example.com/odd", markup)
        assessments = run_analyzers(default_analyzers(), page)
        assert len(assessments) == 34 + 40 + 35 + 31
        assert all(isinstance(a.status, Status) for a in assessments)

    def test_crashing_check_is_na(self, make_page):
        class Broken(FactorAnalyzer):
            name = "broken"
            category = Category.UX

            @check("Always Fine", Importance.LOW)
            def _fine(self, ctx):
                return Status.OK, "fine"

            @check("Always Crashes", Importance.HIGH)
            def _crash(self, ctx):
                raise ZeroDivisionError("boom")

        page = make_page()
        assessments = by_name(Broken().analyze(page, ParsedDocument(page.html)))
        assert assessments["Always Fine"].status == Status.OK
        assert assessments["Always Crashes"].status == Status.NA
        assert "boom" in assessments["Always Crashes"].rationale

    def test_crashing_analyzer_skipped(self, make_page):
        class Exploding(FactorAnalyzer):
            name = "exploding"

            def analyze(self, page, doc):
                raise RuntimeError("analyzer exploded")

        page = make_page()
        assessments = run_analyzers([Exploding(), UXPerformanceAnalyzer()], page)
        assert len(assessments) == 31
        assert all(a.category == Category.UX for a in assessments)


class TestTechnicalFactors:
    """Representative technical verdicts."""

    def test_https_page(self, make_page):
        results = by_name(run_analyzers([TechnicalSEOAnalyzer()], make_page()))
        assert results["SSL Certificate Implementation"].status == Status.OK
        assert results["Language Attribute Implementation"].status == Status.OK

    def test_http_page(self, make_page):
        page = make_page("http://example.com/")
        results = by_name(run_analyzers([TechnicalSEOAnalyzer()], page))
        assert results["SSL Certificate Implementation"].status == Status.PRIORITY_OFI

    def test_site_level_inputs(self, make_page, html):
        missing = by_name(run_analyzers([TechnicalSEOAnalyzer()], make_page()))
        assert missing["Robots.txt Implementation"].status == Status.OFI
        assert missing["XML Sitemap Implementation"].status == Status.OFI

        present = by_name(run_analyzers(
            [TechnicalSEOAnalyzer(robots_txt=html["robots"], sitemap_urls=["https://example.com/sitemap.xml"])],
            make_page(),
        ))
        assert present["Robots.txt Implementation"].status == Status.OK
        assert present["XML Sitemap Implementation"].status == Status.OK

    def test_robots_blocking_everything(self, make_page):
        analyzer = TechnicalSEOAnalyzer(robots_txt="User-agent: *\nDisallow: /\n")
        results = by_name(run_analyzers([analyzer], make_page()))
        assert results["Robots.txt Implementation"].status == Status.PRIORITY_OFI


class TestLocalFactors:
    """Representative local verdicts."""

    def test_full_nap(self, make_page):
        results = by_name(run_analyzers([LocalSEOAnalyzer()], make_page()))
        assert results["NAP Consistency (Name, Address, Phone)"].status == Status.OK

    def test_no_nap(self, make_page):
        page = make_page(
            "https://example.com/blog/x",
            "<html><head><title>Thoughts</title></head><body><p>Some general musings.</p></body></html>",
        )
        results = by_name(run_analyzers([LocalSEOAnalyzer()], page))
        assert results["NAP Consistency (Name, Address, Phone)"].status == Status.PRIORITY_OFI


class TestHelpers:
    """Threshold helpers and readability."""

    def test_tiered(self):
        assert tiered(5, 5, 2) == Status.OK
        assert tiered(3, 5, 2) == Status.OFI
        assert tiered(1, 5, 2) == Status.PRIORITY_OFI

    def test_tiered_below(self):
        assert tiered_below(1000, 2500, 4000) == Status.OK
        assert tiered_below(3000, 2500, 4000) == Status.OFI
        assert tiered_below(4000, 2500, 4000) == Status.PRIORITY_OFI

    def test_readability_simple_text_scores_higher(self):
        simple = "The cat sat on the mat. The dog ran to the park. We had fun."
        dense = (
            "Comprehensive organizational restructuring necessitates interdepartmental "
            "collaboration, facilitating sustainable operational optimization initiatives."
        )
        assert flesch_reading_ease(simple).flesch_reading_ease > flesch_reading_ease(dense).flesch_reading_ease

    def test_readability_empty(self):
        assert flesch_reading_ease("").flesch_reading_ease == 0.0

    def test_syllables(self):
        assert count_syllables("cat") == 1
        assert count_syllables("water") == 2
        assert count_syllables("table") == 2
