"""
Content Deduplicator Tests

Near-duplicate collapsing, contact-page consolidation and idempotence.

Run with: python3 -m pytest tests/test_dedup.py -v
"""

import random

from site_audit.dedup import ContentDeduplicator, jaccard_similarity, text_similarity, word_set
from site_audit.models import PageType

BASE_TEXT = (
    "Acme Plumbing provides emergency drain cleaning, leak detection, water heater "
    "installation, sewer inspection, fixture replacement and repiping services "
    "throughout Springfield. Licensed technicians arrive quickly with fully stocked "
    "trucks, upfront pricing and a workmanship guarantee covering every repair."
)


def page_html(title, text):
    return f"<html><head><title>{title}</title></head><body><main><p>{text}</p></main></body></html>"


class TestSimilarity:
    """Word-set Jaccard similarity."""

    def test_short_words_ignored(self):
        assert word_set("The cat and a dog ran") == frozenset()
        assert word_set("Plumbing PLUMBING plumbing") == frozenset({"plumbing"})

    def test_identical(self):
        assert text_similarity(BASE_TEXT, BASE_TEXT) == 1.0

    def test_disjoint(self):
        assert text_similarity("alpha bravo charlie", "delta echo foxtrot") == 0.0

    def test_both_empty(self):
        assert jaccard_similarity(frozenset(), frozenset()) == 1.0


class TestDeduplicate:
    """Grouping and collapsing."""

    def test_contact_mirrors_collapse(self, make_page):
        """Three contact variants keep exactly one record: the one with the most words."""
        pages = [
            make_page("https://example.com/contact", page_html("Contact Us", BASE_TEXT)),
            make_page(
                "https://example.com/contact-us",
                page_html("Contact Acme", BASE_TEXT + " Call today for a free consultation."),
            ),
            make_page("https://example.com/get-in-touch", page_html("Contact", BASE_TEXT)),
        ]
        assert all(p.page_type == PageType.CONTACT for p in pages)

        result = ContentDeduplicator().deduplicate(pages)
        assert [p.url for p in result.contact] == ["https://example.com/contact-us"]
        assert {url for url, _ in result.removed} == {
            "https://example.com/contact",
            "https://example.com/get-in-touch",
        }
        assert all(kept == "https://example.com/contact-us" for _, kept in result.removed)

    def test_distinct_contact_pages_still_one(self, make_page):
        pages = [
            make_page("https://example.com/contact", page_html("Contact Us", BASE_TEXT)),
            make_page(
                "https://example.com/contact/springfield-office",
                page_html("Contact Springfield", "Completely different wording about office visits parking"),
            ),
        ]
        result = ContentDeduplicator().deduplicate(pages)
        assert len(result.contact) == 1

    def test_larger_page_kept(self, make_page):
        small = make_page("https://example.com/services/a", page_html("Services", BASE_TEXT))
        large = make_page(
            "https://example.com/services/b",
            page_html("Services", BASE_TEXT + " Financing available."),
        )
        assert small.page_type == PageType.SERVICE
        assert large.word_count > small.word_count

        result = ContentDeduplicator().deduplicate([small, large])
        assert [p.url for p in result.groups[PageType.SERVICE]] == ["https://example.com/services/b"]
        assert result.removed == [("https://example.com/services/a", "https://example.com/services/b")]

    def test_distinct_pages_kept(self, make_page, html):
        pages = [
            make_page("https://example.com/", html["home"]),
            make_page("https://example.com/services", html["services"]),
            make_page("https://example.com/blog/winter-pipes", html["blog"]),
        ]
        result = ContentDeduplicator().deduplicate(pages)
        assert len(result.pages()) == 3
        assert result.removed == []

    def test_same_normalized_url_once(self, make_page):
        pages = [
            make_page("https://example.com/services/a", page_html("Services", BASE_TEXT)),
            make_page("https://www.example.com/services/a/", page_html("Services", BASE_TEXT)),
        ]
        result = ContentDeduplicator().deduplicate(pages)
        assert len(result.pages()) == 1

    def test_threshold_is_strict(self, make_page):
        """Pages exactly at the threshold are not duplicates."""
        pages = [
            make_page("https://example.com/services/a", page_html("Services", "alpha bravo charlie delta")),
            make_page("https://example.com/services/b", page_html("Services", "alpha bravo charlie hotel")),
        ]
        similarity = text_similarity(pages[0].body_text, pages[1].body_text)
        result = ContentDeduplicator(threshold=similarity).deduplicate(pages)
        assert len(result.groups[PageType.SERVICE]) == 2


class TestDeterminism:
    """Result depends only on the input set."""

    def _pages(self, make_page, html):
        return [
            make_page("https://example.com/", html["home"]),
            make_page("https://example.com/contact", page_html("Contact Us", BASE_TEXT)),
            make_page("https://example.com/contact-us", page_html("Contact Acme", BASE_TEXT + " Extra words here.")),
            make_page("https://example.com/services/a", page_html("Services", BASE_TEXT)),
            make_page("https://example.com/services/b", page_html("Services", BASE_TEXT + " Financing available.")),
            make_page("https://example.com/blog/winter-pipes", html["blog"]),
        ]

    def test_idempotent(self, make_page, html):
        deduplicator = ContentDeduplicator()
        once = deduplicator.deduplicate(self._pages(make_page, html))
        twice = deduplicator.deduplicate(once.pages())
        assert [p.url for p in twice.pages()] == [p.url for p in once.pages()]
        assert twice.removed == []

    def test_input_order_irrelevant(self, make_page, html):
        pages = self._pages(make_page, html)
        baseline = [p.url for p in ContentDeduplicator().deduplicate(pages).pages()]

        rng = random.Random(3)
        for _ in range(5):
            shuffled = list(pages)
            rng.shuffle(shuffled)
            assert [p.url for p in ContentDeduplicator().deduplicate(shuffled).pages()] == baseline
