"""
Page Priority Classifier Tests

Tier assignment, bounded fetch selection and distribution stats.

Run with: python3 -m pytest tests/test_priority.py -v
"""

import random

import pytest

from site_audit.models import DiscoveredUrl, DiscoveryMethod, PageType
from site_audit.priority import (
    calculate_priority_distribution,
    classify,
    crawl_order_score,
    get_priority_explanation,
    order_for_fetch,
    select_for_fetch,
)

BASE = "https://example.com"


def discovered(path, hint=PageType.OTHER):
    return DiscoveredUrl(url=BASE + path, method=DiscoveryMethod.LINK, page_type_hint=hint)


class TestClassify:
    """Tier assignment from URL shape."""

    @pytest.mark.parametrize("path,tier,label", [
        ("/", 1, "homepage"),
        ("/services", 1, "main-service"),
        ("/services/", 1, "main-service"),
        ("/contact-us", 1, "contact"),
        ("/estimate", 1, "contact"),
        ("/locations", 1, "primary-location"),
        ("/services/drain-cleaning", 2, "service"),
        ("/locations/springfield", 2, "location"),
        ("/service-areas/shelbyville", 2, "service-area"),
        ("/about-us", 2, "about"),
        ("/portfolio", 2, "gallery"),
        ("/blog/winter-pipes", 3, "supporting"),
        ("/privacy-policy", 3, "supporting"),
    ])
    def test_tiers(self, path, tier, label):
        priority = classify(BASE + path)
        assert priority.tier == tier
        assert priority.page_type == label

    def test_weights_are_valid(self):
        paths = ["/", "/services/x", "/blog/y", "/team", "/contact", "/random/page"]
        for path in paths:
            priority = classify(BASE + path)
            assert priority.weight in (1.0, 2.0, 3.0)
            assert priority.weight == {1: 3.0, 2: 2.0, 3: 1.0}[priority.tier]

    def test_hint_fallback(self):
        """A URL with no recognizable shape uses the discovery hint."""
        assert classify(BASE + "/plumbing-repair", PageType.SERVICE).tier == 2
        assert classify(BASE + "/plumbing-repair").tier == 3

    def test_business_impact(self):
        assert classify(BASE + "/").business_impact == "high"
        assert classify(BASE + "/about").business_impact == "medium"
        assert classify(BASE + "/blog/x").business_impact == "low"


class TestFetchSelection:
    """Bounded fetch budget."""

    def _candidates(self):
        tier_1 = [discovered("/contact"), discovered("/services"), discovered("/locations")]
        tier_3 = [discovered(f"/blog/post-{i}") for i in range(10)]
        return tier_1, tier_3

    def test_tier_1_fills_budget_first(self):
        """Budget 5 with 3 Tier-1 and 10 Tier-3 URLs fetches all Tier-1 plus 2 others."""
        tier_1, tier_3 = self._candidates()
        selected = select_for_fetch(tier_3 + tier_1, max_pages=5)

        tiers = [priority.tier for _, priority in selected]
        assert tiers == [1, 1, 1, 3, 3]
        assert {item.url for item, _ in selected[:3]} == {item.url for item in tier_1}

    def test_order_independent_of_discovery_order(self):
        tier_1, tier_3 = self._candidates()
        items = tier_1 + tier_3
        baseline = [item.url for item, _ in order_for_fetch(items)]

        rng = random.Random(7)
        for _ in range(5):
            shuffled = list(items)
            rng.shuffle(shuffled)
            assert [item.url for item, _ in order_for_fetch(shuffled)] == baseline

    def test_within_tier_crawl_score(self):
        tier_1, _ = self._candidates()
        ordered = [item.url for item, _ in order_for_fetch(tier_1)]
        assert ordered == [BASE + "/contact", BASE + "/services", BASE + "/locations"]

    def test_zero_budget(self):
        tier_1, tier_3 = self._candidates()
        assert select_for_fetch(tier_1 + tier_3, max_pages=0) == []

    def test_crawl_score_penalties(self):
        assert crawl_order_score(BASE + "/contact") > crawl_order_score(BASE + "/blog/tag/pipes")
        assert crawl_order_score(BASE + "/a") > crawl_order_score(BASE + "/a/b/c")


class TestPriorityReporting:
    """Explanations and distribution."""

    def test_explanation(self):
        explanation = get_priority_explanation(classify(BASE + "/contact"))
        assert explanation.startswith("Tier 1 (High Priority)")
        assert explanation.endswith("(contact)")

    def test_distribution(self):
        priorities = [classify(BASE + p) for p in ("/", "/contact", "/about", "/blog/a")]
        distribution = calculate_priority_distribution(priorities)
        assert distribution["tier1"] == {"count": 2, "percentage": 50}
        assert distribution["tier2"] == {"count": 1, "percentage": 25}
        assert distribution["tier3"] == {"count": 1, "percentage": 25}

    def test_distribution_empty(self):
        distribution = calculate_priority_distribution([])
        assert distribution["tier1"] == {"count": 0, "percentage": 0}
