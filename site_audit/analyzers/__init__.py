"""
Factor analyzers for site-audit.

Four analyzers, one per score category:
- ContentQualityAnalyzer: readability, depth, trust, engagement
- TechnicalSEOAnalyzer: markup, crawlability, speed, security
- LocalSEOAnalyzer: NAP, local signals, credibility
- UXPerformanceAnalyzer: performance, mobile, navigation, accessibility
"""

from typing import List, Optional, Sequence

from site_audit.analyzers.base import FactorAnalyzer, PageContext, check, run_analyzers
from site_audit.analyzers.content import ContentQualityAnalyzer
from site_audit.analyzers.local import LocalSEOAnalyzer
from site_audit.analyzers.technical import TechnicalSEOAnalyzer
from site_audit.analyzers.ux import UXPerformanceAnalyzer


def default_analyzers(robots_txt: Optional[str] = None, sitemap_urls: Sequence[str] = ()) -> List[FactorAnalyzer]:
    """The standard analyzer set, in category order."""
    return [
        ContentQualityAnalyzer(),
        TechnicalSEOAnalyzer(robots_txt=robots_txt, sitemap_urls=sitemap_urls),
        LocalSEOAnalyzer(),
        UXPerformanceAnalyzer(),
    ]


__all__ = [
    "FactorAnalyzer",
    "PageContext",
    "check",
    "run_analyzers",
    "default_analyzers",
    "ContentQualityAnalyzer",
    "TechnicalSEOAnalyzer",
    "LocalSEOAnalyzer",
    "UXPerformanceAnalyzer",
]
