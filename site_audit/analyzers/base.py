"""
Factor analyzer framework.

An analyzer is a stateless object with a category and an ordered list of
check methods. Each check reads a PageContext and returns a (status,
rationale) pair that the base class wraps in a FactorAssessment. A check
that raises degrades to an N/A assessment; an analyzer that fails as a
whole contributes no factors for that page.

Adding an analyzer means subclassing FactorAnalyzer and listing it in the
pipeline; existing analyzers are untouched.
"""

import re
from abc import ABC
from typing import Callable, List, Optional, Sequence, Tuple

from runner.logging_setup import get_logger
from site_audit.document import ParsedDocument
from site_audit.exceptions import AnalysisError
from site_audit.models import Category, FactorAssessment, Importance, PageRecord, Status

logger = get_logger("factor_analyzer")


class PageContext:
    """Per-page values shared by every check of one analyzer run."""

    def __init__(self, page: PageRecord, doc: ParsedDocument):
        self.page = page
        self.doc = doc
        self.text = page.body_text
        self.text_lower = page.body_text.lower()
        self.full_text_lower = doc.full_text().lower()
        self.html_lower = doc.raw_html.lower()
        self.word_count = page.word_count
        self.words = re.findall(r"[a-z0-9']+", self.text_lower)

    def count(self, selector: str) -> int:
        return self.doc.count(selector)

    def mentions(self, *phrases: str) -> int:
        """Number of phrases present anywhere in the visible page text."""
        return sum(1 for phrase in phrases if phrase in self.full_text_lower)

    def has(self, pattern: "re.Pattern") -> bool:
        return bool(pattern.search(self.doc.full_text()))


def check(factor_name: str, importance: Importance, description: str = ""):
    """
    Mark an analyzer method as the check for one named factor.

    The method takes a PageContext and returns (status, rationale).
    """
    def decorator(func):
        func.factor_name = factor_name
        func.importance = importance
        func.description = description
        return func
    return decorator


def tiered(value: float, ok_at: float, ofi_at: float) -> Status:
    """OK when value >= ok_at, OFI when >= ofi_at, else Priority OFI."""
    if value >= ok_at:
        return Status.OK
    if value >= ofi_at:
        return Status.OFI
    return Status.PRIORITY_OFI


def tiered_below(value: float, ok_below: float, ofi_below: float) -> Status:
    """OK when value < ok_below, OFI when < ofi_below, else Priority OFI."""
    if value < ok_below:
        return Status.OK
    if value < ofi_below:
        return Status.OFI
    return Status.PRIORITY_OFI


def ok_or(condition: bool, otherwise: Status = Status.OFI) -> Status:
    return Status.OK if condition else otherwise


CheckResult = Tuple[Status, str]


class FactorAnalyzer(ABC):
    """Base class for the four factor analyzers."""

    name: str = "base"
    category: Category = Category.CONTENT

    def checks(self) -> List[Callable[[PageContext], CheckResult]]:
        """Methods decorated with @check, in definition order."""
        return [
            getattr(self, name)
            for name, member in vars(type(self)).items()
            if callable(member) and hasattr(member, "factor_name")
        ]

    def factor_names(self) -> List[str]:
        return [check_fn.factor_name for check_fn in self.checks()]

    def analyze(self, page: PageRecord, doc: ParsedDocument) -> List[FactorAssessment]:
        """
        Evaluate every check against one page.

        Raises:
            AnalysisError: If the page context cannot be built
        """
        try:
            ctx = PageContext(page, doc)
        except Exception as e:
            raise AnalysisError(f"Could not prepare page: {e}", analyzer=self.name, url=page.url) from e

        assessments = []
        for check_fn in self.checks():
            try:
                status, rationale = check_fn(ctx)
            except Exception as e:
                logger.warning(f"[{self.name}] check '{check_fn.factor_name}' failed on {page.url}: {e}")
                status, rationale = Status.NA, f"Could not be evaluated: {e}"
            assessments.append(FactorAssessment(
                name=check_fn.factor_name,
                category=self.category,
                status=status,
                importance=check_fn.importance,
                rationale=rationale,
                page_url=page.url,
                description=check_fn.description,
            ))
        logger.debug(f"[{self.name}] {len(assessments)} factors for {page.url}")
        return assessments


def run_analyzers(
    analyzers: Sequence[FactorAnalyzer],
    page: PageRecord,
    doc: Optional[ParsedDocument] = None,
) -> List[FactorAssessment]:
    """
    Run every analyzer on a page. A failing analyzer contributes nothing.

    Args:
        analyzers: Analyzer instances
        page: Page to evaluate
        doc: Pre-parsed document (parsed from page.html when omitted)

    Returns:
        All assessments, analyzer order preserved
    """
    if doc is None:
        doc = ParsedDocument(page.html)

    assessments: List[FactorAssessment] = []
    for analyzer in analyzers:
        try:
            assessments.extend(analyzer.analyze(page, doc))
        except AnalysisError as e:
            logger.error(f"Analyzer '{analyzer.name}' failed on {page.url}: {e}")
        except Exception as e:
            logger.exception(f"Analyzer '{analyzer.name}' crashed on {page.url}: {e}")
    return assessments
