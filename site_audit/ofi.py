"""
OFI Classifier

Turns raw analyzer assessments into OFI classifications: decides whether an
issue escalates to Priority OFI and attaches impact, complexity, effort and
quick-win estimates.

Escalation rules, first match wins:
1. Critical factor failing (OFI or Priority OFI)
2. Tier-1 page, High importance, status OFI
3. Conversion page, conversion-relevant factor, status OFI
4. Otherwise the analyzer's status stands

Rules only ever raise OFI to Priority OFI. All keyword tables live in
OFIRules so a vertical can supply its own.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from runner.logging_setup import get_logger
from site_audit.models import FactorAssessment, Importance, OFIClassification, PagePriority, PageType, Status
from site_audit.scoring import calculate_factor_priority

logger = get_logger("ofi_classifier")

OK_REASONING = "Factor meets SEO best practices"
NA_REASONING = "Factor not applicable to this page type"
NO_ACTION = "No action needed"

FAILING = (Status.OFI, Status.PRIORITY_OFI)


@dataclass(frozen=True)
class OFIRules:
    """Keyword tables keyed on lower-cased factor-name substrings."""
    critical_factors: Sequence[str] = (
        "ssl certificate implementation",
        "meta tags optimization",
        "content readability score",
        "page loading speed",
        "mobile responsiveness",
        "robots meta tag configuration",
        "structured data implementation",
        "nap consistency",
        "core web vitals performance",
        "canonical url implementation",
    )
    conversion_factors: Sequence[str] = (
        "call-to-action",
        "contact information",
        "phone number",
        "customer reviews",
        "trust signals",
        "page loading speed",
        "mobile responsiveness",
        "form usability",
        "professional photography",
    )
    high_impact: Sequence[str] = (
        "ssl", "https", "mobile", "speed", "contact", "phone", "nap",
        "meta", "title", "description", "reviews", "testimonials",
    )
    medium_impact: Sequence[str] = (
        "schema", "structured data", "alt text", "headings", "content",
        "navigation", "sitemap", "robots",
    )
    easy_fixes: Sequence[str] = (
        "meta", "title", "description", "alt text", "contact information",
        "phone number", "business hours", "nap",
    )
    hard_fixes: Sequence[str] = (
        "ssl", "https", "mobile responsive", "page speed", "core web vitals",
        "schema markup", "structured data", "cdn",
    )
    quick_wins: Sequence[str] = (
        "meta title", "meta description", "meta tags", "alt text", "contact information",
        "phone number", "business hours", "favicon", "robots.txt",
    )
    # complexity -> (effort when impact is high, effort otherwise)
    effort: Dict[str, tuple] = field(default_factory=lambda: {
        "easy": ("1-2 hours", "1-2 hours"),
        "medium": ("4-8 hours", "2-4 hours"),
        "hard": ("1-2 weeks", "2-5 days"),
    })


DEFAULT_RULES = OFIRules()


def _matches(name: str, keywords: Iterable[str]) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in keywords)


@dataclass(frozen=True)
class BusinessContext:
    """What the page means to the business, as far as escalation cares."""
    is_conversion_page: bool = False
    page_type: PageType = PageType.OTHER

    @classmethod
    def for_page(cls, page_type: PageType, priority: PagePriority) -> "BusinessContext":
        """Homepage, contact and Tier-1 pages are where visitors convert."""
        conversion = page_type in (PageType.HOMEPAGE, PageType.CONTACT) or priority.tier == 1
        return cls(is_conversion_page=conversion, page_type=page_type)


class OFIClassifier:
    """Applies the escalation rules and lookup tables to one assessment at a time."""

    def __init__(self, rules: OFIRules = DEFAULT_RULES):
        self.rules = rules

    def is_critical(self, factor_name: str) -> bool:
        return _matches(factor_name, self.rules.critical_factors)

    def impacts_conversion(self, factor_name: str) -> bool:
        return _matches(factor_name, self.rules.conversion_factors)

    def business_impact(self, factor_name: str, status: Status) -> str:
        if status == Status.PRIORITY_OFI:
            return "high"
        if _matches(factor_name, self.rules.high_impact):
            return "high"
        if _matches(factor_name, self.rules.medium_impact):
            return "medium"
        return "low"

    def technical_complexity(self, factor_name: str) -> str:
        if _matches(factor_name, self.rules.easy_fixes):
            return "easy"
        if _matches(factor_name, self.rules.hard_fixes):
            return "hard"
        return "medium"

    def effort_estimate(self, factor_name: str, status: Status) -> str:
        high, other = self.rules.effort[self.technical_complexity(factor_name)]
        return high if self.business_impact(factor_name, status) == "high" else other

    def is_quick_win(self, factor_name: str) -> bool:
        return _matches(factor_name, self.rules.quick_wins)

    def _escalation_reason(
        self,
        assessment: FactorAssessment,
        priority: PagePriority,
        context: BusinessContext,
    ) -> Optional[str]:
        status = assessment.status
        if status in FAILING and self.is_critical(assessment.name):
            return "Critical SEO factor requiring immediate attention"
        if status != Status.OFI:
            return None
        if priority.tier == 1 and assessment.importance == Importance.HIGH:
            return "High-importance issue on a Tier-1 page"
        if context.is_conversion_page and self.impacts_conversion(assessment.name):
            return "Issue affects conversion on a critical page"
        return None

    def classify(
        self,
        assessment: FactorAssessment,
        page_priority: PagePriority,
        business_context: Optional[BusinessContext] = None,
    ) -> OFIClassification:
        """
        Classify one assessment.

        Args:
            assessment: Raw analyzer output
            page_priority: Priority of the page the factor was measured on
            business_context: Conversion flag and page type

        Returns:
            OFIClassification wrapping the unchanged assessment
        """
        context = business_context or BusinessContext()
        name = assessment.name
        reason = self._escalation_reason(assessment, page_priority, context)

        if reason is not None:
            final_status = Status.PRIORITY_OFI
            reasoning = reason
        else:
            final_status = assessment.status

        if final_status == Status.OK or final_status == Status.NA:
            return OFIClassification(
                assessment=assessment,
                final_status=final_status,
                business_impact="low",
                technical_complexity="easy",
                effort_estimate=NO_ACTION,
                quick_win=False,
                reasoning=OK_REASONING if final_status == Status.OK else NA_REASONING,
                page_tier=page_priority.tier,
                page_weight=page_priority.weight,
                factor_priority=calculate_factor_priority(final_status, assessment.importance),
            )

        if reason is None:
            if final_status == Status.PRIORITY_OFI:
                reasoning = "Critical issue requiring immediate action"
            else:
                reasoning = (
                    f"{assessment.importance.value}-importance factor needs optimization "
                    f"on {context.page_type.value} page"
                )
        else:
            logger.debug(f"Escalated '{name}' on {assessment.page_url}: {reason}")

        return OFIClassification(
            assessment=assessment,
            final_status=final_status,
            business_impact=self.business_impact(name, final_status),
            technical_complexity=self.technical_complexity(name),
            effort_estimate=self.effort_estimate(name, final_status),
            quick_win=self.is_quick_win(name),
            reasoning=reasoning,
            escalation_reason=reason,
            page_tier=page_priority.tier,
            page_weight=page_priority.weight,
            factor_priority=calculate_factor_priority(final_status, assessment.importance),
        )

    def classify_all(
        self,
        assessments: Iterable[FactorAssessment],
        page_priority: PagePriority,
        business_context: Optional[BusinessContext] = None,
    ) -> List[OFIClassification]:
        return [self.classify(a, page_priority, business_context) for a in assessments]


def generate_action_plan(classifications: Sequence[OFIClassification]) -> Dict[str, List[OFIClassification]]:
    """
    Bucket failing classifications into an action plan.

    Buckets overlap: a quick win that is also a Priority OFI appears in both.
    """
    plan = {
        "quick_wins": [c for c in classifications if c.quick_win and c.final_status in FAILING],
        "priority_ofis": [c for c in classifications if c.final_status == Status.PRIORITY_OFI],
        "high_impact_ofis": [
            c for c in classifications if c.final_status == Status.OFI and c.business_impact == "high"
        ],
        "medium_impact_ofis": [
            c for c in classifications if c.final_status == Status.OFI and c.business_impact == "medium"
        ],
        "long_term_improvements": [
            c for c in classifications if c.final_status == Status.OFI and c.technical_complexity == "hard"
        ],
    }
    logger.info("Action plan: " + ", ".join(f"{key}={len(items)}" for key, items in plan.items()))
    return plan


def calculate_severity_score(classifications: Sequence[OFIClassification]) -> Dict:
    """
    Overall OFI severity on a 0-100 scale (higher is healthier).

    score = 100 - 15 * priority - 8 * high-impact OFI - 3 * all failing, floored at 0.
    """
    counts = Counter(c.final_status for c in classifications)
    priority = counts[Status.PRIORITY_OFI]
    total = priority + counts[Status.OFI]
    high_impact = sum(1 for c in classifications if c.final_status == Status.OFI and c.business_impact == "high")

    score = max(0, 100 - priority * 15 - high_impact * 8 - total * 3)
    if priority >= 5 or score < 40:
        severity = "critical"
    elif priority >= 2 or score < 60:
        severity = "high"
    elif total >= 5 or score < 80:
        severity = "medium"
    else:
        severity = "low"

    return {
        "score": score,
        "severity": severity,
        "breakdown": {
            "priority_ofis": priority,
            "high_impact_ofis": high_impact,
            "total_ofis": total,
        },
    }
