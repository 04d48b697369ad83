"""
Score Aggregator

Pure functions over a set of OFI classifications.

- Factor score: OK/N/A 100, OFI 60 - penalty, Priority OFI 30 - penalty
  (penalty 15/10/5 for High/Medium/Low importance)
- Category score: mean of its factor scores (optionally weighted by page priority)
- Overall score: category means combined with fixed category weights

Sums use math.fsum and rounding is half-up, so the result does not depend
on the order of the input.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from runner.logging_setup import get_logger
from site_audit.config import DEFAULT_CATEGORY_WEIGHTS
from site_audit.models import Category, Importance, OFIClassification, Status

logger = get_logger("score_aggregator")

IMPORTANCE_PENALTY = {
    Importance.HIGH: 15,
    Importance.MEDIUM: 10,
    Importance.LOW: 5,
}

STATUS_BASE_SCORE = {
    Status.OK: 100,
    Status.NA: 100,
    Status.OFI: 60,
    Status.PRIORITY_OFI: 30,
}

STATUS_PRIORITY_WEIGHT = {
    Status.PRIORITY_OFI: 3,
    Status.OFI: 2,
    Status.NA: 1,
    Status.OK: 0,
}

IMPORTANCE_PRIORITY_WEIGHT = {
    Importance.HIGH: 3,
    Importance.MEDIUM: 2,
    Importance.LOW: 1,
}


def round_half_up(value: float) -> int:
    """Half-up rounding; float noise below 1e-9 is ignored (73.4999999999 -> 74)."""
    return int(math.floor(round(value, 9) + 0.5))


def factor_score(status: Status, importance: Importance) -> int:
    """Score of one factor on the 0-100 scale."""
    base = STATUS_BASE_SCORE[status]
    if status in (Status.OK, Status.NA):
        return base
    return base - IMPORTANCE_PENALTY[importance]


def calculate_factor_priority(status: Status, importance: Importance) -> int:
    """Fix-first ordering: status weight x importance weight, capped at 10."""
    return min(10, STATUS_PRIORITY_WEIGHT[status] * IMPORTANCE_PRIORITY_WEIGHT[importance])


def combine_category_scores(category_scores: Mapping[str, float], weights: Mapping[str, float]) -> int:
    """
    Weighted sum of category scores, rounded half-up.

    Categories without a score are left out and the remaining weights are
    rescaled to sum to 1.
    """
    present = [name for name in weights if name in category_scores]
    if not present:
        return 0
    weight_total = math.fsum(weights[name] for name in present)
    total = math.fsum(category_scores[name] * weights[name] for name in present)
    return round_half_up(total / weight_total)


@dataclass
class ScoreSummary:
    """Aggregated scores for one audit."""
    overall_score: int
    category_scores: Dict[str, int] = field(default_factory=dict)
    category_means: Dict[str, float] = field(default_factory=dict)
    status_counts: Dict[str, int] = field(default_factory=dict)
    total_factors: int = 0

    def to_dict(self) -> Dict:
        return {
            "overall_score": self.overall_score,
            "category_scores": dict(self.category_scores),
            "status_counts": dict(self.status_counts),
            "total_factors": self.total_factors,
        }


class ScoreAggregator:
    """Combines classifications into category and overall scores."""

    def __init__(
        self,
        weights: Optional[Mapping[str, float]] = None,
        weight_by_page_priority: bool = False,
    ):
        self.weights = dict(weights or DEFAULT_CATEGORY_WEIGHTS)
        self.weight_by_page_priority = weight_by_page_priority

    def category_means(self, classifications: Iterable[OFIClassification]) -> Dict[str, float]:
        scores: Dict[str, List[float]] = {}
        page_weights: Dict[str, List[float]] = {}
        for c in classifications:
            key = c.category.value
            scores.setdefault(key, []).append(factor_score(c.final_status, c.importance))
            page_weights.setdefault(key, []).append(c.page_weight if self.weight_by_page_priority else 1.0)

        means = {}
        for key, values in scores.items():
            weights = page_weights[key]
            means[key] = math.fsum(v * w for v, w in zip(values, weights)) / math.fsum(weights)
        return means

    def aggregate(self, classifications: Sequence[OFIClassification]) -> ScoreSummary:
        """
        Score a full classification set.

        Args:
            classifications: Every classification of the audit

        Returns:
            ScoreSummary with overall score, per-category scores and status counts
        """
        means = self.category_means(classifications)
        overall = combine_category_scores(means, self.weights)

        counts = Counter(c.final_status.value for c in classifications)
        status_counts = {status.value: counts.get(status.value, 0) for status in Status}

        ordered = {
            category.value: round_half_up(means[category.value])
            for category in Category
            if category.value in means
        }
        logger.info(
            f"Overall score {overall} from {len(classifications)} factors "
            f"({', '.join(f'{k}={v}' for k, v in ordered.items())})"
        )
        return ScoreSummary(
            overall_score=overall,
            category_scores=ordered,
            category_means=means,
            status_counts=status_counts,
            total_factors=len(classifications),
        )


def generate_recommendations(summary: ScoreSummary, classifications: Sequence[OFIClassification]) -> List[str]:
    """Short, rule-based next steps for the audit summary."""
    recommendations = []
    if summary.category_scores.get(Category.TECHNICAL.value, 100) < 70:
        recommendations.append(
            "Focus on technical SEO: fix page speed, mobile responsiveness and crawlability issues first"
        )
    if summary.category_scores.get(Category.CONTENT.value, 100) < 70:
        recommendations.append(
            "Improve content quality: expand thin pages, improve readability and add clear calls to action"
        )

    priority = summary.status_counts.get(Status.PRIORITY_OFI.value, 0)
    if priority:
        recommendations.append(f"Address {priority} Priority OFI items immediately")

    high_importance = sum(
        1 for c in classifications
        if c.final_status == Status.OFI and c.importance == Importance.HIGH
    )
    if high_importance:
        recommendations.append(f"Plan fixes for {high_importance} high-importance opportunities")
    return recommendations
