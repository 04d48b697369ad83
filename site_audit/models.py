"""
Audit data model.

All records are frozen dataclasses: a record is created once by the phase
that owns it and only read afterwards. Enrichment (OFI classification)
produces a new record that wraps the raw analyzer output.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from site_audit.urls import normalize_url


class Status(Enum):
    """Assessment status of a single factor."""
    OK = "OK"
    OFI = "OFI"
    PRIORITY_OFI = "Priority OFI"
    NA = "N/A"


class Importance(Enum):
    """How much a factor matters for the page."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Category(Enum):
    """Score categories, one per factor analyzer."""
    CONTENT = "content"
    TECHNICAL = "technical"
    LOCAL = "local"
    UX = "ux"


class FetchMethod(Enum):
    """How a page was retrieved."""
    STATIC = "static"
    RENDERED = "rendered"


class DiscoveryMethod(Enum):
    """Strategy that found a URL."""
    HOMEPAGE = "homepage"
    LINK = "link"
    SITEMAP = "sitemap"
    PATTERN = "pattern"
    API = "api"


class PageType(Enum):
    """Page classification used for grouping and business context."""
    HOMEPAGE = "homepage"
    CONTACT = "contact"
    SERVICE = "service"
    SERVICE_AREA = "service-area"
    LOCATION = "location"
    ABOUT = "about"
    BLOG = "blog"
    PRODUCT = "product"
    GALLERY = "gallery"
    OTHER = "other"


@dataclass(frozen=True)
class SiteProfile:
    """Technology profile of the audited site, built once from the homepage."""
    base_url: str
    is_render_dependent: bool = False
    script_count: int = 0
    async_script_count: int = 0
    render_blocking_scripts: int = 0
    framework_markers: Tuple[str, ...] = ()
    has_service_worker: bool = False
    has_dynamic_content: bool = False
    server: Optional[str] = None
    powered_by: Optional[str] = None
    generator: Optional[str] = None
    # True when detection failed and the conservative default was used
    is_default: bool = False

    @property
    def async_script_ratio(self) -> float:
        if self.script_count == 0:
            return 0.0
        return self.async_script_count / self.script_count

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["framework_markers"] = list(self.framework_markers)
        data["async_script_ratio"] = round(self.async_script_ratio, 3)
        return data


@dataclass(frozen=True)
class DiscoveredUrl:
    """A candidate page found during discovery."""
    url: str
    method: DiscoveryMethod
    page_type_hint: PageType = PageType.OTHER

    @property
    def normalized(self) -> str:
        return normalize_url(self.url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method.value,
            "page_type_hint": self.page_type_hint.value,
        }


@dataclass(frozen=True)
class ImageRef:
    src: str
    alt: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class LinkRef:
    href: str
    text: str = ""
    is_internal: bool = True


@dataclass(frozen=True)
class PageRecord:
    """
    Canonical representation of a fetched page.

    The raw HTML is kept so analyzers can build their own parsed document;
    everything else is the extraction result shared by both fetch paths.
    """
    url: str
    status_code: int
    html: str
    title: str = ""
    meta_description: str = ""
    canonical_url: Optional[str] = None
    body_text: str = ""
    word_count: int = 0
    headings: Dict[int, Tuple[str, ...]] = field(default_factory=dict)
    images: Tuple[ImageRef, ...] = ()
    links: Tuple[LinkRef, ...] = ()
    scripts: Tuple[str, ...] = ()
    stylesheets: Tuple[str, ...] = ()
    structured_data: Tuple[Dict[str, Any], ...] = ()
    fetch_method: FetchMethod = FetchMethod.STATIC
    load_time_ms: float = 0.0
    byte_size: int = 0
    page_type: PageType = PageType.OTHER
    response_headers: Dict[str, str] = field(default_factory=dict)
    render_metrics: Optional[Dict[str, Any]] = None

    @property
    def normalized_url(self) -> str:
        return normalize_url(self.url)

    @property
    def internal_links(self) -> List[LinkRef]:
        return [link for link in self.links if link.is_internal]

    @property
    def external_links(self) -> List[LinkRef]:
        return [link for link in self.links if not link.is_internal]

    def headings_at(self, level: int) -> Tuple[str, ...]:
        return self.headings.get(level, ())

    def to_dict(self, include_html: bool = False) -> Dict[str, Any]:
        data = {
            "url": self.url,
            "status_code": self.status_code,
            "title": self.title,
            "meta_description": self.meta_description,
            "canonical_url": self.canonical_url,
            "word_count": self.word_count,
            "headings": {f"h{level}": list(texts) for level, texts in sorted(self.headings.items())},
            "images": [asdict(image) for image in self.images],
            "links": [asdict(link) for link in self.links],
            "scripts": list(self.scripts),
            "stylesheets": list(self.stylesheets),
            "structured_data": list(self.structured_data),
            "fetch_method": self.fetch_method.value,
            "load_time_ms": round(self.load_time_ms, 1),
            "byte_size": self.byte_size,
            "page_type": self.page_type.value,
            "render_metrics": self.render_metrics,
        }
        if include_html:
            data["html"] = self.html
        return data


VALID_PRIORITY_WEIGHTS = (1.0, 2.0, 3.0)


@dataclass(frozen=True)
class PagePriority:
    """Tier and score weight of a page, derived from its URL shape."""
    tier: int
    weight: float
    page_type: str
    business_impact: str

    def __post_init__(self):
        if self.tier not in (1, 2, 3):
            raise ValueError(f"Invalid priority tier: {self.tier}")
        if self.weight not in VALID_PRIORITY_WEIGHTS:
            raise ValueError(f"Invalid priority weight: {self.weight}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FactorAssessment:
    """One evaluated quality factor for one page, as emitted by an analyzer."""
    name: str
    category: Category
    status: Status
    importance: Importance
    rationale: str
    page_url: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "status": self.status.value,
            "importance": self.importance.value,
            "rationale": self.rationale,
            "page_url": self.page_url,
            "description": self.description,
        }


@dataclass(frozen=True)
class OFIClassification:
    """Business-context enrichment of one FactorAssessment."""
    assessment: FactorAssessment
    final_status: Status
    business_impact: str
    technical_complexity: str
    effort_estimate: str
    quick_win: bool
    reasoning: str
    escalation_reason: Optional[str] = None
    page_tier: int = 3
    page_weight: float = 1.0
    factor_priority: int = 0

    @property
    def name(self) -> str:
        return self.assessment.name

    @property
    def category(self) -> Category:
        return self.assessment.category

    @property
    def importance(self) -> Importance:
        return self.assessment.importance

    @property
    def was_escalated(self) -> bool:
        return self.final_status != self.assessment.status

    def to_dict(self) -> Dict[str, Any]:
        data = self.assessment.to_dict()
        data.update({
            "original_status": self.assessment.status.value,
            "status": self.final_status.value,
            "business_impact": self.business_impact,
            "technical_complexity": self.technical_complexity,
            "effort_estimate": self.effort_estimate,
            "quick_win": self.quick_win,
            "reasoning": self.reasoning,
            "escalation_reason": self.escalation_reason,
            "page_tier": self.page_tier,
            "page_weight": self.page_weight,
            "factor_priority": self.factor_priority,
        })
        return data


@dataclass(frozen=True)
class AuditResult:
    """Terminal aggregate of one pipeline run."""
    base_url: str
    site_profile: SiteProfile
    pages: Tuple[PageRecord, ...]
    classifications: Tuple[OFIClassification, ...]
    total_factors: int
    status_counts: Dict[str, int]
    overall_score: int
    category_scores: Dict[str, int]
    recommendations: Tuple[str, ...] = ()
    action_plan: Dict[str, List[str]] = field(default_factory=dict)
    severity: Dict[str, Any] = field(default_factory=dict)
    duplicates_removed: Tuple[Tuple[str, str], ...] = ()
    page_priorities: Dict[str, PagePriority] = field(default_factory=dict)
    priority_explanations: Dict[str, str] = field(default_factory=dict)
    priority_distribution: Dict[str, Dict[str, float]] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def assessments(self) -> List[FactorAssessment]:
        """Raw analyzer output, before OFI escalation."""
        return [c.assessment for c in self.classifications]

    @property
    def priority_ofi_count(self) -> int:
        return self.status_counts.get(Status.PRIORITY_OFI.value, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "site_profile": self.site_profile.to_dict(),
            "summary": {
                "total_factors": self.total_factors,
                "status_counts": dict(self.status_counts),
                "overall_score": self.overall_score,
                "category_scores": dict(self.category_scores),
            },
            "pages": [page.to_dict() for page in self.pages],
            "page_priorities": {
                url: {**priority.to_dict(), "explanation": self.priority_explanations.get(url, "")}
                for url, priority in self.page_priorities.items()
            },
            "priority_distribution": {
                tier: dict(stats) for tier, stats in self.priority_distribution.items()
            },
            "factors": [c.to_dict() for c in self.classifications],
            "recommendations": list(self.recommendations),
            "action_plan": {key: list(items) for key, items in self.action_plan.items()},
            "severity": dict(self.severity),
            "duplicates_removed": [
                {"url": url, "duplicate_of": kept} for url, kept in self.duplicates_removed
            ],
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
