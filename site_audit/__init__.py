"""
site-audit: crawl a website, analyze its pages and score them.

Usage:
    from site_audit import AuditConfig, run_audit

    result = await run_audit("https://example.com", AuditConfig(max_pages=10))
    print(result.overall_score)
"""

from site_audit.config import AuditConfig, get_default_config
from site_audit.exceptions import (
    AnalysisError,
    AuditCancelledError,
    AuditError,
    NetworkError,
    ParseError,
    ProfilingError,
    WorkerPoolInitError,
)
from site_audit.models import (
    AuditResult,
    Category,
    FactorAssessment,
    Importance,
    OFIClassification,
    PagePriority,
    PageRecord,
    PageType,
    SiteProfile,
    Status,
)
from site_audit.pipeline import audit_site, run_audit

__all__ = [
    "run_audit",
    "audit_site",
    "AuditConfig",
    "get_default_config",
    "AuditResult",
    "SiteProfile",
    "PageRecord",
    "PagePriority",
    "FactorAssessment",
    "OFIClassification",
    "Status",
    "Importance",
    "Category",
    "PageType",
    "AuditError",
    "NetworkError",
    "ParseError",
    "ProfilingError",
    "WorkerPoolInitError",
    "AnalysisError",
    "AuditCancelledError",
]
