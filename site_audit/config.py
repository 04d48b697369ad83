"""
Audit Pipeline Configuration

Defaults can be overridden per run by constructing AuditConfig directly,
or globally via environment variables (or a .env file):

    AUDIT_MAX_PAGES=25
    AUDIT_INCLUDE_SUBDOMAINS=false
    AUDIT_ANALYZE_JAVASCRIPT=true
    AUDIT_POOL_SIZE=4
    AUDIT_TASK_TIMEOUT=60
    AUDIT_MAX_RETRIES=2
    AUDIT_SIMILARITY_THRESHOLD=0.85

The similarity threshold and category weights have no documented derivation;
they are kept as tunable defaults.
"""

import math
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


DEFAULT_CATEGORY_WEIGHTS = {
    "content": 0.25,
    "technical": 0.30,
    "local": 0.25,
    "ux": 0.20,
}

DEFAULT_SIMILARITY_THRESHOLD = 0.85
DEFAULT_SITEMAP_URL_CAP = 50

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class AuditConfig:
    """Settings for one audit run."""

    max_pages: int = 25
    include_subdomains: bool = False
    analyze_javascript: bool = True

    # Carried through for the separate comparison pass
    analyze_competitors: bool = False
    competitor_urls: List[str] = field(default_factory=list)

    # (factor name, category) pairs reported as N/A
    custom_factors: List[Tuple[str, str]] = field(default_factory=list)

    # Network
    profile_timeout: float = 15.0
    request_timeout: float = 30.0
    probe_timeout: float = 5.0
    user_agent: str = DEFAULT_USER_AGENT

    # Render pool
    pool_size: int = 4
    task_timeout: float = 60.0
    max_retries: int = 2
    retry_backoff: float = 1.0
    settle_delay: float = 2.0
    navigation_timeout: float = 30.0

    # Discovery
    sitemap_url_cap: int = DEFAULT_SITEMAP_URL_CAP

    # Tunables
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    category_weights: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS)
    )
    weight_by_page_priority: bool = False

    def __post_init__(self):
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self.max_pages}")
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be >= 1, got {self.pool_size}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if not 0.0 < self.similarity_threshold <= 1.0:
            raise ValueError(
                f"similarity_threshold must be in (0, 1], got {self.similarity_threshold}"
            )
        total = math.fsum(self.category_weights.values())
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"category_weights must sum to 1.0, got {total}")

    @classmethod
    def from_env(cls, **overrides) -> "AuditConfig":
        """Build a config from environment variables, then apply keyword overrides."""
        values = {
            "max_pages": _env_int("AUDIT_MAX_PAGES", 25),
            "include_subdomains": _env_bool("AUDIT_INCLUDE_SUBDOMAINS", False),
            "analyze_javascript": _env_bool("AUDIT_ANALYZE_JAVASCRIPT", True),
            "profile_timeout": _env_float("AUDIT_PROFILE_TIMEOUT", 15.0),
            "request_timeout": _env_float("AUDIT_REQUEST_TIMEOUT", 30.0),
            "probe_timeout": _env_float("AUDIT_PROBE_TIMEOUT", 5.0),
            "user_agent": os.getenv("AUDIT_USER_AGENT", DEFAULT_USER_AGENT),
            "pool_size": _env_int("AUDIT_POOL_SIZE", 4),
            "task_timeout": _env_float("AUDIT_TASK_TIMEOUT", 60.0),
            "max_retries": _env_int("AUDIT_MAX_RETRIES", 2),
            "retry_backoff": _env_float("AUDIT_RETRY_BACKOFF", 1.0),
            "settle_delay": _env_float("AUDIT_SETTLE_DELAY", 2.0),
            "navigation_timeout": _env_float("AUDIT_NAVIGATION_TIMEOUT", 30.0),
            "sitemap_url_cap": _env_int("AUDIT_SITEMAP_URL_CAP", DEFAULT_SITEMAP_URL_CAP),
            "similarity_threshold": _env_float(
                "AUDIT_SIMILARITY_THRESHOLD", DEFAULT_SIMILARITY_THRESHOLD
            ),
            "weight_by_page_priority": _env_bool("AUDIT_WEIGHT_BY_PAGE_PRIORITY", False),
        }
        values.update(overrides)
        return cls(**values)

    def http_headers(self) -> Dict[str, str]:
        """Default headers for every outbound request."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }


def get_default_config(overrides: Optional[Dict] = None) -> AuditConfig:
    """Config from the environment with optional overrides."""
    return AuditConfig.from_env(**(overrides or {}))
