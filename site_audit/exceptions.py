"""
Error taxonomy for the audit pipeline.

Only WorkerPoolInitError (and caller-requested cancellation) escape run_audit;
every other kind is caught at the narrowest scope and degrades the result.
"""

from typing import Optional


class AuditError(Exception):
    """Base class for all audit pipeline errors."""


class NetworkError(AuditError):
    """Fetch or timeout failure for a single URL. Retried, then skipped."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status: Optional[int] = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.url = url
        self.status = status
        self.retryable = retryable


class ParseError(AuditError):
    """Malformed HTML, XML or JSON. Degrades the affected record."""


class ProfilingError(AuditError):
    """Site technology detection failed. The run falls back to static mode."""


class WorkerPoolInitError(AuditError):
    """The headless-browser pool could not start. Fatal to the run."""


class AnalysisError(AuditError):
    """A single analyzer failed on a page. That analyzer contributes no factors."""

    def __init__(self, message: str, analyzer: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message)
        self.analyzer = analyzer
        self.url = url


class AuditCancelledError(AuditError):
    """The caller cancelled the run. Partial results are discarded."""
