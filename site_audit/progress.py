"""
Progress reporting for audit runs.

Each phase emits ProgressEvents through a ProgressReporter; the reporter
forwards them to an optional callback and logs them. Transport (UI, socket,
log stream) is the caller's concern.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from runner.logging_setup import get_logger

logger = get_logger("progress")

# Fraction of the run reached at each phase boundary
PHASE_FRACTIONS = {
    "profiling": 0.05,
    "discovery": 0.20,
    "fetch_start": 0.30,
    "fetch_end": 0.85,
    "dedup": 0.85,
    "analysis_start": 0.90,
    "complete": 1.0,
}


@dataclass(frozen=True)
class ProgressEvent:
    fraction: float
    message: str = ""
    phase: str = ""


ProgressCallback = Callable[[float, Optional[str]], None]


class ProgressReporter:
    """
    Emits monotonically non-decreasing progress fractions in [0, 1].

    A callback that raises is logged and otherwise ignored; progress is
    never allowed to fail an audit.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.fraction = 0.0
        self.events = []

    def emit(self, fraction: float, message: str = "", phase: str = "") -> ProgressEvent:
        fraction = max(self.fraction, min(1.0, max(0.0, fraction)))
        self.fraction = fraction
        event = ProgressEvent(fraction=fraction, message=message, phase=phase)
        self.events.append(event)
        logger.info(f"[{fraction:.0%}] {message}")
        if self.callback is not None:
            try:
                self.callback(fraction, message)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")
        return event

    def phase(self, name: str, message: str) -> ProgressEvent:
        return self.emit(PHASE_FRACTIONS[name], message, phase=name)

    def fetch_progress(self, completed: int, total: int) -> ProgressEvent:
        """Linear progress between the fetch start and end fractions."""
        start, end = PHASE_FRACTIONS["fetch_start"], PHASE_FRACTIONS["fetch_end"]
        share = completed / total if total else 1.0
        return self.emit(start + (end - start) * share, f"Fetched {completed}/{total} pages", phase="fetch")

    def analysis_progress(self, completed: int, total: int) -> ProgressEvent:
        start, end = PHASE_FRACTIONS["analysis_start"], PHASE_FRACTIONS["complete"]
        # Leave the final step to the "complete" event
        share = completed / total if total else 1.0
        return self.emit(
            start + (end - start) * share * 0.9,
            f"Analyzed {completed}/{total} pages",
            phase="analysis",
        )
