"""
Configuration, Logging and Progress Tests

Run with: python3 -m pytest tests/test_config.py -v
"""

import logging

import pytest

from runner.logging_setup import ROOT_LOGGER, get_logger, setup_logging
from site_audit.config import DEFAULT_CATEGORY_WEIGHTS, AuditConfig, get_default_config
from site_audit.progress import PHASE_FRACTIONS, ProgressReporter


class TestAuditConfig:
    """Defaults, validation and environment overrides."""

    def test_defaults(self):
        config = AuditConfig()
        assert config.max_pages == 25
        assert config.pool_size == 4
        assert config.task_timeout == 60.0
        assert config.max_retries == 2
        assert config.similarity_threshold == 0.85
        assert config.category_weights == DEFAULT_CATEGORY_WEIGHTS
        assert config.weight_by_page_priority is False

    @pytest.mark.parametrize("overrides", [
        {"max_pages": 0},
        {"pool_size": 0},
        {"max_retries": -1},
        {"similarity_threshold": 0.0},
        {"similarity_threshold": 1.5},
        {"category_weights": {"content": 0.5, "technical": 0.2}},
    ])
    def test_validation(self, overrides):
        with pytest.raises(ValueError):
            AuditConfig(**overrides)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AUDIT_MAX_PAGES", "7")
        monkeypatch.setenv("AUDIT_ANALYZE_JAVASCRIPT", "false")
        monkeypatch.setenv("AUDIT_SIMILARITY_THRESHOLD", "0.9")
        config = AuditConfig.from_env()
        assert config.max_pages == 7
        assert config.analyze_javascript is False
        assert config.similarity_threshold == 0.9

    def test_overrides_beat_env(self, monkeypatch):
        monkeypatch.setenv("AUDIT_MAX_PAGES", "7")
        assert get_default_config({"max_pages": 3}).max_pages == 3

    def test_http_headers(self):
        headers = AuditConfig(user_agent="site-audit-test").http_headers()
        assert headers["User-Agent"] == "site-audit-test"
        assert "text/html" in headers["Accept"]


class TestProgressReporter:
    """Monotonic progress events."""

    def test_monotonic_and_clamped(self):
        seen = []
        reporter = ProgressReporter(lambda fraction, message: seen.append(fraction))
        reporter.emit(0.5, "half")
        reporter.emit(0.3, "backwards")
        reporter.emit(1.7, "overshoot")
        assert seen == [0.5, 0.5, 1.0]

    def test_phase_fractions(self):
        reporter = ProgressReporter()
        event = reporter.phase("discovery", "found pages")
        assert event.fraction == PHASE_FRACTIONS["discovery"]
        assert event.phase == "discovery"

    def test_fetch_progress_interpolates(self):
        reporter = ProgressReporter()
        reporter.phase("fetch_start", "start")
        event = reporter.fetch_progress(1, 2)
        midpoint = (PHASE_FRACTIONS["fetch_start"] + PHASE_FRACTIONS["fetch_end"]) / 2
        assert event.fraction == pytest.approx(midpoint)

    def test_analysis_progress_stays_below_complete(self):
        reporter = ProgressReporter()
        event = reporter.analysis_progress(3, 3)
        assert event.fraction < 1.0

    def test_failing_callback_ignored(self):
        def explode(fraction, message):
            raise RuntimeError("UI went away")

        reporter = ProgressReporter(explode)
        reporter.phase("complete", "done")
        assert reporter.fraction == 1.0
        assert len(reporter.events) == 1


class TestLogging:
    """Shared logger hierarchy."""

    def test_component_loggers_share_root(self):
        logger = get_logger("page_fetcher")
        assert logger.name == "site_audit.page_fetcher"
        assert logger.handlers == []
        assert logging.getLogger(ROOT_LOGGER).handlers
        assert get_logger("site_audit.scoring").name == "site_audit.scoring"

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "audit.log"
        try:
            setup_logging(log_file=str(log_file), log_level="debug")
            get_logger("progress").info("written to file")
            for handler in logging.getLogger(ROOT_LOGGER).handlers:
                handler.flush()
            assert "site_audit.progress - INFO - written to file" in log_file.read_text(encoding="utf-8")
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in logging.getLogger(ROOT_LOGGER).handlers:
                handler.close()
            setup_logging()
