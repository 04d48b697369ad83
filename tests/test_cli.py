"""
CLI Runner Tests

The audit itself is replaced with a canned result; these tests cover
argument handling, output and exit codes.

Run with: python3 -m pytest tests/test_cli.py -v
"""

import json

import pytest

from runner import main as cli
from site_audit.exceptions import AuditCancelledError, WorkerPoolInitError
from site_audit.models import AuditResult, SiteProfile


def canned_result(url="https://example.com/"):
    return AuditResult(
        base_url=url,
        site_profile=SiteProfile(base_url=url),
        pages=(),
        classifications=(),
        total_factors=0,
        status_counts={"OK": 0, "OFI": 0, "Priority OFI": 0, "N/A": 0},
        overall_score=0,
        category_scores={},
        recommendations=("Address 2 Priority OFI items immediately",),
        severity={"score": 100, "severity": "low"},
        priority_distribution={
            "tier1": {"count": 1, "percentage": 100},
            "tier2": {"count": 0, "percentage": 0},
            "tier3": {"count": 0, "percentage": 0},
        },
    )


@pytest.fixture
def captured(monkeypatch):
    """Replace audit_site and record the config it was called with."""
    calls = {}

    def fake_audit_site(url, config=None):
        calls["url"] = url
        calls["config"] = config
        return canned_result()

    monkeypatch.setattr(cli, "audit_site", fake_audit_site)
    return calls


class TestArguments:
    """Argument parsing and config building."""

    def test_flags_override_config(self, monkeypatch):
        monkeypatch.setenv("AUDIT_MAX_PAGES", "40")
        args = cli.parse_args(["example.com", "--max-pages", "5", "--no-javascript", "--include-subdomains"])
        config = cli.build_config(args)
        assert config.max_pages == 5
        assert config.analyze_javascript is False
        assert config.include_subdomains is True

    def test_env_used_without_flags(self, monkeypatch):
        monkeypatch.setenv("AUDIT_MAX_PAGES", "40")
        config = cli.build_config(cli.parse_args(["example.com"]))
        assert config.max_pages == 40

    def test_default_output_path(self):
        path = cli.default_output_path("https://www.example.com:8080/shop")
        assert path.name.startswith("audit_www.example.com_8080_")
        assert path.suffix == ".json"


class TestMain:
    """Exit codes and JSON output."""

    def test_success_writes_json(self, captured, tmp_path):
        output = tmp_path / "out" / "audit.json"
        assert cli.main(["https://example.com", "--output", str(output)]) == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["base_url"] == "https://example.com/"
        assert data["summary"]["overall_score"] == 0
        assert data["priority_distribution"]["tier1"] == {"count": 1, "percentage": 100}
        assert captured["url"] == "https://example.com"

    def test_invalid_config_exit_2(self, captured, tmp_path):
        assert cli.main(["https://example.com", "--max-pages", "0", "--output", str(tmp_path / "x.json")]) == 2

    @pytest.mark.parametrize("error,code", [
        (WorkerPoolInitError("no chromium"), 2),
        (AuditCancelledError("stopped"), 130),
        (KeyboardInterrupt(), 130),
        (RuntimeError("unexpected"), 1),
    ])
    def test_error_exit_codes(self, monkeypatch, tmp_path, error, code):
        def failing_audit_site(url, config=None):
            raise error

        monkeypatch.setattr(cli, "audit_site", failing_audit_site)
        assert cli.main(["https://example.com", "--output", str(tmp_path / "x.json")]) == code
        assert not (tmp_path / "x.json").exists()
