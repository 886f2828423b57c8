"""Integration tests for CLI behavior and JSON schema stability."""
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from apigrade import __version__
from apigrade.__main__ import main
from apigrade.core.engine import BUNDLED_CATALOG
from apigrade.settings import ENV_VAR

FIXTURES = Path(__file__).parent / "fixtures"

CLEAN = str(FIXTURES / "bookstore_clean.yaml")
LEGACY = str(FIXTURES / "shop_legacy.yaml")
ROUTES = str(FIXTURES / "routes.txt")


@pytest.fixture(autouse=True)
def _no_project_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(ENV_VAR, raising=False)


def _run_main(*args: str) -> int:
    with patch("sys.argv", ["apigrade", *args]):
        return main()


# --- --fail-on behavior ---

def test_clean_api_exits_0(capsys):
    code = _run_main(CLEAN)
    assert code == 0
    assert "grade A" in capsys.readouterr().out


def test_critical_findings_exit_1(capsys):
    code = _run_main(LEGACY)
    assert code == 1


def test_fail_on_none_always_exits_0(capsys):
    code = _run_main("--fail-on", "none", LEGACY)
    assert code == 0


def test_fail_on_warning_exits_1_without_criticals(capsys):
    """The endpoint list has one critical; disabling it leaves warnings only."""
    assert _run_main("--disable", "HTTP-004", ROUTES) == 0
    assert _run_main("--disable", "HTTP-004", "--fail-on", "warning", ROUTES) == 1


def test_fail_on_suggestion_exits_0_when_clean(capsys):
    assert _run_main("--fail-on", "suggestion", CLEAN) == 0


# --- JSON output ---

def test_json_top_level_keys(capsys):
    _run_main("--json", "--fail-on", "none", LEGACY)
    data = json.loads(capsys.readouterr().out)
    assert set(data.keys()) == {"meta", "summary", "facts", "findings"}


def test_json_meta_keys(capsys):
    _run_main("--format", "json", CLEAN)
    meta = json.loads(capsys.readouterr().out)["meta"]
    assert set(meta.keys()) == {"schema_version", "tool_version", "catalog_path", "source", "source_format", "context"}
    assert meta["tool_version"] == __version__
    assert meta["context"] == "public"


def test_json_finding_keys(capsys):
    _run_main("--json", "--fail-on", "none", LEGACY)
    data = json.loads(capsys.readouterr().out)
    assert data["findings"]
    expected = {"rule_id", "title", "category", "severity", "location", "message", "fix", "evidence", "field"}
    for finding in data["findings"]:
        assert set(finding.keys()) == expected


def test_json_fact_keys(capsys):
    _run_main("--json", CLEAN)
    data = json.loads(capsys.readouterr().out)
    for fact in data["facts"]:
        assert set(fact.keys()) == {"key", "value", "source", "location", "field"}


def test_json_summary(capsys):
    _run_main("--json", "--fail-on", "none", LEGACY)
    summary = json.loads(capsys.readouterr().out)["summary"]
    assert summary["title"] == "Legacy Shop API"
    assert summary["grade"] == "F"
    assert summary["counts"]["critical"] == 8
    assert summary["endpoints_reviewed"] == 5


# --- context and rule selection ---

def test_internal_context(capsys):
    _run_main("--json", "--context", "internal", "--fail-on", "none", LEGACY)
    data = json.loads(capsys.readouterr().out)
    assert data["meta"]["context"] == "internal"
    assert data["summary"]["grade"] == "D"


def test_disable_rule(capsys):
    _run_main("--json", "--disable", "SEC-001", "--fail-on", "none", LEGACY)
    data = json.loads(capsys.readouterr().out)
    assert "SEC-001" not in {f["rule_id"] for f in data["findings"]}


def test_disable_unknown_rule(capsys):
    code = _run_main("--disable", "NOPE-1", CLEAN)
    assert code == 1
    assert "unknown rule" in capsys.readouterr().err


def test_list_rules(capsys):
    code = _run_main("--list-rules", "--context", "internal")
    assert code == 0
    out = capsys.readouterr().out
    assert "SEC-001" in out
    line = next(l for l in out.splitlines() if l.startswith("SEC-001"))
    assert "warning" in line


# --- config file ---

def test_project_config_applies(tmp_path, capsys):
    (tmp_path / ".apigrade.yaml").write_text("context: internal\nfail_on: none\nformat: json\n")
    code = _run_main(LEGACY)
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["meta"]["context"] == "internal"


def test_cli_flags_override_config(tmp_path, capsys):
    (tmp_path / ".apigrade.yaml").write_text("context: internal\nfail_on: none\n")
    code = _run_main("--context", "public", "--fail-on", "critical", LEGACY)
    assert code == 1


def test_invalid_config_exits_1(tmp_path, capsys):
    (tmp_path / ".apigrade.yaml").write_text("severity: high\n")
    code = _run_main(CLEAN)
    assert code == 1
    assert "config validation failed" in capsys.readouterr().err


# --- output formats ---

def test_markdown_output(capsys):
    _run_main("--format", "markdown", "--fail-on", "none", LEGACY)
    out = capsys.readouterr().out
    assert out.startswith("# API Design Review: Legacy Shop API")
    assert "## Critical Issues" in out


def test_sarif_output(capsys):
    _run_main("--format", "sarif", "--fail-on", "none", LEGACY)
    sarif = json.loads(capsys.readouterr().out)
    assert sarif["version"] == "2.1.0"
    assert sarif["runs"][0]["tool"]["driver"]["name"] == "apigrade"


def test_output_file(tmp_path, capsys):
    target = tmp_path / "report.md"
    code = _run_main("--format", "markdown", "-o", str(target), CLEAN)
    assert code == 0
    assert target.read_text().startswith("# API Design Review: Bookstore API")
    assert capsys.readouterr().out == ""


# --- warnings and errors ---

def test_endpoint_list_warnings_go_to_stderr(capsys):
    _run_main("--fail-on", "none", ROUTES)
    captured = capsys.readouterr()
    assert "warning: " in captured.err
    assert "duplicate endpoint" in captured.err
    assert "duplicate endpoint" not in captured.out


def test_missing_spec_argument(capsys):
    code = _run_main()
    assert code == 1
    assert "an API description file is required" in capsys.readouterr().err


def test_missing_spec_file(tmp_path, capsys):
    code = _run_main(str(tmp_path / "missing.yaml"))
    assert code == 1
    assert "API description not found" in capsys.readouterr().err


def test_missing_rules_file(tmp_path, capsys):
    code = _run_main("--rules", str(tmp_path / "missing.yaml"), CLEAN)
    assert code == 1
    assert "rule catalog not found" in capsys.readouterr().err


def test_bundled_catalog_exists():
    assert BUNDLED_CATALOG.is_file()
