"""Tests for project config discovery and validation."""
from pathlib import Path

import pytest

from apigrade.settings import ENV_VAR, ConfigError, ConfigLocator, ProjectConfig, load_config


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(ENV_VAR, raising=False)


def test_defaults_without_config():
    config = load_config()
    assert config == ProjectConfig()
    assert config.context == "public"
    assert config.fail_on == "critical"


def test_discovers_config_in_working_directory(tmp_path):
    (tmp_path / ".apigrade.yaml").write_text(
        "context: internal\nfail_on: warning\nformat: markdown\ndisable: [DOC-001]\n"
    )
    config = load_config()
    assert config.context == "internal"
    assert config.fail_on == "warning"
    assert config.output_format == "markdown"
    assert config.disabled_rules == ["DOC-001"]
    assert config.path == Path(".apigrade.yaml")


def test_env_var_takes_precedence(tmp_path, monkeypatch):
    (tmp_path / ".apigrade.yaml").write_text("context: public\n")
    other = tmp_path / "ci.yaml"
    other.write_text("context: internal\n")
    monkeypatch.setenv(ENV_VAR, str(other))
    assert load_config().context == "internal"


def test_env_var_pointing_to_missing_file(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_VAR, str(tmp_path / "nope.yaml"))
    with pytest.raises(ConfigError, match="missing file"):
        load_config()


def test_explicit_path_must_exist(tmp_path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(tmp_path / "missing.yaml")


def test_rules_path_is_relative_to_config(tmp_path):
    config_dir = tmp_path / "conf"
    config_dir.mkdir()
    path = config_dir / "apigrade.yaml"
    path.write_text("rules: house-rules.yaml\n")
    config = load_config(path)
    assert config.rules_path == config_dir / "house-rules.yaml"


def test_empty_config_file_uses_defaults(tmp_path):
    (tmp_path / ".apigrade.yml").write_text("")
    config = load_config()
    assert config.context == "public"
    assert config.path == Path(".apigrade.yml")


def test_rejects_unknown_keys_and_values(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("context: partner\nfail_on: high\nthreshold: 3\n")
    with pytest.raises(ConfigError) as exc:
        load_config(path)
    message = str(exc.value)
    assert "config validation failed" in message
    assert "unknown keys: ['threshold']" in message
    assert "context:" in message
    assert "fail_on:" in message


def test_rejects_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- context\n")
    with pytest.raises(ConfigError, match="expected a YAML mapping"):
        load_config(path)


def test_searched_locations(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_VAR, "/etc/apigrade.yaml")
    locations = ConfigLocator(tmp_path / "explicit.yaml").searched_locations()
    assert locations[0] == str(tmp_path / "explicit.yaml")
    assert locations[1] == f"${ENV_VAR} (/etc/apigrade.yaml)"
    assert locations[2:] == [".apigrade.yaml", ".apigrade.yml"]
