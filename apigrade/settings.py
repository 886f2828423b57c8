from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .core.models import CONTEXTS, SEVERITIES

_LOG = logging.getLogger(__name__)

_SEARCH_PATHS = [
    Path(".apigrade.yaml"),
    Path(".apigrade.yml"),
]

ENV_VAR = "APIGRADE_CONFIG"

OUTPUT_FORMATS = ("text", "json", "markdown", "sarif")
FAIL_ON_CHOICES = (*SEVERITIES, "none")

_KNOWN_KEYS = {"context", "fail_on", "format", "disable", "rules"}


class ConfigError(Exception):
    """Raised when a project config file is missing or malformed."""


@dataclass
class ProjectConfig:
    context: str = "public"
    fail_on: str = "critical"
    output_format: str = "text"
    disabled_rules: list[str] = field(default_factory=list)
    rules_path: Path | None = None
    path: Path | None = None


class ConfigLocator:
    """Locates the project config: explicit path, $APIGRADE_CONFIG, then the working directory."""

    def __init__(self, config_path: Path | None = None) -> None:
        self._explicit_path = config_path

    def searched_locations(self) -> list[str]:
        """Return the list of paths that would be checked, in order."""
        locations: list[str] = []
        if self._explicit_path:
            locations.append(str(self._explicit_path))
        env_path = os.environ.get(ENV_VAR)
        if env_path:
            locations.append(f"${ENV_VAR} ({env_path})")
        locations.extend(str(p) for p in _SEARCH_PATHS)
        return locations

    def resolve(self) -> Path | None:
        if self._explicit_path:
            if not self._explicit_path.is_file():
                raise ConfigError(f"config file not found: {self._explicit_path}")
            return self._explicit_path

        env_path = os.environ.get(ENV_VAR)
        if env_path:
            p = Path(env_path)
            if not p.is_file():
                raise ConfigError(f"${ENV_VAR} points to a missing file: {env_path}")
            return p

        for p in _SEARCH_PATHS:
            if p.is_file():
                return p

        return None


def load_config(config_path: Path | None = None) -> ProjectConfig:
    """Load the project config, or defaults when none is found."""
    path = ConfigLocator(config_path).resolve()
    if path is None:
        _LOG.debug("no project config found; using defaults")
        return ProjectConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a YAML mapping at top level")

    errors = _validate(raw)
    if errors:
        joined = "\n  ".join(errors)
        raise ConfigError(f"{path}: config validation failed:\n  {joined}")

    rules_path = None
    if raw.get("rules"):
        rules_path = Path(raw["rules"])
        if not rules_path.is_absolute():
            rules_path = path.parent / rules_path

    _LOG.debug("loaded project config from %s", path)
    return ProjectConfig(
        context=raw.get("context", "public"),
        fail_on=raw.get("fail_on", "critical"),
        output_format=raw.get("format", "text"),
        disabled_rules=[str(r) for r in raw.get("disable") or []],
        rules_path=rules_path,
        path=path,
    )


def _validate(raw: dict) -> list[str]:
    errors: list[str] = []
    unknown = set(raw) - _KNOWN_KEYS
    if unknown:
        errors.append(f"unknown keys: {sorted(unknown)}")
    if "context" in raw and raw["context"] not in CONTEXTS:
        errors.append(f"context: expected one of {list(CONTEXTS)}, got {raw['context']!r}")
    if "fail_on" in raw and raw["fail_on"] not in FAIL_ON_CHOICES:
        errors.append(f"fail_on: expected one of {list(FAIL_ON_CHOICES)}, got {raw['fail_on']!r}")
    if "format" in raw and raw["format"] not in OUTPUT_FORMATS:
        errors.append(f"format: expected one of {list(OUTPUT_FORMATS)}, got {raw['format']!r}")
    if "disable" in raw and not isinstance(raw["disable"], list):
        errors.append(f"disable: expected a list of rule ids, got {type(raw['disable']).__name__}")
    if "rules" in raw and raw["rules"] is not None and not isinstance(raw["rules"], str):
        errors.append(f"rules: expected a path string, got {type(raw['rules']).__name__}")
    return errors
