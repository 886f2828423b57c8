from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import yaml

from .condition import evaluate_condition, extract_fact_keys, validate_condition
from .models import API_LOCATION, CATEGORIES, CONTEXTS, SCOPES, SEVERITIES, Fact, Finding, Rule

_LOG = logging.getLogger(__name__)

_REQUIRED_RULE_KEYS = {"id", "title", "category", "severity", "scope", "condition", "fix"}

BUNDLED_CATALOG = Path(__file__).resolve().parent.parent / "rules" / "api_design.yaml"


@dataclass
class EvalResult:
    """Result of a rule evaluation: findings + any warnings produced."""
    findings: list[Finding]
    warnings: list[str] = field(default_factory=list)


class CatalogLoadError(Exception):
    """Raised when a rule catalog file is missing or malformed."""


class RuleCatalog:
    """Immutable set of design rules loaded from a YAML catalog."""

    def __init__(self, catalog_path: Path = BUNDLED_CATALOG, rules: Iterable[Rule] | None = None) -> None:
        self.path = catalog_path
        if rules is not None:
            self._rules = tuple(rules)
            return

        try:
            with open(catalog_path, encoding="utf-8") as f:
                catalog = yaml.safe_load(f)
        except FileNotFoundError:
            raise CatalogLoadError(f"rule catalog not found: {catalog_path}") from None
        except yaml.YAMLError as e:
            raise CatalogLoadError(f"{catalog_path}: invalid YAML: {e}") from e

        if not isinstance(catalog, dict):
            raise CatalogLoadError(f"{catalog_path}: expected a YAML mapping at top level")

        raw_rules = catalog.get("rules", [])
        if not isinstance(raw_rules, list):
            raise CatalogLoadError(f"{catalog_path}: 'rules' must be a list")

        errors = _validate_rules(raw_rules)
        if errors:
            joined = "\n  ".join(errors)
            raise CatalogLoadError(f"{catalog_path}: rule catalog validation failed:\n  {joined}")

        self._rules = tuple(_build_rule(r) for r in raw_rules)
        _LOG.debug("loaded %d rules from %s", len(self._rules), catalog_path)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)

    def get(self, rule_id: str) -> Rule:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        raise KeyError(rule_id)

    def select(self, disabled: Iterable[str]) -> RuleCatalog:
        """Return a catalog without the disabled rules."""
        disabled = set(disabled)
        unknown = disabled - {r.id for r in self._rules}
        if unknown:
            raise CatalogLoadError(f"cannot disable unknown rule(s): {', '.join(sorted(unknown))}")
        return RuleCatalog(self.path, rules=[r for r in self._rules if r.id not in disabled])


class RuleEngine:
    """Evaluates catalog rules against facts collected from an API model."""

    def __init__(self, catalog: RuleCatalog, context: str = "public") -> None:
        if context not in CONTEXTS:
            raise ValueError(f"unknown context '{context}' (valid: {', '.join(CONTEXTS)})")
        self.catalog = catalog
        self.context = context

    def evaluate(self, facts: list[Fact]) -> EvalResult:
        by_location, collisions = _group_facts(facts)
        warnings: list[str] = []
        for (location, key), sources in collisions.items():
            warnings.append(
                f"fact '{key}' at {location} collected {len(sources)} times "
                f"(sources: {', '.join(sources)}), using last value"
            )

        api_facts = by_location.pop(API_LOCATION, {})
        api_map = {k: f.value for k, f in api_facts.items()}

        findings: list[Finding] = []
        for rule in self.catalog:
            fact_keys = extract_fact_keys(rule.condition)

            if rule.scope == "api":
                if evaluate_condition(rule.condition, api_map):
                    findings.append(self._finding(rule, API_LOCATION, api_facts, fact_keys))
                continue

            for location, endpoint_facts in by_location.items():
                merged = {**api_facts, **endpoint_facts}
                fact_map = {k: f.value for k, f in merged.items()}
                if evaluate_condition(rule.condition, fact_map):
                    findings.append(self._finding(rule, location, merged, fact_keys))

        _LOG.debug(
            "evaluated %d rules over %d endpoints: %d findings",
            len(self.catalog), len(by_location), len(findings),
        )
        return EvalResult(findings=findings, warnings=warnings)

    def _finding(self, rule: Rule, location: str, facts: dict[str, Fact], fact_keys: set[str]) -> Finding:
        evidence = [f for k, f in facts.items() if k in fact_keys]
        field_path = next((f.field for f in evidence if f.field), None)
        return Finding(
            rule_id=rule.id,
            title=rule.title,
            category=rule.category,
            severity=rule.severity_for(self.context),
            location=location,
            message=_render(rule.message or rule.title, location, field_path),
            fix=rule.fix,
            evidence=evidence,
            field=field_path,
        )


class _TemplateVars(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def _render(template: str, location: str, field_path: str | None) -> str:
    return template.format_map(_TemplateVars(location=location, field=field_path or ""))


def _group_facts(facts: list[Fact]) -> tuple[dict[str, dict[str, Fact]], dict[tuple[str, str], list[str]]]:
    """Group facts by location, preserving first-seen location order.

    Returns (by_location, collisions); collisions maps duplicate
    (location, key) pairs to their list of sources.
    """
    by_location: dict[str, dict[str, Fact]] = {}
    sources: dict[tuple[str, str], list[str]] = {}
    for f in facts:
        sources.setdefault((f.location, f.key), []).append(f.source)
        by_location.setdefault(f.location, {})[f.key] = f
    collisions = {k: v for k, v in sources.items() if len(v) > 1}
    return by_location, collisions


def _build_rule(raw: dict) -> Rule:
    return Rule(
        id=raw["id"],
        title=raw["title"],
        category=raw["category"],
        severity=raw["severity"],
        scope=raw["scope"],
        condition=raw["condition"],
        fix=str(raw["fix"]).strip(),
        message=str(raw.get("message", "")).strip(),
        context_severity=dict(raw.get("context_severity") or {}),
    )


def _validate_rules(rules: list) -> list[str]:
    """Validate that every rule has required keys, known enums and well-formed conditions."""
    errors: list[str] = []
    seen_ids: set[str] = set()
    for i, rule in enumerate(rules):
        if not isinstance(rule, dict):
            errors.append(f"rules[{i}]: expected dict, got {type(rule).__name__}")
            continue
        label = f"rules[{i}] (id={rule.get('id', '?')})"
        missing = _REQUIRED_RULE_KEYS - rule.keys()
        if missing:
            errors.append(f"{label}: missing keys: {sorted(missing)}")

        rule_id = rule.get("id")
        if rule_id in seen_ids:
            errors.append(f"{label}: duplicate rule id")
        seen_ids.add(rule_id)

        if "severity" in rule and rule["severity"] not in SEVERITIES:
            errors.append(f"{label}: unknown severity '{rule['severity']}'")
        if "category" in rule and rule["category"] not in CATEGORIES:
            errors.append(f"{label}: unknown category '{rule['category']}'")
        if "scope" in rule and rule["scope"] not in SCOPES:
            errors.append(f"{label}: unknown scope '{rule['scope']}'")

        overrides = rule.get("context_severity")
        if overrides is not None:
            if not isinstance(overrides, dict):
                errors.append(f"{label}: context_severity must be a mapping")
            else:
                for ctx, sev in overrides.items():
                    if ctx not in CONTEXTS:
                        errors.append(f"{label}: unknown context '{ctx}' in context_severity")
                    if sev not in SEVERITIES:
                        errors.append(f"{label}: unknown severity '{sev}' in context_severity")

        if "condition" in rule:
            for err in validate_condition(rule["condition"]):
                errors.append(f"{label}: {err}")
    return errors
