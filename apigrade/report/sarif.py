"""SARIF exporter for design review findings."""
from __future__ import annotations

from typing import Dict, List

from .. import __version__
from ..core.engine import RuleCatalog
from ..core.models import API_LOCATION, Finding
from .grading import Report

_LEVEL_MAP = {
    "critical": "error",
    "warning": "warning",
    "suggestion": "note",
}


def to_sarif(
    report: Report,
    catalog: RuleCatalog,
    *,
    tool_name: str = "apigrade",
    tool_version: str = __version__,
) -> Dict[str, object]:
    return {
        "version": "2.1.0",
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": tool_name,
                        "version": tool_version,
                        "rules": _build_rules(catalog),
                    }
                },
                "results": _build_results(report.findings, report.source),
                "properties": {
                    "grade": report.grade,
                    "context": report.context,
                    "counts": report.counts,
                },
            }
        ],
    }


def _build_rules(catalog: RuleCatalog) -> List[Dict[str, object]]:
    return [
        {
            "id": rule.id,
            "name": rule.title,
            "shortDescription": {"text": rule.title},
            "help": {"text": rule.fix},
            "defaultConfiguration": {"level": _LEVEL_MAP[rule.severity]},
            "properties": {"category": rule.category},
        }
        for rule in catalog
    ]


def _build_results(findings: List[Finding], source: str) -> List[Dict[str, object]]:
    results: List[Dict[str, object]] = []
    for f in findings:
        location: Dict[str, object] = {
            "logicalLocations": [{"name": f.location, "kind": "module" if f.location == API_LOCATION else "endpoint"}],
        }
        if source:
            location["physicalLocation"] = {"artifactLocation": {"uri": source}}
        results.append(
            {
                "ruleId": f.rule_id,
                "level": _LEVEL_MAP.get(f.severity, "warning"),
                "message": {"text": f.message},
                "properties": {
                    "severity": f.severity,
                    "category": f.category,
                    "field": f.field,
                    "fix": f.fix,
                },
                "locations": [location],
            }
        )
    return results


__all__ = ["to_sarif"]
