from __future__ import annotations

from dataclasses import dataclass, field

from ..core.engine import EvalResult
from ..core.models import CATEGORIES, SEVERITIES, SEVERITY_RANK, Finding
from ..ingest.models import ApiModel

# (grade, max critical, max warnings); suggestions never affect the grade
GRADE_RUBRIC = (
    ("A", 0, 2),
    ("B", 0, 5),
    ("C", 1, 10),
    ("D", 3, None),
)
FAILING_GRADE = "F"


@dataclass
class Report:
    title: str
    api_version: str
    source: str
    source_format: str
    context: str
    endpoints_reviewed: int
    findings: list[Finding]
    counts: dict[str, int]
    grade: str
    warnings: list[str] = field(default_factory=list)

    def by_severity(self, severity: str) -> list[Finding]:
        return [f for f in self.findings if f.severity == severity]

    def by_category(self) -> dict[str, dict[str, int]]:
        """Severity counts per category, in catalog category order."""
        table = {c: {s: 0 for s in SEVERITIES} for c in CATEGORIES}
        for f in self.findings:
            table.setdefault(f.category, {s: 0 for s in SEVERITIES})[f.severity] += 1
        return table


def count_findings(findings: list[Finding]) -> dict[str, int]:
    counts = {s: 0 for s in SEVERITIES}
    for f in findings:
        counts[f.severity] += 1
    return counts


def grade(counts: dict[str, int]) -> str:
    """Map severity counts to a letter grade."""
    critical = counts.get("critical", 0)
    warnings = counts.get("warning", 0)
    for letter, max_critical, max_warnings in GRADE_RUBRIC:
        if critical <= max_critical and (max_warnings is None or warnings <= max_warnings):
            return letter
    return FAILING_GRADE


def build_report(api: ApiModel, result: EvalResult, context: str, source: str = "") -> Report:
    findings = sorted(result.findings, key=lambda f: -SEVERITY_RANK[f.severity])
    counts = count_findings(findings)
    return Report(
        title=api.title or source or "API",
        api_version=api.version,
        source=source,
        source_format=api.source_format,
        context=context,
        endpoints_reviewed=len(api.endpoints),
        findings=findings,
        counts=counts,
        grade=grade(counts),
        warnings=[*api.warnings, *result.warnings],
    )
