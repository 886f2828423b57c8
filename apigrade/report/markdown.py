"""Markdown rendering of a design review.

Layout::

    # API Design Review: <title>
    **Grade: B** | 0 critical | 4 warnings | 2 suggestions
    ## Critical Issues / ## Warnings / ## Suggestions
    ## Summary by Category
"""
from __future__ import annotations

from ..core.models import SEVERITIES
from .grading import Report

_SECTION_TITLES = {
    "critical": "Critical Issues",
    "warning": "Warnings",
    "suggestion": "Suggestions",
}


def render_markdown(report: Report) -> str:
    out: list[str] = [f"# API Design Review: {report.title}", ""]

    meta = [f"**Grade: {report.grade}**"]
    meta.extend(f"{report.counts[s]} {_plural(s, report.counts[s])}" for s in SEVERITIES)
    out.append(" | ".join(meta))
    out.append("")
    details = f"Endpoints reviewed: {report.endpoints_reviewed} | Context: {report.context}"
    if report.api_version:
        details += f" | Version: {report.api_version}"
    out.append(details)
    out.append("")

    for severity in SEVERITIES:
        findings = report.by_severity(severity)
        if not findings:
            continue
        out.append(f"## {_SECTION_TITLES[severity]}")
        out.append("")
        for f in findings:
            out.append(f"### [{f.rule_id}] {f.title}")
            location = f"`{f.location}`"
            if f.field:
                location += f" ({_escape(f.field)})"
            out.append(f"- **Location:** {location}")
            out.append(f"- **Issue:** {_escape(f.message)}")
            out.append(f"- **Fix:** {_escape(f.fix)}")
            out.append("")

    if not report.findings:
        out.append("No issues found for the rules checked.")
        out.append("")

    out.append("## Summary by Category")
    out.append("")
    out.append("| Category | Critical | Warning | Suggestion |")
    out.append("|---|---|---|---|")
    for category, counts in report.by_category().items():
        out.append(f"| {category} | {counts['critical']} | {counts['warning']} | {counts['suggestion']} |")
    out.append("")
    return "\n".join(out)


def _plural(severity: str, count: int) -> str:
    if severity == "critical" or count == 1:
        return severity
    return severity + "s"


def _escape(text: str) -> str:
    return text.replace("|", "\\|")
