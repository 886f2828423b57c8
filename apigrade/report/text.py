from __future__ import annotations

from .grading import Report


def render_text(report: Report) -> str:
    lines: list[str] = [
        f"{report.title}: grade {report.grade} "
        f"({report.counts['critical']} critical, {report.counts['warning']} warnings, "
        f"{report.counts['suggestion']} suggestions; "
        f"{report.endpoints_reviewed} endpoints, {report.context} context)",
        "",
    ]
    if not report.findings:
        lines.append("Review complete. No issues found for the rules checked.")
        return "\n".join(lines) + "\n"

    for finding in report.findings:
        lines.append(f"[{finding.severity.upper()}] {finding.rule_id}: {finding.title}")
        lines.append(f"  at: {finding.location}" + (f" ({finding.field})" if finding.field else ""))
        lines.append(f"  {finding.message}")
        lines.append(f"  fix: {finding.fix}")
        lines.append("")
    return "\n".join(lines)
