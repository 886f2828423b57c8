from __future__ import annotations

from .grading import GRADE_RUBRIC, Report, build_report, count_findings, grade
from .markdown import render_markdown
from .sarif import to_sarif
from .serialize import to_json
from .text import render_text

__all__ = [
    "GRADE_RUBRIC",
    "Report",
    "build_report",
    "count_findings",
    "grade",
    "render_markdown",
    "render_text",
    "to_json",
    "to_sarif",
]
