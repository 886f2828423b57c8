from __future__ import annotations

from dataclasses import asdict

from ..core.models import Fact
from .grading import Report

SCHEMA_VERSION = "0.1"


def to_json(report: Report, facts: list[Fact], *, catalog_path: str, tool_version: str) -> dict:
    """Build the machine-readable report: meta, summary, facts, findings."""
    meta: dict = {
        "schema_version": SCHEMA_VERSION,
        "tool_version": tool_version,
        "catalog_path": catalog_path,
        "source": report.source,
        "source_format": report.source_format,
        "context": report.context,
    }
    if report.warnings:
        meta["warnings"] = list(report.warnings)
    return {
        "meta": meta,
        "summary": {
            "title": report.title,
            "grade": report.grade,
            "counts": dict(report.counts),
            "endpoints_reviewed": report.endpoints_reviewed,
        },
        "facts": [asdict(f) for f in facts],
        "findings": [asdict(f) for f in report.findings],
    }
