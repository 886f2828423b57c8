from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SEVERITIES = ("critical", "warning", "suggestion")
SEVERITY_RANK = {"suggestion": 0, "warning": 1, "critical": 2}

CATEGORIES = (
    "naming",
    "http-semantics",
    "response-design",
    "error-handling",
    "versioning",
    "security",
    "documentation",
)

CONTEXTS = ("public", "internal")

SCOPES = ("endpoint", "api")

# Location used for facts and findings that apply to the API as a whole
API_LOCATION = "api"


@dataclass
class Fact:
    key: str
    value: Any
    source: str
    location: str = API_LOCATION
    field: str | None = None


@dataclass(frozen=True)
class Rule:
    id: str
    title: str
    category: str
    severity: str
    scope: str
    condition: dict
    fix: str
    message: str = ""
    context_severity: dict[str, str] = field(default_factory=dict)

    def severity_for(self, context: str) -> str:
        return self.context_severity.get(context, self.severity)


@dataclass
class Finding:
    rule_id: str
    title: str
    category: str
    severity: str
    location: str
    message: str
    fix: str
    evidence: list[Fact]
    field: str | None = None
