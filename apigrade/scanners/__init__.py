from __future__ import annotations

from ..core.models import Fact
from ..ingest.models import ApiModel
from .docs import DocumentationScanner
from .errors import ErrorHandlingScanner
from .http_semantics import HttpSemanticsScanner
from .naming import NamingScanner
from .responses import ResponseDesignScanner
from .security import SecurityScanner
from .versioning import VersioningScanner

DEFAULT_SCANNERS = (
    NamingScanner(),
    HttpSemanticsScanner(),
    ResponseDesignScanner(),
    ErrorHandlingScanner(),
    VersioningScanner(),
    SecurityScanner(),
    DocumentationScanner(),
)


def collect_facts(api: ApiModel, scanners=DEFAULT_SCANNERS) -> list[Fact]:
    """Run every scanner over the API model and concatenate their facts."""
    facts: list[Fact] = []
    for scanner in scanners:
        facts.extend(scanner.scan(api))
    return facts


__all__ = [
    "DEFAULT_SCANNERS",
    "DocumentationScanner",
    "ErrorHandlingScanner",
    "HttpSemanticsScanner",
    "NamingScanner",
    "ResponseDesignScanner",
    "SecurityScanner",
    "VersioningScanner",
    "collect_facts",
]
