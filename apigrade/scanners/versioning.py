from __future__ import annotations

import re

from ..core.models import Fact
from ..ingest.models import ApiModel
from .naming import is_version_segment

_SERVER_VERSION_RE = re.compile(r"/v\d+(\.\d+)?(/|$)", re.IGNORECASE)

_VERSION_HEADERS = {"api-version", "x-api-version", "accept-version", "x-version", "version"}
_VERSION_QUERY_PARAMS = {"version", "api-version", "api_version", "v"}


class VersioningScanner:
    """Detects how (and whether) the API is versioned."""

    name = "versioning"

    def scan(self, api: ApiModel) -> list[Fact]:
        versioned = [e for e in api.endpoints if any(is_version_segment(s) for s in e.segments)]
        unversioned = [e for e in api.endpoints if e not in versioned]
        query_versioned = [
            e.location for e in api.endpoints
            if any(p.name.lower() in _VERSION_QUERY_PARAMS for p in e.parameters_in("query"))
        ]
        header_versioned = any(
            p.name.lower() in _VERSION_HEADERS
            for e in api.endpoints for p in e.parameters_in("header")
        )

        if versioned:
            strategy = "path"
        elif any(_SERVER_VERSION_RE.search(url) for url in api.servers):
            strategy = "server"
        elif header_versioned:
            strategy = "header"
        elif query_versioned:
            strategy = "query"
        else:
            strategy = "none"

        mixed = bool(versioned) and bool(unversioned)
        return [
            Fact(key="versioning.strategy", value=strategy, source=self.name),
            Fact(key="versioning.mixed_paths", value=mixed, source=self.name,
                 field=", ".join(e.location for e in unversioned[:3]) if mixed else None),
            Fact(key="versioning.query_parameter", value=bool(query_versioned), source=self.name,
                 field=", ".join(query_versioned[:3]) or None),
        ]
