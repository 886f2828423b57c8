from __future__ import annotations

import re
from http import HTTPStatus

from ..core.models import Fact
from ..ingest.models import ApiModel, Endpoint
from .naming import MUTATING_VERBS, verb_in_segment

_REGISTERED_STATUS = {str(s.value) for s in HTTPStatus}
_STATUS_RANGE_RE = re.compile(r"^[1-5]XX$")

_SAFE_METHODS = {"GET", "HEAD"}


class HttpSemanticsScanner:
    """Extracts facts about method usage and status codes."""

    name = "http_semantics"

    def scan(self, api: ApiModel) -> list[Fact]:
        facts: list[Fact] = []
        for endpoint in api.endpoints:
            facts.extend(self._shape_facts(endpoint))
            if api.detailed:
                facts.extend(self._response_facts(endpoint))
        return facts

    def _shape_facts(self, endpoint: Endpoint) -> list[Fact]:
        """Facts that only need the method and path."""
        location = endpoint.location
        mutating = [
            s.value for s in endpoint.literal_segments
            if verb_in_segment(s) in MUTATING_VERBS
        ]
        collection_wide = (
            endpoint.method in ("PUT", "DELETE")
            and bool(endpoint.segments)
            and not endpoint.has_id_parameter
        )
        return [
            Fact(key="http.safe_method_mutates",
                 value=endpoint.method in _SAFE_METHODS and bool(mutating),
                 source=self.name, location=location, field=", ".join(mutating) or None),
            Fact(key="http.collection_wide_mutation", value=collection_wide,
                 source=self.name, location=location),
        ]

    def _response_facts(self, endpoint: Endpoint) -> list[Fact]:
        location = endpoint.location
        codes = set(endpoint.status_codes)
        nonstandard = [
            c for c in endpoint.status_codes
            if c != "default" and c not in _REGISTERED_STATUS and not _STATUS_RANGE_RE.match(c)
        ]
        creates_with_200 = (
            endpoint.method == "POST" and endpoint.is_collection
            and "200" in codes and not codes & {"201", "202"}
        )
        return [
            Fact(key="http.body_on_safe_method",
                 value=endpoint.method in _SAFE_METHODS and endpoint.request_body is not None,
                 source=self.name, location=location),
            Fact(key="http.create_without_201", value=creates_with_200,
                 source=self.name, location=location, field="200" if creates_with_200 else None),
            Fact(key="http.delete_without_204",
                 value=endpoint.method == "DELETE" and bool(codes) and not codes & {"204", "202"},
                 source=self.name, location=location),
            Fact(key="http.no_success_status", value=not endpoint.success_responses,
                 source=self.name, location=location),
            Fact(key="http.nonstandard_status", value=bool(nonstandard),
                 source=self.name, location=location, field=", ".join(nonstandard) or None),
        ]
