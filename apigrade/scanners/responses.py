from __future__ import annotations

import re

from ..core.models import Fact
from ..ingest.models import ApiModel, Endpoint

# Query parameters that let a client page through a collection
_PAGINATION_PARAMS = {
    "limit", "offset", "page", "perpage", "pagesize", "pagenumber",
    "cursor", "after", "before", "pagetoken", "startingafter", "endingbefore",
    "first", "last", "size",
}

# Envelope properties that carry a link or cursor to the next page
_PAGINATION_PROPERTIES = {
    "next", "nextcursor", "nextpage", "nextpagetoken", "cursor", "links",
    "pagination", "pageinfo", "paging",
}

_NO_BODY_STATUSES = {"202", "204"}
_NO_BODY_METHODS = {"HEAD", "OPTIONS"}


class ResponseDesignScanner:
    """Extracts facts about success payloads: envelopes, pagination, headers."""

    name = "response_design"

    def scan(self, api: ApiModel) -> list[Fact]:
        if not api.detailed:
            return []
        facts: list[Fact] = []
        for endpoint in api.endpoints:
            facts.extend(self._endpoint_facts(endpoint))
        return facts

    def _endpoint_facts(self, endpoint: Endpoint) -> list[Fact]:
        location = endpoint.location
        success = [r for r in endpoint.success_responses if r.status.startswith("2")]

        bare_arrays = [r.status for r in success if r.schema is not None and r.schema.is_array]

        unpaginated = False
        list_field = None
        if endpoint.method == "GET":
            for response in success:
                shape = response.schema
                if shape is None:
                    continue
                # An array property only makes an envelope on a collection path
                enveloped = bool(shape.list_property) and endpoint.is_collection
                if not (shape.is_array or enveloped):
                    continue
                list_field = f"{response.status} array body" if shape.is_array else shape.list_property
                has_param = any(_normalize(p.name) in _PAGINATION_PARAMS for p in endpoint.parameters_in("query"))
                has_link = any(_normalize(p) in _PAGINATION_PROPERTIES for p in shape.properties)
                unpaginated = not (has_param or has_link)
                break

        missing_schema = [
            r.status for r in success
            if r.schema is None and r.status not in _NO_BODY_STATUSES
        ] if endpoint.method not in _NO_BODY_METHODS else []

        created = [r for r in success if r.status == "201"]
        no_location = any("location" not in {h.lower() for h in r.headers} for r in created)

        return [
            Fact(key="response.collection_unpaginated", value=unpaginated, source=self.name,
                 location=location, field=list_field if unpaginated else None),
            Fact(key="response.bare_array", value=bool(bare_arrays), source=self.name,
                 location=location, field=", ".join(bare_arrays) or None),
            Fact(key="response.missing_schema", value=bool(missing_schema), source=self.name,
                 location=location, field=", ".join(missing_schema) or None),
            Fact(key="response.created_without_location", value=no_location, source=self.name,
                 location=location, field="201" if no_location else None),
        ]


def _normalize(name: str) -> str:
    return re.sub(r"[-_\[\]]", "", name).lower()
