from __future__ import annotations

from ..core.models import Fact
from ..ingest.models import ApiModel, Endpoint, SchemaShape

# An error body needs a machine-readable code and a human-readable message.
# "error"/"errors" envelopes ({"error": {"code": ..., "message": ...}}) count for both.
_CODE_FIELDS = {"code", "type", "error", "errors", "errorcode", "error_code", "status"}
_MESSAGE_FIELDS = {"message", "detail", "title", "description", "error", "errors", "error_description"}

_CLIENT_ERROR_CATCHALL = {"4XX", "default"}


class ErrorHandlingScanner:
    """Extracts facts about error responses and their payload consistency."""

    name = "error_handling"

    def scan(self, api: ApiModel) -> list[Fact]:
        if not api.detailed:
            return []

        facts: list[Fact] = []
        for endpoint in api.endpoints:
            facts.extend(self._endpoint_facts(endpoint))

        variants = _error_schema_variants(api)
        if variants:
            facts.append(Fact(
                key="errors.schema_variants",
                value=len(variants),
                source=self.name,
                field=", ".join(variants) if len(variants) > 1 else None,
            ))
            incomplete = [label for label, shape in variants.items() if not _has_standard_fields(shape)]
            facts.append(Fact(
                key="errors.schema_missing_fields",
                value=bool(incomplete),
                source=self.name,
                field=", ".join(incomplete) or None,
            ))
        return facts

    def _endpoint_facts(self, endpoint: Endpoint) -> list[Fact]:
        location = endpoint.location
        codes = set(endpoint.status_codes)
        has_catchall = bool(codes & _CLIENT_ERROR_CATCHALL)

        no_client_error = not any(c.startswith("4") for c in codes) and "default" not in codes
        missing_schema = [r.status for r in endpoint.error_responses if r.schema is None]
        missing_404 = (
            endpoint.has_id_parameter
            and endpoint.method in ("GET", "PUT", "PATCH", "DELETE")
            and "404" not in codes and not has_catchall
        )
        missing_400 = (
            endpoint.request_body is not None
            and endpoint.method in ("POST", "PUT", "PATCH")
            and not codes & {"400", "422"} and not has_catchall
        )
        return [
            Fact(key="errors.no_client_error", value=no_client_error,
                 source=self.name, location=location),
            Fact(key="errors.missing_schema", value=bool(missing_schema),
                 source=self.name, location=location, field=", ".join(missing_schema) or None),
            Fact(key="errors.missing_404", value=missing_404,
                 source=self.name, location=location),
            Fact(key="errors.missing_400", value=missing_400,
                 source=self.name, location=location),
        ]


def _error_schema_variants(api: ApiModel) -> dict[str, SchemaShape]:
    """Distinct error payload schemas, keyed by a readable label."""
    variants: dict[str, SchemaShape] = {}
    for endpoint in api.endpoints:
        for response in endpoint.error_responses:
            shape = response.schema
            if shape is None:
                continue
            variants.setdefault(_label(shape), shape)
    return variants


def _label(shape: SchemaShape) -> str:
    if shape.name:
        return shape.name
    return "inline{" + ",".join(sorted(shape.properties)) + "}"


def _has_standard_fields(shape: SchemaShape) -> bool:
    if not shape.properties:
        # Remote or untyped schemas cannot be judged
        return shape.type is None
    props = {p.lower() for p in shape.properties}
    return bool(props & _CODE_FIELDS) and bool(props & _MESSAGE_FIELDS)
