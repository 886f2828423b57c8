"""Normalized, immutable representation of an API description."""
from __future__ import annotations

from dataclasses import dataclass, field

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE")


class SpecLoadError(Exception):
    """Raised when an API description cannot be read or understood."""


@dataclass(frozen=True)
class PathSegment:
    value: str
    is_parameter: bool = False

    @property
    def name(self) -> str:
        if not self.is_parameter:
            return self.value
        if self.value.startswith(":"):
            return self.value[1:]
        start = self.value.find("{")
        return self.value[start + 1:self.value.find("}", start)]


@dataclass(frozen=True)
class Parameter:
    name: str
    location: str
    required: bool = False
    description: str = ""


@dataclass(frozen=True)
class SchemaShape:
    """Structural summary of a resolved schema."""

    name: str | None = None
    type: str | None = None
    properties: tuple[str, ...] = ()
    is_array: bool = False
    list_property: str | None = None


@dataclass(frozen=True)
class Response:
    status: str
    description: str = ""
    schema: SchemaShape | None = None
    headers: tuple[str, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.status[:1] in ("2", "3")

    @property
    def is_error(self) -> bool:
        return self.status[:1] in ("4", "5") or self.status == "default"


@dataclass(frozen=True)
class Endpoint:
    path: str
    method: str
    segments: tuple[PathSegment, ...]
    parameters: tuple[Parameter, ...] = ()
    request_body: SchemaShape | None = None
    responses: tuple[Response, ...] = ()
    # None: inherits the global requirement; (): explicitly public
    security: tuple[str, ...] | None = None
    operation_id: str | None = None
    summary: str = ""
    description: str = ""
    deprecated: bool = False

    @property
    def location(self) -> str:
        return f"{self.method} {self.path}"

    @property
    def status_codes(self) -> tuple[str, ...]:
        return tuple(r.status for r in self.responses)

    @property
    def success_responses(self) -> tuple[Response, ...]:
        return tuple(r for r in self.responses if r.is_success)

    @property
    def error_responses(self) -> tuple[Response, ...]:
        return tuple(r for r in self.responses if r.is_error)

    @property
    def literal_segments(self) -> tuple[PathSegment, ...]:
        return tuple(s for s in self.segments if not s.is_parameter)

    @property
    def has_id_parameter(self) -> bool:
        return any(s.is_parameter for s in self.segments)

    @property
    def is_collection(self) -> bool:
        """True when the path ends in a literal resource segment."""
        return bool(self.segments) and not self.segments[-1].is_parameter

    def parameters_in(self, location: str) -> tuple[Parameter, ...]:
        return tuple(p for p in self.parameters if p.location == location)


@dataclass(frozen=True)
class SecurityScheme:
    name: str
    type: str
    location: str | None = None
    scheme: str | None = None


@dataclass(frozen=True)
class ApiModel:
    title: str = ""
    version: str = ""
    description: str = ""
    contact: tuple[tuple[str, str], ...] = ()
    servers: tuple[str, ...] = ()
    endpoints: tuple[Endpoint, ...] = ()
    security_schemes: tuple[SecurityScheme, ...] = ()
    global_security: tuple[str, ...] | None = None
    schemas: tuple[SchemaShape, ...] = ()
    source_format: str = "openapi-3"
    # False when only methods and paths are known (flat endpoint lists)
    detailed: bool = True
    warnings: tuple[str, ...] = field(default=(), compare=False)

    def effective_security(self, endpoint: Endpoint) -> tuple[str, ...]:
        if endpoint.security is not None:
            return endpoint.security
        return self.global_security or ()
