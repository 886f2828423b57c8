from __future__ import annotations

from .endpoint_list import parse_endpoint_list
from .loader import load_api
from .models import (
    ApiModel,
    Endpoint,
    Parameter,
    PathSegment,
    Response,
    SchemaShape,
    SecurityScheme,
    SpecLoadError,
)
from .openapi import parse_openapi
from .paths import parse_path_template

__all__ = [
    "ApiModel",
    "Endpoint",
    "Parameter",
    "PathSegment",
    "Response",
    "SchemaShape",
    "SecurityScheme",
    "SpecLoadError",
    "load_api",
    "parse_endpoint_list",
    "parse_openapi",
    "parse_path_template",
]
