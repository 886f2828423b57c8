"""Flat endpoint lists: ``GET /users`` lines, or a list of strings/mappings."""
from __future__ import annotations

import logging
from typing import Any

from .models import HTTP_METHODS, ApiModel, Endpoint, SpecLoadError
from .paths import parse_path_template

_LOG = logging.getLogger(__name__)


def parse_endpoint_list(source: str | list) -> ApiModel:
    """Build an undetailed ApiModel from method/path pairs.

    Only the URL shape and method of each endpoint are known, so the model
    carries no responses, schemas or security information.
    """
    if isinstance(source, str):
        entries = [(i, line) for i, line in enumerate(source.splitlines(), start=1)]
    elif isinstance(source, list):
        entries = list(enumerate(source, start=1))
    else:
        raise SpecLoadError(f"expected text or a list of endpoints, got {type(source).__name__}")

    endpoints: list[Endpoint] = []
    warnings: list[str] = []
    seen: set[tuple[str, str]] = set()
    for lineno, entry in entries:
        pair = _parse_entry(entry, lineno)
        if pair is None:
            continue
        method, path = pair
        if (method, path) in seen:
            warnings.append(f"entry {lineno}: duplicate endpoint '{method} {path}' ignored")
            continue
        seen.add((method, path))
        endpoints.append(Endpoint(path=path, method=method, segments=parse_path_template(path)))

    if not endpoints:
        raise SpecLoadError("endpoint list contains no endpoints")

    _LOG.debug("parsed endpoint list: %d endpoints", len(endpoints))
    return ApiModel(
        endpoints=tuple(endpoints),
        source_format="endpoint-list",
        detailed=False,
        warnings=tuple(warnings),
    )


def _parse_entry(entry: Any, lineno: int) -> tuple[str, str] | None:
    """Return (METHOD, path), or None for blank lines and comments."""
    if isinstance(entry, dict):
        method = entry.get("method")
        path = entry.get("path")
        if not method or not path:
            raise SpecLoadError(f"entry {lineno}: mapping needs 'method' and 'path' keys")
        return _validate(str(method), str(path), lineno)

    if not isinstance(entry, str):
        raise SpecLoadError(f"entry {lineno}: expected 'METHOD /path', got {type(entry).__name__}")

    stripped = entry.split("#", 1)[0].strip()
    if not stripped:
        return None

    parts = stripped.split()
    if len(parts) != 2:
        raise SpecLoadError(f"entry {lineno}: expected 'METHOD /path', got '{stripped}'")
    return _validate(parts[0], parts[1], lineno)


def _validate(method: str, path: str, lineno: int) -> tuple[str, str]:
    method = method.strip().upper()
    path = path.strip()
    if method not in HTTP_METHODS:
        raise SpecLoadError(f"entry {lineno}: unknown HTTP method '{method}'")
    if not path.startswith("/"):
        raise SpecLoadError(f"entry {lineno}: path must start with '/', got '{path}'")
    return method, path
