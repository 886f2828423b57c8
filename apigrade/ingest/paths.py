from __future__ import annotations

import re

from .models import PathSegment

_PLACEHOLDER_RE = re.compile(r"\{[^{}]+\}")


def parse_path_template(path: str) -> tuple[PathSegment, ...]:
    """Split a path template into literal and parameter segments.

    Both OpenAPI-style ``{id}`` and Express-style ``:id`` segments count as
    parameters, as do segments mixing a placeholder with literal text
    (``{name}.json``). Empty segments (leading, trailing or doubled slashes) are
    dropped; the raw path keeps them for trailing-slash checks.
    """
    segments: list[PathSegment] = []
    for raw in path.split("/"):
        if not raw:
            continue
        is_param = bool(_PLACEHOLDER_RE.search(raw)) or (
            raw.startswith(":") and len(raw) > 1
        )
        segments.append(PathSegment(value=raw, is_parameter=is_param))
    return tuple(segments)
