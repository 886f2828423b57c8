from __future__ import annotations

import re

from ..core.models import Fact
from ..ingest.models import ApiModel, Endpoint, PathSegment

# Verbs that signal an RPC-style path (/getUsers, /users/create)
_VERBS = (
    "get", "create", "delete", "update", "fetch", "remove", "add", "list",
    "find", "retrieve", "modify", "set", "edit", "save", "insert", "destroy",
    "change", "make", "do",
)

# Subset of _VERBS that changes server state
MUTATING_VERBS = frozenset({
    "create", "delete", "update", "remove", "add", "modify", "set", "edit",
    "save", "insert", "destroy", "change",
})

# Nouns that are already plural or have no plural form
_PLURAL_EXCEPTIONS = {
    "people", "children", "men", "women", "data", "media", "criteria",
    "feedback", "metadata", "analytics", "info", "news", "series", "staff",
    "equipment", "status", "me", "search", "auth", "health",
}

_VERSION_RE = re.compile(r"^v\d+(\.\d+)?$", re.IGNORECASE)
_KEBAB_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*(\.[a-z0-9]+)?$")
_EXTENSION_RE = re.compile(r"\.(json|xml|html?|csv|ya?ml|txt)$", re.IGNORECASE)
_CAMEL_RE = re.compile(r"^[a-z][a-z0-9]*[A-Z][A-Za-z0-9]*$")
_SNAKE_RE = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)+$")


class NamingScanner:
    """Extracts URL-shape and property-naming facts."""

    name = "naming"

    def scan(self, api: ApiModel) -> list[Fact]:
        facts: list[Fact] = []
        for endpoint in api.endpoints:
            facts.extend(_endpoint_facts(endpoint, self.name))

        if api.detailed:
            camel, snake = _classify_properties(api)
            facts.append(Fact(
                key="schemas.mixed_property_casing",
                value=bool(camel) and bool(snake),
                source=self.name,
                field=f"camelCase ({_sample(camel)}) vs snake_case ({_sample(snake)})" if camel and snake else None,
            ))
        return facts


def is_version_segment(segment: PathSegment) -> bool:
    return not segment.is_parameter and bool(_VERSION_RE.match(segment.value))


def verb_in_segment(segment: PathSegment) -> str | None:
    """Return the verb a literal segment starts with, if any."""
    if segment.is_parameter:
        return None
    value = segment.value
    lower = value.lower()
    for verb in _VERBS:
        if lower == verb:
            return verb
        if lower.startswith(verb) and len(value) > len(verb):
            boundary = value[len(verb)]
            if boundary.isupper() or boundary in "-_":
                return verb
    return None


def _endpoint_facts(endpoint: Endpoint, source: str) -> list[Fact]:
    location = endpoint.location
    resource_segments = [s for s in endpoint.literal_segments if not is_version_segment(s)]

    verbs = [s.value for s in resource_segments if verb_in_segment(s)]
    non_kebab = [s.value for s in resource_segments if not _KEBAB_RE.match(s.value)]
    singular = _singular_collections(endpoint.segments)
    extension = bool(endpoint.segments) and bool(_EXTENSION_RE.search(endpoint.segments[-1].value))
    depth = sum(1 for s in endpoint.segments if s.is_parameter)

    return [
        Fact(key="path.has_verb_segment", value=bool(verbs), source=source,
             location=location, field=", ".join(verbs) or None),
        Fact(key="path.singular_collection", value=bool(singular), source=source,
             location=location, field=", ".join(singular) or None),
        Fact(key="path.non_kebab_segment", value=bool(non_kebab), source=source,
             location=location, field=", ".join(non_kebab) or None),
        Fact(key="path.trailing_slash", value=len(endpoint.path) > 1 and endpoint.path.endswith("/"),
             source=source, location=location),
        Fact(key="path.file_extension", value=extension, source=source, location=location,
             field=endpoint.segments[-1].value if extension else None),
        Fact(key="path.nesting_depth", value=depth, source=source, location=location),
    ]


def _singular_collections(segments: tuple[PathSegment, ...]) -> list[str]:
    """Literal segments directly followed by an identifier that are not plural."""
    singular: list[str] = []
    for current, following in zip(segments, segments[1:]):
        if current.is_parameter or is_version_segment(current) or not following.is_parameter:
            continue
        if verb_in_segment(current):
            continue
        if not looks_plural(current.value):
            singular.append(current.value)
    return singular


def looks_plural(word: str) -> bool:
    last = re.split(r"[-_]", word)[-1]
    last = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", last).split()[-1].lower() if last else ""
    if last in _PLURAL_EXCEPTIONS:
        return True
    return last.endswith("s") and not last.endswith(("ss", "us"))


def _classify_properties(api: ApiModel) -> tuple[list[str], list[str]]:
    names: list[str] = []
    shapes = list(api.schemas)
    for endpoint in api.endpoints:
        if endpoint.request_body is not None:
            shapes.append(endpoint.request_body)
        shapes.extend(r.schema for r in endpoint.responses if r.schema is not None)
    for shape in shapes:
        names.extend(n for n in shape.properties if n not in names)

    camel: list[str] = []
    snake: list[str] = []
    for name in names:
        bare = name.lstrip("_$@")
        if _CAMEL_RE.match(bare):
            camel.append(name)
        elif _SNAKE_RE.match(bare):
            snake.append(name)
    return camel, snake


def _sample(names: list[str], limit: int = 3) -> str:
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        return f"{shown} (+{len(names) - limit} more)"
    return shown
