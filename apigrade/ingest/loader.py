from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from .endpoint_list import parse_endpoint_list
from .models import ApiModel, SpecLoadError
from .openapi import parse_openapi

_LOG = logging.getLogger(__name__)

_TEXT_SUFFIXES = {".txt", ".list"}


def load_api(path: Path) -> ApiModel:
    """Read an API description file and normalize it.

    JSON is tried first, then YAML. Mappings are treated as OpenAPI/Swagger
    documents; lists and plain text as flat endpoint lists.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise SpecLoadError(f"API description not found: {path}") from None
    except (OSError, UnicodeDecodeError) as e:
        raise SpecLoadError(f"cannot read {path}: {e}") from e

    if not text.strip():
        raise SpecLoadError(f"{path}: file is empty")

    if path.suffix.lower() in _TEXT_SUFFIXES:
        return _wrap(path, parse_endpoint_list, text)

    document = _parse_structured(path, text)
    if isinstance(document, dict):
        _LOG.debug("%s: structured document with keys %s", path, sorted(map(str, document))[:5])
        return _wrap(path, parse_openapi, document)
    if isinstance(document, list):
        return _wrap(path, parse_endpoint_list, document)

    # Plain text (YAML folds it into a single scalar, so use the raw lines)
    return _wrap(path, parse_endpoint_list, text)


def _parse_structured(path: Path, text: str) -> object:
    """Return the parsed JSON/YAML value, or None when the text is neither."""
    if path.suffix.lower() == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise SpecLoadError(f"{path}: invalid JSON: {e}") from e

    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        pass

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        if path.suffix.lower() in (".yaml", ".yml"):
            raise SpecLoadError(f"{path}: invalid YAML: {e}") from e
        return None


def _wrap(path: Path, parser, payload) -> ApiModel:
    try:
        return parser(payload)
    except SpecLoadError as e:
        raise SpecLoadError(f"{path}: {e}") from e
