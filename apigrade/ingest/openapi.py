"""OpenAPI 3.x and Swagger 2.0 ingestion.

Local ``#/...`` references are resolved in place. Remote references are
never fetched; they are reported as warnings and treated as opaque schemas.
"""
from __future__ import annotations

import logging
from typing import Any

from .models import (
    ApiModel,
    Endpoint,
    Parameter,
    Response,
    SchemaShape,
    SecurityScheme,
    SpecLoadError,
)
from .paths import parse_path_template

_LOG = logging.getLogger(__name__)

_OPERATION_KEYS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_JSON_MEDIA_HINTS = ("application/json", "+json")


def parse_openapi(document: dict) -> ApiModel:
    """Normalize an OpenAPI 3.x or Swagger 2.0 document into an ApiModel."""
    if not isinstance(document, dict):
        raise SpecLoadError(f"expected a mapping at top level, got {type(document).__name__}")
    return _OpenApiParser(document).parse()


class _OpenApiParser:
    def __init__(self, document: dict) -> None:
        self._doc = document
        self._warnings: list[str] = []
        self._source_format = _detect_format(document, self._warnings)
        self._is_v2 = self._source_format == "swagger-2"

    def parse(self) -> ApiModel:
        info = self._doc.get("info") or {}
        if not isinstance(info, dict):
            self._warn("'info' is not an object; ignoring it")
            info = {}

        paths = self._doc.get("paths") or {}
        if not isinstance(paths, dict):
            raise SpecLoadError("'paths' must be a mapping")

        endpoints: list[Endpoint] = []
        for path, item in paths.items():
            endpoints.extend(self._parse_path_item(str(path), item))

        api = ApiModel(
            title=str(info.get("title") or ""),
            version=str(info.get("version") or ""),
            description=str(info.get("description") or ""),
            contact=_contact(info.get("contact")),
            servers=self._servers(),
            endpoints=tuple(endpoints),
            security_schemes=self._security_schemes(),
            global_security=_security_names(self._doc.get("security")),
            schemas=self._component_schemas(),
            source_format=self._source_format,
            detailed=True,
            warnings=tuple(self._warnings),
        )
        _LOG.debug("parsed %s document: %d endpoints", self._source_format, len(endpoints))
        return api

    # --- references ---

    def _resolve(self, node: Any, strict: bool = True) -> tuple[Any, str | None]:
        """Follow a $ref chain. Return (target, last ref name).

        Remote refs yield (None, name). A circular chain raises when strict,
        otherwise it warns and yields (None, name).
        """
        seen: set[str] = set()
        name: str | None = None
        while isinstance(node, dict) and isinstance(node.get("$ref"), str):
            ref = node["$ref"]
            name = ref.rstrip("/").rsplit("/", 1)[-1]
            if not ref.startswith("#/"):
                self._warn(f"remote $ref '{ref}' was not resolved")
                return None, name
            if ref in seen:
                if strict:
                    raise SpecLoadError(f"circular $ref: {ref}")
                self._warn(f"circular $ref '{ref}' was not resolved")
                return None, name
            seen.add(ref)
            node = self._pointer(ref)
        return node, name

    def _pointer(self, ref: str) -> Any:
        current: Any = self._doc
        for token in ref[2:].split("/"):
            token = token.replace("~1", "/").replace("~0", "~")
            if isinstance(current, dict) and token in current:
                current = current[token]
            elif isinstance(current, list) and token.isdigit() and int(token) < len(current):
                current = current[int(token)]
            else:
                raise SpecLoadError(f"unresolvable $ref: {ref}")
        return current

    # --- paths and operations ---

    def _parse_path_item(self, path: str, item: Any) -> list[Endpoint]:
        item, _ = self._resolve(item)
        if not isinstance(item, dict):
            self._warn(f"path item '{path}' is not an object; skipping")
            return []

        shared = self._raw_parameters(item.get("parameters"), f"{path} parameters")
        segments = parse_path_template(path)

        endpoints: list[Endpoint] = []
        for key, operation in item.items():
            if key not in _OPERATION_KEYS:
                continue
            method = key.upper()
            if not isinstance(operation, dict):
                self._warn(f"{method} {path}: operation is not an object; skipping")
                continue

            own = self._raw_parameters(operation.get("parameters"), f"{method} {path} parameters")
            merged = {(p.get("name"), p.get("in")): p for p in shared}
            merged.update({(p.get("name"), p.get("in")): p for p in own})

            parameters, body = self._split_parameters(list(merged.values()))
            if not self._is_v2:
                body = self._request_body(operation.get("requestBody"))

            endpoints.append(Endpoint(
                path=path,
                method=method,
                segments=segments,
                parameters=parameters,
                request_body=body,
                responses=self._responses(operation.get("responses"), f"{method} {path}"),
                security=_security_names(operation.get("security")),
                operation_id=_opt_str(operation.get("operationId")),
                summary=str(operation.get("summary") or "").strip(),
                description=str(operation.get("description") or "").strip(),
                deprecated=bool(operation.get("deprecated", False)),
            ))
        return endpoints

    def _raw_parameters(self, params: Any, where: str) -> list[dict]:
        if params is None:
            return []
        if not isinstance(params, list):
            self._warn(f"{where}: expected a list; ignoring")
            return []
        resolved: list[dict] = []
        for param in params:
            target, _ = self._resolve(param)
            if isinstance(target, dict):
                resolved.append(target)
        return resolved

    def _split_parameters(self, raw: list[dict]) -> tuple[tuple[Parameter, ...], SchemaShape | None]:
        """Return (parameters, swagger-2 request body)."""
        parameters: list[Parameter] = []
        body: SchemaShape | None = None
        form_fields: list[str] = []
        for p in raw:
            location = str(p.get("in") or "")
            name = str(p.get("name") or "")
            if location == "body":
                body = self._shape(p.get("schema")) or SchemaShape()
                continue
            if location == "formData":
                form_fields.append(name)
                continue
            parameters.append(Parameter(
                name=name,
                location=location,
                required=bool(p.get("required", location == "path")),
                description=str(p.get("description") or "").strip(),
            ))
        if body is None and form_fields:
            body = SchemaShape(type="object", properties=tuple(form_fields))
        return tuple(parameters), body

    def _request_body(self, request_body: Any) -> SchemaShape | None:
        if request_body is None:
            return None
        target, _ = self._resolve(request_body)
        if not isinstance(target, dict):
            return SchemaShape()
        return self._content_shape(target.get("content")) or SchemaShape()

    def _responses(self, responses: Any, where: str) -> tuple[Response, ...]:
        if responses is None:
            return ()
        if not isinstance(responses, dict):
            self._warn(f"{where}: 'responses' is not an object; ignoring")
            return ()

        result: list[Response] = []
        for status, response in responses.items():
            code = str(status)
            if code.startswith("x-"):
                continue
            code = code if code == "default" else code.upper()
            target, _ = self._resolve(response)
            if not isinstance(target, dict):
                result.append(Response(status=code))
                continue
            if self._is_v2:
                schema = self._shape(target.get("schema"))
            else:
                schema = self._content_shape(target.get("content"))
            headers = target.get("headers") or {}
            result.append(Response(
                status=code,
                description=str(target.get("description") or "").strip(),
                schema=schema,
                headers=tuple(str(h) for h in headers) if isinstance(headers, dict) else (),
            ))
        return tuple(result)

    # --- schemas ---

    def _content_shape(self, content: Any) -> SchemaShape | None:
        """Pick the JSON media type (or the first one) and summarize its schema."""
        if not isinstance(content, dict) or not content:
            return None
        media_types = list(content)
        preferred = next(
            (m for m in media_types if any(h in str(m) for h in _JSON_MEDIA_HINTS)),
            media_types[0],
        )
        media = content.get(preferred)
        if not isinstance(media, dict):
            return None
        return self._shape(media.get("schema"))

    def _shape(self, schema: Any) -> SchemaShape | None:
        if schema is None:
            return None
        resolved, name = self._resolve(schema, strict=False)
        if not isinstance(resolved, dict):
            return SchemaShape(name=name)

        properties = self._property_names(resolved, seen=set())
        list_property = None
        for prop_name, prop in (resolved.get("properties") or {}).items():
            target, _ = self._resolve(prop, strict=False)
            if isinstance(target, dict) and target.get("type") == "array":
                list_property = str(prop_name)
                break

        schema_type = resolved.get("type")
        if schema_type is None and "properties" in resolved:
            schema_type = "object"
        return SchemaShape(
            name=name,
            type=str(schema_type) if schema_type is not None else None,
            properties=properties,
            is_array=schema_type == "array",
            list_property=list_property,
        )

    def _property_names(self, schema: dict, seen: set[int]) -> tuple[str, ...]:
        """Top-level property names, including those merged in via allOf."""
        if id(schema) in seen:
            return ()
        seen.add(id(schema))

        names: list[str] = []
        props = schema.get("properties")
        if isinstance(props, dict):
            names.extend(str(k) for k in props)
        for member in schema.get("allOf") or []:
            target, _ = self._resolve(member, strict=False)
            if isinstance(target, dict):
                names.extend(n for n in self._property_names(target, seen) if n not in names)
        return tuple(names)

    def _component_schemas(self) -> tuple[SchemaShape, ...]:
        if self._is_v2:
            schemas = self._doc.get("definitions") or {}
        else:
            schemas = (self._doc.get("components") or {}).get("schemas") or {}
        if not isinstance(schemas, dict):
            return ()
        prefix = "#/definitions/" if self._is_v2 else "#/components/schemas/"
        shapes: list[SchemaShape] = []
        for name in schemas:
            escaped = str(name).replace("~", "~0").replace("/", "~1")
            shape = self._shape({"$ref": prefix + escaped})
            if shape is not None:
                shapes.append(shape)
        return tuple(shapes)

    # --- servers and security ---

    def _servers(self) -> tuple[str, ...]:
        if self._is_v2:
            host = self._doc.get("host")
            base_path = str(self._doc.get("basePath") or "")
            if not host:
                return (base_path,) if base_path else ()
            schemes = self._doc.get("schemes") or []
            if not schemes:
                return (f"//{host}{base_path}",)
            return tuple(f"{scheme}://{host}{base_path}" for scheme in schemes)

        servers = self._doc.get("servers") or []
        if not isinstance(servers, list):
            return ()
        return tuple(str(s["url"]) for s in servers if isinstance(s, dict) and s.get("url"))

    def _security_schemes(self) -> tuple[SecurityScheme, ...]:
        if self._is_v2:
            raw = self._doc.get("securityDefinitions") or {}
        else:
            raw = (self._doc.get("components") or {}).get("securitySchemes") or {}
        if not isinstance(raw, dict):
            return ()

        schemes: list[SecurityScheme] = []
        for name, definition in raw.items():
            target, _ = self._resolve(definition)
            if not isinstance(target, dict):
                continue
            schemes.append(SecurityScheme(
                name=str(name),
                type=str(target.get("type") or ""),
                location=_opt_str(target.get("in")),
                scheme=_opt_str(target.get("scheme")),
            ))
        return tuple(schemes)

    def _warn(self, message: str) -> None:
        if message not in self._warnings:
            _LOG.debug(message)
            self._warnings.append(message)


def _detect_format(document: dict, warnings: list[str]) -> str:
    if "openapi" in document:
        version = str(document["openapi"])
        if not version.startswith("3."):
            raise SpecLoadError(f"unsupported OpenAPI version '{version}'")
        return "openapi-3"
    if "swagger" in document:
        version = str(document["swagger"])
        if version != "2.0":
            raise SpecLoadError(f"unsupported Swagger version '{version}'")
        return "swagger-2"
    if "paths" in document:
        warnings.append("no 'openapi' or 'swagger' version field; assuming OpenAPI 3")
        return "openapi-3"
    raise SpecLoadError("document has no 'openapi', 'swagger' or 'paths' key")


def _security_names(requirements: Any) -> tuple[str, ...] | None:
    """Flatten a list of security requirement objects into scheme names."""
    if requirements is None:
        return None
    names: list[str] = []
    if isinstance(requirements, list):
        for requirement in requirements:
            if isinstance(requirement, dict):
                names.extend(str(n) for n in requirement if str(n) not in names)
    return tuple(names)


def _contact(contact: Any) -> tuple[tuple[str, str], ...]:
    if not isinstance(contact, dict):
        return ()
    return tuple((k, str(contact[k])) for k in ("name", "email", "url") if contact.get(k))


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
