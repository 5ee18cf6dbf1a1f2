"""Decode canonical values into an ApiSpecification.

Two entry points:
  - decode_from_value: the document was already parsed (YAML path)
  - decode_from_text:  raw JSON text (fallback when YAML parsing failed)

Only the structure the generator relies on is checked. Anything else in the
document is carried along untouched in ``ApiSpecification.document``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .errors import SpecDecodeError
from .value import Value, type_name

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_PARAMETER_LOCATIONS = {"path", "query", "header", "cookie"}


@dataclass(frozen=True)
class Info:
    title: str
    version: str
    description: str = ""


@dataclass(frozen=True)
class ApiSpecification:
    """A decoded OpenAPI 3.x document."""

    openapi: str
    info: Info
    servers: list[str] = field(default_factory=list)
    paths: dict[str, dict[str, Any]] = field(default_factory=dict)
    components: dict[str, Any] = field(default_factory=dict)
    security_schemes: dict[str, Any] = field(default_factory=dict)
    document: dict[str, Any] = field(default_factory=dict)


def _expect(value: Value, expected: type, kind: str, location: str) -> Any:
    if not isinstance(value, expected):
        raise SpecDecodeError(f"expected {kind}, found {type_name(value)}", location)
    return value


def _optional_object(parent: dict[str, Any], key: str, location: str) -> dict[str, Any]:
    if key not in parent or parent[key] is None:
        return {}
    return _expect(parent[key], dict, "an object", f"{location}.{key}" if location else key)


def _required_string(parent: dict[str, Any], key: str, location: str) -> str:
    where = f"{location}.{key}"
    if key not in parent:
        raise SpecDecodeError(f"missing required field `{key}`", location)
    return _expect(parent[key], str, "a string", where)


def _decode_info(document: dict[str, Any]) -> Info:
    if "info" not in document:
        raise SpecDecodeError("missing required field `info`")
    info = _expect(document["info"], dict, "an object", "info")
    description = info.get("description", "")
    if description is None:
        description = ""
    return Info(
        title=_required_string(info, "title", "info"),
        version=_required_string(info, "version", "info"),
        description=_expect(description, str, "a string", "info.description"),
    )


def _decode_servers(document: dict[str, Any]) -> list[str]:
    servers = document.get("servers")
    if servers is None:
        return []
    urls = []
    for index, server in enumerate(_expect(servers, list, "an array", "servers")):
        location = f"servers[{index}]"
        server = _expect(server, dict, "an object", location)
        urls.append(_required_string(server, "url", location))
    return urls


def _check_parameters(parameters: Value, location: str) -> None:
    for index, param in enumerate(_expect(parameters, list, "an array", location)):
        where = f"{location}[{index}]"
        param = _expect(param, dict, "an object", where)
        if "$ref" in param:
            _expect(param["$ref"], str, "a string", f"{where}.$ref")
            continue
        _required_string(param, "name", where)
        param_in = _required_string(param, "in", where)
        if param_in not in _PARAMETER_LOCATIONS:
            allowed = ", ".join(sorted(_PARAMETER_LOCATIONS))
            raise SpecDecodeError(f"`in` must be one of {allowed}, found {param_in!r}", where)


def _decode_paths(document: dict[str, Any]) -> dict[str, dict[str, Any]]:
    paths = _optional_object(document, "paths", "")
    for path, item in paths.items():
        location = f"paths.{path}"
        if not path.startswith("/"):
            raise SpecDecodeError("path must start with `/`", location)
        item = _expect(item, dict, "an object", location)
        if "parameters" in item:
            _check_parameters(item["parameters"], f"{location}.parameters")
        for method in HTTP_METHODS:
            if method not in item:
                continue
            operation = _expect(item[method], dict, "an object", f"{location}.{method}")
            if "parameters" in operation:
                _check_parameters(operation["parameters"], f"{location}.{method}.parameters")
            if "operationId" in operation:
                _expect(operation["operationId"], str, "a string", f"{location}.{method}.operationId")
    return paths


def _decode_components(document: dict[str, Any]) -> dict[str, Any]:
    components = _optional_object(document, "components", "")
    schemas = _optional_object(components, "schemas", "components")
    for name, schema in schemas.items():
        _expect(schema, dict, "an object", f"components.schemas.{name}")
    return components


def decode_from_value(value: Value) -> ApiSpecification:
    """Decode a canonical value into an ApiSpecification."""
    document = _expect(value, dict, "an object at the document root", "")
    if "openapi" not in document:
        if "swagger" in document:
            raise SpecDecodeError("Swagger 2.0 documents are not supported; convert to OpenAPI 3 first")
        raise SpecDecodeError("missing required field `openapi`")
    version = _expect(document["openapi"], str, "a string", "openapi")
    if not version.startswith("3."):
        raise SpecDecodeError(f"unsupported OpenAPI version {version!r}, expected 3.x", "openapi")

    components = _decode_components(document)
    return ApiSpecification(
        openapi=version,
        info=_decode_info(document),
        servers=_decode_servers(document),
        paths=_decode_paths(document),
        components=components,
        security_schemes=_optional_object(components, "securitySchemes", "components"),
        document=document,
    )


def decode_from_text(text: str) -> ApiSpecification:
    """Decode a JSON-encoded OpenAPI document."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SpecDecodeError(f"Invalid JSON: {exc}") from None
    return decode_from_value(value)
