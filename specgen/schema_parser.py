"""Extract Python types and call signatures from OpenAPI schemas.

Handles:
- Path, query and header parameters (cookie parameters are unsupported)
- Path-item level parameters, overridden per operation
- JSON request bodies (objects flattened into fields, anything else as one value)
- $ref resolution, component schemas referenced by generated class name
- allOf/oneOf/anyOf composition
- OpenAPI 3.0 ``nullable`` and 3.1 ``type: [..., "null"]``
- readOnly field exclusion
- Large integer sanitization (>= 2^53)
- Enum value extraction into descriptions
- PATCH None defaults for body fields
"""

from __future__ import annotations

import math
import re
from typing import Any

from .errors import UnsupportedFeature
from .loader import ref_name, resolve_ref
from .naming import to_class_name, to_snake_identifier
from .value import type_name

# Sentinel: integers >= 2^53 are unsafe for JSON serialization
MAX_SAFE_INT = 2**53

SCHEMA_REF_PREFIX = "#/components/schemas/"

# Names the generated module already binds
_RESERVED_CLASS_NAMES = {"Any", "Literal", "NotRequired", "TypeAlias", "TypedDict", "Client"}

_SCALAR_TYPES: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "null": "None",
}


def _strip_html(text: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def _sanitize_default(value: Any) -> Any:
    """Sanitize default values: unsafe large integers and containers become None."""
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, int):
        return None if abs(value) >= MAX_SAFE_INT else value
    return None


def _check_schema(node: Any, what: str = "schema") -> dict[str, Any]:
    """Return ``node`` as a mapping; None counts as empty."""
    if node is None:
        return {}
    if not isinstance(node, dict):
        raise UnsupportedFeature(f"{what} that is not an object (found {type_name(node)})")
    return node


def _properties(schema: dict[str, Any]) -> dict[str, Any]:
    return _check_schema(schema.get("properties"), "properties map")


def _warn(warnings: list[str] | None, where: str, message: str) -> None:
    if warnings is not None:
        warnings.append(f"{where}: {message}" if where else message)


def component_class_name(name: str) -> str:
    """Generated class name for a component schema."""
    class_name = to_class_name(name)
    if class_name in _RESERVED_CLASS_NAMES:
        class_name += "Model"
    return class_name


def _optional(type_str: str) -> str:
    if type_str in ("Any", "None") or "None" in _split_union(type_str):
        return type_str
    return f"{type_str} | None"


def _split_union(type_str: str) -> list[str]:
    """Split 'A | list[B | C]' into top-level members."""
    members, depth, start = [], 0, 0
    for i, ch in enumerate(type_str):
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == "|" and depth == 0:
            members.append(type_str[start:i].strip())
            start = i + 1
    members.append(type_str[start:].strip())
    return members


def _union(types: list[str]) -> str:
    unique: list[str] = []
    for t in types:
        for member in _split_union(t):
            if member not in unique:
                unique.append(member)
    if "None" in unique and len(unique) > 1:
        unique.remove("None")
        unique.append("None")
    return " | ".join(unique)


def resolve_schema_type(
    spec: dict[str, Any],
    schema: dict[str, Any],
    warnings: list[str] | None = None,
    where: str = "",
) -> str:
    """Resolve an OpenAPI schema to a Python type annotation string."""
    schema = _check_schema(schema)
    if not schema:
        return "Any"

    if "$ref" in schema:
        ref = schema["$ref"]
        resolve_ref(spec, ref)
        if ref.startswith(SCHEMA_REF_PREFIX) and ref.count("/") == 3:
            return component_class_name(ref_name(ref))
        return resolve_schema_type(spec, resolve_ref(spec, ref), warnings, where)

    result = _resolve_unreferenced(spec, schema, warnings, where)
    if schema.get("nullable"):
        result = _optional(result)
    return result


def _resolve_unreferenced(
    spec: dict[str, Any],
    schema: dict[str, Any],
    warnings: list[str] | None,
    where: str,
) -> str:
    if "allOf" in schema:
        subs = schema["allOf"]
        if len(subs) == 1:
            return resolve_schema_type(spec, subs[0], warnings, where)
        for sub in subs:
            sub = _check_schema(sub)
            resolved = resolve_ref(spec, sub["$ref"]) if "$ref" in sub else sub
            if resolved.get("type") == "object" or "properties" in resolved:
                return "dict[str, Any]"
            if "enum" in resolved:
                return "str"
        return "dict[str, Any]"

    for key in ("oneOf", "anyOf"):
        if key in schema:
            members = [resolve_schema_type(spec, sub, warnings, where) for sub in schema[key]]
            if not members or "Any" in members:
                _warn(warnings, where, f"{key} with an untyped member is typed as Any")
                return "Any"
            return _union(members)

    if "const" in schema:
        return _scalar_for_value(schema["const"])

    if "enum" in schema:
        values = [v for v in schema["enum"] if v is not None]
        kinds = {_scalar_for_value(v) for v in values}
        result = kinds.pop() if len(kinds) == 1 else "Any"
        return _optional(result) if None in schema["enum"] else result

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        members = [
            _resolve_unreferenced(spec, {**schema, "type": t}, warnings, where)
            for t in schema_type
        ]
        return _union(members) if members else "Any"
    if schema_type in _SCALAR_TYPES:
        return _SCALAR_TYPES[schema_type]
    if schema_type == "array":
        items = schema.get("items") or {}
        item_type = resolve_schema_type(spec, items, warnings, where)
        return f"list[{item_type}]"
    if schema_type == "object" or "properties" in schema:
        extra = schema.get("additionalProperties")
        if isinstance(extra, dict) and extra and not schema.get("properties"):
            return f"dict[str, {resolve_schema_type(spec, extra, warnings, where)}]"
        return "dict[str, Any]"

    return "Any"


def _scalar_for_value(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    return "Any"


def get_enum_values(
    spec: dict[str, Any], schema: dict[str, Any], seen: frozenset[str] = frozenset(),
) -> list[str] | None:
    """Extract enum values from a schema, resolving $ref if needed."""
    schema = _check_schema(schema)
    if "$ref" in schema:
        ref = schema["$ref"]
        if ref in seen:
            return None
        return get_enum_values(spec, resolve_ref(spec, ref), seen | {ref})
    if "enum" in schema:
        return [str(v) for v in schema["enum"] if v is not None]
    if "allOf" in schema:
        for sub in schema["allOf"]:
            vals = get_enum_values(spec, sub, seen)
            if vals:
                return vals
    if schema.get("type") == "array" and isinstance(schema.get("items"), dict):
        return get_enum_values(spec, schema["items"], seen)
    return None


def _describe(description: str, enum_values: list[str] | None) -> str:
    if not isinstance(description, str):
        description = ""
    if description:
        description = _strip_html(description)
    if enum_values:
        enum_str = ", ".join(enum_values)
        if description:
            description = f"{description} (values: {enum_str})"
        else:
            description = f"Values: {enum_str}"
    return description


def _is_read_only(schema: dict[str, Any]) -> bool:
    """Check if a schema field is readOnly."""
    return bool(schema.get("readOnly", False))


def merge_object_schema(
    spec: dict[str, Any], schema: dict[str, Any], seen: frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Resolve $ref and fold allOf members into one object schema.

    Raises UnsupportedFeature when an allOf chain leads back to a schema
    that is already being merged.
    """
    schema = _check_schema(schema)
    if "$ref" in schema:
        ref = schema["$ref"]
        if ref in seen:
            raise UnsupportedFeature(f"circular allOf through {ref!r}")
        seen = seen | {ref}
        schema = resolve_ref(spec, ref)

    if "allOf" not in schema:
        return schema

    merged_props: dict[str, Any] = dict(_properties(schema))
    merged_required: list[str] = list(schema.get("required") or [])
    for sub in schema["allOf"]:
        sub = merge_object_schema(spec, sub, seen)
        merged_props.update(_properties(sub))
        merged_required.extend(sub.get("required") or [])
    return {
        "type": "object",
        "properties": merged_props,
        "required": merged_required,
    }


def object_fields(
    spec: dict[str, Any],
    schema: dict[str, Any],
    warnings: list[str] | None = None,
    where: str = "",
) -> list[dict[str, Any]]:
    """Describe the properties of an object schema (used for TypedDicts)."""
    schema = merge_object_schema(spec, schema)
    required_fields = set(schema.get("required") or [])
    fields = []
    for prop_name, prop_schema in sorted(_properties(schema).items()):
        prop_schema = _check_schema(prop_schema)
        fields.append({
            "name": prop_name,
            "type": resolve_schema_type(spec, prop_schema, warnings, where),
            "required": prop_name in required_fields,
            "description": _describe(
                prop_schema.get("description", ""), get_enum_values(spec, prop_schema)
            ),
        })
    return fields


def _flatten_object_schema(
    spec: dict[str, Any],
    schema: dict[str, Any],
    is_patch: bool = False,
    warnings: list[str] | None = None,
    where: str = "",
) -> list[dict[str, Any]]:
    """Flatten an object schema into a list of parameter dicts."""
    schema = merge_object_schema(spec, schema)

    properties = _properties(schema)
    required_fields = set(schema.get("required") or [])
    params = []

    for prop_name, prop_schema in sorted(properties.items()):
        prop_schema = _check_schema(prop_schema)
        if _is_read_only(prop_schema):
            continue

        param_type = resolve_schema_type(spec, prop_schema, warnings, where)
        description = _describe(
            prop_schema.get("description", ""), get_enum_values(spec, prop_schema)
        )

        is_required = prop_name in required_fields
        default = prop_schema.get("default")

        if is_patch:
            is_required = False
            default = None
        elif not is_required:
            default = _sanitize_default(default)
        else:
            default = None

        params.append({
            "name": prop_name,
            "py_name": to_snake_identifier(prop_name),
            "type": param_type,
            "required": is_required,
            "default": default,
            "description": description,
            "enum": get_enum_values(spec, prop_schema),
            "location": "body",
            "nullable": bool(prop_schema.get("nullable", False)),
        })

    return params


def _is_json_media_type(media_type: str) -> bool:
    base = media_type.split(";", 1)[0].strip().lower()
    return base == "application/json" or base.endswith("+json") or base == "text/json"


def _json_schema(content: dict[str, Any]) -> dict[str, Any] | None:
    """Schema of the first JSON media type in a content map, or None."""
    for media_type, media in sorted(_check_schema(content, "content map").items()):
        if _is_json_media_type(media_type):
            return _check_schema(media, "media type").get("schema") or {}
    return None


def _collect_raw_parameters(
    spec: dict[str, Any],
    operation: dict[str, Any],
    path_item_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-item and operation parameters; operation wins on (name, in)."""
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for raw in list(path_item_params) + list(operation.get("parameters") or []):
        param = resolve_ref(spec, raw["$ref"]) if "$ref" in raw else raw
        if not isinstance(param.get("name"), str):
            raise UnsupportedFeature("parameter without a name")
        merged[(param["name"], param.get("in", "query"))] = param
    return list(merged.values())


def parse_parameters(
    spec: dict[str, Any],
    operation: dict[str, Any],
    path: str,
    path_item_params: list[dict[str, Any]] | None = None,
    warnings: list[str] | None = None,
    where: str = "",
) -> list[dict[str, Any]]:
    """Parse all parameters for an operation.

    Raises UnsupportedFeature for cookie parameters and non-JSON bodies.
    """
    params: list[dict[str, Any]] = []
    method = operation.get("_method", "get")
    is_patch = method == "patch"

    for param in _collect_raw_parameters(spec, operation, path_item_params or []):
        location = param.get("in", "query")
        if location == "cookie":
            raise UnsupportedFeature(f"cookie parameter {param['name']!r}")

        schema = param.get("schema") or {}
        if not schema and param.get("content"):
            schema = _json_schema(param["content"]) or {}
        param_type = resolve_schema_type(spec, schema, warnings, where)
        enum_values = get_enum_values(spec, schema)
        description = _describe(param.get("description", ""), enum_values)

        default = _sanitize_default(schema.get("default"))
        is_required = bool(param.get("required", False)) or location == "path"

        params.append({
            "name": param["name"],
            "py_name": to_snake_identifier(param["name"]),
            "type": param_type,
            "required": is_required,
            "default": default if not is_required else None,
            "description": description,
            "enum": enum_values,
            "location": location,
            "nullable": bool(schema.get("nullable", False)),
        })

    request_body = _check_schema(operation.get("requestBody"), "request body")
    if "$ref" in request_body:
        request_body = resolve_ref(spec, request_body["$ref"])
    content = _check_schema(request_body.get("content"), "content map")
    body_schema = _json_schema(content)

    if content and body_schema is None:
        raise UnsupportedFeature(
            f"request body content type {', '.join(sorted(content))}"
        )

    if body_schema is not None:
        resolved = merge_object_schema(spec, body_schema)
        if resolved.get("type") == "object" or "properties" in resolved:
            body_params = _flatten_object_schema(spec, body_schema, is_patch, warnings, where)
            existing_names = {p["name"] for p in params}
            for body_param in body_params:
                if body_param["name"] in existing_names:
                    _warn(
                        warnings, where,
                        f"body property {body_param['name']!r} is shadowed by a parameter"
                        " of the same name and was dropped",
                    )
                else:
                    params.append(body_param)
        else:
            params.append({
                "name": "body",
                "py_name": "body",
                "type": resolve_schema_type(spec, body_schema, warnings, where),
                "required": bool(request_body.get("required", False)),
                "default": None,
                "description": _describe(request_body.get("description", ""), None)
                or "Request body",
                "enum": None,
                "location": "json",
                "nullable": False,
            })

    _deduplicate_py_names(params)
    return params


def _deduplicate_py_names(params: list[dict[str, Any]]) -> None:
    """Ensure argument names are unique by appending the location if needed."""
    seen: set[str] = set()
    for param in params:
        name = param["py_name"]
        if name in seen:
            name = f"{name}_{param['location']}"
        counter = 2
        base = name
        while name in seen:
            name = f"{base}_{counter}"
            counter += 1
        param["py_name"] = name
        seen.add(name)


def get_response_type(
    spec: dict[str, Any],
    operation: dict[str, Any],
    warnings: list[str] | None = None,
    where: str = "",
) -> dict[str, str]:
    """Determine how the first 2xx response is decoded and annotated.

    Returns {"kind": json|text|bytes|none, "type": annotation}.
    """
    responses = _check_schema(operation.get("responses"), "responses map")
    success_codes = sorted(code for code in responses if str(code).startswith("2"))
    if not success_codes:
        return {"kind": "none", "type": "None"}

    success = _check_schema(responses[success_codes[0]], "response")
    if "$ref" in success:
        success = resolve_ref(spec, success["$ref"])
    content = _check_schema(success.get("content"), "content map")
    if not content:
        return {"kind": "none", "type": "None"}

    schema = _json_schema(content)
    if schema is not None:
        return {"kind": "json", "type": resolve_schema_type(spec, schema, warnings, where)}
    if any(ct.lower().startswith("text/") for ct in content):
        return {"kind": "text", "type": "str"}
    return {"kind": "bytes", "type": "bytes"}
