"""Build Jinja2 template context from a decoded ApiSpecification.

Turns component schemas into model definitions and every operation into a
client method description, collecting generator warnings in the order they
are encountered. Unsupported features either abort generation or, with
``generate_todos``, become TODO stubs.
"""

from __future__ import annotations

import keyword
import re
import textwrap
from typing import Any

from .errors import GenerationError, UnsupportedFeature
from .loader import get_schemas
from .naming import build_method_name
from .schema_parser import (
    component_class_name,
    get_enum_values,
    get_response_type,
    merge_object_schema,
    object_fields,
    parse_parameters,
    resolve_schema_type,
)
from .spec import HTTP_METHODS, ApiSpecification

_DOC_WIDTH = 72

# Attributes of the generated Client class
_RESERVED_METHOD_NAMES = {"close", "_client", "_request"}

_PATH_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def _unsupported(where: str, exc: UnsupportedFeature) -> GenerationError:
    return GenerationError(
        f"{where}: {exc} is not supported. "
        "Pass --generateTodos yes to generate a stub instead."
    )


def _wrap(text: str) -> list[str]:
    return textwrap.wrap(text, _DOC_WIDTH) if text else []


def _annotation(param: dict[str, Any]) -> str:
    """Annotation for a keyword argument that may be left out."""
    type_str = param["type"]
    if type_str == "Any" or type_str.endswith("| None") or type_str == "None":
        return type_str
    return f"{type_str} | None"


def _path_expression(path: str, params: list[dict[str, Any]]) -> str:
    """Render the request path as a Python expression.

    '/pets/{petId}' -> f"/pets/{_segment(pet_id)}"
    """
    by_name = {p["name"]: p["py_name"] for p in params if p["location"] == "path"}
    pieces = []
    last = 0
    for match in _PATH_PLACEHOLDER.finditer(path):
        placeholder = match.group(1)
        if placeholder not in by_name:
            raise UnsupportedFeature(f"path placeholder {{{placeholder}}} without a matching parameter")
        pieces.append(_fstring_literal(path[last:match.start()]))
        pieces.append(f"{{_segment({by_name[placeholder]})}}")
        last = match.end()
    if not pieces:
        return _string_literal(path)
    pieces.append(_fstring_literal(path[last:]))
    return 'f"' + "".join(pieces) + '"'


def _string_literal(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _fstring_literal(text: str) -> str:
    return _string_literal(text)[1:-1].replace("{", "{{").replace("}", "}}")


def _make_doc(method: str, path: str, operation: dict[str, Any]) -> list[str]:
    """Build the docstring lines for a client method."""
    summary = (operation.get("summary") or "").strip()
    description = re.sub(r"\s+", " ", re.sub(r"<[^>]+>", "", operation.get("description") or "")).strip()

    if summary:
        doc = summary
    elif description:
        doc = description.split(". ")[0]
    else:
        doc = f"{method.upper()} {path}"

    doc = doc.rstrip(". ") + "."
    lines = _wrap(doc)
    if description and description.rstrip(".") != doc.rstrip("."):
        lines += [""] + _wrap(description)
    if operation.get("deprecated"):
        lines += ["", "Deprecated."]
    lines += ["", f"{method.upper()} {path}"]
    return lines


def _build_models(
    document: dict[str, Any], generate_todos: bool, warnings: list[str],
) -> list[dict[str, Any]]:
    """Describe one model per component schema, sorted by name."""
    models = []
    for name, schema in sorted(get_schemas(document).items()):
        class_name = component_class_name(name)
        where = f"components.schemas.{name}"
        local: list[str] = []
        schema = schema or {}
        try:
            merged = merge_object_schema(document, schema)
            if merged.get("properties"):
                fields = object_fields(document, schema, local, where)
                for field in fields:
                    field["annotation"] = (
                        field["type"] if field["required"] else f"NotRequired[{field['type']}]"
                    )
                functional = not all(
                    f["name"].isidentifier() and not keyword.iskeyword(f["name"]) for f in fields
                )
                model = {
                    "kind": "functional" if functional else "class",
                    "name": class_name,
                    "doc": _wrap(re.sub(r"<[^>]+>", "", schema.get("description") or "").strip()),
                    "fields": fields,
                    "todo": None,
                }
            else:
                model = {
                    "kind": "alias",
                    "name": class_name,
                    "type": _alias_type(document, schema, local, where),
                    "todo": None,
                }
        except UnsupportedFeature as exc:
            if not generate_todos:
                raise _unsupported(where, exc) from None
            warnings.append(f"{where}: {exc} is not supported; typed as Any (TODO)")
            models.append({"kind": "alias", "name": class_name, "type": "Any", "todo": str(exc)})
            continue
        warnings.extend(local)
        models.append(model)
    return models


def _alias_type(
    document: dict[str, Any], schema: dict[str, Any], warnings: list[str], where: str,
) -> str:
    if "enum" in schema and all(isinstance(v, str) for v in schema["enum"]) and schema["enum"]:
        values = ", ".join(repr(v) for v in get_enum_values(document, schema) or [])
        return f"Literal[{values}]"
    return resolve_schema_type(document, schema, warnings, where)


def _build_operation(
    document: dict[str, Any],
    path: str,
    method: str,
    path_item: dict[str, Any],
    warnings: list[str],
) -> dict[str, Any]:
    """Describe one client method. Raises UnsupportedFeature."""
    operation = {**path_item[method], "_method": method}
    where = f"{method.upper()} {path}"

    params = parse_parameters(
        document, operation, path, path_item.get("parameters") or [], warnings, where,
    )
    response = get_response_type(document, operation, warnings, where)
    path_expr = _path_expression(path, params)

    for param in params:
        param["annotation"] = param["type"] if param["required"] else _annotation(param)
        param["doc"] = _wrap(param["description"])

    json_params = [p for p in params if p["location"] == "json"]
    return {
        "name": build_method_name(method, path, operation.get("operationId")),
        "method": method,
        "path": path,
        "path_expr": path_expr,
        "params": params,
        "required_params": [p for p in params if p["required"]],
        "optional_params": [p for p in params if not p["required"]],
        "query_params": [p for p in params if p["location"] == "query"],
        "header_params": [p for p in params if p["location"] == "header"],
        "body_fields": [p for p in params if p["location"] == "body"],
        "json_param": json_params[0] if json_params else None,
        "response": response,
        "doc": _make_doc(method, path, operation),
        "todo": None,
    }


def _deduplicate_method_names(operations: list[dict[str, Any]], warnings: list[str]) -> None:
    """Ensure all method names are unique by appending method suffix if needed."""
    for op in operations:
        if op["name"] in _RESERVED_METHOD_NAMES:
            op["name"] += "_"

    seen: dict[str, int] = {}
    for op in operations:
        name = op["name"]
        if name in seen:
            seen[name] += 1
            op["name"] = f"{name}_{op['method']}"
        else:
            seen[name] = 1

    final_seen: dict[str, int] = {}
    for op in operations:
        name = op["name"]
        if name in final_seen:
            final_seen[name] += 1
            op["name"] = f"{name}_{final_seen[name]}"
        else:
            final_seen[name] = 1

    for op in operations:
        if op["name"] != op["requested_name"]:
            warnings.append(
                f"{op['method'].upper()} {op['path']}: method name {op['requested_name']!r}"
                f" is already taken, generated as {op['name']!r}"
            )


def build_context(
    spec: ApiSpecification, namespace: str, generate_todos: bool,
) -> dict[str, Any]:
    """Build the full template context and the ordered warning list."""
    document = spec.document
    warnings: list[str] = []

    if not spec.servers:
        warnings.append("No servers declared; pass base_url when creating the Client.")
    if spec.security_schemes:
        schemes = ", ".join(sorted(spec.security_schemes))
        warnings.append(
            f"Security schemes ({schemes}) are not applied automatically;"
            " pass credentials through Client(headers=...)."
        )

    models = _build_models(document, generate_todos, warnings)

    operations: list[dict[str, Any]] = []
    for path, path_item in sorted(spec.paths.items()):
        for method in HTTP_METHODS:
            if method not in path_item:
                continue
            local: list[str] = []
            try:
                op = _build_operation(document, path, method, path_item, local)
            except UnsupportedFeature as exc:
                where = f"{method.upper()} {path}"
                if not generate_todos:
                    raise _unsupported(where, exc) from None
                warnings.append(f"{where}: {exc} is not supported; generated a TODO stub")
                op = {
                    "name": build_method_name(method, path, path_item[method].get("operationId")),
                    "method": method,
                    "path": path,
                    "todo": str(exc),
                }
            else:
                warnings.extend(local)
            op["requested_name"] = op["name"]
            operations.append(op)

    _deduplicate_method_names(operations, warnings)

    if not operations:
        warnings.append("No operations found; the generated Client has no methods.")

    return {
        "namespace": namespace,
        "title": spec.info.title,
        "version": spec.info.version,
        "description": _wrap(re.sub(r"\s+", " ", spec.info.description).strip()),
        "openapi": spec.openapi,
        "base_url": spec.servers[0] if spec.servers else "",
        "models": models,
        "operations": operations,
        "operation_count": len(operations),
        "warnings": warnings,
    }
