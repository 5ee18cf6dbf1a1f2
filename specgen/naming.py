"""Identifier construction for generated code.

Three kinds of names:
  - module names from the API title          "Swagger Petstore" -> SwaggerPetstore
  - method names from operationId or route   listPets -> list_pets
                                              GET /pets/{petId} -> get_pet
  - argument / class names from schema keys  X-Request-Id -> x_request_id
                                              pet-status -> PetStatus

Route-derived method names follow the verb_resource pattern:
  - GET collection      -> list_{plural}
  - GET collection/{id} -> get_{singular}
  - POST collection     -> create_{singular}
  - PUT collection/{id} -> update_{singular}
  - DELETE col/{id}     -> delete_{singular}
"""

from __future__ import annotations

import keyword
import re

_METHOD_VERBS: dict[str, str] = {
    "get": "list",
    "post": "create",
    "put": "update",
    "delete": "delete",
    "patch": "update",
}

# Irregular plurals; everything else gets +s
_PLURALS: dict[str, str] = {
    "person": "people",
    "child": "children",
    "status": "statuses",
    "address": "addresses",
    "index": "indexes",
}

_SINGULARS: dict[str, str] = {v: k for k, v in _PLURALS.items()}

_VERSION_SEGMENT = re.compile(r"^v\d+$")


def _pluralize(word: str) -> str:
    """Return the plural form of a resource name."""
    if word in _PLURALS:
        return _PLURALS[word]
    if word in _SINGULARS:
        return word
    if word.endswith("s") and not word.endswith("ss"):
        return word
    if word.endswith("y") and not word.endswith(("ay", "ey", "oy", "uy")):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


def _singularize(word: str) -> str:
    """Return the singular form of a resource name."""
    if word in _SINGULARS:
        return _SINGULARS[word]
    if word in _PLURALS:
        return word
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith(("sses", "xes", "ches", "shes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _sanitize_segment(segment: str) -> str:
    """Sanitize a name fragment for use in a snake_case identifier."""
    name = _camel_to_snake(segment)
    name = re.sub(r"[^a-z0-9_]", "_", name)
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def _escape_identifier(name: str, fallback: str) -> str:
    """Make ``name`` a usable identifier: no leading digit, no keyword."""
    if not name:
        return fallback
    if name[0].isdigit():
        name = f"{fallback}_{name}"
    if keyword.iskeyword(name) or name == "self":
        name += "_"
    return name


def to_snake_identifier(name: str, fallback: str = "value") -> str:
    """Snake-case identifier for arguments and fields."""
    return _escape_identifier(_sanitize_segment(name), fallback)


def to_class_name(name: str, fallback: str = "Model") -> str:
    """PascalCase identifier for generated classes."""
    words = re.split(r"[^A-Za-z0-9]+", name)
    joined = "".join(w[:1].upper() + w[1:] for w in words if w)
    if not joined:
        return fallback
    if joined[0].isdigit():
        joined = fallback + joined
    return joined


def sanitize_module_name(title: str) -> str | None:
    """Turn an API title into a module name, or None if nothing usable remains.

    Words are capitalized and glued together; leading digits and other
    non-identifier characters are dropped.
    """
    words = re.split(r"[^A-Za-z0-9_]+", title)
    joined = "".join(w[:1].upper() + w[1:] for w in words if w)
    joined = joined.lstrip("0123456789_")
    if not joined or not joined.isidentifier() or keyword.iskeyword(joined):
        return None
    return joined


def _extract_path_parts(path: str) -> list[str]:
    """Extract meaningful path segments, dropping /api, version and {param} segments."""
    parts = [p for p in path.split("/") if p and not p.startswith("{")]
    if parts and parts[0] == "api":
        parts = parts[1:]
    if parts and _VERSION_SEGMENT.match(parts[0]):
        parts = parts[1:]
    return parts


def build_method_name(method: str, path: str, operation_id: str | None = None) -> str:
    """Build a client method name.

    Uses the operationId when there is one, otherwise derives a name like
    'list_pets' or 'get_pet' from the HTTP method and path.
    """
    if operation_id:
        name = _sanitize_segment(operation_id)
        if name:
            return _escape_identifier(name, "op")

    method_lower = method.lower()
    parts = _extract_path_parts(path)
    segments = [p for p in path.split("/") if p]
    ends_with_id = bool(segments) and segments[-1].startswith("{")

    if method_lower == "get":
        verb = "get" if ends_with_id else "list"
    else:
        verb = _METHOD_VERBS.get(method_lower, method_lower)

    clean_parts = [p for p in (_sanitize_segment(p) for p in parts) if p]
    if not clean_parts:
        return f"{verb}_root"

    # Only the last segment is inflected
    last = clean_parts[-1]
    if verb == "list":
        last = _pluralize(last)
    elif ends_with_id or verb == "create":
        last = _singularize(last)
    clean_parts[-1] = last
    return _escape_identifier(f"{verb}_{'_'.join(clean_parts)}", "op")
