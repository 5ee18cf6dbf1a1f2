"""Read the entry document and resolve local $ref pointers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .errors import (
    DocumentEncodingError,
    DocumentNotFoundError,
    DocumentReadError,
    UnsupportedFeature,
)


def read_document(path: str | Path) -> str:
    """Read the OpenAPI document at ``path`` as UTF-8 text (BOM tolerated)."""
    name = str(path)
    try:
        data = Path(path).read_bytes()
    except FileNotFoundError:
        raise DocumentNotFoundError(name) from None
    except OSError as exc:
        raise DocumentReadError(name, exc.strerror or str(exc)) from None
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DocumentEncodingError(name, str(exc)) from None


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document."""
    return (spec.get("components") or {}).get("schemas") or {}


def _unescape(part: str) -> str:
    return part.replace("~1", "/").replace("~0", "~")


def resolve_ref(spec: dict[str, Any], ref: str) -> dict[str, Any]:
    """Resolve a local $ref pointer in the document.

    Raises UnsupportedFeature for references into other files and for
    pointers that lead nowhere.
    """
    if not isinstance(ref, str):
        raise UnsupportedFeature(f"$ref that is not a string ({ref!r})")
    if not ref.startswith("#/"):
        raise UnsupportedFeature(f"external reference {ref!r}")
    node: Any = spec
    for part in ref[2:].split("/"):
        part = _unescape(part)
        if isinstance(node, dict) and part in node:
            node = node[part]
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            raise UnsupportedFeature(f"unresolvable reference {ref!r}")
    if not isinstance(node, dict):
        raise UnsupportedFeature(f"reference {ref!r} does not point to an object")
    return node


def ref_name(ref: str) -> str:
    """Last segment of a $ref pointer: '#/components/schemas/Pet' -> 'Pet'."""
    return _unescape(ref.rsplit("/", 1)[-1])
