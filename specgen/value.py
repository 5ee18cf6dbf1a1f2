"""Canonical JSON-shaped value model.

The decoder only ever sees these types: ``None``, ``bool``, ``int``,
``float``, ``str``, ``list`` of values and ``dict`` with ``str`` keys.
YAML parse trees contain more (dates, binary, sets, non-string keys), so
``to_value`` folds them into this model before decoding.
"""

from __future__ import annotations

import base64
import datetime
from typing import Any, Union

from .errors import SpecDecodeError

Value = Union[None, bool, int, float, str, list["Value"], dict[str, "Value"]]


def _key_to_str(key: Any) -> str:
    """Render a mapping key the way JSON would spell it."""
    if isinstance(key, str):
        return key
    if key is None:
        return "null"
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (datetime.date, datetime.datetime)):
        return key.isoformat()
    return str(key)


def to_value(node: Any) -> Value:
    """Convert a generic parse tree into the canonical value model.

    Raises SpecDecodeError when YAML aliases make the tree contain itself.
    """
    return _convert(node, set())


def _convert(node: Any, active: set[int]) -> Value:
    if node is None or isinstance(node, (bool, int, float, str)):
        return node
    if isinstance(node, (datetime.date, datetime.datetime)):
        return node.isoformat()
    if isinstance(node, bytes):
        return base64.b64encode(node).decode("ascii")
    if isinstance(node, (set, frozenset)):
        return sorted(_key_to_str(item) for item in node)
    if not isinstance(node, (dict, list, tuple)):
        raise TypeError(f"Cannot convert {type(node).__name__} to a canonical value")

    # Shared aliases are fine; only a container inside itself is rejected
    if id(node) in active:
        raise SpecDecodeError("recursive YAML alias: a node contains itself")
    active.add(id(node))
    try:
        if isinstance(node, dict):
            # Keys that collapse to the same string: last one wins
            return {_key_to_str(key): _convert(item, active) for key, item in node.items()}
        return [_convert(item, active) for item in node]
    finally:
        active.discard(id(node))


def type_name(value: Value) -> str:
    """Human name of a value's JSON type, for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"
