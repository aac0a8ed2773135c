"""Edit JSON documents by dot-delimited paths."""

from __future__ import annotations

import json
from typing import Any

_HTML_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026", "\u2028": "\\u2028", "\u2029": "\\u2029"}


def _encode(doc: dict[str, Any]) -> bytes:
    text = json.dumps(doc, indent=2, sort_keys=True, ensure_ascii=False)
    # These characters can only occur inside string literals, so escaping them is safe.
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text.encode("utf-8")


def _set_or_delete(doc: dict[str, Any], path: str, value: Any) -> None:
    *parents, last = path.split(".")
    current = doc
    for depth, key in enumerate(parents, start=1):
        if key not in current:
            # Missing intermediate tables are created so new paths can be set.
            current[key] = {}
        nested = current[key]
        if not isinstance(nested, dict):
            raise ValueError(f"invalid path: {'.'.join(parents[:depth])} is not a map")
        current = nested
    if value is None:
        current.pop(last, None)
    else:
        current[last] = value


def set_field(data: bytes | str, path: str, value: Any) -> bytes:
    """Set ``value`` at the dot-delimited ``path`` of a JSON object, or delete it if None.

    Returns the document re-encoded with two-space indentation and sorted keys.
    Raises ValueError if the input is not a JSON object or the path crosses a non-object.
    """
    try:
        doc = json.loads(data)
    except ValueError as exc:
        raise ValueError(f"failed to unmarshal genesis: {exc}") from exc
    if not isinstance(doc, dict):
        raise ValueError("failed to unmarshal genesis: document is not a JSON object")
    _set_or_delete(doc, path, value)
    return _encode(doc)


def remove_field(data: bytes | str, path: str) -> bytes:
    """Remove the field at the dot-delimited ``path`` of a JSON object."""
    return set_field(data, path, None)