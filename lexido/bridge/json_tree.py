"""Structural helpers for arbitrary decoded JSON trees."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeAlias

JsonValue: TypeAlias = dict[str, Any] | list[Any] | str | int | float | bool | None

NOT_A_STRING_PREFIX = "Found, but not a string"


def json_kind(value: Any) -> str:
    """Return the JSON kind name for a decoded value."""
    # bool must be tested before int/float.
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")


def substitute(value: JsonValue, placeholder: str, replacement: str) -> JsonValue:
    """Return a copy of ``value`` with exact placeholder strings replaced.

    Only strings that equal ``placeholder`` in full are replaced; substrings are
    left untouched and ``replacement`` is never scanned again. Object keys are
    preserved as-is and the input tree is not mutated. Numbers, booleans, null
    and any other leaves are returned unchanged.
    """
    if isinstance(value, dict):
        return {key: substitute(item, placeholder, replacement) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute(item, placeholder, replacement) for item in value]
    if isinstance(value, str) and value == placeholder:
        return replacement
    return value


def extract(value: JsonValue, field_name: str) -> str | None:
    """Search a decoded tree for ``field_name`` and return its string value.

    Direct keys of an object win over nested matches, even when they hold an
    empty string. Nested values are searched depth-first in document order and
    the first non-empty match is returned; an empty match is only returned when
    nothing else is found. A match whose value is not a string yields a
    diagnostic naming its kind. ``None`` means the field does not occur anywhere
    in the tree.
    """
    if isinstance(value, dict):
        if field_name in value:
            found = value[field_name]
            if isinstance(found, str):
                return found
            return f"{NOT_A_STRING_PREFIX}: {json_kind(found)}"
        return _first_match(value.values(), field_name)
    if isinstance(value, list):
        return _first_match(value, field_name)
    return None


def _first_match(items: Iterable[Any], field_name: str) -> str | None:
    """Return the first non-empty extraction hit among child values."""
    fallback: str | None = None
    for item in items:
        found = extract(item, field_name)
        if found:
            return found
        if found is not None and fallback is None:
            fallback = found
    return fallback
