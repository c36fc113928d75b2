"""
schemacompat - utilities

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from schemacompat.types import Instance
from typing import Any, TypeGuard

import json


def is_plain_obj(value: Any) -> TypeGuard[dict[str, Any]]:
    return isinstance(value, dict)


def is_number(value: Any) -> bool:
    """True for JSON numbers.

    >>> is_number(1.5), is_number(True)
    (True, False)
    """
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def deep_equal(a: Any, b: Any) -> bool:
    """Structural JSON equality, key order does not matter.

    Booleans are never equal to numbers, while integral floats are equal to
    integers as they are the same JSON number:

    >>> deep_equal({"a": [1, {"b": None}]}, {"a": [1.0, {"b": None}]})
    True
    >>> deep_equal(True, 1)
    False
    """
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if a is None or b is None:
        return False
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b or not deep_equal(value, b[key]):
                return False
        return True
    return False


def contains_value(values: Iterable[Any], value: Any) -> bool:
    return any(deep_equal(candidate, value) for candidate in values)


def omit_keys(obj: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    omitted = frozenset(keys)
    return {key: value for key, value in obj.items() if key not in omitted}


def union_strings(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Ordered union without duplicates.

    >>> union_strings(["a", "b"], ["b", "c"])
    ['a', 'b', 'c']
    """
    return list(dict.fromkeys([*a, *b]))


def infer_type(value: Any) -> str | None:
    """Return the JSON Schema type name of a JSON value.

    >>> infer_type(3.0), infer_type(3.5), infer_type(False), infer_type(None)
    ('integer', 'number', 'boolean', 'null')
    """
    if value is None:
        return Instance.NULL.value
    if isinstance(value, bool):
        return Instance.BOOLEAN.value
    if isinstance(value, int):
        return Instance.INTEGER.value
    if isinstance(value, float):
        return Instance.INTEGER.value if value.is_integer() else Instance.NUMBER.value
    if isinstance(value, str):
        return Instance.STRING.value
    if isinstance(value, list):
        return Instance.ARRAY.value
    if isinstance(value, dict):
        return Instance.OBJECT.value
    return None


def as_type_list(type_value: Any) -> list[str]:
    if isinstance(type_value, str):
        return [type_value]
    if isinstance(type_value, list):
        return [t for t in type_value if isinstance(t, str)]
    return []


def matches_type(value: Any, type_value: Any) -> bool:
    """Check a JSON value against a `type` keyword, `number` accepts integers."""
    if type_value is None:
        return True
    actual = infer_type(value)
    return any(
        expected == actual or (expected == Instance.NUMBER.value and actual == Instance.INTEGER.value)
        for expected in as_type_list(type_value)
    )


def json_encode(obj: Any, *, sort_keys: bool | None = None, compact: bool | None = None, indent: int | None = None) -> str:
    kwargs: dict[str, Any] = {"ensure_ascii": False}
    if indent is not None:
        kwargs["indent"] = indent
    if compact is not False and indent is None:
        kwargs["separators"] = (",", ":")
    if sort_keys is True:
        kwargs["sort_keys"] = True
    return json.dumps(obj, **kwargs)
