"""
schemacompat - schema normalization

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from schemacompat.types import Keyword, KeywordShape, keyword_shape
from schemacompat.typing import Schema, SchemaObject
from schemacompat.utils import contains_value, infer_type, is_plain_obj
from typing import Any, Final

METADATA_KEYWORDS: Final = frozenset(
    {
        Keyword.ID.value,
        Keyword.SCHEMA.value,
        Keyword.COMMENT.value,
        Keyword.TITLE.value,
        Keyword.DESCRIPTION.value,
        Keyword.DEFAULT.value,
        Keyword.EXAMPLES.value,
        Keyword.DEFINITIONS.value,
        Keyword.DEFS.value,
    }
)

TYPE = Keyword.TYPE.value
CONST = Keyword.CONST.value
ENUM = Keyword.ENUM.value
NOT = Keyword.NOT.value


def _type_from_enum(values: list[Any]) -> str | list[str] | None:
    types = list(dict.fromkeys(t for t in (infer_type(v) for v in values) if t is not None))
    if not types:
        return None
    if len(types) == 1:
        return types[0]
    return types


def _normalize_list(values: list[Any]) -> list[Any]:
    normalized = [normalize(v) if isinstance(v, (bool, dict)) else v for v in values]
    if all(n is v for n, v in zip(normalized, values)):
        return values
    return normalized


def _normalize_map(mapping: dict[str, Any], *, dependencies: bool = False) -> dict[str, Any]:
    changed = False
    result: dict[str, Any] = {}
    for key, value in mapping.items():
        if dependencies and not is_plain_obj(value):
            # String array dependencies are not schemas.
            result[key] = value
            continue
        normalized = normalize(value) if isinstance(value, (bool, dict)) else value
        changed = changed or normalized is not value
        result[key] = normalized
    return result if changed else mapping


def _normalize_value(keyword: str, value: Any) -> Any:
    match keyword_shape(keyword):
        case KeywordShape.SUBSCHEMA | KeywordShape.CONDITIONAL:
            return normalize(value) if is_plain_obj(value) else value
        case KeywordShape.ITEMS:
            if isinstance(value, list):
                return _normalize_list(value)
            return normalize(value) if is_plain_obj(value) else value
        case KeywordShape.SCHEMA_ARRAY:
            return _normalize_list(value) if isinstance(value, list) else value
        case KeywordShape.SCHEMA_MAP:
            return _normalize_map(value) if is_plain_obj(value) else value
        case KeywordShape.DEPENDENCIES:
            return _normalize_map(value, dependencies=True) if is_plain_obj(value) else value
        case _:
            return value


def _is_pure_not(schema: SchemaObject) -> bool:
    return all(key == NOT or key in METADATA_KEYWORDS for key in schema)


def normalize(schema: Schema) -> Schema:
    """Canonicalize a schema without changing the set of values it accepts.

    - `type` is inferred from `const`, or from `enum` when there is no `type`.
    - A single valued `enum` becomes a `const`.
    - `enum` is dropped when it contains the `const` value.
    - `{"not": {"not": X}}` is replaced by `X`.

    Sub-schemas are normalized recursively. When nothing changes the same
    object is returned, so identity checks downstream stay meaningful.
    """
    if not is_plain_obj(schema):
        return schema

    result: SchemaObject | None = None

    def writable() -> SchemaObject:
        nonlocal result
        if result is None:
            result = dict(schema)
        return result

    current: SchemaObject = schema

    if CONST in current and TYPE not in current:
        inferred = infer_type(current[CONST])
        if inferred is not None:
            writable()[TYPE] = inferred
            current = writable()

    if isinstance(current.get(ENUM), list) and TYPE not in current:
        inferred_type = _type_from_enum(current[ENUM])
        if inferred_type is not None:
            writable()[TYPE] = inferred_type
            current = writable()

    if isinstance(current.get(ENUM), list) and len(current[ENUM]) == 1 and CONST not in current:
        target = writable()
        target[CONST] = target.pop(ENUM)[0]
        current = target

    if CONST in current and isinstance(current.get(ENUM), list) and contains_value(current[ENUM], current[CONST]):
        target = writable()
        del target[ENUM]
        current = target

    for keyword, value in list(current.items()):
        normalized = _normalize_value(keyword, value)
        if normalized is not value:
            writable()[keyword] = normalized
            current = writable()

    inner = current.get(NOT)
    if is_plain_obj(inner) and NOT in inner and _is_pure_not(inner) and is_plain_obj(inner[NOT]):
        target = writable()
        del target[NOT]
        target.update(inner[NOT])
        # The flattened keywords may interact with the ones already present.
        return normalize(target)

    return current
