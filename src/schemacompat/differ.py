"""
schemacompat - structural differences between schemas

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from schemacompat.types import DiffKind, KeywordShape, keyword_shape, SchemaDiff
from schemacompat.typing import Schema
from schemacompat.utils import deep_equal, is_plain_obj, union_strings
from typing import Any

ROOT_PATH = "$"

_MISSING = object()


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _diff_entry(path: str, original: Any, merged: Any) -> list[SchemaDiff]:
    if original is _MISSING:
        return [SchemaDiff(path=path, kind=DiffKind.ADDED, expected=None, actual=merged)]
    if merged is _MISSING:
        return [SchemaDiff(path=path, kind=DiffKind.REMOVED, expected=original, actual=None)]
    return []


def compute_diffs(original: Schema, merged: Schema, path: str = "") -> list[SchemaDiff]:
    """Flat list of differences between `original` and `merged`.

    Sub-schema and schema map keywords are walked recursively, any other
    differing keyword is reported as a single change. Paths are dotted keyword
    paths, the root is reported as `$`.
    """
    if not is_plain_obj(original) or not is_plain_obj(merged):
        if not deep_equal(original, merged):
            return [SchemaDiff(path=path or ROOT_PATH, kind=DiffKind.CHANGED, expected=original, actual=merged)]
        return []

    diffs: list[SchemaDiff] = []
    for keyword in union_strings(original, merged):
        current_path = _join(path, keyword)
        original_value = original.get(keyword, _MISSING)
        merged_value = merged.get(keyword, _MISSING)

        if original_value is _MISSING or merged_value is _MISSING:
            diffs.extend(_diff_entry(current_path, original_value, merged_value))
            continue

        if deep_equal(original_value, merged_value):
            continue

        shape = keyword_shape(keyword)
        both_objects = is_plain_obj(original_value) and is_plain_obj(merged_value)
        if both_objects and shape in (KeywordShape.SUBSCHEMA, KeywordShape.CONDITIONAL, KeywordShape.ITEMS):
            diffs.extend(compute_diffs(original_value, merged_value, current_path))
        elif both_objects and shape in (KeywordShape.SCHEMA_MAP, KeywordShape.DEPENDENCIES):
            diffs.extend(
                _compute_map_diffs(
                    original_value, merged_value, current_path, dependencies=shape is KeywordShape.DEPENDENCIES
                )
            )
        else:
            diffs.append(
                SchemaDiff(path=current_path, kind=DiffKind.CHANGED, expected=original_value, actual=merged_value)
            )

    return diffs


def _compute_map_diffs(
    original: dict[str, Any], merged: dict[str, Any], path: str, *, dependencies: bool
) -> list[SchemaDiff]:
    diffs: list[SchemaDiff] = []
    for key in union_strings(original, merged):
        current_path = f"{path}.{key}"
        original_value = original.get(key, _MISSING)
        merged_value = merged.get(key, _MISSING)

        if original_value is _MISSING or merged_value is _MISSING:
            diffs.extend(_diff_entry(current_path, original_value, merged_value))
            continue

        if dependencies and (isinstance(original_value, list) or isinstance(merged_value, list)):
            # Property dependencies are compared by value.
            if not deep_equal(original_value, merged_value):
                diffs.append(
                    SchemaDiff(path=current_path, kind=DiffKind.CHANGED, expected=original_value, actual=merged_value)
                )
            continue

        diffs.extend(compute_diffs(original_value, merged_value, current_path))

    return diffs
