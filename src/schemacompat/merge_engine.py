"""
schemacompat - merge engine

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from schemacompat.errors import IncompatibleSchemasError, MergeError
from schemacompat.formats import is_format_subset
from schemacompat.merging import compare_schema_definitions, compare_schema_values, SchemaMerger
from schemacompat.types import Instance, Keyword
from schemacompat.typing import Schema
from schemacompat.utils import contains_value, deep_equal, is_plain_obj
from typing import Any, Final

import logging

LOG = logging.getLogger(__name__)

CONST_CONFLICT_MSG: Final = "Incompatible const values: schemas have conflicting const constraints"
FORMAT_CONFLICT_MSG: Final = "Incompatible format values: schemas have conflicting format constraints"
ADDITIONAL_PROPERTIES_CONFLICT_MSG: Final = (
    "Incompatible additionalProperties: required properties conflict with additionalProperties constraint"
)

CONST = Keyword.CONST.value
ENUM = Keyword.ENUM.value
FORMAT = Keyword.FORMAT.value
TYPE = Keyword.TYPE.value
ITEMS = Keyword.ITEMS.value
PROPERTIES = Keyword.PROPERTIES.value
REQUIRED = Keyword.REQUIRED.value
ADDITIONAL_PROPERTIES = Keyword.ADDITIONAL_PROPERTIES.value

# Positions paired up by the deep const/enum conflict detection.
CONST_CONFLICT_SUBSCHEMA_KEYWORDS: Final = (
    ITEMS,
    ADDITIONAL_PROPERTIES,
    Keyword.CONTAINS.value,
    Keyword.PROPERTY_NAMES.value,
    Keyword.NOT.value,
)
CONST_CONFLICT_MAP_KEYWORDS: Final = (PROPERTIES, Keyword.PATTERN_PROPERTIES.value)

NUMERIC_TYPES: Final = frozenset({Instance.NUMBER.value, Instance.INTEGER.value})


def has_const_conflict(a: Schema, b: Schema) -> bool:
    """One side's `const` contradicts the other side's `const` or `enum`."""
    if not is_plain_obj(a) or not is_plain_obj(b):
        return False

    if CONST in a and CONST in b:
        return not deep_equal(a[CONST], b[CONST])
    if CONST in a and isinstance(b.get(ENUM), list):
        return not contains_value(b[ENUM], a[CONST])
    if CONST in b and isinstance(a.get(ENUM), list):
        return not contains_value(a[ENUM], b[CONST])
    return False


def has_deep_const_conflict(a: Schema, b: Schema) -> bool:
    if has_const_conflict(a, b):
        return True
    if not is_plain_obj(a) or not is_plain_obj(b):
        return False

    for keyword in CONST_CONFLICT_SUBSCHEMA_KEYWORDS:
        value_a, value_b = a.get(keyword), b.get(keyword)
        if is_plain_obj(value_a) and is_plain_obj(value_b) and has_deep_const_conflict(value_a, value_b):
            return True

    for keyword in CONST_CONFLICT_MAP_KEYWORDS:
        map_a, map_b = a.get(keyword), b.get(keyword)
        if not is_plain_obj(map_a) or not is_plain_obj(map_b):
            continue
        for key, value in map_a.items():
            if key in map_b and has_deep_const_conflict(value, map_b[key]):
                return True

    items_a, items_b = a.get(ITEMS), b.get(ITEMS)
    if isinstance(items_a, list) and isinstance(items_b, list):
        for item_a, item_b in zip(items_a, items_b):
            if has_deep_const_conflict(item_a, item_b):
                return True

    return False


def has_format_conflict(a: Schema, b: Schema) -> bool:
    """Both sides require a format and neither format includes the other."""
    if not is_plain_obj(a) or not is_plain_obj(b):
        return False

    if FORMAT in a and FORMAT in b:
        format_a, format_b = a[FORMAT], b[FORMAT]
        if format_a != format_b and is_format_subset(format_a, format_b) is not True:
            if is_format_subset(format_b, format_a) is not True:
                return True

    props_a, props_b = a.get(PROPERTIES), b.get(PROPERTIES)
    if is_plain_obj(props_a) and is_plain_obj(props_b):
        for key, value in props_a.items():
            if key in props_b and has_format_conflict(value, props_b[key]):
                return True

    for keyword in (ITEMS, ADDITIONAL_PROPERTIES):
        value_a, value_b = a.get(keyword), b.get(keyword)
        if is_plain_obj(value_a) and is_plain_obj(value_b) and has_format_conflict(value_a, value_b):
            return True

    return False


def _types_conflict(additional_type: Any, property_type: Any) -> bool:
    if not isinstance(additional_type, str) or not isinstance(property_type, str):
        return False
    if additional_type == property_type:
        return False
    return not {additional_type, property_type} <= NUMERIC_TYPES


def _forbids_required(closed: dict[str, Any], other: dict[str, Any]) -> bool:
    """`closed` restricts extra properties that `other` defines and requires."""
    closed_props = closed.get(PROPERTIES)
    other_props = other.get(PROPERTIES)
    if not is_plain_obj(closed_props) or not is_plain_obj(other_props):
        return False

    other_required = other.get(REQUIRED)
    if not isinstance(other_required, list):
        return False
    extras = [key for key in other_required if key not in closed_props and key in other_props]
    if not extras:
        return False

    additional = closed.get(ADDITIONAL_PROPERTIES)
    if additional is False:
        return len(closed_props) > 0

    if is_plain_obj(additional) and TYPE in additional:
        for key in extras:
            prop = other_props[key]
            if is_plain_obj(prop) and TYPE in prop and _types_conflict(additional[TYPE], prop[TYPE]):
                return True
    return False


def has_additional_properties_conflict(a: Schema, b: Schema) -> bool:
    if not is_plain_obj(a) or not is_plain_obj(b):
        return False

    props_a, props_b = a.get(PROPERTIES), b.get(PROPERTIES)
    if not is_plain_obj(props_a) and not is_plain_obj(props_b):
        return False

    if _forbids_required(a, b) or _forbids_required(b, a):
        return True

    if is_plain_obj(props_a) and is_plain_obj(props_b):
        for key, value in props_a.items():
            if key not in props_b:
                continue
            other = props_b[key]
            if is_plain_obj(value) and is_plain_obj(other) and has_additional_properties_conflict(value, other):
                return True

    return False


class MergeEngine:
    """Schema intersection and comparison.

    Wraps `SchemaMerger` with conflict detection for `const`/`enum`, `format`
    and `additionalProperties` against `required`, the cases a keyword by
    keyword merge cannot see as an empty intersection.
    """

    def __init__(self) -> None:
        self._merger = SchemaMerger(
            compare_values=self._compare_values,
            compare_schemas=compare_schema_definitions,
        )

    @staticmethod
    def _compare_values(a: Any, b: Any) -> int:
        # Two nulls are always equal, otherwise enum intersections drop `null` members.
        if a is None and b is None:
            return 0
        return compare_schema_values(a, b)

    def _conflict(self, a: Schema, b: Schema) -> str | None:
        if has_deep_const_conflict(a, b):
            return CONST_CONFLICT_MSG
        if has_format_conflict(a, b):
            return FORMAT_CONFLICT_MSG
        if has_additional_properties_conflict(a, b):
            return ADDITIONAL_PROPERTIES_CONFLICT_MSG
        return None

    def merge(self, a: Schema, b: Schema) -> Schema | None:
        """Intersection of `a` and `b`, `None` when it is provably empty. Not normalized."""
        conflict = self._conflict(a, b)
        if conflict is not None:
            LOG.debug("Merge rejected: %s", conflict)
            return None
        try:
            return self._merger.merge(a, b)
        except MergeError as e:
            LOG.debug("Merge failed: %s", e)
            return None

    def merge_or_raise(self, a: Schema, b: Schema) -> Schema:
        conflict = self._conflict(a, b)
        if conflict is not None:
            raise IncompatibleSchemasError(conflict)
        try:
            return self._merger.merge(a, b)
        except MergeError as e:
            raise IncompatibleSchemasError(str(e)) from e

    def compare(self, a: Schema, b: Schema) -> int:
        return compare_schema_definitions(a, b)

    def is_equal(self, a: Schema, b: Schema) -> bool:
        return self.compare(a, b) == 0
