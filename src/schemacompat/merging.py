"""
schemacompat - structural schema intersection and comparison

`SchemaMerger.merge(a, b)` computes a schema accepting exactly the values
accepted by both `a` and `b` (`allOf: [a, b]` resolved keyword by keyword).
A provably empty intersection raises `MergeError`. Keywords the merger cannot
reconcile structurally (`contains`, conditionals) are kept in an `allOf`.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from fractions import Fraction
from functools import cmp_to_key
from schemacompat.errors import MergeError
from schemacompat.formats import is_format_subset
from schemacompat.types import Instance, Keyword, KeywordShape, keyword_shape
from schemacompat.typing import Schema, SchemaObject
from schemacompat.utils import as_type_list, deep_equal, is_number, is_plain_obj, matches_type, union_strings
from typing import Any, Final

import math
import re

ValueComparator = Callable[[Any, Any], int]

TYPE = Keyword.TYPE.value
CONST = Keyword.CONST.value
ENUM = Keyword.ENUM.value
ALL_OF = Keyword.ALL_OF.value
PROPERTIES = Keyword.PROPERTIES.value
PATTERN_PROPERTIES = Keyword.PATTERN_PROPERTIES.value
ADDITIONAL_PROPERTIES = Keyword.ADDITIONAL_PROPERTIES.value
REQUIRED = Keyword.REQUIRED.value
ITEMS = Keyword.ITEMS.value
ADDITIONAL_ITEMS = Keyword.ADDITIONAL_ITEMS.value
CONTAINS = Keyword.CONTAINS.value
CONDITIONAL_KEYWORDS: Final = (Keyword.IF.value, Keyword.THEN.value, Keyword.ELSE.value)

# Keywords merged together with their neighbours rather than one by one.
GROUPED_KEYWORDS: Final = frozenset(
    {
        PROPERTIES,
        PATTERN_PROPERTIES,
        ADDITIONAL_PROPERTIES,
        ITEMS,
        ADDITIONAL_ITEMS,
        ALL_OF,
        *CONDITIONAL_KEYWORDS,
    }
)

BOUND_PAIRS: Final = (
    (Keyword.MINIMUM.value, Keyword.MAXIMUM.value, False),
    (Keyword.EXCLUSIVE_MINIMUM.value, Keyword.MAXIMUM.value, True),
    (Keyword.MINIMUM.value, Keyword.EXCLUSIVE_MAXIMUM.value, True),
    (Keyword.EXCLUSIVE_MINIMUM.value, Keyword.EXCLUSIVE_MAXIMUM.value, True),
    (Keyword.MIN_LENGTH.value, Keyword.MAX_LENGTH.value, False),
    (Keyword.MIN_ITEMS.value, Keyword.MAX_ITEMS.value, False),
    (Keyword.MIN_PROPERTIES.value, Keyword.MAX_PROPERTIES.value, False),
)


def _rank(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if is_number(value):
        return 2
    if isinstance(value, str):
        return 3
    if isinstance(value, list):
        return 4
    return 5


def compare_schema_values(a: Any, b: Any) -> int:
    """Total order over JSON values: null < boolean < number < string < array < object.

    >>> compare_schema_values([1, "a"], [1, "b"]), compare_schema_values({"a": 1}, {"a": 1.0})
    (-1, 0)
    """
    rank_a, rank_b = _rank(a), _rank(b)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1
    if rank_a == 0:
        return 0
    if rank_a in (1, 2, 3):
        return (a > b) - (a < b)
    if rank_a == 4:
        for x, y in zip(a, b):
            result = compare_schema_values(x, y)
            if result:
                return result
        return (len(a) > len(b)) - (len(a) < len(b))
    keys_a, keys_b = sorted(a), sorted(b)
    result = compare_schema_values(keys_a, keys_b)
    if result:
        return result
    for key in keys_a:
        result = compare_schema_values(a[key], b[key])
        if result:
            return result
    return 0


def _sorted_values(values: Iterable[Any]) -> list[Any]:
    result: list[Any] = []
    for value in sorted(values, key=cmp_to_key(compare_schema_values)):
        if not result or compare_schema_values(result[-1], value) != 0:
            result.append(value)
    return result


def canonicalize(schema: Any) -> Any:
    """Canonical form used for structural comparison.

    Annotations are dropped, order-insensitive keyword values are sorted and
    an empty schema is the same as `true`.
    """
    if not is_plain_obj(schema):
        return schema

    result: SchemaObject = {}
    for keyword, value in schema.items():
        match keyword_shape(keyword):
            case KeywordShape.ANNOTATION:
                continue
            case KeywordShape.SUBSCHEMA | KeywordShape.CONDITIONAL:
                result[keyword] = canonicalize(value)
            case KeywordShape.ITEMS:
                result[keyword] = [canonicalize(v) for v in value] if isinstance(value, list) else canonicalize(value)
            case KeywordShape.SCHEMA_ARRAY:
                result[keyword] = _sorted_values(canonicalize(v) for v in value) if isinstance(value, list) else value
            case KeywordShape.SCHEMA_MAP:
                result[keyword] = {k: canonicalize(v) for k, v in value.items()} if is_plain_obj(value) else value
            case KeywordShape.DEPENDENCIES:
                if is_plain_obj(value):
                    result[keyword] = {
                        k: sorted(set(v)) if isinstance(v, list) else canonicalize(v) for k, v in value.items()
                    }
                else:
                    result[keyword] = value
            case _:
                if keyword == TYPE and isinstance(value, list):
                    types = sorted(set(as_type_list(value)))
                    result[keyword] = types[0] if len(types) == 1 else types
                elif keyword == REQUIRED and isinstance(value, list):
                    result[keyword] = sorted(set(value))
                elif keyword == ENUM and isinstance(value, list):
                    result[keyword] = _sorted_values(value)
                else:
                    result[keyword] = value

    if not result:
        return True
    return result


def compare_schema_definitions(a: Schema, b: Schema) -> int:
    return compare_schema_values(canonicalize(a), canonicalize(b))


def _lcm(a: Any, b: Any) -> Any:
    fa, fb = Fraction(str(a)), Fraction(str(b))
    numerator = math.lcm(fa.numerator, fb.numerator)
    denominator = math.gcd(fa.denominator, fb.denominator)
    value = Fraction(numerator, denominator)
    if value == fa:
        return a
    if value == fb:
        return b
    return int(value) if value.denominator == 1 else float(value)


def _pattern_matches(pattern: str, name: str) -> bool:
    try:
        return re.search(pattern, name) is not None
    except re.error:
        return False


class SchemaMerger:
    def __init__(
        self,
        *,
        compare_values: ValueComparator = compare_schema_values,
        compare_schemas: Callable[[Schema, Schema], int] = compare_schema_definitions,
    ) -> None:
        self.compare_values = compare_values
        self.compare_schemas = compare_schemas

    def merge_all_of(self, schemas: Iterable[Schema]) -> Schema:
        result: Schema = True
        for schema in schemas:
            result = self.merge(result, schema)
        return result

    def merge(self, a: Schema, b: Schema) -> Schema:
        if not isinstance(a, (bool, dict)) or not isinstance(b, (bool, dict)):
            raise TypeError(f"Cannot merge {type(a).__name__} with {type(b).__name__}, expected schema definitions")

        a = self._flatten(a)
        b = self._flatten(b)

        if a is False or b is False:
            return False
        if a is True:
            return b
        if b is True:
            return a
        if a is b:
            return a

        result: SchemaObject = {}
        extra_all_of: list[Schema] = []

        for keyword in [*a, *(k for k in b if k not in a)]:
            if keyword in GROUPED_KEYWORDS:
                continue
            if keyword not in b:
                result[keyword] = a[keyword]
            elif keyword not in a:
                result[keyword] = b[keyword]
            else:
                self._merge_keyword(keyword, a[keyword], b[keyword], result, extra_all_of)

        self._merge_object_keywords(a, b, result)
        self._merge_array_keywords(a, b, result)
        self._merge_conditionals(a, b, result, extra_all_of)
        self._check_consistency(a, b, result)

        if extra_all_of:
            result[ALL_OF] = extra_all_of
        return result

    def _flatten(self, schema: Schema) -> Schema:
        if not is_plain_obj(schema) or not isinstance(schema.get(ALL_OF), list):
            return schema
        base: Schema = {k: v for k, v in schema.items() if k != ALL_OF}
        for entry in schema[ALL_OF]:
            if isinstance(entry, (bool, dict)):
                base = self.merge(base, entry)
        return base

    def _merge_keyword(self, keyword: str, a: Any, b: Any, result: SchemaObject, extra_all_of: list[Schema]) -> None:
        if deep_equal(a, b):
            result[keyword] = a
            return

        shape = keyword_shape(keyword)
        if shape is KeywordShape.MIN_BOUND and is_number(a) and is_number(b):
            result[keyword] = a if a >= b else b
        elif shape is KeywordShape.MAX_BOUND and is_number(a) and is_number(b):
            result[keyword] = a if a <= b else b
        elif keyword == TYPE:
            result[keyword] = self._intersect_types(a, b)
        elif keyword == CONST:
            raise MergeError(f"Conflicting const values {a!r} and {b!r}")
        elif keyword == ENUM and isinstance(a, list) and isinstance(b, list):
            result[keyword] = self._intersect_enums(a, b)
        elif keyword == Keyword.FORMAT.value:
            result[keyword] = self._merge_formats(a, b)
        elif keyword == Keyword.PATTERN.value and isinstance(a, str) and isinstance(b, str):
            result[keyword] = f"^(?=[\\s\\S]*?(?:{a}))(?=[\\s\\S]*?(?:{b}))"
        elif keyword == Keyword.MULTIPLE_OF.value and is_number(a) and is_number(b):
            result[keyword] = _lcm(a, b)
        elif keyword == REQUIRED and isinstance(a, list) and isinstance(b, list):
            result[keyword] = union_strings(a, b)
        elif keyword == Keyword.UNIQUE_ITEMS.value:
            result[keyword] = a is True or b is True
        elif keyword == CONTAINS:
            result[keyword] = a
            extra_all_of.append({CONTAINS: b})
        elif keyword == Keyword.NOT.value:
            result[keyword] = {Keyword.ANY_OF.value: [a, b]}
        elif keyword in (Keyword.ANY_OF.value, Keyword.ONE_OF.value) and isinstance(a, list) and isinstance(b, list):
            result[keyword] = self._merge_branches(keyword, a, b)
        elif shape is KeywordShape.SUBSCHEMA and isinstance(a, (bool, dict)) and isinstance(b, (bool, dict)):
            result[keyword] = self.merge(a, b)
        elif shape is KeywordShape.DEPENDENCIES and is_plain_obj(a) and is_plain_obj(b):
            result[keyword] = self._merge_dependencies(a, b)
        else:
            # Annotations and keywords without intersection semantics, the first value wins.
            result[keyword] = a

    def _intersect_types(self, a: Any, b: Any) -> str | list[str]:
        types_b = as_type_list(b)
        types: list[str] = []
        for t in as_type_list(a):
            if t in types_b:
                types.append(t)
            elif t == Instance.INTEGER.value and Instance.NUMBER.value in types_b:
                types.append(t)
            elif t == Instance.NUMBER.value and Instance.INTEGER.value in types_b:
                types.append(Instance.INTEGER.value)
        types = list(dict.fromkeys(types))
        if not types:
            raise MergeError(f"Incompatible types {a!r} and {b!r}")
        if len(types) == 1 and (isinstance(a, str) or isinstance(b, str)):
            return types[0]
        return types

    def _intersect_enums(self, a: list[Any], b: list[Any]) -> list[Any]:
        values = [v for v in a if any(self.compare_values(v, w) == 0 for w in b)]
        if not values:
            raise MergeError(f"Disjoint enum values {a!r} and {b!r}")
        return a if len(values) == len(a) else values

    def _merge_formats(self, a: Any, b: Any) -> Any:
        if isinstance(a, str) and isinstance(b, str):
            if is_format_subset(a, b) is True:
                return a
            if is_format_subset(b, a) is True:
                return b
        raise MergeError(f"Conflicting formats {a!r} and {b!r}")

    def _merge_branches(self, keyword: str, a: list[Any], b: list[Any]) -> list[Schema]:
        branches: list[Schema] = []
        for x in a:
            for y in b:
                try:
                    merged = self.merge(x, y)
                except MergeError:
                    continue
                if merged is False:
                    continue
                if not any(self.compare_schemas(merged, existing) == 0 for existing in branches):
                    branches.append(merged)
        if not branches:
            raise MergeError(f"No {keyword} branch combination is satisfiable")
        return branches

    def _merge_dependencies(self, a: dict[str, Any], b: dict[str, Any]) -> dict[str, Any]:
        result = dict(a)
        for key, value in b.items():
            if key not in result:
                result[key] = value
                continue
            existing = result[key]
            if deep_equal(existing, value):
                continue
            if isinstance(existing, list) and isinstance(value, list):
                result[key] = union_strings(existing, value)
            elif isinstance(existing, list):
                result[key] = self.merge({REQUIRED: existing}, value)
            elif isinstance(value, list):
                result[key] = self.merge(existing, {REQUIRED: value})
            else:
                result[key] = self.merge(existing, value)
        return result

    def _constraint_for(self, name: str, pattern_properties: Any, additional: Any) -> Schema | None:
        """The schema a side applies to property `name` it does not list in `properties`."""
        if is_plain_obj(pattern_properties):
            matching = [s for pattern, s in pattern_properties.items() if _pattern_matches(pattern, name)]
            if matching:
                return self.merge_all_of(matching)
        if isinstance(additional, (bool, dict)):
            return additional
        return None

    def _merge_optional(self, a: Any, b: Any) -> Any:
        if a is None:
            return b
        if b is None:
            return a
        if deep_equal(a, b):
            return a
        return self.merge(a, b)

    def _merge_object_keywords(self, a: SchemaObject, b: SchemaObject, result: SchemaObject) -> None:
        props_a, props_b = a.get(PROPERTIES), b.get(PROPERTIES)
        patterns_a, patterns_b = a.get(PATTERN_PROPERTIES), b.get(PATTERN_PROPERTIES)
        additional_a, additional_b = a.get(ADDITIONAL_PROPERTIES), b.get(ADDITIONAL_PROPERTIES)

        additional = self._merge_optional(additional_a, additional_b)
        if additional is not None:
            result[ADDITIONAL_PROPERTIES] = additional

        patterns: Any = None
        if is_plain_obj(patterns_a) and is_plain_obj(patterns_b):
            patterns = dict(patterns_a)
            for pattern, schema in patterns_b.items():
                patterns[pattern] = self._merge_optional(patterns.get(pattern), schema)
        elif patterns_a is not None or patterns_b is not None:
            patterns = patterns_a if patterns_a is not None else patterns_b
        if patterns is not None:
            result[PATTERN_PROPERTIES] = patterns

        if not is_plain_obj(props_a) or not is_plain_obj(props_b):
            if props_a is None and props_b is None:
                return
            if not is_plain_obj(props_a) and not is_plain_obj(props_b):
                result[PROPERTIES] = props_a if props_a is not None else props_b
                return
            props_a = props_a if is_plain_obj(props_a) else {}
            props_b = props_b if is_plain_obj(props_b) else {}

        properties: SchemaObject = {}
        for name in [*props_a, *(k for k in props_b if k not in props_a)]:
            if name in props_a and name in props_b:
                properties[name] = self._merge_optional(props_a[name], props_b[name])
                continue
            if name in props_a:
                other = self._constraint_for(name, patterns_b, additional_b)
                merged = props_a[name] if other is None else self.merge(props_a[name], other)
            else:
                other = self._constraint_for(name, patterns_a, additional_a)
                merged = props_b[name] if other is None else self.merge(other, props_b[name])
            if self._is_implied(name, merged, result):
                continue
            properties[name] = merged

        required = result.get(REQUIRED)
        if isinstance(required, list):
            for name in required:
                constraint = properties[name] if name in properties else self._implied_constraint(name, result)
                if constraint is False:
                    raise MergeError(f"Required property {name!r} is not allowed")

        if properties or props_a or props_b:
            result[PROPERTIES] = properties

    def _implied_constraint(self, name: str, result: SchemaObject) -> Schema | None:
        return self._constraint_for(name, result.get(PATTERN_PROPERTIES), result.get(ADDITIONAL_PROPERTIES))

    def _is_implied(self, name: str, merged: Schema, result: SchemaObject) -> bool:
        # A one-sided property forbidden by the merge is already forbidden by `additionalProperties: false`.
        if merged is not False or result.get(ADDITIONAL_PROPERTIES) is not False:
            return False
        patterns = result.get(PATTERN_PROPERTIES)
        return not (is_plain_obj(patterns) and any(_pattern_matches(p, name) for p in patterns))

    def _merge_array_keywords(self, a: SchemaObject, b: SchemaObject, result: SchemaObject) -> None:
        items_a, items_b = a.get(ITEMS), b.get(ITEMS)
        extra_a, extra_b = a.get(ADDITIONAL_ITEMS), b.get(ADDITIONAL_ITEMS)

        if items_a is None or items_b is None:
            if items_a is not None or items_b is not None:
                result[ITEMS] = items_a if items_a is not None else items_b
            additional = self._merge_optional(extra_a, extra_b)
            if additional is not None:
                result[ADDITIONAL_ITEMS] = additional
            return

        tuple_a, tuple_b = isinstance(items_a, list), isinstance(items_b, list)
        if not tuple_a and not tuple_b:
            result[ITEMS] = self._merge_optional(items_a, items_b)
            additional = self._merge_optional(extra_a, extra_b)
        elif tuple_a and tuple_b:
            items: list[Schema] = []
            for index in range(max(len(items_a), len(items_b))):
                x = items_a[index] if index < len(items_a) else (True if extra_a is None else extra_a)
                y = items_b[index] if index < len(items_b) else (True if extra_b is None else extra_b)
                items.append(self._merge_optional(x, y))
            result[ITEMS] = items
            additional = self._merge_optional(extra_a, extra_b)
        elif tuple_a:
            result[ITEMS] = [self._merge_optional(x, items_b) for x in items_a]
            additional = self._merge_optional(True if extra_a is None else extra_a, items_b)
        else:
            result[ITEMS] = [self._merge_optional(items_a, y) for y in items_b]
            additional = self._merge_optional(items_a, True if extra_b is None else extra_b)

        if additional is not None and (additional is not True or extra_a is not None or extra_b is not None):
            result[ADDITIONAL_ITEMS] = additional

    def _merge_conditionals(
        self, a: SchemaObject, b: SchemaObject, result: SchemaObject, extra_all_of: list[Schema]
    ) -> None:
        conditional_a = {k: a[k] for k in CONDITIONAL_KEYWORDS if k in a}
        conditional_b = {k: b[k] for k in CONDITIONAL_KEYWORDS if k in b}
        if conditional_a:
            result.update(conditional_a)
            if conditional_b and not deep_equal(conditional_a, conditional_b):
                extra_all_of.append(conditional_b)
        elif conditional_b:
            result.update(conditional_b)

    def _check_consistency(self, a: SchemaObject, b: SchemaObject, result: SchemaObject) -> None:
        for lower, upper, exclusive in BOUND_PAIRS:
            low, high = result.get(lower), result.get(upper)
            if is_number(low) and is_number(high) and (low > high or (exclusive and low == high)):
                raise MergeError(f"Empty range, {lower}={low} and {upper}={high}")

        type_value = result.get(TYPE)
        if CONST in result and type_value is not None and not matches_type(result[CONST], type_value):
            raise MergeError(f"Const {result[CONST]!r} does not match type {type_value!r}")

        enum = result.get(ENUM)
        if isinstance(enum, list):
            if CONST in result and not any(self.compare_values(v, result[CONST]) == 0 for v in enum):
                raise MergeError(f"Const {result[CONST]!r} is not one of {enum!r}")
            typed_by_other_side = (TYPE in a and ENUM in b) or (TYPE in b and ENUM in a)
            if type_value is not None and typed_by_other_side:
                values = [v for v in enum if matches_type(v, type_value)]
                if not values:
                    raise MergeError(f"No value of {enum!r} matches type {type_value!r}")
                if len(values) != len(enum):
                    result[ENUM] = values
