"""
schemacompat - conditional schema resolution

Resolves `if`/`then`/`else` against (partial) instance data: the condition is
evaluated, the matching branch is folded into the schema and the conditional
keywords are removed.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from cachetools import LRUCache
from collections.abc import Mapping
from schemacompat.config import Config
from schemacompat.formats import validate_format
from schemacompat.merge_engine import MergeEngine
from schemacompat.types import Keyword, KeywordShape, keyword_shape, ResolvedConditionResult
from schemacompat.typing import JsonData, Schema, SchemaObject
from schemacompat.utils import contains_value, deep_equal, is_number, is_plain_obj, matches_type, omit_keys, union_strings
from typing import Any, Final

import logging
import math
import re

LOG = logging.getLogger(__name__)

IF = Keyword.IF.value
THEN = Keyword.THEN.value
ELSE = Keyword.ELSE.value
ALL_OF = Keyword.ALL_OF.value
PROPERTIES = Keyword.PROPERTIES.value
REQUIRED = Keyword.REQUIRED.value
DEPENDENCIES = Keyword.DEPENDENCIES.value
CONDITIONAL_KEYWORDS: Final = (IF, THEN, ELSE)

# Data fields compared against one of these keywords decide which branch applies.
DISCRIMINANT_INDICATORS: Final = (
    Keyword.CONST.value,
    Keyword.ENUM.value,
    Keyword.MINIMUM.value,
    Keyword.MAXIMUM.value,
    Keyword.EXCLUSIVE_MINIMUM.value,
    Keyword.EXCLUSIVE_MAXIMUM.value,
    Keyword.PATTERN.value,
    Keyword.MIN_LENGTH.value,
    Keyword.MAX_LENGTH.value,
    Keyword.MULTIPLE_OF.value,
    Keyword.MIN_ITEMS.value,
    Keyword.MAX_ITEMS.value,
    Keyword.FORMAT.value,
)

SPECIAL_MERGE_KEYWORDS: Final = frozenset({REQUIRED, PROPERTIES, DEPENDENCIES})


def _is_multiple_of(value: float, divisor: float) -> bool:
    if divisor == 0:
        return False
    quotient = value / divisor
    return math.isclose(quotient, round(quotient), rel_tol=0, abs_tol=1e-9)


def _has_conditions(schema: Any) -> bool:
    if not is_plain_obj(schema):
        return False
    if IF in schema:
        return True
    all_of = schema.get(ALL_OF)
    return isinstance(all_of, list) and any(is_plain_obj(entry) and IF in entry for entry in all_of)


class ConditionResolver:
    def __init__(self, engine: MergeEngine, config: Config | None = None) -> None:
        self.engine = engine
        config = config or Config()
        self._regexes: LRUCache[str, re.Pattern[str] | None] = LRUCache(maxsize=config.regex_cache_size)

    def clear_caches(self) -> None:
        self._regexes.clear()

    def _regex(self, pattern: str) -> re.Pattern[str] | None:
        if pattern in self._regexes:
            return self._regexes[pattern]
        try:
            regex: re.Pattern[str] | None = re.compile(pattern)
        except re.error as e:
            LOG.debug("Skipping invalid pattern %r in condition: %s", pattern, e)
            regex = None
        self._regexes[pattern] = regex
        return regex

    def _numeric_constraints_hold(self, value: float, prop: SchemaObject) -> bool:
        minimum = prop.get(Keyword.MINIMUM.value)
        if is_number(minimum) and not value >= minimum:
            return False
        maximum = prop.get(Keyword.MAXIMUM.value)
        if is_number(maximum) and not value <= maximum:
            return False
        exclusive_minimum = prop.get(Keyword.EXCLUSIVE_MINIMUM.value)
        if is_number(exclusive_minimum) and not value > exclusive_minimum:
            return False
        exclusive_maximum = prop.get(Keyword.EXCLUSIVE_MAXIMUM.value)
        if is_number(exclusive_maximum) and not value < exclusive_maximum:
            return False
        multiple_of = prop.get(Keyword.MULTIPLE_OF.value)
        if is_number(multiple_of) and not _is_multiple_of(value, multiple_of):
            return False
        return True

    def _string_constraints_hold(self, value: str, prop: SchemaObject) -> bool:
        min_length = prop.get(Keyword.MIN_LENGTH.value)
        if is_number(min_length) and not len(value) >= min_length:
            return False
        max_length = prop.get(Keyword.MAX_LENGTH.value)
        if is_number(max_length) and not len(value) <= max_length:
            return False
        pattern = prop.get(Keyword.PATTERN.value)
        if isinstance(pattern, str):
            regex = self._regex(pattern)
            if regex is not None and regex.search(value) is None:
                return False
        return True

    def _array_constraints_hold(self, value: list[Any], prop: SchemaObject) -> bool:
        min_items = prop.get(Keyword.MIN_ITEMS.value)
        if is_number(min_items) and not len(value) >= min_items:
            return False
        max_items = prop.get(Keyword.MAX_ITEMS.value)
        if is_number(max_items) and not len(value) <= max_items:
            return False
        if prop.get(Keyword.UNIQUE_ITEMS.value) is True:
            for i, item in enumerate(value):
                for other in value[i + 1 :]:
                    if deep_equal(item, other):
                        return False
        return True

    def _property_holds(self, prop: SchemaObject, value: Any) -> bool:
        if Keyword.CONST.value in prop and not deep_equal(value, prop[Keyword.CONST.value]):
            return False
        enum = prop.get(Keyword.ENUM.value)
        if isinstance(enum, list) and not contains_value(enum, value):
            return False
        if Keyword.TYPE.value in prop and not matches_type(value, prop[Keyword.TYPE.value]):
            return False
        if is_number(value) and not self._numeric_constraints_hold(value, prop):
            return False
        if isinstance(value, str) and not self._string_constraints_hold(value, prop):
            return False
        if isinstance(value, list) and not self._array_constraints_hold(value, prop):
            return False
        format_name = prop.get(Keyword.FORMAT.value)
        if isinstance(format_name, str) and isinstance(value, str) and validate_format(value, format_name) is False:
            return False
        nested = is_plain_obj(prop.get(PROPERTIES)) or isinstance(prop.get(REQUIRED), list)
        if nested and is_plain_obj(value) and not self.evaluate_condition(prop, value):
            return False
        return True

    def _entry_holds(self, entry: Any, data: Mapping[str, Any]) -> bool:
        if isinstance(entry, bool):
            return entry
        return self.evaluate_condition(entry, data)

    def evaluate_condition(self, if_schema: Schema, data: Mapping[str, Any]) -> bool:
        """Evaluate an `if` schema against instance data.

        This is not a full validator. Properties missing from the data satisfy
        their constraints, presence is only enforced by `required`.
        """
        if isinstance(if_schema, bool):
            return if_schema
        if not is_plain_obj(if_schema):
            return True

        properties = if_schema.get(PROPERTIES)
        if is_plain_obj(properties):
            for key, prop in properties.items():
                if not is_plain_obj(prop) or key not in data:
                    continue
                if not self._property_holds(prop, data[key]):
                    return False

        required = if_schema.get(REQUIRED)
        if isinstance(required, list) and not all(key in data for key in required):
            return False

        all_of = if_schema.get(ALL_OF)
        if isinstance(all_of, list) and not all(self._entry_holds(entry, data) for entry in all_of):
            return False

        any_of = if_schema.get(Keyword.ANY_OF.value)
        if isinstance(any_of, list) and not any(self._entry_holds(entry, data) for entry in any_of):
            return False

        one_of = if_schema.get(Keyword.ONE_OF.value)
        if isinstance(one_of, list):
            matches = 0
            for entry in one_of:
                if self._entry_holds(entry, data):
                    matches += 1
                    if matches > 1:
                        break
            if matches != 1:
                return False

        negated = if_schema.get(Keyword.NOT.value)
        if is_plain_obj(negated) and self.evaluate_condition(negated, data):
            return False

        return True

    def _extract_discriminants(self, if_schema: Schema, data: Mapping[str, Any], out: dict[str, JsonData]) -> None:
        if not is_plain_obj(if_schema) or not is_plain_obj(if_schema.get(PROPERTIES)):
            return
        for key, prop in if_schema[PROPERTIES].items():
            if not is_plain_obj(prop):
                continue
            if any(indicator in prop for indicator in DISCRIMINANT_INDICATORS) and key in data:
                out[key] = data[key]

    def _merge_or(self, existing: Schema, branch_value: Schema) -> Schema:
        merged = self.engine.merge(existing, branch_value)
        return branch_value if merged is None else merged

    def merge_branch_into(self, resolved: SchemaObject, branch: Schema) -> None:
        """Fold a `then`/`else` branch into `resolved`, in place.

        Keywords present on both sides are reconciled rather than overwritten;
        where no reconciliation is possible the branch, being the more
        specific context, wins.
        """
        if not is_plain_obj(branch):
            return

        if isinstance(branch.get(REQUIRED), list):
            resolved[REQUIRED] = union_strings(resolved.get(REQUIRED) or [], branch[REQUIRED])

        if is_plain_obj(branch.get(PROPERTIES)):
            existing_props = resolved.get(PROPERTIES) if is_plain_obj(resolved.get(PROPERTIES)) else {}
            properties = dict(existing_props)
            for key, branch_prop in branch[PROPERTIES].items():
                existing = existing_props.get(key)
                if is_plain_obj(existing) and is_plain_obj(branch_prop):
                    properties[key] = self._merge_or(existing, branch_prop)
                else:
                    properties[key] = branch_prop
            resolved[PROPERTIES] = properties

        if is_plain_obj(branch.get(DEPENDENCIES)):
            dependencies = dict(resolved.get(DEPENDENCIES) or {})
            for key, branch_dep in branch[DEPENDENCIES].items():
                existing = dependencies.get(key)
                if existing is None:
                    dependencies[key] = branch_dep
                elif isinstance(existing, list) and isinstance(branch_dep, list):
                    dependencies[key] = union_strings(existing, branch_dep)
                elif is_plain_obj(existing) and is_plain_obj(branch_dep):
                    dependencies[key] = self._merge_or(existing, branch_dep)
                else:
                    dependencies[key] = branch_dep
            resolved[DEPENDENCIES] = dependencies

        for keyword, branch_value in branch.items():
            if keyword in SPECIAL_MERGE_KEYWORDS:
                continue
            if keyword not in resolved:
                resolved[keyword] = branch_value
                continue
            current = resolved[keyword]
            if deep_equal(current, branch_value):
                continue
            resolved[keyword] = self._reconcile(keyword, current, branch_value)

    def _reconcile(self, keyword: str, current: Any, branch_value: Any) -> Any:
        shape = keyword_shape(keyword)
        numeric = is_number(current) and is_number(branch_value)
        if shape in (KeywordShape.SUBSCHEMA, KeywordShape.ITEMS) and keyword != Keyword.ADDITIONAL_ITEMS.value:
            if isinstance(current, (bool, dict)) and isinstance(branch_value, (bool, dict)):
                return self._merge_or(current, branch_value)
            return branch_value
        if shape is KeywordShape.MIN_BOUND:
            return max(current, branch_value) if numeric else branch_value
        if shape is KeywordShape.MAX_BOUND:
            return min(current, branch_value) if numeric else branch_value
        if keyword == Keyword.UNIQUE_ITEMS.value:
            return current is True or branch_value is True
        if keyword in (Keyword.PATTERN.value, Keyword.FORMAT.value):
            return branch_value

        merged = self.engine.merge({keyword: current}, {keyword: branch_value})
        if is_plain_obj(merged) and keyword in merged:
            return merged[keyword]
        return branch_value

    def _resolve_all_of(self, resolved: SchemaObject, data: Mapping[str, Any], discriminant: dict[str, JsonData]) -> None:
        all_of = resolved.get(ALL_OF)
        if not isinstance(all_of, list):
            return

        remaining: list[Schema] = []
        for entry in all_of:
            if not is_plain_obj(entry) or IF not in entry:
                remaining.append(entry)
                continue

            if_schema = entry[IF]
            matches = self.evaluate_condition(if_schema, data)
            self._extract_discriminants(if_schema, data, discriminant)
            applicable = entry.get(THEN if matches else ELSE)
            if applicable:
                self.merge_branch_into(resolved, applicable)

            residue = omit_keys(entry, CONDITIONAL_KEYWORDS)
            if residue:
                remaining.append(residue)

        if remaining:
            resolved[ALL_OF] = remaining
        else:
            del resolved[ALL_OF]

    def _resolve_nested(self, resolved: SchemaObject, data: Mapping[str, Any], discriminant: dict[str, JsonData]) -> None:
        properties = resolved.get(PROPERTIES)
        if not is_plain_obj(properties) or not any(_has_conditions(prop) for prop in properties.values()):
            return

        resolved_props: SchemaObject = {}
        for key, prop in properties.items():
            if not _has_conditions(prop):
                resolved_props[key] = prop
                continue
            nested_data = data.get(key)
            nested = self.resolve_conditions(prop, nested_data if is_plain_obj(nested_data) else {})
            for nested_key, value in nested.discriminant.items():
                discriminant[f"{key}.{nested_key}"] = value
            resolved_props[key] = nested.resolved
        resolved[PROPERTIES] = resolved_props

    def resolve_conditions(self, schema: SchemaObject, data: Mapping[str, Any]) -> ResolvedConditionResult:
        resolved = dict(schema)
        branch: str | None = None
        discriminant: dict[str, JsonData] = {}

        self._resolve_all_of(resolved, data, discriminant)

        if IF in resolved:
            if_schema = resolved[IF]
            matches = self.evaluate_condition(if_schema, data)
            self._extract_discriminants(if_schema, data, discriminant)
            branch = THEN if matches else ELSE
            applicable = resolved.get(branch)
            if applicable:
                self.merge_branch_into(resolved, applicable)
            for keyword in CONDITIONAL_KEYWORDS:
                resolved.pop(keyword, None)
            LOG.debug("Condition resolved to %r branch, discriminant %r", branch, discriminant)

        self._resolve_nested(resolved, data, discriminant)

        return ResolvedConditionResult(resolved=resolved, branch=branch, discriminant=discriminant)
