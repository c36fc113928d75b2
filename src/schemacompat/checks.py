"""
schemacompat - subset checks

`sub` is a subset of `sup` when their intersection is `sub` itself:
A ⊆ B  <=>  A ∩ B ≡ A. `anyOf`/`oneOf` branches are checked one by one, on
the `sub` side every branch has to be accepted, on the `sup` side one
accepting branch is enough. `oneOf` exclusivity is not verified, it is
treated as `anyOf`.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from cachetools import LRUCache
from schemacompat.config import Config
from schemacompat.differ import compute_diffs, ROOT_PATH
from schemacompat.errors import IncompatibleSchemasError
from schemacompat.formats import is_format_subset
from schemacompat.merge_engine import MergeEngine
from schemacompat.normalizer import normalize
from schemacompat.patterns import PatternSubsetChecker
from schemacompat.types import BranchKind, BranchResult, DiffKind, Keyword, SchemaDiff, SubsetResult
from schemacompat.typing import Schema, SchemaObject
from schemacompat.utils import contains_value, deep_equal, is_plain_obj, omit_keys
from typing import Any, Final

import logging

LOG = logging.getLogger(__name__)

NOT = Keyword.NOT.value
CONST = Keyword.CONST.value
ENUM = Keyword.ENUM.value
TYPE = Keyword.TYPE.value
FORMAT = Keyword.FORMAT.value
PATTERN = Keyword.PATTERN.value
ITEMS = Keyword.ITEMS.value
PROPERTIES = Keyword.PROPERTIES.value
REQUIRED = Keyword.REQUIRED.value
ANY_OF = Keyword.ANY_OF.value
ONE_OF = Keyword.ONE_OF.value

BRANCH_NOT_ACCEPTED: Final = "Branch not accepted by superset"
NO_BRANCH_ACCEPTS_FMT: Final = "No branch in superset's {label} accepts this schema"
INCOMPATIBLE_FMT: Final = "Incompatible: {message}"

BRANCH_TRUE: Final = BranchResult(branches=[True], kind=BranchKind.NONE)
BRANCH_FALSE: Final = BranchResult(branches=[False], kind=BranchKind.NONE)


def _prop_excludes(not_prop: SchemaObject, sub_prop: SchemaObject) -> bool:
    """`sub_prop` never validates against `not_prop` judging by const/enum."""
    if CONST in not_prop and CONST in sub_prop and not deep_equal(not_prop[CONST], sub_prop[CONST]):
        return True
    not_enum = not_prop.get(ENUM)
    if isinstance(not_enum, list):
        if CONST in sub_prop and not contains_value(not_enum, sub_prop[CONST]):
            return True
        sub_enum = sub_prop.get(ENUM)
        if isinstance(sub_enum, list) and not any(contains_value(not_enum, v) for v in sub_enum):
            return True
    return False


def _prop_included(not_prop: SchemaObject, sub_prop: SchemaObject) -> bool:
    """Every value of `sub_prop` is accepted by `not_prop` judging by const/enum."""
    if CONST in not_prop and CONST in sub_prop:
        return deep_equal(not_prop[CONST], sub_prop[CONST])
    not_enum = not_prop.get(ENUM)
    if isinstance(not_enum, list):
        if CONST in sub_prop:
            return contains_value(not_enum, sub_prop[CONST])
        sub_enum = sub_prop.get(ENUM)
        if isinstance(sub_enum, list):
            return all(contains_value(not_enum, v) for v in sub_enum)
    return False


def _evaluate_not_properties(sub: SchemaObject, not_schema: SchemaObject) -> bool | None:
    sub_props = sub.get(PROPERTIES)
    if not is_plain_obj(sub_props):
        return None
    not_props: dict[str, Any] = not_schema[PROPERTIES]
    not_required: list[str] = not_schema[REQUIRED]
    sub_required = sub.get(REQUIRED) if isinstance(sub.get(REQUIRED), list) else []

    for key, not_prop in not_props.items():
        if not is_plain_obj(not_prop):
            continue
        if key in not_required and key not in sub_required and key not in sub_props:
            # sub may omit the property, so it can never match the negated schema.
            return True
        sub_prop = sub_props.get(key)
        if is_plain_obj(sub_prop) and _prop_excludes(not_prop, sub_prop):
            return True

    for key, not_prop in not_props.items():
        if not is_plain_obj(not_prop):
            continue
        if key in not_required and key not in sub_required:
            return None
        if key not in sub_props:
            return None
        sub_prop = sub_props[key]
        if is_plain_obj(sub_prop) and not _prop_included(not_prop, sub_prop):
            return None
    return False


def _evaluate_not_branches(sub: SchemaObject, branches: list[Any]) -> bool | None:
    """De Morgan: not(anyOf[A, B]) is allOf[not(A), not(B)]."""

    def excluded(branch: Any) -> bool:
        if isinstance(branch, bool):
            return not branch
        return evaluate_not(sub, {NOT: branch}) is True

    def included(branch: Any) -> bool:
        if isinstance(branch, bool):
            return branch
        return evaluate_not(sub, {NOT: branch}) is False

    if all(excluded(branch) for branch in branches):
        return True
    if any(included(branch) for branch in branches):
        return False
    return None


def evaluate_not(sub: Schema, sup: Schema) -> bool | None:
    """Decide whether `sub` is compatible with the `not` of `sup`.

    `True` when `sub` is certainly outside the negated schema, `False` when it
    is certainly inside, `None` when the case is not covered.
    """
    if not is_plain_obj(sub) or not is_plain_obj(sup):
        return None

    not_schema = sup.get(NOT)
    if is_plain_obj(not_schema):
        # The more specific cases come first, not.type alone would shadow them.
        if is_plain_obj(not_schema.get(PROPERTIES)) and isinstance(not_schema.get(REQUIRED), list):
            result = _evaluate_not_properties(sub, not_schema)
            if result is not None:
                return result

        if CONST in not_schema and CONST in sub:
            return not deep_equal(sub[CONST], not_schema[CONST])

        not_enum, sub_enum = not_schema.get(ENUM), sub.get(ENUM)
        if isinstance(not_enum, list) and isinstance(sub_enum, list):
            if not any(contains_value(not_enum, v) for v in sub_enum):
                return True

        if TYPE in not_schema and TYPE in sub:
            not_type, sub_type = not_schema[TYPE], sub[TYPE]
            if isinstance(not_type, str) and isinstance(sub_type, str):
                if CONST not in not_schema and ENUM not in not_schema and not is_plain_obj(not_schema.get(PROPERTIES)):
                    return sub_type != not_type
            if isinstance(not_type, list) and isinstance(sub_type, str):
                return sub_type not in not_type

        for keyword in (ANY_OF, ONE_OF):
            if isinstance(not_schema.get(keyword), list):
                result = _evaluate_not_branches(sub, not_schema[keyword])
                if result is not None:
                    return result

        if FORMAT in not_schema and FORMAT in sub:
            return sub[FORMAT] != not_schema[FORMAT]

    if NOT in sub and NOT in sup and deep_equal(sub[NOT], sup[NOT]):
        return True

    LOG.debug("No conclusion on `not` for %r", sup.get(NOT))
    return None


class SubsetChecker:
    def __init__(
        self,
        engine: MergeEngine,
        patterns: PatternSubsetChecker,
        config: Config | None = None,
    ) -> None:
        self.engine = engine
        self.patterns = patterns
        config = config or Config()
        self._branches: LRUCache[int, tuple[SchemaObject, BranchResult]] = LRUCache(maxsize=config.branch_cache_size)

    def clear_caches(self) -> None:
        self._branches.clear()

    def get_branches(self, schema: Schema) -> BranchResult:
        """Decompose a schema into its `anyOf`/`oneOf` branches.

        An atomic schema is its own single branch, the very same object.
        """
        if isinstance(schema, bool):
            return BRANCH_TRUE if schema else BRANCH_FALSE
        if isinstance(schema.get(ANY_OF), list):
            return BranchResult(branches=schema[ANY_OF], kind=BranchKind.ANY_OF)
        if isinstance(schema.get(ONE_OF), list):
            return BranchResult(branches=schema[ONE_OF], kind=BranchKind.ONE_OF)

        # Keyed by identity, the cached schema is kept alive so its id cannot be reused.
        cached = self._branches.get(id(schema))
        if cached is not None and cached[0] is schema:
            return cached[1]
        result = BranchResult(branches=[schema], kind=BranchKind.NONE)
        self._branches[id(schema)] = (schema, result)
        return result

    @staticmethod
    def is_branched(schema: Schema, result: BranchResult) -> bool:
        return len(result.branches) != 1 or result.branches[0] is not schema

    def strip_not(self, sub: Schema, sup: Schema, strip_top_level: bool = True) -> Schema:
        """Remove from `sup` the `not` constraints `sub` is known to satisfy."""
        if not is_plain_obj(sub) or not is_plain_obj(sup):
            return sup

        result: SchemaObject = sup
        if strip_top_level and NOT in result:
            result = omit_keys(result, (NOT,))

        sup_props, sub_props = result.get(PROPERTIES), sub.get(PROPERTIES)
        if is_plain_obj(sup_props) and is_plain_obj(sub_props):
            new_props: dict[str, Any] | None = None
            for key, sup_prop in sup_props.items():
                sub_prop = sub_props.get(key)
                if not is_plain_obj(sup_prop) or not is_plain_obj(sub_prop) or NOT not in sup_prop:
                    continue
                if evaluate_not(sub_prop, sup_prop) is True:
                    if new_props is None:
                        new_props = dict(sup_props)
                    new_props[key] = omit_keys(sup_prop, (NOT,))
            if new_props is not None:
                result = {**result, PROPERTIES: new_props}

        return result

    def _pattern_confirmed(self, sub: SchemaObject, sup: SchemaObject) -> bool:
        if PATTERN not in sub or PATTERN not in sup or sub[PATTERN] == sup[PATTERN]:
            return False
        return self.patterns.is_pattern_subset(sub[PATTERN], sup[PATTERN]) is True

    def strip_pattern(self, sub: Schema, sup: Schema) -> Schema:
        """Remove from `sup` the patterns already implied by the patterns of `sub`."""
        if not is_plain_obj(sub) or not is_plain_obj(sup):
            return sup

        result: SchemaObject = sup
        copied = False

        def writable() -> SchemaObject:
            nonlocal result, copied
            if not copied:
                result = dict(result)
                copied = True
            return result

        if self._pattern_confirmed(sub, result):
            del writable()[PATTERN]

        sup_props, sub_props = result.get(PROPERTIES), sub.get(PROPERTIES)
        if is_plain_obj(sup_props) and is_plain_obj(sub_props):
            new_props: dict[str, Any] | None = None
            for key, sup_prop in sup_props.items():
                sub_prop = sub_props.get(key)
                if is_plain_obj(sup_prop) and is_plain_obj(sub_prop) and self._pattern_confirmed(sub_prop, sup_prop):
                    if new_props is None:
                        new_props = dict(sup_props)
                    new_props[key] = omit_keys(sup_prop, (PATTERN,))
            if new_props is not None:
                writable()[PROPERTIES] = new_props

        sup_items, sub_items = result.get(ITEMS), sub.get(ITEMS)
        if is_plain_obj(sup_items) and is_plain_obj(sub_items) and self._pattern_confirmed(sub_items, sup_items):
            writable()[ITEMS] = omit_keys(sup_items, (PATTERN,))

        return result

    def _merged_equals(self, merged: Schema, sub: Schema) -> bool:
        if deep_equal(merged, sub):
            return True
        normalized = normalize(merged)
        return deep_equal(normalized, sub) or self.engine.is_equal(normalized, sub)

    def _precheck(self, sub: Schema, sup: Schema, not_result: bool | None, *, check_format: bool) -> bool:
        """False when a cheap check already proves `sub` is not a subset of `sup`."""
        if not_result is False:
            return False
        if not is_plain_obj(sub) or not is_plain_obj(sup):
            return True
        if check_format and FORMAT in sub and FORMAT in sup and sub[FORMAT] != sup[FORMAT]:
            if is_format_subset(sub[FORMAT], sup[FORMAT]) is not True:
                return False
        if PATTERN in sub and PATTERN in sup and sub[PATTERN] != sup[PATTERN]:
            if self.patterns.is_pattern_subset(sub[PATTERN], sup[PATTERN]) is False:
                return False
        return True

    def _effective_sup(self, sub: Schema, sup: Schema, not_result: bool | None) -> Schema | None:
        """`sup` without the constraints `sub` is known to satisfy, `None` if nothing is left."""
        if isinstance(sup, bool):
            return sup
        effective = self.strip_not(sub, sup, strip_top_level=not_result is True)
        if not_result is True and is_plain_obj(effective) and not effective:
            return None
        return self.strip_pattern(sub, effective)

    def _subset_merge(self, sub: Schema, sup: Schema, *, check_format: bool) -> Schema | None:
        """The intersection of `sub` and `sup` when it proves `sub ⊆ sup`, `None` otherwise."""
        not_result = evaluate_not(sub, sup)
        if not self._precheck(sub, sup, not_result, check_format=check_format):
            return None
        effective = self._effective_sup(sub, sup, not_result)
        if effective is None:
            return sub
        merged = self.engine.merge(sub, effective)
        if merged is None or not self._merged_equals(merged, sub):
            return None
        return merged

    def _is_branch_subset(self, sub: Schema, sup: Schema, *, check_format: bool) -> bool:
        return self._subset_merge(sub, sup, check_format=check_format) is not None

    def is_atomic_subset(self, sub: Schema, sup: Schema) -> bool:
        sup_branches = self.get_branches(sup)
        if not self.is_branched(sup, sup_branches):
            return self._is_branch_subset(sub, sup, check_format=True)
        return any(self._is_branch_subset(sub, branch, check_format=False) for branch in sup_branches.branches)

    def check_branched_sub(self, sub_branches: list[Schema], sup: Schema, kind: BranchKind = BranchKind.ANY_OF) -> SubsetResult:
        label = kind.label
        diffs: list[SchemaDiff] = []
        for index, branch in enumerate(sub_branches):
            if not self.is_atomic_subset(branch, sup):
                diffs.append(
                    SchemaDiff(
                        path=f"{label}[{index}]",
                        kind=DiffKind.CHANGED,
                        expected=branch,
                        actual=BRANCH_NOT_ACCEPTED,
                    )
                )

        if diffs:
            return SubsetResult(is_subset=False, merged=None, diffs=diffs)
        merged_key = ONE_OF if kind is BranchKind.ONE_OF else ANY_OF
        return SubsetResult(is_subset=True, merged={merged_key: sub_branches}, diffs=[])

    def check_branched_sup(self, sub: Schema, sup_branches: list[Schema], kind: BranchKind = BranchKind.ANY_OF) -> SubsetResult:
        for branch in sup_branches:
            merged = self._subset_merge(sub, branch, check_format=False)
            if merged is not None:
                return SubsetResult(is_subset=True, merged=merged, diffs=[])

        return SubsetResult(
            is_subset=False,
            merged=None,
            diffs=[
                SchemaDiff(
                    path=ROOT_PATH,
                    kind=DiffKind.CHANGED,
                    expected=sub,
                    actual=NO_BRANCH_ACCEPTS_FMT.format(label=kind.label),
                )
            ],
        )

    def _incompatible(self, sub: Schema, message: str) -> SubsetResult:
        return SubsetResult(
            is_subset=False,
            merged=None,
            diffs=[
                SchemaDiff(
                    path=ROOT_PATH,
                    kind=DiffKind.CHANGED,
                    expected=sub,
                    actual=INCOMPATIBLE_FMT.format(message=message),
                )
            ],
        )

    def check_atomic(self, sub: Schema, sup: Schema) -> SubsetResult:
        not_result = evaluate_not(sub, sup)
        if not_result is False:
            return self._incompatible(sub, f"value excluded by `not` {sup[NOT]!r}")
        if is_plain_obj(sub) and is_plain_obj(sup) and FORMAT in sub and FORMAT in sup:
            if sub[FORMAT] != sup[FORMAT] and is_format_subset(sub[FORMAT], sup[FORMAT]) is not True:
                return self._incompatible(sub, f"format {sub[FORMAT]!r} is not included in format {sup[FORMAT]!r}")

        effective = self._effective_sup(sub, sup, not_result)
        if effective is None:
            return SubsetResult(is_subset=True, merged=sub, diffs=[])

        try:
            merged = self.engine.merge_or_raise(sub, effective)
        except IncompatibleSchemasError as e:
            return self._incompatible(sub, str(e))

        if deep_equal(merged, sub):
            return SubsetResult(is_subset=True, merged=merged, diffs=[])

        normalized = normalize(merged)
        if deep_equal(normalized, sub) or self.engine.is_equal(normalized, sub):
            return SubsetResult(is_subset=True, merged=normalized, diffs=[])

        return SubsetResult(is_subset=False, merged=normalized, diffs=compute_diffs(sub, normalized, ""))
