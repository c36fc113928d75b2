"""
schemacompat - JSON Schema compatibility checker

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Mapping
from schemacompat.checks import SubsetChecker
from schemacompat.conditions import ConditionResolver
from schemacompat.config import Config
from schemacompat.formatter import format_result
from schemacompat.logging_setup import log_config
from schemacompat.merge_engine import MergeEngine
from schemacompat.normalizer import normalize
from schemacompat.patterns import PatternSubsetChecker
from schemacompat.types import ConnectionResult, ResolvedCheckResult, ResolvedConditionResult, SubsetResult
from schemacompat.typing import Schema, SchemaObject
from typing import Any, Final

import logging

LOG = logging.getLogger(__name__)

CONNECTION_DIRECTION: Final = "sourceOutput ⊆ targetInput"


def _require_schema(value: Any, name: str) -> None:
    if not isinstance(value, (bool, dict)):
        raise TypeError(f"{name} must be a JSON Schema object or boolean, got {type(value).__name__}")


def _require_object(value: Any, name: str) -> None:
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be a JSON Schema object, got {type(value).__name__}")


def _require_data(value: Any, name: str) -> None:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be a mapping, got {type(value).__name__}")


class JsonSchemaCompatibilityChecker:
    """Decides whether one Draft-07 schema accepts everything another one accepts.

    `sub` is a subset of `sup` when every instance valid against `sub` is also
    valid against `sup`, which holds when the intersection of the two schemas
    is structurally equal to `sub` itself.

    Pattern inclusion is decided by sampling, a positive answer on two
    different patterns is a high confidence answer and not a proof.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = (config or Config()).set_config_defaults()
        log_config(self.config)
        self.engine = MergeEngine()
        self.patterns = PatternSubsetChecker(config=self.config)
        self.subset_checker = SubsetChecker(self.engine, self.patterns, config=self.config)
        self.condition_resolver = ConditionResolver(self.engine, config=self.config)

    def clear_caches(self) -> None:
        self.patterns.clear_caches()
        self.subset_checker.clear_caches()
        self.condition_resolver.clear_caches()

    def is_subset(self, sub: Schema, sup: Schema) -> bool:
        _require_schema(sub, "sub")
        _require_schema(sup, "sup")
        if sub is sup:
            return True

        normalized_sub = normalize(sub)
        normalized_sup = normalize(sup)
        if self.engine.is_equal(normalized_sub, normalized_sup):
            return True

        sub_branches = self.subset_checker.get_branches(normalized_sub)
        if self.subset_checker.is_branched(normalized_sub, sub_branches):
            return all(
                self.subset_checker.is_atomic_subset(branch, normalized_sup) for branch in sub_branches.branches
            )
        return self.subset_checker.is_atomic_subset(normalized_sub, normalized_sup)

    def check(self, sub: Schema, sup: Schema) -> SubsetResult:
        """Like `is_subset`, with the intersection and the differences it has with `sub`."""
        _require_schema(sub, "sub")
        _require_schema(sup, "sup")
        if sub is sup:
            return SubsetResult(is_subset=True, merged=sub, diffs=[])

        normalized_sub = normalize(sub)
        normalized_sup = normalize(sup)
        if self.engine.is_equal(normalized_sub, normalized_sup):
            return SubsetResult(is_subset=True, merged=normalized_sub, diffs=[])

        sub_branches = self.subset_checker.get_branches(normalized_sub)
        if self.subset_checker.is_branched(normalized_sub, sub_branches):
            return self.subset_checker.check_branched_sub(sub_branches.branches, normalized_sup, sub_branches.kind)

        sup_branches = self.subset_checker.get_branches(normalized_sup)
        if self.subset_checker.is_branched(normalized_sup, sup_branches):
            return self.subset_checker.check_branched_sup(normalized_sub, sup_branches.branches, sup_branches.kind)

        result = self.subset_checker.check_atomic(normalized_sub, normalized_sup)
        if not result.is_subset:
            LOG.debug("Not a subset, %d difference(s)", len(result.diffs))
        return result

    def can_connect(self, source_output: Schema, target_input: Schema) -> ConnectionResult:
        """Whether everything `source_output` produces is accepted by `target_input`."""
        result = self.check(source_output, target_input)
        return ConnectionResult(
            is_subset=result.is_subset,
            merged=result.merged,
            diffs=result.diffs,
            direction=CONNECTION_DIRECTION,
        )

    def is_equal(self, a: Schema, b: Schema) -> bool:
        _require_schema(a, "a")
        _require_schema(b, "b")
        return self.engine.is_equal(normalize(a), normalize(b))

    def intersect(self, a: Schema, b: Schema) -> Schema | None:
        """Normalized intersection of `a` and `b`, `None` when no instance can satisfy both."""
        _require_schema(a, "a")
        _require_schema(b, "b")
        merged = self.engine.merge(normalize(a), normalize(b))
        if merged is None:
            return None
        return normalize(merged)

    def resolve_conditions(self, schema: SchemaObject, data: Mapping[str, Any]) -> ResolvedConditionResult:
        _require_object(schema, "schema")
        _require_data(data, "data")
        return self.condition_resolver.resolve_conditions(schema, data)

    def check_resolved(
        self,
        sub: SchemaObject,
        sup: SchemaObject,
        sub_data: Mapping[str, Any],
        sup_data: Mapping[str, Any] | None = None,
    ) -> ResolvedCheckResult:
        """Resolve the conditions of both schemas, then check `sub` against `sup`.

        `sup` is resolved against `sub_data` unless `sup_data` is given.
        """
        resolved_sub = self.resolve_conditions(sub, sub_data)
        resolved_sup = self.resolve_conditions(sup, sup_data if sup_data is not None else sub_data)
        result = self.check(resolved_sub.resolved, resolved_sup.resolved)
        return ResolvedCheckResult(
            is_subset=result.is_subset,
            merged=result.merged,
            diffs=result.diffs,
            resolved_sub=resolved_sub,
            resolved_sup=resolved_sup,
        )

    def normalize(self, schema: Schema) -> Schema:
        _require_schema(schema, "schema")
        return normalize(schema)

    def format_result(self, label: str, result: SubsetResult) -> str:
        return format_result(label, result)
