"""
schemacompat - keyword tables and result types

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from schemacompat.typing import JsonData, Schema, SchemaObject
from typing import Any, Final


@unique
class Keyword(Enum):
    ID = "$id"
    SCHEMA = "$schema"
    COMMENT = "$comment"
    REF = "$ref"
    DEFS = "$defs"
    DEFINITIONS = "definitions"
    TITLE = "title"
    DESCRIPTION = "description"
    DEFAULT = "default"
    EXAMPLES = "examples"
    READ_ONLY = "readOnly"
    WRITE_ONLY = "writeOnly"
    TYPE = "type"
    CONST = "const"
    ENUM = "enum"
    FORMAT = "format"
    PATTERN = "pattern"
    MAX_LENGTH = "maxLength"
    MIN_LENGTH = "minLength"
    MAXIMUM = "maximum"
    MINIMUM = "minimum"
    EXCLUSIVE_MAXIMUM = "exclusiveMaximum"
    EXCLUSIVE_MINIMUM = "exclusiveMinimum"
    MULTIPLE_OF = "multipleOf"
    MAX_PROPERTIES = "maxProperties"
    MIN_PROPERTIES = "minProperties"
    PROPERTIES = "properties"
    PATTERN_PROPERTIES = "patternProperties"
    ADDITIONAL_PROPERTIES = "additionalProperties"
    PROPERTY_NAMES = "propertyNames"
    REQUIRED = "required"
    DEPENDENCIES = "dependencies"
    ITEMS = "items"
    ADDITIONAL_ITEMS = "additionalItems"
    MAX_ITEMS = "maxItems"
    MIN_ITEMS = "minItems"
    UNIQUE_ITEMS = "uniqueItems"
    CONTAINS = "contains"
    ALL_OF = "allOf"
    ANY_OF = "anyOf"
    ONE_OF = "oneOf"
    NOT = "not"
    IF = "if"
    THEN = "then"
    ELSE = "else"


@unique
class Instance(Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    INTEGER = "integer"
    OBJECT = "object"
    ARRAY = "array"


@unique
class KeywordShape(Enum):
    """The shape of the value a keyword holds.

    Every traversal over schemas (normalization, diffing, conflict detection,
    merging and branch folding) dispatches on the shape instead of keeping its
    own list of keywords.
    """

    SUBSCHEMA = "subschema"
    CONDITIONAL = "conditional"
    ITEMS = "items"
    SCHEMA_ARRAY = "schema_array"
    SCHEMA_MAP = "schema_map"
    DEPENDENCIES = "dependencies"
    MIN_BOUND = "min_bound"
    MAX_BOUND = "max_bound"
    ANNOTATION = "annotation"
    SCALAR = "scalar"


KEYWORD_SHAPES: Final[dict[str, KeywordShape]] = {
    Keyword.ADDITIONAL_PROPERTIES.value: KeywordShape.SUBSCHEMA,
    Keyword.ADDITIONAL_ITEMS.value: KeywordShape.SUBSCHEMA,
    Keyword.CONTAINS.value: KeywordShape.SUBSCHEMA,
    Keyword.PROPERTY_NAMES.value: KeywordShape.SUBSCHEMA,
    Keyword.NOT.value: KeywordShape.SUBSCHEMA,
    Keyword.IF.value: KeywordShape.CONDITIONAL,
    Keyword.THEN.value: KeywordShape.CONDITIONAL,
    Keyword.ELSE.value: KeywordShape.CONDITIONAL,
    Keyword.ITEMS.value: KeywordShape.ITEMS,
    Keyword.ALL_OF.value: KeywordShape.SCHEMA_ARRAY,
    Keyword.ANY_OF.value: KeywordShape.SCHEMA_ARRAY,
    Keyword.ONE_OF.value: KeywordShape.SCHEMA_ARRAY,
    Keyword.PROPERTIES.value: KeywordShape.SCHEMA_MAP,
    Keyword.PATTERN_PROPERTIES.value: KeywordShape.SCHEMA_MAP,
    Keyword.DEPENDENCIES.value: KeywordShape.DEPENDENCIES,
    Keyword.MINIMUM.value: KeywordShape.MIN_BOUND,
    Keyword.EXCLUSIVE_MINIMUM.value: KeywordShape.MIN_BOUND,
    Keyword.MIN_LENGTH.value: KeywordShape.MIN_BOUND,
    Keyword.MIN_ITEMS.value: KeywordShape.MIN_BOUND,
    Keyword.MIN_PROPERTIES.value: KeywordShape.MIN_BOUND,
    Keyword.MAXIMUM.value: KeywordShape.MAX_BOUND,
    Keyword.EXCLUSIVE_MAXIMUM.value: KeywordShape.MAX_BOUND,
    Keyword.MAX_LENGTH.value: KeywordShape.MAX_BOUND,
    Keyword.MAX_ITEMS.value: KeywordShape.MAX_BOUND,
    Keyword.MAX_PROPERTIES.value: KeywordShape.MAX_BOUND,
    Keyword.ID.value: KeywordShape.ANNOTATION,
    Keyword.SCHEMA.value: KeywordShape.ANNOTATION,
    Keyword.COMMENT.value: KeywordShape.ANNOTATION,
    Keyword.TITLE.value: KeywordShape.ANNOTATION,
    Keyword.DESCRIPTION.value: KeywordShape.ANNOTATION,
    Keyword.DEFAULT.value: KeywordShape.ANNOTATION,
    Keyword.EXAMPLES.value: KeywordShape.ANNOTATION,
    Keyword.DEFINITIONS.value: KeywordShape.ANNOTATION,
    Keyword.DEFS.value: KeywordShape.ANNOTATION,
}


def keyword_shape(keyword: str) -> KeywordShape:
    return KEYWORD_SHAPES.get(keyword, KeywordShape.SCALAR)


@unique
class DiffKind(Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


@unique
class BranchKind(Enum):
    ANY_OF = "anyOf"
    ONE_OF = "oneOf"
    NONE = "none"

    @property
    def label(self) -> str:
        # Atomic schemas are reported the same way as `anyOf` branches.
        return Keyword.ONE_OF.value if self is BranchKind.ONE_OF else Keyword.ANY_OF.value


@dataclass(frozen=True, slots=True, kw_only=True)
class BranchResult:
    branches: list[Schema]
    kind: BranchKind


@dataclass(frozen=True, slots=True, kw_only=True)
class SchemaDiff:
    path: str
    kind: DiffKind
    expected: Any
    actual: Any


@dataclass(frozen=True, slots=True, kw_only=True)
class SubsetResult:
    is_subset: bool
    merged: Schema | None
    diffs: list[SchemaDiff]


@dataclass(frozen=True, slots=True, kw_only=True)
class ConnectionResult(SubsetResult):
    direction: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedConditionResult:
    resolved: SchemaObject
    branch: str | None
    discriminant: dict[str, JsonData]


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedCheckResult(SubsetResult):
    resolved_sub: ResolvedConditionResult
    resolved_sup: ResolvedConditionResult
