"""
schemacompat - JSON Schema Draft-07 compatibility checking

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from schemacompat.checker import JsonSchemaCompatibilityChecker
from schemacompat.config import Config
from schemacompat.errors import IncompatibleSchemasError, InvalidSchemaError, MergeError, SchemaCompatError
from schemacompat.formats import is_format_subset, validate_format
from schemacompat.formatter import format_result
from schemacompat.merge_engine import MergeEngine
from schemacompat.normalizer import normalize
from schemacompat.parse import parse_jsonschema_definition
from schemacompat.patterns import is_trivial_pattern, PatternSubsetChecker
from schemacompat.types import (
    BranchKind,
    BranchResult,
    ConnectionResult,
    DiffKind,
    ResolvedCheckResult,
    ResolvedConditionResult,
    SchemaDiff,
    SubsetResult,
)
from schemacompat.version import __version__

__all__ = (
    "BranchKind",
    "BranchResult",
    "Config",
    "ConnectionResult",
    "DiffKind",
    "format_result",
    "IncompatibleSchemasError",
    "InvalidSchemaError",
    "is_format_subset",
    "is_trivial_pattern",
    "JsonSchemaCompatibilityChecker",
    "MergeEngine",
    "MergeError",
    "normalize",
    "parse_jsonschema_definition",
    "PatternSubsetChecker",
    "ResolvedCheckResult",
    "ResolvedConditionResult",
    "SchemaCompatError",
    "SchemaDiff",
    "SubsetResult",
    "validate_format",
    "__version__",
)
