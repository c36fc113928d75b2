"""
schemacompat - errors

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations


class SchemaCompatError(Exception):
    pass


class MergeError(SchemaCompatError):
    """The intersection of two schemas is provably empty."""


class IncompatibleSchemasError(SchemaCompatError):
    pass


class InvalidSchemaError(SchemaCompatError):
    pass


class InvalidConfiguration(SchemaCompatError):
    pass
