"""
schemacompat - schema parsing

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from schemacompat.errors import InvalidSchemaError
from schemacompat.typing import Schema

import json


def parse_jsonschema_definition(schema_definition: str) -> Schema:
    """Parse a JSON Schema Draft-07 document.

    Raises:
        InvalidSchemaError: The text is not JSON, or is not a valid Draft-07 schema.
    """
    try:
        schema = json.loads(schema_definition)
    except json.JSONDecodeError as e:
        raise InvalidSchemaError(f"Invalid JSON: {e}") from e

    if not isinstance(schema, (bool, dict)):
        raise InvalidSchemaError(f"Schema must be an object or a boolean, got {type(schema).__name__}")

    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        raise InvalidSchemaError(e.message) from e
    return schema
