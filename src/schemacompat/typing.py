"""
schemacompat - type aliases

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from typing import Any, TypeAlias, Union

JsonArray: TypeAlias = list["JsonData"]
JsonObject: TypeAlias = dict[str, "JsonData"]
JsonScalar: TypeAlias = Union[str, int, float, bool, None]
JsonData: TypeAlias = Union[JsonScalar, JsonObject, JsonArray]

# A Draft-07 schema definition is either a boolean schema or a keyword mapping.
SchemaObject: TypeAlias = dict[str, Any]
Schema: TypeAlias = Union[bool, SchemaObject]
