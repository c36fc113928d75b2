"""
schemacompat - human readable results

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from schemacompat.types import DiffKind, SchemaDiff, SubsetResult
from schemacompat.utils import json_encode

SUBSET_ICON = "✅"
NOT_SUBSET_ICON = "❌"
DIFFS_HEADER = "   Diffs:"
DIFF_INDENT = "     "


def format_diff(diff: SchemaDiff) -> str:
    match diff.kind:
        case DiffKind.ADDED:
            return f"  + {diff.path}: {json_encode(diff.actual)}"
        case DiffKind.REMOVED:
            return f"  - {diff.path}: was {json_encode(diff.expected)}"
        case _:
            return f"  ~ {diff.path}: {json_encode(diff.expected)} → {json_encode(diff.actual)}"


def format_result(label: str, result: SubsetResult) -> str:
    """Render a check result for logs, e.g.

    ❌ loose ⊆ strict: false
       Diffs:
           ~ required: ["name"] → ["name","age"]
           + properties.age: {"type":"number"}
    """
    icon = SUBSET_ICON if result.is_subset else NOT_SUBSET_ICON
    lines = [f"{icon} {label}: {json_encode(result.is_subset)}"]
    if not result.is_subset and result.diffs:
        lines.append(DIFFS_HEADER)
        lines.extend(f"{DIFF_INDENT}{format_diff(diff)}" for diff in result.diffs)
    return "\n".join(lines)
