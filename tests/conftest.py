"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from schemacompat.checker import JsonSchemaCompatibilityChecker
from schemacompat.config import Config
from schemacompat.types import SubsetResult
from typing import List, Optional

import pytest

TEST_RANDOM_SEED = 1234


def pytest_assertrepr_compare(op, left, right) -> Optional[List[str]]:
    if isinstance(left, SubsetResult) and isinstance(right, SubsetResult) and op in ("==", "!="):
        lines = ["Comparing SubsetResult instances:"]

        def pad(depth: int, *msg: str) -> str:
            return "  " * depth + " ".join(msg)

        def list_details(header: str, depth: int, items: List[str]) -> None:
            qty = len(items)

            if qty == 1:
                lines.append(pad(depth, header, *items))
            elif qty > 1:
                lines.append(pad(depth, header))
                depth += 1
                for loc in items:
                    lines.append(pad(depth, loc))

        def result_details(header: str, depth: int, obj: SubsetResult) -> None:
            lines.append(pad(depth, header))

            depth += 1

            lines.append(pad(depth, "is_subset", str(obj.is_subset)))
            lines.append(pad(depth, "merged", repr(obj.merged)))
            list_details(
                "diffs:",
                depth,
                [f"{d.kind.value} {d.path}: {d.expected!r} -> {d.actual!r}" for d in obj.diffs],
            )

        depth = 1
        result_details("Left:", depth, left)
        result_details("Right:", depth, right)
        return lines

    return None


@pytest.fixture(name="config")
def fixture_config() -> Config:
    return Config(random_seed=TEST_RANDOM_SEED)


@pytest.fixture(name="checker")
def fixture_checker(config: Config) -> JsonSchemaCompatibilityChecker:
    return JsonSchemaCompatibilityChecker(config=config)
