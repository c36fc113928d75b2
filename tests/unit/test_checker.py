"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from copy import deepcopy
from schemacompat.checker import CONNECTION_DIRECTION, JsonSchemaCompatibilityChecker
from schemacompat.checks import BRANCH_NOT_ACCEPTED
from schemacompat.types import ConnectionResult, DiffKind, ResolvedCheckResult, SchemaDiff, SubsetResult
from tests.schemas.json_schemas import (
    ACCOUNT_SCHEMA, ACTIVE_STRING_SCHEMA, ANYOF_STRING_INT_SCHEMA, ANYOF_STRING_NUMBER_SCHEMA, ARRAY_OF_INT_SCHEMA,
    ARRAY_OF_NUMBER_SCHEMA, ARRAY_OF_STRING_SCHEMA, BOOLEAN_SCHEMA, BUSINESS_OUTPUT_SCHEMA, CLOSED_PERSON_SCHEMA,
    CONST_A_SCHEMA, CONST_B_SCHEMA, CONST_ONLY_SCHEMA, CONST_X_SCHEMA, DELETED_SCHEMA, EMAIL_SCHEMA, EMPTY_SCHEMA,
    ENUM_12_SCHEMA, ENUM_123_SCHEMA, ENUM_234_SCHEMA, ENUM_A_NULL_SCHEMA, ENUM_AB_NULL_SCHEMA, ENUM_ONLY_SCHEMA,
    ENUM_XY_SCHEMA, ENUM_YZ_SCHEMA, FALSE_SCHEMA, IDN_EMAIL_SCHEMA, INT_SCHEMA, IPV4_SCHEMA, LOOSE_USER_SCHEMA,
    MAX_LENGTH_DECREASED_SCHEMA, MAX_LENGTH_SCHEMA, MAXIMUM_DECREASED_NUMBER_SCHEMA, MAXIMUM_NUMBER_SCHEMA,
    METADATA_ONLY_SCHEMA, MIN_ITEMS_INCREASED_SCHEMA, MIN_ITEMS_SCHEMA, MIN_LENGTH_INCREASED_SCHEMA, MIN_LENGTH_SCHEMA,
    MINIMUM_INCREASED_INTEGER_SCHEMA, MINIMUM_INTEGER_SCHEMA, MULTIPLE_OF_2_SCHEMA, MULTIPLE_OF_4_SCHEMA,
    NOT_DELETED_SCHEMA, NOT_NOT_STRING_SCHEMA, NOT_STRING_SCHEMA, NUMBER_SCHEMA, OBJECT_SCHEMA,
    ONEOF_STRING_BOOLEAN_SCHEMA, PATTERN_DIGITS_SCHEMA, PATTERN_LETTERS_SCHEMA, PATTERN_THREE_LETTERS_SCHEMA,
    PERSON_SCHEMA, PERSON_WITH_AGE_SCHEMA, STRICT_USER_SCHEMA, STRING_SCHEMA, TRUE_SCHEMA, TYPES_STRING_INT_SCHEMA,
    TYPES_STRING_NULL_SCHEMA
)

import pytest

ALL_SCHEMAS = (
    FALSE_SCHEMA,
    TRUE_SCHEMA,
    EMPTY_SCHEMA,
    METADATA_ONLY_SCHEMA,
    BOOLEAN_SCHEMA,
    INT_SCHEMA,
    NUMBER_SCHEMA,
    STRING_SCHEMA,
    OBJECT_SCHEMA,
    TYPES_STRING_INT_SCHEMA,
    TYPES_STRING_NULL_SCHEMA,
    CONST_A_SCHEMA,
    ENUM_ONLY_SCHEMA,
    ENUM_123_SCHEMA,
    ENUM_A_NULL_SCHEMA,
    MAX_LENGTH_SCHEMA,
    MIN_ITEMS_SCHEMA,
    MULTIPLE_OF_4_SCHEMA,
    PATTERN_LETTERS_SCHEMA,
    EMAIL_SCHEMA,
    NOT_STRING_SCHEMA,
    NOT_DELETED_SCHEMA,
    PERSON_SCHEMA,
    CLOSED_PERSON_SCHEMA,
    STRICT_USER_SCHEMA,
    ARRAY_OF_INT_SCHEMA,
    ANYOF_STRING_INT_SCHEMA,
    ONEOF_STRING_BOOLEAN_SCHEMA,
    ACCOUNT_SCHEMA,
)

# (sub, sup): every value accepted by sub is accepted by sup, the reverse does not hold.
STRICT_SUBSETS = (
    (STRING_SCHEMA, EMPTY_SCHEMA),
    (STRING_SCHEMA, TRUE_SCHEMA),
    (FALSE_SCHEMA, STRING_SCHEMA),
    (INT_SCHEMA, NUMBER_SCHEMA),
    (STRING_SCHEMA, TYPES_STRING_NULL_SCHEMA),
    (MAX_LENGTH_DECREASED_SCHEMA, MAX_LENGTH_SCHEMA),
    (MIN_LENGTH_INCREASED_SCHEMA, MIN_LENGTH_SCHEMA),
    (MAXIMUM_DECREASED_NUMBER_SCHEMA, MAXIMUM_NUMBER_SCHEMA),
    (MINIMUM_INCREASED_INTEGER_SCHEMA, MINIMUM_INTEGER_SCHEMA),
    (MIN_ITEMS_INCREASED_SCHEMA, MIN_ITEMS_SCHEMA),
    (MULTIPLE_OF_4_SCHEMA, MULTIPLE_OF_2_SCHEMA),
    (CONST_X_SCHEMA, ENUM_XY_SCHEMA),
    (ENUM_12_SCHEMA, ENUM_123_SCHEMA),
    (ENUM_A_NULL_SCHEMA, ENUM_AB_NULL_SCHEMA),
    (EMAIL_SCHEMA, STRING_SCHEMA),
    (EMAIL_SCHEMA, IDN_EMAIL_SCHEMA),
    (PATTERN_THREE_LETTERS_SCHEMA, PATTERN_LETTERS_SCHEMA),
    (PERSON_WITH_AGE_SCHEMA, PERSON_SCHEMA),
    (STRICT_USER_SCHEMA, LOOSE_USER_SCHEMA),
    (ARRAY_OF_INT_SCHEMA, ARRAY_OF_NUMBER_SCHEMA),
    (ANYOF_STRING_INT_SCHEMA, ANYOF_STRING_NUMBER_SCHEMA),
    (STRING_SCHEMA, ANYOF_STRING_INT_SCHEMA),
    (STRING_SCHEMA, ONEOF_STRING_BOOLEAN_SCHEMA),
)

# (sub, sup): neither schema accepts all the values of the other one.
UNRELATED = (
    (STRING_SCHEMA, INT_SCHEMA),
    (CONST_A_SCHEMA, CONST_B_SCHEMA),
    (CONST_X_SCHEMA, ENUM_YZ_SCHEMA),
    (PATTERN_LETTERS_SCHEMA, PATTERN_DIGITS_SCHEMA),
    (EMAIL_SCHEMA, IPV4_SCHEMA),
    (ARRAY_OF_INT_SCHEMA, ARRAY_OF_STRING_SCHEMA),
    (BOOLEAN_SCHEMA, ANYOF_STRING_INT_SCHEMA),
)


@pytest.mark.parametrize("schema", ALL_SCHEMAS)
def test_reflexivity(checker: JsonSchemaCompatibilityChecker, schema) -> None:
    assert checker.is_subset(schema, schema)
    assert checker.is_subset(schema, deepcopy(schema))
    assert checker.check(schema, deepcopy(schema)).is_subset


@pytest.mark.parametrize("sub,sup", STRICT_SUBSETS)
def test_strict_subsets(checker: JsonSchemaCompatibilityChecker, sub, sup) -> None:
    assert checker.is_subset(sub, sup)
    assert not checker.is_subset(sup, sub)
    assert checker.check(sub, sup).is_subset
    assert not checker.check(sup, sub).is_subset


@pytest.mark.parametrize("a,b", UNRELATED)
def test_unrelated_schemas(checker: JsonSchemaCompatibilityChecker, a, b) -> None:
    assert not checker.is_subset(a, b)
    assert not checker.is_subset(b, a)


@pytest.mark.parametrize(
    "a,b",
    [
        (ENUM_ONLY_SCHEMA, CONST_ONLY_SCHEMA),
        (NOT_NOT_STRING_SCHEMA, STRING_SCHEMA),
        (METADATA_ONLY_SCHEMA, EMPTY_SCHEMA),
        (EMPTY_SCHEMA, TRUE_SCHEMA),
        ({"type": ["integer", "string"]}, {"type": ["string", "integer"]}),
        ({"required": ["a", "b"]}, {"required": ["b", "a"]}),
    ],
)
def test_mutual_subsets_are_equal(checker: JsonSchemaCompatibilityChecker, a, b) -> None:
    assert checker.is_subset(a, b)
    assert checker.is_subset(b, a)
    assert checker.is_equal(checker.normalize(a), checker.normalize(b))
    assert checker.is_equal(a, b)


def test_empty_schema() -> None:
    checker = JsonSchemaCompatibilityChecker()
    assert not checker.is_subset(EMPTY_SCHEMA, STRING_SCHEMA)
    assert checker.is_subset(STRING_SCHEMA, EMPTY_SCHEMA)
    assert checker.is_subset(METADATA_ONLY_SCHEMA, EMPTY_SCHEMA)


def test_const_conflict(checker: JsonSchemaCompatibilityChecker) -> None:
    assert not checker.is_subset(CONST_A_SCHEMA, CONST_B_SCHEMA)
    assert checker.intersect(CONST_A_SCHEMA, CONST_B_SCHEMA) is None


def test_enum_intersection(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.intersect(ENUM_123_SCHEMA, ENUM_234_SCHEMA) == {"enum": [2, 3], "type": "integer"}


def test_enum_intersection_keeps_null(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.is_subset(ENUM_A_NULL_SCHEMA, ENUM_AB_NULL_SCHEMA)
    intersection = checker.intersect(ENUM_A_NULL_SCHEMA, ENUM_AB_NULL_SCHEMA)
    assert intersection is not None
    assert intersection["enum"] == ["a", None]


def test_intersect_is_normalized(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.intersect({"const": "a"}, {"enum": ["a", "b"]}) == {"const": "a", "type": "string"}
    assert checker.intersect(STRING_SCHEMA, {"maxLength": 3}) == {"type": "string", "maxLength": 3}
    assert checker.intersect(STRING_SCHEMA, INT_SCHEMA) is None
    assert checker.intersect(STRING_SCHEMA, FALSE_SCHEMA) is False
    assert checker.intersect(TRUE_SCHEMA, STRING_SCHEMA) == STRING_SCHEMA


@pytest.mark.parametrize(
    "a,b",
    [
        ({"type": "array", "items": {"const": "a"}}, {"type": "array", "items": {"const": "b"}}),
        ({"additionalProperties": {"const": 1}}, {"additionalProperties": {"const": 2}}),
        ({"patternProperties": {"^x": {"const": 1}}}, {"patternProperties": {"^x": {"const": 2}}}),
        ({"items": [{"const": 1}, {"const": 2}]}, {"items": [{"const": 1}, {"const": 3}]}),
        (
            {"properties": {"a": {"properties": {"b": {"const": 1}}}}},
            {"properties": {"a": {"properties": {"b": {"enum": [2, 3]}}}}},
        ),
    ],
)
def test_deep_const_conflict(checker: JsonSchemaCompatibilityChecker, a, b) -> None:
    assert checker.intersect(a, b) is None
    assert not checker.is_subset(a, b)


def test_different_pattern_properties_do_not_conflict(checker: JsonSchemaCompatibilityChecker) -> None:
    intersection = checker.intersect(
        {"patternProperties": {"^a": {"const": 1}}},
        {"patternProperties": {"^b": {"const": 2}}},
    )
    assert intersection == {
        "patternProperties": {
            "^a": {"const": 1, "type": "integer"},
            "^b": {"const": 2, "type": "integer"},
        }
    }


def test_not_reasoning(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.is_subset(ACTIVE_STRING_SCHEMA, NOT_DELETED_SCHEMA)
    assert not checker.is_subset(DELETED_SCHEMA, NOT_DELETED_SCHEMA)
    assert checker.is_subset(INT_SCHEMA, NOT_STRING_SCHEMA)
    assert not checker.is_subset(STRING_SCHEMA, NOT_STRING_SCHEMA)


def test_property_level_not(checker: JsonSchemaCompatibilityChecker) -> None:
    sub = {"type": "object", "properties": {"status": {"type": "string", "const": "active"}}}
    sup = {"type": "object", "properties": {"status": {"not": {"const": "deleted"}}}}
    assert checker.is_subset(sub, sup)
    assert checker.check(sub, sup).is_subset

    deleted = {"type": "object", "properties": {"status": {"type": "string", "const": "deleted"}}}
    assert not checker.is_subset(deleted, sup)


def test_not_check_reports_incompatibility(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.check(DELETED_SCHEMA, NOT_DELETED_SCHEMA)
    assert not result.is_subset
    assert result.merged is None
    assert len(result.diffs) == 1
    assert result.diffs[0].path == "$"
    assert result.diffs[0].kind is DiffKind.CHANGED
    assert result.diffs[0].actual.startswith("Incompatible: ")


def test_format(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.is_subset(EMAIL_SCHEMA, STRING_SCHEMA)
    assert checker.intersect(EMAIL_SCHEMA, IPV4_SCHEMA) is None
    assert checker.intersect(EMAIL_SCHEMA, IDN_EMAIL_SCHEMA) == EMAIL_SCHEMA

    result = checker.check(IDN_EMAIL_SCHEMA, EMAIL_SCHEMA)
    assert not result.is_subset
    assert result.diffs == [
        SchemaDiff(
            path="$",
            kind=DiffKind.CHANGED,
            expected=IDN_EMAIL_SCHEMA,
            actual="Incompatible: format 'idn-email' is not included in format 'email'",
        )
    ]


def test_pattern_check_strips_included_pattern(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.check(PATTERN_THREE_LETTERS_SCHEMA, PATTERN_LETTERS_SCHEMA)
    assert result == SubsetResult(is_subset=True, merged=PATTERN_THREE_LETTERS_SCHEMA, diffs=[])


def test_property_patterns(checker: JsonSchemaCompatibilityChecker) -> None:
    sub = {"type": "object", "properties": {"code": {"type": "string", "pattern": "^[a-z]{3}$"}}}
    sup = {"type": "object", "properties": {"code": {"type": "string", "pattern": "^[a-z]+$"}}}
    assert checker.is_subset(sub, sup)
    assert not checker.is_subset(sup, sub)


def test_closed_object_is_subset_of_open_object(checker: JsonSchemaCompatibilityChecker) -> None:
    open_schema = {"type": "object", "properties": {"name": {"type": "string"}, "nick": {"type": "string"}}}
    assert checker.is_subset(CLOSED_PERSON_SCHEMA, open_schema)
    assert not checker.is_subset(PERSON_SCHEMA, CLOSED_PERSON_SCHEMA)


def test_check_reports_differences(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.check(PERSON_SCHEMA, PERSON_WITH_AGE_SCHEMA)
    assert result == SubsetResult(
        is_subset=False,
        merged={
            "type": "object",
            "properties": {"name": {"type": "string"}, "age": {"type": "number"}},
            "required": ["name", "age"],
        },
        diffs=[
            SchemaDiff(path="properties.age", kind=DiffKind.ADDED, expected=None, actual={"type": "number"}),
            SchemaDiff(path="required", kind=DiffKind.CHANGED, expected=["name"], actual=["name", "age"]),
        ],
    )


@pytest.mark.parametrize(
    "sub,sup",
    [
        (EMPTY_SCHEMA, STRING_SCHEMA),
        (NUMBER_SCHEMA, INT_SCHEMA),
        (MAX_LENGTH_SCHEMA, MAX_LENGTH_DECREASED_SCHEMA),
        (LOOSE_USER_SCHEMA, STRICT_USER_SCHEMA),
        (ARRAY_OF_NUMBER_SCHEMA, ARRAY_OF_INT_SCHEMA),
        (PERSON_SCHEMA, CLOSED_PERSON_SCHEMA),
    ],
)
def test_diffs_point_at_real_divergences(checker: JsonSchemaCompatibilityChecker, sub, sup) -> None:
    result = checker.check(sub, sup)
    assert not result.is_subset
    assert result.diffs

    if result.merged is None:
        return

    for diff in result.diffs:
        expected, actual = sub, result.merged
        for segment in diff.path.split("."):
            expected = expected.get(segment) if isinstance(expected, dict) else None
            actual = actual.get(segment) if isinstance(actual, dict) else None
        assert expected != actual
        assert diff.expected == expected
        assert diff.actual == actual


def test_check_incompatible_merge(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.check(CLOSED_PERSON_SCHEMA, PERSON_WITH_AGE_SCHEMA)
    assert result.merged is None
    assert result.diffs == [
        SchemaDiff(
            path="$",
            kind=DiffKind.CHANGED,
            expected=CLOSED_PERSON_SCHEMA,
            actual=(
                "Incompatible: Incompatible additionalProperties: "
                "required properties conflict with additionalProperties constraint"
            ),
        )
    ]


def test_check_type_conflict_does_not_raise(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.check(STRING_SCHEMA, INT_SCHEMA)
    assert not result.is_subset
    assert result.merged is None
    assert result.diffs[0].path == "$"
    assert result.diffs[0].actual.startswith("Incompatible: Incompatible types")


def test_check_identity(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.check(PERSON_SCHEMA, PERSON_SCHEMA)
    assert result.is_subset
    assert result.merged is PERSON_SCHEMA
    assert result.diffs == []


def test_check_branched_sub(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.check(ANYOF_STRING_INT_SCHEMA, ANYOF_STRING_NUMBER_SCHEMA) == SubsetResult(
        is_subset=True,
        merged={"anyOf": [{"type": "string"}, {"type": "integer"}]},
        diffs=[],
    )

    result = checker.check(ANYOF_STRING_NUMBER_SCHEMA, ANYOF_STRING_INT_SCHEMA)
    assert result == SubsetResult(
        is_subset=False,
        merged=None,
        diffs=[
            SchemaDiff(
                path="anyOf[1]",
                kind=DiffKind.CHANGED,
                expected={"type": "number"},
                actual=BRANCH_NOT_ACCEPTED,
            )
        ],
    )


def test_check_branched_sub_one_of_label(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.check(ONEOF_STRING_BOOLEAN_SCHEMA, STRING_SCHEMA)
    assert not result.is_subset
    assert [diff.path for diff in result.diffs] == ["oneOf[1]"]


def test_check_branched_sup(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.check(STRING_SCHEMA, ONEOF_STRING_BOOLEAN_SCHEMA) == SubsetResult(
        is_subset=True,
        merged=STRING_SCHEMA,
        diffs=[],
    )

    result = checker.check(INT_SCHEMA, ONEOF_STRING_BOOLEAN_SCHEMA)
    assert result == SubsetResult(
        is_subset=False,
        merged=None,
        diffs=[
            SchemaDiff(
                path="$",
                kind=DiffKind.CHANGED,
                expected=INT_SCHEMA,
                actual="No branch in superset's oneOf accepts this schema",
            )
        ],
    )


@pytest.mark.parametrize(
    "sub,sup",
    [
        (
            {"type": "string", "const": "active"},
            {"anyOf": [{"not": {"const": "deleted"}}, {"type": "number"}]},
        ),
        (
            {"type": "string", "const": "deleted"},
            {"anyOf": [{"not": {"const": "deleted"}}, {"type": "number"}]},
        ),
        (
            {"type": "object", "properties": {"status": {"type": "string", "const": "active"}}},
            {"oneOf": [{"type": "array"}, {"properties": {"status": {"not": {"const": "deleted"}}}}]},
        ),
        (
            {"type": "string", "pattern": "^[a-z]{3}$"},
            {"anyOf": [{"type": "number"}, {"type": "string", "pattern": "^[a-z]+$"}]},
        ),
    ],
)
def test_check_branched_sup_agrees_with_is_subset(checker: JsonSchemaCompatibilityChecker, sub, sup) -> None:
    assert checker.check(sub, sup).is_subset == checker.is_subset(sub, sup)


def test_check_branched_sup_with_not(checker: JsonSchemaCompatibilityChecker) -> None:
    sub = {"type": "string", "const": "active"}
    result = checker.check(sub, {"anyOf": [{"not": {"const": "deleted"}}, {"type": "number"}]})
    assert result.is_subset
    assert result.diffs == []

    deleted = {"type": "string", "const": "deleted"}
    result = checker.check(deleted, {"anyOf": [{"not": {"const": "deleted"}}, {"type": "number"}]})
    assert not result.is_subset


def test_can_connect(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.can_connect(STRICT_USER_SCHEMA, LOOSE_USER_SCHEMA)
    assert isinstance(result, ConnectionResult)
    assert result.is_subset
    assert result.direction == CONNECTION_DIRECTION == "sourceOutput ⊆ targetInput"

    reverse = checker.can_connect(LOOSE_USER_SCHEMA, STRICT_USER_SCHEMA)
    assert not reverse.is_subset
    assert reverse.diffs == checker.check(LOOSE_USER_SCHEMA, STRICT_USER_SCHEMA).diffs


def test_resolve_conditions(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.resolve_conditions(ACCOUNT_SCHEMA, {"accountType": "business"})
    assert result.branch == "then"
    assert result.discriminant == {"accountType": "business"}
    assert "companyName" in result.resolved["required"]
    for keyword in ("if", "then", "else"):
        assert keyword not in result.resolved
    assert "if" in ACCOUNT_SCHEMA


def test_check_resolved(checker: JsonSchemaCompatibilityChecker) -> None:
    result = checker.check_resolved(BUSINESS_OUTPUT_SCHEMA, ACCOUNT_SCHEMA, {"accountType": "business"})
    assert isinstance(result, ResolvedCheckResult)
    assert result.is_subset
    assert result.resolved_sub.branch is None
    assert result.resolved_sup.branch == "then"

    personal = checker.check_resolved(BUSINESS_OUTPUT_SCHEMA, ACCOUNT_SCHEMA, {"accountType": "business"}, {})
    assert personal.resolved_sup.branch == "then"

    personal = checker.check_resolved(
        BUSINESS_OUTPUT_SCHEMA, ACCOUNT_SCHEMA, {"accountType": "business"}, {"accountType": "personal"}
    )
    assert personal.resolved_sup.branch == "else"
    assert not personal.is_subset


@pytest.mark.parametrize("account_type", ["business", "personal"])
def test_check_resolved_agrees_with_is_subset(checker: JsonSchemaCompatibilityChecker, account_type: str) -> None:
    data = {"accountType": account_type}
    result = checker.check_resolved(ACCOUNT_SCHEMA, ACCOUNT_SCHEMA, data)
    assert result.is_subset == checker.is_subset(result.resolved_sub.resolved, result.resolved_sup.resolved)
    assert result.is_subset

    result = checker.check_resolved(BUSINESS_OUTPUT_SCHEMA, ACCOUNT_SCHEMA, data)
    assert result.is_subset == checker.is_subset(result.resolved_sub.resolved, result.resolved_sup.resolved)


def test_check_resolved_with_not_in_branched_then(checker: JsonSchemaCompatibilityChecker) -> None:
    sup = {
        "type": "object",
        "if": {"properties": {"kind": {"const": "order"}}},
        "then": {
            "anyOf": [
                {"properties": {"status": {"not": {"const": "deleted"}}}},
                {"required": ["x"]},
            ]
        },
    }
    sub = {"type": "object", "properties": {"status": {"type": "string", "const": "active"}}}

    result = checker.check_resolved(sub, sup, {"kind": "order"})
    assert result.resolved_sup.branch == "then"
    assert result.is_subset == checker.is_subset(result.resolved_sub.resolved, result.resolved_sup.resolved)
    assert result.is_subset


def test_normalize(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.normalize(ENUM_ONLY_SCHEMA) == {"const": "only", "type": "string"}
    assert checker.normalize(STRING_SCHEMA) is STRING_SCHEMA


def test_format_result(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.format_result("strict ⊆ loose", checker.check(STRICT_USER_SCHEMA, LOOSE_USER_SCHEMA)) == (
        "✅ strict ⊆ loose: true"
    )
    assert checker.format_result("person ⊆ adult", checker.check(PERSON_SCHEMA, PERSON_WITH_AGE_SCHEMA)) == (
        "❌ person ⊆ adult: false\n"
        "   Diffs:\n"
        '       + properties.age: {"type":"number"}\n'
        '       ~ required: ["name"] → ["name","age"]'
    )


@pytest.mark.parametrize(
    "operation",
    [
        lambda c: c.is_subset("string", STRING_SCHEMA),
        lambda c: c.check(STRING_SCHEMA, None),
        lambda c: c.can_connect([STRING_SCHEMA], STRING_SCHEMA),
        lambda c: c.is_equal(STRING_SCHEMA, 1),
        lambda c: c.intersect(STRING_SCHEMA, "string"),
        lambda c: c.normalize(None),
        lambda c: c.resolve_conditions(True, {}),
        lambda c: c.resolve_conditions(ACCOUNT_SCHEMA, None),
        lambda c: c.check_resolved(ACCOUNT_SCHEMA, ACCOUNT_SCHEMA, ["business"]),
    ],
)
def test_invalid_arguments_raise_type_error(checker: JsonSchemaCompatibilityChecker, operation) -> None:
    with pytest.raises(TypeError):
        operation(checker)


def test_clear_caches(checker: JsonSchemaCompatibilityChecker) -> None:
    assert checker.is_subset(PATTERN_THREE_LETTERS_SCHEMA, PATTERN_LETTERS_SCHEMA)
    checker.clear_caches()
    assert checker.is_subset(PATTERN_THREE_LETTERS_SCHEMA, PATTERN_LETTERS_SCHEMA)
    assert not checker.is_subset(PATTERN_LETTERS_SCHEMA, PATTERN_THREE_LETTERS_SCHEMA)
