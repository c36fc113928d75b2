"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from _pytest.logging import LogCaptureFixture
from schemacompat.config import Config
from schemacompat.patterns import BoundedXeger, is_trivial_pattern, PatternSubsetChecker

import logging
import pytest
import random
import re


@pytest.fixture(name="patterns")
def fixture_patterns(config: Config) -> PatternSubsetChecker:
    return PatternSubsetChecker(config=config)


@pytest.mark.parametrize(
    "sub,sup,expected",
    [
        ("^[a-z]{3}$", "^[a-z]+$", True),
        ("^[a-z]+$", "^[0-9]+$", False),
        ("^[a-z]+$", "^[a-z]{3}$", False),
        ("^[0-9]{4}-[0-9]{2}$", "^[0-9-]+$", True),
        ("^(foo|bar)$", "^[a-z]{3}$", True),
        ("^(foo|bar)$", "^foo$", False),
        ("^[A-Z][a-z]+$", "^[A-Za-z]+$", True),
        ("^abc", "^abc", True),
        ("^\\d+$", ".*", True),
    ],
)
def test_is_pattern_subset(patterns: PatternSubsetChecker, sub: str, sup: str, expected: bool) -> None:
    assert patterns.is_pattern_subset(sub, sup) is expected


@pytest.mark.parametrize(
    "sub,sup",
    [
        ("[", "^[a-z]+$"),
        ("^[a-z]+$", "("),
        ("(?P<x>a", "^a$"),
    ],
)
def test_invalid_pattern_is_undecided(patterns: PatternSubsetChecker, sub: str, sup: str) -> None:
    assert patterns.is_pattern_subset(sub, sup) is None


def test_invalid_pattern_is_logged(caplog: LogCaptureFixture, patterns: PatternSubsetChecker) -> None:
    with caplog.at_level(logging.DEBUG, logger="schemacompat.patterns"):
        assert patterns.compile_regex("[") is None
    assert any(record.message.startswith("Invalid pattern '['") for record in caplog.records)


def test_sup_pattern_is_searched_not_matched(patterns: PatternSubsetChecker) -> None:
    # JSON Schema patterns are not anchored.
    assert patterns.is_pattern_subset("^x[0-9]{2}$", "[0-9]") is True


@pytest.mark.parametrize(
    "sub,sup",
    [
        # "ab" can be generated but is rejected by the word boundary.
        (r"^a\b[a-z]?$", "^a$"),
        (r"^(?=.*[0-9])[a-z0-9]{3}$", "^[a-z0-9]{3}$"),
        (r"^(?!x)[a-z]$", "^[a-wyz]$"),
    ],
)
def test_samples_outside_sub_pattern_are_not_counter_examples(patterns: PatternSubsetChecker, sub: str, sup: str) -> None:
    assert patterns.is_pattern_subset(sub, sup) in (True, None)


def test_no_sample_matching_sub_pattern_is_undecided(patterns: PatternSubsetChecker) -> None:
    # The boundary between two word characters never matches.
    assert patterns.is_pattern_subset(r"^a\bb$", "^c$") is None


def test_are_patterns_equivalent(patterns: PatternSubsetChecker) -> None:
    assert patterns.are_patterns_equivalent("^[a-z]+$", "^[a-z][a-z]*$") is True
    assert patterns.are_patterns_equivalent("^[a-z]{3}$", "^[a-z]+$") is False
    assert patterns.are_patterns_equivalent("^[a-z]+$", "^[a-z]{3}$") is False
    assert patterns.are_patterns_equivalent("[", "^a$") is None
    assert patterns.are_patterns_equivalent("[", "[") is True


def test_verdicts_are_cached(patterns: PatternSubsetChecker) -> None:
    first = patterns.is_pattern_subset("^[a-z]{3}$", "^[a-z]+$", sample_count=50)
    assert patterns.is_pattern_subset("^[a-z]{3}$", "^[a-z]+$", sample_count=50) is first
    patterns.clear_caches()
    assert patterns.is_pattern_subset("^[a-z]{3}$", "^[a-z]+$", sample_count=50) is first


def test_fixed_seed_is_reproducible() -> None:
    config = Config(random_seed=7, pattern_sample_count=20)
    first = PatternSubsetChecker(config=config)
    second = PatternSubsetChecker(config=config)
    generator_a = first._generator_for("^[a-z]{2,8}$")  # pylint: disable=protected-access
    generator_b = second._generator_for("^[a-z]{2,8}$")  # pylint: disable=protected-access
    assert generator_a is not None and generator_b is not None
    assert [generator_a.generate() for _ in range(10)] == [generator_b.generate() for _ in range(10)]


def test_bounded_repetition() -> None:
    xeger = BoundedXeger(max_repetition=5, rng=random.Random(3))
    samples = [xeger.xeger("^a+$") for _ in range(100)]
    assert all(1 <= len(sample) <= 5 for sample in samples)
    assert all(re.fullmatch("a+", sample) for sample in samples)


def test_bounded_repetition_keeps_minimum() -> None:
    xeger = BoundedXeger(max_repetition=2, rng=random.Random(3))
    assert all(len(xeger.xeger("^a{4,}$")) == 4 for _ in range(20))


@pytest.mark.parametrize(
    "pattern,expected",
    [
        (".*", True),
        ("^.*$", True),
        ("^.+$", True),
        ("(?:.*)", True),
        ("", True),
        ("  ", True),
        ("^a", False),
        ("[a-z]*", False),
    ],
)
def test_is_trivial_pattern(pattern: str, expected: bool) -> None:
    assert is_trivial_pattern(pattern) is expected
