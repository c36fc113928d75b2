"""
schemacompat - regular expression inclusion by sampling

Inclusion of regular languages is approximated: strings are generated from
the candidate sub-pattern, kept only when the sub-pattern itself matches them,
and matched against the super-pattern. A kept string that does not match is
a counter-example, so a `False` answer is certain. A `True` answer only
means no counter-example was found among the samples. `None` means no answer could be given (invalid pattern, no usable sample).

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from cachetools import LRUCache
from rstr.xeger import Xeger
from schemacompat.config import Config
from typing import Final

import logging
import random
import re

LOG = logging.getLogger(__name__)

UNIVERSAL_PATTERNS: Final = frozenset(
    {
        ".*",
        ".+",
        "^.*$",
        "^.+$",
        "^.*",
        ".*$",
        "^.+",
        ".+$",
        "(?:.*)",
        "(?:.+)",
    }
)


def is_trivial_pattern(pattern: str) -> bool:
    """True for patterns that accept (nearly) every string.

    >>> is_trivial_pattern("^.*$"), is_trivial_pattern("  "), is_trivial_pattern("^a")
    (True, True, False)
    """
    trimmed = pattern.strip()
    return trimmed == "" or trimmed in UNIVERSAL_PATTERNS


class BoundedXeger(Xeger):
    """String generator with every repetition capped at `max_repetition`."""

    def __init__(self, *, max_repetition: int, rng: random.Random) -> None:
        super().__init__(_random=rng)
        self.max_repetition = max_repetition

    def _handle_repeat(self, start_range: int, end_range: int, value: str) -> str:
        end_range = max(start_range, min(end_range, self.max_repetition))
        return super()._handle_repeat(start_range, end_range, value)


class SampleGenerator:
    def __init__(self, pattern: str, xeger: BoundedXeger) -> None:
        self.pattern = pattern
        self._xeger = xeger

    def generate(self) -> str:
        return self._xeger.xeger(self.pattern)


class PatternSubsetChecker:
    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config()
        self._random = random.Random(self.config.random_seed)
        self._xeger = BoundedXeger(max_repetition=self.config.pattern_max_repetition, rng=self._random)
        self._verdicts: LRUCache[tuple[str, str, int], bool | None] = LRUCache(maxsize=self.config.pattern_cache_size)
        self._regexes: LRUCache[str, re.Pattern[str] | None] = LRUCache(maxsize=self.config.regex_cache_size)
        self._generators: LRUCache[str, SampleGenerator | None] = LRUCache(maxsize=self.config.regex_cache_size)

    def clear_caches(self) -> None:
        self._verdicts.clear()
        self._regexes.clear()
        self._generators.clear()

    def compile_regex(self, pattern: str) -> re.Pattern[str] | None:
        if pattern in self._regexes:
            return self._regexes[pattern]
        try:
            compiled: re.Pattern[str] | None = re.compile(pattern)
        except re.error as e:
            LOG.debug("Invalid pattern %r: %s", pattern, e)
            compiled = None
        self._regexes[pattern] = compiled
        return compiled

    def _generator_for(self, pattern: str) -> SampleGenerator | None:
        if pattern in self._generators:
            return self._generators[pattern]
        generator = SampleGenerator(pattern, self._xeger) if self.compile_regex(pattern) is not None else None
        self._generators[pattern] = generator
        return generator

    def _generate_samples(self, generator: SampleGenerator, count: int) -> list[str]:
        samples: dict[str, None] = {}
        max_length = self.config.pattern_max_length
        for _ in range(count * 3):
            if len(samples) >= count:
                break
            sample = generator.generate()
            if len(sample) <= max_length:
                samples[sample] = None
        return list(samples)

    def is_pattern_subset(self, sub_pattern: str, sup_pattern: str, sample_count: int | None = None) -> bool | None:
        if sub_pattern == sup_pattern:
            return True
        if is_trivial_pattern(sup_pattern):
            return True

        count = sample_count if sample_count is not None else self.config.pattern_sample_count
        key = (sub_pattern, sup_pattern, count)
        if key in self._verdicts:
            return self._verdicts[key]

        verdict = self._sample_inclusion(sub_pattern, sup_pattern, count)
        self._verdicts[key] = verdict
        return verdict

    def _sample_inclusion(self, sub_pattern: str, sup_pattern: str, count: int) -> bool | None:
        sub_regex = self.compile_regex(sub_pattern)
        sup_regex = self.compile_regex(sup_pattern)
        if sub_regex is None or sup_regex is None:
            return None

        generator = self._generator_for(sub_pattern)
        if generator is None:
            return None

        try:
            samples = self._generate_samples(generator, count)
        except Exception as e:  # pylint: disable=broad-except
            # Constructs the generator cannot expand (e.g. backreferences to unmatched groups).
            LOG.debug("Cannot generate samples for pattern %r: %s", sub_pattern, e)
            return None

        # Word boundaries and lookarounds are not honoured by the generator.
        samples = [sample for sample in samples if sub_regex.search(sample) is not None]
        if not samples:
            return None

        for sample in samples:
            if sup_regex.search(sample) is None:
                LOG.debug("Pattern %r is not included in %r, counter-example %r", sub_pattern, sup_pattern, sample)
                return False
        return True

    def are_patterns_equivalent(self, pattern_a: str, pattern_b: str, sample_count: int | None = None) -> bool | None:
        if pattern_a == pattern_b:
            return True

        a_in_b = self.is_pattern_subset(pattern_a, pattern_b, sample_count)
        if a_in_b is not True:
            return a_in_b

        return self.is_pattern_subset(pattern_b, pattern_a, sample_count)
