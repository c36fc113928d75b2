"""
Test config

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from _pytest.logging import LogCaptureFixture
from schemacompat.checker import JsonSchemaCompatibilityChecker
from schemacompat.config import Config, DEFAULT_SAMPLE_COUNT
from schemacompat.errors import InvalidConfiguration

import logging
import pytest


def test_defaults() -> None:
    config = Config()
    assert config.log_handler == "stdout"
    assert config.log_level == "INFO"
    assert config.pattern_sample_count == DEFAULT_SAMPLE_COUNT
    assert config.random_seed is None


def test_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCHEMACOMPAT_PATTERN_SAMPLE_COUNT", "50")
    monkeypatch.setenv("SCHEMACOMPAT_RANDOM_SEED", "7")
    config = Config()
    assert config.pattern_sample_count == 50
    assert config.random_seed == 7


def test_set_config_defaults_returns_a_copy() -> None:
    config = Config()
    updated = config.set_config_defaults({"log_level": "DEBUG", "random_seed": 3})
    assert updated.log_level == "DEBUG"
    assert updated.random_seed == 3
    assert config.log_level == "INFO"
    assert config.random_seed is None


@pytest.mark.parametrize(
    "new_config,message",
    [
        ({"log_level": "LOUD"}, "Invalid log level: LOUD"),
        ({"pattern_sample_count": 0}, "Invalid value for 'pattern_sample_count': 0"),
        ({"pattern_max_length": -1}, "Invalid value for 'pattern_max_length': -1"),
        ({"regex_cache_size": 0}, "Invalid value for 'regex_cache_size': 0"),
    ],
)
def test_set_config_defaults_validation(new_config, message: str) -> None:
    with pytest.raises(InvalidConfiguration, match=message):
        Config().set_config_defaults(new_config)



def test_checker_validates_config() -> None:
    with pytest.raises(InvalidConfiguration, match="Invalid value for 'pattern_sample_count': 0"):
        JsonSchemaCompatibilityChecker(Config(pattern_sample_count=0))


def test_checker_keeps_its_own_config_copy() -> None:
    config = Config(random_seed=5)
    checker = JsonSchemaCompatibilityChecker(config)
    assert checker.config == config
    assert checker.config is not config
    assert checker.patterns.config is checker.config


def test_checker_logs_config(caplog: LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="schemacompat.logging_setup"):
        JsonSchemaCompatibilityChecker(Config(random_seed=42))
    [record] = [record for record in caplog.records if record.message.startswith("Config ")]
    assert "'random_seed': 42" in record.message
