"""
schemacompat - configuration validation

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from pydantic_settings import BaseSettings, SettingsConfigDict
from schemacompat.errors import InvalidConfiguration

DEFAULT_SAMPLE_COUNT = 200
MAX_GENERATED_LENGTH = 100
MAX_REPETITION = 20

VALID_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="schemacompat_", env_ignore_empty=True, env_nested_delimiter="__")

    log_handler: str | None = "stdout"
    log_level: str = "INFO"
    log_format: str = "%(name)-20s\t%(threadName)s\t%(levelname)-8s\t%(message)s"

    # Pattern inclusion is approximated by sampling strings of the candidate sub-pattern.
    pattern_sample_count: int = DEFAULT_SAMPLE_COUNT
    pattern_max_repetition: int = MAX_REPETITION
    pattern_max_length: int = MAX_GENERATED_LENGTH
    random_seed: int | None = None

    pattern_cache_size: int = 4096
    regex_cache_size: int = 1024
    branch_cache_size: int = 4096

    def set_config_defaults(self, new_config: Mapping[str, object] | None = None) -> Config:
        config = deepcopy(self)
        if new_config:
            for key, value in new_config.items():
                setattr(config, key, value)

        validate_config(config)
        return config


def validate_config(config: Config) -> None:
    if config.log_level.upper() not in VALID_LOG_LEVELS:
        raise InvalidConfiguration(f"Invalid log level: {config.log_level}, valid values are {list(VALID_LOG_LEVELS)}")

    for name in ("pattern_sample_count", "pattern_max_repetition", "pattern_max_length"):
        value = getattr(config, name)
        if value < 1:
            raise InvalidConfiguration(f"Invalid value for '{name}': {value}, must be a positive integer")

    for name in ("pattern_cache_size", "regex_cache_size", "branch_cache_size"):
        value = getattr(config, name)
        if value < 1:
            raise InvalidConfiguration(f"Invalid value for '{name}': {value}, cache sizes must be positive")
