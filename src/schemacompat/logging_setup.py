"""
schemacompat - logging setup

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from schemacompat.config import Config

import logging
import sys

LOG = logging.getLogger(__name__)

PACKAGE_LOGGER = "schemacompat"
HANDLER_NAME = "schemacompat"


def _build_handler(config: Config) -> logging.Handler | None:
    match config.log_handler:
        case "stdout" | None:
            return logging.StreamHandler(stream=sys.stdout)
        case "stderr":
            return logging.StreamHandler(stream=sys.stderr)
        case "systemd":
            from systemd import journal

            return journal.JournalHandler(SYSLOG_IDENTIFIER="schemacompat")
        case _:
            return None


def configure_logging(*, config: Config) -> None:
    """Attach a handler to the `schemacompat` logger.

    The root logger is left alone. A handler installed by an earlier call is
    replaced, so the function can be called again after a configuration change.
    """
    level = config.log_level.upper()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(package_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            package_logger.removeHandler(existing)

    handler = _build_handler(config)
    if handler is None:
        LOG.warning("Log handler %s not recognized, handler not set.", config.log_handler)
    else:
        handler.setFormatter(logging.Formatter(config.log_format))
        handler.setLevel(level)
        handler.set_name(HANDLER_NAME)
        package_logger.addHandler(handler)

    package_logger.setLevel(level)


def log_config(config: Config) -> None:
    LOG.debug("Config %r", config.model_dump())
