# src/buildplan/logs.py

import logging
from typing import cast

from apathetic_logging import (
    Logger,
    registerDefaultLogLevel,
    registerLogger,
    registerLogLevelEnvVars,
)

from .constants import DEFAULT_ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL
from .meta import PROGRAM_ENV, PROGRAM_PACKAGE


# accepted by --log-level; TRACE and SILENT come from extendLoggingModule()
LOG_LEVEL_CHOICES = (
    "trace",
    "debug",
    "info",
    "warning",
    "error",
    "critical",
    "silent",
)


class AppLogger(Logger):
    """App-specific logger class."""


# --- Logger initialization ---------------------------------------------------

# Must happen before any loggers are created.
logging.setLoggerClass(AppLogger)
AppLogger.extendLoggingModule()

registerLogLevelEnvVars(
    [f"{PROGRAM_ENV}_{DEFAULT_ENV_LOG_LEVEL}", DEFAULT_ENV_LOG_LEVEL]
)
registerDefaultLogLevel(DEFAULT_LOG_LEVEL)
registerLogger(PROGRAM_PACKAGE)

_APP_LOGGER = cast("AppLogger", logging.getLogger(PROGRAM_PACKAGE))


def get_app_logger() -> AppLogger:
    """Return the configured app logger."""
    return _APP_LOGGER
