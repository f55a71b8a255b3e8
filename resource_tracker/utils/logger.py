"""Logging configuration."""

import logging
from typing import Optional

from ..errors import ConfigurationError

ROOT_LOGGER = "resource_tracker"

# trace has no stdlib level, it logs at DEBUG
LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance."""
    logger = logging.getLogger(name or __name__)

    # Only configure if no handlers exist
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False

    return logger


def set_log_level(level: str) -> int:
    """Apply a level name to every resource_tracker logger."""
    numeric = LOG_LEVELS.get(level.lower())
    if numeric is None:
        raise ConfigurationError(
            f"invalid log level {level!r} (use one of trace|debug|info|warn|error)"
        )

    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(logger, logging.Logger) and name.startswith(ROOT_LOGGER):
            logger.setLevel(numeric)
    logging.getLogger(ROOT_LOGGER).setLevel(numeric)
    return numeric
