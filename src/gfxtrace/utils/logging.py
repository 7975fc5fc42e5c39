"""Logging setup utilities for gfxtrace.

Configures the ``gfxtrace`` logger hierarchy from the logging section of
the settings. Tracer output is not logged here; it goes to the session log.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from gfxtrace.config.settings import LoggingConfig

PACKAGE_LOGGER = "gfxtrace"


def setup_logging(config: LoggingConfig | None = None, *, verbose: bool = False) -> logging.Logger:
    """Configure logging for the gfxtrace application.

    Handlers from a previous call are closed and replaced, so the CLI and
    tests can call this repeatedly.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
        verbose: Force DEBUG level regardless of the configured one.

    Returns:
        The configured package logger.
    """
    if config is None:
        config = LoggingConfig()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG if verbose else config.level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.debug("Logging initialized at %s level", logging.getLevelName(package_logger.level))
    return package_logger
