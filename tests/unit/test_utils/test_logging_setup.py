"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from gfxtrace.config.settings import LoggingConfig
from gfxtrace.utils.logging import setup_logging


class TestSetupLogging:
    def test_defaults(self) -> None:
        logger = setup_logging()
        assert logger is logging.getLogger("gfxtrace")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_repeated_setup_replaces_handlers(self) -> None:
        setup_logging(LoggingConfig(level="debug"))
        logger = setup_logging(LoggingConfig(level="debug"))
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_verbose_overrides_level(self) -> None:
        logger = setup_logging(LoggingConfig(level="WARNING"), verbose=True)
        assert logger.level == logging.DEBUG
        setup_logging()

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown log level"):
            LoggingConfig(level="chatty")

    def test_file_handler_creates_directory(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "gfxtrace.log"
        logger = setup_logging(LoggingConfig(file=str(log_file)))
        assert len(logger.handlers) == 2
        logging.getLogger("gfxtrace.session").info("capture started")
        for handler in logger.handlers:
            handler.flush()
        assert "capture started" in log_file.read_text()
        setup_logging()
