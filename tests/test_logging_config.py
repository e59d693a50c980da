"""Tests for logging setup."""

import logging

import pytest

from topictree.logging_config import setup_logging


@pytest.fixture
def restore_logger():
    """Undo setup_logging changes to the package logger."""
    logger = logging.getLogger("topictree")
    saved = (logger.level, logger.propagate, list(logger.handlers))
    yield logger
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    logger.handlers[:] = saved[2]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_explicit_level(self, restore_logger):
        """The package logger gets a console handler at the given level."""
        setup_logging("debug")

        assert restore_logger.level == logging.DEBUG
        assert any(isinstance(h, logging.StreamHandler) for h in restore_logger.handlers)

    def test_module_loggers_inherit(self, restore_logger):
        """Module loggers below the package follow its level."""
        setup_logging("WARNING")

        assert logging.getLogger("topictree.core.indexer").getEffectiveLevel() == logging.WARNING
