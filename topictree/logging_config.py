"""Logging configuration for the topic tree engine.

Library modules only create loggers (``logging.getLogger(__name__)``);
applications call :func:`setup_logging` once at start-up.
"""

import logging
import logging.config

from topictree.config import default_settings

__all__ = ["setup_logging"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure console logging for the ``topictree`` loggers.

    Args:
        level: Logging level name. If None, uses the configured log level.
    """
    level = (level or default_settings.log_level).upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": level,
            },
        },
        "loggers": {
            "topictree": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
        },
    }
    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug("Logging initialised at %s", level)
