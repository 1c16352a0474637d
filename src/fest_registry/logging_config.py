"""Common logging configuration for the Fest Registry service"""

import logging
import sys

from fest_registry.config import config

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


class InfoFilter(logging.Filter):
    """Only pass records below WARNING (stdout gets INFO/DEBUG)"""

    def filter(self, record):
        return record.levelno < logging.WARNING


def setup_logging():
    """Send INFO/DEBUG to stdout and WARNING/ERROR/CRITICAL to stderr at LOG_LEVEL"""
    log_level = config.get("log_level", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(InfoFilter())
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    # SQL echo and per-request HTTP client lines are too chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module name.

    Args:
        name: Usually __name__ from the calling module
    """
    return logging.getLogger(name)
