"""
Faucet logging setup.

Configures the loguru logger for scripts and test runs.
"""

import sys

from loguru import logger

LOG_FORMAT = "{time:HH:mm:ss} | {level} | {message}"


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Replace the default sink with a stderr sink and an optional rotating file."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )
