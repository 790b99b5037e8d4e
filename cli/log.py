"""Logging setup for CLI runs."""

import sys

from loguru import logger


def configure_logging(debug: bool = False) -> None:
    """Route engine logs to stderr, at DEBUG when ``--debug`` is given."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if debug else "INFO",
        format="<level>{level: <8}</level> {message}",
        colorize=None,
    )
