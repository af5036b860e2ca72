"""
logs.py - Diagnostic logging setup for guardian

Diagnostics go through loguru's shared ``logger``; user-facing output stays
on ``click.echo``.
"""

import sys
from typing import Optional, TextIO

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


def configure_logging(verbose: bool = False, sink: Optional[TextIO] = None) -> int:
    """
    Replace loguru's default handler with a single stderr sink

    Args:
        verbose: Log debug messages instead of warnings and above
        sink: Stream to log to (defaults to sys.stderr)

    Returns:
        Identifier of the installed handler
    """
    logger.remove()
    return logger.add(
        sink if sink is not None else sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format=LOG_FORMAT,
        colorize=None,
    )
