"""
utils package for guardian

Version information, logging setup and file helpers.
"""

from .version import __version__, get_version, get_version_info
from .logs import configure_logging

__all__ = [
    "__version__",
    "get_version",
    "get_version_info",
    "configure_logging",
]
