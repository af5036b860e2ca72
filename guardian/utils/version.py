"""
version.py - Version information for guardian
"""

from typing import Any, Dict

__version__ = "0.3.0"
__release_date__ = "2026-10-18"


def get_version() -> str:
    """
    Get guardian version

    Returns:
        Version string
    """
    return __version__


def get_version_info() -> Dict[str, Any]:
    """
    Get detailed version information

    Returns:
        Dictionary with version, release date, etc.
    """
    return {
        "version": __version__,
        "release_date": __release_date__,
        "release_year": int(__release_date__.split("-")[0]),
    }
