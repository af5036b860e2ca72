"""
file_handler.py - Utilities for file operations

This module provides file handling utilities for guardian, including
workflow directory discovery and safe report writing.
"""

import os
import shutil
import tempfile

from ..sources.base import WORKFLOW_EXTENSIONS, WORKFLOWS_PATH


def workflows_directory(repo_path: str) -> str:
    """Return the path of the workflows directory of a repository"""
    return os.path.join(repo_path, *WORKFLOWS_PATH.split("/"))


def has_github_workflows(path: str) -> bool:
    """
    Check if a directory contains GitHub workflow files

    Args:
        path: Directory path to check

    Returns:
        True if the directory contains a .github/workflows directory with YAML files
    """
    workflows_dir = workflows_directory(path)
    if not os.path.isdir(workflows_dir):
        return False

    yaml_files = [f for f in os.listdir(workflows_dir) if f.endswith(WORKFLOW_EXTENSIONS)]

    return len(yaml_files) > 0


def safe_write_file(file_path: str, content: str) -> None:
    """
    Write content to a file through a temporary file in the same directory

    The target is either left untouched or fully replaced.

    Args:
        file_path: Path to the file to write
        content: Content to write

    Raises:
        OSError: If the file cannot be written
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    os.makedirs(directory, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)

        shutil.move(temp_path, file_path)
    finally:
        if os.path.exists(temp_path):
            os.unlink(temp_path)

