"""
report.py - Main reporting interface for guardian

This module provides a unified interface for generating scan reports in
different formats and for saving reports to a directory.
"""

import os
import sys
from datetime import date, datetime
from typing import Optional, Union

from ..core import ScanResult
from ..utils.file_handler import safe_write_file
from .console import format_console_report
from .json import generate_json_report
from .markdown import generate_markdown_report

REPORT_EXTENSIONS = {"markdown": "md", "json": "json", "text": "txt"}


def generate_report(
    result: ScanResult,
    format: str = "markdown",
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Generate a report in the specified format

    Args:
        result: Scan result
        format: Output format ('markdown', 'json', 'text')
        generated_at: Timestamp to include in the report

    Returns:
        Generated report as a string

    Raises:
        ValueError: If an invalid format is specified
    """
    if format == "markdown":
        return generate_markdown_report(result, generated_at=generated_at)
    elif format == "json":
        return generate_json_report(result, generated_at=generated_at)
    elif format == "text":
        return format_console_report(result)
    else:
        raise ValueError(f"Invalid report format: {format}")


def report_filename(
    repository_id: str,
    kind: str = "workflow-scan",
    when: Optional[Union[date, datetime]] = None,
    format: str = "markdown",
) -> str:
    """
    Build the conventional file name of a report

    Args:
        repository_id: Identifier of the repository
        kind: Report kind, e.g. 'workflow-scan' or 'compliance-report'
        when: Date of the report (defaults to today)
        format: Report format, selects the extension

    Returns:
        File name such as 'api-workflow-scan-2026-01-31.md'
    """
    when = when or date.today()
    if isinstance(when, datetime):
        when = when.date()

    extension = REPORT_EXTENSIONS.get(format)
    if extension is None:
        raise ValueError(f"Invalid report format: {format}")

    safe_id = repository_id.strip().replace("/", "_").replace(os.sep, "_")
    return f"{safe_id}-{kind}-{when.isoformat()}.{extension}"


def save_report(content: str, output_dir: str, filename: str) -> str:
    """
    Save a report to a directory, creating the directory if needed

    Args:
        content: Report text
        output_dir: Directory to write into
        filename: Report file name

    Returns:
        Path of the written report

    Raises:
        OSError: If the file cannot be written
    """
    path = os.path.join(output_dir, filename)
    safe_write_file(path, content)
    return path


def print_report(
    result: ScanResult,
    format: str = "text",
    generated_at: Optional[datetime] = None,
) -> None:
    """
    Generate a report and print it to stdout

    Raises:
        ValueError: If an invalid format is specified
    """
    report = generate_report(result, format=format, generated_at=generated_at)
    sys.stdout.write(report if report.endswith("\n") else report + "\n")
    sys.stdout.flush()
